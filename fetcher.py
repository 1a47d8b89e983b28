"""Single-shot HTTP retrieval bounded by one deadline for the whole exchange."""

from __future__ import annotations

import logging
import time

import requests

REQUEST_TIMEOUT_SECONDS = 15
USER_AGENT = "ai-daily-trends-bot/1.0"
ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
CHUNK_SIZE = 16 * 1024

LOGGER = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """A fetch that did not produce a 2xx body."""

    def __init__(
        self,
        url: str,
        status: int | None = None,
        timed_out: bool = False,
        reason: str = "",
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.url = url
        self.status = status
        self.timed_out = timed_out
        if timed_out:
            detail = f"timed out after {timeout}s"
        elif status is not None:
            detail = f"HTTP {status}"
        else:
            detail = reason or "request failed"
        super().__init__(f"Fetch error ({detail}) for {url}")


def fetch_text(url: str, timeout: float = REQUEST_TIMEOUT_SECONDS) -> str:
    """Return the response body for ``url`` or raise FetchError.

    ``timeout`` caps the whole request, from connect to the last body byte, so
    a server that keeps trickling data still fails as a timeout. No retries:
    the caller decides whether a failure skips a source or an item.
    """
    LOGGER.debug("fetch:start %s", url)
    deadline = time.monotonic() + timeout
    try:
        response = requests.get(
            url,
            headers={"User-Agent": USER_AGENT, "Accept": ACCEPT},
            timeout=timeout,
            stream=True,
        )
    except requests.Timeout as exc:
        LOGGER.debug("fetch:timeout %s", url)
        raise FetchError(url, timed_out=True, timeout=timeout) from exc
    except requests.RequestException as exc:
        LOGGER.debug("fetch:error %s %s", url, exc)
        raise FetchError(url, reason=str(exc)) from exc

    try:
        if not response.ok:
            LOGGER.debug("fetch:fail %s %s", url, response.status_code)
            raise FetchError(url, status=response.status_code)

        chunks: list[bytes] = []
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            chunks.append(chunk)
            if time.monotonic() > deadline:
                LOGGER.debug("fetch:timeout %s after %s bytes", url, sum(map(len, chunks)))
                raise FetchError(url, timed_out=True, timeout=timeout)
    except requests.Timeout as exc:
        LOGGER.debug("fetch:timeout %s", url)
        raise FetchError(url, timed_out=True, timeout=timeout) from exc
    except requests.RequestException as exc:
        LOGGER.debug("fetch:error %s %s", url, exc)
        raise FetchError(url, reason=str(exc)) from exc
    finally:
        response.close()

    LOGGER.debug("fetch:ok %s", url)
    return _decode(b"".join(chunks), response.encoding)


def _decode(body: bytes, encoding: str | None) -> str:
    try:
        return body.decode(encoding or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")
