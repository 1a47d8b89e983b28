"""Thin wrapper around the Anthropic Messages API for single-prompt completions."""

from __future__ import annotations

import logging
import os

import anthropic

LOGGER = logging.getLogger(__name__)


def claude_complete(prompt: str, max_tokens: int = 2048, temperature: float = 0.2) -> str:
    """Send one user-role prompt to Claude and return the concatenated text reply.

    Args:
        prompt: The full instruction, sent as a single user message.
        max_tokens: Hard cap on output tokens.
        temperature: Sampling temperature.
    """
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        raise RuntimeError("ANTHROPIC_API_KEY environment variable is required")

    claude_model = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-5")
    client = anthropic.Anthropic(api_key=api_key)

    LOGGER.debug("Calling Claude model=%s max_tokens=%s", claude_model, max_tokens)
    response = client.messages.create(
        model=claude_model,
        max_tokens=max_tokens,
        temperature=temperature,
        messages=[{"role": "user", "content": prompt}],
    )
    return "".join(
        getattr(block, "text", "") for block in response.content
    ).strip()
