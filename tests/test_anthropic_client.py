from unittest.mock import MagicMock, patch

import pytest

from anthropic_client import claude_complete


def test_claude_complete_raises_without_api_key() -> None:
    with patch.dict("os.environ", {}, clear=True):
        with pytest.raises(RuntimeError, match="ANTHROPIC_API_KEY"):
            claude_complete("hello")


def test_claude_complete_sends_single_user_message() -> None:
    block = MagicMock()
    block.text = ' {"items": []} '
    mock_response = MagicMock()
    mock_response.content = [block]
    mock_client = MagicMock()
    mock_client.messages.create.return_value = mock_response

    with patch("anthropic_client.anthropic.Anthropic", return_value=mock_client), \
         patch.dict("os.environ", {"ANTHROPIC_API_KEY": "test-key", "CLAUDE_MODEL": "claude-test"}):
        text = claude_complete("prompt body", max_tokens=512, temperature=0.1)

    assert text == '{"items": []}'
    _, kwargs = mock_client.messages.create.call_args
    assert kwargs["model"] == "claude-test"
    assert kwargs["max_tokens"] == 512
    assert kwargs["temperature"] == 0.1
    assert kwargs["messages"] == [{"role": "user", "content": "prompt body"}]
