"""Anthropic AI provider: Claude API client."""

from __future__ import annotations

from leadlint.ai.base import parse_json_response


class AnthropicProvider:
    """Anthropic API client for Claude models."""

    def __init__(self, max_tokens: int = 4096):
        self.max_tokens = max_tokens
        self._client = None

    def _get_client(self):
        if self._client is None:
            import anthropic
            self._client = anthropic.Anthropic()
        return self._client

    def complete(
        self,
        prompt: str,
        model: str,
        system: str = "",
        response_format: str | None = None,
    ) -> dict | list:
        """Send a prompt to Claude and return the parsed response."""
        import anthropic

        client = self._get_client()

        kwargs: dict = {
            "model": model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            kwargs["system"] = system

        try:
            response = client.messages.create(**kwargs)
        except anthropic.APIConnectionError as e:
            raise ConnectionError(f"Failed to reach the Anthropic API: {e}") from e
        except anthropic.APIError as e:
            raise ConnectionError(f"Anthropic API error: {e}") from e

        response_text = "".join(
            block.text for block in response.content if hasattr(block, "text")
        )
        return parse_json_response(response_text)
