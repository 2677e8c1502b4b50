"""AI provider protocol and shared response parsing."""

from __future__ import annotations

import json
from typing import Protocol, runtime_checkable


@runtime_checkable
class AIProvider(Protocol):
    """Anything that can turn a prompt into a parsed JSON response."""

    def complete(
        self,
        prompt: str,
        model: str,
        system: str = "",
        response_format: str | None = None,
    ) -> dict | list:
        """Send a prompt and get a structured response.

        Args:
            prompt: the user prompt
            model: model name/identifier
            system: optional system prompt
            response_format: if "json", request JSON output

        Returns:
            Parsed JSON (object or array), or {"text": raw_text} if the
            model did not answer in JSON.
        """
        ...


def parse_json_response(response_text: str) -> dict | list:
    """Parse a model reply, tolerating a fenced ```json block around it."""
    try:
        return json.loads(response_text)
    except json.JSONDecodeError:
        pass

    for fence in ("```json", "```"):
        if fence in response_text:
            try:
                start = response_text.index(fence) + len(fence)
                end = response_text.index("```", start)
                return json.loads(response_text[start:end].strip())
            except (ValueError, json.JSONDecodeError):
                continue
    return {"text": response_text}
