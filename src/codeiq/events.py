from __future__ import annotations

from typing import Any


def extract_delta_content(obj: Any) -> str | None:
    # Shape: {"choices": [{"delta": {"content": "..."}}], ...}
    if not isinstance(obj, dict):
        return None
    choices = obj.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    if isinstance(content, str) and content:
        return content
    return None


def extract_error_message(obj: Any, default: str) -> str:
    """Pick a human-readable message out of an error response body."""

    if isinstance(obj, dict):
        for key in ("message", "error"):
            v = obj.get(key)
            if isinstance(v, str) and v:
                return v
    return default


def delta_event(content: str) -> dict[str, Any]:
    return {"choices": [{"delta": {"content": content}}]}
