"""Tool call extraction from completed assistant replies.

The model is prompted to put a JSON object such as ``{"tool": "lock"}`` in its
reply. Extraction takes the span from the first ``{`` to the last ``}`` and
parses it as a single object. A reply that carries two separate objects
therefore yields nothing, because the span between them is not valid JSON.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from .ai_types import ToolInvocation

__all__ = [
    "extract_tool_invocation",
    "outer_brace_span",
    "try_parse_json_block",
]


def outer_brace_span(text: str) -> str | None:
    """Return ``text`` from its first ``{`` through its last ``}`` inclusive."""

    if not text or not isinstance(text, str):
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return text[start : end + 1]


def try_parse_json_block(text: str) -> dict[str, Any] | None:
    """Attempt to parse text as a JSON object, returning None on failure."""
    if not text:
        return None
    try:
        result = json.loads(text)
    except json.JSONDecodeError:
        return None
    if isinstance(result, dict):
        return result
    return None


def extract_tool_invocation(text: str) -> ToolInvocation | None:
    """Parse the tool call embedded in ``text``, if there is exactly one."""

    span = outer_brace_span(text)
    if span is None:
        return None
    payload = try_parse_json_block(span)
    if payload is None or "tool" not in payload:
        return None
    return ToolInvocation(
        tool=str(payload["tool"]),
        params=_resolve_params(payload),
        raw=payload,
    )


def _resolve_params(payload: Mapping[str, Any]) -> Mapping[str, Any] | None:
    nested = payload.get("params")
    if isinstance(nested, Mapping):
        return dict(nested)
    inline = {key: value for key, value in payload.items() if key not in {"tool", "params"}}
    return inline or None
