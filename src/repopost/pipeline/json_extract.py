"""Pull a JSON array out of free-form model output.

Models asked for "only JSON" still wrap it in prose or code fences now and
then. :func:`extract_json_array` scans for the first balanced ``[...]``
substring that parses as a JSON array and returns it, or ``None`` when there
is none, so each caller can pick its own fallback.
"""

from __future__ import annotations

import json
from typing import Any


def extract_json_array(text: str) -> list[Any] | None:
    """Return the first balanced, parseable JSON array in *text*, else ``None``."""
    start = text.find("[")
    while start != -1:
        end = _balanced_end(text, start)
        value = None
        if end is not None:
            try:
                value = json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                pass
        if isinstance(value, list):
            return value
        start = text.find("[", start + 1)
    return None


def _balanced_end(text: str, start: int) -> int | None:
    """Index of the ``]`` matching the ``[`` at *start*, skipping JSON strings."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i
    return None
