"""Literal encoding of param values inside query strings.

Values are JSON literals printed without whitespace: numbers, double-quoted
strings, ``true``/``false``/``null``, arrays and records. ``split_top_level``
splits a string on a delimiter while ignoring delimiters that appear inside
string literals or brackets.
"""

from __future__ import annotations

import json
from typing import Any

from gpucts.errors import QuerySyntaxError

_OPENERS = {"[": "]", "{": "}"}
_CLOSERS = {"]": "[", "}": "{"}


def split_top_level(text: str, sep: str, *, query: str = "") -> list[str]:
    """Split ``text`` on ``sep`` outside of string literals and brackets."""
    parts: list[str] = []
    stack: list[str] = []
    in_string = False
    escaped = False
    start = 0
    for i, ch in enumerate(text):
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
        elif ch in _OPENERS:
            stack.append(ch)
        elif ch in _CLOSERS:
            if not stack or stack[-1] != _CLOSERS[ch]:
                raise QuerySyntaxError("unbalanced bracket", query=query, segment=text)
            stack.pop()
        elif ch == sep and not stack:
            parts.append(text[start:i])
            start = i + 1
    if in_string:
        raise QuerySyntaxError("unterminated string literal", query=query, segment=text)
    if stack:
        raise QuerySyntaxError("unbalanced bracket", query=query, segment=text)
    parts.append(text[start:])
    return parts


def _check_encodable(value: Any) -> None:
    if value is None or isinstance(value, (bool, int, float, str)):
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _check_encodable(item)
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"record keys must be strings, got {key!r}")
            _check_encodable(item)
        return
    raise TypeError(f"param value {value!r} cannot be written in a query")


def stringify_param_value(value: Any) -> str:
    _check_encodable(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def parse_param_value(text: str, *, query: str = "") -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise QuerySyntaxError(f"invalid param value: {e}", query=query, segment=text) from e
