"""JSON extraction from provider responses.

Backends frequently wrap JSON in prose or markdown code fences. The rule is:
the result is the first balanced top-level object or array literal in the
text that decodes; anything else is a ``MalformedResponseError``.
"""

import json
from typing import Iterable, Iterator, Optional, Union

from config.exceptions import MalformedResponseError

JSONValue = Union[dict, list]

_OPENERS = {"{": "}", "[": "]"}

# Lenient decoder that allows control characters (raw newlines, tabs) inside
# JSON strings; models often emit these instead of proper \n escapes.
_LENIENT_DECODER = json.JSONDecoder(strict=False)


def _try_loads(text: str):
    """Try parsing JSON, first strictly then leniently."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    return _LENIENT_DECODER.decode(text)


def _balanced_end(text: str, start: int) -> Optional[int]:
    """Index of the bracket closing the one at ``start``, or None.

    Brackets inside string literals are ignored.
    """
    stack = [_OPENERS[text[start]]]
    in_string = False
    escaped = False
    for i in range(start + 1, len(text)):
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
        elif ch in _OPENERS:
            stack.append(_OPENERS[ch])
        elif ch in ("}", "]"):
            if ch != stack[-1]:
                return None
            stack.pop()
            if not stack:
                return i
    return None


def iter_json_spans(text: str) -> Iterator[str]:
    """Yield balanced ``{...}``/``[...]`` spans in order of their start."""
    for i, ch in enumerate(text):
        if ch in _OPENERS:
            end = _balanced_end(text, i)
            if end is not None:
                yield text[i:end + 1]


def extract_json(text: str, provider: Optional[str] = None) -> JSONValue:
    """Extract and parse the first JSON object or array from ``text``.

    Raises:
        MalformedResponseError: If no balanced span decodes.
    """
    if not text or not text.strip():
        raise MalformedResponseError("Empty response, no JSON found", raw_response=text or "", provider=provider)

    for span in iter_json_spans(text):
        try:
            value = _try_loads(span)
        except json.JSONDecodeError:
            continue
        if isinstance(value, (dict, list)):
            return value

    raise MalformedResponseError(
        "No valid JSON found in response", raw_response=text, provider=provider
    )


def require_fields(data: dict, fields: Iterable[str], raw_response: str = "",
                   provider: Optional[str] = None) -> dict:
    """Ensure every name in ``fields`` is present and non-empty in ``data``."""
    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected a JSON object, got {type(data).__name__}",
            raw_response=raw_response, provider=provider,
        )
    missing = [f for f in fields if data.get(f) in (None, "", [])]
    if missing:
        raise MalformedResponseError(
            f"Response missing required fields: {', '.join(missing)}",
            raw_response=raw_response, provider=provider,
        )
    return data
