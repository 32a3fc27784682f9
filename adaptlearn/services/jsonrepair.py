# adaptlearn/services/jsonrepair.py
"""
Recover a JSON object from free-form model output.

Models wrap their JSON in code fences, add a sentence before or after it,
leave raw newlines inside string values and trailing commas behind.
`parse_model_json` handles those cases in a fixed order:

  1. trim and drop ``` fences
  2. slice from the first "{" to the last "}"
  3. json.loads
  4. on failure, one pass of `repair_json`, then json.loads once more

It never raises; callers get a `ParseResult` and decide what a failure means.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from adaptlearn.core.errors import MalformedResponseError

log = logging.getLogger("jsonrepair")

_FENCE = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


@dataclass(frozen=True)
class ParseResult:
    value: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    repaired: bool = False

    @property
    def ok(self) -> bool:
        return self.value is not None


def strip_fences(text: str) -> str:
    return _FENCE.sub("", text.strip()).strip()


def slice_object(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return text[start:end + 1]


def _next_significant(text: str, i: int) -> str:
    n = len(text)
    while i < n and text[i] in " \t\r\n":
        i += 1
    return text[i] if i < n else ""


def repair_json(text: str) -> str:
    """Single left-to-right pass over `text`.

    Inside string literals: raw control characters are escaped, and a quote
    that is not followed by `,` `:` `}` `]` (or the end) is treated as part of
    the value and escaped. Outside strings: a comma directly before `}` or
    `]` is dropped.
    """
    out = []
    in_string = False
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if in_string:
            if ch == "\\" and i + 1 < n:
                out.append(text[i:i + 2])
                i += 2
                continue
            if ch == '"':
                if _next_significant(text, i + 1) in (",", ":", "}", "]", ""):
                    in_string = False
                    out.append(ch)
                else:
                    out.append('\\"')
            elif ch in _CONTROL_ESCAPES:
                out.append(_CONTROL_ESCAPES[ch])
            elif ord(ch) < 0x20:
                out.append("\\u%04x" % ord(ch))
            else:
                out.append(ch)
        else:
            if ch == '"':
                in_string = True
                out.append(ch)
            elif ch == "," and _next_significant(text, i + 1) in ("}", "]"):
                pass
            else:
                out.append(ch)
        i += 1
    return "".join(out)


def _loads_object(text: str) -> Dict[str, Any]:
    value = json.loads(text)
    if not isinstance(value, dict):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    return value


def parse_model_json(text: Optional[str]) -> ParseResult:
    if not text or not text.strip():
        return ParseResult(error="Empty model response")

    candidate = slice_object(strip_fences(text))
    if candidate is None:
        log.warning("No JSON object found in model response (len=%d)", len(text))
        return ParseResult(error="No JSON object found in model response")

    try:
        return ParseResult(value=_loads_object(candidate))
    except ValueError as e:
        log.info("Initial JSON parse failed (%s); attempting repair", e)

    try:
        value = _loads_object(repair_json(candidate))
    except ValueError as e:
        log.warning("JSON repair failed: %s", e)
        return ParseResult(error=f"Failed to parse model response as JSON after repair: {e}")
    log.info("JSON repair successful")
    return ParseResult(value=value, repaired=True)


def require_object(text: Optional[str]) -> Dict[str, Any]:
    result = parse_model_json(text)
    if not result.ok:
        raise MalformedResponseError(result.error or "Malformed model response")
    return result.value
