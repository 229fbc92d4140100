"""Parsing helpers for model replies that are supposed to be JSON but often are not quite."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

_FENCE_START_RE = re.compile(r"^```(?:json)?\s*\n?", re.IGNORECASE)
_FENCE_END_RE = re.compile(r"\n?\s*```$")
_OBJECT_ARTIFACT_RE = re.compile(r":\s*\[object(?: Object)?\]", re.IGNORECASE)
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_UNQUOTED_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)")
_SINGLE_QUOTED_VALUE_RE = re.compile(r":\s*'([^'\\]*(?:\\.[^'\\]*)*)'")
_DOUBLE_QUOTED_STRING_RE = re.compile(r'"(?:[^"\\]|\\.)*"', re.DOTALL)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_TRUNCATED_STRING_RE = re.compile(r':\s*"[^"]*$')
_LIST_SPLIT_RE = re.compile(r"[\n\r]+|(?:\d+[.)]\s+)|(?:[•\-*]\s+)")
_EMPTY_MARKERS = {"[object]", "[object object]", "null", "undefined"}


class JSONRecoveryError(ValueError):
    pass


def strip_code_fences(text: str) -> str:
    return _FENCE_END_RE.sub("", _FENCE_START_RE.sub("", text.strip())).strip()


def _escape_raw_newlines(match: re.Match) -> str:
    return match.group(0).replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")


def _fix_common_issues(text: str) -> str:
    fixed = _OBJECT_ARTIFACT_RE.sub(": null", text)
    fixed = _TRAILING_COMMA_RE.sub(r"\1", fixed)
    fixed = _UNQUOTED_KEY_RE.sub(r'\1"\2"\3', fixed)
    fixed = _SINGLE_QUOTED_VALUE_RE.sub(lambda m: ': "' + m.group(1).replace('"', '\\"') + '"', fixed)
    fixed = _DOUBLE_QUOTED_STRING_RE.sub(_escape_raw_newlines, fixed)
    return _CONTROL_CHARS_RE.sub("", fixed)


def _extract_json_block(text: str) -> Optional[str]:
    """Return the outermost object (or array) embedded in surrounding prose."""
    for opener, closer in (("{", "}"), ("[", "]")):
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            return text[start : end + 1]
    return None


def _repair_truncated(text: str) -> str:
    result = text.strip()
    result = _TRUNCATED_STRING_RE.sub(": null", result)
    result += "]" * max(0, result.count("[") - result.count("]"))
    result += "}" * max(0, result.count("{") - result.count("}"))
    return _TRAILING_COMMA_RE.sub(r"\1", result)


def _try_parse(text: Optional[str]) -> tuple[bool, Any]:
    if text is None:
        return False, None
    try:
        return True, json.loads(text)
    except json.JSONDecodeError:
        return False, None


def parse_json_with_recovery(text: str) -> Any:
    """Parse model output, falling back through progressively more aggressive cleanup."""
    unwrapped = strip_code_fences(text)
    fixed = _fix_common_issues(unwrapped)
    candidates = (
        lambda: text,
        lambda: unwrapped,
        lambda: fixed,
        lambda: _extract_json_block(unwrapped),
        lambda: _repair_truncated(fixed),
    )
    for candidate in candidates:
        ok, value = _try_parse(candidate())
        if ok:
            return value

    logger.error(
        "All JSON recovery strategies failed",
        extra={"original_length": len(text), "preview": text[:200]},
    )
    raise JSONRecoveryError("Unable to parse response. The AI returned invalid data format.")


def coerce_to_string(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed or trimmed.lower() in _EMPTY_MARKERS:
            return None
        return trimmed
    if isinstance(value, list):
        parts = [coerce_to_string(item) for item in value]
        return "\n\n".join(part for part in parts if part) or None
    if isinstance(value, dict):
        for key in ("content", "text", "value", "description"):
            if value.get(key):
                return coerce_to_string(value[key])
        return json.dumps(value) if value else None
    return None


def coerce_to_string_list(value: Any, *, max_items: int = 20) -> list[str]:
    items: list[str] = []
    if isinstance(value, list):
        items = [item for item in (coerce_to_string(entry) for entry in value) if item]
    elif isinstance(value, str):
        if value.strip().lower() in _EMPTY_MARKERS:
            return []
        ok, parsed = _try_parse(value)
        if ok and isinstance(parsed, list):
            return coerce_to_string_list(parsed, max_items=max_items)
        items = [part.strip() for part in _LIST_SPLIT_RE.split(value) if part and part.strip()]
        items = [part for part in items if len(part) < 1000]
    elif isinstance(value, dict):
        items = [item for item in (coerce_to_string(entry) for entry in value.values()) if item]
    return items[:max_items]


def coerce_to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9.\-]", "", value)
        if not cleaned:
            return None
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None
