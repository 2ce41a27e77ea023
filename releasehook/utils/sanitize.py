"""Sanitizers for untrusted webhook content.

Everything that crosses from a webhook payload into a log line or a
downstream call goes through one of these helpers first.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, Mapping

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")
_REPOSITORY_DISALLOWED_RE = re.compile(r"[^a-z0-9._/-]")
_TAG_DISALLOWED_RE = re.compile(r"[^a-zA-Z0-9.\-_+]")

DEFAULT_MAX_LENGTH = 1000
REPOSITORY_MAX_LENGTH = 100
TAG_MAX_LENGTH = 128
MAX_ARRAY_ITEMS = 10


def sanitize_string(value: Any, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Strip null bytes and control characters, trim, and cap length."""
    if not isinstance(value, str):
        return ""
    cleaned = _CONTROL_CHARS_RE.sub("", value).strip()
    return cleaned[:max_length]


def sanitize_repository_name(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _REPOSITORY_DISALLOWED_RE.sub("", value.lower())[:REPOSITORY_MAX_LENGTH]


def sanitize_release_tag(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _TAG_DISALLOWED_RE.sub("", value)[:TAG_MAX_LENGTH]


def extract_safe_fields(obj: Mapping[str, Any], allowed_fields: Iterable[str]) -> dict[str, Any]:
    """Copy only the allowed fields out of an untrusted mapping.

    Strings are sanitized, numbers and booleans are copied as-is, lists are
    capped to the first ten items. Anything else (nested objects, None) is
    dropped.
    """
    result: dict[str, Any] = {}
    if not isinstance(obj, Mapping):
        return result

    for name in allowed_fields:
        if name not in obj:
            continue
        value = obj[name]
        if isinstance(value, str):
            result[name] = sanitize_string(value)
        elif isinstance(value, (bool, int, float)):
            result[name] = value
        elif isinstance(value, (list, tuple)):
            result[name] = list(value[:MAX_ARRAY_ITEMS])
    return result


def is_valid_json(text: str | bytes) -> bool:
    try:
        json.loads(text)
    except (TypeError, ValueError):
        return False
    return True


def truncate_for_logging(value: str, length: int = 8) -> str:
    """Keep only a short prefix of a sensitive comparison value."""
    if not value:
        return ""
    return value[:length] + "..."
