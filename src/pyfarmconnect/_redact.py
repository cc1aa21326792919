"""Helpers for safe debug logging.

Request bodies carry driver credentials and staff contact details. Trace
logging passes every body through :func:`redact_for_log` first.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "token",
        "authorization",
        "cookie",
    }
)

# Personal data: keep the last few characters so traces stay correlatable.
_PARTIAL_KEYS: frozenset[str] = frozenset(
    {
        "staff_contact",
        "phone",
        "user_name",
    }
)

_MAX_DEPTH = 20


def _mask_tail(text: str, keep: int = 2) -> str:
    if len(text) <= keep:
        return "*" * len(text)
    return "*" * (len(text) - keep) + text[-keep:]


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if value is None or isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            lowered = key.lower()
            if lowered in _SECRET_KEYS:
                redacted[key] = "<redacted>"
            elif lowered in _PARTIAL_KEYS and v is not None:
                redacted[key] = _mask_tail(str(v))
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
