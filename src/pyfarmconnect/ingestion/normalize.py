"""Normalization helpers.

Centralizes defensive parsing of loosely-typed backend values.
"""

from __future__ import annotations

import math
from typing import Any

from pyfarmconnect._constants import FUEL_ACTIVITIES, LOGISTICS_ACTIVITIES

_SENTINELS = frozenset({"", "null", "undefined", "None"})


def safe_str(value: Any) -> str | None:
    """Stringify and strip *value*; ``None`` for missing or placeholder values."""
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            value = int(value)
    text = str(value).strip()
    if text in _SENTINELS:
        return None
    return text


def safe_flag(value: Any) -> bool:
    """Interpret a backend ``success`` flag; anything unrecognised is False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    return False


def normalize_activity(activity: Any) -> str:
    return (safe_str(activity) or "").lower()


def is_logistics_activity(activity: Any) -> bool:
    return normalize_activity(activity) in LOGISTICS_ACTIVITIES


def is_fuel_activity(activity: Any) -> bool:
    return normalize_activity(activity) in FUEL_ACTIVITIES


def parse_logistics_location(value: Any) -> str | None:
    """Extract the delivery location from a ``"Pickup -> Delivery"`` string.

    The final non-empty ``->`` segment wins. Strings without the delimiter
    are returned verbatim (trimmed).
    """
    raw = safe_str(value)
    if raw is None:
        return None
    if "->" in raw:
        parts = [part.strip() for part in raw.split("->")]
        parts = [part for part in parts if part]
        return parts[-1] if parts else raw
    return raw


def synthesize_request_id(plan_id: Any, *parts: Any) -> str:
    """Return the plan id, or ``part1_part2_part3`` when it is missing.

    Missing parts become empty strings so the key stays stable across
    repeated fetches of the same record.
    """
    plan = safe_str(plan_id)
    if plan:
        return plan
    return "_".join(safe_str(part) or "" for part in parts)


def compose_note(**labelled: Any) -> str | None:
    """Join ``Label: value`` lines for the values that are present."""
    lines = [f"{label}: {text}" for label, value in labelled.items() if (text := safe_str(value))]
    return "\n".join(lines) if lines else None
