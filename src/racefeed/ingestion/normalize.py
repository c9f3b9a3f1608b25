"""Normalization helpers.

Centralizes defensive coercion of feed values. The upstream simulator is
trusted but not strict: numbers occasionally arrive as strings, and
``""``/``"--"``/NaN are used for "not available".
"""

from __future__ import annotations

import math
from typing import Any

_PLACEHOLDERS = frozenset({"", "--", "nan", "NaN", "null"})


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip() in _PLACEHOLDERS:
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if text in _PLACEHOLDERS:
        return None
    return text


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
