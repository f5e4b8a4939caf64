"""Value coercion helpers shared by the cache, builder and merger."""

from __future__ import annotations

import math
from typing import Any, Protocol


class Bounds(Protocol):
    """Anything exposing inclusive ``min`` / ``max`` limits."""

    min: int
    max: int


def bool_from_value(value: Any) -> bool | None:
    """Return ``value`` as a boolean, or ``None`` when it is not one."""

    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "on"}:
            return True
        if lowered in {"0", "false", "off"}:
            return False
    return None


def fault_from_value(value: Any) -> bool | None:
    """Return True for any non-zero error code, or ``None`` when invalid."""

    if isinstance(value, bool):
        return value
    numeric = float_from_value(value)
    if numeric is None:
        return bool_from_value(value)
    return numeric != 0


def float_from_value(value: Any) -> float | None:
    """Return a finite float for ``value`` or ``None``."""

    if value is None or isinstance(value, bool):
        return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(numeric):
        return None
    return numeric


def int_from_value(value: Any) -> int | None:
    """Return ``value`` rounded to the nearest integer, or ``None``."""

    numeric = float_from_value(value)
    if numeric is None:
        return None
    return round_half_up(numeric)


def round_half_up(value: float) -> int:
    """Round ``value`` to the nearest integer, halves away from zero."""

    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def clamp(value: int, bounds: Bounds) -> int:
    """Clamp ``value`` into ``bounds``."""

    return max(bounds.min, min(bounds.max, value))


def clamp_humidity(value: float, bounds: Bounds) -> int:
    """Round ``value`` and clamp it into ``bounds``."""

    return clamp(round_half_up(value), bounds)


def coerce_humidity(value: Any, bounds: Bounds) -> int | None:
    """Return a clamped integer humidity, or ``None`` for non-numeric input."""

    numeric = float_from_value(value)
    if numeric is None:
        return None
    return clamp_humidity(numeric, bounds)
