"""Cached humidifier state and the views derived from it."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

from ..capabilities import CapabilityProfile, DisplayRange
from ..const import (
    FIELD_CURRENT_HUMIDITY,
    FIELD_FOG_LEVEL,
    FIELD_HOT_FOG,
    FIELD_MODE,
    FIELD_POWER,
    FIELD_SUSPENDED,
    FIELD_TARGET_AUTO,
    FIELD_TARGET_SLEEP,
    FIELD_WATER_ERROR,
    MAX_FOG_LEVEL,
    MIN_FOG_LEVEL,
    WIRE_TO_FIELD,
)
from .mode import Mode, mode_from_value
from .values import (
    bool_from_value,
    coerce_humidity,
    fault_from_value,
    int_from_value,
)

_LOGGER = logging.getLogger(__name__)

_PERCENT = DisplayRange(min=0, max=100)


class OperatingState(IntEnum):
    """Composite state reported to the consumer."""

    INACTIVE = 0
    IDLE = 1
    ACTIVE = 2


class View(str, Enum):
    """Externally visible views pushed to the consumer."""

    ACTIVE = "active"
    CURRENT_STATE = "current_state"
    TARGET_MODE = "target_mode"
    HUMIDITY_THRESHOLD = "humidity_threshold"
    CURRENT_HUMIDITY = "current_humidity"
    FOG_LEVEL = "fog_level"
    WATER_LEVEL = "water_level"
    SLEEP_SWITCH = "sleep_switch"
    HOT_FOG_SWITCH = "hot_fog_switch"


@dataclass(frozen=True, slots=True)
class ViewUpdate:
    """A view value that must be pushed to the consumer."""

    view: View
    value: Any


class DeviceState:
    """Authoritative in-memory mirror of one humidifier.

    Primary fields are written through ``apply_optimistic`` (local intents)
    and ``apply_reported`` (device reports). Derived fields are properties
    and can never be assigned.
    """

    def __init__(
        self,
        profile: CapabilityProfile,
        *,
        power: bool = False,
        mode: Mode = Mode.MANUAL,
        suspended: bool = False,
        current_humidity: int = 0,
        hot_fog_on: bool = False,
        manual_fog_level: int = 0,
        target_humidity_auto: int | None = None,
        target_humidity_sleep: int | None = None,
        water_error: bool = False,
    ) -> None:
        """Initialise the cache, clamping humidity targets to ``profile``."""

        self.profile = profile
        default = profile.humidity_range.default
        self.power = power
        self.mode = mode
        self.suspended = suspended
        self.current_humidity = current_humidity
        self.hot_fog_on = hot_fog_on
        self.manual_fog_level = manual_fog_level
        self.target_humidity_auto = self._coerce_target(target_humidity_auto, default)
        self.target_humidity_sleep = self._coerce_target(
            target_humidity_sleep, default
        )
        self.water_error = water_error
        self._pending: set[str] = set()
        self._coercers: dict[str, Callable[[Any], Any]] = {
            FIELD_POWER: bool_from_value,
            FIELD_MODE: mode_from_value,
            FIELD_SUSPENDED: bool_from_value,
            FIELD_CURRENT_HUMIDITY: lambda v: coerce_humidity(v, _PERCENT),
            FIELD_HOT_FOG: bool_from_value,
            FIELD_FOG_LEVEL: self._coerce_fog_level,
            FIELD_TARGET_AUTO: lambda v: coerce_humidity(v, profile.humidity_range),
            FIELD_TARGET_SLEEP: lambda v: coerce_humidity(v, profile.humidity_range),
            FIELD_WATER_ERROR: fault_from_value,
        }

    @classmethod
    def from_snapshot(
        cls, snapshot: Mapping[str, Any], profile: CapabilityProfile
    ) -> DeviceState:
        """Build the cache from a full cloud state snapshot.

        Each snapshot entry is either a bare value or ``{"state": value}``.
        Missing or invalid entries fall back to defaults.
        """

        state = cls(profile)
        fields: dict[str, Any] = {}
        for key, raw in snapshot.items():
            field = WIRE_TO_FIELD.get(key)
            if field is None:
                continue
            if isinstance(raw, Mapping):
                raw = raw.get("state")
            if raw is None:
                continue
            fields[field] = raw
        if not profile.supports_hot_fog:
            fields.pop(FIELD_HOT_FOG, None)
        state._apply(fields, source="snapshot")
        return state

    @staticmethod
    def _coerce_fog_level(value: Any) -> int | None:
        level = int_from_value(value)
        if level is None or not MIN_FOG_LEVEL <= level <= MAX_FOG_LEVEL:
            return None
        return level

    def _coerce_target(self, value: Any, default: int) -> int:
        coerced = coerce_humidity(value, self.profile.humidity_range)
        return default if coerced is None else coerced

    @property
    def sleep_switch_on(self) -> bool:
        """Return True when the device is on and sleeping."""

        return self.power and self.mode is Mode.SLEEP

    @property
    def hot_fog_switch_on(self) -> bool:
        """Return True when warm mist is running."""

        return self.power and self.hot_fog_on

    @property
    def operating_state(self) -> OperatingState:
        """Return inactive, idle or active."""

        if not self.power:
            return OperatingState.INACTIVE
        return OperatingState.IDLE if self.suspended else OperatingState.ACTIVE

    @property
    def water_level_percent(self) -> int:
        """Return the water level surfaced for the tank fault."""

        return 0 if self.water_error else 100

    @property
    def fog_level_view(self) -> int:
        """Return the manual fog level, or ``0`` while powered off."""

        return self.manual_fog_level if self.power else 0

    @property
    def humidity_threshold(self) -> int:
        """Return the humidity target of the active mode.

        Manual mode has no target of its own and reports the auto target.
        """

        if self.mode is Mode.SLEEP:
            return self.target_humidity_sleep
        return self.target_humidity_auto

    @property
    def pending_fields(self) -> frozenset[str]:
        """Return fields written optimistically and not yet reported."""

        return frozenset(self._pending)

    def apply_optimistic(self, fields: Mapping[str, Any]) -> set[str]:
        """Apply a local guess and return the fields that changed."""

        changed = self._apply(fields, source="optimistic")
        self._pending.update(changed)
        return changed

    def apply_reported(self, fields: Mapping[str, Any]) -> set[str]:
        """Apply a device report and return the fields that changed."""

        changed = self._apply(fields, source="reported")
        self._pending.difference_update(fields)
        return changed

    def _apply(self, fields: Mapping[str, Any], *, source: str) -> set[str]:
        changed: set[str] = set()
        for field, raw in fields.items():
            coercer = self._coercers.get(field)
            if coercer is None:
                _LOGGER.debug("Ignoring unknown %s field %s", source, field)
                continue
            value = coercer(raw)
            if value is None:
                _LOGGER.debug("Dropping invalid %s value %s=%r", source, field, raw)
                continue
            if getattr(self, field) == value:
                continue
            setattr(self, field, value)
            changed.add(field)
        return changed

    def views(self, project: Callable[[Mode], int]) -> dict[View, Any]:
        """Return every externally visible view keyed by ``View``."""

        values: dict[View, Any] = {
            View.ACTIVE: self.power,
            View.CURRENT_STATE: self.operating_state,
            View.TARGET_MODE: project(self.mode),
            View.HUMIDITY_THRESHOLD: self.humidity_threshold,
            View.CURRENT_HUMIDITY: self.current_humidity,
            View.FOG_LEVEL: self.fog_level_view,
            View.WATER_LEVEL: self.water_level_percent,
            View.SLEEP_SWITCH: self.sleep_switch_on,
        }
        if self.profile.supports_hot_fog:
            values[View.HOT_FOG_SWITCH] = self.hot_fog_switch_on
        return values


def diff_views(
    before: Mapping[View, Any],
    after: Mapping[View, Any],
    *,
    exclude: frozenset[View] = frozenset(),
    always: frozenset[View] = frozenset(),
) -> list[ViewUpdate]:
    """Return the views whose value differs between two snapshots.

    Views in ``always`` are returned even when unchanged; ``exclude`` wins.
    """

    return [
        ViewUpdate(view, value)
        for view, value in after.items()
        if view not in exclude and (view in always or before.get(view) != value)
    ]


def threshold_overrides(
    mode: Mode, mode_changed: bool
) -> tuple[frozenset[View], frozenset[View]]:
    """Return the ``(exclude, always)`` sets for the humidity threshold.

    Manual mode has no target of its own, so the threshold is never pushed
    there. Entering auto or sleep re-pushes the target of the new mode.
    """

    threshold = frozenset({View.HUMIDITY_THRESHOLD})
    if mode is Mode.MANUAL:
        return threshold, frozenset()
    if mode_changed:
        return frozenset(), threshold
    return frozenset(), frozenset()
