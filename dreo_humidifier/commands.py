"""Translate consumer intents into wire commands and optimistic updates."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .const import (
    FIELD_FOG_LEVEL,
    FIELD_HOT_FOG,
    FIELD_MODE,
    FIELD_POWER,
    FIELD_TARGET_AUTO,
    FIELD_TARGET_SLEEP,
    KEY_FOG_LEVEL,
    KEY_HOT_FOG,
    KEY_MODE,
    KEY_POWER,
    KEY_TARGET_AUTO,
    KEY_TARGET_SLEEP,
    MAX_FOG_LEVEL,
    MIN_FOG_LEVEL,
)
from .state import DeviceState, Mode, ModeStateMachine, View
from .state.values import (
    bool_from_value,
    clamp_humidity,
    float_from_value,
    int_from_value,
)

_LOGGER = logging.getLogger(__name__)


def _frozen(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True, slots=True)
class PendingCommand:
    """Wire fields sent to the device as one atomic control message."""

    wire_fields: Mapping[str, Any]

    def __post_init__(self) -> None:
        """Freeze the wire fields."""

        object.__setattr__(self, "wire_fields", _frozen(self.wire_fields))

    def as_payload(self) -> dict[str, Any]:
        """Return a mutable copy suitable for the transport."""

        return dict(self.wire_fields)


@dataclass(frozen=True, slots=True)
class CommandPlan:
    """Outcome of one intent: the command to send and the local guess."""

    intent: View
    command: PendingCommand
    optimistic: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Freeze the optimistic delta."""

        object.__setattr__(self, "optimistic", _frozen(self.optimistic))


class CommandBuilder:
    """Compute the minimal command for an intent against the current cache.

    Every ``set_*`` method returns ``None`` when nothing must be sent: the
    request is malformed, violates the capability profile, or is already
    satisfied. The cache is never modified here.
    """

    def __init__(self, state: DeviceState, machine: ModeStateMachine) -> None:
        """Bind the builder to a cache and mode machine."""

        self._state = state
        self._machine = machine
        self._handlers: dict[View, Callable[[Any], CommandPlan | None]] = {
            View.ACTIVE: self.set_power,
            View.SLEEP_SWITCH: self.set_sleep,
            View.HOT_FOG_SWITCH: self.set_hot_fog,
            View.HUMIDITY_THRESHOLD: self.set_target_humidity,
            View.FOG_LEVEL: self.set_fog_level,
            View.TARGET_MODE: self.set_target_mode,
        }

    @property
    def writable_views(self) -> frozenset[View]:
        """Return the views that accept intents."""

        return frozenset(self._handlers)

    def build(self, view: View, value: Any) -> CommandPlan | None:
        """Dispatch ``value`` to the intent handler for ``view``."""

        handler = self._handlers.get(view)
        if handler is None:
            raise KeyError(view)
        return handler(value)

    def set_power(self, value: Any) -> CommandPlan | None:
        """Turn the humidifier on or off."""

        power = bool_from_value(value)
        if power is None:
            return self._reject(View.ACTIVE, value, "not a boolean")
        if power == self._state.power:
            return self._already(View.ACTIVE, power)
        return CommandPlan(
            View.ACTIVE,
            PendingCommand({KEY_POWER: power}),
            {FIELD_POWER: power},
        )

    def set_sleep(self, value: Any) -> CommandPlan | None:
        """Enter sleep mode (powering on if needed) or fall back to manual."""

        sleep = bool_from_value(value)
        if sleep is None:
            return self._reject(View.SLEEP_SWITCH, value, "not a boolean")
        if sleep == self._state.sleep_switch_on:
            return self._already(View.SLEEP_SWITCH, sleep)
        if sleep:
            return self._enter_mode(View.SLEEP_SWITCH, Mode.SLEEP)
        return self._enter_mode(View.SLEEP_SWITCH, Mode.MANUAL)

    def set_hot_fog(self, value: Any) -> CommandPlan | None:
        """Toggle warm mist, powering on first when the device is off."""

        if not self._state.profile.supports_hot_fog:
            return self._reject(
                View.HOT_FOG_SWITCH, value, "warm mist is not supported"
            )
        hot_fog = bool_from_value(value)
        if hot_fog is None:
            return self._reject(View.HOT_FOG_SWITCH, value, "not a boolean")
        if hot_fog == self._state.hot_fog_switch_on:
            return self._already(View.HOT_FOG_SWITCH, hot_fog)
        wire: dict[str, Any] = {KEY_HOT_FOG: hot_fog}
        optimistic: dict[str, Any] = {FIELD_HOT_FOG: hot_fog}
        if not self._state.power:
            wire = {KEY_POWER: True, **wire}
            optimistic[FIELD_POWER] = True
        return CommandPlan(View.HOT_FOG_SWITCH, PendingCommand(wire), optimistic)

    def set_target_humidity(self, value: Any) -> CommandPlan | None:
        """Set the humidity target of the active auto or sleep mode."""

        requested = float_from_value(value)
        if requested is None:
            return self._reject(View.HUMIDITY_THRESHOLD, value, "not a number")
        target = clamp_humidity(requested, self._state.profile.humidity_range)
        mode = self._state.mode
        if mode is Mode.MANUAL:
            return self._reject(
                View.HUMIDITY_THRESHOLD, value, "manual mode has no humidity target"
            )
        if mode is Mode.AUTO:
            key, field_name = KEY_TARGET_AUTO, FIELD_TARGET_AUTO
        else:
            key, field_name = KEY_TARGET_SLEEP, FIELD_TARGET_SLEEP
        _LOGGER.debug(
            "Target humidity requested=%s clamped=%s mode=%s",
            requested,
            target,
            mode.name,
        )
        if getattr(self._state, field_name) == target:
            return self._already(View.HUMIDITY_THRESHOLD, target)
        return CommandPlan(
            View.HUMIDITY_THRESHOLD,
            PendingCommand({key: target}),
            {field_name: target},
        )

    def set_fog_level(self, value: Any) -> CommandPlan | None:
        """Set the manual fog level; ``0`` powers the humidifier off."""

        level = int_from_value(value)
        if level is None or not MIN_FOG_LEVEL <= level <= MAX_FOG_LEVEL:
            return self._reject(View.FOG_LEVEL, value, "fog level out of range")
        state = self._state
        if state.mode is Mode.MANUAL and level == state.fog_level_view:
            return self._already(View.FOG_LEVEL, level)
        if level == 0:
            if not state.power:
                return self._already(View.FOG_LEVEL, level)
            return CommandPlan(
                View.FOG_LEVEL,
                PendingCommand({KEY_POWER: False}),
                {FIELD_POWER: False, FIELD_FOG_LEVEL: 0},
            )
        if state.mode is not Mode.MANUAL:
            _LOGGER.warning(
                "Switching %s from %s to manual to set fog level %s",
                state.profile.model,
                state.mode.name,
                level,
            )
            return CommandPlan(
                View.FOG_LEVEL,
                PendingCommand({KEY_MODE: int(Mode.MANUAL), KEY_FOG_LEVEL: level}),
                {FIELD_MODE: Mode.MANUAL, FIELD_FOG_LEVEL: level},
            )
        return CommandPlan(
            View.FOG_LEVEL,
            PendingCommand({KEY_FOG_LEVEL: level}),
            {FIELD_FOG_LEVEL: level},
        )

    def set_target_mode(self, value: Any) -> CommandPlan | None:
        """Apply a consumer-facing target mode through the mode machine."""

        if self._state.profile.is_binary:
            _LOGGER.debug("Target mode %s acknowledged; mode is report driven", value)
            return None
        requested = int_from_value(value)
        if requested is None or requested not in self._machine.valid_projections:
            return self._reject(View.TARGET_MODE, value, "invalid target mode")
        target = self._machine.resolve_projection(self._state.mode, requested)
        if target is None:
            return self._already(View.TARGET_MODE, requested)
        return self._enter_mode(View.TARGET_MODE, target)

    def _enter_mode(self, intent: View, target: Mode) -> CommandPlan:
        wire = self._machine.transition_fields(self._state.power, target)
        optimistic: dict[str, Any] = {FIELD_MODE: target}
        if KEY_POWER in wire:
            optimistic[FIELD_POWER] = wire[KEY_POWER]
        return CommandPlan(intent, PendingCommand(wire), optimistic)

    @staticmethod
    def _already(intent: View, value: Any) -> None:
        _LOGGER.debug(
            "%s: value %s is already set; no command sent", intent.value, value
        )
        return None

    @staticmethod
    def _reject(intent: View, value: Any, reason: str) -> None:
        _LOGGER.warning(
            "Rejected %s=%r: %s; no command sent", intent.value, value, reason
        )
        return None
