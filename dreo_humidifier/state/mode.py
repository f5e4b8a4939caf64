"""Manual/auto/sleep mode machine and its consumer-facing projection."""

from __future__ import annotations

from enum import IntEnum
from typing import Any

from ..capabilities import CapabilityProfile
from ..const import KEY_MODE, KEY_POWER
from .values import int_from_value


class Mode(IntEnum):
    """Internal humidifier modes, valued as on the wire."""

    MANUAL = 0
    AUTO = 1
    SLEEP = 2


# Consumer-facing target modes.
PROJECTION_MANUAL = 0
PROJECTION_HUMIDIFIER = 1


def mode_from_value(value: Any) -> Mode | None:
    """Return the ``Mode`` for a wire value, or ``None`` when invalid."""

    if isinstance(value, Mode):
        return value
    number = int_from_value(value)
    if number is None:
        return None
    try:
        return Mode(number)
    except ValueError:
        return None


class ModeStateMachine:
    """Map internal modes to the projection the consumer sees, and back.

    Ternary profiles expose manual as ``0`` and both auto and sleep as ``1``;
    sleep is surfaced separately through the sleep switch. Humidifier-only
    profiles always expose ``1`` and treat writes as acknowledgements.
    """

    def __init__(self, profile: CapabilityProfile) -> None:
        """Bind the machine to ``profile``."""

        self._profile = profile

    @property
    def valid_projections(self) -> tuple[int, ...]:
        """Return the projection values the consumer may select."""

        if self._profile.is_binary:
            return (PROJECTION_HUMIDIFIER,)
        return (PROJECTION_MANUAL, PROJECTION_HUMIDIFIER)

    def project(self, mode: Mode) -> int:
        """Return the consumer-facing projection of ``mode``."""

        if self._profile.is_binary or mode is not Mode.MANUAL:
            return PROJECTION_HUMIDIFIER
        return PROJECTION_MANUAL

    def resolve_projection(self, current: Mode, requested: int) -> Mode | None:
        """Return the internal mode a projection request leads to.

        ``None`` means nothing to do: the request is already satisfied, is
        outside the valid projections, or the profile only acknowledges it.
        """

        if self._profile.is_binary:
            return None
        if requested not in self.valid_projections:
            return None
        if requested == self.project(current):
            return None
        if current is Mode.SLEEP:
            # Only reachable with requested == 0: leaving sleep lands in manual.
            return Mode.MANUAL
        return Mode(requested)

    @staticmethod
    def transition_fields(power: bool, target: Mode) -> dict[str, Any]:
        """Return the wire fields that move the device into ``target``."""

        if target is Mode.SLEEP and not power:
            return {KEY_POWER: True, KEY_MODE: int(target)}
        return {KEY_MODE: int(target)}
