"""Per-model capability profiles for Dreo humidifiers."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum

from .const import DEFAULT_HUMIDITY, MAX_HUMIDITY, MIN_HUMIDITY

_LOGGER = logging.getLogger(__name__)

_SERIES_PATTERN = re.compile(r"^([^/]+)")


class ExternalModeCardinality(str, Enum):
    """How many target modes the consumer is allowed to pick from."""

    TERNARY = "ternary"
    BINARY_HUMIDIFIER_ONLY = "binary_humidifier_only"


@dataclass(frozen=True, slots=True)
class HumidityRange:
    """Humidity domain accepted by the device firmware."""

    min: int
    max: int
    default: int


@dataclass(frozen=True, slots=True)
class DisplayRange:
    """Humidity domain advertised to the consumer."""

    min: int
    max: int


@dataclass(frozen=True, slots=True)
class CapabilityProfile:
    """Immutable description of what a humidifier model supports."""

    model: str
    supports_hot_fog: bool
    humidity_range: HumidityRange
    external_humidity_display_range: DisplayRange
    external_mode_cardinality: ExternalModeCardinality
    zero_fog_level_is_off: bool = False

    @property
    def is_binary(self) -> bool:
        """Return True when the consumer only ever sees humidifier mode."""

        return (
            self.external_mode_cardinality
            is ExternalModeCardinality.BINARY_HUMIDIFIER_ONLY
        )


_STANDARD_RANGE = HumidityRange(
    min=MIN_HUMIDITY, max=MAX_HUMIDITY, default=DEFAULT_HUMIDITY
)

CONSERVATIVE_PROFILE = CapabilityProfile(
    model="unknown",
    supports_hot_fog=False,
    humidity_range=_STANDARD_RANGE,
    external_humidity_display_range=DisplayRange(min=MIN_HUMIDITY, max=MAX_HUMIDITY),
    external_mode_cardinality=ExternalModeCardinality.TERNARY,
)

_HUMIDIFIER_ONLY = CapabilityProfile(
    model="HM311S",
    supports_hot_fog=False,
    humidity_range=_STANDARD_RANGE,
    external_humidity_display_range=DisplayRange(min=0, max=100),
    external_mode_cardinality=ExternalModeCardinality.BINARY_HUMIDIFIER_ONLY,
    zero_fog_level_is_off=True,
)

_WARM_MIST = CapabilityProfile(
    model="HM713S",
    supports_hot_fog=True,
    humidity_range=_STANDARD_RANGE,
    external_humidity_display_range=DisplayRange(min=MIN_HUMIDITY, max=MAX_HUMIDITY),
    external_mode_cardinality=ExternalModeCardinality.TERNARY,
    zero_fog_level_is_off=True,
)

_FAMILY_PROFILES: dict[str, CapabilityProfile] = {
    "HM311S": _HUMIDIFIER_ONLY,
    "HM411S": _HUMIDIFIER_ONLY,
    "HM713S": _WARM_MIST,
    "HM813S": _WARM_MIST,
}

# Raw cloud model identifiers reported before a series name is known.
_RAW_MODEL_FAMILIES: dict[str, str] = {
    "DR-HHM001S": "HM311S",
    "DR-HHM003S": "HM713S",
    "DR-HHM004S": "HM813S",
}


def display_model(model: str, series_name: str | None = None) -> str:
    """Return a user-facing model such as ``DR-HM311S``.

    ``DR-HHM001S`` with series ``HM311S/411S`` becomes ``DR-HM311S``. Models
    without a series name, or that are not humidifiers, are returned as-is.
    """

    if not series_name:
        return model
    match = _SERIES_PATTERN.match(series_name)
    if not match:
        return model
    if model.startswith("DR-HHM"):
        return f"DR-{match.group(1)}"
    return model


def _family(model: str, series_name: str | None) -> str | None:
    shown = display_model(model, series_name).strip().upper()
    if shown in _RAW_MODEL_FAMILIES:
        return _RAW_MODEL_FAMILIES[shown]
    if shown.startswith("DR-"):
        shown = shown[len("DR-") :]
    return shown if shown in _FAMILY_PROFILES else None


def resolve_profile(
    model: str | None, series_name: str | None = None
) -> CapabilityProfile:
    """Return the capability profile for ``model``.

    Unknown or missing identifiers fall back to the conservative profile
    (ternary modes, no hot fog, standard humidity range).
    """

    family = _family(model, series_name) if model else None
    if family is None:
        _LOGGER.debug("No capability profile for %s; using defaults", model)
        return replace(CONSERVATIVE_PROFILE, model=model or "unknown")
    return replace(_FAMILY_PROFILES[family], model=display_model(model, series_name))
