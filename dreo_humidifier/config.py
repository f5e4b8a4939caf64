"""Engine configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import voluptuous as vol

from .const import DEFERRED_VIEW_DELAY

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required("device_id"): vol.All(str, vol.Length(min=1)),
        vol.Required("model"): vol.All(str, vol.Length(min=1)),
        vol.Optional("series_name", default=None): vol.Any(None, str),
        vol.Optional("deferred_view_delay", default=DEFERRED_VIEW_DELAY): vol.All(
            vol.Coerce(float), vol.Range(min=0, max=10)
        ),
        vol.Optional("debug", default=False): bool,
    }
)


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Settings for one humidifier engine instance."""

    device_id: str
    model: str
    series_name: str | None = None
    deferred_view_delay: float = DEFERRED_VIEW_DELAY
    debug: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EngineConfig:
        """Validate ``data`` and build a config; raises ``vol.Invalid``."""

        return cls(**CONFIG_SCHEMA(dict(data)))
