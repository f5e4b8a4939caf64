"""State management helpers for Dreo humidifiers."""

from .device_state import (
    DeviceState,
    OperatingState,
    View,
    ViewUpdate,
    diff_views,
    threshold_overrides,
)
from .mode import Mode, ModeStateMachine, mode_from_value

__all__ = [
    "DeviceState",
    "Mode",
    "ModeStateMachine",
    "OperatingState",
    "View",
    "ViewUpdate",
    "diff_views",
    "mode_from_value",
    "threshold_overrides",
]
