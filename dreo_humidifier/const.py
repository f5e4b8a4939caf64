"""Constants shared by the Dreo humidifier engine."""

from __future__ import annotations

from typing import Final

REPORT_METHODS: Final = ("report", "control-report", "control-reply")

# Wire keys understood by the humidifier firmware.
KEY_POWER: Final = "poweron"
KEY_MODE: Final = "mode"
KEY_SUSPEND: Final = "suspend"
KEY_HUMIDITY: Final = "rh"
KEY_HOT_FOG: Final = "hotfogon"
KEY_FOG_LEVEL: Final = "foglevel"
KEY_TARGET_AUTO: Final = "rhautolevel"
KEY_TARGET_SLEEP: Final = "rhsleeplevel"
KEY_WATER_ERROR: Final = "wrong"

# Cache field names.
FIELD_POWER: Final = "power"
FIELD_MODE: Final = "mode"
FIELD_SUSPENDED: Final = "suspended"
FIELD_CURRENT_HUMIDITY: Final = "current_humidity"
FIELD_HOT_FOG: Final = "hot_fog_on"
FIELD_FOG_LEVEL: Final = "manual_fog_level"
FIELD_TARGET_AUTO: Final = "target_humidity_auto"
FIELD_TARGET_SLEEP: Final = "target_humidity_sleep"
FIELD_WATER_ERROR: Final = "water_error"

WIRE_TO_FIELD: Final = {
    KEY_POWER: FIELD_POWER,
    KEY_MODE: FIELD_MODE,
    KEY_SUSPEND: FIELD_SUSPENDED,
    KEY_HUMIDITY: FIELD_CURRENT_HUMIDITY,
    KEY_HOT_FOG: FIELD_HOT_FOG,
    KEY_FOG_LEVEL: FIELD_FOG_LEVEL,
    KEY_TARGET_AUTO: FIELD_TARGET_AUTO,
    KEY_TARGET_SLEEP: FIELD_TARGET_SLEEP,
    KEY_WATER_ERROR: FIELD_WATER_ERROR,
}

# Reported but never cached.
IGNORED_KEYS: Final = frozenset({"ledlevel", "rgblevel", "muteon", "worktime"})

MIN_FOG_LEVEL: Final = 0
MAX_FOG_LEVEL: Final = 6

DEFAULT_HUMIDITY: Final = 45
MIN_HUMIDITY: Final = 30
MAX_HUMIDITY: Final = 90

DEFERRED_VIEW_DELAY: Final = 0.75
