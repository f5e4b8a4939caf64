"""Merge partial device reports into the cached state."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .const import (
    FIELD_FOG_LEVEL,
    FIELD_HOT_FOG,
    FIELD_MODE,
    FIELD_POWER,
    FIELD_WATER_ERROR,
    IGNORED_KEYS,
    WIRE_TO_FIELD,
)
from .scheduler import DeferredViewScheduler
from .state import (
    DeviceState,
    Mode,
    ModeStateMachine,
    View,
    ViewUpdate,
    diff_views,
    threshold_overrides,
)
from .state.mode import mode_from_value
from .state.values import int_from_value

_LOGGER = logging.getLogger(__name__)


class ReportMerger:
    """Apply reported fields to the cache and list the views to push.

    The device is the source of truth: a report overrides any optimistic
    value for the same field, and implied power changes (sleep while off,
    manual fog level zero) are applied alongside it.
    """

    def __init__(
        self,
        state: DeviceState,
        machine: ModeStateMachine,
        scheduler: DeferredViewScheduler | None = None,
    ) -> None:
        """Bind the merger to the cache it updates."""

        self._state = state
        self._machine = machine
        self._scheduler = scheduler

    def normalise(self, reported: Mapping[str, Any]) -> dict[str, Any]:
        """Translate wire keys to cache fields, dropping what is not ours."""

        fields: dict[str, Any] = {}
        for key, value in reported.items():
            field = WIRE_TO_FIELD.get(key)
            if field is None:
                if key not in IGNORED_KEYS:
                    _LOGGER.debug("Ignoring reported key: %s", key)
                continue
            if field == FIELD_HOT_FOG and not self._state.profile.supports_hot_fog:
                continue
            if value is None:
                continue
            fields[field] = value
        return fields

    def merge(self, reported: Mapping[str, Any]) -> list[ViewUpdate]:
        """Apply ``reported`` and return the views whose value changed."""

        state = self._state
        fields = self.normalise(reported)
        if not fields:
            return []
        self._apply_implied_power(fields)

        before = state.views(self._machine.project)
        was_water_error = state.water_error
        changed = state.apply_reported(fields)
        if not changed:
            return []

        for field in sorted(changed):
            _LOGGER.info("REPORTED %s: %s", field, getattr(state, field))
        if FIELD_WATER_ERROR in changed:
            self._log_water_error(was_water_error)
        if FIELD_MODE in changed and self._scheduler is not None:
            self._scheduler.cancel(View.TARGET_MODE)
        exclude, always = threshold_overrides(state.mode, FIELD_MODE in changed)
        return diff_views(
            before,
            state.views(self._machine.project),
            exclude=exclude,
            always=always,
        )

    def _apply_implied_power(self, fields: dict[str, Any]) -> None:
        if FIELD_POWER in fields:
            return
        state = self._state
        reported_mode = (
            mode_from_value(fields[FIELD_MODE]) if FIELD_MODE in fields else None
        )
        if reported_mode is Mode.SLEEP and not state.power:
            _LOGGER.info("Device reported sleep while cached off; marking on")
            fields[FIELD_POWER] = True
            return
        mode = state.mode if reported_mode is None else reported_mode
        if (
            state.profile.zero_fog_level_is_off
            and FIELD_FOG_LEVEL in fields
            and int_from_value(fields[FIELD_FOG_LEVEL]) == 0
            and mode is Mode.MANUAL
            and state.power
        ):
            _LOGGER.info("Device reported manual fog level 0; marking off")
            fields[FIELD_POWER] = False

    def _log_water_error(self, was_water_error: bool) -> None:
        model = self._state.profile.model
        if self._state.water_error and not was_water_error:
            _LOGGER.error("REPORTED %s error: No water detected", model)
        elif was_water_error and not self._state.water_error:
            _LOGGER.info("REPORTED %s error cleared", model)
