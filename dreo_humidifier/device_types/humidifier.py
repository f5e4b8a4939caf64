"""Humidifier device: one engine parameterised by a capability profile."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from ..capabilities import CapabilityProfile
from ..commands import CommandBuilder, CommandPlan
from ..const import DEFERRED_VIEW_DELAY, FIELD_MODE, MAX_FOG_LEVEL, MIN_FOG_LEVEL
from ..reports import ReportMerger
from ..scheduler import DeferredViewScheduler
from ..state import DeviceState, ModeStateMachine, OperatingState, View, ViewUpdate
from ..state import diff_views, threshold_overrides
from .base import BaseDevice, CommandSender

_LOGGER = logging.getLogger(__name__)


class HumidifierDevice(BaseDevice):
    """Reconcile consumer intents and device reports for one humidifier.

    Intents are applied optimistically and pushed immediately; reports are
    merged authoritatively. Callers must serialise calls per device (see
    ``HumidifierCoordinator``).
    """

    def __init__(
        self,
        *,
        device_id: str,
        profile: CapabilityProfile,
        snapshot: Mapping[str, Any],
        send_command: CommandSender,
        deferred_view_delay: float = DEFERRED_VIEW_DELAY,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Build the cache from ``snapshot`` and expose the profile's views."""

        super().__init__(device_id, send_command)
        self.profile = profile
        self.state = DeviceState.from_snapshot(snapshot, profile)
        self.mode_machine = ModeStateMachine(profile)
        self.scheduler = DeferredViewScheduler(
            self.push_view, delay=deferred_view_delay, loop=loop
        )
        self.builder = CommandBuilder(self.state, self.mode_machine)
        self.merger = ReportMerger(self.state, self.mode_machine, self.scheduler)
        self._detached = False
        self._expose_views()

    def _expose_views(self) -> None:
        display = self.profile.external_humidity_display_range
        self.expose_view(View.ACTIVE, writable=True)
        self.expose_view(
            View.CURRENT_STATE,
            min_value=OperatingState.INACTIVE,
            max_value=OperatingState.ACTIVE,
            valid_values=tuple(int(state) for state in OperatingState),
        )
        valid_modes = self.mode_machine.valid_projections
        self.expose_view(
            View.TARGET_MODE,
            writable=True,
            min_value=min(valid_modes),
            max_value=max(valid_modes),
            valid_values=valid_modes,
        )
        self.expose_view(
            View.HUMIDITY_THRESHOLD,
            writable=True,
            min_value=display.min,
            max_value=display.max,
        )
        self.expose_view(View.CURRENT_HUMIDITY, min_value=0, max_value=100)
        self.expose_view(
            View.FOG_LEVEL,
            writable=True,
            min_value=MIN_FOG_LEVEL,
            max_value=MAX_FOG_LEVEL,
            valid_values=tuple(range(MIN_FOG_LEVEL, MAX_FOG_LEVEL + 1)),
        )
        self.expose_view(View.WATER_LEVEL, min_value=0, max_value=100)
        self.expose_view(View.SLEEP_SWITCH, writable=True)
        if self.profile.supports_hot_fog:
            self.expose_view(View.HOT_FOG_SWITCH, writable=True)

    @property
    def detached(self) -> bool:
        """Return True once the device has been removed."""

        return self._detached

    def get(self, view: View) -> Any:
        """Return the current value of ``view`` from the cache."""

        if view not in self.exposed_views:
            raise KeyError(view)
        value = self.state.views(self.mode_machine.project)[view]
        _LOGGER.debug("GET %s: %s", view.value, value)
        return value

    def set(self, view: View, value: Any) -> CommandPlan | None:
        """Handle a consumer write to ``view``.

        Returns the plan that was sent, or ``None`` when the write was a
        no-op or was rejected.
        """

        if view not in self.exposed_views:
            raise KeyError(view)
        if self._detached:
            _LOGGER.debug(
                "Ignoring %s=%s for detached %s", view.value, value, self.device_id
            )
            return None
        _LOGGER.info("Triggered SET %s: %s", view.value, value)
        plan = self.builder.build(view, value)
        if plan is None:
            return None
        self._execute(plan)
        return plan

    def set_active(self, value: Any) -> CommandPlan | None:
        """Turn the humidifier on or off."""

        return self.set(View.ACTIVE, value)

    def set_sleep_mode(self, value: Any) -> CommandPlan | None:
        """Toggle the sleep switch."""

        return self.set(View.SLEEP_SWITCH, value)

    def set_hot_fog(self, value: Any) -> CommandPlan | None:
        """Toggle the warm mist switch."""

        return self.set(View.HOT_FOG_SWITCH, value)

    def set_target_humidity(self, value: Any) -> CommandPlan | None:
        """Set the humidity threshold of the active mode."""

        return self.set(View.HUMIDITY_THRESHOLD, value)

    def set_fog_level(self, value: Any) -> CommandPlan | None:
        """Set the manual fog level."""

        return self.set(View.FOG_LEVEL, value)

    def set_target_mode(self, value: Any) -> CommandPlan | None:
        """Set the consumer-facing target mode."""

        return self.set(View.TARGET_MODE, value)

    def _execute(self, plan: CommandPlan) -> None:
        payload = plan.command.as_payload()
        _LOGGER.info(
            "Sending %s command for %s: %s",
            plan.intent.value,
            self.device_id,
            payload,
        )
        self.dispatch_command(payload)

        before = self.state.views(self.mode_machine.project)
        changed = self.state.apply_optimistic(plan.optimistic)
        exclude, always = threshold_overrides(self.state.mode, FIELD_MODE in changed)
        updates = diff_views(
            before,
            self.state.views(self.mode_machine.project),
            exclude=exclude | {View.TARGET_MODE},
            always=always,
        )
        for update in updates:
            self.push_view(update.view, update.value)

        if plan.intent is View.TARGET_MODE:
            # The consumer already shows its own write; drop any older value.
            self.scheduler.cancel(View.TARGET_MODE)
            return
        projection = self.mode_machine.project(self.state.mode)
        if projection != before[View.TARGET_MODE]:
            # Re-assert after the device echo so the toggle does not bounce.
            self.scheduler.schedule(View.TARGET_MODE, projection)

    def handle_report(self, reported: Mapping[str, Any]) -> list[ViewUpdate]:
        """Merge a device report and push the resulting view changes."""

        if self._detached:
            return []
        updates = self.merger.merge(reported)
        for update in updates:
            self.push_view(update.view, update.value)
        return updates

    def detach(self) -> None:
        """Stop pushing views and cancel deferred work."""

        self._detached = True
        self.scheduler.cancel_all()
        self.clear_listeners()
