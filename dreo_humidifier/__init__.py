"""State reconciliation engine for Dreo cloud humidifiers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from .capabilities import CapabilityProfile, display_model, resolve_profile
from .config import EngineConfig
from .coordinator import HumidifierCoordinator
from .device_types.base import ViewListener
from .device_types.humidifier import HumidifierDevice
from .iot_client import IoTClient, IoTClientConfig
from .state import View, ViewUpdate

__version__ = "0.1.0"

__all__ = [
    "CapabilityProfile",
    "EngineConfig",
    "HumidifierCoordinator",
    "HumidifierDevice",
    "IoTClient",
    "IoTClientConfig",
    "View",
    "ViewUpdate",
    "async_setup_humidifier",
    "async_unload_humidifier",
    "display_model",
    "resolve_profile",
]

_LOGGER = logging.getLogger(__name__)


async def async_setup_humidifier(
    client: IoTClient,
    config: EngineConfig,
    snapshot: Mapping[str, Any],
    *,
    listener: ViewListener | None = None,
) -> HumidifierCoordinator:
    """Attach a humidifier: build its engine, start routing and return it."""

    if config.debug:
        _LOGGER.setLevel(logging.DEBUG)
    profile = resolve_profile(config.model, config.series_name)
    device = HumidifierDevice(
        device_id=config.device_id,
        profile=profile,
        snapshot=snapshot,
        send_command=client.command_sender(config.device_id),
        deferred_view_delay=config.deferred_view_delay,
    )
    if listener is not None:
        device.register_listener(listener)
    coordinator = HumidifierCoordinator(device)
    await coordinator.async_start()
    client.register_device(config.device_id, coordinator.submit_report)
    await client.async_start()
    _LOGGER.info(
        "Attached %s (%s) with %s profile",
        config.device_id,
        profile.model,
        profile.external_mode_cardinality.value,
    )
    return coordinator


async def async_unload_humidifier(
    client: IoTClient, coordinator: HumidifierCoordinator
) -> None:
    """Detach a humidifier and stop routing its reports."""

    client.unregister_device(coordinator.device.device_id)
    await coordinator.async_stop()
