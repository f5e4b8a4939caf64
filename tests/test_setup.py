"""End-to-end tests for attaching a humidifier to the realtime client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from dreo_humidifier import (
    EngineConfig,
    IoTClient,
    View,
    ViewUpdate,
    async_setup_humidifier,
    async_unload_humidifier,
)

from conftest import make_snapshot


class LoopbackTransport:
    """Transport that records commands and lets tests inject messages."""

    def __init__(self) -> None:
        """Initialise capture storage."""

        self.callback: Callable[[Any], None] | None = None
        self.sent: list[tuple[str, dict[str, Any]]] = []

    async def async_subscribe(self, callback: Callable[[Any], None]) -> None:
        """Record the message callback."""

        self.callback = callback

    async def control(self, device_id: str, fields: dict[str, Any]) -> None:
        """Record an outgoing control message."""

        self.sent.append((device_id, fields))


async def test_setup_routes_reports_and_commands() -> None:
    """Reports reach the listener and intents reach the transport."""

    transport = LoopbackTransport()
    client = IoTClient(transport=transport)
    pushed: list[ViewUpdate] = []
    config = EngineConfig.from_dict(
        {
            "device_id": "HHM001S-0042",
            "model": "DR-HHM001S",
            "series_name": "HM311S/411S",
        }
    )

    coordinator = await async_setup_humidifier(
        client, config, make_snapshot(poweron=False), listener=pushed.append
    )

    assert coordinator.device.profile.model == "DR-HM311S"
    assert transport.callback is not None
    transport.callback(
        {"deviceId": "HHM001S-0042", "method": "report", "reported": {"wrong": 1}}
    )
    coordinator.submit_intent(View.ACTIVE, True)
    await coordinator.async_join()
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert ViewUpdate(View.WATER_LEVEL, 0) in pushed
    assert ViewUpdate(View.ACTIVE, True) in pushed
    assert transport.sent == [("HHM001S-0042", {"poweron": True})]

    await async_unload_humidifier(client, coordinator)

    assert client.device_ids == []
    assert coordinator.device.detached is True


async def test_debug_flag_enables_debug_logging() -> None:
    """The debug setting lowers the package log level."""

    package_logger = logging.getLogger("dreo_humidifier")
    previous = package_logger.level
    client = IoTClient(transport=LoopbackTransport())
    config = EngineConfig.from_dict(
        {"device_id": "HHM003S-0007", "model": "DR-HHM003S", "debug": True}
    )
    try:
        coordinator = await async_setup_humidifier(client, config, make_snapshot())
        assert package_logger.level == logging.DEBUG
        await async_unload_humidifier(client, coordinator)
    finally:
        package_logger.setLevel(previous)
