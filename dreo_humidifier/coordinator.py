"""Per-device serialisation of intents and reports."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Mapping
from typing import Any

from .device_types.humidifier import HumidifierDevice
from .state import View

_Job = Callable[[], Any]


class HumidifierCoordinator:
    """Funnel every mutation of one device through a single consumer.

    Intents from the consumer and reports from the transport may arrive on
    different tasks; both are queued here and applied one at a time.
    """

    def __init__(
        self,
        device: HumidifierDevice,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        """Bind the coordinator to ``device``."""

        self.device = device
        base_logger = logger or logging.getLogger(__name__)
        self._logger = base_logger.getChild(device.device_id)
        self._queue: asyncio.Queue[_Job] = asyncio.Queue()
        self._consumer: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """Return True while the consumer task is alive."""

        return self._consumer is not None and not self._consumer.done()

    async def async_start(self) -> None:
        """Start the consumer task."""

        if self.running:
            return
        self._consumer = asyncio.create_task(self._consume())

    async def async_stop(self) -> None:
        """Stop the consumer and detach the device."""

        consumer, self._consumer = self._consumer, None
        if consumer is not None:
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer
        self.device.detach()

    async def async_join(self) -> None:
        """Wait until every queued job has been applied."""

        await self._queue.join()

    def submit_intent(self, view: View, value: Any) -> None:
        """Queue a consumer write to ``view``."""

        self._queue.put_nowait(lambda: self.device.set(view, value))

    def submit_report(self, reported: Mapping[str, Any]) -> None:
        """Queue a device report."""

        snapshot = dict(reported)
        self._queue.put_nowait(lambda: self.device.handle_report(snapshot))

    async def _consume(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                job()
            except Exception:
                self._logger.exception("Failed to apply queued update")
            finally:
                self._queue.task_done()
