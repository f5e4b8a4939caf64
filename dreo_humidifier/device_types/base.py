"""Device facade helpers shared by Dreo device types."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from ..state import View, ViewUpdate

_LOGGER = logging.getLogger(__name__)

CommandSender = Callable[[dict[str, Any]], Awaitable[Any] | None]
ViewListener = Callable[[ViewUpdate], None]


@dataclass(frozen=True)
class ExposedView:
    """Describe a view the bridging layer should register."""

    view: View
    writable: bool = False
    min_value: int | None = None
    max_value: int | None = None
    valid_values: tuple[int, ...] | None = None


class BaseDevice:
    """Minimal view container with push listeners and command dispatch."""

    def __init__(self, device_id: str, send_command: CommandSender) -> None:
        """Initialise the container for ``device_id``."""

        self.device_id = device_id
        self._send_command = send_command
        self._exposed: dict[View, ExposedView] = {}
        self._listeners: list[ViewListener] = []
        self._pending_tasks: set[asyncio.Future[Any]] = set()

    def expose_view(
        self,
        view: View,
        *,
        writable: bool = False,
        min_value: int | None = None,
        max_value: int | None = None,
        valid_values: tuple[int, ...] | None = None,
    ) -> ExposedView:
        """Declare ``view`` as part of the consumer-facing surface."""

        exposed = ExposedView(
            view=view,
            writable=writable,
            min_value=min_value,
            max_value=max_value,
            valid_values=valid_values,
        )
        self._exposed[view] = exposed
        return exposed

    @property
    def exposed_views(self) -> dict[View, ExposedView]:
        """Return the consumer-facing view definitions."""

        return dict(MappingProxyType(self._exposed))

    def register_listener(self, callback: ViewListener) -> Callable[[], None]:
        """Register ``callback`` for view pushes and return an unsubscriber."""

        self._listeners.append(callback)

        def _remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _remove

    def push_view(self, view: View, value: Any) -> None:
        """Notify listeners that ``view`` now shows ``value``."""

        if view not in self._exposed:
            return
        update = ViewUpdate(view, value)
        for listener in list(self._listeners):
            listener(update)

    def dispatch_command(self, payload: dict[str, Any]) -> None:
        """Hand ``payload`` to the transport without waiting for it."""

        result = self._send_command(payload)
        if isinstance(result, Coroutine):
            task = asyncio.get_running_loop().create_task(result)
        elif isinstance(result, asyncio.Future):
            task = result
        else:
            return
        self._pending_tasks.add(task)
        task.add_done_callback(self._command_done)

    def _command_done(self, task: asyncio.Future[Any]) -> None:
        self._pending_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            _LOGGER.error("Failed to send command for %s: %s", self.device_id, error)

    def clear_listeners(self) -> None:
        """Drop every registered listener."""

        self._listeners.clear()
