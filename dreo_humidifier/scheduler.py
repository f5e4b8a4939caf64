"""Delayed re-assertion of views after locally triggered mode changes."""

from __future__ import annotations

import asyncio
import inspect
import logging
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .const import DEFERRED_VIEW_DELAY
from .state import View

_LOGGER = logging.getLogger(__name__)

PushCallback = Callable[[View, Any], None]


@dataclass(slots=True)
class DeferredView:
    """A single scheduled push of ``value`` to ``view``."""

    view: View
    value: Any
    fire_at: float
    handle: asyncio.TimerHandle | None = None
    cancelled: bool = False

    def cancel(self) -> None:
        """Prevent the push from firing."""

        self.cancelled = True
        if self.handle is not None:
            self.handle.cancel()


class DeferredViewScheduler:
    """Keep at most one pending push per view and fire it once.

    Bound-method callbacks are held weakly so a scheduled push never keeps a
    detached device alive.
    """

    def __init__(
        self,
        push: PushCallback,
        *,
        delay: float = DEFERRED_VIEW_DELAY,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Store the push target, delay and optional event loop."""

        if inspect.ismethod(push):
            self._push_ref: Callable[[], PushCallback | None] = weakref.WeakMethod(push)
        else:
            self._push_ref = lambda: push
        self._delay = delay
        self._loop = loop
        self._pending: dict[View, DeferredView] = {}

    @property
    def delay(self) -> float:
        """Return the delay in seconds before a deferred push fires."""

        return self._delay

    @property
    def pending(self) -> dict[View, DeferredView]:
        """Return a copy of the outstanding deferred pushes."""

        return dict(self._pending)

    def schedule(self, view: View, value: Any) -> DeferredView | None:
        """Schedule ``value`` for ``view``, superseding any pending push.

        Without an event loop the value is pushed at once and ``None`` is
        returned.
        """

        self.cancel(view)
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                _LOGGER.debug(
                    "No running event loop; pushing %s=%s now", view.value, value
                )
                self._push(view, value)
                return None
        deferred = DeferredView(
            view=view, value=value, fire_at=loop.time() + self._delay
        )
        deferred.handle = loop.call_later(self._delay, self._fire, deferred)
        self._pending[view] = deferred
        _LOGGER.debug("Deferred %s=%s by %ss", view.value, value, self._delay)
        return deferred

    def cancel(self, view: View) -> bool:
        """Cancel the pending push for ``view``; return True if one existed."""

        deferred = self._pending.pop(view, None)
        if deferred is None:
            return False
        deferred.cancel()
        return True

    def cancel_all(self) -> None:
        """Cancel every pending push."""

        for view in list(self._pending):
            self.cancel(view)

    def _fire(self, deferred: DeferredView) -> None:
        if deferred.cancelled:
            return
        if self._pending.get(deferred.view) is deferred:
            del self._pending[deferred.view]
        self._push(deferred.view, deferred.value)

    def _push(self, view: View, value: Any) -> None:
        push = self._push_ref()
        if push is None:
            return
        push(view, value)
