"""Pytest configuration for the Dreo humidifier engine tests."""

from __future__ import annotations

import asyncio
import inspect
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

root_path = Path(__file__).resolve().parent.parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))

from dreo_humidifier.capabilities import resolve_profile  # noqa: E402
from dreo_humidifier.device_types.humidifier import HumidifierDevice  # noqa: E402
from dreo_humidifier.state import ViewUpdate  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Register markers used throughout the test suite."""

    config.addinivalue_line(
        "markers", "asyncio: mark coroutine tests to execute via asyncio loop"
    )


def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute coroutine tests within a dedicated event loop."""

    test_function = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_function):
        return None

    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        funcargs = pyfuncitem.funcargs
        testargs = {arg: funcargs[arg] for arg in pyfuncitem._fixtureinfo.argnames}
        loop.run_until_complete(test_function(**testargs))
    finally:
        asyncio.set_event_loop(None)
        loop.close()
    return True


class FakeTimerHandle:
    """Timer handle returned by ``FakeLoop.call_later``."""

    def __init__(self, when: float, callback: Callable[..., Any], args: tuple) -> None:
        """Store the scheduled callback."""

        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        """Mark the handle as cancelled."""

        self.cancelled = True


class FakeLoop:
    """Deterministic stand-in for the event loop timer API."""

    def __init__(self) -> None:
        """Start the clock at zero."""

        self.now = 0.0
        self.handles: list[FakeTimerHandle] = []

    def time(self) -> float:
        """Return the fake monotonic time."""

        return self.now

    def call_later(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> FakeTimerHandle:
        """Record a callback to run after ``delay`` seconds."""

        handle = FakeTimerHandle(self.now + delay, callback, args)
        self.handles.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        """Move the clock forward and run every due callback."""

        self.now += seconds
        for handle in sorted(self.handles, key=lambda item: item.when):
            if handle.cancelled or handle.fired or handle.when > self.now:
                continue
            handle.fired = True
            handle.callback(*handle.args)

    @property
    def active(self) -> list[FakeTimerHandle]:
        """Return handles that are neither cancelled nor fired."""

        return [h for h in self.handles if not h.cancelled and not h.fired]


class RecordingSender:
    """Synchronous command sender that records every payload."""

    def __init__(self) -> None:
        """Initialise the payload log."""

        self.commands: list[dict[str, Any]] = []

    def __call__(self, payload: dict[str, Any]) -> None:
        """Record ``payload``."""

        self.commands.append(payload)


def make_snapshot(**overrides: Any) -> dict[str, Any]:
    """Return a cloud snapshot in ``{key: {"state": value}}`` form."""

    values: dict[str, Any] = {
        "poweron": True,
        "mode": 0,
        "suspend": False,
        "rh": 40,
        "hotfogon": False,
        "ledlevel": 1,
        "rgblevel": "1",
        "foglevel": 3,
        "rhautolevel": 55,
        "rhsleeplevel": 50,
        "wrong": 0,
    }
    values.update(overrides)
    return {key: {"state": value} for key, value in values.items()}


@pytest.fixture
def snapshot_factory() -> Callable[..., dict[str, Any]]:
    """Provide the snapshot builder."""

    return make_snapshot


@pytest.fixture
def fake_loop() -> FakeLoop:
    """Provide a fake timer loop."""

    return FakeLoop()


@pytest.fixture
def sender() -> RecordingSender:
    """Provide a recording command sender."""

    return RecordingSender()


@pytest.fixture
def make_device(
    fake_loop: FakeLoop, sender: RecordingSender
) -> Callable[..., tuple[HumidifierDevice, list[ViewUpdate]]]:
    """Return a factory building a device plus its list of pushed views."""

    def _factory(
        model: str = "DR-HHM003S", **overrides: Any
    ) -> tuple[HumidifierDevice, list[ViewUpdate]]:
        device = HumidifierDevice(
            device_id="HHM003S-0001",
            profile=resolve_profile(model),
            snapshot=make_snapshot(**overrides),
            send_command=sender,
            loop=fake_loop,
        )
        pushed: list[ViewUpdate] = []
        device.register_listener(pushed.append)
        return device, pushed

    return _factory
