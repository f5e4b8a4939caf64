"""Tests for the mode state machine and its external projection."""

from __future__ import annotations

import pytest

from dreo_humidifier.capabilities import resolve_profile
from dreo_humidifier.state import Mode, ModeStateMachine, mode_from_value

TERNARY = ModeStateMachine(resolve_profile("HM713S"))
BINARY = ModeStateMachine(resolve_profile("HM311S"))


@pytest.mark.parametrize(
    ("mode", "expected"),
    ((Mode.MANUAL, 0), (Mode.AUTO, 1), (Mode.SLEEP, 1)),
)
def test_ternary_projection(mode: Mode, expected: int) -> None:
    """Manual projects to 0; auto and sleep project to 1."""

    assert TERNARY.project(mode) == expected


@pytest.mark.parametrize("mode", list(Mode))
def test_binary_projection_is_constant(mode: Mode) -> None:
    """Humidifier-only profiles always expose humidifier mode."""

    assert BINARY.project(mode) == 1


def test_valid_projections() -> None:
    """The selectable projections depend on cardinality."""

    assert TERNARY.valid_projections == (0, 1)
    assert BINARY.valid_projections == (1,)


@pytest.mark.parametrize(
    ("current", "requested", "expected"),
    (
        (Mode.MANUAL, 1, Mode.AUTO),
        (Mode.AUTO, 0, Mode.MANUAL),
        (Mode.SLEEP, 0, Mode.MANUAL),
        (Mode.SLEEP, 1, None),
        (Mode.MANUAL, 0, None),
        (Mode.AUTO, 1, None),
        (Mode.AUTO, 2, None),
    ),
)
def test_ternary_resolve_projection(
    current: Mode, requested: int, expected: Mode | None
) -> None:
    """Projection requests map to the internal transition they imply."""

    assert TERNARY.resolve_projection(current, requested) is expected


@pytest.mark.parametrize("mode", list(Mode))
def test_binary_resolve_projection_is_acknowledgement(mode: Mode) -> None:
    """Binary profiles never change the internal mode from the setter."""

    assert BINARY.resolve_projection(mode, 1) is None
    assert BINARY.resolve_projection(mode, 0) is None


def test_entering_sleep_while_off_adds_power() -> None:
    """Sleep from power off is one combined wire command."""

    assert TERNARY.transition_fields(False, Mode.SLEEP) == {"poweron": True, "mode": 2}
    assert TERNARY.transition_fields(True, Mode.SLEEP) == {"mode": 2}
    assert TERNARY.transition_fields(False, Mode.AUTO) == {"mode": 1}


@pytest.mark.parametrize(
    ("value", "expected"),
    (
        (0, Mode.MANUAL),
        ("2", Mode.SLEEP),
        (Mode.AUTO, Mode.AUTO),
        (3, None),
        ("x", None),
    ),
)
def test_mode_from_value(value: object, expected: Mode | None) -> None:
    """Wire values are converted to modes or rejected."""

    assert mode_from_value(value) is expected
