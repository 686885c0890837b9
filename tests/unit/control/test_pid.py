"""Unit tests for silotherm.control.pid."""
from __future__ import annotations

import pytest

from silotherm.control.interfaces import Gains
from silotherm.control.pid import (
    DController,
    IController,
    PController,
    PIController,
    PIDController,
)
from silotherm.errors import InvalidArgumentError


# ─── Proportional ──────────────────────────────────────────────────────────────


def test_proportional_only():
    ctrl = PController(kp=2.0)
    state = ctrl.initial_state()
    action, state = ctrl.compute_action(3.0, 0.1, state)
    assert action == pytest.approx(6.0)


def test_proportional_leaves_state_untouched():
    ctrl = PController(kp=2.0)
    state = ctrl.initial_state()
    for e in (1.0, -4.0, 7.0):
        ctrl.compute_action(e, 0.1, state)
    assert state.integral == 0.0
    assert state.previous_error == 0.0


# ─── Integral ─────────────────────────────────────────────────────────────────


def test_integral_accumulates():
    ctrl = IController(ki=1.0)
    state = ctrl.initial_state()
    outs = [ctrl.compute_action(1.0, 1.0, state)[0] for _ in range(5)]
    # Each step: integral += 1·1 → output = 1, 2, 3, 4, 5
    assert outs == pytest.approx([1.0, 2.0, 3.0, 4.0, 5.0])
    assert state.integral == pytest.approx(5.0)
    assert state.previous_error == 0.0


def test_integral_unbounded_by_default():
    ctrl = IController(ki=1.0)
    state = ctrl.initial_state()
    for _ in range(1000):
        ctrl.compute_action(100.0, 1.0, state)
    assert state.integral == pytest.approx(100_000.0)


def test_integral_limit_clamps_accumulator():
    ctrl = IController(ki=1.0, integral_limit=50.0)
    state = ctrl.initial_state()
    for _ in range(1000):
        action, state = ctrl.compute_action(100.0, 1.0, state)
    assert state.integral == pytest.approx(50.0)
    assert action == pytest.approx(50.0)
    for _ in range(1000):
        ctrl.compute_action(-100.0, 1.0, state)
    assert state.integral == pytest.approx(-50.0)


@pytest.mark.parametrize("limit", [0.0, -1.0])
def test_non_positive_integral_limit_rejected(limit):
    with pytest.raises(InvalidArgumentError):
        PIDController(kp=1.0, integral_limit=limit)


# ─── Derivative ───────────────────────────────────────────────────────────────


def test_derivative_kick_on_first_sample():
    """Derivative on error with e[−1] = 0: the first sample spikes."""
    ctrl = DController(kd=2.0)
    state = ctrl.initial_state()
    action, state = ctrl.compute_action(5.0, 0.5, state)
    assert action == pytest.approx(20.0)
    assert state.previous_error == 5.0


def test_derivative_of_error_change():
    ctrl = DController(kd=2.0)
    state = ctrl.initial_state()
    ctrl.compute_action(5.0, 1.0, state)
    action, _ = ctrl.compute_action(7.0, 1.0, state)
    assert action == pytest.approx(4.0)
    action, _ = ctrl.compute_action(7.0, 1.0, state)
    assert action == pytest.approx(0.0)


def test_derivative_does_not_integrate():
    ctrl = DController(kd=1.0)
    state = ctrl.initial_state()
    for _ in range(10):
        ctrl.compute_action(3.0, 0.1, state)
    assert state.integral == 0.0


# ─── Combined ─────────────────────────────────────────────────────────────────


def test_pi_sums_terms():
    ctrl = PIController(kp=2.0, ki=0.5)
    state = ctrl.initial_state()
    action, _ = ctrl.compute_action(4.0, 0.5, state)
    # 2·4 + 0.5·(4·0.5)
    assert action == pytest.approx(9.0)
    assert state.previous_error == 0.0


def test_pid_sums_all_terms():
    ctrl = PIDController(kp=1.0, ki=2.0, kd=3.0)
    state = ctrl.initial_state()
    ctrl.compute_action(1.0, 0.5, state)
    action, state = ctrl.compute_action(2.0, 0.5, state)
    # P = 2, I = 2·(0.5 + 1.0) = 3, D = 3·(2 − 1)/0.5 = 6
    assert action == pytest.approx(11.0)
    assert state.integral == pytest.approx(1.5)
    assert state.previous_error == 2.0


def test_state_is_returned_and_mutated_in_place():
    ctrl = PIDController(kp=1.0, ki=1.0, kd=1.0)
    state = ctrl.initial_state()
    _, returned = ctrl.compute_action(1.0, 1.0, state)
    assert returned is state


def test_initial_state_is_fresh_every_call():
    ctrl = PIDController(kp=1.0, ki=1.0, kd=1.0)
    a = ctrl.initial_state()
    ctrl.compute_action(1.0, 1.0, a)
    b = ctrl.initial_state()
    assert b.integral == 0.0 and b.previous_error == 0.0
    assert b.gains == Gains(1.0, 1.0, 1.0)


@pytest.mark.parametrize("dt", [0.0, -1.0])
@pytest.mark.parametrize(
    "ctrl",
    [PController(1.0), IController(1.0), DController(1.0), PIController(1.0, 1.0), PIDController(1.0, 1.0, 1.0)],
    ids=["P", "I", "D", "PI", "PID"],
)
def test_non_positive_dt_rejected(ctrl, dt):
    with pytest.raises(InvalidArgumentError):
        ctrl.compute_action(1.0, dt, ctrl.initial_state())


def test_names():
    assert [c.name for c in (
        PController(1.0), IController(1.0), DController(1.0),
        PIController(1.0, 1.0), PIDController(),
    )] == ["P", "I", "D", "PI", "PID"]


def test_gains_addition():
    assert Gains(1.0, 2.0, 3.0) + Gains(0.5, -1.0, 0.0) == Gains(1.5, 1.0, 3.0)
