"""Fuzzy gain-scheduled PID for the silo cooling loop.

At every step the controller:

1. reads the error as seen through a sensor/transport lag of
   ``sensor_delay`` time units (taken from its own error history);
2. forms the error rate as the backward difference of that delayed error;
3. asks the fuzzy engine for (ΔKp, ΔKi, ΔKd) and uses ``base + Δ`` as the
   effective gains for this step;
4. applies the parallel PID law to the delayed error.

Until the history covers ``sensor_delay`` the oldest recorded error is
used, i.e. the sensor reports the resting process value.
"""
from __future__ import annotations

from collections import deque

from silotherm.control.fuzzy_inference import FuzzyInferenceEngine
from silotherm.control.interfaces import ControllerState, Gains
from silotherm.control.pid import PIDController
from silotherm.errors import InvalidArgumentError, require_positive_dt


class FuzzyPIDController(PIDController):
    """PID whose gains are re-scheduled every step by fuzzy inference.

    Parameters
    ----------
    kp, ki, kd:
        Base gains, fixed for the lifetime of the controller.
    engine:
        Any object exposing ``infer(error, error_rate) → (Δkp, Δki, Δkd)``;
        defaults to a FuzzyInferenceEngine over the default rule table.
    sensor_delay:
        Feedback lag applied to the error before it reaches the fuzzy
        engine and the PID law (0 → no lag).
    integral_limit:
        Optional anti-windup clamp, as for PIDController.
    """

    _label = "FuzzyPID"

    def __init__(
        self,
        kp: float,
        ki: float,
        kd: float = 0.0,
        engine: FuzzyInferenceEngine | None = None,
        sensor_delay: float = 0.0,
        integral_limit: float | None = None,
    ) -> None:
        super().__init__(kp=kp, ki=ki, kd=kd, integral_limit=integral_limit)
        if sensor_delay < 0:
            raise InvalidArgumentError(f"sensor_delay must be non-negative, got {sensor_delay}")
        self._engine = engine if engine is not None else FuzzyInferenceEngine()
        self._sensor_delay = float(sensor_delay)

    @property
    def sensor_delay(self) -> float:
        return self._sensor_delay

    @property
    def engine(self) -> FuzzyInferenceEngine:
        return self._engine

    def compute_action(
        self,
        error: float,
        dt: float,
        state: ControllerState,
    ) -> tuple[float, ControllerState]:
        require_positive_dt(dt)
        delayed_error = self._delayed_error(float(error), dt, state)
        error_rate = (delayed_error - state.previous_error) / dt

        dkp, dki, dkd = self._engine.infer(delayed_error, error_rate)
        state.gains = self.gains + Gains(dkp, dki, dkd)

        return self._pid_law(delayed_error, dt, state.gains, state), state

    def _delayed_error(self, error: float, dt: float, state: ControllerState) -> float:
        lag_samples = int(round(self._sensor_delay / dt))
        if lag_samples == 0:
            return error
        history: deque = state.error_history
        history.append(error)
        if len(history) > lag_samples + 1:
            history.popleft()
        return history[0]
