"""ClosedLoopSimulator — fixed-step simulation of plant + controller.

Each step of a closed-loop run::

    e[k]   = setpoint − y[k]
    u[k]   = controller(e[k])
    y[k+1] = plant.evolve(y[k], u[k])
    record (t = (k+1)·dt, y[k+1], u[k], e[k])

so every recorded sample pairs the output at time t with the action and
error that produced it over the preceding interval.

Every run builds its own PlantState and ControllerState, so two runs with
the same arguments give identical trajectories and nothing leaks between
runs.  Non-finite values, or magnitudes beyond ``overflow_limit``, abort
the run with NumericOverflowError instead of filling the trajectory with
NaN.
"""
from __future__ import annotations

import math
from typing import Callable, Sequence, Union

import numpy as np

from silotherm.control.interfaces import Controller
from silotherm.errors import InvalidArgumentError, NumericOverflowError, require_positive_dt
from silotherm.simulation.plant import PlantModel
from silotherm.simulation.trajectory import Trajectory
from silotherm.utils.logging import get_logger

logger = get_logger(__name__)

InputSignal = Union[float, Callable[[float], float]]


class ClosedLoopSimulator:
    """Drives a PlantModel and a Controller through fixed-step integration.

    Parameters
    ----------
    overflow_limit:
        Largest admissible magnitude of output or action.  ``None`` keeps
        only the non-finite check.
    """

    def __init__(self, overflow_limit: float | None = 1e12) -> None:
        if overflow_limit is not None and overflow_limit <= 0:
            raise InvalidArgumentError(
                f"overflow_limit must be positive, got {overflow_limit}"
            )
        self._overflow_limit = overflow_limit

    def run(
        self,
        plant: PlantModel,
        controller: Controller,
        setpoint: float,
        total_duration: float,
        dt: float,
        initial_output: float = 0.0,
    ) -> Trajectory:
        """Simulate the unity-feedback loop for ``total_duration``.

        Returns
        -------
        Trajectory
            ``round(total_duration / dt)`` samples.

        Raises
        ------
        InvalidArgumentError
            If ``dt`` or ``total_duration`` is not positive.
        NumericOverflowError
            If the loop diverges past the overflow guard.
        """
        n_steps = self._n_steps(total_duration, dt)
        plant_state = plant.initial_state(dt)
        ctrl_state = controller.initial_state()
        setpoint = float(setpoint)

        logger.debug(
            "Closed-loop run started",
            controller=controller.name, setpoint=setpoint, n_steps=n_steps, dt=dt,
        )

        trajectory = Trajectory()
        output = float(initial_output)
        for k in range(n_steps):
            error = setpoint - output
            action, ctrl_state = controller.compute_action(error, dt, ctrl_state)
            output = plant.evolve(output, action, dt, plant_state)
            t = (k + 1) * dt
            self._guard(t, output, action, controller.name)
            trajectory.append(t, output, action, error)

        logger.debug(
            "Closed-loop run complete",
            controller=controller.name, final_output=output, n_samples=len(trajectory),
        )
        return trajectory

    def run_open_loop(
        self,
        plant: PlantModel,
        control_input: InputSignal,
        total_duration: float,
        dt: float,
        initial_output: float = 0.0,
        reference: float = 0.0,
    ) -> Trajectory:
        """Drive the plant with a prescribed input (step, fault, schedule).

        ``control_input`` is either a constant or a function of time
        evaluated at the start of each step.  The recorded error is
        ``reference − output``.
        """
        n_steps = self._n_steps(total_duration, dt)
        plant_state = plant.initial_state(dt)
        signal = control_input if callable(control_input) else _constant(float(control_input))

        trajectory = Trajectory()
        output = float(initial_output)
        for k in range(n_steps):
            action = float(signal(k * dt))
            error = reference - output
            output = plant.evolve(output, action, dt, plant_state)
            t = (k + 1) * dt
            self._guard(t, output, action, "open_loop")
            trajectory.append(t, output, action, error)

        logger.debug("Open-loop run complete", final_output=output, n_samples=len(trajectory))
        return trajectory

    def run_impulse(
        self,
        plant: PlantModel,
        area: float,
        total_duration: float,
        dt: float,
    ) -> Trajectory:
        """Impulse response: a rectangular pulse of width ``dt`` and area ``area``.

        The pulse height is ``area / dt`` during the first step and the
        input is zero afterwards, which tends to ``area · δ(t)`` as
        ``dt → 0``.  The plant starts at rest.
        """
        require_positive_dt(dt)
        height = float(area) / dt
        return self.run_open_loop(
            plant,
            control_input=lambda t: height if t < 0.5 * dt else 0.0,
            total_duration=total_duration,
            dt=dt,
        )

    # ── Internal helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _n_steps(total_duration: float, dt: float) -> int:
        require_positive_dt(dt)
        if not total_duration > 0.0:
            raise InvalidArgumentError(
                f"total_duration must be positive, got {total_duration}"
            )
        return max(int(round(total_duration / dt)), 1)

    def _guard(self, t: float, output: float, action: float, source: str) -> None:
        limit = self._overflow_limit
        for label, value in (("output", output), ("action", action)):
            if not math.isfinite(value) or (limit is not None and abs(value) > limit):
                logger.error(
                    "Simulation diverged", signal=label, value=value, time=t, controller=source,
                )
                raise NumericOverflowError(
                    f"{label} reached {value!r} at t={t} (limit {limit})"
                )


def _constant(value: float) -> Callable[[float], float]:
    return lambda _t: value


def piecewise_input(steps: Sequence[tuple[float, float]]) -> Callable[[float], float]:
    """Piecewise-constant input from ``(time, value)`` steps.

    Each value holds from its time until the next step; before the first
    step the input is 0.  Times must be strictly increasing.
    """
    if not steps:
        raise InvalidArgumentError("an input schedule needs at least one step")
    times = np.array([float(t) for t, _ in steps])
    values = [float(v) for _, v in steps]
    if np.any(np.diff(times) <= 0):
        raise InvalidArgumentError("input schedule times must be strictly increasing")

    def signal(t: float) -> float:
        idx = int(np.searchsorted(times, t, side="right")) - 1
        return values[idx] if idx >= 0 else 0.0

    return signal
