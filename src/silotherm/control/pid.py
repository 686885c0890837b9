"""Classical feedback controllers: P, I, D, PI and PID.

Parallel (non-interacting) PID form discretised with Euler integration::

    u[k] = Kp · e[k]  +  Ki · Σ e[j]·dt  +  Kd · (e[k] − e[k−1]) / dt

Differences from a production ISA PID, kept on purpose so that the silo
reference runs are reproduced numerically:

- Derivative acts on the *error*, with ``e[−1] = 0``; the first sample
  therefore produces a derivative kick of ``Kd · e[0] / dt``.
- No output saturation and, by default, no anti-windup.  Passing
  ``integral_limit`` clamps the accumulator to ``±integral_limit``.

Each variant only touches the state its own terms need: a P controller
leaves the state untouched, an I controller never updates
``previous_error`` and a D controller never integrates.
"""
from __future__ import annotations

from silotherm.control.interfaces import Controller, ControllerState, Gains
from silotherm.errors import InvalidArgumentError, require_positive_dt


class PIDController(Controller):
    """Parallel PID with optional integral clamping.

    Parameters
    ----------
    kp:
        Proportional gain (action units per °C).
    ki:
        Integral gain (action units per °C per time unit).
    kd:
        Derivative gain (action units · time unit per °C).
    integral_limit:
        Symmetric bound on the integral accumulator.  ``None`` disables
        anti-windup (reference behaviour).
    """

    _terms: frozenset[str] = frozenset({"p", "i", "d"})
    _label = "PID"

    def __init__(
        self,
        kp: float = 0.0,
        ki: float = 0.0,
        kd: float = 0.0,
        integral_limit: float | None = None,
    ) -> None:
        if integral_limit is not None and integral_limit <= 0:
            raise InvalidArgumentError(
                f"integral_limit must be positive, got {integral_limit}"
            )
        self._gains = Gains(float(kp), float(ki), float(kd))
        self._integral_limit = integral_limit

    # ── Controller interface ───────────────────────────────────────────────────

    def initial_state(self) -> ControllerState:
        return ControllerState(gains=self._gains)

    def compute_action(
        self,
        error: float,
        dt: float,
        state: ControllerState,
    ) -> tuple[float, ControllerState]:
        require_positive_dt(dt)
        return self._pid_law(float(error), dt, state.gains, state), state

    @property
    def name(self) -> str:
        return self._label

    @property
    def gains(self) -> Gains:
        return self._gains

    @property
    def integral_limit(self) -> float | None:
        return self._integral_limit

    # ── Internal helpers ───────────────────────────────────────────────────────

    def _pid_law(
        self, error: float, dt: float, gains: Gains, state: ControllerState
    ) -> float:
        """Apply the active terms with ``gains`` and update ``state`` in place."""
        action = 0.0

        if "p" in self._terms:
            action += gains.kp * error

        if "i" in self._terms:
            state.integral += error * dt
            if self._integral_limit is not None:
                lim = self._integral_limit
                state.integral = min(max(state.integral, -lim), lim)
            action += gains.ki * state.integral

        if "d" in self._terms:
            action += gains.kd * (error - state.previous_error) / dt
            state.previous_error = error

        return action


class PController(PIDController):
    """Proportional-only control: ``u = Kp · e``; state is left unchanged."""

    _terms = frozenset({"p"})
    _label = "P"

    def __init__(self, kp: float) -> None:
        super().__init__(kp=kp)


class IController(PIDController):
    """Integral-only control: removes steady-state error, prone to ringing."""

    _terms = frozenset({"i"})
    _label = "I"

    def __init__(self, ki: float, integral_limit: float | None = None) -> None:
        super().__init__(ki=ki, integral_limit=integral_limit)


class DController(PIDController):
    """Derivative-only control: damps motion but has no steady-state authority."""

    _terms = frozenset({"d"})
    _label = "D"

    def __init__(self, kd: float) -> None:
        super().__init__(kd=kd)


class PIController(PIDController):
    _terms = frozenset({"p", "i"})
    _label = "PI"

    def __init__(
        self, kp: float, ki: float, integral_limit: float | None = None
    ) -> None:
        super().__init__(kp=kp, ki=ki, integral_limit=integral_limit)
