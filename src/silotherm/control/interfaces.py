"""Abstract Controller interface and per-run controller state.

All concrete controllers (P, I, D, PI, PID, fuzzy PID) implement this
interface so that the simulator and the scenario runner can drive them
uniformly.  A controller object holds only configuration; everything
that changes during a run lives in a ``ControllerState`` created by
``initial_state()`` at the start of that run and passed explicitly to
every ``compute_action()`` call.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Gains:
    kp: float = 0.0
    ki: float = 0.0
    kd: float = 0.0

    def __add__(self, other: "Gains") -> "Gains":
        return Gains(self.kp + other.kp, self.ki + other.ki, self.kd + other.kd)


@dataclass
class ControllerState:
    """Mutable state of one controller during one simulation run.

    ``gains`` are the gains in effect at the last step (fixed for the
    classical variants, re-scheduled every step by the fuzzy variant).
    ``error_history`` is the sensor-delay buffer of the fuzzy variant.
    """

    gains: Gains
    integral: float = 0.0
    previous_error: float = 0.0
    error_history: deque = field(default_factory=deque)


class Controller(ABC):
    """Standard interface for all feedback controllers.

    ``compute_action()`` returns ``(action, state)``; the state object is
    the one passed in, updated in place, returned for call-chaining.
    """

    @abstractmethod
    def compute_action(
        self,
        error: float,
        dt: float,
        state: ControllerState,
    ) -> tuple[float, ControllerState]:
        """Map the current error (setpoint − output) to a control action.

        Parameters
        ----------
        error:
            Setpoint minus measured output, physical units.
        dt:
            Step size; must be strictly positive.
        state:
            Run state from ``initial_state()``.

        Raises
        ------
        InvalidArgumentError
            If ``dt <= 0``.
        """

    @abstractmethod
    def initial_state(self) -> ControllerState:
        """Return a fresh state (zero integral, zero previous error)."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable controller name (used in logs and reports)."""
