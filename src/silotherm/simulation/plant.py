"""PlantModel — thermal response of a stored grain mass.

The grain temperature ``y`` obeys a dominant first-order lag driven by a
dead-time-delayed control input::

    τ · dy/dt = K · u(t − θ) − y

optionally superposed with a weak, lightly damped second-order mode
(the ringing seen in silo measurements)::

    r'' = ωn² · (w · u(t − θ) − r) − 2ζωn · r'

so that the measured output is ``y_lag + r``.  The rational part of the
transfer function is therefore::

    G(s) = K / (τs + 1) + w · ωn² / (s² + 2ζωn s + ωn²)

multiplied by ``exp(−θs)``.  The mode sees the raw input, not the
process gain, so its DC contribution is ``w`` whatever the sign of K.

Integration is explicit Euler on the lag and semi-implicit Euler on the
resonant mode.  No integration-stability check is performed: ``dt`` must
be small relative to ``τ`` (reference runs use τ/300 down to τ/10⁶).
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

import numpy as np
from scipy import signal as sp_signal

from silotherm.errors import InvalidArgumentError, require_positive_dt


@dataclass(frozen=True)
class ResonantMode:
    """Weak second-order mode superposed on the dominant lag."""

    natural_frequency: float  # ωn (rad per time unit)
    damping_ratio: float      # ζ in (0, 1)

    def __post_init__(self) -> None:
        if not self.natural_frequency > 0.0:
            raise InvalidArgumentError(
                f"natural_frequency must be positive, got {self.natural_frequency}"
            )
        if not 0.0 < self.damping_ratio < 1.0:
            raise InvalidArgumentError(
                f"damping_ratio must lie in (0, 1), got {self.damping_ratio}"
            )


@dataclass
class PlantState:
    """Per-run integration state owned by the simulation that created it.

    ``delay_line`` holds the last ``delay_samples`` inputs, oldest first.
    """

    dt: float
    delay_samples: int
    delay_line: deque = field(default_factory=deque)
    resonant_position: float = 0.0
    resonant_velocity: float = 0.0
    elapsed: float = 0.0

    def delayed_input(self, control_input: float) -> float:
        """Push ``control_input`` and return the input from ``delay_samples`` steps ago.

        Before the buffer has filled the process has not yet seen any input
        (cold start) and 0.0 is returned.
        """
        if self.delay_samples == 0:
            return control_input
        if len(self.delay_line) < self.delay_samples:
            self.delay_line.append(control_input)
            return 0.0
        delayed = self.delay_line.popleft()
        self.delay_line.append(control_input)
        return delayed


@dataclass(frozen=True)
class PlantModel:
    """FOPDT grain-temperature model with an optional resonant mode.

    Parameters
    ----------
    gain:
        Process gain K (°C per unit control input).  Negative for a
        cooling-dominant process.
    time_constant:
        Dominant time constant τ, strictly positive.
    dead_time:
        Transport delay θ ≥ 0, same time unit as ``time_constant``.
    resonant_mode:
        Optional weak second-order mode.
    resonant_weight:
        DC contribution w of the resonant mode per unit input (0.25 in
        the reference silo runs).
    """

    gain: float
    time_constant: float
    dead_time: float = 0.0
    resonant_mode: ResonantMode | None = None
    resonant_weight: float = 0.25

    def __post_init__(self) -> None:
        if not self.time_constant > 0.0:
            raise InvalidArgumentError(
                f"time_constant must be positive, got {self.time_constant}"
            )
        if self.dead_time < 0.0:
            raise InvalidArgumentError(
                f"dead_time must be non-negative, got {self.dead_time}"
            )

    # ── Time domain ───────────────────────────────────────────────────────────

    def initial_state(self, dt: float) -> PlantState:
        """Fresh integration state (empty delay line, resonant mode at rest)."""
        require_positive_dt(dt)
        return PlantState(dt=float(dt), delay_samples=int(round(self.dead_time / dt)))

    def evolve(
        self,
        current_output: float,
        control_input: float,
        dt: float,
        state: PlantState | None = None,
    ) -> float:
        """Advance the plant by one step of length ``dt`` and return the new output.

        ``state`` carries the delay line and the resonant mode between
        calls and is updated in place.  Without a state a fresh one is
        used, which is exact for a delay-free first-order plant and treats
        any dead time as a cold start (delayed input 0).
        """
        require_positive_dt(dt)
        if state is None:
            state = self.initial_state(dt)
        elif state.dt != dt:
            raise InvalidArgumentError(
                f"plant state was built for dt={state.dt}, got dt={dt}"
            )

        u_delayed = state.delayed_input(float(control_input))
        lag = float(current_output) - state.resonant_position
        lag += (dt / self.time_constant) * (self.gain * u_delayed - lag)

        if self.resonant_mode is not None:
            wn = self.resonant_mode.natural_frequency
            zeta = self.resonant_mode.damping_ratio
            accel = (
                wn * wn * (self.resonant_weight * u_delayed - state.resonant_position)
                - 2.0 * zeta * wn * state.resonant_velocity
            )
            state.resonant_velocity += dt * accel
            state.resonant_position += dt * state.resonant_velocity

        state.elapsed += dt
        return lag + state.resonant_position

    # ── Frequency domain ──────────────────────────────────────────────────────

    def transfer_function(self) -> tuple[np.ndarray, np.ndarray]:
        """Numerator/denominator coefficients (highest power first) of the
        delay-free rational part of G(s)."""
        num = np.array([self.gain])
        den = np.array([self.time_constant, 1.0])
        if self.resonant_mode is None:
            return num, den

        wn = self.resonant_mode.natural_frequency
        zeta = self.resonant_mode.damping_ratio
        res_num = np.array([self.resonant_weight * wn * wn])
        res_den = np.array([1.0, 2.0 * zeta * wn, wn * wn])
        # G1 + G2 = (n1·d2 + n2·d1) / (d1·d2)
        num = np.polyadd(np.polymul(num, res_den), np.polymul(res_num, den))
        den = np.polymul(den, res_den)
        return num, den

    def frequency_response(self, omega: np.ndarray) -> np.ndarray:
        """Complex G(jω) including the dead-time factor exp(−jωθ)."""
        omega = np.asarray(omega, dtype=np.float64)
        num, den = self.transfer_function()
        _, h = sp_signal.freqs(num, den, worN=omega)
        if self.dead_time > 0.0:
            h = h * np.exp(-1j * omega * self.dead_time)
        return h

    @property
    def dc_gain(self) -> float:
        """Steady-state output per unit constant input."""
        weight = self.resonant_weight if self.resonant_mode is not None else 0.0
        return self.gain + weight

    @property
    def corner_frequency(self) -> float:
        """Break frequency 1/τ of the dominant lag."""
        return 1.0 / self.time_constant
