"""Result dataclasses for silo control analysis.

All results are serialisable to JSON via ``to_dict()`` (``math.inf`` is
emitted as the string ``"inf"`` so the output stays strict JSON).
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any


def _json_safe(value: Any) -> Any:
    if isinstance(value, float) and math.isinf(value):
        return "inf" if value > 0 else "-inf"
    return value


@dataclass
class PerformanceReport:
    """Transient and steady-state metrics of one simulated response.

    Time values share the trajectory's time unit.  ``rise_time`` is
    ``None`` when the response never reaches 90 % of the setpoint, and
    ``oscillation_period`` is ``None`` when fewer than two peaks occur.
    """

    # ── Classical step metrics ────────────────────────────────────────────────
    rise_time: float | None        # 10 % → 90 % of the setpoint
    settling_time: float           # Last time outside the ±band around setpoint
    overshoot_percent: float       # (peak − sp) / sp · 100, 0 when never passed
    steady_state_error: float      # |sp − final output|

    # ── Peak / oscillation ────────────────────────────────────────────────────
    peak_value: float = 0.0
    peak_time: float = 0.0
    oscillation_period: float | None = None

    # ── Error integral metrics ────────────────────────────────────────────────
    iae: float = 0.0    # ∫|e(t)|  dt
    ise: float = 0.0    # ∫ e(t)²  dt
    itae: float = 0.0   # ∫ t|e(t)| dt

    def to_dict(self) -> dict[str, Any]:
        return {k: _json_safe(v) for k, v in asdict(self).items()}


@dataclass
class ImpulseReport:
    """Metrics of an impulse response, measured against its own peak.

    There is no setpoint: the response starts and ends at rest, so the
    settling band is ``settle_band · |peak_value|`` around zero.
    """

    peak_value: float
    peak_time: float
    rise_time: float | None        # 10 % → 90 % of the peak, on the rising edge
    settling_time: float           # Last time outside the ±band around zero
    oscillation_period: float | None = None
    final_value: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {k: _json_safe(v) for k, v in asdict(self).items()}


@dataclass
class StabilityVerdict:
    """Closed-loop stability of a plant under proportional gain ``kc``.

    ``critical_gain`` is the proportional gain at which stability is lost
    (``None`` when no finite bound exists).  Margins are ``None`` when the
    corresponding analysis was not run and ``math.inf`` when the open-loop
    response never reaches the crossover.
    """

    is_stable: bool
    critical_gain: float | None = None
    gain_margin_db: float | None = None
    phase_margin_deg: float | None = None
    encirclements: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: _json_safe(v) for k, v in asdict(self).items()}


@dataclass
class NyquistResult:
    encirclements: int               # Clockwise encirclements of −1
    open_loop_rhp_poles: int
    is_stable: bool                  # encirclements + open_loop_rhp_poles == 0
    min_distance_to_critical: float  # min |1 + L(jω)|
    omega: list[float] = field(default_factory=list)
    response: list[complex] = field(default_factory=list)


@dataclass
class BodeResult:
    """Bode-plot data and stability margins of ``L(s) = kc · G(s)``."""

    gain_margin_db: float
    phase_margin_deg: float
    phase_crossover_frequency: float | None  # ∠L = −180°
    gain_crossover_frequency: float | None   # |L| = 0 dB
    corner_frequency: float                  # 1/τ of the dominant lag
    omega: list[float] = field(default_factory=list)
    magnitude_db: list[float] = field(default_factory=list)
    phase_deg: list[float] = field(default_factory=list)
