"""Performance-metric extraction from a simulated trajectory.

Every metric is measured against the setpoint (not against the final
value), so a loop with steady-state offset shows it both in
``steady_state_error`` and in ``settling_time``.  Metrics are
direction-aware: for a negative setpoint, "reaching 90 %" means falling
to 0.9·sp and overshoot means going below sp.

``extract_impulse`` handles responses that return to rest, where the
peak takes the place of the setpoint.
"""
from __future__ import annotations

import numpy as np
from scipy.integrate import trapezoid
from scipy.signal import find_peaks

from silotherm.analysis.metrics import ImpulseReport, PerformanceReport
from silotherm.errors import InvalidArgumentError
from silotherm.simulation.trajectory import Trajectory


def extract(
    trajectory: Trajectory,
    setpoint: float,
    settle_band: float = 0.02,
) -> PerformanceReport:
    """Compute the PerformanceReport of ``trajectory`` against ``setpoint``.

    Parameters
    ----------
    trajectory:
        Simulated response (time-ordered samples).
    setpoint:
        Target output value; must be non-zero.
    settle_band:
        Settling band as a fraction of ``|setpoint|`` (default 2 %).

    Raises
    ------
    InvalidArgumentError
        If the trajectory is empty, ``setpoint`` is zero, or
        ``settle_band`` is not positive.
    """
    if len(trajectory) == 0:
        raise InvalidArgumentError("cannot extract metrics from an empty trajectory")
    setpoint = float(setpoint)
    if setpoint == 0.0:
        raise InvalidArgumentError("performance metrics are undefined for a zero setpoint")
    if not settle_band > 0.0:
        raise InvalidArgumentError(f"settle_band must be positive, got {settle_band}")

    time_s = trajectory.time_array
    output = trajectory.output_array
    sign = 1.0 if setpoint > 0 else -1.0
    magnitude = abs(setpoint)
    progress = sign * output  # grows towards |setpoint|

    # Rise time: 10 % → 90 % of the setpoint
    idx_10 = _first_crossing(progress, 0.10 * magnitude)
    idx_90 = _first_crossing(progress, 0.90 * magnitude)
    rise_time = None
    if idx_10 is not None and idx_90 is not None:
        rise_time = float(time_s[idx_90] - time_s[idx_10])

    # Settling time: last sample outside ±band around the setpoint
    outside = np.abs(output - setpoint) > settle_band * magnitude
    settling_time = float(time_s[np.flatnonzero(outside)[-1]]) if outside.any() else 0.0

    # Overshoot
    peak_idx = int(np.argmax(progress))
    peak_excess = float(progress[peak_idx]) - magnitude
    overshoot_percent = 100.0 * peak_excess / magnitude if peak_excess > 0 else 0.0

    error = setpoint - output
    return PerformanceReport(
        rise_time=rise_time,
        settling_time=settling_time,
        overshoot_percent=overshoot_percent,
        steady_state_error=abs(setpoint - float(output[-1])),
        peak_value=float(output[peak_idx]),
        peak_time=float(time_s[peak_idx]),
        oscillation_period=_oscillation_period(time_s, progress),
        iae=float(trapezoid(np.abs(error), time_s)),
        ise=float(trapezoid(error ** 2, time_s)),
        itae=float(trapezoid(time_s * np.abs(error), time_s)),
    )


def extract_impulse(trajectory: Trajectory, settle_band: float = 0.02) -> ImpulseReport:
    """Compute the ImpulseReport of a response that starts and ends at rest.

    The peak is the sample of largest magnitude; rise time runs from 10 %
    to 90 % of it before the peak, and the response has settled once it
    stays within ``settle_band · |peak|`` of zero.

    Raises
    ------
    InvalidArgumentError
        If the trajectory is empty or identically zero, or ``settle_band``
        is not positive.
    """
    if len(trajectory) == 0:
        raise InvalidArgumentError("cannot extract metrics from an empty trajectory")
    if not settle_band > 0.0:
        raise InvalidArgumentError(f"settle_band must be positive, got {settle_band}")

    time_s = trajectory.time_array
    output = trajectory.output_array
    peak_idx = int(np.argmax(np.abs(output)))
    peak = float(output[peak_idx])
    if peak == 0.0:
        raise InvalidArgumentError("impulse response is identically zero")

    # Orient the response so that the peak is positive
    progress = np.sign(peak) * output
    magnitude = abs(peak)

    rising = progress[: peak_idx + 1]
    idx_10 = _first_crossing(rising, 0.10 * magnitude)
    idx_90 = _first_crossing(rising, 0.90 * magnitude)
    rise_time = None
    if idx_10 is not None and idx_90 is not None:
        rise_time = float(time_s[idx_90] - time_s[idx_10])

    outside = np.abs(output) > settle_band * magnitude
    settling_time = float(time_s[np.flatnonzero(outside)[-1]])

    return ImpulseReport(
        peak_value=peak,
        peak_time=float(time_s[peak_idx]),
        rise_time=rise_time,
        settling_time=settling_time,
        oscillation_period=_oscillation_period(time_s, progress),
        final_value=float(output[-1]),
    )


def _first_crossing(arr: np.ndarray, threshold: float) -> int | None:
    """Index of the first element at or above ``threshold``."""
    indices = np.flatnonzero(arr >= threshold)
    return int(indices[0]) if len(indices) > 0 else None


def _oscillation_period(time_s: np.ndarray, progress: np.ndarray) -> float | None:
    """Mean spacing of successive local maxima, ``None`` with fewer than two."""
    peaks, _ = find_peaks(progress)
    if len(peaks) < 2:
        return None
    return float(np.mean(np.diff(time_s[peaks])))
