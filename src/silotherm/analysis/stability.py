"""Stability analysis of the proportional silo loop.

Three independent tests of the unity-feedback loop ``L(s) = kc · G(s)``:

- **Routh-Hurwitz** on the delay-free closed-loop characteristic
  polynomial.  For a first-order plant this reduces to
  ``τs + (1 + kc·K)``, stable iff ``1 + kc·K > 0``, with the closed-form
  critical gain ``−1/K`` for a negative process gain.
- **Nyquist**: winding number of ``1 + L(jω)`` around the origin over a
  log-spaced grid mirrored to negative frequencies; clockwise turns
  count positive, and the loop is stable iff ``N + P = 0`` with ``P`` the
  open-loop right-half-plane poles.  Dead time is included.
- **Bode margins** of ``L(jω)``, dead time included.

Routh ignores dead time, so for a delayed plant the Nyquist and Bode
results are the authoritative ones; ``analyze`` requires both Routh and
Nyquist to agree before declaring the loop stable.
"""
from __future__ import annotations

import math

import numpy as np

from silotherm.analysis.metrics import BodeResult, NyquistResult, StabilityVerdict
from silotherm.errors import InvalidArgumentError
from silotherm.simulation.plant import PlantModel
from silotherm.utils.logging import get_logger

logger = get_logger(__name__)

_ZERO_TOL = 1e-12
_DB_TOL = 1e-9
_DECADES = 4.0
_N_POINTS = 4000


# ---------------------------------------------------------------------------
# Routh-Hurwitz
# ---------------------------------------------------------------------------


def routh_array(coeffs) -> np.ndarray:
    """Routh table of a polynomial given highest power first.

    A zero pivot is replaced by a small ε and a row of zeros by the
    derivative of the auxiliary polynomial, the usual textbook fixes, so
    the sign changes of the first column still count the right-half-plane
    roots.
    """
    table, _ = _routh(coeffs)
    return table


def count_rhp_roots(coeffs) -> int:
    """Number of roots with positive real part (sign changes in the first column)."""
    table, _ = _routh(coeffs)
    signs = np.sign(table[:, 0])
    signs = signs[signs != 0]
    return int(np.count_nonzero(np.diff(signs)))


def is_hurwitz(coeffs) -> bool:
    """True iff every root lies strictly in the left half plane."""
    table, degenerate = _routh(coeffs)
    first = table[:, 0]
    return not degenerate and bool(np.all(first > 0) or np.all(first < 0))


def closed_loop_polynomial(
    plant: PlantModel, kp: float = 0.0, ki: float = 0.0, kd: float = 0.0
) -> np.ndarray:
    """Characteristic polynomial of the delay-free PID loop around ``plant``.

    ``1 + C(s)G(s) = 0`` with ``C(s) = kp + ki/s + kd·s``, cleared of
    denominators.  Without integral action the spurious root at ``s = 0``
    is not introduced.
    """
    num, den = plant.transfer_function()
    if ki == 0.0:
        controller = np.array([kd, kp])
        poly = np.polyadd(den, np.polymul(controller, num))
    else:
        controller = np.array([kd, kp, ki])
        poly = np.polyadd(np.polymul([1.0, 0.0], den), np.polymul(controller, num))
    return np.trim_zeros(np.asarray(poly, dtype=np.float64), "f")


def routh_hurwitz(plant: PlantModel, kc: float) -> StabilityVerdict:
    """Routh-Hurwitz verdict for proportional gain ``kc`` (dead time ignored)."""
    if plant.resonant_mode is None:
        is_stable = 1.0 + kc * plant.gain > 0.0
        critical_gain = -1.0 / plant.gain if plant.gain < 0 else None
    else:
        is_stable = is_hurwitz(closed_loop_polynomial(plant, kp=kc))
        critical_gain = _critical_gain(*plant.transfer_function())

    verdict = StabilityVerdict(is_stable=bool(is_stable), critical_gain=critical_gain)
    logger.info(
        "Routh-Hurwitz verdict",
        kc=kc, is_stable=verdict.is_stable, critical_gain=critical_gain,
    )
    return verdict


# ---------------------------------------------------------------------------
# Frequency domain
# ---------------------------------------------------------------------------


def default_frequency_grid(plant: PlantModel, n_points: int = _N_POINTS) -> np.ndarray:
    """Log-spaced ω covering ±4 decades around the plant's break frequencies."""
    anchors = [plant.corner_frequency]
    if plant.resonant_mode is not None:
        anchors.append(plant.resonant_mode.natural_frequency)
    low = math.log10(min(anchors)) - _DECADES
    high = math.log10(max(anchors)) + _DECADES
    return np.logspace(low, high, n_points)


def nyquist(plant: PlantModel, kc: float = 1.0, omega=None) -> NyquistResult:
    """Nyquist criterion for ``L = kc · G`` (dead time included)."""
    omega = _positive_grid(plant, omega)
    _, den = plant.transfer_function()

    response = kc * plant.frequency_response(np.concatenate([[0.0], omega]))
    # L(−jω) = conj(L(jω)) for a real plant
    contour = np.concatenate([np.conj(response[:0:-1]), response])
    full_omega = np.concatenate([-omega[::-1], [0.0], omega])

    shifted = 1.0 + contour
    winding = np.sum(np.diff(np.unwrap(np.angle(shifted)))) / (2.0 * math.pi)
    encirclements = -int(round(winding))
    rhp_poles = count_rhp_roots(den)

    result = NyquistResult(
        encirclements=encirclements,
        open_loop_rhp_poles=rhp_poles,
        is_stable=encirclements + rhp_poles == 0,
        min_distance_to_critical=float(np.min(np.abs(shifted))),
        omega=full_omega.tolist(),
        response=contour.tolist(),
    )
    logger.info(
        "Nyquist verdict",
        kc=kc, encirclements=encirclements, open_loop_rhp_poles=rhp_poles,
        is_stable=result.is_stable,
    )
    return result


def bode_margins(plant: PlantModel, kc: float = 1.0, omega=None) -> BodeResult:
    """Gain and phase margins of ``L = kc · G``.

    The gain margin is taken at the −180° crossing closest to the critical
    point (largest ``|L|``); a negative DC loop gain counts as a crossing
    at ω = 0.  The phase margin is ``180° + ∠L`` at the 0 dB crossing
    with the smallest margin, with ∠L mapped to (−360°, 0].  Absent
    crossings give ``math.inf``; a curve that touches 0 dB without
    rising above it has no gain crossover.  A delay-free first-order
    plant with ``0 < kc·K ≤ 1`` therefore has both margins infinite.
    """
    omega = _positive_grid(plant, omega)
    response = kc * plant.frequency_response(omega)
    magnitude_db = 20.0 * np.log10(np.maximum(np.abs(response), 1e-300))
    phase_deg = np.degrees(np.unwrap(np.angle(response)))

    gm_db, pc_w = _gain_margin(plant, kc, omega, response)
    pm_deg, gc_w = _phase_margin(plant, kc, omega, magnitude_db)

    result = BodeResult(
        gain_margin_db=gm_db,
        phase_margin_deg=pm_deg,
        phase_crossover_frequency=pc_w,
        gain_crossover_frequency=gc_w,
        corner_frequency=plant.corner_frequency,
        omega=omega.tolist(),
        magnitude_db=magnitude_db.tolist(),
        phase_deg=phase_deg.tolist(),
    )
    logger.info(
        "Bode margins",
        kc=kc, gain_margin_db=gm_db, phase_margin_deg=pm_deg,
        phase_crossover=pc_w, gain_crossover=gc_w,
    )
    return result


def analyze(plant: PlantModel, kc: float, omega=None) -> StabilityVerdict:
    """Combined verdict: Routh critical gain, Nyquist encirclements, Bode margins."""
    routh = routh_hurwitz(plant, kc)
    nyq = nyquist(plant, kc, omega)
    bode = bode_margins(plant, kc, omega)
    return StabilityVerdict(
        is_stable=routh.is_stable and nyq.is_stable,
        critical_gain=routh.critical_gain,
        gain_margin_db=bode.gain_margin_db,
        phase_margin_deg=bode.phase_margin_deg,
        encirclements=nyq.encirclements,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _routh(coeffs) -> tuple[np.ndarray, bool]:
    """Routh table plus a flag set when ε or auxiliary-polynomial fixes were needed."""
    c = np.trim_zeros(np.asarray(coeffs, dtype=np.float64), "f")
    if c.size == 0:
        raise InvalidArgumentError("polynomial must have at least one non-zero coefficient")
    n_rows = c.size
    n_cols = (c.size + 1) // 2
    tol = _ZERO_TOL * float(np.max(np.abs(c)))

    table = np.zeros((n_rows, n_cols))
    table[0, : len(c[0::2])] = c[0::2]
    if n_rows > 1:
        table[1, : len(c[1::2])] = c[1::2]

    degenerate = False
    for i in range(2, n_rows):
        above = table[i - 1]
        if np.all(np.abs(above) <= tol):
            # Row of zeros: differentiate the auxiliary polynomial of row i−2
            order = n_rows - i + 1
            powers = order - 2 * np.arange(n_cols)
            table[i - 1] = table[i - 2] * np.maximum(powers, 0)
            degenerate = True
        if abs(table[i - 1, 0]) <= tol:
            table[i - 1, 0] = tol if tol > 0 else _ZERO_TOL
            degenerate = True
        pivot = table[i - 1, 0]
        for j in range(n_cols - 1):
            table[i, j] = (pivot * table[i - 2, j + 1] - table[i - 2, 0] * table[i - 1, j + 1]) / pivot

    if abs(table[-1, 0]) <= tol:
        degenerate = True
    return table, degenerate


def _critical_gain(num: np.ndarray, den: np.ndarray) -> float | None:
    """Smallest positive k for which ``den(s) + k·num(s)`` has a root on the jω axis.

    Such a root requires ``den(jω)/num(jω)`` to be real, i.e. the real
    roots ω ≥ 0 of ``Im(den(jω) · conj(num(jω)))``; each gives
    ``k = −den(jω)/num(jω)``.
    """
    den_w = _jw_polynomial(den)
    num_w = _jw_polynomial(num)
    imag_poly = np.trim_zeros(np.polymul(den_w, np.conj(num_w)).imag, "f")

    candidates = [0.0]
    if imag_poly.size > 1:
        for root in np.roots(imag_poly):
            if abs(root.imag) <= 1e-9 * max(1.0, abs(root.real)) and root.real > 0:
                candidates.append(float(root.real))

    gains = []
    for w in candidates:
        n_val = np.polyval(num, 1j * w)
        if abs(n_val) == 0.0:
            continue
        k = -np.polyval(den, 1j * w) / n_val
        if k.real > 0 and abs(k.imag) <= 1e-6 * abs(k.real):
            gains.append(float(k.real))
    return min(gains) if gains else None


def _jw_polynomial(coeffs: np.ndarray) -> np.ndarray:
    """Coefficients in ω of ``p(jω)`` (highest power first)."""
    coeffs = np.asarray(coeffs, dtype=np.complex128)
    powers = np.arange(coeffs.size - 1, -1, -1)
    return coeffs * (1j ** powers)


def _positive_grid(plant: PlantModel, omega) -> np.ndarray:
    if omega is None:
        return default_frequency_grid(plant)
    omega = np.asarray(omega, dtype=np.float64)
    if omega.ndim != 1 or omega.size < 2 or np.any(omega <= 0) or np.any(np.diff(omega) <= 0):
        raise InvalidArgumentError("omega must be a strictly increasing array of positive frequencies")
    return omega


def _interp_crossing(omega: np.ndarray, values: np.ndarray, k: int) -> float:
    """ω where ``values`` crosses zero between samples k and k+1 (log-linear)."""
    log_w = np.log10(omega[k : k + 2])
    v0, v1 = values[k], values[k + 1]
    if v1 == v0:
        return float(omega[k])
    return float(10.0 ** (log_w[0] + (0.0 - v0) * (log_w[1] - log_w[0]) / (v1 - v0)))


def _gain_margin(
    plant: PlantModel, kc: float, omega: np.ndarray, response: np.ndarray
) -> tuple[float, float | None]:
    crossings: list[tuple[float, float]] = []  # (|L|, ω)
    dc = kc * plant.dc_gain
    if dc < 0:
        crossings.append((abs(dc), 0.0))

    imag = response.imag
    for k in np.flatnonzero(np.diff(np.sign(imag))):
        w = _interp_crossing(omega, imag, int(k))
        value = kc * plant.frequency_response(np.array([w]))[0]
        if value.real < 0:
            crossings.append((abs(value), w))

    if not crossings:
        return math.inf, None
    mag, w = max(crossings)
    return float(-20.0 * math.log10(mag)), w


def _phase_margin(
    plant: PlantModel, kc: float, omega: np.ndarray, magnitude_db: np.ndarray
) -> tuple[float, float | None]:
    margins: list[tuple[float, float]] = []  # (PM, ω)
    above = (magnitude_db > _DB_TOL).astype(np.int8)
    for k in np.flatnonzero(np.diff(above)):
        w = _interp_crossing(omega, magnitude_db, int(k))
        value = kc * plant.frequency_response(np.array([w]))[0]
        phase = -((-math.degrees(np.angle(value))) % 360.0)
        margins.append((180.0 + phase, w))

    if not margins:
        return math.inf, None
    pm, w = min(margins)
    return float(pm), w
