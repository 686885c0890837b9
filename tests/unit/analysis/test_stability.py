"""Unit tests for silotherm.analysis.stability."""
from __future__ import annotations

import math

import numpy as np
import pytest

from silotherm.analysis.stability import (
    analyze,
    bode_margins,
    closed_loop_polynomial,
    count_rhp_roots,
    is_hurwitz,
    nyquist,
    routh_array,
    routh_hurwitz,
)
from silotherm.errors import InvalidArgumentError
from silotherm.simulation import PlantModel, ResonantMode


# ─── Routh array ───────────────────────────────────────────────────────────────


def test_routh_array_of_stable_cubic():
    table = routh_array([1.0, 2.0, 3.0, 1.0])
    np.testing.assert_allclose(table[:, 0], [1.0, 2.0, 2.5, 1.0])


@pytest.mark.parametrize(
    "roots, expected",
    [
        ([-1.0, -2.0, -3.0], 0),
        ([1.0, -2.0, -3.0], 1),
        ([1.0, 2.0, -3.0], 2),        # zero pivot (ε substitution)
        ([0.5, 1.5, 2.0, -4.0], 3),
    ],
)
def test_count_rhp_roots(roots, expected):
    assert count_rhp_roots(np.poly(roots)) == expected


def test_is_hurwitz():
    assert is_hurwitz([1.0, 3.0, 2.0])
    assert not is_hurwitz([1.0, -3.0, 2.0])
    # (s + 1)(s² + 1): roots on the imaginary axis
    assert not is_hurwitz([1.0, 1.0, 1.0, 1.0])


def test_empty_polynomial_rejected():
    with pytest.raises(InvalidArgumentError):
        routh_array([0.0, 0.0])


# ─── Closed-loop polynomial ────────────────────────────────────────────────────


def test_proportional_closed_loop_polynomial(unit_lag):
    np.testing.assert_allclose(closed_loop_polynomial(unit_lag, kp=3.0), [10.0, 4.0])


def test_integral_closed_loop_polynomial(resonant_plant):
    k = 0.5
    poly = closed_loop_polynomial(resonant_plant, ki=k)
    np.testing.assert_allclose(poly, [10.0, 2.8, 3.78 + k, 0.36 + 1.08 * k, 0.45 * k])


@pytest.mark.parametrize("ki, stable", [(0.05, True), (0.5, True), (0.7, False), (2.0, False)])
def test_integral_control_stability_threshold(resonant_plant, ki, stable):
    assert is_hurwitz(closed_loop_polynomial(resonant_plant, ki=ki)) is stable


# ─── Routh-Hurwitz verdict ─────────────────────────────────────────────────────


def test_silo_reference_scenario_is_stable(silo_plant):
    verdict = routh_hurwitz(silo_plant, 0.04)
    assert verdict.is_stable
    assert verdict.critical_gain == pytest.approx(1.0 / 15.0)


def test_gain_above_critical_is_unstable(silo_plant):
    assert not routh_hurwitz(silo_plant, 0.07).is_stable


def test_positive_gain_has_no_critical_gain(unit_lag):
    verdict = routh_hurwitz(unit_lag, 1000.0)
    assert verdict.is_stable
    assert verdict.critical_gain is None


def test_resonant_plant_critical_gain():
    plant = PlantModel(
        gain=-1.0,
        time_constant=10.0,
        resonant_mode=ResonantMode(natural_frequency=0.6, damping_ratio=0.15),
    )
    # DC bound 1 + kc·(K + w) > 0 → kc < 4/3; the cubic Hurwitz bound is ≈ 3.83
    verdict = routh_hurwitz(plant, 1.2)
    assert verdict.is_stable
    assert verdict.critical_gain == pytest.approx(4.0 / 3.0, rel=1e-6)
    assert not routh_hurwitz(plant, 1.5).is_stable


# ─── Nyquist ───────────────────────────────────────────────────────────────────


def test_nyquist_stable_first_order(unit_lag):
    result = nyquist(unit_lag, kc=5.0)
    assert result.encirclements == 0
    assert result.open_loop_rhp_poles == 0
    assert result.is_stable


def test_nyquist_detects_encirclement():
    plant = PlantModel(gain=-1.0, time_constant=10.0)
    result = nyquist(plant, kc=2.0)
    assert result.encirclements == 1
    assert not result.is_stable


def test_nyquist_silo_with_dead_time(silo_plant):
    result = nyquist(silo_plant, kc=0.04)
    assert result.is_stable
    assert result.encirclements == 0
    # Closest approach is the DC point L(0) = −0.6
    assert result.min_distance_to_critical == pytest.approx(0.4, abs=1e-6)


def test_nyquist_silo_above_critical_gain(silo_plant):
    assert not nyquist(silo_plant, kc=0.1).is_stable


def test_nyquist_contour_is_mirrored(unit_lag):
    result = nyquist(unit_lag, omega=np.logspace(-2, 2, 50))
    assert len(result.omega) == len(result.response) == 101
    assert result.omega[0] == pytest.approx(-100.0)
    assert result.response[0] == pytest.approx(np.conj(result.response[-1]))


@pytest.mark.parametrize("omega", [[1.0], [0.0, 1.0], [2.0, 1.0]])
def test_invalid_frequency_grid_rejected(unit_lag, omega):
    with pytest.raises(InvalidArgumentError):
        nyquist(unit_lag, omega=omega)


# ─── Bode ──────────────────────────────────────────────────────────────────────


@pytest.mark.parametrize("kc", [0.1, 0.5, 1.0])
def test_first_order_margins_are_infinite_up_to_unit_loop_gain(unit_lag, kc):
    result = bode_margins(unit_lag, kc)
    assert math.isinf(result.gain_margin_db)
    assert math.isinf(result.phase_margin_deg)
    assert result.phase_crossover_frequency is None
    assert result.gain_crossover_frequency is None
    assert result.corner_frequency == pytest.approx(0.1)


def test_first_order_above_unit_loop_gain_has_phase_margin(unit_lag):
    result = bode_margins(unit_lag, kc=2.0)
    # |L| = 1 at τω = √3, where ∠L = −60°
    assert result.gain_crossover_frequency == pytest.approx(math.sqrt(3.0) / 10.0, rel=1e-3)
    assert result.phase_margin_deg == pytest.approx(120.0, abs=0.05)
    assert math.isinf(result.gain_margin_db)
    assert result.phase_crossover_frequency is None


def test_negative_gain_lag_margins_agree_with_routh_and_nyquist():
    plant = PlantModel(gain=-1.0, time_constant=10.0)
    result = bode_margins(plant, kc=2.0)
    # L(0) = −2 sits on −180°: negative gain margin
    assert result.phase_crossover_frequency == 0.0
    assert result.gain_margin_db == pytest.approx(-20.0 * math.log10(2.0), rel=1e-9)
    # ∠L = 180° − 60° at the 0 dB crossing
    assert result.gain_crossover_frequency == pytest.approx(math.sqrt(3.0) / 10.0, rel=1e-3)
    assert result.phase_margin_deg == pytest.approx(-60.0, abs=0.05)
    assert not routh_hurwitz(plant, 2.0).is_stable
    assert not nyquist(plant, kc=2.0).is_stable


def test_negative_gain_lag_below_critical_gain_keeps_positive_margin():
    plant = PlantModel(gain=-1.0, time_constant=10.0)
    result = bode_margins(plant, kc=0.5)
    assert result.gain_margin_db == pytest.approx(20.0 * math.log10(2.0), rel=1e-9)
    assert math.isinf(result.phase_margin_deg)


def test_margins_of_delayed_lag():
    plant = PlantModel(gain=1.0, time_constant=1.0, dead_time=1.0)
    result = bode_margins(plant, kc=2.0)
    # |L| = 1 at ω = √3; ∠L = −atan(√3) − √3 rad
    assert result.gain_crossover_frequency == pytest.approx(math.sqrt(3.0), rel=1e-3)
    assert result.phase_margin_deg == pytest.approx(180.0 - 60.0 - math.degrees(math.sqrt(3.0)), abs=0.1)
    # ∠L = −180° where atan(ω) + ω = π
    assert result.phase_crossover_frequency == pytest.approx(2.029, rel=1e-3)
    assert result.gain_margin_db == pytest.approx(1.07, abs=0.02)


def test_silo_gain_margin_at_dc(silo_plant):
    result = bode_margins(silo_plant, kc=0.04)
    assert result.gain_margin_db == pytest.approx(-20.0 * math.log10(0.6), rel=1e-6)
    assert result.phase_crossover_frequency == 0.0
    assert math.isinf(result.phase_margin_deg)


def test_silo_gain_margin_does_not_depend_on_dead_time(silo_plant):
    no_delay = PlantModel(gain=silo_plant.gain, time_constant=silo_plant.time_constant)
    delayed = bode_margins(silo_plant, kc=0.04)
    undelayed = bode_margins(no_delay, kc=0.04)
    assert undelayed.gain_margin_db == pytest.approx(delayed.gain_margin_db, rel=1e-9)
    assert undelayed.gain_margin_db == pytest.approx(4.437, abs=1e-3)


def test_bode_data_lengths(unit_lag):
    result = bode_margins(unit_lag, omega=np.logspace(-3, 1, 40))
    assert len(result.omega) == len(result.magnitude_db) == len(result.phase_deg) == 40
    assert result.magnitude_db[0] == pytest.approx(0.0, abs=1e-3)


# ─── Combined ──────────────────────────────────────────────────────────────────


def test_analyze_silo_reference(silo_plant):
    verdict = analyze(silo_plant, 0.04)
    assert verdict.is_stable
    assert verdict.critical_gain == pytest.approx(0.0667, abs=1e-4)
    assert verdict.encirclements == 0
    assert verdict.gain_margin_db > 0.0
    assert math.isinf(verdict.phase_margin_deg)


def test_analyze_first_order_reports_infinite_margins(unit_lag):
    verdict = analyze(unit_lag, 0.5)
    assert verdict.is_stable
    assert math.isinf(verdict.gain_margin_db)
    assert math.isinf(verdict.phase_margin_deg)
    assert verdict.to_dict()["gain_margin_db"] == "inf"


def test_analyze_first_order_high_gain_reports_phase_margin(unit_lag):
    verdict = analyze(unit_lag, 2.0)
    assert verdict.is_stable
    assert math.isinf(verdict.gain_margin_db)
    assert verdict.phase_margin_deg == pytest.approx(120.0, abs=0.05)
