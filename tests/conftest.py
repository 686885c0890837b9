"""Shared fixtures and pytest configuration for all silotherm tests."""

from __future__ import annotations

import pytest
from pathlib import Path

from silotherm.simulation import ClosedLoopSimulator, PlantModel, ResonantMode

PROJECT_ROOT = Path(__file__).parent.parent
CONFIGS_DIR = PROJECT_ROOT / "configs"
SCENARIOS_DIR = CONFIGS_DIR / "scenarios"

# Cooling-dominant silo identification used by the reference runs (hours)
SILO_GAIN = -15.0
SILO_TAU_H = 206.16
SILO_DEAD_TIME_H = 24.0


# ---------------------------------------------------------------------------
# Path fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def project_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture
def configs_dir() -> Path:
    return CONFIGS_DIR


@pytest.fixture
def scenarios_dir() -> Path:
    return SCENARIOS_DIR


# ---------------------------------------------------------------------------
# Plant fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def unit_lag() -> PlantModel:
    """Delay-free unit-gain first-order plant, τ = 10."""
    return PlantModel(gain=1.0, time_constant=10.0)


@pytest.fixture
def silo_plant() -> PlantModel:
    """Cooling-dominant silo: K = −15, τ = 206.16 h, θ = 24 h."""
    return PlantModel(gain=SILO_GAIN, time_constant=SILO_TAU_H, dead_time=SILO_DEAD_TIME_H)


@pytest.fixture
def resonant_plant() -> PlantModel:
    """Unit lag τ = 10 with a weak ringing mode (ωn = 0.6, ζ = 0.15)."""
    return PlantModel(
        gain=1.0,
        time_constant=10.0,
        resonant_mode=ResonantMode(natural_frequency=0.6, damping_ratio=0.15),
    )


@pytest.fixture
def simulator() -> ClosedLoopSimulator:
    return ClosedLoopSimulator()


# ---------------------------------------------------------------------------
# Pytest mark registration
# ---------------------------------------------------------------------------

def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "slow: long-horizon simulations")
