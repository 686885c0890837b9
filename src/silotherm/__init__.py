"""silotherm — grain-silo temperature control: plant model, controllers, analysis."""

__version__ = "0.1.0"

# Plant and simulation
from silotherm.simulation import ClosedLoopSimulator, PlantModel, ResonantMode, Trajectory

# Controllers
from silotherm.control import (
    DController,
    FuzzyInferenceEngine,
    FuzzyPIDController,
    IController,
    PController,
    PIController,
    PIDController,
)

# Analysis
from silotherm.analysis import (
    PerformanceReport,
    ScenarioRunner,
    StabilityVerdict,
    analyze,
    extract,
)
from silotherm.errors import InvalidArgumentError, NumericOverflowError, SiloThermError

__all__ = [
    # Simulation
    "ClosedLoopSimulator",
    "PlantModel",
    "ResonantMode",
    "Trajectory",
    # Control
    "PController",
    "IController",
    "DController",
    "PIController",
    "PIDController",
    "FuzzyPIDController",
    "FuzzyInferenceEngine",
    # Analysis
    "PerformanceReport",
    "StabilityVerdict",
    "ScenarioRunner",
    "analyze",
    "extract",
    # Errors
    "SiloThermError",
    "InvalidArgumentError",
    "NumericOverflowError",
]
