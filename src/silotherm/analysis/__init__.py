"""silotherm.analysis — performance and stability analysis of silo control loops.

Public API
----------
PerformanceReport
    Rise/settling time, overshoot, steady-state error, peaks, error integrals.
StabilityVerdict, NyquistResult, BodeResult
    Outputs of the Routh-Hurwitz, Nyquist and Bode analyses.
extract, extract_impulse
    Trajectory + setpoint → PerformanceReport; impulse response → ImpulseReport.
routh_hurwitz, nyquist, bode_margins, analyze
    Stability tests of the proportional loop around a PlantModel.
ScenarioRunner
    Simulates and analyses a validated ScenarioConfig.

Quick start::

    from silotherm.analysis import ScenarioRunner
    from silotherm.utils import ConfigLoader

    config = ConfigLoader().load_scenario("configs/scenarios/hurwitz.yaml")
    print(ScenarioRunner().run(config).to_dict())
"""
from silotherm.analysis.metrics import (
    BodeResult,
    ImpulseReport,
    NyquistResult,
    PerformanceReport,
    StabilityVerdict,
)
from silotherm.analysis.performance import extract, extract_impulse
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
from silotherm.analysis.scenario_runner import (
    ScenarioResult,
    ScenarioRunner,
    build_controller,
    build_plant,
)

__all__ = [
    "BodeResult",
    "ImpulseReport",
    "NyquistResult",
    "PerformanceReport",
    "StabilityVerdict",
    "extract",
    "extract_impulse",
    "analyze",
    "bode_margins",
    "closed_loop_polynomial",
    "count_rhp_roots",
    "is_hurwitz",
    "nyquist",
    "routh_array",
    "routh_hurwitz",
    "ScenarioResult",
    "ScenarioRunner",
    "build_controller",
    "build_plant",
]
