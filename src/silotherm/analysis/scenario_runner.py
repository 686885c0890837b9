"""ScenarioRunner — runs one validated scenario end to end.

A scenario is simulated (closed loop when it names a controller, open
loop or impulse response otherwise), its trajectory reduced to a
PerformanceReport (ImpulseReport for impulse runs) and, when
a proportional gain is available, the loop is put through the combined
Routh/Nyquist/Bode analysis.  Nothing is written to disk; callers decide
what to do with ``ScenarioResult.to_dict()``.

Typical usage::

    from silotherm.analysis import ScenarioRunner
    from silotherm.utils import ConfigLoader

    config = ConfigLoader().load_scenario("configs/scenarios/fuzzy_pid.yaml")
    result = ScenarioRunner().run(config)
    print(result.to_dict())
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from silotherm.analysis.metrics import ImpulseReport, PerformanceReport, StabilityVerdict
from silotherm.analysis.performance import extract, extract_impulse
from silotherm.analysis.stability import analyze
from silotherm.control import (
    Controller,
    DController,
    FuzzyInferenceEngine,
    FuzzyPIDController,
    IController,
    PController,
    PIController,
    PIDController,
    default_rule_table,
)
from silotherm.simulation import (
    ClosedLoopSimulator,
    PlantModel,
    ResonantMode,
    Trajectory,
    piecewise_input,
)
from silotherm.utils.config import ControllerConfig, PlantConfig, ScenarioConfig
from silotherm.utils.logging import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_plant(cfg: PlantConfig) -> PlantModel:
    resonant = None
    if cfg.resonant_mode is not None:
        resonant = ResonantMode(
            natural_frequency=cfg.resonant_mode.natural_frequency,
            damping_ratio=cfg.resonant_mode.damping_ratio,
        )
    return PlantModel(
        gain=cfg.gain,
        time_constant=cfg.time_constant,
        dead_time=cfg.dead_time,
        resonant_mode=resonant,
        resonant_weight=cfg.resonant_weight,
    )


def build_controller(cfg: ControllerConfig) -> Controller:
    """Instantiate the controller variant named by ``cfg.kind``."""
    if cfg.kind == "P":
        return PController(kp=cfg.kp)
    if cfg.kind == "I":
        return IController(ki=cfg.ki, integral_limit=cfg.integral_limit)
    if cfg.kind == "D":
        return DController(kd=cfg.kd)
    if cfg.kind == "PI":
        return PIController(kp=cfg.kp, ki=cfg.ki, integral_limit=cfg.integral_limit)
    if cfg.kind == "PID":
        return PIDController(kp=cfg.kp, ki=cfg.ki, kd=cfg.kd, integral_limit=cfg.integral_limit)
    table = default_rule_table(
        delta_kp_range=cfg.fuzzy.delta_kp_range,
        delta_ki_range=cfg.fuzzy.delta_ki_range,
        delta_kd_range=cfg.fuzzy.delta_kd_range,
    )
    return FuzzyPIDController(
        kp=cfg.kp,
        ki=cfg.ki,
        kd=cfg.kd,
        engine=FuzzyInferenceEngine(table),
        sensor_delay=cfg.sensor_delay,
        integral_limit=cfg.integral_limit,
    )


def stability_gain(config: ScenarioConfig) -> float | None:
    """Proportional gain to analyse: explicit ``stability_gain``, else the controller's kp."""
    if config.stability_gain is not None:
        return config.stability_gain
    if config.controller is not None and config.controller.kp != 0.0:
        return config.controller.kp
    return None


# ---------------------------------------------------------------------------
# ScenarioRunner
# ---------------------------------------------------------------------------


@dataclass
class ScenarioResult:
    name: str
    controller: str
    trajectory: Trajectory
    performance: PerformanceReport | ImpulseReport
    stability: StabilityVerdict | None = None
    stability_gain: float | None = None

    def to_dict(self, include_trajectory: bool = False) -> dict[str, Any]:
        """JSON-ready summary; the full trajectory only on request."""
        summary: dict[str, Any] = {
            "name": self.name,
            "controller": self.controller,
            "n_samples": len(self.trajectory),
            "final_output": self.trajectory.final_output,
            "performance": self.performance.to_dict(),
            "stability_gain": self.stability_gain,
            "stability": self.stability.to_dict() if self.stability is not None else None,
        }
        if include_trajectory:
            summary["trajectory"] = self.trajectory.to_dict()
        return summary


class ScenarioRunner:
    """Simulates and analyses ScenarioConfig objects.

    Every ``run`` builds fresh plant and controller objects, so one runner
    can be reused across scenarios.
    """

    def __init__(self, simulator: ClosedLoopSimulator | None = None) -> None:
        self._simulator = simulator if simulator is not None else ClosedLoopSimulator()

    def run(self, config: ScenarioConfig) -> ScenarioResult:
        plant = build_plant(config.plant)
        sim = config.simulation

        if sim.impulse_area is not None:
            trajectory = self._simulator.run_impulse(
                plant, area=sim.impulse_area, total_duration=sim.total_duration, dt=sim.dt,
            )
            return self._finish(
                config, plant, "impulse", trajectory,
                extract_impulse(trajectory, settle_band=sim.settle_band),
            )

        if config.controller is None:
            label = "open_loop"
            trajectory = self._simulator.run_open_loop(
                plant,
                control_input=piecewise_input(sim.input_schedule()),
                total_duration=sim.total_duration,
                dt=sim.dt,
                initial_output=sim.initial_output,
                reference=sim.setpoint,
            )
        else:
            controller = build_controller(config.controller)
            label = controller.name
            trajectory = self._simulator.run(
                plant,
                controller,
                setpoint=sim.setpoint,
                total_duration=sim.total_duration,
                dt=sim.dt,
                initial_output=sim.initial_output,
            )

        performance = extract(trajectory, sim.setpoint, settle_band=sim.settle_band)
        return self._finish(config, plant, label, trajectory, performance)

    def _finish(
        self,
        config: ScenarioConfig,
        plant: PlantModel,
        label: str,
        trajectory: Trajectory,
        performance: PerformanceReport | ImpulseReport,
    ) -> ScenarioResult:
        kc = stability_gain(config)
        verdict = analyze(plant, kc) if kc is not None else None

        logger.info(
            "Scenario complete",
            scenario=config.name,
            controller=label,
            final_output=trajectory.final_output,
            settling_time=performance.settling_time,
            is_stable=verdict.is_stable if verdict is not None else None,
        )
        return ScenarioResult(
            name=config.name,
            controller=label,
            trajectory=trajectory,
            performance=performance,
            stability=verdict,
            stability_gain=kc,
        )
