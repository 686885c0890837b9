"""ConfigLoader — typed YAML scenario configuration with Pydantic v2 validation.

A scenario file describes exactly one run: the plant, an optional
controller (omitted for open-loop step, fault and impulse runs), the
simulation settings and, optionally, the proportional gain to use for
the stability analysis.  Relative paths resolve against PROJECT_ROOT.

Example (``configs/scenarios/p_control.yaml``)::

    name: p_control
    plant:
      gain: 1.0
      time_constant: 742176.0
      resonant_mode: {natural_frequency: 8.0845e-6, damping_ratio: 0.15}
    controller: {kind: P, kp: 10.0}
    simulation: {setpoint: 15.0, total_duration: 3456000.0, dt: 60.0}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

# PROJECT_ROOT: three parents up from this file:
#   src/silotherm/utils/config.py → src/silotherm/utils → src/silotherm → src → PROJECT_ROOT
PROJECT_ROOT = Path(__file__).parents[3]

ControllerKind = Literal["P", "I", "D", "PI", "PID", "FuzzyPID"]


class ConfigError(Exception):
    """Raised for missing files, invalid YAML, or Pydantic validation failures."""


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class ResonantModeConfig(BaseModel):
    natural_frequency: float = Field(gt=0.0)
    damping_ratio: float = Field(gt=0.0, lt=1.0)


class PlantConfig(BaseModel):
    """Grain-mass thermal response: dominant lag, dead time, optional ringing."""

    gain: float
    time_constant: float = Field(gt=0.0)
    dead_time: float = Field(default=0.0, ge=0.0)
    resonant_mode: ResonantModeConfig | None = None
    resonant_weight: float = 0.25


class FuzzyConfig(BaseModel):
    """Output half-ranges of the fuzzy gain adjustments (ΔKp, ΔKi, ΔKd)."""

    delta_kp_range: float = Field(default=0.02, gt=0.0)
    delta_ki_range: float = Field(default=0.0001, gt=0.0)
    delta_kd_range: float = Field(default=0.01, gt=0.0)


class ControllerConfig(BaseModel):
    kind: ControllerKind
    kp: float = 0.0
    ki: float = 0.0
    kd: float = 0.0
    integral_limit: float | None = Field(default=None, gt=0.0)
    # FuzzyPID only
    sensor_delay: float = Field(default=0.0, ge=0.0)
    fuzzy: FuzzyConfig = Field(default_factory=FuzzyConfig)


class InputStep(BaseModel):
    """Plant input ``value`` applied from ``time`` until the next step."""

    time: float = Field(ge=0.0)
    value: float


class SimulationConfig(BaseModel):
    # Not used by impulse runs, required otherwise
    setpoint: float | None = None
    total_duration: float = Field(gt=0.0)
    dt: float = Field(gt=0.0)
    initial_output: float = 0.0
    # Open-loop plant input: a constant, or a step schedule for fault runs
    open_loop_input: float | list[InputStep] | None = None
    # Area of the single-step input pulse of an impulse-response run
    impulse_area: float | None = Field(default=None, gt=0.0)
    settle_band: float = Field(default=0.02, gt=0.0, lt=1.0)

    @field_validator("setpoint")
    @classmethod
    def _setpoint_nonzero(cls, v: float | None) -> float | None:
        if v == 0.0:
            raise ValueError("setpoint must be non-zero (metrics are relative to it)")
        return v

    @field_validator("open_loop_input")
    @classmethod
    def _schedule_ordered(cls, v: Any) -> Any:
        if isinstance(v, list):
            if not v:
                raise ValueError("open_loop_input schedule must have at least one step")
            times = [step.time for step in v]
            if any(b <= a for a, b in zip(times, times[1:])):
                raise ValueError("open_loop_input step times must be strictly increasing")
        return v

    def input_schedule(self) -> list[tuple[float, float]] | None:
        """``open_loop_input`` as ``(time, value)`` steps; a constant is one step at t = 0."""
        if self.open_loop_input is None:
            return None
        if isinstance(self.open_loop_input, list):
            return [(step.time, step.value) for step in self.open_loop_input]
        return [(0.0, self.open_loop_input)]


class ScenarioConfig(BaseModel):
    """One fully specified simulation + analysis scenario."""

    name: str
    description: str = ""
    plant: PlantConfig
    controller: ControllerConfig | None = None
    simulation: SimulationConfig
    # Proportional gain used for Routh/Nyquist/Bode; defaults to the controller's kp
    stability_gain: float | None = None

    @model_validator(mode="after")
    def _inputs_consistent(self) -> "ScenarioConfig":
        sim = self.simulation
        if sim.impulse_area is not None:
            if self.controller is not None:
                raise ValueError("simulation.impulse_area applies to open-loop scenarios only")
            if sim.open_loop_input is not None:
                raise ValueError("give either simulation.open_loop_input or simulation.impulse_area")
            return self
        if self.controller is None and sim.open_loop_input is None:
            raise ValueError(
                "open-loop scenario (no controller) requires simulation.open_loop_input"
                " or simulation.impulse_area"
            )
        if sim.setpoint is None:
            raise ValueError("simulation.setpoint is required unless impulse_area is given")
        return self


# ---------------------------------------------------------------------------
# ConfigLoader
# ---------------------------------------------------------------------------


class ConfigLoader:
    """Loads and validates YAML scenario files.

    Usage::

        loader = ConfigLoader()
        scenario = loader.load_scenario("configs/scenarios/fuzzy_pid.yaml")
    """

    def load(self, path: str | Path) -> dict[str, Any]:
        """Load a YAML file and return it as a plain dict.

        Raises:
            ConfigError: if the file does not exist, is not valid YAML, or is
                not a non-empty mapping.
        """
        resolved = self._resolve(path)
        if not resolved.exists():
            raise ConfigError(f"Config file not found: {resolved}")
        try:
            with resolved.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML parse error in {resolved}: {exc}") from exc
        if data is None:
            raise ConfigError(f"Config file is empty: {resolved}")
        if not isinstance(data, dict):
            raise ConfigError(
                f"Expected a YAML mapping at top level in {resolved}, got {type(data).__name__}"
            )
        return data

    def load_scenario(self, path: str | Path) -> ScenarioConfig:
        """Load and validate a scenario file → ScenarioConfig.

        Raises:
            ConfigError: on file/parse/validation failure.
        """
        data = self.load(path)
        return self.parse_scenario(data, source=path)

    def parse_scenario(
        self, data: dict[str, Any], source: str | Path = "<dict>"
    ) -> ScenarioConfig:
        """Validate an already-loaded mapping → ScenarioConfig."""
        from pydantic import ValidationError

        try:
            return ScenarioConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"Validation failed for {source}:\n{exc}") from exc

    @staticmethod
    def _resolve(path: str | Path) -> Path:
        """Absolute paths are used as-is; relative paths resolve against PROJECT_ROOT."""
        p = Path(path)
        if p.is_absolute():
            return p
        return PROJECT_ROOT / p
