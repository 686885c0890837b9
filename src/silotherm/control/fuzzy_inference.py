"""Mamdani fuzzy inference for self-tuning PID gains.

Two inputs, three outputs, 49 rules:

- error ``e`` on [−10, 10] °C and error rate ``de/dt`` on [−0.5, 0.5]
  °C/h, each covered by seven triangular terms
  NB, NM, NS, ZO, PS, PM, PB (shoulders at the domain ends, neighbours
  crossing at 0.5 so every point of the domain fires at least one term);
- gain adjustments ΔKp, ΔKi, ΔKd, each with the same seven terms over a
  symmetric configurable range.

Inference: firing strength = min(μ_e, μ_de) per rule, max-aggregation of
the clipped consequents on a discretised output universe, centroid
defuzzification.  Membership functions and the centroid come from
scikit-fuzzy.

The rule tables are the classic fuzzy-PID tuning tables: large |e| →
raise Kp and lower Ki (fast approach without windup); small |e| → lower
Kp, raise Ki (remove residual error); Kd is raised where e and de/dt
disagree in sign, to damp the approach.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

import numpy as np
import skfuzzy as fuzz

from silotherm.errors import InvalidArgumentError

TERMS: tuple[str, ...] = ("NB", "NM", "NS", "ZO", "PS", "PM", "PB")

# Rows: error term, columns: error-rate term (both in TERMS order).
_DELTA_KP_RULES = (
    ("PB", "PB", "PM", "PM", "PS", "ZO", "ZO"),
    ("PB", "PB", "PM", "PS", "PS", "ZO", "NS"),
    ("PM", "PM", "PM", "PS", "ZO", "NS", "NS"),
    ("PM", "PM", "PS", "ZO", "NS", "NM", "NM"),
    ("PS", "PS", "ZO", "NS", "NS", "NM", "NM"),
    ("PS", "ZO", "NS", "NM", "NM", "NM", "NB"),
    ("ZO", "ZO", "NM", "NM", "NM", "NB", "NB"),
)
_DELTA_KI_RULES = (
    ("NB", "NB", "NM", "NM", "NS", "ZO", "ZO"),
    ("NB", "NB", "NM", "NS", "NS", "ZO", "ZO"),
    ("NB", "NM", "NS", "NS", "ZO", "PS", "PS"),
    ("NM", "NM", "NS", "ZO", "PS", "PM", "PM"),
    ("NM", "NS", "ZO", "PS", "PS", "PM", "PB"),
    ("ZO", "ZO", "PS", "PS", "PM", "PB", "PB"),
    ("ZO", "ZO", "PS", "PM", "PM", "PB", "PB"),
)
_DELTA_KD_RULES = (
    ("PS", "NS", "NB", "NB", "NB", "NM", "PS"),
    ("PS", "NS", "NB", "NM", "NM", "NS", "ZO"),
    ("ZO", "NS", "NM", "NM", "NS", "NS", "ZO"),
    ("ZO", "NS", "NS", "NS", "NS", "NS", "ZO"),
    ("ZO", "ZO", "ZO", "ZO", "ZO", "ZO", "ZO"),
    ("PB", "NS", "PS", "PS", "PS", "PS", "PB"),
    ("PB", "PM", "PM", "PM", "PS", "PS", "PB"),
)


@dataclass(frozen=True)
class FuzzyVariable:
    """A bounded numeric domain partitioned into triangular linguistic terms."""

    name: str
    low: float
    high: float
    terms: tuple[tuple[str, tuple[float, float, float]], ...]

    def __post_init__(self) -> None:
        if not self.high > self.low:
            raise InvalidArgumentError(
                f"{self.name}: domain upper bound must exceed lower bound"
            )
        for label, (a, b, c) in self.terms:
            if not a <= b <= c:
                raise InvalidArgumentError(
                    f"{self.name}.{label}: breakpoints must satisfy a <= b <= c"
                )

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(label for label, _ in self.terms)

    def clamp(self, value: float) -> float:
        return float(np.clip(value, self.low, self.high))

    def membership(self, value: float) -> dict[str, float]:
        """Degree of membership of ``value`` (clamped to the domain) in every term."""
        x = np.array([self.clamp(value)])
        return {label: float(fuzz.trimf(x, abc)[0]) for label, abc in self.terms}

    def universe(self, resolution: int) -> np.ndarray:
        return np.linspace(self.low, self.high, resolution)

    @classmethod
    def evenly_spaced(
        cls, name: str, low: float, high: float, labels: tuple[str, ...] = TERMS
    ) -> "FuzzyVariable":
        """Triangles centred on an even grid, shoulders at both domain ends."""
        centres = np.linspace(low, high, len(labels))
        terms = []
        for i, label in enumerate(labels):
            a = centres[max(i - 1, 0)]
            c = centres[min(i + 1, len(labels) - 1)]
            terms.append((label, (float(a), float(centres[i]), float(c))))
        return cls(name=name, low=float(low), high=float(high), terms=tuple(terms))


class FuzzyRule(NamedTuple):
    error_term: str
    rate_term: str
    delta_kp_term: str
    delta_ki_term: str
    delta_kd_term: str

    @property
    def consequents(self) -> tuple[str, str, str]:
        return (self.delta_kp_term, self.delta_ki_term, self.delta_kd_term)


@dataclass(frozen=True)
class FuzzyRuleTable:
    """Immutable rule base shared by reference between engines and controllers."""

    error: FuzzyVariable
    error_rate: FuzzyVariable
    delta_kp: FuzzyVariable
    delta_ki: FuzzyVariable
    delta_kd: FuzzyVariable
    rules: tuple[FuzzyRule, ...]

    def __post_init__(self) -> None:
        outputs = (self.delta_kp, self.delta_ki, self.delta_kd)
        for rule in self.rules:
            if rule.error_term not in self.error.labels:
                raise InvalidArgumentError(f"unknown error term {rule.error_term!r}")
            if rule.rate_term not in self.error_rate.labels:
                raise InvalidArgumentError(f"unknown error-rate term {rule.rate_term!r}")
            for var, label in zip(outputs, rule.consequents):
                if label not in var.labels:
                    raise InvalidArgumentError(f"unknown {var.name} term {label!r}")

    @property
    def outputs(self) -> tuple[FuzzyVariable, FuzzyVariable, FuzzyVariable]:
        return (self.delta_kp, self.delta_ki, self.delta_kd)


def default_rule_table(
    delta_kp_range: float = 0.02,
    delta_ki_range: float = 0.0001,
    delta_kd_range: float = 0.01,
    error_range: float = 10.0,
    error_rate_range: float = 0.5,
) -> FuzzyRuleTable:
    """Build the 7×7 silo fuzzy-PID rule base.

    Output ranges are half-widths: ΔKp ∈ [−delta_kp_range, +delta_kp_range]
    and so on.  The defaults are sized to the silo base gains
    (Kp = 0.04, Ki = 0.0002, Kd = 0).
    """
    rules = tuple(
        FuzzyRule(e_term, r_term, _DELTA_KP_RULES[i][j], _DELTA_KI_RULES[i][j], _DELTA_KD_RULES[i][j])
        for i, e_term in enumerate(TERMS)
        for j, r_term in enumerate(TERMS)
    )
    return FuzzyRuleTable(
        error=FuzzyVariable.evenly_spaced("error", -error_range, error_range),
        error_rate=FuzzyVariable.evenly_spaced("error_rate", -error_rate_range, error_rate_range),
        delta_kp=FuzzyVariable.evenly_spaced("delta_kp", -delta_kp_range, delta_kp_range),
        delta_ki=FuzzyVariable.evenly_spaced("delta_ki", -delta_ki_range, delta_ki_range),
        delta_kd=FuzzyVariable.evenly_spaced("delta_kd", -delta_kd_range, delta_kd_range),
        rules=rules,
    )


class FuzzyInferenceEngine:
    """Evaluates a FuzzyRuleTable: ``infer(e, de/dt) → (ΔKp, ΔKi, ΔKd)``.

    Consequent membership curves are sampled once at construction on a
    ``resolution``-point universe per output; ``infer`` is then a pure
    function of its two arguments.
    """

    def __init__(self, table: FuzzyRuleTable | None = None, resolution: int = 201) -> None:
        if resolution < 3:
            raise InvalidArgumentError(f"resolution must be >= 3, got {resolution}")
        self._table = table if table is not None else default_rule_table()
        self._universes = tuple(var.universe(resolution) for var in self._table.outputs)
        self._consequent_mfs = tuple(
            {label: fuzz.trimf(universe, abc) for label, abc in var.terms}
            for var, universe in zip(self._table.outputs, self._universes)
        )

    @property
    def table(self) -> FuzzyRuleTable:
        return self._table

    def firing_strengths(self, error: float, error_rate: float) -> list[float]:
        """Per-rule firing strength, in rule order (inputs clamped to their domains)."""
        mu_e = self._table.error.membership(error)
        mu_r = self._table.error_rate.membership(error_rate)
        return [min(mu_e[r.error_term], mu_r[r.rate_term]) for r in self._table.rules]

    def infer(self, error: float, error_rate: float) -> tuple[float, float, float]:
        strengths = self.firing_strengths(error, error_rate)
        aggregated = [np.zeros_like(u) for u in self._universes]
        fired = False

        for rule, strength in zip(self._table.rules, strengths):
            if strength <= 0.0:
                continue
            fired = True
            for agg, mfs, label in zip(aggregated, self._consequent_mfs, rule.consequents):
                np.maximum(agg, np.minimum(mfs[label], strength), out=agg)

        if not fired:
            return (0.0, 0.0, 0.0)

        dkp, dki, dkd = (
            float(fuzz.defuzz(universe, agg, "centroid"))
            for universe, agg in zip(self._universes, aggregated)
        )
        return (dkp, dki, dkd)
