"""silotherm.control — feedback controllers for the grain-silo loop.

Public API
----------
Controller, ControllerState, Gains
    Common interface and per-run state.
PController, IController, DController, PIController, PIDController
    Classical parallel-form controllers.
FuzzyPIDController
    PID with gains re-scheduled every step by Mamdani fuzzy inference.
FuzzyInferenceEngine, FuzzyRuleTable, default_rule_table
    The 7×7 rule base and its evaluator.
"""
from silotherm.control.interfaces import Controller, ControllerState, Gains
from silotherm.control.pid import (
    DController,
    IController,
    PController,
    PIController,
    PIDController,
)
from silotherm.control.fuzzy_inference import (
    FuzzyInferenceEngine,
    FuzzyRule,
    FuzzyRuleTable,
    FuzzyVariable,
    default_rule_table,
)
from silotherm.control.fuzzy_pid import FuzzyPIDController

__all__ = [
    "Controller",
    "ControllerState",
    "Gains",
    "PController",
    "IController",
    "DController",
    "PIController",
    "PIDController",
    "FuzzyPIDController",
    "FuzzyInferenceEngine",
    "FuzzyRule",
    "FuzzyRuleTable",
    "FuzzyVariable",
    "default_rule_table",
]
