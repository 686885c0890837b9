"""Error taxonomy for silotherm.

Every analytic or arithmetic failure is raised where it is detected so
that no NaN or runaway value propagates silently into a trajectory or a
report.  Callers (CLI, notebooks) decide whether to abort or keep the
partial results.
"""

from __future__ import annotations


class SiloThermError(Exception):
    """Base class for all silotherm errors."""


class InvalidArgumentError(SiloThermError, ValueError):
    """Raised for out-of-range parameters (non-positive τ or dt, zero setpoint…)."""


class NumericOverflowError(SiloThermError, ArithmeticError):
    """Raised when a simulated signal becomes non-finite or exceeds the overflow guard."""


def require_positive_dt(dt: float) -> None:
    """Reject zero, negative and NaN step sizes."""
    if not dt > 0.0:
        raise InvalidArgumentError(f"dt must be positive, got {dt}")
