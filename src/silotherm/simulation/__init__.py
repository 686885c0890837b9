"""silotherm.simulation — grain-mass plant model and fixed-step simulation."""
from silotherm.simulation.plant import PlantModel, PlantState, ResonantMode
from silotherm.simulation.trajectory import Trajectory, TrajectorySample
from silotherm.simulation.closed_loop import ClosedLoopSimulator, piecewise_input

__all__ = [
    "PlantModel",
    "PlantState",
    "ResonantMode",
    "Trajectory",
    "TrajectorySample",
    "ClosedLoopSimulator",
    "piecewise_input",
]
