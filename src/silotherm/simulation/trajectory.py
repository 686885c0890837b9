"""Trajectory — time-ordered record of one simulation run."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, NamedTuple

import numpy as np


class TrajectorySample(NamedTuple):
    time_s: float
    output: float
    action: float
    error: float


@dataclass
class Trajectory:
    """Parallel sample columns, insertion order = time order.

    Stored column-wise (plain lists) so that ``dataclasses.asdict()`` and
    ``json.dumps`` work without conversion; the ``*_array`` accessors give
    numpy views for analysis.
    """

    time_s: list[float] = field(default_factory=list)
    output: list[float] = field(default_factory=list)
    action: list[float] = field(default_factory=list)
    error: list[float] = field(default_factory=list)

    def append(self, time_s: float, output: float, action: float, error: float) -> None:
        self.time_s.append(float(time_s))
        self.output.append(float(output))
        self.action.append(float(action))
        self.error.append(float(error))

    def __len__(self) -> int:
        return len(self.time_s)

    def __iter__(self) -> Iterator[TrajectorySample]:
        for row in zip(self.time_s, self.output, self.action, self.error):
            yield TrajectorySample(*row)

    def __getitem__(self, index: int) -> TrajectorySample:
        return TrajectorySample(
            self.time_s[index], self.output[index], self.action[index], self.error[index]
        )

    @property
    def time_array(self) -> np.ndarray:
        return np.asarray(self.time_s, dtype=np.float64)

    @property
    def output_array(self) -> np.ndarray:
        return np.asarray(self.output, dtype=np.float64)

    @property
    def action_array(self) -> np.ndarray:
        return np.asarray(self.action, dtype=np.float64)

    @property
    def error_array(self) -> np.ndarray:
        return np.asarray(self.error, dtype=np.float64)

    @property
    def final_output(self) -> float:
        return self.output[-1]

    def to_dict(self) -> dict[str, Any]:
        return {
            "time_s": list(self.time_s),
            "output": list(self.output),
            "action": list(self.action),
            "error": list(self.error),
        }
