# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Trajectory and Statistics Types

Result records produced while stepping a simulation:
- SubStepSample: one high-resolution sample collected inside a step() call
- SolverStats: running statistics kept by every solver

Following the project design principle "Result types are TypedDict", these
are plain dictionaries with declared keys, so they are cheap to create every
frame and trivially consumed by plotting code.
"""

from typing_extensions import TypedDict


class SubStepSample(TypedDict):
    """
    A single sub-step sample for the plotting collaborator.

    Produced in order, once per internal solver sub-step, during one outer
    ``SimulationClock.step()`` call. Returned synchronously and never
    buffered across frames.

    Attributes
    ----------
    time : float
        Absolute simulated time of the sample (s)
    position : float
        Displacement (m)
    velocity : float
        Velocity (m/s)
    acceleration : float
        Acceleration evaluated from the model derivatives (m/s²)
    applied_force : float
        Instantaneous driving force (N), 0 when undriven

    Examples
    --------
    >>> samples = clock.step(0.016)
    >>> times = [s["time"] for s in samples]
    >>> positions = [s["position"] for s in samples]
    """

    time: float
    position: float
    velocity: float
    acceleration: float
    applied_force: float


class SolverStats(TypedDict, total=False):
    """
    Running solver statistics.

    Attributes
    ----------
    total_steps : int
        Accepted internal (micro) steps
    total_fev : int
        Derivative evaluations
    rejected_steps : int
        Micro-steps rejected by error control (adaptive only)
    forced_steps : int
        Fallback steps taken when step-size control gave up (adaptive only)
    total_time : float
        Wall-clock time spent inside step() (s)
    avg_fev_per_step : float
        total_fev / max(1, total_steps)
    """

    total_steps: int
    total_fev: int
    rejected_steps: int
    forced_steps: int
    total_time: float
    avg_fev_per_step: float


__all__ = [
    "SubStepSample",
    "SolverStats",
]
