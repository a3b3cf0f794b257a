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
Centralized Type System
=======================

>>> from oscsym.types import StateVector, SolverType, SubStepSample
"""

from .core import (
    ArrayLike,
    DerivativeFunction,
    DerivativeVector,
    ScalarLike,
    StateLike,
    StateVector,
    SubStepCallback,
)
from .solvers import (
    CRITICAL_DAMPING_EPSILON,
    DEFAULT_SOLVER_TYPE,
    MAX_TIME_STEP,
    STEP_FORWARD_DT,
    DampingRegime,
    SolverConfig,
    SolverType,
    TimeSpeed,
)
from .trajectories import SolverStats, SubStepSample

__all__ = [
    # Core
    "ArrayLike",
    "ScalarLike",
    "StateVector",
    "DerivativeVector",
    "StateLike",
    "DerivativeFunction",
    "SubStepCallback",
    # Solvers and time management
    "SolverType",
    "DEFAULT_SOLVER_TYPE",
    "TimeSpeed",
    "MAX_TIME_STEP",
    "STEP_FORWARD_DT",
    "DampingRegime",
    "CRITICAL_DAMPING_EPSILON",
    "SolverConfig",
    # Records
    "SubStepSample",
    "SolverStats",
]
