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
Numerical Integration
=====================

Time-stepping strategies that advance a StateVectorModel by an externally
supplied dt:

- RK4Solver: classical Runge-Kutta, optionally subdivided
- AdaptiveRK45Solver: Dormand-Prince 5(4) with step-size control
- AdaptiveEulerSolver: Euler/Heun pair, low-accuracy reference
- ModifiedMidpointSolver: Gragg midpoint with Richardson extrapolation
- AnalyticalSolver: exact closed form for the driven damped oscillator

>>> from oscsym.systems.base.numerical_integration import create_solver
>>> from oscsym.types import SolverType
>>>
>>> solver = create_solver(SolverType.ADAPTIVE_RK45, rtol=1e-8)
>>> solver.step(0.016, model)

Authors
-------
Gil Benezer

License
-------
GNU Affero General Public License v3.0
"""

from .adaptive_solvers import AdaptiveEulerSolver, AdaptiveRK45Solver, AdaptiveSolverBase
from .analytical_solver import AnalyticalSolver, oscillator_response
from .fixed_step_solvers import ModifiedMidpointSolver, RK4Solver, modified_midpoint_step, rk4_step
from .method_registry import (
    SOLVER_REGISTRY,
    create_solver,
    get_solver_info,
    integrate,
    is_adaptive,
    is_exact,
    is_fixed_step,
    list_solvers,
    normalize_solver_type,
)
from .solver_base import SolverBase, StepMode

__all__ = [
    # Base classes and enums
    "SolverBase",
    "StepMode",
    "AdaptiveSolverBase",
    # Solvers
    "RK4Solver",
    "ModifiedMidpointSolver",
    "AdaptiveRK45Solver",
    "AdaptiveEulerSolver",
    "AnalyticalSolver",
    # Stage formulas
    "rk4_step",
    "modified_midpoint_step",
    "oscillator_response",
    # Registry and dispatch
    "SOLVER_REGISTRY",
    "normalize_solver_type",
    "is_adaptive",
    "is_fixed_step",
    "is_exact",
    "create_solver",
    "integrate",
    "get_solver_info",
    "list_solvers",
]
