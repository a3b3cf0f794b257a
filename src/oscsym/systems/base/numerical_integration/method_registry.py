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
Solver Registry and Dispatch
============================

Single source of truth for the available time-stepping strategies:
- Closed SolverType → solver class registry, checked against the enum at
  import time so a new SolverType cannot be added without a solver
- Name normalization ('rk4', 'dopri5', 'heun', 'exact', ... → SolverType)
- Method classification (fixed-step, adaptive, exact)
- Exhaustive dispatch: integrate(kind, dt, model)

Usage Examples
--------------
>>> from oscsym.systems.base.numerical_integration.method_registry import (
...     create_solver, integrate, normalize_solver_type
... )
>>>
>>> normalize_solver_type('dopri5')
<SolverType.ADAPTIVE_RK45: 'adaptive_rk45'>
>>>
>>> solver = create_solver('rk4', fixed_timestep=0.001)
>>> solver.step(0.016, model)
>>>
>>> # One-shot advance
>>> integrate(SolverType.ANALYTICAL, 0.1, model)
"""

from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional, Type, Union

from oscsym.systems.base.numerical_integration.adaptive_solvers import (
    AdaptiveEulerSolver,
    AdaptiveRK45Solver,
)
from oscsym.systems.base.numerical_integration.analytical_solver import AnalyticalSolver
from oscsym.systems.base.numerical_integration.fixed_step_solvers import (
    ModifiedMidpointSolver,
    RK4Solver,
)
from oscsym.systems.base.numerical_integration.solver_base import SolverBase
from oscsym.types.core import SubStepCallback
from oscsym.types.solvers import SolverType

if TYPE_CHECKING:
    from oscsym.systems.base.core.state_vector_model import StateVectorModel


# ============================================================================
# Registry
# ============================================================================

SOLVER_REGISTRY: Dict[SolverType, Type[SolverBase]] = {
    SolverType.FIXED_RK4: RK4Solver,
    SolverType.ADAPTIVE_RK45: AdaptiveRK45Solver,
    SolverType.ADAPTIVE_EULER: AdaptiveEulerSolver,
    SolverType.MODIFIED_MIDPOINT: ModifiedMidpointSolver,
    SolverType.ANALYTICAL: AnalyticalSolver,
}

FIXED_STEP_SOLVERS: FrozenSet[SolverType] = frozenset(
    [SolverType.FIXED_RK4, SolverType.MODIFIED_MIDPOINT]
)
ADAPTIVE_SOLVERS: FrozenSet[SolverType] = frozenset(
    [SolverType.ADAPTIVE_RK45, SolverType.ADAPTIVE_EULER]
)
EXACT_SOLVERS: FrozenSet[SolverType] = frozenset([SolverType.ANALYTICAL])

# ============================================================================
# Normalization Map: Aliases → SolverType
# ============================================================================

SOLVER_ALIASES: Dict[str, SolverType] = {
    "rk4": SolverType.FIXED_RK4,
    "fixed_rk4": SolverType.FIXED_RK4,
    "runge_kutta": SolverType.FIXED_RK4,
    "rk45": SolverType.ADAPTIVE_RK45,
    "adaptive_rk45": SolverType.ADAPTIVE_RK45,
    "dopri5": SolverType.ADAPTIVE_RK45,
    "dormand_prince": SolverType.ADAPTIVE_RK45,
    "euler": SolverType.ADAPTIVE_EULER,
    "adaptive_euler": SolverType.ADAPTIVE_EULER,
    "heun": SolverType.ADAPTIVE_EULER,
    "midpoint": SolverType.MODIFIED_MIDPOINT,
    "modified_midpoint": SolverType.MODIFIED_MIDPOINT,
    "gragg": SolverType.MODIFIED_MIDPOINT,
    "analytical": SolverType.ANALYTICAL,
    "exact": SolverType.ANALYTICAL,
}


def _check_registry() -> None:
    """Fail at import if the registry and the enum disagree."""
    missing = [kind for kind in SolverType if kind not in SOLVER_REGISTRY]
    if missing:
        raise RuntimeError(f"No solver registered for {missing}")

    classified = FIXED_STEP_SOLVERS | ADAPTIVE_SOLVERS | EXACT_SOLVERS
    unclassified = [kind for kind in SolverType if kind not in classified]
    if unclassified:
        raise RuntimeError(f"Solver types without a step classification: {unclassified}")

    for kind, cls in SOLVER_REGISTRY.items():
        if cls.__abstractmethods__:
            raise RuntimeError(f"{cls.__name__} registered for {kind} is abstract")


_check_registry()


# ============================================================================
# Normalization and Classification
# ============================================================================


def normalize_solver_type(kind: Union[str, SolverType]) -> SolverType:
    """
    Resolve a SolverType, its value, or an alias to a SolverType.

    Case-insensitive for strings; hyphens and spaces count as underscores.

    Raises
    ------
    ValueError
        If the name is not recognized
    TypeError
        If kind is neither a string nor a SolverType

    Examples
    --------
    >>> normalize_solver_type('RK4')
    <SolverType.FIXED_RK4: 'rk4'>
    >>> normalize_solver_type('modified-midpoint')
    <SolverType.MODIFIED_MIDPOINT: 'modified_midpoint'>
    >>> normalize_solver_type('verlet')
    Traceback (most recent call last):
        ...
    ValueError: Unknown solver 'verlet'. ...
    """
    if isinstance(kind, SolverType):
        return kind
    if not isinstance(kind, str):
        raise TypeError(f"Solver must be a SolverType or str, got {type(kind).__name__}")

    key = kind.strip().lower().replace("-", "_").replace(" ", "_")
    if key in SOLVER_ALIASES:
        return SOLVER_ALIASES[key]

    raise ValueError(
        f"Unknown solver '{kind}'. Valid names: {sorted(SOLVER_ALIASES)} "
        f"or one of {[k.value for k in SolverType]}"
    )


def is_adaptive(kind: Union[str, SolverType]) -> bool:
    """True for the embedded-pair solvers."""
    return normalize_solver_type(kind) in ADAPTIVE_SOLVERS


def is_fixed_step(kind: Union[str, SolverType]) -> bool:
    return normalize_solver_type(kind) in FIXED_STEP_SOLVERS


def is_exact(kind: Union[str, SolverType]) -> bool:
    return normalize_solver_type(kind) in EXACT_SOLVERS


# ============================================================================
# Creation and Dispatch
# ============================================================================


def create_solver(kind: Union[str, SolverType], **options: Any) -> SolverBase:
    """
    Instantiate the solver for a SolverType.

    Parameters
    ----------
    kind : Union[str, SolverType]
        Solver selection or alias
    **options
        Solver options (see SolverConfig)

    Raises
    ------
    ValueError
        Unknown solver or option name

    Examples
    --------
    >>> create_solver(SolverType.ADAPTIVE_RK45, rtol=1e-8)
    AdaptiveRK45Solver(mode=adaptive, rtol=1e-08)
    """
    solver_type = normalize_solver_type(kind)
    return SOLVER_REGISTRY[solver_type](**options)


def integrate(
    kind: Union[str, SolverType],
    dt: float,
    model: "StateVectorModel",
    on_sub_step: Optional[SubStepCallback] = None,
    **options: Any,
) -> SolverBase:
    """
    Advance a model by dt with a freshly created solver of the given kind.

    Returns
    -------
    SolverBase
        The solver used, for its statistics

    Examples
    --------
    >>> solver = integrate('analytical', 0.5, model)
    >>> solver.get_stats()['total_steps']
    1
    """
    solver = create_solver(kind, **options)
    solver.step(dt, model, on_sub_step)
    return solver


def get_solver_info(kind: Union[str, SolverType]) -> Dict[str, Any]:
    """
    Describe a solver.

    Returns
    -------
    dict
        'type', 'name', 'display_name', 'class', 'category', 'options'
    """
    solver_type = normalize_solver_type(kind)
    cls = SOLVER_REGISTRY[solver_type]
    if solver_type in ADAPTIVE_SOLVERS:
        category = "adaptive"
    elif solver_type in FIXED_STEP_SOLVERS:
        category = "fixed_step"
    else:
        category = "exact"
    return {
        "type": solver_type,
        "name": cls().name,
        "display_name": solver_type.display_name,
        "class": cls.__name__,
        "category": category,
        "options": sorted(cls._OPTION_NAMES),
    }


def list_solvers() -> List[SolverType]:
    """All SolverType members, in declaration order."""
    return list(SolverType)


__all__ = [
    "SOLVER_REGISTRY",
    "SOLVER_ALIASES",
    "FIXED_STEP_SOLVERS",
    "ADAPTIVE_SOLVERS",
    "EXACT_SOLVERS",
    "normalize_solver_type",
    "is_adaptive",
    "is_fixed_step",
    "is_exact",
    "create_solver",
    "integrate",
    "get_solver_info",
    "list_solvers",
]
