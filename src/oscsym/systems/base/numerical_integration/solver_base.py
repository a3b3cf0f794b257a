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
Solver Base - Abstract Interface for Time-Stepping Strategies

Provides a unified interface for advancing a StateVectorModel by an
externally supplied dt, whatever the underlying method (fixed-step,
adaptive, or exact).

This module defines the abstract base class that all solvers must implement,
along with the StepMode enum describing how a solver covers the interval.

Design Note
-----------
A solver holds integration configuration and statistics only. It never keeps
a reference to a model between calls, so the same instance can be pointed at
any model and swapped out mid-run without affecting continuity.
"""

import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, FrozenSet, Optional

import numpy as np

from oscsym.types.core import DerivativeFunction, DerivativeVector, ScalarLike, StateVector
from oscsym.types.solvers import SolverType
from oscsym.types.trajectories import SolverStats

if TYPE_CHECKING:
    from oscsym.systems.base.core.state_vector_model import StateVectorModel


class StepMode(Enum):
    """
    Integration step mode.

    Attributes
    ----------
    FIXED : str
        Fixed micro-step - the interval is covered by equal steps
        Best for: Real-time loops, reproducible cost per frame

    ADAPTIVE : str
        Adaptive micro-step - size adjusted from an embedded error estimate
        Best for: Accuracy under changing dynamics

    EXACT : str
        Closed-form evaluation - no discretization error
        Best for: The linear driven damped oscillator
    """

    FIXED = "fixed"
    ADAPTIVE = "adaptive"
    EXACT = "exact"


class SolverBase(ABC):
    """
    Abstract base class for time-stepping strategies.

    All solvers must implement:
    - step(): Advance the model by dt
    - name: Solver name for display
    - solver_type: The SolverType this class implements

    Subclasses declare the option names they accept in ``_OPTION_NAMES``;
    anything else passed to the constructor raises ValueError.

    Examples
    --------
    >>> solver = RK4Solver()
    >>> solver.step(0.016, model)
    >>>
    >>> # Collect sub-step samples
    >>> samples = []
    >>> solver.step(0.016, model, on_sub_step=lambda t, y: samples.append(t))
    >>>
    >>> stats = solver.get_stats()
    >>> print(f"Function evals: {stats['total_fev']}")
    """

    _OPTION_NAMES: FrozenSet[str] = frozenset()

    def __init__(self, step_mode: StepMode, **options):
        """
        Initialize solver.

        Parameters
        ----------
        step_mode : StepMode
            FIXED, ADAPTIVE, or EXACT
        **options : dict
            Solver-specific options (see SolverConfig)

        Raises
        ------
        ValueError
            If an option is not recognized by this solver
        """
        unknown = sorted(set(options) - self._OPTION_NAMES)
        if unknown:
            raise ValueError(
                f"Unknown option(s) {unknown} for {self.__class__.__name__}. "
                f"Valid options: {sorted(self._OPTION_NAMES)}"
            )

        self.step_mode = step_mode
        self.options = options

        # Statistics
        self._stats = {
            "total_steps": 0,
            "total_fev": 0,  # Derivative evaluations
            "rejected_steps": 0,
            "forced_steps": 0,
            "total_time": 0.0,
        }

    @abstractmethod
    def step(
        self,
        dt: ScalarLike,
        model: "StateVectorModel",
        on_sub_step: Optional[Callable[[float, StateVector], None]] = None,
    ) -> None:
        """
        Advance the model by dt: y(t) → y(t + dt).

        Reads the state once, writes it once at the end, so no partial state
        is observable. ``dt <= 0`` leaves the model untouched.

        Parameters
        ----------
        dt : float
            Interval to cover (s)
        model : StateVectorModel
            System to advance
        on_sub_step : Optional[SubStepCallback]
            Called with (elapsed, state) after each internal sub-step when the
            solver subdivides the interval
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Get solver name for display.

        Examples
        --------
        >>> RK4Solver().name
        'RK4 (Classic)'
        """
        pass

    @property
    @abstractmethod
    def solver_type(self) -> SolverType:
        """SolverType this solver implements."""
        pass

    # ========================================================================
    # Common Utilities (Shared by All Solvers)
    # ========================================================================

    def _evaluate_derivatives(
        self, model: "StateVectorModel", t: ScalarLike, state: StateVector
    ) -> DerivativeVector:
        """
        Evaluate model derivatives with statistics tracking.

        Notes
        -----
        This wrapper counts function evaluations for performance analysis.
        """
        self._stats["total_fev"] += 1
        return np.asarray(model.get_derivatives(t, state), dtype=np.float64)

    def _derivative_function(self, model: "StateVectorModel") -> DerivativeFunction:
        """Bind the model into a counted f(t, y) callable for one step() call."""
        return lambda t, y: self._evaluate_derivatives(model, t, y)

    def _record_time(self, start: float) -> None:
        self._stats["total_time"] += time.perf_counter() - start

    def get_stats(self) -> SolverStats:
        """
        Get solver statistics.

        Returns
        -------
        SolverStats
            Statistics with keys:
            - 'total_steps': Accepted internal steps
            - 'total_fev': Derivative evaluations
            - 'rejected_steps': Rejected micro-steps
            - 'forced_steps': Fallback steps
            - 'total_time': Time spent stepping
            - 'avg_fev_per_step': Average evaluations per step

        Examples
        --------
        >>> solver.step(0.1, model)
        >>> stats = solver.get_stats()
        >>> print(f"Evals/step: {stats['avg_fev_per_step']:.1f}")
        """
        avg_fev = self._stats["total_fev"] / max(1, self._stats["total_steps"])

        return {
            **self._stats,
            "avg_fev_per_step": avg_fev,
        }

    def reset_stats(self) -> None:
        """
        Reset solver statistics to zero.

        Examples
        --------
        >>> solver.reset_stats()
        >>> solver.get_stats()['total_steps']
        0
        """
        self._stats["total_steps"] = 0
        self._stats["total_fev"] = 0
        self._stats["rejected_steps"] = 0
        self._stats["forced_steps"] = 0
        self._stats["total_time"] = 0.0

    def get_config(self) -> Dict[str, Any]:
        """Options this solver was created with."""
        return dict(self.options)

    def __repr__(self) -> str:
        """String representation for debugging"""
        options = ", ".join(f"{key}={value!r}" for key, value in sorted(self.options.items()))
        return f"{self.__class__.__name__}(mode={self.step_mode.value}" + (
            f", {options})" if options else ")"
        )

    def __str__(self) -> str:
        """Human-readable string"""
        return f"{self.name} ({self.step_mode.value})"


def subdivision_count(dt: float, fixed_timestep: Optional[float]) -> int:
    """
    Number of equal segments needed so none exceeds fixed_timestep.

    A relative slack absorbs round-off, so 0.016 / 0.001 gives 16, not 17.

    Examples
    --------
    >>> subdivision_count(0.016, 0.001)
    16
    >>> subdivision_count(0.016, None)
    1
    """
    if fixed_timestep is None or fixed_timestep <= 0:
        return 1
    return max(1, int(np.ceil(dt / fixed_timestep - 1e-9)))


__all__ = [
    "StepMode",
    "SolverBase",
    "subdivision_count",
]
