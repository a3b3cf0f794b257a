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
Solver and Time-Management Types

Defines types related to:
- Solver selection (SolverType)
- Simulation speed (TimeSpeed)
- Damping regime classification (DampingRegime)
- Solver configuration dictionaries (SolverConfig)
- Time-management constants

These types standardize solver selection and configuration across the
simulation harness, the solver registry, and the oscillator model.

Usage
-----
>>> from oscsym.types.solvers import SolverType, TimeSpeed
>>>
>>> clock = SimulationClock(model, solver_type=SolverType.ANALYTICAL)
>>> clock.time_speed = TimeSpeed.SLOW
"""

from enum import Enum

from typing_extensions import TypedDict

# ============================================================================
# Solver Selection
# ============================================================================


class SolverType(Enum):
    """
    Closed set of available time-stepping strategies.

    Attributes
    ----------
    FIXED_RK4 : str
        Classical 4th-order Runge-Kutta over the full frame dt
    ADAPTIVE_RK45 : str
        Dormand-Prince 5(4) embedded pair with step-size control
    ADAPTIVE_EULER : str
        Euler/Heun embedded pair with step-size control (low accuracy)
    MODIFIED_MIDPOINT : str
        Gragg modified midpoint with Richardson extrapolation
    ANALYTICAL : str
        Exact closed-form solution of the driven damped oscillator
    """

    FIXED_RK4 = "rk4"
    ADAPTIVE_RK45 = "adaptive_rk45"
    ADAPTIVE_EULER = "adaptive_euler"
    MODIFIED_MIDPOINT = "modified_midpoint"
    ANALYTICAL = "analytical"

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return _SOLVER_DISPLAY_NAMES[self]


_SOLVER_DISPLAY_NAMES = {
    SolverType.FIXED_RK4: "Runge-Kutta 4",
    SolverType.ADAPTIVE_RK45: "Adaptive RK45 (Dormand-Prince)",
    SolverType.ADAPTIVE_EULER: "Adaptive Euler",
    SolverType.MODIFIED_MIDPOINT: "Modified Midpoint",
    SolverType.ANALYTICAL: "Analytical (exact)",
}

DEFAULT_SOLVER_TYPE = SolverType.FIXED_RK4


# ============================================================================
# Time Management
# ============================================================================


class TimeSpeed(Enum):
    """
    Simulation speed multiplier applied to non-forced steps.

    Examples
    --------
    >>> TimeSpeed.SLOW.multiplier
    0.5
    """

    SLOW = 0.5
    NORMAL = 1.0
    FAST = 2.0

    @property
    def multiplier(self) -> float:
        return float(self.value)


MAX_TIME_STEP = 0.1
"""Cap (s) applied to every frame dt, prevents jumps after tab switches."""

STEP_FORWARD_DT = 0.016
"""Manual single-step size (s), one frame at 60 fps."""


# ============================================================================
# Damping Regimes
# ============================================================================


class DampingRegime(Enum):
    """
    Classification governing the closed-form solution shape.

    Attributes
    ----------
    UNDERDAMPED : str
        ζ < 1, oscillatory decay
    CRITICALLY_DAMPED : str
        ζ ≈ 1 (within a tolerance band), fastest non-oscillatory decay
    OVERDAMPED : str
        ζ > 1, sum of two real exponentials
    FREE : str
        No restoring force (k = 0), motion under drag and gravity only
    """

    UNDERDAMPED = "underdamped"
    CRITICALLY_DAMPED = "critically_damped"
    OVERDAMPED = "overdamped"
    FREE = "free"


CRITICAL_DAMPING_EPSILON = 1e-6
"""Half-width of the |ζ - 1| band treated as critical damping."""


# ============================================================================
# Solver Configuration
# ============================================================================


class SolverConfig(TypedDict, total=False):
    """
    Keyword options accepted by the solvers.

    Each solver accepts only the subset relevant to it and raises
    ValueError for anything else.

    Attributes
    ----------
    fixed_timestep : Optional[float]
        RK4 / modified midpoint: outer subdivision size (s)
    substeps : int
        Modified midpoint: micro-steps per segment
    extrapolate : bool
        Modified midpoint: apply one Richardson extrapolation level
    rtol : float
        Adaptive: relative tolerance
    atol : float
        Adaptive: absolute tolerance
    max_timestep : float
        Adaptive: largest micro-step (s)
    min_timestep : float
        Adaptive: micro-step below which a forced step is taken (s)
    safety : float
        Adaptive: step-size safety factor
    min_factor : float
        Adaptive: smallest step-size change factor
    max_factor : float
        Adaptive: largest step-size change factor
    max_steps : int
        Adaptive: attempt budget per outer step
    sub_step_interval : float
        Analytical: synthetic sample and quadrature spacing (s)

    Examples
    --------
    >>> config: SolverConfig = {"rtol": 1e-8, "atol": 1e-10}
    >>> solver = create_solver(SolverType.ADAPTIVE_RK45, **config)
    """

    fixed_timestep: float
    substeps: int
    extrapolate: bool
    rtol: float
    atol: float
    max_timestep: float
    min_timestep: float
    safety: float
    min_factor: float
    max_factor: float
    max_steps: int
    sub_step_interval: float


__all__ = [
    "SolverType",
    "DEFAULT_SOLVER_TYPE",
    "TimeSpeed",
    "MAX_TIME_STEP",
    "STEP_FORWARD_DT",
    "DampingRegime",
    "CRITICAL_DAMPING_EPSILON",
    "SolverConfig",
]
