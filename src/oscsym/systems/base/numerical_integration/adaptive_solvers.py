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
Adaptive Solvers - Embedded Pairs with Step-Size Control

Implements the adaptive time-stepping strategies:
- Dormand-Prince 5(4) (AdaptiveRK45Solver), FSAL within one call
- Euler/Heun 1(2) (AdaptiveEulerSolver), low-accuracy reference

Both share one outer loop (AdaptiveSolverBase.step):

1. Start from h = min(max_timestep, dt).
2. Attempt a micro-step; the embedded pair gives an error estimate.
3. Scaled error norm:
       err = max_i |y_hi_i - y_lo_i| / (atol + rtol * max(|y_i|, |y_hi_i|))
4. Accept when err <= 1 and propagate the higher-order solution.
5. New step size h * clip(safety * err^(-exponent), min_factor, max_factor),
   never above max_timestep. A non-finite error rejects with min_factor.
6. The final micro-step is shortened to the remainder, so the micro-steps
   sum exactly to dt.

Termination is guaranteed: when h drops below min_timestep (and is not the
remainder) or the attempt budget max_steps is used up, the rest of the
interval is covered by one forced lower-cost step, a RuntimeWarning is
issued and ``forced_steps`` is incremented.

A sub-step sample is emitted after every accepted micro-step.
"""

import time
import warnings
from abc import abstractmethod
from typing import TYPE_CHECKING, Optional, Tuple

import numpy as np

from oscsym.systems.base.numerical_integration.fixed_step_solvers import rk4_step
from oscsym.systems.base.numerical_integration.solver_base import SolverBase, StepMode
from oscsym.types.core import DerivativeFunction, DerivativeVector, StateVector, SubStepCallback
from oscsym.types.solvers import SolverType

if TYPE_CHECKING:
    from oscsym.systems.base.core.state_vector_model import StateVectorModel


# ============================================================================
# Dormand-Prince 5(4) Tableau
# ============================================================================

_DP_C = np.array([0.0, 1 / 5, 3 / 10, 4 / 5, 8 / 9, 1.0, 1.0])

_DP_A = [
    [],
    [1 / 5],
    [3 / 40, 9 / 40],
    [44 / 45, -56 / 15, 32 / 9],
    [19372 / 6561, -25360 / 2187, 64448 / 6561, -212 / 729],
    [9017 / 3168, -355 / 33, 46732 / 5247, 49 / 176, -5103 / 18656],
]

# 5th-order weights (k7 unused, FSAL)
_DP_B5 = np.array([35 / 384, 0.0, 500 / 1113, 125 / 192, -2187 / 6784, 11 / 84, 0.0])

# 4th-order embedded weights
_DP_B4 = np.array(
    [5179 / 57600, 0.0, 7571 / 16695, 393 / 640, -92097 / 339200, 187 / 2100, 1 / 40]
)


def heun_step(f: DerivativeFunction, t: float, y: StateVector, h: float) -> StateVector:
    """One explicit trapezoidal (Heun) step of size h."""
    k1 = f(t, y)
    k2 = f(t + h, y + h * k1)
    return y + 0.5 * h * (k1 + k2)


# ============================================================================
# Shared Adaptive Loop
# ============================================================================


class AdaptiveSolverBase(SolverBase):
    """
    Base class for embedded-pair solvers.

    Subclasses provide the pair (_attempt), the error exponent, the default
    tolerances and the forced fallback step.

    Options
    -------
    rtol, atol : float
        Relative / absolute tolerance
    max_timestep : float
        Largest micro-step (s), default 0.01
    min_timestep : float
        Micro-step below which a forced step is taken (s), default 1e-5
    safety : float
        Step-size safety factor, default 0.9
    min_factor, max_factor : float
        Bounds on the step-size change per attempt, default 0.2 and 5.0
    max_steps : int
        Attempt budget per step() call, default 10000
    """

    _OPTION_NAMES = frozenset(
        {
            "rtol",
            "atol",
            "max_timestep",
            "min_timestep",
            "safety",
            "min_factor",
            "max_factor",
            "max_steps",
        }
    )

    DEFAULT_RTOL = 1e-6
    DEFAULT_ATOL = 1e-8
    ERROR_EXPONENT = 0.2

    def __init__(self, **options):
        super().__init__(StepMode.ADAPTIVE, **options)

        self.rtol = float(options.get("rtol", self.DEFAULT_RTOL))
        self.atol = float(options.get("atol", self.DEFAULT_ATOL))
        self.max_timestep = float(options.get("max_timestep", 0.01))
        self.min_timestep = float(options.get("min_timestep", 1e-5))
        self.safety = float(options.get("safety", 0.9))
        self.min_factor = float(options.get("min_factor", 0.2))
        self.max_factor = float(options.get("max_factor", 5.0))
        self.max_steps = int(options.get("max_steps", 10000))

        if self.rtol < 0 or self.atol < 0 or self.rtol + self.atol <= 0:
            raise ValueError(
                f"Tolerances must be non-negative and not both zero, "
                f"got rtol={self.rtol}, atol={self.atol}"
            )
        if not 0 < self.min_timestep <= self.max_timestep:
            raise ValueError(
                f"Need 0 < min_timestep <= max_timestep, got "
                f"min_timestep={self.min_timestep}, max_timestep={self.max_timestep}"
            )
        if not 0 < self.min_factor < 1 < self.max_factor:
            raise ValueError(
                f"Need 0 < min_factor < 1 < max_factor, got "
                f"min_factor={self.min_factor}, max_factor={self.max_factor}"
            )
        if self.max_steps < 1:
            raise ValueError(f"max_steps must be >= 1, got {self.max_steps}")

    @abstractmethod
    def _attempt(
        self, f: DerivativeFunction, t: float, y: StateVector, h: float, k1: DerivativeVector
    ) -> Tuple[StateVector, StateVector, Optional[DerivativeVector]]:
        """
        Attempt one micro-step.

        Parameters
        ----------
        k1 : DerivativeVector
            f(t, y), supplied by the loop so it is reused across rejections

        Returns
        -------
        y_high : StateVector
            Propagated solution
        y_low : StateVector
            Embedded lower-order solution
        k_next : Optional[DerivativeVector]
            f(t + h, y_high) when the pair computes it for free, else None
        """
        pass

    @abstractmethod
    def _fallback_step(
        self, f: DerivativeFunction, t: float, y: StateVector, h: float
    ) -> StateVector:
        """Forced step covering the remainder of the interval."""
        pass

    @property
    @abstractmethod
    def fallback_name(self) -> str:
        pass

    def _error_norm(self, y: StateVector, y_high: StateVector, y_low: StateVector) -> float:
        scale = self.atol + self.rtol * np.maximum(np.abs(y), np.abs(y_high))
        with np.errstate(invalid="ignore", over="ignore"):
            ratio = np.abs(y_high - y_low) / scale
        if not np.all(np.isfinite(ratio)):
            return np.inf
        return float(np.max(ratio)) if ratio.size else 0.0

    def step(
        self,
        dt: float,
        model: "StateVectorModel",
        on_sub_step: Optional[SubStepCallback] = None,
    ) -> None:
        if not dt > 0:
            return

        start = time.perf_counter()
        f = self._derivative_function(model)
        y = model.get_state()

        t = 0.0
        h = min(self.max_timestep, dt)
        k1: Optional[DerivativeVector] = None
        attempts = 0

        while t < dt:
            remaining = dt - t
            is_last = h >= remaining - 1e-12 * dt
            if is_last:
                h = remaining

            if (h < self.min_timestep and not is_last) or attempts >= self.max_steps:
                reason = (
                    f"attempt budget max_steps={self.max_steps} exhausted"
                    if attempts >= self.max_steps
                    else f"step size {h:.3e} s fell below min_timestep={self.min_timestep:.1e} s"
                )
                warnings.warn(
                    f"{self.name}: {reason}. Covering the remaining {remaining:.3e} s "
                    f"with one forced {self.fallback_name} step.",
                    RuntimeWarning,
                )
                y = self._fallback_step(f, t, y, remaining)
                t = dt
                self._stats["forced_steps"] += 1
                self._stats["total_steps"] += 1
                if on_sub_step is not None:
                    on_sub_step(t, y.copy())
                break

            attempts += 1
            if k1 is None:
                k1 = f(t, y)
            y_high, y_low, k_next = self._attempt(f, t, y, h, k1)
            err = self._error_norm(y, y_high, y_low)

            if err <= 1.0:
                t = dt if is_last else t + h
                y = y_high
                k1 = k_next
                self._stats["total_steps"] += 1
                if on_sub_step is not None:
                    on_sub_step(t, y.copy())
                if err == 0.0:
                    factor = self.max_factor
                else:
                    factor = self.safety * err ** (-self.ERROR_EXPONENT)
                factor = min(max(factor, self.min_factor), self.max_factor)
            else:
                self._stats["rejected_steps"] += 1
                if np.isfinite(err):
                    factor = self.safety * err ** (-self.ERROR_EXPONENT)
                    factor = min(max(factor, self.min_factor), 1.0)
                else:
                    factor = self.min_factor

            h = min(h * factor, self.max_timestep)

        model.set_state(y)
        self._record_time(start)


# ============================================================================
# Dormand-Prince 5(4)
# ============================================================================


class AdaptiveRK45Solver(AdaptiveSolverBase):
    """
    Dormand-Prince 5(4) adaptive solver.

    Seven stages per attempt, the last of which (FSAL) is f at the accepted
    point and becomes the first stage of the next micro-step. Within one
    step() call this makes an accepted micro-step cost 6 evaluations.

    Characteristics:
    - Order: 5 (propagated), 4 (embedded)
    - Error exponent: 1/5
    - Defaults: rtol=1e-6, atol=1e-8
    - Forced fallback: RK4

    Examples
    --------
    >>> solver = AdaptiveRK45Solver()
    >>> solver.step(0.016, model)
    >>> solver.get_stats()['rejected_steps']
    0
    >>>
    >>> tight = AdaptiveRK45Solver(rtol=1e-10, atol=1e-12)
    """

    def _attempt(self, f, t, y, h, k1):
        K = np.empty((7, y.shape[0]), dtype=np.float64)
        K[0] = k1
        for s in range(1, 6):
            dy = np.dot(_DP_A[s], K[:s]) * h
            K[s] = f(t + _DP_C[s] * h, y + dy)

        y_high = y + h * np.dot(_DP_B5, K)
        K[6] = f(t + h, y_high)
        y_low = y + h * np.dot(_DP_B4, K)
        return y_high, y_low, K[6]

    def _fallback_step(self, f, t, y, h):
        return rk4_step(f, t, y, h)

    @property
    def fallback_name(self) -> str:
        return "RK4"

    @property
    def name(self) -> str:
        return "Adaptive RK45 (Dormand-Prince)"

    @property
    def solver_type(self) -> SolverType:
        return SolverType.ADAPTIVE_RK45


# ============================================================================
# Euler / Heun
# ============================================================================


class AdaptiveEulerSolver(AdaptiveSolverBase):
    """
    Euler/Heun adaptive solver.

    Explicit Euler predictor with a Heun (explicit trapezoidal) corrector.
    Their difference is the local error estimate of the Euler step; the
    Heun value is propagated.

        y_e = y + h * k1
        k2  = f(t + h, y_e)
        y_h = y + h/2 * (k1 + k2)

    Characteristics:
    - Order: 2 (propagated), 1 (embedded)
    - Error exponent: 1/2
    - Defaults: rtol=1e-4, atol=1e-6 (low-accuracy reference)
    - Forced fallback: Heun

    Examples
    --------
    >>> solver = AdaptiveEulerSolver()
    >>> solver.step(0.016, model)
    """

    DEFAULT_RTOL = 1e-4
    DEFAULT_ATOL = 1e-6
    ERROR_EXPONENT = 0.5

    def _attempt(self, f, t, y, h, k1):
        y_euler = y + h * k1
        k2 = f(t + h, y_euler)
        y_heun = y + 0.5 * h * (k1 + k2)
        return y_heun, y_euler, None

    def _fallback_step(self, f, t, y, h):
        return heun_step(f, t, y, h)

    @property
    def fallback_name(self) -> str:
        return "Heun"

    @property
    def name(self) -> str:
        return "Adaptive Euler (Heun)"

    @property
    def solver_type(self) -> SolverType:
        return SolverType.ADAPTIVE_EULER


# ============================================================================
# Module Exports
# ============================================================================

__all__ = [
    "heun_step",
    "AdaptiveSolverBase",
    "AdaptiveRK45Solver",
    "AdaptiveEulerSolver",
]
