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
Analytical Solver - Exact Closed-Form Advance of the Driven Damped Oscillator

For constant parameters over one step the linear equation

    m ẍ + b ẋ + k x = F₀ sin(θ₀ + ωτ) - m g,      F₀ = kA, ω = 2πf

has an exact solution. Every call recomputes all constants from the current
state and parameters and retains nothing, so live parameter edits are safe.

Algorithm
---------
1. Classify the regime from ζ = b/(2√(mk)): underdamped, critically damped
   (|ζ - 1| < 1e-6), overdamped, or FREE when k ≈ 0.
2. Particular solution, referenced to the driving phase state component θ:
       x_p = X sin(θ - φ),  v_p = Xω cos(θ - φ)
   with X = F₀/√((k - mω²)² + (bω)²) and φ = atan2(bω, k - mω²). At exact
   undamped resonance the secular solution
       x_p = -(F₀/(2mω)) τ cos θ
   is used instead. A constant force (gravity, or driving at f = 0) shifts
   the equilibrium to x_c = F_const/k.
3. Subtract the particular solution from (x₀, v₀) and solve for the two
   homogeneous constants:
       underdamped: x_h = e^(-ζω₀τ) (C1 cos ω_d τ + C2 sin ω_d τ)
       critical:    x_h = (C1 + C2 τ) e^(-ω₀τ)
       overdamped:  x_h = C1 e^(r1 τ) + C2 e^(r2 τ)
       free:        x_h = x₀ + v∞ τ + (v₀ - v∞)(1 - e^(-γτ))/γ,  γ = b/m
4. Evaluate at τ = dt. The phase advances exactly: θ(dt) = θ₀ + ω dt.

The model's accumulator components (indices 3 and up, if present) are
integrated by composite Simpson quadrature of the model's own derivatives
along the exact trajectory, on a grid of spacing sub_step_interval / 2.
Synthetic sub-step samples are emitted every sub_step_interval.
"""

import math
import time
from typing import TYPE_CHECKING, Optional, Tuple

import numpy as np
from scipy.integrate import cumulative_simpson

from oscsym.systems.base.numerical_integration.solver_base import SolverBase, StepMode
from oscsym.systems.builtin.mechanical.oscillator_parameters import (
    CORE_STATE_DIMENSION,
    OscillatorParameters,
    StateIndex,
)
from oscsym.systems.builtin.mechanical.oscillator_response import (
    RESONANCE_DENOMINATOR_EPSILON,
    damping_ratio,
    damping_regime,
    effective_parameters,
)
from oscsym.types.core import ArrayLike, SubStepCallback
from oscsym.types.solvers import DampingRegime, SolverType

if TYPE_CHECKING:
    from oscsym.systems.base.core.state_vector_model import StateVectorModel

SECULAR_RESONANCE_TOLERANCE = 1e-9
"""Relative |k - mω²| below which an undamped drive is treated as resonant."""


# ============================================================================
# Closed-Form Response
# ============================================================================


def _particular_solution(
    m: float, k: float, b: float, F0: float, omega: float, theta0: float, tau: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """Sinusoidal forced response x_p(τ), v_p(τ) for F₀ sin(θ₀ + ωτ), ω != 0."""
    theta = theta0 + omega * tau
    term1 = k - m * omega * omega
    term2 = b * omega

    if term2 == 0.0 and abs(term1) <= SECULAR_RESONANCE_TOLERANCE * max(k, m * omega * omega):
        # Undamped resonance
        C = -F0 / (2.0 * m * omega)
        x_p = C * tau * np.cos(theta)
        v_p = C * (np.cos(theta) - omega * tau * np.sin(theta))
        return x_p, v_p

    X = F0 / math.hypot(term1, term2)
    phi = math.pi / 2.0 if abs(term1) < RESONANCE_DENOMINATOR_EPSILON else math.atan2(term2, term1)
    x_p = X * np.sin(theta - phi)
    v_p = X * omega * np.cos(theta - phi)
    return x_p, v_p


def _homogeneous_solution(
    regime: DampingRegime,
    m: float,
    k: float,
    b: float,
    zeta: float,
    a_const: float,
    rx: float,
    rv: float,
    tau: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Transient x_h(τ), v_h(τ) from x_h(0) = rx, v_h(0) = rv.

    In the FREE regime the constant acceleration a_const is included here,
    since there is no equilibrium to shift to.
    """
    if regime is DampingRegime.FREE:
        if b > 0.0:
            gamma = b / m
            v_inf = a_const / gamma
            decay = -np.expm1(-gamma * tau)  # 1 - e^(-γτ), accurate for small γτ
            x = rx + v_inf * tau + (rv - v_inf) * decay / gamma
            v = v_inf + (rv - v_inf) * np.exp(-gamma * tau)
        else:
            x = rx + rv * tau + 0.5 * a_const * tau * tau
            v = rv + a_const * tau
        return x, v

    omega0 = math.sqrt(k / m)

    if regime is DampingRegime.UNDERDAMPED:
        alpha = zeta * omega0
        omega_d = omega0 * math.sqrt(1.0 - zeta * zeta)
        C1 = rx
        C2 = (rv + alpha * C1) / omega_d
        envelope = np.exp(-alpha * tau)
        cos_t = np.cos(omega_d * tau)
        sin_t = np.sin(omega_d * tau)
        x = envelope * (C1 * cos_t + C2 * sin_t)
        v = envelope * ((omega_d * C2 - alpha * C1) * cos_t - (alpha * C2 + omega_d * C1) * sin_t)
        return x, v

    if regime is DampingRegime.CRITICALLY_DAMPED:
        C1 = rx
        C2 = rv + omega0 * C1
        envelope = np.exp(-omega0 * tau)
        x = (C1 + C2 * tau) * envelope
        v = (C2 - omega0 * (C1 + C2 * tau)) * envelope
        return x, v

    # Overdamped: r1 = -ω₀(ζ - disc) written as -ω₀/(ζ + disc) to avoid cancellation
    disc = math.sqrt(zeta * zeta - 1.0)
    r1 = -omega0 / (zeta + disc)
    r2 = -omega0 * (zeta + disc)
    C1 = (rv - r2 * rx) / (r1 - r2)
    C2 = rx - C1
    e1 = np.exp(r1 * tau)
    e2 = np.exp(r2 * tau)
    x = C1 * e1 + C2 * e2
    v = C1 * r1 * e1 + C2 * r2 * e2
    return x, v


def oscillator_response(
    params: OscillatorParameters,
    position: float,
    velocity: float,
    phase: float,
    tau: ArrayLike,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Exact position, velocity and driving phase at offsets τ from the given state.

    Parameters
    ----------
    params : OscillatorParameters
        Parameters, assumed constant over the interval
    position, velocity, phase : float
        State at τ = 0
    tau : ArrayLike
        Non-negative time offsets (s)

    Returns
    -------
    x, v, theta : np.ndarray
        Same shape as tau

    Examples
    --------
    >>> p = OscillatorParameters(mass=1.0, spring_constant=100.0, damping=20.0)
    >>> x, v, _ = oscillator_response(p, 1.0, 0.0, 0.0, [0.2])
    >>> x[0]                     # (1 + ω₀t) e^(-ω₀t) with ω₀ = 10
    0.4060058497098381
    """
    tau = np.asarray(tau, dtype=np.float64)
    m, k, b = effective_parameters(params)
    g = float(params.gravity)
    regime = damping_regime(params)
    zeta = damping_ratio(params)

    # Constant force (gravity) and sinusoidal driving
    F_const = -m * g
    F0 = 0.0
    omega = 0.0
    if params.driving_enabled:
        F_amp = k * max(float(params.driving_amplitude), 0.0)
        omega = 2.0 * math.pi * float(params.driving_frequency)
        if omega == 0.0:
            F_const += F_amp * math.sin(phase)
        else:
            F0 = F_amp

    theta = phase + omega * tau

    if F0 != 0.0:
        x_p, v_p = _particular_solution(m, k, b, F0, omega, phase, tau)
        x_p0, v_p0 = _particular_solution(m, k, b, F0, omega, phase, np.zeros(1))
        x_p0, v_p0 = float(x_p0[0]), float(v_p0[0])
    else:
        x_p = v_p = np.zeros_like(tau)
        x_p0 = v_p0 = 0.0

    if regime is DampingRegime.FREE:
        x_c = 0.0
        a_const = F_const / m
    else:
        x_c = F_const / k
        a_const = 0.0

    rx = position - x_p0 - x_c
    rv = velocity - v_p0
    x_h, v_h = _homogeneous_solution(regime, m, k, b, zeta, a_const, rx, rv, tau)

    return x_h + x_p + x_c, v_h + v_p, theta


# ============================================================================
# Solver
# ============================================================================


class AnalyticalSolver(SolverBase):
    """
    Exact solver for OscillatorModel-like systems.

    Requires a model with a ``parameters`` attribute holding
    OscillatorParameters and the [x, v, phase, ...] state layout. Any
    further components are treated as accumulators and integrated by
    Simpson quadrature of the model's derivatives.

    Characteristics:
    - No discretization error in x, v and phase for any dt
    - Constant cost per sample interval, no step-size restriction
    - Sub-step samples always emitted (one per sub_step_interval)

    Examples
    --------
    >>> solver = AnalyticalSolver()
    >>> solver.step(0.1, oscillator)       # exact, even with a large dt
    >>>
    >>> coarse = AnalyticalSolver(sub_step_interval=0.005)
    """

    _OPTION_NAMES = frozenset({"sub_step_interval"})

    DEFAULT_SUB_STEP_INTERVAL = 0.001

    def __init__(self, **options):
        """
        Initialize analytical solver.

        Parameters
        ----------
        sub_step_interval : float
            Spacing of synthetic sub-step samples (s), default 1 ms.
            Quadrature uses half this spacing.

        Raises
        ------
        ValueError
            If sub_step_interval is not positive
        """
        super().__init__(StepMode.EXACT, **options)
        self.sub_step_interval = float(
            options.get("sub_step_interval", self.DEFAULT_SUB_STEP_INTERVAL)
        )
        if not self.sub_step_interval > 0:
            raise ValueError(f"sub_step_interval must be positive, got {self.sub_step_interval}")

    def step(
        self,
        dt: float,
        model: "StateVectorModel",
        on_sub_step: Optional[SubStepCallback] = None,
    ) -> None:
        if not dt > 0:
            return

        params = getattr(model, "parameters", None)
        if not isinstance(params, OscillatorParameters):
            raise TypeError(
                f"{self.name} requires a model with OscillatorParameters in "
                f"'parameters', got {type(model).__name__}"
            )

        start = time.perf_counter()
        y0 = model.get_state()
        if y0.shape[0] < CORE_STATE_DIMENSION:
            raise TypeError(
                f"{self.name} requires a state of at least {CORE_STATE_DIMENSION} "
                f"components [x, v, phase], got {y0.shape[0]}"
            )

        n = max(1, int(np.ceil(dt / self.sub_step_interval - 1e-9)))
        tau = np.linspace(0.0, dt, 2 * n + 1)

        x, v, theta = oscillator_response(
            params,
            y0[StateIndex.POSITION],
            y0[StateIndex.VELOCITY],
            y0[StateIndex.DRIVING_PHASE],
            tau,
        )

        trajectory = np.tile(y0, (tau.shape[0], 1))
        trajectory[:, StateIndex.POSITION] = x
        trajectory[:, StateIndex.VELOCITY] = v
        trajectory[:, StateIndex.DRIVING_PHASE] = theta

        if y0.shape[0] > CORE_STATE_DIMENSION:
            rates = np.array(
                [self._evaluate_derivatives(model, t, y) for t, y in zip(tau, trajectory)]
            )
            accumulated = cumulative_simpson(
                rates[:, CORE_STATE_DIMENSION:], x=tau, axis=0, initial=0.0
            )
            trajectory[:, CORE_STATE_DIMENSION:] += accumulated

        self._stats["total_steps"] += 1

        if on_sub_step is not None:
            for j in range(2, 2 * n + 1, 2):
                on_sub_step(float(tau[j]), trajectory[j].copy())

        model.set_state(trajectory[-1])
        self._record_time(start)

    @property
    def name(self) -> str:
        return "Analytical (exact)"

    @property
    def solver_type(self) -> SolverType:
        return SolverType.ANALYTICAL


__all__ = [
    "oscillator_response",
    "AnalyticalSolver",
]
