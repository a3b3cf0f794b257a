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
Simulation Clock - Time Management Harness

Owns simulated time, the play/pause flag, the time-speed multiplier and the
active solver, and turns an external per-frame dt into one solver call:

    frame dt ──► paused and not forced? ──► skip
             ──► dt = min(dt, max_time_step), times the speed multiplier unless forced
             ──► solver.step(dt, model, on_sub_step)
             ──► time += dt, return sub-step samples

The solver selection is an explicit per-clock value. Swapping it replaces
the strategy object only, the next step starts from the exact current state.
"""

import math
from typing import Any, Dict, List, Mapping, Optional, Union

from oscsym.systems.base.core.state_vector_model import StateVectorModel
from oscsym.systems.base.numerical_integration.method_registry import (
    create_solver,
    normalize_solver_type,
)
from oscsym.systems.base.numerical_integration.solver_base import SolverBase
from oscsym.types.core import DerivativeVector, ScalarLike, StateLike, StateVector
from oscsym.types.solvers import (
    DEFAULT_SOLVER_TYPE,
    MAX_TIME_STEP,
    STEP_FORWARD_DT,
    SolverType,
    TimeSpeed,
)
from oscsym.types.trajectories import SolverStats, SubStepSample


class SimulationClock:
    """
    Drives a StateVectorModel from a render loop.

    Parameters
    ----------
    model : StateVectorModel
        System to advance
    solver_type : Union[SolverType, str]
        Initial solver (default FIXED_RK4)
    solver_options : Optional[Mapping[SolverType, dict]]
        Options applied whenever the solver of that type is created
    max_time_step : float
        Cap on frame dt, applied before the speed multiplier (s)

    Examples
    --------
    >>> clock = SimulationClock(OscillatorModel(initial_position=0.1))
    >>> clock.play()
    >>> samples = clock.step(1 / 60)
    >>> clock.time
    0.016666666666666666
    >>>
    >>> # Hot-swap mid-run, no state change
    >>> clock.solver_type = SolverType.ANALYTICAL
    >>> samples = clock.step(1 / 60)          # one sample per millisecond
    >>>
    >>> clock.pause()
    >>> clock.step_forward()                  # forced 16 ms step
    """

    def __init__(
        self,
        model: StateVectorModel,
        solver_type: Union[SolverType, str] = DEFAULT_SOLVER_TYPE,
        solver_options: Optional[Mapping[Union[SolverType, str], Dict[str, Any]]] = None,
        max_time_step: float = MAX_TIME_STEP,
    ):
        if not max_time_step > 0:
            raise ValueError(f"max_time_step must be positive, got {max_time_step}")

        self.model = model
        self.max_time_step = float(max_time_step)
        self.solver_options: Dict[SolverType, Dict[str, Any]] = {
            normalize_solver_type(kind): dict(options)
            for kind, options in (solver_options or {}).items()
        }

        self.time = 0.0
        self.is_playing = False
        self._time_speed = TimeSpeed.NORMAL

        self._solver_type = normalize_solver_type(solver_type)
        self.solver: SolverBase = self._create_solver(self._solver_type)

    # ========================================================================
    # Solver Selection
    # ========================================================================

    def _create_solver(self, solver_type: SolverType) -> SolverBase:
        return create_solver(solver_type, **self.solver_options.get(solver_type, {}))

    @property
    def solver_type(self) -> SolverType:
        return self._solver_type

    @solver_type.setter
    def solver_type(self, kind: Union[SolverType, str]) -> None:
        self.set_solver_type(kind)

    def set_solver_type(self, kind: Union[SolverType, str], **options: Any) -> None:
        """
        Select the active solver.

        Parameters
        ----------
        kind : Union[SolverType, str]
            Solver selection or alias
        **options
            If given, replace the stored options for this solver type

        Notes
        -----
        Never touches the model state or simulated time. Selecting the
        current type without options keeps the existing solver instance.
        """
        solver_type = normalize_solver_type(kind)
        if not options and solver_type is self._solver_type:
            return

        if options:
            # Rejected options must leave the clock unchanged
            self.solver = create_solver(solver_type, **options)
            self.solver_options[solver_type] = dict(options)
        else:
            self.solver = self._create_solver(solver_type)
        self._solver_type = solver_type

    # ========================================================================
    # Play State and Speed
    # ========================================================================

    @property
    def time_speed(self) -> TimeSpeed:
        return self._time_speed

    @time_speed.setter
    def time_speed(self, speed: Union[TimeSpeed, str]) -> None:
        if isinstance(speed, str):
            try:
                speed = TimeSpeed[speed.upper()]
            except KeyError:
                raise ValueError(
                    f"Unknown time speed '{speed}'. Valid: {[s.name.lower() for s in TimeSpeed]}"
                ) from None
        if not isinstance(speed, TimeSpeed):
            raise TypeError(f"time_speed must be a TimeSpeed, got {type(speed).__name__}")
        self._time_speed = speed

    def play(self) -> None:
        self.is_playing = True

    def pause(self) -> None:
        self.is_playing = False

    def toggle_playing(self) -> None:
        self.is_playing = not self.is_playing

    # ========================================================================
    # Stepping
    # ========================================================================

    def effective_dt(self, dt: float, force_step: bool = False) -> float:
        """
        Interval the next step(dt, force_step) would simulate.

        0 when the step would be skipped.
        """
        if not self.is_playing and not force_step:
            return 0.0
        if not math.isfinite(dt) or dt <= 0:
            return 0.0
        capped = min(float(dt), self.max_time_step)
        if force_step:
            return capped
        return capped * self._time_speed.multiplier

    def step(self, dt: float, force_step: bool = False) -> List[SubStepSample]:
        """
        Advance the simulation by one frame.

        Parameters
        ----------
        dt : float
            Wall-clock frame interval (s)
        force_step : bool
            Step even when paused. The dt cap still applies, the speed
            multiplier does not

        Returns
        -------
        List[SubStepSample]
            Samples for every internal sub-step of this call, in time order.
            Empty when the step was skipped or the solver did not subdivide.
        """
        step_dt = self.effective_dt(dt, force_step)
        if step_dt <= 0.0:
            return []

        t0 = self.time
        samples: List[SubStepSample] = []

        def collect(elapsed: float, state: StateVector) -> None:
            samples.append(self.model.sub_step_sample(t0 + elapsed, state))

        self.solver.step(step_dt, self.model, collect)
        self.time = t0 + step_dt
        return samples

    def step_forward(self) -> List[SubStepSample]:
        """Single forced step of STEP_FORWARD_DT, for a paused simulation."""
        return self.step(STEP_FORWARD_DT, force_step=True)

    def reset(self) -> None:
        """
        Restore time, play state and speed defaults and reset the model.

        The solver selection and its options are kept.
        """
        self.time = 0.0
        self.is_playing = False
        self._time_speed = TimeSpeed.NORMAL
        self.model.reset()
        self.solver.reset_stats()

    # ========================================================================
    # Model Delegation
    # ========================================================================

    def get_state(self) -> StateVector:
        return self.model.get_state()

    def set_state(self, state: StateLike) -> None:
        self.model.set_state(state)

    def get_derivatives(self, t: ScalarLike, state: StateLike) -> DerivativeVector:
        return self.model.get_derivatives(t, state)

    def get_stats(self) -> SolverStats:
        """Statistics of the active solver."""
        return self.solver.get_stats()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(model={self.model!r}, solver={self._solver_type.value}, "
            f"time={self.time:.3f}, playing={self.is_playing}, speed={self._time_speed.name})"
        )


__all__ = ["SimulationClock"]
