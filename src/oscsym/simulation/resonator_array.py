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
Resonator Array - Several Oscillators on One Driver

Up to MAX_RESONATORS independent OscillatorModel simulations, each with its
own SimulationClock and solver instance. Resonator 0 is the reference:
driving, damping, gravity, play state and time speed are copied from it to
the others by synchronize(), which step() calls before advancing.

Mass and spring constant of resonators 1..count-1 follow the configuration
mode. SAME_MASS and SAME_SPRING_CONSTANT spread natural frequencies over
1.0-5.5 Hz, MIXED and SAME_FREQUENCY keep every resonator at f₀:

    f_i = f_min + i / (count - 1) * (f_max - f_min),   ω_i = 2π f_i

    SAME_MASS             m_i = m₀,            k_i = ω_i² m₀
    SAME_SPRING_CONSTANT  k_i = k₀,            m_i = k₀ / ω_i²
    MIXED, SAME_FREQUENCY m_i = (i + 1) m₀,    k_i = (i + 1) k₀
    CUSTOM                untouched
"""

import math
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from oscsym.simulation.frequency_sweep import (
    DEFAULT_FREQUENCY_RANGE,
    DEFAULT_SWEEP_RATE,
    FrequencySweepController,
)
from oscsym.simulation.simulation_clock import SimulationClock
from oscsym.systems.builtin.mechanical.driven_damped_oscillator import OscillatorModel
from oscsym.systems.builtin.mechanical.oscillator_response import natural_frequency_hz
from oscsym.types.solvers import DEFAULT_SOLVER_TYPE, SolverType, TimeSpeed
from oscsym.types.trajectories import SubStepSample

MAX_RESONATORS = 10

TARGET_FREQUENCY_RANGE = (1.0, 5.5)
"""Natural-frequency span (Hz) of the distributed resonators."""

SHARED_PARAMETERS = (
    "driving_enabled",
    "driving_frequency",
    "driving_amplitude",
    "damping",
    "gravity",
)


class ResonatorConfigMode(Enum):
    """How mass and spring constant are distributed across resonators."""

    SAME_MASS = "same_mass"
    SAME_SPRING_CONSTANT = "same_spring_constant"
    MIXED = "mixed"
    SAME_FREQUENCY = "same_frequency"
    CUSTOM = "custom"


class ResonatorArray:
    """
    Multi-oscillator screen model.

    Parameters
    ----------
    count : int
        Active resonators, 1..MAX_RESONATORS
    config_mode : ResonatorConfigMode
        Parameter distribution mode
    solver_type : Union[SolverType, str]
        Solver for every resonator's clock
    solver_options : Optional[Mapping]
        Per-solver options, as for SimulationClock
    frequency_range, sweep_rate
        Driving-frequency sweep configuration

    Examples
    --------
    >>> array = ResonatorArray(count=4)
    >>> [round(array.get_natural_frequency_hz(i), 3) for i in range(4)]
    [1.0, 2.5, 4.0, 5.5]
    >>>
    >>> array.reference.parameters.driving_enabled = True
    >>> array.play()
    >>> samples = array.step(1 / 60)      # one sample list per active resonator
    """

    def __init__(
        self,
        count: int = 1,
        config_mode: ResonatorConfigMode = ResonatorConfigMode.SAME_MASS,
        solver_type: Union[SolverType, str] = DEFAULT_SOLVER_TYPE,
        solver_options: Optional[Mapping[Union[SolverType, str], Dict[str, Any]]] = None,
        frequency_range=DEFAULT_FREQUENCY_RANGE,
        sweep_rate: float = DEFAULT_SWEEP_RATE,
    ):
        self.clocks: List[SimulationClock] = [
            SimulationClock(OscillatorModel(), solver_type, solver_options)
            for _ in range(MAX_RESONATORS)
        ]
        self.sweep = FrequencySweepController(
            self.reference.parameters, frequency_range=frequency_range, sweep_rate=sweep_rate
        )

        self._count = self._validate_count(count)
        self._config_mode = ResonatorConfigMode(config_mode)
        self._selected_index = 0

        self.distribute_parameters(reset_base_values=True)
        self.synchronize()

    # ========================================================================
    # Access
    # ========================================================================

    @property
    def reference(self) -> OscillatorModel:
        """Resonator 0, the source of shared parameters."""
        return self.clocks[0].model

    @property
    def models(self) -> List[OscillatorModel]:
        """Active models."""
        return [clock.model for clock in self.clocks[: self._count]]

    def _check_index(self, index: int) -> int:
        if not 0 <= index < MAX_RESONATORS:
            raise ValueError(f"Resonator index {index} out of range (0-{MAX_RESONATORS - 1})")
        return index

    def get_clock(self, index: int) -> SimulationClock:
        return self.clocks[self._check_index(index)]

    def get_model(self, index: int) -> OscillatorModel:
        return self.get_clock(index).model

    def get_mass(self, index: int) -> float:
        return float(self.get_model(index).parameters.mass)

    def get_spring_constant(self, index: int) -> float:
        return float(self.get_model(index).parameters.spring_constant)

    def get_natural_frequency_hz(self, index: int) -> float:
        return natural_frequency_hz(self.get_model(index).parameters)

    # ========================================================================
    # Configuration
    # ========================================================================

    @staticmethod
    def _validate_count(count: int) -> int:
        if not 1 <= count <= MAX_RESONATORS:
            raise ValueError(f"Resonator count must be 1-{MAX_RESONATORS}, got {count}")
        return int(count)

    @property
    def count(self) -> int:
        return self._count

    @count.setter
    def count(self, count: int) -> None:
        self._count = self._validate_count(count)
        self.distribute_parameters()
        if self._selected_index >= self._count:
            self._selected_index = self._count - 1

    @property
    def config_mode(self) -> ResonatorConfigMode:
        return self._config_mode

    @config_mode.setter
    def config_mode(self, mode: Union[ResonatorConfigMode, str]) -> None:
        """Switching mode also resets the reference mass/spring constant for that mode."""
        self._config_mode = ResonatorConfigMode(mode)
        self.distribute_parameters(reset_base_values=True)

    @property
    def selected_index(self) -> int:
        return self._selected_index

    @selected_index.setter
    def selected_index(self, index: int) -> None:
        if not 0 <= index < self._count:
            raise ValueError(f"Selected index {index} out of range (0-{self._count - 1})")
        self._selected_index = index

    @property
    def selected_model(self) -> OscillatorModel:
        return self.get_model(self._selected_index)

    @staticmethod
    def target_frequencies(count: int) -> List[float]:
        """
        Natural frequencies (Hz) the modes aim for, resonator 0 first.

        Examples
        --------
        >>> ResonatorArray.target_frequencies(3)
        [1.0, 3.25, 5.5]
        """
        f_min, f_max = TARGET_FREQUENCY_RANGE
        if count <= 1:
            return [f_min]
        return [f_min + (i / (count - 1)) * (f_max - f_min) for i in range(count)]

    def distribute_parameters(self, reset_base_values: bool = False) -> None:
        """
        Apply the configuration mode to resonators 1..count-1.

        Parameters
        ----------
        reset_base_values : bool
            First set the reference to the mode's base values: m = 1 kg,
            k = (2π f_min)² for SAME_MASS; k = 200 N/m, m = 200/(2π f_min)²
            for SAME_SPRING_CONSTANT. Other modes have no base values.
        """
        mode = self._config_mode
        ref = self.reference.parameters

        if reset_base_values:
            omega_min = 2.0 * math.pi * TARGET_FREQUENCY_RANGE[0]
            if mode is ResonatorConfigMode.SAME_MASS:
                ref.mass = 1.0
                ref.spring_constant = omega_min * omega_min
            elif mode is ResonatorConfigMode.SAME_SPRING_CONSTANT:
                ref.spring_constant = 200.0
                ref.mass = 200.0 / (omega_min * omega_min)

        if mode is ResonatorConfigMode.CUSTOM:
            return

        base_mass = float(ref.mass)
        base_k = float(ref.spring_constant)
        frequencies = self.target_frequencies(self._count)

        for i in range(1, self._count):
            params = self.clocks[i].model.parameters
            omega = 2.0 * math.pi * frequencies[i]
            multiplier = i + 1

            if mode is ResonatorConfigMode.SAME_MASS:
                params.mass = base_mass
                params.spring_constant = omega * omega * base_mass
            elif mode is ResonatorConfigMode.SAME_SPRING_CONSTANT:
                params.spring_constant = base_k
                params.mass = base_k / (omega * omega)
            elif mode in (ResonatorConfigMode.MIXED, ResonatorConfigMode.SAME_FREQUENCY):
                params.mass = base_mass * multiplier
                params.spring_constant = base_k * multiplier

    def synchronize(self) -> None:
        """
        Copy shared state from resonator 0 to all others.

        Shared: driving (enabled, frequency, amplitude), damping, gravity,
        play state and time speed. Also re-applies the configuration mode,
        so edits to the reference mass or spring constant propagate.
        """
        ref_clock = self.clocks[0]
        ref = ref_clock.model.parameters
        for clock in self.clocks[1:]:
            params = clock.model.parameters
            for name in SHARED_PARAMETERS:
                setattr(params, name, getattr(ref, name))
            clock.is_playing = ref_clock.is_playing
            clock.time_speed = ref_clock.time_speed
        self.distribute_parameters()

    # ========================================================================
    # Simulation
    # ========================================================================

    @property
    def is_playing(self) -> bool:
        return self.clocks[0].is_playing

    def play(self) -> None:
        self.clocks[0].play()
        self.synchronize()

    def pause(self) -> None:
        self.clocks[0].pause()
        self.synchronize()

    def toggle_playing(self) -> None:
        self.clocks[0].toggle_playing()
        self.synchronize()

    def set_time_speed(self, speed: Union[TimeSpeed, str]) -> None:
        self.clocks[0].time_speed = speed
        self.synchronize()

    def set_solver_type(self, kind: Union[SolverType, str], **options: Any) -> None:
        """Select the solver for every resonator."""
        for clock in self.clocks:
            clock.set_solver_type(kind, **options)

    def step(self, dt: float, force_step: bool = False) -> List[List[SubStepSample]]:
        """
        Advance the sweep and every active resonator that is not being dragged.

        Returns
        -------
        List[List[SubStepSample]]
            Sub-step samples per active resonator (empty for dragged ones)
        """
        self.sweep.step(dt)
        self.synchronize()

        samples: List[List[SubStepSample]] = []
        for clock in self.clocks[: self._count]:
            if clock.model.is_dragging:
                samples.append([])
            else:
                samples.append(clock.step(dt, force_step))
        return samples

    def reset(self) -> None:
        """Back to one SAME_MASS resonator with every clock and model reset."""
        self.sweep.reset()
        self._config_mode = ResonatorConfigMode.SAME_MASS
        self._count = 1
        self._selected_index = 0
        for clock in self.clocks:
            clock.reset()
        self.distribute_parameters(reset_base_values=True)
        self.synchronize()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(count={self._count}, mode={self._config_mode.value}, "
            f"solver={self.clocks[0].solver_type.value})"
        )


__all__ = [
    "MAX_RESONATORS",
    "TARGET_FREQUENCY_RANGE",
    "ResonatorConfigMode",
    "ResonatorArray",
]
