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
Driven Damped Oscillator - Mass-Spring-Damper with a Moving Base

Physical System:
---------------
A mass m hangs on a spring k whose far end (the driver plate) moves as
A sin(phase). A linear damper b opposes the velocity and gravity g pulls
along -x.

Equations of motion:
    dx/dt     = v
    dv/dt     = (-k x - b v + F_drive) / m - g
    dphase/dt = 2π f                  (0 when driving is off)

    F_drive = k A sin(phase)          (0 when driving is off)

Integrating the driving phase as a state component, instead of evaluating
sin(2π f t), keeps the force continuous when f changes mid-run.

Optional accumulators (track_accumulators=True):
    d(driver energy)/dt  = F_drive v
    d(thermal energy)/dt = b v²
    d(∫x² dt)/dt         = x²
    d(∫v² dt)/dt         = v²

State Space:
-----------
    [x, v, phase]                                  track_accumulators=False
    [x, v, phase, E_drive, E_thermal, Σx², Σv²]    track_accumulators=True

Energy:
------
    KE        = ½ m v²
    PE_spring = ½ k x²
    PE_grav   = m g x
    E         = KE + PE_spring + PE_grav     (conserved when b = 0 and driving off)
"""

import math
import warnings
from dataclasses import replace
from typing import Any, Dict, Optional, Union

import numpy as np

from oscsym.systems.base.core.state_vector_model import StateVectorModel
from oscsym.systems.builtin.mechanical import oscillator_response as response
from oscsym.systems.builtin.mechanical.oscillator_parameters import (
    CORE_STATE_DIMENSION,
    FULL_STATE_DIMENSION,
    OscillatorParameters,
    OscillatorPreset,
    StateIndex,
    get_preset,
)
from oscsym.types.core import DerivativeVector, ScalarLike, StateLike, StateVector
from oscsym.types.solvers import DampingRegime
from oscsym.types.trajectories import SubStepSample


def _response_property(function):
    """Expose a pure oscillator_response function as a read-only property."""

    def getter(self):
        return function(self.parameters)

    return property(getter, doc=function.__doc__)


class OscillatorModel(StateVectorModel):
    """
    Driven damped harmonic oscillator.

    Parameters
    ----------
    parameters : Optional[OscillatorParameters]
        Physical parameters (default: 2.53 kg, 100 N/m, 1 N·s/m, no gravity,
        driving off). The instance is mutated in place by set_parameters()
        and reset(), so callers may hold on to it.
    initial_position : float
        Position restored by reset() (m)
    initial_velocity : float
        Velocity restored by reset() (m/s)
    track_accumulators : bool
        Include the four energy/RMS accumulators in the state vector

    Examples
    --------
    >>> model = OscillatorModel(initial_position=0.1)
    >>> model.get_state()
    array([0.1, 0. , 0. , 0. , 0. , 0. , 0. ])
    >>>
    >>> model.parameters.damping = 0.0
    >>> model.damping_regime
    <DampingRegime.UNDERDAMPED: 'underdamped'>
    >>>
    >>> model.set_parameters(driving_enabled=True, driving_frequency=1.0)
    >>> model.phase_angle
    """

    def __init__(
        self,
        parameters: Optional[OscillatorParameters] = None,
        initial_position: float = 0.0,
        initial_velocity: float = 0.0,
        track_accumulators: bool = True,
    ):
        self.parameters = parameters if parameters is not None else OscillatorParameters()
        self._default_parameters = replace(self.parameters)
        self.initial_position = float(initial_position)
        self.initial_velocity = float(initial_velocity)
        self.track_accumulators = track_accumulators

        # Set by a user interface while the mass is held; the model never reads it
        self.is_dragging = False

        self._state = self._initial_state()

    # ========================================================================
    # StateVectorModel Interface
    # ========================================================================

    @property
    def state_dimension(self) -> int:
        return FULL_STATE_DIMENSION if self.track_accumulators else CORE_STATE_DIMENSION

    def get_state(self) -> StateVector:
        return self._state.copy()

    def set_state(self, state: StateLike) -> None:
        self._state = self._coerce_state(state)

    def get_derivatives(self, t: ScalarLike, state: StateLike) -> DerivativeVector:
        """
        Right-hand side of the equations of motion.

        Uses the current parameters and the given state only. The time
        argument is unused because the driving phase is a state component.
        """
        y = np.asarray(state, dtype=np.float64)
        x = y[StateIndex.POSITION]
        v = y[StateIndex.VELOCITY]
        phase = y[StateIndex.DRIVING_PHASE]

        m, k, b = response.effective_parameters(self.parameters)
        g = float(self.parameters.gravity)

        F_drive = self._driving_force(phase)
        phase_rate = (
            response.driving_angular_frequency(self.parameters)
            if self.parameters.driving_enabled
            else 0.0
        )

        derivatives = np.zeros_like(y)
        derivatives[StateIndex.POSITION] = v
        derivatives[StateIndex.VELOCITY] = (-k * x - b * v + F_drive) / m - g
        derivatives[StateIndex.DRIVING_PHASE] = phase_rate

        if y.shape[0] >= FULL_STATE_DIMENSION:
            derivatives[StateIndex.DRIVER_ENERGY] = F_drive * v
            derivatives[StateIndex.THERMAL_ENERGY] = b * v * v
            derivatives[StateIndex.SUM_SQUARED_DISPLACEMENT] = x * x
            derivatives[StateIndex.SUM_SQUARED_VELOCITY] = v * v

        return derivatives

    def reset(self) -> None:
        """Restore construction-time parameters, initial conditions and zero accumulators."""
        for name in OscillatorParameters.field_names():
            setattr(self.parameters, name, getattr(self._default_parameters, name))
        self.is_dragging = False
        self._state = self._initial_state()

    def sub_step_sample(self, time: ScalarLike, state: StateLike) -> SubStepSample:
        y = np.asarray(state, dtype=np.float64)
        derivatives = self.get_derivatives(0.0, y)
        return {
            "time": float(time),
            "position": float(y[StateIndex.POSITION]),
            "velocity": float(y[StateIndex.VELOCITY]),
            "acceleration": float(derivatives[StateIndex.VELOCITY]),
            "applied_force": float(self._driving_force(y[StateIndex.DRIVING_PHASE])),
        }

    def _initial_state(self) -> StateVector:
        y = np.zeros(self.state_dimension, dtype=np.float64)
        y[StateIndex.POSITION] = self.initial_position
        y[StateIndex.VELOCITY] = self.initial_velocity
        return y

    def _driving_force(self, phase: float) -> float:
        return response.force_amplitude(self.parameters) * math.sin(phase)

    def _component(self, index: StateIndex) -> float:
        if index >= self.state_dimension:
            return 0.0
        return float(self._state[index])

    # ========================================================================
    # Parameter Management
    # ========================================================================

    def set_parameters(self, **changes: Any) -> None:
        """
        Change several parameters at once.

        All names are checked before anything is applied. Values outside
        the physical ranges are accepted with a UserWarning.

        Raises
        ------
        ValueError
            If a name is not an OscillatorParameters field

        Examples
        --------
        >>> model.set_parameters(mass=1.0, spring_constant=25.0, damping=10.0)
        >>> model.damping_regime
        <DampingRegime.CRITICALLY_DAMPED: 'critically_damped'>
        """
        valid = OscillatorParameters.field_names()
        unknown = sorted(set(changes) - set(valid))
        if unknown:
            raise ValueError(f"Unknown parameter(s) {unknown}. Valid parameters: {list(valid)}")

        for name, value in changes.items():
            setattr(self.parameters, name, value)

        issues = self.parameters.validation_issues()
        if issues:
            warnings.warn(
                "Non-physical oscillator parameters: " + "; ".join(issues),
                UserWarning,
            )

    def apply_preset(self, preset: Union[str, OscillatorPreset]) -> None:
        """
        Load a named configuration.

        Sets mass, spring constant, damping, driving amplitude and frequency,
        and moves the mass to the preset's initial position and velocity.
        Driving phase, accumulators and gravity are left alone.
        """
        if isinstance(preset, str):
            preset = get_preset(preset)

        self.set_parameters(
            mass=preset.mass,
            spring_constant=preset.spring_constant,
            damping=preset.damping,
            driving_amplitude=preset.driving_amplitude,
            driving_frequency=preset.driving_frequency,
        )
        self._state[StateIndex.POSITION] = preset.initial_position
        self._state[StateIndex.VELOCITY] = preset.initial_velocity

    # ========================================================================
    # State Components
    # ========================================================================

    @property
    def position(self) -> float:
        return float(self._state[StateIndex.POSITION])

    @position.setter
    def position(self, value: float) -> None:
        self._state[StateIndex.POSITION] = value

    @property
    def velocity(self) -> float:
        return float(self._state[StateIndex.VELOCITY])

    @velocity.setter
    def velocity(self, value: float) -> None:
        self._state[StateIndex.VELOCITY] = value

    @property
    def driving_phase(self) -> float:
        return float(self._state[StateIndex.DRIVING_PHASE])

    @property
    def driver_energy(self) -> float:
        """Cumulative work done by the driver (J), 0 without accumulators."""
        return self._component(StateIndex.DRIVER_ENERGY)

    @property
    def thermal_energy(self) -> float:
        """Cumulative energy dissipated by damping (J), 0 without accumulators."""
        return self._component(StateIndex.THERMAL_ENERGY)

    def rms_displacement(self, elapsed_time: float) -> float:
        """
        Running RMS displacement √(∫x² dt / t) over the elapsed simulated time.

        0 for elapsed times below 1e-10 s or without accumulators.
        """
        if elapsed_time <= 1e-10:
            return 0.0
        return math.sqrt(max(self._component(StateIndex.SUM_SQUARED_DISPLACEMENT), 0.0) / elapsed_time)

    def rms_velocity(self, elapsed_time: float) -> float:
        """Running RMS velocity √(∫v² dt / t)."""
        if elapsed_time <= 1e-10:
            return 0.0
        return math.sqrt(max(self._component(StateIndex.SUM_SQUARED_VELOCITY), 0.0) / elapsed_time)

    # ========================================================================
    # Instantaneous Readouts
    # ========================================================================

    @property
    def acceleration(self) -> float:
        return float(self.get_derivatives(0.0, self._state)[StateIndex.VELOCITY])

    @property
    def applied_force(self) -> float:
        """Driving force k A sin(phase) (N)."""
        return self._driving_force(self.driving_phase)

    @property
    def driver_position(self) -> float:
        """Driver plate displacement A sin(phase) (m)."""
        if not self.parameters.driving_enabled:
            return 0.0
        return max(float(self.parameters.driving_amplitude), 0.0) * math.sin(self.driving_phase)

    @property
    def spring_force(self) -> float:
        _, k, _ = response.effective_parameters(self.parameters)
        return -k * self.position

    @property
    def damping_force(self) -> float:
        _, _, b = response.effective_parameters(self.parameters)
        return -b * self.velocity

    @property
    def gravitational_force(self) -> float:
        m, _, _ = response.effective_parameters(self.parameters)
        return -m * float(self.parameters.gravity)

    @property
    def net_force(self) -> float:
        m, _, _ = response.effective_parameters(self.parameters)
        return m * self.acceleration

    @property
    def kinetic_energy(self) -> float:
        m, _, _ = response.effective_parameters(self.parameters)
        return 0.5 * m * self.velocity**2

    @property
    def spring_potential_energy(self) -> float:
        _, k, _ = response.effective_parameters(self.parameters)
        return 0.5 * k * self.position**2

    @property
    def gravitational_potential_energy(self) -> float:
        m, _, _ = response.effective_parameters(self.parameters)
        return m * float(self.parameters.gravity) * self.position

    @property
    def potential_energy(self) -> float:
        return self.spring_potential_energy + self.gravitational_potential_energy

    @property
    def total_energy(self) -> float:
        return self.kinetic_energy + self.potential_energy

    @property
    def damping_power(self) -> float:
        """-b v² (W), never positive."""
        return self.damping_force * self.velocity

    @property
    def driving_power(self) -> float:
        return self.applied_force * self.velocity

    @property
    def spring_power(self) -> float:
        """-k x v (W), positive while the spring releases energy."""
        return self.spring_force * self.velocity

    @property
    def gravitational_power(self) -> float:
        return self.gravitational_force * self.velocity

    # ========================================================================
    # Diagnostics (pure functions of the current parameters)
    # ========================================================================

    natural_frequency = _response_property(response.natural_frequency)
    natural_frequency_hz = _response_property(response.natural_frequency_hz)
    damping_ratio = _response_property(response.damping_ratio)
    quality_factor = _response_property(response.quality_factor)
    damped_angular_frequency = _response_property(response.damped_angular_frequency)
    damped_frequency_hz = _response_property(response.damped_frequency_hz)
    logarithmic_decrement = _response_property(response.logarithmic_decrement)
    decay_time_constant = _response_property(response.decay_time_constant)
    bandwidth = _response_property(response.bandwidth)
    static_equilibrium = _response_property(response.static_equilibrium)
    driving_angular_frequency = _response_property(response.driving_angular_frequency)
    frequency_ratio = _response_property(response.frequency_ratio)
    phase_angle = _response_property(response.phase_angle)
    displacement_amplitude = _response_property(response.displacement_amplitude)
    velocity_amplitude = _response_property(response.velocity_amplitude)
    acceleration_amplitude = _response_property(response.acceleration_amplitude)
    force_amplitude = _response_property(response.force_amplitude)
    amplitude_ratio = _response_property(response.amplitude_ratio)
    velocity_phase = _response_property(response.velocity_phase)
    acceleration_phase = _response_property(response.acceleration_phase)
    spring_force_phase = _response_property(response.spring_force_phase)
    damping_force_phase = _response_property(response.damping_force_phase)
    mechanical_reactance = _response_property(response.mechanical_reactance)
    impedance_magnitude = _response_property(response.impedance_magnitude)
    impedance_phase = _response_property(response.impedance_phase)
    power_factor = _response_property(response.power_factor)
    steady_state_rms_displacement = _response_property(response.steady_state_rms_displacement)
    steady_state_rms_velocity = _response_property(response.steady_state_rms_velocity)
    steady_state_rms_acceleration = _response_property(response.steady_state_rms_acceleration)
    steady_state_kinetic_energy = _response_property(response.steady_state_kinetic_energy)
    steady_state_potential_energy = _response_property(response.steady_state_potential_energy)
    steady_state_total_energy = _response_property(response.steady_state_total_energy)
    steady_state_average_power = _response_property(response.steady_state_average_power)
    steady_state_driving_power = _response_property(response.steady_state_driving_power)
    steady_state_damping_power = _response_property(response.steady_state_damping_power)
    peak_response_frequency = _response_property(response.peak_response_frequency)
    peak_displacement_amplitude = _response_property(response.peak_displacement_amplitude)

    @property
    def damping_regime(self) -> DampingRegime:
        return response.damping_regime(self.parameters)

    def get_diagnostics(self) -> Dict[str, float]:
        """
        Snapshot of every steady-state and free-response diagnostic.

        Returns
        -------
        Dict[str, float]
            Keyed by the oscillator_response function name

        Examples
        --------
        >>> diag = model.get_diagnostics()
        >>> diag['quality_factor']
        """
        return {
            name: float(getattr(response, name)(self.parameters))
            for name in response.__all__
            if name not in ("FREE_SPRING_EPSILON", "effective_parameters", "wrap_phase", "damping_regime")
        }

    def __repr__(self) -> str:
        p = self.parameters
        return (
            f"{self.__class__.__name__}(m={p.mass}, k={p.spring_constant}, b={p.damping}, "
            f"g={p.gravity}, driving={'on' if p.driving_enabled else 'off'}, "
            f"nx={self.state_dimension})"
        )


__all__ = ["OscillatorModel"]
