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
Unit Tests for the Driven Damped Oscillator Model

Tests cover:
1. Construction, state layout and accumulator tracking
2. Equations of motion (get_derivatives) including driving and gravity
3. State round-trip and validation
4. Reset of parameters and state
5. Parameter updates, validation warnings, presets
6. Force, energy and power readouts
7. Diagnostics exposure and sub-step samples
"""

import math

import numpy as np
import pytest

from oscsym.systems.base.numerical_integration.method_registry import integrate
from oscsym.systems.builtin.mechanical import (
    OSCILLATOR_PRESETS,
    OscillatorModel,
    OscillatorParameters,
    OscillatorPreset,
    StateIndex,
    get_preset,
)
from oscsym.systems.builtin.mechanical import oscillator_response as response
from oscsym.types.solvers import DampingRegime

# ============================================================================
# Test Fixtures
# ============================================================================


@pytest.fixture
def model():
    """Default reference oscillator displaced by 10 cm."""
    return OscillatorModel(initial_position=0.1)


@pytest.fixture
def driven_model():
    """m = 1, k = 100, b = 2, driven at 1 Hz with 1 cm amplitude."""
    params = OscillatorParameters(
        mass=1.0,
        spring_constant=100.0,
        damping=2.0,
        driving_enabled=True,
        driving_amplitude=0.01,
        driving_frequency=1.0,
    )
    return OscillatorModel(params, initial_position=0.05, initial_velocity=0.3)


# ============================================================================
# Test Class: Construction and Layout
# ============================================================================


class TestConstruction:
    """Initial state and layout"""

    def test_default_parameters(self, model):
        p = model.parameters
        assert (p.mass, p.spring_constant, p.damping, p.gravity) == (2.53, 100.0, 1.0, 0.0)
        assert p.driving_enabled is False

    def test_initial_state(self):
        model = OscillatorModel(initial_position=0.2, initial_velocity=-1.0)
        np.testing.assert_array_equal(model.get_state(), [0.2, -1.0, 0, 0, 0, 0, 0])
        assert model.state_dimension == 7

    def test_without_accumulators(self):
        model = OscillatorModel(initial_position=0.2, track_accumulators=False)
        assert model.state_dimension == 3
        assert model.get_state().shape == (3,)
        assert model.thermal_energy == 0.0
        assert model.driver_energy == 0.0
        assert model.rms_displacement(1.0) == 0.0

    def test_state_index_layout(self):
        assert [int(i) for i in StateIndex] == list(range(7))
        assert StateIndex.DRIVING_PHASE == 2

    def test_shared_parameter_object(self):
        """The model uses the caller's parameter instance"""
        params = OscillatorParameters(mass=3.0)
        model = OscillatorModel(params)
        params.damping = 0.25
        assert model.parameters.damping == 0.25

    def test_repr(self, model):
        assert repr(model) == "OscillatorModel(m=2.53, k=100.0, b=1.0, g=0.0, driving=off, nx=7)"


# ============================================================================
# Test Class: Equations of Motion
# ============================================================================


class TestDerivatives:
    """get_derivatives"""

    def test_undriven(self, model):
        y = np.array([0.1, 0.5, 0.0, 0, 0, 0, 0])
        d = model.get_derivatives(0.0, y)
        assert d[StateIndex.POSITION] == 0.5
        assert d[StateIndex.VELOCITY] == pytest.approx((-100.0 * 0.1 - 1.0 * 0.5) / 2.53)
        assert d[StateIndex.DRIVING_PHASE] == 0.0

    def test_accumulator_rates(self, driven_model):
        y = np.array([0.1, 0.5, math.pi / 6, 0, 0, 0, 0])
        d = driven_model.get_derivatives(0.0, y)
        force = 100.0 * 0.01 * 0.5
        assert d[StateIndex.VELOCITY] == pytest.approx(-100.0 * 0.1 - 2.0 * 0.5 + force)
        assert d[StateIndex.DRIVING_PHASE] == pytest.approx(2.0 * math.pi)
        assert d[StateIndex.DRIVER_ENERGY] == pytest.approx(force * 0.5)
        assert d[StateIndex.THERMAL_ENERGY] == pytest.approx(2.0 * 0.25)
        assert d[StateIndex.SUM_SQUARED_DISPLACEMENT] == pytest.approx(0.01)
        assert d[StateIndex.SUM_SQUARED_VELOCITY] == pytest.approx(0.25)

    def test_gravity(self):
        model = OscillatorModel(OscillatorParameters(gravity=9.81))
        d = model.get_derivatives(0.0, model.get_state())
        assert d[StateIndex.VELOCITY] == pytest.approx(-9.81)

    def test_depends_only_on_argument(self, model):
        """Stored state is never read, time is unused"""
        y = np.array([-0.3, 0.0, 0.0, 0, 0, 0, 0])
        a = model.get_derivatives(0.0, y)
        model.set_state([5.0, 5.0, 1.0, 0, 0, 0, 0])
        b = model.get_derivatives(123.0, y)
        np.testing.assert_array_equal(a, b)

    def test_reads_current_parameters(self, model):
        """Parameter edits take effect on the next evaluation"""
        y = model.get_state()
        before = model.get_derivatives(0.0, y)[StateIndex.VELOCITY]
        model.parameters.mass *= 2
        after = model.get_derivatives(0.0, y)[StateIndex.VELOCITY]
        assert after == pytest.approx(before / 2)

    def test_negative_values_clamped(self):
        """Negative k and b act as zero"""
        model = OscillatorModel(OscillatorParameters(spring_constant=-10.0, damping=-1.0))
        d = model.get_derivatives(0.0, [0.5, 1.0, 0.0, 0, 0, 0, 0])
        assert d[StateIndex.VELOCITY] == 0.0
        assert d[StateIndex.THERMAL_ENERGY] == 0.0

    def test_negative_driving_amplitude_clamped(self):
        """A negative driving amplitude drives nothing"""
        params = OscillatorParameters(driving_enabled=True, driving_amplitude=-0.05)
        model = OscillatorModel(params)
        d = model.get_derivatives(0.0, [0.0, 0.0, math.pi / 2, 0, 0, 0, 0])
        assert d[StateIndex.VELOCITY] == 0.0
        assert model.driver_position == 0.0

        model.set_state([0.0, 0.0, math.pi / 2, 0, 0, 0, 0])
        assert model.applied_force == 0.0

    def test_negative_driving_amplitude_same_for_all_solvers(self):
        """Numerical and exact solvers see the same clamped drive"""
        solver_options = {"rk4": {"fixed_timestep": 0.001}, "analytical": {}}
        positions = []
        for kind, options in solver_options.items():
            params = OscillatorParameters(driving_enabled=True, driving_amplitude=-0.05)
            model = OscillatorModel(params)
            integrate(kind, 1.0, model, **options)
            positions.append(model.position)
        assert positions == [0.0, 0.0]

    def test_zero_mass_finite(self):
        model = OscillatorModel(OscillatorParameters(mass=0.0))
        d = model.get_derivatives(0.0, [0.1, 0.0, 0.0, 0, 0, 0, 0])
        assert np.all(np.isfinite(d))

    def test_core_layout_has_three_rates(self):
        model = OscillatorModel(track_accumulators=False)
        assert model.get_derivatives(0.0, [0.1, 0.0, 0.0]).shape == (3,)


# ============================================================================
# Test Class: State Handling and Reset
# ============================================================================


class TestStateAndReset:
    """get_state / set_state / reset"""

    def test_round_trip(self, driven_model):
        state = np.array([0.12345678901234, -9.87654321, 4.2, 0.1, 0.2, 0.3, 0.4])
        driven_model.set_state(state)
        np.testing.assert_array_equal(driven_model.get_state(), state)

    def test_wrong_length(self, model):
        with pytest.raises(ValueError):
            model.set_state([0.0, 0.0, 0.0])

    def test_position_velocity_setters(self, model):
        model.position = 0.3
        model.velocity = -0.7
        assert model.get_state()[0] == 0.3
        assert model.get_state()[1] == -0.7

    def test_reset_restores_state(self, driven_model):
        driven_model.set_state([1, 2, 3, 4, 5, 6, 7])
        driven_model.reset()
        np.testing.assert_array_equal(driven_model.get_state(), [0.05, 0.3, 0, 0, 0, 0, 0])

    def test_reset_restores_parameters_in_place(self, driven_model):
        params = driven_model.parameters
        driven_model.set_parameters(mass=9.0, damping=0.0, driving_enabled=False)
        driven_model.reset()
        assert driven_model.parameters is params
        assert params.mass == 1.0
        assert params.damping == 2.0
        assert params.driving_enabled is True

    def test_reset_clears_dragging(self, model):
        model.is_dragging = True
        model.reset()
        assert model.is_dragging is False


# ============================================================================
# Test Class: Parameters and Presets
# ============================================================================


class TestParameters:
    """set_parameters and validation"""

    def test_set_parameters(self, model):
        model.set_parameters(mass=1.0, spring_constant=25.0, damping=10.0)
        assert model.damping_regime is DampingRegime.CRITICALLY_DAMPED

    def test_unknown_parameter(self, model):
        """Unknown names raise before anything is applied"""
        with pytest.raises(ValueError, match="viscosity"):
            model.set_parameters(mass=9.0, viscosity=1.0)
        assert model.parameters.mass == 2.53

    @pytest.mark.parametrize(
        "changes",
        [
            {"mass": 0.0},
            {"spring_constant": -1.0},
            {"damping": -0.5},
            {"driving_amplitude": -0.01},
            {"driving_enabled": True, "driving_frequency": 0.0},
        ],
    )
    def test_non_physical_warns(self, model, changes):
        """Out-of-range values are applied with a UserWarning"""
        with pytest.warns(UserWarning, match="Non-physical"):
            model.set_parameters(**changes)
        for name, value in changes.items():
            assert getattr(model.parameters, name) == value

    def test_validation_issues(self):
        assert OscillatorParameters().validation_issues() == []
        assert len(OscillatorParameters(mass=-1.0, damping=-1.0).validation_issues()) == 2

    def test_field_names(self):
        assert OscillatorParameters.field_names() == (
            "mass",
            "spring_constant",
            "damping",
            "gravity",
            "driving_enabled",
            "driving_amplitude",
            "driving_frequency",
        )


class TestPresets:
    """Named starting configurations"""

    def test_preset_names(self):
        assert set(OSCILLATOR_PRESETS) == {
            "light_and_bouncy",
            "heavy_and_slow",
            "underdamped",
            "critically_damped",
            "overdamped",
            "resonance_demo",
        }

    @pytest.mark.parametrize(
        "name, regime",
        [
            ("underdamped", DampingRegime.UNDERDAMPED),
            ("critically_damped", DampingRegime.CRITICALLY_DAMPED),
            ("overdamped", DampingRegime.OVERDAMPED),
            ("light_and_bouncy", DampingRegime.UNDERDAMPED),
            ("heavy_and_slow", DampingRegime.UNDERDAMPED),
        ],
    )
    def test_preset_regimes(self, model, name, regime):
        model.apply_preset(name)
        assert model.damping_regime is regime

    def test_apply_preset_sets_state(self, model):
        model.set_state([0.0, 0.0, 1.5, 0.1, 0.2, 0.3, 0.4])
        model.apply_preset("resonance_demo")
        assert model.position == 0.5
        assert model.velocity == 0.0
        assert model.driving_phase == 1.5
        assert model.thermal_energy == 0.2
        assert model.parameters.spring_constant == 10.0

    def test_resonance_demo_near_resonance(self, model):
        model.apply_preset("resonance_demo")
        assert model.frequency_ratio == pytest.approx(1.0, abs=1e-3)

    def test_apply_preset_object(self, model):
        preset = OscillatorPreset("custom", mass=3.0, spring_constant=12.0, damping=0.2, initial_position=-0.4)
        model.apply_preset(preset)
        assert model.parameters.mass == 3.0
        assert model.position == -0.4

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="bouncy_castle"):
            get_preset("bouncy_castle")


# ============================================================================
# Test Class: Readouts
# ============================================================================


class TestReadouts:
    """Forces, energies and powers at the stored state"""

    def test_forces(self, driven_model):
        driven_model.set_state([0.1, 0.5, math.pi / 2, 0, 0, 0, 0])
        assert driven_model.spring_force == pytest.approx(-10.0)
        assert driven_model.damping_force == pytest.approx(-1.0)
        assert driven_model.applied_force == pytest.approx(1.0)
        assert driven_model.driver_position == pytest.approx(0.01)
        assert driven_model.gravitational_force == 0.0
        assert driven_model.net_force == pytest.approx(-10.0 - 1.0 + 1.0)
        assert driven_model.acceleration == pytest.approx(-10.0)

    def test_driving_off_force(self, model):
        model.set_state([0.1, 0.0, 1.0, 0, 0, 0, 0])
        assert model.applied_force == 0.0
        assert model.driver_position == 0.0

    def test_energies(self):
        model = OscillatorModel(
            OscillatorParameters(mass=2.0, spring_constant=50.0, gravity=9.81),
            initial_position=0.2,
            initial_velocity=1.5,
        )
        assert model.kinetic_energy == pytest.approx(2.25)
        assert model.spring_potential_energy == pytest.approx(1.0)
        assert model.gravitational_potential_energy == pytest.approx(2.0 * 9.81 * 0.2)
        assert model.potential_energy == pytest.approx(1.0 + 3.924)
        assert model.total_energy == pytest.approx(2.25 + 1.0 + 3.924)

    def test_powers(self, driven_model):
        driven_model.set_state([0.1, 0.5, math.pi / 2, 0, 0, 0, 0])
        assert driven_model.damping_power == pytest.approx(-0.5)
        assert driven_model.driving_power == pytest.approx(0.5)
        assert driven_model.spring_power == pytest.approx(-5.0)
        assert driven_model.gravitational_power == 0.0

    def test_power_sum_is_energy_rate(self, driven_model):
        """dE/dt = driving + damping power"""
        d = driven_model.get_derivatives(0.0, driven_model.get_state())
        m, k = 1.0, 100.0
        x, v = driven_model.position, driven_model.velocity
        dE = m * v * d[StateIndex.VELOCITY] + k * x * v
        assert dE == pytest.approx(driven_model.driving_power + driven_model.damping_power)

    def test_rms_helpers(self, model):
        model.set_state([0, 0, 0, 0, 0, 0.08, 0.5])
        assert model.rms_displacement(2.0) == pytest.approx(0.2)
        assert model.rms_velocity(2.0) == pytest.approx(0.5)
        assert model.rms_displacement(0.0) == 0.0
        assert model.rms_velocity(1e-12) == 0.0


# ============================================================================
# Test Class: Diagnostics and Samples
# ============================================================================


class TestDiagnostics:
    """Response properties and sample records"""

    @pytest.mark.parametrize(
        "name",
        ["natural_frequency", "damping_ratio", "quality_factor", "phase_angle", "bandwidth",
         "displacement_amplitude", "power_factor", "steady_state_average_power"],
    )
    def test_properties_match_functions(self, driven_model, name):
        assert getattr(driven_model, name) == getattr(response, name)(driven_model.parameters)

    def test_properties_follow_edits(self, model):
        model.parameters.damping = 0.0
        assert math.isinf(model.quality_factor)

    def test_get_diagnostics(self, driven_model):
        diagnostics = driven_model.get_diagnostics()
        assert diagnostics["damping_ratio"] == pytest.approx(0.1)
        assert "effective_parameters" not in diagnostics
        assert "damping_regime" not in diagnostics
        assert all(isinstance(value, float) for value in diagnostics.values())

    def test_sub_step_sample(self, driven_model):
        y = np.array([0.1, 0.5, math.pi / 2, 0, 0, 0, 0])
        sample = driven_model.sub_step_sample(3.5, y)
        assert sample == {
            "time": 3.5,
            "position": 0.1,
            "velocity": 0.5,
            "acceleration": pytest.approx(-10.0),
            "applied_force": pytest.approx(1.0),
        }
