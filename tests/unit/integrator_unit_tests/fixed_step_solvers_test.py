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
Unit tests for fixed-step solvers

Tests cover:
1. Stage formulas (rk4_step, modified_midpoint_step)
2. RK4 solver: single step, subdivision, sub-step samples
3. Modified midpoint solver: options, extrapolation, sample emission
4. Accuracy verification against analytical solutions
5. Convergence order verification
6. Energy conservation on the undamped oscillator
7. No-op steps (dt = 0, negative, NaN)
"""

import math

import numpy as np
import pytest

from oscsym.systems.base.core.state_vector_model import StateVectorModel
from oscsym.systems.base.numerical_integration.fixed_step_solvers import (
    ModifiedMidpointSolver,
    RK4Solver,
    modified_midpoint_step,
    rk4_step,
)
from oscsym.systems.base.numerical_integration.solver_base import StepMode
from oscsym.systems.builtin.mechanical import OscillatorModel, OscillatorParameters
from oscsym.types.solvers import SolverType

# ============================================================================
# Mock Systems with Analytical Solutions
# ============================================================================


class ExponentialDecayModel(StateVectorModel):
    """dx/dt = -a*x with analytical solution"""

    def __init__(self, a=1.0, x0=1.0):
        self.a = a
        self.x0 = x0
        self._y = np.array([x0])

    @property
    def state_dimension(self):
        return 1

    def get_state(self):
        return self._y.copy()

    def set_state(self, state):
        self._y = self._coerce_state(state)

    def get_derivatives(self, t, state):
        return -self.a * np.asarray(state, dtype=float)

    def reset(self):
        self._y = np.array([self.x0])

    def analytical_solution(self, t):
        """x(t) = x0 * exp(-a*t)"""
        return self.x0 * np.exp(-self.a * t)


class HarmonicOscillatorModel(StateVectorModel):
    """Harmonic oscillator: d²x/dt² = -ω²x with analytical solution"""

    def __init__(self, omega=2 * np.pi, x0=1.0, v0=0.0):
        self.omega = omega
        self.x0 = x0
        self.v0 = v0
        self._y = np.array([x0, v0])

    @property
    def state_dimension(self):
        return 2

    def get_state(self):
        return self._y.copy()

    def set_state(self, state):
        self._y = self._coerce_state(state)

    def get_derivatives(self, t, state):
        y = np.asarray(state, dtype=float)
        return np.array([y[1], -self.omega**2 * y[0]])

    def reset(self):
        self._y = np.array([self.x0, self.v0])

    def analytical_solution(self, t):
        """x(t) = x0 cos(ωt) + (v0/ω) sin(ωt)"""
        w = self.omega
        x = self.x0 * np.cos(w * t) + (self.v0 / w) * np.sin(w * t)
        v = -self.x0 * w * np.sin(w * t) + self.v0 * np.cos(w * t)
        return np.array([x, v])


def run(solver, model, dt, n_steps):
    """Step a solver n_steps times."""
    for _ in range(n_steps):
        solver.step(dt, model)
    return model.get_state()


# ============================================================================
# Test Class 1: Stage Formulas
# ============================================================================


class TestStageFormulas:
    """Test the plain stage functions"""

    def test_rk4_step_matches_taylor(self):
        """RK4 on dx/dt = -x reproduces the 4th-order Taylor polynomial"""
        f = lambda t, y: -y
        h = 0.1
        y1 = rk4_step(f, 0.0, np.array([1.0]), h)
        expected = 1 - h + h**2 / 2 - h**3 / 6 + h**4 / 24
        assert y1[0] == pytest.approx(expected, abs=1e-15)

    def test_modified_midpoint_single_substep_is_heun(self):
        """With n=1 the modified midpoint reduces to the explicit trapezoid"""
        f = lambda t, y: -y
        y1 = modified_midpoint_step(f, 0.0, np.array([1.0]), 0.1, 1)
        assert y1[0] == pytest.approx(0.905, abs=1e-15)

    def test_modified_midpoint_evaluation_count(self):
        """n micro-steps cost n + 1 evaluations"""
        calls = []

        def f(t, y):
            calls.append(t)
            return -y

        modified_midpoint_step(f, 0.0, np.array([1.0]), 0.1, 4)
        assert len(calls) == 5
        assert calls[0] == 0.0
        assert calls[-1] == pytest.approx(0.1)

    def test_rk4_step_time_arguments(self):
        """Stages are evaluated at t, t+h/2, t+h/2, t+h"""
        times = []

        def f(t, y):
            times.append(t)
            return np.zeros_like(y)

        rk4_step(f, 1.0, np.array([0.0]), 0.2)
        assert times == pytest.approx([1.0, 1.1, 1.1, 1.2])


# ============================================================================
# Test Class 2: RK4 Solver
# ============================================================================


class TestRK4Solver:
    """Test RK4 solver"""

    def test_initialization(self):
        """Test RK4 solver defaults"""
        solver = RK4Solver()
        assert solver.step_mode == StepMode.FIXED
        assert solver.fixed_timestep is None
        assert solver.solver_type == SolverType.FIXED_RK4
        assert "RK4" in solver.name

    def test_unknown_option(self):
        """Test adaptive options are rejected"""
        with pytest.raises(ValueError):
            RK4Solver(rtol=1e-6)

    def test_single_step_no_samples(self):
        """Default RK4 takes one step and emits no sub-step samples"""
        solver = RK4Solver()
        model = ExponentialDecayModel()
        samples = []
        solver.step(0.016, model, on_sub_step=lambda t, y: samples.append(t))

        assert samples == []
        assert solver.get_stats()["total_steps"] == 1
        assert solver.get_stats()["total_fev"] == 4

    def test_subdivided_samples(self):
        """Fixed timestep subdivides and emits one sample per segment"""
        solver = RK4Solver(fixed_timestep=0.001)
        model = ExponentialDecayModel()
        samples = []
        solver.step(0.016, model, on_sub_step=lambda t, y: samples.append((t, y)))

        times = [t for t, _ in samples]
        assert len(times) == 16
        assert times[0] == pytest.approx(0.001)
        assert times[-1] == pytest.approx(0.016)
        assert np.all(np.diff(times) > 0)
        np.testing.assert_allclose(samples[-1][1], model.get_state())

    def test_sample_states_are_copies(self):
        """Sub-step states are snapshots, not views of the working state"""
        solver = RK4Solver(fixed_timestep=0.004)
        model = ExponentialDecayModel()
        states = []
        solver.step(0.016, model, on_sub_step=lambda t, y: states.append(y))
        assert states[0][0] > states[-1][0]

    def test_subdivision_matches_manual_steps(self):
        """Subdivided call equals n separate single steps"""
        model_a = HarmonicOscillatorModel()
        model_b = HarmonicOscillatorModel()

        RK4Solver(fixed_timestep=0.004).step(0.016, model_a)
        single = RK4Solver()
        for _ in range(4):
            single.step(0.004, model_b)

        np.testing.assert_allclose(model_a.get_state(), model_b.get_state(), rtol=1e-13)

    @pytest.mark.parametrize("dt", [0.0, -0.01, float("nan")])
    def test_non_positive_dt_is_noop(self, dt):
        """dt <= 0 leaves the state and statistics untouched"""
        solver = RK4Solver()
        model = HarmonicOscillatorModel(x0=0.3, v0=-0.2)
        before = model.get_state()
        samples = []
        solver.step(dt, model, on_sub_step=lambda t, y: samples.append(t))

        np.testing.assert_array_equal(model.get_state(), before)
        assert samples == []
        assert solver.get_stats()["total_steps"] == 0
        assert solver.get_stats()["total_fev"] == 0

    def test_accuracy_harmonic_oscillator(self):
        """One period of SHM with dt=0.01"""
        model = HarmonicOscillatorModel()
        y = run(RK4Solver(), model, 0.01, 100)
        np.testing.assert_allclose(y, model.analytical_solution(1.0), atol=1e-5)

    def test_convergence_order(self):
        """Halving dt reduces the error by about 2⁴"""
        errors = []
        for dt in (0.1, 0.05):
            model = ExponentialDecayModel(a=1.0)
            y = run(RK4Solver(), model, dt, int(round(1.0 / dt)))
            errors.append(abs(y[0] - model.analytical_solution(1.0)))

        ratio = errors[0] / errors[1]
        assert 12.0 < ratio < 20.0

    def test_energy_conservation(self):
        """Undamped oscillator energy drifts less than 0.1% over 1000 frames"""
        model = OscillatorModel(
            OscillatorParameters(mass=2.53, spring_constant=100.0, damping=0.0),
            initial_position=0.1,
        )
        e0 = model.total_energy
        solver = RK4Solver()
        for _ in range(1000):
            solver.step(0.016, model)
        assert abs(model.total_energy - e0) / e0 < 1e-3

    def test_stable_at_frame_cap(self):
        """Reference oscillator stays bounded at the 0.1 s frame cap"""
        model = OscillatorModel(initial_position=0.1)
        solver = RK4Solver()
        for _ in range(200):
            solver.step(0.1, model)
        assert abs(model.position) < 0.1


# ============================================================================
# Test Class 3: Modified Midpoint Solver
# ============================================================================


class TestModifiedMidpointSolver:
    """Test Gragg modified midpoint solver"""

    def test_initialization(self):
        """Test defaults"""
        solver = ModifiedMidpointSolver()
        assert solver.fixed_timestep == 0.001
        assert solver.substeps == 4
        assert solver.extrapolate is True
        assert solver.solver_type == SolverType.MODIFIED_MIDPOINT
        assert solver.name == "Modified Midpoint (Richardson)"

    def test_name_without_extrapolation(self):
        """Test name drops Richardson when extrapolation is off"""
        assert ModifiedMidpointSolver(extrapolate=False).name == "Modified Midpoint"

    def test_invalid_substeps(self):
        """substeps < 1 raises"""
        with pytest.raises(ValueError, match="substeps"):
            ModifiedMidpointSolver(substeps=0)

    def test_unknown_option(self):
        """Unknown option raises"""
        with pytest.raises(ValueError):
            ModifiedMidpointSolver(sub_step_interval=0.001)

    def test_samples_per_segment(self):
        """One sample per 1 ms outer segment"""
        solver = ModifiedMidpointSolver()
        times = []
        solver.step(0.016, ExponentialDecayModel(), on_sub_step=lambda t, y: times.append(t))
        assert len(times) == 16
        assert times[-1] == pytest.approx(0.016)

    def test_single_segment_no_samples(self):
        """fixed_timestep=None covers dt in one segment, no samples"""
        solver = ModifiedMidpointSolver(fixed_timestep=None)
        times = []
        solver.step(0.016, ExponentialDecayModel(), on_sub_step=lambda t, y: times.append(t))
        assert times == []
        assert solver.get_stats()["total_steps"] == 1

    def test_evaluation_count(self):
        """Extrapolated segment costs 3n + 2 evaluations"""
        solver = ModifiedMidpointSolver(fixed_timestep=None, substeps=4)
        solver.step(0.016, ExponentialDecayModel())
        assert solver.get_stats()["total_fev"] == 14

        plain = ModifiedMidpointSolver(fixed_timestep=None, substeps=4, extrapolate=False)
        plain.step(0.016, ExponentialDecayModel())
        assert plain.get_stats()["total_fev"] == 5

    def test_accuracy_harmonic_oscillator(self):
        """One period of SHM, 60 fps frames"""
        model = HarmonicOscillatorModel()
        y = run(ModifiedMidpointSolver(), model, 0.01, 100)
        np.testing.assert_allclose(y, model.analytical_solution(1.0), atol=1e-6)

    def test_extrapolation_improves_accuracy(self):
        """Richardson extrapolation beats plain midpoint"""
        errors = {}
        for extrapolate in (True, False):
            model = HarmonicOscillatorModel()
            solver = ModifiedMidpointSolver(fixed_timestep=None, substeps=2, extrapolate=extrapolate)
            y = run(solver, model, 0.02, 50)
            errors[extrapolate] = np.max(np.abs(y - model.analytical_solution(1.0)))
        assert errors[True] < errors[False] / 10

    def test_zero_dt_is_noop(self):
        """step(0) is an identity"""
        model = HarmonicOscillatorModel(x0=0.4)
        before = model.get_state()
        ModifiedMidpointSolver().step(0.0, model)
        np.testing.assert_array_equal(model.get_state(), before)

    def test_energy_conservation(self):
        """Undamped oscillator energy drifts less than 0.1%"""
        model = OscillatorModel(
            OscillatorParameters(mass=1.0, spring_constant=4 * math.pi**2, damping=0.0),
            initial_position=1.0,
        )
        e0 = model.total_energy
        solver = ModifiedMidpointSolver()
        for _ in range(300):
            solver.step(1 / 60, model)
        assert abs(model.total_energy - e0) / e0 < 1e-3
