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
Unit Tests for FrequencySweepController

Tests cover:
1. Construction and validation
2. Linear ramp and completion
3. Pause / resume / stop / toggle
4. Speed factor and remaining time
5. Reset
"""

import math

import pytest

from oscsym.simulation.frequency_sweep import FrequencySweepController
from oscsym.systems.builtin.mechanical import OscillatorParameters


@pytest.fixture
def params():
    return OscillatorParameters(driving_enabled=True, driving_frequency=0.7)


@pytest.fixture
def sweep(params):
    return FrequencySweepController(params, frequency_range=(1.0, 2.0), sweep_rate=0.5)


# ============================================================================
# Test Class: Construction
# ============================================================================


class TestConstruction:
    def test_defaults(self, params):
        sweep = FrequencySweepController(params)
        assert sweep.frequency_range == (0.0, 6.0)
        assert sweep.sweep_rate == 0.1
        assert sweep.speed_factor == 1.0
        assert not sweep.is_sweeping
        assert sweep.completed_sweeps == 0

    def test_idle_leaves_frequency(self, sweep, params):
        assert sweep.step(1 / 60) is False
        assert params.driving_frequency == 0.7

    @pytest.mark.parametrize("frequency_range", [(2.0, 1.0), (1.0, 1.0)])
    def test_invalid_range(self, params, frequency_range):
        with pytest.raises(ValueError, match="frequency_range"):
            FrequencySweepController(params, frequency_range=frequency_range)

    @pytest.mark.parametrize("rate", [0.0, -0.1])
    def test_invalid_rate(self, params, rate):
        with pytest.raises(ValueError, match="sweep_rate"):
            FrequencySweepController(params, sweep_rate=rate)


# ============================================================================
# Test Class: Ramp
# ============================================================================


class TestRamp:
    def test_start_jumps_to_minimum(self, sweep, params):
        sweep.start()
        assert sweep.is_sweeping
        assert params.driving_frequency == 1.0

    def test_linear_increment(self, sweep, params):
        sweep.start()
        sweep.step(0.1)
        assert params.driving_frequency == pytest.approx(1.05)
        sweep.step(0.2)
        assert params.driving_frequency == pytest.approx(1.15)

    def test_completes_exactly_once(self, sweep, params):
        """2 s of sweeping at 0.5 Hz/s covers 1 Hz, then the sweep stops"""
        sweep.start()
        results = [sweep.step(1 / 60) for _ in range(200)]

        assert results.count(True) == 1
        assert results.index(True) in (119, 120)
        assert params.driving_frequency == 2.0
        assert sweep.completed_sweeps == 1
        assert not sweep.is_sweeping

    def test_frequency_monotonic_and_bounded(self, sweep, params):
        sweep.start()
        previous = params.driving_frequency
        for _ in range(150):
            sweep.step(1 / 60)
            assert previous <= params.driving_frequency <= 2.0
            previous = params.driving_frequency

    def test_large_step_clamps(self, sweep, params):
        sweep.start()
        assert sweep.step(100.0) is True
        assert params.driving_frequency == 2.0

    def test_follows_manual_edit(self, sweep, params):
        sweep.start()
        params.driving_frequency = 1.5
        sweep.step(0.2)
        assert params.driving_frequency == pytest.approx(1.6)

    @pytest.mark.parametrize("dt", [0.0, -1.0, math.nan, math.inf])
    def test_invalid_dt_ignored(self, sweep, params, dt):
        sweep.start()
        assert sweep.step(dt) is False
        assert params.driving_frequency == 1.0
        assert sweep.is_sweeping

    def test_second_sweep_counts(self, sweep):
        for _ in range(2):
            sweep.start()
            sweep.step(10.0)
        assert sweep.completed_sweeps == 2


# ============================================================================
# Test Class: Control
# ============================================================================


class TestControl:
    def test_pause_resume(self, sweep, params):
        sweep.start()
        sweep.pause()
        assert sweep.is_paused and sweep.is_sweeping
        sweep.step(0.5)
        assert params.driving_frequency == 1.0

        sweep.resume()
        sweep.step(0.5)
        assert params.driving_frequency == pytest.approx(1.25)

    def test_pause_ignored_when_idle(self, sweep):
        sweep.pause()
        assert not sweep.is_paused

    def test_stop_keeps_frequency(self, sweep, params):
        sweep.start()
        sweep.step(0.4)
        sweep.stop()
        assert not sweep.is_sweeping
        assert params.driving_frequency == pytest.approx(1.2)
        assert sweep.step(0.4) is False
        assert sweep.completed_sweeps == 0

    def test_toggle(self, sweep):
        sweep.toggle()
        assert sweep.is_sweeping
        sweep.toggle()
        assert not sweep.is_sweeping


# ============================================================================
# Test Class: Speed and Remaining Time
# ============================================================================


class TestSpeed:
    def test_speed_factor(self, sweep, params):
        sweep.set_speed_factor(4.0)
        assert sweep.effective_sweep_rate == pytest.approx(2.0)
        sweep.start()
        sweep.step(0.1)
        assert params.driving_frequency == pytest.approx(1.2)

    @pytest.mark.parametrize("factor", [0.0, -2.0])
    def test_invalid_speed_factor(self, sweep, factor):
        with pytest.raises(ValueError):
            sweep.set_speed_factor(factor)
        assert sweep.speed_factor == 1.0

    def test_remaining_time(self, sweep):
        assert sweep.remaining_time == 0.0
        sweep.start()
        assert sweep.remaining_time == pytest.approx(2.0)
        sweep.step(1.0)
        assert sweep.remaining_time == pytest.approx(1.0)
        sweep.set_speed_factor(2.0)
        assert sweep.remaining_time == pytest.approx(0.5)

    def test_reset(self, sweep, params):
        sweep.set_speed_factor(3.0)
        sweep.start()
        sweep.step(10.0)
        sweep.start()
        sweep.reset()

        assert not sweep.is_sweeping
        assert sweep.completed_sweeps == 0
        assert sweep.speed_factor == 3.0
        assert params.driving_frequency == 1.0

    def test_repr(self, sweep):
        assert "idle" in repr(sweep)
        sweep.start()
        assert "sweeping" in repr(sweep)
