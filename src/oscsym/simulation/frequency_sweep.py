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
Frequency Sweep Controller

Ramps the driving frequency linearly from the bottom to the top of a range,
advanced by the caller's frame dt. Used to trace out a resonance curve.

    f(t + dt) = min(f(t) + sweep_rate * speed_factor * dt, f_max)

The sweep continues from the current driving frequency, so a manual edit
during a sweep moves the ramp with it.
"""

import math
from typing import Tuple

from oscsym.systems.builtin.mechanical.oscillator_parameters import OscillatorParameters

DEFAULT_FREQUENCY_RANGE = (0.0, 6.0)
DEFAULT_SWEEP_RATE = 0.1


class FrequencySweepController:
    """
    Linear driving-frequency sweep.

    Parameters
    ----------
    parameters : OscillatorParameters
        Parameters whose driving_frequency is swept
    frequency_range : Tuple[float, float]
        (f_min, f_max) in Hz
    sweep_rate : float
        Base rate (Hz/s)

    Raises
    ------
    ValueError
        If the range is empty or the rate is not positive

    Examples
    --------
    >>> sweep = FrequencySweepController(params, frequency_range=(0.5, 3.0))
    >>> sweep.start()
    >>> while not sweep.step(1 / 60):
    ...     clock.step(1 / 60)
    >>> params.driving_frequency
    3.0
    """

    def __init__(
        self,
        parameters: OscillatorParameters,
        frequency_range: Tuple[float, float] = DEFAULT_FREQUENCY_RANGE,
        sweep_rate: float = DEFAULT_SWEEP_RATE,
    ):
        f_min, f_max = (float(f) for f in frequency_range)
        if not f_min < f_max:
            raise ValueError(f"frequency_range must satisfy min < max, got {frequency_range}")
        if not sweep_rate > 0:
            raise ValueError(f"sweep_rate must be positive, got {sweep_rate}")

        self.parameters = parameters
        self.frequency_range = (f_min, f_max)
        self.sweep_rate = float(sweep_rate)
        self.speed_factor = 1.0

        self._is_sweeping = False
        self._is_paused = False
        self.completed_sweeps = 0

    @property
    def effective_sweep_rate(self) -> float:
        return self.sweep_rate * self.speed_factor

    @property
    def is_sweeping(self) -> bool:
        """True from start() until completion or stop(), including while paused."""
        return self._is_sweeping

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    @property
    def remaining_time(self) -> float:
        """Seconds of stepping left at the current rate, 0 when idle."""
        if not self._is_sweeping:
            return 0.0
        remaining = self.frequency_range[1] - float(self.parameters.driving_frequency)
        return max(remaining, 0.0) / self.effective_sweep_rate

    # ========================================================================
    # Control
    # ========================================================================

    def start(self) -> None:
        """Jump to the bottom of the range and begin sweeping."""
        self.parameters.driving_frequency = self.frequency_range[0]
        self._is_sweeping = True
        self._is_paused = False

    def stop(self) -> None:
        """Abandon the sweep, leaving the frequency where it is."""
        self._is_sweeping = False
        self._is_paused = False

    def pause(self) -> None:
        if self._is_sweeping:
            self._is_paused = True

    def resume(self) -> None:
        if self._is_sweeping:
            self._is_paused = False

    def toggle(self) -> None:
        if self._is_sweeping:
            self.stop()
        else:
            self.start()

    def set_speed_factor(self, factor: float) -> None:
        """
        Scale the sweep rate. Takes effect on the next step().

        Raises
        ------
        ValueError
            If factor is not positive
        """
        if not factor > 0:
            raise ValueError(f"speed factor must be positive, got {factor}")
        self.speed_factor = float(factor)

    def reset(self) -> None:
        """Stop without touching the frequency. The speed factor is kept."""
        self.stop()
        self.completed_sweeps = 0

    # ========================================================================
    # Advance
    # ========================================================================

    def step(self, dt: float) -> bool:
        """
        Advance the sweep by dt seconds.

        Returns
        -------
        bool
            True only on the call that reaches the top of the range
        """
        if not self._is_sweeping or self._is_paused:
            return False
        if not math.isfinite(dt) or dt <= 0:
            return False

        f_max = self.frequency_range[1]
        frequency = float(self.parameters.driving_frequency) + self.effective_sweep_rate * dt
        if frequency >= f_max:
            self.parameters.driving_frequency = f_max
            self._is_sweeping = False
            self.completed_sweeps += 1
            return True

        self.parameters.driving_frequency = frequency
        return False

    def __repr__(self) -> str:
        state = "paused" if self._is_paused else ("sweeping" if self._is_sweeping else "idle")
        return (
            f"{self.__class__.__name__}(range={self.frequency_range}, "
            f"rate={self.effective_sweep_rate} Hz/s, {state})"
        )


__all__ = [
    "DEFAULT_FREQUENCY_RANGE",
    "DEFAULT_SWEEP_RATE",
    "FrequencySweepController",
]
