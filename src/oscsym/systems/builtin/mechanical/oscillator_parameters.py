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
Oscillator Parameters, State Layout and Presets

Physical parameters of the driven damped oscillator live in a mutable
dataclass that is read fresh on every derivative evaluation. They are never
part of the state vector.

Sign convention: +x is up, gravity acts as -m*g, the driver pushes with
+k*A*sin(phase).
"""

from dataclasses import dataclass, fields
from enum import IntEnum
from typing import Dict, List, Tuple

MASS_FLOOR = 1e-12
"""Smallest mass used in any division (kg)."""


class StateIndex(IntEnum):
    """Component layout of the oscillator state vector."""

    POSITION = 0
    VELOCITY = 1
    DRIVING_PHASE = 2
    DRIVER_ENERGY = 3  # ∫ F_drive v dt
    THERMAL_ENERGY = 4  # ∫ b v² dt
    SUM_SQUARED_DISPLACEMENT = 5  # ∫ x² dt
    SUM_SQUARED_VELOCITY = 6  # ∫ v² dt


CORE_STATE_DIMENSION = 3
FULL_STATE_DIMENSION = len(StateIndex)


@dataclass
class OscillatorParameters:
    """
    Physical parameters of a mass-spring-damper with optional base driving.

    Attributes
    ----------
    mass : float
        Mass m (kg), > 0
    spring_constant : float
        Spring constant k (N/m), >= 0
    damping : float
        Damping coefficient b (N·s/m), >= 0
    gravity : float
        Gravitational acceleration g (m/s²), signed, 0 disables
    driving_enabled : bool
        Whether the driver plate moves
    driving_amplitude : float
        Driver displacement amplitude A (m), >= 0
    driving_frequency : float
        Driver frequency f (Hz), > 0

    Examples
    --------
    >>> params = OscillatorParameters(mass=1.0, spring_constant=100.0, damping=2.0)
    >>> params.damping = 0.0    # takes effect on the next derivative evaluation
    """

    mass: float = 2.53
    spring_constant: float = 100.0
    damping: float = 1.0
    gravity: float = 0.0
    driving_enabled: bool = False
    driving_amplitude: float = 0.005
    driving_frequency: float = 1.0

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def validation_issues(self) -> List[str]:
        """
        Describe values outside the physical ranges.

        The integration core accepts them regardless, this is advisory only.
        """
        issues = []
        if not self.mass > 0:
            issues.append(f"mass={self.mass} must be > 0")
        if self.spring_constant < 0:
            issues.append(f"spring_constant={self.spring_constant} must be >= 0")
        if self.damping < 0:
            issues.append(f"damping={self.damping} must be >= 0")
        if self.driving_amplitude < 0:
            issues.append(f"driving_amplitude={self.driving_amplitude} must be >= 0")
        if self.driving_enabled and not self.driving_frequency > 0:
            issues.append(f"driving_frequency={self.driving_frequency} must be > 0")
        return issues


# ============================================================================
# Presets
# ============================================================================


@dataclass(frozen=True)
class OscillatorPreset:
    """
    Named starting configuration.

    Applying a preset sets mass, spring constant, damping, driving amplitude
    and frequency, and the initial position and velocity.
    """

    name: str
    mass: float
    spring_constant: float
    damping: float
    initial_position: float
    initial_velocity: float = 0.0
    driving_amplitude: float = 0.01
    driving_frequency: float = 0.5


OSCILLATOR_PRESETS: Dict[str, OscillatorPreset] = {
    preset.name: preset
    for preset in (
        # f0 ≈ 1.59 Hz
        OscillatorPreset(
            "light_and_bouncy",
            mass=0.5,
            spring_constant=50.0,
            damping=0.1,
            initial_position=1.0,
            driving_amplitude=0.01,
            driving_frequency=1.6,
        ),
        # f0 ≈ 0.159 Hz
        OscillatorPreset(
            "heavy_and_slow",
            mass=5.0,
            spring_constant=5.0,
            damping=0.5,
            initial_position=1.0,
            driving_amplitude=0.015,
            driving_frequency=0.16,
        ),
        # ζ = 0.2
        OscillatorPreset(
            "underdamped",
            mass=1.0,
            spring_constant=25.0,
            damping=2.0,
            initial_position=1.0,
            driving_amplitude=0.01,
            driving_frequency=0.8,
        ),
        # ζ = 1
        OscillatorPreset(
            "critically_damped",
            mass=1.0,
            spring_constant=25.0,
            damping=10.0,
            initial_position=1.0,
            driving_amplitude=0.01,
            driving_frequency=0.8,
        ),
        # ζ = 2
        OscillatorPreset(
            "overdamped",
            mass=1.0,
            spring_constant=25.0,
            damping=20.0,
            initial_position=1.0,
            driving_amplitude=0.01,
            driving_frequency=0.8,
        ),
        # driven at f0 = √10 / 2π ≈ 0.503 Hz
        OscillatorPreset(
            "resonance_demo",
            mass=1.0,
            spring_constant=10.0,
            damping=0.3,
            initial_position=0.5,
            driving_amplitude=0.01,
            driving_frequency=0.503,
        ),
    )
}


def get_preset(name: str) -> OscillatorPreset:
    """
    Look up a preset by name.

    Raises
    ------
    ValueError
        If no preset has that name
    """
    try:
        return OSCILLATOR_PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown preset '{name}'. Available: {sorted(OSCILLATOR_PRESETS)}"
        ) from None


__all__ = [
    "MASS_FLOOR",
    "StateIndex",
    "CORE_STATE_DIMENSION",
    "FULL_STATE_DIMENSION",
    "OscillatorParameters",
    "OscillatorPreset",
    "OSCILLATOR_PRESETS",
    "get_preset",
]
