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
Mechanical Systems
==================

>>> from oscsym.systems.builtin.mechanical import OscillatorModel, OscillatorParameters
>>> model = OscillatorModel(OscillatorParameters(mass=1.0, spring_constant=100.0))
"""

from . import oscillator_response
from .driven_damped_oscillator import OscillatorModel
from .oscillator_parameters import (
    OSCILLATOR_PRESETS,
    OscillatorParameters,
    OscillatorPreset,
    StateIndex,
    get_preset,
)

__all__ = [
    "OscillatorModel",
    "OscillatorParameters",
    "OscillatorPreset",
    "OSCILLATOR_PRESETS",
    "StateIndex",
    "get_preset",
    "oscillator_response",
]
