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
Simulation Harness
==================

>>> from oscsym.simulation import SimulationClock
>>> clock = SimulationClock(model, solver_type="analytical")
>>> clock.play()
>>> samples = clock.step(1 / 60)
"""

from .frequency_sweep import FrequencySweepController
from .resonator_array import MAX_RESONATORS, ResonatorArray, ResonatorConfigMode
from .simulation_clock import SimulationClock

__all__ = [
    "SimulationClock",
    "FrequencySweepController",
    "ResonatorArray",
    "ResonatorConfigMode",
    "MAX_RESONATORS",
]
