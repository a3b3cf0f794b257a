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
OscSymulation
=============

Real-time simulation of driven, damped mass-spring oscillators with
interchangeable time-stepping strategies.

>>> from oscsym import OscillatorModel, SimulationClock, SolverType
>>>
>>> model = OscillatorModel(initial_position=0.1)
>>> clock = SimulationClock(model, solver_type=SolverType.ADAPTIVE_RK45)
>>> clock.play()
>>> for _ in range(60):
...     samples = clock.step(1 / 60)
>>>
>>> clock.solver_type = SolverType.ANALYTICAL   # hot-swap, state preserved
"""

from .simulation import (
    MAX_RESONATORS,
    FrequencySweepController,
    ResonatorArray,
    ResonatorConfigMode,
    SimulationClock,
)
from .systems.base.core import StateVectorModel
from .systems.base.numerical_integration import create_solver, integrate
from .systems.builtin.mechanical import (
    OSCILLATOR_PRESETS,
    OscillatorModel,
    OscillatorParameters,
    StateIndex,
)
from .types import SolverType, SubStepSample, TimeSpeed

__version__ = "0.1.0"

__all__ = [
    "StateVectorModel",
    "OscillatorModel",
    "OscillatorParameters",
    "OSCILLATOR_PRESETS",
    "StateIndex",
    "SimulationClock",
    "FrequencySweepController",
    "ResonatorArray",
    "ResonatorConfigMode",
    "MAX_RESONATORS",
    "SolverType",
    "TimeSpeed",
    "SubStepSample",
    "create_solver",
    "integrate",
]
