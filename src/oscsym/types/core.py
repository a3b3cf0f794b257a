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
Core Types - Fundamental Building Blocks

Defines the most basic types used throughout the framework:
- Semantic vector types (state, derivative)
- Scalar types for time and time steps
- Callback types used by solvers

These are the foundation upon which all other type modules build.

Design Philosophy
----------------
- **Semantic Clarity**: Names convey mathematical meaning
- **NumPy Native**: State vectors are float64 NumPy arrays
- **Type Safety**: Enable static type checking

Usage
-----
>>> from oscsym.types.core import StateVector, ScalarLike
>>>
>>> def advance(x: StateVector, dx: StateVector, dt: ScalarLike) -> StateVector:
...     return x + dt * dx
"""

from typing import Callable, Sequence, Union

import numpy as np

# ============================================================================
# Basic Array Types
# ============================================================================

ArrayLike = np.ndarray
"""
NumPy array.

Shape conventions:
- Scalars: ()
- Vectors: (n,)
- Sample grids: (T,)
"""

ScalarLike = Union[float, int, np.floating, np.integer]
"""
Scalar value (Python or NumPy).

Examples
--------
>>> dt: ScalarLike = 0.016
>>> tolerance: ScalarLike = 1e-6
"""

# ============================================================================
# Vector Types - Semantic Naming by Role
# ============================================================================

StateVector = np.ndarray
"""
State vector y ∈ ℝⁿ.

Ordered, fixed-length float64 array fully describing the instantaneous
condition of a dynamical system. Length and component order are defined by
the model and never change during a run.

Examples
--------
>>> # Driven damped oscillator with energy bookkeeping (n = 7)
>>> y: StateVector = np.array([0.1, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0])
"""

DerivativeVector = np.ndarray
"""
Time derivative dy/dt ∈ ℝⁿ, same layout as the state vector.
"""

StateLike = Union[Sequence[float], np.ndarray]
"""
Anything that can be converted to a state vector (list, tuple, array).
"""

# ============================================================================
# Function Signatures
# ============================================================================

DerivativeFunction = Callable[[float, StateVector], DerivativeVector]
"""
Right-hand side f(t, y) -> dy/dt.

``t`` is the time offset from the start of the current outer step.
"""

SubStepCallback = Callable[[float, StateVector], None]
"""
Callback invoked by a solver after each internal sub-step.

Arguments are the time elapsed since the start of the ``step()`` call and
the state vector at that sub-step. Used for high-resolution plotting.

Examples
--------
>>> samples = []
>>> solver.step(0.016, model, on_sub_step=lambda t, y: samples.append((t, y)))
"""


__all__ = [
    "ArrayLike",
    "ScalarLike",
    "StateVector",
    "DerivativeVector",
    "StateLike",
    "DerivativeFunction",
    "SubStepCallback",
]
