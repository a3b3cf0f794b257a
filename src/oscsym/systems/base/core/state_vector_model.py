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
State Vector Model - Abstract Interface for Integrable Systems

Defines the contract every system advanced by a solver must implement.
A solver only ever talks to a model through these methods:

- get_state():            snapshot of the state vector (copy)
- set_state(state):       replace the state vector exactly
- get_derivatives(t, y):  pure right-hand side dy/dt = f(t, y)
- reset():                restore initial conditions
- sub_step_sample(t, y):  plotting record for an intermediate state

get_derivatives must be side-effect free and must depend only on ``t``, the
given state argument, and the model's *current* parameters, never on the
stored state. Solvers call it several times per step with trial states.
"""

from abc import ABC, abstractmethod

import numpy as np

from oscsym.types.core import DerivativeVector, ScalarLike, StateLike, StateVector
from oscsym.types.trajectories import SubStepSample


class StateVectorModel(ABC):
    """
    Abstract base class for systems integrable by the solvers.

    Subclasses define the state layout and the physics. The base class
    supplies state validation and a generic sub-step sample.

    Examples
    --------
    >>> class Decay(StateVectorModel):
    ...     def __init__(self):
    ...         self._y = np.array([1.0])
    ...     @property
    ...     def state_dimension(self):
    ...         return 1
    ...     def get_state(self):
    ...         return self._y.copy()
    ...     def set_state(self, state):
    ...         self._y = self._coerce_state(state)
    ...     def get_derivatives(self, t, state):
    ...         return -np.asarray(state, dtype=float)
    ...     def reset(self):
    ...         self._y = np.array([1.0])
    """

    @property
    @abstractmethod
    def state_dimension(self) -> int:
        """Fixed length of the state vector."""
        pass

    @abstractmethod
    def get_state(self) -> StateVector:
        """
        Get a snapshot of the current state vector.

        Returns
        -------
        StateVector
            Copy of the state, shape (state_dimension,). Mutating it does not
            affect the model.
        """
        pass

    @abstractmethod
    def set_state(self, state: StateLike) -> None:
        """
        Replace the state vector.

        Must round-trip losslessly with get_state().

        Raises
        ------
        ValueError
            If the length does not match state_dimension
        """
        pass

    @abstractmethod
    def get_derivatives(self, t: ScalarLike, state: StateLike) -> DerivativeVector:
        """
        Evaluate dy/dt at the given state.

        Parameters
        ----------
        t : float
            Time offset from the start of the current outer step
        state : StateLike
            Trial state vector (not necessarily the stored state)

        Returns
        -------
        DerivativeVector
            Derivatives, same layout as the state
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Restore initial conditions and default parameters."""
        pass

    def sub_step_sample(self, time: ScalarLike, state: StateLike) -> SubStepSample:
        """
        Build a plotting record for an intermediate state.

        The default treats component 0 as position and component 1 as
        velocity, with no applied force. Models with a driving force
        override this.

        Parameters
        ----------
        time : float
            Absolute simulated time of the sample
        state : StateLike
            State vector at that time

        Returns
        -------
        SubStepSample
        """
        y = np.asarray(state, dtype=np.float64)
        derivatives = np.asarray(self.get_derivatives(0.0, y), dtype=np.float64)
        velocity = float(y[1]) if y.size > 1 else float(derivatives[0])
        acceleration = float(derivatives[1]) if y.size > 1 else 0.0
        return {
            "time": float(time),
            "position": float(y[0]),
            "velocity": velocity,
            "acceleration": acceleration,
            "applied_force": 0.0,
        }

    def _coerce_state(self, state: StateLike) -> StateVector:
        """
        Convert to a float64 copy and check the length.

        Raises
        ------
        ValueError
            If the state is not one-dimensional or has the wrong length
        """
        y = np.array(state, dtype=np.float64, copy=True)
        if y.ndim != 1 or y.shape[0] != self.state_dimension:
            raise ValueError(
                f"State vector must have shape ({self.state_dimension},), "
                f"got {y.shape}"
            )
        return y

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(nx={self.state_dimension})"


__all__ = ["StateVectorModel"]
