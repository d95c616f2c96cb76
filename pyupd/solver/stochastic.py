# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Stochastic models of estimated parameters

Each model gives the diagonal state transition (phi) and process noise (q)
of one parameter for a time step dt. Models are stateless; the satellite
data of the current epoch is passed in for models reacting to flags.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Optional

from ..core.stats import QPRIME_TROP, SIGMA_CLOCK, STD_AMB
from ..core.types import CYCLE_SLIP_TYPES, TypeID


class StochasticModel(ABC):
    """Base class: phi and q of one scalar parameter"""

    @abstractmethod
    def get_phi(self, dt: float, sat_data: Optional[Dict[TypeID, float]] = None) -> float:
        pass

    @abstractmethod
    def get_q(self, dt: float, sat_data: Optional[Dict[TypeID, float]] = None) -> float:
        pass

    def __repr__(self):
        return f"{type(self).__name__}()"


class ConstantModel(StochasticModel):
    """Static parameter: phi = 1, q = 0"""

    def get_phi(self, dt, sat_data=None):
        return 1.0

    def get_q(self, dt, sat_data=None):
        return 0.0


class WhiteNoiseModel(StochasticModel):
    """Parameter re-estimated every epoch, e.g. receiver clock"""

    def __init__(self, sigma: float = SIGMA_CLOCK):
        self.sigma = float(sigma)

    def get_phi(self, dt, sat_data=None):
        return 0.0

    def get_q(self, dt, sat_data=None):
        return self.sigma ** 2

    def __repr__(self):
        return f"WhiteNoiseModel(sigma={self.sigma})"


class RandomWalkModel(StochasticModel):
    """
    Random walk, e.g. zenith wet delay

    Parameters:
    -----------
    qprime : float
        Process spectral density (units^2 / s); q = qprime * dt
    """

    def __init__(self, qprime: float = QPRIME_TROP):
        self.qprime = float(qprime)

    def get_phi(self, dt, sat_data=None):
        return 1.0

    def get_q(self, dt, sat_data=None):
        return self.qprime * abs(dt)

    def __repr__(self):
        return f"RandomWalkModel(qprime={self.qprime})"


class PhaseAmbiguityModel(StochasticModel):
    """
    Carrier-phase ambiguity: constant until a cycle slip

    A nonzero value of any of `slip_types` in the satellite data restarts
    the ambiguity (phi = 0, q = sigma^2).
    """

    def __init__(self, sigma: float = STD_AMB,
                 slip_types: Iterable[TypeID] = CYCLE_SLIP_TYPES):
        self.sigma = float(sigma)
        self.slip_types = frozenset(slip_types)

    def is_slip(self, sat_data: Optional[Dict[TypeID, float]]) -> bool:
        if not sat_data:
            return False
        return any(sat_data.get(t, 0.0) > 0.0 for t in self.slip_types)

    def get_phi(self, dt, sat_data=None):
        return 0.0 if self.is_slip(sat_data) else 1.0

    def get_q(self, dt, sat_data=None):
        return self.sigma ** 2 if self.is_slip(sat_data) else 0.0

    def __repr__(self):
        return f"PhaseAmbiguityModel(sigma={self.sigma})"
