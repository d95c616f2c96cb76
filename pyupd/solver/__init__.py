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

"""Sequential estimation with ambiguity datum and integer fixing"""

from .stochastic import (
    ConstantModel,
    PhaseAmbiguityModel,
    RandomWalkModel,
    StochasticModel,
    WhiteNoiseModel,
)
from .equation import EpochEquations, Equation, EquationSystem, ObservationRow, Unknown
from .kalman import condition, constrain, meas_update, symmetrize, time_update
from .datum import AmbiguityDatum, DatumStrategy, IndepAmbiguityDatum
from .fixing import AmbiguityFixer, FixingData, FixResult, is_fixable
from .ambiguity_solver import AmbiguityFixingSolver, SolverState
