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
pyupd: sequential GNSS network estimation with ambiguity fixing

Processing chain per epoch:

    SimpleFilter -> ComputeLinear -> AmbiguityFixingSolver

composed with `Pipeline` and fed SatTypeValueMap, GnssEpoch or GnssDataMap
objects.
"""

__version__ = "0.1.0"
__title__ = "pyupd"
__description__ = "Sequential GNSS network estimator with ambiguity datum and integer fixing"

from .logger import setup_logger, setup_logger_from_config
from .config import SolverConfig
from .core import *
from .processing import (
    CombinationTable,
    ComputeLinear,
    LinearCombination,
    Pipeline,
    ProcessingStage,
    SimpleFilter,
)
from .solver import (
    AmbiguityDatum,
    AmbiguityFixingSolver,
    ConstantModel,
    Equation,
    EquationSystem,
    IndepAmbiguityDatum,
    PhaseAmbiguityModel,
    RandomWalkModel,
    Unknown,
    WhiteNoiseModel,
)
