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

"""Core data model.

- **Constants**: frequencies, combination constants and the unified satellite
  numbering (`prn2sat`, `sat2id`, ...)
- **Types**: `TypeID` for observables, model terms, residuals and parameters
- **Variables**: `Variable`, the hashable and ordered identity of one
  estimated quantity
- **Data Structures**: `SatTypeValueMap`, `GnssEpoch`, `GnssDataMap` and
  `EpochSolution`
- **Exceptions**: epoch-scoped error taxonomy

Example Usage:
    >>> from pyupd.core import *
    >>> body = SatTypeValueMap()
    >>> body.insert_value(prn2sat(5, SYS_GPS), TypeID.C1, 21000000.0)
    >>> epoch = GnssEpoch(time=0.0, source="WUHN", body=body)
    >>> amb = Variable(TypeID.BLC, "WUHN", prn2sat(5, SYS_GPS))
    >>> str(amb)
    'BLC:WUHN:G05'
"""

from .constants import *
from .types import AMBIGUITY_TYPES, CYCLE_SLIP_TYPES, FIXED_TYPES, POSTFIT_TYPES, TypeID
from .variable import Variable, VariableDataMap, build_index, sorted_variables
from .data_structures import (
    DEFAULT_SOURCE,
    EpochSolution,
    GnssDataMap,
    GnssEpoch,
    SatTypeValueMap,
)
from .exceptions import (
    ConfigurationError,
    InputCardinalityError,
    InvalidSolverError,
    NumericalSingularityError,
    ProcessingError,
    RankDeficiencyError,
)
