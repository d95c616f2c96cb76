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

"""Core data structures for epoch-wise GNSS processing"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

import numpy as np
import pandas as pd

from .constants import sat2id
from .types import TypeID
from .variable import Variable, VariableDataMap

# Source tag used when data arrives without a receiver/station name
DEFAULT_SOURCE = "rcv"


class SatTypeValueMap(dict):
    """Satellite -> {TypeID -> value} map for one receiver at one epoch.

    Insertion order is irrelevant; iteration helpers return satellites in
    ascending order so processing is deterministic.
    """

    def num_sats(self) -> int:
        return len(self)

    def satellites(self) -> List[int]:
        return sorted(self.keys())

    def types(self) -> set:
        """Union of all TypeIDs present for any satellite"""
        found = set()
        for values in self.values():
            found.update(values.keys())
        return found

    def get_value(self, sat: int, type_id: TypeID) -> float:
        """Value of `type_id` for `sat`; KeyError if either is missing"""
        return self[sat][type_id]

    def insert_value(self, sat: int, type_id: TypeID, value: float):
        self.setdefault(sat, {})[type_id] = float(value)

    def extract_type(self, type_id: TypeID) -> Dict[int, float]:
        """sat -> value for the satellites holding `type_id`"""
        return {sat: self[sat][type_id]
                for sat in self.satellites() if type_id in self[sat]}

    def remove_satellites(self, sats: Iterable[int]) -> 'SatTypeValueMap':
        for sat in list(sats):
            self.pop(sat, None)
        return self

    def keep_only_satellites(self, sats: Iterable[int]) -> 'SatTypeValueMap':
        keep = set(sats)
        return self.remove_satellites([sat for sat in self if sat not in keep])

    def copy(self) -> 'SatTypeValueMap':
        return SatTypeValueMap({sat: dict(values) for sat, values in self.items()})


@dataclass
class EpochSolution:
    """Float and fixed estimates of one processed epoch.

    Attributes
    ----------
    time : float, optional
        Epoch time (None for untimed data)
    variables : list of Variable
        Live variables, in state-vector order
    float_solution : VariableDataMap
        Kalman (float) estimates
    float_variance : VariableDataMap
        Diagonal of the a-posteriori covariance
    fixed_solution : VariableDataMap
        Estimates conditioned on datum and fixed ambiguities
    amb_fixed : VariableDataMap
        Ambiguities that passed the fixing test this epoch
    datum : VariableDataMap
        Reference ambiguities constrained this epoch and their values
    postfit : list of float
        Postfit residuals, one per observation row
    num_equations : int
        Number of observation rows used in the measurement update
    """
    time: Optional[float]
    variables: List[Variable] = field(default_factory=list)
    float_solution: VariableDataMap = field(default_factory=dict)
    float_variance: VariableDataMap = field(default_factory=dict)
    fixed_solution: VariableDataMap = field(default_factory=dict)
    amb_fixed: VariableDataMap = field(default_factory=dict)
    datum: VariableDataMap = field(default_factory=dict)
    postfit: List[float] = field(default_factory=list)
    num_equations: int = 0

    @property
    def is_fixed(self) -> bool:
        return len(self.amb_fixed) > 0

    def to_dataframe(self) -> pd.DataFrame:
        """One row per live variable; missing source or satellite stay None"""
        variables = self.variables
        return pd.DataFrame({
            'time': [self.time] * len(variables),
            'type': [var.type.value for var in variables],
            'source': pd.Series([var.source for var in variables], dtype=object),
            'sat': pd.Series([sat2id(var.satellite) if var.satellite is not None else None
                              for var in variables], dtype=object),
            'float': [self.float_solution.get(var, np.nan) for var in variables],
            'variance': [self.float_variance.get(var, np.nan) for var in variables],
            'fixed': [self.fixed_solution.get(var, np.nan) for var in variables],
            'is_datum': [var in self.datum for var in variables],
            'is_fixed': [var in self.amb_fixed for var in variables],
        }, columns=['time', 'type', 'source', 'sat', 'float',
                    'variance', 'fixed', 'is_datum', 'is_fixed'])


@dataclass
class GnssEpoch:
    """One epoch of one receiver: header (time, source) plus body"""
    time: Optional[float]
    source: str = DEFAULT_SOURCE
    body: SatTypeValueMap = field(default_factory=SatTypeValueMap)
    solution: Optional[EpochSolution] = None

    def __post_init__(self):
        if not isinstance(self.body, SatTypeValueMap):
            self.body = SatTypeValueMap(self.body)

    def num_sats(self) -> int:
        return self.body.num_sats()


class GnssDataMap:
    """Ordered multi-epoch, multi-source container: time -> source -> body"""

    def __init__(self):
        self._data: Dict[float, Dict[str, SatTypeValueMap]] = {}
        self.solutions: Dict[float, EpochSolution] = {}

    def add(self, time: float, source: str, body) -> 'GnssDataMap':
        if not isinstance(body, SatTypeValueMap):
            body = SatTypeValueMap(body)
        self._data.setdefault(float(time), {})[source] = body
        return self

    def add_epoch(self, epoch: GnssEpoch) -> 'GnssDataMap':
        if epoch.time is None:
            raise ValueError("GnssDataMap requires timed epochs")
        return self.add(epoch.time, epoch.source, epoch.body)

    def times(self) -> List[float]:
        return sorted(self._data.keys())

    def sources(self) -> List[str]:
        found = set()
        for group in self._data.values():
            found.update(group.keys())
        return sorted(found)

    def at(self, time: float) -> Dict[str, SatTypeValueMap]:
        """All sources at one epoch, keyed by source tag"""
        return self._data[float(time)]

    def get_epoch(self, time: float, source: str) -> GnssEpoch:
        return GnssEpoch(time=float(time), source=source, body=self._data[float(time)][source],
                         solution=self.solutions.get(float(time)))

    def remove_time(self, time: float):
        self._data.pop(float(time), None)
        self.solutions.pop(float(time), None)

    def __len__(self):
        return len(self._data)

    def __iter__(self) -> Iterator[float]:
        return iter(self.times())

    def __contains__(self, time) -> bool:
        return float(time) in self._data

    def to_dataframe(self) -> pd.DataFrame:
        """Long format table with one row per (time, source, sat, type)"""
        rows = []
        for time in self.times():
            for source, body in sorted(self._data[time].items()):
                for sat in body.satellites():
                    for type_id, value in body[sat].items():
                        rows.append((time, source, sat2id(sat), str(type_id), value))
        return pd.DataFrame(rows, columns=['time', 'source', 'sat', 'type', 'value'])
