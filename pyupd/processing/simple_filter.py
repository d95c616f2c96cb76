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
Gross outlier filter

Removes satellites whose code observables are missing or grossly out of
bounds. A satellite failing the check for any filtered type loses its whole
record for the epoch.
"""

import logging
from typing import Dict, Iterable, Optional, Set, Tuple, Union

from ..core.exceptions import ConfigurationError, InputCardinalityError
from ..core.stats import FILTER_MAX_LIMIT, FILTER_MIN_LIMIT, MIN_SATELLITES
from ..core.types import TypeID
from .stage import ProcessingStage

logger = logging.getLogger(__name__)


class SimpleFilter(ProcessingStage):
    """
    Bounds check on selected observables

    By default C1 is checked against [15000000, 30000000] m. Bounds are
    inclusive.

    Examples:
        >>> flt = SimpleFilter({TypeID.C1, TypeID.P2})
        >>> flt.set_max_limit(25000000.0)
        >>> flt.process(epoch)
    """

    def __init__(self,
                 types: Union[TypeID, Iterable[TypeID]] = TypeID.C1,
                 min_limit: float = FILTER_MIN_LIMIT,
                 max_limit: float = FILTER_MAX_LIMIT,
                 min_sats: int = MIN_SATELLITES):
        """
        Initialize filter

        Parameters:
        -----------
        types : TypeID or iterable of TypeID
            Observable(s) to check
        min_limit : float
            Lower bound shared by the given types (m)
        max_limit : float
            Upper bound shared by the given types (m)
        min_sats : int
            Epochs with fewer satellites raise InputCardinalityError
        """
        self.min_limit = float(min_limit)
        self.max_limit = float(max_limit)
        self.min_sats = int(min_sats)
        self.rules: Dict[TypeID, Tuple[float, float]] = {}
        self.set_filtered_type(types)

    def set_filtered_type(self, types: Union[TypeID, Iterable[TypeID]]) -> 'SimpleFilter':
        """Replace the filtered types; they share the current limits"""
        if isinstance(types, TypeID):
            types = [types]
        self.rules = {TypeID(t): (self.min_limit, self.max_limit) for t in types}
        return self

    def add_filtered_type(self, type_id: TypeID,
                          min_limit: Optional[float] = None,
                          max_limit: Optional[float] = None) -> 'SimpleFilter':
        """Add one type, optionally with its own bounds"""
        lo = self.min_limit if min_limit is None else float(min_limit)
        hi = self.max_limit if max_limit is None else float(max_limit)
        self.rules[TypeID(type_id)] = (lo, hi)
        return self

    def get_filtered_types(self) -> Set[TypeID]:
        return set(self.rules)

    def set_min_limit(self, min_limit: float) -> 'SimpleFilter':
        """Set the lower bound of every filtered type"""
        self.min_limit = float(min_limit)
        self.rules = {t: (self.min_limit, hi) for t, (_, hi) in self.rules.items()}
        return self

    def set_max_limit(self, max_limit: float) -> 'SimpleFilter':
        """Set the upper bound of every filtered type"""
        self.max_limit = float(max_limit)
        self.rules = {t: (lo, self.max_limit) for t, (lo, _) in self.rules.items()}
        return self

    def check_value(self, type_id: TypeID, value: float) -> bool:
        lo, hi = self.rules[type_id]
        return lo <= value <= hi

    def filter_body(self, body):
        """
        Filter one epoch body in place

        Parameters:
        -----------
        body : SatTypeValueMap
            Satellite -> {TypeID -> value}

        Returns:
        --------
        SatTypeValueMap
            The same body, without rejected satellites
        """
        if not self.rules:
            raise ConfigurationError("SimpleFilter has no filtered types")

        num_sats = body.num_sats()
        if num_sats < self.min_sats:
            raise InputCardinalityError(num_sats, self.min_sats)

        rejected = []
        for sat in body.satellites():
            values = body[sat]
            for type_id in self.rules:
                if type_id not in values or not self.check_value(type_id, values[type_id]):
                    rejected.append(sat)
                    break

        if rejected:
            logger.debug(f"Rejected {len(rejected)} satellite(s): {rejected}")
        return body.remove_satellites(rejected)

    def process_epoch_group(self, time, group):
        # Every source is checked before any body is touched
        for body in group.values():
            if body.num_sats() < self.min_sats:
                raise InputCardinalityError(body.num_sats(), self.min_sats)
        for body in group.values():
            self.filter_body(body)
        return None
