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

"""Identity of estimated quantities"""

from dataclasses import dataclass
from functools import total_ordering
from typing import Dict, Iterable, List, Optional

from .constants import sat2id
from .types import AMBIGUITY_TYPES, TypeID


@total_ordering
@dataclass(frozen=True, eq=True)
class Variable:
    """Identity of one scalar estimated quantity.

    Two Variables are equal when kind, source and satellite are equal, so
    "ambiguity of G05 at station ABC" is the same key in every epoch.

    Attributes
    ----------
    type : TypeID
        Parameter kind (e.g. TypeID.dx, TypeID.cdt, TypeID.BLC)
    source : str, optional
        Receiver/station tag for source-indexed parameters
    satellite : int, optional
        Satellite number for satellite-indexed parameters
    """
    type: TypeID
    source: Optional[str] = None
    satellite: Optional[int] = None

    def sort_key(self):
        # None sorts before any tag/number
        return (
            self.type.value,
            (0, "") if self.source is None else (1, self.source),
            (0, 0) if self.satellite is None else (1, self.satellite),
        )

    def __lt__(self, other):
        if not isinstance(other, Variable):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    @property
    def is_ambiguity(self) -> bool:
        return self.type in AMBIGUITY_TYPES

    def __str__(self):
        parts = [self.type.value]
        if self.source is not None:
            parts.append(self.source)
        if self.satellite is not None:
            parts.append(sat2id(self.satellite))
        return ":".join(parts)


# Map from Variable to a real value; estimates, variances or a sparse
# covariance row
VariableDataMap = Dict[Variable, float]


def build_index(variables: Iterable[Variable]) -> Dict[Variable, int]:
    """Variable -> position table for dense vectors and matrices"""
    return {var: i for i, var in enumerate(variables)}


def sorted_variables(variables: Iterable[Variable]) -> List[Variable]:
    return sorted(set(variables))
