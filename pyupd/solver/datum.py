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
Ambiguity Datum Selection
=========================

Estimating receiver clocks, satellite clocks (or phase delays) and
undifferenced ambiguities together is rank deficient: one ambiguity per
receiver-satellite link of a spanning tree can be shifted into the clocks.
A datum holds those ambiguities at chosen values.

Two strategies are available and exactly one is configured on a solver:

- AmbiguityDatum: explicit Variable -> value pairs from the caller
- IndepAmbiguityDatum: spanning forest of the receiver/satellite graph
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Hashable, List, Optional

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components

from ..core.exceptions import RankDeficiencyError
from ..core.types import TypeID
from ..core.variable import Variable, VariableDataMap

logger = logging.getLogger(__name__)


class DatumStrategy(ABC):
    """
    Chooses the reference ambiguities of one epoch

    Strategies are stateless and may be shared between solvers; the
    selection history belongs to the solver and is passed in.
    """

    kind = "abstract"

    @abstractmethod
    def select(self, ambiguities: List[Variable], estimates: VariableDataMap,
               previous: Optional[VariableDataMap] = None) -> VariableDataMap:
        """
        Reference ambiguities and their constraint values

        Parameters:
        -----------
        ambiguities : List[Variable]
            Live ambiguity Variables
        estimates : VariableDataMap
            Current float estimate of each ambiguity
        previous : VariableDataMap, optional
            Datum of the last completed epoch, without ambiguities that
            restarted since

        Returns:
        --------
        VariableDataMap
            Subset of `ambiguities` -> constraint value
        """


class AmbiguityDatum(DatumStrategy):
    """Caller supplied datum; entries whose Variable is not live are ignored"""

    kind = "explicit"

    def __init__(self, values: Optional[Dict[Variable, float]] = None):
        self.values: Dict[Variable, float] = dict(values) if values else {}

    def set_value(self, var: Variable, value: float) -> 'AmbiguityDatum':
        self.values[var] = float(value)
        return self

    def remove(self, var: Variable) -> 'AmbiguityDatum':
        self.values.pop(var, None)
        return self

    def select(self, ambiguities, estimates, previous=None):
        return {var: float(self.values[var]) for var in sorted(ambiguities) if var in self.values}


class _UnionFind:
    def __init__(self, n: int):
        self.parent = list(range(n))

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, i: int, j: int) -> bool:
        ri, rj = self.find(i), self.find(j)
        if ri == rj:
            return False
        # Root is always the smaller node index
        if rj < ri:
            ri, rj = rj, ri
        self.parent[rj] = ri
        return True


class IndepAmbiguityDatum(DatumStrategy):
    """
    Independent ambiguity set from the network connectivity

    Nodes are receivers and satellites, every live ambiguity is an edge
    between its receiver and its satellite, one network per ambiguity kind.
    The datum is a spanning forest of each graph, `nodes - components`
    ambiguities, chosen with Kruskal's rule over edges sorted by
    (not in `previous`, Variable order):

    - Ambiguities of the previous datum are kept whenever they still belong
      to a spanning forest, so the datum does not jump.
    - Kept ambiguities keep their previous constraint value; new ones are
      constrained to the nearest integer of their float estimate.

    Parameters:
    -----------
    allow_disconnected : bool
        Accept a network made of several independent sub-networks (one
        spanning tree each); otherwise more than one component raises
        RankDeficiencyError
    """

    kind = "independent"

    def __init__(self, allow_disconnected: bool = False):
        self.allow_disconnected = allow_disconnected

    @staticmethod
    def _nodes(var: Variable):
        if var.satellite is None:
            raise RankDeficiencyError(f"Ambiguity {var} has no satellite")
        # A missing source is one default receiver node
        return ('rcv', var.source or ''), ('sat', var.satellite)

    def _spanning_forest(self, ambiguities: List[Variable],
                         previous: VariableDataMap) -> List[Variable]:
        node_index: Dict[Hashable, int] = {}
        edges = []
        for var in ambiguities:
            a, b = self._nodes(var)
            ia = node_index.setdefault(a, len(node_index))
            ib = node_index.setdefault(b, len(node_index))
            edges.append((var, ia, ib))

        edges.sort(key=lambda e: (e[0] not in previous, e[0]))

        forest = _UnionFind(len(node_index))
        selected = [var for var, ia, ib in edges if forest.union(ia, ib)]

        n_nodes = len(node_index)
        rows = [ia for _, ia, _ in edges]
        cols = [ib for _, _, ib in edges]
        graph = coo_matrix((np.ones(len(edges)), (rows, cols)), shape=(n_nodes, n_nodes))
        n_components, _ = connected_components(graph, directed=False)

        if len(selected) != n_nodes - n_components:
            raise RankDeficiencyError(
                f"Spanning forest has {len(selected)} edges, expected "
                f"{n_nodes - n_components}")
        if n_components > 1 and not self.allow_disconnected:
            raise RankDeficiencyError(
                f"{ambiguities[0].type} ambiguity network is disconnected "
                f"({n_components} components)")
        logger.debug(f"{ambiguities[0].type}: {len(selected)} datum ambiguities over "
                     f"{n_nodes} nodes, {n_components} component(s)")
        return selected

    def select(self, ambiguities, estimates, previous=None):
        previous = previous or {}

        # Every ambiguity kind forms its own network
        by_type: Dict[TypeID, List[Variable]] = {}
        for var in sorted(ambiguities):
            by_type.setdefault(var.type, []).append(var)

        selected = []
        for type_id in sorted(by_type):
            selected.extend(self._spanning_forest(by_type[type_id], previous))

        values = {}
        for var in sorted(selected):
            if var in previous:
                values[var] = previous[var]
            else:
                values[var] = float(np.round(estimates[var]))

        if logger.isEnabledFor(logging.DEBUG):
            new = [str(var) for var in values if var not in previous]
            if new:
                logger.debug(f"New datum ambiguities: {new}")
        return values
