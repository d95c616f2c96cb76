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
Integer ambiguity fixing by rounding and bootstrapping

An ambiguity is fixed when it is both close to an integer and precise.
Candidates are visited from the most to the least precise. With
conditional fixing, every accepted fix conditions a working copy of the
state before the next candidate is tested (bootstrapping). The working
copy is the fixed solution; the float filter state is never changed.

References:
    [1] Teunissen P.J.G. (1998) Success probability of integer GPS ambiguity rounding
        and bootstrapping, Journal of Geodesy 72:606-612
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import numpy as np

from ..core.stats import FIX_TOLERANCE, FIX_VARIANCE_THRESHOLD
from ..core.variable import Variable, VariableDataMap
from .kalman import condition

logger = logging.getLogger(__name__)


@dataclass
class FixingData:
    """Per-satellite fixing statistics"""
    float_count: int = 0
    fixed_count: int = 0
    fixing_rate: float = 0.0

    def record(self, fixed: bool):
        self.float_count += 1
        if fixed:
            self.fixed_count += 1
        self.fixing_rate = self.fixed_count / self.float_count


def is_fixable(value: float, variance: float,
               tolerance: float = FIX_TOLERANCE,
               variance_threshold: float = FIX_VARIANCE_THRESHOLD) -> bool:
    """
    |value - round(value)| < tolerance and variance < variance_threshold

    AmbiguityFixer passes the float estimate, or with conditional fixing the
    estimate conditioned on the fixes accepted before it.
    """
    return abs(value - np.round(value)) < tolerance and variance < variance_threshold


@dataclass
class FixResult:
    """
    Outcome of one fixing pass

    Attributes
    ----------
    amb_fixed : VariableDataMap
        Accepted ambiguities -> integer value
    x_fixed : np.ndarray
        State conditioned on every accepted fix
    P_fixed : np.ndarray
        Covariance conditioned on every accepted fix
    attempts : list of (Variable, bool)
        Every tested candidate in test order
    """
    amb_fixed: VariableDataMap
    x_fixed: np.ndarray
    P_fixed: np.ndarray
    attempts: List[Tuple[Variable, bool]] = field(default_factory=list)


class AmbiguityFixer:
    """
    Rounding test with optional bootstrapping

    With `conditional=True` (the default) only the first candidate is tested
    on its float value and variance; every later candidate is tested on the
    value and variance conditioned on the fixes accepted so far. With
    `conditional=False` every candidate is tested on the float state.
    """

    def __init__(self, tolerance: float = FIX_TOLERANCE,
                 variance_threshold: float = FIX_VARIANCE_THRESHOLD,
                 conditional: bool = True):
        self.tolerance = tolerance
        self.variance_threshold = variance_threshold
        self.conditional = conditional

    def fix(self, x: np.ndarray, P: np.ndarray, index: Dict[Variable, int],
            candidates: List[Variable]) -> FixResult:
        """
        Test every candidate ambiguity

        Parameters:
        -----------
        x : np.ndarray
            Float state, not modified
        P : np.ndarray
            Float covariance, not modified
        index : Dict[Variable, int]
            Variable -> state position
        candidates : List[Variable]
            Float ambiguities to test

        Returns:
        --------
        FixResult
        """
        x_work = x.copy()
        P_work = P.copy()
        order = sorted(candidates, key=lambda v: (P[index[v], index[v]], v))

        amb_fixed = {}
        attempts = []
        for var in order:
            i = index[var]
            value, variance = x_work[i], P_work[i, i]
            fixed = is_fixable(value, variance, self.tolerance, self.variance_threshold)
            attempts.append((var, fixed))
            if not fixed:
                continue
            amb_fixed[var] = float(np.round(value))
            if self.conditional:
                x_work, P_work = condition(x_work, P_work, i, amb_fixed[var])

        if not self.conditional:
            for var, value in amb_fixed.items():
                x_work, P_work = condition(x_work, P_work, index[var], value)

        logger.debug(f"Fixed {len(amb_fixed)}/{len(order)} ambiguities")
        return FixResult(amb_fixed, x_work, P_work, attempts)
