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
Observation equations
=====================

An Equation describes one kind of observation (e.g. the ionosphere-free
phase prefit residual) as a linear function of parameter templates
(Unknown). For every satellite holding the prefit type, the EquationSystem
turns each Equation into one observation row over concrete Variables.

Example:
    >>> amb = Unknown(TypeID.BLC, PhaseAmbiguityModel(), STD_AMB**2,
    ...               sat_indexed=True, default_coefficient=LC_WAVELENGTH_GPS,
    ...               force_default=True)
    >>> clk = Unknown(TypeID.cdt, WhiteNoiseModel())
    >>> system = EquationSystem([Equation(TypeID.prefitL, [clk, amb], sigma=0.01)])
    >>> epoch = system.build({'WUHN': body})
    >>> y, H, R = epoch.design(epoch.variables())
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

import numpy as np

from ..core.constants import SYS_ALL, sat2sys
from ..core.exceptions import ConfigurationError
from ..core.stats import DEFAULT_INITIAL_VARIANCE
from ..core.types import TypeID
from ..core.variable import Variable, build_index, sorted_variables
from .stochastic import ConstantModel, StochasticModel

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Unknown:
    """
    Parameter template

    Attributes
    ----------
    type : TypeID
        Parameter kind; the coefficient is read from the satellite data
        under this type
    model : StochasticModel
        Time behaviour of the parameter
    initial_variance : float
        Variance assigned when the parameter is born
    initial_value : float
        Value assigned when the parameter is born
    source_indexed : bool
        One parameter per receiver
    sat_indexed : bool
        One parameter per satellite
    default_coefficient : float
        Coefficient used when the data holds none
    force_default : bool
        Always use `default_coefficient`
    """
    type: TypeID
    model: StochasticModel = field(default_factory=ConstantModel)
    initial_variance: float = DEFAULT_INITIAL_VARIANCE
    initial_value: float = 0.0
    source_indexed: bool = True
    sat_indexed: bool = False
    default_coefficient: float = 1.0
    force_default: bool = False

    def variable(self, source: Optional[str], sat: int) -> Variable:
        return Variable(self.type,
                        source if self.source_indexed else None,
                        sat if self.sat_indexed else None)

    def coefficient(self, sat_data: Dict[TypeID, float]) -> float:
        if self.force_default:
            return self.default_coefficient
        return sat_data.get(self.type, self.default_coefficient)


@dataclass(eq=False)
class Equation:
    """
    Observation definition

    Attributes
    ----------
    independent_term : TypeID
        Prefit residual type
    unknowns : list of Unknown
        Parameters the observation depends on
    sigma : float
        Observation standard deviation; the variance is sigma^2 / weight
        when the satellite data holds TypeID.weight
    system : int
        Constellation the equation applies to (SYS_ALL for every one)
    sources : set of str, optional
        Receivers the equation applies to, None for all
    """
    independent_term: TypeID
    unknowns: List[Unknown] = field(default_factory=list)
    sigma: float = 1.0
    system: int = SYS_ALL
    sources: Optional[Set[str]] = None

    def add_unknown(self, unknown: Unknown) -> 'Equation':
        self.unknowns.append(unknown)
        return self

    def applies_to(self, source: str, sat: int) -> bool:
        if self.sources is not None and source not in self.sources:
            return False
        return self.system == SYS_ALL or bool(sat2sys(sat) & self.system)


@dataclass
class ObservationRow:
    """One linearized observation of one epoch"""
    coefficients: Dict[Variable, float]
    prefit: float
    variance: float
    source: Optional[str]
    satellite: int
    prefit_type: TypeID


class EpochEquations:
    """Observation rows of one epoch with the templates of their Variables"""

    def __init__(self, rows: List[ObservationRow], unknowns: Dict[Variable, Unknown],
                 sat_data: Dict[Variable, Optional[Dict[TypeID, float]]]):
        self.rows = rows
        self.unknowns = unknowns
        self.sat_data = sat_data

    def __len__(self):
        return len(self.rows)

    def variables(self) -> List[Variable]:
        """Variables referenced by at least one row, in Variable order"""
        return sorted_variables(self.unknowns)

    def design(self, variables: List[Variable],
               index: Optional[Dict[Variable, int]] = None) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Assemble the measurement model over `variables`

        Parameters:
        -----------
        variables : List[Variable]
            State ordering
        index : Dict[Variable, int], optional
            Variable -> column, built from `variables` when omitted

        Returns:
        --------
        y : np.ndarray
            Prefit residuals (m,)
        H : np.ndarray
            Design matrix (m, n)
        R : np.ndarray
            Diagonal observation covariance (m, m)
        """
        if index is None:
            index = build_index(variables)
        m, n = len(self.rows), len(variables)
        y = np.zeros(m)
        H = np.zeros((m, n))
        variances = np.zeros(m)
        for i, row in enumerate(self.rows):
            y[i] = row.prefit
            variances[i] = row.variance
            for var, coef in row.coefficients.items():
                H[i, index[var]] += coef
        return y, H, np.diag(variances)


class EquationSystem:
    """Ordered list of Equations"""

    def __init__(self, equations: Optional[Iterable[Equation]] = None):
        self.equations: List[Equation] = list(equations) if equations else []

    def add_equation(self, equation: Equation) -> 'EquationSystem':
        self.equations.append(equation)
        return self

    def clear(self) -> 'EquationSystem':
        self.equations = []
        return self

    def __len__(self):
        return len(self.equations)

    def unknowns(self) -> List[Unknown]:
        found = []
        for equation in self.equations:
            for unknown in equation.unknowns:
                if unknown not in found:
                    found.append(unknown)
        return found

    def build(self, group) -> EpochEquations:
        """
        Observation rows for one epoch

        Parameters:
        -----------
        group : Dict[str, SatTypeValueMap]
            Source tag -> epoch body

        Returns:
        --------
        EpochEquations
            Rows ordered by (source, satellite, equation)

        Raises:
        -------
        ConfigurationError
            No equations defined, or no satellite provides any prefit type
        """
        if not self.equations:
            raise ConfigurationError("Equation system has no equations")

        rows = []
        unknowns: Dict[Variable, Unknown] = {}
        sat_data: Dict[Variable, Optional[Dict[TypeID, float]]] = {}

        for source in sorted(group):
            body = group[source]
            for sat in sorted(body):
                values = body[sat]
                for equation in self.equations:
                    if equation.independent_term not in values:
                        continue
                    if not equation.applies_to(source, sat):
                        continue
                    weight = values.get(TypeID.weight, 1.0)
                    if weight <= 0.0:
                        logger.debug(f"Sat {sat} of {source}: non-positive weight, row skipped")
                        continue

                    coefficients: Dict[Variable, float] = {}
                    for unknown in equation.unknowns:
                        var = unknown.variable(source, sat)
                        coefficients[var] = coefficients.get(var, 0.0) + unknown.coefficient(values)
                        if var not in unknowns:
                            unknowns[var] = unknown
                            sat_data[var] = values if unknown.sat_indexed else None

                    rows.append(ObservationRow(
                        coefficients=coefficients,
                        prefit=values[equation.independent_term],
                        variance=equation.sigma ** 2 / weight,
                        source=source,
                        satellite=sat,
                        prefit_type=equation.independent_term,
                    ))

        if not rows:
            raise ConfigurationError("Equation system yields no observations for this epoch")

        logger.debug(f"{len(rows)} observation rows over {len(unknowns)} variables")
        return EpochEquations(rows, unknowns, sat_data)
