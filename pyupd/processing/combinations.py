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
Linear combinations of dual-frequency observables.

The combination table holds, per constellation, the coefficients of the
usual combinations (ionosphere-free, geometry-free, narrow-lane,
Melbourne-Wubbena, wide-lanes, GRAPHIC) over elementary observables, and the
prefit residual formulas over observables and model terms.

For GPS L1/L2, with gamma = (f1/f2)^2:
- PC = gamma/(gamma-1) * P1 - 1/(gamma-1) * P2
- Pdelta = f1/(f1+f2) * P1 + f2/(f1+f2) * P2
- Ldelta = f1/(f1-f2) * L1 - f2/(f1-f2) * L2
- MWubbena = Ldelta - Pdelta
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional

from ..core.constants import (
    CLIGHT, FREQ_E1, FREQ_E5a, FREQ_L1, FREQ_L2, SYS_GAL, SYS_GPS, SYS_QZS, TWO_PI,
    sat2sys,
)
from ..core.exceptions import ConfigurationError
from ..core.types import TypeID
from .stage import ProcessingStage

logger = logging.getLogger(__name__)


def freq_of_lc(i: int, j: int, f1: float = FREQ_L1, f2: float = FREQ_L2) -> float:
    """Frequency of the combination i*L1 + j*L2 (Hz)"""
    return float(i) * f1 + float(j) * f2


def wavelength_of_lc(i: int, j: int, f1: float = FREQ_L1, f2: float = FREQ_L2) -> float:
    """
    Wavelength of the combination i*L1 + j*L2

    Parameters:
    -----------
    i, j : int
        Integer factors of the first and second frequency
    f1, f2 : float
        Nominal frequencies (Hz)

    Returns:
    --------
    float
        Wavelength (m), e.g. 0.862 m for the GPS wide-lane (1, -1)
    """
    freq = freq_of_lc(i, j, f1, f2)
    if freq == 0.0:
        raise ValueError(f"Combination ({i}, {j}) has zero frequency")
    return CLIGHT / freq


def first_factor_of_lc(i: int, j: int, f1: float = FREQ_L1, f2: float = FREQ_L2) -> float:
    """Coefficient of the first-frequency phase in meters, i*f1/f_lc"""
    freq = freq_of_lc(i, j, f1, f2)
    if freq == 0.0:
        raise ValueError(f"Combination ({i}, {j}) has zero frequency")
    return float(i) * f1 / freq


def second_factor_of_lc(i: int, j: int, f1: float = FREQ_L1, f2: float = FREQ_L2) -> float:
    """Coefficient of the second-frequency phase in meters, j*f2/f_lc"""
    freq = freq_of_lc(i, j, f1, f2)
    if freq == 0.0:
        raise ValueError(f"Combination ({i}, {j}) has zero frequency")
    return float(j) * f2 / freq


@dataclass
class LinearCombination:
    """
    result = sum(coefficient * value) stored under `header`

    Attributes
    ----------
    header : TypeID
        Type the result is stored under
    body : dict
        Input TypeID -> coefficient
    required : frozenset of TypeID
        Inputs that must be present; other inputs count as zero when absent.
        Empty means every input is required.
    """
    header: TypeID
    body: Dict[TypeID, float] = field(default_factory=dict)
    required: FrozenSet[TypeID] = frozenset()

    def required_types(self) -> FrozenSet[TypeID]:
        return self.required if self.required else frozenset(self.body)

    def compute(self, values: Dict[TypeID, float]) -> Optional[float]:
        """Combined value, or None when a required input is missing"""
        if not self.required_types() <= values.keys():
            return None
        return sum(coef * values.get(type_id, 0.0) for type_id, coef in self.body.items())


def _prefit(header: TypeID, observable: TypeID, terms: Dict[TypeID, float]) -> LinearCombination:
    body = {
        observable: +1.0,
        TypeID.rho: -1.0,
        TypeID.dtSat: +1.0,
        TypeID.rel: -1.0,
        TypeID.gravDelay: -1.0,
        TypeID.satPCenter: -1.0,
        TypeID.tropoSlant: -1.0,
    }
    body.update(terms)
    return LinearCombination(header, body, frozenset({observable}))


def _build_variant(f1: float, f2: float, code1: TypeID, code2: TypeID,
                   phase1: TypeID, phase2: TypeID, second_q: TypeID,
                   graphic2: TypeID):
    """Combination and prefit definitions for one frequency pair"""
    gamma = (f1 / f2) ** 2
    a = gamma / (gamma - 1.0)
    b = 1.0 / (gamma - 1.0)
    x = (gamma + 1.0) / (gamma - 1.0)
    y = 2.0 / (gamma - 1.0)
    z = 2.0 * gamma / (gamma - 1.0)
    c = f1 / (f1 + f2)
    d = f2 / (f1 + f2)
    e = f1 / (f1 - f2)
    f = f2 / (f1 - f2)
    lc_wavelength = CLIGHT / (f1 + f2)

    combinations = {
        'pc': LinearCombination(TypeID.PC, {code1: +a, code2: -b}),
        'lc': LinearCombination(TypeID.LC, {phase1: +a, phase2: -b}),
        'pi': LinearCombination(TypeID.PI, {code1: -1.0, code2: +1.0}),
        'li': LinearCombination(TypeID.LI, {phase1: +1.0, phase2: -1.0}),
        'pdelta': LinearCombination(TypeID.Pdelta, {code1: +c, code2: +d}),
        'ldelta': LinearCombination(TypeID.Ldelta, {phase1: +e, phase2: -f}),
        'mwubbena': LinearCombination(TypeID.MWubbena, {phase1: +e, phase2: -f,
                                                        code1: -c, code2: -d}),
        'q1': LinearCombination(TypeID.Q1, {code1: +x, code2: -y}),
        second_q.value.lower(): LinearCombination(second_q, {code1: +z, code2: -x}),
        'graphic1': LinearCombination(TypeID.GRAPHIC1, {code1: +0.5, phase1: +0.5}),
        graphic2.value.lower(): LinearCombination(graphic2, {code2: +0.5, phase2: +0.5}),
    }

    prefits = {
        'c1_prefit': _prefit(TypeID.prefitC1, TypeID.C1,
                             {TypeID.instC1: -1.0, TypeID.corrC1: -1.0}),
        'l1_prefit': _prefit(TypeID.prefitL1, TypeID.L1,
                             {TypeID.updSatL1: +1.0, TypeID.corrL1: -1.0,
                              TypeID.windUp: -(CLIGHT / f1) / TWO_PI}),
        'pc_prefit': _prefit(TypeID.prefitC, TypeID.PC, {TypeID.corrPC: -1.0}),
        'lc_prefit': _prefit(TypeID.prefitL, TypeID.LC,
                             {TypeID.updSatLC: +1.0, TypeID.corrLC: -1.0,
                              TypeID.windUp: -lc_wavelength / TWO_PI}),
        'pdelta_prefit': _prefit(TypeID.prefitPdelta, TypeID.Pdelta, {TypeID.corrPdelta: -1.0}),
        'ldelta_prefit': _prefit(TypeID.prefitLdelta, TypeID.Ldelta,
                                 {TypeID.updSatWL: +1.0, TypeID.corrLdelta: -1.0}),
        'mwubbena_prefit': LinearCombination(
            TypeID.prefitMWubbena, {TypeID.MWubbena: +1.0, TypeID.updSatMW: +1.0},
            frozenset({TypeID.MWubbena})),
    }

    # Satellite clock already removed from the observable
    pc_clock = _prefit(TypeID.prefitC, TypeID.PC, {})
    del pc_clock.body[TypeID.dtSat]
    lc_clock = _prefit(TypeID.prefitL, TypeID.LC, {TypeID.windUp: -lc_wavelength / TWO_PI})
    del lc_clock.body[TypeID.dtSat]
    prefits['pc_prefit_clock'] = pc_clock
    prefits['lc_prefit_clock'] = lc_clock

    # Wide-lane family i*L1 + j*L2 in meters
    for name, header, prefit_header, (i, j) in (
            ('wl', TypeID.WL, TypeID.prefitWL, (1, -1)),
            ('wl2', TypeID.WL2, TypeID.prefitWL2, (-2, 3)),
            ('wl4', TypeID.WL4, TypeID.prefitWL4, (4, -5))):
        first = first_factor_of_lc(i, j, f1, f2)
        second = second_factor_of_lc(i, j, f1, f2)
        combinations[name] = LinearCombination(header, {phase1: first, phase2: second})
        prefits[f'{name}_prefit'] = _prefit(
            prefit_header, header,
            {TypeID.ionoL1: first + second * gamma,
             TypeID.windUp: -wavelength_of_lc(i, j, f1, f2) / TWO_PI})

    return combinations, prefits


class CombinationTable:
    """
    Registry of linear combinations per constellation

    GPS (and QZSS) use L1/L2 with P1/P2 codes; Galileo uses E1/E5a stored
    as C1/C5 and L1/L5. Built once; lookups only.

    Examples:
        >>> table = CombinationTable()
        >>> table.get('lc', SYS_GAL).body
        {<TypeID.L1: 'L1'>: 2.26..., <TypeID.L5: 'L5'>: -1.26...}
    """

    def __init__(self):
        gps = _build_variant(FREQ_L1, FREQ_L2, TypeID.P1, TypeID.P2,
                             TypeID.L1, TypeID.L2, TypeID.Q2, TypeID.GRAPHIC2)
        gal = _build_variant(FREQ_E1, FREQ_E5a, TypeID.C1, TypeID.C5,
                             TypeID.L1, TypeID.L5, TypeID.Q5, TypeID.GRAPHIC5)

        # GPS-only definitions
        gps_comb, gps_prefit = gps
        gps_prefit['p1_prefit'] = _prefit(TypeID.prefitP1, TypeID.P1,
                                          {TypeID.instP1: -1.0, TypeID.corrP1: -1.0})
        gps_prefit['p2_prefit'] = _prefit(TypeID.prefitP2, TypeID.P2,
                                          {TypeID.instP2: -1.0, TypeID.corrP2: -1.0})
        gps_prefit['l2_prefit'] = _prefit(TypeID.prefitL2, TypeID.L2,
                                          {TypeID.updSatL2: +1.0, TypeID.corrL2: -1.0,
                                           TypeID.windUp: -(CLIGHT / FREQ_L2) / TWO_PI})
        # Receivers without P1 provide C1 instead
        for name in ('pc', 'pi', 'pdelta', 'mwubbena', 'q1', 'q2', 'graphic1'):
            base = gps_comb[name]
            body = {(TypeID.C1 if t == TypeID.P1 else t): coef for t, coef in base.body.items()}
            gps_comb[f'{name}_c1'] = LinearCombination(base.header, body)

        self._variants = {SYS_GPS: gps, SYS_GAL: gal}
        self._aliases = {SYS_QZS: SYS_GPS}

    def variant(self, sys: int) -> Optional[int]:
        """Constellation whose definitions apply to `sys`, None if unsupported"""
        sys = self._aliases.get(sys, sys)
        return sys if sys in self._variants else None

    def systems(self) -> List[int]:
        return sorted(self._variants)

    def combination_names(self, sys: int = SYS_GPS) -> List[str]:
        return sorted(self._variants[self._require(sys)][0])

    def prefit_names(self, sys: int = SYS_GPS) -> List[str]:
        return sorted(self._variants[self._require(sys)][1])

    def get_combination(self, name: str, sys: int = SYS_GPS) -> LinearCombination:
        return self._variants[self._require(sys)][0][name]

    def get_prefit(self, name: str, sys: int = SYS_GPS) -> LinearCombination:
        return self._variants[self._require(sys)][1][name]

    def get(self, name: str, sys: int = SYS_GPS) -> Optional[LinearCombination]:
        """Combination or prefit definition by name, None if not defined for `sys`"""
        variant = self.variant(sys)
        if variant is None:
            return None
        combinations, prefits = self._variants[variant]
        return combinations.get(name, prefits.get(name))

    def _require(self, sys: int) -> int:
        variant = self.variant(sys)
        if variant is None:
            raise KeyError(f"No combinations defined for system {sys}")
        return variant


class ComputeLinear(ProcessingStage):
    """
    Applies named combinations to every satellite, in the given order

    Later entries may use results of earlier ones, e.g.
    ['pc', 'lc', 'pc_prefit', 'lc_prefit'].
    """

    def __init__(self, names: Iterable[str], table: Optional[CombinationTable] = None):
        self.names = list(names)
        if not self.names:
            raise ConfigurationError("ComputeLinear needs at least one combination")
        self.table = table if table is not None else CombinationTable()
        unknown = [n for n in self.names
                   if all(self.table.get(n, sys) is None for sys in self.table.systems())]
        if unknown:
            raise ConfigurationError(f"Unknown combinations: {unknown}")

    def compute_body(self, body):
        for sat in body.satellites():
            values = body[sat]
            sys = sat2sys(sat)
            for name in self.names:
                comb = self.table.get(name, sys)
                if comb is None:
                    continue
                result = comb.compute(values)
                if result is None:
                    logger.debug(f"Sat {sat}: inputs of '{name}' missing, skipped")
                    continue
                values[comb.header] = result
        return body

    def process_epoch_group(self, time, group):
        for body in group.values():
            self.compute_body(body)
        return None
