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

"""Type identifiers for observables, model terms and estimated parameters"""

from enum import Enum


class TypeID(str, Enum):
    """Identifier of one value kind stored per satellite or estimated.

    Members compare as their string value, which gives the total order used
    by :class:`~pyupd.core.variable.Variable`.
    """
    # Elementary observables
    C1 = "C1"
    P1 = "P1"
    P2 = "P2"
    C5 = "C5"
    C6 = "C6"
    C7 = "C7"
    C8 = "C8"
    L1 = "L1"
    L2 = "L2"
    L5 = "L5"
    L6 = "L6"
    L7 = "L7"
    L8 = "L8"

    # Combinations
    PC = "PC"
    LC = "LC"
    PI = "PI"
    LI = "LI"
    Pdelta = "Pdelta"
    Ldelta = "Ldelta"
    MWubbena = "MWubbena"
    Q1 = "Q1"
    Q2 = "Q2"
    Q5 = "Q5"
    GRAPHIC1 = "GRAPHIC1"
    GRAPHIC2 = "GRAPHIC2"
    GRAPHIC5 = "GRAPHIC5"
    WL = "WL"
    WL2 = "WL2"
    WL4 = "WL4"

    # Model terms supplied by upstream modelling
    rho = "rho"
    dtSat = "dtSat"
    rel = "rel"
    gravDelay = "gravDelay"
    satPCenter = "satPCenter"
    tropoSlant = "tropoSlant"
    windUp = "windUp"
    ionoL1 = "ionoL1"
    instC1 = "instC1"
    instP1 = "instP1"
    instP2 = "instP2"
    corrC1 = "corrC1"
    corrP1 = "corrP1"
    corrP2 = "corrP2"
    corrL1 = "corrL1"
    corrL2 = "corrL2"
    corrPC = "corrPC"
    corrLC = "corrLC"
    corrPdelta = "corrPdelta"
    corrLdelta = "corrLdelta"
    updSatL1 = "updSatL1"
    updSatL2 = "updSatL2"
    updSatLC = "updSatLC"
    updSatWL = "updSatWL"
    updSatMW = "updSatMW"
    weight = "weight"

    # Prefit residuals
    prefitC1 = "prefitC1"
    prefitP1 = "prefitP1"
    prefitP2 = "prefitP2"
    prefitL1 = "prefitL1"
    prefitL2 = "prefitL2"
    prefitC = "prefitC"
    prefitL = "prefitL"
    prefitPdelta = "prefitPdelta"
    prefitLdelta = "prefitLdelta"
    prefitMWubbena = "prefitMWubbena"
    prefitWL = "prefitWL"
    prefitWL2 = "prefitWL2"
    prefitWL4 = "prefitWL4"

    # Postfit residuals
    postfitC1 = "postfitC1"
    postfitP1 = "postfitP1"
    postfitP2 = "postfitP2"
    postfitL1 = "postfitL1"
    postfitL2 = "postfitL2"
    postfitC = "postfitC"
    postfitL = "postfitL"
    postfitPdelta = "postfitPdelta"
    postfitLdelta = "postfitLdelta"
    postfitMWubbena = "postfitMWubbena"
    postfitWL = "postfitWL"
    postfitWL2 = "postfitWL2"
    postfitWL4 = "postfitWL4"

    # Estimated parameters; the value stored in the data under the same
    # TypeID is the partial derivative (coefficient) of the observation
    dx = "dx"
    dy = "dy"
    dz = "dz"
    cdt = "cdt"
    cdtSat = "cdtSat"
    wetMap = "wetMap"
    updRec = "updRec"
    updSat = "updSat"
    BL1 = "BL1"
    BL2 = "BL2"
    BL5 = "BL5"
    BLC = "BLC"
    BWL = "BWL"
    BWL2 = "BWL2"
    BWL4 = "BWL4"

    # Fixed ambiguity outputs
    BL1fixed = "BL1fixed"
    BL2fixed = "BL2fixed"
    BL5fixed = "BL5fixed"
    BLCfixed = "BLCfixed"
    BWLfixed = "BWLfixed"
    BWL2fixed = "BWL2fixed"
    BWL4fixed = "BWL4fixed"

    # Cycle slip flags
    CSL1 = "CSL1"
    CSL2 = "CSL2"
    CSL5 = "CSL5"

    def __str__(self):
        return self.value


# Parameter kinds that hold carrier-phase ambiguities (cycles)
AMBIGUITY_TYPES = frozenset({
    TypeID.BL1, TypeID.BL2, TypeID.BL5, TypeID.BLC,
    TypeID.BWL, TypeID.BWL2, TypeID.BWL4,
})

FIXED_TYPES = {
    TypeID.BL1: TypeID.BL1fixed,
    TypeID.BL2: TypeID.BL2fixed,
    TypeID.BL5: TypeID.BL5fixed,
    TypeID.BLC: TypeID.BLCfixed,
    TypeID.BWL: TypeID.BWLfixed,
    TypeID.BWL2: TypeID.BWL2fixed,
    TypeID.BWL4: TypeID.BWL4fixed,
}

POSTFIT_TYPES = {
    TypeID.prefitC1: TypeID.postfitC1,
    TypeID.prefitP1: TypeID.postfitP1,
    TypeID.prefitP2: TypeID.postfitP2,
    TypeID.prefitL1: TypeID.postfitL1,
    TypeID.prefitL2: TypeID.postfitL2,
    TypeID.prefitC: TypeID.postfitC,
    TypeID.prefitL: TypeID.postfitL,
    TypeID.prefitPdelta: TypeID.postfitPdelta,
    TypeID.prefitLdelta: TypeID.postfitLdelta,
    TypeID.prefitMWubbena: TypeID.postfitMWubbena,
    TypeID.prefitWL: TypeID.postfitWL,
    TypeID.prefitWL2: TypeID.postfitWL2,
    TypeID.prefitWL4: TypeID.postfitWL4,
}

CYCLE_SLIP_TYPES = frozenset({TypeID.CSL1, TypeID.CSL2, TypeID.CSL5})
