#!/usr/bin/env python3
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

"""Test suite for linear combinations"""

import unittest

import numpy as np

from pyupd.core.constants import (
    CLIGHT, FREQ_E1, FREQ_E5a, FREQ_L1, FREQ_L2, GAMMA_GPS, LC_WAVELENGTH_GPS,
    SYS_BDS, SYS_GAL, SYS_GPS, SYS_QZS, TWO_PI, prn2sat,
)
from pyupd.core.data_structures import SatTypeValueMap
from pyupd.core.exceptions import ConfigurationError
from pyupd.core.types import TypeID
from pyupd.processing.combinations import (
    CombinationTable, ComputeLinear, LinearCombination,
    first_factor_of_lc, freq_of_lc, second_factor_of_lc, wavelength_of_lc,
)


class TestCombinationHelpers(unittest.TestCase):
    """Pure helpers over (i, j, f1, f2)"""

    def test_freq(self):
        self.assertAlmostEqual(freq_of_lc(1, -1), FREQ_L1 - FREQ_L2)
        self.assertAlmostEqual(freq_of_lc(1, 1, 2.0, 3.0), 5.0)

    def test_wide_lane_wavelength(self):
        self.assertAlmostEqual(wavelength_of_lc(1, -1), 0.862, places=3)
        self.assertAlmostEqual(wavelength_of_lc(1, 0), CLIGHT / FREQ_L1)

    def test_factors_sum_to_one(self):
        for i, j in ((1, -1), (-2, 3), (4, -5), (1, 1)):
            self.assertAlmostEqual(first_factor_of_lc(i, j) + second_factor_of_lc(i, j), 1.0)

    def test_wide_lane_factors(self):
        self.assertAlmostEqual(first_factor_of_lc(1, -1), FREQ_L1 / (FREQ_L1 - FREQ_L2))
        self.assertAlmostEqual(second_factor_of_lc(1, -1), -FREQ_L2 / (FREQ_L1 - FREQ_L2))

    def test_zero_frequency(self):
        with self.assertRaises(ValueError):
            wavelength_of_lc(0, 0)


class TestLinearCombination(unittest.TestCase):

    def test_compute(self):
        comb = LinearCombination(TypeID.LI, {TypeID.L1: 1.0, TypeID.L2: -1.0})
        self.assertAlmostEqual(comb.compute({TypeID.L1: 5.0, TypeID.L2: 3.0}), 2.0)
        self.assertIsNone(comb.compute({TypeID.L1: 5.0}))

    def test_optional_terms(self):
        comb = LinearCombination(TypeID.prefitC1, {TypeID.C1: 1.0, TypeID.rho: -1.0},
                                 frozenset({TypeID.C1}))
        self.assertAlmostEqual(comb.compute({TypeID.C1: 10.0}), 10.0)
        self.assertAlmostEqual(comb.compute({TypeID.C1: 10.0, TypeID.rho: 4.0}), 6.0)


class TestCombinationTable(unittest.TestCase):

    def setUp(self):
        self.table = CombinationTable()

    def test_pc_gps(self):
        pc = self.table.get_combination('pc', SYS_GPS)
        self.assertEqual(pc.header, TypeID.PC)
        self.assertAlmostEqual(pc.body[TypeID.P1], GAMMA_GPS / (GAMMA_GPS - 1.0))
        self.assertAlmostEqual(pc.body[TypeID.P1] + pc.body[TypeID.P2], 1.0)

    def test_lc_galileo(self):
        lc = self.table.get('lc', SYS_GAL)
        gamma = (FREQ_E1 / FREQ_E5a) ** 2
        self.assertEqual(set(lc.body), {TypeID.L1, TypeID.L5})
        self.assertAlmostEqual(lc.body[TypeID.L1], gamma / (gamma - 1.0))

    def test_mwubbena(self):
        mw = self.table.get_combination('mwubbena')
        ldelta = self.table.get_combination('ldelta')
        pdelta = self.table.get_combination('pdelta')
        self.assertAlmostEqual(mw.body[TypeID.L1], ldelta.body[TypeID.L1])
        self.assertAlmostEqual(mw.body[TypeID.P2], -pdelta.body[TypeID.P2])

    def test_wl_prefit(self):
        wl = self.table.get_prefit('wl_prefit')
        self.assertEqual(wl.header, TypeID.prefitWL)
        self.assertAlmostEqual(wl.body[TypeID.windUp], -wavelength_of_lc(1, -1) / TWO_PI)
        expected = first_factor_of_lc(1, -1) + second_factor_of_lc(1, -1) * GAMMA_GPS
        self.assertAlmostEqual(wl.body[TypeID.ionoL1], expected)

    def test_lc_prefit(self):
        lc = self.table.get_prefit('lc_prefit')
        self.assertAlmostEqual(lc.body[TypeID.windUp], -LC_WAVELENGTH_GPS / TWO_PI)
        self.assertEqual(lc.body[TypeID.updSatLC], 1.0)
        self.assertEqual(lc.body[TypeID.dtSat], 1.0)

    def test_clock_prefits_drop_satellite_clock(self):
        self.assertNotIn(TypeID.dtSat, self.table.get_prefit('pc_prefit_clock').body)
        self.assertNotIn(TypeID.dtSat, self.table.get_prefit('lc_prefit_clock').body)

    def test_names(self):
        names = self.table.combination_names(SYS_GPS)
        for name in ('pc', 'lc', 'pi', 'li', 'pdelta', 'ldelta', 'mwubbena', 'q1', 'q2',
                     'graphic1', 'graphic2', 'wl', 'wl2', 'wl4'):
            self.assertIn(name, names)
        self.assertIn('q5', self.table.combination_names(SYS_GAL))
        self.assertIn('graphic5', self.table.combination_names(SYS_GAL))
        prefits = self.table.prefit_names(SYS_GPS)
        for name in ('c1_prefit', 'p1_prefit', 'p2_prefit', 'l1_prefit', 'l2_prefit',
                     'pc_prefit', 'lc_prefit', 'pdelta_prefit', 'ldelta_prefit',
                     'mwubbena_prefit', 'wl_prefit', 'wl2_prefit', 'wl4_prefit',
                     'pc_prefit_clock', 'lc_prefit_clock'):
            self.assertIn(name, prefits)

    def test_variants(self):
        self.assertEqual(self.table.variant(SYS_QZS), SYS_GPS)
        self.assertIsNone(self.table.variant(SYS_BDS))
        self.assertIsNone(self.table.get('pc', SYS_BDS))
        with self.assertRaises(KeyError):
            self.table.get_combination('pc', SYS_BDS)


class TestComputeLinear(unittest.TestCase):

    def test_gps_and_galileo(self):
        body = SatTypeValueMap()
        gps, gal = prn2sat(5, SYS_GPS), prn2sat(11, SYS_GAL)
        body.insert_value(gps, TypeID.P1, 2.0e7)
        body.insert_value(gps, TypeID.P2, 2.0e7 + 3.0)
        body.insert_value(gal, TypeID.C1, 2.4e7)
        body.insert_value(gal, TypeID.C5, 2.4e7 + 2.0)

        ComputeLinear(['pc', 'pc_prefit']).process(body)

        table = CombinationTable()
        expected = table.get('pc', SYS_GPS).compute(body[gps])
        self.assertAlmostEqual(body[gps][TypeID.PC], expected)
        self.assertAlmostEqual(body[gps][TypeID.prefitC], expected)
        self.assertIn(TypeID.PC, body[gal])
        self.assertNotAlmostEqual(body[gal][TypeID.PC], 2.4e7, places=3)

    def test_missing_inputs_skipped(self):
        body = SatTypeValueMap()
        body.insert_value(1, TypeID.P1, 2.0e7)
        body.insert_value(2, TypeID.P1, 2.0e7)
        body.insert_value(2, TypeID.P2, 2.0e7)
        ComputeLinear(['pc']).process(body)
        self.assertNotIn(TypeID.PC, body[1])
        self.assertIn(TypeID.PC, body[2])

    def test_prefit_model_terms(self):
        body = SatTypeValueMap()
        body[1] = {TypeID.C1: 2.0e7, TypeID.rho: 2.0e7 - 10.0, TypeID.dtSat: 5.0,
                   TypeID.tropoSlant: 2.5}
        ComputeLinear(['c1_prefit']).process(body)
        np.testing.assert_allclose(body[1][TypeID.prefitC1], 10.0 + 5.0 - 2.5)

    def test_unknown_name(self):
        with self.assertRaises(ConfigurationError):
            ComputeLinear(['not_a_combination'])
        with self.assertRaises(ConfigurationError):
            ComputeLinear([])


if __name__ == '__main__':
    unittest.main()
