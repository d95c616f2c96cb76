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

"""Test suite for data structures"""

import unittest

import numpy as np
import pandas as pd

from pyupd.core.data_structures import (
    DEFAULT_SOURCE, EpochSolution, GnssDataMap, GnssEpoch, SatTypeValueMap,
)
from pyupd.core.types import TypeID
from pyupd.core.variable import Variable


def make_body():
    body = SatTypeValueMap()
    body.insert_value(7, TypeID.C1, 21000000.0)
    body.insert_value(3, TypeID.C1, 22000000.0)
    body.insert_value(3, TypeID.L1, 1.5)
    body.insert_value(12, TypeID.P2, 23000000.0)
    return body


class TestSatTypeValueMap(unittest.TestCase):
    """Test the per-epoch satellite map"""

    def test_satellites_sorted(self):
        body = make_body()
        self.assertEqual(body.num_sats(), 3)
        self.assertEqual(body.satellites(), [3, 7, 12])

    def test_get_and_insert(self):
        body = make_body()
        self.assertEqual(body.get_value(3, TypeID.L1), 1.5)
        body.insert_value(3, TypeID.L1, 2.5)
        self.assertEqual(body.get_value(3, TypeID.L1), 2.5)
        with self.assertRaises(KeyError):
            body.get_value(7, TypeID.L1)

    def test_extract_type(self):
        self.assertEqual(make_body().extract_type(TypeID.C1),
                         {3: 22000000.0, 7: 21000000.0})

    def test_types(self):
        self.assertEqual(make_body().types(), {TypeID.C1, TypeID.L1, TypeID.P2})

    def test_remove_and_keep(self):
        body = make_body()
        result = body.remove_satellites([7, 99])
        self.assertIs(result, body)
        self.assertEqual(body.satellites(), [3, 12])
        body.keep_only_satellites([12])
        self.assertEqual(body.satellites(), [12])

    def test_copy_is_deep(self):
        body = make_body()
        clone = body.copy()
        clone.insert_value(3, TypeID.L1, 9.0)
        self.assertEqual(body.get_value(3, TypeID.L1), 1.5)
        self.assertIsInstance(clone, SatTypeValueMap)


class TestGnssEpoch(unittest.TestCase):

    def test_defaults(self):
        epoch = GnssEpoch(time=10.0)
        self.assertEqual(epoch.source, DEFAULT_SOURCE)
        self.assertEqual(epoch.num_sats(), 0)
        self.assertIsNone(epoch.solution)

    def test_plain_dict_body_converted(self):
        epoch = GnssEpoch(time=0.0, source="ABC", body={5: {TypeID.C1: 2.1e7}})
        self.assertIsInstance(epoch.body, SatTypeValueMap)
        self.assertEqual(epoch.num_sats(), 1)


class TestGnssDataMap(unittest.TestCase):

    def setUp(self):
        self.data = GnssDataMap()
        self.data.add(30.0, "BBB", make_body())
        self.data.add(0.0, "AAA", make_body())
        self.data.add(0.0, "BBB", make_body())

    def test_times_ordered(self):
        self.assertEqual(self.data.times(), [0.0, 30.0])
        self.assertEqual(list(self.data), [0.0, 30.0])
        self.assertEqual(len(self.data), 2)
        self.assertIn(30.0, self.data)

    def test_sources(self):
        self.assertEqual(self.data.sources(), ["AAA", "BBB"])
        self.assertEqual(sorted(self.data.at(0.0)), ["AAA", "BBB"])

    def test_get_epoch_shares_body(self):
        epoch = self.data.get_epoch(0.0, "AAA")
        epoch.body.insert_value(3, TypeID.L2, 4.0)
        self.assertEqual(self.data.at(0.0)["AAA"].get_value(3, TypeID.L2), 4.0)

    def test_add_epoch(self):
        self.data.add_epoch(GnssEpoch(time=60.0, source="CCC", body=make_body()))
        self.assertEqual(self.data.times()[-1], 60.0)
        with self.assertRaises(ValueError):
            self.data.add_epoch(GnssEpoch(time=None))

    def test_remove_time(self):
        self.data.solutions[0.0] = EpochSolution(time=0.0)
        self.data.remove_time(0.0)
        self.assertEqual(self.data.times(), [30.0])
        self.assertNotIn(0.0, self.data.solutions)

    def test_to_dataframe(self):
        df = self.data.to_dataframe()
        self.assertIsInstance(df, pd.DataFrame)
        self.assertEqual(list(df.columns), ['time', 'source', 'sat', 'type', 'value'])
        # 4 values per body, 3 bodies
        self.assertEqual(len(df), 12)
        self.assertEqual(df.iloc[0]['time'], 0.0)
        self.assertEqual(df.iloc[0]['source'], "AAA")
        self.assertEqual(df.iloc[0]['sat'], "G03")


class TestEpochSolution(unittest.TestCase):

    def test_to_dataframe(self):
        amb = Variable(TypeID.BLC, "ABC", 5)
        clk = Variable(TypeID.cdt, "ABC")
        solution = EpochSolution(
            time=0.0,
            variables=[amb, clk],
            float_solution={amb: 3.1, clk: 10.0},
            float_variance={amb: 0.001, clk: 4.0},
            fixed_solution={amb: 3.0, clk: 9.9},
            amb_fixed={amb: 3.0},
            num_equations=8,
        )
        self.assertTrue(solution.is_fixed)
        df = solution.to_dataframe()
        self.assertEqual(len(df), 2)
        self.assertEqual(df.iloc[0]['sat'], "G05")
        self.assertTrue(df.iloc[0]['is_fixed'])
        self.assertFalse(df.iloc[1]['is_datum'])
        self.assertIsNone(df['sat'].iloc[1])
        np.testing.assert_allclose(df['fixed'].values, [3.0, 9.9])

    def test_missing_identity_is_none(self):
        upd = Variable(TypeID.updSat, None, 5)
        clk = Variable(TypeID.cdt, "ABC")
        df = EpochSolution(time=30.0, variables=[upd, clk],
                           float_solution={upd: 0.2, clk: 1.0}).to_dataframe()
        self.assertEqual(df['source'].dtype, object)
        self.assertEqual(df['sat'].dtype, object)
        self.assertIsNone(df['source'].iloc[0])
        self.assertEqual(df['sat'].iloc[0], "G05")
        self.assertEqual(df['source'].iloc[1], "ABC")
        self.assertIsNone(df['sat'].iloc[1])
        self.assertTrue(np.isnan(df['fixed'].iloc[0]))

    def test_not_fixed_by_default(self):
        self.assertFalse(EpochSolution(time=None).is_fixed)


if __name__ == '__main__':
    unittest.main()
