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

"""Test suite for ambiguity datum selection"""

import unittest

from pyupd.core.exceptions import RankDeficiencyError
from pyupd.core.types import TypeID
from pyupd.core.variable import Variable
from pyupd.solver.datum import AmbiguityDatum, IndepAmbiguityDatum


def amb(source, sat, type_id=TypeID.BLC):
    return Variable(type_id, source, sat)


class TestIndepAmbiguityDatum(unittest.TestCase):

    def setUp(self):
        self.ambs = [amb(src, sat) for src in ("AAA", "BBB") for sat in (1, 2, 3, 4)]
        self.estimates = {var: 10.3 + var.satellite for var in self.ambs}

    def test_spanning_tree(self):
        """nodes - 1 datum ambiguities for a connected network"""
        datum = IndepAmbiguityDatum()
        values = datum.select(self.ambs, self.estimates)
        # 2 receivers + 4 satellites
        self.assertEqual(len(values), 5)
        self.assertEqual(sorted(values), [amb("AAA", 1), amb("AAA", 2), amb("AAA", 3),
                                          amb("AAA", 4), amb("BBB", 1)])
        self.assertEqual(values[amb("AAA", 2)], 12.0)

    def test_kept_across_epochs(self):
        datum = IndepAmbiguityDatum()
        first = datum.select(self.ambs, self.estimates)

        live = [var for var in self.ambs if var != amb("AAA", 1)]
        estimates = {var: 50.6 for var in live}
        second = datum.select(live, estimates, first)

        self.assertEqual(len(second), 5)
        for var in (amb("AAA", 2), amb("AAA", 3), amb("AAA", 4), amb("BBB", 1)):
            self.assertIn(var, second)
            self.assertEqual(second[var], first[var])
        self.assertEqual(second[amb("BBB", 2)], 51.0)

    def test_evicted_entry_rerounded(self):
        """An ambiguity left out of previous takes its current estimate"""
        datum = IndepAmbiguityDatum()
        first = datum.select(self.ambs, self.estimates)
        previous = {var: value for var, value in first.items() if var != amb("AAA", 1)}

        estimates = dict(self.estimates)
        estimates[amb("AAA", 1)] += 3.0
        second = datum.select(self.ambs, estimates, previous)

        self.assertEqual(sorted(second), sorted(first))
        self.assertEqual(second[amb("AAA", 1)], first[amb("AAA", 1)] + 3.0)
        for var in previous:
            self.assertEqual(second[var], first[var])

    def test_stateless(self):
        """Selecting leaves the strategy unchanged, so it can be shared"""
        datum = IndepAmbiguityDatum()
        first = datum.select(self.ambs, self.estimates)
        shifted = {var: value + 7.0 for var, value in self.estimates.items()}
        other = datum.select(self.ambs, shifted)
        again = datum.select(self.ambs, self.estimates)

        self.assertEqual(first, again)
        self.assertEqual(other[amb("AAA", 2)], first[amb("AAA", 2)] + 7.0)

    def test_disconnected(self):
        ambs = [amb("AAA", 1), amb("AAA", 2), amb("BBB", 3), amb("BBB", 4)]
        estimates = {var: 0.0 for var in ambs}
        with self.assertRaises(RankDeficiencyError):
            IndepAmbiguityDatum().select(ambs, estimates)

        values = IndepAmbiguityDatum(allow_disconnected=True).select(ambs, estimates)
        # 6 nodes in 2 components
        self.assertEqual(len(values), 4)

    def test_one_network_per_type(self):
        ambs = self.ambs + [amb(src, sat, TypeID.BWL) for src in ("AAA", "BBB") for sat in (1, 2)]
        estimates = {var: 0.0 for var in ambs}
        values = IndepAmbiguityDatum().select(ambs, estimates)
        self.assertEqual(len([v for v in values if v.type == TypeID.BLC]), 5)
        self.assertEqual(len([v for v in values if v.type == TypeID.BWL]), 3)

    def test_missing_satellite(self):
        var = Variable(TypeID.BLC, "AAA")
        with self.assertRaises(RankDeficiencyError):
            IndepAmbiguityDatum().select([var], {var: 0.0})

    def test_default_receiver(self):
        ambs = [Variable(TypeID.BLC, None, sat) for sat in (1, 2, 3)]
        values = IndepAmbiguityDatum().select(ambs, {var: 0.0 for var in ambs})
        self.assertEqual(len(values), 3)

    def test_empty(self):
        self.assertEqual(IndepAmbiguityDatum().select([], {}), {})


class TestAmbiguityDatum(unittest.TestCase):

    def test_only_live_entries(self):
        datum = AmbiguityDatum({amb("AAA", 1): 3.0, amb("AAA", 9): 1.0})
        datum.set_value(amb("AAA", 2), -4)
        values = datum.select([amb("AAA", 1), amb("AAA", 2), amb("AAA", 3)], {})
        self.assertEqual(values, {amb("AAA", 1): 3.0, amb("AAA", 2): -4.0})

    def test_remove(self):
        datum = AmbiguityDatum().set_value(amb("AAA", 1), 1.0).remove(amb("AAA", 1))
        self.assertEqual(datum.select([amb("AAA", 1)], {}), {})


if __name__ == '__main__':
    unittest.main()
