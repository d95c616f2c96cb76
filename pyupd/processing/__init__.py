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

"""Epoch processing stages"""

from .stage import EpochGroup, Pipeline, ProcessingStage
from .simple_filter import SimpleFilter
from .combinations import (
    CombinationTable,
    ComputeLinear,
    LinearCombination,
    first_factor_of_lc,
    freq_of_lc,
    second_factor_of_lc,
    wavelength_of_lc,
)
