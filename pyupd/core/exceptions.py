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

"""Exceptions raised by the processing stages.

Every exception is epoch-scoped: it tells the caller that the result of the
current epoch is unusable. None of them leaves the estimator state
half-updated.
"""


class ProcessingError(Exception):
    """Base class of all processing failures"""


class InputCardinalityError(ProcessingError):
    """Fewer satellites than the processing minimum"""

    def __init__(self, num_sats: int, min_sats: int):
        self.num_sats = num_sats
        self.min_sats = min_sats
        super().__init__(f"Too few satellites: {num_sats} < {min_sats}")


class ConfigurationError(ProcessingError):
    """Missing or inconsistent configuration"""


class InvalidSolverError(ProcessingError):
    """Numerically unusable input or a processing step called out of order"""


class NumericalSingularityError(InvalidSolverError):
    """An update matrix is not invertible to working precision"""


class RankDeficiencyError(ProcessingError):
    """No full-rank ambiguity datum can be selected"""
