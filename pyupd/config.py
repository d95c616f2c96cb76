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

"""Estimator configuration"""

import logging
from dataclasses import dataclass, field, fields
from typing import FrozenSet

from .core.exceptions import ConfigurationError
from .core.stats import DATUM_CONSTRAINT_VARIANCE, FIX_TOLERANCE, FIX_VARIANCE_THRESHOLD
from .core.types import AMBIGUITY_TYPES, TypeID

logger = logging.getLogger(__name__)


@dataclass
class SolverConfig:
    """Fixing and datum settings of the ambiguity solver.

    Attributes
    ----------
    fix_tolerance : float
        Max |a - round(a)| for an ambiguity to be fixed (cycles)
    variance_threshold : float
        Max float variance for an ambiguity to be fixed (cycles^2)
    constraint_variance : float
        Variance of the datum pseudo-observations (cycles^2)
    ambiguity_types : frozenset of TypeID
        Parameter kinds treated as ambiguities
    conditional_fixing : bool
        Condition the working solution on each accepted fix before testing
        the next candidate
    """
    fix_tolerance: float = FIX_TOLERANCE
    variance_threshold: float = FIX_VARIANCE_THRESHOLD
    constraint_variance: float = DATUM_CONSTRAINT_VARIANCE
    ambiguity_types: FrozenSet[TypeID] = field(default_factory=lambda: AMBIGUITY_TYPES)
    conditional_fixing: bool = True

    def __post_init__(self):
        try:
            self.ambiguity_types = frozenset(TypeID(t) for t in self.ambiguity_types)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid ambiguity type: {e}") from e
        self.validate()

    def validate(self):
        if not 0.0 < self.fix_tolerance <= 0.5:
            raise ConfigurationError(
                f"fix_tolerance must be in (0, 0.5], got {self.fix_tolerance}")
        if self.variance_threshold <= 0.0:
            raise ConfigurationError(
                f"variance_threshold must be positive, got {self.variance_threshold}")
        if self.constraint_variance <= 0.0:
            raise ConfigurationError(
                f"constraint_variance must be positive, got {self.constraint_variance}")
        if not self.ambiguity_types:
            raise ConfigurationError("ambiguity_types must not be empty")

    @classmethod
    def from_dict(cls, config: dict) -> 'SolverConfig':
        """
        Build a configuration from a plain dictionary

        Parameters:
        -----------
        config : dict
            e.g. {'fix_tolerance': 0.25, 'ambiguity_types': ['BLC', 'BWL']}

        Returns:
        --------
        SolverConfig
            Unknown keys are ignored with a warning
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in config.items():
            if key not in known:
                logger.warning(f"Ignoring unknown solver option '{key}'")
                continue
            kwargs[key] = value

        try:
            for key in ('fix_tolerance', 'variance_threshold', 'constraint_variance'):
                if key in kwargs:
                    kwargs[key] = float(kwargs[key])
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid solver configuration: {e}") from e

        if 'conditional_fixing' in kwargs and not isinstance(kwargs['conditional_fixing'], bool):
            raise ConfigurationError("conditional_fixing must be a boolean")

        return cls(**kwargs)
