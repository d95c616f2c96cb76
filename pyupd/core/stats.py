#!/usr/bin/env python
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
Statistical Parameters and Defaults
===================================

Default thresholds, initial variances and process noise for the
sequential estimator. Ambiguity parameters are expressed in cycles; all
other parameters in meters.
"""

# ============================================================================
# OUTLIER FILTER
# ============================================================================
FILTER_MIN_LIMIT = 15000000.0   # Minimum accepted code observable (m)
FILTER_MAX_LIMIT = 30000000.0   # Maximum accepted code observable (m)
MIN_SATELLITES = 4              # Fewer satellites make the epoch unusable

# ============================================================================
# INTEGER FIXING TEST
# ============================================================================
FIX_TOLERANCE = 0.2             # Max distance to nearest integer (cycles)
FIX_VARIANCE_THRESHOLD = 0.01   # Max float ambiguity variance (cycles^2)

# ============================================================================
# AMBIGUITY DATUM
# ============================================================================
DATUM_CONSTRAINT_VARIANCE = 1e-8  # Pseudo-observation variance (cycles^2)

# ============================================================================
# INITIAL STATE STANDARD DEVIATIONS
# ============================================================================
STD_COORD = 100.0      # Coordinate initial std (m)
STD_CLOCK = 1000.0     # Clock initial std (m)
STD_TROP = 0.5         # Zenith wet delay initial std (m)
STD_AMB = 1000.0       # Ambiguity initial std (cycles)

# ============================================================================
# PROCESS NOISE
# ============================================================================
SIGMA_CLOCK = 1000.0   # Clock white noise std (m)
QPRIME_TROP = 3e-8     # Tropospheric random walk spectral density (m^2/s)

# Generic fallback for unknowns without an explicit initial variance
DEFAULT_INITIAL_VARIANCE = STD_CLOCK ** 2

# Condition number above which the innovation covariance is singular
MAX_CONDITION = 1.0 / 2.220446049250313e-16
