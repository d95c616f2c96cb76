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

"""GNSS constants and unified satellite numbering.

Satellites are identified by a single integer across constellations:

- GPS (G): PRN 1-32 -> sat 1-32
- GLONASS (R): PRN 1-24 -> sat 65-88
- Galileo (E): PRN 1-36 -> sat 97-132
- BeiDou (C): PRN 1-63 -> sat 141-203
- QZSS (J): PRN 1-7 -> sat 210-216
"""

import numpy as np

# Physical Constants
CLIGHT = 299792458.0  # speed of light (m/s)
TWO_PI = 2.0 * np.pi

# GPS frequencies
FREQ_L1 = 1.57542E9   # L1 frequency (Hz)
FREQ_L2 = 1.22760E9   # L2 frequency (Hz)
FREQ_L5 = 1.17645E9   # L5 frequency (Hz)

# Galileo frequencies
FREQ_E1 = 1.57542E9   # E1 frequency (Hz) - same as GPS L1
FREQ_E5a = 1.17645E9  # E5a frequency (Hz) - same as GPS L5
FREQ_E5b = 1.20714E9  # E5b frequency (Hz)

# BeiDou frequencies
FREQ_B1I = 1.561098E9  # BeiDou B1I frequency (Hz)
FREQ_B3 = 1.26852E9    # BeiDou B3 frequency (Hz)

# Wavelengths (m)
WAVELENGTH_L1 = CLIGHT / FREQ_L1
WAVELENGTH_L2 = CLIGHT / FREQ_L2
WAVELENGTH_L5 = CLIGHT / FREQ_L5

# Squared frequency ratios, gamma = (f1/f2)^2
GAMMA_GPS = (FREQ_L1 / FREQ_L2) ** 2
GAMMA_GAL_L1L5 = (FREQ_E1 / FREQ_E5a) ** 2

# Ionosphere-free (narrow-lane) wavelength used for the LC wind-up term
LC_WAVELENGTH_GPS = CLIGHT / (FREQ_L1 + FREQ_L2)
LC_WAVELENGTH_GAL_L1L5 = CLIGHT / (FREQ_E1 + FREQ_E5a)

# GNSS System IDs
SYS_NONE = 0x00
SYS_GPS = 0x01    # GPS
SYS_GLO = 0x02    # GLONASS
SYS_GAL = 0x04    # Galileo
SYS_BDS = 0x08    # BeiDou
SYS_QZS = 0x10    # QZSS
SYS_ALL = 0xFF    # All systems

# sys -> (first sat number, max PRN)
_SAT_RANGES = {
    SYS_GPS: (1, 32),
    SYS_GLO: (65, 24),
    SYS_GAL: (97, 36),
    SYS_BDS: (141, 63),
    SYS_QZS: (210, 7),
}

_SYS_CHARS = {
    SYS_GPS: 'G',
    SYS_GLO: 'R',
    SYS_GAL: 'E',
    SYS_BDS: 'C',
    SYS_QZS: 'J',
}


def sat2sys(sat):
    """Get satellite system from satellite number"""
    for sys, (first, nprn) in _SAT_RANGES.items():
        if first <= sat < first + nprn:
            return sys
    return SYS_NONE


def sat2prn(sat):
    """Get PRN number from satellite number, 0 if invalid"""
    sys = sat2sys(sat)
    if sys == SYS_NONE:
        return 0
    return sat - _SAT_RANGES[sys][0] + 1


def prn2sat(prn, sys):
    """
    Get satellite number from PRN and system

    Parameters:
    -----------
    prn : int
        PRN number
    sys : int
        Satellite system (SYS_GPS, SYS_GAL, etc.)

    Returns:
    --------
    int
        Satellite number, 0 if the PRN is out of range for the system
    """
    if sys not in _SAT_RANGES:
        return 0
    first, nprn = _SAT_RANGES[sys]
    if not 1 <= prn <= nprn:
        return 0
    return first + prn - 1


def sys2char(sys):
    """Convert system ID to character"""
    return _SYS_CHARS.get(sys, ' ')


def char2sys(c):
    """Convert character to system ID"""
    for sys, char in _SYS_CHARS.items():
        if char == c.upper():
            return sys
    return SYS_NONE


def sat2id(sat):
    """Satellite number to RINEX-style identifier, e.g. 5 -> 'G05'"""
    sys = sat2sys(sat)
    if sys == SYS_NONE:
        return f"?{sat:02d}"
    return f"{sys2char(sys)}{sat2prn(sat):02d}"


def id2sat(sat_id):
    """RINEX-style identifier to satellite number, e.g. 'E11' -> 107"""
    sat_id = sat_id.strip()
    if len(sat_id) < 2:
        return 0
    try:
        prn = int(sat_id[1:])
    except ValueError:
        return 0
    return prn2sat(prn, char2sys(sat_id[0]))
