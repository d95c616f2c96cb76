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
Kalman filter primitives

Pure functions on dense arrays. None of them modifies its inputs, so a
caller commits a result only after the whole step succeeded.
"""

import logging
from typing import Sequence, Tuple

import numpy as np
from scipy.linalg import LinAlgError, cho_factor, cho_solve

from ..core.exceptions import InvalidSolverError, NumericalSingularityError
from ..core.stats import MAX_CONDITION
from ..logger import TRACE

logger = logging.getLogger(__name__)


def symmetrize(P: np.ndarray) -> np.ndarray:
    return 0.5 * (P + P.T)


def _check_finite(name: str, array: np.ndarray):
    if not np.all(np.isfinite(array)):
        raise InvalidSolverError(f"Non-finite values in {name}")


def time_update(x: np.ndarray, P: np.ndarray,
                phi: np.ndarray, Q: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Prediction step

    Parameters:
    -----------
    x : np.ndarray
        State (n,)
    P : np.ndarray
        Covariance (n, n)
    phi : np.ndarray
        State transition (n, n)
    Q : np.ndarray
        Process noise (n, n)

    Returns:
    --------
    x_minus, P_minus : np.ndarray
        phi @ x and phi @ P @ phi.T + Q

    Raises:
    -------
    InvalidSolverError
        Dimension mismatch or non-finite input
    """
    n = x.shape[0]
    if P.shape != (n, n) or phi.shape != (n, n) or Q.shape != (n, n):
        raise InvalidSolverError(
            f"Time update dimension mismatch: x {x.shape}, P {P.shape}, "
            f"phi {phi.shape}, Q {Q.shape}")
    _check_finite("phi", phi)
    _check_finite("Q", Q)

    x_minus = phi @ x
    P_minus = symmetrize(phi @ P @ phi.T + Q)
    return x_minus, P_minus


def meas_update(x_minus: np.ndarray, P_minus: np.ndarray, y: np.ndarray,
                H: np.ndarray, R: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Correction step with the Joseph covariance form

    The innovation covariance S = H P H' + R is Cholesky factorized; it is
    rejected when not positive definite or when cond(S) > 1/eps.

    Returns:
    --------
    x, P : np.ndarray
        Updated state and covariance

    Raises:
    -------
    InvalidSolverError
        Dimension mismatch or non-finite input
    NumericalSingularityError
        S not invertible to working precision
    """
    n = x_minus.shape[0]
    m = y.shape[0]
    if P_minus.shape != (n, n) or H.shape != (m, n) or R.shape != (m, m):
        raise InvalidSolverError(
            f"Measurement update dimension mismatch: x {x_minus.shape}, "
            f"P {P_minus.shape}, y {y.shape}, H {H.shape}, R {R.shape}")
    _check_finite("prefit residuals", y)
    _check_finite("design matrix", H)
    _check_finite("measurement covariance", R)

    S = symmetrize(H @ P_minus @ H.T + R)
    try:
        cond = np.linalg.cond(S)
        if not np.isfinite(cond) or cond > MAX_CONDITION:
            raise NumericalSingularityError(f"Innovation covariance is singular (cond={cond:.3e})")
        factor = cho_factor(S)
    except LinAlgError as e:
        raise NumericalSingularityError(f"Innovation covariance is not positive definite: {e}") from e

    # K = P H' S^-1, S symmetric
    K = cho_solve(factor, H @ P_minus).T
    innovation = y - H @ x_minus
    x = x_minus + K @ innovation

    I_KH = np.eye(n) - K @ H
    P = symmetrize(I_KH @ P_minus @ I_KH.T + K @ R @ K.T)

    if logger.isEnabledFor(TRACE):
        logger.log(TRACE, f"Innovation: {innovation}")
        logger.log(TRACE, f"Gain:\n{K}")
        logger.log(TRACE, f"Updated covariance:\n{P}")
    return x, P


def constrain(x: np.ndarray, P: np.ndarray, indices: Sequence[int],
              values: Sequence[float], variance: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Pseudo-observation update x[indices] = values with the given variance

    Raises the same errors as meas_update.
    """
    n = x.shape[0]
    m = len(indices)
    H = np.zeros((m, n))
    H[np.arange(m), list(indices)] = 1.0
    return meas_update(x, P, np.asarray(values, dtype=float), H, variance * np.eye(m))


def condition(x: np.ndarray, P: np.ndarray, index: int,
              value: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Condition a Gaussian on x[index] = value exactly

    Returns copies; the conditioned entry gets zero variance and zero
    covariance with every other entry.
    """
    x = x.copy()
    P = P.copy()
    p_ii = P[index, index]
    if p_ii <= 0.0:
        x[index] = value
        P[index, :] = 0.0
        P[:, index] = 0.0
        return x, P

    gain = P[:, index] / p_ii
    x += gain * (value - x[index])
    P -= np.outer(gain, P[index, :])
    x[index] = value
    P[index, :] = 0.0
    P[:, index] = 0.0
    return x, symmetrize(P)
