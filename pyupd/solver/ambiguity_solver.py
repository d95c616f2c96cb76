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
Sequential network estimator with ambiguity datum and integer fixing
=====================================================================

Every epoch runs through

    pre_compute -> time_update -> meas_update -> ambiguity_constr -> post_compute

- pre_compute aligns the state with the Variables referenced by this
  epoch's equations: unreferenced Variables are dropped for good, new ones
  are born with their Unknown's initial value and variance.
- time_update / meas_update are a Kalman filter with Joseph covariance
  update.
- ambiguity_constr pins the datum ambiguities in the float state, then
  tests the remaining float ambiguities for integer fixing. Fixes only
  affect the fixed solution, never the float state.
- post_compute writes float and fixed estimates and postfit residuals back
  into the epoch data.

A failing step raises an epoch-scoped ProcessingError and leaves x/P at the
last committed values (the prediction, for a singular measurement update).

Example:
    >>> solver = AmbiguityFixingSolver(system, IndepAmbiguityDatum(), solver_id=1)
    >>> data_map = Pipeline([SimpleFilter(), ComputeLinear(names), solver]).process(data_map)
    >>> solver.fixing_summary()
"""

import logging
from dataclasses import replace
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

import numpy as np
import pandas as pd

from ..config import SolverConfig
from ..core.constants import sat2id
from ..core.data_structures import EpochSolution
from ..core.exceptions import (
    ConfigurationError,
    InvalidSolverError,
    NumericalSingularityError,
    ProcessingError,
)
from ..core.types import FIXED_TYPES, POSTFIT_TYPES
from ..core.variable import Variable, VariableDataMap, build_index
from ..logger import TRACE
from ..processing.stage import ProcessingStage
from . import kalman
from .datum import AmbiguityDatum, DatumStrategy, IndepAmbiguityDatum
from .equation import EpochEquations, EquationSystem
from .fixing import AmbiguityFixer, FixingData

logger = logging.getLogger(__name__)


class SolverState(Enum):
    """Position of the solver in the per-epoch cycle"""
    IDLE = "idle"
    PRE_COMPUTED = "pre_computed"
    TIME_UPDATED = "time_updated"
    MEAS_UPDATED = "meas_updated"
    CONSTRAINED = "constrained"
    POST_COMPUTED = "post_computed"


class AmbiguityFixingSolver(ProcessingStage):
    """
    Kalman filter over a changing parameter set with ambiguity fixing

    One instance owns one state; independent observation streams need
    independent instances, told apart by `solver_id`.

    Parameters:
    -----------
    equation_system : EquationSystem
        Observation model
    datum : DatumStrategy
        AmbiguityDatum or IndepAmbiguityDatum
    config : SolverConfig, optional
        Fixing and datum settings
    solver_id : int
        Identifier assigned by the caller, used in log messages
    """

    def __init__(self, equation_system: EquationSystem,
                 datum: Optional[DatumStrategy] = None,
                 config: Optional[SolverConfig] = None,
                 solver_id: int = 0):
        if not isinstance(equation_system, EquationSystem):
            raise ConfigurationError("AmbiguityFixingSolver needs an EquationSystem")
        self.equation_system = equation_system
        self.config = config if config is not None else SolverConfig()
        self.solver_id = solver_id

        self._datum: Optional[DatumStrategy] = None
        self._datum_history: VariableDataMap = {}

        self._variables: List[Variable] = []
        self._index: Dict[Variable, int] = {}
        self._x = np.zeros(0)
        self._P = np.zeros((0, 0))
        self._x_minus: Optional[np.ndarray] = None
        self._P_minus: Optional[np.ndarray] = None

        self._state = SolverState.IDLE
        self._epoch: Optional[EpochEquations] = None
        self._time: Optional[float] = None
        self._last_time: Optional[float] = None

        self._postfit = np.zeros(0)
        self._datum_values: VariableDataMap = {}
        self._amb_fixed: VariableDataMap = {}
        self._x_fixed = np.zeros(0)
        self._fixing_data: Dict[int, FixingData] = {}
        self._solution: Optional[EpochSolution] = None
        self._born: Set[Variable] = set()

        if datum is not None:
            self.set_datum(datum)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_datum(self, datum: DatumStrategy) -> 'AmbiguityFixingSolver':
        """Select the datum strategy; replaces any previous one"""
        if not isinstance(datum, DatumStrategy):
            raise ConfigurationError(f"Not a datum strategy: {datum!r}")
        if self._state not in (SolverState.IDLE, SolverState.POST_COMPUTED):
            raise InvalidSolverError("Datum cannot change in the middle of an epoch")
        self._datum = datum
        self._datum_history = {}
        return self

    def reset_datum(self) -> 'AmbiguityFixingSolver':
        """Forget the previous datum selection"""
        self._datum_history = {}
        return self

    def set_ambiguity_datum(self, values: Dict[Variable, float]) -> 'AmbiguityFixingSolver':
        return self.set_datum(AmbiguityDatum(values))

    def set_indep_ambiguity_datum(self, allow_disconnected: bool = False) -> 'AmbiguityFixingSolver':
        return self.set_datum(IndepAmbiguityDatum(allow_disconnected))

    @property
    def datum(self) -> Optional[DatumStrategy]:
        return self._datum

    def set_fix_tolerance(self, tolerance: float) -> 'AmbiguityFixingSolver':
        self.config = replace(self.config, fix_tolerance=tolerance)
        return self

    def set_variance_threshold(self, threshold: float) -> 'AmbiguityFixingSolver':
        self.config = replace(self.config, variance_threshold=threshold)
        return self

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> SolverState:
        return self._state

    @property
    def variables(self) -> List[Variable]:
        return list(self._variables)

    @property
    def x(self) -> np.ndarray:
        return self._x.copy()

    @property
    def P(self) -> np.ndarray:
        return self._P.copy()

    @property
    def predicted_state(self) -> Tuple[np.ndarray, np.ndarray]:
        """(x_minus, P_minus); only valid between time_update and meas_update"""
        if self._x_minus is None:
            raise InvalidSolverError("No predicted state outside of the measurement update")
        return self._x_minus.copy(), self._P_minus.copy()

    def get_solution(self, var: Variable) -> float:
        return float(self._x[self._index[var]])

    def get_variance(self, var: Variable) -> float:
        return float(self._P[self._index[var], self._index[var]])

    def get_fixed_solution(self, var: Variable) -> float:
        if self._x_fixed.shape[0] != len(self._variables):
            raise InvalidSolverError("No fixed solution for the current parameter set")
        return float(self._x_fixed[self._index[var]])

    @property
    def postfit_residuals(self) -> np.ndarray:
        return self._postfit.copy()

    @property
    def amb_fixed(self) -> VariableDataMap:
        return dict(self._amb_fixed)

    @property
    def datum_values(self) -> VariableDataMap:
        return dict(self._datum_values)

    @property
    def datum_history(self) -> VariableDataMap:
        """Datum of the last epoch whose constraint was committed"""
        return dict(self._datum_history)

    @property
    def fixing_data(self) -> Dict[int, FixingData]:
        return dict(self._fixing_data)

    @property
    def solution(self) -> Optional[EpochSolution]:
        """Solution of the last completed epoch"""
        return self._solution

    def reset_fixing_data(self):
        self._fixing_data = {}

    def fixing_summary(self) -> pd.DataFrame:
        """Per-satellite fixing statistics"""
        rows = [{'sat': sat2id(sat),
                 'float_count': data.float_count,
                 'fixed_count': data.fixed_count,
                 'fixing_rate': data.fixing_rate}
                for sat, data in sorted(self._fixing_data.items())]
        return pd.DataFrame(rows, columns=['sat', 'float_count', 'fixed_count', 'fixing_rate'])

    # ------------------------------------------------------------------
    # Epoch cycle
    # ------------------------------------------------------------------

    def _require(self, step: str, *states: SolverState):
        if self._state not in states:
            current = self._state
            self._abort()
            raise InvalidSolverError(
                f"[solver {self.solver_id}] {step} called in state {current.name}")

    def _abort(self):
        self._state = SolverState.IDLE
        self._x_minus = None
        self._P_minus = None

    def pre_compute(self, time: Optional[float], group) -> 'AmbiguityFixingSolver':
        """
        Align the live Variables with this epoch's equations

        Parameters:
        -----------
        time : Optional[float]
            Epoch time
        group : Dict[str, SatTypeValueMap]
            Source tag -> epoch body

        Raises:
        -------
        ConfigurationError
            No datum strategy, no equations or no observation rows; the
            state is not touched
        """
        self._require("pre_compute", SolverState.IDLE, SolverState.PRE_COMPUTED,
                      SolverState.POST_COMPUTED)
        rerun = self._state == SolverState.PRE_COMPUTED
        try:
            if self._datum is None:
                raise ConfigurationError("No ambiguity datum strategy configured")
            epoch = self.equation_system.build(group)
        except ProcessingError:
            self._abort()
            raise

        referenced = epoch.variables()
        referenced_set = set(referenced)
        dropped = [var for var in self._variables if var not in referenced_set]
        born = [var for var in referenced if var not in self._index]

        n = len(referenced)
        x = np.zeros(n)
        P = np.zeros((n, n))
        old = [self._index[var] for var in referenced if var in self._index]
        new = [i for i, var in enumerate(referenced) if var in self._index]
        if old:
            x[new] = self._x[old]
            P[np.ix_(new, new)] = self._P[np.ix_(old, old)]
        for i, var in enumerate(referenced):
            if var not in self._index:
                unknown = epoch.unknowns[var]
                x[i] = unknown.initial_value
                P[i, i] = unknown.initial_variance

        if dropped:
            logger.debug(f"[solver {self.solver_id}] retired {len(dropped)}: "
                         f"{[str(v) for v in dropped]}")
        if born:
            logger.debug(f"[solver {self.solver_id}] born {len(born)}: "
                         f"{[str(v) for v in born]}")

        # Births of an earlier run for the same epoch still count
        if rerun:
            self._born = (self._born & referenced_set) | set(born)
        else:
            self._born = set(born)
        self._variables = referenced
        self._index = build_index(referenced)
        self._x = x
        self._P = P
        self._epoch = epoch
        self._time = time
        self._state = SolverState.PRE_COMPUTED
        return self

    def _time_step(self) -> float:
        if self._time is None or self._last_time is None:
            return 0.0
        return float(self._time - self._last_time)

    def _restarted(self, ambiguities: List[Variable]) -> Set[Variable]:
        """Ambiguities born this epoch or reset by their model (cycle slip)"""
        dt = self._time_step()
        restarted = set()
        for var in ambiguities:
            model = self._epoch.unknowns[var].model
            if var in self._born or model.get_phi(dt, self._epoch.sat_data.get(var)) == 0.0:
                restarted.add(var)
        return restarted

    def build_transition(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Diagonal phi and Q from the stochastic models of the live Variables

        dt is the time since the last completed epoch, 0 on the first epoch
        or for untimed data.
        """
        self._require("build_transition", SolverState.PRE_COMPUTED)
        dt = self._time_step()
        n = len(self._variables)
        phi = np.zeros(n)
        q = np.zeros(n)
        for i, var in enumerate(self._variables):
            model = self._epoch.unknowns[var].model
            sat_data = self._epoch.sat_data.get(var)
            phi[i] = model.get_phi(dt, sat_data)
            q[i] = model.get_q(dt, sat_data)
        return np.diag(phi), np.diag(q)

    def time_update(self, phi: Optional[np.ndarray] = None,
                    Q: Optional[np.ndarray] = None) -> 'AmbiguityFixingSolver':
        """Predict x_minus, P_minus; phi/Q default to build_transition()"""
        self._require("time_update", SolverState.PRE_COMPUTED)
        if phi is None or Q is None:
            phi, Q = self.build_transition()
        try:
            x_minus, P_minus = kalman.time_update(self._x, self._P,
                                                  np.asarray(phi, dtype=float),
                                                  np.asarray(Q, dtype=float))
        except InvalidSolverError:
            self._abort()
            raise

        self._x_minus = x_minus
        self._P_minus = P_minus
        self._state = SolverState.TIME_UPDATED
        if logger.isEnabledFor(TRACE):
            logger.log(TRACE, f"[solver {self.solver_id}] predicted covariance:\n{P_minus}")
        return self

    def meas_update(self, y: Optional[np.ndarray] = None,
                    H: Optional[np.ndarray] = None,
                    R: Optional[np.ndarray] = None) -> 'AmbiguityFixingSolver':
        """
        Kalman correction; y/H/R default to this epoch's equations

        Raises:
        -------
        NumericalSingularityError
            Innovation covariance singular; x/P are set to the prediction
        InvalidSolverError
            Dimension mismatch or non-finite input; x/P unchanged
        """
        self._require("meas_update", SolverState.TIME_UPDATED)
        if y is None or H is None or R is None:
            y, H, R = self._epoch.design(self._variables, self._index)
        y = np.asarray(y, dtype=float)
        H = np.asarray(H, dtype=float)
        R = np.asarray(R, dtype=float)

        try:
            x, P = kalman.meas_update(self._x_minus, self._P_minus, y, H, R)
        except NumericalSingularityError as e:
            logger.debug(f"[solver {self.solver_id}] keeping prediction: {e}")
            self._x = self._x_minus
            self._P = self._P_minus
            self._last_time = self._time
            self._abort()
            raise
        except InvalidSolverError:
            self._abort()
            raise

        self._x = x
        self._P = P
        self._postfit = y - H @ x
        self._x_minus = None
        self._P_minus = None
        self._state = SolverState.MEAS_UPDATED
        return self

    def ambiguity_constr(self) -> 'AmbiguityFixingSolver':
        """
        Apply the datum to the float state, then fix what passes the test

        Ambiguities born this epoch or reset by a cycle slip are dropped
        from the datum history, so a kept datum ambiguity is re-rounded from
        its current float estimate instead of keeping a stale value.

        Raises:
        -------
        RankDeficiencyError
            No datum can be selected
        NumericalSingularityError
            Datum update singular

        On failure x/P, the datum history and the fixing statistics are
        unchanged.
        """
        self._require("ambiguity_constr", SolverState.MEAS_UPDATED)
        types = self.config.ambiguity_types
        ambiguities = [var for var in self._variables if var.type in types]
        estimates = {var: float(self._x[self._index[var]]) for var in ambiguities}

        restarted = self._restarted(ambiguities)
        previous = {var: value for var, value in self._datum_history.items()
                    if var not in restarted}
        evicted = [str(var) for var in self._datum_history if var in restarted]
        if evicted:
            logger.debug(f"[solver {self.solver_id}] datum restarted: {evicted}")

        try:
            datum_values = self._datum.select(ambiguities, estimates, previous)
            if datum_values:
                indices = [self._index[var] for var in datum_values]
                x, P = kalman.constrain(self._x, self._P, indices,
                                        list(datum_values.values()),
                                        self.config.constraint_variance)
            else:
                x, P = self._x, self._P
        except ProcessingError:
            self._abort()
            raise

        self._x = x
        self._P = P
        self._datum_values = datum_values
        self._datum_history = dict(datum_values)

        fixer = AmbiguityFixer(self.config.fix_tolerance,
                               self.config.variance_threshold,
                               self.config.conditional_fixing)
        candidates = [var for var in ambiguities if var not in datum_values]
        result = fixer.fix(self._x, self._P, self._index, candidates)

        for var, fixed in result.attempts:
            if var.satellite is None:
                continue
            data = self._fixing_data.setdefault(var.satellite, FixingData())
            data.record(fixed)
            if fixed and data.fixed_count == 1:
                logger.info(f"[solver {self.solver_id}] first fix for {sat2id(var.satellite)}")

        self._amb_fixed = result.amb_fixed
        self._x_fixed = result.x_fixed
        logger.debug(f"[solver {self.solver_id}] datum {len(datum_values)}, "
                     f"fixed {len(result.amb_fixed)}/{len(candidates)}")
        self._state = SolverState.CONSTRAINED
        return self

    def compute(self, time: Optional[float], group) -> EpochSolution:
        """Run the whole epoch cycle"""
        self.pre_compute(time, group)
        self.time_update()
        self.meas_update()
        self.ambiguity_constr()
        return self.post_compute(time, group)

    def post_compute(self, time: Optional[float], group) -> EpochSolution:
        """
        Build the epoch solution and write it into the epoch data

        Satellite-indexed estimates are stored under their parameter type,
        fixed ambiguities under the matching fixed type and postfit
        residuals under the postfit type of each prefit residual.
        """
        self._require("post_compute", SolverState.CONSTRAINED)
        float_solution = {var: float(self._x[i]) for var, i in self._index.items()}
        fixed_solution = {var: float(self._x_fixed[i]) for var, i in self._index.items()}
        variance = {var: float(self._P[i, i]) for var, i in self._index.items()}

        solution = EpochSolution(
            time=time,
            variables=list(self._variables),
            float_solution=float_solution,
            float_variance=variance,
            fixed_solution=fixed_solution,
            amb_fixed=dict(self._amb_fixed),
            datum=dict(self._datum_values),
            postfit=[float(v) for v in self._postfit],
            num_equations=len(self._epoch),
        )

        fixed_values = {**self._datum_values, **self._amb_fixed}
        for var in self._variables:
            if var.satellite is None:
                continue
            sources = [var.source] if var.source is not None else list(group)
            for source in sources:
                body = group.get(source)
                if body is None or var.satellite not in body:
                    continue
                body[var.satellite][var.type] = float_solution[var]
                if var in fixed_values and var.type in FIXED_TYPES:
                    body[var.satellite][FIXED_TYPES[var.type]] = fixed_values[var]

        for row, residual in zip(self._epoch.rows, self._postfit):
            postfit_type = POSTFIT_TYPES.get(row.prefit_type)
            body = group.get(row.source)
            if postfit_type is None or body is None or row.satellite not in body:
                continue
            body[row.satellite][postfit_type] = float(residual)

        self._solution = solution
        self._last_time = time
        self._state = SolverState.POST_COMPUTED
        return solution

    def process_epoch_group(self, time, group):
        return self.compute(time, group)
