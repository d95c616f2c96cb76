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

"""Epoch processing stage interface and pipeline wiring"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from ..core.data_structures import (
    DEFAULT_SOURCE,
    EpochSolution,
    GnssDataMap,
    GnssEpoch,
    SatTypeValueMap,
)
from ..core.exceptions import ConfigurationError, ProcessingError

logger = logging.getLogger(__name__)

EpochGroup = Dict[str, SatTypeValueMap]


class ProcessingStage(ABC):
    """
    One transform applied epoch by epoch.

    `process` accepts a single SatTypeValueMap, a GnssEpoch or a whole
    GnssDataMap. Every granularity is routed through
    `process_epoch_group(time, {source: body})`, so a stage behaves the same
    regardless of how it is fed. Bodies are mutated in place and the same
    container is returned.

    Examples:
        >>> stage = SimpleFilter()
        >>> epoch = stage.process(epoch)
        >>> data_map = Pipeline([SimpleFilter(), solver]).process(data_map)
    """

    @abstractmethod
    def process_epoch_group(self, time: Optional[float],
                            group: EpochGroup) -> Optional[EpochSolution]:
        """
        Process all sources observed at one epoch

        Parameters:
        -----------
        time : Optional[float]
            Epoch time, None for untimed data
        group : Dict[str, SatTypeValueMap]
            Source tag -> epoch body

        Returns:
        --------
        Optional[EpochSolution]
            Estimation stages return the epoch solution, filters return None
        """

    def process(self, data):
        if isinstance(data, GnssDataMap):
            for time in data.times():
                self.process_time(data, time)
            return data
        if isinstance(data, GnssEpoch):
            solution = self.process_epoch_group(data.time, {data.source: data.body})
            if solution is not None:
                data.solution = solution
            return data
        if isinstance(data, SatTypeValueMap):
            self.process_epoch_group(None, {DEFAULT_SOURCE: data})
            return data
        raise TypeError(f"Cannot process {type(data).__name__}")

    def process_time(self, data: GnssDataMap, time: float):
        """Process one time of a multi-epoch container"""
        solution = self.process_epoch_group(time, data.at(time))
        if solution is not None:
            data.solutions[time] = solution

    def __call__(self, data):
        return self.process(data)


class Pipeline(ProcessingStage):
    """
    Stages composed in order.

    For a GnssDataMap each time runs through every stage before the next
    time starts, so stateful stages always see epochs in time order.

    Parameters:
    -----------
    stages : List[ProcessingStage]
        Stages in processing order
    on_error : str
        "raise" propagates the first ProcessingError; "record" logs it,
        stores it in `failures[time]`, removes the epoch from the container
        and continues with the next time
    """

    ERROR_POLICIES = ("raise", "record")

    def __init__(self, stages: List[ProcessingStage], on_error: str = "raise"):
        if not stages:
            raise ConfigurationError("Pipeline needs at least one stage")
        if on_error not in self.ERROR_POLICIES:
            raise ConfigurationError(f"Unknown error policy: {on_error}")
        self.stages = list(stages)
        self.on_error = on_error
        self.failures: Dict[float, ProcessingError] = {}

    def add_stage(self, stage: ProcessingStage) -> 'Pipeline':
        self.stages.append(stage)
        return self

    def process_epoch_group(self, time, group):
        solution = None
        for stage in self.stages:
            result = stage.process_epoch_group(time, group)
            if result is not None:
                solution = result
        return solution

    def process_time(self, data, time):
        try:
            super().process_time(data, time)
        except ProcessingError as e:
            if self.on_error == "raise":
                raise
            logger.warning(f"Epoch {time} dropped: {type(e).__name__}: {e}")
            self.failures[time] = e
            data.remove_time(time)
