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
Logging setup for the pyupd processing chain

Every module logs to `logging.getLogger(__name__)`, a child of the "pyupd"
logger; handlers are attached to "pyupd" only and per-module levels narrow
or widen what reaches them. Filter covariance dumps use the TRACE level.
"""

import logging
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Union

ROOT_LOGGER = "pyupd"

CONSOLE_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
FILE_FORMAT = '%(asctime)s %(levelname)-8s %(name)s: %(message)s'


class LogLevel(Enum):
    """Levels accepted by setup_logger and LoggerConfig"""
    TRACE = 5
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def parse(cls, level: Union[str, int]) -> int:
        """Numeric value of a level name (case-insensitive) or number"""
        if isinstance(level, int):
            return level
        try:
            return cls[level.upper()].value
        except KeyError:
            raise ValueError(f"Unknown log level: {level}") from None


TRACE = LogLevel.TRACE.value

logging.addLevelName(TRACE, "TRACE")


def _trace(self, message, *args, **kwargs):
    if self.isEnabledFor(TRACE):
        self._log(TRACE, message, args, **kwargs)


logging.Logger.trace = _trace


class ColoredFormatter(logging.Formatter):
    """Console formatter with the level name in color"""

    COLORS = {
        'TRACE': '\033[36m',
        'DEBUG': '\033[34m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        # Handlers share the record; file output must stay uncolored
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _handlers(level: int, log_file: Optional[str], console: bool):
    handlers = []
    if console:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
        handlers.append(handler)
    if log_file:
        handler = logging.FileHandler(log_file)
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        handlers.append(handler)
    for handler in handlers:
        handler.setLevel(level)
    return handlers


def setup_logger(name: str = ROOT_LOGGER,
                 level: Union[str, int] = "INFO",
                 log_file: Optional[str] = None,
                 console: bool = True) -> logging.Logger:
    """
    Attach fresh handlers to a logger

    Parameters:
    -----------
    name : str
        Logger name; pyupd module loggers propagate to "pyupd"
    level : str or int
        TRACE, DEBUG, INFO, WARNING, ERROR or CRITICAL
    log_file : Optional[str]
        Also write plain text to this file
    console : bool
        Write colored output to stdout

    Returns:
    --------
    logging.Logger
        The configured logger; earlier handlers are closed and removed
    """
    value = LogLevel.parse(level)
    logger = logging.getLogger(name)
    logger.setLevel(value)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in _handlers(value, log_file, console):
        logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Temporarily change the level of a logger

    Example:
        >>> with LogContext("pyupd.solver.kalman", "TRACE"):
        ...     solver.compute(time, group)
    """

    def __init__(self, logger: Union[str, logging.Logger], level: Union[str, int]):
        self.logger = logging.getLogger(logger) if isinstance(logger, str) else logger
        self.level = LogLevel.parse(level)
        self._saved = None

    def __enter__(self):
        self._saved = self.logger.level
        self.logger.setLevel(self.level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.setLevel(self._saved)


@dataclass
class LoggerConfig:
    """Logging settings of a processing run.

    Attributes
    ----------
    default_level : str
        Level of the "pyupd" logger and its handlers
    log_file : str, optional
        Plain-text log file
    console : bool
        Colored stdout output
    module_levels : dict of str to str
        Logger name -> level, e.g. {'pyupd.solver.kalman': 'TRACE'}
    """
    default_level: str = "INFO"
    log_file: Optional[str] = None
    console: bool = True
    module_levels: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        LogLevel.parse(self.default_level)
        for level in self.module_levels.values():
            LogLevel.parse(level)

    def set_module_level(self, module_name: str, level: str) -> 'LoggerConfig':
        LogLevel.parse(level)
        self.module_levels[module_name] = level
        return self

    def get_level_for_module(self, module_name: str) -> str:
        """Level set for the nearest configured ancestor, else default_level"""
        name = module_name
        while name:
            if name in self.module_levels:
                return self.module_levels[name]
            name = name.rpartition('.')[0]
        return self.default_level

    @classmethod
    def from_dict(cls, config: dict) -> 'LoggerConfig':
        """
        Build the settings from a plain dictionary

        Example:
            {
                'default_level': 'INFO',
                'log_file': 'upd.log',
                'module_levels': {
                    'pyupd.solver.ambiguity_solver': 'DEBUG',
                    'pyupd.solver.kalman': 'TRACE',
                },
            }
        """
        return cls(default_level=config.get('default_level', "INFO"),
                   log_file=config.get('log_file'),
                   console=config.get('console', True),
                   module_levels=dict(config.get('module_levels', {})))

    def apply(self) -> logging.Logger:
        """Configure the "pyupd" logger and the per-module levels"""
        root = setup_logger(ROOT_LOGGER, self.default_level, self.log_file, self.console)
        for module, level in self.module_levels.items():
            logging.getLogger(module).setLevel(LogLevel.parse(level))
        if self.module_levels:
            # Handlers must pass records of modules set below the default
            lowest = min(LogLevel.parse(level) for level in self.module_levels.values())
            for handler in root.handlers:
                handler.setLevel(min(handler.level, lowest))
        return root


def setup_logger_from_config(config: dict) -> logging.Logger:
    """Shortcut for LoggerConfig.from_dict(config).apply()"""
    return LoggerConfig.from_dict(config).apply()
