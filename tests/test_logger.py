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

"""Test suite for logging setup"""

import logging
import os
import tempfile
import unittest

from pyupd.logger import (
    TRACE, ColoredFormatter, LogContext, LoggerConfig, get_logger, setup_logger,
    setup_logger_from_config,
)


class TestLogger(unittest.TestCase):

    def tearDown(self):
        for name in ("pyupd.test", "pyupd"):
            logger = logging.getLogger(name)
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
            logger.setLevel(logging.NOTSET)

    def test_setup_console(self):
        logger = setup_logger("pyupd.test", "DEBUG")
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertEqual(len(logger.handlers), 1)
        self.assertIsInstance(logger.handlers[0].formatter, ColoredFormatter)

        # Handlers are replaced, not stacked
        setup_logger("pyupd.test", "INFO")
        self.assertEqual(len(logger.handlers), 1)

    def test_file_output(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "upd.log")
            logger = setup_logger("pyupd.test", "INFO", log_file=path, console=False)
            logger.info("epoch processed")
            logger.debug("not written")
            for handler in logger.handlers:
                handler.flush()
            with open(path) as f:
                content = f.read()
            self.tearDown()
        self.assertIn("epoch processed", content)
        self.assertNotIn("not written", content)
        self.assertNotIn("\033[", content)

    def test_trace_level(self):
        logger = setup_logger("pyupd.test", "TRACE", console=False)
        self.assertEqual(logger.level, TRACE)
        self.assertEqual(logging.getLevelName(TRACE), "TRACE")
        with self.assertLogs("pyupd.test", level=TRACE) as captured:
            logger.trace("covariance dump")
        self.assertIn("covariance dump", captured.output[0])

    def test_unknown_level(self):
        with self.assertRaises(ValueError):
            setup_logger("pyupd.test", "VERBOSE")

    def test_colored_formatter(self):
        record = logging.LogRecord("pyupd", logging.WARNING, __file__, 1, "msg", None, None)
        text = ColoredFormatter("%(levelname)s %(message)s").format(record)
        self.assertIn("\033[33m", text)
        self.assertEqual(record.levelname, "WARNING")

    def test_log_context(self):
        logger = setup_logger("pyupd.test", "INFO", console=False)
        with LogContext(logger, "DEBUG"):
            self.assertEqual(logger.level, logging.DEBUG)
        self.assertEqual(logger.level, logging.INFO)
        with LogContext("pyupd.test", TRACE) as same:
            self.assertIs(same, logger)
            self.assertEqual(logger.level, TRACE)
        self.assertEqual(logger.level, logging.INFO)

    def test_get_logger(self):
        self.assertIs(get_logger("pyupd.solver"), logging.getLogger("pyupd.solver"))


class TestLoggerConfig(unittest.TestCase):

    def tearDown(self):
        for name in ("pyupd", "pyupd.solver", "pyupd.solver.kalman"):
            logger = logging.getLogger(name)
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
            logger.setLevel(logging.NOTSET)

    def test_module_levels(self):
        config = LoggerConfig().set_module_level("pyupd.solver", "DEBUG")
        config.set_module_level("pyupd.solver.kalman", "TRACE")
        self.assertEqual(config.get_level_for_module("pyupd.solver.kalman"), "TRACE")
        self.assertEqual(config.get_level_for_module("pyupd.solver.datum"), "DEBUG")
        self.assertEqual(config.get_level_for_module("pyupd.config"), "INFO")
        with self.assertRaises(ValueError):
            config.set_module_level("pyupd", "LOUD")
        with self.assertRaises(ValueError):
            LoggerConfig(default_level="LOUD")

    def test_no_shared_state(self):
        LoggerConfig().set_module_level("pyupd.solver", "DEBUG")
        self.assertEqual(LoggerConfig().module_levels, {})
        # Levels are applied only by apply()
        self.assertEqual(logging.getLogger("pyupd.solver").level, logging.NOTSET)

    def test_from_dict(self):
        config = LoggerConfig.from_dict({
            'default_level': 'WARNING',
            'console': False,
            'module_levels': {'pyupd.solver.kalman': 'DEBUG'},
        })
        self.assertEqual(config, LoggerConfig("WARNING", None, False,
                                              {'pyupd.solver.kalman': 'DEBUG'}))
        root = setup_logger_from_config({
            'default_level': 'WARNING',
            'console': False,
            'module_levels': {'pyupd.solver.kalman': 'DEBUG'},
        })
        self.assertEqual(root.name, "pyupd")
        self.assertEqual(root.level, logging.WARNING)
        self.assertEqual(root.handlers, [])
        self.assertEqual(logging.getLogger("pyupd.solver.kalman").level, logging.DEBUG)

    def test_module_below_default_reaches_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "upd.log")
            LoggerConfig(default_level="WARNING", log_file=path, console=False,
                         module_levels={'pyupd.solver.kalman': 'DEBUG'}).apply()
            logging.getLogger("pyupd.solver.kalman").debug("gain computed")
            logging.getLogger("pyupd.solver.datum").debug("datum selected")
            for handler in logging.getLogger("pyupd").handlers:
                handler.flush()
            with open(path) as f:
                content = f.read()
            self.tearDown()
        self.assertIn("gain computed", content)
        self.assertNotIn("datum selected", content)


if __name__ == '__main__':
    unittest.main()
