"""
Logging and Configuration Test Suite
"""

import io
import json
import logging
import os
import unittest
from unittest import mock

from secureboot_sim import config
from secureboot_sim.logging_config import (
    SimulationEventLogger,
    StructuredFormatter,
    configure_logging,
    get_session_id,
    set_session_id,
)


class TestStructuredLogging(unittest.TestCase):

    def setUp(self):
        self.stream = io.StringIO()
        self.handler = logging.StreamHandler(self.stream)
        self.handler.setFormatter(StructuredFormatter())
        self.logger = logging.getLogger("secureboot_sim.test_events")
        self.logger.addHandler(self.handler)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

    def tearDown(self):
        self.logger.removeHandler(self.handler)
        set_session_id("")

    def test_event_fields_in_json(self):
        set_session_id("session-42")
        SimulationEventLogger("secureboot_sim.test_events").stage_changed(2, 3, "normal")

        data = json.loads(self.stream.getvalue().strip())
        self.assertEqual(data["event_type"], "STAGE_CHANGED")
        self.assertEqual(data["current_stage"], 3)
        self.assertEqual(data["session_id"], "session-42")
        self.assertEqual(data["level"], "INFO")

    def test_attestation_events(self):
        events = SimulationEventLogger("secureboot_sim.test_events")
        events.attestation_complete("ab" * 32, False)
        events.attestation_setup_failed("signing", "boom")

        lines = [json.loads(line) for line in self.stream.getvalue().splitlines()]
        self.assertEqual(lines[0]["level"], "WARNING")
        self.assertFalse(lines[0]["verified"])
        self.assertEqual(lines[1]["level"], "ERROR")
        self.assertEqual(lines[1]["step"], "signing")

    def test_session_id_generated(self):
        session_id = set_session_id()
        self.assertEqual(get_session_id(), session_id)
        self.assertEqual(len(session_id), 36)


class TestConfigureLogging(unittest.TestCase):
    """configure_logging() without arguments follows the environment settings."""

    def setUp(self):
        self.root = logging.getLogger()
        self.saved_level = self.root.level
        self.saved_handlers = self.root.handlers[:]

    def tearDown(self):
        for handler in self.root.handlers[:]:
            self.root.removeHandler(handler)
        for handler in self.saved_handlers:
            self.root.addHandler(handler)
        self.root.setLevel(self.saved_level)

    def test_level_and_format_from_config(self):
        with mock.patch.dict(os.environ, {"SECUREBOOT_DEBUG": ""}), \
                mock.patch.object(config, "LOG_LEVEL", "WARNING"), \
                mock.patch.object(config, "LOG_JSON", False):
            configure_logging()

        self.assertEqual(self.root.level, logging.WARNING)
        self.assertEqual(len(self.root.handlers), 1)
        self.assertNotIsInstance(self.root.handlers[0].formatter, StructuredFormatter)

    def test_debug_flag_forces_debug_level(self):
        with mock.patch.dict(os.environ, {"SECUREBOOT_DEBUG": "true"}), \
                mock.patch.object(config, "LOG_LEVEL", "ERROR"):
            configure_logging()

        self.assertEqual(self.root.level, logging.DEBUG)

    def test_explicit_arguments_win(self):
        with mock.patch.dict(os.environ, {"SECUREBOOT_DEBUG": "1"}):
            configure_logging(level="ERROR", json_format=True)

        self.assertEqual(self.root.level, logging.ERROR)
        self.assertIsInstance(self.root.handlers[0].formatter, StructuredFormatter)


class TestConfig(unittest.TestCase):

    def test_defaults_valid(self):
        self.assertTrue(all(config.validate_config().values()))

    def test_default_values(self):
        self.assertEqual(config.ATTESTATION_CHUNKS, 8)
        self.assertEqual(config.DIGEST_ALGORITHM, "sha256")
        self.assertEqual(config.DEFAULT_FIRMWARE_ID, "DemoFirmwareImage-v1.0-ThisIsSampleData")

    def test_debug_flag(self):
        with mock.patch.dict(os.environ, {"SECUREBOOT_DEBUG": "yes"}):
            self.assertTrue(config.is_debug())
        with mock.patch.dict(os.environ, {"SECUREBOOT_DEBUG": "0"}):
            self.assertFalse(config.is_debug())


if __name__ == "__main__":
    unittest.main(verbosity=2)
