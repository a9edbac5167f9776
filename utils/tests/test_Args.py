"""
Unit tests for Args module.
"""

import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from utils.Args import Args


class TestArgs(unittest.TestCase):
    """Test cases for Args class."""

    def setUp(self) -> None:
        """Reset Args state before each test."""
        import sys
        self._original_argv = sys.argv.copy()
        Args.reset()

    def tearDown(self) -> None:
        """Restore original argv after each test."""
        import sys
        sys.argv = self._original_argv
        Args.reset()

    def test_initialize_default(self) -> None:
        """Test Args initialization with default values."""
        import sys
        sys.argv = ["test", "noop"]
        Args.initialize()
        self.assertTrue(Args._initialized)
        self.assertEqual(Args.log_level, "INFO")
        self.assertEqual(Args.module, "noop")

    def test_run_defaults(self) -> None:
        """Run-related defaults leave preference overrides unset."""
        import sys
        sys.argv = ["test", "noop"]
        Args.initialize()
        self.assertIsNone(Args.start)
        self.assertIsNone(Args.end)
        self.assertIsNone(Args.filename_template)
        self.assertTrue(Args.slow_mode)
        self.assertTrue(Args.auto_load_more)
        self.assertEqual(Args.capture_timeout_s, 10.0)

    def test_initialize_with_config_file(self) -> None:
        """Test Args initialization with config file."""
        import sys
        sys.argv = ["test", "noop"]

        config_data = {"log_level": "DEBUG", "download_dir": "/tmp/broker"}

        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump(config_data, f)
            config_path = Path(f.name)

        try:
            Args.initialize(config_file=config_path)
            self.assertEqual(Args.log_level, "DEBUG")
            self.assertEqual(Args.download_dir, "/tmp/broker")
        finally:
            config_path.unlink()

    def test_command_line_override(self) -> None:
        """Test that command line args override config file values."""
        import sys

        config_data = {"log_level": "DEBUG", "slow_mode": True}
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json.dump(config_data, f)
            config_path = Path(f.name)

        try:
            sys.argv = ["test", "timeline", "--config", str(config_path), "--log-level", "error", "--fast"]
            Args.initialize()
            self.assertEqual(Args.log_level, "ERROR")
            self.assertFalse(Args.slow_mode)
            self.assertEqual(Args.module, "timeline")
            self.assertEqual(Args.config_file, str(config_path))
        finally:
            config_path.unlink()

    def test_range_and_naming_options(self) -> None:
        """Range bounds and naming overrides land under their config keys."""
        import sys
        sys.argv = [
            "test", "timeline",
            "--start", "01.01.2024", "--end", "heute",
            "--template", "{date}_{doc}", "--original-names", "--lang", "DE",
        ]
        Args.initialize()
        self.assertEqual(Args.start, "01.01.2024")
        self.assertEqual(Args.end, "heute")
        self.assertEqual(Args.filename_template, "{date}_{doc}")
        self.assertFalse(Args.use_custom_names)
        self.assertEqual(Args.lang, "de")

    def test_invalid_json_config_raises(self) -> None:
        """A malformed config file raises ValueError."""
        import sys
        sys.argv = ["test", "noop"]
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            f.write("{not json")
            config_path = Path(f.name)
        try:
            with self.assertRaises(ValueError):
                Args.initialize(config_file=config_path)
        finally:
            config_path.unlink()

    def test_stop_and_status_file_from_environment(self) -> None:
        """TBD_STOP_FILE and TBD_STATUS_FILE override the config."""
        import sys
        sys.argv = ["test", "noop"]
        env = {"TBD_STOP_FILE": "/tmp/stop", "TBD_STATUS_FILE": "/tmp/status.json"}
        with patch.dict(os.environ, env):
            Args.initialize()
        self.assertEqual(Args.stop_file, "/tmp/stop")
        self.assertEqual(Args.status_file, "/tmp/status.json")

    def test_access_before_initialize_raises(self) -> None:
        """Attribute access before initialize raises RuntimeError."""
        with self.assertRaises(RuntimeError):
            _ = Args.log_level

    def test_unknown_key_raises_attribute_error(self) -> None:
        """Unknown config keys raise AttributeError so getattr defaults work."""
        import sys
        sys.argv = ["test", "noop"]
        Args.initialize()
        with self.assertRaises(AttributeError):
            _ = Args.no_such_key
        self.assertIsNone(getattr(Args, "no_such_key", None))


if __name__ == "__main__":
    unittest.main()
