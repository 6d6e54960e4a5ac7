"""
Tests for config loading and validation.

Settings come from ~/.config/shellsuggest/config.cfg (or a .env fallback),
with SHELLSUGGEST_* environment variables taking precedence.
"""

import configparser
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from shellsuggest.core.configs import (
    ENV_OVERRIDES,
    default_socket_path,
    get_daemon_settings,
    load_raw_config,
)


class TestConfig(unittest.TestCase):
    """Test cases for configuration helpers."""

    def setUp(self):
        """Set up test environment with temporary directories."""
        self.temp_dir = tempfile.mkdtemp()
        self.config_file = Path(self.temp_dir) / "config.cfg"
        self.env_file = Path(self.temp_dir) / ".env"

        env_patch = patch.dict(os.environ)
        env_patch.start()
        self.addCleanup(env_patch.stop)
        for key in ENV_OVERRIDES:
            os.environ.pop(f"SHELLSUGGEST_{key.upper()}", None)

    def tearDown(self):
        """Clean up temporary files."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, *, defaults: dict, daemon: dict) -> None:
        cfg = configparser.ConfigParser()
        cfg["DEFAULT"] = defaults
        cfg["DAEMON"] = daemon
        with open(self.config_file, "w") as handle:
            cfg.write(handle)

    def _load(self) -> dict:
        return load_raw_config(self.config_file, self.env_file)

    def test_load_raw_config_lowercases_keys(self):
        self._write_config(
            defaults={"LOG_LEVEL": "debug"},
            daemon={"SOCKET": "/tmp/x.sock", "MAX_SESSIONS": "8"},
        )

        raw = self._load()
        self.assertEqual(raw["log_level"], "debug")
        self.assertEqual(raw["socket"], "/tmp/x.sock")
        self.assertEqual(raw["max_sessions"], "8")

    def test_missing_files_give_empty_config(self):
        self.assertEqual(self._load(), {})

    def test_env_file_fallback_when_no_config_file(self):
        self.env_file.write_text("SHELLSUGGEST_SOCKET=/tmp/from-env-file.sock\nSESSION_TIMEOUT=9\n")

        raw = self._load()
        self.assertEqual(raw["socket"], "/tmp/from-env-file.sock")
        self.assertEqual(raw["session_timeout"], "9")

    def test_config_file_wins_over_env_file(self):
        self._write_config(defaults={}, daemon={"socket": "/tmp/from-cfg.sock"})
        self.env_file.write_text("SHELLSUGGEST_SOCKET=/tmp/from-env-file.sock\n")

        self.assertEqual(self._load()["socket"], "/tmp/from-cfg.sock")

    def test_environment_overrides_file(self):
        self._write_config(defaults={}, daemon={"socket": "/tmp/from-cfg.sock"})
        os.environ["SHELLSUGGEST_SOCKET"] = "/tmp/from-environ.sock"
        os.environ["SHELLSUGGEST_PROVIDER"] = "pkg.mod:Provider"

        raw = self._load()
        self.assertEqual(raw["socket"], "/tmp/from-environ.sock")
        self.assertEqual(raw["provider"], "pkg.mod:Provider")

    def test_get_daemon_settings_defaults(self):
        settings = get_daemon_settings({})

        self.assertEqual(settings.socket_path, default_socket_path())
        self.assertEqual(settings.session_timeout, 5.0)
        self.assertEqual(settings.max_sessions, 64)
        self.assertEqual(settings.drain_timeout, 2.0)
        self.assertEqual(settings.idle_timeout, 0.0)
        self.assertIsNone(settings.client_timeout)
        self.assertEqual(settings.log_level, "INFO")
        self.assertEqual(settings.provider, "")

    def test_get_daemon_settings_parses_values(self):
        settings = get_daemon_settings(
            {
                "socket": "/tmp/custom.sock",
                "session_timeout": "1.5",
                "max_sessions": "4",
                "client_timeout": "3",
                "log_level": "debug",
            }
        )

        self.assertEqual(settings.socket_path, Path("/tmp/custom.sock"))
        self.assertEqual(settings.session_timeout, 1.5)
        self.assertEqual(settings.max_sessions, 4)
        self.assertEqual(settings.client_timeout, 3.0)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_explicit_socket_path_wins(self):
        settings = get_daemon_settings(
            {"socket": "/tmp/from-config.sock"}, socket_path=Path("/tmp/cli.sock")
        )
        self.assertEqual(settings.socket_path, Path("/tmp/cli.sock"))

    def test_invalid_numbers_raise(self):
        with self.assertRaises(ValueError) as context:
            get_daemon_settings({"session_timeout": "soon"})
        self.assertIn("session_timeout", str(context.exception))

        with self.assertRaises(ValueError):
            get_daemon_settings({"max_sessions": "0"})

        with self.assertRaises(ValueError):
            get_daemon_settings({"drain_timeout": "-1"})

    def test_default_socket_path_prefers_runtime_dir(self):
        os.environ["XDG_RUNTIME_DIR"] = self.temp_dir
        self.assertEqual(default_socket_path(), Path(self.temp_dir) / "shellsuggest.sock")

        os.environ.pop("XDG_RUNTIME_DIR")
        self.assertIn(str(os.getuid()), default_socket_path().name)


if __name__ == "__main__":
    unittest.main()
