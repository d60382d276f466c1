"""Tests for logger configuration."""

import io
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src"))

from FacetQuery.config import parse_config_dict
from FacetQuery.config.runtime import LOG_LEVEL_ENV
from FacetQuery.utils.log import configure_logging, log


class TestConfigureLogging(unittest.TestCase):
    def tearDown(self) -> None:
        for handler in log.handlers:
            handler.close()
        log.handlers.clear()
        log.propagate = True
        log.setLevel(0)

    def test_console_uses_abbreviated_levels(self) -> None:
        stream = io.StringIO()
        self.assertIsNone(configure_logging(level="WARNING", stream=stream))

        log.info("hidden")
        log.warning("Failed to save search history")
        output = stream.getvalue()

        self.assertNotIn("hidden", output)
        self.assertRegex(output, r"^\d\d-\d\d \d\d:\d\d:\d\d \[WARN\] Failed to save search history\n$")

    def test_file_mirror_keeps_debug_records(self) -> None:
        stream = io.StringIO()
        with tempfile.TemporaryDirectory() as tmp:
            path = configure_logging(level="ERROR", action="track", log_to_file=True, log_dir=tmp, stream=stream)
            self.assertEqual(path.parent, Path(tmp) / "track")
            self.assertTrue(path.name.startswith("track_"))

            log.debug("Dropped unrecognized query token: foo:bar")
            for handler in log.handlers:
                handler.flush()
            self.assertIn("[DEBG] Dropped unrecognized query token", path.read_text(encoding="utf-8"))
            self.assertEqual(stream.getvalue(), "")
            for handler in log.handlers:
                handler.close()
            log.handlers.clear()

    def test_file_requires_action(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            self.assertIsNone(configure_logging(log_to_file=True, log_dir=tmp, stream=io.StringIO()))
            self.assertEqual(list(Path(tmp).iterdir()), [])


class TestLogLevelOverride(unittest.TestCase):
    def _raw(self) -> dict:
        return {
            "log": {"level": "INFO", "to_file": False, "dir": "log"},
            "storage": {"backend": "memory", "path": ""},
            "catalog": {"fields": [{"id": "assignee", "value_kind": "text", "operators": ["equals"]}]},
        }

    def test_environment_wins_over_yaml(self) -> None:
        with patch.dict(os.environ, {LOG_LEVEL_ENV: "debug"}):
            cfg = parse_config_dict(self._raw())
        self.assertEqual(cfg.runtime.level, "DEBUG")

    def test_invalid_environment_level_is_rejected(self) -> None:
        with patch.dict(os.environ, {LOG_LEVEL_ENV: "loud"}):
            with self.assertRaisesRegex(ValueError, "log\\.level"):
                parse_config_dict(self._raw())


if __name__ == "__main__":
    unittest.main()
