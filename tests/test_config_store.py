import json
import tempfile
import unittest
from pathlib import Path

from pydantic import ValidationError

from soundbreak.shared.config import DEFAULT_MEETING_PROCESS_NAMES, AppConfig
from soundbreak.shared.store import ConfigStore


class TestAppConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = AppConfig()
        self.assertEqual(cfg.meeting_process_names, DEFAULT_MEETING_PROCESS_NAMES)
        self.assertTrue(cfg.monitor_on_launch)
        self.assertEqual(cfg.status_refresh_s, 2.0)
        self.assertEqual(cfg.command_timeout_s, 2.0)

    def test_blank_and_duplicate_names_are_dropped_in_order(self) -> None:
        cfg = AppConfig(meeting_process_names=["zoom.us", "  ", "Teams", "zoom.us", "", "teams"])
        self.assertEqual(cfg.meeting_process_names, ["zoom.us", "Teams", "teams"])

    def test_names_are_not_trimmed_or_lowercased(self) -> None:
        cfg = AppConfig(meeting_process_names=["Lark Helper (Iron)"])
        self.assertEqual(cfg.to_monitor_config().process_names, ("Lark Helper (Iron)",))

    def test_refresh_interval_has_a_floor(self) -> None:
        with self.assertRaises(ValidationError):
            AppConfig(status_refresh_ms=10)


class TestConfigStore(unittest.TestCase):
    def test_missing_file_writes_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "config.json"
            cfg = ConfigStore(path).load()
            self.assertEqual(cfg, AppConfig())
            self.assertTrue(path.exists())
            self.assertEqual(json.loads(path.read_text(encoding="utf-8"))["meeting_process_names"],
                             DEFAULT_MEETING_PROCESS_NAMES)

    def test_saved_config_is_loaded_back(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = ConfigStore(Path(tmp) / "config.json")
            store.save(AppConfig(meeting_process_names=["zoom.us"], monitor_on_launch=False))
            cfg = store.load()
        self.assertEqual(cfg.meeting_process_names, ["zoom.us"])
        self.assertFalse(cfg.monitor_on_launch)

    def test_invalid_file_is_kept_aside_and_replaced(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertLogs("soundbreak.shared.store", level="WARNING"):
                cfg = ConfigStore(path).load()
            self.assertEqual(cfg, AppConfig())
            self.assertEqual((Path(tmp) / "config.json.bak").read_text(encoding="utf-8"), "{not json")
            self.assertEqual(AppConfig.model_validate_json(path.read_text(encoding="utf-8")), AppConfig())

    def test_wrong_types_are_invalid(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"meeting_process_names": "zoom.us"}), encoding="utf-8")
            cfg = ConfigStore(path).load()
            self.assertEqual(cfg.meeting_process_names, DEFAULT_MEETING_PROCESS_NAMES)
            self.assertTrue((Path(tmp) / "config.json.bak").exists())


if __name__ == "__main__":
    unittest.main()
