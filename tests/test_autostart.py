import plistlib
import tempfile
import unittest
from pathlib import Path

from soundbreak.core.errors import AutostartError
from soundbreak.shared.autostart import LAUNCH_AGENT_LABEL, Autostart


class TestLinuxAutostart(unittest.TestCase):
    def test_enable_writes_desktop_entry_with_minimized_flag(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            autostart = Autostart(argv=["/opt/sound break/python", "-m", "apps.desktop.main"],
                                  platform="linux", home=Path(tmp))
            self.assertFalse(autostart.is_enabled())

            self.assertTrue(autostart.set_enabled(True))
            entry = Path(tmp) / ".config" / "autostart" / "soundbreak.desktop"
            text = entry.read_text(encoding="utf-8")
            self.assertIn("[Desktop Entry]", text)
            self.assertIn('Exec="/opt/sound break/python" -m apps.desktop.main --minimized', text)

            self.assertFalse(autostart.set_enabled(False))
            self.assertFalse(entry.exists())

    def test_disable_when_not_enabled_is_harmless(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            Autostart(argv=["soundbreak"], platform="linux", home=Path(tmp)).disable()


class TestMacAutostart(unittest.TestCase):
    def test_enable_writes_launch_agent(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            autostart = Autostart(argv=["soundbreak", "--minimized"], platform="darwin", home=Path(tmp))
            autostart.enable()
            path = Path(tmp) / "Library" / "LaunchAgents" / f"{LAUNCH_AGENT_LABEL}.plist"
            with path.open("rb") as f:
                payload = plistlib.load(f)
            self.assertEqual(payload["Label"], LAUNCH_AGENT_LABEL)
            self.assertEqual(payload["ProgramArguments"], ["soundbreak", "--minimized"])
            self.assertTrue(payload["RunAtLoad"])
            self.assertTrue(autostart.is_enabled())


class TestUnsupportedPlatform(unittest.TestCase):
    def test_enable_raises_and_reports_disabled(self) -> None:
        autostart = Autostart(argv=["soundbreak"], platform="sunos5", home=Path("/nonexistent"))
        self.assertFalse(autostart.is_enabled())
        with self.assertRaises(AutostartError):
            autostart.enable()


if __name__ == "__main__":
    unittest.main()
