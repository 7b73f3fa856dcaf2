import unittest

from apps.desktop.ui.status_text import (
    autostart_text,
    describe_check,
    describe_manual,
    describe_status,
    format_activity,
)
from soundbreak.core.monitor.types import (
    MeetingSnapshot,
    MonitoredApp,
    MonitoringStatus,
    PlaybackCommand,
    PlaybackSnapshot,
)


class TestDescribeStatus(unittest.TestCase):
    def test_unknown_before_first_check(self) -> None:
        text = describe_status(None)
        self.assertEqual(text.monitoring, "⏸️ Monitoring Stopped")
        self.assertEqual(text.music, "❓ Music Status Unknown")
        self.assertEqual(text.meeting, "❓ Meeting Status Unknown")
        self.assertEqual(text.toggle, "▶️ Start Monitoring")

    def test_active_meeting_with_paused_music(self) -> None:
        status = MonitoringStatus(
            is_active=True,
            meeting=MeetingSnapshot.from_apps(
                [MonitoredApp("zoom.us", "zoom.us", True), MonitoredApp("Teams", "Teams", False)], 1
            ),
            playback=PlaybackSnapshot(is_playing=False, captured_at_ms=1),
            last_action="Meeting started: Paused: Spotify",
            last_check_at_ms=1,
        )
        text = describe_status(status)
        self.assertEqual(text.monitoring, "✅ Monitoring Active")
        self.assertEqual(text.meeting, "🎤 In Meeting (zoom.us)")
        self.assertEqual(text.music, "⏸️ Music Paused")
        self.assertEqual(text.toggle, "⏸️ Stop Monitoring")
        self.assertTrue(text.tooltip.endswith("Meeting started: Paused: Spotify"))

    def test_activity_line(self) -> None:
        self.assertIsNone(format_activity(MonitoringStatus()))
        line = format_activity(MonitoringStatus(last_action="Monitoring started"))
        self.assertEqual(line, "--:--:--  Monitoring started")

    def test_check_line(self) -> None:
        playing = PlaybackSnapshot(is_playing=True, captured_at_ms=1)
        meeting = MeetingSnapshot.from_apps(
            [MonitoredApp("zoom.us", "zoom.us", True), MonitoredApp("Teams", "Teams", False)], 1
        )
        line = describe_check(meeting, playing)
        self.assertEqual(line.split("  ", 1)[1], "Check: running: zoom.us; music playing")

        idle = MeetingSnapshot.from_apps([MonitoredApp("Teams", "Teams", False)], 1)
        line = describe_check(idle, PlaybackSnapshot(is_playing=False, captured_at_ms=1))
        self.assertEqual(line.split("  ", 1)[1], "Check: none of 1 meeting app(s) running; music not playing")

        line = describe_check(MeetingSnapshot.from_apps([], 1), playing)
        self.assertEqual(line.split("  ", 1)[1], "Check: no meeting apps configured; music playing")

    def test_manual_line(self) -> None:
        line = describe_manual(PlaybackCommand.PAUSE, "Paused: Spotify", at_ms=1)
        self.assertEqual(line.split("  ", 1)[1], "Manual pause: Paused: Spotify")
        line = describe_manual(PlaybackCommand.PLAY, "play failed (playerctl: No players found)")
        self.assertTrue(line.endswith("Manual resume: play failed (playerctl: No players found)"))

    def test_autostart_text(self) -> None:
        self.assertEqual(autostart_text(True), "✅ Start on Login")
        self.assertEqual(autostart_text(False), "🚀 Start on Login")


if __name__ == "__main__":
    unittest.main()
