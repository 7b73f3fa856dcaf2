"""Tray / window wording for a MonitoringStatus. Pure functions, no Qt."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from soundbreak.core.monitor.types import (
    MeetingSnapshot,
    MonitoringStatus,
    PlaybackCommand,
    PlaybackSnapshot,
    now_ms,
)


@dataclass(frozen=True)
class StatusText:
    monitoring: str
    music: str
    meeting: str
    toggle: str
    tooltip: str


def describe_status(status: Optional[MonitoringStatus]) -> StatusText:
    status = status or MonitoringStatus()

    monitoring = "✅ Monitoring Active" if status.is_active else "⏸️ Monitoring Stopped"
    toggle = "⏸️ Stop Monitoring" if status.is_active else "▶️ Start Monitoring"

    if status.playback is None:
        music = "❓ Music Status Unknown"
    elif status.playback.is_playing:
        music = "🎵 Music Playing"
    else:
        music = "⏸️ Music Paused"

    if status.meeting is None:
        meeting = "❓ Meeting Status Unknown"
    elif status.meeting.in_meeting:
        meeting = f"🎤 In Meeting ({', '.join(status.meeting.present_apps())})"
    else:
        meeting = "📵 Not in Meeting"

    tooltip = "SoundBreak - Meeting Music Controller"
    if status.last_action:
        tooltip += f"\n{status.last_action}"

    return StatusText(monitoring=monitoring, music=music, meeting=meeting, toggle=toggle, tooltip=tooltip)


def autostart_text(enabled: bool) -> str:
    return "✅ Start on Login" if enabled else "🚀 Start on Login"


def format_activity(status: MonitoringStatus) -> Optional[str]:
    """Activity log line for a status, or None if there is no action to show."""
    if not status.last_action:
        return None
    return f"{_stamp(status.last_check_at_ms)}  {status.last_action}"


def _stamp(at_ms: Optional[int]) -> str:
    return time.strftime("%H:%M:%S", time.localtime(at_ms / 1000)) if at_ms else "--:--:--"


def describe_check(meeting: MeetingSnapshot, playback: PlaybackSnapshot) -> str:
    """Activity line for a manual "Check now"."""
    present = meeting.present_apps()
    if not meeting.apps:
        found = "no meeting apps configured"
    elif present:
        found = f"running: {', '.join(present)}"
    else:
        found = f"none of {len(meeting.apps)} meeting app(s) running"
    music = "music playing" if playback.is_playing else "music not playing"
    return f"{_stamp(playback.captured_at_ms)}  Check: {found}; {music}"


def describe_manual(command: PlaybackCommand, outcome: str, at_ms: Optional[int] = None) -> str:
    action = "pause" if command is PlaybackCommand.PAUSE else "resume"
    return f"{_stamp(at_ms or now_ms())}  Manual {action}: {outcome}"
