from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Literal, Optional

MonitorStatus = Literal["STOPPED", "RUNNING"]


def now_ms() -> int:
    return int(time.time() * 1000)


class PlaybackState(str, Enum):
    """Answer of a single playback probe strategy."""
    PLAYING = "playing"
    NOT_PLAYING = "not_playing"
    UNKNOWN = "unknown"  # Strategy could not tell (tool missing, error, timeout)


class PlaybackCommand(str, Enum):
    PLAY = "play"
    PAUSE = "pause"


@dataclass(frozen=True)
class MonitorConfig:
    process_names: tuple[str, ...] = ()

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "MonitorConfig":
        return cls(process_names=tuple(names))


@dataclass(frozen=True)
class MonitoredApp:
    label: str
    match_pattern: str  # Exact, case-sensitive process name
    is_present: bool


@dataclass(frozen=True)
class MeetingSnapshot:
    in_meeting: bool
    apps: tuple[MonitoredApp, ...]
    captured_at_ms: int

    @classmethod
    def from_apps(cls, apps: Iterable[MonitoredApp], captured_at_ms: Optional[int] = None) -> "MeetingSnapshot":
        apps = tuple(apps)
        return cls(
            in_meeting=any(a.is_present for a in apps),
            apps=apps,
            captured_at_ms=now_ms() if captured_at_ms is None else captured_at_ms,
        )

    def present_apps(self) -> list[str]:
        return [a.label for a in self.apps if a.is_present]


@dataclass(frozen=True)
class PlaybackSnapshot:
    is_playing: bool
    captured_at_ms: int


@dataclass(frozen=True)
class MonitoringStatus:
    """Status snapshot handed to callers. Replaced wholesale, never mutated."""
    is_active: bool = False
    meeting: Optional[MeetingSnapshot] = None
    playback: Optional[PlaybackSnapshot] = None
    last_action: Optional[str] = None
    last_check_at_ms: Optional[int] = None
    music_was_playing_before_meeting: bool = False

    @property
    def status(self) -> MonitorStatus:
        return "RUNNING" if self.is_active else "STOPPED"

    @property
    def in_meeting(self) -> Optional[bool]:
        return None if self.meeting is None else self.meeting.in_meeting

    @property
    def is_playing(self) -> Optional[bool]:
        return None if self.playback is None else self.playback.is_playing


@dataclass
class CoordinatorState:
    """Mutable monitoring state. Only touched while holding the coordinator lock."""
    is_active: bool = False
    was_in_meeting: bool = False
    music_was_playing_before_meeting: bool = False
    last_status: MonitoringStatus = field(default_factory=MonitoringStatus)
    last_check_at: Optional[float] = None  # Coordinator clock, seconds
