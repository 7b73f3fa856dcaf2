"""
Play / pause through an ordered fallback chain.

The first stage talks to the OS notion of the active media session. On Linux
and Windows the last one simulates a hardware media key. macOS has no
command-aware media key, so its chain ends at the player script.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from soundbreak.core.commands import DEFAULT_TIMEOUT_S, run_command
from soundbreak.core.errors import PlaybackCommandError
from soundbreak.core.media_session import MediaSessionClient
from soundbreak.core.monitor.types import PlaybackCommand

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageResult:
    ok: bool
    message: str


def _tool_result(tool: str, result, success: str) -> StageResult:
    if result is None:
        return StageResult(False, f"{tool} not available")
    if result.returncode != 0:
        detail = (result.stderr or result.stdout or "").strip()[:200]
        return StageResult(False, detail or f"{tool} exited with {result.returncode}")
    return StageResult(True, success)


class PlaybackStage(ABC):
    name: str = "stage"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_S) -> None:
        self._timeout = timeout

    @abstractmethod
    def send(self, command: PlaybackCommand) -> StageResult:
        ...


class PlayerctlStage(PlaybackStage):
    """MPRIS: the most recently active media player."""

    name = "playerctl"

    def send(self, command: PlaybackCommand) -> StageResult:
        result = run_command(["playerctl", command.value], timeout=self._timeout)
        verb = "Paused" if command is PlaybackCommand.PAUSE else "Resumed"
        return _tool_result(self.name, result, f"{verb} active media player")


class XdotoolMediaKeyStage(PlaybackStage):
    name = "media-key"

    _KEYS = {
        PlaybackCommand.PLAY: "XF86AudioPlay",
        PlaybackCommand.PAUSE: "XF86AudioPause",
    }

    def send(self, command: PlaybackCommand) -> StageResult:
        key = self._KEYS[command]
        result = run_command(["xdotool", "key", key], timeout=self._timeout)
        return _tool_result("xdotool", result, f"Used media key fallback ({key})")


_PLAYER_SCRIPT = """
set handled to {{}}
set already to {{}}
tell application "System Events"
    set spotifyRunning to (exists process "Spotify")
    set musicRunning to (exists process "Music")
end tell
if spotifyRunning then
    tell application "Spotify"
        if player state is {from_state} then
            {verb}
            set end of handled to "Spotify"
        else if player state is {to_state} then
            set end of already to "Spotify"
        end if
    end tell
end if
if musicRunning then
    tell application "Music"
        if player state is {from_state} then
            {verb}
            set end of handled to "Music"
        else if player state is {to_state} then
            set end of already to "Music"
        end if
    end tell
end if
set AppleScript's text item delimiters to ", "
return (handled as text) & "|" & (already as text)
"""


class AppleScriptPlayerStage(PlaybackStage):
    """Spotify / Music, only if already running."""

    name = "osascript"

    def send(self, command: PlaybackCommand) -> StageResult:
        if command is PlaybackCommand.PAUSE:
            script = _PLAYER_SCRIPT.format(from_state="playing", to_state="paused", verb="pause")
        else:
            script = _PLAYER_SCRIPT.format(from_state="paused", to_state="playing", verb="play")
        result = run_command(["osascript", "-e", script], timeout=self._timeout)
        outcome = _tool_result(self.name, result, "")
        if not outcome.ok:
            return outcome
        handled, _, already = result.stdout.strip().partition("|")
        if handled:
            verb = "Paused" if command is PlaybackCommand.PAUSE else "Resumed"
            return StageResult(True, f"{verb}: {handled}")
        if already:
            state = "paused" if command is PlaybackCommand.PAUSE else "playing"
            return StageResult(True, f"Already {state}: {already}")
        return StageResult(False, "no running player to control")


class MediaSessionStage(PlaybackStage):
    """Windows: play / pause on the current media flyout session (GSMTC)."""

    name = "media-session"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_S,
        client: Optional[MediaSessionClient] = None,
    ) -> None:
        super().__init__(timeout)
        self._client = client or MediaSessionClient(timeout)

    def send(self, command: PlaybackCommand) -> StageResult:
        try:
            accepted = self._client.send(command)
        except ImportError:
            return StageResult(False, "winsdk not installed")
        except asyncio.TimeoutError:
            return StageResult(False, f"no answer within {self._timeout:.1f}s")
        if accepted is None:
            return StageResult(False, "no active media session")
        if not accepted:
            return StageResult(False, f"session rejected {command.value}")
        verb = "Paused" if command is PlaybackCommand.PAUSE else "Resumed"
        return StageResult(True, f"{verb} active media session")


class WindowsMediaKeyStage(PlaybackStage):
    """VK_MEDIA_PLAY_PAUSE via user32.keybd_event."""

    name = "media-key"

    VK_MEDIA_PLAY_PAUSE = 0xB3
    KEYEVENTF_EXTENDEDKEY = 0x0001
    KEYEVENTF_KEYUP = 0x0002

    def send(self, command: PlaybackCommand) -> StageResult:
        try:
            import ctypes
            user32 = ctypes.windll.user32
            user32.keybd_event(self.VK_MEDIA_PLAY_PAUSE, 0, self.KEYEVENTF_EXTENDEDKEY, 0)
            user32.keybd_event(self.VK_MEDIA_PLAY_PAUSE, 0, self.KEYEVENTF_EXTENDEDKEY | self.KEYEVENTF_KEYUP, 0)
        except (AttributeError, OSError) as e:
            return StageResult(False, f"keybd_event unavailable: {e}")
        return StageResult(True, "Used media key fallback")


def default_stages(
    platform: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT_S,
) -> list[PlaybackStage]:
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return [PlayerctlStage(timeout), XdotoolMediaKeyStage(timeout)]
    if platform == "darwin":
        return [AppleScriptPlayerStage(timeout)]
    if platform == "win32":
        return [MediaSessionStage(timeout), WindowsMediaKeyStage(timeout)]
    return []


class PlaybackController:
    def __init__(
        self,
        stages: Optional[Sequence[PlaybackStage]] = None,
        command_timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        if stages is None:
            stages = default_stages(timeout=command_timeout)
        self._stages = list(stages)

    def send(self, command: PlaybackCommand) -> str:
        """
        Try each stage in order and return the first success message.

        Raises:
            PlaybackCommandError: every stage failed (or there are none).
        """
        failures: list[tuple[str, str]] = []
        for stage in self._stages:
            try:
                result = stage.send(command)
            except Exception as e:
                result = StageResult(False, str(e))
            if result.ok:
                log.info(f"{command.value}: {result.message}")
                return result.message
            log.debug(f"{command.value} via {stage.name} failed: {result.message}")
            failures.append((stage.name, result.message))
        raise PlaybackCommandError(command.value, failures)
