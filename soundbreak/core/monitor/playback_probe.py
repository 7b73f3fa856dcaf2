"""
Best-effort "is audio playing" probe.

No single OS signal is reliable across versions, so the probe asks a ranked
chain of strategies. Each answers PLAYING / NOT_PLAYING / UNKNOWN; the first
definitive answer wins and UNKNOWN falls through to the next strategy.

  Linux:  MPRIS now-playing state (playerctl)  ->  sink-input heuristic (pactl)
  macOS:  Spotify / Music player state (osascript)  ->  coreaudiod power assertion (pmset)
  Windows: current media session (GSMTC, winsdk)

If nothing gives an answer the probe reports "not playing". That only costs a
missed pause; a resume is never sent without a recorded "was playing".
"""

from __future__ import annotations

import asyncio
import logging
import sys
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from soundbreak.core.commands import DEFAULT_TIMEOUT_S, run_command
from soundbreak.core.media_session import MediaSessionClient, playback_state_for
from .types import PlaybackSnapshot, PlaybackState, now_ms

log = logging.getLogger(__name__)

# Parse English tool output regardless of the user's locale
_C_LOCALE = {"LC_ALL": "C"}


class PlaybackStrategy(ABC):
    """One way of telling whether audio is playing."""

    name: str = "strategy"

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_S) -> None:
        self._timeout = timeout

    @abstractmethod
    def probe(self) -> PlaybackState:
        """Return UNKNOWN rather than raising when the signal is unavailable."""
        ...


class PlayerctlStatusStrategy(PlaybackStrategy):
    """MPRIS media sessions, via ``playerctl --all-players status``."""

    name = "playerctl"

    def probe(self) -> PlaybackState:
        result = run_command(["playerctl", "--all-players", "status"], timeout=self._timeout)
        # Non-zero exit: "No players found" or no session bus
        if result is None or result.returncode != 0:
            return PlaybackState.UNKNOWN
        return parse_playerctl_status(result.stdout)


def parse_playerctl_status(output: str) -> PlaybackState:
    states = [line.strip() for line in output.splitlines() if line.strip()]
    if "Playing" in states:
        return PlaybackState.PLAYING
    if any(s in ("Paused", "Stopped") for s in states):
        return PlaybackState.NOT_PLAYING
    return PlaybackState.UNKNOWN


class PactlSinkInputStrategy(PlaybackStrategy):
    """
    Open audio streams on PulseAudio / PipeWire, via ``pactl list sink-inputs``.
    An uncorked sink input is a client actively feeding the output device.
    """

    name = "pactl"

    def probe(self) -> PlaybackState:
        result = run_command(["pactl", "list", "sink-inputs"], timeout=self._timeout, env=_C_LOCALE)
        if result is None or result.returncode != 0:
            return PlaybackState.UNKNOWN
        return parse_pactl_sink_inputs(result.stdout)


def parse_pactl_sink_inputs(output: str) -> PlaybackState:
    for line in output.splitlines():
        key, _, value = line.strip().partition(":")
        if key == "Corked" and value.strip() == "no":
            return PlaybackState.PLAYING
    return PlaybackState.NOT_PLAYING


_NOW_PLAYING_SCRIPT = """
set answer to "none"
tell application "System Events"
    set spotifyRunning to (exists process "Spotify")
    set musicRunning to (exists process "Music")
end tell
if spotifyRunning then
    tell application "Spotify"
        if player state is playing then return "playing"
    end tell
    set answer to "paused"
end if
if musicRunning then
    tell application "Music"
        if player state is playing then return "playing"
    end tell
    set answer to "paused"
end if
return answer
"""


class AppleScriptNowPlayingStrategy(PlaybackStrategy):
    """Player state of Spotify / Music. Never launches an app that is not running."""

    name = "osascript"

    def probe(self) -> PlaybackState:
        result = run_command(["osascript", "-e", _NOW_PLAYING_SCRIPT], timeout=self._timeout)
        if result is None or result.returncode != 0:
            return PlaybackState.UNKNOWN
        answer = result.stdout.strip()
        if answer == "playing":
            return PlaybackState.PLAYING
        if answer == "paused":
            return PlaybackState.NOT_PLAYING
        # "none": no known player running, audio may come from elsewhere
        return PlaybackState.UNKNOWN


class PmsetAudioAssertionStrategy(PlaybackStrategy):
    """coreaudiod holds an idle-sleep assertion while an output device is running."""

    name = "pmset"

    def probe(self) -> PlaybackState:
        result = run_command(["pmset", "-g", "assertions"], timeout=self._timeout, env=_C_LOCALE)
        if result is None or result.returncode != 0:
            return PlaybackState.UNKNOWN
        return parse_pmset_assertions(result.stdout)


def parse_pmset_assertions(output: str) -> PlaybackState:
    for line in output.splitlines():
        if "coreaudiod" in line and "PreventUserIdle" in line:
            return PlaybackState.PLAYING
    return PlaybackState.NOT_PLAYING


class MediaSessionStrategy(PlaybackStrategy):
    """Windows: playback status of the current media flyout session."""

    name = "media-session"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_S,
        client: Optional[MediaSessionClient] = None,
    ) -> None:
        super().__init__(timeout)
        self._client = client or MediaSessionClient(timeout)

    def probe(self) -> PlaybackState:
        try:
            status = self._client.playback_status()
        except ImportError:
            log.debug("winsdk is not installed, no media session signal")
            return PlaybackState.UNKNOWN
        except asyncio.TimeoutError:
            log.debug(f"Media session did not answer within {self._timeout:.1f}s")
            return PlaybackState.UNKNOWN
        return playback_state_for(status)


def default_strategies(
    platform: Optional[str] = None,
    timeout: float = DEFAULT_TIMEOUT_S,
) -> list[PlaybackStrategy]:
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return [PlayerctlStatusStrategy(timeout), PactlSinkInputStrategy(timeout)]
    if platform == "darwin":
        return [AppleScriptNowPlayingStrategy(timeout), PmsetAudioAssertionStrategy(timeout)]
    if platform == "win32":
        return [MediaSessionStrategy(timeout)]
    return []


class AudioPlaybackProbe:
    """Runs the strategy chain and collapses UNKNOWN to "not playing"."""

    def __init__(
        self,
        strategies: Optional[Sequence[PlaybackStrategy]] = None,
        command_timeout: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        if strategies is None:
            strategies = default_strategies(timeout=command_timeout)
        self._strategies = list(strategies)
        if not self._strategies:
            log.info("No playback probe available on this platform, music is assumed paused")

    def probe_state(self) -> PlaybackState:
        for strategy in self._strategies:
            try:
                state = strategy.probe()
            except Exception as e:
                log.debug(f"Playback strategy {strategy.name} failed: {e}")
                continue
            if state is not PlaybackState.UNKNOWN:
                log.debug(f"Playback strategy {strategy.name}: {state.value}")
                return state
        return PlaybackState.UNKNOWN

    def probe_playback(self) -> bool:
        return self.probe_state() is PlaybackState.PLAYING

    def snapshot(self) -> PlaybackSnapshot:
        return PlaybackSnapshot(is_playing=self.probe_playback(), captured_at_ms=now_ms())
