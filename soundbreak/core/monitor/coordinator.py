"""
Meeting-aware music coordinator.

State machine (is_active x was_in_meeting):

    STOPPED  --start-->  ACTIVE_IDLE  --meeting starts-->  ACTIVE_IN_MEETING
       ^                     |  ^                               |
       +-------stop----------+  +--------meeting ends-----------+

On the meeting-start edge the current playback state is recorded and music is
paused only if it was playing. On the meeting-end edge music is resumed only
if that record says it was playing, so music the user had paused before the
meeting stays paused.

There is no loop in here. Detection runs when someone calls get_status() or
check(), at most once per MIN_INTERVAL_S; a StatusTicker (or the UI) provides
the periodic calls.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable, Iterator, Literal, Optional, Protocol, Sequence

from soundbreak.core.errors import CoordinatorError, PlaybackCommandError
from .types import (
    CoordinatorState,
    MeetingSnapshot,
    MonitorConfig,
    MonitoredApp,
    MonitoringStatus,
    PlaybackCommand,
    PlaybackSnapshot,
    now_ms,
)

log = logging.getLogger(__name__)

MIN_INTERVAL_S = 1.0
LOCK_TIMEOUT_S = 30.0

CoordinatorPhase = Literal["STOPPED", "ACTIVE_IDLE", "ACTIVE_IN_MEETING"]


class MeetingDetector(Protocol):
    def detect(self, names: Sequence[str]) -> MeetingSnapshot:
        ...


class PlaybackProbe(Protocol):
    def probe_playback(self) -> bool:
        ...


class PlaybackSender(Protocol):
    def send(self, command: PlaybackCommand) -> str:
        ...


class MonitoringCoordinator:
    """Owns the monitoring state. Every read-modify-write happens under one lock."""

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        detector: Optional[MeetingDetector] = None,
        probe: Optional[PlaybackProbe] = None,
        controller: Optional[PlaybackSender] = None,
        clock: Callable[[], float] = time.monotonic,
        min_interval_s: float = MIN_INTERVAL_S,
        lock_timeout_s: float = LOCK_TIMEOUT_S,
    ) -> None:
        if detector is None:
            from .process_detector import ProcessPresenceDetector
            detector = ProcessPresenceDetector()
        if probe is None:
            from .playback_probe import AudioPlaybackProbe
            probe = AudioPlaybackProbe()
        if controller is None:
            from soundbreak.core.playback.controller import PlaybackController
            controller = PlaybackController()

        self._detector = detector
        self._probe = probe
        self._controller = controller
        self._clock = clock
        self._min_interval_s = min_interval_s
        self._lock_timeout_s = lock_timeout_s

        self._state = CoordinatorState()
        self._lock = threading.Lock()

        # Swapped atomically; a running cycle keeps the copy it started with
        self._config = config or MonitorConfig()

    @contextmanager
    def _locked(self) -> Iterator[CoordinatorState]:
        if not self._lock.acquire(timeout=self._lock_timeout_s):
            raise CoordinatorError(f"monitoring state still locked after {self._lock_timeout_s:.0f}s")
        try:
            yield self._state
        finally:
            self._lock.release()

    # -- commands -----------------------------------------------------------

    def start(self) -> str:
        with self._locked() as st:
            return self._start(st)

    def stop(self) -> str:
        with self._locked() as st:
            return self._stop(st)

    def toggle(self) -> str:
        with self._locked() as st:
            return self._stop(st) if st.is_active else self._start(st)

    def _start(self, st: CoordinatorState) -> str:
        if st.is_active:
            return "Monitoring is already running"
        st.is_active = True
        st.last_status = replace(
            st.last_status,
            is_active=True,
            last_action="Monitoring started",
            last_check_at_ms=now_ms(),
        )
        log.info("Monitoring started")
        return "Monitoring started successfully"

    def _stop(self, st: CoordinatorState) -> str:
        if not st.is_active:
            return "Monitoring is not running"
        # Meeting flags are kept as-is; nothing is resumed on stop
        st.is_active = False
        st.last_status = replace(
            st.last_status,
            is_active=False,
            last_action="Monitoring stopped",
            last_check_at_ms=now_ms(),
        )
        log.info("Monitoring stopped")
        return "Monitoring stopped successfully"

    # -- status -------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    @property
    def phase(self) -> CoordinatorPhase:
        st = self._state
        if not st.is_active:
            return "STOPPED"
        return "ACTIVE_IN_MEETING" if st.was_in_meeting else "ACTIVE_IDLE"

    def get_status(self) -> MonitoringStatus:
        """Run a detection cycle if one is due, then return the latest status."""
        try:
            with self._locked() as st:
                self._check(st)
                return st.last_status
        except CoordinatorError as e:
            log.warning(f"Returning stale status: {e}")
            return self._state.last_status

    def check(self) -> bool:
        """Run a detection cycle if one is due. Returns True if it ran."""
        try:
            with self._locked() as st:
                return self._check(st)
        except CoordinatorError as e:
            log.warning(f"Skipping monitoring check: {e}")
            return False

    def _check(self, st: CoordinatorState) -> bool:
        if not st.is_active:
            return False
        now = self._clock()
        if st.last_check_at is not None and now - st.last_check_at < self._min_interval_s:
            return False
        st.last_check_at = now

        names = self._config.process_names
        meeting = self._detect(names)
        playback = PlaybackSnapshot(is_playing=self._probe_playback(), captured_at_ms=now_ms())

        last_action = st.last_status.last_action
        now_in_meeting = meeting.in_meeting

        if now_in_meeting and not st.was_in_meeting:
            st.music_was_playing_before_meeting = playback.is_playing
            apps = ", ".join(meeting.present_apps())
            if playback.is_playing:
                log.info(f"Meeting started ({apps}), pausing music")
                last_action = f"Meeting started: {self._send(PlaybackCommand.PAUSE)}"
            else:
                log.info(f"Meeting started ({apps}), music not playing")
            st.was_in_meeting = True

        elif not now_in_meeting and st.was_in_meeting:
            if st.music_was_playing_before_meeting:
                log.info("Meeting ended, resuming music")
                last_action = f"Meeting ended: {self._send(PlaybackCommand.PLAY)}"
            else:
                log.info("Meeting ended, music was not playing before it")
            # Not retried if the resume failed
            st.music_was_playing_before_meeting = False
            st.was_in_meeting = False

        st.last_status = MonitoringStatus(
            is_active=True,
            meeting=meeting,
            playback=playback,
            last_action=last_action,
            last_check_at_ms=now_ms(),
            music_was_playing_before_meeting=st.music_was_playing_before_meeting,
        )
        return True

    # -- on-demand ----------------------------------------------------------

    # None of these touch the monitoring state or the rate limit.

    def detect_meetings(self) -> MeetingSnapshot:
        """One detection pass over the current process names."""
        return self._detect(self._config.process_names)

    def get_music_status(self) -> PlaybackSnapshot:
        return PlaybackSnapshot(is_playing=self._probe_playback(), captured_at_ms=now_ms())

    def control_music(self, command: PlaybackCommand) -> str:
        """Manual play / pause. Failures come back as the returned text."""
        log.info(f"Manual {command.value} requested")
        return self._send(command)

    def _detect(self, names: Sequence[str]) -> MeetingSnapshot:
        try:
            return self._detector.detect(names)
        except Exception:
            log.exception("Meeting detection failed, treating all apps as absent")
            return MeetingSnapshot.from_apps(
                MonitoredApp(label=n, match_pattern=n, is_present=False) for n in names
            )

    def _probe_playback(self) -> bool:
        try:
            return bool(self._probe.probe_playback())
        except Exception:
            log.exception("Playback probe failed, treating music as not playing")
            return False

    def _send(self, command: PlaybackCommand) -> str:
        try:
            return self._controller.send(command)
        except PlaybackCommandError as e:
            log.warning(str(e))
            return str(e)
        except Exception as e:
            log.exception(f"{command.value} command crashed")
            return f"{command.value} failed ({e})"

    # -- config -------------------------------------------------------------

    def get_config(self) -> MonitorConfig:
        return self._config

    def update_config(self, config: MonitorConfig) -> None:
        """Used from the next detection cycle on; the current status is left alone."""
        self._config = MonitorConfig.from_names(config.process_names)
        log.info(f"Monitoring {len(self._config.process_names)} meeting process name(s)")
