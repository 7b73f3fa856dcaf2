"""
Windows media session (Global System Media Transport Controls) through winsdk.

The current session is the one Windows shows in its media flyout, i.e. the
player the hardware media keys would drive. Every call is a fresh
``request_async`` so a player that started or quit since the last cycle is
picked up.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from soundbreak.core.commands import DEFAULT_TIMEOUT_S
from soundbreak.core.monitor.types import PlaybackCommand, PlaybackState

log = logging.getLogger(__name__)

# GlobalSystemMediaTransportControlsSessionPlaybackStatus
STATUS_CLOSED = 0
STATUS_OPENED = 1
STATUS_CHANGING = 2
STATUS_STOPPED = 3
STATUS_PLAYING = 4
STATUS_PAUSED = 5


def load_session_manager():
    from winsdk.windows.media.control import (  # type: ignore
        GlobalSystemMediaTransportControlsSessionManager,
    )
    return GlobalSystemMediaTransportControlsSessionManager


def playback_state_for(status: Optional[int]) -> PlaybackState:
    if status is None:
        return PlaybackState.UNKNOWN
    status = int(status)
    if status == STATUS_PLAYING:
        return PlaybackState.PLAYING
    if status in (STATUS_PAUSED, STATUS_STOPPED):
        return PlaybackState.NOT_PLAYING
    # Opened / changing / closed
    return PlaybackState.UNKNOWN


class MediaSessionClient:
    """
    Blocking wrapper around the async GSMTC API.

    Raises ImportError when winsdk is missing and asyncio.TimeoutError when
    Windows does not answer within ``timeout`` seconds.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_S,
        manager_factory: Callable[[], Any] = load_session_manager,
    ) -> None:
        self._timeout = timeout
        self._manager_factory = manager_factory

    def _with_session(self, action):
        manager_cls = self._manager_factory()

        async def _call():
            manager = await manager_cls.request_async()
            session = manager.get_current_session()
            if session is None:
                return None
            return await action(session)

        return asyncio.run(asyncio.wait_for(_call(), self._timeout))

    def playback_status(self) -> Optional[int]:
        """Status of the current session, or None if there is none."""

        async def _status(session):
            info = session.get_playback_info()
            return None if info is None else int(info.playback_status)

        return self._with_session(_status)

    def send(self, command: PlaybackCommand) -> Optional[bool]:
        """
        Returns None without a current session, otherwise whether the session
        accepted the command. A session already in the target state counts as
        accepted.
        """
        target = STATUS_PAUSED if command is PlaybackCommand.PAUSE else STATUS_PLAYING

        async def _send(session):
            info = session.get_playback_info()
            if info is not None and int(info.playback_status) == target:
                return True
            if command is PlaybackCommand.PAUSE:
                return bool(await session.try_pause_async())
            return bool(await session.try_play_async())

        return self._with_session(_send)
