from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from .coordinator import MonitoringCoordinator
from .types import MonitoringStatus

log = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 2.0


def has_status_changed(old: Optional[MonitoringStatus], new: MonitoringStatus) -> bool:
    """Only changes worth redrawing a tray menu for."""
    if old is None:
        return True
    return (
        old.is_active != new.is_active
        or old.in_meeting != new.in_meeting
        or old.is_playing != new.is_playing
        or old.last_action != new.last_action
    )


class StatusTicker:
    """
    Background thread that keeps the coordinator's status fresh.

    Calls get_status() every ``interval_s`` (which also drives pause/resume)
    and reports changed statuses to ``on_status``.
    """

    def __init__(
        self,
        coordinator: MonitoringCoordinator,
        interval_s: float = DEFAULT_INTERVAL_S,
        on_status: Optional[Callable[[MonitoringStatus], None]] = None,
    ) -> None:
        self._coordinator = coordinator
        self._interval_s = interval_s
        self._on_status = on_status
        self._last: Optional[MonitoringStatus] = None

        self._thread: Optional[threading.Thread] = None
        self._stop_evt = threading.Event()

    @property
    def last_status(self) -> Optional[MonitoringStatus]:
        return self._last

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running():
            return
        self._stop_evt.clear()
        self._thread = threading.Thread(target=self._run, name="StatusTicker", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_evt.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None

    def tick(self) -> MonitoringStatus:
        """One poll: refresh status and notify on change."""
        status = self._coordinator.get_status()
        if has_status_changed(self._last, status):
            self._last = status
            if self._on_status:
                self._on_status(status)
        return status

    def _run(self) -> None:
        while not self._stop_evt.is_set():
            try:
                self.tick()
            except Exception:
                log.exception("Status ticker error")
            self._stop_evt.wait(self._interval_s)
