"""
Meeting application presence detection.

Names are matched EXACTLY and case-sensitively against the live process list:
"zoom.us" does not match "zoom.us Helper", and "Teams" does not match
"teams". Use the name exactly as the OS lists it (``pgrep -l <part>`` or the
Activity Monitor / Task Manager "process name" column).

The process table is read once per cycle through psutil. If psutil cannot
enumerate processes, each name is looked up with an anchored ``pgrep`` query
instead, with regex metacharacters escaped so the name is matched literally.
Any failure counts as "not present".
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional, Sequence

import psutil

from soundbreak.core.commands import DEFAULT_TIMEOUT_S, run_command
from .types import MeetingSnapshot, MonitoredApp

log = logging.getLogger(__name__)

# POSIX extended regex metacharacters (pgrep patterns are EREs)
_ERE_SPECIAL = re.compile(r"([.^$*+?()\[\]{}|\\])")


def ere_escape(name: str) -> str:
    return _ERE_SPECIAL.sub(r"\\\1", name)


def exact_name_pattern(name: str) -> str:
    return f"^{ere_escape(name)}$"


def running_process_names() -> set[str]:
    names: set[str] = set()
    for p in psutil.process_iter(attrs=["name"]):
        try:
            n = p.info.get("name")
            if n:
                names.add(str(n))
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return names


class ProcessPresenceDetector:
    """Builds a MeetingSnapshot from a list of exact process names."""

    def __init__(
        self,
        command_timeout: float = DEFAULT_TIMEOUT_S,
        list_processes: Callable[[], set[str]] = running_process_names,
    ) -> None:
        self._timeout = command_timeout
        self._list_processes = list_processes

    def detect(self, names: Sequence[str]) -> MeetingSnapshot:
        running = self._process_table() if names else set()
        apps = []
        for name in names:
            if running is not None:
                present = name in running
            else:
                present = self._pgrep(name)
            apps.append(MonitoredApp(label=name, match_pattern=name, is_present=present))
        snapshot = MeetingSnapshot.from_apps(apps)
        if snapshot.in_meeting:
            log.debug(f"Meeting apps present: {', '.join(snapshot.present_apps())}")
        return snapshot

    def _process_table(self) -> Optional[set[str]]:
        try:
            return self._list_processes()
        except Exception as e:
            log.debug(f"Process table unavailable ({e}), falling back to pgrep")
            return None

    def _pgrep(self, name: str) -> bool:
        result = run_command(["pgrep", "--", exact_name_pattern(name)], timeout=self._timeout)
        if result is None:
            return False
        # Exit 1 means no match, >1 means pgrep itself failed; both are "absent"
        return result.returncode == 0 and bool(result.stdout.strip())
