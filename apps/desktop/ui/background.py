"""Runs coordinator calls off the GUI thread. Results come back through a Qt signal's emit."""

from __future__ import annotations

import logging
import threading
from typing import Callable, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_background(name: str, work: Callable[[], T], deliver: Callable[[T], None]) -> threading.Thread:
    def _target() -> None:
        try:
            result = work()
        except Exception:
            log.exception(f"{name} failed")
            return
        deliver(result)

    thread = threading.Thread(target=_target, name=name, daemon=True)
    thread.start()
    return thread
