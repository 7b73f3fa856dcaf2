"""
Bounded execution of external OS tools (pgrep, playerctl, pactl, osascript...).

Every call has a timeout. A missing executable, a timeout or an OS error is
reported as ``None`` instead of an exception, so callers can treat the tool
as "unavailable" without try/except at every call site.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Mapping, Optional, Sequence

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 2.0

_NO_WINDOW = subprocess.CREATE_NO_WINDOW if hasattr(subprocess, "CREATE_NO_WINDOW") else 0


def run_command(
    args: Sequence[str],
    timeout: float = DEFAULT_TIMEOUT_S,
    env: Optional[Mapping[str, str]] = None,
) -> Optional[subprocess.CompletedProcess]:
    """
    Run ``args`` and capture text output.

    Returns the completed process (any exit code), or None when the command
    could not be run or did not finish within ``timeout`` seconds. ``env``
    entries are added on top of the current environment.
    """
    full_env = {**os.environ, **env} if env else None
    try:
        return subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            timeout=timeout,
            env=full_env,
            creationflags=_NO_WINDOW,
        )
    except subprocess.TimeoutExpired:
        log.debug(f"{args[0]} timed out (>{timeout:.1f}s)")
        return None
    except FileNotFoundError:
        log.debug(f"{args[0]} executable not found")
        return None
    except OSError as e:
        log.debug(f"{args[0]} OS error: {e}")
        return None
