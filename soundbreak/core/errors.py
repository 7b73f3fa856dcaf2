from __future__ import annotations


class SoundBreakError(Exception):
    """Base class for errors raised by SoundBreak."""


class CoordinatorError(SoundBreakError):
    """Monitoring state could not be accessed. Treat as fatal, do not retry."""


class PlaybackCommandError(SoundBreakError):
    """Every stage of the play/pause fallback chain failed."""

    def __init__(self, command: str, failures: list[tuple[str, str]]) -> None:
        self.command = command
        self.failures = list(failures)
        if self.failures:
            detail = "; ".join(f"{stage}: {reason}" for stage, reason in self.failures)
        else:
            detail = "no playback control available on this platform"
        super().__init__(f"{command} failed ({detail})")


class AutostartError(SoundBreakError):
    """Start-on-login registration is unsupported or could not be written."""
