"""
Start-on-login registration.

  Linux:   XDG autostart entry   ~/.config/autostart/soundbreak.desktop
  macOS:   LaunchAgent           ~/Library/LaunchAgents/com.soundbreak.app.plist
  Windows: HKCU ...\\CurrentVersion\\Run value "SoundBreak"

The registered command always carries --minimized so login starts go straight
to the tray.
"""

from __future__ import annotations

import logging
import os
import plistlib
import subprocess
import sys
from pathlib import Path
from typing import Optional, Sequence

from soundbreak.core.errors import AutostartError
from soundbreak.shared.paths import APP_NAME

log = logging.getLogger(__name__)

LAUNCH_AGENT_LABEL = "com.soundbreak.app"
RUN_KEY = r"Software\Microsoft\Windows\CurrentVersion\Run"
MINIMIZED_FLAG = "--minimized"


def default_launch_argv() -> list[str]:
    return [sys.executable, "-m", "apps.desktop.main"]


def _desktop_exec(argv: Sequence[str]) -> str:
    # Desktop Entry spec: quote args containing reserved characters
    out = []
    for arg in argv:
        if any(c in arg for c in ' \t\n"\'\\><~|&;$*?#()`'):
            escaped = arg.replace("\\", "\\\\").replace('"', '\\"').replace("`", "\\`").replace("$", "\\$")
            out.append(f'"{escaped}"')
        else:
            out.append(arg)
    return " ".join(out)


class Autostart:
    def __init__(
        self,
        argv: Optional[Sequence[str]] = None,
        platform: Optional[str] = None,
        home: Optional[Path] = None,
    ) -> None:
        self._argv = list(argv) if argv is not None else default_launch_argv()
        self._platform = platform or sys.platform
        self._home = Path(home) if home is not None else Path.home()
        self._honour_xdg = home is None

    def launch_command(self) -> list[str]:
        argv = list(self._argv)
        if MINIMIZED_FLAG not in argv:
            argv.append(MINIMIZED_FLAG)
        return argv

    def entry_path(self) -> Path:
        if self._platform.startswith("linux"):
            base = os.environ.get("XDG_CONFIG_HOME") if self._honour_xdg else None
            return Path(base or self._home / ".config") / "autostart" / f"{APP_NAME.lower()}.desktop"
        if self._platform == "darwin":
            return self._home / "Library" / "LaunchAgents" / f"{LAUNCH_AGENT_LABEL}.plist"
        raise AutostartError(f"No autostart file on {self._platform}")

    def is_enabled(self) -> bool:
        if self._platform == "win32":
            return self._read_run_value() is not None
        try:
            return self.entry_path().exists()
        except AutostartError:
            return False

    def enable(self) -> None:
        if self._platform == "win32":
            self._write_run_value(subprocess.list2cmdline(self.launch_command()))
            log.info("Autostart enabled (registry Run key)")
            return

        path = self.entry_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        if self._platform == "darwin":
            payload = {
                "Label": LAUNCH_AGENT_LABEL,
                "ProgramArguments": self.launch_command(),
                "RunAtLoad": True,
                "ProcessType": "Interactive",
            }
            with path.open("wb") as f:
                plistlib.dump(payload, f)
        else:
            path.write_text(
                "\n".join([
                    "[Desktop Entry]",
                    "Type=Application",
                    f"Name={APP_NAME}",
                    "Comment=Pause music during meetings",
                    f"Exec={_desktop_exec(self.launch_command())}",
                    "Terminal=false",
                    "X-GNOME-Autostart-enabled=true",
                    "",
                ]),
                encoding="utf-8",
            )
        log.info(f"Autostart enabled ({path})")

    def disable(self) -> None:
        if self._platform == "win32":
            self._delete_run_value()
            log.info("Autostart disabled (registry Run key)")
            return
        path = self.entry_path()
        if path.exists():
            path.unlink()
        log.info(f"Autostart disabled ({path})")

    def set_enabled(self, enabled: bool) -> bool:
        if enabled:
            self.enable()
        else:
            self.disable()
        return self.is_enabled()

    # -- Windows registry ---------------------------------------------------

    def _read_run_value(self) -> Optional[str]:
        try:
            import winreg
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, RUN_KEY) as key:
                value, _ = winreg.QueryValueEx(key, APP_NAME)
                return str(value)
        except (ImportError, OSError):
            return None

    def _write_run_value(self, command: str) -> None:
        try:
            import winreg
            with winreg.CreateKey(winreg.HKEY_CURRENT_USER, RUN_KEY) as key:
                winreg.SetValueEx(key, APP_NAME, 0, winreg.REG_SZ, command)
        except (ImportError, OSError) as e:
            raise AutostartError(f"Could not write Run key: {e}") from e

    def _delete_run_value(self) -> None:
        try:
            import winreg
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, RUN_KEY, 0, winreg.KEY_SET_VALUE) as key:
                winreg.DeleteValue(key, APP_NAME)
        except FileNotFoundError:
            return
        except (ImportError, OSError) as e:
            raise AutostartError(f"Could not remove Run key: {e}") from e
