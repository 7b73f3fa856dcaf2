from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from typing import Optional, Sequence

from soundbreak.core.logging_ import setup_logging
from soundbreak.core.monitor.coordinator import MonitoringCoordinator
from soundbreak.core.monitor.playback_probe import AudioPlaybackProbe
from soundbreak.core.monitor.process_detector import ProcessPresenceDetector
from soundbreak.core.monitor.status_ticker import StatusTicker
from soundbreak.core.monitor.types import MonitoringStatus
from soundbreak.core.playback.controller import PlaybackController
from soundbreak.shared.config import AppConfig
from soundbreak.shared.paths import ensure_app_dirs
from soundbreak.shared.store import ConfigStore

log = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="soundbreak", description="Pause music during meetings.")
    parser.add_argument("--minimized", action="store_true", help="start hidden in the system tray")
    parser.add_argument("--headless", action="store_true", help="run without any UI (Ctrl+C to quit)")
    parser.add_argument("--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def build_coordinator(cfg: AppConfig) -> MonitoringCoordinator:
    timeout = cfg.command_timeout_s
    return MonitoringCoordinator(
        config=cfg.to_monitor_config(),
        detector=ProcessPresenceDetector(command_timeout=timeout),
        probe=AudioPlaybackProbe(command_timeout=timeout),
        controller=PlaybackController(command_timeout=timeout),
    )


def _log_status(status: MonitoringStatus) -> None:
    log.info(
        "status=%s in_meeting=%s playing=%s last_action=%s",
        status.status, status.in_meeting, status.is_playing, status.last_action,
    )


def run_headless(coordinator: MonitoringCoordinator, cfg: AppConfig) -> int:
    stop_evt = threading.Event()

    def signal_handler(sig, frame):
        print("\nReceived interrupt signal, shutting down...")
        stop_evt.set()

    signal.signal(signal.SIGINT, signal_handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, signal_handler)

    ticker = StatusTicker(coordinator, cfg.status_refresh_s, on_status=_log_status)
    ticker.start()
    # Short waits so signal handlers get a chance to run
    while not stop_evt.wait(0.5):
        pass
    ticker.stop()
    return 0


def run_gui(
    coordinator: MonitoringCoordinator,
    store: ConfigStore,
    cfg: AppConfig,
    minimized: bool,
) -> int:
    from PySide6.QtCore import QTimer
    from PySide6.QtWidgets import QApplication, QSystemTrayIcon

    from soundbreak.shared.autostart import Autostart
    from .ui.tray import TrayIcon
    from .ui.window import SettingsWindow, StatusBridge

    app = QApplication(sys.argv)
    app.setApplicationName("SoundBreak")
    app.setQuitOnLastWindowClosed(False)

    if minimized and not QSystemTrayIcon.isSystemTrayAvailable():
        log.warning("No system tray available, showing the settings window")
        minimized = False

    bridge = StatusBridge()
    win = SettingsWindow(coordinator=coordinator, store=store, cfg=cfg, bridge=bridge)
    tray = TrayIcon(coordinator, Autostart(), show_settings=win.show_and_raise, bridge=bridge)

    bridge.status_changed.connect(win.render)
    bridge.status_changed.connect(tray.render)

    ticker = StatusTicker(coordinator, cfg.status_refresh_s, on_status=bridge.status_changed.emit)
    app.aboutToQuit.connect(ticker.stop)

    tray.show()
    if not minimized:
        win.show()
    ticker.start()

    def signal_handler(sig, frame):
        print("\nReceived interrupt signal (Ctrl+C), shutting down...")
        app.quit()

    if hasattr(signal, "SIGINT"):
        signal.signal(signal.SIGINT, signal_handler)
    # Let the interpreter run Python signal handlers while Qt owns the loop
    wake = QTimer()
    wake.timeout.connect(lambda: None)
    wake.start(500)

    return app.exec()


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    ensure_app_dirs()
    setup_logging(verbose=args.verbose)

    store = ConfigStore()
    cfg = store.load()
    coordinator = build_coordinator(cfg)
    if cfg.monitor_on_launch:
        log.info(f"Auto-started monitoring - {coordinator.start()}")

    if args.headless:
        sys.exit(run_headless(coordinator, cfg))
    sys.exit(run_gui(coordinator, store, cfg, minimized=args.minimized))


if __name__ == "__main__":
    main()
