from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtGui import QAction, QIcon
from PySide6.QtWidgets import QApplication, QMenu, QStyle, QSystemTrayIcon

from soundbreak.core.errors import AutostartError, CoordinatorError
from soundbreak.core.monitor.coordinator import MonitoringCoordinator
from soundbreak.core.monitor.types import MonitoringStatus, PlaybackCommand
from soundbreak.shared.autostart import Autostart

from .background import run_in_background
from .status_text import autostart_text, describe_manual, describe_status
from .window import StatusBridge

log = logging.getLogger(__name__)


class TrayIcon(QSystemTrayIcon):
    """Tray menu: three read-only status rows, then the commands."""

    def __init__(
        self,
        coordinator: MonitoringCoordinator,
        autostart: Autostart,
        show_settings: Callable[[], None],
        bridge: StatusBridge,
        parent=None,
    ) -> None:
        icon = QIcon.fromTheme("audio-volume-high")
        if icon.isNull():
            icon = QApplication.style().standardIcon(QStyle.SP_MediaVolume)
        super().__init__(icon, parent)

        self.coordinator = coordinator
        self.autostart = autostart
        self._show_settings = show_settings
        self.bridge = bridge

        menu = QMenu()
        self.monitoring_item = self._status_row(menu)
        self.music_item = self._status_row(menu)
        self.meeting_item = self._status_row(menu)
        menu.addSeparator()

        self.toggle_item = menu.addAction("▶️ Start Monitoring")
        self.toggle_item.triggered.connect(self._toggle_monitoring)

        pause_item = menu.addAction("⏸️ Pause Music")
        pause_item.triggered.connect(lambda: self._control_music(PlaybackCommand.PAUSE))
        resume_item = menu.addAction("▶️ Resume Music")
        resume_item.triggered.connect(lambda: self._control_music(PlaybackCommand.PLAY))
        menu.addSeparator()

        self.autostart_item = menu.addAction(autostart_text(self.autostart.is_enabled()))
        self.autostart_item.triggered.connect(self._toggle_autostart)

        settings_item = menu.addAction("Show Settings")
        settings_item.triggered.connect(self._show_settings)
        menu.addSeparator()

        quit_item = menu.addAction("Quit SoundBreak")
        quit_item.triggered.connect(QApplication.quit)

        self._menu = menu
        self.setContextMenu(menu)
        self.activated.connect(self._on_activated)
        self.render(None)

    @staticmethod
    def _status_row(menu: QMenu) -> QAction:
        action = menu.addAction("")
        action.setEnabled(False)
        return action

    def render(self, status: Optional[MonitoringStatus]) -> None:
        text = describe_status(status)
        self.monitoring_item.setText(text.monitoring)
        self.music_item.setText(text.music)
        self.meeting_item.setText(text.meeting)
        self.toggle_item.setText(text.toggle)
        self.setToolTip(text.tooltip)

    def _toggle_monitoring(self) -> None:
        try:
            msg = self.coordinator.toggle()
        except CoordinatorError as e:
            log.warning(f"Monitoring toggle failed: {e}")
            self.showMessage("SoundBreak", str(e), QSystemTrayIcon.Warning)
            return
        log.info(msg)
        run_in_background("status-refresh", self.coordinator.get_status, self.bridge.status_changed.emit)

    def _control_music(self, command: PlaybackCommand) -> None:
        run_in_background(
            f"manual-{command.value}",
            lambda: describe_manual(command, self.coordinator.control_music(command)),
            self.bridge.activity.emit,
        )

    def _toggle_autostart(self) -> None:
        try:
            enabled = self.autostart.set_enabled(not self.autostart.is_enabled())
        except AutostartError as e:
            log.warning(f"Autostart change failed: {e}")
            self.showMessage("SoundBreak", str(e), QSystemTrayIcon.Warning)
            enabled = self.autostart.is_enabled()
        self.autostart_item.setText(autostart_text(enabled))

    def _on_activated(self, reason: QSystemTrayIcon.ActivationReason) -> None:
        if reason == QSystemTrayIcon.Trigger:
            self._show_settings()
