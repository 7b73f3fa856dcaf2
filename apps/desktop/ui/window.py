"""
Settings window: meeting process names, monitoring controls and an activity log.
Closing the window only hides it; the tray keeps running.
"""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from soundbreak.core.errors import CoordinatorError
from soundbreak.core.monitor.coordinator import MonitoringCoordinator
from soundbreak.core.monitor.types import MonitoringStatus, PlaybackCommand
from soundbreak.shared.config import AppConfig
from soundbreak.shared.store import ConfigStore

from .background import run_in_background
from .status_text import describe_check, describe_manual, describe_status, format_activity

log = logging.getLogger(__name__)

MAX_ACTIVITY_ROWS = 200


class StatusBridge(QObject):
    """Carries statuses and activity lines from worker threads into the GUI thread."""

    status_changed = Signal(object)
    activity = Signal(str)


class SettingsWindow(QMainWindow):
    def __init__(
        self,
        coordinator: MonitoringCoordinator,
        store: ConfigStore,
        cfg: AppConfig,
        bridge: StatusBridge,
    ) -> None:
        super().__init__()
        self.setWindowTitle("SoundBreak")
        self.resize(560, 620)
        self.setMinimumSize(420, 480)

        self.coordinator = coordinator
        self.store = store
        self.cfg = cfg
        self.bridge = bridge
        self._last_logged_action: Optional[str] = None

        self._build_ui()
        self._load_to_ui()
        bridge.activity.connect(self._append_event)

    def _build_ui(self) -> None:
        root = QWidget()
        self.setCentralWidget(root)
        layout = QVBoxLayout(root)
        layout.setContentsMargins(20, 20, 20, 20)
        layout.setSpacing(14)

        title = QLabel("SoundBreak")
        title.setObjectName("TitleLabel")
        layout.addWidget(title)
        subtitle = QLabel("Pauses your music while you are in a meeting and resumes it afterward.")
        subtitle.setWordWrap(True)
        layout.addWidget(subtitle)

        self._build_status_section(layout)
        self._build_process_section(layout)

        layout.addWidget(QLabel("Activity"))
        self.events = QListWidget()
        layout.addWidget(self.events, 1)

    def _build_status_section(self, parent_layout: QVBoxLayout) -> None:
        self.monitoring_label = QLabel()
        self.music_label = QLabel()
        self.meeting_label = QLabel()
        for label in (self.monitoring_label, self.music_label, self.meeting_label):
            parent_layout.addWidget(label)

        row = QHBoxLayout()
        row.addStretch()
        self.btn_start = QPushButton("Start Monitoring")
        self.btn_start.clicked.connect(self._start_monitoring)
        row.addWidget(self.btn_start)
        self.btn_stop = QPushButton("Stop")
        self.btn_stop.clicked.connect(self._stop_monitoring)
        row.addWidget(self.btn_stop)
        parent_layout.addLayout(row)

        manual_row = QHBoxLayout()
        manual_row.addStretch()
        btn_pause = QPushButton("Pause Music")
        btn_pause.clicked.connect(lambda: self._control_music(PlaybackCommand.PAUSE))
        manual_row.addWidget(btn_pause)
        btn_resume = QPushButton("Resume Music")
        btn_resume.clicked.connect(lambda: self._control_music(PlaybackCommand.PLAY))
        manual_row.addWidget(btn_resume)
        btn_check = QPushButton("Check Now")
        btn_check.clicked.connect(self._check_now)
        manual_row.addWidget(btn_check)
        parent_layout.addLayout(manual_row)

    def _build_process_section(self, parent_layout: QVBoxLayout) -> None:
        parent_layout.addWidget(QLabel("Meeting process names"))
        hint = QLabel(
            "Exact, case-sensitive names as the OS lists them "
            "(e.g. \"zoom.us\", \"Microsoft Teams\")."
        )
        hint.setWordWrap(True)
        parent_layout.addWidget(hint)

        self.proc_list = QListWidget()
        self.proc_list.itemDoubleClicked.connect(self._remove_proc_item)
        parent_layout.addWidget(self.proc_list, 1)

        add_row = QHBoxLayout()
        self.proc_input = QLineEdit()
        self.proc_input.setPlaceholderText("Process name")
        self.proc_input.returnPressed.connect(self._add_process)
        add_row.addWidget(self.proc_input, 1)
        btn_add = QPushButton("Add")
        btn_add.clicked.connect(self._add_process)
        add_row.addWidget(btn_add)
        btn_remove = QPushButton("Remove")
        btn_remove.clicked.connect(self._remove_selected)
        add_row.addWidget(btn_remove)
        btn_save = QPushButton("Save")
        btn_save.clicked.connect(self._save_config)
        add_row.addWidget(btn_save)
        parent_layout.addLayout(add_row)

    def _load_to_ui(self) -> None:
        self.proc_list.clear()
        for name in self.cfg.meeting_process_names:
            self.proc_list.addItem(QListWidgetItem(name))
        self.render(None)

    def render(self, status: Optional[MonitoringStatus]) -> None:
        text = describe_status(status)
        self.monitoring_label.setText(text.monitoring)
        self.music_label.setText(text.music)
        self.meeting_label.setText(text.meeting)
        active = bool(status and status.is_active)
        self.btn_start.setEnabled(not active)
        self.btn_stop.setEnabled(active)

        if status is not None and status.last_action != self._last_logged_action:
            self._last_logged_action = status.last_action
            line = format_activity(status)
            if line:
                self._append_event(line)

    def _append_event(self, line: str) -> None:
        self.events.insertItem(0, QListWidgetItem(line))
        while self.events.count() > MAX_ACTIVITY_ROWS:
            self.events.takeItem(self.events.count() - 1)

    def _start_monitoring(self) -> None:
        self._change_monitoring(self.coordinator.start)

    def _stop_monitoring(self) -> None:
        self._change_monitoring(self.coordinator.stop)

    def _change_monitoring(self, command) -> None:
        try:
            msg = command()
        except CoordinatorError as e:
            log.warning(f"Monitoring change failed: {e}")
            self._append_event(f"Could not change monitoring: {e}")
            return
        log.info(msg)
        self.refresh_status()

    def refresh_status(self) -> None:
        run_in_background("status-refresh", self.coordinator.get_status, self.bridge.status_changed.emit)

    def _control_music(self, command: PlaybackCommand) -> None:
        run_in_background(
            f"manual-{command.value}",
            lambda: describe_manual(command, self.coordinator.control_music(command)),
            self.bridge.activity.emit,
        )

    def _check_now(self) -> None:
        run_in_background(
            "check-now",
            lambda: describe_check(self.coordinator.detect_meetings(), self.coordinator.get_music_status()),
            self.bridge.activity.emit,
        )

    def _add_process(self) -> None:
        name = self.proc_input.text()
        if not name.strip():
            return
        existing = [self.proc_list.item(i).text() for i in range(self.proc_list.count())]
        if name not in existing:
            self.proc_list.addItem(QListWidgetItem(name))
        self.proc_input.setText("")

    def _remove_proc_item(self, item: QListWidgetItem) -> None:
        self.proc_list.takeItem(self.proc_list.row(item))

    def _remove_selected(self) -> None:
        for item in self.proc_list.selectedItems():
            self._remove_proc_item(item)

    def _save_config(self) -> None:
        names = [self.proc_list.item(i).text() for i in range(self.proc_list.count())]
        self.cfg = AppConfig.model_validate({**self.cfg.model_dump(), "meeting_process_names": names})
        self.store.save(self.cfg)
        self.coordinator.update_config(self.cfg.to_monitor_config())
        self._append_event(f"Config saved ({len(self.cfg.meeting_process_names)} process names).")

    def show_and_raise(self) -> None:
        self.show()
        self.raise_()
        self.activateWindow()

    def closeEvent(self, event: QCloseEvent) -> None:
        event.ignore()
        self.hide()
