from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, field_validator

from soundbreak.core.monitor.types import MonitorConfig

DEFAULT_MEETING_PROCESS_NAMES = ["Lark Helper (Iron)", "TencentMeeting"]


class AppConfig(BaseModel):
    # Exact, case-sensitive process names, as listed by the OS
    meeting_process_names: List[str] = Field(default_factory=lambda: list(DEFAULT_MEETING_PROCESS_NAMES))
    monitor_on_launch: bool = True
    status_refresh_ms: int = Field(default=2000, ge=250)
    command_timeout_ms: int = Field(default=2000, ge=100)

    @field_validator("meeting_process_names")
    @classmethod
    def _drop_blank_and_duplicate_names(cls, names: List[str]) -> List[str]:
        seen: list[str] = []
        for name in names:
            if name.strip() and name not in seen:
                seen.append(name)
        return seen

    def to_monitor_config(self) -> MonitorConfig:
        return MonitorConfig.from_names(self.meeting_process_names)

    @property
    def command_timeout_s(self) -> float:
        return self.command_timeout_ms / 1000.0

    @property
    def status_refresh_s(self) -> float:
        return self.status_refresh_ms / 1000.0
