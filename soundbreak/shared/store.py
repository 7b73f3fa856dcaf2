from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from soundbreak.shared.config import AppConfig
from soundbreak.shared.paths import config_path, ensure_app_dirs

log = logging.getLogger(__name__)


class ConfigStore:
    def __init__(self, path: Optional[Path] = None) -> None:
        if path is None:
            ensure_app_dirs()
            path = config_path()
        self._path = Path(path)

    def load(self) -> AppConfig:
        if not self._path.exists():
            cfg = AppConfig()
            self.save(cfg)
            return cfg

        try:
            raw = self._path.read_text(encoding="utf-8")
            data: Any = json.loads(raw)
            cfg = AppConfig.model_validate(data)
            log.info(f"Loaded configuration from {self._path}")
            return cfg
        except (OSError, ValueError, ValidationError) as e:
            backup = self._path.with_name(self._path.name + ".bak")
            log.warning(f"Invalid config file {self._path} ({e}), using defaults")
            try:
                self._path.replace(backup)
                log.warning(f"Previous config kept as {backup}")
            except OSError as move_err:
                log.warning(f"Could not keep previous config: {move_err}")
            cfg = AppConfig()
            self.save(cfg)
            return cfg

    def save(self, cfg: AppConfig) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(cfg.model_dump_json(indent=2), encoding="utf-8")
        log.info(f"Saved configuration to {self._path}")

    def path(self) -> str:
        return str(self._path)
