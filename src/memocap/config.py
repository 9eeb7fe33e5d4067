"""Configuration management for memocap."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from .paths import AppDataPaths

logger = logging.getLogger(__name__)

LogLevel = Literal["debug", "info", "warning", "error"]


class MemocapConfig(BaseModel):
    """User settings persisted as <data dir>/config.json."""

    shortcut: str = Field(default="CommandOrControl+Shift+X")
    custom_save_path: str = Field(default="", description="Empty means the default root")
    log_level: LogLevel = Field(default="info")

    model_config = {"frozen": False}

    @classmethod
    def from_env(cls, base: Optional["MemocapConfig"] = None) -> "MemocapConfig":
        """Apply MEMOCAP_SAVE_PATH and MEMOCAP_LOG_LEVEL over a base config."""
        config = base.model_copy() if base is not None else cls()
        save_path_env = os.environ.get("MEMOCAP_SAVE_PATH")
        log_level_env = os.environ.get("MEMOCAP_LOG_LEVEL")

        updates: dict[str, Any] = {}
        if save_path_env:
            updates["custom_save_path"] = save_path_env
        if log_level_env:
            updates["log_level"] = log_level_env.strip().lower()

        if not updates:
            return config
        return cls.model_validate({**config.model_dump(), **updates})


class ConfigManager:
    """Loads, saves and edits the JSON config file.

    A missing file is created with defaults; a malformed file is ignored in
    favour of defaults. Unknown keys in the file are dropped.
    """

    def __init__(self, config_path: Path):
        """Initialize manager.

        Args:
            config_path: Path to config.json
        """
        self.config_path = Path(config_path)
        self.config = MemocapConfig()

    @classmethod
    def from_env(cls) -> "ConfigManager":
        return cls(AppDataPaths.from_env().config_file)

    def init(self) -> MemocapConfig:
        """Load the existing config or write a default one."""
        if self.config_path.exists():
            self.load()
            logger.info(f"Configuration loaded from: {self.config_path}")
        else:
            self.config = MemocapConfig()
            self.save()
            logger.info(f"Created default configuration: {self.config_path}")
        return self.config

    def load(self) -> MemocapConfig:
        """Read the file and merge it over the defaults."""
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("config root must be a JSON object")
            known = {k: v for k, v in data.items() if k in MemocapConfig.model_fields}
            self.config = MemocapConfig.model_validate(known)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load config: {e}")
            self.config = MemocapConfig()
        return self.config

    def save(self) -> bool:
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(self.config.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save config: {e}")
            return False
        logger.info("Configuration saved")
        return True

    def get(self, key: str) -> Any:
        return getattr(self.config, key)

    def set(self, key: str, value: Any) -> bool:
        """Set one key and persist.

        Raises:
            KeyError: If key is not a config field
            pydantic.ValidationError: If value is invalid for the key
        """
        return self.update({key: value})

    def update(self, updates: dict[str, Any]) -> bool:
        unknown = [k for k in updates if k not in MemocapConfig.model_fields]
        if unknown:
            raise KeyError(f"Unknown config key(s): {', '.join(unknown)}")
        self.config = MemocapConfig.model_validate({**self.config.model_dump(), **updates})
        return self.save()

    def reset(self) -> bool:
        self.config = MemocapConfig()
        return self.save()

    def get_all(self) -> dict[str, Any]:
        return self.config.model_dump()
