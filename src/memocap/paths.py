"""Path management for the memocap storage root and application data."""

import logging
import os
from pathlib import Path
from typing import Optional

from .timeutil import iso_from_millis, now_millis

logger = logging.getLogger(__name__)

APP_DIR_NAME = "memocap"
CAPTURES_DIR_NAME = "captures"
SCREENSHOT_PREFIX = "capture_"
CLIPBOARD_PREFIX = "clipboard_"
METADATA_SUFFIX = ".json"
IMAGE_FORMAT = "png"


def default_data_dir() -> Path:
    """Per-user application data directory.

    Precedence: MEMOCAP_DATA_DIR, then $XDG_DATA_HOME/memocap,
    then ~/.local/share/memocap.
    """
    override = os.environ.get("MEMOCAP_DATA_DIR")
    if override:
        return Path(override).expanduser().resolve()

    xdg_data_home = os.environ.get("XDG_DATA_HOME")
    if not xdg_data_home:
        xdg_data_home = os.path.expanduser("~/.local/share")

    return Path(xdg_data_home) / APP_DIR_NAME


def default_captures_dir() -> Path:
    return default_data_dir() / CAPTURES_DIR_NAME


def resolve_root(custom_path: Optional[str] = "") -> Path:
    """Resolve and create the storage root.

    A non-empty custom path is resolved to an absolute path; otherwise the
    default captures directory is used. Any failure to use the custom path
    falls back to the default root instead of failing startup.

    Args:
        custom_path: User-configured save path (may be empty or None)

    Returns:
        Absolute path to an existing storage root directory

    Raises:
        OSError: If even the default root cannot be created
    """
    try:
        if custom_path and custom_path.strip():
            root = Path(custom_path.strip()).expanduser().resolve()
            logger.info(f"Using custom save path: {root}")
        else:
            root = default_captures_dir()
            logger.info(f"Using default save path: {root}")

        if not root.exists():
            root.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created captures directory: {root}")
        elif not root.is_dir():
            raise NotADirectoryError(f"Save path is not a directory: {root}")
        else:
            logger.debug(f"Captures directory exists: {root}")

        return root
    except OSError as e:
        logger.error(f"Failed to initialize storage directory: {e}")
        root = default_captures_dir()
        root.mkdir(parents=True, exist_ok=True)
        logger.warning(f"Falling back to default path: {root}")
        return root


def new_base_name(timestamp_ms: Optional[int] = None) -> str:
    """Build the shared base name for one record's sibling files.

    Format: capture_<ISO date with ':' and '.' replaced by '-'>_<timestamp>,
    e.g. capture_2026-01-11T12-00-00-123Z_1768132800123
    """
    if timestamp_ms is None:
        timestamp_ms = now_millis()
    date_str = iso_from_millis(timestamp_ms).replace(":", "-").replace(".", "-")
    return f"{SCREENSHOT_PREFIX}{date_str}_{timestamp_ms}"


def image_file_name(base_name: str) -> str:
    return f"{base_name}.{IMAGE_FORMAT}"


def metadata_file_name(base_name: str) -> str:
    return f"{base_name}{METADATA_SUFFIX}"


def clipboard_image_name(record_id: int) -> str:
    return f"{CLIPBOARD_PREFIX}{record_id}.{IMAGE_FORMAT}"


class StoragePaths:
    """File locations inside one storage root."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def image_path(self, base_name: str) -> Path:
        return self.root / image_file_name(base_name)

    def metadata_path(self, base_name: str) -> Path:
        return self.root / metadata_file_name(base_name)

    def clipboard_image_path(self, record_id: int) -> Path:
        return self.root / clipboard_image_name(record_id)

    def list_metadata_files(self) -> list[Path]:
        """All metadata files directly inside the root, sorted by name."""
        return sorted(
            p for p in self.root.iterdir()
            if p.name.endswith(METADATA_SUFFIX) and p.is_file()
        )


class AppDataPaths:
    """Locations of application-level files (config, logs, default root)."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.config_file = self.data_dir / "config.json"
        self.logs = self.data_dir / "logs"
        self.captures = self.data_dir / CAPTURES_DIR_NAME

    @classmethod
    def from_env(cls) -> "AppDataPaths":
        return cls(default_data_dir())

    def log_file(self, date_str: str) -> Path:
        """Daily log file for a date in YYYY-MM-DD format."""
        return self.logs / f"app-{date_str}.log"
