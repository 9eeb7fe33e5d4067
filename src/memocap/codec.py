"""JSON encoding, decoding and read-path migration of record metadata."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from .models.record import Record
from .timeutil import millis_from_iso, now_millis

logger = logging.getLogger(__name__)


def migrate_metadata(data: dict[str, Any]) -> dict[str, Any]:
    """Backfill fields that older metadata files lack.

    Works on a copy; the file on disk is untouched until a caller rewrites
    the record. Applying it to a current-shape object changes nothing.

    Args:
        data: Raw object parsed from a metadata file

    Returns:
        New dict with id, status, order, note and clipboard present
    """
    migrated = dict(data)
    legacy_text = migrated.get("clipboardText")

    if migrated.get("id") is None:
        migrated["id"] = _legacy_id(migrated)

    if not migrated.get("status"):
        migrated["status"] = "todo"

    if migrated.get("order") is None:
        migrated["order"] = migrated.get("id") or now_millis()

    if not migrated.get("note"):
        migrated["note"] = {
            "text": legacy_text or "",
            "updatedAt": migrated.get("createdAt"),
        }

    if not migrated.get("clipboard"):
        migrated["clipboard"] = {
            "types": ["text"] if legacy_text else [],
            "text": legacy_text or None,
            "imagePath": None,
        }

    return migrated


def _legacy_id(data: dict[str, Any]) -> int:
    """Derive an id for a file written before ids existed."""
    if isinstance(data.get("order"), int):
        return data["order"]
    created_at = data.get("createdAt")
    if isinstance(created_at, str):
        try:
            return millis_from_iso(created_at)
        except ValueError:
            logger.debug(f"Unparseable createdAt in legacy metadata: {created_at!r}")
    return now_millis()


def encode_record(record: Record) -> str:
    """Serialize a record to its on-disk JSON form (metadata_path excluded)."""
    data = record.model_dump(mode="json", by_alias=True)
    return json.dumps(data, indent=2, ensure_ascii=False)


def decode_record(text: str, metadata_path: Optional[Path] = None) -> Record:
    """Parse metadata JSON, migrate it and build a Record.

    Raises:
        json.JSONDecodeError: If the text is not JSON
        ValueError: If the JSON is not an object or fails validation
    """
    record = Record.model_validate(migrate_metadata(_parse_object(text)))
    if metadata_path is not None:
        record.metadata_path = Path(metadata_path)
    return record


def _parse_object(text: str) -> dict[str, Any]:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Metadata must be a JSON object, got {type(data).__name__}")
    return data


def read_raw_metadata(metadata_path: Path) -> dict[str, Any]:
    """Read a metadata file as a migrated dict without model validation.

    Used where only a few fields are needed and a record that no longer
    validates must still be handled, e.g. deletion.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the content is not a JSON object
    """
    text = Path(metadata_path).read_text(encoding="utf-8")
    return migrate_metadata(_parse_object(text))


def read_metadata_file(metadata_path: Path) -> Record:
    """Read and decode one metadata file; errors propagate."""
    text = Path(metadata_path).read_text(encoding="utf-8")
    record = decode_record(text, metadata_path=metadata_path)
    logger.debug(f"Metadata loaded: {metadata_path}")
    return record


def write_metadata_file(metadata_path: Path, record: Record) -> None:
    """Write a record to its metadata file atomically."""
    metadata_path = Path(metadata_path)
    temp_file = metadata_path.with_suffix(".tmp")
    try:
        temp_file.write_text(encode_record(record), encoding="utf-8")
        temp_file.replace(metadata_path)
    except OSError:
        temp_file.unlink(missing_ok=True)
        raise
