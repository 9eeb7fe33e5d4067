"""Tests for metadata encoding, decoding and read-path migration."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from memocap.codec import decode_record, encode_record, migrate_metadata, read_raw_metadata
from memocap.models.record import ClipboardSnapshot, Note, Record, RecordStatus

CURRENT_SHAPE = {
    "id": 1768132800123,
    "createdAt": "2026-01-11T12:00:00.123Z",
    "imagePath": "/data/captures/capture_2026-01-11T12-00-00-123Z_1768132800123.png",
    "clipboard": {
        "types": ["text", "image"],
        "text": "copied text",
        "imagePath": "/data/captures/clipboard_1768132800123.png",
    },
    "note": {"text": "copied text", "updatedAt": "2026-01-11T12:00:00.123Z"},
    "status": "done",
    "order": 7,
}

LEGACY_SHAPE = {
    "id": 1700000000000,
    "createdAt": "2023-11-14T22:13:20.000Z",
    "imagePath": "/data/captures/capture_old.png",
    "clipboardText": "legacy clipboard",
}


def _record() -> Record:
    return Record(
        id=1768132800123,
        created_at="2026-01-11T12:00:00.123Z",
        image_path="/data/captures/shot.png",
        clipboard=ClipboardSnapshot(types=["image"], image_path="/data/captures/clipboard_1.png"),
        note=Note(text="remember this", updated_at="2026-01-11T12:05:00.000Z"),
        status=RecordStatus.DONE,
        order=3,
    )


def test_round_trip_preserves_record():
    """Test that decode(encode(record)) == record."""
    record = _record()
    assert decode_record(encode_record(record)) == record


def test_encode_uses_camel_case_keys_and_omits_metadata_path():
    record = _record()
    record.metadata_path = Path("/data/captures/x.json")

    data = json.loads(encode_record(record))

    assert list(data) == ["id", "createdAt", "imagePath", "clipboard", "note", "status", "order"]
    assert data["clipboard"]["imagePath"] == "/data/captures/clipboard_1.png"
    assert data["note"]["updatedAt"] == "2026-01-11T12:05:00.000Z"
    assert data["status"] == "done"
    assert "metadataPath" not in data


def test_decode_attaches_metadata_path():
    record = decode_record(json.dumps(CURRENT_SHAPE), metadata_path=Path("/x/y.json"))
    assert record.metadata_path == Path("/x/y.json")
    assert record.status is RecordStatus.DONE
    assert record.clipboard.types == ["text", "image"]


def test_migrate_current_shape_is_noop():
    """Test that migrating a current-shape object changes nothing."""
    assert migrate_metadata(CURRENT_SHAPE) == CURRENT_SHAPE


def test_migrate_legacy_backfills_all_fields():
    """Test that a legacy flat clipboardText file gains status, order, note and clipboard."""
    migrated = migrate_metadata(LEGACY_SHAPE)

    assert migrated["status"] == "todo"
    assert migrated["order"] == LEGACY_SHAPE["id"]
    assert migrated["note"] == {
        "text": "legacy clipboard",
        "updatedAt": LEGACY_SHAPE["createdAt"],
    }
    assert migrated["clipboard"] == {
        "types": ["text"],
        "text": "legacy clipboard",
        "imagePath": None,
    }


def test_migrate_legacy_without_clipboard_text():
    data = {"id": 5, "createdAt": "2023-11-14T22:13:20.000Z", "imagePath": None}

    migrated = migrate_metadata(data)

    assert migrated["note"]["text"] == ""
    assert migrated["clipboard"] == {"types": [], "text": None, "imagePath": None}


def test_migrate_does_not_mutate_input():
    original = dict(LEGACY_SHAPE)
    migrate_metadata(original)
    assert original == LEGACY_SHAPE


def test_migrate_twice_equals_once():
    """Test that migration is idempotent on legacy input."""
    once = migrate_metadata(LEGACY_SHAPE)
    assert migrate_metadata(once) == once


def test_migrate_missing_id_derived_from_created_at():
    """Test that an id-less file gets an id (and order) from createdAt."""
    data = {"createdAt": "2023-11-14T22:13:20.000Z", "clipboardText": "old"}
    migrated = migrate_metadata(data)

    assert migrated["id"] == 1_700_000_000_000
    assert migrated["order"] == 1_700_000_000_000
    assert migrate_metadata(migrated) == migrated
    assert decode_record(json.dumps(data)).id == 1_700_000_000_000


def test_migrate_missing_id_prefers_existing_order():
    data = {"createdAt": "2023-11-14T22:13:20.000Z", "order": 42}
    migrated = migrate_metadata(data)
    assert migrated["id"] == 42
    assert migrated["order"] == 42


def test_migrate_missing_id_and_created_at_uses_current_time():
    with patch("memocap.codec.now_millis", return_value=1768132800123):
        migrated = migrate_metadata({"createdAt": "not a date"})
    assert migrated["id"] == migrated["order"] == 1768132800123


def test_read_raw_metadata_skips_validation(tmp_path):
    """Test that the raw reader returns a migrated dict even for an invalid record."""
    path = tmp_path / "a.json"
    path.write_text(json.dumps(dict(CURRENT_SHAPE, status="archived")), encoding="utf-8")

    data = read_raw_metadata(path)

    assert data["status"] == "archived"
    assert data["clipboard"]["imagePath"] == CURRENT_SHAPE["clipboard"]["imagePath"]


def test_read_raw_metadata_rejects_non_object(tmp_path):
    path = tmp_path / "a.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError, match="JSON object"):
        read_raw_metadata(path)


def test_migrate_keeps_existing_zero_order():
    """Test that an explicit order of 0 is not treated as missing."""
    data = dict(CURRENT_SHAPE, order=0)
    assert migrate_metadata(data)["order"] == 0


def test_decode_legacy_keeps_unknown_keys():
    """Test that legacy keys survive a decode/encode cycle."""
    record = decode_record(json.dumps(LEGACY_SHAPE))
    data = json.loads(encode_record(record))

    assert data["clipboardText"] == "legacy clipboard"
    assert data["note"]["text"] == "legacy clipboard"
    assert data["status"] == "todo"


def test_decode_rejects_non_object():
    with pytest.raises(ValueError, match="JSON object"):
        decode_record("[1, 2, 3]")


def test_decode_rejects_corrupt_json():
    with pytest.raises(ValueError):
        decode_record("{not json")


def test_decode_rejects_unknown_status():
    data = dict(CURRENT_SHAPE, status="archived")
    with pytest.raises(ValueError):
        decode_record(json.dumps(data))
