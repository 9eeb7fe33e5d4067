"""Pydantic models for memocap."""

from .record import (
    BatchOrderError,
    BatchOrderResult,
    ClipboardCapture,
    ClipboardSnapshot,
    DeleteResult,
    Note,
    OrderUpdate,
    Record,
    RecordFilter,
    RecordStatus,
)

__all__ = [
    "Record",
    "Note",
    "ClipboardSnapshot",
    "RecordStatus",
    "RecordFilter",
    # Store inputs and results
    "ClipboardCapture",
    "OrderUpdate",
    "BatchOrderError",
    "BatchOrderResult",
    "DeleteResult",
]
