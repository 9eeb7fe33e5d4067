"""Pydantic models for persisted records and store results."""

from enum import Enum
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ClipboardType = Literal["text", "image"]


class RecordStatus(str, Enum):
    """Record status values."""

    TODO = "todo"
    DONE = "done"


class RecordFilter(str, Enum):
    """Status filter accepted by listing."""

    ALL = "all"
    TODO = "todo"
    DONE = "done"


class ClipboardSnapshot(BaseModel):
    """Clipboard state saved at capture time. Immutable after creation."""

    types: list[ClipboardType] = Field(
        default_factory=list,
        description="Which clipboard formats were present",
    )
    text: Optional[str] = Field(default=None, description="Clipboard text, if any")
    image_path: Optional[str] = Field(
        default=None,
        alias="imagePath",
        description="Absolute path of the saved clipboard image",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("types")
    @classmethod
    def dedupe_types(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for item in v:
            if item not in seen:
                seen.append(item)
        return seen


class Note(BaseModel):
    """User-editable note text."""

    text: str = Field(default="")
    updated_at: str = Field(alias="updatedAt", description="Last note edit (ISO8601 UTC)")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("text", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v


class Record(BaseModel):
    """One persisted capture or note.

    Written as a JSON metadata file in the storage root. Keys on disk are
    camelCase; unknown keys from older files are kept so a rewrite does not
    drop them. ``metadata_path`` is attached at read time and never written.

    Example:
        >>> record = Record(
        ...     id=1768132800123,
        ...     created_at="2026-01-11T12:00:00.123Z",
        ...     note=Note(text="look into this", updated_at="2026-01-11T12:00:00.123Z"),
        ...     order=1768132800123,
        ... )
        >>> record.status
        <RecordStatus.TODO: 'todo'>
    """

    id: int = Field(..., description="Creation timestamp in milliseconds")
    created_at: str = Field(..., alias="createdAt", description="Creation time (ISO8601 UTC)")
    image_path: Optional[str] = Field(
        default=None,
        alias="imagePath",
        description="Absolute path of the screenshot; None for note-only records",
    )
    clipboard: ClipboardSnapshot = Field(default_factory=ClipboardSnapshot)
    note: Note
    status: RecordStatus = Field(default=RecordStatus.TODO)
    order: int = Field(..., description="User-controlled rank; higher sorts first")
    metadata_path: Optional[Path] = Field(default=None, alias="metadataPath", exclude=True)

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class ClipboardCapture(BaseModel):
    """Clipboard contents handed over by the capture layer."""

    types: list[ClipboardType] = Field(default_factory=list)
    text: Optional[str] = None
    image: Optional[bytes] = None


class OrderUpdate(BaseModel):
    """One item of a batch order update."""

    metadata_path: Path = Field(alias="metadataPath")
    order: int

    model_config = ConfigDict(populate_by_name=True)


class BatchOrderError(BaseModel):
    metadata_path: str = Field(alias="metadataPath")
    error: str

    model_config = ConfigDict(populate_by_name=True)


class BatchOrderResult(BaseModel):
    """Outcome of a batch order update; success only if every item applied."""

    success: bool
    success_count: int = Field(alias="successCount")
    total_count: int = Field(alias="totalCount")
    errors: list[BatchOrderError] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class DeleteResult(BaseModel):
    success: bool
    error: Optional[str] = None
