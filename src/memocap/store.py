"""
Record storage layer: a directory of JSON metadata files used as a small
document database.

Each record owns one metadata file in the storage root plus optional
sibling image files (screenshot and clipboard image). Listing scans every
metadata file, migrates older shapes in memory, filters and sorts.

Mutations never raise for I/O or parse problems; they log and return
False or a failure result. Creations propagate I/O errors because a
half-created record cannot be returned. The only exception a mutation
raises is InvalidStatusError, before any file is touched.
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from .codec import read_metadata_file, read_raw_metadata, write_metadata_file
from .models.record import (
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
from .ordering import matches_filter, parse_filter, sort_records
from .paths import StoragePaths, new_base_name, resolve_root
from .timeutil import iso_from_millis, now_millis, utc_now_iso

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class InvalidStatusError(ValueError):
    """Raised when a status outside {todo, done} is requested."""


def _update_target(update) -> str:
    """Best-effort metadata path of a batch item, for error reporting."""
    if isinstance(update, OrderUpdate):
        return str(update.metadata_path)
    if isinstance(update, dict):
        return str(update.get("metadataPath", update.get("metadata_path")))
    return repr(update)


class RecordStore:
    """
    CRUD and query engine over one storage root.

    Constructed explicitly (once at startup) and passed to whatever needs
    it. There is no locking: two mutations of the same metadata file race
    and the later write wins.

    Example:
        store = RecordStore.open(config.custom_save_path)
        record = store.create_note_only("call back about invoice")
        store.update_status(record.metadata_path, "done")
        todo = store.list_all_records("todo")
    """

    def __init__(self, captures_dir: Path):
        """
        Initialize store with an existing storage root.

        Args:
            captures_dir: Directory holding metadata and image files
        """
        self._paths = StoragePaths(Path(captures_dir))
        self._last_id = 0
        # metadata path -> ((st_mtime_ns, st_size), migrated record)
        self._cache: dict[Path, tuple[tuple[int, int], Record]] = {}

    @classmethod
    def open(cls, custom_path: Optional[str] = "") -> "RecordStore":
        """Resolve the storage root (custom or default) and bind a store to it."""
        return cls(resolve_root(custom_path))

    @property
    def captures_dir(self) -> Path:
        return self._paths.root

    def get_captures_dir(self) -> Path:
        return self._paths.root

    def reinit(self, custom_path: Optional[str] = "") -> Path:
        """
        Re-point the store at a new root.

        Callers must let this finish before issuing operations against the
        new root.

        Returns:
            The resolved root now in use
        """
        root = resolve_root(custom_path)
        self._paths = StoragePaths(root)
        self._cache.clear()
        return root

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _next_record_id(self) -> int:
        """Millisecond timestamp, bumped so ids from this store never repeat."""
        candidate = now_millis()
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return candidate

    def save_image(self, image_bytes: bytes, base_name: Optional[str] = None) -> Path:
        """
        Write a screenshot image into the storage root.

        Args:
            image_bytes: Encoded PNG data
            base_name: Shared record base name; generated if omitted

        Returns:
            Path of the written image

        Raises:
            OSError: If the file cannot be written
        """
        if base_name is None:
            base_name = new_base_name(self._next_record_id())
        image_path = self._paths.image_path(base_name)
        try:
            image_path.write_bytes(image_bytes)
        except OSError as e:
            logger.error(f"Failed to save screenshot: {e}")
            raise
        logger.info(f"Screenshot saved: {image_path}")
        return image_path

    def _save_clipboard_image(self, record_id: int, image_bytes: bytes) -> Path:
        clipboard_image_path = self._paths.clipboard_image_path(record_id)
        clipboard_image_path.write_bytes(image_bytes)
        logger.info(f"Clipboard image saved: {clipboard_image_path}")
        return clipboard_image_path

    def _persist_new(self, record: Record, base_name: str) -> Record:
        metadata_path = self._paths.metadata_path(base_name)
        write_metadata_file(metadata_path, record)
        self._cache.pop(metadata_path, None)
        record.metadata_path = metadata_path
        return record

    def create_from_capture(self, image_bytes: bytes, clipboard: ClipboardCapture) -> Record:
        """
        Create a record from a screenshot and a clipboard snapshot.

        The note starts as the clipboard text. A failure writing either the
        screenshot or the clipboard image aborts the whole operation.

        Args:
            image_bytes: Screenshot PNG data
            clipboard: Clipboard snapshot from the capture layer

        Returns:
            The created record, metadata_path attached

        Raises:
            OSError: If any file cannot be written
        """
        record_id = self._next_record_id()
        created_at = iso_from_millis(record_id)
        base_name = new_base_name(record_id)

        try:
            image_path = self.save_image(image_bytes, base_name)

            clipboard_image_path: Optional[Path] = None
            if clipboard.image:
                clipboard_image_path = self._save_clipboard_image(record_id, clipboard.image)

            record = Record(
                id=record_id,
                created_at=created_at,
                image_path=str(image_path),
                clipboard=ClipboardSnapshot(
                    types=list(clipboard.types),
                    text=clipboard.text or None,
                    image_path=str(clipboard_image_path) if clipboard_image_path else None,
                ),
                note=Note(text=clipboard.text or "", updated_at=created_at),
                status=RecordStatus.TODO,
                order=record_id,
            )
            record = self._persist_new(record, base_name)
        except OSError as e:
            logger.error(f"Failed to save record: {e}")
            raise

        logger.info(f"Record metadata saved: {record.metadata_path}")
        return record

    def create_note_only(self, note_text: str) -> Record:
        """Create a record with a note and no images."""
        record_id = self._next_record_id()
        created_at = iso_from_millis(record_id)

        record = Record(
            id=record_id,
            created_at=created_at,
            image_path=None,
            clipboard=ClipboardSnapshot(),
            note=Note(text=note_text, updated_at=created_at),
            status=RecordStatus.TODO,
            order=record_id,
        )

        try:
            record = self._persist_new(record, new_base_name(record_id))
        except OSError as e:
            logger.error(f"Failed to create note-only record: {e}")
            raise

        logger.info(f"Note-only record created: {record.metadata_path}")
        return record

    def create_with_clipboard_image(
        self, note_text: str, image_bytes: Optional[bytes] = None
    ) -> Record:
        """
        Create a record from a note and an optional clipboard image.

        No screenshot is taken. Clipboard types list 'image' when image
        bytes are given and 'text' when the note is non-empty.
        """
        record_id = self._next_record_id()
        created_at = iso_from_millis(record_id)

        try:
            clipboard_image_path: Optional[Path] = None
            types: list[str] = []
            if image_bytes:
                clipboard_image_path = self._save_clipboard_image(record_id, image_bytes)
                types.append("image")
            if note_text:
                types.append("text")

            record = Record(
                id=record_id,
                created_at=created_at,
                image_path=None,
                clipboard=ClipboardSnapshot(
                    types=types,
                    text=note_text or None,
                    image_path=str(clipboard_image_path) if clipboard_image_path else None,
                ),
                note=Note(text=note_text or "", updated_at=created_at),
                status=RecordStatus.TODO,
                order=record_id,
            )
            record = self._persist_new(record, new_base_name(record_id))
        except OSError as e:
            logger.error(f"Failed to create record with clipboard image: {e}")
            raise

        logger.info(f"Record with clipboard image created: {record.metadata_path}")
        return record

    # ------------------------------------------------------------------
    # Single-record reads and mutations
    # ------------------------------------------------------------------

    def load_metadata(self, metadata_path: PathLike) -> Record:
        """
        Read one record with migration applied.

        Raises:
            OSError: If the file cannot be read
            ValueError: If the file is not valid record JSON
        """
        try:
            return read_metadata_file(Path(metadata_path))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load metadata: {e}")
            raise

    def _rewrite(self, metadata_path: PathLike, mutate: Callable[[Record], None]) -> Record:
        """Read-modify-write one metadata file in its current shape."""
        path = Path(metadata_path)
        record = read_metadata_file(path)
        mutate(record)
        write_metadata_file(path, record)
        self._cache.pop(path, None)
        return record

    def update_note(
        self, metadata_path: PathLike, note_text: str, is_edit_mode: bool = False
    ) -> bool:
        """
        Replace a record's note text.

        In edit mode (record opened from the management list) the previous
        updatedAt is kept so the record does not move in recency order;
        otherwise updatedAt becomes now.

        Returns:
            True on success, False on read/parse/write failure
        """

        def apply(record: Record) -> None:
            updated_at = record.note.updated_at if is_edit_mode else utc_now_iso()
            record.note = Note(text=note_text, updated_at=updated_at or utc_now_iso())

        try:
            self._rewrite(metadata_path, apply)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to update note: {e}")
            return False

        if is_edit_mode:
            logger.info(f"Note updated (edit mode - preserving timestamp): {metadata_path}")
        else:
            logger.info(f"Note updated (new capture): {metadata_path}")
        return True

    def update_status(self, metadata_path: PathLike, status: Union[str, RecordStatus]) -> bool:
        """
        Set a record's status.

        Raises:
            InvalidStatusError: If status is not 'todo' or 'done' (no I/O done)

        Returns:
            True on success, False on I/O or parse failure
        """
        try:
            new_status = RecordStatus(status)
        except ValueError as e:
            raise InvalidStatusError(
                f"Invalid status: {status}. Must be 'todo' or 'done'"
            ) from e

        def apply(record: Record) -> None:
            record.status = new_status

        try:
            self._rewrite(metadata_path, apply)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to update status: {e}")
            return False

        logger.info(f"Status updated to '{new_status.value}' in: {metadata_path}")
        return True

    def _apply_order(self, metadata_path: PathLike, order: int) -> None:
        def apply(record: Record) -> None:
            record.order = int(order)

        self._rewrite(metadata_path, apply)
        logger.debug(f"Order updated to {order} in: {metadata_path}")

    def update_order(self, metadata_path: PathLike, order: int) -> bool:
        """Set a record's order. Returns False on I/O or parse failure."""
        try:
            self._apply_order(metadata_path, order)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to update order: {e}")
            return False
        return True

    def batch_update_order(
        self, updates: Iterable[Union[OrderUpdate, dict]]
    ) -> BatchOrderResult:
        """
        Apply order updates one at a time.

        A failing item, including one that is malformed, is recorded in
        ``errors`` and the remaining items are still attempted. ``success`` is True only if every item applied.

        Args:
            updates: OrderUpdate objects or dicts with metadataPath and order

        Returns:
            BatchOrderResult with per-item errors
        """
        items = list(updates)

        success_count = 0
        errors: list[BatchOrderError] = []
        for raw in items:
            target = _update_target(raw)
            try:
                item = raw if isinstance(raw, OrderUpdate) else OrderUpdate.model_validate(raw)
                self._apply_order(item.metadata_path, item.order)
                success_count += 1
            except (OSError, ValueError) as e:
                # pydantic.ValidationError is a ValueError
                logger.error(f"Failed to update order for {target}: {e}")
                errors.append(BatchOrderError(metadata_path=target, error=str(e)))

        logger.info(f"Batch order update completed: {success_count}/{len(items)} successful")

        return BatchOrderResult(
            success=success_count == len(items),
            success_count=success_count,
            total_count=len(items),
            errors=errors,
        )

    def delete_record(self, metadata_path: PathLike, delete_images: bool = True) -> DeleteResult:
        """
        Delete a record and, optionally, its image files.

        Images are removed before the metadata file, so an interrupted delete
        leaves a record that still lists rather than one whose assets vanished
        silently. Missing image files are not an error. The file is read
        without model validation so a record that no longer validates (say,
        an unknown status written by hand) can still be removed.

        Args:
            metadata_path: Path of the record's metadata file
            delete_images: Also remove the screenshot and clipboard image

        Returns:
            DeleteResult; success False with the error message on failure
        """
        path = Path(metadata_path)
        try:
            data = read_raw_metadata(path)

            if delete_images:
                image_path = data.get("imagePath")
                if isinstance(image_path, str) and image_path and Path(image_path).exists():
                    Path(image_path).unlink()
                    logger.info(f"Deleted screenshot: {image_path}")

                clipboard = data.get("clipboard")
                clipboard_image = clipboard.get("imagePath") if isinstance(clipboard, dict) else None
                if isinstance(clipboard_image, str) and clipboard_image and Path(clipboard_image).exists():
                    Path(clipboard_image).unlink()
                    logger.info(f"Deleted clipboard image: {clipboard_image}")

            path.unlink()
            logger.info(f"Deleted metadata: {path}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to delete record: {e}")
            return DeleteResult(success=False, error=str(e))
        finally:
            self._cache.pop(path, None)

        return DeleteResult(success=True)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def _load_cached(self, metadata_path: Path) -> Record:
        """Return a copy of the parsed record, re-reading only on change.

        The cache key is (mtime_ns, size, inode, ctime_ns). A replace via
        rename changes the inode, and any write bumps ctime, which callers
        cannot set back. An external in-place rewrite to the same size
        within the filesystem timestamp granularity can still go unnoticed
        until the next change.
        """
        stat = metadata_path.stat()
        signature = (stat.st_mtime_ns, stat.st_size, stat.st_ino, stat.st_ctime_ns)

        cached = self._cache.get(metadata_path)
        if cached is not None and cached[0] == signature:
            return cached[1].model_copy(deep=True)

        record = read_metadata_file(metadata_path)
        self._cache[metadata_path] = (signature, record)
        return record.model_copy(deep=True)

    def list_all_records(
        self, record_filter: Union[str, RecordFilter, None] = RecordFilter.ALL
    ) -> list[Record]:
        """
        List records, filtered by status and sorted for display.

        Every metadata file is loaded and migrated independently; a corrupt
        file is logged and skipped. Sorted by order descending, then
        createdAt descending.

        Args:
            record_filter: 'all', 'todo' or 'done'

        Returns:
            Records with metadata_path attached

        Raises:
            ValueError: If the filter value is unknown
        """
        wanted = parse_filter(record_filter)

        try:
            files = self._paths.list_metadata_files()
        except OSError as e:
            logger.error(f"Failed to list records in {self._paths.root}: {e}")
            return []

        logger.info(f"Found {len(files)} metadata files")

        records: list[Record] = []
        for metadata_path in files:
            try:
                record = self._load_cached(metadata_path)
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load metadata file {metadata_path.name}: {e}")
                self._cache.pop(metadata_path, None)
                continue

            if matches_filter(record, wanted):
                records.append(record)

        present = set(files)
        for stale in [p for p in self._cache if p not in present]:
            del self._cache[stale]

        records = sort_records(records)
        logger.info(f"Loaded {len(records)} records (filter: {wanted.value})")
        return records
