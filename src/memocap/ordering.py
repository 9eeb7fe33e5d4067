"""Sort and filter policy used when listing records."""

from typing import Iterable, Union

from .models.record import Record, RecordFilter


def parse_filter(value: Union[str, RecordFilter, None]) -> RecordFilter:
    """Normalize a filter argument; None means 'all'.

    Raises:
        ValueError: If the value is not one of all, todo, done
    """
    if value is None:
        return RecordFilter.ALL
    if isinstance(value, RecordFilter):
        return value
    try:
        return RecordFilter(value)
    except ValueError as e:
        raise ValueError(f"Invalid filter: {value}. Must be 'all', 'todo' or 'done'") from e


def matches_filter(record: Record, record_filter: RecordFilter) -> bool:
    if record_filter is RecordFilter.ALL:
        return True
    return record.status.value == record_filter.value


def record_sort_key(record: Record) -> tuple[int, str]:
    # ISO-8601 UTC strings compare chronologically as plain strings
    return (record.order, record.created_at)


def sort_records(records: Iterable[Record]) -> list[Record]:
    """Order descending, ties broken by createdAt descending."""
    return sorted(records, key=record_sort_key, reverse=True)
