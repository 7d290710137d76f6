"""
Filtered search over stored log entries.

Linear scan of every partition in scan order with early termination.
"""

from contextlib import closing
from dataclasses import dataclass
from typing import List, Optional

from session_logger.core.errors import ValidationError
from session_logger.storage.models import LogEntry
from session_logger.storage.partitions import PartitionStore

DEFAULT_QUERY_LIMIT = 50


@dataclass(frozen=True)
class QueryFilters:
    """Optional filters; every filter that is set must match.

    Date bounds are inclusive and compared as strings against the entry
    timestamp. This only works because timestamps are fixed-width ISO-8601,
    so a date-only `end_date` such as "2025-10-04" excludes entries from
    later in that day.
    """
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    keyword: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    def matches(self, entry: LogEntry) -> bool:
        if self.session_id and entry.session_id != self.session_id:
            return False
        if self.user_id and entry.user_id != self.user_id:
            return False
        if self.keyword and self.keyword.casefold() not in entry.message.casefold():
            return False
        if self.start_date and entry.timestamp < self.start_date:
            return False
        if self.end_date and entry.timestamp > self.end_date:
            return False
        return True


@dataclass(frozen=True)
class QueryResult:
    """Matched entries in scan order."""
    entries: List[LogEntry]

    @property
    def count(self) -> int:
        return len(self.entries)


def query_logs(
    store: PartitionStore,
    filters: Optional[QueryFilters] = None,
    limit: int = DEFAULT_QUERY_LIMIT,
) -> QueryResult:
    """Search stored entries.

    Scanning stops once `limit` matches are collected, so the result is a
    prefix of the filtered set in scan order. Since scan order follows file
    names, it is not guaranteed to hold the globally most recent matches.

    Args:
        store: Partition store to read
        filters: Filters to apply (default: none)
        limit: Maximum number of entries to return

    Returns:
        QueryResult with at most `limit` entries

    Raises:
        ValidationError: If limit is not a positive integer
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError("'limit' must be a positive integer")

    filters = filters or QueryFilters()
    results: List[LogEntry] = []

    with closing(store.iter_all()) as entries:
        for entry in entries:
            if not filters.matches(entry):
                continue
            results.append(entry)
            if len(results) >= limit:
                break

    return QueryResult(entries=results)
