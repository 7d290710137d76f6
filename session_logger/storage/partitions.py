"""
Date-partitioned append-only JSONL store.

Layout of the log directory:

    <YYYY-MM-DD>.jsonl              active partition for a UTC day
    <YYYY-MM-DD>.<epoch_ms>.jsonl   rotated partition, renamed aside

Each line is one JSON-encoded LogEntry in append order.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Union

from session_logger.core.errors import ParseError
from session_logger.core.records import epoch_ms
from session_logger.storage.models import LogEntry

logger = logging.getLogger(__name__)

PARTITION_SUFFIX = ".jsonl"
DEFAULT_MAX_FILE_BYTES = 10 * 1024 * 1024


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def partition_name(now: datetime) -> str:
    """Active partition file name for the UTC date of `now`."""
    return now.astimezone(timezone.utc).strftime("%Y-%m-%d") + PARTITION_SUFFIX


def rotated_name(partition: Path, stamp_ms: int) -> str:
    """Insert the epoch-ms stamp before the extension: `2025-10-04.<ms>.jsonl`."""
    return partition.name[: -len(PARTITION_SUFFIX)] + f".{stamp_ms}" + PARTITION_SUFFIX


def parse_line(raw: bytes, line_number: int) -> LogEntry:
    """Decode one stored line into a LogEntry.

    Raises:
        ParseError: If the line is not UTF-8 or not JSON, or is not a log entry
    """
    try:
        data = json.loads(raw.decode("utf-8"))
        return LogEntry.from_dict(data)
    except UnicodeDecodeError as e:
        raise ParseError(line_number, f"invalid encoding: {e}")
    except json.JSONDecodeError as e:
        raise ParseError(line_number, f"invalid JSON: {e.msg}")
    except ValueError as e:
        raise ParseError(line_number, str(e))
    except RecursionError:
        raise ParseError(line_number, "nested too deeply")


class PartitionStore:
    """Append store over a directory of date-named partitions.

    Appends and the rotation check that follows them hold a per-store lock,
    so writers sharing one store in a process never interleave. Nothing
    coordinates separate processes writing the same directory: two of them
    can both decide to rotate the same file.
    """

    def __init__(
        self,
        log_dir: Union[str, Path],
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the store.

        Args:
            log_dir: Directory holding the partition files
            max_file_bytes: Rotation threshold in bytes
            clock: Returns the current aware datetime, defaults to UTC now
        """
        if max_file_bytes <= 0:
            raise ValueError("max_file_bytes must be > 0")
        self.log_dir = Path(log_dir)
        self.max_file_bytes = max_file_bytes
        self._clock = clock or _utcnow
        self._lock = threading.Lock()

    def now(self) -> datetime:
        return self._clock()

    def partition_path(self, now: Optional[datetime] = None) -> Path:
        """Path of the active partition for `now` (default: the store clock)."""
        return self.log_dir / partition_name(now or self.now())

    def append(self, entries: Iterable[LogEntry]) -> Path:
        """Append a batch to today's partition, then rotate it if oversized.

        The whole batch is written with a single write call. A failed append
        may have left part of the batch on disk; callers should not retry
        blindly.

        Args:
            entries: Log entries in submission order

        Returns:
            Path the batch was written to (before any rotation)

        Raises:
            OSError: On any filesystem failure
        """
        block = "".join(entry.to_json_line() + "\n" for entry in entries)

        with self._lock:
            partition = self.partition_path()
            if block:
                partition.parent.mkdir(parents=True, exist_ok=True)
                with partition.open("a", encoding="utf-8") as f:
                    f.write(block)
                logger.debug("Appended %d bytes to %s", len(block), partition)
            self.rotate_if_oversized(partition)
        return partition

    def rotate_if_oversized(self, partition: Path) -> Optional[Path]:
        """Rename `partition` aside once it exceeds the size threshold.

        The next append recreates the date-named file. A partition that
        does not exist is left alone.

        Returns:
            The rotated path, or None when nothing was renamed
        """
        try:
            size = partition.stat().st_size
        except FileNotFoundError:
            return None

        if size <= self.max_file_bytes:
            return None

        stamp = epoch_ms(self.now())
        target = partition.with_name(rotated_name(partition, stamp))
        while target.exists():
            stamp += 1
            target = partition.with_name(rotated_name(partition, stamp))

        partition.rename(target)
        logger.info(
            "Rotated %s (%d bytes > %d) to %s",
            partition.name, size, self.max_file_bytes, target.name
        )
        return target

    def list_partitions(self) -> List[Path]:
        """All partition files, newest-looking first.

        Sorted by file name descending. Within one day the active file sorts
        before its rotated files, and rotated files sort newest first.
        """
        if not self.log_dir.is_dir():
            return []
        files = [
            p for p in self.log_dir.iterdir()
            if p.name.endswith(PARTITION_SUFFIX) and p.is_file()
        ]
        return sorted(files, key=lambda p: p.name, reverse=True)

    def iter_entries(self, partition: Path) -> Iterator[LogEntry]:
        """Yield entries of one partition in file order.

        Malformed lines are skipped. A partition that disappears between
        listing and reading (rotated by a writer) yields nothing.
        """
        try:
            f = partition.open("rb")
        except FileNotFoundError:
            logger.debug("Partition %s vanished before read", partition)
            return

        with f:
            for line_number, raw in enumerate(f, start=1):
                if not raw.strip():
                    continue
                try:
                    yield parse_line(raw, line_number)
                except ParseError as e:
                    logger.debug("Skipping line in %s: %s", partition.name, e)

    def iter_all(self) -> Iterator[LogEntry]:
        """Yield every stored entry in scan order."""
        for partition in self.list_partitions():
            yield from self.iter_entries(partition)
