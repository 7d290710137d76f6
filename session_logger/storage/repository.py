"""
Repository pattern for log access.

Wires the partition store, the record model and the read paths behind
one object configured from a StoreConfig.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Sequence

from session_logger.config.loader import StoreConfig, load_config
from session_logger.core.query import QueryFilters, QueryResult, query_logs
from session_logger.core.records import build_entries, format_timestamp
from session_logger.core.sessions import list_sessions
from session_logger.storage.models import SessionSummary
from session_logger.storage.partitions import PartitionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a successful save."""
    session_id: str
    log_file_path: Path
    timestamp: str
    message_count: int


class LogRepository:
    """Repository for saving and reading conversation logs.

    This class provides a higher-level interface to the partition store,
    applying the configured default limits.
    """

    def __init__(
        self,
        config: Optional[StoreConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the repository.

        Args:
            config: Store configuration (default: built-in defaults)
            clock: Optional clock shared by the record model and the store
        """
        self.config = config or StoreConfig()
        self.store = PartitionStore(
            self.config.log_dir,
            max_file_bytes=self.config.max_file_bytes,
            clock=clock,
        )

    def save_conversation(
        self,
        messages: Sequence[Mapping[str, Any]],
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> SaveResult:
        """Validate a batch and append it as one block.

        Either the whole batch is appended or an error propagates.

        Raises:
            ValidationError: If the batch is malformed
            OSError: If the append fails
        """
        now = self.store.now()
        session_id, entries = build_entries(
            messages,
            session_id=session_id,
            user_id=user_id,
            metadata=metadata,
            now=now,
        )
        path = self.store.append(entries)
        logger.info("Saved %d messages to session %s", len(entries), session_id)
        return SaveResult(
            session_id=session_id,
            log_file_path=path,
            timestamp=format_timestamp(now),
            message_count=len(entries),
        )

    def query_logs(
        self,
        filters: Optional[QueryFilters] = None,
        limit: Optional[int] = None,
    ) -> QueryResult:
        """Search stored entries, using the configured limit by default."""
        if limit is None:
            limit = self.config.query_limit
        return query_logs(self.store, filters, limit)

    def list_sessions(self, limit: Optional[int] = None) -> List[SessionSummary]:
        """Summarize stored sessions, using the configured limit by default."""
        if limit is None:
            limit = self.config.sessions_limit
        return list_sessions(self.store, limit)


# Global repository instance
_default_repository: Optional[LogRepository] = None
_repository_lock = threading.Lock()


def get_repository(config: Optional[StoreConfig] = None) -> LogRepository:
    """Get a repository instance.

    This function provides a singleton instance of the LogRepository.
    The first call fixes its configuration; without one, configuration is
    read from the environment. Concurrent first calls build one instance.

    Args:
        config: Store configuration used on first call

    Returns:
        An instance of LogRepository
    """
    global _default_repository
    with _repository_lock:
        if _default_repository is None:
            _default_repository = LogRepository(config or load_config())
        return _default_repository


def reset_repository() -> None:
    """Drop the singleton so the next get_repository() builds a new one."""
    global _default_repository
    with _repository_lock:
        _default_repository = None
