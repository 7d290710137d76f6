"""
Per-session aggregation over the full log history.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from session_logger.core.errors import ValidationError
from session_logger.storage.models import SessionSummary
from session_logger.storage.partitions import PartitionStore

DEFAULT_SESSIONS_LIMIT = 20


@dataclass
class _SessionAccumulator:
    first_timestamp: str
    last_timestamp: str
    user_id: Optional[str]
    message_count: int = 0


def list_sessions(
    store: PartitionStore,
    limit: int = DEFAULT_SESSIONS_LIMIT,
) -> List[SessionSummary]:
    """Summarize every session found in the store.

    `first_timestamp` and `user_id` come from the first record seen for a
    session and `last_timestamp` from the last one seen, both in scan
    order. When file-name order and timestamp order disagree these are not
    the chronological extremes.

    Args:
        store: Partition store to read
        limit: Maximum number of summaries to return

    Returns:
        Summaries sorted by last_timestamp, most recent first

    Raises:
        ValidationError: If limit is not a positive integer
    """
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError("'limit' must be a positive integer")

    sessions: Dict[str, _SessionAccumulator] = {}
    for entry in store.iter_all():
        acc = sessions.get(entry.session_id)
        if acc is None:
            acc = sessions[entry.session_id] = _SessionAccumulator(
                first_timestamp=entry.timestamp,
                last_timestamp=entry.timestamp,
                user_id=entry.user_id,
            )
        acc.message_count += 1
        acc.last_timestamp = entry.timestamp

    summaries = [
        SessionSummary(
            session_id=session_id,
            first_timestamp=acc.first_timestamp,
            last_timestamp=acc.last_timestamp,
            message_count=acc.message_count,
            user_id=acc.user_id,
        )
        for session_id, acc in sessions.items()
    ]
    summaries.sort(key=lambda s: s.last_timestamp, reverse=True)
    return summaries[:limit]
