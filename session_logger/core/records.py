"""
Record normalization for incoming conversation batches.

Turns caller-supplied `{role, content}` messages into log entries ready
for the append store. Pure transformation, no I/O.
"""

import random
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from session_logger.core.errors import ValidationError
from session_logger.storage.models import ROLES, LogEntry

SESSION_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
SESSION_SUFFIX_LENGTH = 9

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def epoch_ms(dt: datetime) -> int:
    """Milliseconds since the Unix epoch for an aware datetime."""
    return (dt - EPOCH) // timedelta(milliseconds=1)


def format_timestamp(dt: datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision, e.g.
    `2025-10-04T09:15:02.123Z`.

    Fixed width keeps lexical order equal to chronological order.
    """
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def generate_session_id(now: Optional[datetime] = None) -> str:
    """Generate `session_<epoch-ms>_<suffix>`.

    Practically unique across concurrent writers; not cryptographically so.
    """
    now = now or _utcnow()
    suffix = "".join(random.choices(SESSION_SUFFIX_ALPHABET, k=SESSION_SUFFIX_LENGTH))
    return f"session_{epoch_ms(now)}_{suffix}"


def approximate_tokens(content: str) -> int:
    """Count whitespace-separated words.

    A cheap length estimate only; it does not match any model tokenizer.
    """
    return len(content.split())


def _validate_messages(messages: Any) -> List[Mapping[str, Any]]:
    if messages is None:
        raise ValidationError("'messages' is required")
    if not isinstance(messages, (list, tuple)):
        raise ValidationError("'messages' must be a list")
    if not messages:
        raise ValidationError("'messages' must contain at least one message")

    for index, msg in enumerate(messages):
        if not isinstance(msg, Mapping):
            raise ValidationError(f"messages[{index}] must be an object")
        if "role" not in msg:
            raise ValidationError(f"messages[{index}] is missing 'role'")
        if "content" not in msg:
            raise ValidationError(f"messages[{index}] is missing 'content'")
        if msg["role"] not in ROLES:
            raise ValidationError(
                f"messages[{index}].role must be one of: {list(ROLES)}"
            )
        if not isinstance(msg["content"], str):
            raise ValidationError(f"messages[{index}].content must be a string")
    return list(messages)


def build_entries(
    messages: Sequence[Mapping[str, Any]],
    session_id: Optional[str] = None,
    user_id: Optional[str] = None,
    metadata: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Tuple[str, List[LogEntry]]:
    """Normalize a batch of messages into log entries.

    Message i is stamped `now + i` milliseconds so that entries of one batch
    sort in submission order even on a coarse clock. The offset is an
    ordering aid, not a wall-clock reading.

    Args:
        messages: Ordered `{role, content}` mappings (required)
        session_id: Session to append to; generated when absent
        user_id: Optional user identifier
        metadata: Optional open mapping; `metadata["model"]` fills `model`
        now: Batch time, defaults to the current UTC time

    Returns:
        Tuple of (session_id, entries)

    Raises:
        ValidationError: If the batch or any optional argument is malformed
    """
    validated = _validate_messages(messages)

    if session_id is not None and not isinstance(session_id, str):
        raise ValidationError("'session_id' must be a string")
    if user_id is not None and not isinstance(user_id, str):
        raise ValidationError("'user_id' must be a string")
    if metadata is not None and not isinstance(metadata, Mapping):
        raise ValidationError("'metadata' must be an object")

    now = now or _utcnow()
    session_id = session_id or generate_session_id(now)
    meta: Dict[str, Any] = dict(metadata or {})
    model = meta.get("model") or None

    entries = [
        LogEntry(
            timestamp=format_timestamp(now + timedelta(milliseconds=index)),
            session_id=session_id,
            user_id=user_id or None,
            role=msg["role"],
            message=msg["content"],
            tokens=approximate_tokens(msg["content"]),
            latency_ms=None,
            model=model,
            metadata=dict(meta),
        )
        for index, msg in enumerate(validated)
    ]
    return session_id, entries
