"""
Data models for storage layer.

Defines the persisted log entry and the derived session summary.
"""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# Roles accepted on the write path
ROLES = ("user", "assistant")


@dataclass(frozen=True)
class LogEntry:
    """Immutable record of one conversational message.

    Entries are only created by the append path and are never modified
    once written. Field order matches the on-disk JSON key order.

    `tokens` is a whitespace word count, an approximation of message
    length rather than a tokenizer count.
    """
    timestamp: str
    session_id: str
    role: str
    message: str
    tokens: int
    user_id: Optional[str] = None
    latency_ms: Optional[float] = None
    model: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON-ready mapping in persisted key order."""
        return {
            "timestamp": self.timestamp,
            "session_id": self.session_id,
            "user_id": self.user_id,
            "role": self.role,
            "message": self.message,
            "tokens": self.tokens,
            "latency_ms": self.latency_ms,
            "model": self.model,
            "metadata": dict(self.metadata),
        }

    def to_json_line(self) -> str:
        """Serialize as a single JSON line without the trailing newline."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogEntry":
        """Build an entry from a decoded JSON object.

        Optional keys may be absent and unknown keys are ignored, so files
        written by other implementations of the format stay readable.

        Raises:
            ValueError: If a required field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError("log entry must be a JSON object")

        for key in ("timestamp", "session_id", "message"):
            if not isinstance(data.get(key), str):
                raise ValueError(f"'{key}' must be a string")

        role = data.get("role")
        if not isinstance(role, str):
            raise ValueError("'role' must be a string")

        tokens = data.get("tokens", 0)
        if isinstance(tokens, bool) or not isinstance(tokens, (int, float)):
            raise ValueError("'tokens' must be a number")
        if isinstance(tokens, float) and not math.isfinite(tokens):
            raise ValueError("'tokens' must be finite")

        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise ValueError("'metadata' must be an object")

        return cls(
            timestamp=data["timestamp"],
            session_id=data["session_id"],
            role=role,
            message=data["message"],
            tokens=int(tokens),
            user_id=data.get("user_id"),
            latency_ms=data.get("latency_ms"),
            model=data.get("model"),
            metadata=metadata,
        )


@dataclass(frozen=True)
class SessionSummary:
    """Per-session view derived from a full scan. Never persisted."""
    session_id: str
    first_timestamp: str
    last_timestamp: str
    message_count: int
    user_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "first_timestamp": self.first_timestamp,
            "last_timestamp": self.last_timestamp,
            "message_count": self.message_count,
            "user_id": self.user_id,
        }
