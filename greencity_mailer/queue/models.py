"""Queue data models."""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional


@dataclass
class QueueItem:
    """Represents a message waiting in a named queue."""

    queue: str  # Queue name, e.g. "verify-email-queue"
    message_id: str  # Unique per queue; doubles as the spool file name
    payload: Dict[str, Any]  # Decoded JSON body
    attempts: int = 0
    last_error: Optional[str] = None
    enqueued_at: str = ""
    path: Optional[Path] = field(default=None, compare=False, repr=False)

    @classmethod
    def create(cls, queue: str, payload: Dict[str, Any], message_id: Optional[str] = None):
        """Factory method to create a QueueItem."""
        return cls(
            queue=queue,
            message_id=message_id or uuid.uuid4().hex,
            payload=payload,
            enqueued_at=datetime.now(timezone.utc).isoformat(),
        )

    def to_record(self) -> Dict[str, Any]:
        """JSON-serializable form stored in the spool file."""
        return {
            "queue": self.queue,
            "message_id": self.message_id,
            "payload": self.payload,
            "attempts": self.attempts,
            "last_error": self.last_error,
            "enqueued_at": self.enqueued_at,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any], path: Optional[Path] = None):
        return cls(
            queue=record["queue"],
            message_id=record["message_id"],
            payload=record.get("payload"),
            attempts=record.get("attempts", 0),
            last_error=record.get("last_error"),
            enqueued_at=record.get("enqueued_at", ""),
            path=path,
        )
