"""Execution and undo logs.

An execution log is the durable record of what happened when a plan was
applied. It is the only input the undo engine needs, so it round-trips
through ``to_dict()`` / ``from_dict()``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from .plan import ActionType


def utc_now() -> datetime:
    """Current time as an aware UTC datetime. Persisted timestamps use this."""
    return datetime.now(timezone.utc)


TRASH_MESSAGE = "Moved to trash"


class ExecutionOutcome(Enum):
    """Outcome of executing one planned action."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


class UndoOutcome(Enum):
    """Outcome of reversing one logged action."""
    RESTORED = "restored"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ExecutionLogEntry:
    """Represents what happened to a single planned action."""
    action_id: str
    source_path: Path
    outcome: ExecutionOutcome
    destination_path: Optional[Path] = None
    message: Optional[str] = None
    action_type: Optional[ActionType] = None  # absent in logs written without it
    timestamp: datetime = field(default_factory=utc_now)

    @property
    def is_trash_relocation(self) -> bool:
        if self.action_type is not None:
            return self.action_type == ActionType.DELETE
        return self.message == TRASH_MESSAGE

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "action_id": self.action_id,
            "source_path": str(self.source_path),
            "destination_path": str(self.destination_path) if self.destination_path else None,
            "timestamp": self.timestamp.isoformat(),
            "outcome": self.outcome.value,
            "message": self.message,
            "action_type": self.action_type.value if self.action_type else None
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ExecutionLogEntry":
        """Create from dictionary."""
        return cls(
            action_id=data["action_id"],
            source_path=Path(data["source_path"]),
            destination_path=Path(data["destination_path"]) if data.get("destination_path") else None,
            timestamp=datetime.fromisoformat(data["timestamp"]),
            outcome=ExecutionOutcome(data["outcome"]),
            message=data.get("message"),
            action_type=ActionType(data["action_type"]) if data.get("action_type") else None
        )


@dataclass
class ExecutionLog:
    """Append-only record of one plan execution."""
    plan_id: str
    started_at: datetime = field(default_factory=utc_now)
    finished_at: Optional[datetime] = None
    _entries: List[ExecutionLogEntry] = field(default_factory=list, repr=False)

    @property
    def entries(self) -> tuple:
        return tuple(self._entries)

    def append(self, entry: ExecutionLogEntry) -> None:
        if self.finished_at is not None:
            raise ValueError("Cannot append to a finished execution log")
        self._entries.append(entry)

    def finish(self) -> None:
        if self.finished_at is None:
            self.finished_at = utc_now()

    def count(self, outcome: ExecutionOutcome) -> int:
        return sum(1 for entry in self._entries if entry.outcome == outcome)

    def to_dict(self) -> Dict:
        return {
            "plan_id": self.plan_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "entries": [entry.to_dict() for entry in self._entries]
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "ExecutionLog":
        return cls(
            plan_id=data["plan_id"],
            started_at=datetime.fromisoformat(data["started_at"]),
            finished_at=datetime.fromisoformat(data["finished_at"]) if data.get("finished_at") else None,
            _entries=[ExecutionLogEntry.from_dict(e) for e in data.get("entries", [])]
        )


@dataclass(frozen=True, slots=True)
class UndoLogEntry:
    """Outcome of trying to reverse one execution log entry."""
    action_id: str
    outcome: UndoOutcome
    explanation: str
    timestamp: datetime = field(default_factory=utc_now)


@dataclass
class UndoLog:
    """Entries are in processing order, i.e. reverse execution order."""
    plan_id: str
    timestamp: datetime = field(default_factory=utc_now)
    entries: List[UndoLogEntry] = field(default_factory=list)

    @property
    def restored_count(self) -> int:
        return sum(1 for e in self.entries if e.outcome == UndoOutcome.RESTORED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for e in self.entries if e.outcome == UndoOutcome.SKIPPED)

    @property
    def failed_count(self) -> int:
        return sum(1 for e in self.entries if e.outcome == UndoOutcome.FAILED)

    def summary(self) -> str:
        return (f"{self.restored_count} restored, {self.skipped_count} skipped, "
                f"{self.failed_count} failed")
