"""Persisted history of execution sessions.

Sessions are append-only: an undo attempt adds an ``UndoRecord`` instead of
rewriting the items it reversed. "Where is the file now" is a projection
over the items plus their undo records.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set

from .execution import UndoOutcome, utc_now
from .plan import ActionType


class HistoryActionType(Enum):
    """Action label shown in history."""
    MOVED = "Moved"
    COPIED = "Copied"
    DELETED = "Deleted"
    RENAMED = "Renamed"
    SKIPPED = "Skipped"

    @classmethod
    def from_action_type(cls, action_type: ActionType) -> "HistoryActionType":
        return {
            ActionType.MOVE: cls.MOVED,
            ActionType.COPY: cls.COPIED,
            ActionType.DELETE: cls.DELETED,
            ActionType.RENAME: cls.RENAMED,
            ActionType.SKIP: cls.SKIPPED,
        }[action_type]

    def to_action_type(self) -> ActionType:
        return {
            HistoryActionType.MOVED: ActionType.MOVE,
            HistoryActionType.COPIED: ActionType.COPY,
            HistoryActionType.DELETED: ActionType.DELETE,
            HistoryActionType.RENAMED: ActionType.RENAME,
            HistoryActionType.SKIPPED: ActionType.SKIP,
        }[self]


class HistoryOutcome(Enum):
    """Outcome of the original action."""
    SUCCESS = "Success"
    FAILED = "Failed"
    SKIPPED = "Skipped"


@dataclass(frozen=True, slots=True)
class HistoryItem:
    """A single file operation recorded in history."""
    id: str
    timestamp: datetime
    action_type: HistoryActionType
    file_name: str
    original_path: Path
    current_path: Optional[Path]
    outcome: HistoryOutcome
    rule_name: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "action_type": self.action_type.value,
            "file_name": self.file_name,
            "original_path": str(self.original_path),
            "current_path": str(self.current_path) if self.current_path else None,
            "outcome": self.outcome.value,
            "rule_name": self.rule_name,
            "message": self.message
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "HistoryItem":
        return cls(
            id=data["id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            action_type=HistoryActionType(data["action_type"]),
            file_name=data["file_name"],
            original_path=Path(data["original_path"]),
            current_path=Path(data["current_path"]) if data.get("current_path") else None,
            outcome=HistoryOutcome(data["outcome"]),
            rule_name=data.get("rule_name"),
            message=data.get("message")
        )


@dataclass(frozen=True, slots=True)
class UndoRecord:
    """One undo attempt against one history item."""
    item_id: str
    outcome: UndoOutcome
    message: str
    timestamp: datetime = field(default_factory=utc_now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "timestamp": self.timestamp.isoformat(),
            "outcome": self.outcome.value,
            "message": self.message
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "UndoRecord":
        return cls(
            id=data["id"],
            item_id=data["item_id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            outcome=UndoOutcome(data["outcome"]),
            message=data["message"]
        )


@dataclass
class HistorySession:
    """Groups the history items of a single plan execution."""
    id: str
    timestamp: datetime
    folder_path: Path
    items: List[HistoryItem] = field(default_factory=list)
    undo_records: List[UndoRecord] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for item in self.items if item.outcome == HistoryOutcome.SUCCESS)

    @property
    def failed_count(self) -> int:
        return sum(1 for item in self.items if item.outcome == HistoryOutcome.FAILED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for item in self.items if item.outcome == HistoryOutcome.SKIPPED)

    def get_item(self, item_id: str) -> Optional[HistoryItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def restored_item_ids(self) -> Set[str]:
        return {r.item_id for r in self.undo_records if r.outcome == UndoOutcome.RESTORED}

    def is_item_restored(self, item_id: str) -> bool:
        return item_id in self.restored_item_ids()

    @property
    def is_undone(self) -> bool:
        """True once every successful item has been restored."""
        restored = self.restored_item_ids()
        return bool(self.undo_records) and all(
            item.id in restored for item in self.items
            if item.outcome == HistoryOutcome.SUCCESS
        )

    def current_items(self) -> List[HistoryItem]:
        """Items with ``current_path`` reflecting undo records applied so far."""
        restored = self.restored_item_ids()
        projected = []
        for item in self.items:
            if item.id in restored:
                # Undoing a copy leaves the original where it was.
                projected.append(replace(item, current_path=item.original_path))
            else:
                projected.append(item)
        return projected

    def record_undo(self, record: UndoRecord) -> None:
        self.undo_records.append(record)

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "folder_path": str(self.folder_path),
            "items": [item.to_dict() for item in self.items],
            "undo_records": [record.to_dict() for record in self.undo_records]
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "HistorySession":
        return cls(
            id=data["id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            folder_path=Path(data["folder_path"]),
            items=[HistoryItem.from_dict(item) for item in data.get("items", [])],
            undo_records=[UndoRecord.from_dict(r) for r in data.get("undo_records", [])]
        )


@dataclass(frozen=True, slots=True)
class UndoItemResult:
    """Outcome of undoing one history item."""
    item_id: str
    file_name: str
    outcome: UndoOutcome
    message: str


@dataclass
class UndoResult:
    """Outcome of undoing a whole history session."""
    session_id: str
    details: List[UndoItemResult] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        return len(self.details)

    @property
    def restored_count(self) -> int:
        return sum(1 for d in self.details if d.outcome == UndoOutcome.RESTORED)

    @property
    def skipped_count(self) -> int:
        return sum(1 for d in self.details if d.outcome == UndoOutcome.SKIPPED)

    @property
    def failed_count(self) -> int:
        return sum(1 for d in self.details if d.outcome == UndoOutcome.FAILED)

    @property
    def is_fully_restored(self) -> bool:
        return self.total_items > 0 and self.restored_count == self.total_items

    @property
    def summary(self) -> str:
        if self.is_fully_restored:
            return f"All {self.total_items} files restored successfully"
        parts = []
        if self.restored_count:
            parts.append(f"{self.restored_count} restored")
        if self.skipped_count:
            parts.append(f"{self.skipped_count} skipped")
        if self.failed_count:
            parts.append(f"{self.failed_count} failed")
        return ", ".join(parts) or "Nothing to undo"
