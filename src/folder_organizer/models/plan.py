"""Planned actions and action plans."""

import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Tuple

from .file_record import FileRecord


class ActionType(Enum):
    """Concrete action resolved for one file."""
    MOVE = "move"
    COPY = "copy"
    DELETE = "delete"
    RENAME = "rename"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class PlannedAction:
    """Connects a file record (evidence) to a resolved action (intent)."""
    target: FileRecord
    action_type: ActionType
    reason: str
    destination: Optional[Path] = None  # move/copy: full destination path
    new_name: Optional[str] = None  # rename only
    rule_name: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def source(self) -> Path:
        return self.target.path


@dataclass(frozen=True)
class ActionPlan:
    """An immutable, reviewable list of actions.

    Nothing happens to the filesystem until the plan is handed to the
    execution engine; re-planning yields a new plan.
    """
    actions: Tuple[PlannedAction, ...] = ()
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(self, "actions", tuple(self.actions))

    def __len__(self) -> int:
        return len(self.actions)

    def __iter__(self):
        return iter(self.actions)

    @property
    def total_actions(self) -> int:
        return len(self.actions)

    def counts_by_type(self) -> Dict[ActionType, int]:
        counts = Counter(action.action_type for action in self.actions)
        return {action_type: counts.get(action_type, 0) for action_type in ActionType}

    def actions_for(self, path: Path) -> Tuple[PlannedAction, ...]:
        return tuple(a for a in self.actions if a.target.path == Path(path))

    def summary(self) -> str:
        """A plain-language summary for the approval prompt."""
        counts = self.counts_by_type()
        lines = [f"Found {self.total_actions} items to organize."]

        if counts[ActionType.MOVE]:
            lines.append(f"• {counts[ActionType.MOVE]} will be moved to new locations.")
        if counts[ActionType.COPY]:
            lines.append(f"• {counts[ActionType.COPY]} will be copied.")
        if counts[ActionType.RENAME]:
            lines.append(f"• {counts[ActionType.RENAME]} will be renamed.")
        if counts[ActionType.DELETE]:
            lines.append(f"• {counts[ActionType.DELETE]} will be moved to the trash (recoverable).")
        if counts[ActionType.SKIP]:
            lines.append(f"• {counts[ActionType.SKIP]} will be skipped.")

        lines.append("Nothing changes on disk until the plan is approved.")
        return "\n".join(lines)
