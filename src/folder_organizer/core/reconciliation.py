"""Reverses a recorded file operation against present filesystem state.

The filesystem may have changed since the original action ran, so nothing
here trusts the record alone: each case is decided by what exists right now.
An occupied path is never overwritten and no method raises.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..exceptions import FileOperationError
from ..models.execution import UndoOutcome
from ..models.plan import ActionType
from ..utils.paths import path_exists
from .trash import TrashBin

logger = logging.getLogger(__name__)

NOT_DETERMINED = "Action type could not be determined; nothing to undo."


@dataclass(frozen=True, slots=True)
class Reconciliation:
    """Outcome of one reversal attempt."""
    outcome: UndoOutcome
    message: str


class Reconciler:
    """Shared reversal logic for the undo engine and the history store."""

    def __init__(self, trash: TrashBin):
        self.trash = trash

    def reconcile(self, source: Path, destination: Optional[Path],
                  action_type: Optional[ActionType] = None,
                  trash_relocation: bool = False) -> Reconciliation:
        """
        Reverse one successful action.

        Args:
            source: Where the entry was before the action
            destination: Where the action put it (holding path for deletes)
            action_type: Recorded action type, None for untyped records
            trash_relocation: Whether the action moved the entry to the trash
        """
        if trash_relocation:
            if destination is None:
                return Reconciliation(UndoOutcome.SKIPPED, "Trash location was not recorded")
            return self.restore_trashed(source, destination)
        if destination is None:
            return Reconciliation(UndoOutcome.SKIPPED, NOT_DETERMINED)
        return self.reverse_transfer(source, destination, action_type)

    def restore_trashed(self, original: Path, trashed: Path) -> Reconciliation:
        """Move an entry back out of the holding area."""
        if not path_exists(trashed):
            return Reconciliation(UndoOutcome.SKIPPED, "Item is no longer in the trash")
        if path_exists(original):
            return Reconciliation(UndoOutcome.SKIPPED, "Original location is occupied; not overwriting")
        return self._move_back(trashed, original, "Restored from trash")

    def reverse_transfer(self, source: Path, destination: Path,
                         action_type: Optional[ActionType] = None) -> Reconciliation:
        """
        Reverse a move, copy or rename.

        Both paths present means a copy (or an untyped record that looks like
        one): the copy goes to the trash. A recorded move or rename with both
        paths present is left alone because the original path is occupied.
        """
        source_exists = path_exists(source)
        destination_exists = path_exists(destination)

        if source_exists and destination_exists:
            if action_type in (ActionType.MOVE, ActionType.RENAME):
                return Reconciliation(UndoOutcome.SKIPPED, "Original location is occupied; not overwriting")
            try:
                self.trash.relocate(destination)
            except FileOperationError as e:
                return Reconciliation(UndoOutcome.FAILED, str(e))
            logger.debug(f"Removed copy {destination}")
            return Reconciliation(UndoOutcome.RESTORED, "Removed copy (moved to trash)")

        if destination_exists:
            return self._move_back(destination, source, "Moved back to original location")

        if source_exists:
            return Reconciliation(UndoOutcome.SKIPPED, "File is already at its original location")

        return Reconciliation(UndoOutcome.SKIPPED, "File no longer exists at either location")

    @staticmethod
    def _move_back(current: Path, original: Path, message: str) -> Reconciliation:
        try:
            original.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(current), str(original))
        except OSError as e:
            logger.warning(f"Failed to move {current} back to {original}: {e}")
            return Reconciliation(UndoOutcome.FAILED, str(e))
        logger.debug(f"Moved {current} back to {original}")
        return Reconciliation(UndoOutcome.RESTORED, message)
