"""Applies an approved action plan to the filesystem.

This is the only component that mutates the filesystem on behalf of a plan.
Every action re-checks live state right before acting, never overwrites an
existing path and never halts the plan on a failure.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from ..exceptions import FileOperationError
from ..models.execution import TRASH_MESSAGE, ExecutionLog, ExecutionLogEntry, ExecutionOutcome
from ..models.plan import ActionPlan, ActionType, PlannedAction
from ..utils.paths import PathValidationError, path_exists, validate_file_name
from .trash import TrashBin

logger = logging.getLogger(__name__)

SOURCE_MISSING = "Source file not found at path"
DESTINATION_EXISTS = "Destination already exists"
RENAME_IDENTICAL = "New name is identical to old name"
RENAME_EXISTS = "File with new name already exists"
PLAN_SKIPPED = "Plan explicitly skipped this action"


class ExecutionEngine:
    """Executes plans action by action, in plan order."""

    def __init__(self, trash: TrashBin):
        self.trash = trash

    def execute(self, plan: ActionPlan) -> ExecutionLog:
        """
        Execute every action of ``plan``.

        Args:
            plan: An approved plan

        Returns:
            The finished execution log, one entry per action
        """
        log = ExecutionLog(plan_id=plan.id)
        logger.info(f"Executing plan {plan.id} with {len(plan)} actions")

        for action in plan.actions:
            entry = self._execute_action(action)
            log.append(entry)
            self._log_entry(action, entry)

        log.finish()
        logger.info(
            f"Plan {plan.id} finished: {log.count(ExecutionOutcome.SUCCESS)} succeeded, "
            f"{log.count(ExecutionOutcome.SKIPPED)} skipped, {log.count(ExecutionOutcome.FAILED)} failed"
        )
        return log

    def _execute_action(self, action: PlannedAction) -> ExecutionLogEntry:
        if action.action_type == ActionType.SKIP:
            return self._entry(action, ExecutionOutcome.SKIPPED, message=PLAN_SKIPPED)

        if not path_exists(action.source):
            return self._entry(action, ExecutionOutcome.FAILED, message=SOURCE_MISSING)

        if action.action_type in (ActionType.MOVE, ActionType.COPY):
            return self._transfer(action)
        if action.action_type == ActionType.DELETE:
            return self._delete(action)
        if action.action_type == ActionType.RENAME:
            return self._rename(action)

        return self._entry(action, ExecutionOutcome.FAILED,
                           message=f"Unsupported action type: {action.action_type}")

    def _transfer(self, action: PlannedAction) -> ExecutionLogEntry:
        destination = action.destination
        if destination is None:
            return self._entry(action, ExecutionOutcome.FAILED, message="Action has no destination")
        if path_exists(destination):
            return self._entry(action, ExecutionOutcome.FAILED, destination, DESTINATION_EXISTS)

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if action.action_type == ActionType.MOVE:
                shutil.move(str(action.source), str(destination))
            elif action.source.is_dir() and not action.source.is_symlink():
                shutil.copytree(action.source, destination, symlinks=True)
            else:
                shutil.copy2(action.source, destination, follow_symlinks=False)
        except OSError as e:
            message = str(e)
            # The destination was free before the copy, so anything there now is partial
            if action.action_type == ActionType.COPY and path_exists(destination):
                message += self._discard_partial_copy(destination)
            return self._entry(action, ExecutionOutcome.FAILED, destination, message)

        return self._entry(action, ExecutionOutcome.SUCCESS, destination)

    def _discard_partial_copy(self, destination: Path) -> str:
        try:
            held = self.trash.relocate(destination)
        except FileOperationError as e:
            logger.error(f"Could not clear partial copy at {destination}: {e}")
            return f"; partial copy left at {destination}"
        logger.info(f"Moved partial copy {destination} to {held}")
        return f"; partial copy moved to trash at {held}"

    def _delete(self, action: PlannedAction) -> ExecutionLogEntry:
        try:
            trashed = self.trash.relocate(action.source)
        except FileOperationError as e:
            return self._entry(action, ExecutionOutcome.FAILED, message=str(e))
        return self._entry(action, ExecutionOutcome.SUCCESS, trashed, TRASH_MESSAGE)

    def _rename(self, action: PlannedAction) -> ExecutionLogEntry:
        try:
            new_name = validate_file_name(action.new_name or "")
        except PathValidationError as e:
            return self._entry(action, ExecutionOutcome.FAILED, message=str(e))

        destination = action.source.parent / new_name
        if destination == action.source:
            return self._entry(action, ExecutionOutcome.SKIPPED, destination, RENAME_IDENTICAL)
        if path_exists(destination):
            return self._entry(action, ExecutionOutcome.FAILED, destination, RENAME_EXISTS)

        try:
            action.source.rename(destination)
        except OSError as e:
            return self._entry(action, ExecutionOutcome.FAILED, destination, str(e))

        return self._entry(action, ExecutionOutcome.SUCCESS, destination)

    @staticmethod
    def _entry(action: PlannedAction, outcome: ExecutionOutcome,
               destination: Optional[Path] = None, message: Optional[str] = None) -> ExecutionLogEntry:
        return ExecutionLogEntry(
            action_id=action.id,
            source_path=action.source,
            outcome=outcome,
            destination_path=destination,
            message=message,
            action_type=action.action_type
        )

    @staticmethod
    def _log_entry(action: PlannedAction, entry: ExecutionLogEntry) -> None:
        if entry.outcome == ExecutionOutcome.FAILED:
            logger.warning(f"{action.action_type.value} failed for {entry.source_path}: {entry.message}")
        elif entry.outcome == ExecutionOutcome.SKIPPED:
            logger.info(f"{action.action_type.value} skipped for {entry.source_path}: {entry.message}")
        else:
            logger.debug(f"{action.action_type.value} {entry.source_path} -> {entry.destination_path}")
