"""Best-effort reversal of an execution log."""

import logging

from ..models.execution import ExecutionLog, ExecutionOutcome, UndoLog, UndoLogEntry, UndoOutcome
from .reconciliation import Reconciler

logger = logging.getLogger(__name__)

NOT_SUCCEEDED = "Original action did not succeed; nothing to undo."


class UndoEngine:
    """Reverses successful log entries, newest first.

    Only the execution log is consulted; present filesystem state decides
    what each reversal does. Running it twice over the same log is safe:
    the second pass only produces skipped entries.
    """

    def __init__(self, reconciler: Reconciler):
        self.reconciler = reconciler

    def undo(self, log: ExecutionLog) -> UndoLog:
        undo_log = UndoLog(plan_id=log.plan_id)

        for entry in reversed(log.entries):
            if entry.outcome != ExecutionOutcome.SUCCESS:
                undo_log.entries.append(
                    UndoLogEntry(entry.action_id, UndoOutcome.SKIPPED, NOT_SUCCEEDED)
                )
                continue

            result = self.reconciler.reconcile(
                entry.source_path,
                entry.destination_path,
                entry.action_type,
                entry.is_trash_relocation
            )
            undo_log.entries.append(UndoLogEntry(entry.action_id, result.outcome, result.message))

            if result.outcome == UndoOutcome.FAILED:
                logger.warning(f"Undo failed for {entry.source_path}: {result.message}")
            else:
                logger.debug(f"Undo {result.outcome.value} for {entry.source_path}: {result.message}")

        logger.info(f"Undo of plan {log.plan_id}: {undo_log.summary()}")
        return undo_log
