"""Persistent history of executed plans with session- and item-level undo.

The store is the only writer of its JSON file. Every change rewrites the
whole file atomically (temporary file in the same directory, then
``os.replace``), so readers never see a half-written history.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional

from ..domain.result import Failure, Result, Success
from ..exceptions import HistoryError
from ..models.execution import ExecutionLog, ExecutionLogEntry, ExecutionOutcome, UndoOutcome
from ..models.history import (
    HistoryActionType,
    HistoryItem,
    HistoryOutcome,
    HistorySession,
    UndoItemResult,
    UndoRecord,
    UndoResult,
)
from ..models.plan import ActionPlan
from ..utils.paths import path_exists
from .reconciliation import Reconciler

logger = logging.getLogger(__name__)

_OUTCOMES = {
    ExecutionOutcome.SUCCESS: HistoryOutcome.SUCCESS,
    ExecutionOutcome.FAILED: HistoryOutcome.FAILED,
    ExecutionOutcome.SKIPPED: HistoryOutcome.SKIPPED,
}


def history_label(entry: ExecutionLogEntry) -> HistoryActionType:
    """Action label for a log entry, guessed from its shape when untyped."""
    if entry.action_type is not None:
        return HistoryActionType.from_action_type(entry.action_type)
    if entry.outcome == ExecutionOutcome.SKIPPED:
        return HistoryActionType.SKIPPED
    if entry.message and "trash" in entry.message.lower():
        return HistoryActionType.DELETED
    if entry.destination_path is not None and entry.destination_path.parent == entry.source_path.parent:
        return HistoryActionType.RENAMED
    return HistoryActionType.MOVED


class HistoryStore:
    """JSON-file backed list of sessions, newest first."""

    def __init__(self, history_file: Path, reconciler: Reconciler):
        self.history_file = Path(history_file)
        self.reconciler = reconciler
        self._lock = threading.RLock()

    def record_session(self, log: ExecutionLog, folder_path: Path,
                       plan: Optional[ActionPlan] = None) -> HistorySession:
        """
        Translate an execution log into a persisted session.

        Args:
            log: The finished execution log
            folder_path: The folder the plan was built for
            plan: The executed plan, used to attach rule names to items

        Returns:
            The stored session (its id is the plan id)
        """
        rule_names: Dict[str, Optional[str]] = {}
        if plan is not None:
            rule_names = {action.id: action.rule_name for action in plan.actions}

        items = [
            HistoryItem(
                id=entry.action_id,
                timestamp=entry.timestamp,
                action_type=history_label(entry),
                file_name=entry.source_path.name,
                original_path=entry.source_path,
                current_path=entry.destination_path if entry.outcome == ExecutionOutcome.SUCCESS else None,
                outcome=_OUTCOMES[entry.outcome],
                rule_name=rule_names.get(entry.action_id),
                message=entry.message
            )
            for entry in log.entries
        ]
        session = HistorySession(
            id=log.plan_id,
            timestamp=log.started_at,
            folder_path=Path(folder_path),
            items=items
        )

        with self._lock:
            sessions = [s for s in self._load() if s.id != session.id]
            sessions.insert(0, session)
            self._save(sessions)

        logger.info(f"Recorded session {session.id} with {len(items)} items")
        return session

    def list_sessions(self) -> List[HistorySession]:
        with self._lock:
            return self._load()

    def get_session(self, session_id: str) -> Optional[HistorySession]:
        with self._lock:
            return self._find(self._load(), session_id)

    def delete_session(self, session_id: str) -> Result[None, str]:
        with self._lock:
            sessions = self._load()
            remaining = [s for s in sessions if s.id != session_id]
            if len(remaining) == len(sessions):
                return Failure(f"Session {session_id} not found")
            self._save(remaining)
        logger.info(f"Deleted session {session_id}")
        return Success(None)

    def clear(self) -> None:
        with self._lock:
            self._save([])
        logger.info("Cleared history")

    @staticmethod
    def file_exists(path: Optional[Path]) -> bool:
        """Whether anything currently occupies ``path``. ``None`` never does."""
        if path is None:
            return False
        return path_exists(Path(path))

    def undo_session(self, session_id: str) -> Result[UndoResult, str]:
        """Undo every item of a session, newest first."""
        with self._lock:
            sessions = self._load()
            session = self._find(sessions, session_id)
            if session is None:
                return Failure(f"Session {session_id} not found")

            result = UndoResult(session_id=session_id)
            for item in reversed(session.items):
                result.details.append(self._undo_item(session, item))
            self._save(sessions)

        logger.info(f"Undo of session {session_id}: {result.summary}")
        return Success(result)

    def undo_item(self, session_id: str, item_id: str) -> Result[UndoItemResult, str]:
        """Undo a single item of a session."""
        with self._lock:
            sessions = self._load()
            session = self._find(sessions, session_id)
            if session is None:
                return Failure(f"Session {session_id} not found")
            item = session.get_item(item_id)
            if item is None:
                return Failure(f"Item {item_id} not found in session {session_id}")

            detail = self._undo_item(session, item)
            self._save(sessions)

        logger.info(f"Undo of item {item_id}: {detail.outcome.value} ({detail.message})")
        return Success(detail)

    def _undo_item(self, session: HistorySession, item: HistoryItem) -> UndoItemResult:
        if item.outcome != HistoryOutcome.SUCCESS:
            return UndoItemResult(item.id, item.file_name, UndoOutcome.SKIPPED,
                                  "Original action did not succeed; nothing to undo.")
        if session.is_item_restored(item.id):
            return UndoItemResult(item.id, item.file_name, UndoOutcome.SKIPPED, "Already restored")

        reconciled = self.reconciler.reconcile(
            item.original_path,
            item.current_path,
            item.action_type.to_action_type(),
            item.action_type == HistoryActionType.DELETED
        )
        session.record_undo(UndoRecord(item_id=item.id, outcome=reconciled.outcome, message=reconciled.message))
        return UndoItemResult(item.id, item.file_name, reconciled.outcome, reconciled.message)

    @staticmethod
    def _find(sessions: List[HistorySession], session_id: str) -> Optional[HistorySession]:
        for session in sessions:
            if session.id == session_id:
                return session
        return None

    def _load(self) -> List[HistorySession]:
        if not self.history_file.exists():
            return []
        try:
            with open(self.history_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            if not isinstance(data, list):
                raise ValueError("history file must contain a list of sessions")
            return [HistorySession.from_dict(s) for s in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Could not read history file {self.history_file}, treating it as empty: {e}")
            return []

    def _save(self, sessions: List[HistorySession]) -> None:
        directory = self.history_file.parent
        tmp_path = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".history-", suffix=".tmp")
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump([s.to_dict() for s in sessions], f, indent=2)
            os.replace(tmp_path, self.history_file)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise HistoryError(f"Failed to write history file {self.history_file}: {e}") from e
