"""Data models for folder organizer."""

from .config import OrganizerConfig
from .execution import (
    ExecutionLog,
    ExecutionLogEntry,
    ExecutionOutcome,
    UndoLog,
    UndoLogEntry,
    UndoOutcome,
)
from .file_record import FileRecord, ScanError, ScanResult
from .history import (
    HistoryActionType,
    HistoryItem,
    HistoryOutcome,
    HistorySession,
    UndoItemResult,
    UndoRecord,
    UndoResult,
)
from .plan import ActionPlan, ActionType, PlannedAction
from .rules import ConditionKind, OutcomeKind, Rule, RuleCondition, RuleOutcome

__all__ = [
    "OrganizerConfig",
    "FileRecord", "ScanError", "ScanResult",
    "ConditionKind", "OutcomeKind", "Rule", "RuleCondition", "RuleOutcome",
    "ActionPlan", "ActionType", "PlannedAction",
    "ExecutionLog", "ExecutionLogEntry", "ExecutionOutcome",
    "UndoLog", "UndoLogEntry", "UndoOutcome",
    "HistoryActionType", "HistoryItem", "HistoryOutcome", "HistorySession",
    "UndoItemResult", "UndoRecord", "UndoResult",
]
