"""Folder Organizer

Rule-driven file organization with reviewable plans and best-effort undo.
"""

__version__ = "0.1.0"

from .core import (
    ExecutionEngine,
    HistoryStore,
    Planner,
    Reconciler,
    TrashBin,
    TreeScanner,
    UndoEngine,
    load_rules_file,
    save_rules_file,
)
from .exceptions import (
    ConfigurationError,
    FileOperationError,
    FolderOrganizerError,
    HistoryError,
    RuleValidationError,
)
from .models import (
    ActionPlan,
    ActionType,
    ExecutionLog,
    FileRecord,
    OrganizerConfig,
    Rule,
    RuleCondition,
    RuleOutcome,
)

__all__ = [
    "__version__",
    "ExecutionEngine",
    "HistoryStore",
    "Planner",
    "Reconciler",
    "TrashBin",
    "TreeScanner",
    "UndoEngine",
    "load_rules_file",
    "save_rules_file",
    "ConfigurationError",
    "FileOperationError",
    "FolderOrganizerError",
    "HistoryError",
    "RuleValidationError",
    "ActionPlan",
    "ActionType",
    "ExecutionLog",
    "FileRecord",
    "OrganizerConfig",
    "Rule",
    "RuleCondition",
    "RuleOutcome",
]
