"""Core engine: scanning, planning, execution, undo and history."""

from .executor import ExecutionEngine
from .history import HistoryStore
from .planner import Planner
from .reconciliation import Reconciler
from .rule_schema import load_rules_file, save_rules_file, validate_rule_json
from .scan_bridge import FileSystemEvent, ScanBridge
from .scanner import TreeScanner
from .trash import TrashBin
from .undo import UndoEngine

__all__ = [
    "ExecutionEngine",
    "FileSystemEvent",
    "HistoryStore",
    "Planner",
    "Reconciler",
    "ScanBridge",
    "TrashBin",
    "TreeScanner",
    "UndoEngine",
    "load_rules_file",
    "save_rules_file",
    "validate_rule_json",
]
