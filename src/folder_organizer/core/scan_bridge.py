"""Tracks how stale a finished scan has become as change events arrive.

Change events are hints, not facts: they may arrive late, duplicated or
coalesced, and the file they name may already be gone. The bridge therefore
never rescans or touches the filesystem. It only keeps a staleness level per
watched root and, when a root turns stale, suggests a rescan through a
callback.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..models.execution import utc_now

logger = logging.getLogger(__name__)


class ChangeType(Enum):
    """Kind of change a filesystem event reports."""
    CREATED = "created"
    REMOVED = "removed"
    MODIFIED = "modified"
    RENAMED = "renamed"


class StalenessLevel(Enum):
    """How far scan data for a root can still be trusted."""
    FRESH = "fresh"
    POSSIBLY_STALE = "possibly_stale"
    STALE = "stale"


class SuggestionUrgency(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class FileSystemEvent:
    """A normalized change notification for one path."""
    path: Path
    change_type: ChangeType
    timestamp: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))
        object.__setattr__(self, "change_type", ChangeType(self.change_type))


@dataclass
class ScanStalenessState:
    """Staleness bookkeeping for one watched root."""
    root: Path
    last_scan_time: Optional[datetime] = None
    pending_event_count: int = 0
    last_event_time: Optional[datetime] = None
    level: StalenessLevel = StalenessLevel.STALE

    def to_dict(self) -> Dict:
        return {
            "root": str(self.root),
            "last_scan_time": self.last_scan_time.isoformat() if self.last_scan_time else None,
            "pending_event_count": self.pending_event_count,
            "last_event_time": self.last_event_time.isoformat() if self.last_event_time else None,
            "level": self.level.value,
        }


@dataclass(frozen=True)
class ScanSuggestion:
    """A recommendation to rescan ``root``. Acting on it is up to the caller."""
    root: Path
    reason: str
    urgency: SuggestionUrgency
    timestamp: datetime = field(default_factory=utc_now)


SuggestionCallback = Callable[[ScanSuggestion], None]


class ScanBridge:
    """Turns change events into staleness levels and rescan suggestions."""

    EVENT_COUNT_THRESHOLD = 10
    DESTRUCTIVE_EVENT_THRESHOLD = 3
    HIGH_URGENCY_THRESHOLD = 20
    STALE_AFTER = timedelta(minutes=5)
    SUGGESTION_COOLDOWN = timedelta(seconds=60)

    def __init__(self, on_suggestion: Optional[SuggestionCallback] = None,
                 clock: Callable[[], datetime] = utc_now):
        """
        Initialize the bridge.

        Args:
            on_suggestion: Called with every rescan suggestion
            clock: Source of the current time, as an aware datetime
        """
        self.on_suggestion = on_suggestion
        self._clock = clock
        self._lock = threading.Lock()
        self._states: Dict[Path, ScanStalenessState] = {}
        self._last_suggestion: Dict[Path, datetime] = {}

    def register_root(self, root: Path) -> None:
        """Start tracking ``root``. Registering a known root keeps its state."""
        root = _normalize(root)
        with self._lock:
            if root not in self._states:
                self._states[root] = ScanStalenessState(root=root)
                logger.debug(f"Tracking staleness of {root}")

    def unregister_root(self, root: Path) -> None:
        root = _normalize(root)
        with self._lock:
            self._states.pop(root, None)
            self._last_suggestion.pop(root, None)

    @property
    def roots(self) -> List[Path]:
        with self._lock:
            return sorted(self._states)

    def handle(self, event: FileSystemEvent) -> Optional[ScanSuggestion]:
        """
        Account for one change event.

        Events outside every registered root are ignored. When several roots
        contain the path, the innermost one is updated.

        Returns:
            The suggestion that was emitted, if any
        """
        with self._lock:
            root = self._find_root(_normalize(event.path))
            if root is None:
                return None

            state = self._states[root]
            state.pending_event_count += 1
            state.last_event_time = event.timestamp
            state.level = self._compute_level(state, event.change_type)
            suggestion = self._evaluate(root, state, event)

        if suggestion is not None:
            logger.info(f"Suggesting rescan of {root}: {suggestion.reason}")
            if self.on_suggestion:
                self.on_suggestion(suggestion)
        return suggestion

    def mark_scan_completed(self, root: Path, at: Optional[datetime] = None) -> None:
        """Reset a registered root to fresh after a completed scan."""
        root = _normalize(root)
        with self._lock:
            state = self._states.get(root)
            if state is None:
                return
            state.last_scan_time = at or self._clock()
            state.pending_event_count = 0
            state.last_event_time = None
            state.level = StalenessLevel.FRESH
        logger.debug(f"Scan of {root} completed; marked fresh")

    def should_suggest_rescan(self, root: Path) -> bool:
        state = self.staleness(root)
        return state is not None and state.level == StalenessLevel.STALE

    def staleness(self, root: Path) -> Optional[ScanStalenessState]:
        """A snapshot of the root's state, or ``None`` for unknown roots."""
        with self._lock:
            state = self._states.get(_normalize(root))
            return replace(state) if state is not None else None

    def _find_root(self, path: Path) -> Optional[Path]:
        containing = [root for root in self._states if root == path or root in path.parents]
        return max(containing, key=lambda root: len(root.parts), default=None)

    def _compute_level(self, state: ScanStalenessState, change_type: ChangeType) -> StalenessLevel:
        if state.last_scan_time is None:
            return StalenessLevel.STALE
        if self._clock() - state.last_scan_time > self.STALE_AFTER:
            return StalenessLevel.STALE
        if state.pending_event_count >= self.EVENT_COUNT_THRESHOLD:
            return StalenessLevel.STALE
        # Removals and renames tolerate fewer pending events
        if change_type in (ChangeType.REMOVED, ChangeType.RENAMED):
            if state.pending_event_count >= self.DESTRUCTIVE_EVENT_THRESHOLD:
                return StalenessLevel.STALE
            return StalenessLevel.POSSIBLY_STALE
        if state.pending_event_count > 0:
            return StalenessLevel.POSSIBLY_STALE
        return StalenessLevel.FRESH

    def _evaluate(self, root: Path, state: ScanStalenessState,
                  event: FileSystemEvent) -> Optional[ScanSuggestion]:
        # Possibly stale is only worth knowing about, not worth a prompt
        if state.level != StalenessLevel.STALE:
            return None

        now = self._clock()
        last = self._last_suggestion.get(root)
        if last is not None and now - last < self.SUGGESTION_COOLDOWN:
            return None

        self._last_suggestion[root] = now
        return ScanSuggestion(
            root=root,
            reason=self._reason(state, event, now),
            urgency=self._urgency(state),
            timestamp=now
        )

    def _reason(self, state: ScanStalenessState, event: FileSystemEvent, now: datetime) -> str:
        if state.pending_event_count >= self.EVENT_COUNT_THRESHOLD:
            return f"{state.pending_event_count} changes detected since last scan."

        if state.last_scan_time is not None:
            minutes = int((now - state.last_scan_time).total_seconds() // 60)
            if minutes > 5:
                return f"Last scan was {minutes} minutes ago and changes have occurred."

        return {
            ChangeType.REMOVED: "A file was deleted. Scan data may be outdated.",
            ChangeType.RENAMED: "A file was renamed. Scan data may be outdated.",
            ChangeType.CREATED: "New files detected. Consider rescanning.",
            ChangeType.MODIFIED: "Files have been modified since last scan.",
        }[event.change_type]

    def _urgency(self, state: ScanStalenessState) -> SuggestionUrgency:
        if state.pending_event_count >= self.HIGH_URGENCY_THRESHOLD:
            return SuggestionUrgency.HIGH
        if state.pending_event_count >= self.EVENT_COUNT_THRESHOLD:
            return SuggestionUrgency.MEDIUM
        return SuggestionUrgency.LOW


def _normalize(path: Path) -> Path:
    return Path(path).expanduser().absolute()
