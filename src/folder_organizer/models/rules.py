"""Declarative rule records.

A rule pairs an AND-combined list of conditions with one outcome. Rules are
pure data: the planner decides what they mean for a particular file.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

from ..exceptions import RuleValidationError
from ..utils.paths import PathValidationError, validate_name_fragment


class ConditionKind(Enum):
    """What a condition inspects on a file record."""
    EXTENSION = "extension"
    NAME_CONTAINS = "name_contains"
    SIZE_GREATER_THAN = "size_greater_than"
    CREATED_BEFORE = "created_before"
    MODIFIED_BEFORE = "modified_before"
    IS_DIRECTORY = "is_directory"


class OutcomeKind(Enum):
    """What a matching rule asks for."""
    MOVE = "move"
    COPY = "copy"
    DELETE = "delete"
    RENAME = "rename"
    SKIP = "skip"


_DATE_KINDS = (ConditionKind.CREATED_BEFORE, ConditionKind.MODIFIED_BEFORE)


def as_naive_local(value: datetime) -> datetime:
    """Scanned timestamps are naive local time; bring aware values in line."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


@dataclass(frozen=True, slots=True)
class RuleCondition:
    """A single condition of a rule."""
    kind: ConditionKind
    value: Any = None

    def __post_init__(self) -> None:
        if isinstance(self.kind, str):
            try:
                object.__setattr__(self, "kind", ConditionKind(self.kind.lower()))
            except ValueError:
                raise RuleValidationError(f"Unknown condition type: {self.kind}")

        if self.kind == ConditionKind.EXTENSION:
            if not isinstance(self.value, str):
                raise RuleValidationError("Extension condition needs a string value")
            object.__setattr__(self, "value", self.value.lstrip('.'))
        elif self.kind == ConditionKind.NAME_CONTAINS:
            if not isinstance(self.value, str) or not self.value:
                raise RuleValidationError("Name condition needs a non-empty string value")
        elif self.kind == ConditionKind.SIZE_GREATER_THAN:
            if isinstance(self.value, bool) or not isinstance(self.value, int) or self.value < 0:
                raise RuleValidationError("Size condition needs a non-negative integer")
        elif self.kind in _DATE_KINDS:
            value = self.value
            if isinstance(value, str):
                try:
                    value = datetime.fromisoformat(value)
                except ValueError:
                    raise RuleValidationError(f"Invalid date for {self.kind.value}: {self.value}")
            if not isinstance(value, datetime):
                raise RuleValidationError(f"{self.kind.value} needs a date value")
            object.__setattr__(self, "value", as_naive_local(value))
        elif self.kind == ConditionKind.IS_DIRECTORY:
            object.__setattr__(self, "value", True if self.value is None else bool(self.value))

    @classmethod
    def extension(cls, ext: str) -> "RuleCondition":
        return cls(ConditionKind.EXTENSION, ext)

    @classmethod
    def name_contains(cls, text: str) -> "RuleCondition":
        return cls(ConditionKind.NAME_CONTAINS, text)

    @classmethod
    def size_greater_than(cls, size: int) -> "RuleCondition":
        return cls(ConditionKind.SIZE_GREATER_THAN, size)

    @classmethod
    def created_before(cls, when: datetime) -> "RuleCondition":
        return cls(ConditionKind.CREATED_BEFORE, when)

    @classmethod
    def modified_before(cls, when: datetime) -> "RuleCondition":
        return cls(ConditionKind.MODIFIED_BEFORE, when)

    @classmethod
    def is_directory(cls, expected: bool = True) -> "RuleCondition":
        return cls(ConditionKind.IS_DIRECTORY, expected)

    def to_dict(self) -> Dict:
        value = self.value.isoformat() if isinstance(self.value, datetime) else self.value
        return {"type": self.kind.value, "value": value}

    @classmethod
    def from_dict(cls, data: Dict) -> "RuleCondition":
        return cls(kind=data["type"], value=data.get("value"))


@dataclass(frozen=True, slots=True)
class RuleOutcome:
    """The desired intent when a rule matches; does not perform anything."""
    kind: OutcomeKind
    destination: Optional[Path] = None
    prefix: Optional[str] = None
    suffix: Optional[str] = None
    reason: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.kind, str):
            try:
                object.__setattr__(self, "kind", OutcomeKind(self.kind.lower()))
            except ValueError:
                raise RuleValidationError(f"Unknown outcome type: {self.kind}")

        if self.kind in (OutcomeKind.MOVE, OutcomeKind.COPY):
            if not self.destination:
                raise RuleValidationError(f"{self.kind.value} outcome needs a destination")
            object.__setattr__(self, "destination", Path(self.destination))

        if self.kind == OutcomeKind.RENAME:
            for fragment in (self.prefix, self.suffix):
                if fragment is None:
                    continue
                try:
                    validate_name_fragment(fragment)
                except PathValidationError as e:
                    raise RuleValidationError(str(e))

    @classmethod
    def move_to(cls, destination: Path) -> "RuleOutcome":
        return cls(OutcomeKind.MOVE, destination=destination)

    @classmethod
    def copy_to(cls, destination: Path) -> "RuleOutcome":
        return cls(OutcomeKind.COPY, destination=destination)

    @classmethod
    def delete(cls) -> "RuleOutcome":
        return cls(OutcomeKind.DELETE)

    @classmethod
    def rename(cls, prefix: Optional[str] = None, suffix: Optional[str] = None) -> "RuleOutcome":
        return cls(OutcomeKind.RENAME, prefix=prefix, suffix=suffix)

    @classmethod
    def skip(cls, reason: str) -> "RuleOutcome":
        return cls(OutcomeKind.SKIP, reason=reason)

    def describe(self) -> str:
        """Short human-readable description, e.g. for plan tables."""
        if self.kind == OutcomeKind.MOVE:
            return f"Move to {self.destination}"
        if self.kind == OutcomeKind.COPY:
            return f"Copy to {self.destination}"
        if self.kind == OutcomeKind.DELETE:
            return "Move to trash"
        if self.kind == OutcomeKind.RENAME:
            return f"Rename ({self.prefix or ''}…{self.suffix or ''})"
        return f"Skip ({self.reason})" if self.reason else "Skip"

    def to_dict(self) -> Dict:
        data: Dict[str, Any] = {"type": self.kind.value}
        if self.destination is not None:
            data["destination"] = str(self.destination)
        if self.prefix is not None:
            data["prefix"] = self.prefix
        if self.suffix is not None:
            data["suffix"] = self.suffix
        if self.reason is not None:
            data["reason"] = self.reason
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "RuleOutcome":
        return cls(
            kind=data["type"],
            destination=Path(data["destination"]) if data.get("destination") else None,
            prefix=data.get("prefix"),
            suffix=data.get("suffix"),
            reason=data.get("reason")
        )


@dataclass(frozen=True, slots=True)
class Rule:
    """A complete organization rule: conditions plus one outcome."""
    name: str
    outcome: RuleOutcome
    conditions: Tuple[RuleCondition, ...] = ()
    description: str = ""
    enabled: bool = True
    group: Optional[str] = None
    tags: Tuple[str, ...] = ()
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        if not self.name:
            raise RuleValidationError("Rule name must not be empty")
        object.__setattr__(self, "conditions", tuple(self.conditions))
        object.__setattr__(self, "tags", tuple(self.tags))

    def to_dict(self) -> Dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "conditions": [condition.to_dict() for condition in self.conditions],
            "outcome": self.outcome.to_dict(),
            "enabled": self.enabled,
            "tags": list(self.tags)
        }
        if self.group is not None:
            data["group"] = self.group
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "Rule":
        kwargs = dict(
            name=data["name"],
            outcome=RuleOutcome.from_dict(data["outcome"]),
            conditions=tuple(RuleCondition.from_dict(c) for c in data.get("conditions", [])),
            description=data.get("description", ""),
            enabled=data.get("enabled", True),
            group=data.get("group"),
            tags=tuple(data.get("tags", []))
        )
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)


def enabled_rules(rules: Sequence[Rule]) -> Tuple[Rule, ...]:
    """Keep declaration order, drop disabled rules."""
    return tuple(rule for rule in rules if rule.enabled)
