"""Turns scanned file records and rules into a reviewable action plan.

Planning is pure: it never touches the filesystem, so the same inputs always
produce the same actions (only the generated ids differ).
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ..models.file_record import FileRecord
from ..models.plan import ActionPlan, ActionType, PlannedAction
from ..models.rules import (
    ConditionKind,
    OutcomeKind,
    Rule,
    RuleCondition,
    as_naive_local,
    enabled_rules,
)

logger = logging.getLogger(__name__)

_OUTCOME_ACTIONS = {
    OutcomeKind.MOVE: ActionType.MOVE,
    OutcomeKind.COPY: ActionType.COPY,
    OutcomeKind.DELETE: ActionType.DELETE,
    OutcomeKind.RENAME: ActionType.RENAME,
    OutcomeKind.SKIP: ActionType.SKIP,
}


def condition_matches(file: FileRecord, condition: RuleCondition) -> bool:
    """Evaluate a single condition against a file record."""
    kind = condition.kind
    value = condition.value

    if kind == ConditionKind.EXTENSION:
        return file.extension.lower() == value.lower()
    if kind == ConditionKind.NAME_CONTAINS:
        return value.lower() in file.name.lower()
    if kind == ConditionKind.SIZE_GREATER_THAN:
        return file.size is not None and file.size > value
    if kind == ConditionKind.CREATED_BEFORE:
        return file.created_at is not None and as_naive_local(file.created_at) < value
    if kind == ConditionKind.MODIFIED_BEFORE:
        return file.modified_at is not None and as_naive_local(file.modified_at) < value
    if kind == ConditionKind.IS_DIRECTORY:
        return file.is_directory == value

    return False


class Planner:
    """First-match rule evaluation over scanned files."""

    def __init__(self, base_dir: Optional[Path] = None):
        """
        Args:
            base_dir: Directory that relative rule destinations resolve
                against; when omitted they resolve against each file's parent
        """
        self.base_dir = Path(base_dir) if base_dir is not None else None

    def matches(self, file: FileRecord, rule: Rule) -> bool:
        """All conditions must hold; a rule without conditions matches everything."""
        return all(condition_matches(file, condition) for condition in rule.conditions)

    def matching_rules(self, file: FileRecord, rules: Sequence[Rule]) -> List[Rule]:
        """Every enabled rule that matches ``file``, in declaration order."""
        return [rule for rule in enabled_rules(rules) if self.matches(file, rule)]

    def plan(self, files: Iterable[FileRecord], rules: Sequence[Rule]) -> ActionPlan:
        """
        Build a plan with at most one action per file.

        Args:
            files: Scanned file records
            rules: Rules in priority order; disabled rules are ignored

        Returns:
            A new ActionPlan; files no rule matches are left out
        """
        active = enabled_rules(rules)
        actions = []
        scanned = 0

        for file in files:
            scanned += 1
            rule = next((r for r in active if self.matches(file, r)), None)
            if rule is None:
                continue
            actions.append(self._resolve(file, rule))

        plan = ActionPlan(actions=tuple(actions))
        logger.info(f"Planned {len(plan)} actions for {scanned} files using {len(active)} rules")
        return plan

    def _resolve(self, file: FileRecord, rule: Rule) -> PlannedAction:
        outcome = rule.outcome
        action_type = _OUTCOME_ACTIONS[outcome.kind]
        reason = f"Matched rule: '{rule.name}'"
        destination = None
        new_name = None

        if action_type in (ActionType.MOVE, ActionType.COPY):
            destination = self._resolve_directory(outcome.destination, file) / file.name
        elif action_type == ActionType.RENAME:
            # The suffix goes after the whole name, extension included
            new_name = f"{outcome.prefix or ''}{file.name}{outcome.suffix or ''}"
        elif action_type == ActionType.SKIP:
            reason = f"{reason}. Rule logic: {outcome.reason or 'skip'}"

        return PlannedAction(
            target=file,
            action_type=action_type,
            reason=reason,
            destination=destination,
            new_name=new_name,
            rule_name=rule.name
        )

    def _resolve_directory(self, directory: Path, file: FileRecord) -> Path:
        directory = Path(directory).expanduser()
        if directory.is_absolute():
            return directory
        anchor = self.base_dir if self.base_dir is not None else file.path.parent
        return anchor / directory
