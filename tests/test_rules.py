"""Tests for rule records and rule-set files."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from folder_organizer.core.rule_schema import (
    load_rules_file,
    save_rules_file,
    validate_rule_file,
    validate_rule_json,
)
from folder_organizer.exceptions import RuleValidationError
from folder_organizer.models.rules import (
    ConditionKind,
    OutcomeKind,
    Rule,
    RuleCondition,
    RuleOutcome,
    enabled_rules,
)


class TestRuleCondition:
    """Test cases for RuleCondition."""

    def test_extension_drops_leading_dot(self):
        assert RuleCondition.extension(".PDF").value == "PDF"

    def test_kind_accepts_string(self):
        condition = RuleCondition("name_contains", "invoice")
        assert condition.kind == ConditionKind.NAME_CONTAINS

    def test_unknown_kind_rejected(self):
        with pytest.raises(RuleValidationError):
            RuleCondition("colour", "red")

    def test_negative_size_rejected(self):
        with pytest.raises(RuleValidationError):
            RuleCondition.size_greater_than(-1)

    def test_empty_name_fragment_rejected(self):
        with pytest.raises(RuleValidationError):
            RuleCondition.name_contains("")

    def test_date_string_parsed(self):
        condition = RuleCondition("modified_before", "2024-01-31T12:00:00")
        assert condition.value == datetime(2024, 1, 31, 12, 0, 0)

    def test_aware_dates_become_naive(self):
        condition = RuleCondition.created_before(datetime(2024, 1, 1, tzinfo=timezone.utc))
        assert condition.value.tzinfo is None

    def test_invalid_date_rejected(self):
        with pytest.raises(RuleValidationError):
            RuleCondition("created_before", "last tuesday")

    def test_is_directory_defaults_to_true(self):
        assert RuleCondition("is_directory").value is True

    def test_round_trip(self):
        condition = RuleCondition.modified_before(datetime(2023, 5, 1))
        assert RuleCondition.from_dict(condition.to_dict()) == condition


class TestRuleOutcome:
    """Test cases for RuleOutcome."""

    def test_move_requires_destination(self):
        with pytest.raises(RuleValidationError):
            RuleOutcome(OutcomeKind.MOVE)

    def test_copy_destination_becomes_path(self):
        outcome = RuleOutcome("copy", destination="Backups")
        assert outcome.destination == Path("Backups")

    def test_rename_fragments_may_not_contain_separators(self):
        with pytest.raises(RuleValidationError):
            RuleOutcome.rename(prefix="../")
        with pytest.raises(RuleValidationError):
            RuleOutcome.rename(suffix="a/b")

    def test_describe(self):
        assert RuleOutcome.delete().describe() == "Move to trash"
        assert RuleOutcome.skip("keep it").describe() == "Skip (keep it)"
        assert RuleOutcome.move_to(Path("Docs")).describe() == "Move to Docs"


class TestRule:
    """Test cases for Rule."""

    def test_name_required(self):
        with pytest.raises(RuleValidationError):
            Rule(name="", outcome=RuleOutcome.delete())

    def test_conditions_are_frozen_into_tuple(self):
        rule = Rule(name="pdf", outcome=RuleOutcome.delete(), conditions=[RuleCondition.extension("pdf")])
        assert isinstance(rule.conditions, tuple)

    def test_round_trip_keeps_id(self):
        rule = Rule(
            name="Archive old PDFs",
            outcome=RuleOutcome.move_to(Path("Archive")),
            conditions=(RuleCondition.extension("pdf"), RuleCondition.modified_before(datetime(2020, 1, 1))),
            description="Old documents",
            enabled=False,
            group="documents",
            tags=("cleanup",)
        )
        assert Rule.from_dict(rule.to_dict()) == rule

    def test_enabled_rules_keeps_order(self):
        a = Rule(name="a", outcome=RuleOutcome.delete())
        b = Rule(name="b", outcome=RuleOutcome.delete(), enabled=False)
        c = Rule(name="c", outcome=RuleOutcome.delete())
        assert enabled_rules([a, b, c]) == (a, c)


class TestRuleSchema:
    """Test cases for rule-set validation and loading."""

    def valid_document(self):
        return {
            "rules": [
                {
                    "name": "PDFs to Documents",
                    "conditions": [{"type": "extension", "value": "pdf"}],
                    "outcome": {"type": "move", "destination": "Documents"}
                },
                {
                    "name": "Big files",
                    "conditions": [{"type": "size_greater_than", "value": 1000}],
                    "outcome": {"type": "skip", "reason": "too big"},
                    "enabled": False
                }
            ]
        }

    def test_valid_document(self):
        assert validate_rule_json(self.valid_document()) == []

    def test_missing_rules_key(self):
        errors = validate_rule_json({})
        assert len(errors) == 1
        assert "rules" in errors[0]

    def test_move_without_destination_reported_with_location(self):
        document = self.valid_document()
        del document["rules"][0]["outcome"]["destination"]

        errors = validate_rule_json(document)

        assert errors
        assert errors[0].startswith("Validation error at rules -> 0 -> outcome")

    def test_every_problem_reported(self):
        document = {
            "rules": [
                {"name": "", "outcome": {"type": "delete"}},
                {"name": "x", "outcome": {"type": "explode"}},
            ]
        }
        assert len(validate_rule_json(document)) == 2

    def test_size_must_be_integer(self):
        document = self.valid_document()
        document["rules"][1]["conditions"][0]["value"] = "big"
        assert validate_rule_json(document)

    def test_load_rules_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps(self.valid_document()))

        rules = load_rules_file(path)

        assert [rule.name for rule in rules] == ["PDFs to Documents", "Big files"]
        assert rules[0].outcome.destination == Path("Documents")
        assert rules[1].enabled is False

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text("{not json")

        with pytest.raises(RuleValidationError) as excinfo:
            load_rules_file(path)
        assert excinfo.value.errors[0].startswith("JSON parsing error")

    def test_load_schema_violation_carries_messages(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"rules": [{"name": "x"}]}))

        with pytest.raises(RuleValidationError) as excinfo:
            load_rules_file(path)
        assert any("outcome" in message for message in excinfo.value.errors)

    def test_semantic_error_reported(self, tmp_path):
        path = tmp_path / "rules.json"
        document = {
            "rules": [{
                "name": "bad date",
                "conditions": [{"type": "created_before", "value": "yesterday"}],
                "outcome": {"type": "delete"}
            }]
        }
        path.write_text(json.dumps(document))

        assert validate_rule_file(path) == [
            "Validation error at rules -> 0: Invalid date for created_before: yesterday"
        ]

    def test_save_then_load(self, tmp_path):
        rules = [
            Rule(name="rename", outcome=RuleOutcome.rename(prefix="old_"),
                 conditions=(RuleCondition.name_contains("draft"),)),
            Rule(name="dirs", outcome=RuleOutcome.skip("folders stay"),
                 conditions=(RuleCondition.is_directory(),)),
        ]
        path = tmp_path / "nested" / "rules.json"

        save_rules_file(rules, path)

        assert validate_rule_file(path) == []
        assert load_rules_file(path) == rules
