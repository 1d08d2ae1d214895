"""Tests for the planner."""

from datetime import datetime
from pathlib import Path

import pytest
from hypothesis import given, settings, strategies as st

from folder_organizer.core.planner import Planner, condition_matches
from folder_organizer.models.file_record import FileRecord
from folder_organizer.models.plan import ActionType
from folder_organizer.models.rules import Rule, RuleCondition, RuleOutcome


ROOT = Path("/data/inbox")


def record(name: str, **attributes) -> FileRecord:
    return FileRecord.for_path(ROOT / name, **attributes)


class TestConditions:
    """Test cases for single-condition matching."""

    def test_extension_is_case_insensitive(self):
        assert condition_matches(record("REPORT.PDF"), RuleCondition.extension("pdf"))
        assert condition_matches(record("report.pdf"), RuleCondition.extension(".PDF"))
        assert not condition_matches(record("report.pdf.txt"), RuleCondition.extension("pdf"))

    def test_name_contains_is_case_insensitive(self):
        assert condition_matches(record("My Invoice.pdf"), RuleCondition.name_contains("invoice"))
        assert not condition_matches(record("receipt.pdf"), RuleCondition.name_contains("invoice"))

    def test_size_must_be_strictly_greater(self):
        condition = RuleCondition.size_greater_than(100)
        assert condition_matches(record("a.bin", size=101), condition)
        assert not condition_matches(record("a.bin", size=100), condition)

    def test_missing_size_never_matches(self):
        assert not condition_matches(record("dir", is_directory=True), RuleCondition.size_greater_than(0))

    def test_dates(self):
        cutoff = datetime(2024, 1, 1)
        old = record("old.txt", created_at=datetime(2023, 6, 1), modified_at=datetime(2023, 6, 1))
        new = record("new.txt", created_at=datetime(2024, 6, 1), modified_at=datetime(2024, 6, 1))
        unknown = record("unknown.txt")

        assert condition_matches(old, RuleCondition.created_before(cutoff))
        assert condition_matches(old, RuleCondition.modified_before(cutoff))
        assert not condition_matches(new, RuleCondition.created_before(cutoff))
        assert not condition_matches(unknown, RuleCondition.created_before(cutoff))
        assert not condition_matches(unknown, RuleCondition.modified_before(cutoff))

    def test_is_directory(self):
        directory = record("photos", is_directory=True)
        assert condition_matches(directory, RuleCondition.is_directory())
        assert not condition_matches(directory, RuleCondition.is_directory(False))
        assert condition_matches(record("a.txt"), RuleCondition.is_directory(False))


class TestPlanner:
    """Test cases for Planner."""

    def test_first_matching_rule_wins(self):
        files = [record("a.pdf"), record("b.txt"), record("photo.jpg")]
        rules = [
            Rule(name="PDFs", conditions=(RuleCondition.extension("pdf"),),
                 outcome=RuleOutcome.move_to(Path("/data/Documents"))),
            Rule(name="Everything", outcome=RuleOutcome.delete()),
            Rule(name="Text", conditions=(RuleCondition.extension("txt"),),
                 outcome=RuleOutcome.copy_to(Path("/data/Text"))),
        ]

        plan = Planner().plan(files, rules)

        assert [a.target.name for a in plan] == ["a.pdf", "b.txt", "photo.jpg"]
        pdf, text, photo = plan.actions
        assert pdf.action_type == ActionType.MOVE
        assert pdf.destination == Path("/data/Documents/a.pdf")
        assert pdf.reason == "Matched rule: 'PDFs'"
        assert pdf.rule_name == "PDFs"
        assert text.action_type == ActionType.DELETE
        assert text.destination is None
        assert photo.action_type == ActionType.DELETE

    def test_unmatched_files_are_omitted(self):
        files = [record("a.pdf"), record("b.txt"), record("photo.jpg")]
        rules = [Rule(name="PDFs", conditions=(RuleCondition.extension("pdf"),),
                      outcome=RuleOutcome.move_to(Path("/data/Documents")))]

        plan = Planner().plan(files, rules)

        assert len(plan) == 1
        assert plan.actions[0].source == ROOT / "a.pdf"

    def test_disabled_rules_are_ignored(self):
        rules = [
            Rule(name="off", outcome=RuleOutcome.delete(), enabled=False),
            Rule(name="on", outcome=RuleOutcome.skip("keep")),
        ]

        plan = Planner().plan([record("a.txt")], rules)

        assert plan.actions[0].rule_name == "on"
        assert plan.actions[0].action_type == ActionType.SKIP
        assert plan.actions[0].reason == "Matched rule: 'on'. Rule logic: keep"

    def test_all_conditions_must_match(self):
        rule = Rule(
            name="big pdf",
            conditions=(RuleCondition.extension("pdf"), RuleCondition.size_greater_than(1000)),
            outcome=RuleOutcome.delete()
        )

        plan = Planner().plan([record("small.pdf", size=10), record("big.pdf", size=5000)], [rule])

        assert [a.target.name for a in plan] == ["big.pdf"]

    def test_relative_destination_resolves_against_file_parent(self):
        rule = Rule(name="docs", outcome=RuleOutcome.move_to(Path("Documents")))

        plan = Planner().plan([FileRecord.for_path(Path("/data/inbox/deep/a.pdf"))], [rule])

        assert plan.actions[0].destination == Path("/data/inbox/deep/Documents/a.pdf")

    def test_relative_destination_resolves_against_base_dir(self):
        rule = Rule(name="docs", outcome=RuleOutcome.move_to(Path("Documents")))

        plan = Planner(base_dir=ROOT).plan([FileRecord.for_path(Path("/data/inbox/deep/a.pdf"))], [rule])

        assert plan.actions[0].destination == Path("/data/inbox/Documents/a.pdf")

    def test_rename_appends_suffix_after_extension(self):
        rule = Rule(name="tag", outcome=RuleOutcome.rename(prefix="2024_", suffix=".bak"))

        plan = Planner().plan([record("notes.txt")], [rule])

        action = plan.actions[0]
        assert action.action_type == ActionType.RENAME
        assert action.new_name == "2024_notes.txt.bak"
        assert action.destination is None

    def test_matching_rules_lists_every_enabled_match(self):
        rules = [
            Rule(name="pdf", conditions=(RuleCondition.extension("pdf"),), outcome=RuleOutcome.delete()),
            Rule(name="any", outcome=RuleOutcome.skip("x")),
            Rule(name="off", outcome=RuleOutcome.delete(), enabled=False),
            Rule(name="txt", conditions=(RuleCondition.extension("txt"),), outcome=RuleOutcome.delete()),
        ]

        matched = Planner().matching_rules(record("a.pdf"), rules)

        assert [rule.name for rule in matched] == ["pdf", "any"]

    def test_plan_summary_and_counts(self):
        rules = [
            Rule(name="pdf", conditions=(RuleCondition.extension("pdf"),), outcome=RuleOutcome.delete()),
            Rule(name="rest", outcome=RuleOutcome.move_to(Path("/elsewhere"))),
        ]

        plan = Planner().plan([record("a.pdf"), record("b.txt"), record("c.txt")], rules)

        counts = plan.counts_by_type()
        assert counts[ActionType.DELETE] == 1
        assert counts[ActionType.MOVE] == 2
        assert counts[ActionType.COPY] == 0
        summary = plan.summary()
        assert "Found 3 items to organize." in summary
        assert "2 will be moved" in summary
        assert "1 will be moved to the trash" in summary

    def test_planning_is_repeatable(self):
        files = [record("a.pdf"), record("b.txt")]
        rules = [Rule(name="pdf", conditions=(RuleCondition.extension("pdf"),), outcome=RuleOutcome.delete())]
        planner = Planner()

        first = planner.plan(files, rules)
        second = planner.plan(files, rules)

        assert first.id != second.id
        assert [(a.source, a.action_type) for a in first] == [(a.source, a.action_type) for a in second]


names = st.text(
    alphabet=st.characters(whitelist_categories=("Ll", "Lu", "Nd"), whitelist_characters="._- "),
    min_size=1,
    max_size=20
).filter(lambda n: n not in (".", ".."))


@settings(max_examples=50)
@given(
    st.lists(names, min_size=0, max_size=30, unique=True),
    st.sampled_from(["pdf", "txt", "jpg"]),
)
def test_plan_has_at_most_one_action_per_file(file_names, extension):
    """Each file appears at most once and only when some rule matches it."""
    files = [record(name) for name in file_names]
    rules = [
        Rule(name="ext", conditions=(RuleCondition.extension(extension),), outcome=RuleOutcome.delete()),
        Rule(name="name", conditions=(RuleCondition.name_contains("a"),), outcome=RuleOutcome.skip("a")),
    ]

    plan = Planner().plan(files, rules)

    sources = [action.source for action in plan]
    assert len(sources) == len(set(sources))
    for file in files:
        expected = file.extension.lower() == extension or "a" in file.name.lower()
        assert bool(plan.actions_for(file.path)) == expected


@pytest.mark.parametrize("name", ["a.pdf", "b", ".hidden"])
def test_rule_without_conditions_matches_everything(name):
    rule = Rule(name="all", outcome=RuleOutcome.delete())
    assert Planner().matches(record(name), rule)
