"""JSON schema, validation and loading for rule-set files."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

import jsonschema

from ..exceptions import RuleValidationError
from ..models.rules import ConditionKind, OutcomeKind, Rule

logger = logging.getLogger(__name__)

# JSON Schema for rule-set files
RULE_SCHEMA = {
    "type": "object",
    "properties": {
        "rules": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "outcome"],
                "properties": {
                    "id": {
                        "type": "string",
                        "minLength": 1
                    },
                    "name": {
                        "type": "string",
                        "minLength": 1,
                        "description": "Display name of the rule"
                    },
                    "description": {
                        "type": "string"
                    },
                    "conditions": {
                        "type": "array",
                        "description": "All conditions must match (AND)",
                        "items": {
                            "type": "object",
                            "required": ["type"],
                            "properties": {
                                "type": {
                                    "type": "string",
                                    "enum": [kind.value for kind in ConditionKind]
                                },
                                "value": {}
                            },
                            "additionalProperties": False,
                            "allOf": [
                                {
                                    "if": {"properties": {"type": {"enum": ["extension", "name_contains"]}}},
                                    "then": {"required": ["value"], "properties": {"value": {"type": "string"}}}
                                },
                                {
                                    "if": {"properties": {"type": {"const": "size_greater_than"}}},
                                    "then": {"required": ["value"], "properties": {"value": {"type": "integer", "minimum": 0}}}
                                },
                                {
                                    "if": {"properties": {"type": {"enum": ["created_before", "modified_before"]}}},
                                    "then": {"required": ["value"], "properties": {"value": {"type": "string", "minLength": 1}}}
                                },
                                {
                                    "if": {"properties": {"type": {"const": "is_directory"}}},
                                    "then": {"properties": {"value": {"type": "boolean"}}}
                                }
                            ]
                        }
                    },
                    "outcome": {
                        "type": "object",
                        "required": ["type"],
                        "properties": {
                            "type": {
                                "type": "string",
                                "enum": [kind.value for kind in OutcomeKind]
                            },
                            "destination": {"type": "string", "minLength": 1},
                            "prefix": {"type": "string"},
                            "suffix": {"type": "string"},
                            "reason": {"type": "string"}
                        },
                        "additionalProperties": False,
                        "allOf": [
                            {
                                "if": {"properties": {"type": {"enum": ["move", "copy"]}}},
                                "then": {"required": ["destination"]}
                            }
                        ]
                    },
                    "enabled": {
                        "type": "boolean",
                        "default": True
                    },
                    "group": {
                        "type": ["string", "null"]
                    },
                    "tags": {
                        "type": "array",
                        "items": {"type": "string"}
                    }
                }
            }
        }
    },
    "required": ["rules"]
}


def validate_rule_json(rule_data: Dict[str, Any]) -> List[str]:
    """Validate a rule-set JSON object.

    Args:
        rule_data: The parsed rule-set document

    Returns:
        List of validation error messages (empty when valid)
    """
    validator = jsonschema.Draft7Validator(RULE_SCHEMA)
    messages = []
    errors = sorted(
        validator.iter_errors(rule_data),
        key=lambda e: [(isinstance(p, str), p) for p in e.absolute_path]
    )
    for error in errors:
        path = " -> ".join(str(p) for p in error.absolute_path) if error.absolute_path else "root"
        messages.append(f"Validation error at {path}: {error.message}")
    return messages


def parse_rules(rule_data: Dict[str, Any]) -> List[Rule]:
    """Validate and build Rule objects from a rule-set document.

    Raises:
        RuleValidationError: With every message if the document is invalid
    """
    errors = validate_rule_json(rule_data)
    if errors:
        raise RuleValidationError(f"Invalid rule set ({len(errors)} errors)", errors)

    rules = []
    for index, data in enumerate(rule_data["rules"]):
        try:
            rules.append(Rule.from_dict(data))
        except RuleValidationError as e:
            message = f"Validation error at rules -> {index}: {e}"
            raise RuleValidationError(message, [message]) from e
    return rules


def load_rules_file(file_path: Path) -> List[Rule]:
    """Load rules from a JSON rule-set file.

    Raises:
        RuleValidationError: If the file is unreadable, not JSON, or invalid
    """
    file_path = Path(file_path)
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            rule_data = json.load(f)
    except json.JSONDecodeError as e:
        message = f"JSON parsing error: {e.msg} at line {e.lineno}, column {e.colno}"
        raise RuleValidationError(message, [message]) from e
    except OSError as e:
        message = f"Error reading file: {e}"
        raise RuleValidationError(message, [message]) from e

    rules = parse_rules(rule_data)
    logger.info(f"Loaded {len(rules)} rules from {file_path}")
    return rules


def validate_rule_file(file_path: Path) -> List[str]:
    """Validate a rule-set file, returning messages instead of raising."""
    try:
        load_rules_file(file_path)
    except RuleValidationError as e:
        return e.errors or [str(e)]
    return []


def save_rules_file(rules: Sequence[Rule], file_path: Path) -> None:
    """Write rules in the same format ``load_rules_file`` reads."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump({"rules": [rule.to_dict() for rule in rules]}, f, indent=2)
