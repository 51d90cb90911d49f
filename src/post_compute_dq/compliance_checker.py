"""
Compliance Checker for additional check definitions.

Validates a checks file against the bundled JSON schema and then against the
rules the runner relies on: unique, identifier-like names and read-only queries.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from jsonschema import Draft7Validator

DEFAULT_SCHEMA_PATH = Path(__file__).parent / "schemas" / "check_suite_schema.json"

CHECK_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
READ_ONLY_KEYWORDS = ("select", "show", "describe", "desc", "explain", "with")


class ComplianceChecker:
    """
    Validates check definitions before they join the suite.
    """

    def __init__(self, schema_path: Union[str, Path] = DEFAULT_SCHEMA_PATH):
        """
        Initialize the compliance checker.

        Args:
            schema_path: Path to the JSON schema file
        """
        self.schema_path = Path(schema_path)
        self.schema = self._load_schema()

    def _load_schema(self) -> Dict[str, Any]:
        with open(self.schema_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def validate_schema(self, spec: Any) -> List[str]:
        """
        Validate a checks specification against the JSON schema.

        Args:
            spec: Parsed checks file

        Returns:
            List of validation error messages
        """
        errors = []
        validator = Draft7Validator(self.schema)
        schema_errors = sorted(
            validator.iter_errors(spec), key=lambda e: [str(p) for p in e.absolute_path]
        )
        for error in schema_errors:
            location = " -> ".join(str(p) for p in error.absolute_path) or "<root>"
            errors.append(f"JSON Schema validation failed at {location}: {error.message}")
        return errors

    def validate_business_rules(
        self, spec: Dict[str, Any], reserved_names: Iterable[str] = ()
    ) -> List[str]:
        """
        Validate names and queries of every check.

        Args:
            spec: Schema-valid checks specification
            reserved_names: Names that are already taken

        Returns:
            List of business rule validation error messages
        """
        errors = []
        seen: Set[str] = set(reserved_names)
        for index, check in enumerate(spec.get("checks", [])):
            name = check.get("name", f"#{index}")
            if not CHECK_NAME_PATTERN.match(name):
                errors.append(
                    f"Check {name}: name must be letters, digits and underscores "
                    "and must not start with a digit"
                )
            if name in seen:
                errors.append(f"Check {name}: duplicate check name")
            seen.add(name)
            if not self._is_read_only(check.get("query", "")):
                errors.append(
                    f"Check {name}: query must start with one of "
                    f"{', '.join(READ_ONLY_KEYWORDS)}"
                )
        return errors

    @staticmethod
    def _is_read_only(query: str) -> bool:
        words = query.strip().split(None, 1)
        return bool(words) and words[0].lower() in READ_ONLY_KEYWORDS

    def check_compliance(self, spec: Any, reserved_names: Iterable[str] = ()) -> List[str]:
        """
        Perform a complete compliance check.

        Args:
            spec: Parsed checks file
            reserved_names: Names that are already taken

        Returns:
            List of all validation error messages; empty when compliant
        """
        errors = self.validate_schema(spec)
        # Business rules assume the schema's structure
        if errors:
            return errors
        return self.validate_business_rules(spec, reserved_names)


def check_compliance(
    spec: Any,
    reserved_names: Iterable[str] = (),
    schema_path: Optional[Union[str, Path]] = None,
) -> List[str]:
    """
    Convenience function for compliance checking.

    Args:
        spec: Parsed checks file
        reserved_names: Names that are already taken
        schema_path: Alternative JSON schema file

    Returns:
        List of validation error messages
    """
    checker = ComplianceChecker(schema_path or DEFAULT_SCHEMA_PATH)
    return checker.check_compliance(spec, reserved_names)
