#!/usr/bin/env python3
"""
Authorization matrix validation script for the Access Layer.
This script validates rule matrix files (JSON or YAML) before deployment.
"""

import argparse
import sys
from pathlib import Path
from typing import List

from shared.errors import RuleTableError
from service_authorization.app.rules.models import KNOWN_SCOPES
from service_authorization.app.rules.table import RuleTable

DEFAULT_MATRIX = Path(__file__).resolve().parent.parent / "service_authorization" / "app" / "rules" / "authorization_matrix.json"


def validate_matrix(matrix_path: Path) -> List[str]:
    """Validate a single matrix file."""
    errors = []

    try:
        table = RuleTable.from_file(matrix_path)
    except RuleTableError as e:
        errors.append(e.message)
        for error in e.details.get("errors", []):
            location = ".".join(str(part) for part in error.get("loc", ()))
            errors.append(f"{location}: {error.get('msg')}")
        return errors

    for resource, operation, rules in table:
        if not rules:
            errors.append(f"{resource}.{operation}: no rules (operation is always denied)")

        for index, rule in enumerate(rules):
            if not rule.roles:
                errors.append(f"{resource}.{operation}[{index}]: roles must not be empty")
            if rule.scope not in KNOWN_SCOPES:
                errors.append(f"{resource}.{operation}[{index}]: unknown scope '{rule.scope}'")
            for requirement in rule.requires:
                if not requirement.lstrip("!"):
                    errors.append(f"{resource}.{operation}[{index}]: empty requirement flag")

    return errors


def main(argv: List[str] = None) -> int:
    """Validate every matrix given on the command line."""
    parser = argparse.ArgumentParser(description="Validate authorization rule matrices")
    parser.add_argument("paths", nargs="*", type=Path, help="Matrix files (defaults to the packaged matrix)")
    args = parser.parse_args(argv)

    paths = args.paths or [DEFAULT_MATRIX]
    total_errors = 0

    for matrix_path in paths:
        if not matrix_path.exists():
            print(f"❌ {matrix_path}: file not found")
            total_errors += 1
            continue

        errors = validate_matrix(matrix_path)

        if errors:
            print(f"❌ {matrix_path}: {len(errors)} validation errors")
            for error in errors:
                print(f"   - {error}")
            total_errors += len(errors)
        else:
            print(f"✅ {matrix_path}: matrix is valid")

    print(f"\nValidation complete: {total_errors} total errors")

    return 0 if total_errors == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
