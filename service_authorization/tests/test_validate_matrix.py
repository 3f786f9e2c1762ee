"""
Tests for the matrix validation script.
"""

import json

from scripts.validate_matrix import main, validate_matrix


def test_packaged_matrix_is_valid(capsys):
    assert main([]) == 0
    assert "matrix is valid" in capsys.readouterr().out


def test_reports_rule_problems(tmp_path):
    path = tmp_path / "matrix.json"
    path.write_text(json.dumps({
        "Task": {
            "read": [
                {"roles": [], "scope": "ownOrg"},
                {"roles": ["User"], "scope": "ownTeam", "requires": ["!"]},
            ],
            "archive": [],
        }
    }))

    errors = validate_matrix(path)

    assert "Task.read[0]: roles must not be empty" in errors
    assert "Task.read[1]: unknown scope 'ownTeam'" in errors
    assert "Task.read[1]: empty requirement flag" in errors
    assert "Task.archive: no rules (operation is always denied)" in errors


def test_reports_shape_errors(tmp_path):
    path = tmp_path / "matrix.yaml"
    path.write_text("Task:\n  read:\n    - roles: User\n")

    errors = validate_matrix(path)

    assert errors[0] == "Invalid rule Task.read[0]"
    assert errors[1].startswith("roles:")


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.json")]) == 1
    assert "file not found" in capsys.readouterr().out
