"""
Unit tests for rule table loading.
"""

import dataclasses
import json

import pytest

from shared.errors import RuleTableError
from shared.test_helpers import TestDataFactory
from service_authorization.app.rules.models import Rule
from service_authorization.app.rules.table import (
    RuleTable, get_rule_table, load_default_rule_table, reset_rule_table
)


@pytest.fixture
def sample_matrix():
    return TestDataFactory.create_sample_matrix()


@pytest.fixture
def fresh_rule_table():
    reset_rule_table()
    yield
    reset_rule_table()


class TestRuleTableFromDict:
    """Test cases for RuleTable.from_dict."""

    def test_builds_rules(self, sample_matrix):
        table = RuleTable.from_dict(sample_matrix)

        rules = table.rules_for("Task", "read")
        assert len(rules) == 2
        assert rules[0] == Rule(roles=frozenset({"Manager"}), scope="ownOrg.ownDept")
        assert rules[1].ownership == ("assignees", "watchers")

    def test_defaults(self):
        table = RuleTable.from_dict({"Vendor": {"read": [{"roles": ["User"]}]}})
        rule = table.rules_for("Vendor", "read")[0]

        assert rule.scope == "any"
        assert rule.requires == ()
        assert rule.ownership == ()
        assert rule.resource_type is None

    def test_resource_type_alias(self, sample_matrix):
        table = RuleTable.from_dict(sample_matrix)
        assert table.rules_for("Task", "create")[0].resource_type == "RoutineTask"

    def test_missing_keys_yield_no_rules(self, sample_matrix):
        table = RuleTable.from_dict(sample_matrix)
        assert table.rules_for("Invoice", "archive") == ()
        assert table.rules_for("Task", "archive") == ()

    def test_listing(self, sample_matrix):
        table = RuleTable.from_dict(sample_matrix)
        assert set(table.resources()) == {"Task", "User", "Organization"}
        assert set(table.operations("Task")) == {"read", "create", "delete"}
        assert table.operations("Invoice") == ()
        assert len(table) == 6

    def test_table_is_read_only(self, sample_matrix):
        table = RuleTable.from_dict(sample_matrix)
        rule = table.rules_for("Task", "read")[0]

        with pytest.raises(dataclasses.FrozenInstanceError):
            rule.scope = "any"
        with pytest.raises(TypeError):
            table._rules["Invoice"] = {}
        with pytest.raises(TypeError):
            table._rules["Task"]["archive"] = ()

    def test_source_mutation_does_not_leak(self, sample_matrix):
        table = RuleTable.from_dict(sample_matrix)
        sample_matrix["Task"]["read"].clear()
        assert len(table.rules_for("Task", "read")) == 2

    def test_unknown_scope_is_kept(self):
        table = RuleTable.from_dict({"Task": {"read": [{"roles": ["User"], "scope": "ownTeam"}]}})
        assert table.rules_for("Task", "read")[0].scope == "ownTeam"

    @pytest.mark.parametrize("data", [
        [],
        {"Task": []},
        {"Task": {"read": {"roles": ["User"]}}},
        {"Task": {"read": ["User"]}},
        {"Task": {"read": [{"roles": "User"}]}},
        {"Task": {"read": [{"roles": ["User"], "ownerShip": ["self"]}]}},
        {"Task": {"read": [{"roles": ["User"], "requires": [True]}]}},
    ])
    def test_malformed_shapes(self, data):
        with pytest.raises(RuleTableError):
            RuleTable.from_dict(data)

    def test_error_details(self):
        with pytest.raises(RuleTableError) as exc_info:
            RuleTable.from_dict({"Task": {"read": [{"roles": ["User"]}, {"scope": 3}]}})

        assert exc_info.value.details["resource"] == "Task"
        assert exc_info.value.details["operation"] == "read"
        assert exc_info.value.details["index"] == 1


class TestRuleTableFromFile:
    """Test cases for RuleTable.from_file."""

    def test_json(self, tmp_path, sample_matrix):
        path = tmp_path / "matrix.json"
        path.write_text(json.dumps(sample_matrix))

        table = RuleTable.from_file(path)
        assert len(table.rules_for("Task", "read")) == 2

    def test_yaml(self, tmp_path):
        path = tmp_path / "matrix.yaml"
        path.write_text(
            "Task:\n"
            "  update:\n"
            "    - roles: [Manager]\n"
            "      scope: ownOrg.ownDept\n"
            "    - roles: [User]\n"
            "      ownership: [createdBy]\n"
        )

        rules = RuleTable.from_file(path).rules_for("Task", "update")
        assert [rule.scope for rule in rules] == ["ownOrg.ownDept", "any"]
        assert rules[1].ownership == ("createdBy",)

    def test_missing_file(self, tmp_path):
        with pytest.raises(RuleTableError):
            RuleTable.from_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "matrix.json"
        path.write_text("{not json")

        with pytest.raises(RuleTableError):
            RuleTable.from_file(path)


class TestDefaultRuleTable:
    """Test cases for the packaged and process-wide tables."""

    def test_packaged_matrix(self):
        table = load_default_rule_table()

        for resource in ("Organization", "Department", "User", "Task", "TaskActivity",
                         "TaskComment", "Material", "Vendor", "Attachment", "Notification"):
            assert resource in table.resources()
        assert table.rules_for("Task", "update")

    def test_loaded_once(self, fresh_rule_table):
        assert get_rule_table() is get_rule_table()

    def test_configured_path(self, fresh_rule_table, tmp_path, monkeypatch, sample_matrix):
        path = tmp_path / "matrix.json"
        path.write_text(json.dumps(sample_matrix))
        monkeypatch.setenv("ACCESS_AUTHORIZATION_MATRIX_PATH", str(path))

        assert set(get_rule_table().resources()) == {"Task", "User", "Organization"}
