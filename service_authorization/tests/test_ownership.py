"""
Unit tests for ownership evaluation.
"""

import pytest

from service_authorization.app.rules.models import Target, User
from service_authorization.app.rules.ownership import matches_ownership


@pytest.fixture
def user():
    return User(id="u1", role="User", organization="org1", department="dept1")


class TestOwnershipBasics:

    def test_no_relations_required(self, user):
        assert matches_ownership((), user, None) is True
        assert matches_ownership(None, user, Target()) is True

    def test_user_without_id_never_owns(self):
        anonymous = User(role="User")
        assert matches_ownership(("manager",), anonymous, Target(manager=None)) is False
        assert matches_ownership(("self",), anonymous, Target(), {"userId": None}) is False

    def test_relations_are_ored(self, user):
        target = Target(manager="u7", watchers=["u1"])
        assert matches_ownership(("manager", "watchers"), user, target) is True
        assert matches_ownership(("manager", "assignees"), user, target) is False


class TestSelf:

    def test_params_user_id(self, user):
        assert matches_ownership(("self",), user, None, {"userId": "u1"}) is True
        assert matches_ownership(("self",), user, None, {"userId": "u2"}) is False

    def test_params_take_precedence_over_target(self, user):
        assert matches_ownership(("self",), user, Target(id="u1"), {"userId": "u2"}) is False

    def test_target_identity(self, user):
        assert matches_ownership(("self",), user, Target(id="u1")) is True
        assert matches_ownership(("self",), user, Target(id="u2")) is False
        assert matches_ownership(("self",), user, None) is False

    def test_target_identity_from_document(self, user):
        assert matches_ownership(("self",), user, Target.from_mapping({"_id": {"_id": "u1"}})) is True


class TestSingularFields:

    def test_manager(self, user):
        assert matches_ownership(("manager",), user, Target(manager={"_id": "u1"})) is True
        assert matches_ownership(("manager",), user, Target(manager="u2")) is False

    def test_custom_field(self, user):
        target = Target.from_mapping({"_id": "t1", "createdBy": {"id": "u1"}})
        assert matches_ownership(("createdBy",), user, target) is True

    def test_missing_field(self, user):
        assert matches_ownership(("createdBy",), user, Target(id="t1")) is False

    def test_no_target(self, user):
        assert matches_ownership(("manager",), user, None) is False


class TestArrayFields:

    def test_mixed_member_representations(self, user):
        target = Target(watchers=[{"id": "u9"}, "u1"])
        assert matches_ownership(("watchers",), user, target) is True

    def test_not_a_member(self):
        user = User(id="u2", role="User")
        assert matches_ownership(("assignees",), user, Target(assignees=["u1", "u3"])) is False

    @pytest.mark.parametrize("tag", ["assignees", "watchers", "mentioned", "mentions"])
    def test_each_array_relation(self, user, tag):
        target = Target.from_mapping({tag: [{"_id": "u1"}]})
        assert matches_ownership((tag,), user, target) is True

    def test_scalar_in_array_field(self, user):
        assert matches_ownership(("assignees",), user, Target(assignees="u1")) is False

    def test_absent_array(self, user):
        assert matches_ownership(("mentions",), user, Target()) is False
