"""
Unit tests for identity normalization.
"""

import uuid
from types import SimpleNamespace

import pytest

from service_authorization.app.identity import ids_equal, normalize_id


class ObjectId:
    """Stand-in for a driver id type with its own string form."""

    def __init__(self, value):
        self._value = value

    def __str__(self):
        return self._value


class TestNormalizeId:
    """Test cases for normalize_id."""

    @pytest.mark.parametrize("value", [None, ""])
    def test_absent_values(self, value):
        assert normalize_id(value) is None

    def test_primitives(self):
        assert normalize_id("u1") == "u1"
        assert normalize_id(42) == "42"

    def test_integral_float_matches_int(self):
        assert normalize_id(1.0) == normalize_id(1) == "1"
        assert normalize_id({"_id": 7.0}) == "7"
        assert normalize_id(1.5) == "1.5"

    def test_representations_are_equivalent(self):
        assert normalize_id("u1") == normalize_id({"_id": "u1"}) == normalize_id({"id": "u1"})

    def test_value_key(self):
        assert normalize_id({"value": 7}) == "7"

    def test_id_takes_precedence_over_underscore_id(self):
        assert normalize_id({"id": "a", "_id": "b", "value": "c"}) == "a"

    def test_non_scalar_candidate_is_skipped(self):
        assert normalize_id({"id": {"nested": True}, "_id": "b"}) == "b"

    def test_object_attributes(self):
        assert normalize_id(SimpleNamespace(_id="u1", name="Ann")) == "u1"

    def test_custom_string_form(self):
        assert normalize_id(ObjectId("64f1c0ffee")) == "64f1c0ffee"

    def test_uuid(self):
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert normalize_id(value) == "12345678-1234-5678-1234-567812345678"


class TestIdsEqual:
    """Test cases for ids_equal."""

    def test_mixed_representations(self):
        assert ids_equal({"_id": "u1"}, "u1") is True

    def test_different_ids(self):
        assert ids_equal("u1", "u2") is False

    def test_absent_never_matches(self):
        assert ids_equal(None, None) is False
        assert ids_equal("", "") is False
