"""
Unit tests for cascade/request.py
"""

import uuid

import pytest

from statecascade.cascade.request import build_request, parse_record_ids, validate_request
from statecascade.errors.taxonomy import ErrorCode, InvalidConfigurationError

from conftest import make_request


class TestParseRecordIds:
    """Test id parsing."""

    def test_invalid_ids_are_dropped(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        ids = parse_record_ids(f"{a}, not-a-guid,{{{b}}},{a}, ")
        assert ids == [a, b]

    def test_iterable_input(self):
        a = uuid.uuid4()
        assert parse_record_ids([a, str(a)]) == [a]
        assert parse_record_ids(None) == []


class TestValidateRequest:
    """Test request validation."""

    def test_exclude_types_need_prefix(self):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            validate_request(make_request(root_ids=[uuid.uuid4()], exclude_types={"account"}))
        assert exc_info.value.code == ErrorCode.CFG_PREFIX_MISMATCH

    def test_recalculate_types_need_prefix(self):
        with pytest.raises(InvalidConfigurationError):
            validate_request(make_request(root_ids=[uuid.uuid4()], recalculate_types={"contact"}))

    def test_prefix_check_is_case_insensitive(self):
        request = make_request(root_ids=[uuid.uuid4()], exclude_types={"NEW_Task"})
        assert validate_request(request) is request

    def test_include_types_accept_any_name(self):
        request = make_request(root_ids=[uuid.uuid4()], include_types={"account"})
        assert validate_request(request) is request

    def test_no_valid_ids(self):
        with pytest.raises(InvalidConfigurationError):
            validate_request(make_request(root_ids=[]))

    def test_missing_prefix(self):
        with pytest.raises(InvalidConfigurationError):
            validate_request(make_request(root_ids=[uuid.uuid4()], namespace_prefix=""))


class TestBuildRequest:
    """Test request construction from host input."""

    def test_comma_separated_fields(self):
        a = uuid.uuid4()
        request = build_request(
            root_type=" new_order ",
            root_ids=str(a),
            namespace_prefix="new",
            include_types="account, contact",
            exclude_types="new_note",
            never_restore_reason_labels="Archived,On Hold",
        )
        assert request.root_type == "new_order"
        assert request.root_ids == [a]
        assert request.include_types == {"account", "contact"}
        assert request.exclude_types == {"new_note"}
        assert request.never_restore_reason_labels == ["Archived", "On Hold"]
