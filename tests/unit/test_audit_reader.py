"""
Unit tests for retrieval/audit_reader.py
"""

import json
import uuid
from datetime import datetime
from unittest.mock import Mock

import pytest

from statecascade.errors.taxonomy import AuditParseError, RetrievalError
from statecascade.retrieval.audit_reader import AuditReader, group_by_record, parse_change_data


def row(record_id, created_on, changes):
    return {
        "auditid": str(uuid.uuid4()),
        "objectid": str(record_id),
        "createdon": created_on,
        "changedata": json.dumps({"changedAttributes": changes}),
    }


class TestParseChangeData:
    """Test change payload parsing."""

    def test_parses_changed_attributes(self):
        changes = parse_change_data(json.dumps({"changedAttributes": [
            {"logicalName": "statuscode", "oldValue": "1", "newValue": "3"},
            {"logicalName": "statecode", "oldValue": None, "newValue": 1},
        ]}))
        assert [c.logical_name for c in changes] == ["statuscode", "statecode"]
        assert changes[0].old_code == 1 and changes[0].new_code == 3
        assert changes[1].old_value is None and changes[1].new_value == "1"

    def test_invalid_json(self):
        with pytest.raises(AuditParseError):
            parse_change_data("{not json")

    def test_malformed_entry(self):
        with pytest.raises(AuditParseError):
            parse_change_data({"changedAttributes": [{"oldValue": "1"}]})


class TestAuditReader:
    """Test audit retrieval."""

    def test_entries_newest_first(self):
        """Entries are ordered newest first whatever the service order."""
        record_id = uuid.uuid4()
        service = Mock()
        service.retrieve_audits.return_value = [
            row(record_id, datetime(2024, 1, 1), [{"logicalName": "statuscode", "oldValue": "1", "newValue": "2"}]),
            row(record_id, datetime(2024, 2, 1), [{"logicalName": "statuscode", "oldValue": "2", "newValue": "3"}]),
        ]
        entries = AuditReader(service).audits_for("new_task", [record_id], 3)
        assert [e.created_on.month for e in entries] == [2, 1]

        query = service.retrieve_audits.call_args[0][0]
        assert query.attribute_mask == 3
        assert query.actions == (1, 2)
        assert query.order_by == "createdon" and query.descending

    def test_empty_ids_do_not_query(self):
        service = Mock()
        assert AuditReader(service).audits_for("new_task", [], 3) == []
        service.retrieve_audits.assert_not_called()

    def test_malformed_payload_names_type(self):
        service = Mock()
        service.retrieve_audits.return_value = [
            {"auditid": str(uuid.uuid4()), "objectid": str(uuid.uuid4()), "changedata": "oops"},
        ]
        with pytest.raises(AuditParseError) as exc_info:
            AuditReader(service).audits_for("new_task", [uuid.uuid4()], 3)
        assert exc_info.value.record_type == "new_task"

    def test_store_failure(self):
        service = Mock()
        service.retrieve_audits.side_effect = ConnectionError("down")
        with pytest.raises(RetrievalError):
            AuditReader(service).audits_for("new_task", [uuid.uuid4()], 3)

    def test_group_by_record(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        service = Mock()
        service.retrieve_audits.return_value = [
            row(a, datetime(2024, 1, 3), []),
            row(b, datetime(2024, 1, 2), []),
            row(a, datetime(2024, 1, 1), []),
        ]
        grouped = group_by_record(AuditReader(service).audits_for("new_task", [a, b], 3))
        assert len(grouped[a]) == 2 and len(grouped[b]) == 1
        assert grouped[a][0].created_on > grouped[a][1].created_on
