"""
retrieval/audit_reader.py - Audit Reader

Reads the change history of records, restricted to create/update audits
touching the status reason column, and parses the change payloads.
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping
from uuid import UUID
import json
import logging

from ..contracts.protocols import AuditService
from ..core.models import AuditEntry, ChangedAttribute
from ..errors.taxonomy import AuditParseError, CascadeError, RetrievalError
from . import queries

logger = logging.getLogger(__name__)


def parse_change_data(raw: Any) -> List[ChangedAttribute]:
    """
    Parse a changedata payload.

    Expected shape:
        {"changedAttributes": [{"logicalName": ..., "oldValue": ..., "newValue": ...}]}
    """
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise AuditParseError(f"Change data is not valid JSON: {e}", operation="ParseAudit")
    else:
        data = raw

    if not isinstance(data, dict):
        raise AuditParseError("Change data must be a JSON object", operation="ParseAudit")

    changes = data.get("changedAttributes") or []
    if not isinstance(changes, list):
        raise AuditParseError("changedAttributes must be a list", operation="ParseAudit")

    parsed: List[ChangedAttribute] = []
    for change in changes:
        if not isinstance(change, dict) or "logicalName" not in change:
            raise AuditParseError(
                f"Malformed changed attribute: {change!r}", operation="ParseAudit"
            )
        old_value = change.get("oldValue")
        new_value = change.get("newValue")
        parsed.append(ChangedAttribute(
            logical_name=change["logicalName"],
            old_value=None if old_value is None else str(old_value),
            new_value=None if new_value is None else str(new_value),
        ))
    return parsed


def _parse_row(row: Mapping[str, Any]) -> AuditEntry:
    created_on = row.get("createdon")
    try:
        audit_id = UUID(str(row["auditid"]))
        record_id = UUID(str(row["objectid"]))
        if created_on is not None and not isinstance(created_on, datetime):
            created_on = datetime.fromisoformat(str(created_on))
    except (KeyError, ValueError) as e:
        raise AuditParseError(f"Malformed audit row: {e}", operation="ParseAudit")
    return AuditEntry(
        audit_id=audit_id,
        record_id=record_id,
        created_on=created_on,
        changed_attributes=parse_change_data(row.get("changedata")),
    )


class AuditReader:
    """Change-history reader over the audit service."""

    def __init__(self, audit_service: AuditService):
        self._audits = audit_service

    def audits_for(
        self,
        record_type: str,
        ids: Iterable[UUID],
        status_reason_column_number: int,
    ) -> List[AuditEntry]:
        """
        Create/update audits of ids touching the status reason column.

        Returns:
            Entries ordered newest first
        """
        ids = list(ids)
        if not ids:
            return []

        query = queries.audits(record_type, ids, status_reason_column_number)
        try:
            rows = self._audits.retrieve_audits(query)
        except CascadeError as e:
            raise e.annotate(record_type, "RetrieveAudits")
        except Exception as e:
            raise RetrievalError(
                f"Audit query failed: {e}",
                record_type=record_type,
                operation="RetrieveAudits",
            ) from e

        try:
            entries = [_parse_row(row) for row in rows]
        except AuditParseError as e:
            raise e.annotate(record_type, "ParseAudit")

        entries.sort(
            key=lambda a: a.created_on.timestamp() if a.created_on else float("-inf"),
            reverse=True,
        )
        logger.debug(f"Read {len(entries)} audit(s) for {len(ids)} {record_type} record(s)")
        return entries


def group_by_record(entries: Iterable[AuditEntry]) -> Dict[UUID, List[AuditEntry]]:
    """Entries per record id, order preserved."""
    grouped: Dict[UUID, List[AuditEntry]] = {}
    for entry in entries:
        grouped.setdefault(entry.record_id, []).append(entry)
    return grouped
