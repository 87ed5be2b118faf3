"""
retrieval/fetcher.py - Record Fetcher

Fetches records of a type by foreign key or through a junction type and
converts store rows into typed Records.
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional
from uuid import UUID
import logging

from ..contracts.protocols import QueryService
from ..core.constants import (
    MODIFIED_ON_ATTRIBUTE,
    STATE_ATTRIBUTE,
    STATUS_REASON_ATTRIBUTE,
)
from ..core.models import Record
from ..errors.taxonomy import CascadeError, RetrievalError
from . import queries

logger = logging.getLogger(__name__)


def _as_uuid(value: Any) -> Optional[UUID]:
    if value is None or isinstance(value, UUID):
        return value
    return UUID(str(value))


def _as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def row_to_record(record_type: str, id_attribute: str, row: Mapping[str, Any]) -> Record:
    """Build a typed Record from a store row."""
    known = {id_attribute, STATE_ATTRIBUTE, STATUS_REASON_ATTRIBUTE, MODIFIED_ON_ATTRIBUTE}
    return Record(
        record_type=record_type,
        record_id=_as_uuid(row[id_attribute]),
        state_code=_as_int(row.get(STATE_ATTRIBUTE)),
        status_reason=_as_int(row.get(STATUS_REASON_ATTRIBUTE)),
        modified_on=_as_datetime(row.get(MODIFIED_ON_ATTRIBUTE)),
        attributes={k: v for k, v in row.items() if k not in known},
    )


class RecordFetcher:
    """Queries records through the query service."""

    def __init__(self, queries_service: QueryService):
        self._queries = queries_service

    def fetch_by_foreign_key(
        self,
        record_type: str,
        id_attribute: str,
        match_attribute: str,
        ids: Iterable[UUID],
    ) -> List[Record]:
        """
        Records whose match_attribute is one of ids.

        Args:
            record_type: Type to query
            id_attribute: Primary key of the type
            match_attribute: Lookup (or primary key) compared with ids
            ids: Parent record ids

        Returns:
            Typed records; empty without querying when ids is empty
        """
        ids = list(ids)
        if not ids:
            return []

        query = queries.in_filter(record_type, id_attribute, match_attribute, ids)
        records = self._run(record_type, "RetrieveMultiple", lambda: [
            row_to_record(record_type, id_attribute, row)
            for row in self._queries.retrieve_by_attribute(query)
        ])
        logger.debug(f"Fetched {len(records)} {record_type} record(s) by {match_attribute}")
        return records

    def fetch_by_junction(
        self,
        record_type: str,
        id_attribute: str,
        junction_type: str,
        link_from: str,
        link_to: str,
        ids: Iterable[UUID],
    ) -> List[Record]:
        """Records linked to ids through a junction type."""
        ids = list(ids)
        if not ids:
            return []

        query = queries.junction(record_type, id_attribute, junction_type, link_from, link_to, ids)
        records = self._run(record_type, "RetrieveMultipleFromManyToMany", lambda: [
            row_to_record(record_type, id_attribute, row)
            for row in self._queries.retrieve_by_junction(query)
        ])
        logger.debug(f"Fetched {len(records)} {record_type} record(s) through {junction_type}")
        return records

    @staticmethod
    def _run(record_type: str, operation: str, call):
        try:
            return call()
        except CascadeError as e:
            raise e.annotate(record_type, operation)
        except Exception as e:
            raise RetrievalError(
                f"Query failed: {e}",
                record_type=record_type,
                operation=operation,
            ) from e
