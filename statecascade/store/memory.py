"""
store/memory.py - In-memory data store

Dictionary-backed implementation of every collaborator protocol:
metadata, record queries, change history and process definitions.
Used by the tests, the CLI and the HTTP adapter when they run against a
JSON fixture instead of a live store.

Fixture layout (all sections optional):

    {
      "entities": [{"name": "new_order", "primary_id": "new_orderid",
                    "collection": "new_orders", "process_flow": false,
                    "state_options": {"Active": 0, "Inactive": 1},
                    "status_reason_options": {"Active": 1, "Cancelled": 2}}],
      "one_to_many": [{"parent": "new_order", "child": "new_task",
                       "attribute": "new_orderid"}],
      "many_to_many": [{"type_a": "new_task", "type_b": "new_tag",
                        "junction": "new_task_tag"}],
      "records": {"new_order": [{"id": "...", "statecode": 0, "statuscode": 1}]},
      "links": [{"junction": "new_task_tag", "a": "...", "b": "..."}],
      "audits": [{"type": "new_task", "record": "...", "created_on": "...",
                  "changes": [{"logicalName": "statuscode", "oldValue": "1", "newValue": "2"}]}],
      "processes": {"<process id>": {"steps": {"list": []}}}
    }
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from uuid import UUID
import json
import logging
import uuid

from ..core.constants import (
    ACTIVE_STAGE_ATTRIBUTE,
    MODIFIED_ON_ATTRIBUTE,
    PROCESS_ID_ATTRIBUTE,
    STATE_ATTRIBUTE,
    STATUS_REASON_ATTRIBUTE,
)
from ..core.enums import AuditAction
from ..core.models import (
    AttributeMetadata,
    EntityRelationships,
    ManyToManyEdge,
    OneToManyEdge,
    ProcessFlowRow,
)
from ..retrieval.queries import AuditQuery, InFilterQuery, JunctionQuery, ProcessFlowQuery

logger = logging.getLogger(__name__)

DEFAULT_STATE_OPTIONS = {"Active": 0, "Inactive": 1}
DEFAULT_STATUS_REASON_OPTIONS = {"Active": 1, "Inactive": 2}

DEFAULT_STATE_COLUMN = 2
DEFAULT_STATUS_REASON_COLUMN = 3


def _uuid(value: Any) -> Optional[UUID]:
    if value is None or isinstance(value, UUID):
        return value
    return UUID(str(value).strip("{}"))


@dataclass
class _EntityDefinition:
    logical_name: str
    primary_id: str
    collection_name: Optional[str]
    is_process_flow: bool = False
    attributes: Dict[str, AttributeMetadata] = field(default_factory=dict)


class InMemoryStore:
    """
    In-memory store implementing MetadataService, QueryService,
    AuditService and ProcessDefinitionService.

    Unknown types raise KeyError; the cascade core wraps it into its own
    error types.
    """

    def __init__(self):
        self._entities: Dict[str, _EntityDefinition] = {}
        self._one_to_many: List[OneToManyEdge] = []
        self._many_to_many: List[ManyToManyEdge] = []
        self._records: Dict[str, Dict[UUID, Dict[str, Any]]] = {}
        self._junction_rows: Dict[str, List[Dict[str, UUID]]] = {}
        self._audits: List[Dict[str, Any]] = []
        self._processes: Dict[UUID, Any] = {}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    # =========================================================================
    # BUILDERS
    # =========================================================================

    def add_entity(
        self,
        logical_name: str,
        primary_id: Optional[str] = None,
        collection_name: Optional[str] = None,
        is_process_flow: bool = False,
        state_options: Optional[Mapping[str, int]] = None,
        status_reason_options: Optional[Mapping[str, int]] = None,
        state_column: int = DEFAULT_STATE_COLUMN,
        status_reason_column: int = DEFAULT_STATUS_REASON_COLUMN,
    ) -> "InMemoryStore":
        """Register a record type with its state and status reason options."""
        self._entities[logical_name] = _EntityDefinition(
            logical_name=logical_name,
            primary_id=primary_id or f"{logical_name}id",
            collection_name=collection_name if collection_name is not None else f"{logical_name}s",
            is_process_flow=is_process_flow,
            attributes={
                STATE_ATTRIBUTE: AttributeMetadata(
                    column_number=state_column,
                    options=dict(state_options or DEFAULT_STATE_OPTIONS),
                ),
                STATUS_REASON_ATTRIBUTE: AttributeMetadata(
                    column_number=status_reason_column,
                    options=dict(status_reason_options or DEFAULT_STATUS_REASON_OPTIONS),
                ),
            },
        )
        self._records.setdefault(logical_name, {})
        return self

    def add_one_to_many(
        self,
        parent: str,
        child: str,
        attribute: Optional[str] = None,
        schema_name: str = "",
    ) -> OneToManyEdge:
        """Child type carries `attribute` pointing at the parent's key."""
        parent_key = self._entity(parent).primary_id
        edge = OneToManyEdge(
            referencing_type=child,
            referencing_attribute=attribute or parent_key,
            referenced_type=parent,
            referenced_attribute=parent_key,
            schema_name=schema_name or f"{parent}_{child}",
        )
        self._one_to_many.append(edge)
        return edge

    def add_many_to_many(
        self,
        type_a: str,
        type_b: str,
        junction: Optional[str] = None,
        link_a: Optional[str] = None,
        link_b: Optional[str] = None,
        schema_name: str = "",
    ) -> ManyToManyEdge:
        """Link two types through a junction type."""
        junction = junction or f"{type_a}_{type_b}"
        link_a = link_a or self._entity(type_a).primary_id
        link_b = link_b or self._entity(type_b).primary_id
        if link_a == link_b:
            link_a, link_b = f"{link_a}one", f"{link_b}two"
        edge = ManyToManyEdge(
            type_a=type_a,
            type_b=type_b,
            junction_type=junction,
            link_attr_a=link_a,
            link_attr_b=link_b,
            schema_name=schema_name or junction,
        )
        self._many_to_many.append(edge)
        self._junction_rows.setdefault(junction, [])
        return edge

    def add_record(
        self,
        record_type: str,
        record_id: Union[UUID, str, None] = None,
        state_code: Optional[int] = 0,
        status_reason: Optional[int] = 1,
        modified_on: Optional[datetime] = None,
        **attributes: Any,
    ) -> UUID:
        """Add a record; returns its id."""
        definition = self._entity(record_type)
        record_id = _uuid(record_id) or uuid.uuid4()
        row = {
            definition.primary_id: record_id,
            STATE_ATTRIBUTE: state_code,
            STATUS_REASON_ATTRIBUTE: status_reason,
            MODIFIED_ON_ATTRIBUTE: modified_on,
        }
        row.update(attributes)
        self._records[record_type][record_id] = row
        return record_id

    def update_record(self, record_type: str, record_id: Union[UUID, str], **attributes: Any) -> None:
        self._records[record_type][_uuid(record_id)].update(attributes)

    def link(self, junction: str, a_id: Union[UUID, str], b_id: Union[UUID, str]) -> None:
        """Associate a type_a record with a type_b record through a junction."""
        edge = self._junction_edge(junction)
        self._junction_rows[junction].append({
            edge.link_attr_a: _uuid(a_id),
            edge.link_attr_b: _uuid(b_id),
        })

    def add_audit(
        self,
        record_type: str,
        record_id: Union[UUID, str],
        changes: Iterable[Union[Tuple[str, Any, Any], Mapping[str, Any]]],
        created_on: Optional[datetime] = None,
        action: int = AuditAction.UPDATE,
        audit_id: Union[UUID, str, None] = None,
    ) -> UUID:
        """
        Record an audit of a record.

        Changes are (logical_name, old, new) tuples or changedata dicts.
        Without created_on, audits get increasing timestamps in insertion
        order.
        """
        changed = []
        for change in changes:
            if isinstance(change, Mapping):
                changed.append(dict(change))
            else:
                name, old, new = change
                changed.append({
                    "logicalName": name,
                    "oldValue": None if old is None else str(old),
                    "newValue": None if new is None else str(new),
                })

        if created_on is None:
            self._clock += timedelta(minutes=1)
            created_on = self._clock

        audit_id = _uuid(audit_id) or uuid.uuid4()
        self._audits.append({
            "auditid": audit_id,
            "objectid": _uuid(record_id),
            "objecttypecode": record_type,
            "action": int(action),
            "createdon": created_on,
            "attributemask": self._attribute_mask(record_type, changed),
            "changedata": json.dumps({"changedAttributes": changed}),
        })
        return audit_id

    def add_process(self, process_id: Union[UUID, str], client_data: Any) -> UUID:
        """Register a process definition's client data (dict or JSON text)."""
        process_id = _uuid(process_id)
        self._processes[process_id] = client_data
        return process_id

    # =========================================================================
    # METADATA SERVICE
    # =========================================================================

    def relationships_of(self, record_type: str) -> EntityRelationships:
        definition = self._entity(record_type)
        edges = [e for e in self._one_to_many if e.referenced_type == record_type]
        edges += [e for e in self._many_to_many if record_type in (e.type_a, e.type_b)]
        return EntityRelationships(collection_name=definition.collection_name, edges=edges)

    def primary_id_attribute(self, record_type: str) -> str:
        return self._entity(record_type).primary_id

    def is_process_flow(self, record_type: str) -> bool:
        return self._entity(record_type).is_process_flow

    def attribute_metadata(self, record_type: str, attribute: str) -> AttributeMetadata:
        return self._entity(record_type).attributes[attribute]

    # =========================================================================
    # QUERY SERVICE
    # =========================================================================

    def retrieve_by_attribute(self, query: InFilterQuery) -> List[Dict[str, Any]]:
        wanted = {_uuid(v) for v in query.values}
        rows = self._records_of(query.record_type).values()
        return [
            self._project(row, query.columns)
            for row in rows
            if self._as_uuid_or_none(row.get(query.match_attribute)) in wanted
        ]

    def retrieve_by_junction(self, query: JunctionQuery) -> List[Dict[str, Any]]:
        self._entity(query.record_type)
        if query.junction_type not in self._junction_rows:
            raise KeyError(f"Unknown junction type: {query.junction_type}")

        wanted = {_uuid(v) for v in query.values}
        child_ids: List[UUID] = []
        for link in self._junction_rows[query.junction_type]:
            if link.get(query.link_to) in wanted:
                child_id = link.get(query.link_from)
                if child_id not in child_ids:
                    child_ids.append(child_id)

        records = self._records_of(query.record_type)
        return [
            self._project(records[child_id], query.columns)
            for child_id in child_ids
            if child_id in records
        ]

    # =========================================================================
    # AUDIT SERVICE
    # =========================================================================

    def retrieve_audits(self, query: AuditQuery) -> List[Dict[str, Any]]:
        wanted = {_uuid(v) for v in query.object_ids}
        mask = str(query.attribute_mask)
        rows = [
            dict(audit) for audit in self._audits
            if audit["objectid"] in wanted
            and audit["action"] in query.actions
            and mask in audit["attributemask"].split(",")
        ]
        rows.sort(key=lambda a: a[query.order_by].timestamp(), reverse=query.descending)
        return rows

    # =========================================================================
    # PROCESS DEFINITION SERVICE
    # =========================================================================

    def process_flow_rows(self, query: ProcessFlowQuery) -> List[ProcessFlowRow]:
        wanted = {_uuid(v) for v in query.record_ids}
        parents = self._records_of(query.parent_type)
        rows = []
        for record_id, row in self._records_of(query.process_type).items():
            if record_id not in wanted:
                continue
            parent_id = self._as_uuid_or_none(row.get(query.link_attribute))
            parent = self._find_parent(parents, query.parent_id_attribute, parent_id)
            rows.append(ProcessFlowRow(
                record_id=record_id,
                process_id=self._as_uuid_or_none(row.get(PROCESS_ID_ATTRIBUTE)),
                active_stage_id=self._as_uuid_or_none(row.get(ACTIVE_STAGE_ATTRIBUTE)),
                parent_id=parent_id if parent is not None else None,
                parent_state_code=parent.get(STATE_ATTRIBUTE) if parent is not None else None,
            ))
        return rows

    def process_definition(self, process_id: Any) -> Optional[str]:
        client_data = self._processes.get(_uuid(process_id))
        if client_data is None or isinstance(client_data, str):
            return client_data
        return json.dumps(client_data)

    # =========================================================================
    # FIXTURES
    # =========================================================================

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InMemoryStore":
        """Build a store from a fixture dictionary (see module docstring)."""
        store = cls()

        for entity in data.get("entities", []):
            store.add_entity(
                entity["name"],
                primary_id=entity.get("primary_id"),
                collection_name=entity.get("collection"),
                is_process_flow=entity.get("process_flow", False),
                state_options=entity.get("state_options"),
                status_reason_options=entity.get("status_reason_options"),
                state_column=entity.get("state_column", DEFAULT_STATE_COLUMN),
                status_reason_column=entity.get("status_reason_column", DEFAULT_STATUS_REASON_COLUMN),
            )

        for rel in data.get("one_to_many", []):
            store.add_one_to_many(
                rel["parent"], rel["child"],
                attribute=rel.get("attribute"),
                schema_name=rel.get("schema_name", ""),
            )

        for rel in data.get("many_to_many", []):
            store.add_many_to_many(
                rel["type_a"], rel["type_b"],
                junction=rel.get("junction"),
                link_a=rel.get("link_a"),
                link_b=rel.get("link_b"),
                schema_name=rel.get("schema_name", ""),
            )

        for record_type, records in data.get("records", {}).items():
            for record in records:
                record = dict(record)
                record_id = record.pop("id", None)
                modified_on = record.pop(MODIFIED_ON_ATTRIBUTE, None)
                store.add_record(
                    record_type,
                    record_id=record_id,
                    state_code=record.pop(STATE_ATTRIBUTE, 0),
                    status_reason=record.pop(STATUS_REASON_ATTRIBUTE, 1),
                    modified_on=datetime.fromisoformat(modified_on) if modified_on else None,
                    **record,
                )

        for link in data.get("links", []):
            store.link(link["junction"], link["a"], link["b"])

        for audit in data.get("audits", []):
            created_on = audit.get("created_on")
            store.add_audit(
                audit["type"],
                audit["record"],
                audit.get("changes", []),
                created_on=datetime.fromisoformat(created_on) if created_on else None,
                action=audit.get("action", AuditAction.UPDATE),
                audit_id=audit.get("id"),
            )

        for process_id, client_data in data.get("processes", {}).items():
            store.add_process(process_id, client_data)

        logger.debug(
            f"Loaded store: {len(store._entities)} type(s), "
            f"{sum(len(r) for r in store._records.values())} record(s), "
            f"{len(store._audits)} audit(s)"
        )
        return store

    @classmethod
    def from_file(cls, filepath: str) -> "InMemoryStore":
        """Load a JSON fixture file."""
        with open(Path(filepath)) as f:
            data = json.load(f)
        logger.info(f"Loading store fixture from: {filepath}")
        return cls.from_dict(data)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _entity(self, record_type: str) -> _EntityDefinition:
        if record_type not in self._entities:
            raise KeyError(f"Unknown record type: {record_type}")
        return self._entities[record_type]

    def _records_of(self, record_type: str) -> Dict[UUID, Dict[str, Any]]:
        self._entity(record_type)
        return self._records[record_type]

    def _junction_edge(self, junction: str) -> ManyToManyEdge:
        for edge in self._many_to_many:
            if edge.junction_type == junction:
                return edge
        raise KeyError(f"Unknown junction type: {junction}")

    def _attribute_mask(self, record_type: str, changes: List[Dict[str, Any]]) -> str:
        attributes = self._entity(record_type).attributes
        columns = [
            str(attributes[c["logicalName"]].column_number)
            for c in changes
            if c.get("logicalName") in attributes
        ]
        return ",".join(columns)

    @staticmethod
    def _find_parent(parents: Dict[UUID, Dict[str, Any]], key: str,
                     parent_id: Optional[UUID]) -> Optional[Dict[str, Any]]:
        if parent_id is None:
            return None
        for row in parents.values():
            if row.get(key) == parent_id:
                return row
        return None

    @staticmethod
    def _as_uuid_or_none(value: Any) -> Optional[UUID]:
        try:
            return _uuid(value)
        except ValueError:
            return None

    @staticmethod
    def _project(row: Dict[str, Any], columns: Tuple[str, ...]) -> Dict[str, Any]:
        if not columns:
            return dict(row)
        return {c: row.get(c) for c in columns}
