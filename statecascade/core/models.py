"""
core/models.py - Cascade data model

Typed records, relationship edges, change-history entries and the
proposed-state output. Everything here is created per cascade run and
discarded afterwards.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Tuple, Union
from uuid import UUID

from .enums import RelationshipKind
from ..errors.taxonomy import AuditParseError


# =============================================================================
# RECORD TYPES & RELATIONSHIPS
# =============================================================================

@dataclass(frozen=True)
class RecordType:
    """A record type known to the metadata service."""

    logical_name: str
    primary_id_attribute: str
    collection_name: Optional[str] = None
    is_process_flow: bool = False


@dataclass(frozen=True)
class OneToManyEdge:
    """
    Parent (referenced) type to child (referencing) type.

    The child carries a lookup attribute pointing at the parent's key.
    """

    referencing_type: str
    referencing_attribute: str
    referenced_type: str
    referenced_attribute: str
    schema_name: str = ""

    @property
    def kind(self) -> RelationshipKind:
        return RelationshipKind.ONE_TO_MANY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "schema_name": self.schema_name,
            "referencing_type": self.referencing_type,
            "referencing_attribute": self.referencing_attribute,
            "referenced_type": self.referenced_type,
            "referenced_attribute": self.referenced_attribute,
        }


@dataclass(frozen=True)
class ManyToManyEdge:
    """Two endpoint types linked through a junction type."""

    type_a: str
    type_b: str
    junction_type: str
    link_attr_a: str
    link_attr_b: str
    schema_name: str = ""

    @property
    def kind(self) -> RelationshipKind:
        return RelationshipKind.MANY_TO_MANY

    def other_endpoint(self, record_type: str) -> str:
        """Endpoint opposite to record_type (type_a when it is neither)."""
        return self.type_b if self.type_a == record_type else self.type_a

    def link_attributes(self, child_type: str) -> Tuple[str, str]:
        """
        Junction attributes for walking from parent to child.

        Returns:
            (link_from, link_to) where link_from joins the child and
            link_to is filtered by the parent ids.
        """
        if child_type == self.type_a:
            return self.link_attr_a, self.link_attr_b
        return self.link_attr_b, self.link_attr_a

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "schema_name": self.schema_name,
            "type_a": self.type_a,
            "type_b": self.type_b,
            "junction_type": self.junction_type,
            "link_attr_a": self.link_attr_a,
            "link_attr_b": self.link_attr_b,
        }


RelationshipEdge = Union[OneToManyEdge, ManyToManyEdge]


@dataclass
class EntityRelationships:
    """Edges of one type, one-to-many first then many-to-many."""

    collection_name: Optional[str] = None
    edges: List[RelationshipEdge] = field(default_factory=list)

    @property
    def one_to_many(self) -> List[OneToManyEdge]:
        return [e for e in self.edges if isinstance(e, OneToManyEdge)]

    @property
    def many_to_many(self) -> List[ManyToManyEdge]:
        return [e for e in self.edges if isinstance(e, ManyToManyEdge)]


# =============================================================================
# RECORDS
# =============================================================================

@dataclass
class Record:
    """A fetched record with the attributes the cascade reads."""

    record_type: str
    record_id: UUID
    state_code: Optional[int] = None
    status_reason: Optional[int] = None
    modified_on: Optional[datetime] = None
    attributes: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# CHANGE HISTORY
# =============================================================================

def _parse_code(raw: Optional[str], attribute: str) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        raise AuditParseError(
            f"Value '{raw}' of {attribute} is not an option code",
            operation="ParseAudit",
            attribute=attribute,
        )


@dataclass(frozen=True)
class ChangedAttribute:
    """One attribute change inside an audit entry, values as raw strings."""

    logical_name: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None

    @property
    def old_code(self) -> Optional[int]:
        return _parse_code(self.old_value, self.logical_name)

    @property
    def new_code(self) -> Optional[int]:
        return _parse_code(self.new_value, self.logical_name)


@dataclass
class AuditEntry:
    """A single create/update audit of a record."""

    audit_id: UUID
    record_id: UUID
    created_on: Optional[datetime] = None
    changed_attributes: List[ChangedAttribute] = field(default_factory=list)

    def change_for(self, logical_name: str) -> Optional[ChangedAttribute]:
        for change in self.changed_attributes:
            if change.logical_name == logical_name:
                return change
        return None


# =============================================================================
# OPTION METADATA
# =============================================================================

@dataclass(frozen=True)
class AttributeOption:
    """A resolved option of a choice attribute."""

    column_number: int
    option_code: int


@dataclass
class AttributeMetadata:
    """Column number and label -> code options of a choice attribute."""

    column_number: int
    options: Dict[str, int] = field(default_factory=dict)


# =============================================================================
# PROCESS FLOWS
# =============================================================================

@dataclass(frozen=True)
class ProcessFlowRow:
    """A process-flow record joined to its active stage and parent."""

    record_id: UUID
    process_id: Optional[UUID]
    active_stage_id: Optional[UUID]
    parent_id: Optional[UUID]
    parent_state_code: Optional[int]


# =============================================================================
# REQUEST & OUTPUT
# =============================================================================

@dataclass
class CascadeRequest:
    """Input of one cascade run."""

    root_type: str
    root_ids: List[UUID]
    namespace_prefix: str
    status_label: str = ""
    status_reason_label: str = ""
    update_parent: bool = False
    restore_previous: bool = False
    include_types: Set[str] = field(default_factory=set)
    exclude_types: Set[str] = field(default_factory=set)
    recalculate_types: Set[str] = field(default_factory=set)
    cascade_recalculation: bool = False
    never_restore_reason_labels: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root_type": self.root_type,
            "root_ids": [str(i) for i in self.root_ids],
            "namespace_prefix": self.namespace_prefix,
            "status_label": self.status_label,
            "status_reason_label": self.status_reason_label,
            "update_parent": self.update_parent,
            "restore_previous": self.restore_previous,
            "include_types": sorted(self.include_types),
            "exclude_types": sorted(self.exclude_types),
            "recalculate_types": sorted(self.recalculate_types),
            "cascade_recalculation": self.cascade_recalculation,
            "never_restore_reason_labels": list(self.never_restore_reason_labels),
        }


@dataclass(frozen=True)
class ProposedState:
    """Target state and status reason computed for one record."""

    record_id: UUID
    state_code: Optional[int]
    status_reason: Optional[int]
    record_type: str
    collection_name: Optional[str] = None

    def with_collection(self, collection_name: Optional[str]) -> "ProposedState":
        return ProposedState(
            record_id=self.record_id,
            state_code=self.state_code,
            status_reason=self.status_reason,
            record_type=self.record_type,
            collection_name=collection_name,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recordId": str(self.record_id),
            "statusCode": self.state_code,
            "statusReasonCode": self.status_reason,
            "recordType": self.record_type,
            "collectionName": self.collection_name,
        }
