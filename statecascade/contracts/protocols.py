"""
statecascade/contracts/protocols.py - Collaborator Protocols

Defines the interfaces of the external store the cascade reads from,
enabling dependency injection and independent testing.
"""

from typing import Protocol, Any, Dict, List, Mapping, TYPE_CHECKING

if TYPE_CHECKING:
    from statecascade.core.models import AttributeMetadata, EntityRelationships, ProcessFlowRow
    from statecascade.retrieval.queries import (
        AuditQuery,
        InFilterQuery,
        JunctionQuery,
        ProcessFlowQuery,
    )

__all__ = [
    'MetadataService',
    'QueryService',
    'AuditService',
    'ProcessDefinitionService',
]


class MetadataService(Protocol):
    """
    Protocol for type and attribute metadata.

    Implementations describe record types, their relationships and the
    options of their choice attributes.
    """

    def relationships_of(self, record_type: str) -> 'EntityRelationships':
        """
        Relationships of a record type.

        Args:
            record_type: Logical name of the type

        Returns:
            Collection name and edges, one-to-many first
        """
        ...

    def primary_id_attribute(self, record_type: str) -> str:
        """Name of the primary key attribute."""
        ...

    def is_process_flow(self, record_type: str) -> bool:
        """Whether the type stores business process flow instances."""
        ...

    def attribute_metadata(self, record_type: str, attribute: str) -> 'AttributeMetadata':
        """Column number and label -> code options of a choice attribute."""
        ...


class QueryService(Protocol):
    """Protocol for record queries."""

    def retrieve_by_attribute(self, query: 'InFilterQuery') -> List[Mapping[str, Any]]:
        """
        Records matching an IN filter.

        Returns:
            Rows keyed by attribute name, holding the requested columns
        """
        ...

    def retrieve_by_junction(self, query: 'JunctionQuery') -> List[Mapping[str, Any]]:
        """Records linked through a junction type."""
        ...


class AuditService(Protocol):
    """Protocol for change history."""

    def retrieve_audits(self, query: 'AuditQuery') -> List[Mapping[str, Any]]:
        """
        Audit rows, newest first.

        Each row carries auditid, objectid, createdon and changedata, the
        latter a JSON document of changed attributes.
        """
        ...


class ProcessDefinitionService(Protocol):
    """Protocol for business process flow instances and definitions."""

    def process_flow_rows(self, query: 'ProcessFlowQuery') -> List['ProcessFlowRow']:
        """Process-flow records linked to the given parents."""
        ...

    def process_definition(self, process_id: Any) -> str:
        """Client data (JSON) of a process definition."""
        ...
