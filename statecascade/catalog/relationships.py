"""
catalog/relationships.py - Relationship Catalog

Answers "what edges leave this record type?" and caches the answers for
the lifetime of one cascade run.
"""

from __future__ import annotations
from typing import Dict, Optional
import logging

from ..contracts.protocols import MetadataService
from ..core.models import EntityRelationships, RecordType
from ..errors.taxonomy import CascadeError, MetadataLookupError

logger = logging.getLogger(__name__)


class RelationshipCatalog:
    """
    Cached view over the metadata service.

    A catalog instance belongs to a single cascade run; it is never
    shared between runs.
    """

    def __init__(self, metadata: MetadataService):
        self._metadata = metadata
        self._edges: Dict[str, EntityRelationships] = {}
        self._primary_ids: Dict[str, str] = {}
        self._process_flows: Dict[str, bool] = {}

    def edges(self, record_type: str) -> EntityRelationships:
        """Edges of a type, one-to-many first then many-to-many."""
        if record_type not in self._edges:
            relationships = self._lookup(
                record_type, "RetrieveRelationships",
                lambda: self._metadata.relationships_of(record_type),
            )
            relationships = EntityRelationships(
                collection_name=relationships.collection_name,
                edges=relationships.one_to_many + relationships.many_to_many,
            )
            self._edges[record_type] = relationships
            logger.debug(
                f"Catalog: {record_type} has {len(relationships.one_to_many)} one-to-many "
                f"and {len(relationships.many_to_many)} many-to-many edges"
            )
        return self._edges[record_type]

    def primary_id_attribute(self, record_type: str) -> str:
        if record_type not in self._primary_ids:
            self._primary_ids[record_type] = self._lookup(
                record_type, "RetrievePrimaryId",
                lambda: self._metadata.primary_id_attribute(record_type),
            )
        return self._primary_ids[record_type]

    def is_process_flow(self, record_type: str) -> bool:
        if record_type not in self._process_flows:
            self._process_flows[record_type] = bool(self._lookup(
                record_type, "RetrieveProcessFlowFlag",
                lambda: self._metadata.is_process_flow(record_type),
            ))
        return self._process_flows[record_type]

    def record_type(self, record_type: str) -> RecordType:
        """Full description of a type."""
        collection: Optional[str] = self.edges(record_type).collection_name
        return RecordType(
            logical_name=record_type,
            primary_id_attribute=self.primary_id_attribute(record_type),
            collection_name=collection,
            is_process_flow=self.is_process_flow(record_type),
        )

    def _lookup(self, record_type: str, operation: str, call):
        try:
            return call()
        except CascadeError as e:
            raise e.annotate(record_type, operation)
        except Exception as e:
            raise MetadataLookupError(
                f"Metadata lookup failed: {e}",
                record_type=record_type,
                operation=operation,
            ) from e
