"""
cascade/service.py - Cascade service facade

Wires the per-run components over the store collaborators, runs one
cascade and surfaces any failure as a single CascadeFailure.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
import logging

from ..catalog.relationships import RelationshipCatalog
from ..catalog.type_filter import TypeFilter
from ..contracts.protocols import (
    AuditService,
    MetadataService,
    ProcessDefinitionService,
    QueryService,
)
from ..core.models import CascadeRequest, ProposedState
from ..decision.engine import StateDecisionEngine
from ..decision.process_flow import ProcessFlowOverlay
from ..errors.aggregator import ErrorAggregator
from ..errors.taxonomy import CascadeError
from ..retrieval.audit_reader import AuditReader
from ..retrieval.fetcher import RecordFetcher
from ..retrieval.metadata import OptionResolver
from .context import TraversalContext
from .orchestrator import CascadeOrchestrator
from .request import validate_request

logger = logging.getLogger(__name__)


class CascadeService:
    """
    Entry point of the cascade core.

    Collaborators are long-lived; catalogs, caches and bookkeeping are
    rebuilt for every run and discarded afterwards.
    """

    def __init__(
        self,
        metadata: MetadataService,
        queries: QueryService,
        audits: AuditService,
        processes: ProcessDefinitionService,
    ):
        self.metadata = metadata
        self.queries = queries
        self.audits = audits
        self.processes = processes

    @classmethod
    def from_store(cls, store) -> "CascadeService":
        """Service over a store implementing every collaborator protocol."""
        return cls(metadata=store, queries=store, audits=store, processes=store)

    def build_orchestrator(self, request: CascadeRequest) -> CascadeOrchestrator:
        catalog = RelationshipCatalog(self.metadata)
        engine = StateDecisionEngine(
            catalog=catalog,
            options=OptionResolver(self.metadata),
            audit_reader=AuditReader(self.audits),
            overlay=ProcessFlowOverlay(self.processes, catalog.primary_id_attribute),
        )
        return CascadeOrchestrator(
            catalog=catalog,
            type_filter=TypeFilter(request.namespace_prefix, request.include_types),
            fetcher=RecordFetcher(self.queries),
            engine=engine,
        )

    def run(self, request: CascadeRequest) -> List[ProposedState]:
        """
        Compute proposed states for the request.

        Raises:
            CascadeFailure: The cascade aborted; partial results are discarded
        """
        ctx = TraversalContext(request=request)
        errors = ErrorAggregator()
        try:
            validate_request(request)
            results = self.build_orchestrator(request).run(ctx)
        except CascadeError as e:
            errors.add(e)
            failure = errors.to_failure(ctx.cascade_id)
            logger.error(f"[{ctx.cascade_id}] Cascade failed: {e} ({failure.report.summary})")
            raise failure from e
        return results.flatten()

    def run_to_dicts(self, request: CascadeRequest) -> List[Dict[str, Any]]:
        return [state.to_dict() for state in self.run(request)]


def run_cascade(store, request: CascadeRequest) -> List[ProposedState]:
    """Run one cascade against a store implementing every protocol."""
    return CascadeService.from_store(store).run(request)
