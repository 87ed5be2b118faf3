"""
cascade/orchestrator.py - Cascade Orchestrator

Depth-first walk of the relationship graph starting at the root type.
Each visit resolves and filters the type's edges, optionally computes
the root records themselves, then fetches, decides and recurses into
every in-scope child type.

There is no depth bound: termination relies on the processed registry,
which only lets a visited type through again while it is being
recalculated.
"""

from __future__ import annotations
from typing import List
from uuid import UUID
import logging

from ..catalog.relationships import RelationshipCatalog
from ..catalog.type_filter import TypeFilter
from ..core.models import ManyToManyEdge, OneToManyEdge, Record, RelationshipEdge
from ..decision.engine import StateDecisionEngine
from ..errors.taxonomy import ErrorCode, configuration_error
from ..retrieval.fetcher import RecordFetcher
from .context import TraversalContext
from .result import ResultTable

logger = logging.getLogger(__name__)


class CascadeOrchestrator:
    """Recursive traversal over one cascade run."""

    def __init__(
        self,
        catalog: RelationshipCatalog,
        type_filter: TypeFilter,
        fetcher: RecordFetcher,
        engine: StateDecisionEngine,
    ):
        self.catalog = catalog
        self.type_filter = type_filter
        self.fetcher = fetcher
        self.engine = engine

    def run(self, ctx: TraversalContext) -> ResultTable:
        """Walk from the request's root type and fill ctx.results."""
        request = ctx.request
        logger.info(
            f"[{ctx.cascade_id}] Cascade start: {request.root_type} "
            f"({len(request.root_ids)} root record(s)), prefix={request.namespace_prefix}, "
            f"restore={request.restore_previous}, update_parent={request.update_parent}"
        )
        self._visit(ctx, request.root_type, list(request.root_ids), is_root=True, origin_type="")
        logger.info(
            f"[{ctx.cascade_id}] Cascade finished: {len(ctx.results)} record(s) "
            f"across {len(ctx.results.types)} type(s)"
        )
        return ctx.results

    # =========================================================================
    # TRAVERSAL
    # =========================================================================

    def _visit(
        self,
        ctx: TraversalContext,
        record_type: str,
        ids: List[UUID],
        is_root: bool,
        origin_type: str,
    ) -> None:
        registry = ctx.registry
        relationships = self.catalog.edges(record_type)
        ctx.results.backfill_collection(record_type, relationships.collection_name)

        in_scope = self.type_filter.in_scope(relationships.edges, origin_type, registry.processed)
        if is_root and not in_scope:
            raise configuration_error(
                ErrorCode.CFG_PREFIX_MISMATCH,
                f"Invalid namespace prefix '{self.type_filter.prefix}'",
                record_type=record_type,
                operation="FilterRelationships",
            )

        recalculating = registry.should_recalculate(record_type)
        logger.debug(
            f"[{ctx.cascade_id}] Visit {record_type}: {len(ids)} id(s), "
            f"{len(in_scope)}/{len(relationships.edges)} edge(s) in scope"
            + (", recalculating" if recalculating else "")
        )

        if is_root and ctx.request.update_parent and not ctx.is_excluded(record_type) \
                and (not registry.is_processed(record_type) or recalculating):
            self._update_root(ctx, record_type, ids, in_scope, relationships.collection_name)

        for edge in in_scope:
            self._follow(ctx, record_type, ids, edge, in_scope, recalculating)

    def _update_root(
        self,
        ctx: TraversalContext,
        record_type: str,
        ids: List[UUID],
        in_scope: List[RelationshipEdge],
        collection_name,
    ) -> None:
        id_attribute = self.catalog.primary_id_attribute(record_type)
        roots = self.fetcher.fetch_by_foreign_key(record_type, id_attribute, id_attribute, ids)
        if not roots:
            raise configuration_error(
                ErrorCode.CFG_ROOT_NOT_FOUND,
                "No parent records found",
                record_type=record_type,
                operation="RetrieveRootRecords",
            )

        states = self.engine.decide(record_type, roots, in_scope, ctx)
        ctx.results.merge(record_type, states, collection_name)
        ctx.registry.mark_processed(record_type)

    def _follow(
        self,
        ctx: TraversalContext,
        record_type: str,
        ids: List[UUID],
        edge: RelationshipEdge,
        in_scope: List[RelationshipEdge],
        recalculating: bool,
    ) -> None:
        registry = ctx.registry
        child_type = self.type_filter.child_type(edge, record_type)

        if isinstance(edge, ManyToManyEdge) and recalculating \
                and ctx.request.cascade_recalculation:
            if registry.add_recalculate(child_type):
                logger.debug(f"[{ctx.cascade_id}] {child_type} added to recalculation")

        if ctx.is_excluded(child_type):
            logger.debug(f"[{ctx.cascade_id}] Skip {child_type}: excluded")
            return
        if registry.should_skip(child_type):
            logger.debug(f"[{ctx.cascade_id}] Skip {child_type}: already processed")
            return

        registry.mark_processed(child_type)

        children = self._fetch_children(record_type, child_type, edge, ids)
        if not children:
            return

        states = self.engine.decide(child_type, children, in_scope, ctx)
        ctx.results.merge(child_type, states)

        origin = record_type if isinstance(edge, ManyToManyEdge) else ""
        self._visit(
            ctx,
            child_type,
            [r.record_id for r in children],
            is_root=False,
            origin_type=origin,
        )

    def _fetch_children(
        self,
        record_type: str,
        child_type: str,
        edge: RelationshipEdge,
        ids: List[UUID],
    ) -> List[Record]:
        id_attribute = self.catalog.primary_id_attribute(child_type)
        if isinstance(edge, OneToManyEdge):
            return self.fetcher.fetch_by_foreign_key(
                child_type, id_attribute, edge.referencing_attribute, ids,
            )
        link_from, link_to = edge.link_attributes(child_type)
        return self.fetcher.fetch_by_junction(
            child_type, id_attribute, edge.junction_type, link_from, link_to, ids,
        )
