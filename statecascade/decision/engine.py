"""
decision/engine.py - State Decision Engine

Computes the target state and status reason of a batch of records of
one type, either literally from the request labels, by restoring from
the change history, or through the process-flow overlay.
"""

from __future__ import annotations
from typing import Dict, List, TYPE_CHECKING
import logging

from ..catalog.relationships import RelationshipCatalog
from ..core.constants import STATE_ATTRIBUTE, STATUS_REASON_ATTRIBUTE
from ..core.models import ProposedState, Record, RelationshipEdge
from ..errors.taxonomy import CascadeError
from ..retrieval.audit_reader import AuditReader, group_by_record
from ..retrieval.metadata import OptionResolver
from .process_flow import ProcessFlowOverlay
from .restoration import decide_restoration

if TYPE_CHECKING:
    from ..cascade.context import TraversalContext

logger = logging.getLogger(__name__)


class StateDecisionEngine:
    """
    Per-type state decisions.

    Every computed (type, id, state) is recorded in the traversal
    context so process-flow children see their parent's new state.
    """

    def __init__(
        self,
        catalog: RelationshipCatalog,
        options: OptionResolver,
        audit_reader: AuditReader,
        overlay: ProcessFlowOverlay,
    ):
        self.catalog = catalog
        self.options = options
        self.audit_reader = audit_reader
        self.overlay = overlay

    def decide(
        self,
        record_type: str,
        records: List[Record],
        in_scope_edges: List[RelationshipEdge],
        ctx: "TraversalContext",
    ) -> List[ProposedState]:
        """
        Proposed states of records of one type.

        Args:
            record_type: Type of every record in the batch
            records: Fetched records
            in_scope_edges: Edges in scope for the calling type
            ctx: Traversal context of the run

        Raises:
            CascadeError: Annotated with the record type
        """
        if not records:
            return []

        operation = "ComputeState"
        try:
            if self.catalog.is_process_flow(record_type):
                operation = "ComputeProcessFlowState"
                proposed = self.overlay.decide(
                    record_type, records, in_scope_edges, ctx.updated_parents,
                )
            else:
                proposed = self._decide_standard(record_type, records, ctx)
        except CascadeError as e:
            raise e.annotate(record_type, operation)

        for state in proposed:
            ctx.record_update(state.record_type, state.record_id, state.state_code)

        logger.debug(f"{operation}: {len(proposed)} {record_type} record(s)")
        return proposed

    def _decide_standard(
        self,
        record_type: str,
        records: List[Record],
        ctx: "TraversalContext",
    ) -> List[ProposedState]:
        request = ctx.request
        state_option = self.options.attribute_option(
            record_type, STATE_ATTRIBUTE, request.status_label,
        )
        reason_option = self.options.attribute_option(
            record_type, STATUS_REASON_ATTRIBUTE, request.status_reason_label,
        )

        if not request.restore_previous:
            return [
                ProposedState(
                    record_id=record.record_id,
                    state_code=state_option.option_code,
                    status_reason=reason_option.option_code,
                    record_type=record_type,
                )
                for record in records
            ]

        entries = group_by_record(self.audit_reader.audits_for(
            record_type,
            [r.record_id for r in records],
            reason_option.column_number,
        ))
        never_restore = set(self.options.option_codes(
            record_type, STATUS_REASON_ATTRIBUTE, request.never_restore_reason_labels,
        ))

        proposed = []
        sources: Dict[str, int] = {}
        for record in records:
            decision = decide_restoration(
                record,
                entries.get(record.record_id, []),
                literal_state=state_option.option_code,
                literal_reason=reason_option.option_code,
                never_restore=never_restore,
            )
            source = decision.status_reason.source.value
            sources[source] = sources.get(source, 0) + 1
            proposed.append(ProposedState(
                record_id=record.record_id,
                state_code=decision.state.value,
                status_reason=decision.status_reason.value,
                record_type=record_type,
            ))

        logger.debug(f"Restoration on {record_type}: {sources}")
        return proposed

