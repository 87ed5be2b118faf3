"""
decision/process_flow.py - Business process flow overlay

Process-flow records never take a literal status. Their state mirrors
the linked parent's state and their status reason depends on whether
the active stage is a final stage of the process definition.

Stage graphs are built with networkx from the process definition's
client data: one node per stage, one edge per declared next stage.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple
from uuid import UUID
import json
import logging

import networkx as nx

from ..core.constants import SET_NEXT_STAGE_STEP
from ..core.enums import ProcessFlowReason, StateCode
from ..core.models import OneToManyEdge, ProcessFlowRow, ProposedState, Record, RelationshipEdge
from ..errors.taxonomy import CascadeError, ErrorCode, RetrievalError, configuration_error
from ..retrieval import queries

logger = logging.getLogger(__name__)


def _normalize_id(value: Any) -> str:
    if value is None:
        return ""
    text = str(value).strip().strip("{}")
    try:
        return str(UUID(text))
    except ValueError:
        return text.lower()


# =============================================================================
# STAGE GRAPH
# =============================================================================

@dataclass(frozen=True)
class ProcessStage:
    """One stage of a process definition."""

    stage_id: str
    name: str = ""
    next_stage_id: str = ""
    explicit_transition: bool = False


def _parse_stage(head: Mapping[str, Any]) -> "ProcessStage":
    stage_id = head.get("stageId")
    name = head.get("description")
    next_stage_id = head.get("nextStageId")
    inner_steps = (head.get("steps") or {}).get("list")
    explicit = inner_steps is not None and SET_NEXT_STAGE_STEP in json.dumps(inner_steps)
    return ProcessStage(
        stage_id=_normalize_id(stage_id) if isinstance(stage_id, str) else "",
        name=name if isinstance(name, str) else "",
        next_stage_id=_normalize_id(next_stage_id) if isinstance(next_stage_id, str) else "",
        explicit_transition=explicit,
    )


class StageGraph:
    """
    Directed graph of the stages of one process definition.

    A stage is final when it has no outgoing edge and none of its steps
    performs an explicit stage transition.
    """

    def __init__(self, stages: List[ProcessStage]):
        self.graph = nx.DiGraph()
        for stage in stages:
            self.graph.add_node(stage.stage_id, stage=stage)
        for stage in stages:
            if stage.next_stage_id:
                self.graph.add_edge(stage.stage_id, stage.next_stage_id)

    @classmethod
    def from_client_data(cls, client_data: Any, process_id: Any = None) -> "StageGraph":
        """
        Parse process definition client data.

        Stages are read from steps.list[*].steps.list[0]; entries with an
        empty inner list are skipped.

        Raises:
            InvalidConfigurationError: Client data is not a process definition
        """
        try:
            data = json.loads(client_data) if isinstance(client_data, (str, bytes)) else client_data
            stage_steps = data["steps"]["list"]
        except (TypeError, KeyError, ValueError) as e:
            raise configuration_error(
                ErrorCode.CFG_PROCESS_DEFINITION,
                f"Process definition {process_id} has unreadable client data: {e}",
                operation="ParseProcessDefinition",
            )

        stages = []
        try:
            for step in stage_steps:
                inner = ((step or {}).get("steps") or {}).get("list") or []
                if not inner:
                    continue
                stages.append(_parse_stage(inner[0]))
        except (AttributeError, TypeError) as e:
            raise configuration_error(
                ErrorCode.CFG_PROCESS_DEFINITION,
                f"Process definition {process_id} has a malformed stage: {e}",
                operation="ParseProcessDefinition",
            )
        return cls(stages)

    @property
    def stages(self) -> List[ProcessStage]:
        return [data["stage"] for _, data in self.graph.nodes(data=True) if "stage" in data]

    def final_stage_ids(self) -> Set[str]:
        """Stages without outgoing edges and without an explicit transition step."""
        return {
            node for node, data in self.graph.nodes(data=True)
            if "stage" in data
            and self.graph.out_degree(node) == 0
            and not data["stage"].explicit_transition
        }

    def is_final(self, stage_id: Any) -> bool:
        return _normalize_id(stage_id) in self.final_stage_ids()


# =============================================================================
# OVERLAY
# =============================================================================

def process_flow_reason(parent_state: Optional[int], active_stage_final: bool) -> int:
    """Status reason of a process-flow record given its parent's state."""
    if parent_state == StateCode.INACTIVE:
        if active_stage_final:
            return int(ProcessFlowReason.FINISHED)
        return int(ProcessFlowReason.IN_PROGRESS_PENDING)
    return int(ProcessFlowReason.DEFAULT_IN_PROGRESS)


def governing_edge(process_type: str, in_scope_edges: List[RelationshipEdge]) -> OneToManyEdge:
    """
    In-scope one-to-many edge whose child is the process-flow type.

    Raises:
        InvalidConfigurationError: No such edge
    """
    for edge in in_scope_edges:
        if isinstance(edge, OneToManyEdge) and edge.referencing_type == process_type:
            return edge
    raise configuration_error(
        ErrorCode.CFG_PROCESS_FLOW_RELATIONSHIP,
        f"No relationship links {process_type} to its parent",
        record_type=process_type,
        operation="ResolveProcessFlowParent",
    )


class ProcessFlowOverlay:
    """
    Computes proposed states for process-flow records.

    Stage graphs are cached per process definition for one run.
    """

    def __init__(self, processes, primary_id_attribute: Callable[[str], str]):
        self._processes = processes
        self._primary_id_attribute = primary_id_attribute
        self._graphs: Dict[str, StageGraph] = {}

    def stage_graph(self, process_id: Any) -> StageGraph:
        key = _normalize_id(process_id)
        if key not in self._graphs:
            try:
                client_data = self._processes.process_definition(process_id)
            except CascadeError:
                raise
            except Exception as e:
                raise RetrievalError(
                    f"Process definition {process_id} could not be read: {e}",
                    operation="RetrieveProcessDefinition",
                ) from e
            if client_data is None:
                raise configuration_error(
                    ErrorCode.CFG_PROCESS_DEFINITION,
                    f"Process definition {process_id} not found",
                    operation="RetrieveProcessDefinition",
                )
            self._graphs[key] = StageGraph.from_client_data(client_data, process_id)
        return self._graphs[key]

    def decide(
        self,
        process_type: str,
        records: List[Record],
        in_scope_edges: List[RelationshipEdge],
        computed_states: Mapping[Tuple[str, UUID], int],
    ) -> List[ProposedState]:
        """
        Proposed states of process-flow records.

        Args:
            process_type: Process-flow type
            records: Fetched process-flow records
            in_scope_edges: Edges in scope for the parent call
            computed_states: (type, id) -> state computed earlier in this run
        """
        edge = governing_edge(process_type, in_scope_edges)
        parent_type = edge.referenced_type

        query = queries.process_flows(
            process_type=process_type,
            id_attribute=self._primary_id_attribute(process_type),
            record_ids=[r.record_id for r in records],
            link_attribute=edge.referencing_attribute,
            parent_type=parent_type,
            parent_id_attribute=edge.referenced_attribute,
        )
        try:
            rows = self._processes.process_flow_rows(query)
        except CascadeError:
            raise
        except Exception as e:
            raise RetrievalError(
                f"Process flow query failed: {e}",
                record_type=process_type,
                operation="RetrieveProcessFlows",
            ) from e

        proposed = []
        for row in rows:
            parent_state = self._parent_state(row, parent_type, computed_states)
            final = False
            if row.process_id is not None and row.active_stage_id is not None:
                final = self.stage_graph(row.process_id).is_final(row.active_stage_id)
            proposed.append(ProposedState(
                record_id=row.record_id,
                state_code=parent_state,
                status_reason=process_flow_reason(parent_state, final),
                record_type=process_type,
            ))

        logger.debug(f"Process flow overlay: {len(proposed)} {process_type} record(s) via {parent_type}")
        return proposed

    @staticmethod
    def _parent_state(
        row: ProcessFlowRow,
        parent_type: str,
        computed_states: Mapping[Tuple[str, UUID], int],
    ) -> Optional[int]:
        if row.parent_id is not None:
            computed = computed_states.get((parent_type, row.parent_id))
            if computed is not None:
                return computed
        return row.parent_state_code
