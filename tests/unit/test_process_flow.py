"""
Unit tests for decision/process_flow.py
"""

import uuid
from unittest.mock import Mock

import pytest

from statecascade.core.models import ManyToManyEdge, OneToManyEdge, ProcessFlowRow, Record
from statecascade.decision.process_flow import (
    ProcessFlowOverlay,
    ProcessStage,
    StageGraph,
    governing_edge,
    process_flow_reason,
)
from statecascade.errors.taxonomy import ErrorCode, InvalidConfigurationError, RetrievalError

from conftest import ORDER, ORDER_FLOW, client_data


EDGE = OneToManyEdge(ORDER_FLOW, "bpf_new_orderid", ORDER, "new_orderid")


@pytest.fixture
def stages():
    ids = [uuid.uuid4() for _ in range(4)]
    qualify, develop, close, review = ids
    data = client_data(
        (qualify, "Qualify", develop, []),
        (develop, "Develop", close, ["SomeOtherStep"]),
        (close, "Close", None, []),
        (review, "Review", None, ["SetNextStageStep"]),
    )
    return data, ids


class TestStageGraph:
    """Test stage graph parsing."""

    def test_final_stage(self, stages):
        """Only the stage without next stage or explicit transition is final."""
        data, (qualify, develop, close, review) = stages
        graph = StageGraph.from_client_data(data)
        assert graph.is_final(close)
        assert not graph.is_final(qualify)
        assert not graph.is_final(develop)
        assert not graph.is_final(review)

    def test_stage_ids_are_normalized(self, stages):
        """Braced and upper-case ids match."""
        data, (_, _, close, _) = stages
        graph = StageGraph.from_client_data(data)
        assert graph.is_final("{" + str(close).upper() + "}")

    def test_graph_edges(self, stages):
        data, (qualify, develop, close, _) = stages
        graph = StageGraph.from_client_data(data)
        assert graph.graph.has_edge(str(qualify), str(develop))
        assert graph.graph.has_edge(str(develop), str(close))
        assert len(graph.stages) == 4

    def test_empty_inner_lists_are_skipped(self):
        graph = StageGraph.from_client_data({"steps": {"list": [{"steps": {"list": []}}]}})
        assert graph.stages == []

    def test_unreadable_client_data(self):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            StageGraph.from_client_data("{}")
        assert exc_info.value.code == ErrorCode.CFG_PROCESS_DEFINITION

    def test_malformed_stage_entries(self):
        """Non-object stage entries are reported as a bad process definition."""
        for data in (
            {"steps": {"list": [{"steps": {"list": ["oops"]}}]}},
            {"steps": {"list": ["oops"]}},
            {"steps": {"list": [{"steps": ["oops"]}]}},
        ):
            with pytest.raises(InvalidConfigurationError) as exc_info:
                StageGraph.from_client_data(data, process_id="p1")
            assert exc_info.value.code == ErrorCode.CFG_PROCESS_DEFINITION
            assert "p1" in str(exc_info.value)

    def test_final_stages_follow_edges(self, stages):
        data, (_, _, close, _) = stages
        assert StageGraph.from_client_data(data).final_stage_ids() == {str(close)}

    def test_stage_pointing_outside_definition_is_not_final(self):
        """An edge to a stage missing from the definition still counts."""
        graph = StageGraph([ProcessStage("a", next_stage_id="b")])
        assert graph.graph.has_edge("a", "b")
        assert graph.final_stage_ids() == set()
        assert [s.stage_id for s in graph.stages] == ["a"]


class TestReasonMapping:
    """Test process flow status reasons."""

    def test_inactive_parent(self):
        assert process_flow_reason(1, active_stage_final=True) == 2
        assert process_flow_reason(1, active_stage_final=False) == 3

    def test_active_or_unknown_parent(self):
        assert process_flow_reason(0, active_stage_final=True) == 1
        assert process_flow_reason(None, active_stage_final=False) == 1


class TestGoverningEdge:
    """Test parent relationship resolution."""

    def test_finds_one_to_many_edge(self):
        other = ManyToManyEdge(ORDER, ORDER_FLOW, "j", "a", "b")
        assert governing_edge(ORDER_FLOW, [other, EDGE]) is EDGE

    def test_missing_edge(self):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            governing_edge(ORDER_FLOW, [])
        assert exc_info.value.code == ErrorCode.CFG_PROCESS_FLOW_RELATIONSHIP
        assert exc_info.value.record_type == ORDER_FLOW


class TestProcessFlowOverlay:
    """Test overlay decisions."""

    def _overlay(self, stages, rows):
        data, _ = stages
        processes = Mock()
        processes.process_flow_rows.return_value = rows
        processes.process_definition.return_value = data
        return ProcessFlowOverlay(processes, lambda t: f"{t}id"), processes

    def test_uses_state_computed_in_run(self, stages):
        """A parent state computed earlier in the run wins over the live one."""
        _, (_, _, close, _) = stages
        parent_id, flow_id, process_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        rows = [ProcessFlowRow(flow_id, process_id, close, parent_id, parent_state_code=0)]
        overlay, processes = self._overlay(stages, rows)

        proposed = overlay.decide(
            ORDER_FLOW, [Record(ORDER_FLOW, flow_id)], [EDGE], {(ORDER, parent_id): 1},
        )
        assert [(p.state_code, p.status_reason) for p in proposed] == [(1, 2)]

        query = processes.process_flow_rows.call_args[0][0]
        assert query.record_ids == (flow_id,)
        assert query.link_attribute == "bpf_new_orderid"
        assert query.parent_id_attribute == "new_orderid"

    def test_falls_back_to_live_parent_state(self, stages):
        _, (qualify, _, _, _) = stages
        flow_id = uuid.uuid4()
        rows = [ProcessFlowRow(flow_id, uuid.uuid4(), qualify, uuid.uuid4(), parent_state_code=1)]
        overlay, _ = self._overlay(stages, rows)

        proposed = overlay.decide(ORDER_FLOW, [Record(ORDER_FLOW, flow_id)], [EDGE], {})
        assert [(p.state_code, p.status_reason) for p in proposed] == [(1, 3)]

    def test_stage_graph_cached_per_process(self, stages):
        _, (_, _, close, _) = stages
        process_id = uuid.uuid4()
        rows = [
            ProcessFlowRow(uuid.uuid4(), process_id, close, None, None),
            ProcessFlowRow(uuid.uuid4(), process_id, close, None, None),
        ]
        overlay, processes = self._overlay(stages, rows)
        overlay.decide(ORDER_FLOW, [Record(ORDER_FLOW, r.record_id) for r in rows], [EDGE], {})
        assert processes.process_definition.call_count == 1

    def test_missing_definition(self, stages):
        overlay, processes = self._overlay(stages, [])
        processes.process_definition.return_value = None
        with pytest.raises(InvalidConfigurationError) as exc_info:
            overlay.stage_graph(uuid.uuid4())
        assert exc_info.value.code == ErrorCode.CFG_PROCESS_DEFINITION

    def test_query_failure(self, stages):
        overlay, processes = self._overlay(stages, [])
        processes.process_flow_rows.side_effect = OSError("down")
        with pytest.raises(RetrievalError):
            overlay.decide(ORDER_FLOW, [Record(ORDER_FLOW, uuid.uuid4())], [EDGE], {})
