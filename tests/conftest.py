"""
StateCascade Test Configuration and Fixtures

Provides small in-memory record graphs and request builders shared by
the unit and integration tests.
"""

import json
import uuid
from types import SimpleNamespace

import pytest

from statecascade.core.models import CascadeRequest
from statecascade.store.memory import InMemoryStore


PREFIX = "new"
ORDER = "new_order"
TASK = "new_task"
TAG = "new_tag"
NOTE = "new_note"
ORDER_FLOW = "new_orderflow"

STATE_OPTIONS = {"Active": 0, "Inactive": 1}
REASON_OPTIONS = {
    "Active": 1,
    "Inactive": 2,
    "Cancelled": 3,
    "On Hold": 4,
    "Archived": 5,
}


def make_request(root_type=ORDER, root_ids=(), **overrides) -> CascadeRequest:
    """CascadeRequest with test defaults."""
    values = dict(
        root_type=root_type,
        root_ids=list(root_ids),
        namespace_prefix=PREFIX,
        status_label="Inactive",
        status_reason_label="Cancelled",
    )
    values.update(overrides)
    for key in ("include_types", "exclude_types", "recalculate_types"):
        if key in values:
            values[key] = set(values[key])
    return CascadeRequest(**values)


def client_data(*stages) -> str:
    """
    Process definition client data.

    Each stage is (stage_id, name, next_stage_id, inner_step_classes).
    """
    steps = []
    for stage_id, name, next_stage_id, inner in stages:
        head = {
            "stageId": str(stage_id),
            "description": name,
            "steps": {"list": [{"__class": cls} for cls in inner]},
        }
        if next_stage_id:
            head["nextStageId"] = str(next_stage_id)
        steps.append({"steps": {"list": [head]}})
    return json.dumps({"steps": {"list": steps}})


def _add_entity(store, name, **kwargs):
    store.add_entity(
        name,
        state_options=STATE_OPTIONS,
        status_reason_options=REASON_OPTIONS,
        **kwargs,
    )


@pytest.fixture
def order_graph():
    """One active order with three active tasks."""
    store = InMemoryStore()
    _add_entity(store, ORDER)
    _add_entity(store, TASK)
    store.add_one_to_many(ORDER, TASK, attribute="new_orderid")

    order_id = store.add_record(ORDER)
    task_ids = [store.add_record(TASK, new_orderid=order_id) for _ in range(3)]
    return SimpleNamespace(store=store, order_id=order_id, task_ids=task_ids)


@pytest.fixture
def tagged_graph():
    """Order -> tasks, tasks <-> tags through a junction, tags <-> tags."""
    store = InMemoryStore()
    for name in (ORDER, TASK, TAG):
        _add_entity(store, name)
    store.add_one_to_many(ORDER, TASK, attribute="new_orderid")
    store.add_many_to_many(TASK, TAG, junction="new_task_tag")
    store.add_many_to_many(TAG, TAG, junction="new_tag_tag")

    order_id = store.add_record(ORDER)
    task_ids = [store.add_record(TASK, new_orderid=order_id) for _ in range(2)]
    tag_ids = [store.add_record(TAG) for _ in range(2)]
    store.link("new_task_tag", task_ids[0], tag_ids[0])
    store.link("new_task_tag", task_ids[1], tag_ids[0])
    store.link("new_task_tag", task_ids[1], tag_ids[1])
    store.link("new_tag_tag", tag_ids[0], tag_ids[1])
    return SimpleNamespace(store=store, order_id=order_id, task_ids=task_ids, tag_ids=tag_ids)


@pytest.fixture
def process_flow_graph():
    """Order -> order process flow records at final and non-final stages."""
    store = InMemoryStore()
    _add_entity(store, ORDER)
    store.add_entity(ORDER_FLOW, is_process_flow=True)
    store.add_one_to_many(ORDER, ORDER_FLOW, attribute="bpf_new_orderid")

    process_id = uuid.uuid4()
    qualify, develop, close, review = (uuid.uuid4() for _ in range(4))
    store.add_process(process_id, client_data(
        (qualify, "Qualify", develop, []),
        (develop, "Develop", close, []),
        (close, "Close", None, []),
        (review, "Review", None, ["SetNextStageStep"]),
    ))

    order_id = store.add_record(ORDER)
    at_close = store.add_record(
        ORDER_FLOW, bpf_new_orderid=order_id, processid=process_id, activestageid=close,
    )
    at_qualify = store.add_record(
        ORDER_FLOW, bpf_new_orderid=order_id, processid=process_id, activestageid=qualify,
    )
    at_review = store.add_record(
        ORDER_FLOW, bpf_new_orderid=order_id, processid=process_id, activestageid=review,
    )
    return SimpleNamespace(
        store=store,
        order_id=order_id,
        process_id=process_id,
        stages=SimpleNamespace(qualify=qualify, develop=develop, close=close, review=review),
        at_close=at_close,
        at_qualify=at_qualify,
        at_review=at_review,
    )
