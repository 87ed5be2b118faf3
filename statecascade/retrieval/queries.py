"""
retrieval/queries.py - Store query descriptions

Frozen descriptions of the four query shapes the cascade sends to its
collaborators. The store translates them into whatever query language
it speaks.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Tuple
from uuid import UUID

from ..core.constants import (
    AUDIT_ORDER_ATTRIBUTE,
    RECORD_COLUMNS,
)
from ..core.enums import AuditAction


@dataclass(frozen=True)
class InFilterQuery:
    """Records of `record_type` whose `match_attribute` is one of `values`."""

    record_type: str
    match_attribute: str
    values: Tuple[UUID, ...]
    columns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class JunctionQuery:
    """
    Child records joined through a junction type.

    child.<id_attribute> = junction.<link_from>, filtered on
    junction.<link_to> IN values.
    """

    record_type: str
    id_attribute: str
    junction_type: str
    link_from: str
    link_to: str
    values: Tuple[UUID, ...]
    columns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AuditQuery:
    """Create/update audits of `object_ids` touching one attribute column."""

    record_type: str
    object_ids: Tuple[UUID, ...]
    attribute_mask: int
    actions: Tuple[int, ...] = (int(AuditAction.CREATE), int(AuditAction.UPDATE))
    order_by: str = AUDIT_ORDER_ATTRIBUTE
    descending: bool = True


@dataclass(frozen=True)
class ProcessFlowQuery:
    """
    Process-flow records by id, with their active stage and parent.

    Rows are joined to the parent record through `link_attribute`
    (matched against the parent's `parent_id_attribute`).
    """

    process_type: str
    id_attribute: str
    record_ids: Tuple[UUID, ...]
    link_attribute: str
    parent_type: str
    parent_id_attribute: str


def record_columns(id_attribute: str) -> Tuple[str, ...]:
    """Columns requested for cascade records."""
    return (id_attribute,) + RECORD_COLUMNS


def in_filter(record_type: str, id_attribute: str, match_attribute: str,
              values: Iterable[UUID]) -> InFilterQuery:
    return InFilterQuery(
        record_type=record_type,
        match_attribute=match_attribute,
        values=tuple(values),
        columns=record_columns(id_attribute),
    )


def junction(record_type: str, id_attribute: str, junction_type: str,
             link_from: str, link_to: str, values: Iterable[UUID]) -> JunctionQuery:
    return JunctionQuery(
        record_type=record_type,
        id_attribute=id_attribute,
        junction_type=junction_type,
        link_from=link_from,
        link_to=link_to,
        values=tuple(values),
        columns=record_columns(id_attribute),
    )


def audits(record_type: str, object_ids: Iterable[UUID], attribute_mask: int) -> AuditQuery:
    return AuditQuery(
        record_type=record_type,
        object_ids=tuple(object_ids),
        attribute_mask=attribute_mask,
    )


def process_flows(process_type: str, id_attribute: str, record_ids: Iterable[UUID],
                  link_attribute: str, parent_type: str,
                  parent_id_attribute: str) -> ProcessFlowQuery:
    return ProcessFlowQuery(
        process_type=process_type,
        id_attribute=id_attribute,
        record_ids=tuple(record_ids),
        link_attribute=link_attribute,
        parent_type=parent_type,
        parent_id_attribute=parent_id_attribute,
    )
