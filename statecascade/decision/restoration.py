"""
decision/restoration.py - Restoration decision

Pure decision function choosing, for one record and one attribute,
between the live value, the newest eligible audit's old or new value,
and the literal value resolved from the request labels.

Known accuracy bound: only the newest eligible audit is compared with
the live record. When audit writes lag by more than one cascade cycle,
the current/valid checks can pick the wrong tier.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Collection, Iterable, List, Optional
from uuid import UUID

from ..core.constants import STATE_ATTRIBUTE, STATUS_REASON_ATTRIBUTE
from ..core.enums import DecisionSource
from ..core.models import AuditEntry, Record


@dataclass(frozen=True)
class RestorationOutcome:
    """Decided value of one attribute and where it came from."""

    value: Optional[int]
    source: DecisionSource


@dataclass(frozen=True)
class RestorationDecision:
    """Decided state and status reason of one record."""

    state: RestorationOutcome
    status_reason: RestorationOutcome
    audit_id: Optional[UUID] = None


def _live_value(record: Record, attribute: str) -> Optional[int]:
    if attribute == STATE_ATTRIBUTE:
        return record.state_code
    if attribute == STATUS_REASON_ATTRIBUTE:
        return record.status_reason
    value = record.attributes.get(attribute)
    return None if value is None else int(value)


def eligible_entries(
    entries: Iterable[AuditEntry],
    record_id: UUID,
    never_restore: Collection[int] = (),
) -> List[AuditEntry]:
    """
    Audits of one record carrying a restorable status reason change.

    An entry is eligible when it changes the status reason and neither
    the old nor the new code is in never_restore. Order is preserved.
    """
    eligible = []
    for entry in entries:
        if entry.record_id != record_id:
            continue
        change = entry.change_for(STATUS_REASON_ATTRIBUTE)
        if change is None:
            continue
        if change.old_code in never_restore or change.new_code in never_restore:
            continue
        eligible.append(entry)
    return eligible


def is_audit_current(entry: AuditEntry, record: Record) -> bool:
    """The audit already reflects the live state and status reason."""
    state_change = entry.change_for(STATE_ATTRIBUTE)
    audit_state = state_change.new_code if state_change is not None else record.state_code
    reason_change = entry.change_for(STATUS_REASON_ATTRIBUTE)
    audit_reason = reason_change.new_code if reason_change is not None else None
    return record.state_code == audit_state and record.status_reason == audit_reason


def is_audit_valid(entry: AuditEntry, record: Record) -> bool:
    """The audit's new status reason differs from the live one."""
    reason_change = entry.change_for(STATUS_REASON_ATTRIBUTE)
    audit_reason = reason_change.new_code if reason_change is not None else None
    return audit_reason != record.status_reason


def decide_attribute(
    record: Record,
    attribute: str,
    entry: Optional[AuditEntry],
    literal: Optional[int],
) -> RestorationOutcome:
    """
    Decide one attribute against the newest eligible audit entry.

    1. No entry: live value. For the state, an entry without a state
       change also yields the live value.
    2. Current entry: step back to its old value.
    3. Valid entry: re-apply its new value.
    4. Otherwise the literal value.
    Null audit values fall back to the literal value.
    """
    live = _live_value(record, attribute)
    if entry is None:
        return _live(live, literal)

    change = entry.change_for(attribute)
    if change is None:
        if attribute == STATE_ATTRIBUTE:
            return _live(live, literal)
        return RestorationOutcome(literal, DecisionSource.LITERAL)

    if is_audit_current(entry, record):
        old = change.old_code
        if old is None:
            return RestorationOutcome(literal, DecisionSource.LITERAL)
        return RestorationOutcome(old, DecisionSource.AUDIT_OLD)

    if is_audit_valid(entry, record):
        new = change.new_code
        if new is None:
            return RestorationOutcome(literal, DecisionSource.LITERAL)
        return RestorationOutcome(new, DecisionSource.AUDIT_NEW)

    return RestorationOutcome(literal, DecisionSource.LITERAL)


def decide_restoration(
    record: Record,
    entries: Iterable[AuditEntry],
    literal_state: Optional[int],
    literal_reason: Optional[int],
    never_restore: Collection[int] = (),
) -> RestorationDecision:
    """Decide state and status reason from the same newest eligible entry."""
    eligible = eligible_entries(entries, record.record_id, never_restore)
    newest = eligible[0] if eligible else None
    return RestorationDecision(
        state=decide_attribute(record, STATE_ATTRIBUTE, newest, literal_state),
        status_reason=decide_attribute(record, STATUS_REASON_ATTRIBUTE, newest, literal_reason),
        audit_id=newest.audit_id if newest is not None else None,
    )


def _live(live: Optional[int], literal: Optional[int]) -> RestorationOutcome:
    if live is None:
        return RestorationOutcome(literal, DecisionSource.LITERAL)
    return RestorationOutcome(live, DecisionSource.LIVE)
