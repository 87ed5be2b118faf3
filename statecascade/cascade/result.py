"""
cascade/result.py - Result table

Proposed states keyed by type and record id, in discovery order.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from ..core.models import ProposedState


class ResultTable:
    """
    type -> {record_id -> ProposedState}.

    Merging a type again replaces the entries of the newly computed ids
    and keeps the untouched earlier ones.
    """

    def __init__(self):
        self._by_type: Dict[str, Dict[UUID, ProposedState]] = {}

    def merge(self, record_type: str, states: Iterable[ProposedState],
              collection_name: Optional[str] = None) -> None:
        """Merge newly computed states of one type; new ids come first."""
        merged: Dict[UUID, ProposedState] = {}
        for state in states:
            if collection_name is not None and state.collection_name is None:
                state = state.with_collection(collection_name)
            merged[state.record_id] = state

        for record_id, state in self._by_type.get(record_type, {}).items():
            if record_id not in merged:
                merged[record_id] = state

        self._by_type[record_type] = merged

    def backfill_collection(self, record_type: str, collection_name: Optional[str]) -> None:
        """Set the collection name on entries that do not have one."""
        entries = self._by_type.get(record_type)
        if not entries or collection_name is None:
            return
        for record_id, state in entries.items():
            if state.collection_name is None:
                entries[record_id] = state.with_collection(collection_name)

    def get(self, record_type: str, record_id: UUID) -> Optional[ProposedState]:
        return self._by_type.get(record_type, {}).get(record_id)

    def for_type(self, record_type: str) -> List[ProposedState]:
        return list(self._by_type.get(record_type, {}).values())

    @property
    def types(self) -> List[str]:
        return list(self._by_type)

    def flatten(self) -> List[ProposedState]:
        """All proposed states, type by type in discovery order."""
        return [s for entries in self._by_type.values() for s in entries.values()]

    def to_list(self) -> List[dict]:
        return [s.to_dict() for s in self.flatten()]

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._by_type.values())

    def __contains__(self, record_type: str) -> bool:
        return record_type in self._by_type
