"""
cascade/context.py - Traversal context

Per-run bookkeeping owned by a single cascade invocation: visited types,
the growing recalculate set, the result table and the states computed
so far.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Set, Tuple
from uuid import UUID
import uuid

from ..core.models import CascadeRequest
from .result import ResultTable


class ProcessedRegistry:
    """
    Visited types plus the types that must be recomputed.

    A visited type is skipped unless it is in the recalculate set.
    """

    def __init__(self, recalculate: Optional[Iterable[str]] = None):
        self.processed: Set[str] = set()
        self.recalculate: Set[str] = set(recalculate or ())

    def mark_processed(self, record_type: str) -> None:
        self.processed.add(record_type)

    def is_processed(self, record_type: str) -> bool:
        return record_type in self.processed

    def should_recalculate(self, record_type: str) -> bool:
        return record_type in self.recalculate

    def add_recalculate(self, record_type: str) -> bool:
        """Add a type to the recalculate set; True when newly added."""
        if record_type in self.recalculate:
            return False
        self.recalculate.add(record_type)
        return True

    def should_skip(self, record_type: str) -> bool:
        return self.is_processed(record_type) and not self.should_recalculate(record_type)


@dataclass
class TraversalContext:
    """Everything one cascade run reads and writes besides the store."""

    request: CascadeRequest
    registry: Optional[ProcessedRegistry] = None
    results: ResultTable = field(default_factory=ResultTable)
    updated_parents: Dict[Tuple[str, UUID], Optional[int]] = field(default_factory=dict)
    cascade_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])

    def __post_init__(self):
        if self.registry is None:
            self.registry = ProcessedRegistry(self.request.recalculate_types)

    def record_update(self, record_type: str, record_id: UUID, state_code: Optional[int]) -> None:
        """Remember a computed state; later computations overwrite earlier ones."""
        self.updated_parents[(record_type, record_id)] = state_code

    def is_excluded(self, record_type: str) -> bool:
        return record_type in self.request.exclude_types
