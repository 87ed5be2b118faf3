"""
catalog/type_filter.py - Type Filter

Decides which relationship edges are in scope: custom types of the
request namespace plus the explicitly included types.
"""

from __future__ import annotations
from typing import Iterable, List, Optional, Set

from ..core.constants import PREFIX_SEPARATOR
from ..core.models import ManyToManyEdge, OneToManyEdge, RelationshipEdge


class TypeFilter:
    """
    Namespace and include-list filter over relationship edges.

    A type matches when its name starts with "<prefix>_" or when it is
    listed in the include set.
    """

    def __init__(self, prefix: str, include: Optional[Iterable[str]] = None):
        self.prefix = prefix
        self.include: Set[str] = set(include or ())

    def matches_namespace(self, record_type: str) -> bool:
        if record_type in self.include:
            return True
        return bool(self.prefix) and record_type.startswith(self.prefix + PREFIX_SEPARATOR)

    def edge_in_scope(self, edge: RelationshipEdge, origin_type: str = "",
                      processed: Optional[Set[str]] = None) -> bool:
        """
        Whether one edge is in scope.

        One-to-many edges need a matching referencing (child) type.
        Many-to-many edges need both endpoints to match, and are dropped
        when an endpoint is the origin type and that type was already
        processed, so a junction never walks straight back to its parent.
        """
        if isinstance(edge, OneToManyEdge):
            return self.matches_namespace(edge.referencing_type)

        if not (self.matches_namespace(edge.type_a) and self.matches_namespace(edge.type_b)):
            return False

        processed = processed or set()
        for endpoint in (edge.type_a, edge.type_b):
            if origin_type and endpoint == origin_type and endpoint in processed:
                return False
        return True

    def in_scope(self, edges: Iterable[RelationshipEdge], origin_type: str = "",
                 processed: Optional[Set[str]] = None) -> List[RelationshipEdge]:
        """In-scope edges, catalog order preserved."""
        return [e for e in edges if self.edge_in_scope(e, origin_type, processed)]

    @staticmethod
    def child_type(edge: RelationshipEdge, current_type: str) -> str:
        """Type reached by walking the edge away from current_type."""
        if isinstance(edge, ManyToManyEdge):
            return edge.other_endpoint(current_type)
        return edge.referencing_type
