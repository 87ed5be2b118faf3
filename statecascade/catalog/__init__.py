"""
catalog/ - Relationship discovery and scoping
"""

from .relationships import RelationshipCatalog
from .type_filter import TypeFilter

__all__ = [
    "RelationshipCatalog",
    "TypeFilter",
]
