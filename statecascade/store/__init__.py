"""
store/ - Collaborator implementations
"""

from .memory import InMemoryStore

__all__ = [
    "InMemoryStore",
]
