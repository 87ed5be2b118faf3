"""
statecascade/contracts - Collaborator interfaces
"""

from .protocols import (
    MetadataService,
    QueryService,
    AuditService,
    ProcessDefinitionService,
)

__all__ = [
    'MetadataService',
    'QueryService',
    'AuditService',
    'ProcessDefinitionService',
]
