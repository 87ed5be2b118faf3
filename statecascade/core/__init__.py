"""
core/ - Cascade data model, enums and constants
"""

from .enums import (
    RelationshipKind,
    StateCode,
    ProcessFlowReason,
    DecisionSource,
    AuditAction,
)

from .models import (
    RecordType,
    OneToManyEdge,
    ManyToManyEdge,
    RelationshipEdge,
    EntityRelationships,
    Record,
    ChangedAttribute,
    AuditEntry,
    AttributeOption,
    AttributeMetadata,
    ProcessFlowRow,
    CascadeRequest,
    ProposedState,
)

__all__ = [
    # Enums
    "RelationshipKind",
    "StateCode",
    "ProcessFlowReason",
    "DecisionSource",
    "AuditAction",
    # Models
    "RecordType",
    "OneToManyEdge",
    "ManyToManyEdge",
    "RelationshipEdge",
    "EntityRelationships",
    "Record",
    "ChangedAttribute",
    "AuditEntry",
    "AttributeOption",
    "AttributeMetadata",
    "ProcessFlowRow",
    "CascadeRequest",
    "ProposedState",
]
