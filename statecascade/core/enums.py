"""
StateCascade Core Enumerations

All enumeration types used throughout the cascade engine.
"""

from enum import Enum, IntEnum


class RelationshipKind(str, Enum):
    """
    Shape of a relationship edge as reported by the metadata service.
    """
    ONE_TO_MANY = "OneToMany"
    MANY_TO_MANY = "ManyToMany"


class StateCode(IntEnum):
    """
    Record state (statecode) values shared by every record type.
    """
    ACTIVE = 0
    INACTIVE = 1


class ProcessFlowReason(IntEnum):
    """
    Status reasons assigned to process-flow records.

    Process-flow records never take a literal label; their reason is
    derived from the parent state and the active stage.
    """
    DEFAULT_IN_PROGRESS = 1
    FINISHED = 2
    IN_PROGRESS_PENDING = 3


class DecisionSource(str, Enum):
    """
    Where a computed attribute value came from.
    """
    LIVE = "live"            # Current value on the record, left unchanged
    AUDIT_OLD = "audit_old"  # Step back one state using the newest audit
    AUDIT_NEW = "audit_new"  # Audit lags behind, re-apply its new value
    LITERAL = "literal"      # Value resolved from the request labels


class AuditAction(IntEnum):
    """
    Audit actions that can carry status changes.
    """
    CREATE = 1
    UPDATE = 2
