"""
errors/taxonomy.py - Cascade error classification

Every failure raised by the cascade core is a CascadeError subclass
carrying a stable code, a category, and the record type / operation
that was being processed when it happened.
"""

from __future__ import annotations
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error categories."""
    # Bad request input or store configuration (1xxx)
    CONFIGURATION = "configuration"

    # Metadata lookups (2xxx)
    METADATA = "metadata"

    # Record queries (3xxx)
    RETRIEVAL = "retrieval"

    # Change history payloads (4xxx)
    AUDIT = "audit"


class ErrorCode(Enum):
    """Specific error codes."""

    # Configuration (1xxx)
    CFG_INVALID = 1001
    CFG_PREFIX_MISMATCH = 1002
    CFG_UNKNOWN_LABEL = 1003
    CFG_PROCESS_FLOW_RELATIONSHIP = 1004
    CFG_ROOT_NOT_FOUND = 1005
    CFG_PROCESS_DEFINITION = 1006

    # Metadata (2xxx)
    MET_LOOKUP = 2001

    # Retrieval (3xxx)
    RET_QUERY = 3001

    # Audit (4xxx)
    AUD_PARSE = 4001


class CascadeError(Exception):
    """
    Base class for cascade errors.

    Provides:
    - Error code for programmatic handling
    - The record type and operation being processed
    - Detail context for debugging
    """

    code: ErrorCode = ErrorCode.CFG_INVALID
    category: ErrorCategory = ErrorCategory.CONFIGURATION

    def __init__(
        self,
        message: str = "",
        *,
        record_type: str = "",
        operation: str = "",
        details: Optional[Dict[str, Any]] = None,
        **kwargs,
    ):
        self.message = message or self.__class__.__doc__ or "Cascade error"
        self.record_type = record_type
        self.operation = operation
        self.details = details or {}
        self.details.update(kwargs)

        super().__init__(self.message)

    def annotate(self, record_type: str, operation: str) -> "CascadeError":
        """Attach type/operation context if not already present."""
        if not self.record_type:
            self.record_type = record_type
        if not self.operation:
            self.operation = operation
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "code": self.code.value,
            "category": self.category.value,
            "message": self.message,
            "record_type": self.record_type,
            "operation": self.operation,
            "details": self.details,
        }

    def __str__(self) -> str:
        if self.record_type and self.operation:
            return f"{self.operation} on {self.record_type} failed: {self.message}"
        if self.record_type:
            return f"Processing of {self.record_type} failed: {self.message}"
        return self.message


# =============================================================================
# SPECIFIC ERROR TYPES
# =============================================================================

class InvalidConfigurationError(CascadeError):
    """Request input does not fit the store configuration."""

    code = ErrorCode.CFG_INVALID
    category = ErrorCategory.CONFIGURATION


class UnknownLabelError(InvalidConfigurationError):
    """A status or status reason label has no matching option."""

    code = ErrorCode.CFG_UNKNOWN_LABEL

    def __init__(self, record_type: str, attribute: str, label: str, **kwargs):
        super().__init__(
            f"No option labelled '{label}' on {record_type}.{attribute}",
            record_type=record_type,
            operation=kwargs.pop("operation", "ResolveLabel"),
            attribute=attribute,
            label=label,
            **kwargs,
        )
        self.attribute = attribute
        self.label = label


class MetadataLookupError(CascadeError):
    """Type or attribute metadata could not be retrieved."""

    code = ErrorCode.MET_LOOKUP
    category = ErrorCategory.METADATA


class RetrievalError(CascadeError):
    """A record query against the store failed."""

    code = ErrorCode.RET_QUERY
    category = ErrorCategory.RETRIEVAL


class AuditParseError(CascadeError):
    """A change-history payload is malformed."""

    code = ErrorCode.AUD_PARSE
    category = ErrorCategory.AUDIT


def configuration_error(code: ErrorCode, message: str, **kwargs) -> InvalidConfigurationError:
    """Factory for configuration errors with a specific code."""
    error = InvalidConfigurationError(message, **kwargs)
    error.code = code
    return error
