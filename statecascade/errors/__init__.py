"""
errors/ - Error Taxonomy & Aggregation

Structured classification for cascade failures and the single
aggregated exception surfaced to callers.
"""

from .taxonomy import (
    ErrorCategory,
    ErrorCode,
    CascadeError,
    InvalidConfigurationError,
    UnknownLabelError,
    MetadataLookupError,
    RetrievalError,
    AuditParseError,
    configuration_error,
)

from .aggregator import (
    ErrorReport,
    ErrorAggregator,
    CascadeFailure,
)

__all__ = [
    # Taxonomy
    "ErrorCategory",
    "ErrorCode",
    "CascadeError",
    "InvalidConfigurationError",
    "UnknownLabelError",
    "MetadataLookupError",
    "RetrievalError",
    "AuditParseError",
    "configuration_error",
    # Aggregator
    "ErrorReport",
    "ErrorAggregator",
    "CascadeFailure",
]
