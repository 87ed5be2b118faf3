"""
cascade/ - Recursive cascade traversal

Orchestrator, per-run context, result table, request validation and
the service facade.
"""

from .result import ResultTable
from .context import ProcessedRegistry, TraversalContext
from .request import (
    parse_record_ids,
    parse_type_names,
    validate_request,
    build_request,
)
from .orchestrator import CascadeOrchestrator
from .service import CascadeService, run_cascade

__all__ = [
    # Bookkeeping
    "ResultTable",
    "ProcessedRegistry",
    "TraversalContext",
    # Requests
    "parse_record_ids",
    "parse_type_names",
    "validate_request",
    "build_request",
    # Traversal
    "CascadeOrchestrator",
    "CascadeService",
    "run_cascade",
]
