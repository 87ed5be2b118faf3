"""
retrieval/ - Record, audit and option lookups against the store
"""

from .queries import (
    InFilterQuery,
    JunctionQuery,
    AuditQuery,
    ProcessFlowQuery,
    record_columns,
)
from .fetcher import RecordFetcher, row_to_record
from .audit_reader import AuditReader, parse_change_data, group_by_record
from .metadata import OptionResolver

__all__ = [
    # Queries
    "InFilterQuery",
    "JunctionQuery",
    "AuditQuery",
    "ProcessFlowQuery",
    "record_columns",
    # Fetching
    "RecordFetcher",
    "row_to_record",
    # Audits
    "AuditReader",
    "parse_change_data",
    "group_by_record",
    # Options
    "OptionResolver",
]
