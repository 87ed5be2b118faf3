"""
errors/aggregator.py - Aggregate and report cascade errors

The cascade is fail-fast, so in practice a single error is collected per
run. Failures are still surfaced through one aggregated exception so the
host sees a single shape regardless of how many sub-failures occurred.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

from .taxonomy import CascadeError, ErrorCategory


@dataclass
class ErrorReport:
    """Aggregated error report."""

    report_id: str = ""
    created_at: datetime = field(default_factory=datetime.utcnow)

    total_errors: int = 0
    by_category: Dict[str, int] = field(default_factory=dict)

    summary: str = ""
    all_errors: List[CascadeError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_id": self.report_id,
            "total_errors": self.total_errors,
            "by_category": self.by_category,
            "summary": self.summary,
            "errors": [e.to_dict() for e in self.all_errors],
        }


class CascadeFailure(Exception):
    """
    Single error surfaced to the caller when a cascade aborts.

    The message is the concatenation of every collected error message,
    one per line.
    """

    def __init__(self, errors: List[CascadeError], cascade_id: Optional[str] = None,
                 report: Optional[ErrorReport] = None):
        self.errors = list(errors)
        self.cascade_id = cascade_id
        self.report = report
        self.message = "\n".join(str(e) for e in self.errors) or "Cascade failed"
        super().__init__(self.message)

    @property
    def primary(self) -> Optional[CascadeError]:
        """First error collected (the one that aborted the run)."""
        return self.errors[0] if self.errors else None

    @property
    def category(self) -> Optional[ErrorCategory]:
        return self.primary.category if self.primary else None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "cascade_id": self.cascade_id,
            "message": self.message,
            "errors": [e.to_dict() for e in self.errors],
        }
        if self.report:
            data["report_id"] = self.report.report_id
            data["by_category"] = self.report.by_category
            data["summary"] = self.report.summary
        return data


class ErrorAggregator:
    """
    Aggregates errors raised during one cascade run.
    """

    def __init__(self):
        self._errors: List[CascadeError] = []

    def add(self, error: CascadeError) -> None:
        """Add an error."""
        self._errors.append(error)

    def has_errors(self) -> bool:
        return bool(self._errors)

    def generate_report(self) -> ErrorReport:
        """Generate aggregated report."""
        report = ErrorReport(
            report_id=str(uuid.uuid4())[:8],
            total_errors=len(self._errors),
        )

        for category in ErrorCategory:
            count = sum(1 for e in self._errors if e.category == category)
            if count > 0:
                report.by_category[category.value] = count

        if report.total_errors:
            report.summary = f"{report.total_errors} error(s) aborted the cascade"
        else:
            report.summary = "No errors"

        report.all_errors = self._errors.copy()
        return report

    def to_failure(self, cascade_id: Optional[str] = None) -> CascadeFailure:
        """Build the aggregated exception, with its report, for the collected errors."""
        return CascadeFailure(self._errors, cascade_id=cascade_id, report=self.generate_report())
