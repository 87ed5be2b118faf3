"""
cascade/request.py - Request parsing and validation

Turns the loosely typed host input (comma separated ids and type names)
into a CascadeRequest and checks it against the namespace rules.
"""

from __future__ import annotations
from typing import Any, Iterable, List, Optional, Union
from uuid import UUID
import logging

from ..core.constants import PREFIX_SEPARATOR
from ..core.models import CascadeRequest
from ..errors.taxonomy import ErrorCode, InvalidConfigurationError, configuration_error

logger = logging.getLogger(__name__)

CsvOrIterable = Optional[Union[str, Iterable[Any]]]


def _split(values: CsvOrIterable) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        values = values.split(",")
    return [str(v).strip() for v in values if str(v).strip()]


def parse_record_ids(values: CsvOrIterable) -> List[UUID]:
    """Valid UUIDs in order, duplicates removed; unparsable ids are dropped."""
    ids: List[UUID] = []
    for raw in _split(values):
        try:
            record_id = UUID(raw.strip("{}"))
        except ValueError:
            logger.warning(f"Dropping invalid record id '{raw}'")
            continue
        if record_id not in ids:
            ids.append(record_id)
    return ids


def parse_type_names(values: CsvOrIterable) -> List[str]:
    return _split(values)


def _check_prefix(names: Iterable[str], prefix: str, action: str) -> None:
    expected = (prefix + PREFIX_SEPARATOR).lower()
    for name in names:
        if not name.lower().startswith(expected):
            raise configuration_error(
                ErrorCode.CFG_PREFIX_MISMATCH,
                f"Type to {action} '{name}' does not carry the namespace prefix '{prefix}'",
                operation="ValidateRequest",
                type_name=name,
            )


def validate_request(request: CascadeRequest) -> CascadeRequest:
    """
    Check a request before the cascade starts.

    Exclude and recalculate types must carry the namespace prefix
    (case-insensitive); include types are accepted as given.

    Raises:
        InvalidConfigurationError: A rule is violated
    """
    if not request.root_type:
        raise InvalidConfigurationError("Root record type is required", operation="ValidateRequest")
    if not request.root_ids:
        raise InvalidConfigurationError(
            "No valid root record id provided",
            record_type=request.root_type,
            operation="ValidateRequest",
        )
    if not request.namespace_prefix:
        raise InvalidConfigurationError("Namespace prefix is required", operation="ValidateRequest")

    _check_prefix(sorted(request.exclude_types), request.namespace_prefix, "exclude")
    _check_prefix(sorted(request.recalculate_types), request.namespace_prefix, "recalculate")
    return request


def build_request(
    root_type: str,
    root_ids: CsvOrIterable,
    namespace_prefix: str,
    status_label: str = "",
    status_reason_label: str = "",
    update_parent: bool = False,
    restore_previous: bool = False,
    include_types: CsvOrIterable = None,
    exclude_types: CsvOrIterable = None,
    recalculate_types: CsvOrIterable = None,
    cascade_recalculation: bool = False,
    never_restore_reason_labels: CsvOrIterable = None,
) -> CascadeRequest:
    """Parse loosely typed input into a validated CascadeRequest."""
    request = CascadeRequest(
        root_type=root_type.strip() if root_type else "",
        root_ids=parse_record_ids(root_ids),
        namespace_prefix=namespace_prefix.strip() if namespace_prefix else "",
        status_label=status_label or "",
        status_reason_label=status_reason_label or "",
        update_parent=update_parent,
        restore_previous=restore_previous,
        include_types=set(parse_type_names(include_types)),
        exclude_types=set(parse_type_names(exclude_types)),
        recalculate_types=set(parse_type_names(recalculate_types)),
        cascade_recalculation=cascade_recalculation,
        never_restore_reason_labels=_split(never_restore_reason_labels),
    )
    return validate_request(request)
