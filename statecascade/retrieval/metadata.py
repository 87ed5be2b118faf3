"""
retrieval/metadata.py - Choice attribute options

Resolves status and status reason labels into option codes.
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Tuple
import logging

from ..contracts.protocols import MetadataService
from ..core.models import AttributeMetadata, AttributeOption
from ..errors.taxonomy import CascadeError, MetadataLookupError, UnknownLabelError

logger = logging.getLogger(__name__)


class OptionResolver:
    """Label -> option lookups, cached per (type, attribute)."""

    def __init__(self, metadata: MetadataService):
        self._metadata = metadata
        self._cache: Dict[Tuple[str, str], AttributeMetadata] = {}

    def attribute_metadata(self, record_type: str, attribute: str) -> AttributeMetadata:
        key = (record_type, attribute)
        if key not in self._cache:
            try:
                self._cache[key] = self._metadata.attribute_metadata(record_type, attribute)
            except CascadeError as e:
                raise e.annotate(record_type, "RetrieveAttribute")
            except Exception as e:
                raise MetadataLookupError(
                    f"Attribute lookup of {attribute} failed: {e}",
                    record_type=record_type,
                    operation="RetrieveAttribute",
                ) from e
        return self._cache[key]

    def column_number(self, record_type: str, attribute: str) -> int:
        return self.attribute_metadata(record_type, attribute).column_number

    def attribute_option(self, record_type: str, attribute: str, label: str) -> AttributeOption:
        """
        Option carrying exactly `label`.

        Raises:
            UnknownLabelError: No option has the label
        """
        metadata = self.attribute_metadata(record_type, attribute)
        if label not in metadata.options:
            raise UnknownLabelError(record_type, attribute, label)
        return AttributeOption(
            column_number=metadata.column_number,
            option_code=metadata.options[label],
        )

    def option_codes(self, record_type: str, attribute: str, labels: Iterable[str]) -> List[int]:
        """Codes of the labels that exist; unknown labels are skipped."""
        metadata = self.attribute_metadata(record_type, attribute)
        codes = []
        for label in labels:
            if label in metadata.options:
                codes.append(metadata.options[label])
            else:
                logger.debug(f"Label '{label}' has no option on {record_type}.{attribute}, skipped")
        return codes
