"""Recording mapping outcomes so later uploads can learn from them."""

import logging
import re
from typing import Optional

from .base import MappingHistoryStore
from .models import MappingHistoryRecord

logger = logging.getLogger(__name__)

_DATE_PATTERNS = (
    re.compile(r"\d{4}-\d{2}-\d{2}"),
    re.compile(r"\d{4}_\d{2}_\d{2}"),
    re.compile(r"\d{2}-\d{2}-\d{4}"),
)
_DIGITS = re.compile(r"\d+")
_SEPARATORS = re.compile(r"[_\-\s%]+")


def generate_filename_pattern(filename: str) -> str:
    """
    Reduce a filename to a pattern shared by files of the same series.

    Dates and digit runs become ``%`` and separator runs collapse to a
    single ``%``, e.g. ``sales_2024-01-15_report.csv`` -> ``sales%report.csv``.
    Applying it to its own output returns the same string.
    """
    pattern = filename.lower()
    for date_pattern in _DATE_PATTERNS:
        pattern = date_pattern.sub("%", pattern)
    pattern = _DIGITS.sub("%", pattern)
    return _SEPARATORS.sub("%", pattern)


async def save_column_mapping_history(
    store: MappingHistoryStore,
    organization_id: str,
    upload_id: Optional[str],
    distributor_id: Optional[str],
    filename: str,
    detected_columns: list[str],
    final_mapping: dict[str, Optional[str]],
    confidence_score: float,
    detection_method: str,
    rows_processed: int,
    success_rate: float,
) -> MappingHistoryRecord:
    """
    Persist the mapping used for an upload and credit the synonyms it used.

    Called by the upload pipeline after the detection result was applied,
    never during detection itself.
    """
    record = await store.save_mapping_history(
        MappingHistoryRecord(
            organization_id=organization_id,
            upload_id=upload_id,
            distributor_id=distributor_id,
            filename_pattern=generate_filename_pattern(filename),
            detected_columns=list(detected_columns),
            final_mapping=dict(final_mapping),
            confidence_score=confidence_score,
            detection_method=detection_method,
            rows_processed=rows_processed,
            success_rate=success_rate,
        )
    )

    for column in final_mapping.values():
        if not column:
            continue
        try:
            await store.increment_synonym_usage(organization_id, column)
        except Exception as e:
            logger.warning(f"Failed to update synonym usage for '{column}': {e}")

    return record
