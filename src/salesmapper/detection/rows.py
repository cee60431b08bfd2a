"""Helpers for raw row objects produced by file decoders.

Rows are ordered ``Mapping[str, Any]`` objects. Keys may be synthetic
(``A``, ``B``, ``__EMPTY_1``) so column names are taken from cell values.
"""

import re
from typing import Any, Mapping, Sequence

from .models import HeaderDetection

Row = Mapping[str, Any]

SUMMARY_ROW_PATTERN = re.compile(
    r"^(total|subtotal|grand total|sum|summary|inventory|category|section|group)",
    re.IGNORECASE,
)


def is_blank(value: Any) -> bool:
    """Return True for None or whitespace-only cells."""
    return value is None or str(value).strip() == ""


def count_non_empty(values: Sequence[Any]) -> int:
    return sum(1 for value in values if not is_blank(value))


def is_likely_summary_row(row: Row) -> bool:
    """Check whether a row is a total/section row that should not be sampled."""
    first_value = next((v for v in row.values() if not is_blank(v)), None)
    if isinstance(first_value, str):
        return bool(SUMMARY_ROW_PATTERN.match(first_value.strip()))
    return False


def rekey_row(row: Row, header: HeaderDetection) -> dict[str, Any]:
    """Re-key a data row by the detected column names."""
    if len(header.column_keys) != len(header.columns):
        return {column: row.get(column) for column in header.columns}
    return {
        column: row.get(key)
        for column, key in zip(header.columns, header.column_keys)
    }


def extract_data_rows(rows: Sequence[Row], header: HeaderDetection) -> list[dict[str, Any]]:
    """Return the rows below the header, minus empty and summary rows, keyed by column."""
    data_rows = []
    for row in rows[header.index + 1:]:
        if count_non_empty(list(row.values())) == 0:
            continue
        if is_likely_summary_row(row):
            continue
        data_rows.append(rekey_row(row, header))
    return data_rows
