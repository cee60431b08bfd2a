"""Value-based column classification.

Used by the pattern strategy for columns whose names gave nothing away.
Each check samples at most the first ten non-empty values of a column.
"""

import math
import re
from datetime import date, datetime
from typing import Any, Optional, Sequence

import pandas as pd

from .header import parse_float_prefix
from .models import ColumnMapping, FieldDetail
from .rows import is_blank

SAMPLE_SIZE = 10

DATE_LIKE_PATTERN = re.compile(r"\d{1,4}[-/]\d{1,2}[-/]\d{1,4}")
MONTH_NAME_PATTERN = re.compile(
    r"^(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec|january|february|march|april"
    r"|june|july|august|september|october|november|december)$",
    re.IGNORECASE,
)
CURRENCY_NOISE_PATTERN = re.compile(r"[$,\s]")

NUMBER_PATTERN = re.compile(r"^[+-]?\d+(\.\d+)?$")

# field -> (confidence) for value-based matches, in check order
VALUE_ANALYSIS_CONFIDENCE = {
    "date": 0.85,
    "month": 0.85,
    "year": 0.85,
    "revenue": 0.8,
    "quantity": 0.75,
}


def _sample(values: Sequence[Any]) -> list[Any]:
    return list(values[:SAMPLE_SIZE])


def _ratio(matches: int, values: Sequence[Any]) -> float:
    denominator = min(len(values), SAMPLE_SIZE)
    if denominator == 0:
        return 0.0
    return matches / denominator


def as_integer(value: Any) -> Optional[int]:
    """Return the value as an int when it is a whole number, else None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) and value.is_integer() else None
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def _parses_as_date(text: str) -> bool:
    text = text.strip()
    if not text:
        return False
    # Plain numbers are years, quantities or amounts, except compact YYYYMMDD
    if NUMBER_PATTERN.match(text) and not (text.isdigit() and len(text) == 8):
        return False
    # A lone month name is a month, not a date
    if MONTH_NAME_PATTERN.match(text):
        return False
    return not pd.isna(pd.to_datetime(text, errors="coerce"))


def is_likely_date(values: Sequence[Any]) -> bool:
    matches = 0
    for value in _sample(values):
        if isinstance(value, (date, datetime)):
            matches += 1
            continue
        text = str(value)
        if DATE_LIKE_PATTERN.search(text) or _parses_as_date(text):
            matches += 1
    return _ratio(matches, values) >= 0.7


def is_likely_month(values: Sequence[Any]) -> bool:
    matches = 0
    for value in _sample(values):
        text = str(value).strip().lower()
        if MONTH_NAME_PATTERN.match(text):
            matches += 1
            continue
        number = as_integer(value)
        if number is not None and 1 <= number <= 12:
            matches += 1
    return _ratio(matches, values) >= 0.7


def is_likely_year(values: Sequence[Any]) -> bool:
    matches = 0
    for value in _sample(values):
        number = as_integer(value)
        if number is not None and 2000 <= number <= 2100:
            matches += 1
    return _ratio(matches, values) >= 0.7


def is_likely_revenue(values: Sequence[Any]) -> bool:
    matches = 0
    has_decimal = False
    for value in _sample(values):
        text = CURRENCY_NOISE_PATTERN.sub("", str(value))
        number = parse_float_prefix(text)
        if number is not None and number > 0:
            matches += 1
            if "." in text and number > 10:
                has_decimal = True
    return _ratio(matches, values) >= 0.8 and has_decimal


def is_likely_quantity(values: Sequence[Any]) -> bool:
    matches = 0
    for value in _sample(values):
        number = as_integer(value)
        if number is not None and 0 < number < 10000:
            matches += 1
    return _ratio(matches, values) >= 0.7


VALUE_CHECKS = (
    ("date", is_likely_date),
    ("month", is_likely_month),
    ("year", is_likely_year),
    ("revenue", is_likely_revenue),
    ("quantity", is_likely_quantity),
)


def analyze_data_values(
    sample_rows: Sequence[dict[str, Any]],
    columns: Sequence[str],
    existing_mapping: ColumnMapping,
) -> tuple[ColumnMapping, dict[str, FieldDetail]]:
    """
    Infer fields from column contents for columns no mapping has claimed.

    Each column is assigned at most one field, and only fields absent from
    ``existing_mapping`` (or already claimed in this pass) are considered.

    Returns:
        Tuple of (mapping, details) for the newly inferred fields
    """
    mapping: ColumnMapping = {}
    details: dict[str, FieldDetail] = {}
    used_columns = set(existing_mapping.values())

    for column in columns:
        if column in used_columns:
            continue

        values = [row.get(column) for row in sample_rows]
        values = [v for v in values if not is_blank(v)]
        if not values:
            continue

        for field, check in VALUE_CHECKS:
            if field in existing_mapping or field in mapping:
                continue
            if check(values):
                mapping[field] = column
                details[field] = FieldDetail(
                    column=column,
                    confidence=VALUE_ANALYSIS_CONFIDENCE[field],
                    source="value-analysis",
                )
                used_columns.add(column)
                break

    return mapping, details
