"""Header row localization for noisy spreadsheet exports.

Distributor reports often carry titles, filter descriptions ("By: Account"),
grouping rows and blank rows above the real column headers. The locator asks
an optional header oracle first and falls back to a rule-based score.
"""

import logging
import re
from typing import Any, Optional, Sequence

from ..config import settings
from .models import HeaderDetection
from .rows import Row, count_non_empty, is_blank
from .services import HeaderOracle

logger = logging.getLogger(__name__)

MAX_ORACLE_VALUE_CHARS = 50

HEADER_KEYWORD_PATTERN = re.compile(
    r"^(type|date|name|account|customer|product|item|quantity|qty|amount|revenue|price|total"
    r"|memo|description|number|id|state|region|rep|representative|brand|sku|order|invoice"
    r"|cases|units|sales)$",
    re.IGNORECASE,
)
UNDERSCORE_NAME_PATTERN = re.compile(r"^[A-Z][a-z]+(_[A-Z][a-z]+)+", re.IGNORECASE)
UNDERSCORE_NAME_FULL_PATTERN = re.compile(r"^[A-Z][a-z]+(_[A-Z][a-z]+)+$", re.IGNORECASE)
PERIOD_COLUMN_PATTERN = re.compile(r"^\d{2}/\d{4}$")
FULL_DATE_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4}$")
INTEGER_PATTERN = re.compile(r"^\d+$")
SECTION_KEYWORD_PATTERN = re.compile(
    r"^(total|inventory|summary|subtotal|grand total|report|category|share|dataset|user|cube|by|sort)$",
    re.IGNORECASE,
)
METADATA_PREFIX_PATTERN = re.compile(
    r"^(by|sort|total|dataset|user|cube|12 months|share):", re.IGNORECASE
)
METADATA_PAIR_PATTERN = re.compile(r"^(dataset|user|cube|by|sort):", re.IGNORECASE)
FLOAT_PREFIX_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
CURRENCY_NOISE_PATTERN = re.compile(r"[$,\s]")


def parse_float_prefix(text: str) -> Optional[float]:
    """Parse the leading number of a string, ignoring trailing characters."""
    match = FLOAT_PREFIX_PATTERN.match(text.strip())
    if not match:
        return None
    return float(match.group(0))


def _strip_currency(value: Any) -> str:
    return CURRENCY_NOISE_PATTERN.sub("", str(value))


def _value_pattern(value: Any) -> str:
    if is_blank(value):
        return "empty"
    text = str(value)
    if PERIOD_COLUMN_PATTERN.match(text):
        return "date_column"
    if UNDERSCORE_NAME_FULL_PATTERN.match(text):
        return "underscore_name"
    if INTEGER_PATTERN.match(text):
        return "number"
    if isinstance(value, str):
        return "text"
    return "other"


def calculate_header_score(values: Sequence[Any], all_rows: Sequence[Row], row_index: int) -> int:
    """
    Score how header-like a row is.

    Higher scores mean more header-like. Data-row signals (full dates,
    decimal amounts, mostly numeric cells) and report metadata rows
    ("By: Account", "Total:") are penalized.
    """
    score = 0
    strings = [v.strip() for v in values if isinstance(v, str)]

    non_empty = count_non_empty(values)
    score += non_empty * 10

    score += sum(1 for s in strings if HEADER_KEYWORD_PATTERN.match(s)) * 50
    score += sum(1 for s in strings if UNDERSCORE_NAME_PATTERN.match(s)) * 40

    period_columns = sum(1 for s in strings if PERIOD_COLUMN_PATTERN.match(s))
    score += period_columns * 30
    if period_columns >= 5:
        score += 200

    if any(FULL_DATE_PATTERN.match(s) for s in strings):
        score -= 300

    decimal_values = 0
    numeric_cells = 0
    for value in values:
        if value is None:
            continue
        text = _strip_currency(value)
        number = parse_float_prefix(text) if text else None
        if number is None:
            continue
        numeric_cells += 1
        if "." in text and number > 0:
            decimal_values += 1
    if decimal_values >= 2:
        score -= 150
    if numeric_cells > non_empty * 0.6:
        score -= numeric_cells * 20

    if non_empty < 5 and any(SECTION_KEYWORD_PATTERN.match(s) for s in strings):
        score -= 100
    if any(METADATA_PREFIX_PATTERN.match(s) for s in strings):
        score -= 200
    if any(METADATA_PAIR_PATTERN.match(s) for s in strings):
        score -= 150

    if row_index > 0:
        previous = list(all_rows[row_index - 1].values())
        if count_non_empty(previous) < 3:
            score += 30

    score += sum(1 for v in values if isinstance(v, str) and "_" in v) * 15

    if len({_value_pattern(v) for v in values}) >= 3:
        score += 25

    if non_empty < 3 and row_index < 10:
        score -= 50

    short_text = sum(1 for s in strings if 0 < len(s) <= 20)
    if short_text >= non_empty * 0.7 and non_empty >= 4:
        score += 40

    return score


def _serialize_rows(rows: Sequence[Row], limit: int) -> list[dict[str, Any]]:
    serialized = []
    for idx, row in enumerate(rows[:limit]):
        values = []
        for value in row.values():
            if value is None:
                values.append(None)
                continue
            text = str(value)
            if len(text) > MAX_ORACLE_VALUE_CHARS:
                text = text[:MAX_ORACLE_VALUE_CHARS] + "..."
            values.append(text)
        serialized.append({"rowIndex": idx, "values": values})
    return serialized


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_oracle_response(data: Any, row_count: int) -> Optional[HeaderDetection]:
    """Turn a raw oracle response into a HeaderDetection, or None if malformed."""
    if not isinstance(data, dict):
        return None
    index = data.get("headerRowIndex")
    names = data.get("columnNames")
    indices = data.get("columnIndices")
    confidence = data.get("confidence")
    if (
        not _is_number(index)
        or not isinstance(names, list)
        or not isinstance(indices, list)
        or not _is_number(confidence)
    ):
        return None
    if int(index) != index or not 0 <= index < row_count:
        return None
    if not 0 <= confidence <= 100:
        return None
    if not all(isinstance(n, str) for n in names) or not all(
        _is_number(i) and int(i) == i for i in indices
    ):
        return None
    return HeaderDetection(
        index=int(index),
        columns=names,
        column_indices=[int(i) for i in indices],
        confidence=float(confidence),
    )


class HeaderRowLocator:
    """Finds the real header row among the leading rows of an export."""

    def __init__(
        self,
        oracle: Optional[HeaderOracle] = None,
        scan_rows: Optional[int] = None,
        min_oracle_confidence: Optional[float] = None,
    ):
        """
        Initialize the locator.

        Args:
            oracle: Optional header oracle consulted before the rule-based scoring
            scan_rows: How many leading rows to consider (default from settings)
            min_oracle_confidence: Minimum oracle confidence (0-100) to accept its answer
        """
        self.oracle = oracle
        self.scan_rows = scan_rows or settings.header_scan_rows
        self.min_oracle_confidence = (
            min_oracle_confidence
            if min_oracle_confidence is not None
            else settings.header_oracle_min_confidence
        )

    async def locate(self, rows: Sequence[Row]) -> HeaderDetection:
        """Locate the header row and extract its column names."""
        if not rows:
            return HeaderDetection()

        detection = await self._locate_with_oracle(rows)
        if detection is not None:
            return detection

        return self.locate_by_rules(rows)

    async def _locate_with_oracle(self, rows: Sequence[Row]) -> Optional[HeaderDetection]:
        if self.oracle is None:
            return None

        try:
            data = await self.oracle.detect_header(_serialize_rows(rows, self.scan_rows))
        except Exception as e:
            logger.warning(f"Header oracle failed, falling back to rule-based detection: {e}")
            return None

        detection = _validate_oracle_response(data, len(rows))
        if detection is None:
            logger.warning(f"Invalid header oracle response: {data!r}")
            return None
        if detection.confidence < self.min_oracle_confidence:
            logger.info(
                f"Header oracle confidence {detection.confidence} below "
                f"{self.min_oracle_confidence}, using rule-based detection"
            )
            return None

        keys = list(rows[detection.index].keys())
        if all(0 <= i < len(keys) for i in detection.column_indices):
            detection.column_keys = [keys[i] for i in detection.column_indices]

        logger.info(
            f"Oracle detected header at row {detection.index} "
            f"(confidence: {detection.confidence}%)"
        )
        return detection

    def locate_by_rules(self, rows: Sequence[Row]) -> HeaderDetection:
        """Pick the header row by heuristic scoring."""
        if not rows:
            return HeaderDetection()

        best_index = 0
        best_score = 0
        for i in range(min(len(rows), self.scan_rows)):
            values = list(rows[i].values())
            score = calculate_header_score(values, rows, i)
            logger.debug(f"Row {i}: score={score}, values={values[:5]}")
            if score > best_score:
                best_score = score
                best_index = i

        selected = rows[best_index]
        columns = []
        column_indices = []
        column_keys = []
        for position, (key, value) in enumerate(selected.items()):
            if is_blank(value):
                continue
            columns.append(str(value).strip())
            column_indices.append(position)
            column_keys.append(key)

        logger.info(f"Selected row {best_index} as header (score: {best_score}): {columns[:10]}")

        if not columns:
            logger.warning("No column names found in detected header row, using row keys")
            keys = [str(key) for key in selected.keys()]
            return HeaderDetection(
                index=best_index,
                columns=keys,
                column_indices=list(range(len(keys))),
                confidence=50,
                column_keys=list(selected.keys()),
            )

        return HeaderDetection(
            index=best_index,
            columns=columns,
            column_indices=column_indices,
            confidence=60,
            column_keys=column_keys,
        )
