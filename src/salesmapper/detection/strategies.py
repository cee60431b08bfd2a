"""Independent field-mapping strategies.

Each strategy takes the detected column names (plus whatever evidence it
needs) and returns a DetectionResult. Strategies may raise; the arbiter
isolates them from one another.
"""

import logging
import re
from typing import Any, Optional, Sequence, Union

from ..config import settings
from ..evidence.models import FieldSynonym, LearnedMapping
from .models import (
    ColumnMapping,
    DetectionMethod,
    DetectionResult,
    FieldDetail,
    OracleUnavailableError,
    TrainingConfig,
    get_field_key,
)
from .services import MappingOracle
from .values import analyze_data_values

logger = logging.getLogger(__name__)

TRAINING_CONFIG_CONFIDENCE = 0.95
LEARNED_MATCH_THRESHOLD = 0.7
DEFAULT_AI_CONFIDENCE = 0.8
PARTIAL_SYNONYM_FACTOR = 0.8


def _normalize(name: Any) -> str:
    return str(name).lower().strip()


def _average_confidence(details: dict[str, FieldDetail]) -> float:
    if not details:
        return 0.0
    return sum(d.confidence for d in details.values()) / len(details)


def _field_name_patterns(*tiers: tuple[str, float]) -> list[tuple[re.Pattern, float]]:
    return [(re.compile(pattern, re.IGNORECASE), weight) for pattern, weight in tiers]


# Per field, each tier is tried against every column before the next tier
FIELD_PATTERNS: dict[str, list[tuple[re.Pattern, float]]] = {
    "date": _field_name_patterns(
        (r"^(order[_ ]?date|invoice[_ ]?date|sale[_ ]?date|ship[_ ]?date|transaction[_ ]?date)$", 1.0),
        (r"^(period|month[_ ]?year|sales[_ ]?period|reporting[_ ]?period)$", 0.95),
        (r"date", 0.7),
    ),
    "month": _field_name_patterns(
        (r"^(month|sales[_ ]?month|period[_ ]?month|month[_ ]?name|month[_ ]?number|mnth)$", 1.0),
        (r"month", 0.8),
    ),
    "year": _field_name_patterns(
        (r"^(year|sales[_ ]?year|period[_ ]?year|yr)$", 1.0),
        (r"year", 0.8),
    ),
    "revenue": _field_name_patterns(
        (
            r"^(revenue|amount|total|extended[_ ]?price|sale[_ ]?amount|net[_ ]?amount"
            r"|line[_ ]?total|ext[_ ]?price)$",
            1.0,
        ),
        (r"(revenue|amount|price|sales|total|ext[_ ]?price|line[_ ]?amt)", 0.7),
        (r"(amt|value|cost)", 0.5),
    ),
    "account": _field_name_patterns(
        (
            r"^(account|customer|client|ship[_ ]?to|sold[_ ]?to|acct[_ ]?name|cust[_ ]?name"
            r"|customer[_ ]?name)$",
            1.0,
        ),
        (r"(account|customer|client|acct|cust|buyer|purchaser)", 0.7),
    ),
    "product": _field_name_patterns(
        (
            r"^(product|item|sku|part[_ ]?number|item[_ ]?number|prod[_ ]?name|item[_ ]?desc"
            r"|description)$",
            1.0,
        ),
        (r"(product|item|sku|material|part|prod|desc)", 0.7),
    ),
    "quantity": _field_name_patterns(
        (r"^(quantity|qty|units|cases|boxes|count|volume|pieces|qnty|pcs|cs)$", 1.0),
        (r"(quantity|qty|units|cases|boxes|count|pcs|qnty|cs|vol)", 0.8),
    ),
    "order_id": _field_name_patterns(
        (r"^(order[_ ]?id|order[_ ]?number|invoice[_ ]?number|transaction[_ ]?id)$", 1.0),
        (r"(order|invoice|transaction).*(id|number|no)", 0.8),
    ),
    "representative": _field_name_patterns(
        (
            r"^(rep|representative|sales[_ ]?rep|salesperson|account[_ ]?manager|sold[_ ]?by"
            r"|sales[_ ]?person|sales[_ ]?agent)$",
            1.0,
        ),
        (r"(rep|sales[_ ]?rep|salesperson|agent|manager|sold[_ ]?by)", 0.7),
        (r"(sales|agent)", 0.5),
    ),
    "brand": _field_name_patterns(
        (
            r"^(brand|brand[_ ]?name|manufacturer|producer|supplier|vendor[_ ]?name"
            r"|company[_ ]?name)$",
            1.0,
        ),
        (r"(brand|manufacturer|producer|supplier|vendor|company|mfg)", 0.7),
    ),
}


def detect_with_training_config(
    columns: Sequence[str],
    field_mappings: dict[str, Union[str, list[str], None]],
) -> DetectionResult:
    """Map fields using a curated field -> accepted column name(s) table."""
    mapping: ColumnMapping = {}
    details: dict[str, FieldDetail] = {}
    normalized_columns = [(column, _normalize(column)) for column in columns]

    for target_field, candidates in field_mappings.items():
        if not candidates:
            continue
        if not isinstance(candidates, list):
            candidates = [candidates]

        for candidate in candidates:
            if not candidate:
                continue
            wanted = _normalize(candidate)
            matched = next((orig for orig, norm in normalized_columns if norm == wanted), None)
            if matched is None:
                continue

            key = get_field_key(target_field) or target_field
            if key not in mapping:
                mapping[key] = matched
                details[key] = FieldDetail(
                    column=matched,
                    confidence=TRAINING_CONFIG_CONFIDENCE,
                    source="ai_training_config",
                )
                logger.debug(f"Mapped {matched} -> {key} (training config)")
            break

    confidence = _average_confidence(details)
    logger.info(f"Training config mapped {len(mapping)} fields ({confidence:.0%} confidence)")
    return DetectionResult(
        mapping=mapping,
        confidence=confidence,
        method=DetectionMethod.AI_TRAINING,
        details=details,
    )


def apply_learned_mapping(
    columns: Sequence[str], learned_mappings: Sequence[LearnedMapping]
) -> DetectionResult:
    """
    Replay the first past mapping whose columns largely reappear in this file.

    The whole stored mapping is returned, including fields whose column is
    missing from the current file; details only cover present columns.
    """
    column_set = {_normalize(c) for c in columns}

    for learned in learned_mappings:
        learned_columns = [_normalize(c) for c in learned.final_mapping.values() if c]
        if not learned_columns:
            continue

        match_ratio = sum(1 for c in learned_columns if c in column_set) / len(learned_columns)
        if match_ratio < LEARNED_MATCH_THRESHOLD:
            continue

        details = {
            field: FieldDetail(
                column=column, confidence=learned.confidence_score, source="learned"
            )
            for field, column in learned.final_mapping.items()
            if column and _normalize(column) in column_set
        }
        mapping = {field: column for field, column in learned.final_mapping.items() if column}
        return DetectionResult(
            mapping=mapping,
            confidence=match_ratio * learned.confidence_score,
            method=DetectionMethod.LEARNED,
            details=details,
        )

    return DetectionResult.empty(DetectionMethod.LEARNED)


def group_synonyms_by_field(synonyms: Sequence[FieldSynonym]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {}
    for synonym in synonyms:
        grouped.setdefault(synonym.field_type, []).append(synonym.synonym)
    return grouped


async def detect_with_ai(
    oracle: MappingOracle,
    columns: Sequence[str],
    sample_rows: Sequence[dict[str, Any]],
    synonyms: Sequence[FieldSynonym],
    training_config: Optional[TrainingConfig] = None,
) -> DetectionResult:
    """
    Ask the mapping oracle for a mapping.

    Raises:
        OracleUnavailableError: If the oracle fails or its answer has no mapping
    """
    request = {
        "columns": list(columns),
        "sampleData": [dict(row) for row in sample_rows[: settings.ai_sample_rows]],
        "synonymsByField": group_synonyms_by_field(synonyms),
        "aiTrainingConfig": training_config.model_dump() if training_config else None,
    }
    if training_config and training_config.parsing_instructions:
        logger.info("Including training instructions in mapping request")

    data = await oracle.suggest_mapping(request)
    if not isinstance(data, dict) or not isinstance(data.get("mapping"), dict):
        raise OracleUnavailableError("Mapping oracle returned no mapping")

    confidence = data.get("confidence")
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not confidence:
        confidence = DEFAULT_AI_CONFIDENCE

    known_columns = set(columns)
    mapping: ColumnMapping = {}
    details: dict[str, FieldDetail] = {}
    for field, column in data["mapping"].items():
        if not column:
            continue
        if not isinstance(column, str) or column not in known_columns:
            logger.warning(f"Ignoring oracle mapping {field} -> {column!r}: not a detected column")
            continue
        mapping[field] = column
        details[field] = FieldDetail(column=column, confidence=confidence, source="openai")

    logger.info(f"Mapping oracle answered with {confidence:.0%} confidence")
    return DetectionResult(
        mapping=mapping,
        confidence=float(confidence),
        method=DetectionMethod.OPENAI,
        details=details,
    )


def detect_with_synonyms(columns: Sequence[str], synonyms: Sequence[FieldSynonym]) -> DetectionResult:
    """Map columns whose names match, or contain, a known synonym."""
    # normalized synonym -> [(field_type, weight)], in dictionary order
    lookup: dict[str, list[tuple[str, float]]] = {}
    for synonym in synonyms:
        lookup.setdefault(_normalize(synonym.synonym), []).append(
            (synonym.field_type, synonym.confidence_weight or 1.0)
        )

    def strongest(matches: list[tuple[str, float]]) -> tuple[str, float]:
        # first entry wins ties
        best = matches[0]
        for match in matches[1:]:
            if match[1] > best[1]:
                best = match
        return best

    mapping: ColumnMapping = {}
    details: dict[str, FieldDetail] = {}

    for column in columns:
        normalized = _normalize(column)
        if not normalized:
            continue

        if normalized in lookup:
            field_type, weight = strongest(lookup[normalized])
            key = get_field_key(field_type)
            if key and key not in mapping:
                mapping[key] = column
                details[key] = FieldDetail(column=column, confidence=weight, source="synonym-exact")
            continue

        for text, matches in lookup.items():
            if text not in normalized and normalized not in text:
                continue
            field_type, weight = strongest(matches)
            key = get_field_key(field_type)
            if key and key not in mapping:
                mapping[key] = column
                details[key] = FieldDetail(
                    column=column,
                    confidence=weight * PARTIAL_SYNONYM_FACTOR,
                    source="synonym-partial",
                )
                break

    return DetectionResult(
        mapping=mapping,
        confidence=_average_confidence(details),
        method=DetectionMethod.SYNONYM,
        details=details,
    )


def detect_with_patterns(
    columns: Sequence[str], sample_rows: Sequence[dict[str, Any]]
) -> DetectionResult:
    """Map columns by name patterns, then classify leftover columns by their values."""
    mapping: ColumnMapping = {}
    details: dict[str, FieldDetail] = {}

    # A stronger tier anywhere beats a weaker tier on an earlier column
    for field, tiers in FIELD_PATTERNS.items():
        for pattern, weight in tiers:
            column = next((c for c in columns if pattern.search(c)), None)
            if column is not None:
                mapping[field] = column
                details[field] = FieldDetail(column=column, confidence=weight, source="pattern")
                break

    value_mapping, value_details = analyze_data_values(sample_rows, columns, mapping)
    mapping.update(value_mapping)
    details.update(value_details)

    return DetectionResult(
        mapping=mapping,
        confidence=_average_confidence(details),
        method=DetectionMethod.PATTERN,
        details=details,
    )
