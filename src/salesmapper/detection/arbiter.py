"""Result sanitizing, hybrid combination and best-result selection."""

import inspect
import logging
import math
from typing import Any, Awaitable, Callable, Optional, Union

from .models import DetectionMethod, DetectionResult, FieldDetail

logger = logging.getLogger(__name__)

# Per-strategy share of a field's hybrid score
HYBRID_WEIGHT = 0.5

StrategyCall = Callable[[], Union[DetectionResult, Awaitable[DetectionResult]]]


def _as_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if math.isnan(value):
        return 0.0
    return min(max(float(value), 0.0), 1.0)


def _as_method(value: Any, default: DetectionMethod) -> DetectionMethod:
    try:
        return DetectionMethod(value)
    except ValueError:
        return default


def sanitize_result(
    result: Union[DetectionResult, dict, None],
    default_method: DetectionMethod = DetectionMethod.PATTERN,
) -> DetectionResult:
    """
    Coerce any strategy output into a well-formed DetectionResult.

    Missing or mistyped containers become empty, confidence becomes a number
    in [0, 1] and is 0 for an empty mapping. Non-string mapping values are
    dropped and details are kept only for fields that remain mapped.
    Applying it twice changes nothing.
    """
    if isinstance(result, DetectionResult):
        raw = result.model_dump()
    elif isinstance(result, dict):
        raw = result
    else:
        raw = {}

    raw_mapping = raw.get("mapping")
    if not isinstance(raw_mapping, dict):
        raw_mapping = {}
    mapping = {
        str(field): column
        for field, column in raw_mapping.items()
        if isinstance(column, str) and column
    }

    raw_details = raw.get("details")
    if not isinstance(raw_details, dict):
        raw_details = {}
    details: dict[str, FieldDetail] = {}
    for field, detail in raw_details.items():
        if field not in mapping:
            continue
        if isinstance(detail, FieldDetail):
            detail = detail.model_dump()
        if not isinstance(detail, dict) or not isinstance(detail.get("column"), str):
            continue
        details[field] = FieldDetail(
            column=detail["column"],
            confidence=_as_confidence(detail.get("confidence")),
            source=str(detail.get("source") or default_method.value),
        )

    columns = raw.get("columns")
    column_indices = raw.get("column_indices")
    return DetectionResult(
        mapping=mapping,
        confidence=_as_confidence(raw.get("confidence")) if mapping else 0.0,
        method=_as_method(raw.get("method"), default_method),
        columns=[c for c in columns if isinstance(c, str)] if isinstance(columns, list) else [],
        column_indices=(
            [i for i in column_indices if isinstance(i, int) and not isinstance(i, bool)]
            if isinstance(column_indices, list)
            else []
        ),
        details=details,
    )


def combine_results(results: list[DetectionResult]) -> DetectionResult:
    """
    Merge per-field evidence from several strategies.

    Every strategy proposing a (field, column) pair adds its field
    confidence (or its overall confidence) times HYBRID_WEIGHT to that
    pair. Each field keeps its highest-scoring column, capped at 1.0.
    """
    # field -> column -> [score, contributing methods]
    scores: dict[str, dict[str, list]] = {}

    for result in results:
        for field, column in result.mapping.items():
            if not column:
                continue
            detail = result.details.get(field)
            confidence = (detail.confidence if detail else 0.0) or result.confidence
            entry = scores.setdefault(field, {}).setdefault(column, [0.0, []])
            entry[0] += confidence * HYBRID_WEIGHT
            entry[1].append(result.method.value)

    mapping: dict[str, str] = {}
    details: dict[str, FieldDetail] = {}
    for field, candidates in scores.items():
        best_column: Optional[str] = None
        best_score = 0.0
        best_sources: list[str] = []
        for column, (score, sources) in candidates.items():
            if best_column is None or score > best_score:
                best_column, best_score, best_sources = column, score, sources
        mapping[field] = best_column
        details[field] = FieldDetail(
            column=best_column,
            confidence=min(best_score, 1.0),
            source="+".join(best_sources),
        )

    confidence = sum(d.confidence for d in details.values()) / len(details) if details else 0.0
    return DetectionResult(
        mapping=mapping,
        confidence=confidence,
        method=DetectionMethod.HYBRID,
        details=details,
    )


class ConfidenceArbiter:
    """
    Runs strategies one after another and keeps the most confident answer.

    A strategy that raises contributes nothing. After all strategies ran,
    the hybrid of their results replaces the best one if it scores higher.
    """

    def __init__(self):
        self.best = DetectionResult.empty()
        self.results: list[DetectionResult] = []

    async def run(self, name: str, method: DetectionMethod, call: StrategyCall) -> Optional[DetectionResult]:
        """Run one strategy in isolation and fold its result into the best so far."""
        logger.info(f"Attempting {name} detection...")
        try:
            outcome = call()
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as e:
            logger.warning(f"{name.capitalize()} detection failed: {e}")
            return None

        result = sanitize_result(outcome, default_method=method)
        self.results.append(result)
        if result.confidence > self.best.confidence:
            self.best = result
            logger.info(f"{name.capitalize()} detection succeeded with confidence {result.confidence:.2f}")
        return result

    def finish(self) -> DetectionResult:
        """Consider the hybrid result and return the sanitized winner."""
        if self.results:
            try:
                hybrid = combine_results(self.results)
                if hybrid.confidence > self.best.confidence:
                    self.best = hybrid
                    logger.info(f"Hybrid approach improved confidence to {hybrid.confidence:.2f}")
            except Exception as e:
                logger.warning(f"Hybrid combination failed, using best individual result: {e}")
        return sanitize_result(self.best)
