"""Column-mapping detection pipeline."""

import logging
from typing import Any, Optional, Sequence, Union

from ..evidence.models import FieldSynonym, LearnedMapping
from .arbiter import ConfidenceArbiter
from .header import HeaderRowLocator
from .models import DetectionMethod, DetectionResult, TrainingConfig
from .rows import Row, extract_data_rows
from .services import DetectionServices
from .strategies import (
    apply_learned_mapping,
    detect_with_ai,
    detect_with_patterns,
    detect_with_synonyms,
    detect_with_training_config,
)

logger = logging.getLogger(__name__)


def _coerce_training_config(
    training_config: Union[TrainingConfig, dict[str, Any], None]
) -> Optional[TrainingConfig]:
    if training_config is None or isinstance(training_config, TrainingConfig):
        return training_config
    try:
        return TrainingConfig.model_validate(training_config)
    except Exception as e:
        logger.warning(f"Ignoring invalid training config: {e}")
        return None


class ColumnDetector:
    """Detects which columns of a sales report hold which canonical fields."""

    def __init__(self, services: Optional[DetectionServices] = None):
        self.services = services or DetectionServices()
        self.header_locator = HeaderRowLocator(oracle=self.services.header_oracle)

    async def load_synonyms(self, organization_id: str) -> list[FieldSynonym]:
        store = self.services.synonym_store
        if store is None:
            return []
        try:
            return list(await store.get_synonyms(organization_id))
        except Exception as e:
            logger.warning(f"Failed to load synonyms for {organization_id}: {e}")
            return []

    async def load_learned_mappings(
        self, organization_id: str, distributor_id: Optional[str]
    ) -> list[LearnedMapping]:
        store = self.services.learned_mapping_store
        if store is None:
            return []
        try:
            return list(await store.get_learned_mappings(organization_id, distributor_id))
        except Exception as e:
            logger.warning(f"Failed to load learned mappings for {organization_id}: {e}")
            return []

    async def detect(
        self,
        sample_rows: Sequence[Row],
        organization_id: str,
        distributor_id: Optional[str] = None,
        filename: Optional[str] = None,
        training_config: Union[TrainingConfig, dict[str, Any], None] = None,
    ) -> DetectionResult:
        """
        Detect the column mapping for a batch of raw rows.

        Never raises for collaborator failures: each failing oracle or store
        just removes that evidence from consideration.

        Args:
            sample_rows: Leading rows of the file, header candidates included
            organization_id: Organization whose synonyms and history apply
            distributor_id: Optional distributor to narrow the mapping history
            filename: Original filename, used for logging only
            training_config: Optional curated field mappings and instructions

        Returns:
            The most confident DetectionResult with the located columns attached
        """
        if not sample_rows:
            return DetectionResult.empty()

        header = await self.header_locator.locate(sample_rows)
        columns = header.columns
        logger.info(
            f"Detected header row at index {header.index} "
            f"(confidence: {header.confidence}%) for {filename or 'upload'}: {columns}"
        )

        data_rows = extract_data_rows(sample_rows, header)
        synonyms = await self.load_synonyms(organization_id)
        learned_mappings = await self.load_learned_mappings(organization_id, distributor_id)
        config = _coerce_training_config(training_config)

        arbiter = ConfidenceArbiter()

        if config and config.field_mappings:
            await arbiter.run(
                "training config",
                DetectionMethod.AI_TRAINING,
                lambda: detect_with_training_config(columns, config.field_mappings),
            )

        if learned_mappings:
            await arbiter.run(
                "learned mapping",
                DetectionMethod.LEARNED,
                lambda: apply_learned_mapping(columns, learned_mappings),
            )

        if self.services.mapping_oracle is not None:
            await arbiter.run(
                "AI",
                DetectionMethod.OPENAI,
                lambda: detect_with_ai(
                    self.services.mapping_oracle, columns, data_rows, synonyms, config
                ),
            )

        await arbiter.run(
            "synonym", DetectionMethod.SYNONYM, lambda: detect_with_synonyms(columns, synonyms)
        )
        await arbiter.run(
            "pattern", DetectionMethod.PATTERN, lambda: detect_with_patterns(columns, data_rows)
        )

        result = arbiter.finish()
        result.columns = list(columns)
        result.column_indices = list(header.column_indices)

        logger.info(
            f"Final mapping ({result.method.value}, confidence {result.confidence:.2f}): "
            f"{result.mapping}"
        )
        return result


async def detect_column_mapping_enhanced(
    sample_rows: Sequence[Row],
    organization_id: str,
    distributor_id: Optional[str] = None,
    filename: Optional[str] = None,
    training_config: Union[TrainingConfig, dict[str, Any], None] = None,
    services: Optional[DetectionServices] = None,
) -> DetectionResult:
    """Detect a column mapping with the given (or no) collaborators."""
    detector = ColumnDetector(services)
    return await detector.detect(
        sample_rows,
        organization_id,
        distributor_id=distributor_id,
        filename=filename,
        training_config=training_config,
    )
