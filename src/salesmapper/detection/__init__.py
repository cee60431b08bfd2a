"""Column-mapping detection engine."""

from .arbiter import HYBRID_WEIGHT, ConfidenceArbiter, combine_results, sanitize_result
from .detector import ColumnDetector, detect_column_mapping_enhanced
from .header import HeaderRowLocator, calculate_header_score
from .models import (
    DetectionError,
    DetectionMethod,
    DetectionResult,
    EvidenceStoreUnavailableError,
    FieldDetail,
    HeaderDetection,
    OracleUnavailableError,
    TrainingConfig,
)
from .services import DetectionServices, HeaderOracle, MappingOracle

__all__ = [
    "HYBRID_WEIGHT",
    "ColumnDetector",
    "ConfidenceArbiter",
    "DetectionError",
    "DetectionMethod",
    "DetectionResult",
    "DetectionServices",
    "EvidenceStoreUnavailableError",
    "FieldDetail",
    "HeaderDetection",
    "HeaderOracle",
    "HeaderRowLocator",
    "MappingOracle",
    "OracleUnavailableError",
    "TrainingConfig",
    "calculate_header_score",
    "combine_results",
    "detect_column_mapping_enhanced",
    "sanitize_result",
]
