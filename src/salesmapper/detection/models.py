"""Data models for column-mapping detection."""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

# Canonical field name -> detected column name
ColumnMapping = dict[str, str]

CANONICAL_FIELDS = (
    "date",
    "month",
    "year",
    "revenue",
    "account",
    "product",
    "sku",
    "quantity",
    "order_id",
    "category",
    "region",
    "distributor",
    "representative",
    "date_of_sale",
    "brand",
)

# Field names used by synonym dictionaries and training configs -> mapping key
FIELD_ALIASES = {
    "date": "date",
    "month": "month",
    "year": "year",
    "revenue": "revenue",
    "amount": "revenue",
    "account": "account",
    "customer": "account",
    "account_name": "account",
    "product": "product",
    "product_name": "product",
    "sku": "product",
    "quantity": "quantity",
    "order_id": "order_id",
    "category": "category",
    "region": "region",
    "distributor": "distributor",
    "representative": "representative",
    "date_of_sale": "date_of_sale",
    "brand": "brand",
    "address": "address",
    "city": "city",
    "state": "state",
    "zip": "zip",
    "phone": "phone",
    "vintage": "vintage",
    "premise_type": "premise_type",
    "sale_type": "sale_type",
    "bottles_count": "bottles_count",
    "bottles_per_case": "bottles_per_case",
}


def get_field_key(field_type: str) -> Optional[str]:
    """Resolve a field name or alias to its mapping key."""
    return FIELD_ALIASES.get(field_type)


class DetectionMethod(str, Enum):
    """Which strategy produced a detection result."""

    OPENAI = "openai"
    SYNONYM = "synonym"
    PATTERN = "pattern"
    LEARNED = "learned"
    HYBRID = "hybrid"
    AI_TRAINING = "ai_training"


class FieldDetail(BaseModel):
    """Provenance for a single mapped field."""

    column: str
    confidence: float
    source: str  # e.g. "pattern", "synonym-exact", "openai+pattern"


class DetectionResult(BaseModel):
    """Outcome of a mapping strategy or of the whole pipeline."""

    mapping: ColumnMapping = Field(default_factory=dict)
    confidence: float = 0.0
    method: DetectionMethod = DetectionMethod.PATTERN
    columns: list[str] = Field(default_factory=list)
    column_indices: list[int] = Field(default_factory=list)
    details: dict[str, FieldDetail] = Field(default_factory=dict)

    @classmethod
    def empty(cls, method: DetectionMethod = DetectionMethod.PATTERN) -> "DetectionResult":
        """Return a result with no mapping and zero confidence."""
        return cls(method=method)


class HeaderDetection(BaseModel):
    """Location of the header row within a batch of raw rows."""

    index: int = 0
    columns: list[str] = Field(default_factory=list)
    column_indices: list[int] = Field(default_factory=list)
    confidence: float = 0.0  # 0-100
    column_keys: list[str] = Field(default_factory=list)  # Row keys holding each column


class TrainingConfig(BaseModel):
    """Curated per-distributor hints for mapping a file layout."""

    field_mappings: dict[str, Union[str, list[str], None]] = Field(default_factory=dict)
    parsing_instructions: Optional[str] = None
    orientation: Optional[str] = None


class DetectionError(Exception):
    """Base exception for detection failures."""

    pass


class OracleUnavailableError(DetectionError):
    """Exception raised when an AI oracle fails or returns a malformed response."""

    pass


class EvidenceStoreUnavailableError(DetectionError):
    """Exception raised when the synonym or mapping-history store cannot be read."""

    pass
