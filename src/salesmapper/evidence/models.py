"""Data models for the synonym dictionary and mapping history."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class FieldSynonym(BaseModel):
    """A known column-name variation for a canonical field."""

    field_type: str  # e.g. "quantity"
    synonym: str  # e.g. "Cases"
    confidence_weight: Optional[float] = None  # None means full weight


class LearnedMapping(BaseModel):
    """A previously successful mapping replayed on similar files."""

    final_mapping: dict[str, Optional[str]] = Field(default_factory=dict)
    confidence_score: float = 0.0
    detection_method: str = "unknown"


class MappingHistoryRecord(BaseModel):
    """One persisted mapping outcome of an upload."""

    id: Optional[int] = None
    organization_id: str
    upload_id: Optional[str] = None
    distributor_id: Optional[str] = None
    filename_pattern: Optional[str] = None
    detected_columns: list[str] = Field(default_factory=list)
    final_mapping: dict[str, Optional[str]] = Field(default_factory=dict)
    confidence_score: float = 0.0
    detection_method: str = "pattern"
    rows_processed: int = 0
    success_rate: float = 0.0
    created_at: datetime = Field(default_factory=_utc_now)


class SynonymUsage(BaseModel):
    """How often an organization synonym matched a mapped column."""

    synonym: str
    field_type: str
    usage_count: int = 0


class MappingStatistics(BaseModel):
    """Aggregate view of an organization's mapping history."""

    total_mappings: int = 0
    average_confidence: float = 0.0
    average_success_rate: float = 0.0
    detection_methods: dict[str, int] = Field(default_factory=dict)
    top_synonyms: list[SynonymUsage] = Field(default_factory=list)


class SynonymError(Exception):
    """Exception raised when a synonym cannot be added."""

    pass


def normalize_synonym(text: str) -> str:
    return text.strip().lower()
