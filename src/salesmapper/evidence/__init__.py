"""Synonym dictionary and mapping-history stores."""

from .base import LearnedMappingStore, MappingHistoryStore, SynonymStore
from .history import generate_filename_pattern, save_column_mapping_history
from .memory import InMemoryEvidenceStore
from .models import (
    FieldSynonym,
    LearnedMapping,
    MappingHistoryRecord,
    MappingStatistics,
    SynonymError,
    SynonymUsage,
)
from .storage import EvidenceStorage

__all__ = [
    "EvidenceStorage",
    "FieldSynonym",
    "InMemoryEvidenceStore",
    "LearnedMapping",
    "LearnedMappingStore",
    "MappingHistoryRecord",
    "MappingHistoryStore",
    "MappingStatistics",
    "SynonymError",
    "SynonymStore",
    "SynonymUsage",
    "generate_filename_pattern",
    "save_column_mapping_history",
]
