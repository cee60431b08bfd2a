"""Evidence store interfaces."""

from abc import ABC, abstractmethod
from typing import Optional

from .models import FieldSynonym, LearnedMapping, MappingHistoryRecord, MappingStatistics


class SynonymStore(ABC):
    """Read access to the synonym dictionary."""

    @abstractmethod
    async def get_synonyms(self, organization_id: str) -> list[FieldSynonym]:
        """Return active global synonyms followed by the organization's own."""
        pass


class LearnedMappingStore(ABC):
    """Read access to previously successful mappings."""

    @abstractmethod
    async def get_learned_mappings(
        self, organization_id: str, distributor_id: Optional[str] = None
    ) -> list[LearnedMapping]:
        """Return confident past mappings, newest first."""
        pass


class MappingHistoryStore(ABC):
    """Mapping history and synonym usage, written after a detection result has been applied."""

    @abstractmethod
    async def save_mapping_history(self, record: MappingHistoryRecord) -> MappingHistoryRecord:
        pass

    @abstractmethod
    async def increment_synonym_usage(self, organization_id: str, synonym: str) -> int:
        """Bump usage_count of the organization's synonyms matching ``synonym`` (case-insensitive)."""
        pass

    @abstractmethod
    async def get_mapping_statistics(self, organization_id: str) -> MappingStatistics:
        """Summarize the organization's mapping history and its most used synonyms."""
        pass
