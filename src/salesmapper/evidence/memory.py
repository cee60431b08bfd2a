"""In-process evidence store for stateless use and tests."""

from typing import Optional

from ..config import settings
from .base import LearnedMappingStore, MappingHistoryStore, SynonymStore
from .models import (
    FieldSynonym,
    LearnedMapping,
    MappingHistoryRecord,
    MappingStatistics,
    SynonymUsage,
    normalize_synonym,
)


class InMemoryEvidenceStore(SynonymStore, LearnedMappingStore, MappingHistoryStore):
    """Keeps synonyms and mapping history in plain lists."""

    def __init__(
        self,
        global_synonyms: Optional[list[FieldSynonym]] = None,
        organization_synonyms: Optional[dict[str, list[FieldSynonym]]] = None,
    ):
        self.global_synonyms = list(global_synonyms or [])
        self.organization_synonyms = dict(organization_synonyms or {})
        self.history: list[MappingHistoryRecord] = []
        self.synonym_usage: dict[tuple[str, str], int] = {}

    async def get_synonyms(self, organization_id: str) -> list[FieldSynonym]:
        return [*self.global_synonyms, *self.organization_synonyms.get(organization_id, [])]

    async def get_learned_mappings(
        self, organization_id: str, distributor_id: Optional[str] = None
    ) -> list[LearnedMapping]:
        records = [
            r
            for r in self.history
            if r.organization_id == organization_id
            and r.confidence_score >= settings.learned_min_confidence
            and (not distributor_id or r.distributor_id == distributor_id)
        ]
        # history is append-only, so reverse insertion order is newest first
        records = list(reversed(records))[: settings.learned_limit]
        return [
            LearnedMapping(
                final_mapping=r.final_mapping,
                confidence_score=r.confidence_score,
                detection_method=r.detection_method,
            )
            for r in records
        ]

    async def save_mapping_history(self, record: MappingHistoryRecord) -> MappingHistoryRecord:
        record.id = len(self.history) + 1
        self.history.append(record)
        return record

    async def increment_synonym_usage(self, organization_id: str, synonym: str) -> int:
        target = normalize_synonym(synonym)
        matches = [
            s
            for s in self.organization_synonyms.get(organization_id, [])
            if normalize_synonym(s.synonym) == target
        ]
        for match in matches:
            key = (organization_id, match.synonym)
            self.synonym_usage[key] = self.synonym_usage.get(key, 0) + 1
        return len(matches)

    async def get_mapping_statistics(self, organization_id: str) -> MappingStatistics:
        records = [r for r in self.history if r.organization_id == organization_id]
        methods: dict[str, int] = {}
        for record in records:
            methods[record.detection_method] = methods.get(record.detection_method, 0) + 1

        usage = [
            SynonymUsage(
                synonym=s.synonym,
                field_type=s.field_type,
                usage_count=self.synonym_usage.get((organization_id, s.synonym), 0),
            )
            for s in self.organization_synonyms.get(organization_id, [])
        ]
        usage.sort(key=lambda u: u.usage_count, reverse=True)

        total = len(records)
        return MappingStatistics(
            total_mappings=total,
            average_confidence=sum(r.confidence_score for r in records) / total if total else 0.0,
            average_success_rate=sum(r.success_rate or 0.0 for r in records) / total if total else 0.0,
            detection_methods=methods,
            top_synonyms=usage[:10],
        )
