"""Tests for the SQLite and in-memory evidence stores."""

import pytest

from salesmapper.detection.models import EvidenceStoreUnavailableError
from salesmapper.evidence import EvidenceStorage, InMemoryEvidenceStore
from salesmapper.evidence.models import (
    FieldSynonym,
    MappingHistoryRecord,
    MappingStatistics,
    SynonymError,
    SynonymUsage,
)
from salesmapper.evidence.seeds import GLOBAL_SYNONYMS


def _record(organization_id="org-1", confidence=0.9, distributor_id=None, **mapping):
    return MappingHistoryRecord(
        organization_id=organization_id,
        distributor_id=distributor_id,
        filename_pattern="sales%report.csv",
        detected_columns=list(mapping.values()),
        final_mapping=mapping,
        confidence_score=confidence,
        detection_method="pattern",
        rows_processed=100,
        success_rate=0.98,
    )


class TestSynonyms:
    """Tests for synonym dictionary operations."""

    @pytest.mark.asyncio
    async def test_seeds_global_synonyms_once(self, evidence_storage):
        synonyms = await evidence_storage.get_synonyms("org-1")
        assert len(synonyms) == len(GLOBAL_SYNONYMS)
        assert synonyms[0] == FieldSynonym(
            field_type=GLOBAL_SYNONYMS[0][0],
            synonym=GLOBAL_SYNONYMS[0][1],
            confidence_weight=GLOBAL_SYNONYMS[0][2],
        )

        await evidence_storage._seed_global_synonyms()
        assert len(await evidence_storage.get_synonyms("org-1")) == len(GLOBAL_SYNONYMS)

    @pytest.mark.asyncio
    async def test_organization_synonyms_follow_global(self, evidence_storage):
        await evidence_storage.add_synonym("quantity", "btls", organization_id="org-1")
        await evidence_storage.add_synonym("quantity", "9L cases", organization_id="org-2")

        synonyms = await evidence_storage.get_synonyms("org-1")

        assert synonyms[-1].synonym == "btls"
        assert all(s.synonym != "9l cases" for s in synonyms)

    @pytest.mark.asyncio
    async def test_inactive_synonyms_are_hidden(self, empty_storage):
        await empty_storage.add_synonym("account", "outlet", organization_id="org-1")
        assert await empty_storage.set_synonym_active("account", "outlet", "org-1", False) is True

        assert await empty_storage.get_synonyms("org-1") == []

    @pytest.mark.asyncio
    async def test_increment_usage_only_touches_organization_synonyms(self, evidence_storage):
        await evidence_storage.add_synonym("quantity", "cases", organization_id="org-1")

        assert await evidence_storage.increment_synonym_usage("org-1", "cases") == 1
        assert await evidence_storage.increment_synonym_usage("org-2", "cases") == 0
        stats = await evidence_storage.get_mapping_statistics("org-1")
        assert stats.top_synonyms == [SynonymUsage(synonym="cases", field_type="quantity", usage_count=1)]

    @pytest.mark.asyncio
    async def test_add_synonym_normalizes_text(self, empty_storage):
        synonym = await empty_storage.add_synonym("account", "  Outlet ", organization_id="org-1")

        assert synonym.synonym == "outlet"
        assert [s.synonym for s in await empty_storage.get_synonyms("org-1")] == ["outlet"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("organization_id", [None, "org-1"])
    async def test_duplicate_synonym_rejected(self, empty_storage, organization_id):
        await empty_storage.add_synonym("quantity", "cases", organization_id=organization_id)

        with pytest.raises(SynonymError, match="already exists"):
            await empty_storage.add_synonym("quantity", "CASES ", organization_id=organization_id)
        assert len(await empty_storage.get_synonyms("org-1")) == 1

    @pytest.mark.asyncio
    async def test_same_synonym_in_other_scope_allowed(self, empty_storage):
        await empty_storage.add_synonym("quantity", "cases")
        await empty_storage.add_synonym("quantity", "cases", organization_id="org-1")

        assert len(await empty_storage.get_synonyms("org-1")) == 2

    @pytest.mark.asyncio
    async def test_duplicate_keeps_usage_count(self, empty_storage):
        await empty_storage.add_synonym("quantity", "cases", organization_id="org-1")
        await empty_storage.increment_synonym_usage("org-1", "cases")

        with pytest.raises(SynonymError):
            await empty_storage.add_synonym("quantity", "cases", organization_id="org-1")

        stats = await empty_storage.get_mapping_statistics("org-1")
        assert stats.top_synonyms[0].usage_count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "field_type, synonym, message",
        [("quantity", "   ", "empty"), ("colour", "hue", "Invalid field type")],
    )
    async def test_invalid_synonyms_rejected(self, empty_storage, field_type, synonym, message):
        with pytest.raises(SynonymError, match=message):
            await empty_storage.add_synonym(field_type, synonym, organization_id="org-1")

    @pytest.mark.asyncio
    async def test_increment_usage_ignores_case(self, empty_storage):
        await empty_storage.add_synonym("quantity", "cases", organization_id="org-1")

        assert await empty_storage.increment_synonym_usage("org-1", " Cases") == 1


class TestMappingHistory:
    """Tests for mapping history persistence."""

    @pytest.mark.asyncio
    async def test_save_and_list(self, empty_storage):
        saved = await empty_storage.save_mapping_history(_record(account="Customer"))

        assert saved.id is not None
        history = await empty_storage.get_mapping_history("org-1")
        assert len(history) == 1
        assert history[0].final_mapping == {"account": "Customer"}
        assert history[0].detected_columns == ["Customer"]
        assert history[0].filename_pattern == "sales%report.csv"
        assert history[0].created_at == saved.created_at

    @pytest.mark.asyncio
    async def test_learned_mappings_filtering(self, empty_storage):
        await empty_storage.save_mapping_history(_record(confidence=0.6, account="Low"))
        await empty_storage.save_mapping_history(_record(confidence=0.7, account="Edge"))
        await empty_storage.save_mapping_history(
            _record(confidence=0.9, distributor_id="dist-1", account="Dist")
        )
        await empty_storage.save_mapping_history(_record(organization_id="org-2", account="Other"))

        learned = await empty_storage.get_learned_mappings("org-1")
        assert [m.final_mapping["account"] for m in learned] == ["Dist", "Edge"]

        learned = await empty_storage.get_learned_mappings("org-1", "dist-1")
        assert [m.final_mapping["account"] for m in learned] == ["Dist"]

    @pytest.mark.asyncio
    async def test_learned_mappings_limit(self, empty_storage):
        for i in range(7):
            await empty_storage.save_mapping_history(_record(account=f"Customer {i}"))

        learned = await empty_storage.get_learned_mappings("org-1")

        assert len(learned) == 5
        assert learned[0].final_mapping == {"account": "Customer 6"}

    @pytest.mark.asyncio
    async def test_mapping_statistics(self, empty_storage):
        await empty_storage.save_mapping_history(_record(confidence=0.9, account="Customer"))
        record = _record(confidence=0.7, account="Client")
        record.detection_method = "openai"
        record.success_rate = 0.5
        await empty_storage.save_mapping_history(record)
        await empty_storage.save_mapping_history(_record(organization_id="org-2", account="Other"))
        await empty_storage.add_synonym("account", "outlet", organization_id="org-1")
        await empty_storage.add_synonym("quantity", "btls", organization_id="org-1")
        await empty_storage.add_synonym("quantity", "cases")
        await empty_storage.increment_synonym_usage("org-1", "btls")

        stats = await empty_storage.get_mapping_statistics("org-1")

        assert stats.total_mappings == 2
        assert stats.average_confidence == pytest.approx(0.8)
        assert stats.average_success_rate == pytest.approx(0.74)
        assert stats.detection_methods == {"pattern": 1, "openai": 1}
        assert [s.synonym for s in stats.top_synonyms] == ["btls", "outlet"]

    @pytest.mark.asyncio
    async def test_mapping_statistics_without_history(self, empty_storage):
        stats = await empty_storage.get_mapping_statistics("org-1")

        assert stats == MappingStatistics()

    @pytest.mark.asyncio
    async def test_top_synonyms_limited_to_ten(self, empty_storage):
        for i in range(12):
            await empty_storage.add_synonym("product", f"item {i}", organization_id="org-1")
        await empty_storage.increment_synonym_usage("org-1", "item 11")

        stats = await empty_storage.get_mapping_statistics("org-1")

        assert len(stats.top_synonyms) == 10
        assert stats.top_synonyms[0] == SynonymUsage(synonym="item 11", field_type="product", usage_count=1)

    @pytest.mark.asyncio
    async def test_uninitialized_storage_raises(self, tmp_path):
        storage = EvidenceStorage(tmp_path / "closed.db")

        with pytest.raises(EvidenceStoreUnavailableError):
            await storage.get_synonyms("org-1")
        with pytest.raises(EvidenceStoreUnavailableError):
            await storage.save_mapping_history(_record(account="Customer"))


class TestInMemoryEvidenceStore:
    """Tests for the in-process store."""

    @pytest.mark.asyncio
    async def test_synonym_order(self):
        store = InMemoryEvidenceStore(
            global_synonyms=[FieldSynonym(field_type="quantity", synonym="qty")],
            organization_synonyms={"org-1": [FieldSynonym(field_type="quantity", synonym="btls")]},
        )

        assert [s.synonym for s in await store.get_synonyms("org-1")] == ["qty", "btls"]
        assert [s.synonym for s in await store.get_synonyms("org-2")] == ["qty"]

    @pytest.mark.asyncio
    async def test_learned_mappings_newest_first(self, memory_store):
        await memory_store.save_mapping_history(_record(account="Old"))
        await memory_store.save_mapping_history(_record(confidence=0.5, account="Weak"))
        await memory_store.save_mapping_history(_record(account="New"))

        learned = await memory_store.get_learned_mappings("org-1")

        assert [m.final_mapping["account"] for m in learned] == ["New", "Old"]
        assert [r.id for r in memory_store.history] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_increment_usage(self):
        store = InMemoryEvidenceStore(
            organization_synonyms={"org-1": [FieldSynonym(field_type="quantity", synonym="Cases")]}
        )

        assert await store.increment_synonym_usage("org-1", "Cases") == 1
        assert await store.increment_synonym_usage("org-1", "Units") == 0
        assert store.synonym_usage == {("org-1", "Cases"): 1}

    @pytest.mark.asyncio
    async def test_increment_usage_ignores_case(self):
        store = InMemoryEvidenceStore(
            organization_synonyms={"org-1": [FieldSynonym(field_type="quantity", synonym="cases")]}
        )

        assert await store.increment_synonym_usage("org-1", "Cases ") == 1
        assert store.synonym_usage == {("org-1", "cases"): 1}

    @pytest.mark.asyncio
    async def test_mapping_statistics(self, memory_store):
        memory_store.organization_synonyms["org-1"] = [
            FieldSynonym(field_type="account", synonym="outlet"),
            FieldSynonym(field_type="quantity", synonym="btls"),
        ]
        await memory_store.increment_synonym_usage("org-1", "btls")
        await memory_store.save_mapping_history(_record(confidence=0.9, account="Customer"))
        await memory_store.save_mapping_history(_record(confidence=0.5, account="Client"))
        await memory_store.save_mapping_history(_record(organization_id="org-2", account="Other"))

        stats = await memory_store.get_mapping_statistics("org-1")

        assert stats.total_mappings == 2
        assert stats.average_confidence == pytest.approx(0.7)
        assert stats.average_success_rate == pytest.approx(0.98)
        assert stats.detection_methods == {"pattern": 2}
        assert stats.top_synonyms == [
            SynonymUsage(synonym="btls", field_type="quantity", usage_count=1),
            SynonymUsage(synonym="outlet", field_type="account", usage_count=0),
        ]
