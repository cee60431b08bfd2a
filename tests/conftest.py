"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Any, AsyncGenerator, Optional

import pytest
import pytest_asyncio

from salesmapper.detection.models import OracleUnavailableError
from salesmapper.detection.services import HeaderOracle, MappingOracle
from salesmapper.evidence import EvidenceStorage, InMemoryEvidenceStore
from salesmapper.evidence.base import LearnedMappingStore, SynonymStore


class FakeHeaderOracle(HeaderOracle):
    """Header oracle returning a canned response and recording requests."""

    def __init__(self, response: Optional[dict] = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.requests: list[list[dict[str, Any]]] = []

    async def detect_header(self, rows):
        self.requests.append(rows)
        if self.error:
            raise self.error
        return self.response


class FakeMappingOracle(MappingOracle):
    """Mapping oracle returning a canned response and recording requests."""

    def __init__(self, response: Optional[dict] = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.requests: list[dict[str, Any]] = []

    async def suggest_mapping(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.response


class FailingStore(SynonymStore, LearnedMappingStore):
    """Evidence store whose every read fails."""

    async def get_synonyms(self, organization_id):
        raise ConnectionError("store unreachable")

    async def get_learned_mappings(self, organization_id, distributor_id=None):
        raise ConnectionError("store unreachable")


@pytest.fixture
def scenario_a_rows() -> list[dict[str, Any]]:
    """A clean export whose first row is the header."""
    return [
        {"A": "Order Date", "B": "Account", "C": "Product", "D": "Qty"},
        {"A": "2024-01-05", "B": "Acme Bar", "C": "Vodka 750mL", "D": "12"},
    ]


@pytest.fixture
def report_rows() -> list[dict[str, Any]]:
    """An export with a title, a filter line and a blank row above the header."""
    return [
        {"A": "Depletion Report", "B": None, "C": None, "D": None},
        {"A": "By: Account", "B": None, "C": None, "D": None},
        {"A": None, "B": None, "C": None, "D": None},
        {"A": "Customer_Name", "B": "Product_Name", "C": "Cases", "D": "Amount"},
        {"A": "Acme Bar", "B": "Vodka 750mL", "C": "12", "D": "150.50"},
        {"A": "Corner Store", "B": "Gin 1L", "C": "4", "D": "88.00"},
        {"A": "Total", "B": None, "C": "16", "D": "238.50"},
    ]


@pytest.fixture
def failing_oracle_error() -> OracleUnavailableError:
    return OracleUnavailableError("oracle timed out")


@pytest.fixture
def memory_store() -> InMemoryEvidenceStore:
    """Create an empty in-memory evidence store."""
    return InMemoryEvidenceStore()


@pytest_asyncio.fixture
async def evidence_storage(tmp_path: Path) -> AsyncGenerator[EvidenceStorage, None]:
    """Create a seeded SQLite evidence store in a temp directory."""
    storage = EvidenceStorage(tmp_path / "test_evidence.db", seed_global_synonyms=True)
    await storage.initialize()
    yield storage
    await storage.close()


@pytest_asyncio.fixture
async def empty_storage(tmp_path: Path) -> AsyncGenerator[EvidenceStorage, None]:
    """Create an unseeded SQLite evidence store in a temp directory."""
    storage = EvidenceStorage(tmp_path / "test_empty.db", seed_global_synonyms=False)
    await storage.initialize()
    yield storage
    await storage.close()
