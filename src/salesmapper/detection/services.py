"""Collaborator interfaces injected into the detection pipeline."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from ..evidence.base import LearnedMappingStore, SynonymStore


class HeaderOracle(ABC):
    """External service that picks the header row of a spreadsheet sample."""

    @abstractmethod
    async def detect_header(self, rows: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Identify the header row.

        Args:
            rows: Up to 15 entries of ``{"rowIndex": int, "values": [str | None]}``

        Returns:
            Raw response with ``headerRowIndex``, ``columnNames``,
            ``columnIndices``, ``confidence`` and optionally ``reasoning``

        Raises:
            OracleUnavailableError: If the service cannot answer
        """
        pass


class MappingOracle(ABC):
    """External service that maps detected columns onto canonical fields."""

    @abstractmethod
    async def suggest_mapping(self, request: dict[str, Any]) -> dict[str, Any]:
        """
        Suggest a column mapping.

        Args:
            request: ``{"columns", "sampleData", "synonymsByField", "aiTrainingConfig"}``

        Returns:
            Raw response with ``mapping`` and ``confidence``

        Raises:
            OracleUnavailableError: If the service cannot answer
        """
        pass


@dataclass
class DetectionServices:
    """Capabilities available to one detection call. Any of them may be absent."""

    header_oracle: Optional[HeaderOracle] = None
    mapping_oracle: Optional[MappingOracle] = None
    synonym_store: Optional[SynonymStore] = None
    learned_mapping_store: Optional[LearnedMappingStore] = None
