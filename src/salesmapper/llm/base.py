"""Base LLM client interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class LLMResponse:
    """Response from LLM."""

    content: list[Any]
    stop_reason: str
    usage: Optional[dict] = None

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        parts = []
        for block in self.content:
            # Handle both dict and SDK object blocks
            block_type = (
                block.get("type") if isinstance(block, dict) else getattr(block, "type", None)
            )
            if block_type == "text":
                parts.append(
                    block.get("text", "") if isinstance(block, dict) else getattr(block, "text", "")
                )
        return "".join(parts)


class LLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    def create_message(
        self,
        messages: list[dict],
        system: str,
        max_tokens: int,
        model: str,
    ) -> LLMResponse:
        """Create a message with the LLM."""
        pass
