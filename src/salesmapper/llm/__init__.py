"""LLM client module."""

from .base import LLMClient, LLMResponse
from .anthropic_client import AnthropicClient
from .openrouter_client import OpenRouterClient
from .oracle import (
    LLMHeaderOracle,
    LLMMappingOracle,
    create_llm_client,
    create_oracles,
    parse_json_reply,
)

__all__ = [
    "LLMClient",
    "LLMResponse",
    "AnthropicClient",
    "OpenRouterClient",
    "LLMHeaderOracle",
    "LLMMappingOracle",
    "create_llm_client",
    "create_oracles",
    "parse_json_reply",
]
