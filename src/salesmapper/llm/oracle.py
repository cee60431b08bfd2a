"""LLM-backed header and column-mapping oracles."""

import asyncio
import json
import logging
import re
from typing import Any, Optional

from ..config import Settings, settings as default_settings
from ..detection.models import OracleUnavailableError
from ..detection.services import HeaderOracle, MappingOracle
from .anthropic_client import AnthropicClient
from .base import LLMClient
from .openrouter_client import OpenRouterClient
from .prompts import JSON_ONLY_SYSTEM_PROMPT, build_header_prompt, build_mapping_prompt

logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\n?|\n?```")


def parse_json_reply(text: str) -> dict[str, Any]:
    """Parse a model reply as a JSON object, tolerating markdown code fences."""
    if not text or not text.strip():
        raise OracleUnavailableError("Empty response from model")
    try:
        data = json.loads(CODE_FENCE_PATTERN.sub("", text).strip())
    except json.JSONDecodeError as e:
        raise OracleUnavailableError(f"Model returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise OracleUnavailableError("Model returned JSON that is not an object")
    return data


class LLMOracle:
    """Shared plumbing for calling a sync LLM client from async code."""

    def __init__(self, client: LLMClient, model: str, max_tokens: int = 1024):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    async def _ask(self, prompt: str) -> dict[str, Any]:
        try:
            response = await asyncio.to_thread(
                self.client.create_message,
                messages=[{"role": "user", "content": prompt}],
                system=JSON_ONLY_SYSTEM_PROMPT,
                max_tokens=self.max_tokens,
                model=self.model,
            )
        except Exception as e:
            raise OracleUnavailableError(f"LLM request failed: {e}") from e

        return parse_json_reply(response.text)


class LLMHeaderOracle(LLMOracle, HeaderOracle):
    """Asks an LLM which row of a sample is the header."""

    async def detect_header(self, rows: list[dict[str, Any]]) -> dict[str, Any]:
        logger.info(f"Asking {self.model} to detect the header row of {len(rows)} rows")
        data = await self._ask(build_header_prompt(rows))

        names = data.get("columnNames")
        indices = data.get("columnIndices")
        if isinstance(names, list) and isinstance(indices, list) and len(names) != len(indices):
            raise OracleUnavailableError("columnNames and columnIndices must have same length")
        return data


class LLMMappingOracle(LLMOracle, MappingOracle):
    """Asks an LLM to map detected columns onto canonical fields."""

    async def suggest_mapping(self, request: dict[str, Any]) -> dict[str, Any]:
        if not request.get("columns"):
            raise OracleUnavailableError("No columns to map")
        if not request.get("sampleData"):
            raise OracleUnavailableError("No sample data to map")

        logger.info(f"Asking {self.model} to map {len(request['columns'])} columns")
        data = await self._ask(build_mapping_prompt(request))

        if not isinstance(data.get("mapping"), dict):
            raise OracleUnavailableError("Invalid response structure: missing mapping")
        return {"mapping": data["mapping"], "confidence": data.get("confidence") or 0.8}


def create_llm_client(config: Settings) -> Optional[LLMClient]:
    """Create the LLM client for the configured provider, or None if unavailable."""
    if config.llm_provider == "openrouter":
        if not config.openrouter_api_key:
            logger.warning("OPENROUTER_API_KEY is not set, AI detection disabled")
            return None
        return OpenRouterClient(
            api_key=config.openrouter_api_key, timeout=config.llm_timeout_seconds
        )
    if config.llm_provider == "anthropic":
        if not config.anthropic_api_key:
            logger.warning("ANTHROPIC_API_KEY is not set, AI detection disabled")
            return None
        return AnthropicClient(
            api_key=config.anthropic_api_key, timeout=config.llm_timeout_seconds
        )
    if config.llm_provider != "none":
        logger.warning(f"Unknown LLM_PROVIDER '{config.llm_provider}', AI detection disabled")
    return None


def create_oracles(
    config: Optional[Settings] = None,
) -> tuple[Optional[LLMHeaderOracle], Optional[LLMMappingOracle]]:
    """Build both oracles from settings; (None, None) when no provider is configured."""
    config = config or default_settings
    client = create_llm_client(config)
    if client is None:
        return None, None
    return (
        LLMHeaderOracle(client, config.oracle_model, config.oracle_max_tokens),
        LLMMappingOracle(client, config.oracle_model, config.oracle_max_tokens),
    )
