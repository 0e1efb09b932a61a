"""
Anthropic LLM client for structured extraction.

Usage:
    client = LLMClient()
    response = client.generate(messages, model="claude-haiku-4-5")
    print(response.content)
"""

import logging

import anthropic
from pydantic import BaseModel

from clients.vault_client import get_llm_config

logger = logging.getLogger(__name__)


class LLMResponse(BaseModel):
    """Text reply plus the model that produced it."""

    content: str
    model: str | None = None
    stop_reason: str | None = None
    usage: dict[str, int] | None = None


class LLMError(Exception):
    """LLM operation error."""


class LLMClient:
    """Anthropic Messages API client. Deterministic (temperature 0) by default."""

    DEFAULT_MODEL = "claude-haiku-4-5"

    def __init__(self, api_key: str | None = None, model: str | None = None):
        """
        Args:
            api_key: Anthropic API key. If None, read from Vault along with
                the default model name.
            model: Default model; falls back to Vault's model_name, then DEFAULT_MODEL
        """
        if api_key is None:
            config = get_llm_config()
            api_key = config["api_key"]
            model = model or config.get("model_name")

        self.model = model or self.DEFAULT_MODEL
        self._client = anthropic.Anthropic(api_key=api_key)
        logger.info(f"LLM client initialized with model: {self.model}")

    def generate(
        self,
        messages: list[dict],
        model: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.0,
    ) -> LLMResponse:
        """
        Single non-streaming completion.

        Args:
            messages: [{"role": "system"|"user"|"assistant", "content": str}];
                system entries are joined into the system prompt
            model: Override the default model for this call

        Raises:
            LLMError: If the API call fails
        """
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        params = {
            "model": model or self.model,
            "messages": [m for m in messages if m["role"] != "system"],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system_parts:
            params["system"] = "\n\n".join(system_parts)

        try:
            response = self._client.messages.create(**params)
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error ({params['model']}): {e}")
            raise LLMError(f"LLM API call failed: {e}") from e

        usage = None
        if response.usage:
            usage = {
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            }

        return LLMResponse(
            content="".join(b.text for b in response.content if b.type == "text"),
            model=response.model or params["model"],
            stop_reason=getattr(response, "stop_reason", None),
            usage=usage,
        )
