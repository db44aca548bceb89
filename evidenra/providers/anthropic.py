# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Anthropic Claude text generation provider."""
import logging

from evidenra.errors import ServiceError
from evidenra.providers.base import TextGenerationService

logger = logging.getLogger(__name__)


class AnthropicProvider(TextGenerationService):
    """Anthropic Messages API, single turn, text output only."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-5-20250929",
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = None

    def __repr__(self) -> str:
        key_hint = "{}...".format(self._api_key[:4]) if self._api_key and len(self._api_key) > 4 else "***"
        return "AnthropicProvider(model={!r}, api_key={!r})".format(self._model, key_hint)

    def _make_client(self):
        if self._client is None:
            import anthropic
            self._client = anthropic.AsyncAnthropic(api_key=self._api_key)
        return self._client

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        max_tokens: int = 2000,
    ) -> str:
        import anthropic

        client = self._make_client()
        create_kwargs = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": min(max_tokens, self._max_tokens) if self._max_tokens else max_tokens,
            "temperature": self._temperature,
        }
        if system_prompt:
            create_kwargs["system"] = system_prompt

        try:
            response = await client.messages.create(**create_kwargs)
        except anthropic.APIError as e:
            raise ServiceError("Anthropic request failed: {}".format(e), provider=self.name) from e

        text_parts = [block.text for block in response.content if block.type == "text"]
        content = "\n".join(text_parts).strip()
        if not content:
            raise ServiceError("Anthropic returned an empty response", provider=self.name)
        if response.stop_reason == "max_tokens":
            logger.debug("Anthropic response truncated at %d tokens", create_kwargs["max_tokens"])
        return content
