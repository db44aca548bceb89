# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""OpenAI and OpenAI-compatible text generation provider."""
import logging
from typing import Optional

from evidenra.errors import ServiceError
from evidenra.providers.base import TextGenerationService

logger = logging.getLogger(__name__)


class OpenAIProvider(TextGenerationService):
    """OpenAI Chat Completions API, single turn."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        base_url: Optional[str] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._base_url = base_url
        self._client = None

    def __repr__(self) -> str:
        return "{}(model={!r}, base_url={!r})".format(
            type(self).__name__, self._model, self._base_url,
        )

    def _make_client(self):
        if self._client is None:
            import openai
            kwargs = {"api_key": self._api_key}
            if self._base_url:
                kwargs["base_url"] = self._base_url
            self._client = openai.AsyncOpenAI(**kwargs)
        return self._client

    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        max_tokens: int = 2000,
    ) -> str:
        import openai

        client = self._make_client()
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await client.chat.completions.create(
                model=self._model,
                messages=messages,
                temperature=self._temperature,
                max_tokens=min(max_tokens, self._max_tokens) if self._max_tokens else max_tokens,
            )
        except openai.OpenAIError as e:
            raise ServiceError("{} request failed: {}".format(self.name, e), provider=self.name) from e

        if not response.choices:
            raise ServiceError("{} returned no choices".format(self.name), provider=self.name)
        choice = response.choices[0]
        content = (choice.message.content or "").strip()
        if not content:
            raise ServiceError("{} returned an empty response".format(self.name), provider=self.name)
        if choice.finish_reason == "length":
            logger.debug("%s response truncated by max_tokens", self.name)
        return content
