# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Local Ollama provider (OpenAI-compatible endpoint)."""
from evidenra.providers.openai import OpenAIProvider


class OllamaProvider(OpenAIProvider):
    """Ollama provider using the OpenAI-compatible API endpoint."""

    name = "ollama"

    def __init__(
        self,
        api_key: str = "ollama",
        model: str = "llama3.2",
        temperature: float = 0.7,
        max_tokens: int = 2000,
        base_url: str = "http://localhost:11434/v1",
    ) -> None:
        super().__init__(
            api_key=api_key or "ollama",
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            base_url=base_url,
        )
