# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
import logging

from evidenra.providers.base import TextGenerationService

__all__ = ["TextGenerationService", "PROVIDER_REGISTRY", "create_provider", "provider_from_settings"]

logger = logging.getLogger(__name__)


# Provider registry: maps provider name to module path and class name
PROVIDER_REGISTRY = {
    "anthropic": {
        "module": "evidenra.providers.anthropic",
        "class": "AnthropicProvider",
    },
    "openai": {
        "module": "evidenra.providers.openai",
        "class": "OpenAIProvider",
    },
    "ollama": {
        "module": "evidenra.providers.ollama",
        "class": "OllamaProvider",
    },
}


def create_provider(provider_name: str, **kwargs) -> TextGenerationService:
    """Create a text generation provider by name using the registry.

    Falls back to Anthropic for unknown provider names.
    """
    import importlib

    entry = PROVIDER_REGISTRY.get(provider_name)
    if entry is None:
        logger.warning("Unknown provider %r (known: %s), falling back to anthropic",
                       provider_name, ", ".join(sorted(PROVIDER_REGISTRY)))
        entry = PROVIDER_REGISTRY["anthropic"]
    mod = importlib.import_module(entry["module"])
    cls = getattr(mod, entry["class"])
    return cls(**kwargs)


def provider_from_settings(settings) -> TextGenerationService:
    """Build the provider described by a GenesisSettings instance."""
    kwargs = {
        "api_key": settings.api_key,
        "model": settings.resolved_model,
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
    }
    if settings.base_url and settings.resolved_provider in ("openai", "ollama"):
        kwargs["base_url"] = settings.base_url
    return create_provider(settings.resolved_provider, **kwargs)
