# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Service configuration and YAML run-file loading."""
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from evidenra.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Default models per provider
DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-5-20250929",
    "openai": "gpt-4o-mini",
    "ollama": "llama3.2",
}

_SECRET_FIELDS = frozenset({"api_key"})


@dataclass
class GenesisSettings:
    """Connection settings for the text generation service.

    Can be created directly, from a dict, or from environment variables.
    """
    provider: str = ""
    api_key: str = ""
    model: str = ""
    temperature: float = 0.7
    max_tokens: int = 2000
    base_url: Optional[str] = None
    call_timeout: float = 60.0

    @classmethod
    def from_dict(cls, data: dict) -> "GenesisSettings":
        return cls(
            provider=data.get("provider", ""),
            api_key=data.get("api_key", ""),
            model=data.get("model", ""),
            temperature=data.get("temperature", 0.7),
            max_tokens=data.get("max_tokens", 2000),
            base_url=data.get("base_url") or None,
            call_timeout=data.get("call_timeout", 60.0),
        )

    @classmethod
    def from_env(cls) -> "GenesisSettings":
        """Create settings from environment variables.

        Reads EVIDENRA_PROVIDER, EVIDENRA_API_KEY, EVIDENRA_MODEL, etc.
        Falls back to ANTHROPIC_API_KEY / OPENAI_API_KEY if no explicit
        key is set.
        """
        provider = os.getenv("EVIDENRA_PROVIDER", "")
        api_key = os.getenv("EVIDENRA_API_KEY", "")

        if not api_key:
            if provider == "anthropic" or not provider:
                api_key = os.getenv("ANTHROPIC_API_KEY", "")
                if api_key and not provider:
                    provider = "anthropic"
            if not api_key and provider != "anthropic":
                api_key = os.getenv("OPENAI_API_KEY", "")
                if api_key and not provider:
                    provider = "openai"

        if not api_key and provider == "ollama":
            api_key = "ollama"

        return cls(
            provider=provider,
            api_key=api_key,
            model=os.getenv("EVIDENRA_MODEL", ""),
            temperature=float(os.getenv("EVIDENRA_TEMPERATURE", "0.7")),
            max_tokens=int(os.getenv("EVIDENRA_MAX_TOKENS", "2000")),
            base_url=os.getenv("EVIDENRA_BASE_URL") or None,
            call_timeout=float(os.getenv("EVIDENRA_CALL_TIMEOUT", "60")),
        )

    def __post_init__(self):
        if self.temperature < 0.0:
            logger.warning("temperature %s < 0, clamping to 0.0", self.temperature)
            self.temperature = 0.0
        elif self.temperature > 1.0:
            logger.warning("temperature %s > 1.0, clamping to 1.0", self.temperature)
            self.temperature = 1.0

        if self.max_tokens < 1:
            logger.warning("max_tokens %s < 1, setting to 1", self.max_tokens)
            self.max_tokens = 1

        if self.call_timeout <= 0:
            logger.warning("call_timeout %s <= 0, resetting to 60s", self.call_timeout)
            self.call_timeout = 60.0

    @property
    def resolved_provider(self) -> str:
        return self.provider or "anthropic"

    @property
    def resolved_model(self) -> str:
        """Return model with sensible defaults per provider."""
        if self.model:
            return self.model
        return DEFAULT_MODELS.get(self.resolved_provider, DEFAULT_MODELS["anthropic"])

    def redacted(self) -> Dict[str, Any]:
        """Settings as a dict safe for logs."""
        data = asdict(self)
        for name in _SECRET_FIELDS:
            if data.get(name):
                data[name] = "***"
        return data


def load_evolution_config(path: str, **overrides):
    """Load an EvolutionConfig from a YAML run file.

    Keys in the file use the snake_case field names of EvolutionConfig.
    Non-None ``overrides`` win over the file.
    """
    from evidenra.genesis.models import EvolutionConfig

    p = Path(path)
    if not p.exists():
        raise ConfigurationError("Run config not found: {}".format(path))

    with open(p, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError("Invalid YAML in {}: {}".format(path, e)) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Run config must be a mapping: {}".format(path))

    data.update({k: v for k, v in overrides.items() if v is not None})
    return EvolutionConfig.from_dict(data)
