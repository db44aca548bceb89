# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""evidenra: evolutionary prompt optimization for qualitative text analysis."""
from evidenra.config import GenesisSettings, load_evolution_config
from evidenra.errors import ConfigurationError, GenesisError, MalformedOutputError, ServiceError
from evidenra.genesis import (
    EvolutionConfig, EvolutionResult, GenerationRecord, GenesisEngine, Individual,
    genesis_config,
)

__version__ = "0.1.0"
__all__ = [
    "GenesisEngine", "GenesisSettings",
    "EvolutionConfig", "EvolutionResult", "GenerationRecord", "Individual",
    "GenesisError", "ServiceError", "MalformedOutputError", "ConfigurationError",
    "genesis_config", "load_evolution_config", "evolve_prompt",
    "__version__",
]


async def evolve_prompt(
    config,
    provider: str = "",
    api_key: str = "",
    model: str = "",
    seed=None,
    **kwargs,
) -> EvolutionResult:
    """Convenience wrapper: build a provider from settings and run one evolution.

    ``config`` is an EvolutionConfig or a dict of its fields (camelCase or
    snake_case). Extra keyword arguments are routed by name: GenesisSettings
    fields (``temperature``, ``call_timeout``, ...) adjust the provider
    settings, EvolutionConfig fields (``population_size``, ...) override the
    run config. Missing provider settings are read from the environment, and
    ``call_timeout`` applies to the run unless the config sets
    ``call_timeout_s`` itself.

    Raises ConfigurationError on unknown keywords or an invalid config,
    before any provider is created.
    """
    import dataclasses
    import random

    from evidenra.genesis.models import normalize_keys
    from evidenra.providers import provider_from_settings

    settings_fields = {f.name for f in dataclasses.fields(GenesisSettings)}
    settings_overrides = {"provider": provider, "api_key": api_key, "model": model}
    config_overrides = {}
    for key, value in kwargs.items():
        field = next(iter(normalize_keys({key: value})))
        if key in settings_fields:
            settings_overrides[key] = value
        elif field in EvolutionConfig.model_fields:
            config_overrides[field] = value
        else:
            raise ConfigurationError("Unknown evolve_prompt option: {!r}".format(key))

    # replace() re-runs the __post_init__ clamping
    settings = dataclasses.replace(
        GenesisSettings.from_env(),
        **{k: v for k, v in settings_overrides.items() if v not in ("", None)}
    )

    if isinstance(config, EvolutionConfig):
        data = config.model_dump(exclude_unset=True)
    else:
        data = normalize_keys(dict(config))
    data.update(config_overrides)
    data.setdefault("call_timeout_s", settings.call_timeout)
    run_config = EvolutionConfig.from_dict(data)

    engine = GenesisEngine(
        provider_from_settings(settings),
        rng=random.Random(seed) if seed is not None else None,
    )
    return await engine.evolve(run_config)
