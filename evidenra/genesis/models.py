# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Data models for the Genesis evolution engine."""
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from evidenra.errors import ConfigurationError


class Individual(BaseModel):
    """One candidate prompt plus its fitness score."""

    model_config = ConfigDict(frozen=True)

    prompt: str
    fitness: float = Field(default=0.0, ge=0.0, le=1.0)

    def with_fitness(self, fitness: float) -> "Individual":
        return self.model_copy(update={"fitness": fitness})


class GenerationRecord(BaseModel):
    """A new best-ever fitness found at ``generation``."""

    model_config = ConfigDict(frozen=True)

    generation: int
    fitness: float
    improvement: float  # vs previous best-ever


class EvolutionConfig(BaseModel):
    """Configuration for one evolution run. Immutable for the run's duration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_prompt: str = Field(min_length=1)
    fitness_function: str = "quality"
    generations: int = Field(default=10, ge=1)
    population_size: int = Field(default=20, ge=1)
    mutation_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    crossover_rate: float = Field(default=0.7, ge=0.0, le=1.0)

    # Selection / elitism
    elite_fraction: float = Field(default=0.1, ge=0.0, le=1.0)
    min_elite: int = Field(default=2, ge=0)
    tournament_size: int = Field(default=3, ge=1)

    # Stop criteria
    convergence_threshold: float = Field(default=0.98, gt=0.0, le=1.0)

    # Operator strengths (0-1, rendered as a percentage in the rewrite instruction)
    seed_mutation_strength: float = Field(default=0.3, ge=0.0, le=1.0)
    offspring_mutation_strength: float = Field(default=0.2, ge=0.0, le=1.0)

    # External calls
    max_output_tokens: int = Field(default=2000, ge=1)
    call_timeout_s: float = Field(default=60.0, gt=0.0)

    @model_validator(mode="after")
    def _check_population(self) -> "EvolutionConfig":
        # A lone individual can be evaluated but never reproduced.
        if self.population_size < 2 and self.generations > 1:
            raise ValueError(
                "population_size must be >= 2 when generations > 1 "
                "(got population_size={}, generations={})".format(
                    self.population_size, self.generations,
                )
            )
        return self

    @property
    def elite_count(self) -> int:
        count = max(self.min_elite, int(self.population_size * self.elite_fraction))
        return min(count, self.population_size)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EvolutionConfig":
        """Build a config, raising ConfigurationError on invalid input.

        Accepts the camelCase keys of the public API as well
        (``basePrompt``, ``populationSize``, ...).
        """
        try:
            return cls(**normalize_keys(data))
        except ValidationError as e:
            raise ConfigurationError(_format_validation_error(e)) from e


class EvolutionResult(BaseModel):
    """Outcome of an evolution run, the only externally visible output."""

    best_prompt: str
    best_fitness: float = 0.0
    generations_run: int = 0  # number of recorded improvements
    generations_completed: int = 0  # evaluation passes actually executed
    converged: bool = False
    improvements: List[GenerationRecord] = Field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        """Render the public result surface."""
        return {
            "best": self.best_prompt,
            "fitness": self.best_fitness,
            "generationsRun": self.generations_run,
            "improvements": [r.model_dump() for r in self.improvements],
        }


def normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map camelCase keys to the snake_case field names."""
    return {_snake_case(k): v for k, v in data.items()}


def _snake_case(key: str) -> str:
    out = []
    for ch in key:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out)


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "config"
        parts.append("{}: {}".format(loc, err.get("msg", "invalid")))
    return "Invalid evolution config: " + "; ".join(parts)
