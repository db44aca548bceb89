# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Fitness evaluation for prompt candidates.

A candidate prompt is run once against a fixed interview excerpt through the
text generation service; the generated analysis is then scored by a pluggable
FitnessScorer:

  - quality (default): rule-based heuristic, see HeuristicScorer
  - akih: weighted multi-dimension score of the parsed analysis

Failures of the generation call score 0 and never abort the run.
"""
import asyncio
import importlib
import logging
import re
from abc import ABC, abstractmethod
from typing import List

from evidenra.errors import ConfigurationError, ServiceError
from evidenra.genesis.catalog import FitnessMetric
from evidenra.genesis.models import Individual
from evidenra.providers.base import TextGenerationService

logger = logging.getLogger(__name__)

TEST_TEXT = """Das Interview mit der Lehrerin zeigt deutlich, wie sehr die Digitalisierung
den Schulalltag verändert hat. "Früher haben wir alles auf Papier gemacht",
erzählt sie, "heute nutzen die Kinder Tablets und lernen spielerisch."
Sie betont jedoch auch die Herausforderungen: "Nicht alle Eltern können sich
die Geräte leisten, und manche Kinder sind zu Hause komplett offline."
Die Ungleichheit sei ein großes Problem geworden. Trotzdem überwiegen für sie
die Vorteile: "Die Motivation der Schüler ist gestiegen, besonders bei
den sonst eher zurückhaltenden Kindern.\""""

IDEAL_LENGTH = 1500

_CODING_RE = re.compile(r"Kodierung|Code|Kategorie", re.IGNORECASE)
_REASONING_RE = re.compile(r"\b(?:weil|da|Begründung)\b", re.IGNORECASE)
_METHOD_TERMS = ("induktiv", "deduktiv", "ankerbeispiel", "dimension", "eigenschaft")


def clamp_fitness(value: float) -> float:
    return max(0.0, min(1.0, value))


class FitnessScorer(ABC):
    """Turns one generated analysis into a scalar in [0, 1]."""

    name = "base"

    @abstractmethod
    def score(self, output: str) -> float:
        ...


class HeuristicScorer(FitnessScorer):
    """Additive text-quality heuristic over five independent sub-signals."""

    name = "quality"

    def score(self, output: str) -> float:
        return clamp_fitness(sum(self.breakdown(output).values()))

    def breakdown(self, output: str) -> dict:
        """Per-metric contributions, each already capped."""
        return {
            FitnessMetric.STRUCTURE.value: _score_structure(output),
            FitnessMetric.CODINGS.value: _score_codings(output),
            FitnessMetric.REASONING.value: _score_reasoning(output),
            FitnessMetric.METHODOLOGY.value: _score_methodology(output),
            FitnessMetric.LENGTH.value: _score_length(output),
        }


def _score_structure(output: str) -> float:
    if "[" in output or "{" in output:
        return FitnessMetric.STRUCTURE.max_contribution
    return 0.0


def _score_codings(output: str) -> float:
    count = len(_CODING_RE.findall(output))
    return min(count * 0.05, FitnessMetric.CODINGS.max_contribution)


def _score_reasoning(output: str) -> float:
    if _REASONING_RE.search(output):
        return FitnessMetric.REASONING.max_contribution
    return 0.0


def _score_methodology(output: str) -> float:
    lower = output.lower()
    found = sum(1 for term in _METHOD_TERMS if term in lower)
    return min(found * 0.08, FitnessMetric.METHODOLOGY.max_contribution)


def _score_length(output: str) -> float:
    cap = FitnessMetric.LENGTH.max_contribution
    deviation = abs(len(output) - IDEAL_LENGTH) / IDEAL_LENGTH
    return max(0.0, cap - deviation * cap)


# Scorer registry: maps fitness function identifier to (module_path, class_name)
SCORER_REGISTRY = {
    "quality": {
        "module": "evidenra.genesis.fitness",
        "class": "HeuristicScorer",
    },
    "akih": {
        "module": "evidenra.akih.scorer",
        "class": "AkihScorer",
    },
}


def create_scorer(identifier: str, **kwargs) -> FitnessScorer:
    """Create a FitnessScorer by its fitness function identifier."""
    entry = SCORER_REGISTRY.get(identifier)
    if entry is None:
        raise ConfigurationError("Unknown fitness function: {!r} (known: {})".format(
            identifier, ", ".join(sorted(SCORER_REGISTRY)),
        ))
    mod = importlib.import_module(entry["module"])
    cls = getattr(mod, entry["class"])
    return cls(**kwargs)


class FitnessEvaluator:
    """Runs candidate prompts against the test text and scores the output."""

    def __init__(
        self,
        service: TextGenerationService,
        scorer: FitnessScorer,
        timeout: float = 60.0,
        max_tokens: int = 2000,
        test_text: str = TEST_TEXT,
    ):
        self._service = service
        self._scorer = scorer
        self._timeout = timeout
        self._max_tokens = max_tokens
        self._test_text = test_text

    @property
    def scorer(self) -> FitnessScorer:
        return self._scorer

    def build_prompt(self, prompt: str) -> str:
        return "{}\n\nText zur Analyse:\n{}".format(prompt, self._test_text)

    async def evaluate(self, individual: Individual) -> float:
        """Fitness of one candidate; 0.0 if the generation call fails."""
        try:
            output = await asyncio.wait_for(
                self._service.generate(
                    self.build_prompt(individual.prompt),
                    max_tokens=self._max_tokens,
                ),
                timeout=self._timeout,
            )
        except ServiceError as e:
            logger.warning("Fitness evaluation failed: %s", e)
            return 0.0
        except asyncio.TimeoutError:
            logger.warning("Fitness evaluation timed out after %.0fs", self._timeout)
            return 0.0

        fitness = clamp_fitness(self._scorer.score(output))
        logger.debug("Scored candidate (%d chars) with %s: %.3f",
                     len(individual.prompt), self._scorer.name, fitness)
        return fitness

    async def evaluate_population(self, population: List[Individual]) -> List[Individual]:
        """Score every individual concurrently and sort descending by fitness.

        The sort is stable, so equal-fitness individuals keep their order.
        """
        scores = await asyncio.gather(*(self.evaluate(ind) for ind in population))
        evaluated = [ind.with_fitness(score) for ind, score in zip(population, scores)]
        evaluated.sort(key=lambda ind: ind.fitness, reverse=True)
        return evaluated
