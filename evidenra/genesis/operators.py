# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Genetic operators: LLM-driven prompt mutation and crossover.

Both operators delegate the text transformation to a TextGenerationService
and never touch existing Individuals; they only return new prompt text.

Fallbacks on a failed or timed-out call:
  - mutate    → the original prompt, unchanged
  - crossover → one parent, chosen uniformly at random
"""
import asyncio
import logging
import random
import re
from typing import Optional

from evidenra.errors import ServiceError
from evidenra.genesis.catalog import MutationOperator
from evidenra.providers.base import TextGenerationService

logger = logging.getLogger(__name__)

_OPERATORS = list(MutationOperator)

_MUTATION_TEMPLATE = (
    "Modifiziere den folgenden Prompt für qualitative Analyse.\n"
    "Änderung: {directive}\n"
    "Stärke der Änderung: {strength}%\n\n"
    "Original-Prompt:\n{prompt}\n\n"
    "Gib NUR den modifizierten Prompt zurück, keine Erklärungen."
)

_CROSSOVER_TEMPLATE = (
    "Kombiniere die besten Elemente dieser zwei Prompts für qualitative Analyse "
    "zu einem neuen, verbesserten Prompt:\n\n"
    "Prompt A:\n{a}\n\n"
    "Prompt B:\n{b}\n\n"
    "Gib NUR den kombinierten Prompt zurück, keine Erklärungen."
)

_FENCE_OPEN_RE = re.compile(r"^```\w*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?```$")


class GeneticOperators:
    """Mutation and crossover bound to one service and one random source."""

    def __init__(
        self,
        service: TextGenerationService,
        rng: Optional[random.Random] = None,
        timeout: float = 60.0,
        max_tokens: int = 2000,
    ):
        self._service = service
        self._rng = rng or random.Random()
        self._timeout = timeout
        self._max_tokens = max_tokens

    def choose_operator(self) -> MutationOperator:
        return self._rng.choice(_OPERATORS)

    def choose_parent(self, prompt_a: str, prompt_b: str) -> str:
        return prompt_a if self._rng.random() < 0.5 else prompt_b

    async def mutate(
        self,
        prompt: str,
        strength: float,
        operator: Optional[MutationOperator] = None,
    ) -> str:
        """Rewrite ``prompt`` under one catalog operator.

        Pass ``operator`` to pin the choice; otherwise one is drawn uniformly.
        """
        op = operator or self.choose_operator()
        instruction = _MUTATION_TEMPLATE.format(
            directive=op.directive,
            strength=round(strength * 100),
            prompt=prompt,
        )
        try:
            text = await self._call(instruction)
        except (ServiceError, asyncio.TimeoutError) as e:
            logger.warning("Mutation %s failed, keeping original: %s", op.value, str(e) or "timeout")
            return prompt
        logger.debug("Mutation %s: %d -> %d chars", op.value, len(prompt), len(text))
        return text

    async def crossover(
        self,
        prompt_a: str,
        prompt_b: str,
        fallback: Optional[str] = None,
    ) -> str:
        """Merge the strongest elements of two parent prompts.

        ``fallback`` is the parent returned on failure; drawn at random
        when not given.
        """
        instruction = _CROSSOVER_TEMPLATE.format(a=prompt_a, b=prompt_b)
        try:
            return await self._call(instruction)
        except (ServiceError, asyncio.TimeoutError) as e:
            logger.warning("Crossover failed, falling back to a parent: %s", str(e) or "timeout")
            return fallback if fallback is not None else self.choose_parent(prompt_a, prompt_b)

    async def _call(self, instruction: str) -> str:
        content = await asyncio.wait_for(
            self._service.generate(instruction, max_tokens=self._max_tokens),
            timeout=self._timeout,
        )
        text = _strip_fences(content)
        if not text:
            raise ServiceError("empty rewrite")
        return text


def _strip_fences(content: str) -> str:
    text = _FENCE_OPEN_RE.sub("", content.strip())
    text = _FENCE_CLOSE_RE.sub("", text)
    return text.strip()
