# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Shared fakes for Genesis tests: no API keys, no network."""
import asyncio
import itertools

import pytest

from evidenra.errors import ServiceError
from evidenra.genesis.fitness import FitnessScorer
from evidenra.providers.base import TextGenerationService

EVAL_MARKER = "\n\nText zur Analyse:\n"


class FakeService(TextGenerationService):
    """Scripted text service.

    - evaluation calls echo the candidate prompt back (so a scorer can
      look fitness up by prompt text)
    - mutation calls return "mut-N", crossover calls return "cross-N"
    Any call kind listed in ``fail`` raises ServiceError; kinds in
    ``hang`` sleep past every reasonable timeout.
    """

    name = "fake"

    def __init__(self, fail=(), hang=()):
        self.fail = set(fail)
        self.hang = set(hang)
        self.calls = []
        self._counter = itertools.count()

    @staticmethod
    def kind_of(prompt: str) -> str:
        if EVAL_MARKER in prompt:
            return "evaluate"
        if prompt.startswith("Kombiniere"):
            return "crossover"
        return "mutate"

    def count(self, kind: str) -> int:
        return sum(1 for k, _ in self.calls if k == kind)

    async def generate(self, prompt, system_prompt="", max_tokens=2000):
        kind = self.kind_of(prompt)
        self.calls.append((kind, prompt))
        if kind in self.hang:
            await asyncio.sleep(10)
        if kind in self.fail:
            raise ServiceError("{} unavailable".format(kind), provider=self.name)
        if kind == "evaluate":
            return prompt.split(EVAL_MARKER)[0]
        if kind == "crossover":
            return "cross-{}".format(next(self._counter))
        return "mut-{}".format(next(self._counter))


class KeyedScorer(FitnessScorer):
    """Fitness by exact output text; unknown text uses ``default``."""

    name = "keyed"

    def __init__(self, table=None, default=0.1):
        self.table = dict(table or {})
        self.default = default

    def score(self, output):
        return self.table.get(output, self.default)


@pytest.fixture
def fake_service():
    return FakeService()


@pytest.fixture
def failing_service():
    return FakeService(fail={"evaluate", "mutate", "crossover"})


@pytest.fixture
def keyed_scorer():
    return KeyedScorer()


class ReplyService(TextGenerationService):
    """Answers every call with the same fixed text."""

    name = "reply"

    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    async def generate(self, prompt, system_prompt="", max_tokens=2000):
        self.calls.append(prompt)
        return self.reply


@pytest.fixture
def reply_service():
    return ReplyService


@pytest.fixture
def service_factory():
    return FakeService
