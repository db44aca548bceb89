# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Population seeding and tournament selection."""
import asyncio
import logging
import random
from typing import List, Sequence

from evidenra.genesis.models import Individual
from evidenra.genesis.operators import GeneticOperators

logger = logging.getLogger(__name__)


async def initialize_population(
    base_prompt: str,
    size: int,
    operators: GeneticOperators,
    strength: float = 0.3,
) -> List[Individual]:
    """Seed a population: the base prompt itself plus ``size - 1`` mutations.

    Operators are drawn up front so a seeded run stays reproducible while
    the ``size - 1`` rewrite calls run concurrently.
    """
    if size < 1:
        raise ValueError("population size must be >= 1, got {}".format(size))

    chosen = [operators.choose_operator() for _ in range(size - 1)]
    variants = await asyncio.gather(*(
        operators.mutate(base_prompt, strength, operator=op) for op in chosen
    ))

    population = [Individual(prompt=base_prompt)]
    population.extend(Individual(prompt=v) for v in variants)
    logger.info("Initialized population of %d (%d distinct prompts)",
                len(population), len({ind.prompt for ind in population}))
    return population


def tournament_select(
    population: Sequence[Individual],
    rng: random.Random,
    k: int = 3,
) -> Individual:
    """Best of ``k`` uniform draws (with replacement); ties go to the earliest draw."""
    if not population:
        raise ValueError("cannot select from an empty population")

    best = None
    for _ in range(k):
        contender = population[rng.randrange(len(population))]
        if best is None or contender.fitness > best.fitness:
            best = contender
    return best
