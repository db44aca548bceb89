# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Evolution loop: the Genesis orchestrator.

Flow:
  1. Seed the population from the base prompt (base + mutations)
  2. For each generation:
     a. Evaluate every individual concurrently, sort by fitness
     b. Track the best-ever individual, log improvements
     c. Stop on convergence (best-ever >= threshold)
     d. Reproduce: elites + tournament/crossover/mutation offspring
  3. Output: best prompt + improvement history

Nothing is persisted; each evolve() call is an isolated run.
"""
import asyncio
import logging
import random
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Union

from evidenra.genesis.fitness import FitnessEvaluator, FitnessScorer, create_scorer
from evidenra.genesis.models import (
    EvolutionConfig, EvolutionResult, GenerationRecord, Individual,
)
from evidenra.genesis.catalog import MutationOperator
from evidenra.genesis.operators import GeneticOperators
from evidenra.genesis.population import initialize_population, tournament_select
from evidenra.providers.base import TextGenerationService

logger = logging.getLogger(__name__)

GenerationCallback = Callable[[int, List[Individual]], None]


class GenesisEngine:
    """Evolves an analysis prompt against a fitness function.

    Usage:
        engine = GenesisEngine(service, rng=random.Random(7))
        result = await engine.evolve({"basePrompt": "...", "generations": 5})
        print(result.best_prompt, result.best_fitness)
    """

    def __init__(
        self,
        service: TextGenerationService,
        scorer: Optional[FitnessScorer] = None,
        rng: Optional[random.Random] = None,
    ):
        self._service = service
        self._scorer = scorer
        self._rng = rng or random.Random()

    async def evolve(
        self,
        config: Union[EvolutionConfig, Dict[str, Any]],
        on_generation: Optional[GenerationCallback] = None,
    ) -> EvolutionResult:
        """Run the full evolution loop.

        Parameters
        ----------
        config : EvolutionConfig or dict
            Run configuration. Dicts are validated and raise
            ConfigurationError before any external call is made.
        on_generation : callable, optional
            Called with (generation, sorted population) after each
            evaluation pass.

        Returns
        -------
        EvolutionResult
            Best prompt, its fitness and the improvement history. Falls back
            to the base prompt with fitness 0 if nothing scored above 0.
        """
        if not isinstance(config, EvolutionConfig):
            config = EvolutionConfig.from_dict(config)
        scorer = self._scorer or create_scorer(config.fitness_function)

        operators = GeneticOperators(
            self._service, self._rng,
            timeout=config.call_timeout_s,
            max_tokens=config.max_output_tokens,
        )
        evaluator = FitnessEvaluator(
            self._service, scorer,
            timeout=config.call_timeout_s,
            max_tokens=config.max_output_tokens,
        )

        logger.info(
            "Genesis run: %d generations x %d individuals (fitness=%s, mutation=%.2f, crossover=%.2f)",
            config.generations, config.population_size, scorer.name,
            config.mutation_rate, config.crossover_rate,
        )
        population = await initialize_population(
            config.base_prompt, config.population_size, operators,
            strength=config.seed_mutation_strength,
        )

        best_ever = Individual(prompt=config.base_prompt, fitness=0.0)
        improvements: List[GenerationRecord] = []
        completed = 0
        converged = False

        for gen in range(config.generations):
            logger.info("=== Generation %d ===", gen)
            population = await evaluator.evaluate_population(population)
            completed += 1
            if on_generation:
                on_generation(gen, list(population))

            leader = population[0]
            if leader.fitness > best_ever.fitness:
                record = GenerationRecord(
                    generation=gen,
                    fitness=leader.fitness,
                    improvement=leader.fitness - best_ever.fitness,
                )
                improvements.append(record)
                best_ever = leader
                logger.info("New best fitness %.3f (%+.3f)", record.fitness, record.improvement)
            else:
                logger.info("No improvement (best %.3f, generation best %.3f)",
                            best_ever.fitness, leader.fitness)

            if best_ever.fitness >= config.convergence_threshold:
                logger.info("Converged: fitness %.3f >= %.2f", best_ever.fitness,
                            config.convergence_threshold)
                converged = True
                break

            # Offspring of the last generation would never be evaluated
            if gen == config.generations - 1:
                break

            population = await reproduce(population, config, operators, self._rng)

        return EvolutionResult(
            best_prompt=best_ever.prompt,
            best_fitness=best_ever.fitness,
            generations_run=len(improvements),
            generations_completed=completed,
            converged=converged,
            improvements=improvements,
        )


class _OffspringPlan(NamedTuple):
    parent_a: Individual
    parent_b: Individual
    crossover: bool
    crossover_fallback: Optional[str]
    mutation: Optional[MutationOperator]


async def reproduce(
    population: List[Individual],
    config: EvolutionConfig,
    operators: GeneticOperators,
    rng: random.Random,
) -> List[Individual]:
    """Build the next generation from a population sorted by fitness.

    The top ``config.elite_count`` individuals are carried over unchanged.
    Every random decision is drawn before the offspring calls are issued
    concurrently; within one offspring, crossover completes before mutation.
    """
    size = len(population)
    elite_count = min(config.elite_count, size)
    next_population = list(population[:elite_count])

    plans = []
    for _ in range(size - elite_count):
        parent_a = tournament_select(population, rng, config.tournament_size)
        parent_b = tournament_select(population, rng, config.tournament_size)
        do_crossover = rng.random() < config.crossover_rate
        do_mutation = rng.random() < config.mutation_rate
        plans.append(_OffspringPlan(
            parent_a=parent_a,
            parent_b=parent_b,
            crossover=do_crossover,
            crossover_fallback=(
                operators.choose_parent(parent_a.prompt, parent_b.prompt)
                if do_crossover else None
            ),
            mutation=operators.choose_operator() if do_mutation else None,
        ))

    children = await asyncio.gather(*(
        _breed(plan, operators, config.offspring_mutation_strength) for plan in plans
    ))
    next_population.extend(Individual(prompt=child) for child in children)

    logger.debug(
        "Reproduced %d individuals (%d elites, %d crossovers, %d mutations)",
        len(next_population), elite_count,
        sum(1 for p in plans if p.crossover),
        sum(1 for p in plans if p.mutation is not None),
    )
    return next_population


async def _breed(plan: _OffspringPlan, operators: GeneticOperators, strength: float) -> str:
    child = plan.parent_a.prompt
    if plan.crossover:
        child = await operators.crossover(
            plan.parent_a.prompt, plan.parent_b.prompt,
            fallback=plan.crossover_fallback,
        )
    if plan.mutation is not None:
        child = await operators.mutate(child, strength, operator=plan.mutation)
    return child


def format_evolution_report(result: EvolutionResult) -> str:
    """Format a human-readable evolution report."""
    lines = [
        "=" * 60,
        "Genesis Evolution Report",
        "=" * 60,
        "Generations evaluated: {}  Improvements: {}  Converged: {}".format(
            result.generations_completed, result.generations_run,
            "yes" if result.converged else "no",
        ),
        "Best fitness: {:.3f}".format(result.best_fitness),
        "",
    ]

    if result.improvements:
        lines.append("--- Improvements ---")
        for record in result.improvements:
            lines.append("  gen {:>3}  fitness {:.3f}  ({:+.3f})".format(
                record.generation, record.fitness, record.improvement,
            ))
    else:
        lines.append("No candidate scored above 0; returning the base prompt.")
    lines.append("")

    lines.append("--- Best prompt ---")
    lines.append(result.best_prompt)
    return "\n".join(lines)
