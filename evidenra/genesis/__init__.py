# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Genesis: evolutionary optimization of analysis prompts.

Usage:
    evidenra-genesis evolve --base-prompt-file prompt.txt    Run evolution
    evidenra-genesis catalog                                 Show operators/metrics
    evidenra-genesis score output.txt --fitness akih         Score one output
"""
from evidenra.genesis.catalog import FitnessMetric, MutationOperator, genesis_config
from evidenra.genesis.fitness import (
    FitnessEvaluator, FitnessScorer, HeuristicScorer, create_scorer,
)
from evidenra.genesis.loop import GenesisEngine, format_evolution_report
from evidenra.genesis.models import (
    EvolutionConfig, EvolutionResult, GenerationRecord, Individual,
)

__all__ = [
    "GenesisEngine", "format_evolution_report",
    "EvolutionConfig", "EvolutionResult", "GenerationRecord", "Individual",
    "FitnessEvaluator", "FitnessScorer", "HeuristicScorer", "create_scorer",
    "FitnessMetric", "MutationOperator", "genesis_config",
]
