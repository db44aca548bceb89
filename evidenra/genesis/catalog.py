# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Closed catalogs of the Genesis engine: mutation operators and fitness metrics."""
from enum import Enum
from typing import Any, Dict


class MutationOperator(str, Enum):
    """Named rewrite directives applied by the mutation operator."""

    ADD_STRUCTURE = "add_structure"
    EMPHASIZE_RIGOR = "emphasize_rigor"
    REQUIRE_REASONING = "require_reasoning"
    ADD_EXAMPLES = "add_examples"
    ADD_QUALITY_CRITERIA = "add_quality_criteria"
    SIMPLIFY = "simplify"
    ADD_STEPS = "add_steps"

    @property
    def description(self) -> str:
        return _OPERATOR_META[self][0]

    @property
    def directive(self) -> str:
        """Instruction sent to the rewriting model (German, like the prompts it edits)."""
        return _OPERATOR_META[self][1]


_OPERATOR_META = {
    MutationOperator.ADD_STRUCTURE: (
        "Add more structure", "Füge mehr Struktur hinzu"),
    MutationOperator.EMPHASIZE_RIGOR: (
        "Emphasize methodological rigor", "Betone methodische Strenge"),
    MutationOperator.REQUIRE_REASONING: (
        "Require more justifications", "Fordere mehr Begründungen"),
    MutationOperator.ADD_EXAMPLES: (
        "Require concrete examples", "Verlange konkrete Beispiele"),
    MutationOperator.ADD_QUALITY_CRITERIA: (
        "Add quality criteria", "Füge Qualitätskriterien hinzu"),
    MutationOperator.SIMPLIFY: (
        "Simplify the instructions", "Vereinfache die Anweisungen"),
    MutationOperator.ADD_STEPS: (
        "Add step-by-step guidance", "Füge Schritt-für-Schritt Anleitung hinzu"),
}


class FitnessMetric(str, Enum):
    """Sub-signals of the heuristic fitness score."""

    STRUCTURE = "structure"
    CODINGS = "codings"
    REASONING = "reasoning"
    METHODOLOGY = "methodology"
    LENGTH = "length"

    @property
    def max_contribution(self) -> float:
        return _METRIC_META[self][0]

    @property
    def description(self) -> str:
        return _METRIC_META[self][1]


_METRIC_META = {
    FitnessMetric.STRUCTURE: (0.2, "Structured output (JSON/lists)"),
    FitnessMetric.CODINGS: (0.2, "Number of codings found"),
    FitnessMetric.REASONING: (0.2, "Justifications present"),
    FitnessMetric.METHODOLOGY: (0.4, "Methodological terminology"),
    FitnessMetric.LENGTH: (0.2, "Optimal response length"),
}


DEFAULT_PARAMETERS: Dict[str, Any] = {
    "generations": 10,
    "population_size": 20,
    "mutation_rate": 0.1,
    "crossover_rate": 0.7,
    "elite_fraction": 0.1,
}


def genesis_config() -> Dict[str, Any]:
    """Public description of the engine: defaults, operators, metrics."""
    from evidenra.genesis.fitness import TEST_TEXT

    return {
        "default_parameters": dict(DEFAULT_PARAMETERS),
        "mutation_operators": [
            {"name": op.value, "description": op.description}
            for op in MutationOperator
        ],
        "fitness_metrics": {
            m.value: {"weight": m.max_contribution, "description": m.description}
            for m in FitnessMetric
        },
        "test_text": TEST_TEXT,
    }
