# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Tests for Genesis data models and run configuration."""
import pytest
from pydantic import ValidationError

from evidenra.errors import ConfigurationError
from evidenra.genesis.catalog import FitnessMetric, MutationOperator, genesis_config
from evidenra.genesis.models import (
    EvolutionConfig, EvolutionResult, GenerationRecord, Individual,
)


class TestIndividual:
    def test_defaults_to_zero_fitness(self):
        ind = Individual(prompt="Analysiere den Text.")
        assert ind.fitness == 0.0

    def test_prompt_is_immutable(self):
        ind = Individual(prompt="a")
        with pytest.raises(ValidationError):
            ind.prompt = "b"

    def test_with_fitness_returns_new_individual(self):
        ind = Individual(prompt="a")
        scored = ind.with_fitness(0.7)
        assert scored.fitness == 0.7
        assert scored.prompt == "a"
        assert ind.fitness == 0.0


class TestEvolutionConfig:
    def test_defaults(self):
        cfg = EvolutionConfig(base_prompt="p")
        assert cfg.fitness_function == "quality"
        assert cfg.generations == 10
        assert cfg.population_size == 20
        assert cfg.mutation_rate == 0.1
        assert cfg.crossover_rate == 0.7
        assert cfg.convergence_threshold == 0.98

    def test_from_dict_accepts_camel_case(self):
        cfg = EvolutionConfig.from_dict({
            "basePrompt": "p",
            "fitnessFunction": "akih",
            "populationSize": 8,
            "mutationRate": 0.5,
            "crossoverRate": 0.2,
            "generations": 3,
        })
        assert cfg.base_prompt == "p"
        assert cfg.fitness_function == "akih"
        assert cfg.population_size == 8
        assert cfg.mutation_rate == 0.5

    @pytest.mark.parametrize("bad", [
        {"generations": 0},
        {"population_size": 1, "generations": 2},
        {"population_size": 0, "generations": 1},
        {"mutation_rate": 1.5},
        {"crossover_rate": -0.1},
        {"unknown_knob": True},
    ])
    def test_invalid_values_raise_configuration_error(self, bad):
        data = {"base_prompt": "p"}
        data.update(bad)
        with pytest.raises(ConfigurationError):
            EvolutionConfig.from_dict(data)

    def test_missing_base_prompt(self):
        with pytest.raises(ConfigurationError, match="base_prompt"):
            EvolutionConfig.from_dict({"generations": 2})

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            EvolutionConfig.from_dict({"base_prompt": "p", "generations": 0})

    def test_single_individual_allowed_for_one_generation(self):
        cfg = EvolutionConfig.from_dict({"base_prompt": "p", "population_size": 1, "generations": 1})
        assert cfg.population_size == 1
        assert cfg.elite_count == 1

    @pytest.mark.parametrize("size,expected", [(2, 2), (4, 2), (20, 2), (30, 3), (55, 5)])
    def test_elite_count(self, size, expected):
        cfg = EvolutionConfig(base_prompt="p", population_size=size)
        assert cfg.elite_count == expected
        assert cfg.elite_count <= cfg.population_size

    def test_frozen(self):
        cfg = EvolutionConfig(base_prompt="p")
        with pytest.raises(ValidationError):
            cfg.generations = 3


class TestEvolutionResult:
    def test_to_response_shape(self):
        result = EvolutionResult(
            best_prompt="best",
            best_fitness=0.8,
            generations_run=2,
            generations_completed=5,
            improvements=[
                GenerationRecord(generation=0, fitness=0.5, improvement=0.5),
                GenerationRecord(generation=3, fitness=0.8, improvement=0.3),
            ],
        )
        resp = result.to_response()
        assert resp["best"] == "best"
        assert resp["fitness"] == 0.8
        assert resp["generationsRun"] == 2
        assert resp["improvements"][1] == {"generation": 3, "fitness": 0.8, "improvement": 0.3}


class TestCatalog:
    def test_seven_operators_with_metadata(self):
        assert len(MutationOperator) == 7
        for op in MutationOperator:
            assert op.description
            assert op.directive

    def test_metric_caps_cover_full_range(self):
        assert sum(m.max_contribution for m in FitnessMetric) >= 1.0

    def test_genesis_config_export(self):
        cfg = genesis_config()
        assert cfg["default_parameters"]["population_size"] == 20
        names = [op["name"] for op in cfg["mutation_operators"]]
        assert "simplify" in names and "add_steps" in names
        assert set(cfg["fitness_metrics"]) == {m.value for m in FitnessMetric}
        assert "Lehrerin" in cfg["test_text"]
