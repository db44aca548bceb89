# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""evidenra-genesis CLI: run prompt evolution from the terminal."""
import argparse
import asyncio
import json
import logging
import sys


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="evidenra-genesis",
        description="Evolve qualitative-analysis prompts with a genetic algorithm.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    # evidenra-genesis evolve --base-prompt-file prompt.txt
    evo_p = sub.add_parser("evolve", help="Run the evolution loop")
    src = evo_p.add_mutually_exclusive_group()
    src.add_argument("--base-prompt", help="Base prompt text")
    src.add_argument("--base-prompt-file", help="Read the base prompt from a file")
    evo_p.add_argument("--config", "-c", help="YAML run config (EvolutionConfig fields)")
    evo_p.add_argument("--generations", "-g", type=int, help="Generations (default: 10)")
    evo_p.add_argument("--population", "-n", type=int, help="Population size (default: 20)")
    evo_p.add_argument("--mutation-rate", type=float, help="Mutation rate (default: 0.1)")
    evo_p.add_argument("--crossover-rate", type=float, help="Crossover rate (default: 0.7)")
    evo_p.add_argument("--fitness", "-f", help="Fitness function (quality, akih)")
    evo_p.add_argument("--timeout", type=float, help="Timeout per LLM call in seconds")
    evo_p.add_argument("--seed", type=int, help="Random seed for reproducible runs")
    evo_p.add_argument("--provider", "-p", help="LLM provider (anthropic, openai, ollama)")
    evo_p.add_argument("--model", "-m", help="Model name")
    evo_p.add_argument("--api-key", "-k", help="API key (or use env vars)")
    evo_p.add_argument("--json", action="store_true", help="Output the result as JSON")

    # evidenra-genesis catalog
    sub.add_parser("catalog", help="Show default parameters, mutation operators and fitness metrics")

    # evidenra-genesis score output.txt
    score_p = sub.add_parser("score", help="Score a generated analysis with a fitness function")
    score_p.add_argument("file", help="Text file with the generated analysis ('-' for stdin)")
    score_p.add_argument("--fitness", "-f", default="quality", help="Fitness function (quality, akih)")

    # evidenra-genesis version
    sub.add_parser("version", help="Show version and provider SDK status")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "evolve":
        return _cmd_evolve(args)
    if args.command == "catalog":
        return _cmd_catalog()
    if args.command == "score":
        return _cmd_score(args)
    if args.command == "version":
        return _cmd_version()
    parser.print_help()
    return 0


_RESET = "\033[0m"
_DIM = "\033[90m"
_BOLD = "\033[1m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_CYAN = "\033[36m"


def _fail(message: str, code: int = 2) -> int:
    print("error: {}".format(message), file=sys.stderr)
    return code


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _cmd_evolve(args) -> int:
    import random

    from evidenra.config import GenesisSettings, load_evolution_config
    from evidenra.errors import ConfigurationError
    from evidenra.genesis import EvolutionConfig, GenesisEngine, format_evolution_report
    from evidenra.providers import provider_from_settings

    logger = logging.getLogger("evidenra.cli")

    settings = GenesisSettings.from_env()
    if args.provider:
        settings.provider = args.provider
    if args.model:
        settings.model = args.model
    if args.api_key:
        settings.api_key = args.api_key
    logger.info("Settings: %s", settings.redacted())

    try:
        base_prompt = args.base_prompt
        if args.base_prompt_file:
            base_prompt = _read_text(args.base_prompt_file).strip()
    except OSError as e:
        return _fail("cannot read base prompt: {}".format(e))

    overrides = {
        "base_prompt": base_prompt,
        "generations": args.generations,
        "population_size": args.population,
        "mutation_rate": args.mutation_rate,
        "crossover_rate": args.crossover_rate,
        "fitness_function": args.fitness,
        "call_timeout_s": args.timeout,
    }
    try:
        if args.config:
            config = load_evolution_config(args.config, **overrides)
        else:
            if overrides["call_timeout_s"] is None:
                overrides["call_timeout_s"] = settings.call_timeout
            config = EvolutionConfig.from_dict(
                {k: v for k, v in overrides.items() if v is not None},
            )
    except ConfigurationError as e:
        return _fail(str(e))

    if not settings.api_key and settings.resolved_provider != "ollama":
        return _fail("no API key: set EVIDENRA_API_KEY, ANTHROPIC_API_KEY or OPENAI_API_KEY")

    engine = GenesisEngine(
        provider_from_settings(settings),
        rng=random.Random(args.seed) if args.seed is not None else None,
    )

    def _progress(generation, population):
        if args.json:
            return
        best = population[0].fitness if population else 0.0
        print("{}gen {:>3}{}  best {}{:.3f}{}  mean {:.3f}".format(
            _DIM, generation, _RESET, _GREEN, best, _RESET,
            sum(ind.fitness for ind in population) / max(len(population), 1),
        ), file=sys.stderr)

    try:
        result = asyncio.run(engine.evolve(config, on_generation=_progress))
    except ConfigurationError as e:
        return _fail(str(e))

    if args.json:
        print(json.dumps(result.to_response(), ensure_ascii=False, indent=2))
    else:
        print(format_evolution_report(result))
    return 0


def _cmd_catalog() -> int:
    from evidenra.genesis import genesis_config

    print(json.dumps(genesis_config(), ensure_ascii=False, indent=2))
    return 0


def _cmd_score(args) -> int:
    from evidenra.errors import ConfigurationError
    from evidenra.genesis import create_scorer

    try:
        scorer = create_scorer(args.fitness)
    except ConfigurationError as e:
        return _fail(str(e))
    try:
        text = _read_text(args.file)
    except OSError as e:
        return _fail("cannot read {}: {}".format(args.file, e))

    report = {"fitness_function": scorer.name, "score": round(scorer.score(text), 4)}
    if hasattr(scorer, "breakdown"):
        report["breakdown"] = {k: round(v, 4) for k, v in scorer.breakdown(text).items()}
    print(json.dumps(report, ensure_ascii=False, indent=2))
    return 0


def _cmd_version() -> int:
    from evidenra import __version__

    print()
    print("  {}{}evidenra-genesis v{}{}".format(_BOLD, _CYAN, __version__, _RESET))
    print()
    for label, module in (("anthropic", "anthropic"), ("openai", "openai")):
        try:
            mod = __import__(module)
            ver = getattr(mod, "__version__", "")
            print("  {}✔{} {} {}{}{}".format(_GREEN, _RESET, label, _DIM, ver, _RESET))
        except ImportError:
            print("  {}✘ {}{}".format(_YELLOW, label, _RESET))
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
