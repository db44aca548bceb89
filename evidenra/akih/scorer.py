# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""AKIH as a Genesis fitness function."""
import logging

from evidenra.akih.dimensions import calculate_akih_score
from evidenra.analysis.parsing import parse_analysis
from evidenra.analysis.segments import segment_text
from evidenra.genesis.fitness import TEST_TEXT, FitnessScorer, clamp_fitness

logger = logging.getLogger(__name__)


class AkihScorer(FitnessScorer):
    """Scores the structured analysis a prompt produces for ``source_text``.

    Output that cannot be parsed scores 0. Parsed output without codings
    goes through the dimensions like any other result.
    """

    name = "akih"

    def __init__(self, source_text: str = TEST_TEXT, document_id: str = "test"):
        self._total_segments = len(segment_text(source_text))
        self._documents = [document_id]

    def score(self, output: str) -> float:
        result = parse_analysis(
            output,
            total_segments=self._total_segments,
            documents=self._documents,
        )
        if not result.parsed:
            logger.info("AKIH: unparseable analysis output (%s), scoring 0", result.error)
            return 0.0
        akih = calculate_akih_score(result)
        logger.debug("AKIH %.2f (%s, %d codings)", akih.overall, akih.level.value, len(result.codings))
        return clamp_fitness(akih.overall)
