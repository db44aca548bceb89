# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""AKIH multi-dimension quality score for qualitative analyses."""
from evidenra.akih.dimensions import (
    AKIH_DIMENSIONS, AkihScore, Dimension, DimensionScore, ScoreLevel, calculate_akih_score,
)

__all__ = [
    "AKIH_DIMENSIONS", "AkihScore", "Dimension", "DimensionScore", "ScoreLevel",
    "calculate_akih_score", "AkihScorer",
]


def __getattr__(name):
    # The scorer pulls in the genesis package; load it on first use.
    if name == "AkihScorer":
        from evidenra.akih.scorer import AkihScorer
        return AkihScorer
    raise AttributeError("module 'evidenra.akih' has no attribute '{}'".format(name))
