# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""AKIH dimensions: weighted quality signals of a qualitative analysis.

  D1-D3  Coding quality          (40%)
  D4-D5  Theoretical saturation  (35%)
  D6-D8  Methodological rigor    (25%)

Each dimension maps an AnalysisResult to [0, 1].
"""
import math
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Tuple

from pydantic import BaseModel, Field

from evidenra.analysis.parsing import AnalysisResult

# Codings considered "recent" when checking for new categories
SATURATION_WINDOW = 10


@dataclass(frozen=True)
class Dimension:
    key: str
    name: str
    weight: float
    description: str
    calculate: Callable[[AnalysisResult], float]


def _precision(data: AnalysisResult) -> float:
    if not data.codings:
        return 0.0
    with_category = sum(1 for c in data.codings if c.category)
    return with_category / len(data.codings)


def _recall(data: AnalysisResult) -> float:
    if not data.total_segments:
        return 0.0
    return min(len(data.codings) / data.total_segments, 1.0)


def _consistency(data: AnalysisResult) -> float:
    """Even use of categories scores high; one dominant category scores low."""
    if not data.codings:
        return 0.5
    usage = Counter(c.category or "none" for c in data.codings)
    avg = len(data.codings) / len(usage)
    variance = sum((n - avg) ** 2 for n in usage.values()) / len(usage)
    return max(0.3, 1 - variance / (avg * avg))


def _saturation(data: AnalysisResult) -> float:
    """Share of recent categories that were already in use before."""
    if not data.categories:
        return 0.0
    earlier = {c.category for c in data.codings[:-SATURATION_WINDOW]}
    recent = {c.category for c in data.codings[-SATURATION_WINDOW:]}
    new = recent - earlier
    return 1 - len(new) / max(len(recent), 1)


def _coverage(data: AnalysisResult) -> float:
    if not data.documents:
        return 0.0
    covered = {c.document_id for c in data.codings}
    return min(len(covered), len(data.documents)) / len(data.documents)


def _integration(data: AnalysisResult) -> float:
    if not data.categories:
        return 0.0
    related = sum(1 for c in data.categories if c.relations)
    return related / len(data.categories)


def _traceability(data: AnalysisResult) -> float:
    if not data.codings:
        return 0.0
    explained = sum(1 for c in data.codings if c.reasoning or c.memo)
    return explained / len(data.codings)


def _reflexivity(data: AnalysisResult) -> float:
    ideal = math.ceil(len(data.codings) / 10)
    return min(len(data.memos) / max(ideal, 1), 1.0)


AKIH_DIMENSIONS: Tuple[Dimension, ...] = (
    Dimension("D1_PRECISION", "Precision", 0.15, "Correctness of codings", _precision),
    Dimension("D2_RECALL", "Recall", 0.15, "Completeness of the analysis", _recall),
    Dimension("D3_CONSISTENCY", "Consistency", 0.10, "Consistency of codings", _consistency),
    Dimension("D4_SATURATION", "Saturation", 0.20, "Theoretical saturation", _saturation),
    Dimension("D5_COVERAGE", "Coverage", 0.15, "Document coverage", _coverage),
    Dimension("D6_INTEGRATION", "Integration", 0.10, "Integration of categories", _integration),
    Dimension("D7_TRACEABILITY", "Traceability", 0.08, "Traceability of decisions", _traceability),
    Dimension("D8_REFLEXIVITY", "Reflexivity", 0.07, "Reflexivity (analytic memos)", _reflexivity),
)


class ScoreLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    NEEDS_IMPROVEMENT = "needs-improvement"
    INSUFFICIENT = "insufficient"

    @classmethod
    def for_score(cls, score: float) -> "ScoreLevel":
        if score >= 0.9:
            return cls.EXCELLENT
        if score >= 0.75:
            return cls.GOOD
        if score >= 0.6:
            return cls.ACCEPTABLE
        if score >= 0.4:
            return cls.NEEDS_IMPROVEMENT
        return cls.INSUFFICIENT


class DimensionScore(BaseModel):
    name: str
    value: float
    weight: float
    description: str


class AkihScore(BaseModel):
    """Overall AKIH score plus the per-dimension breakdown."""

    overall: float
    level: ScoreLevel
    dimensions: Dict[str, DimensionScore] = Field(default_factory=dict)


def calculate_akih_score(data: AnalysisResult) -> AkihScore:
    """Weighted mean of all dimensions, rounded to two decimals."""
    dimensions: Dict[str, DimensionScore] = {}
    weighted_sum = 0.0
    total_weight = 0.0

    for dim in AKIH_DIMENSIONS:
        value = dim.calculate(data)
        dimensions[dim.key] = DimensionScore(
            name=dim.name,
            value=round(value, 2),
            weight=dim.weight,
            description=dim.description,
        )
        weighted_sum += value * dim.weight
        total_weight += dim.weight

    overall = weighted_sum / total_weight if total_weight > 0 else 0.0
    return AkihScore(
        overall=round(overall, 2),
        level=ScoreLevel.for_score(overall),
        dimensions=dimensions,
    )
