# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Tests for the AKIH quality score."""
import json

import pytest

from evidenra.akih import AKIH_DIMENSIONS, AkihScorer, ScoreLevel, calculate_akih_score
from evidenra.analysis import AnalysisResult, Category, Coding, parse_analysis


def _coding(category="A", **kwargs):
    return Coding(text="Segment", category=category, **kwargs)


def _analysis():
    return AnalysisResult(
        codings=[
            _coding("A", reasoning="weil betont", document_id="d1"),
            _coding("B", memo="Motivation", document_id="d1"),
        ],
        categories=[
            Category(name="A", relations=["B"]),
            Category(name="B"),
        ],
        memos=["Erstes Memo"],
        total_segments=2,
        documents=["d1"],
    )


def _dim(score, key):
    return score.dimensions[key].value


class TestDimensions:
    def test_eight_dimensions_weights_sum_to_one(self):
        assert len(AKIH_DIMENSIONS) == 8
        assert sum(d.weight for d in AKIH_DIMENSIONS) == pytest.approx(1.0)

    def test_complete_analysis(self):
        score = calculate_akih_score(_analysis())
        assert _dim(score, "D1_PRECISION") == 1.0
        assert _dim(score, "D2_RECALL") == 1.0
        assert _dim(score, "D3_CONSISTENCY") == 1.0
        assert _dim(score, "D4_SATURATION") == 0.0
        assert _dim(score, "D5_COVERAGE") == 1.0
        assert _dim(score, "D6_INTEGRATION") == 0.5
        assert _dim(score, "D7_TRACEABILITY") == 1.0
        assert _dim(score, "D8_REFLEXIVITY") == 1.0
        assert score.overall == pytest.approx(0.75)

    def test_precision_counts_categorized_codings(self):
        data = AnalysisResult(codings=[_coding("A"), _coding(None)])
        assert _dim(calculate_akih_score(data), "D1_PRECISION") == 0.5

    def test_recall_is_capped(self):
        data = AnalysisResult(codings=[_coding()] * 5, total_segments=2)
        assert _dim(calculate_akih_score(data), "D2_RECALL") == 1.0

    def test_recall_without_segments(self):
        data = AnalysisResult(codings=[_coding()])
        assert _dim(calculate_akih_score(data), "D2_RECALL") == 0.0

    def test_dominant_category_lowers_consistency(self):
        data = AnalysisResult(codings=[_coding("A")] * 9 + [_coding("B")])
        assert _dim(calculate_akih_score(data), "D3_CONSISTENCY") == pytest.approx(0.36)

    def test_consistency_floor(self):
        data = AnalysisResult(codings=[_coding("A")] * 30 + [_coding("B")])
        assert _dim(calculate_akih_score(data), "D3_CONSISTENCY") == 0.3

    def test_saturation_counts_new_recent_categories(self):
        codings = [_coding("A")] * 2 + [_coding("A")] * 5 + [_coding("B")] * 5
        data = AnalysisResult(codings=codings, categories=[Category(name="A")])
        assert _dim(calculate_akih_score(data), "D4_SATURATION") == 0.5

    def test_saturation_when_no_new_categories(self):
        codings = [_coding("A"), _coding("B")] + [_coding("A")] * 10
        data = AnalysisResult(codings=codings, categories=[Category(name="A")])
        assert _dim(calculate_akih_score(data), "D4_SATURATION") == 1.0

    def test_coverage_over_documents(self):
        data = AnalysisResult(
            codings=[_coding(document_id="d1"), _coding(document_id="d1")],
            documents=["d1", "d2"],
        )
        assert _dim(calculate_akih_score(data), "D5_COVERAGE") == 0.5

    def test_reflexivity_wants_one_memo_per_ten_codings(self):
        data = AnalysisResult(codings=[_coding()] * 20, memos=["m"])
        assert _dim(calculate_akih_score(data), "D8_REFLEXIVITY") == 0.5

    def test_empty_analysis(self):
        score = calculate_akih_score(AnalysisResult(documents=["d1"], total_segments=3))
        assert score.overall == 0.05
        assert score.level is ScoreLevel.INSUFFICIENT

    @pytest.mark.parametrize("value,level", [
        (0.95, ScoreLevel.EXCELLENT),
        (0.8, ScoreLevel.GOOD),
        (0.6, ScoreLevel.ACCEPTABLE),
        (0.45, ScoreLevel.NEEDS_IMPROVEMENT),
        (0.1, ScoreLevel.INSUFFICIENT),
    ])
    def test_levels(self, value, level):
        assert ScoreLevel.for_score(value) is level


class TestAkihScorer:
    def test_unparseable_output_scores_zero(self):
        assert AkihScorer().score("Das kann ich nicht beantworten.") == 0.0

    def test_parsed_without_codings_is_scored(self):
        assert AkihScorer().score('{"codings": [], "summary": "leer"}') == pytest.approx(0.05)

    def test_scores_structured_analysis(self):
        output = json.dumps({
            "codings": [
                {"text": "Tablets", "category": "Digitalisierung",
                 "reasoning": "neue Medien", "documentId": "test"},
                {"text": "offline", "category": "Ungleichheit",
                 "memo": "Zugang", "documentId": "test"},
            ],
            "categories": [
                {"name": "Digitalisierung", "relations": ["Ungleichheit"]},
                {"name": "Ungleichheit", "relations": ["Digitalisierung"]},
            ],
            "memos": ["Spannung zwischen Motivation und Zugang"],
        }, ensure_ascii=False)
        score = AkihScorer().score(output)
        assert 0.5 < score <= 1.0

    def test_matches_direct_calculation(self):
        output = '[{"text": "a", "category": "K", "documentId": "test"}]'
        scorer = AkihScorer(source_text="Ein erster langer Satz. Ein zweiter langer Satz.")
        expected = calculate_akih_score(
            parse_analysis(output, total_segments=2, documents=["test"]),
        ).overall
        assert scorer.score(output) == expected

    def test_truncated_output_scores_zero(self):
        full = json.dumps({"codings": [
            {"text": "t{}".format(i), "category": "K{}".format(i % 3), "documentId": "test"}
            for i in range(30)
        ]})
        assert AkihScorer().score(full[:len(full) // 2]) == 0.0

    def test_one_invalid_coding_does_not_zero_the_score(self):
        output = json.dumps({"codings": [
            {"text": "Tablets", "category": "Digitalisierung", "documentId": "test"},
            {"text": "offline", "category": "Ungleichheit", "confidence": "hoch"},
        ]})
        assert AkihScorer().score(output) > 0.05
