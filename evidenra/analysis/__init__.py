# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Structured analysis results: parsing and segmentation."""
from evidenra.analysis.parsing import (
    AnalysisResult, AnalysisStatus, Category, Coding, extract_json, parse_analysis,
)
from evidenra.analysis.segments import Segment, segment_text

__all__ = [
    "AnalysisResult", "AnalysisStatus", "Category", "Coding",
    "extract_json", "parse_analysis",
    "Segment", "segment_text",
]
