# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Sentence segmentation of source text into units of analysis."""
import re
from typing import List

from pydantic import BaseModel

_SENTENCE_END_RE = re.compile(r"(?<=[.!?])\s+")

MIN_SEGMENT_CHARS = 10


class Segment(BaseModel):
    id: str
    text: str
    start: int
    end: int
    type: str = "sentence"


def segment_text(text: str, min_chars: int = MIN_SEGMENT_CHARS) -> List[Segment]:
    """Split ``text`` into sentences, dropping fragments of ``min_chars`` or fewer."""
    segments: List[Segment] = []
    cursor = 0
    for sentence in _SENTENCE_END_RE.split(text):
        start = text.find(sentence, cursor)
        cursor = start + len(sentence)
        stripped = sentence.strip()
        if len(stripped) <= min_chars:
            continue
        segments.append(Segment(
            id="seg-{}".format(len(segments) + 1),
            text=stripped,
            start=start,
            end=cursor,
        ))
    return segments
