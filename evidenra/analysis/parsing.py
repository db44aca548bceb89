# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Parsing of structured analysis output from generated text.

Models answer "with JSON only" but routinely wrap it in prose or code
fences. extract_json() recovers the structure in three passes:

  1. the whole text is JSON
  2. a fenced ```json block
  3. the largest balanced {...} / [...] span that parses

and raises MalformedOutputError when none succeeds. parse_analysis() never
raises; its status tells "parsed, no codings" apart from "parse failed".
"""
import json
import logging
import re
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from evidenra.errors import MalformedOutputError

logger = logging.getLogger(__name__)

_FENCED_RE = re.compile(r"```(?:json)?\s*\n(.*?)```", re.DOTALL)
_CLOSERS = {"{": "}", "[": "]"}


class Coding(BaseModel):
    """One coded text segment."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    id: Optional[str] = None
    text: str = ""
    category: Optional[str] = None
    subcategory: Optional[str] = None
    reasoning: Optional[str] = None
    memo: Optional[str] = None
    confidence: Optional[float] = None
    document_id: Optional[str] = Field(default=None, alias="documentId")
    relations: List[Any] = Field(default_factory=list)


class Category(BaseModel):
    """A category of the coding frame."""

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    name: str = ""
    definition: Optional[str] = None
    anchor_example: Optional[str] = Field(default=None, alias="anchorExample")
    coding_rule: Optional[str] = Field(default=None, alias="codingRule")
    relations: List[Any] = Field(default_factory=list)


class AnalysisStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"  # parsed, but no codings
    PARSE_FAILED = "parse_failed"


class AnalysisResult(BaseModel):
    """Structured result of one qualitative analysis."""

    model_config = ConfigDict(populate_by_name=True)

    status: AnalysisStatus = AnalysisStatus.OK
    codings: List[Coding] = Field(default_factory=list)
    categories: List[Category] = Field(default_factory=list)
    summary: str = ""
    memos: List[Any] = Field(default_factory=list)
    total_segments: Optional[int] = None
    documents: List[Any] = Field(default_factory=list)
    error: str = ""
    dropped: int = 0  # invalid codings/categories skipped

    @property
    def parsed(self) -> bool:
        return self.status is not AnalysisStatus.PARSE_FAILED


def extract_json(text: str) -> Any:
    """Return the JSON object or array embedded in ``text``.

    Raises MalformedOutputError if no parseable structure is found.
    """
    if not text or not text.strip():
        raise MalformedOutputError("empty output", raw=text or "")

    stripped = text.strip()
    try:
        data = json.loads(stripped)
        if isinstance(data, (dict, list)):
            return data
    except json.JSONDecodeError:
        pass

    for block in _FENCED_RE.findall(text):
        try:
            return json.loads(block.strip())
        except json.JSONDecodeError:
            continue

    for start, end in sorted(_bracket_spans(text), key=lambda s: s[1] - s[0], reverse=True):
        try:
            return json.loads(text[start:end])
        except json.JSONDecodeError:
            continue

    raise MalformedOutputError("no JSON structure found in output", raw=text)


def _bracket_spans(text: str) -> List[tuple]:
    """(start, end) of every balanced bracket span, ignoring brackets in strings."""
    spans = []
    for start, ch in enumerate(text):
        if ch in _CLOSERS:
            end = _match_bracket(text, start)
            if end is not None:
                spans.append((start, end))
    return spans


def _match_bracket(text: str, start: int) -> Optional[int]:
    stack = []
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("}", "]"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return i + 1
    return None


def parse_analysis(
    text: str,
    total_segments: Optional[int] = None,
    documents: Optional[List[Any]] = None,
) -> AnalysisResult:
    """Parse a generated analysis into an AnalysisResult.

    A bare JSON array is read as the list of codings. An object must carry
    ``codings`` or ``categories``; anything else is PARSE_FAILED. Single
    codings or categories that do not validate are dropped and counted in
    ``dropped``.
    """
    extra = {
        "total_segments": total_segments,
        "documents": list(documents or []),
    }
    try:
        data = extract_json(text)
    except MalformedOutputError as e:
        logger.debug("Analysis parse failed: %s", e)
        return _failed(text, str(e), extra)

    if isinstance(data, list):
        data = {"codings": data}
    elif not isinstance(data, dict):
        return _failed(text, "unexpected JSON type: {}".format(type(data).__name__), extra)

    if "codings" not in data and "categories" not in data:
        return _failed(text, "no codings or categories in output", extra)

    raw_codings = data.get("codings") or []
    raw_categories = data.get("categories") or []
    memos = data.get("memos") or []
    for key, value in (("codings", raw_codings), ("categories", raw_categories), ("memos", memos)):
        if not isinstance(value, list):
            return _failed(text, "{} is not a list".format(key), extra)

    codings = _validate_items(Coding, raw_codings)
    categories = _validate_items(Category, raw_categories)
    if raw_codings and not codings:
        return _failed(text, "none of {} codings is valid".format(len(raw_codings)), extra)

    dropped = len(raw_codings) - len(codings) + len(raw_categories) - len(categories)
    if dropped:
        logger.info("Dropped %d invalid codings/categories from analysis output", dropped)

    return AnalysisResult(
        status=AnalysisStatus.OK if codings else AnalysisStatus.EMPTY,
        codings=codings,
        categories=categories,
        summary=str(data.get("summary") or ""),
        memos=memos,
        dropped=dropped,
        **extra,
    )


def _validate_items(model, items: List[Any]) -> list:
    valid = []
    for item in items:
        try:
            valid.append(model.model_validate(item))
        except ValidationError as e:
            logger.debug("Invalid %s skipped: %s", model.__name__, e.errors()[0].get("msg", ""))
    return valid


def _failed(text: str, error: str, extra: dict) -> AnalysisResult:
    return AnalysisResult(
        status=AnalysisStatus.PARSE_FAILED, summary=text or "", error=error, **extra,
    )
