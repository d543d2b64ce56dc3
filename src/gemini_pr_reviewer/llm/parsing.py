"""
Model Response Parsing

Extracts the JSON document from raw model text and converts it into review
data. Any parse failure yields an empty result instead of an error.
"""

import json
import logging
import re
from typing import Any, List, Optional

from pydantic import ValidationError

from ..models.review import (
    GlobalFinding,
    GlobalFindingPayload,
    GlobalReview,
    GoalPayload,
    PRGoal,
    ReviewFinding,
    ReviewItemPayload,
)


logger = logging.getLogger(__name__)

CONTROL_CHARS = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f]')
FENCE_PATTERN = re.compile(r'```(?:json|JSON)?\s*\n?(.*?)```', re.DOTALL)


def sanitize_text(text: str) -> str:
    """Strip control characters and surrounding whitespace."""
    return CONTROL_CHARS.sub('', text).strip()


def _first_balanced_object(text: str) -> Optional[str]:
    start = text.find('{')
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
            elif char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        # Unbalanced from here; try the next opening brace
        start = text.find('{', start + 1)
    return None


def extract_json(text: str) -> Optional[str]:
    """
    Find the JSON object in model output.

    Handles fenced code blocks and prose before or after the document by
    returning the first balanced {...} span.
    """
    if not text:
        return None

    fenced = FENCE_PATTERN.search(text)
    if fenced:
        candidate = _first_balanced_object(fenced.group(1))
        if candidate:
            return candidate

    return _first_balanced_object(text)


def _load_object(text: str, label: str) -> Optional[dict]:
    json_text = extract_json(text)
    if json_text is None:
        logger.warning(f"No JSON object in {label} response")
        return None
    try:
        parsed = json.loads(json_text, strict=False)
    except json.JSONDecodeError as e:
        logger.warning(f"Malformed JSON in {label} response: {e}")
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def parse_reviews(text: str) -> List[ReviewFinding]:
    """Parse a {"reviews": [...]} response; invalid entries are dropped."""
    parsed = _load_object(text, "review")
    if parsed is None:
        return []

    reviews = parsed.get('reviews')
    if not isinstance(reviews, list):
        return []

    findings: List[ReviewFinding] = []
    for item in reviews:
        if not isinstance(item, dict):
            continue
        try:
            payload = ReviewItemPayload.model_validate(item)
        except ValidationError as e:
            logger.debug(f"Dropping invalid review entry: {e.error_count()} errors")
            continue

        comment = sanitize_text(payload.review_comment)
        if not comment:
            continue
        findings.append(ReviewFinding(
            line_number=payload.line_number,
            comment=comment,
            priority=payload.priority,
            end_line_number=payload.end_line_number,
            category=sanitize_text(payload.category) if payload.category else None,
        ))

    return findings


def _parse_global_finding(item: Any) -> Optional[GlobalFinding]:
    if isinstance(item, str):
        text = sanitize_text(item)
        return GlobalFinding(text=text) if text else None
    if not isinstance(item, dict):
        return None

    try:
        payload = GlobalFindingPayload.model_validate(item)
    except ValidationError:
        return None

    title = sanitize_text(payload.title)
    details = sanitize_text(payload.details)
    text = f"{title}: {details}" if title and details else (title or details)
    if not text:
        return None
    return GlobalFinding(text=text, path=payload.path, line=payload.line, priority=payload.priority)


def parse_global_review(text: str) -> GlobalReview:
    """Parse a {"summary", "findings"} response (legacy key: crossFileFindings)."""
    parsed = _load_object(text, "global review")
    if parsed is None:
        return GlobalReview()

    summary = parsed.get('summary')
    summary = sanitize_text(summary) if isinstance(summary, str) else ""

    raw_findings = parsed.get('findings')
    if not isinstance(raw_findings, list):
        raw_findings = parsed.get('crossFileFindings')
    if not isinstance(raw_findings, list):
        raw_findings = []

    findings = [finding for finding in map(_parse_global_finding, raw_findings) if finding]
    return GlobalReview(summary=summary, findings=findings)


def parse_goal(text: str) -> Optional[PRGoal]:
    """Parse a {"goal", "context"} response."""
    parsed = _load_object(text, "goal")
    if parsed is None:
        return None

    try:
        payload = GoalPayload.model_validate(parsed)
    except ValidationError:
        logger.warning("Goal response did not contain a goal")
        return None

    return PRGoal(goal=sanitize_text(payload.goal), context=sanitize_text(payload.context))
