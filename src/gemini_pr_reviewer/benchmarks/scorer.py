"""
Benchmark Scorer

Matches published review comments against the expected findings of a case
and computes recall, precision and severity accuracy.
"""

import re
from datetime import datetime, timezone
from typing import List, Optional

from ..models.review import Priority, PublishedComment
from .models import (
    AggregateScore,
    BenchmarkCase,
    BenchmarkReport,
    CaseScore,
    ExpectedFinding,
    MatchedComment,
    MatchResult,
)


LINE_TOLERANCE = 5

PRIORITY_BADGE_PATTERN = re.compile(r'\*\*[🔴🔶🔷]\s*(High|Medium|Low)\*\*', re.IGNORECASE)


def extract_priority(body: str) -> Optional[Priority]:
    """Priority from the severity badge at the start of a comment body"""
    match = PRIORITY_BADGE_PATTERN.search(body)
    if not match:
        return None
    return Priority(match.group(1).lower())


def compute_keyword_score(body: str, keywords: List[str]) -> int:
    """Number of keywords found in the body, case-insensitive"""
    lower = body.lower()
    return sum(1 for keyword in keywords if keyword.lower() in lower)


def _within_tolerance(expected: ExpectedFinding, comment: PublishedComment, tolerance: int) -> bool:
    start_line = comment.start_line if comment.start_line is not None else comment.line
    end_line = comment.line
    return (
        start_line - tolerance <= expected.line <= end_line + tolerance
        or expected.line - tolerance <= start_line <= expected.line + tolerance
    )


def is_candidate(expected: ExpectedFinding, comment: PublishedComment, tolerance: int = LINE_TOLERANCE) -> bool:
    return (
        comment.path == expected.file_path
        and _within_tolerance(expected, comment, tolerance)
        and compute_keyword_score(comment.body, expected.keywords) >= 1
    )


def find_candidates(
    expected: ExpectedFinding,
    comments: List[PublishedComment],
    tolerance: int = LINE_TOLERANCE,
) -> List[PublishedComment]:
    """
    Comments that could account for an expected finding.

    A candidate is on the same file, overlaps the expected line within the
    tolerance, and mentions at least one keyword.
    """
    return [comment for comment in comments if is_candidate(expected, comment, tolerance)]


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator > 0 else 1.0


def score_case(case: BenchmarkCase, comments: List[PublishedComment], duration_ms: float) -> CaseScore:
    """
    Score the comments published for one case.

    Expected findings are matched greedily in order. Each comment can account
    for at most one finding; among the candidates the one with the most
    keyword hits wins, then the closest line.
    """
    consumed = set()
    match_results: List[MatchResult] = []

    for expected in case.expected_findings:
        ranked = []
        for index, comment in enumerate(comments):
            if index in consumed or not is_candidate(expected, comment):
                continue
            ranked.append((
                -compute_keyword_score(comment.body, expected.keywords),
                abs(comment.line - expected.line),
                index,
            ))

        if not ranked:
            match_results.append(MatchResult(expected=expected, matched=False))
            continue

        negative_hits, line_delta, index = min(ranked)
        consumed.add(index)
        best = comments[index]
        match_results.append(MatchResult(
            expected=expected,
            matched=True,
            matched_comment=MatchedComment(path=best.path, body=best.body, line=best.line),
            keyword_hits=-negative_hits,
            line_delta=line_delta,
            severity_correct=extract_priority(best.body) == expected.priority,
        ))

    total_expected = len(case.expected_findings)
    total_detected = sum(1 for result in match_results if result.matched)
    unmatched_comments = len(comments) - len(consumed)
    severity_matches = sum(1 for result in match_results if result.matched and result.severity_correct)

    return CaseScore(
        case_id=case.id,
        case_name=case.name,
        recall=_ratio(total_detected, total_expected),
        precision=_ratio(total_detected, total_detected + unmatched_comments),
        severity_accuracy=_ratio(severity_matches, total_detected),
        match_results=match_results,
        unmatched_comments=unmatched_comments,
        total_expected=total_expected,
        total_detected=total_detected,
        duration_ms=duration_ms,
    )


def aggregate_scores(scores: List[CaseScore]) -> AggregateScore:
    """Micro-averaged scores over all cases"""
    total_expected = sum(score.total_expected for score in scores)
    total_detected = sum(score.total_detected for score in scores)
    total_unmatched = sum(score.unmatched_comments for score in scores)
    severity_matches = sum(score.severity_matches for score in scores)

    return AggregateScore(
        recall=_ratio(total_detected, total_expected),
        precision=_ratio(total_detected, total_detected + total_unmatched),
        severity_accuracy=_ratio(severity_matches, total_detected),
    )


def build_report(model: str, scores: List[CaseScore]) -> BenchmarkReport:
    return BenchmarkReport(
        timestamp=datetime.now(timezone.utc).isoformat(),
        model=model,
        cases=scores,
        aggregate=aggregate_scores(scores),
    )
