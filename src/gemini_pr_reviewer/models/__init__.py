"""
Data Models

Core data models of the Gemini PR reviewer
"""

from .diff import DiffLine, DiffHunk, DiffFile, LineMeta, LineType, NumberedPatch
from .review import (
    FileReviewResult,
    GlobalFinding,
    GlobalReview,
    LinkedIssue,
    LinkedIssueRef,
    PRDetails,
    PRGoal,
    Priority,
    PublishedComment,
    RepoContext,
    ReviewFinding,
    ReviewRunResult,
    normalize_priority,
)

__all__ = [
    "DiffLine",
    "DiffHunk",
    "DiffFile",
    "LineMeta",
    "LineType",
    "NumberedPatch",
    "FileReviewResult",
    "GlobalFinding",
    "GlobalReview",
    "LinkedIssue",
    "LinkedIssueRef",
    "PRDetails",
    "PRGoal",
    "Priority",
    "PublishedComment",
    "RepoContext",
    "ReviewFinding",
    "ReviewRunResult",
    "normalize_priority",
]
