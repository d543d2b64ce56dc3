"""
Review Data Models

Model findings, published comments and pull request context
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Priority(str, Enum):
    """Severity bucket of a finding"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 1, "medium": 2, "high": 3}[self.value]


def normalize_priority(value: Any) -> Priority:
    """Map raw model priority onto a bucket; critical collapses to high."""
    if isinstance(value, Priority):
        return value
    raw = str(value or "").strip().lower()
    if raw == "critical":
        return Priority.HIGH
    try:
        return Priority(raw)
    except ValueError:
        return Priority.MEDIUM


@dataclass
class ReviewFinding:
    """Inline finding as returned by the model, before anchor resolution"""
    line_number: int
    comment: str
    priority: Priority = Priority.MEDIUM
    end_line_number: Optional[int] = None
    category: Optional[str] = None

    def __post_init__(self):
        if self.line_number <= 0:
            raise ValueError("Line number must be positive")
        if not self.comment.strip():
            raise ValueError("Comment cannot be empty")


@dataclass
class GlobalFinding:
    """Cross-file finding; path and line are optional new-file anchors"""
    text: str
    path: Optional[str] = None
    line: Optional[int] = None
    priority: Priority = Priority.MEDIUM


@dataclass
class GlobalReview:
    """Result of the global pass"""
    summary: str = ""
    findings: List[GlobalFinding] = field(default_factory=list)

    @property
    def finding_texts(self) -> List[str]:
        return [finding.text for finding in self.findings]


@dataclass
class PRGoal:
    """Short goal statement anchoring the review"""
    goal: str
    context: str = ""


@dataclass
class PublishedComment:
    """GitHub review comment in line/side form"""
    path: str
    body: str
    line: int
    side: str = "RIGHT"
    start_line: Optional[int] = None
    start_side: Optional[str] = None
    priority: Priority = Priority.MEDIUM

    def __post_init__(self):
        if self.line <= 0:
            raise ValueError("Line number must be positive")
        if not self.body.strip():
            raise ValueError("Comment body cannot be empty")
        if self.start_line is not None and self.start_line >= self.line:
            raise ValueError("start_line must be before line")

    @property
    def is_multi_line(self) -> bool:
        return self.start_line is not None

    @property
    def dedup_key(self):
        return (self.path, self.start_line, self.line, self.body)

    def to_payload(self) -> Dict[str, Any]:
        """Body of one entry of the create-review comments array"""
        payload: Dict[str, Any] = {
            "path": self.path,
            "body": self.body,
            "line": self.line,
            "side": self.side,
        }
        if self.start_line is not None:
            payload["start_line"] = self.start_line
            payload["start_side"] = self.start_side or "RIGHT"
        return payload


@dataclass
class PRDetails:
    """Pull request metadata"""
    owner: str
    repo: str
    pull_number: int
    title: str = ""
    body: str = ""
    head_sha: Optional[str] = None
    base_sha: Optional[str] = None
    base_branch: Optional[str] = None

    def __post_init__(self):
        if self.pull_number <= 0:
            raise ValueError("PR number must be positive")

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class LinkedIssueRef:
    """Reference to an issue mentioned in a PR description"""
    owner: str
    repo: str
    issue_number: int


@dataclass
class LinkedIssue:
    title: str
    body: str = ""


@dataclass
class RepoContext:
    """README and file tree snippets"""
    readme: str = ""
    file_structure: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.readme and not self.file_structure


@dataclass
class FileReviewResult:
    """Findings of the inline pass for one file"""
    path: str
    findings: List[ReviewFinding] = field(default_factory=list)
    failed: bool = False


@dataclass
class ReviewRunResult:
    """Outcome of one orchestrator run"""
    skipped: bool
    skipped_reason: Optional[str] = None
    summary: str = ""
    comments: List[PublishedComment] = field(default_factory=list)
    published: bool = False
    used_fallback: bool = False
    failed_files: List[str] = field(default_factory=list)

    @classmethod
    def skip(cls, reason: str) -> "ReviewRunResult":
        return cls(skipped=True, skipped_reason=reason)


def _positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not number.is_integer() or number <= 0:
        return None
    return int(number)


# Pydantic models for model response validation
class ReviewItemPayload(BaseModel):
    """One entry of a {"reviews": [...]} response"""
    model_config = ConfigDict(populate_by_name=True)

    line_number: int = Field(alias="lineNumber")
    review_comment: str = Field(alias="reviewComment")
    end_line_number: Optional[int] = Field(default=None, alias="endLineNumber")
    priority: Priority = Priority.MEDIUM
    category: Optional[str] = None

    @field_validator('line_number')
    @classmethod
    def validate_line_number(cls, v):
        if v <= 0:
            raise ValueError('Line number must be positive')
        return v

    @field_validator('review_comment')
    @classmethod
    def validate_comment(cls, v):
        if not v.strip():
            raise ValueError('Comment cannot be empty')
        return v

    @field_validator('end_line_number', mode='before')
    @classmethod
    def validate_end_line_number(cls, v):
        # An unusable end pointer degrades the finding to a single line
        return _positive_int(v)

    @field_validator('priority', mode='before')
    @classmethod
    def validate_priority(cls, v):
        return normalize_priority(v)

    @field_validator('category', mode='before')
    @classmethod
    def validate_category(cls, v):
        return v if isinstance(v, str) and v.strip() else None


class GlobalFindingPayload(BaseModel):
    """Object form of a cross-file finding"""
    title: str = ""
    details: str = ""
    path: Optional[str] = None
    line: Optional[int] = None
    priority: Priority = Priority.MEDIUM

    @field_validator('title', 'details', mode='before')
    @classmethod
    def validate_text(cls, v):
        return v if isinstance(v, str) else ""

    @field_validator('path', mode='before')
    @classmethod
    def validate_path(cls, v):
        return v.strip() if isinstance(v, str) and v.strip() else None

    @field_validator('line', mode='before')
    @classmethod
    def validate_line(cls, v):
        return _positive_int(v)

    @field_validator('priority', mode='before')
    @classmethod
    def validate_priority(cls, v):
        return normalize_priority(v)


class GoalPayload(BaseModel):
    """{"goal": ..., "context": ...} response"""
    goal: str
    context: str = ""

    @field_validator('goal')
    @classmethod
    def validate_goal(cls, v):
        if not v.strip():
            raise ValueError('Goal cannot be empty')
        return v

    @field_validator('context', mode='before')
    @classmethod
    def validate_context(cls, v):
        return v if isinstance(v, str) else ""
