"""
Benchmark Data Models

Seeded review cases, per-case scores and the aggregate report
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..models.review import Priority


@dataclass
class ExpectedFinding:
    """Issue a good review should flag near a given new-file line"""
    file_path: str
    line: int
    keywords: List[str]
    priority: Priority
    description: str


@dataclass
class BenchmarkCase:
    """Pull request fixture with the findings it should produce"""
    id: str
    name: str
    diff: str
    pr_title: str
    pr_body: str = ""
    review_mode: str = "standard"
    expected_findings: List[ExpectedFinding] = field(default_factory=list)
    max_false_positives: Optional[int] = None


@dataclass
class MatchedComment:
    path: str
    body: str
    line: int


@dataclass
class MatchResult:
    """How one expected finding was matched against published comments"""
    expected: ExpectedFinding
    matched: bool
    matched_comment: Optional[MatchedComment] = None
    keyword_hits: int = 0
    line_delta: int = 0
    severity_correct: bool = False


@dataclass
class CaseScore:
    case_id: str
    case_name: str
    recall: float
    precision: float
    severity_accuracy: float
    match_results: List[MatchResult]
    unmatched_comments: int
    total_expected: int
    total_detected: int
    duration_ms: float

    @property
    def severity_matches(self) -> int:
        return sum(1 for result in self.match_results if result.matched and result.severity_correct)

    @property
    def missed(self) -> List[ExpectedFinding]:
        return [result.expected for result in self.match_results if not result.matched]


@dataclass
class AggregateScore:
    recall: float
    precision: float
    severity_accuracy: float


@dataclass
class BenchmarkReport:
    """Scores of one benchmark run"""
    timestamp: str
    model: str
    cases: List[CaseScore]
    aggregate: AggregateScore
