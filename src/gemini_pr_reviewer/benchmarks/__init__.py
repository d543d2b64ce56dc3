"""
Review quality benchmarks: seeded cases, scoring and reporting.
"""

from .cases import ALL_CASES, get_case
from .harness import CapturingHostingClient, build_benchmark_config, run_case
from .models import BenchmarkCase, BenchmarkReport, CaseScore, ExpectedFinding
from .scorer import (
    LINE_TOLERANCE,
    build_report,
    compute_keyword_score,
    extract_priority,
    find_candidates,
    score_case,
)

__all__ = [
    "ALL_CASES",
    "BenchmarkCase",
    "BenchmarkReport",
    "CapturingHostingClient",
    "CaseScore",
    "ExpectedFinding",
    "LINE_TOLERANCE",
    "build_benchmark_config",
    "build_report",
    "compute_keyword_score",
    "extract_priority",
    "find_candidates",
    "get_case",
    "run_case",
    "score_case",
]
