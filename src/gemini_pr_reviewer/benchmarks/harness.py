"""
Benchmark Harness

Runs the real review orchestrator on a benchmark case with an in-memory
hosting client that captures the published comments.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..config import AppConfig, GitHubConfig, ModelConfig, ReviewConfig
from ..errors import ReviewerError
from ..models.review import LinkedIssue, PRDetails, PublishedComment
from ..review.orchestrator import ModelClient, ReviewDependencies, ReviewOrchestrator
from .models import BenchmarkCase, CaseScore
from .scorer import score_case


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"

BENCHMARK_OWNER = "benchmark"
BENCHMARK_REPO = "test-repo"

BENCHMARK_EVENT: Dict[str, Any] = {
    "issue": {"number": 1, "pull_request": {"url": "https://api.github.com/repos/benchmark/test-repo/pulls/1"}},
    "comment": {"id": 1, "body": "/gemini-review"},
    "repository": {"full_name": f"{BENCHMARK_OWNER}/{BENCHMARK_REPO}"},
}


class CapturingHostingClient:
    """Hosting client serving one case and recording review comments"""

    def __init__(self, case: BenchmarkCase):
        self.case = case
        self.comments: List[PublishedComment] = []
        self.summaries: List[str] = []

    def get_pull_request(self, owner: str, repo: str, pr_number: int) -> PRDetails:
        return PRDetails(
            owner=owner,
            repo=repo,
            pull_number=pr_number,
            title=self.case.pr_title,
            body=self.case.pr_body,
            head_sha="benchmark-head",
            base_sha="benchmark-base",
            base_branch="main",
        )

    def get_pull_request_diff(self, owner: str, repo: str, pr_number: int) -> str:
        return self.case.diff

    def get_pull_request_commits(self, owner: str, repo: str, pr_number: int) -> List[str]:
        return ["feat: benchmark test commit"]

    def get_issue(self, owner: str, repo: str, issue_number: int) -> LinkedIssue:
        return LinkedIssue(title="")

    def get_file_content(self, owner: str, repo: str, path: str, ref: Optional[str] = None) -> str:
        return ""

    def get_repository_tree(self, owner: str, repo: str, ref: str, limit: int = 200) -> str:
        return "src/__init__.py\npyproject.toml\nREADME.md"

    def create_review(self, pr: PRDetails, body: str, comments: List[PublishedComment],
                      event: str = "COMMENT") -> Any:
        self.summaries.append(body)
        self.comments.extend(comments)
        return {"id": len(self.summaries)}

    def post_issue_comment(self, pr: PRDetails, body: str) -> Any:
        self.summaries.append(body)
        return {"id": len(self.summaries)}

    def add_comment_reaction(self, owner: str, repo: str, comment_id: int, reaction: str) -> None:
        return None


def build_benchmark_config(case: BenchmarkCase, api_key: str, model_name: str = DEFAULT_MODEL) -> AppConfig:
    """Default limits with the case's review mode and a placeholder token"""
    return AppConfig(
        github=GitHubConfig(token="benchmark-mock"),
        model=ModelConfig(api_key=api_key, model_name=model_name),
        review=ReviewConfig(review_mode=case.review_mode),
    )


async def run_case(
    case: BenchmarkCase,
    config: AppConfig,
    model: ModelClient,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> CaseScore:
    """
    Review one case and score the captured comments.

    A failed run is logged and scored with whatever was captured.
    """
    hosting = CapturingHostingClient(case)
    deps = ReviewDependencies(github=hosting, model=model, sleep=sleep)

    start = time.perf_counter()
    try:
        await ReviewOrchestrator(config, deps).run(BENCHMARK_EVENT)
    except ReviewerError as e:
        logger.error(f"Error running case {case.id}: {e}")
    duration_ms = (time.perf_counter() - start) * 1000

    return score_case(case, hosting.comments, duration_ms)
