"""
Command Line Entry Point

Runs one review for a GitHub Actions issue_comment event, or a local
simulation of one with --local / --diff.
"""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .config import AppConfig, configure_logging
from .errors import ConfigurationError, ReviewerError
from .github.client import GitHubClient
from .github.events import load_event_payload
from .llm.client import GeminiClient
from .models.review import LinkedIssue, PRDetails, PublishedComment
from .review.orchestrator import ReviewDependencies, ReviewOrchestrator


logger = logging.getLogger(__name__)


class LocalHostingClient:
    """
    Hosting client for local runs.

    Serves the diff from a file and, without a GitHub client, builds the pull
    request details from the event payload. Other calls go to GitHub when a
    client is available and return empty results otherwise.
    """

    def __init__(self, event: Dict[str, Any], github: Optional[GitHubClient] = None,
                 diff_text: Optional[str] = None):
        self.event = event
        self.github = github
        self.diff_text = diff_text

    def get_pull_request(self, owner: str, repo: str, pr_number: int) -> PRDetails:
        if self.github is not None:
            return self.github.get_pull_request(owner, repo, pr_number)
        issue = self.event.get('issue') or {}
        return PRDetails(
            owner=owner,
            repo=repo,
            pull_number=pr_number,
            title=issue.get('title') or 'Local PR',
            body=issue.get('body') or '',
            head_sha='local',
            base_sha='local',
        )

    def get_pull_request_diff(self, owner: str, repo: str, pr_number: int) -> str:
        if self.diff_text is not None:
            return self.diff_text
        if self.github is None:
            raise ConfigurationError("A diff file is required when no GitHub token is set")
        return self.github.get_pull_request_diff(owner, repo, pr_number)

    def get_pull_request_commits(self, owner: str, repo: str, pr_number: int) -> List[str]:
        if self.github is None:
            return []
        return self.github.get_pull_request_commits(owner, repo, pr_number)

    def get_issue(self, owner: str, repo: str, issue_number: int) -> LinkedIssue:
        if self.github is None:
            raise ConfigurationError("Linked issues need a GitHub token")
        return self.github.get_issue(owner, repo, issue_number)

    def get_file_content(self, owner: str, repo: str, path: str, ref: Optional[str] = None) -> str:
        if self.github is None:
            return ""
        return self.github.get_file_content(owner, repo, path, ref)

    def get_repository_tree(self, owner: str, repo: str, ref: str, limit: int = 200) -> str:
        if self.github is None:
            return ""
        return self.github.get_repository_tree(owner, repo, ref, limit)

    def create_review(self, pr: PRDetails, body: str, comments: List[PublishedComment],
                      event: str = "COMMENT") -> Any:
        if self.github is None:
            raise ConfigurationError("Publishing needs a GitHub token")
        return self.github.create_review(pr, body, comments, event)

    def post_issue_comment(self, pr: PRDetails, body: str) -> Any:
        if self.github is None:
            raise ConfigurationError("Publishing needs a GitHub token")
        return self.github.post_issue_comment(pr, body)

    def add_comment_reaction(self, owner: str, repo: str, comment_id: int, reaction: str) -> None:
        if self.github is not None:
            self.github.add_comment_reaction(owner, repo, comment_id, reaction)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gemini-pr-reviewer",
        description="Review a pull request with Gemini and post the result to GitHub.",
    )
    parser.add_argument("--config", help="YAML config file (default: environment variables)")
    parser.add_argument("--event", help="Event payload JSON (default: $GITHUB_EVENT_PATH)")
    parser.add_argument("--diff", help="Unified diff file used instead of fetching the PR diff")
    parser.add_argument("--dry-run", action="store_true", help="Log the review instead of publishing it")
    parser.add_argument("--local", action="store_true", help="Apply small safety limits for local runs")
    return parser


def load_config(args: argparse.Namespace) -> AppConfig:
    config = AppConfig.from_yaml(args.config) if args.config else AppConfig.from_env()
    if args.dry_run:
        config = replace(config, review=replace(config.review, dry_run=True))
    if args.local:
        config = config.with_safety_limits()
        logger.info(
            f"Applying safe limits: MAX_FILES={config.limits.max_files}, "
            f"MAX_HUNKS_PER_FILE={config.limits.max_hunks_per_file}, "
            f"MAX_LINES_PER_HUNK={config.limits.max_lines_per_hunk}, "
            f"GLOBAL_MAX_LINES={config.limits.global_max_lines}"
        )
    config.validate()
    return config


def read_diff_file(diff_path: str) -> str:
    path = Path(diff_path)
    if not path.exists():
        raise ConfigurationError(f"Diff file not found: {diff_path}")
    diff_text = path.read_text(encoding='utf-8')
    if not diff_text.strip():
        raise ConfigurationError(f"Diff file is empty: {diff_path}")
    return diff_text


def build_dependencies(config: AppConfig, event: Dict[str, Any], diff_path: Optional[str]) -> ReviewDependencies:
    github = None
    if config.github.token:
        github = GitHubClient(
            token=config.github.token,
            base_url=config.github.api_base_url,
            timeout_seconds=config.github.timeout_seconds,
            pool_size=max(10, config.limits.max_concurrency),
        )

    model = GeminiClient(
        api_key=config.model.api_key,
        model_name=config.model.model_name,
        temperature=config.model.temperature,
    )

    if diff_path or github is None:
        diff_text = read_diff_file(diff_path) if diff_path else None
        hosting = LocalHostingClient(event, github=github, diff_text=diff_text)
        return ReviewDependencies(github=hosting, model=model)

    return ReviewDependencies(github=github, model=model)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except ReviewerError as e:
        configure_logging(AppConfig().logging)
        logger.error(f"{e}")
        return 1
    configure_logging(config.logging)

    try:
        event_path = args.event or os.environ.get("GITHUB_EVENT_PATH")
        if not event_path:
            raise ConfigurationError("An event payload is required: pass --event or set GITHUB_EVENT_PATH")
        event = load_event_payload(event_path)

        deps = build_dependencies(config, event, args.diff)
        result = asyncio.run(ReviewOrchestrator(config, deps).run(event))
    except ReviewerError as e:
        logger.error(f"Review failed: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1

    if result.skipped:
        logger.info(f"Skipped: {result.skipped_reason}")
    elif result.published:
        logger.info(f"Review published with {len(result.comments)} comments")
    elif result.used_fallback:
        logger.info("Review posted as a plain comment")
    return 0


if __name__ == "__main__":
    sys.exit(main())
