"""
Review Orchestrator

Runs one review: trigger check, context fetch, global pass, bounded parallel
inline pass, aggregation and publish with fallback.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple, TypeVar

from ..config import AppConfig
from ..diff.filter import filter_diff_files
from ..diff.numbering import build_global_diff, build_numbered_patch
from ..diff.parser import parse_unified_diff
from ..diff.positions import resolve_comment_position, resolve_end_position
from ..errors import EmptyDiffError
from ..github.events import TriggerMatch, check_trigger
from ..github.references import extract_linked_issue_refs
from ..llm.parsing import parse_global_review, parse_goal, parse_reviews
from ..llm.prompts import PromptBuilder
from ..models.diff import DiffFile, NumberedPatch
from ..models.review import (
    FileReviewResult,
    GlobalReview,
    LinkedIssue,
    PRDetails,
    PRGoal,
    PublishedComment,
    RepoContext,
    ReviewFinding,
    ReviewRunResult,
)
from .concurrency import ConcurrencyLimiter
from .formatting import build_fallback_body, build_summary, cap_comments, dedupe_comments, format_comment_body
from .retry import RetryPolicy, with_retry


logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_LINKED_ISSUES = 5
TRIGGER_REACTION = "eyes"


class HostingClient(Protocol):
    """Code-hosting calls used by the pipeline"""

    def get_pull_request(self, owner: str, repo: str, pr_number: int) -> PRDetails: ...

    def get_pull_request_diff(self, owner: str, repo: str, pr_number: int) -> str: ...

    def get_pull_request_commits(self, owner: str, repo: str, pr_number: int) -> List[str]: ...

    def get_issue(self, owner: str, repo: str, issue_number: int) -> LinkedIssue: ...

    def get_file_content(self, owner: str, repo: str, path: str, ref: Optional[str] = None) -> str: ...

    def get_repository_tree(self, owner: str, repo: str, ref: str, limit: int = 200) -> str: ...

    def create_review(self, pr: PRDetails, body: str, comments: List[PublishedComment],
                      event: str = "COMMENT") -> Any: ...

    def post_issue_comment(self, pr: PRDetails, body: str) -> Any: ...

    def add_comment_reaction(self, owner: str, repo: str, comment_id: int, reaction: str) -> None: ...


class ModelClient(Protocol):
    """Generative model call: one prompt in, raw text out"""

    def generate(self, prompt: str) -> str: ...


@dataclass
class ReviewDependencies:
    """External collaborators injected into the orchestrator"""
    github: HostingClient
    model: ModelClient
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep


class ReviewOrchestrator:
    """
    Two-phase review pipeline.

    The goal statement and the global pass are always settled before any
    inline prompt is built, since every inline prompt embeds them. Inline
    tasks run under a concurrency cap and a failing file only loses its own
    findings.
    """

    def __init__(self, config: AppConfig, deps: ReviewDependencies):
        """
        Initialize review orchestrator.

        Args:
            config: Validated application config
            deps: Hosting client, model client and sleep function
        """
        self.config = config
        self.deps = deps
        self.github = deps.github
        self.model = deps.model
        self.retry_policy = RetryPolicy.from_config(config.retry)
        self.prompt_builder = PromptBuilder(
            review_mode=config.review.review_mode,
            review_instructions=config.review.review_instructions,
        )

    def run_sync(self, event: Dict[str, Any]) -> ReviewRunResult:
        return asyncio.run(self.run(event))

    async def run(self, event: Dict[str, Any]) -> ReviewRunResult:
        """
        Review the pull request an event points at.

        Args:
            event: issue_comment event payload

        Returns:
            ReviewRunResult; skipped when the event does not trigger a review

        Raises:
            EmptyDiffError: When the pull request diff has nothing to review
            GitHubAPIError: When the pull request or its diff cannot be fetched
        """
        trigger = check_trigger(event, self.config.review.command_trigger)
        if trigger is None:
            return ReviewRunResult.skip("Event is not a triggering pull request comment")

        logger.info(f"Review triggered for {trigger.owner}/{trigger.repo}#{trigger.pull_number}")
        await self._acknowledge(trigger)

        pr, files = await self._fetch_diff(trigger)
        if not files:
            note = "No files matched the configured include/exclude filters; nothing to review."
            used_fallback = await self._post_note(pr, note)
            return ReviewRunResult(skipped=False, summary=note, used_fallback=used_fallback)

        repo_context = await self._fetch_repo_context(pr)
        goal = await self._fetch_goal(pr)
        global_review = await self._global_pass(pr, files, goal, repo_context)

        patches = [
            build_numbered_patch(
                diff_file,
                self.config.limits.max_hunks_per_file,
                self.config.limits.max_lines_per_hunk,
            )
            for diff_file in files
        ]
        results = await self._inline_pass(pr, files, patches, global_review, goal, repo_context)

        comments = self.aggregate(files, patches, results, global_review)
        failed_files = [result.path for result in results if result.failed]
        summary = build_summary(global_review, comments, goal, len(files), failed_files)

        published, used_fallback = await self.publish(pr, summary, comments)
        return ReviewRunResult(
            skipped=False,
            summary=summary,
            comments=comments,
            published=published,
            used_fallback=used_fallback,
            failed_files=failed_files,
        )

    async def _call(self, label: str, fn: Callable[..., T], *args) -> T:
        """Run a blocking collaborator call off the loop, with retries."""
        return await with_retry(
            lambda: asyncio.to_thread(fn, *args),
            label,
            self.retry_policy,
            self.deps.sleep,
        )

    async def _call_or_default(self, label: str, default: T, fn: Callable[..., T], *args) -> T:
        try:
            return await self._call(label, fn, *args)
        except Exception as e:
            logger.warning(f"{label} failed, continuing without it: {e}")
            return default

    async def _acknowledge(self, trigger: TriggerMatch) -> None:
        if trigger.comment_id is None:
            return
        if self.config.review.dry_run:
            logger.info(f"DRY_RUN enabled: skipping reaction on comment {trigger.comment_id}")
            return
        await self._call_or_default(
            "add reaction", None,
            self.github.add_comment_reaction, trigger.owner, trigger.repo, trigger.comment_id, TRIGGER_REACTION,
        )

    async def _fetch_diff(self, trigger: TriggerMatch) -> Tuple[PRDetails, List[DiffFile]]:
        pr = await self._call(
            "fetch pull request",
            self.github.get_pull_request, trigger.owner, trigger.repo, trigger.pull_number,
        )
        diff_text = await self._call(
            "fetch diff",
            self.github.get_pull_request_diff, trigger.owner, trigger.repo, trigger.pull_number,
        )

        parsed = parse_unified_diff(diff_text or "")
        if not parsed:
            raise EmptyDiffError(f"No reviewable diff for {pr.full_name}#{pr.pull_number}")

        limits = self.config.limits
        files = filter_diff_files(parsed, limits.include_patterns, limits.exclude_patterns, limits.max_files)
        return pr, files

    async def _fetch_repo_context(self, pr: PRDetails) -> Optional[RepoContext]:
        if not self.config.review.repo_context:
            return None

        ref = pr.base_branch or pr.base_sha
        readme = await self._call_or_default(
            "fetch README", "",
            self.github.get_file_content, pr.owner, pr.repo, "README.md", ref,
        )
        file_structure = ""
        if ref:
            file_structure = await self._call_or_default(
                "fetch file tree", "",
                self.github.get_repository_tree, pr.owner, pr.repo, ref,
            )

        context = RepoContext(readme=readme or "", file_structure=file_structure or "")
        return None if context.is_empty else context

    async def _fetch_goal(self, pr: PRDetails) -> Optional[PRGoal]:
        commits = await self._call_or_default(
            "fetch commits", [],
            self.github.get_pull_request_commits, pr.owner, pr.repo, pr.pull_number,
        )

        issues: List[LinkedIssue] = []
        for ref in extract_linked_issue_refs(pr.body, pr.owner, pr.repo)[:MAX_LINKED_ISSUES]:
            issue = await self._call_or_default(
                f"fetch issue {ref.owner}/{ref.repo}#{ref.issue_number}", None,
                self.github.get_issue, ref.owner, ref.repo, ref.issue_number,
            )
            if issue is not None:
                issues.append(issue)

        prompt = self.prompt_builder.build_goal_prompt(pr, commits or [], issues)
        text = await self._call_or_default("generate goal", "", self.model.generate, prompt)
        goal = parse_goal(text or "")
        if goal:
            logger.info(f"PR goal: {goal.goal}")
        return goal

    async def _global_pass(
        self,
        pr: PRDetails,
        files: List[DiffFile],
        goal: Optional[PRGoal],
        repo_context: Optional[RepoContext],
    ) -> GlobalReview:
        limits = self.config.limits
        if not self.config.review.global_review or limits.global_max_lines <= 0:
            logger.info("Global review disabled")
            return GlobalReview()

        global_diff = build_global_diff(
            files, limits.max_hunks_per_file, limits.max_lines_per_hunk, limits.global_max_lines,
        )
        prompt = self.prompt_builder.build_global_prompt(pr, global_diff, goal, repo_context)
        text = await self._call_or_default("global review", "", self.model.generate, prompt)

        global_review = parse_global_review(text or "")
        logger.info(f"Global review: {len(global_review.findings)} cross-file findings")
        return global_review

    async def _inline_pass(
        self,
        pr: PRDetails,
        files: List[DiffFile],
        patches: List[NumberedPatch],
        global_review: GlobalReview,
        goal: Optional[PRGoal],
        repo_context: Optional[RepoContext],
    ) -> List[FileReviewResult]:
        limiter = ConcurrencyLimiter(self.config.limits.max_concurrency)

        def make_task(diff_file: DiffFile, patch: NumberedPatch):
            return lambda: self._review_file(pr, diff_file, patch, global_review, goal, repo_context)

        tasks = [make_task(diff_file, patch) for diff_file, patch in zip(files, patches)]
        results = await limiter.run_all(tasks)

        total = sum(len(result.findings) for result in results)
        logger.info(f"Inline review: {total} findings across {len(results)} files")
        return results

    async def _review_file(
        self,
        pr: PRDetails,
        diff_file: DiffFile,
        patch: NumberedPatch,
        global_review: GlobalReview,
        goal: Optional[PRGoal],
        repo_context: Optional[RepoContext],
    ) -> FileReviewResult:
        prompt = self.prompt_builder.build_file_prompt(
            pr, diff_file.path, patch.render(), global_review, goal, repo_context,
        )
        try:
            text = await self._call(f"inline review {diff_file.path}", self.model.generate, prompt)
        except Exception as e:
            logger.error(f"Inline review failed for {diff_file.path}: {e}")
            return FileReviewResult(path=diff_file.path, failed=True)

        return FileReviewResult(path=diff_file.path, findings=parse_reviews(text or ""))

    def aggregate(
        self,
        files: List[DiffFile],
        patches: List[NumberedPatch],
        results: List[FileReviewResult],
        global_review: Optional[GlobalReview] = None,
    ) -> List[PublishedComment]:
        """
        Turn findings into anchored comments.

        Findings whose start cannot be resolved are dropped. Duplicates are
        removed and the total is capped.
        """
        comments: List[PublishedComment] = []
        patches_by_path: Dict[str, NumberedPatch] = {}

        for diff_file, patch, result in zip(files, patches, results):
            patches_by_path[diff_file.path] = patch
            for finding in result.findings:
                comment = self._resolve_finding(diff_file.path, patch, finding)
                if comment is not None:
                    comments.append(comment)

        if global_review is not None:
            for finding in global_review.findings:
                if not finding.path or finding.line is None:
                    continue
                patch = patches_by_path.get(finding.path)
                if patch is None or finding.line not in patch.reviewable_lines():
                    logger.debug(f"Cross-file finding not anchorable: {finding.path}:{finding.line}")
                    continue
                comments.append(PublishedComment(
                    path=finding.path,
                    body=format_comment_body(finding.text, finding.priority),
                    line=finding.line,
                    priority=finding.priority,
                ))

        comments = dedupe_comments(comments)
        return cap_comments(comments, self.config.limits.max_comments)

    @staticmethod
    def _resolve_finding(path: str, patch: NumberedPatch, finding: ReviewFinding) -> Optional[PublishedComment]:
        start = resolve_comment_position(patch, finding.line_number)
        if start is None:
            logger.debug(f"Dropping finding on unresolvable line {path}:{finding.line_number}")
            return None

        body = format_comment_body(finding.comment, finding.priority, finding.category)

        end = None
        if finding.end_line_number is not None:
            start_meta = patch.line_meta[finding.line_number]
            end_meta = patch.line_meta.get(finding.end_line_number)
            # A range must stay inside one hunk
            if end_meta is not None and end_meta.hunk_index == start_meta.hunk_index:
                end = resolve_end_position(patch, finding.end_line_number)

        if end is not None and end > start:
            return PublishedComment(
                path=path,
                body=body,
                line=end,
                side="RIGHT",
                start_line=start,
                start_side="RIGHT",
                priority=finding.priority,
            )
        return PublishedComment(path=path, body=body, line=start, side="RIGHT", priority=finding.priority)

    async def publish(self, pr: PRDetails, summary: str, comments: List[PublishedComment]) -> Tuple[bool, bool]:
        """
        Post the review, falling back to a plain comment.

        Returns:
            (review published, fallback comment posted); never raises
        """
        if self.config.review.dry_run:
            self._log_preview(summary, comments)
            return False, False

        try:
            await self._call("create review", self.github.create_review, pr, summary, comments)
            logger.info(f"Published review with {len(comments)} comments")
            return True, False
        except Exception as e:
            logger.error(f"Creating review failed, posting summary comment instead: {e}")

        try:
            await self._call("post fallback comment", self.github.post_issue_comment, pr,
                             build_fallback_body(summary, comments))
            return False, True
        except Exception as e:
            logger.error(f"Fallback comment failed: {e}")
            return False, False

    async def _post_note(self, pr: PRDetails, note: str) -> bool:
        if self.config.review.dry_run:
            logger.info(f"DRY_RUN enabled: skipping comment: {note}")
            return False
        try:
            await self._call("post comment", self.github.post_issue_comment, pr, note)
            return True
        except Exception as e:
            logger.error(f"Posting comment failed: {e}")
            return False

    @staticmethod
    def _log_preview(summary: str, comments: List[PublishedComment]) -> None:
        logger.info("DRY_RUN enabled: skipping createReview")
        logger.info(f"--- Review Summary ---\n{summary}")
        for comment in comments:
            anchor = f"lines {comment.start_line}-{comment.line}" if comment.is_multi_line else f"line {comment.line}"
            logger.info(f"- {comment.path} @ {anchor}: {comment.body}")
