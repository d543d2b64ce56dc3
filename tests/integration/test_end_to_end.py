"""
End-to-End Integration Tests

Runs the review orchestrator from trigger comment to published review with
in-memory hosting and model clients.
"""

import json
from dataclasses import replace

import pytest

from gemini_pr_reviewer.config import AppConfig, GitHubConfig, LimitsConfig, ModelConfig, RetryConfig, ReviewConfig
from gemini_pr_reviewer.errors import EmptyDiffError, GitHubAPIError, ModelAPIError
from gemini_pr_reviewer.models.review import LinkedIssue, PRDetails
from gemini_pr_reviewer.review.orchestrator import ReviewDependencies, ReviewOrchestrator


TWO_LINE_DIFF = """diff --git a/src/app.py b/src/app.py
new file mode 100644
--- /dev/null
+++ b/src/app.py
@@ -0,0 +1,2 @@
+value = compute()
+print(value.name)
"""

TWO_FILE_DIFF = TWO_LINE_DIFF + """diff --git a/src/util.py b/src/util.py
--- a/src/util.py
+++ b/src/util.py
@@ -1,2 +1,2 @@
 import os
-x = 1
+x = 2
"""


def make_event(body="/gemini-review"):
    return {
        "issue": {"number": 7, "pull_request": {"url": "https://api.github.com/repos/octo/demo/pulls/7"}},
        "comment": {"id": 55, "body": body},
        "repository": {"full_name": "octo/demo"},
    }


def make_config(**review_overrides):
    return AppConfig(
        github=GitHubConfig(token="ghp_test"),
        model=ModelConfig(api_key="gemini_test"),
        review=replace(ReviewConfig(), **review_overrides),
        retry=RetryConfig(max_attempts=3, initial_delay_ms=10),
    )


class StubHosting:
    """In-memory hosting client recording every call."""

    def __init__(self, diff=TWO_LINE_DIFF, pr_body="Fixes #3"):
        self.diff = diff
        self.pr_body = pr_body
        self.calls = []
        self.reviews = []
        self.issue_comments = []
        self.fail = {}

    def _record(self, name, *args):
        self.calls.append(name)
        errors = self.fail.get(name)
        if errors:
            raise errors.pop(0)

    def get_pull_request(self, owner, repo, pr_number):
        self._record("get_pull_request")
        return PRDetails(owner=owner, repo=repo, pull_number=pr_number, title="Add app",
                         body=self.pr_body, head_sha="head1", base_sha="base1", base_branch="main")

    def get_pull_request_diff(self, owner, repo, pr_number):
        self._record("get_pull_request_diff")
        return self.diff

    def get_pull_request_commits(self, owner, repo, pr_number):
        self._record("get_pull_request_commits")
        return ["feat: add app"]

    def get_issue(self, owner, repo, issue_number):
        self._record("get_issue")
        return LinkedIssue(title=f"Issue {issue_number}", body="Crash on startup")

    def get_file_content(self, owner, repo, path, ref=None):
        self._record("get_file_content")
        return "# Demo"

    def get_repository_tree(self, owner, repo, ref, limit=200):
        self._record("get_repository_tree")
        return "src/app.py\nsrc/util.py"

    def create_review(self, pr, body, comments, event="COMMENT"):
        self._record("create_review")
        self.reviews.append({"body": body, "comments": comments, "event": event})
        return {"id": 1}

    def post_issue_comment(self, pr, body):
        self._record("post_issue_comment")
        self.issue_comments.append(body)
        return {"id": 2}

    def add_comment_reaction(self, owner, repo, comment_id, reaction):
        self._record("add_comment_reaction")


class StubModel:
    """Answers each prompt kind with a canned JSON document."""

    def __init__(self, file_reviews=None, global_review=None, failing_files=()):
        self.file_reviews = file_reviews or {}
        self.global_review = global_review or {"summary": "Adds the app entry point.", "findings": []}
        self.failing_files = failing_files
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if "PR Goal Statement" in prompt:
            return json.dumps({"goal": "Add the app entry point", "context": "Fixes issue 3"})
        if "Combined diff" in prompt:
            return "```json\n" + json.dumps(self.global_review) + "\n```"
        for path in self.failing_files:
            if f"File: {path}" in prompt:
                raise ModelAPIError("Invalid request", status_code=400)
        for path, reviews in self.file_reviews.items():
            if f"File: {path}" in prompt:
                return json.dumps({"reviews": reviews})
        return json.dumps({"reviews": []})


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def make_orchestrator(hosting, model, config=None, sleep=None):
    deps = ReviewDependencies(github=hosting, model=model, sleep=sleep or RecordingSleep())
    return ReviewOrchestrator(config or make_config(), deps)


class TestEndToEndFlow:
    """Test complete review flow from trigger to publish."""

    @pytest.mark.asyncio
    async def test_multi_line_finding_published_as_range(self):
        hosting = StubHosting()
        model = StubModel(file_reviews={"src/app.py": [
            {"lineNumber": 2, "endLineNumber": 3, "reviewComment": "value may be None here", "priority": "high"},
        ]})

        result = await make_orchestrator(hosting, model).run(make_event())

        assert result.published is True
        assert len(hosting.reviews) == 1
        comments = hosting.reviews[0]["comments"]
        assert len(comments) == 1
        payload = comments[0].to_payload()
        assert payload["path"] == "src/app.py"
        assert payload["start_line"] == 1
        assert payload["start_side"] == "RIGHT"
        assert payload["line"] == 2
        assert payload["side"] == "RIGHT"
        assert "**🔴 High** — " in payload["body"]
        assert "value may be None here" in payload["body"]
        assert hosting.calls[0] == "add_comment_reaction"

    @pytest.mark.asyncio
    async def test_publish_failure_posts_exactly_one_fallback(self):
        hosting = StubHosting()
        hosting.fail["create_review"] = [GitHubAPIError("Validation Failed", status_code=422)]
        model = StubModel(file_reviews={"src/app.py": [{"lineNumber": 2, "reviewComment": "Check this"}]})

        result = await make_orchestrator(hosting, model).run(make_event())

        assert result.published is False
        assert result.used_fallback is True
        assert hosting.calls.count("create_review") == 1
        assert hosting.calls.count("post_issue_comment") == 1
        assert result.summary in hosting.issue_comments[0]
        assert "Adds the app entry point." in hosting.issue_comments[0]

    @pytest.mark.asyncio
    async def test_fallback_failure_does_not_raise(self):
        hosting = StubHosting()
        hosting.fail["create_review"] = [GitHubAPIError("Validation Failed", status_code=422)]
        hosting.fail["post_issue_comment"] = [GitHubAPIError("Forbidden", status_code=403)]

        result = await make_orchestrator(hosting, StubModel()).run(make_event())

        assert result.published is False
        assert result.used_fallback is False
        assert hosting.calls.count("post_issue_comment") == 1

    @pytest.mark.asyncio
    async def test_non_trigger_comment_is_skipped(self):
        hosting = StubHosting()
        model = StubModel()

        result = await make_orchestrator(hosting, model).run(make_event(body="LGTM"))

        assert result.skipped is True
        assert hosting.calls == []
        assert model.prompts == []

    @pytest.mark.asyncio
    async def test_failing_file_does_not_abort_others(self):
        hosting = StubHosting(diff=TWO_FILE_DIFF)
        model = StubModel(
            file_reviews={"src/util.py": [{"lineNumber": 3, "reviewComment": "Magic number", "priority": "low"}]},
            failing_files=("src/app.py",),
        )

        result = await make_orchestrator(hosting, model).run(make_event())

        assert result.published is True
        assert result.failed_files == ["src/app.py"]
        comments = hosting.reviews[0]["comments"]
        assert [(c.path, c.line) for c in comments] == [("src/util.py", 2)]
        assert "src/app.py" in hosting.reviews[0]["body"]

    @pytest.mark.asyncio
    async def test_inline_prompts_carry_goal_and_global_context(self):
        hosting = StubHosting(diff=TWO_FILE_DIFF)
        model = StubModel()

        await make_orchestrator(hosting, model).run(make_event())

        file_prompts = [p for p in model.prompts if "Diff (line numbers included)" in p]
        assert len(file_prompts) == 2
        for prompt in file_prompts:
            assert "PR Goal: Add the app entry point" in prompt
            assert "Summary: Adds the app entry point." in prompt
            assert "README Snippet" in prompt

    @pytest.mark.asyncio
    async def test_transient_errors_are_retried(self):
        hosting = StubHosting()
        hosting.fail["get_pull_request"] = [
            GitHubAPIError("Bad gateway", status_code=502),
            GitHubAPIError("Bad gateway", status_code=502),
        ]
        sleep = RecordingSleep()

        result = await make_orchestrator(hosting, StubModel(), sleep=sleep).run(make_event())

        assert result.published is True
        assert hosting.calls.count("get_pull_request") == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_context_failures_degrade(self):
        hosting = StubHosting()
        hosting.fail["get_pull_request_commits"] = [GitHubAPIError("boom", status_code=500)] * 3
        hosting.fail["get_issue"] = [GitHubAPIError("Not Found", status_code=404)]
        hosting.fail["get_file_content"] = [GitHubAPIError("Forbidden", status_code=403)]

        result = await make_orchestrator(hosting, StubModel()).run(make_event())

        assert result.published is True
        assert hosting.calls.count("get_pull_request_commits") == 3
        assert hosting.calls.count("get_issue") == 1

    @pytest.mark.asyncio
    async def test_pull_request_fetch_failure_is_fatal(self):
        hosting = StubHosting()
        hosting.fail["get_pull_request"] = [GitHubAPIError("Not Found", status_code=404)]

        with pytest.raises(GitHubAPIError):
            await make_orchestrator(hosting, StubModel()).run(make_event())

    @pytest.mark.asyncio
    async def test_empty_diff_is_fatal(self):
        hosting = StubHosting(diff="")

        with pytest.raises(EmptyDiffError):
            await make_orchestrator(hosting, StubModel()).run(make_event())

    @pytest.mark.asyncio
    async def test_no_matching_files_posts_note(self):
        hosting = StubHosting()
        config = replace(make_config(), limits=LimitsConfig(include_patterns=("*.md",)))
        model = StubModel()

        result = await make_orchestrator(hosting, model, config=config).run(make_event())

        assert result.skipped is False
        assert "create_review" not in hosting.calls
        assert len(hosting.issue_comments) == 1
        assert "No files matched" in hosting.issue_comments[0]
        assert model.prompts == []

    @pytest.mark.asyncio
    async def test_dry_run_publishes_nothing(self):
        hosting = StubHosting()
        model = StubModel(file_reviews={"src/app.py": [{"lineNumber": 2, "reviewComment": "Check this"}]})

        result = await make_orchestrator(hosting, model, config=make_config(dry_run=True)).run(make_event())

        assert result.published is False
        assert len(result.comments) == 1
        assert "create_review" not in hosting.calls
        assert "post_issue_comment" not in hosting.calls
        assert "add_comment_reaction" not in hosting.calls

    @pytest.mark.asyncio
    async def test_global_pass_disabled(self):
        hosting = StubHosting()
        model = StubModel()

        await make_orchestrator(hosting, model, config=make_config(global_review=False)).run(make_event())

        assert not any("Combined diff" in p for p in model.prompts)
        assert "No cross-file summary available." in hosting.reviews[0]["body"]

    @pytest.mark.asyncio
    async def test_anchored_global_findings_become_comments(self):
        hosting = StubHosting()
        model = StubModel(global_review={"summary": "s", "findings": [
            {"title": "Contract change", "details": "name may be missing", "path": "src/app.py", "line": 2},
            {"title": "Elsewhere", "details": "not in diff", "path": "src/app.py", "line": 40},
            "Plain cross-file note",
        ]})

        result = await make_orchestrator(hosting, model).run(make_event())

        assert [(c.path, c.line) for c in result.comments] == [("src/app.py", 2)]
        assert "Contract change: name may be missing" in result.comments[0].body
        assert "- Plain cross-file note" in result.summary

    @pytest.mark.asyncio
    async def test_duplicates_and_unresolvable_findings_dropped(self):
        hosting = StubHosting()
        model = StubModel(file_reviews={"src/app.py": [
            {"lineNumber": 1, "reviewComment": "Same"},
            {"lineNumber": 2, "reviewComment": "Same"},
            {"lineNumber": 99, "reviewComment": "Out of range"},
            {"lineNumber": 3, "endLineNumber": 2, "reviewComment": "Backwards range"},
        ]})

        result = await make_orchestrator(hosting, model).run(make_event())

        # The hunk header snaps forward onto the first added line and collides with the second finding
        bodies = [(c.line, c.start_line, c.body.split(" — ")[-1]) for c in result.comments]
        assert bodies == [(1, None, "Same"), (2, None, "Backwards range")]

    def test_run_sync(self):
        result = make_orchestrator(StubHosting(), StubModel()).run_sync(make_event(body="nothing"))
        assert result.skipped is True
