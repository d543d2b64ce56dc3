"""
Unit tests for the command line entry point and local hosting client.
"""

import json
from unittest.mock import Mock

import pytest

from gemini_pr_reviewer import cli
from gemini_pr_reviewer.errors import ConfigurationError


EVENT = {
    "issue": {"number": 4, "title": "Local title", "body": "Local body", "pull_request": {"url": "https://api.github.com/repos/octo/demo/pulls/4"}},
    "comment": {"id": 1, "body": "/gemini-review"},
    "repository": {"full_name": "octo/demo"},
}


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("GITHUB_TOKEN", "GEMINI_API_KEY", "GITHUB_EVENT_PATH", "DRY_RUN", "LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLocalHostingClient:
    """Unit tests for LocalHostingClient without a GitHub client."""

    def test_pull_request_from_event(self):
        client = cli.LocalHostingClient(EVENT, diff_text="diff")

        pr = client.get_pull_request("octo", "demo", 4)

        assert pr.title == "Local title"
        assert pr.body == "Local body"
        assert pr.head_sha == "local"
        assert client.get_pull_request_diff("octo", "demo", 4) == "diff"

    def test_context_calls_are_empty(self):
        client = cli.LocalHostingClient(EVENT, diff_text="diff")

        assert client.get_pull_request_commits("octo", "demo", 4) == []
        assert client.get_file_content("octo", "demo", "README.md") == ""
        assert client.get_repository_tree("octo", "demo", "main") == ""

    def test_publishing_needs_github(self):
        client = cli.LocalHostingClient(EVENT)
        pr = client.get_pull_request("octo", "demo", 4)

        with pytest.raises(ConfigurationError):
            client.create_review(pr, "body", [])
        with pytest.raises(ConfigurationError):
            client.get_pull_request_diff("octo", "demo", 4)

    def test_delegates_to_github(self):
        github = Mock()
        github.get_pull_request_commits.return_value = ["feat"]
        client = cli.LocalHostingClient(EVENT, github=github, diff_text="local diff")

        assert client.get_pull_request_commits("octo", "demo", 4) == ["feat"]
        assert client.get_pull_request_diff("octo", "demo", 4) == "local diff"
        github.get_pull_request_diff.assert_not_called()


class TestMain:
    """Unit tests for cli.main exit codes."""

    def test_missing_secrets_exit_1(self, clean_env):
        assert cli.main([]) == 1

    def test_missing_event_exit_1(self, clean_env):
        clean_env.setenv("GITHUB_TOKEN", "t")
        clean_env.setenv("GEMINI_API_KEY", "k")

        assert cli.main([]) == 1

    def test_dry_run_local_diff_skip(self, clean_env, tmp_path):
        clean_env.setenv("GEMINI_API_KEY", "k")
        clean_env.setattr(cli, "GeminiClient", Mock())
        event = dict(EVENT, comment={"id": 1, "body": "thanks"})
        event_file = tmp_path / "event.json"
        event_file.write_text(json.dumps(event), encoding="utf-8")
        diff_file = tmp_path / "change.diff"
        diff_file.write_text("--- a/x.py\n+++ b/x.py\n@@ -1 +1 @@\n-a\n+b\n", encoding="utf-8")

        exit_code = cli.main([
            "--event", str(event_file), "--diff", str(diff_file), "--dry-run", "--local",
        ])

        assert exit_code == 0

    def test_empty_diff_file_exit_1(self, clean_env, tmp_path):
        clean_env.setenv("GEMINI_API_KEY", "k")
        clean_env.setattr(cli, "GeminiClient", Mock())
        event_file = tmp_path / "event.json"
        event_file.write_text(json.dumps(EVENT), encoding="utf-8")
        diff_file = tmp_path / "empty.diff"
        diff_file.write_text("  \n", encoding="utf-8")

        assert cli.main(["--event", str(event_file), "--diff", str(diff_file), "--dry-run"]) == 1

    def test_unknown_config_key_exit_1(self, clean_env, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("limits:\n  max_file: 3\n", encoding="utf-8")

        assert cli.main(["--config", str(config_file)]) == 1
