"""
GitHub API Client

Handles GitHub API authentication, rate limit tracking, and communication.
Provides the pull request, issue, repository and review calls used by the
review pipeline.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter

from ..errors import GitHubAPIError, RateLimitExceeded
from ..models.review import LinkedIssue, PRDetails, PublishedComment


logger = logging.getLogger(__name__)

DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
RAW_MEDIA_TYPE = "application/vnd.github.raw"


class GitHubClient:
    """
    GitHub API client with authentication and error handling.

    Provides methods for:
    - Pull request metadata, diff and commit retrieval
    - Linked issue, file content and file tree lookup
    - Review, comment and reaction publishing

    Retries are not done here; every call is wrapped by the caller's
    backoff policy.
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout_seconds: int = 30,
        pool_size: int = 10,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub token
            base_url: GitHub API base URL (default: https://api.github.com)
            timeout_seconds: Per-request timeout
            pool_size: Connection pool size, at least the inline concurrency cap
        """
        if not token:
            raise ValueError("GitHub token is required")
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout_seconds = timeout_seconds
        self.session = self._create_session(pool_size)
        self.rate_limit_remaining: Optional[int] = None
        self.rate_limit_reset: Optional[datetime] = None

    def _create_session(self, pool_size: int) -> requests.Session:
        """Create requests session with connection pooling and authentication."""
        session = requests.Session()

        adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Authorization': f'Bearer {self.token}',
            'Accept': 'application/vnd.github+json',
            'User-Agent': 'gemini-pr-reviewer',
        })

        return session

    def _update_rate_limit(self, response: requests.Response) -> None:
        """Update rate limit information from response headers."""
        if 'X-RateLimit-Remaining' in response.headers:
            self.rate_limit_remaining = int(response.headers['X-RateLimit-Remaining'])

        if 'X-RateLimit-Reset' in response.headers:
            reset_timestamp = int(response.headers['X-RateLimit-Reset'])
            self.rate_limit_reset = datetime.fromtimestamp(reset_timestamp)

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make authenticated request to GitHub API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            GitHubAPIError: For API and transport errors
            RateLimitExceeded: When rate limit is exceeded
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs.setdefault('timeout', self.timeout_seconds)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request failed: {method} {endpoint}: {e}")
            raise GitHubAPIError(f"Request failed: {e}") from e

        self._update_rate_limit(response)

        if response.status_code == 429 or (
            response.status_code == 403 and self.rate_limit_remaining == 0
        ):
            raise RateLimitExceeded(
                f"Rate limit exceeded. Resets at {self.rate_limit_reset}",
                reset_time=self.rate_limit_reset,
            )

        if not response.ok:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {'message': response.text[:500]}
            message = error_data.get('message', 'Unknown error') if isinstance(error_data, dict) else 'Unknown error'
            raise GitHubAPIError(
                f"GitHub API error {response.status_code}: {message}",
                status_code=response.status_code,
                response_data=error_data if isinstance(error_data, dict) else None,
            )

        return response

    def get_pull_request(self, owner: str, repo: str, pr_number: int) -> PRDetails:
        """
        Get pull request information.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            Pull request details
        """
        logger.info(f"Fetching PR {owner}/{repo}#{pr_number}")

        data = self._make_request('GET', f'/repos/{owner}/{repo}/pulls/{pr_number}').json()
        head = data.get('head') or {}
        base = data.get('base') or {}
        return PRDetails(
            owner=owner,
            repo=repo,
            pull_number=pr_number,
            title=data.get('title') or '',
            body=data.get('body') or '',
            head_sha=head.get('sha'),
            base_sha=base.get('sha'),
            base_branch=base.get('ref'),
        )

    def get_pull_request_diff(self, owner: str, repo: str, pr_number: int) -> str:
        """Get the unified diff of a pull request."""
        logger.info(f"Fetching diff for {owner}/{repo}#{pr_number}")

        response = self._make_request(
            'GET',
            f'/repos/{owner}/{repo}/pulls/{pr_number}',
            headers={'Accept': DIFF_MEDIA_TYPE},
        )
        return response.text

    def get_pull_request_commits(self, owner: str, repo: str, pr_number: int) -> List[str]:
        """
        Get commit messages of a pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            Commit messages in PR order
        """
        messages = []
        page = 1
        per_page = 100

        while True:
            response = self._make_request(
                'GET',
                f'/repos/{owner}/{repo}/pulls/{pr_number}/commits',
                params={'page': page, 'per_page': per_page}
            )

            page_commits = response.json()
            if not page_commits:
                break

            for item in page_commits:
                message = (item.get('commit') or {}).get('message')
                if message:
                    messages.append(message)

            if len(page_commits) < per_page:
                break

            page += 1

        logger.info(f"Found {len(messages)} commits")
        return messages

    def get_issue(self, owner: str, repo: str, issue_number: int) -> LinkedIssue:
        """Get title and body of an issue."""
        logger.info(f"Fetching issue {owner}/{repo}#{issue_number}")

        data = self._make_request('GET', f'/repos/{owner}/{repo}/issues/{issue_number}').json()
        return LinkedIssue(title=data.get('title') or '', body=data.get('body') or '')

    def get_file_content(self, owner: str, repo: str, path: str, ref: Optional[str] = None) -> str:
        """
        Get raw content of a repository file.

        Returns:
            File content, or an empty string when the file does not exist
        """
        params = {'ref': ref} if ref else None
        try:
            response = self._make_request(
                'GET',
                f'/repos/{owner}/{repo}/contents/{path}',
                params=params,
                headers={'Accept': RAW_MEDIA_TYPE},
            )
        except GitHubAPIError as e:
            if e.status_code == 404:
                logger.warning(f"File not found: {owner}/{repo}/{path}")
                return ''
            raise
        return response.text

    def get_repository_tree(self, owner: str, repo: str, ref: str, limit: int = 200) -> str:
        """
        Get the repository file list at a ref.

        Returns:
            Up to `limit` blob paths, one per line
        """
        data = self._make_request(
            'GET',
            f'/repos/{owner}/{repo}/git/trees/{ref}',
            params={'recursive': '1'},
        ).json()

        paths = [item['path'] for item in data.get('tree', []) if item.get('type') == 'blob' and item.get('path')]
        if data.get('truncated'):
            logger.warning(f"File tree for {owner}/{repo}@{ref} was truncated by GitHub")
        return '\n'.join(paths[:limit])

    def create_review(
        self,
        pr: PRDetails,
        body: str,
        comments: List[PublishedComment],
        event: str = "COMMENT",
    ) -> Dict[str, Any]:
        """
        Create a pull request review with inline comments.

        Args:
            pr: Pull request details
            body: Review summary body
            comments: Resolved inline comments
            event: Review event type

        Returns:
            Created review data
        """
        logger.info(f"Creating review on {pr.full_name}#{pr.pull_number} with {len(comments)} comments")

        payload: Dict[str, Any] = {
            'body': body,
            'event': event,
            'comments': [comment.to_payload() for comment in comments],
        }
        if pr.head_sha:
            payload['commit_id'] = pr.head_sha

        response = self._make_request(
            'POST',
            f'/repos/{pr.owner}/{pr.repo}/pulls/{pr.pull_number}/reviews',
            json=payload,
        )
        return response.json()

    def post_issue_comment(self, pr: PRDetails, body: str) -> Dict[str, Any]:
        """Post a plain comment on the pull request thread."""
        logger.info(f"Posting comment on {pr.full_name}#{pr.pull_number}")

        response = self._make_request(
            'POST',
            f'/repos/{pr.owner}/{pr.repo}/issues/{pr.pull_number}/comments',
            json={'body': body},
        )
        return response.json()

    def add_comment_reaction(self, owner: str, repo: str, comment_id: int, reaction: str) -> None:
        """React to an issue comment."""
        self._make_request(
            'POST',
            f'/repos/{owner}/{repo}/issues/comments/{comment_id}/reactions',
            json={'content': reaction},
        )
