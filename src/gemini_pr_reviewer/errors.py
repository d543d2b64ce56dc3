"""
Reviewer Errors

Exception hierarchy shared by the diff, GitHub, LLM and review layers.
"""

from typing import Dict, Optional


class ReviewerError(Exception):
    """Base class for all reviewer errors"""


class ConfigurationError(ReviewerError, ValueError):
    """Missing or invalid configuration; raised before any network call"""


class EmptyDiffError(ReviewerError):
    """The pull request diff contained nothing to review"""


class GitHubAPIError(ReviewerError):
    """GitHub API related errors"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Optional[Dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class RateLimitExceeded(GitHubAPIError):
    """GitHub API rate limit exceeded"""
    def __init__(self, message: str, reset_time=None):
        super().__init__(message, status_code=429)
        self.reset_time = reset_time


class ModelAPIError(ReviewerError):
    """Generative model call failed"""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
