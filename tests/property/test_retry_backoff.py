"""
Property-based tests for retry classification and backoff.
"""

import asyncio

import pytest
from hypothesis import given, strategies as st

from gemini_pr_reviewer.errors import GitHubAPIError
from gemini_pr_reviewer.review.retry import RetryPolicy, is_retryable_error, with_retry


policies = st.builds(
    RetryPolicy,
    max_attempts=st.integers(min_value=1, max_value=8),
    initial_delay_ms=st.integers(min_value=1, max_value=5000),
    backoff_factor=st.floats(min_value=1.0, max_value=4.0),
    max_delay_ms=st.integers(min_value=1, max_value=60_000),
)


class TestRetryProperties:
    """Property tests for the retry policy."""

    @given(status=st.integers(min_value=100, max_value=599))
    def test_status_classification(self, status):
        error = GitHubAPIError(f"HTTP {status}", status_code=status)
        assert is_retryable_error(error) is (status == 429 or status >= 500)

    @given(policy=policies, attempt=st.integers(min_value=1, max_value=10), jitter=st.floats(min_value=0.0, max_value=1.0))
    def test_delay_bounds(self, policy, attempt, jitter):
        base = min(policy.initial_delay_ms * policy.backoff_factor ** (attempt - 1), policy.max_delay_ms)
        delay_ms = policy.delay_seconds(attempt, rand=lambda: jitter) * 1000

        assert base - 1e-6 <= delay_ms <= base * 1.25 + 1e-6
        assert delay_ms <= policy.max_delay_ms * 1.25 + 1e-6

    @given(policy=policies, retryable=st.booleans())
    def test_attempt_count(self, policy, retryable):
        status = 503 if retryable else 400
        calls = []

        async def failing():
            calls.append(1)
            raise GitHubAPIError("failure", status_code=status)

        async def no_sleep(seconds):
            return None

        with pytest.raises(GitHubAPIError):
            asyncio.run(with_retry(failing, "property", policy, sleep=no_sleep))

        assert len(calls) == (policy.max_attempts if retryable else 1)
