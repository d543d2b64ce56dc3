"""
Unit tests for retry with backoff and the concurrency limiter.
"""

import asyncio

import pytest
import requests

from gemini_pr_reviewer.errors import GitHubAPIError, ModelAPIError, RateLimitExceeded
from gemini_pr_reviewer.review.concurrency import ConcurrencyLimiter
from gemini_pr_reviewer.review.retry import RetryPolicy, error_status, is_retryable_error, with_retry


class FakeSleep:
    """Records requested delays without waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class FailingCall:
    """Coroutine factory raising `error` for the first `failures` calls."""

    def __init__(self, error, failures=None, result="ok"):
        self.error = error
        self.failures = failures
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.failures is None or self.calls <= self.failures:
            raise self.error
        return self.result


class TestRetryClassification:
    """Unit tests for is_retryable_error."""

    @pytest.mark.parametrize("error,expected", [
        (GitHubAPIError("rate limited", status_code=429), True),
        (RateLimitExceeded("API rate limit exceeded"), True),
        (GitHubAPIError("bad gateway", status_code=502), True),
        (ModelAPIError("unavailable", status_code=503), True),
        (GitHubAPIError("not found", status_code=404), False),
        (GitHubAPIError("unprocessable", status_code=422), False),
        (requests.ConnectionError("boom"), True),
        (requests.Timeout("slow"), True),
        (TimeoutError(), True),
        (ValueError("socket hang up"), True),
        (ValueError("invalid input"), False),
    ])
    def test_classification(self, error, expected):
        assert is_retryable_error(error) is expected

    def test_wrapped_transport_error(self):
        try:
            try:
                raise requests.ConnectionError("reset")
            except requests.ConnectionError as e:
                raise GitHubAPIError("Request failed: reset") from e
        except GitHubAPIError as wrapped:
            assert wrapped.status_code is None
            assert is_retryable_error(wrapped) is True

    def test_error_status_from_response(self):
        response = requests.Response()
        response.status_code = 500
        error = requests.HTTPError("server error", response=response)
        assert error_status(error) == 500
        assert is_retryable_error(error) is True


class TestRetryPolicy:
    """Unit tests for backoff delays."""

    def test_exponential_without_jitter(self):
        policy = RetryPolicy(initial_delay_ms=1000, backoff_factor=2, max_delay_ms=30_000)

        assert policy.delay_seconds(1, rand=lambda: 0.0) == pytest.approx(1.0)
        assert policy.delay_seconds(2, rand=lambda: 0.0) == pytest.approx(2.0)
        assert policy.delay_seconds(3, rand=lambda: 0.0) == pytest.approx(4.0)

    def test_delay_capped_before_jitter(self):
        policy = RetryPolicy(initial_delay_ms=1000, backoff_factor=10, max_delay_ms=5000)

        assert policy.delay_seconds(4, rand=lambda: 0.0) == pytest.approx(5.0)
        assert policy.delay_seconds(4, rand=lambda: 1.0) == pytest.approx(6.25)


class TestWithRetry:
    """Unit tests for with_retry."""

    @pytest.mark.asyncio
    async def test_always_failing_retryable_makes_max_attempts(self):
        call = FailingCall(GitHubAPIError("unavailable", status_code=503))
        sleep = FakeSleep()

        with pytest.raises(GitHubAPIError):
            await with_retry(call, "test", RetryPolicy(max_attempts=4), sleep=sleep, rand=lambda: 0.0)

        assert call.calls == 4
        assert sleep.delays == pytest.approx([1.0, 2.0, 4.0])

    @pytest.mark.asyncio
    async def test_non_retryable_fails_after_one_attempt(self):
        call = FailingCall(GitHubAPIError("not found", status_code=404))
        sleep = FakeSleep()

        with pytest.raises(GitHubAPIError):
            await with_retry(call, "test", RetryPolicy(max_attempts=4), sleep=sleep)

        assert call.calls == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self):
        call = FailingCall(GitHubAPIError("rate limited", status_code=429), failures=2, result="done")
        sleep = FakeSleep()

        result = await with_retry(call, "test", RetryPolicy(max_attempts=4), sleep=sleep)

        assert result == "done"
        assert call.calls == 3
        assert len(sleep.delays) == 2

    @pytest.mark.asyncio
    async def test_single_attempt_policy(self):
        call = FailingCall(TimeoutError())

        with pytest.raises(TimeoutError):
            await with_retry(call, "test", RetryPolicy(max_attempts=1), sleep=FakeSleep())

        assert call.calls == 1


class TestConcurrencyLimiter:
    """Unit tests for ConcurrencyLimiter."""

    def test_limit_must_be_positive(self):
        with pytest.raises(ValueError):
            ConcurrencyLimiter(0)

    @pytest.mark.asyncio
    async def test_empty_task_list(self):
        assert await ConcurrencyLimiter(3).run_all([]) == []

    @pytest.mark.asyncio
    async def test_results_in_submission_order(self):
        delays = [0.03, 0.0, 0.02, 0.01]

        def make_task(index, delay):
            async def task():
                await asyncio.sleep(delay)
                return index
            return task

        limiter = ConcurrencyLimiter(2)
        results = await limiter.run_all([make_task(i, d) for i, d in enumerate(delays)])

        assert results == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_never_exceeds_limit(self):
        limiter = ConcurrencyLimiter(3)
        observed = []

        def make_task():
            async def task():
                observed.append(limiter.active)
                await asyncio.sleep(0.01)
                return None
            return task

        await limiter.run_all([make_task() for _ in range(10)])

        assert max(observed) <= 3
        assert limiter.peak == 3
        assert limiter.active == 0

    @pytest.mark.asyncio
    async def test_failure_propagates(self):
        async def bad():
            raise RuntimeError("task failed")

        async def good():
            return 1

        with pytest.raises(RuntimeError):
            await ConcurrencyLimiter(2).run_all([good, bad])
