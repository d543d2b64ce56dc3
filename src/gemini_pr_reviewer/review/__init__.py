"""
Review Pipeline

This module provides the review orchestrator, the retry and concurrency
helpers it runs on, and formatting of the published review.
"""

from .concurrency import ConcurrencyLimiter
from .formatting import build_fallback_body, build_summary, format_comment_body
from .orchestrator import HostingClient, ModelClient, ReviewDependencies, ReviewOrchestrator
from .retry import RetryPolicy, is_retryable_error, with_retry

__all__ = [
    'ConcurrencyLimiter',
    'build_fallback_body',
    'build_summary',
    'format_comment_body',
    'HostingClient',
    'ModelClient',
    'ReviewDependencies',
    'ReviewOrchestrator',
    'RetryPolicy',
    'is_retryable_error',
    'with_retry',
]
