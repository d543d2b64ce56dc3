"""
GitHub Integration Layer

This module provides GitHub API integration for pull request retrieval,
review publishing, event handling and linked issue lookup.
"""

from .client import GitHubClient
from .events import TriggerMatch, check_trigger, load_event_payload
from .references import extract_linked_issue_refs

__all__ = [
    'GitHubClient',
    'TriggerMatch',
    'check_trigger',
    'load_event_payload',
    'extract_linked_issue_refs',
]
