"""
GitHub Event Payloads

Loading of the workflow event payload and the trigger check.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import ConfigurationError


logger = logging.getLogger(__name__)


@dataclass
class TriggerMatch:
    """Pull request a trigger comment asked to review"""
    owner: str
    repo: str
    pull_number: int
    comment_id: Optional[int] = None


def load_event_payload(event_path: str) -> Dict[str, Any]:
    """Read the JSON event payload written by GitHub Actions."""
    path = Path(event_path)
    if not path.exists():
        raise ConfigurationError(f"Event payload not found: {event_path}")
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def check_trigger(event: Dict[str, Any], trigger: str) -> Optional[TriggerMatch]:
    """
    Match an issue_comment event against the trigger token.

    Returns:
        TriggerMatch, or None when the event is not a pull request comment
        containing the trigger
    """
    issue = event.get('issue') or {}
    comment = event.get('comment') or {}

    if not issue.get('pull_request'):
        logger.info("Event is not a comment on a pull request")
        return None

    body = comment.get('body') or ''
    if trigger not in body:
        logger.info(f"Comment does not contain trigger {trigger!r}")
        return None

    full_name = (event.get('repository') or {}).get('full_name') or ''
    if '/' not in full_name or not issue.get('number'):
        logger.warning("Event payload is missing repository or issue number")
        return None

    owner, repo = full_name.split('/', 1)
    return TriggerMatch(
        owner=owner,
        repo=repo,
        pull_number=int(issue['number']),
        comment_id=comment.get('id'),
    )
