"""
Linked Issue References

Finds issues referenced from a pull request description.
"""

import re
from typing import List

from ..models.review import LinkedIssueRef


URL_PATTERN = re.compile(r'https?://github\.com/([\w.-]+)/([\w.-]+)/issues/(\d+)')
CROSS_REPO_PATTERN = re.compile(r'(?<![\w/.-])([\w.-]+)/([\w.-]+)#(\d+)\b')
SAME_REPO_PATTERN = re.compile(r'(?<![\w/#])#(\d+)\b')


def extract_linked_issue_refs(body: str, owner: str, repo: str) -> List[LinkedIssueRef]:
    """
    Extract issue references from text.

    Recognizes full issue URLs, `owner/repo#N` and bare `#N` (resolved against
    owner/repo). Results are ordered by those forms and de-duplicated.
    """
    if not body:
        return []

    refs: List[LinkedIssueRef] = []
    seen = set()

    def add(ref: LinkedIssueRef) -> None:
        if ref not in seen:
            seen.add(ref)
            refs.append(ref)

    remaining = body
    for match in URL_PATTERN.finditer(body):
        add(LinkedIssueRef(match.group(1), match.group(2), int(match.group(3))))
    remaining = URL_PATTERN.sub(' ', remaining)

    for match in CROSS_REPO_PATTERN.finditer(remaining):
        add(LinkedIssueRef(match.group(1), match.group(2), int(match.group(3))))
    remaining = CROSS_REPO_PATTERN.sub(' ', remaining)

    for match in SAME_REPO_PATTERN.finditer(remaining):
        add(LinkedIssueRef(owner, repo, int(match.group(1))))

    return refs
