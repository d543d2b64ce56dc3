"""
Review Formatting

Severity badges, comment de-duplication and capping, and the review summary
body.
"""

import logging
from typing import Dict, List, Optional

from ..models.review import GlobalReview, PRGoal, Priority, PublishedComment


logger = logging.getLogger(__name__)

REVIEW_TITLE = "## Gemini PR Review"

PRIORITY_BADGES = {
    Priority.HIGH: "**🔴 High** — ",
    Priority.MEDIUM: "**🔶 Medium** — ",
    Priority.LOW: "**🔷 Low** — ",
}


def format_comment_body(text: str, priority: Priority, category: Optional[str] = None) -> str:
    """Prefix finding text with its severity badge."""
    body = f"{PRIORITY_BADGES[priority]}{text.strip()}"
    if category:
        body += f" _({category})_"
    return body


def dedupe_comments(comments: List[PublishedComment]) -> List[PublishedComment]:
    """Drop comments colliding on path, anchors and body; first one wins."""
    seen = set()
    unique = []
    for comment in comments:
        if comment.dedup_key in seen:
            logger.debug(f"Dropping duplicate comment on {comment.path}:{comment.line}")
            continue
        seen.add(comment.dedup_key)
        unique.append(comment)
    return unique


def cap_comments(comments: List[PublishedComment], max_comments: int) -> List[PublishedComment]:
    """
    Keep at most max_comments, dropping the lowest priority overflow first.

    Within a priority the later comments are dropped first; survivors keep
    their original order.
    """
    if len(comments) <= max_comments:
        return list(comments)

    ranked = sorted(range(len(comments)), key=lambda i: (-comments[i].priority.rank, i))
    keep = set(ranked[:max_comments])
    logger.warning(f"Capping {len(comments)} comments to {max_comments}")
    return [comment for index, comment in enumerate(comments) if index in keep]


def count_by_priority(comments: List[PublishedComment]) -> Dict[Priority, int]:
    counts = {priority: 0 for priority in Priority}
    for comment in comments:
        counts[comment.priority] += 1
    return counts


def build_summary(
    global_review: Optional[GlobalReview],
    comments: List[PublishedComment],
    goal: Optional[PRGoal] = None,
    files_reviewed: int = 0,
    failed_files: Optional[List[str]] = None,
) -> str:
    """Markdown body of the review."""
    lines = [REVIEW_TITLE, ""]

    if goal is not None and goal.goal:
        lines.extend([f"**Goal:** {goal.goal}", ""])

    summary = global_review.summary if global_review else ""
    lines.extend([summary or "No cross-file summary available.", ""])

    findings = global_review.finding_texts if global_review else []
    if findings:
        lines.append("### Cross-file findings")
        lines.extend(f"- {finding}" for finding in findings)
        lines.append("")

    counts = count_by_priority(comments)
    lines.append(
        f"Reviewed {files_reviewed} file(s); {len(comments)} inline comment(s) "
        f"(high: {counts[Priority.HIGH]}, medium: {counts[Priority.MEDIUM]}, low: {counts[Priority.LOW]})."
    )

    if failed_files:
        lines.append("")
        lines.append(f"_Could not review: {', '.join(failed_files)}_")

    return "\n".join(lines)


def build_fallback_body(summary: str, comments: List[PublishedComment]) -> str:
    """Plain comment body posted when the review could not be created."""
    lines = [summary, "", "---"]
    lines.append("_Inline comments could not be posted as a review._")
    if comments:
        lines.append("")
        for comment in comments:
            anchor = f"{comment.start_line}-{comment.line}" if comment.is_multi_line else str(comment.line)
            lines.append(f"- `{comment.path}:{anchor}` {comment.body}")
    return "\n".join(lines)
