"""
Prompt Builder

Builds the goal, global and per-file review prompts sent to the model.
"""

import logging
from typing import List, Optional

from ..models.review import GlobalReview, LinkedIssue, PRDetails, PRGoal, RepoContext


logger = logging.getLogger(__name__)


MODE_INSTRUCTIONS = {
    "strict": [
        "Focus on all potential issues, including minor style problems.",
        "Be thorough and pedantic.",
        "Flag any deviation from best practices.",
    ],
    "lenient": [
        "Focus only on critical bugs and security vulnerabilities.",
        "Skip style and minor maintainability issues.",
        "Be concise.",
    ],
    "security": [
        "Focus exclusively on security vulnerabilities.",
        "Look for injection attacks, auth issues, data exposure, and insecure defaults.",
    ],
    "performance": [
        "Focus exclusively on performance issues.",
        "Look for inefficient algorithms, unnecessary operations, and excessive memory usage.",
    ],
    "standard": [
        "Focus on bugs, security issues, and performance problems.",
        "Include maintainability concerns.",
        "Skip minor style issues unless they impact readability.",
    ],
}


class PromptBuilder:
    """
    Builds structured prompts for the review passes.

    Every prompt asks for a JSON document; the shapes match the parsers in
    llm.parsing.
    """

    def __init__(self, review_mode: str = "standard", review_instructions: str = ""):
        """
        Initialize prompt builder.

        Args:
            review_mode: Review persona (standard, strict, lenient, security, performance)
            review_instructions: Free-form instructions from repository config
        """
        self.review_mode = review_mode if review_mode in MODE_INSTRUCTIONS else "standard"
        self.review_instructions = review_instructions.strip()

    def mode_line(self) -> str:
        return f"Review mode: {self.review_mode}. {' '.join(MODE_INSTRUCTIONS[self.review_mode])}"

    def build_goal_prompt(
        self,
        pr: PRDetails,
        commits: List[str],
        linked_issues: List[LinkedIssue],
    ) -> str:
        """Prompt asking for a short goal statement of the pull request."""
        commit_list = "\n".join(f"- {commit}" for commit in commits) if commits else "No commits provided."
        issue_list = (
            "\n\n".join(f"Title: {issue.title}\nBody: {issue.body}" for issue in linked_issues)
            if linked_issues else "No linked issues."
        )

        return "\n".join([
            "You are a senior technical lead.",
            'Analyze the following PR context and generate a concise "PR Goal Statement".',
            "This goal statement will be used to anchor the code review.",
            "",
            "Provide the response in JSON format:",
            '{"goal": "<concise goal>", "context": "<additional context rules or constraints>"}',
            "",
            f"PR Title: {pr.title}",
            "PR Description:",
            pr.body or "No description provided.",
            "",
            "Commits:",
            commit_list,
            "",
            "Linked Issues:",
            issue_list,
            "",
            "Task:",
            '1. Synthesize a "Goal" (1-2 sentences) describing the primary objective.',
            '2. Extract identifying "Context" (key constraints, architectural patterns, or specific '
            'bug details) that the code reviewer must respect.',
        ])

    def build_global_prompt(
        self,
        pr: PRDetails,
        global_diff: str,
        goal: Optional[PRGoal] = None,
        repo_context: Optional[RepoContext] = None,
    ) -> str:
        """Prompt for the cross-file pass over the flattened diff."""
        sections = [
            "You are a senior code reviewer.",
            "Provide the response in JSON format:",
            '{"summary": "<short summary>", "findings": ["<cross-file issue 1>", '
            '{"title": "<issue>", "details": "<details>", "path": "<optional file>", '
            '"line": <optional new-file line>, "priority": "low|medium|high"}]}',
            'If there are no cross-file issues, return: {"summary": "No cross-file issues detected.", "findings": []}',
            "Focus on system-level issues, API changes, contracts, and consistency across files.",
            "Only give a path and line when the issue is tied to one added or unchanged line.",
            "",
            self.mode_line(),
            "",
        ]
        sections.extend(self._instruction_block())
        sections.extend(self._goal_block(goal))
        sections.extend(self._repo_block(repo_context, readme_chars=2000, tree_chars=10000))
        sections.extend(self._pr_block(pr))
        sections.extend([
            "Combined diff (multiple files):",
            "```diff",
            global_diff,
            "```",
        ])
        return "\n".join(sections)

    def build_file_prompt(
        self,
        pr: PRDetails,
        file_path: str,
        numbered_diff: str,
        global_review: Optional[GlobalReview] = None,
        goal: Optional[PRGoal] = None,
        repo_context: Optional[RepoContext] = None,
    ) -> str:
        """
        Prompt for the inline pass of one file.

        Args:
            pr: Pull request details
            file_path: Path of the reviewed file
            numbered_diff: Rendered NumberedPatch of the file
            global_review: Summary and findings of the global pass
            goal: Goal statement
            repo_context: README and file tree snippets

        Returns:
            Complete prompt string
        """
        sections = [
            "You are a senior code reviewer.",
            "Provide the response in JSON format:",
            '{"reviews": [{"lineNumber": <diff_line_number>, "endLineNumber": <optional_last_diff_line_number>, '
            '"reviewComment": "<comment>", "priority": "low|medium|high", "category": "<optional>"}]}',
            'If there are no suggestions, return: {"reviews": []}',
            "Use GitHub Markdown in comments.",
            "IMPORTANT: Never suggest adding comments to the code.",
            "The lineNumber must reference the diff line numbers shown at the left.",
            "Use endLineNumber only when the comment covers several consecutive lines of one hunk.",
            "Only use line numbers for added (+) or context (space) lines.",
            "Do not comment on deleted (-) lines or hunk headers (@@).",
            "",
            self.mode_line(),
            "",
        ]
        sections.extend(self._instruction_block())
        sections.extend(self._goal_block(goal))
        sections.extend(self._repo_block(repo_context, readme_chars=1000, tree_chars=1500))
        sections.extend(self._global_block(global_review))
        sections.extend([f"File: {file_path}", ""])
        sections.extend(self._pr_block(pr))
        sections.extend([
            "Diff (line numbers included):",
            "```diff",
            numbered_diff,
            "```",
        ])
        return "\n".join(sections)

    def _instruction_block(self) -> List[str]:
        if not self.review_instructions:
            return []
        return ["Review instructions from repository config:", self.review_instructions, ""]

    @staticmethod
    def _goal_block(goal: Optional[PRGoal]) -> List[str]:
        if goal is None:
            return []
        return [f"PR Goal: {goal.goal}", f"Context/Constraints: {goal.context}", ""]

    @staticmethod
    def _repo_block(repo_context: Optional[RepoContext], readme_chars: int, tree_chars: int) -> List[str]:
        if repo_context is None or repo_context.is_empty:
            return []
        return [
            "Repository Context:",
            "---",
            "README Snippet (truncated):",
            repo_context.readme[:readme_chars],
            "---",
            "File Structure (truncated):",
            repo_context.file_structure[:tree_chars],
            "---",
            "",
        ]

    @staticmethod
    def _global_block(global_review: Optional[GlobalReview]) -> List[str]:
        if global_review is None:
            return []
        summary = global_review.summary.strip()
        findings = [text.strip() for text in global_review.finding_texts if text.strip()]
        if not summary and not findings:
            return []

        block = ["Global PR context (cross-file):"]
        if summary:
            block.append(f"Summary: {summary}")
        if findings:
            block.append("Findings:\n- " + "\n- ".join(findings))
        block.append("")
        return block

    @staticmethod
    def _pr_block(pr: PRDetails) -> List[str]:
        return [
            f"Pull request title: {pr.title}",
            "Pull request description:",
            "---",
            pr.body or "No description provided.",
            "---",
            "",
        ]
