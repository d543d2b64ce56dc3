"""
Patch Numbering

Renders size-bounded views of the diff for the model: a numbered view per
file that keeps the anchor bookkeeping, and a plain multi-file view used only
as cross-file context.
"""

import logging
from typing import List

from ..models.diff import DiffFile, LineMeta, LineType, NumberedPatch


logger = logging.getLogger(__name__)


def build_numbered_patch(
    diff_file: DiffFile,
    max_hunks_per_file: int,
    max_lines_per_hunk: int,
) -> NumberedPatch:
    """
    Render one file's hunks with virtual line numbers.

    position advances once per emitted line; diff_position advances once per
    real line of the diff, including body lines hidden by the per-hunk cap.
    Both are incremented here in the same pass.

    Args:
        diff_file: Parsed file
        max_hunks_per_file: Hunks rendered, in order
        max_lines_per_hunk: Body lines rendered per hunk

    Returns:
        NumberedPatch with rendered lines, per-line metadata and per-hunk positions
    """
    patch = NumberedPatch()
    position = 0
    diff_position = 0

    for hunk_index, hunk in enumerate(diff_file.hunks[:max_hunks_per_file]):
        diff_position += 1
        position += 1
        patch.lines.append(f"{position} | {hunk.header}")
        patch.line_meta[position] = LineMeta(
            position=position,
            diff_position=diff_position,
            reviewable=False,
            hunk_index=hunk_index,
            content=hunk.header,
        )
        positions = [position]

        for index, line in enumerate(hunk.lines):
            diff_position += 1
            if index >= max_lines_per_hunk:
                continue

            position += 1
            patch.lines.append(f"{position} | {line.content}")
            reviewable = line.type in (LineType.ADD, LineType.NORMAL) and not line.is_no_newline_marker
            patch.line_meta[position] = LineMeta(
                position=position,
                diff_position=diff_position,
                reviewable=reviewable,
                hunk_index=hunk_index,
                content=line.content,
                file_line_number=line.new_number,
            )
            positions.append(position)

        patch.hunk_positions[hunk_index] = positions

    if len(diff_file.hunks) > max_hunks_per_file:
        logger.debug(f"{diff_file.path}: rendered {max_hunks_per_file} of {len(diff_file.hunks)} hunks")

    return patch


def build_global_diff(
    files: List[DiffFile],
    max_hunks_per_file: int,
    max_lines_per_hunk: int,
    max_lines: int,
) -> str:
    """
    Render a plain diff across all files within a total line budget.

    Rendering stops as soon as the budget is used up, even mid-hunk.
    """
    if max_lines <= 0:
        return ""

    lines: List[str] = []

    def push(line: str) -> bool:
        if len(lines) >= max_lines:
            return False
        lines.append(line)
        return True

    for diff_file in files:
        if not push(f"File: {diff_file.path}"):
            break
        for hunk in diff_file.hunks[:max_hunks_per_file]:
            if not push(hunk.header):
                return "\n".join(lines)
            for line in hunk.lines[:max_lines_per_hunk]:
                if not push(line.content):
                    return "\n".join(lines)

    return "\n".join(lines)
