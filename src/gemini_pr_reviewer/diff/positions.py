"""
Comment Position Resolution

Maps virtual line numbers chosen by the model onto new-file anchor lines.
The search never leaves the hunk of the referenced line.
"""

from typing import Optional

from ..models.diff import NumberedPatch


def resolve_comment_position(patch: NumberedPatch, virtual_position: int) -> Optional[int]:
    """
    Resolve the start of a comment.

    Returns the anchor of the referenced line when it is reviewable, otherwise
    the anchor of the next reviewable line in the same hunk, or None.
    """
    meta = patch.line_meta.get(virtual_position)
    if meta is None:
        return None
    if meta.reviewable:
        return meta.file_line_number

    for position in patch.hunk_positions.get(meta.hunk_index, []):
        if position <= virtual_position:
            continue
        candidate = patch.line_meta.get(position)
        if candidate is not None and candidate.reviewable:
            return candidate.file_line_number

    return None


def resolve_end_position(patch: NumberedPatch, virtual_position: int) -> Optional[int]:
    """
    Resolve the end of a comment range.

    Like resolve_comment_position but scans backward, so an invalid end
    shrinks the range instead of growing it.
    """
    meta = patch.line_meta.get(virtual_position)
    if meta is None:
        return None
    if meta.reviewable:
        return meta.file_line_number

    for position in reversed(patch.hunk_positions.get(meta.hunk_index, [])):
        if position >= virtual_position:
            continue
        candidate = patch.line_meta.get(position)
        if candidate is not None and candidate.reviewable:
            return candidate.file_line_number

    return None
