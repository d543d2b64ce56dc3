"""
Diff Data Models

Structured unified-diff data and the numbered, model-facing view of one file
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set


NO_NEWLINE_MARKER = "\\ No newline"


class LineType(str, Enum):
    """Kind of a diff body line"""
    ADD = "add"
    DEL = "del"
    NORMAL = "normal"


@dataclass
class DiffLine:
    """Single body line of a hunk, marker included in content"""
    content: str
    type: LineType
    old_number: Optional[int] = None
    new_number: Optional[int] = None

    @property
    def is_no_newline_marker(self) -> bool:
        return self.content.startswith(NO_NEWLINE_MARKER)


@dataclass
class DiffHunk:
    """Hunk with its verbatim @@ header"""
    header: str
    lines: List[DiffLine] = field(default_factory=list)


@dataclass
class DiffFile:
    """File changes; path is normalized without a/ or b/ prefixes"""
    path: str
    hunks: List[DiffHunk] = field(default_factory=list)

    def __post_init__(self):
        if not self.path:
            raise ValueError("File path cannot be empty")

    @property
    def additions(self) -> int:
        return sum(1 for hunk in self.hunks for line in hunk.lines if line.type == LineType.ADD)

    @property
    def deletions(self) -> int:
        return sum(1 for hunk in self.hunks for line in hunk.lines if line.type == LineType.DEL)


@dataclass
class LineMeta:
    """Bookkeeping for one rendered virtual line.

    position counts the lines shown to the model, diff_position counts every
    line of the real diff including the ones hidden by truncation.
    """
    position: int
    diff_position: int
    reviewable: bool
    hunk_index: int
    content: str
    file_line_number: Optional[int] = None


@dataclass
class NumberedPatch:
    """Rendered lines of one file plus the maps needed to resolve anchors"""
    lines: List[str] = field(default_factory=list)
    line_meta: Dict[int, LineMeta] = field(default_factory=dict)
    hunk_positions: Dict[int, List[int]] = field(default_factory=dict)

    def render(self) -> str:
        return "\n".join(self.lines)

    def reviewable_lines(self) -> Set[int]:
        """New-file line numbers a comment may anchor to"""
        return {
            meta.file_line_number
            for meta in self.line_meta.values()
            if meta.reviewable and meta.file_line_number is not None
        }
