"""
Diff Processing

Unified diff parsing, filtering, numbered rendering and anchor resolution.
"""

from .parser import UnifiedDiffParser, parse_unified_diff
from .filter import filter_diff_files, matches_pattern
from .numbering import build_global_diff, build_numbered_patch
from .positions import resolve_comment_position, resolve_end_position

__all__ = [
    'UnifiedDiffParser',
    'parse_unified_diff',
    'filter_diff_files',
    'matches_pattern',
    'build_global_diff',
    'build_numbered_patch',
    'resolve_comment_position',
    'resolve_end_position',
]
