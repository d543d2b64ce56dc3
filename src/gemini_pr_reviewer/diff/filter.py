"""
Diff File Filter

Include/exclude glob filtering and file-count capping
"""

import logging
from typing import Iterable, List

from wcmatch import glob

from ..models.diff import DiffFile


logger = logging.getLogger(__name__)

# "**" spans directories, dotfiles match, and slash-free patterns match the basename
GLOB_FLAGS = glob.GLOBSTAR | glob.DOTGLOB | glob.MATCHBASE


def matches_pattern(path: str, pattern: str) -> bool:
    """
    Check a path against one glob pattern.

    A pattern without a slash is matched against the base filename. A
    single "*" stays within one directory, and "**/" matches zero or more.
    """
    pattern = pattern.strip()
    if not pattern:
        return False
    if pattern.startswith('./'):
        pattern = pattern[2:]
    return glob.globmatch(path, pattern, flags=GLOB_FLAGS)


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(matches_pattern(path, pattern) for pattern in patterns)


def filter_diff_files(
    files: List[DiffFile],
    include_patterns: Iterable[str] = (),
    exclude_patterns: Iterable[str] = (),
    max_files: int = 50,
) -> List[DiffFile]:
    """
    Filter parsed files for review.

    Args:
        files: Parsed diff files in diff order
        include_patterns: Allowlist; empty keeps every file as a candidate
        exclude_patterns: Denylist, applied after and overriding the allowlist
        max_files: Maximum number of files kept, in diff order

    Returns:
        Filtered files
    """
    include_patterns = list(include_patterns)
    exclude_patterns = list(exclude_patterns)
    filtered: List[DiffFile] = []

    for diff_file in files:
        if len(filtered) >= max_files:
            break

        if include_patterns and not matches_any(diff_file.path, include_patterns):
            logger.debug(f"Not included: {diff_file.path}")
            continue

        if exclude_patterns and matches_any(diff_file.path, exclude_patterns):
            logger.debug(f"Excluded: {diff_file.path}")
            continue

        filtered.append(diff_file)

    logger.info(f"Filtered to {len(filtered)} of {len(files)} files")
    return filtered
