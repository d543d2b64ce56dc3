"""
Unified Diff Parser

Parses raw unified diff text (as returned by the GitHub diff media type)
into files, hunks and classified lines.
"""

import re
import logging
from typing import List, Optional

from ..models.diff import DiffFile, DiffHunk, DiffLine, LineType, NO_NEWLINE_MARKER


logger = logging.getLogger(__name__)


class UnifiedDiffParser:
    """
    Parser for multi-file unified diffs.

    Tracks old/new line numbers and remaining line counts from each hunk
    header and classifies body lines by their leading marker. Fragments that
    do not belong to a file or hunk are skipped rather than treated as errors.
    """

    def __init__(self):
        """Initialize unified diff parser."""
        self.file_header_pattern = re.compile(r'^diff --git (\S+) (\S+)$')
        self.hunk_header_pattern = re.compile(r'^@@\s*-(\d+)(?:,(\d+))?\s*\+(\d+)(?:,(\d+))?\s*@@(.*)$')
        self.binary_file_pattern = re.compile(r'^Binary files? .* differ')

    def parse(self, diff_text: str) -> List[DiffFile]:
        """
        Parse diff text into structured files.

        Args:
            diff_text: Raw unified diff, possibly multi-file or empty

        Returns:
            Files in diff order; files without hunks are dropped
        """
        if not diff_text:
            return []

        self._files: List[DiffFile] = []
        self._reset_file()

        for line in diff_text.splitlines():
            if line.startswith('diff --git '):
                self._flush_file()
                self._reset_file()
                header_match = self.file_header_pattern.match(line)
                if header_match:
                    self.old_path = self._normalize_path(header_match.group(1))
                    self.new_path = self._normalize_path(header_match.group(2))
                continue

            if self.in_hunk and self._parse_body_line(line):
                continue

            if line.startswith(NO_NEWLINE_MARKER):
                if self.hunks:
                    self.hunks[-1].lines.append(DiffLine(content=line, type=LineType.NORMAL))
                continue

            if line.startswith('--- '):
                # Plain diffs without git headers start a new file here
                if self.hunks:
                    self._flush_file()
                    self._reset_file()
                self.old_path = self._path_from_marker(line[4:])
                continue

            if line.startswith('+++ '):
                self.new_path = self._path_from_marker(line[4:])
                continue

            hunk_match = self.hunk_header_pattern.match(line)
            if hunk_match:
                if not (self.new_path or self.old_path):
                    logger.debug("Skipping hunk without file header")
                    continue
                self._start_hunk(line, hunk_match)
                continue

            if self.binary_file_pattern.match(line):
                logger.debug(f"Skipping binary diff for {self.new_path or self.old_path}")

        self._flush_file()

        files = self._files
        additions = sum(diff_file.additions for diff_file in files)
        deletions = sum(diff_file.deletions for diff_file in files)
        logger.info(f"Parsed {len(files)} files from diff (+{additions} -{deletions})")
        return files

    def _reset_file(self) -> None:
        self.old_path: Optional[str] = None
        self.new_path: Optional[str] = None
        self.hunks: List[DiffHunk] = []
        self.current_hunk: Optional[DiffHunk] = None
        self.old_line = self.new_line = 0
        self.old_remaining = self.new_remaining = 0

    @property
    def in_hunk(self) -> bool:
        return self.current_hunk is not None and (self.old_remaining > 0 or self.new_remaining > 0)

    def _flush_file(self) -> None:
        # A deleted file has a /dev/null target and keeps its old path
        path = self.new_path or self.old_path
        hunks = [hunk for hunk in self.hunks if hunk.lines]
        if path and hunks:
            self._files.append(DiffFile(path=path, hunks=hunks))
        elif path:
            logger.debug(f"Dropping file without hunks: {path}")

    def _start_hunk(self, line: str, hunk_match) -> None:
        self.old_line = int(hunk_match.group(1))
        self.new_line = int(hunk_match.group(3))
        self.old_remaining = int(hunk_match.group(2) if hunk_match.group(2) is not None else 1)
        self.new_remaining = int(hunk_match.group(4) if hunk_match.group(4) is not None else 1)
        self.current_hunk = DiffHunk(header=line.rstrip())
        self.hunks.append(self.current_hunk)

    def _parse_body_line(self, line: str) -> bool:
        """Consume one hunk body line; False when the line ends the hunk early."""
        hunk = self.current_hunk

        if line.startswith('+'):
            hunk.lines.append(DiffLine(content=line, type=LineType.ADD, new_number=self.new_line))
            self.new_line += 1
            self.new_remaining -= 1
        elif line.startswith('-'):
            hunk.lines.append(DiffLine(content=line, type=LineType.DEL, old_number=self.old_line))
            self.old_line += 1
            self.old_remaining -= 1
        elif line.startswith(' ') or line == '':
            # Some tools strip the single space of empty context lines
            hunk.lines.append(DiffLine(
                content=line or ' ',
                type=LineType.NORMAL,
                old_number=self.old_line,
                new_number=self.new_line,
            ))
            self.old_line += 1
            self.new_line += 1
            self.old_remaining -= 1
            self.new_remaining -= 1
        elif line.startswith(NO_NEWLINE_MARKER):
            hunk.lines.append(DiffLine(content=line, type=LineType.NORMAL))
        else:
            logger.debug(f"Hunk ended early at: {line[:40]}")
            self.current_hunk = None
            self.old_remaining = self.new_remaining = 0
            return False
        return True

    @staticmethod
    def _path_from_marker(raw: str) -> Optional[str]:
        path = raw.split('\t', 1)[0].strip().strip('"')
        if path == '/dev/null':
            return None
        return UnifiedDiffParser._normalize_path(path)

    @staticmethod
    def _normalize_path(path: str) -> str:
        path = path.strip('"')
        if path.startswith('a/') or path.startswith('b/'):
            return path[2:]
        return path


def parse_unified_diff(diff_text: str) -> List[DiffFile]:
    """Parse raw unified diff text into files."""
    return UnifiedDiffParser().parse(diff_text)
