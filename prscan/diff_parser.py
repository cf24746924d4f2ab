"""Unified diff line mapping."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from re import Match, compile

logger = logging.getLogger(__name__)

HUNK_HEADER_RE = compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@(?P<section>.*)$"
)
DEV_NULL = "/dev/null"


class Side(str, Enum):
    """Which side of the diff a materialized line comes from."""

    ADDED = "added"
    CONTEXT = "context"


@dataclass(frozen=True, slots=True)
class DiffLine:
    """A line that exists in the new version of a file."""

    line_number: int
    side: Side
    content: str

    @property
    def is_added(self) -> bool:
        return self.side is Side.ADDED


def map_lines(file_path: str, diff_text: str) -> list[DiffLine]:
    """Map one file's hunks to new-file line numbers.

    Only added and context lines are returned; removed lines have no
    coordinate in the new file. A file that does not appear in the diff, or
    appears without hunks, maps to an empty list.
    """
    mapped = [
        line
        for section in _split_sections(diff_text)
        if section.path == file_path and not section.deleted
        for line in section.lines
    ]
    logger.debug("mapped %d line(s) for %s", len(mapped), file_path)
    return mapped


def list_changed_files(diff_text: str) -> list[str]:
    """Return new-side paths of files touched by the diff, in source order.

    Deleted files are left out since they have no new-side lines to anchor to.
    """
    paths: list[str] = []
    for section in _split_sections(diff_text):
        if section.path and not section.deleted and section.path not in paths:
            paths.append(section.path)
    return paths


@dataclass(slots=True)
class _FileSection:
    """One file's part of a diff, with its new-side lines."""

    path: str | None
    deleted: bool = False
    has_new_header: bool = False
    lines: list[DiffLine] = field(default_factory=list)


@dataclass(slots=True)
class _HunkCursor:
    old_left: int = 0
    new_left: int = 0
    new_lineno: int = 0
    open: bool = False

    @property
    def exhausted(self) -> bool:
        return self.old_left <= 0 and self.new_left <= 0


def _split_sections(diff_text: str) -> list[_FileSection]:
    """Split a diff into per-file sections.

    Hunk bodies are consumed by their header counts, so ``---``/``+++`` lines
    inside a hunk are removed and added lines, not file headers. The ``+++``
    path names the file; the ``diff --git`` header is only a fallback for
    sections without one (binary, mode-only or rename-only changes).
    """
    lines = diff_text.splitlines()
    sections: list[_FileSection] = []
    section: _FileSection | None = None
    cursor = _HunkCursor()
    index = 0

    while index < len(lines):
        raw_line = lines[index]
        index += 1

        if not cursor.exhausted and _is_body_line(raw_line):
            _consume_body_line(section, cursor, raw_line)
            continue

        if raw_line.startswith("diff --git "):
            section = _FileSection(path=_header_new_path(raw_line))
            sections.append(section)
            cursor = _HunkCursor()
            continue

        if raw_line.startswith("--- ") and index < len(lines) and lines[index].startswith("+++ "):
            if section is None or section.has_new_header:
                section = _FileSection(path=None)
                sections.append(section)
            new_path = _parse_path(lines[index][4:])
            index += 1
            section.has_new_header = True
            if new_path == DEV_NULL:
                section.deleted = True
            else:
                section.path = new_path
            cursor = _HunkCursor()
            continue

        if raw_line.startswith("@@ "):
            if section is None:
                section = _FileSection(path=None)
                sections.append(section)
            cursor = _parse_hunk_header(raw_line)
            continue

        if cursor.open and raw_line[:1] in {"+", "-", " ", "\\"}:
            # Body overrunning its header counts.
            _consume_body_line(section, cursor, raw_line)
            continue

        if section is not None and not section.has_new_header:
            for prefix in ("rename to ", "copy to "):
                if raw_line.startswith(prefix):
                    section.path = raw_line[len(prefix) :]

    return sections


def _is_body_line(line: str) -> bool:
    return line == "" or line[:1] in {"+", "-", " ", "\\"}


def _consume_body_line(
    section: _FileSection | None, cursor: _HunkCursor, raw_line: str
) -> None:
    if raw_line.startswith("\\"):
        return
    if raw_line.startswith("-"):
        cursor.old_left -= 1
        return

    cursor.new_left -= 1
    cursor.new_lineno += 1
    if raw_line.startswith("+"):
        side = Side.ADDED
    else:
        cursor.old_left -= 1
        side = Side.CONTEXT
    if section is not None:
        section.lines.append(DiffLine(cursor.new_lineno, side, raw_line[1:]))


def _header_new_path(line: str) -> str | None:
    rest = line[len("diff --git ") :]
    # Unquoted paths may contain spaces; an unchanged path splits evenly.
    if rest.startswith("a/") and len(rest) % 2 == 1:
        half = len(rest) // 2
        old_path, new_path = rest[:half], rest[half + 1 :]
        if rest[half] == " " and new_path.startswith("b/") and old_path[2:] == new_path[2:]:
            return new_path[2:]
    if " b/" in rest:
        return rest.rsplit(" b/", 1)[1]
    parts = rest.split()
    if len(parts) < 2:
        return None
    return _strip_ab_prefix(parts[-1])


def _parse_path(value: str) -> str:
    token = value.strip().split("\t", 1)[0]
    return _strip_ab_prefix(token)


def _strip_ab_prefix(path: str) -> str:
    if path.startswith("a/") or path.startswith("b/"):
        return path[2:]
    return path


def _parse_hunk_header(header: str) -> _HunkCursor:
    match: Match[str] | None = HUNK_HEADER_RE.match(header)
    if match is None:
        raise ValueError(f"Invalid hunk header: {header}")
    old_count = match.group("old_count")
    new_count = match.group("new_count")
    return _HunkCursor(
        old_left=int(old_count) if old_count is not None else 1,
        new_left=int(new_count) if new_count is not None else 1,
        new_lineno=int(match.group("new_start")) - 1,
        open=True,
    )
