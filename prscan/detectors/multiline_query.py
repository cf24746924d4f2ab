"""Multi-line interpolated SQL string scanner."""

from __future__ import annotations

from re import IGNORECASE, compile

from prscan.detectors.base import (
    DEFAULT_SUPPRESSION_MARKER,
    BlockKind,
    Finding,
    OpenBlock,
    Severity,
    is_suppressed,
)
from prscan.diff_parser import DiffLine

TRIPLE_FSTRING_RE = compile(r"(?<!\w)(?:[fF][rR]?|[rR][fF])(?P<quote>\"\"\"|''')")
SQL_KEYWORD_RE = compile(r"\b(?:SELECT|INSERT|UPDATE|DELETE)\b", IGNORECASE)


class MultilineQueryDetector:
    """Flags triple-quoted f-strings carrying SQL that span several lines."""

    detector_id = "multiline_query"
    severity = Severity.CRITICAL

    def __init__(self, suppression_marker: str | None = DEFAULT_SUPPRESSION_MARKER) -> None:
        self.suppression_marker = suppression_marker

    def scan(self, path: str, lines: list[DiffLine]) -> list[Finding]:
        findings: list[Finding] = []
        block: OpenBlock | None = None
        terminator = ""
        last_lineno = 0

        for line in lines:
            last_lineno = line.line_number
            remainder = line.content
            if block is not None:
                block.accumulated_text.append(line.content)
                close_at = line.content.find(terminator)
                if close_at < 0:
                    continue
                findings.append(self._finding(path, block, line.line_number))
                block = None
                remainder = line.content[close_at + len(terminator) :]

            if not line.is_added or is_suppressed(line.content, self.suppression_marker):
                continue
            opened = self._opening_quote(remainder)
            if opened is not None:
                terminator = opened
                block = OpenBlock(kind=BlockKind.STRING_LITERAL, start_line=line.line_number)
                block.accumulated_text.append(line.content)

        if block is not None:
            findings.append(self._finding(path, block, last_lineno))
        return findings

    def _opening_quote(self, content: str) -> str | None:
        match = TRIPLE_FSTRING_RE.search(content)
        if match is None or SQL_KEYWORD_RE.search(content) is None:
            return None
        quote = match.group("quote")
        if quote in content[match.end() :]:
            return None
        return quote

    def _finding(self, path: str, block: OpenBlock, end_line: int) -> Finding:
        return Finding(
            detector=self.detector_id,
            severity=self.severity,
            file=path,
            start_line=block.start_line,
            end_line=end_line,
            issue="Multi-line SQL statement is built with string interpolation.",
            recommendation="Keep the SQL text static and pass values as bound parameters.",
        )
