"""Interpolated query construction detector."""

from __future__ import annotations

from re import IGNORECASE, compile

from prscan.detectors.base import (
    DEFAULT_SUPPRESSION_MARKER,
    Finding,
    Severity,
    clip_line,
    is_suppressed,
)
from prscan.diff_parser import DiffLine

QUERY_CALL_RE = compile(
    r"\b(?:execute|executemany|executescript|query|raw)\s*\(\s*[fF][rR]?[\"']",
)
FORMAT_QUERY_RE = compile(
    r"\b(?:execute|executemany|query|raw)\s*\(\s*[\"'][^\"']*"
    r"\b(?:select|insert|update|delete)\b[^\"']*[\"']\s*(?:%|\.format\()",
    IGNORECASE,
)


class DynamicQueryDetector:
    """Flags string interpolation fed directly into a query call."""

    detector_id = "dynamic_query"
    severity = Severity.CRITICAL

    def __init__(self, suppression_marker: str | None = DEFAULT_SUPPRESSION_MARKER) -> None:
        self.suppression_marker = suppression_marker

    def scan(self, path: str, lines: list[DiffLine]) -> list[Finding]:
        findings: list[Finding] = []
        for line in lines:
            if not line.is_added or is_suppressed(line.content, self.suppression_marker):
                continue
            if QUERY_CALL_RE.search(line.content) or FORMAT_QUERY_RE.search(line.content):
                findings.append(
                    Finding(
                        detector=self.detector_id,
                        severity=self.severity,
                        file=path,
                        start_line=line.line_number,
                        end_line=line.line_number,
                        issue=(
                            "Interpolated string passed to a query call: "
                            f"`{clip_line(line.content)}`"
                        ),
                        recommendation="Use parameterized queries with bound values.",
                    )
                )
        return findings
