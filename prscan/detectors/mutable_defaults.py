"""Mutable default argument detector."""

from __future__ import annotations

from re import compile

from prscan.detectors.base import Finding, Severity
from prscan.diff_parser import DiffLine

MUTABLE_DEFAULT_RE = compile(
    r"^\s*(?:async\s+)?def\s+\w+\s*\(.*=\s*(?:\[|\{|list\(\)|dict\(\)|set\(\))"
)


def has_mutable_default(content: str) -> bool:
    return MUTABLE_DEFAULT_RE.match(content) is not None


class MutableDefaultDetector:
    """Flags function declarations whose defaults are shared mutable literals."""

    detector_id = "mutable_default"
    severity = Severity.MEDIUM

    def scan(self, path: str, lines: list[DiffLine]) -> list[Finding]:
        return [
            Finding(
                detector=self.detector_id,
                severity=self.severity,
                file=path,
                start_line=line.line_number,
                end_line=line.line_number,
                issue="Mutable default argument is shared across calls.",
                recommendation="Default to None and create the container inside the function.",
            )
            for line in lines
            if line.is_added and has_mutable_default(line.content)
        ]
