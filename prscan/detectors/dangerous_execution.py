"""Dangerous dynamic execution and deserialization detector."""

from __future__ import annotations

from re import Pattern, compile

from prscan.detectors.base import Finding, Severity, clip_line
from prscan.diff_parser import DiffLine

PATTERNS: list[tuple[Pattern[str], str, str]] = [
    (
        compile(r"(?<![\w.])eval\s*\("),
        "Dynamic eval usage added.",
        "Avoid eval; parse input explicitly (e.g. ast.literal_eval for literals).",
    ),
    (
        compile(r"(?<![\w.])exec\s*\("),
        "Dynamic exec usage added.",
        "Replace exec with explicit dispatch logic.",
    ),
    (
        compile(r"\bpickle\.loads?\s*\("),
        "Unsafe deserialization path added.",
        "Avoid unpickling untrusted data; use a data-only format such as JSON.",
    ),
    (
        compile(r"\bmarshal\.loads?\s*\("),
        "Unsafe deserialization path added.",
        "Avoid unmarshalling untrusted data.",
    ),
    (
        compile(r"\byaml\.load\s*\((?!.*Loader\s*=\s*(?:yaml\.)?(?:Safe|CSafe)Loader)"),
        "Potentially unsafe YAML load usage added.",
        "Use yaml.safe_load or pass SafeLoader explicitly.",
    ),
    (
        compile(r"\bos\.(?:system|popen)\s*\("),
        "Shell execution path added.",
        "Use subprocess with an argument list and no shell.",
    ),
    (
        compile(r"\bsubprocess\.\w+\s*\(.*\bshell\s*=\s*True"),
        "Subprocess shell execution enabled.",
        "Avoid shell=True unless inputs are trusted; pass an argument list instead.",
    ),
]


def find_dangerous_primitive(content: str) -> tuple[str, str] | None:
    """Return (message, recommendation) for the first dangerous primitive in the line."""
    for pattern, message, recommendation in PATTERNS:
        if pattern.search(content):
            return (message, recommendation)
    return None


class DangerousExecutionDetector:
    """Finds eval/exec, unsafe deserialization and shell invocation in added lines."""

    detector_id = "dangerous_execution"
    severity = Severity.HIGH

    def scan(self, path: str, lines: list[DiffLine]) -> list[Finding]:
        findings: list[Finding] = []
        for line in lines:
            if not line.is_added:
                continue
            hit = find_dangerous_primitive(line.content)
            if hit is None:
                continue
            message, recommendation = hit
            findings.append(
                Finding(
                    detector=self.detector_id,
                    severity=self.severity,
                    file=path,
                    start_line=line.line_number,
                    end_line=line.line_number,
                    issue=f"{message} `{clip_line(line.content)}`",
                    recommendation=recommendation,
                )
            )
        return findings
