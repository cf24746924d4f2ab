"""Review verdict policy."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from enum import Enum

from prscan.detectors.base import Finding, Severity


class Verdict(str, Enum):
    """Top-level review action."""

    REQUEST_CHANGES = "REQUEST_CHANGES"
    COMMENT = "COMMENT"
    APPROVE = "APPROVE"

    @classmethod
    def parse(cls, value: str) -> Verdict:
        normalized = value.strip().upper().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError as exc:
            choices = ", ".join(item.value.lower() for item in cls)
            raise ValueError(f"verdict must be one of: {choices}") from exc


def decide(critical_count: int, high_count: int) -> Verdict:
    """Map severity counts to a verdict. Never approves on its own."""
    if critical_count > 0:
        return Verdict.REQUEST_CHANGES
    if high_count > 1:
        return Verdict.REQUEST_CHANGES
    return Verdict.COMMENT


def severity_counts(findings: Iterable[Finding]) -> dict[Severity, int]:
    counted = Counter(finding.severity for finding in findings)
    return {severity: counted.get(severity, 0) for severity in Severity}


def decide_findings(findings: Iterable[Finding]) -> Verdict:
    counts = severity_counts(findings)
    return decide(counts[Severity.CRITICAL], counts[Severity.HIGH])


def resolve_verdict(decided: Verdict, override: Verdict | None = None) -> Verdict:
    """Apply an explicit override; this is the only route to APPROVE."""
    return override if override is not None else decided
