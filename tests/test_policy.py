"""Verdict policy tests."""

from __future__ import annotations

import pytest

from prscan.detectors.base import Finding, Severity
from prscan.policy import Verdict, decide, decide_findings, resolve_verdict, severity_counts


@pytest.mark.parametrize(
    ("critical", "high", "expected"),
    [
        (0, 0, Verdict.COMMENT),
        (1, 0, Verdict.REQUEST_CHANGES),
        (0, 2, Verdict.REQUEST_CHANGES),
        (0, 1, Verdict.COMMENT),
        (3, 5, Verdict.REQUEST_CHANGES),
    ],
)
def test_decide(critical: int, high: int, expected: Verdict) -> None:
    assert decide(critical, high) is expected


def test_decide_findings_counts_only_critical_and_high() -> None:
    findings = [_finding(Severity.MEDIUM) for _ in range(10)] + [_finding(Severity.HIGH)]
    assert decide_findings(findings) is Verdict.COMMENT
    assert decide_findings(findings + [_finding(Severity.HIGH)]) is Verdict.REQUEST_CHANGES


def test_severity_counts_include_every_severity() -> None:
    counts = severity_counts([_finding(Severity.LOW), _finding(Severity.LOW)])
    assert counts == {
        Severity.CRITICAL: 0,
        Severity.HIGH: 0,
        Severity.MEDIUM: 0,
        Severity.LOW: 2,
    }


def test_approve_only_through_override() -> None:
    assert resolve_verdict(Verdict.COMMENT) is Verdict.COMMENT
    assert resolve_verdict(Verdict.REQUEST_CHANGES, Verdict.APPROVE) is Verdict.APPROVE


def test_verdict_parse() -> None:
    assert Verdict.parse("request-changes") is Verdict.REQUEST_CHANGES
    assert Verdict.parse("approve") is Verdict.APPROVE
    with pytest.raises(ValueError, match="verdict must be one of"):
        Verdict.parse("merge")


def _finding(severity: Severity) -> Finding:
    return Finding(
        detector="x",
        severity=severity,
        file="a.py",
        start_line=1,
        end_line=1,
        issue="i",
        recommendation="r",
    )
