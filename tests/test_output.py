"""Output rendering and review payload tests."""

from __future__ import annotations

import json

from prscan.aggregator import FileScan, ScanResult
from prscan.detectors.base import Finding, Severity
from prscan.output import (
    build_review_comments,
    build_review_payload,
    render_human,
    render_json,
    serialize_findings,
)
from prscan.policy import Verdict, severity_counts


def test_render_human_has_verdict_counts_and_file_summary() -> None:
    findings = [
        _finding(Severity.MEDIUM, "svc.py", 4, 9, can_inline=False),
        _finding(Severity.CRITICAL, "app.py", 10, 10),
    ]
    result = _result(findings, files=[FileScan(path="app.py", added_lines=2, findings=findings)])

    output = render_human(result)
    assert "Verdict: REQUEST_CHANGES" in output
    assert "critical=1, high=0, medium=1, low=0" in output
    assert "app.py:10 (inline)" in output
    assert "svc.py:4-9 (summary-only)" in output
    assert output.index("app.py:10") < output.index("svc.py:4-9")
    assert "app.py: 2 added lines, 2 findings" in output


def test_render_json_has_stable_schema_keys() -> None:
    finding = _finding(Severity.HIGH, "src/main.py", 3, 5)
    result = _result([finding], files=[FileScan(path="src/main.py", added_lines=3, findings=[finding])])

    payload = json.loads(render_json(result, input_source="stdin", base="abc123", head="def456"))
    assert set(payload.keys()) == {"verdict", "counts", "files", "findings", "meta"}
    assert payload["verdict"] == "COMMENT"
    assert payload["counts"] == {"CRITICAL": 0, "HIGH": 1, "MEDIUM": 0, "LOW": 0}
    assert set(payload["meta"].keys()) == {
        "generated_at",
        "base",
        "head",
        "input_source",
        "version",
        "dropped_findings",
    }
    assert payload["meta"]["input_source"] == "stdin"
    assert payload["meta"]["dropped_findings"] == 0

    first_file = payload["files"][0]
    assert set(first_file.keys()) == {"path", "added_lines", "findings"}
    assert first_file["findings"] == payload["findings"]

    assert payload["findings"][0] == {
        "detector": "test_detector",
        "severity": "HIGH",
        "file": "src/main.py",
        "start_line": 3,
        "end_line": 5,
        "can_inline": True,
        "issue": "issue for src/main.py",
        "recommendation": "recommendation for src/main.py",
    }


def test_unencodable_finding_is_dropped_without_failing_batch() -> None:
    good = _finding(Severity.LOW, "a.py", 1, 1)
    bad = Finding(
        detector="test_detector",
        severity=Severity.HIGH,
        file="b.py",
        start_line=2,
        end_line=2,
        issue="broken \ud800 text",
        recommendation="n/a",
    )

    records, dropped = serialize_findings([bad, good])
    assert dropped == 1
    assert [record["file"] for record in records] == ["a.py"]

    payload = json.loads(render_json(_result([bad, good]), input_source="stdin", base=None, head=None))
    assert [item["file"] for item in payload["findings"]] == ["a.py"]
    assert payload["meta"]["dropped_findings"] == 1


def test_review_comments_anchor_single_and_multi_line_findings() -> None:
    comments = build_review_comments(
        [
            _finding(Severity.CRITICAL, "app.py", 10, 10),
            _finding(Severity.MEDIUM, "svc.py", 4, 9),
            _finding(Severity.HIGH, "svc.py", 20, 22, can_inline=False),
        ]
    )
    assert comments == [
        {
            "path": "app.py",
            "body": "**CRITICAL**: issue for app.py\n\nrecommendation for app.py",
            "line": 10,
            "side": "RIGHT",
        },
        {
            "path": "svc.py",
            "body": "**MEDIUM**: issue for svc.py\n\nrecommendation for svc.py",
            "line": 9,
            "side": "RIGHT",
            "start_line": 4,
            "start_side": "RIGHT",
        },
    ]


def test_review_payload_uses_verdict_and_lists_summary_only_findings() -> None:
    findings = [
        _finding(Severity.CRITICAL, "app.py", 10, 10),
        _finding(Severity.HIGH, "svc.py", 20, 22, can_inline=False),
    ]
    payload = build_review_payload(_result(findings))

    assert payload["event"] == "REQUEST_CHANGES"
    assert len(payload["comments"]) == 1
    assert "| CRITICAL | 1 |" in payload["body"]
    assert "`svc.py` lines 20-22" in payload["body"]

    approved = build_review_payload(_result(findings), override=Verdict.APPROVE)
    assert approved["event"] == "APPROVE"


def _result(findings: list[Finding], files: list[FileScan] | None = None) -> ScanResult:
    counts = severity_counts(findings)
    verdict = (
        Verdict.REQUEST_CHANGES
        if counts[Severity.CRITICAL] or counts[Severity.HIGH] > 1
        else Verdict.COMMENT
    )
    return ScanResult(files=files or [], findings=findings, counts=counts, verdict=verdict)


def _finding(
    severity: Severity, path: str, start: int, end: int, *, can_inline: bool = True
) -> Finding:
    return Finding(
        detector="test_detector",
        severity=severity,
        file=path,
        start_line=start,
        end_line=end,
        issue=f"issue for {path}",
        recommendation=f"recommendation for {path}",
        can_inline=can_inline,
    )
