"""Output rendering and review submission payloads."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

import click

from prscan import __version__
from prscan.aggregator import ScanResult
from prscan.detectors.base import Finding, Severity
from prscan.policy import Verdict, resolve_verdict

logger = logging.getLogger(__name__)

COMMENT_SIDE = "RIGHT"
_VERDICT_COLORS = {
    Verdict.REQUEST_CHANGES: "red",
    Verdict.COMMENT: "yellow",
    Verdict.APPROVE: "green",
}
_SEVERITY_COLORS = {
    Severity.CRITICAL: "red",
    Severity.HIGH: "magenta",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
}


def render_human(result: ScanResult) -> str:
    """Render a compact colorized summary."""
    lines: list[str] = [
        click.style(
            f"Verdict: {result.verdict.value}",
            fg=_VERDICT_COLORS[result.verdict],
            bold=True,
        ),
        _format_counts(result.counts),
    ]

    if result.findings:
        lines.append(click.style("Findings:", bold=True))
        for index, finding in enumerate(_ranked(result.findings), start=1):
            anchor = "inline" if finding.can_inline else "summary-only"
            label = click.style(finding.severity.value, fg=_SEVERITY_COLORS[finding.severity])
            lines.append(
                f"{index}. [{label}] {finding.file}:{_format_range(finding)} "
                f"({anchor}) {finding.issue}"
            )
            lines.append(f"   follow-up: {finding.recommendation}")

    if result.files:
        lines.append(click.style("Per-file summary:", bold=True))
        for file_scan in result.files:
            lines.append(
                f"- {file_scan.path}: {file_scan.added_lines} added lines, "
                f"{len(file_scan.findings)} findings"
            )
    return "\n".join(lines)


def render_json(
    result: ScanResult,
    *,
    input_source: str,
    base: str | None,
    head: str | None,
) -> str:
    """Render stable JSON output for CI and automation."""
    payload = build_json_payload(result, input_source=input_source, base=base, head=head)
    return json.dumps(payload, sort_keys=True)


def build_json_payload(
    result: ScanResult,
    *,
    input_source: str,
    base: str | None,
    head: str | None,
) -> dict[str, Any]:
    """Build stable JSON payload for CI and automation."""
    findings, dropped = serialize_findings(result.findings)
    files = [
        {
            "path": file_scan.path,
            "added_lines": file_scan.added_lines,
            "findings": [record for record in findings if record["file"] == file_scan.path],
        }
        for file_scan in result.files
    ]

    return {
        "verdict": result.verdict.value,
        "counts": {severity.value: count for severity, count in result.counts.items()},
        "files": files,
        "findings": findings,
        "meta": {
            "generated_at": datetime.now(tz=UTC)
            .replace(microsecond=0)
            .isoformat()
            .replace("+00:00", "Z"),
            "base": base,
            "head": head,
            "input_source": input_source,
            "version": __version__,
            "dropped_findings": dropped,
        },
    }


def serialize_findings(findings: list[Finding]) -> tuple[list[dict[str, Any]], int]:
    """Serialize findings one at a time, dropping any record that cannot be encoded.

    Returns the encodable records and the number dropped.
    """
    records: list[dict[str, Any]] = []
    dropped = 0
    for finding in findings:
        record = _serialize_finding(finding)
        try:
            json.dumps(record, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as exc:
            dropped += 1
            logger.warning(
                "dropping %s finding on %s:%s from output: %s",
                finding.detector,
                finding.file,
                _format_range(finding),
                exc,
            )
            continue
        records.append(record)
    return (records, dropped)


def build_review_comments(findings: list[Finding]) -> list[dict[str, Any]]:
    """Build inline review comments for findings that can be anchored.

    Multi-line findings carry ``start_line``; single-line findings anchor to
    ``line`` only.
    """
    comments: list[dict[str, Any]] = []
    encodable, _ = serialize_findings([finding for finding in findings if finding.can_inline])
    for record in encodable:
        comment: dict[str, Any] = {
            "path": record["file"],
            "body": _comment_body(record),
            "line": record["end_line"],
            "side": COMMENT_SIDE,
        }
        if record["start_line"] < record["end_line"]:
            comment["start_line"] = record["start_line"]
            comment["start_side"] = COMMENT_SIDE
        comments.append(comment)
    return comments


def build_review_payload(result: ScanResult, override: Verdict | None = None) -> dict[str, Any]:
    """Build the top-level review submission: event, summary body and inline comments."""
    verdict = resolve_verdict(result.verdict, override)
    return {
        "event": verdict.value,
        "body": build_summary_markdown(result),
        "comments": build_review_comments(result.inline_findings),
    }


def build_summary_markdown(result: ScanResult) -> str:
    """Summary review body; findings without an inline anchor are listed here."""
    lines = [
        "## Automated review",
        "",
        "| Severity | Count |",
        "|---|---|",
    ]
    for severity in Severity:
        lines.append(f"| {severity.value} | {result.counts.get(severity, 0)} |")

    summary_only, _ = serialize_findings(result.summary_only_findings)
    if summary_only:
        lines.extend(["", "### Findings outside the changed lines", ""])
        for record in summary_only:
            lines.append(
                f"- **{record['severity']}** `{record['file']}` "
                f"lines {record['start_line']}-{record['end_line']}: {record['issue']} "
                f"{record['recommendation']}"
            )
    return "\n".join(lines)


def _serialize_finding(finding: Finding) -> dict[str, Any]:
    return {
        "detector": finding.detector,
        "severity": finding.severity.value,
        "file": finding.file,
        "start_line": finding.start_line,
        "end_line": finding.end_line,
        "can_inline": finding.can_inline,
        "issue": finding.issue,
        "recommendation": finding.recommendation,
    }


def _comment_body(record: dict[str, Any]) -> str:
    return f"**{record['severity']}**: {record['issue']}\n\n{record['recommendation']}"


def _format_counts(counts: dict[Severity, int]) -> str:
    return ", ".join(f"{severity.value.lower()}={counts.get(severity, 0)}" for severity in Severity)


def _format_range(finding: Finding) -> str:
    if finding.is_single_line:
        return str(finding.start_line)
    return f"{finding.start_line}-{finding.end_line}"


def _ranked(findings: list[Finding]) -> list[Finding]:
    return sorted(findings, key=lambda item: item.severity.rank, reverse=True)
