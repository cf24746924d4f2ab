"""Scan orchestration: map lines, run detectors, aggregate and validate findings."""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from prscan.detectors import default_detectors
from prscan.detectors.base import Detector, Finding, Severity
from prscan.diff_parser import DiffLine, list_changed_files, map_lines
from prscan.policy import Verdict, decide, severity_counts
from prscan.validator import validate_all

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FileScan:
    """Per-file scan summary."""

    path: str
    added_lines: int = 0
    findings: list[Finding] = field(default_factory=list)


@dataclass(slots=True)
class ScanResult:
    """Validated findings plus the verdict they imply."""

    files: list[FileScan]
    findings: list[Finding]
    counts: dict[Severity, int]
    verdict: Verdict

    @property
    def inline_findings(self) -> list[Finding]:
        return [finding for finding in self.findings if finding.can_inline]

    @property
    def summary_only_findings(self) -> list[Finding]:
        return [finding for finding in self.findings if not finding.can_inline]


def aggregate(outputs: Iterable[list[Finding]]) -> list[Finding]:
    """Concatenate detector outputs in order.

    Overlapping ranges from different detectors are kept; each names a
    distinct issue.
    """
    findings: list[Finding] = []
    for output in outputs:
        findings.extend(output)
    return findings


def scan_file(path: str, diff_text: str, detectors: list[Detector]) -> list[Finding]:
    """Run every detector over one file's line map."""
    lines = map_lines(path, diff_text)
    if not lines:
        return []
    return _run_detectors(path, lines, detectors)


def _run_detectors(path: str, lines: list[DiffLine], detectors: list[Detector]) -> list[Finding]:
    outputs = [detector.scan(path, lines) for detector in detectors]
    for detector, output in zip(detectors, outputs):
        if output:
            logger.debug("%s: %s produced %d finding(s)", path, detector.detector_id, len(output))
    return aggregate(outputs)


def scan_diff(
    diff_text: str,
    detectors: list[Detector] | None = None,
    *,
    include: list[str] | None = None,
    exclude: list[str] | None = None,
) -> ScanResult:
    """Scan every changed file, validate anchors and decide a verdict."""
    active = detectors if detectors is not None else default_detectors()
    paths = filter_paths(list_changed_files(diff_text), includes=include, excludes=exclude)

    file_scans: list[FileScan] = []
    per_file: list[list[Finding]] = []
    for path in paths:
        lines = map_lines(path, diff_text)
        if not lines:
            logger.debug("skipping %s: no mapped lines", path)
            continue
        per_file.append(_run_detectors(path, lines, active))
        file_scans.append(
            FileScan(path=path, added_lines=sum(1 for line in lines if line.is_added))
        )

    findings = validate_all(aggregate(per_file), diff_text)
    by_path = {file_scan.path: file_scan for file_scan in file_scans}
    for finding in findings:
        by_path[finding.file].findings.append(finding)

    counts = severity_counts(findings)
    verdict = decide(counts[Severity.CRITICAL], counts[Severity.HIGH])
    logger.info(
        "scanned %d file(s): %d finding(s), verdict %s",
        len(file_scans),
        len(findings),
        verdict.value,
    )
    return ScanResult(files=file_scans, findings=findings, counts=counts, verdict=verdict)


def filter_paths(
    paths: list[str], *, includes: list[str] | None, excludes: list[str] | None
) -> list[str]:
    filtered: list[str] = []
    for path in paths:
        if includes and not any(fnmatch.fnmatch(path, pattern) for pattern in includes):
            continue
        if excludes and any(fnmatch.fnmatch(path, pattern) for pattern in excludes):
            continue
        filtered.append(path)
    return filtered
