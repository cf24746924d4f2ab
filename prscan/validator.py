"""Inline-anchor validation for findings."""

from __future__ import annotations

import logging
from dataclasses import replace

from prscan.detectors.base import Finding
from prscan.diff_parser import DiffLine, map_lines

logger = logging.getLogger(__name__)


def validate(finding: Finding, diff_text: str) -> Finding:
    """Return the finding, demoted to summary-only if its range is not all added lines."""
    return _validate_against(finding, map_lines(finding.file, diff_text))


def validate_all(findings: list[Finding], diff_text: str) -> list[Finding]:
    """Validate findings in order, mapping each file's lines once."""
    line_maps: dict[str, list[DiffLine]] = {}
    validated: list[Finding] = []
    for finding in findings:
        if finding.file not in line_maps:
            line_maps[finding.file] = map_lines(finding.file, diff_text)
        validated.append(_validate_against(finding, line_maps[finding.file]))
    return validated


def added_line_numbers(lines: list[DiffLine]) -> set[int]:
    return {line.line_number for line in lines if line.is_added}


def _validate_against(finding: Finding, lines: list[DiffLine]) -> Finding:
    if finding.start_line < 1 or finding.start_line > finding.end_line:
        logger.warning(
            "demoting %s finding on %s: invalid range %d-%d",
            finding.detector,
            finding.file,
            finding.start_line,
            finding.end_line,
        )
        return replace(finding, can_inline=False)

    added = added_line_numbers(lines)
    missing = [
        lineno
        for lineno in range(finding.start_line, finding.end_line + 1)
        if lineno not in added
    ]
    if not missing:
        return finding

    logger.info(
        "demoting %s finding on %s:%d-%d: line %d is not an added line",
        finding.detector,
        finding.file,
        finding.start_line,
        finding.end_line,
        missing[0],
    )
    return replace(finding, can_inline=False)
