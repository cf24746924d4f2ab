"""Shared scanning loop for declaration-body detectors."""

from __future__ import annotations

import logging

from prscan.detectors.base import (
    BlockBoundaryDetector,
    BlockKind,
    Finding,
    KeywordBoundaryDetector,
    OpenBlock,
    Severity,
)
from prscan.diff_parser import DiffLine

logger = logging.getLogger(__name__)


class DeclarationBlockDetector:
    """Tracks one declaration body at a time and judges it when the block closes.

    A block opens on an added line accepted by ``opens_block`` and closes on
    the next line the boundary detector reports as a new top-level construct,
    or when the scan runs out of lines. Only added lines are accumulated.
    """

    detector_id: str
    severity: Severity
    kind: BlockKind

    def __init__(self, boundary: BlockBoundaryDetector | None = None) -> None:
        self.boundary = boundary or KeywordBoundaryDetector()

    def opens_block(self, content: str) -> bool:
        raise NotImplementedError

    def judge(self, path: str, block: OpenBlock, end_line: int) -> Finding | None:
        raise NotImplementedError

    def scan(self, path: str, lines: list[DiffLine]) -> list[Finding]:
        findings: list[Finding] = []
        block: OpenBlock | None = None
        last_lineno = 0

        for line in lines:
            if block is not None and self.boundary.is_new_top_level(line.content):
                self._close(path, block, line.line_number - 1, findings)
                block = None

            if block is None:
                if line.is_added and self.opens_block(line.content):
                    block = OpenBlock(kind=self.kind, start_line=line.line_number)
            elif line.is_added:
                block.accumulated_text.append(line.content)
            last_lineno = line.line_number

        if block is not None:
            self._close(path, block, last_lineno, findings)
        return findings

    def _close(self, path: str, block: OpenBlock, end_line: int, findings: list[Finding]) -> None:
        finding = self.judge(path, block, end_line)
        logger.debug(
            "%s block %s:%d-%d closed (%s)",
            block.kind.value,
            path,
            block.start_line,
            end_line,
            "flagged" if finding is not None else "clean",
        )
        if finding is not None:
            findings.append(finding)
