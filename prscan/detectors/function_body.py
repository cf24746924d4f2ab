"""Function-body scanner for mutable defaults that are also built up in the body."""

from __future__ import annotations

from re import MULTILINE, compile

from prscan.detectors.base import BlockKind, Finding, OpenBlock, Severity
from prscan.detectors.blocks import DeclarationBlockDetector
from prscan.detectors.mutable_defaults import has_mutable_default

MUTABLE_ASSIGN_RE = compile(
    r"^\s*[\w.]+(?:\[[^\]]*\])?\s*(?::\s*[^=\n]+)?=\s*(?:\[|\{|list\(\)|dict\(\)|set\(\))",
    MULTILINE,
)


class FunctionBodyDetector(DeclarationBlockDetector):
    """Flags whole functions that take a mutable default and assign mutable literals."""

    detector_id = "function_body"
    severity = Severity.MEDIUM
    kind = BlockKind.FUNCTION

    def opens_block(self, content: str) -> bool:
        return has_mutable_default(content)

    def judge(self, path: str, block: OpenBlock, end_line: int) -> Finding | None:
        if MUTABLE_ASSIGN_RE.search(block.body()) is None:
            return None
        return Finding(
            detector=self.detector_id,
            severity=self.severity,
            file=path,
            start_line=block.start_line,
            end_line=end_line,
            issue="Function with a mutable default argument also builds mutable state.",
            recommendation=(
                "Default to None, create containers per call, and avoid mutating shared "
                "defaults."
            ),
        )
