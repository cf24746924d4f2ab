"""Class-body scanner for dangerous primitives."""

from __future__ import annotations

from re import compile

from prscan.detectors.base import BlockKind, Finding, OpenBlock, Severity
from prscan.detectors.blocks import DeclarationBlockDetector
from prscan.detectors.dangerous_execution import find_dangerous_primitive

CLASS_DECL_RE = compile(r"^\s*class\s+\w+")


class ClassBodyDetector(DeclarationBlockDetector):
    """Flags added classes whose body uses eval/exec, unsafe loads or a shell."""

    detector_id = "class_body"
    severity = Severity.HIGH
    kind = BlockKind.CLASS

    def opens_block(self, content: str) -> bool:
        return CLASS_DECL_RE.match(content) is not None

    def judge(self, path: str, block: OpenBlock, end_line: int) -> Finding | None:
        for content in block.accumulated_text:
            hit = find_dangerous_primitive(content)
            if hit is None:
                continue
            message, recommendation = hit
            return Finding(
                detector=self.detector_id,
                severity=self.severity,
                file=path,
                start_line=block.start_line,
                end_line=end_line,
                issue=f"Class body uses a dangerous primitive. {message}",
                recommendation=recommendation,
            )
        return None
