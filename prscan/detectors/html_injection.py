"""Raw HTML injection detector for UI code."""

from __future__ import annotations

from pathlib import PurePosixPath
from re import compile

from prscan.detectors.base import Finding, Severity, clip_line
from prscan.diff_parser import DiffLine

UI_SUFFIXES = {".js", ".jsx", ".ts", ".tsx", ".vue", ".svelte", ".html", ".htm"}
PATTERNS = [
    (compile(r"dangerouslysetinnerhtml"), "React `dangerouslySetInnerHTML` renders raw HTML."),
    (compile(r"\.innerhtml\s*\+?=(?!=)"), "Assignment to `innerHTML` renders raw HTML."),
    (compile(r"\.outerhtml\s*\+?=(?!=)"), "Assignment to `outerHTML` renders raw HTML."),
    (compile(r"\binsertadjacenthtml\s*\("), "`insertAdjacentHTML` renders raw HTML."),
    (compile(r"\bdocument\.write(?:ln)?\s*\("), "`document.write` injects raw markup."),
    (compile(r"\bv-html\b"), "Vue `v-html` renders raw HTML."),
]


class HtmlInjectionDetector:
    """Flags raw-HTML injection APIs in UI source files."""

    detector_id = "html_injection"
    severity = Severity.HIGH

    def scan(self, path: str, lines: list[DiffLine]) -> list[Finding]:
        if PurePosixPath(path.lower()).suffix not in UI_SUFFIXES:
            return []

        findings: list[Finding] = []
        for line in lines:
            if not line.is_added:
                continue
            lowered = line.content.lower()
            for pattern, message in PATTERNS:
                if pattern.search(lowered):
                    findings.append(
                        Finding(
                            detector=self.detector_id,
                            severity=self.severity,
                            file=path,
                            start_line=line.line_number,
                            end_line=line.line_number,
                            issue=f"{message} `{clip_line(line.content)}`",
                            recommendation=(
                                "Render text content or sanitize with a vetted library "
                                "such as DOMPurify before injecting."
                            ),
                        )
                    )
                    break
        return findings
