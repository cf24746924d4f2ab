"""Embedded credential detector."""

from __future__ import annotations

from re import IGNORECASE, compile

from prscan.detectors.base import Finding, Severity
from prscan.diff_parser import DiffLine

MIN_SECRET_LENGTH = 8
CREDENTIAL_ASSIGN_RE = compile(
    r"(?P<name>[\w.-]*(?:password|passwd|secret|api_key|apikey|token)[\w-]*)"
    r"[\"']?\s*(?::\s*[\w.\[\], |]+?)?\s*(?::=|=|:)\s*"
    r"(?P<quote>[\"'])(?P<value>[^\"']*)(?P=quote)",
    IGNORECASE,
)


class HardcodedCredentialDetector:
    """Flags credential-named identifiers assigned to string literals."""

    detector_id = "hardcoded_credential"
    severity = Severity.CRITICAL

    def scan(self, path: str, lines: list[DiffLine]) -> list[Finding]:
        findings: list[Finding] = []
        for line in lines:
            if not line.is_added:
                continue
            for match in CREDENTIAL_ASSIGN_RE.finditer(line.content):
                if len(match.group("value")) < MIN_SECRET_LENGTH:
                    continue
                findings.append(
                    Finding(
                        detector=self.detector_id,
                        severity=self.severity,
                        file=path,
                        start_line=line.line_number,
                        end_line=line.line_number,
                        issue=f"Credential `{match.group('name')}` is assigned a literal value.",
                        recommendation=(
                            "Load the value from the environment or a secret manager "
                            "and rotate the exposed credential."
                        ),
                    )
                )
                break
        return findings
