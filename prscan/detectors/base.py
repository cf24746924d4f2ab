"""Base detector protocol, finding model and block-tracking primitives."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from re import compile
from typing import Protocol

from prscan.diff_parser import DiffLine

DEFAULT_SUPPRESSION_MARKER = "nosec"

_TOP_LEVEL_RE = compile(r"^[A-Za-z_]")


class Severity(str, Enum):
    """Finding severity, highest first."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANKS[self]

    @classmethod
    def parse(cls, value: str) -> Severity:
        try:
            return cls(value.strip().upper())
        except ValueError as exc:
            choices = ", ".join(item.value.lower() for item in cls)
            raise ValueError(f"severity must be one of: {choices}") from exc


_SEVERITY_RANKS = {
    Severity.CRITICAL: 3,
    Severity.HIGH: 2,
    Severity.MEDIUM: 1,
    Severity.LOW: 0,
}


@dataclass(frozen=True, slots=True)
class Finding:
    """A single issue anchored to a line range in the new version of a file."""

    detector: str
    severity: Severity
    file: str
    start_line: int
    end_line: int
    issue: str
    recommendation: str
    can_inline: bool = True

    @property
    def is_single_line(self) -> bool:
        return self.start_line == self.end_line


class Detector(Protocol):
    """Protocol for diff pattern detectors."""

    detector_id: str
    severity: Severity

    def scan(self, path: str, lines: list[DiffLine]) -> list[Finding]:
        """Scan one file's line map and return findings."""


class BlockBoundaryDetector(Protocol):
    """Decides where a tracked multi-line block ends."""

    def is_new_top_level(self, content: str) -> bool:
        """Return True when the line starts a new top-level construct."""


class KeywordBoundaryDetector:
    """Treats any non-indented identifier start as a new top-level construct.

    Covers top-level ``def``, ``async def`` and ``class``. Nested constructs
    and languages without keyword-led declarations can leave a block open
    past its real end.
    """

    def is_new_top_level(self, content: str) -> bool:
        return _TOP_LEVEL_RE.match(content) is not None


class BlockKind(str, Enum):
    FUNCTION = "function"
    CLASS = "class"
    STRING_LITERAL = "string_literal"


@dataclass(slots=True)
class OpenBlock:
    """A multi-line construct being tracked by a stateful detector."""

    kind: BlockKind
    start_line: int
    accumulated_text: list[str] = field(default_factory=list)

    def body(self) -> str:
        return "\n".join(self.accumulated_text)


def is_suppressed(content: str, marker: str | None) -> bool:
    return bool(marker) and marker in content


def clip_line(content: str, max_len: int = 80) -> str:
    stripped = content.strip()
    if len(stripped) <= max_len:
        return stripped
    return stripped[: max_len - 3] + "..."
