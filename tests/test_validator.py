"""Range validation tests."""

from __future__ import annotations

from pathlib import Path

from prscan.detectors.base import Finding, Severity
from prscan.validator import validate, validate_all

FIXTURE_DIR = Path(__file__).parent / "fixtures" / "diffs"

PARTIAL_DIFF = "\n".join(
    [
        "diff --git a/lib.py b/lib.py",
        "index 1111111..2222222 100644",
        "--- a/lib.py",
        "+++ b/lib.py",
        "@@ -3,4 +3,6 @@",
        " a",
        " b",
        "+c",
        "+d",
        " e",
        " f",
    ]
)


def test_single_line_added_finding_stays_inline() -> None:
    diff_text = (FIXTURE_DIR / "simple.diff").read_text(encoding="utf-8")
    finding = validate(_finding("app.py", 10, 10), diff_text)
    assert finding.can_inline is True


def test_single_line_context_finding_is_demoted() -> None:
    diff_text = (FIXTURE_DIR / "simple.diff").read_text(encoding="utf-8")
    finding = validate(_finding("app.py", 9, 9), diff_text)
    assert finding.can_inline is False


def test_range_reaching_into_context_is_demoted() -> None:
    original = _finding("lib.py", 5, 8)
    validated = validate(original, PARTIAL_DIFF)

    assert validated.can_inline is False
    assert validated.severity is original.severity
    assert validated.issue == original.issue
    assert validated.recommendation == original.recommendation
    assert original.can_inline is True


def test_range_of_added_lines_stays_inline() -> None:
    assert validate(_finding("lib.py", 5, 6), PARTIAL_DIFF).can_inline is True


def test_range_beyond_hunk_or_in_other_file_is_demoted() -> None:
    assert validate(_finding("lib.py", 6, 7), PARTIAL_DIFF).can_inline is False
    assert validate(_finding("lib.py", 40, 40), PARTIAL_DIFF).can_inline is False
    assert validate(_finding("other.py", 5, 5), PARTIAL_DIFF).can_inline is False


def test_inverted_or_non_positive_range_is_soft_failure() -> None:
    assert validate(_finding("lib.py", 6, 5), PARTIAL_DIFF).can_inline is False
    assert validate(_finding("lib.py", 0, 5), PARTIAL_DIFF).can_inline is False


def test_validate_all_keeps_order_and_demotes_individually() -> None:
    findings = [
        _finding("lib.py", 5, 5),
        _finding("lib.py", 5, 8),
        _finding("lib.py", 6, 6),
    ]
    validated = validate_all(findings, PARTIAL_DIFF)
    assert [item.start_line for item in validated] == [5, 5, 6]
    assert [item.can_inline for item in validated] == [True, False, True]


def _finding(path: str, start: int, end: int) -> Finding:
    return Finding(
        detector="dynamic_query",
        severity=Severity.CRITICAL,
        file=path,
        start_line=start,
        end_line=end,
        issue="issue text",
        recommendation="fix it",
    )
