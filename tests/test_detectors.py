"""Line-detector tests."""

from __future__ import annotations

import pytest

from prscan.detectors import build_detectors, default_detectors, list_detector_info
from prscan.detectors.base import Severity
from prscan.detectors.credentials import HardcodedCredentialDetector
from prscan.detectors.dangerous_execution import DangerousExecutionDetector
from prscan.detectors.dynamic_query import DynamicQueryDetector
from prscan.detectors.html_injection import HtmlInjectionDetector
from prscan.detectors.mutable_defaults import MutableDefaultDetector
from prscan.diff_parser import DiffLine, Side


def test_dynamic_query_flags_fstring_execute() -> None:
    lines = [_added(10, 'result = db.execute(f"SELECT * FROM t WHERE id={id}")')]
    findings = DynamicQueryDetector().scan("app.py", lines)
    assert len(findings) == 1
    finding = findings[0]
    assert finding.severity is Severity.CRITICAL
    assert (finding.file, finding.start_line, finding.end_line) == ("app.py", 10, 10)
    assert finding.can_inline is True
    assert finding.detector == "dynamic_query"


def test_dynamic_query_flags_percent_formatting_and_query_calls() -> None:
    lines = [
        _added(1, "cur.execute(\"DELETE FROM users WHERE id = %s\" % user_id)"),
        _added(2, "rows = session.query(f'SELECT name FROM {table}')"),
        _added(3, 'cur.execute("SELECT * FROM t WHERE id = %s", (user_id,))'),
    ]
    findings = DynamicQueryDetector().scan("repo.py", lines)
    assert [finding.start_line for finding in findings] == [1, 2]


def test_dynamic_query_respects_suppression_marker() -> None:
    lines = [_added(4, 'db.execute(f"SELECT 1 FROM {TABLE}")  # nosec: constant table')]
    assert DynamicQueryDetector().scan("app.py", lines) == []
    assert len(DynamicQueryDetector(suppression_marker="allow-sql").scan("app.py", lines)) == 1


def test_line_detectors_ignore_context_lines() -> None:
    lines = [
        DiffLine(3, Side.CONTEXT, 'db.execute(f"SELECT * FROM t WHERE id={id}")'),
        DiffLine(4, Side.CONTEXT, "eval(payload)"),
        DiffLine(5, Side.CONTEXT, 'PASSWORD = "supersecretvalue"'),
    ]
    for detector in default_detectors():
        assert detector.scan("app.py", lines) == []


def test_html_injection_only_in_ui_files() -> None:
    lines = [
        _added(2, "  return <div dangerouslySetInnerHTML={{ __html: html }} />;"),
        _added(3, "el.innerHTML = userInput;"),
        _added(4, "el.textContent = userInput;"),
    ]
    findings = HtmlInjectionDetector().scan("web/widget.jsx", lines)
    assert [finding.start_line for finding in findings] == [2, 3]
    assert all(finding.severity is Severity.HIGH for finding in findings)
    assert HtmlInjectionDetector().scan("server/render.py", lines) == []


def test_html_injection_flags_appended_markup() -> None:
    lines = [
        _added(1, "list.innerHTML += `<li>${item}</li>`;"),
        _added(2, "node.outerHTML+=extra;"),
        _added(3, "if (el.innerHTML === '') { render(); }"),
        _added(4, "panel.insertAdjacentHTML('beforeend', row);"),
    ]
    findings = HtmlInjectionDetector().scan("web/list.ts", lines)
    assert [finding.start_line for finding in findings] == [1, 2, 4]


def test_mutable_default_flags_list_and_dict_defaults() -> None:
    lines = [
        _added(1, "def handler(items=[]):"),
        _added(2, "async def fetch(url, headers={}):"),
        _added(3, "def ok(items=None):"),
        _added(4, "def build(seen=set()):"),
    ]
    findings = MutableDefaultDetector().scan("svc.py", lines)
    assert [finding.start_line for finding in findings] == [1, 2, 4]
    assert all(finding.severity is Severity.MEDIUM for finding in findings)


@pytest.mark.parametrize(
    "content",
    [
        'DB_PASSWORD = "hunter2hunter2"',
        "api_key = 'sk_live_abcdef123456'",
        '"client_secret": "0123456789abcdef",',
        'GITHUB_TOKEN: str = "ghp_1234567890"',
    ],
)
def test_credential_detector_flags_long_literals(content: str) -> None:
    findings = HardcodedCredentialDetector().scan("settings.py", [_added(7, content)])
    assert len(findings) == 1
    assert findings[0].severity is Severity.CRITICAL
    assert findings[0].start_line == 7


@pytest.mark.parametrize(
    "content",
    [
        'password = "short"',
        'token = os.environ["API_TOKEN"]',
        "password = get_password()",
        'if password == "":',
    ],
)
def test_credential_detector_ignores_short_or_non_literal_values(content: str) -> None:
    assert HardcodedCredentialDetector().scan("settings.py", [_added(1, content)]) == []


def test_dangerous_execution_patterns() -> None:
    lines = [
        _added(1, "value = eval(expr)"),
        _added(2, "exec(code)"),
        _added(3, "obj = pickle.loads(blob)"),
        _added(4, "cfg = yaml.load(stream)"),
        _added(5, "cfg = yaml.load(stream, Loader=yaml.SafeLoader)"),
        _added(6, 'os.system("rm -rf " + path)'),
        _added(7, "subprocess.run(cmd, shell=True)"),
        _added(8, "value = ast.literal_eval(expr)"),
        _added(9, "match = pattern.exec(text)"),
    ]
    findings = DangerousExecutionDetector().scan("tool.py", lines)
    assert [finding.start_line for finding in findings] == [1, 2, 3, 4, 6, 7]
    assert all(finding.severity is Severity.HIGH for finding in findings)


def test_build_detectors_applies_enable_and_disable() -> None:
    detectors = build_detectors(
        enabled_ids=["class_body", "dynamic_query", "html_injection"],
        disabled_ids=["html_injection"],
    )
    assert [detector.detector_id for detector in detectors] == ["dynamic_query", "class_body"]


def test_build_detectors_rejects_unknown_ids() -> None:
    with pytest.raises(ValueError, match="Unknown detector ids: nope"):
        build_detectors(enabled_ids=["nope"])


def test_build_detectors_passes_suppression_marker() -> None:
    detectors = build_detectors(enabled_ids=["dynamic_query"], suppression_marker="sql-ok")
    lines = [_added(1, 'db.execute(f"SELECT {x}")  # sql-ok')]
    assert detectors[0].scan("a.py", lines) == []


def test_detector_info_lists_all_detectors_in_order() -> None:
    info = list_detector_info()
    assert [item.detector_id for item in info] == [
        "dynamic_query",
        "html_injection",
        "mutable_default",
        "hardcoded_credential",
        "dangerous_execution",
        "function_body",
        "class_body",
        "multiline_query",
    ]
    assert {item.kind for item in info} == {"line", "block"}
    assert all(item.description for item in info)


def _added(line_number: int, content: str) -> DiffLine:
    return DiffLine(line_number, Side.ADDED, content)
