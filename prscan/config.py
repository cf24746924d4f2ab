"""Configuration loading for prscan."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from prscan.detectors.base import DEFAULT_SUPPRESSION_MARKER, Severity

CONFIG_FILENAMES = (".prscan.toml", "prscan.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("prscan",)
LOG_LEVELS = {"debug", "info", "warning", "error"}
OUTPUT_FORMATS = {"human", "json"}


@dataclass(slots=True)
class AppConfig:
    """Runtime configuration values resolved from project files."""

    format: str = "human"
    fail_on: Severity | None = None
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    detector_enable: list[str] | None = None
    detector_disable: list[str] = field(default_factory=list)
    suppression_marker: str = DEFAULT_SUPPRESSION_MARKER
    log_level: str = "warning"
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format,
            "fail_on": self.fail_on.value.lower() if self.fail_on is not None else None,
            "include": list(self.include),
            "exclude": list(self.exclude),
            "detectors": {
                "enable": list(self.detector_enable) if self.detector_enable is not None else None,
                "disable": list(self.detector_disable),
            },
            "suppression_marker": self.suppression_marker,
            "log_level": self.log_level,
            "source": self.source,
        }


def load_app_config(repo: Path, config_path: Path | None = None) -> AppConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return "\n".join(
        [
            'format = "human"',
            'fail_on = "critical"',
            'include = ["src/**"]',
            'exclude = ["docs/**", "**/migrations/**"]',
            'suppression_marker = "nosec"',
            'log_level = "warning"',
            "",
            "[detectors]",
            "enable = [",
            '  "dynamic_query",',
            '  "html_injection",',
            '  "mutable_default",',
            '  "hardcoded_credential",',
            '  "dangerous_execution",',
            '  "function_body",',
            '  "class_body",',
            '  "multiline_query",',
            "]",
            "disable = []",
            "",
        ]
    )


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    tool_section = _find_pyproject_tool_section(loaded)
    if source_path.name == PYPROJECT_FILENAME:
        return tool_section if tool_section is not None else {}
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> AppConfig:
    detectors_mapping = _as_table(mapping.get("detectors"), "detectors")

    format_value = _as_choice(mapping.get("format", "human"), OUTPUT_FORMATS, "format")

    raw_fail = mapping.get("fail_on")
    if raw_fail is None:
        fail_value: Severity | None = None
    elif isinstance(raw_fail, str):
        fail_value = _as_severity(raw_fail, "fail_on")
    else:
        raise ValueError("fail_on must be a severity name")

    marker = _as_str(
        mapping.get("suppression_marker", DEFAULT_SUPPRESSION_MARKER),
        "suppression_marker",
    )
    return AppConfig(
        format=format_value,
        fail_on=fail_value,
        include=_as_str_list(mapping.get("include"), "include"),
        exclude=_as_str_list(mapping.get("exclude"), "exclude"),
        detector_enable=_as_str_list_or_none(detectors_mapping.get("enable"), "detectors.enable"),
        detector_disable=_as_str_list(detectors_mapping.get("disable"), "detectors.disable"),
        suppression_marker=marker,
        log_level=_as_choice(mapping.get("log_level", "warning"), LOG_LEVELS, "log_level"),
        source=source,
    )


def _as_table(value: Any, field_name: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{field_name} must be a table/object")
    return value


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"{field_name} must be a list of strings")
        items.append(item)
    return items


def _as_str_list_or_none(value: Any, field_name: str) -> list[str] | None:
    if value is None:
        return None
    return _as_str_list(value, field_name)


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value


def _as_severity(raw: str, field_name: str) -> Severity:
    try:
        return Severity.parse(raw)
    except ValueError as exc:
        raise ValueError(f"{field_name}: {exc}") from exc
