"""Detectors package."""

from collections.abc import Callable
from dataclasses import dataclass

from prscan.detectors.base import DEFAULT_SUPPRESSION_MARKER, Detector, Severity
from prscan.detectors.class_body import ClassBodyDetector
from prscan.detectors.credentials import HardcodedCredentialDetector
from prscan.detectors.dangerous_execution import DangerousExecutionDetector
from prscan.detectors.dynamic_query import DynamicQueryDetector
from prscan.detectors.function_body import FunctionBodyDetector
from prscan.detectors.html_injection import HtmlInjectionDetector
from prscan.detectors.multiline_query import MultilineQueryDetector
from prscan.detectors.mutable_defaults import MutableDefaultDetector


@dataclass(frozen=True, slots=True)
class DetectorInfo:
    """Detector metadata for listing and selection."""

    detector_id: str
    name: str
    description: str
    severity: Severity
    kind: str


@dataclass(frozen=True, slots=True)
class _DetectorSpec:
    detector_id: str
    factory: Callable[[str | None], Detector]
    name: str
    description: str
    severity: Severity
    kind: str


def default_detectors() -> list[Detector]:
    """Return every detector in invocation order."""
    return build_detectors()


def build_detectors(
    *,
    enabled_ids: list[str] | None = None,
    disabled_ids: list[str] | None = None,
    suppression_marker: str | None = DEFAULT_SUPPRESSION_MARKER,
) -> list[Detector]:
    """Build detector instances applying enable/disable filters.

    Invocation order is fixed by the registry, not by the order of
    ``enabled_ids``.
    """
    specs = _ordered_specs()
    registry = {spec.detector_id: spec for spec in specs}
    requested = set(enabled_ids or []) | set(disabled_ids or [])
    unknown = [detector_id for detector_id in requested if detector_id not in registry]
    if unknown:
        joined = ", ".join(sorted(unknown))
        raise ValueError(f"Unknown detector ids: {joined}")

    enabled = set(enabled_ids) if enabled_ids is not None else set(registry)
    disabled = set(disabled_ids or [])
    return [
        spec.factory(suppression_marker)
        for spec in specs
        if spec.detector_id in enabled and spec.detector_id not in disabled
    ]


def list_detector_info() -> list[DetectorInfo]:
    """Return metadata for all known detectors."""
    return [
        DetectorInfo(
            detector_id=spec.detector_id,
            name=spec.name,
            description=spec.description,
            severity=spec.severity,
            kind=spec.kind,
        )
        for spec in _ordered_specs()
    ]


def _ordered_specs() -> list[_DetectorSpec]:
    return [
        _spec(DynamicQueryDetector, kind="line", factory=DynamicQueryDetector),
        _spec(HtmlInjectionDetector, kind="line"),
        _spec(MutableDefaultDetector, kind="line"),
        _spec(HardcodedCredentialDetector, kind="line"),
        _spec(DangerousExecutionDetector, kind="line"),
        _spec(FunctionBodyDetector, kind="block"),
        _spec(ClassBodyDetector, kind="block"),
        _spec(MultilineQueryDetector, kind="block", factory=MultilineQueryDetector),
    ]


def _spec(
    detector_cls: type,
    *,
    kind: str,
    factory: Callable[[str | None], Detector] | None = None,
) -> _DetectorSpec:
    return _DetectorSpec(
        detector_id=detector_cls.detector_id,
        factory=factory or (lambda _marker: detector_cls()),
        name=detector_cls.__name__,
        description=(detector_cls.__doc__ or "").strip(),
        severity=detector_cls.severity,
        kind=kind,
    )
