"""CLI entrypoint for prscan."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from prscan import __version__
from prscan.aggregator import ScanResult, scan_diff
from prscan.config import LOG_LEVELS, AppConfig, default_config_template, load_app_config
from prscan.detectors import build_detectors, list_detector_info
from prscan.detectors.base import Detector, Severity
from prscan.git import GitError, get_diff_between, get_working_tree_diff
from prscan.output import build_review_payload, render_human, render_json
from prscan.policy import Verdict

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="prscan",
    no_args_is_help=True,
    help="Scan diffs for risky added code and build inline review comments.",
)

DiffFileOption = Annotated[Path | None, typer.Option(help="Path to unified diff file.")]
StdinOption = Annotated[bool, typer.Option(help="Read unified diff from stdin.")]
RepoOption = Annotated[Path, typer.Option(help="Repository path.")]
BaseOption = Annotated[str | None, typer.Option(help="Base git revision.")]
HeadOption = Annotated[str | None, typer.Option(help="Head git revision.")]
IncludeOption = Annotated[list[str] | None, typer.Option(help="Include glob pattern.")]
ExcludeOption = Annotated[list[str] | None, typer.Option(help="Exclude glob pattern.")]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to config TOML file."),
]


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option(help="Logging level: debug|info|warning|error."),
    ] = None,
) -> None:
    """Root command callback."""
    _ = version
    if log_level is not None and log_level.lower() not in LOG_LEVELS:
        choices = ", ".join(sorted(LOG_LEVELS))
        raise typer.BadParameter(f"log level must be one of: {choices}", param_hint="--log-level")
    ctx.obj = {"log_level": log_level}


@app.command("scan")
def scan_command(
    ctx: typer.Context,
    diff_file: DiffFileOption = None,
    stdin: StdinOption = False,
    repo: RepoOption = Path("."),
    base: BaseOption = None,
    head: HeadOption = None,
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    fail_on: Annotated[
        str | None,
        typer.Option(help="Exit nonzero if any finding is at or above this severity."),
    ] = None,
    include: IncludeOption = None,
    exclude: ExcludeOption = None,
    config_file: ConfigOption = None,
) -> None:
    """Scan a diff and report findings with their verdict."""
    app_config = _load_config_or_raise(ctx, repo, config_file)
    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    fail_threshold = _parse_severity_or_raise(fail_on) if fail_on else app_config.fail_on

    result, input_source = _run_scan(
        diff_file=diff_file,
        stdin=stdin,
        repo=repo,
        base=base,
        head=head,
        include=include,
        exclude=exclude,
        app_config=app_config,
    )

    if output_format == "json":
        typer.echo(render_json(result, input_source=input_source, base=base, head=head))
    else:
        typer.echo(render_human(result))

    if fail_threshold is not None and any(
        finding.severity.rank >= fail_threshold.rank for finding in result.findings
    ):
        raise typer.Exit(code=1)


@app.command("comments")
def comments_command(
    ctx: typer.Context,
    diff_file: DiffFileOption = None,
    stdin: StdinOption = False,
    repo: RepoOption = Path("."),
    base: BaseOption = None,
    head: HeadOption = None,
    include: IncludeOption = None,
    exclude: ExcludeOption = None,
    verdict: Annotated[
        str | None,
        typer.Option(help="Override the verdict: approve|comment|request_changes."),
    ] = None,
    config_file: ConfigOption = None,
) -> None:
    """Print the review submission payload: event, summary and inline comments."""
    app_config = _load_config_or_raise(ctx, repo, config_file)
    override: Verdict | None = None
    if verdict is not None:
        try:
            override = Verdict.parse(verdict)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--verdict") from exc

    result, _input_source = _run_scan(
        diff_file=diff_file,
        stdin=stdin,
        repo=repo,
        base=base,
        head=head,
        include=include,
        exclude=exclude,
        app_config=app_config,
    )
    typer.echo(json.dumps(build_review_payload(result, override=override), sort_keys=True))


@app.command("detectors")
def detectors_command(
    ctx: typer.Context,
    repo: RepoOption = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: ConfigOption = None,
) -> None:
    """List available detectors and whether they are enabled."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(ctx, repo, config_file)
    active_ids = {detector.detector_id for detector in _build_detectors_or_raise(app_config)}
    detector_info = list_detector_info()

    if output_format == "json":
        payload = {
            "detectors": [
                {
                    "detector_id": item.detector_id,
                    "name": item.name,
                    "description": item.description,
                    "severity": item.severity.value,
                    "kind": item.kind,
                    "enabled": item.detector_id in active_ids,
                }
                for item in detector_info
            ],
            "meta": {"config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Available detectors:"]
    for item in detector_info:
        status = "enabled" if item.detector_id in active_ids else "disabled"
        lines.append(
            f"- {item.detector_id} [{status}] {item.severity.value} {item.kind} - "
            f"{item.description}"
        )
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    ctx: typer.Context,
    repo: RepoOption = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: ConfigOption = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(ctx, repo, config_file)
    active = _build_detectors_or_raise(app_config)
    payload = app_config.to_dict()
    payload["active_detector_ids"] = [detector.detector_id for detector in active]

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- fail_on: {payload['fail_on']}",
        f"- include: {payload['include']}",
        f"- exclude: {payload['exclude']}",
        f"- suppression_marker: {payload['suppression_marker']}",
        f"- log_level: {payload['log_level']}",
        f"- detectors.enable: {payload['detectors']['enable']}",
        f"- detectors.disable: {payload['detectors']['disable']}",
        f"- active_detector_ids: {payload['active_detector_ids']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".prscan.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter repository config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


@app.command("config-validate")
def config_validate_command(
    ctx: typer.Context,
    repo: RepoOption = Path("."),
    config_file: Annotated[
        Path,
        typer.Option("--config", help="Path to config TOML file to validate."),
    ] = Path(".prscan.toml"),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Validate a config file and report active detectors."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(ctx, repo, config_file)
    active = _build_detectors_or_raise(app_config)
    payload = {
        "ok": True,
        "source": app_config.source,
        "active_detector_ids": [detector.detector_id for detector in active],
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(
        "\n".join(
            [
                "Config is valid.",
                f"- source: {payload['source']}",
                f"- active_detector_ids: {payload['active_detector_ids']}",
            ]
        )
    )


def main() -> None:
    """Console script entrypoint."""
    app()


def _resolve_diff_input(
    *,
    diff_file: Path | None,
    stdin: bool,
    repo: Path,
    base: str | None,
    head: str | None,
) -> tuple[str, str]:
    if diff_file is not None:
        return (diff_file.read_text(encoding="utf-8"), f"diff_file:{diff_file}")

    if stdin:
        return (sys.stdin.read(), "stdin")

    if base is not None and head is not None:
        return (get_diff_between(repo, base, head), "git_range")

    return (get_working_tree_diff(repo), "git_working_tree")


def _run_scan(
    *,
    diff_file: Path | None,
    stdin: bool,
    repo: Path,
    base: str | None,
    head: str | None,
    include: list[str] | None,
    exclude: list[str] | None,
    app_config: AppConfig,
) -> tuple[ScanResult, str]:
    if diff_file and stdin:
        raise typer.BadParameter("Use either --diff-file or --stdin, not both.")
    if (base is None) ^ (head is None):
        raise typer.BadParameter("Provide both --base and --head together.")

    try:
        diff_text, input_source = _resolve_diff_input(
            diff_file=diff_file,
            stdin=stdin,
            repo=repo,
            base=base,
            head=head,
        )
    except GitError as exc:
        raise typer.BadParameter(str(exc)) from exc

    detectors = _build_detectors_or_raise(app_config)
    try:
        result = scan_diff(
            diff_text,
            detectors,
            include=include if include is not None else app_config.include,
            exclude=exclude if exclude is not None else app_config.exclude,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="diff") from exc
    return (result, input_source)


def _load_config_or_raise(
    ctx: typer.Context, repo: Path, config_file: Path | None = None
) -> AppConfig:
    try:
        app_config = load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc
    cli_level = (ctx.obj or {}).get("log_level")
    _configure_logging(cli_level or app_config.log_level)
    logger.debug("loaded config from %s", app_config.source or "defaults")
    return app_config


def _build_detectors_or_raise(app_config: AppConfig) -> list[Detector]:
    try:
        return build_detectors(
            enabled_ids=app_config.detector_enable,
            disabled_ids=app_config.detector_disable,
            suppression_marker=app_config.suppression_marker,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.detectors") from exc


def _parse_severity_or_raise(value: str) -> Severity:
    try:
        return Severity.parse(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--fail-on") from exc


def _configure_logging(level_name: str) -> None:
    level = logging.getLevelName(level_name.upper())
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("prscan").setLevel(level)
