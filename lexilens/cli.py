"""CLI entrypoint for lexilens."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from lexilens import __version__
from lexilens.classifier import AnalysisResult, Analyzer, RiskClassifier
from lexilens.config import AppConfig, default_config_template, load_app_config
from lexilens.output import render_human, render_json
from lexilens.remote import GeminiAnalyzer, RemoteAnalysisError
from lexilens.rules import list_rule_info
from lexilens.rules.base import ConflictOverride, Rule

app = typer.Typer(
    name="lexilens",
    no_args_is_help=True,
    help="Classify terms-of-service text into risk points and an install verdict.",
)

# Verdict colors ordered by how far they are from "safe".
_VERDICT_LEVELS = {"green": 0, "orange": 1, "red": 2}


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log matched and suppressed rules to stderr."),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
            force=True,
        )


@app.command("analyze")
def analyze_command(
    file: Annotated[Path | None, typer.Option(help="Path to a text file to analyze.")] = None,
    stdin: Annotated[bool, typer.Option(help="Read document text from stdin.")] = False,
    text: Annotated[str | None, typer.Option(help="Document text given inline.")] = None,
    project: Annotated[Path, typer.Option(help="Project path used for config lookup.")] = Path(
        "."
    ),
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    backend: Annotated[
        str | None, typer.Option(help="Analysis backend: rules|gemini.", show_default="rules")
    ] = None,
    lang: Annotated[str, typer.Option(help="Explanation language: en|hi.")] = "en",
    fail_on: Annotated[
        str | None, typer.Option(help="Exit nonzero when the verdict is at least red|orange.")
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Analyze document text and print points plus verdict."""
    app_config = _load_config_or_raise(project, config_file)
    output_format = _choice_or_default(
        value=format, default=app_config.format, allowed={"human", "json"}, field_name="--format"
    )
    resolved_backend = _choice_or_default(
        value=backend,
        default=app_config.backend,
        allowed={"rules", "gemini"},
        field_name="--backend",
    )
    resolved_lang = _choice_or_default(
        value=lang, default="en", allowed={"en", "hi"}, field_name="--lang"
    )
    fail_level = fail_on if fail_on is not None else app_config.fail_on
    if fail_level is not None:
        fail_level = _choice_or_default(
            value=fail_level, default="red", allowed={"red", "orange"}, field_name="--fail-on"
        )

    sources = [item for item in (file is not None, stdin, text is not None) if item]
    if len(sources) > 1:
        raise typer.BadParameter("Use only one of --file, --stdin, or --text.")

    document, input_source = _resolve_text_input(file=file, stdin=stdin, text=text)
    analyzer = _build_analyzer(app_config, resolved_backend)
    try:
        result = analyzer.analyze(document)
    except RemoteAnalysisError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if output_format == "json":
        typer.echo(render_json(result, input_source=input_source, backend=resolved_backend))
    else:
        typer.echo(render_human(result, lang=resolved_lang))

    if fail_level is not None and _reaches(result, fail_level):
        raise typer.Exit(code=1)


@app.command("rules")
def rules_command(
    project: Annotated[Path, typer.Option(help="Project path used for config lookup.")] = Path(
        "."
    ),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List the rule table and conflict overrides."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(project, config_file)
    active_rules, overrides = _build_tables_or_raise(app_config)
    rule_info = list_rule_info(
        active_rules=active_rules,
        custom_rules=app_config.custom_rule_objects(),
    )

    if output_format == "json":
        payload = {
            "rules": [item.to_dict() for item in rule_info],
            "overrides": [item.to_dict() for item in overrides],
            "meta": {"config_source": app_config.source},
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Available rules:"]
    for item in rule_info:
        status = "enabled" if item.enabled else "disabled"
        lines.append(f"- {item.rule_id} [{item.severity}, {status}] {item.type}: {item.title}")
    lines.append("Overrides:")
    for override in overrides:
        lines.append(f"- {override.suppressor} suppresses {override.suppressed}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    project: Annotated[Path, typer.Option(help="Project path used for config lookup.")] = Path(
        "."
    ),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(project, config_file)
    active_rules, _ = _build_tables_or_raise(app_config)
    payload = app_config.to_dict()
    payload["active_rule_ids"] = _unique_ids(active_rules)

    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- backend: {payload['backend']}",
        f"- fail_on: {payload['fail_on']}",
        f"- rules.disable: {payload['rules']['disable']}",
        f"- rules.custom: {[item['id'] for item in payload['rules']['custom']]}",
        f"- active_rule_ids: {payload['active_rule_ids']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".lexilens.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter project config file."""
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
    project: Annotated[Path, typer.Option(help="Project path used for config lookup.")] = Path(
        "."
    ),
    config_file: Annotated[
        Path,
        typer.Option("--config", help="Path to config TOML file to validate."),
    ] = Path(".lexilens.toml"),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Validate a config file and report active rules."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    app_config = _load_config_or_raise(project, config_file)
    active_rules, overrides = _build_tables_or_raise(app_config)
    payload = {
        "ok": True,
        "source": app_config.source,
        "active_rule_ids": _unique_ids(active_rules),
        "override_count": len(overrides),
    }
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(
        "\n".join(
            [
                "Config is valid.",
                f"- source: {payload['source']}",
                f"- active_rule_ids: {payload['active_rule_ids']}",
                f"- overrides: {payload['override_count']}",
            ]
        )
    )


def main() -> None:
    """Console script entrypoint."""
    app()


def _resolve_text_input(
    *,
    file: Path | None,
    stdin: bool,
    text: str | None,
) -> tuple[str, str]:
    if file is not None:
        try:
            return (file.read_text(encoding="utf-8"), f"file:{file}")
        except (OSError, UnicodeDecodeError) as exc:
            raise typer.BadParameter(f"Cannot read {file}: {exc}", param_hint="--file") from exc

    if text is not None:
        return (text, "text")

    if stdin:
        return (sys.stdin.read(), "stdin")

    raise typer.BadParameter("Provide document text with --file, --stdin, or --text.")


def _build_analyzer(app_config: AppConfig, backend: str) -> Analyzer:
    if backend == "gemini":
        return GeminiAnalyzer(app_config.remote)
    rules, overrides = _build_tables_or_raise(app_config)
    return RiskClassifier(rules=rules, overrides=overrides)


def _reaches(result: AnalysisResult, fail_level: str) -> bool:
    return _VERDICT_LEVELS.get(result.verdict.color, 0) >= _VERDICT_LEVELS[fail_level]


def _load_config_or_raise(project: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(project, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _build_tables_or_raise(
    app_config: AppConfig,
) -> tuple[tuple[Rule, ...], tuple[ConflictOverride, ...]]:
    try:
        return (app_config.build_rules(), app_config.build_overrides())
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rules") from exc


def _unique_ids(rules: tuple[Rule, ...]) -> list[str]:
    ids: list[str] = []
    for rule in rules:
        if rule.rule_id not in ids:
            ids.append(rule.rule_id)
    return ids


def _choice_or_default(
    *,
    value: str | None,
    default: str,
    allowed: set[str],
    field_name: str,
) -> str:
    resolved = (value or default).lower()
    if resolved not in allowed:
        choices = ", ".join(sorted(allowed))
        raise typer.BadParameter(f"{field_name} must be one of: {choices}", param_hint=field_name)
    return resolved
