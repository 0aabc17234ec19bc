"""CLI entrypoint for diff-lantern."""

from __future__ import annotations

import fnmatch
import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from diff_lantern import __version__
from diff_lantern.config import AppConfig, default_config_template, load_app_config
from diff_lantern.diff_parser import FileDiff
from diff_lantern.git import GitError
from diff_lantern.navigation import (
    Cursor,
    importance_queue,
    is_valid_cursor,
    prev_cursor,
    risk_order,
    walk,
)
from diff_lantern.output import (
    render_findings,
    render_findings_json,
    render_human,
    render_json,
    render_walk,
    render_walk_json,
)
from diff_lantern.providers import ChangeSet, select_provider
from diff_lantern.rules import list_rule_info
from diff_lantern.scoring import compute_all_risks
from diff_lantern.workflow_lint import lint_workflow

app = typer.Typer(
    name="diff-lantern",
    no_args_is_help=True,
    help="Score pull request changes by risk and walk them riskiest first.",
)

DiffFileOption = Annotated[Path | None, typer.Option(help="Path to unified diff file.")]
StdinOption = Annotated[bool, typer.Option(help="Read unified diff from stdin.")]
PrJsonOption = Annotated[
    Path | None, typer.Option(help="Path to a pull request files/check-runs JSON export.")
]
RepoOption = Annotated[Path, typer.Option(help="Repository path.")]
BaseOption = Annotated[str | None, typer.Option(help="Base git revision.")]
HeadOption = Annotated[str | None, typer.Option(help="Head git revision.")]
IncludeOption = Annotated[list[str] | None, typer.Option(help="Include glob pattern.")]
ExcludeOption = Annotated[list[str] | None, typer.Option(help="Exclude glob pattern.")]
ConfigOption = Annotated[Path | None, typer.Option("--config", help="Path to config TOML file.")]


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
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
) -> None:
    """Root command callback."""
    _ = version
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )


@app.command("score")
def score_command(
    diff_file: DiffFileOption = None,
    stdin: StdinOption = False,
    pr_json: PrJsonOption = None,
    repo: RepoOption = Path("."),
    base: BaseOption = None,
    head: HeadOption = None,
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    fail_above: Annotated[
        int | None, typer.Option(help="Exit nonzero if any file scores above this value.")
    ] = None,
    include: IncludeOption = None,
    exclude: ExcludeOption = None,
    config_file: ConfigOption = None,
) -> None:
    """Score every changed file and list them riskiest first."""
    app_config = _load_config_or_raise(repo, config_file)
    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    change_set = _load_change_set(
        diff_file=diff_file,
        stdin=stdin,
        pr_json=pr_json,
        repo=repo,
        base=base,
        head=head,
        include=include,
        exclude=exclude,
        app_config=app_config,
    )
    ranked = compute_all_risks(change_set.files)

    if output_format == "json":
        typer.echo(
            render_json(
                ranked,
                input_source=change_set.input_source,
                base=change_set.base,
                head=change_set.head,
            )
        )
    else:
        typer.echo(render_human(ranked))

    fail_threshold = fail_above if fail_above is not None else app_config.fail_above
    if fail_threshold is not None and any(item.risk.score > fail_threshold for item in ranked):
        raise typer.Exit(code=1)


@app.command("walk")
def walk_command(
    diff_file: DiffFileOption = None,
    stdin: StdinOption = False,
    pr_json: PrJsonOption = None,
    repo: RepoOption = Path("."),
    base: BaseOption = None,
    head: HeadOption = None,
    include: IncludeOption = None,
    exclude: ExcludeOption = None,
    queue: Annotated[
        bool,
        typer.Option("--queue", help="List hunks by importance within each file instead."),
    ] = False,
    reverse: Annotated[
        bool, typer.Option("--reverse", help="Walk backwards from the last hunk.")
    ] = False,
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    config_file: ConfigOption = None,
) -> None:
    """Print the risk-ordered review path, one hunk per step."""
    if queue and reverse:
        raise typer.BadParameter("Use either --queue or --reverse, not both.")

    app_config = _load_config_or_raise(repo, config_file)
    output_format = (format or app_config.format).lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    change_set = _load_change_set(
        diff_file=diff_file,
        stdin=stdin,
        pr_json=pr_json,
        repo=repo,
        base=base,
        head=head,
        include=include,
        exclude=exclude,
        app_config=app_config,
    )
    files = change_set.files
    order = risk_order(files)

    if queue:
        cursors = importance_queue(files, order)
    elif reverse:
        cursors = _walk_backwards(files, order)
    else:
        cursors = list(walk(files, order=order))

    if output_format == "json":
        typer.echo(render_walk_json(files, cursors))
    else:
        typer.echo(render_walk(files, cursors))


@app.command("lint-workflow")
def lint_workflow_command(
    diff_file: DiffFileOption = None,
    stdin: StdinOption = False,
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """Lint a GitHub Actions workflow diff for supply-chain risks."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    if diff_file and stdin:
        raise typer.BadParameter("Use either --diff-file or --stdin, not both.")
    if diff_file is None and not stdin:
        raise typer.BadParameter("Provide --diff-file or --stdin.")

    diff_text = diff_file.read_text(encoding="utf-8") if diff_file else sys.stdin.read()
    findings = lint_workflow(diff_text)

    if output_format == "json":
        typer.echo(render_findings_json(findings))
    else:
        typer.echo(render_findings(findings))

    if findings:
        raise typer.Exit(code=1)


@app.command("rules")
def rules_command(
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
) -> None:
    """List the fixed scoring rules in evaluation order."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    rule_info = list_rule_info()
    if output_format == "json":
        payload = {
            "rules": [
                {
                    "rule_id": item.rule_id,
                    "name": item.name,
                    "description": item.description,
                    "category": item.category,
                    "signal_keys": list(item.signal_keys),
                    "max_points": item.max_points,
                }
                for item in rule_info
            ]
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Scoring rules (evaluation order):"]
    for item in rule_info:
        lines.append(f"- {item.rule_id} [+{item.max_points}] - {item.description}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    repo: RepoOption = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: ConfigOption = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    payload = _load_config_or_raise(repo, config_file).to_dict()
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = [
        "Resolved configuration:",
        f"- source: {payload['source'] or 'defaults'}",
        f"- format: {payload['format']}",
        f"- fail_above: {payload['fail_above']}",
        f"- include: {payload['include']}",
        f"- exclude: {payload['exclude']}",
        f"- checks_passing: {payload['checks_passing']}",
        f"- churn: {payload['churn']}",
    ]
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".diff-lantern.toml"
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


def main() -> None:
    """Console script entrypoint."""
    app()


def _walk_backwards(files: list[FileDiff], order: list[int]) -> list[Cursor]:
    forward = list(walk(files, order=order))
    if not forward:
        return []
    cursors: list[Cursor] = []
    cursor: Cursor | None = forward[-1]
    while cursor is not None and is_valid_cursor(files, cursor):
        cursors.append(cursor)
        cursor = prev_cursor(files, cursor, order)
    return cursors


def _filter_files(
    files: list[FileDiff], *, includes: list[str], excludes: list[str]
) -> list[FileDiff]:
    filtered: list[FileDiff] = []
    for file_diff in files:
        path = file_diff.path
        if includes and not any(fnmatch.fnmatch(path, pattern) for pattern in includes):
            continue
        if excludes and any(fnmatch.fnmatch(path, pattern) for pattern in excludes):
            continue
        filtered.append(file_diff)
    return filtered


def _load_config_or_raise(repo: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(repo, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _load_change_set(
    *,
    diff_file: Path | None,
    stdin: bool,
    pr_json: Path | None,
    repo: Path,
    base: str | None,
    head: str | None,
    include: list[str] | None,
    exclude: list[str] | None,
    app_config: AppConfig,
) -> ChangeSet:
    try:
        provider = select_provider(
            diff_file=diff_file,
            stdin=stdin,
            pr_json=pr_json,
            repo=repo,
            base=base,
            head=head,
            checks_passing=app_config.checks_passing,
            churn=app_config.churn,
        )
        change_set = provider.load()
    except (GitError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc

    include_patterns = include if include is not None else app_config.include
    exclude_patterns = exclude if exclude is not None else app_config.exclude
    change_set.files = _filter_files(
        change_set.files, includes=include_patterns, excludes=exclude_patterns
    )
    return change_set
