"""Lintloom CLI entry point."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from lintloom import __version__
from lintloom.cache import DEFAULT_CACHE_LOCATION
from lintloom.config.loader import ConfigError, LintConfig, find_config_file, load_config
from lintloom.rules import create_registry

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="lintloom")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Lintloom - lint CLAUDE.md, skills, agents, MCP and settings files."""
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


def _load(config_path: Path | None) -> tuple[LintConfig, Path | None]:
    """Load the explicit or discovered config; an empty config when there is none."""
    path = config_path or find_config_file(Path.cwd())
    if path is None:
        logger.debug("No configuration file found, using defaults")
        return LintConfig(), None
    logger.debug("Using configuration %s", path)
    return load_config(path), path


_CONFIG_OPTION = click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: nearest .lintloomrc.* upwards from the current directory).",
)


@main.command()
@click.argument("paths", nargs=-1, type=click.Path(path_type=Path))
@_CONFIG_OPTION
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format.",
)
@click.option("--no-cache", is_flag=True, default=False, help="Ignore and do not write the cache.")
@click.option(
    "--cache-location",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_CACHE_LOCATION,
    show_default=True,
    help="Cache directory.",
)
@click.option(
    "--max-warnings",
    type=click.IntRange(min=0),
    default=None,
    help="Fail when more warnings than this are reported.",
)
@click.option("--strict", is_flag=True, default=False, help="Treat any warning as a failure.")
@click.pass_context
def check(
    ctx: click.Context,
    *,
    paths: tuple[Path, ...],
    config_path: Path | None,
    fmt: str,
    no_cache: bool,
    cache_location: Path,
    max_warnings: int | None,
    strict: bool,
) -> None:
    """Validate project files.

    Exit codes: 0 = clean, 1 = errors (or warnings over the limit / with
    --strict), 2 = configuration error or a rule crashed.
    """
    from lintloom.cache import ValidationCache
    from lintloom.config.loader import validate_config
    from lintloom.engine.runner import RuleExecutionError
    from lintloom.report import format_json, format_text
    from lintloom.validator import collect_files, validate_all

    registry = create_registry()
    try:
        config, _ = _load(config_path)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    for warning in validate_config(config, registry):
        click.echo(f"Warning: {warning}", err=True)

    files = collect_files(paths or (Path.cwd(),))
    cache = ValidationCache(cache_location, enabled=not no_cache)

    try:
        results = asyncio.run(
            validate_all(files, registry=registry, config=config, cache=cache)
        )
    except RuleExecutionError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if fmt == "json":
        click.echo(format_json(results))
    elif not (ctx.obj.get("quiet") and all(r.valid for r in results.values())):
        click.echo(format_text(results))

    errors = sum(len(r.errors) for r in results.values())
    warnings = sum(len(r.warnings) for r in results.values())
    limit = max_warnings if max_warnings is not None else config.max_warnings
    if strict:
        limit = 0

    if errors:
        sys.exit(1)
    if limit is not None and warnings > limit:
        click.echo(f"Too many warnings ({warnings}, max {limit})", err=True)
        sys.exit(1)


@main.command("list-rules")
@click.option("--category", default=None, help="Only rules of this category.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON.")
def list_rules(*, category: str | None, as_json: bool) -> None:
    """List every registered rule."""
    from rich.console import Console
    from rich.table import Table

    registry = create_registry()
    try:
        rules = registry.get_by_category(category) if category else registry.get_all()
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if as_json:
        data = [
            {
                "id": r.meta.id,
                "name": r.meta.name,
                "category": r.meta.category.value,
                "severity": r.meta.severity.value,
                "fixable": r.meta.fixable,
                "deprecated": r.meta.deprecated,
                "default_options": r.meta.default_options,
            }
            for r in rules
        ]
        click.echo(json.dumps(data, indent=2))
        return

    table = Table(title=f"Rules ({len(rules)})")
    table.add_column("ID", style="cyan")
    table.add_column("Category")
    table.add_column("Severity")
    table.add_column("Description")
    for r in rules:
        rule_id = f"{r.meta.id} (deprecated)" if r.meta.deprecated else r.meta.id
        table.add_row(rule_id, r.meta.category.value, r.meta.severity.value, r.meta.description)
    Console().print(table)


@main.command()
@click.argument("rule_id")
def explain(*, rule_id: str) -> None:
    """Show the metadata and default options of one rule."""
    meta = create_registry().get(rule_id)
    if meta is None:
        click.echo(f"Error: unknown rule '{rule_id}'", err=True)
        sys.exit(1)

    click.echo(f"{meta.id} - {meta.name}")
    click.echo(f"  {meta.description}")
    click.echo(f"  Category: {meta.category.value}")
    click.echo(f"  Default severity: {meta.severity.value}")
    click.echo(f"  Fixable: {'yes' if meta.fixable else 'no'}")
    click.echo(f"  Since: {meta.since}")
    if meta.default_options:
        click.echo(f"  Options: {json.dumps(meta.default_options)}")
    if meta.deprecation is not None:
        click.echo(f"  Deprecated: {meta.deprecation.reason}")
        if meta.deprecation.replaced_by:
            click.echo(f"  Use instead: {', '.join(meta.deprecation.replaced_by)}")
        if meta.deprecation.remove_in_version:
            click.echo(f"  Removed in: {meta.deprecation.remove_in_version}")


@main.command("check-deprecated")
@_CONFIG_OPTION
def check_deprecated(*, config_path: Path | None) -> None:
    """Report deprecated rules that the configuration mentions.

    Exit codes: 0 = none, 1 = deprecated rules configured, 2 = configuration error.
    """
    registry = create_registry()
    try:
        config, path = _load(config_path)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if path is None:
        click.echo("No configuration file found.")
        return

    mentioned = list(config.rules)
    for block in config.overrides:
        mentioned.extend(r for r in block.rules if r not in mentioned)

    metas = [registry.get(r) for r in mentioned]
    found = [(m.id, m.deprecation) for m in metas if m is not None and m.deprecation is not None]
    if not found:
        click.echo("✓ No deprecated rules in your configuration")
        return

    click.echo(f"Found {len(found)} deprecated rule(s) in {path}:")
    for rule_id, info in found:
        click.echo(f"  {rule_id}: {info.reason}")
        if info.replaced_by:
            click.echo(f"    use: {', '.join(info.replaced_by)}")
        if info.remove_in_version:
            click.echo(f"    removed in: {info.remove_in_version}")
    sys.exit(1)


@main.command("cache-clear")
@click.option(
    "--cache-location",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_CACHE_LOCATION,
    show_default=True,
    help="Cache directory.",
)
def cache_clear(*, cache_location: Path) -> None:
    """Delete the result cache."""
    from lintloom.cache import ValidationCache

    ValidationCache(cache_location).clear()
    click.echo(f"Cleared {cache_location}")
