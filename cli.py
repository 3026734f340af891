#!/usr/bin/env python3
"""
cli.py — Click CLI for diffing JSON record files.

Usage:
    python cli.py --config types.json diff current.json other.json
    python cli.py --config types.json diff current.json other.json --json-output
    python cli.py --config types.json diff current.json other.json --summary
    python cli.py --config types.json types
    python cli.py --config types.json validate
"""
from __future__ import annotations

import json
import logging
from typing import NoReturn

import click
from dotenv import load_dotenv

from recdiff.core import diff, report
from recdiff.core.registry import TypeRegistry
from recdiff.data import record_store
from recdiff.data.records import InMemoryAccessor
from recdiff.errors import RecDiffError, format_error

load_dotenv()


def _fail(exc: RecDiffError) -> NoReturn:
    click.echo(format_error(exc), err=True)
    raise SystemExit(1)


@click.group()
@click.option("--config", "config_path", envvar="RECDIFF_CONFIG",
              type=click.Path(dir_okay=False),
              help="Path to the JSON type configuration.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Record diff CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def _registry(ctx: click.Context) -> TypeRegistry:
    """Load the type configuration on first use by a sub-command."""
    if "registry" not in ctx.obj:
        config_path = ctx.obj.get("config_path")
        if not config_path:
            raise click.UsageError("Missing option '--config' (or set RECDIFF_CONFIG).")
        try:
            ctx.obj["registry"] = record_store.load_registry(config_path)
        except RecDiffError as exc:
            _fail(exc)
    return ctx.obj["registry"]


@cli.command(name="diff")
@click.argument("current_path", type=click.Path(dir_okay=False))
@click.argument("other_path", type=click.Path(dir_okay=False))
@click.option("--json-output", is_flag=True, help="Output as JSON instead of text.")
@click.option("--summary", is_flag=True, help="Only print change counts.")
@click.pass_context
def diff_cmd(
    ctx: click.Context,
    current_path: str,
    other_path: str,
    json_output: bool,
    summary: bool,
) -> None:
    """Show what changes turn CURRENT_PATH into OTHER_PATH."""
    registry = _registry(ctx)
    try:
        current = record_store.load_record(current_path)
        other = record_store.load_record(other_path)
        result = diff.diff(current, other, InMemoryAccessor(registry), registry)
    except RecDiffError as exc:
        _fail(exc)

    if summary:
        click.echo(json.dumps(report.summarise(result), indent=2))
    elif json_output:
        click.echo(report.as_json(result))
    else:
        click.echo(report.as_text_report(result))


@cli.command()
@click.pass_context
def types(ctx: click.Context) -> None:
    """List registered record types."""
    registry = _registry(ctx)
    names = registry.registered_types()
    click.echo(f"{len(names)} type(s):")
    for name in names:
        config = registry.config_for(name)
        base = f" < {config.base}" if config.base else ""
        ident = f" [identity: {config.identity_field}]" if config.identity_field else ""
        click.echo(f"  {name}{base}{ident}")
        if config.excluded_fields:
            click.echo(f"    excluded: {', '.join(sorted(config.excluded_fields))}")
        if config.conditional_fields:
            click.echo(f"    conditional: {', '.join(config.conditional_fields)}")
        for assoc in config.associations:
            marker = "->" if assoc.owned else "<-"
            click.echo(f"    {marker} {assoc.name} ({assoc.kind} {assoc.target})")


@cli.command()
@click.pass_context
def validate(ctx: click.Context) -> None:
    """Check the type configuration for cycles and missing identity fields."""
    problems = _registry(ctx).validate()
    if not problems:
        click.echo("Configuration OK.")
        return
    click.echo(f"{len(problems)} problem(s):", err=True)
    for problem in problems:
        click.echo(f"  {problem}", err=True)
    raise SystemExit(1)


if __name__ == "__main__":
    cli()
