"""Paystub Tracker CLI - parse pay stubs into structured records."""

import json
import logging
import os

import click
from rich.console import Console
from rich.panel import Panel

from processors.engine import CatalogError, get_catalog
from stubtrack import __version__
from stubtrack.sdk import (
    ConfigError,
    KNOWN_SETTINGS,
    espp_by_quarter,
    goal_progress,
    get_rules_path,
    get_settings_path,
    get_tolerance,
    load_settings,
    parse_batch,
    paycheck_summary,
    set_setting,
)

from .renderers.record_renderer import render_parse_result, render_summary


# Configure logging based on LOG_LEVEL environment variable
_log_level = os.environ.get("LOG_LEVEL", "WARNING").upper()
logging.basicConfig(
    level=getattr(logging, _log_level, logging.WARNING),
    format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
    datefmt="%H:%M:%S"
)


def _load_catalog(rules_path):
    """Resolve the rule catalogue from --rules or settings."""
    try:
        return get_catalog(rules_path or get_rules_path())
    except (CatalogError, ConfigError) as e:
        raise click.ClickException(str(e))


def _load_tolerance():
    try:
        return get_tolerance()
    except ConfigError as e:
        raise click.ClickException(str(e))


def _parse_files(files, rules_path):
    catalog = _load_catalog(rules_path)
    return parse_batch(files, catalog=catalog, tolerance=_load_tolerance())


@click.group()
@click.version_option(version=__version__, prog_name="paystub-tracker")
def cli():
    """Paystub Tracker - structured records from pay stub text.

    Parses PDF text layers or text exports of pay stubs into a record
    (gross, net, taxes by category), a list of investment contributions,
    and a reconciliation residual.

    Set LOG_LEVEL=DEBUG to see which rules matched.
    """
    pass


rules_option = click.option(
    "--rules", "rules_path", type=click.Path(exists=True, dir_okay=False),
    help="Custom YAML rule catalogue (overrides the rules_path setting).",
)


@cli.command("parse")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text",
              help="Output format.")
@click.option("--raw", is_flag=True, help="Include the normalized raw text in JSON output.")
@rules_option
@click.pass_context
def parse_cmd(ctx, files, output_format, raw, rules_path):
    """Parse one or more pay stub files (.pdf or .txt).

    A file that cannot be read is reported and skipped; the exit code is 1
    if any file failed.
    """
    items = _parse_files(files, rules_path)

    if output_format == "json":
        exclude = None if raw else {"record": {"raw_text"}}
        output = [
            {
                "source": item.source,
                "result": item.result.model_dump(mode="json", exclude=exclude) if item.ok else None,
                "error": item.error,
            }
            for item in items
        ]
        click.echo(json.dumps(output, indent=2))
    else:
        console = Console()
        for item in items:
            if item.ok:
                render_parse_result(console, item.result, title=click.format_filename(item.source))
            else:
                console.print(Panel(
                    f"[red]{item.error}[/red]",
                    title=f"Error: {click.format_filename(item.source)}",
                    border_style="red"
                ))

    if any(not item.ok for item in items):
        ctx.exit(1)


@cli.command("summary")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--goal", type=click.FloatRange(min=0), default=None,
              help="Yearly investment goal; shows progress toward it.")
@rules_option
def summary_cmd(files, goal, rules_path):
    """Total gross, taxes, investments and ESPP across stub files.

    Stubs sharing a pay date count once (the last file wins).
    """
    items = _parse_files(files, rules_path)

    by_date = {}
    for item in items:
        if item.ok:
            by_date[item.result.record.pay_date] = item.result
        else:
            click.echo(f"Skipped {item.source}: {item.error}", err=True)

    if not by_date:
        raise click.ClickException("No stubs could be parsed.")

    records = [r.record for r in by_date.values()]
    contributions = [c for r in by_date.values() for c in r.contributions]

    progress = goal_progress(contributions, goal) if goal is not None else None
    render_summary(Console(), paycheck_summary(records, contributions), espp_by_quarter(records), progress)


@cli.group("rules")
def rules_group():
    """Inspect the extraction rule catalogue."""
    pass


@rules_group.command("show")
@rules_option
def rules_show(rules_path):
    """Show the rules in the active catalogue."""
    catalog = _load_catalog(rules_path)
    info = catalog.describe()

    click.echo(f"Catalogue: {info['name']} ({info['source_file']})")
    click.echo(f"  Pay date chain: {' -> '.join(info['pay_date'] + ['processing_date'])}")
    click.echo(f"  Other dates: {', '.join(info['dates']) or '-'}")
    click.echo(f"  Check number: {'yes' if info['check_number'] else 'no'}")
    click.echo(f"  Money fields: {', '.join(info['money']) or '-'}")
    click.echo(f"  Line-end fields: {', '.join(info['line_end']) or '-'}")
    click.echo(f"  Tax categories: {', '.join(info['taxes']) or '-'}")
    click.echo(f"  Consolidated taxes fallback: {'yes' if info['consolidated_taxes'] else 'no'}")
    click.echo("  Contributions:")
    for rule in info["contributions"]:
        click.echo(f"    {rule['type']:<16} {rule['side']:<9} {rule['variants']} label variant(s)")


@cli.group("config")
def config_group():
    """Manage settings (settings.json)."""
    pass


@config_group.command("show")
def config_show():
    """Show settings file location and effective values."""
    settings_path = get_settings_path()
    click.echo(f"Settings file: {settings_path}")
    click.echo(f"File exists: {settings_path.exists()}")
    click.echo()

    try:
        current = load_settings()
        rules_path = get_rules_path()
        tolerance = get_tolerance()
    except ConfigError as e:
        raise click.ClickException(str(e))

    for key in KNOWN_SETTINGS:
        marker = "" if key in current else " (default)"
        value = current.get(key)
        if key == "rules_path":
            value = rules_path or "bundled default.yaml"
        elif key == "reconcile_tolerance":
            value = tolerance
        click.echo(f"  {key}: {value}{marker}")


@config_group.command("set")
@click.argument("key", type=click.Choice(list(KNOWN_SETTINGS)))
@click.argument("value")
def config_set(key, value):
    """Set a setting value."""
    try:
        path = set_setting(key, value)
    except ConfigError as e:
        raise click.ClickException(str(e))
    click.echo(f"Saved to {path}")


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
