import click
import json
import logging
import sys
from pathlib import Path
from functools import wraps
from notebackup import __version__
from notebackup.backup import (
    export_backup,
    import_backup,
    plan_import,
    preview_backup,
    restore_from_backup,
    verify_integrity,
)
from notebackup.config import Configuration
from notebackup.sql_store import SqlStore
from notebackup.utils import load_config, setup_logging
from notebackup.validation import BackupValidationError

log = logging.getLogger(__name__)

DEFAULT_CONFIG = "config.yaml"


def resolve_config(config: str | None, database: str | None) -> Configuration:
    if config is None:
        config_obj = load_config(DEFAULT_CONFIG) if Path(DEFAULT_CONFIG).exists() else Configuration()
    else:
        config_obj = load_config(config)
    if database is not None:
        config_obj.database_url = database
    return config_obj


def setup_command(func):
    """Decorator to handle common CLI options (logging, config loading, version)."""

    @click.option("--config", default=None, help=f"Configuration file (default: {DEFAULT_CONFIG} if present).")
    @click.option("--database", default=None, help="Database URL, overrides the configuration.")
    @click.option("--debug", default=False, is_flag=True, help="Enable debug.")
    @click.option("--version", is_flag=True, help="Show the application's version.")
    @wraps(func)
    def wrapper(config, database, debug, version, **kwargs):
        if version:
            click.echo(__version__)
            return

        setup_logging(debug)

        config_obj = resolve_config(config, database)
        if debug:
            log.debug(json.dumps(config_obj.model_dump(), indent=4))

        return func(config_obj=config_obj, **kwargs)

    return wrapper


def read_backup(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def report_invalid(error: BackupValidationError) -> None:
    click.echo(f"✗ Backup file rejected ({error.kind.value}), nothing was imported:", err=True)
    for issue in error.issues:
        click.echo(f"  {issue}", err=True)
    sys.exit(1)


@click.group()
def cli():
    pass


@click.command()
@click.option("--output", default=None, help="Output file path (default: stdout).")
@setup_command
def export(config_obj, output):
    """Export all categories and notes to a backup file."""
    content = export_backup(SqlStore.from_config(config_obj), config_obj)
    if output:
        with open(output, "wb") as f:
            f.write(content)
        click.echo(f"Backup written to {output}")
    else:
        click.echo(content.decode("utf-8"))


@click.command("import")
@click.argument("backup_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--fail-on-errors", is_flag=True, help="Exit with status 2 if any note could not be imported.")
@setup_command
def import_(config_obj, backup_file, fail_on_errors):
    """Merge a backup file into the store, matching categories by name."""
    store = SqlStore.from_config(config_obj)
    try:
        report = import_backup(read_backup(backup_file), store, config_obj)
    except BackupValidationError as error:
        report_invalid(error)
        return
    click.echo(report.format_report())
    if fail_on_errors and report.has_failures:
        sys.exit(2)


@click.command()
@click.argument("backup_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@setup_command
def restore(config_obj, backup_file, yes):
    """Replace everything in the store with the content of a backup file."""
    if not yes:
        click.confirm("This deletes all notes and categories first. Continue?", abort=True)
    store = SqlStore.from_config(config_obj)
    try:
        report = restore_from_backup(read_backup(backup_file), store, config_obj)
    except BackupValidationError as error:
        report_invalid(error)
        return
    click.echo(report.format_report())


@click.command()
@setup_command
def verify(config_obj):
    """Check the store for orphaned notes and stale counters."""
    report = verify_integrity(SqlStore.from_config(config_obj))
    click.echo(report.format_report())
    if not report.is_valid:
        sys.exit(1)


@click.command()
@click.argument("backup_file", type=click.Path(exists=True, dir_okay=False))
@setup_command
def preview(config_obj, backup_file):
    """Show what a backup file contains."""
    try:
        info = preview_backup(read_backup(backup_file), config_obj)
    except BackupValidationError as error:
        report_invalid(error)
        return
    click.echo(f"Exported:    {info.export_time}")
    click.echo(f"App version: {info.app_version}")
    click.echo(f"Categories:  {info.total_categories}")
    click.echo(f"Notes:       {info.total_notes}")
    for name, count in sorted(info.category_distribution.items()):
        click.echo(f"  {name}: {count}")


@click.command()
@click.argument("backup_file", type=click.Path(exists=True, dir_okay=False))
@setup_command
def plan(config_obj, backup_file):
    """Show how backup categories would be matched, without importing anything."""
    try:
        merge_plan = plan_import(read_backup(backup_file), SqlStore.from_config(config_obj), config_obj)
    except BackupValidationError as error:
        report_invalid(error)
        return
    for decision in merge_plan.decisions:
        click.echo(f"{decision.source} -> {decision.target} ({decision.strategy.value})")
        for suggestion in merge_plan.suggestions.get(decision.source, []):
            click.echo(f"    similar: {suggestion}")


cli.add_command(export)
cli.add_command(import_)
cli.add_command(restore)
cli.add_command(verify)
cli.add_command(preview)
cli.add_command(plan)

if __name__ == "__main__":
    cli()
