"""daybook CLI: entry point for journal, calendar and sync commands."""

import os

import click

from daybook import __version__


@click.group()
@click.version_option(version=__version__, package_name="daybook")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), default=None, help="Path to config.yaml.")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def main(ctx: click.Context, config_file: str | None, verbose: bool) -> None:
    """daybook: a local-first personal journal."""
    from daybook.cli.common import load_config
    from daybook.core.exceptions import ConfigurationError
    from daybook.core.utils.logging import setup_logging

    try:
        config = load_config(config_file)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    try:
        config.ensure_directories()
    except OSError as e:
        raise click.ClickException(f"Cannot create data directories: {e}") from e
    setup_logging(
        level="DEBUG" if verbose else config.get("logging.level", "WARNING"),
        log_file=config.get("logging.file") or os.path.join(config.get("paths.log_dir"), "daybook.log"),
    )
    ctx.obj = config


# Register subcommands
from .calendar_cmd import almanac, calendar
from .entry_cmd import delete, expense, note, show, todo
from .sync_cmd import login, summary, sync, upload

main.add_command(show)
main.add_command(todo)
main.add_command(expense)
main.add_command(note)
main.add_command(delete)
main.add_command(calendar)
main.add_command(almanac)
main.add_command(login)
main.add_command(sync)
main.add_command(upload)
main.add_command(summary)
