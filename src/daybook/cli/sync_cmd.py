"""daybook login / sync / upload / summary: commands that talk to remote services."""

from __future__ import annotations

import asyncio
import json
import os

import click
import yaml

from daybook.cli.common import entries_client, resolve_date, run_with_session
from daybook.core.exceptions import DaybookError
from daybook.core.utils.file_io import atomic_write

NO_TOKEN = "No server token configured. Run `daybook login EMAIL` first."


def store_token(config_file: str, token: str) -> None:
    """Write remote.token into the YAML or JSON config file, keeping its other settings."""
    is_json = config_file.lower().endswith(".json")
    data = {}
    if os.path.exists(config_file):
        with open(config_file) as f:
            data = (json.load(f) if is_json else yaml.safe_load(f)) or {}
    data.setdefault("remote", {})["token"] = token
    atomic_write(config_file, json.dumps(data, indent=2) if is_json else yaml.safe_dump(data, sort_keys=False))


@click.command()
@click.argument("email")
@click.password_option(confirmation_prompt=False)
@click.pass_obj
def login(config, email: str, password: str) -> None:
    """Sign in to the diary server and save the token to the config file."""
    from daybook.integrations.entries_api import EntriesClient

    client = EntriesClient(api_base=config.get("remote.api_base"), timeout=int(config.get("remote.timeout", 15)))
    try:
        user = asyncio.run(client.login(email, password))
    except DaybookError as e:
        raise click.ClickException(f"Login failed: {e}") from e
    try:
        store_token(config.config_file, client.token)
    except OSError as e:
        raise click.ClickException(f"Cannot save token to {config.config_file}: {e}") from e
    click.echo(f"Signed in as {user.get('email') or email}. Token saved to {config.config_file}")


@click.command()
@click.pass_obj
def sync(config) -> None:
    """Pull every entry from the server into the local cache."""
    if entries_client(config) is None:
        click.echo(NO_TOKEN)
        return

    async def action(session):
        return session.reconciler

    reconciler = run_with_session(config, action)
    if reconciler.last_error is not None:
        raise click.ClickException(f"Sync failed: {reconciler.last_error}")
    click.echo(f"Synced. {len(reconciler.store)} entries cached locally.")


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--date", "date_key", default=None, help="Day to attach the file to (default: today).")
@click.pass_obj
def upload(config, path: str, date_key: str | None) -> None:
    """Upload the file at PATH and attach it to a day's entry."""
    from daybook.integrations.upload import UploadClient

    client = entries_client(config)
    if client is None:
        click.echo(NO_TOKEN)
        return
    key = resolve_date(date_key)
    uploader = UploadClient(api_base=client.api_base, token=client.token)

    async def action(session):
        entry = await session.attach_upload(uploader, path, key)
        return entry.media[-1]

    media = run_with_session(config, action)
    click.echo(f"Attached {media.kind.value} {media.name} to {key}")


@click.command()
@click.argument("date_key", required=False)
@click.pass_obj
def summary(config, date_key: str | None) -> None:
    """Generate a one-line summary of a day with an LLM."""
    from daybook.journal.summary import SummaryGenerator

    key = resolve_date(date_key)
    generator = SummaryGenerator(
        model=config.get("llm.model"),
        max_chars=int(config.get("llm.max_chars", 120)),
        timeout=int(config.get("llm.timeout", 60)),
    )

    async def action(session):
        return await session.generate_summary(generator, key)

    entry = run_with_session(config, action)
    click.echo(entry.my_day_summary)
