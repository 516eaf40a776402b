"""Shared setup logic for CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import date
from pathlib import Path
from typing import TypeVar

import click

from daybook.core.config import Config
from daybook.core.exceptions import DaybookError
from daybook.integrations.entries_api import EntriesClient
from daybook.session import DaybookSession

DAYBOOK_DIR = Path.home() / ".daybook"
CONFIG_PATH = DAYBOOK_DIR / "config.yaml"

T = TypeVar("T")


def load_config(config_file: str | None = None) -> Config:
    """Load config from the given file, or ~/.daybook/config.yaml."""
    return Config(config_file=config_file or str(CONFIG_PATH))


def resolve_date(value: str | None) -> str:
    """Accept ``today``, ``yesterday`` or an ISO date; default to today."""
    if not value or value == "today":
        return date.today().isoformat()
    if value == "yesterday":
        return date.fromordinal(date.today().toordinal() - 1).isoformat()
    return value


def entries_client(config: Config) -> EntriesClient | None:
    """An authenticated entry client, or None when no token is configured."""
    token = config.get("remote.token", "")
    if not token:
        return None
    return EntriesClient(
        api_base=config.get("remote.api_base"),
        token=token,
        timeout=int(config.get("remote.timeout", 15)),
    )


def run_with_session(config: Config, action: Callable[[DaybookSession], Awaitable[T]], online: bool = True) -> T:
    """Run *action* against a fresh session inside one event loop.

    When a token is configured and *online* is set, the session signs in
    (pulling remote entries) first and waits for pending pushes afterwards.
    Library errors are reported as click errors.
    """

    async def _run() -> T:
        session = DaybookSession.from_config(config)
        client = entries_client(config) if online else None
        if client is not None:
            await session.sign_in(client)
        try:
            return await action(session)
        finally:
            await session.close()

    try:
        return asyncio.run(_run())
    except DaybookError as e:
        raise click.ClickException(str(e)) from e
