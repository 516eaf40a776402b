"""Contracts for the remote collaborators the journal core depends on.

Any backend that can store dated entries and accept media uploads can
implement these protocols. ``daybook.integrations`` ships HTTP clients for
the reference diary server.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from .models import Entry, MediaFile


@runtime_checkable
class RemoteEntryService(Protocol):
    """Protocol for the authoritative remote copy of the journal.

    Entries exchanged through this protocol carry storage-relative media
    references. ``upsert`` is a full-entry overwrite, so pushes arriving out
    of order never merge stale fields into newer ones.
    """

    async def fetch_all(self) -> dict[str, Entry]:
        """Return every entry the remote side holds, keyed by date."""
        ...

    async def upsert(self, date_key: str, payload: dict[str, Any]) -> Entry:
        """Overwrite the entry for *date_key* with *payload* and return the stored copy."""
        ...

    async def delete(self, date_key: str) -> bool:
        """Delete the entry for *date_key*. Returns True once acknowledged."""
        ...


@runtime_checkable
class UploadService(Protocol):
    """Protocol for media uploads."""

    async def upload(self, path: str | Path, date_key: str | None = None) -> MediaFile:
        """Upload the file at *path* for *date_key*.

        Returns:
            A MediaFile with an assigned id, inferred kind and a
            storage-relative url.

        Raises:
            UploadError: the upload did not complete.
        """
        ...


@runtime_checkable
class SummaryService(Protocol):
    async def generate(self, entry: Entry) -> str:
        """Return a short summary of *entry*. Never raises."""
        ...
