"""Entry store: the single owner of the date -> Entry mapping.

``update`` is the only user mutation path; ``install_bulk`` is reserved for
installing state pulled from the remote service. Every mutation bumps a
monotonic version and is announced to subscribed listeners, which is how the
local cache and the sync reconciler learn about changes.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from loguru import logger

from daybook.core.exceptions import EntryValidationError

from .media import MediaNormalizer
from .models import Entry, validate_date_key

LAST_SAVED_FORMAT = "%H:%M"


class ChangeOrigin(StrEnum):
    LOCAL = "local"  # user-driven update
    REMOTE = "remote"  # installation of pulled state


@dataclass(frozen=True)
class EntryChange:
    """Notification sent to store listeners after each mutation."""

    dates: tuple[str, ...]
    version: int
    origin: ChangeOrigin


Listener = Callable[[EntryChange], None]


class EntryStore:
    """In-memory map of date keys to entries.

    Example::

        store = EntryStore(MediaNormalizer("https://host"))
        store.update("2024-03-10", {"todos": [{"id": "1", "text": "run"}]})
        store.get("2024-03-10").todos[0].text   # "run"
    """

    def __init__(
        self,
        normalizer: MediaNormalizer | None = None,
        entries: Mapping[str, Entry] | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.normalizer = normalizer or MediaNormalizer()
        self._clock = clock
        self._entries: dict[str, Entry] = {}
        self._modified_version: dict[str, int] = {}
        self._version = 0
        self._listeners: list[Listener] = []
        for key, entry in (entries or {}).items():
            self._entries[validate_date_key(key)] = entry

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self, change: EntryChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as exc:
                logger.warning(f"Entry store listener failed for {change.dates}: {exc}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def version(self) -> int:
        """Monotonic counter, incremented on every mutation."""
        return self._version

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, date_key: object) -> bool:
        return date_key in self._entries

    def get(self, date_key: str | date) -> Entry:
        """Return the stored entry, or a fresh empty one without storing it."""
        key = validate_date_key(date_key)
        entry = self._entries.get(key)
        return entry if entry is not None else Entry.empty(key)

    def has_entry(self, date_key: str | date) -> bool:
        return validate_date_key(date_key) in self._entries

    def dates(self) -> list[str]:
        return sorted(self._entries)

    def snapshot(self) -> dict[str, Entry]:
        """Shallow copy of the map; entries themselves are immutable."""
        return dict(self._entries)

    def modified_since(self, version: int) -> set[str]:
        """Dates changed by ``update`` after the given store version."""
        return {k for k, v in self._modified_version.items() if v > version}

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update(self, date_key: str | date, partial: Mapping[str, Any]) -> Entry:
        """Merge *partial* over the existing (or empty) entry and store it.

        Sequence fields are replaced in full. ``last_saved_at`` is stamped
        with the current local time.

        Raises:
            EntryValidationError: for a malformed date key or invalid partial.
        """
        key = validate_date_key(date_key)
        entry = self.get(key).merged(partial)
        entry = replace(entry, last_saved_at=self._clock().strftime(LAST_SAVED_FORMAT))

        self._version += 1
        self._entries[key] = entry
        self._modified_version[key] = self._version
        self._notify(EntryChange(dates=(key,), version=self._version, origin=ChangeOrigin.LOCAL))
        return entry

    def install_bulk(
        self,
        entries: Mapping[str, Entry | Mapping[str, Any]],
        preserve_since: int | None = None,
    ) -> list[str]:
        """Install entries pulled from the remote service.

        Media references are converted to display form. When *preserve_since*
        is given, dates updated locally after that store version are left
        untouched. Malformed records are skipped with a warning.

        Returns:
            The date keys that were installed.
        """
        keep_local = self.modified_since(preserve_since) if preserve_since is not None else set()
        installed: list[str] = []
        for raw_key, raw_entry in entries.items():
            try:
                key = validate_date_key(raw_key)
                if not isinstance(raw_entry, (Entry, Mapping)):
                    raise EntryValidationError(f"expected an object, got {type(raw_entry).__name__}")
                entry = raw_entry if isinstance(raw_entry, Entry) else Entry.from_dict(raw_entry, date_key=key)
            except EntryValidationError as e:
                logger.warning(f"Skipping remote entry {raw_key!r}: {e}")
                continue
            if key in keep_local:
                logger.debug(f"Keeping local edit for {key} over pulled copy")
                continue
            if entry.date != key:
                entry = replace(entry, date=key)
            self._entries[key] = self.normalizer.entry_to_display(entry)
            installed.append(key)

        if installed:
            self._version += 1
            self._notify(EntryChange(dates=tuple(installed), version=self._version, origin=ChangeOrigin.REMOTE))
        return installed

    def remove(self, date_key: str | date) -> bool:
        """Drop a date locally, mirroring a deletion on the remote service."""
        key = validate_date_key(date_key)
        if key not in self._entries:
            return False
        del self._entries[key]
        self._modified_version.pop(key, None)
        self._version += 1
        self._notify(EntryChange(dates=(key,), version=self._version, origin=ChangeOrigin.REMOTE))
        return True
