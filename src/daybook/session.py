"""Application session: wires the entry store, local cache and sync reconciler.

One DaybookSession exists per process. It is restored from the local cache
(or defaults), persists the full state after every mutation, and exposes the
operations the interface layer drives.

Usage::

    session = DaybookSession.from_config(Config("~/.daybook/config.yaml"))
    session.update_entry("2024-03-10", {"insight": "<p>rain all day</p>"})
    await session.sign_in(EntriesClient(api_base, token))
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any

from loguru import logger

from daybook.calendar.grid import Grid, build_grid, shift_anchor
from daybook.core.config import Config
from daybook.core.exceptions import CacheError
from daybook.journal.cache import LocalCache
from daybook.journal.media import MediaNormalizer
from daybook.journal.models import AppState, Entry, Granularity, ViewType, validate_date_key
from daybook.journal.protocols import RemoteEntryService, SummaryService, UploadService
from daybook.journal.store import EntryChange, EntryStore
from daybook.journal.sync import SyncReconciler


class DaybookSession:
    """Owns AppState for the lifetime of a process."""

    def __init__(
        self,
        cache: LocalCache,
        normalizer: MediaNormalizer | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.cache = cache
        self.normalizer = normalizer or cache.normalizer
        self._today = today

        restored = cache.load()
        state = restored or AppState.default(today())
        # Every start opens on today's daily record; only the granularity is restored.
        self.selected_date = today().isoformat()
        self.active_view = ViewType.DAILY_RECORD
        self.calendar_granularity = state.calendar_granularity
        self.calendar_anchor = today()
        self.persist_error: CacheError | None = None

        self.store = EntryStore(self.normalizer, entries=state.entries)
        self.store.subscribe(self._persist)
        self.reconciler = SyncReconciler(self.store)
        logger.debug(f"Session started with {len(self.store)} cached entries")

    @classmethod
    def from_config(cls, config: Config) -> DaybookSession:
        settings = config.validated()
        normalizer = MediaNormalizer(settings.remote.server_origin)
        return cls(LocalCache(str(settings.paths.cache_dir), normalizer=normalizer))

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> AppState:
        return AppState(
            selected_date=self.selected_date,
            active_view=self.active_view,
            calendar_granularity=self.calendar_granularity,
            entries=self.store.snapshot(),
        )

    def save(self) -> None:
        self.cache.save(self.state)

    def _persist(self, change: EntryChange) -> None:
        # Store listeners are isolated from each other, so the failure is kept
        # here and re-raised by the session operation that caused it.
        try:
            self.save()
        except CacheError as e:
            logger.error(f"Could not persist {change.dates}: {e}")
            self.persist_error = e

    def _raise_persist_error(self) -> None:
        error, self.persist_error = self.persist_error, None
        if error is not None:
            raise error

    @property
    def current_entry(self) -> Entry:
        return self.store.get(self.selected_date)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def update_entry(self, date_key: str | date, partial: Mapping[str, Any]) -> Entry:
        """Apply a user edit. Persisted before returning; pushed in the background when signed in.

        Raises:
            CacheError: the edit is applied in memory but could not be written to the cache.
        """
        self.persist_error = None
        entry = self.store.update(date_key, partial)
        self._raise_persist_error()
        return entry

    def navigate_to_date(self, date_key: str | date) -> None:
        self.selected_date = validate_date_key(date_key)
        self.active_view = ViewType.DAILY_RECORD
        self.save()

    def set_view(self, view: ViewType) -> None:
        self.active_view = ViewType(view)
        self.save()

    def set_granularity(self, granularity: Granularity) -> None:
        self.calendar_granularity = Granularity(granularity)
        self.save()

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    def calendar(self, anchor: str | date | None = None) -> Grid:
        """Grid for the current granularity around *anchor* (default: the navigation anchor)."""
        if anchor is not None:
            self.calendar_anchor = date.fromisoformat(validate_date_key(anchor))
        return build_grid(self.calendar_granularity, self.calendar_anchor, self.store.has_entry)

    def next_period(self) -> date:
        self.calendar_anchor = shift_anchor(self.calendar_granularity, self.calendar_anchor, 1)
        return self.calendar_anchor

    def previous_period(self) -> date:
        self.calendar_anchor = shift_anchor(self.calendar_granularity, self.calendar_anchor, -1)
        return self.calendar_anchor

    def go_to_today(self) -> date:
        self.calendar_anchor = self._today()
        return self.calendar_anchor

    # ------------------------------------------------------------------
    # Remote
    # ------------------------------------------------------------------

    async def sign_in(self, service: RemoteEntryService) -> list[str]:
        """Adopt an authenticated service and pull its entries."""
        self.persist_error = None
        installed = await self.reconciler.on_authenticated(service)
        self._raise_persist_error()
        return installed

    def sign_out(self) -> None:
        self.reconciler.sign_out()

    async def delete_entry(self, date_key: str | date) -> bool:
        self.persist_error = None
        removed = await self.reconciler.delete(validate_date_key(date_key))
        self._raise_persist_error()
        return removed

    async def attach_upload(self, uploader: UploadService, path: str | Path, date_key: str | None = None) -> Entry:
        """Upload a file and append it to the entry's media.

        Raises:
            UploadError: the upload failed; the entry is left unchanged.
        """
        key = validate_date_key(date_key or self.selected_date)
        uploaded = await uploader.upload(path, key)
        shown = replace(uploaded, url=self.normalizer.to_display(uploaded.url))
        entry = self.store.get(key)
        return self.update_entry(key, {"media": [*entry.media, shown]})

    async def generate_summary(self, summarizer: SummaryService, date_key: str | date | None = None) -> Entry:
        key = validate_date_key(date_key or self.selected_date)
        summary = await summarizer.generate(self.store.get(key))
        return self.update_entry(key, {"myDaySummary": summary})

    async def close(self) -> None:
        """Wait for background pushes before the process exits."""
        await self.reconciler.drain()
