"""Sync reconciler: keeps the local entry store and the remote service converging.

Pulled state wins on sign-in; afterwards every local ``update`` is pushed as
a full-entry overwrite. Echo suppression is version based: the store version
produced by an installation is recorded before the installation runs, and
only LOCAL changes with a newer version are ever pushed.

Usage::

    reconciler = SyncReconciler(store)
    await reconciler.on_authenticated(EntriesClient(api_base, token))
    store.update("2024-03-10", {"insight": "<p>quiet day</p>"})   # schedules a push
    await reconciler.drain()
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import Any

from loguru import logger

from daybook.core.exceptions import TransportError

from .media import drop_transient
from .models import Entry, validate_date_key
from .protocols import RemoteEntryService
from .store import ChangeOrigin, EntryChange, EntryStore


class SyncStatus(StrEnum):
    IDLE = "idle"
    PULLING = "pulling"
    PUSHING = "pushing"


def push_payload(entry: Entry) -> dict[str, Any]:
    """Full-entry body for ``RemoteEntryService.upsert`` (media must already be in storage form)."""
    payload: dict[str, Any] = {
        "todos": [t.to_dict() for t in entry.todos],
        "expenses": [e.to_dict() for e in entry.expenses],
        "insight": entry.insight,
        "media": [m.to_dict() for m in drop_transient(entry.media)],
    }
    if entry.my_day_summary is not None:
        payload["myDaySummary"] = entry.my_day_summary
    return payload


class SyncReconciler:
    """Pull-on-sign-in, push-on-update reconciliation against a RemoteEntryService."""

    def __init__(self, store: EntryStore):
        self.store = store
        self.normalizer = store.normalizer
        self.last_error: Exception | None = None
        self._service: RemoteEntryService | None = None
        self._epoch = 0
        self._suppress_through = store.version
        self._pulling = False
        self._pushes_in_flight = 0
        self._background_tasks: set[asyncio.Task] = set()  # prevent GC of fire-and-forget pushes
        store.subscribe(self._on_change)

    @property
    def authenticated(self) -> bool:
        return self._service is not None

    @property
    def status(self) -> SyncStatus:
        if self._pulling:
            return SyncStatus.PULLING
        if self._pushes_in_flight:
            return SyncStatus.PUSHING
        return SyncStatus.IDLE

    @property
    def pending(self) -> int:
        """Number of scheduled pushes that have not finished."""
        return len(self._background_tasks)

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    async def on_authenticated(self, service: RemoteEntryService) -> list[str]:
        """Adopt *service* and install its full entry set.

        A failed or empty pull leaves local entries as they were. If the
        session signs out (or signs in again) while the pull is in flight,
        the result is discarded.

        Returns:
            Date keys installed from the remote copy.
        """
        self._service = service
        self._epoch += 1
        epoch = self._epoch
        start_version = self.store.version

        self._pulling = True
        logger.debug("Pulling remote entries")
        try:
            remote = await service.fetch_all()
        except Exception as e:
            self.last_error = e
            logger.warning(f"Failed to pull remote entries, staying offline-first: {e}")
            return []
        finally:
            self._pulling = False

        if epoch != self._epoch:
            logger.info("Session changed during pull; discarding pulled entries")
            return []
        if not remote:
            logger.debug("Remote entry set is empty; keeping local entries")
            return []

        # install_bulk bumps the version exactly once; nothing up to that version is pushed.
        self._suppress_through = self.store.version + 1
        installed = self.store.install_bulk(remote, preserve_since=start_version)
        # Nothing may have been installed; later local edits must still push.
        self._suppress_through = self.store.version
        logger.info(f"Installed {len(installed)} remote entries")
        return installed

    def sign_out(self) -> None:
        self._service = None
        self._epoch += 1

    # ------------------------------------------------------------------
    # Push
    # ------------------------------------------------------------------

    def _on_change(self, change: EntryChange) -> None:
        if change.origin is not ChangeOrigin.LOCAL or change.version <= self._suppress_through:
            return
        if self._service is None:
            return
        for date_key in change.dates:
            self.schedule_push(date_key)

    def schedule_push(self, date_key: str) -> asyncio.Task | None:
        """Fire-and-forget push of the current entry for *date_key*."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop; push for {date_key} skipped")
            return None

        entry = self.normalizer.entry_to_storage(self.store.get(date_key))
        task = loop.create_task(self.push(entry))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def push(self, entry: Entry) -> bool:
        """Send *entry* (storage-form media) to the remote service.

        Failures are logged and recorded in ``last_error``; the local copy is
        never rolled back and nothing is retried.
        """
        service = self._service
        if service is None:
            return False
        self._pushes_in_flight += 1
        try:
            await service.upsert(entry.date, push_payload(entry))
            logger.debug(f"Pushed entry {entry.date}")
            return True
        except Exception as e:
            self.last_error = e
            logger.warning(f"Failed to sync entry {entry.date} to remote: {e}")
            return False
        finally:
            self._pushes_in_flight -= 1

    async def drain(self) -> None:
        """Wait for every scheduled push to finish."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete(self, date_key: str) -> bool:
        """Delete *date_key* remotely, then mirror the deletion locally.

        Offline, only the local copy is removed.

        Raises:
            TransportError: the remote delete failed; local state is kept.
        """
        date_key = validate_date_key(date_key)
        service = self._service
        if service is not None:
            try:
                await service.delete(date_key)
            except Exception as e:
                self.last_error = e
                raise TransportError(f"Failed to delete entry {date_key}: {e}") from e
        return self.store.remove(date_key)
