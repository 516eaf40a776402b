"""Durable local cache for the full application state.

The whole ``AppState`` is stored as one JSON document under a fixed cache
key. Media references are written in storage-relative form and read back in
display form; transient ``blob:`` references never survive a save or a load.
No schema version is kept, so older payloads missing newer optional fields
load as empty values.
"""

from __future__ import annotations

import json
import os
from dataclasses import replace
from typing import Any

from loguru import logger

from daybook.core.exceptions import CacheError, EntryValidationError
from daybook.core.utils.file_io import atomic_write

from .media import MediaNormalizer, drop_transient
from .models import AppState, Entry, Granularity, ViewType, validate_date_key

CACHE_KEY = "diary_app_state"


def _enum_value(enum_cls, *candidates: Any):
    for candidate in candidates:
        if candidate is None:
            continue
        try:
            return enum_cls(candidate)
        except ValueError:
            logger.debug(f"Ignoring unknown {enum_cls.__name__} value {candidate!r} in cache")
    return None


class LocalCache:
    """JSON-file cache holding a single serialized AppState."""

    def __init__(self, cache_dir: str, normalizer: MediaNormalizer | None = None, key: str = CACHE_KEY):
        self.cache_dir = os.path.expanduser(cache_dir)
        self.key = key
        self.normalizer = normalizer or MediaNormalizer()

    @property
    def path(self) -> str:
        return os.path.join(self.cache_dir, f"{self.key}.json")

    def load(self) -> AppState | None:
        """Read the cached state, or None when absent or unreadable."""
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable state cache {self.path}: {e}")
            return None
        if not isinstance(payload, dict):
            logger.warning(f"Ignoring state cache {self.path}: top-level value is not an object")
            return None
        return self._parse_state(payload)

    def _parse_state(self, payload: dict[str, Any]) -> AppState:
        state = AppState.default()
        try:
            state.selected_date = validate_date_key(payload.get("selectedDate", state.selected_date))
        except EntryValidationError:
            pass
        # currentView / calendarView are the names used by older payloads.
        view = _enum_value(ViewType, payload.get("activeView"), payload.get("currentView"))
        granularity = _enum_value(Granularity, payload.get("calendarGranularity"), payload.get("calendarView"))
        state.active_view = view or state.active_view
        state.calendar_granularity = granularity or state.calendar_granularity

        raw_entries = payload.get("entries") or {}
        if not isinstance(raw_entries, dict):
            raw_entries = {}
        for key, raw in raw_entries.items():
            try:
                entry = Entry.from_dict(raw, date_key=validate_date_key(key))
            except (EntryValidationError, AttributeError) as e:
                logger.warning(f"Dropping cached entry {key!r}: {e}")
                continue
            entry = replace(entry, media=drop_transient(entry.media))
            state.entries[entry.date] = self.normalizer.entry_to_display(entry)
        return state

    def save(self, state: AppState) -> None:
        """Persist *state*, replacing the previous payload atomically.

        Raises:
            CacheError: if the file cannot be written.
        """
        entries = {}
        for key, entry in state.entries.items():
            stored = replace(entry, media=drop_transient(entry.media))
            entries[key] = self.normalizer.entry_to_storage(stored).to_dict()
        payload = state.to_dict()
        payload["entries"] = entries
        try:
            atomic_write(self.path, json.dumps(payload, ensure_ascii=False, indent=2))
        except OSError as e:
            raise CacheError(f"Cannot write state cache {self.path}: {e}") from e

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
