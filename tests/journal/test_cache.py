"""Tests for daybook.journal.cache."""

import json
import os

import pytest

from daybook.core.exceptions import CacheError
from daybook.journal.cache import CACHE_KEY, LocalCache
from daybook.journal.media import MediaNormalizer
from daybook.journal.models import AppState, Entry, Granularity, MediaFile, ViewType


@pytest.fixture
def cache(tmp_dir):
    return LocalCache(tmp_dir, normalizer=MediaNormalizer("https://host"))


def _state(**entries):
    return AppState(
        selected_date="2024-03-10",
        active_view=ViewType.CALENDAR,
        calendar_granularity=Granularity.WEEK,
        entries=dict(entries),
    )


class TestLocalCache:
    def test_missing_file_loads_none(self, cache):
        assert cache.load() is None

    def test_path_uses_cache_key(self, cache, tmp_dir):
        assert cache.path == os.path.join(tmp_dir, f"{CACHE_KEY}.json")

    def test_save_and_load(self, cache):
        entry = Entry(date="2024-03-10", insight="<p>晴</p>", todos=[{"id": "1", "text": "run"}])
        cache.save(_state(**{"2024-03-10": entry}))

        state = cache.load()
        assert state.selected_date == "2024-03-10"
        assert state.active_view is ViewType.CALENDAR
        assert state.calendar_granularity is Granularity.WEEK
        assert state.entries["2024-03-10"] == entry

    def test_media_stored_relative_loaded_absolute(self, cache):
        entry = Entry(date="2024-03-10", media=[MediaFile("m1", "image", "https://host/uploads/a.png", "a.png")])
        cache.save(_state(**{"2024-03-10": entry}))

        with open(cache.path, encoding="utf-8") as f:
            raw = json.load(f)
        assert raw["entries"]["2024-03-10"]["media"][0]["url"] == "/uploads/a.png"
        assert cache.load().entries["2024-03-10"].media[0].url == "https://host/uploads/a.png"

    def test_blob_media_never_persisted(self, cache):
        entry = Entry(
            date="2024-03-10",
            media=[
                MediaFile("m1", "image", "blob:https://host/abc", "preview.png"),
                MediaFile("m2", "image", "https://host/uploads/b.png", "b.png"),
            ],
        )
        cache.save(_state(**{"2024-03-10": entry}))

        with open(cache.path, encoding="utf-8") as f:
            assert "blob:" not in f.read()
        restored = cache.load().entries["2024-03-10"]
        assert [m.id for m in restored.media] == ["m2"]

    def test_blob_media_dropped_on_load(self, cache, tmp_dir):
        payload = {
            "selectedDate": "2024-03-10",
            "entries": {
                "2024-03-10": {"media": [{"id": "m1", "type": "image", "url": "blob:https://host/x", "name": "x"}]}
            },
        }
        with open(cache.path, "w", encoding="utf-8") as f:
            json.dump(payload, f)
        assert cache.load().entries["2024-03-10"].media == ()

    def test_untyped_media_does_not_lose_the_day(self, cache):
        payload = {
            "selectedDate": "2024-03-10",
            "entries": {
                "2024-03-10": {
                    "todos": [{"id": "t1", "text": "run", "completed": True}],
                    "expenses": [{"id": "e1", "item": "coffee", "amount": 3.5}],
                    "insight": "<p>rain</p>",
                    "media": [{"id": "m", "url": "/uploads/a.pdf", "name": "a.pdf"}],
                }
            },
        }
        with open(cache.path, "w", encoding="utf-8") as f:
            json.dump(payload, f)

        state = cache.load()
        cache.save(state)
        entry = cache.load().entries["2024-03-10"]
        assert [t.id for t in entry.todos] == ["t1"]
        assert [e.item for e in entry.expenses] == ["coffee"]
        assert entry.insight == "<p>rain</p>"
        assert entry.media == ()

    def test_older_payload_missing_fields(self, cache):
        payload = {
            "selectedDate": "2024-03-10",
            "currentView": "CALENDAR",
            "calendarView": "YEAR",
            "entries": {"2024-03-10": {"date": "2024-03-10", "todos": [], "expenses": [], "insight": ""}},
        }
        with open(cache.path, "w", encoding="utf-8") as f:
            json.dump(payload, f)

        state = cache.load()
        assert state.active_view is ViewType.CALENDAR
        assert state.calendar_granularity is Granularity.YEAR
        entry = state.entries["2024-03-10"]
        assert entry.media == ()
        assert entry.my_day_summary is None

    def test_unknown_enum_values_fall_back(self, cache):
        with open(cache.path, "w", encoding="utf-8") as f:
            json.dump({"activeView": "SETTINGS", "calendarGranularity": "DECADE"}, f)
        state = cache.load()
        assert state.active_view is ViewType.DAILY_RECORD
        assert state.calendar_granularity is Granularity.MONTH

    def test_bad_entries_dropped(self, cache):
        payload = {
            "entries": {
                "garbage": {"insight": "x"},
                "2024-03-09": "not an object",
                "2024-03-10": {"insight": "kept"},
            }
        }
        with open(cache.path, "w", encoding="utf-8") as f:
            json.dump(payload, f)
        assert list(cache.load().entries) == ["2024-03-10"]

    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
    def test_unreadable_cache_loads_none(self, cache, content):
        with open(cache.path, "w", encoding="utf-8") as f:
            f.write(content)
        assert cache.load() is None

    def test_save_failure_raises_cache_error(self, tmp_dir):
        blocker = os.path.join(tmp_dir, "not-a-dir")
        with open(blocker, "w") as f:
            f.write("x")
        cache = LocalCache(blocker)
        with pytest.raises(CacheError):
            cache.save(AppState.default())

    def test_clear(self, cache):
        cache.save(AppState.default())
        cache.clear()
        assert cache.load() is None
        cache.clear()
