"""Tests for daybook.journal.store."""

from datetime import datetime

import pytest

from daybook.core.exceptions import EntryValidationError
from daybook.journal.media import MediaNormalizer
from daybook.journal.models import Entry, Todo
from daybook.journal.store import ChangeOrigin, EntryStore


@pytest.fixture
def store():
    return EntryStore(MediaNormalizer("https://host"), clock=lambda: datetime(2024, 3, 10, 14, 32))


@pytest.fixture
def changes(store):
    received = []
    store.subscribe(received.append)
    return received


class TestReads:
    def test_get_missing_returns_empty_without_storing(self, store):
        entry = store.get("2024-03-10")
        assert entry.is_empty
        assert "2024-03-10" not in store
        assert len(store) == 0

    def test_get_rejects_bad_key(self, store):
        with pytest.raises(EntryValidationError):
            store.get("10/03/2024")

    def test_dates_sorted(self, store):
        store.update("2024-03-10", {"insight": "b"})
        store.update("2024-01-01", {"insight": "a"})
        assert store.dates() == ["2024-01-01", "2024-03-10"]


class TestUpdate:
    def test_merges_and_stamps(self, store):
        store.update("2024-03-10", {"insight": "<p>rain</p>"})
        entry = store.update("2024-03-10", {"todos": [{"id": "1", "text": "run"}]})
        assert entry.insight == "<p>rain</p>"
        assert entry.todos == (Todo("1", "run"),)
        assert entry.last_saved_at == "14:32"
        assert store.get("2024-03-10") == entry

    def test_first_update_creates_one_entry(self, store):
        entry = store.update("2024-03-10", {"todos": [{"id": "1", "text": "run"}]})
        assert len(store) == 1
        assert entry.expenses == ()
        assert entry.insight == ""
        assert entry.media == ()
        assert entry.my_day_summary is None

    def test_disjoint_partials_merge_field_wise(self, store):
        store.update("2024-03-10", {"todos": [{"id": "1", "text": "run"}]})
        entry = store.update("2024-03-10", {"expenses": [{"id": "e1", "item": "coffee", "amount": "3.50"}]})
        assert [t.text for t in entry.todos] == ["run"]
        assert [e.item for e in entry.expenses] == ["coffee"]

    def test_replaces_sequences_in_full(self, store):
        store.update("2024-03-10", {"todos": [{"id": "1", "text": "a"}, {"id": "2", "text": "b"}]})
        entry = store.update("2024-03-10", {"todos": [{"id": "2", "text": "b", "completed": True}]})
        assert len(entry.todos) == 1
        assert entry.todos[0].completed

    def test_notifies_local_change(self, store, changes):
        store.update("2024-03-10", {"insight": "x"})
        assert len(changes) == 1
        assert changes[0].dates == ("2024-03-10",)
        assert changes[0].origin is ChangeOrigin.LOCAL
        assert changes[0].version == store.version == 1

    def test_invalid_partial_leaves_store_untouched(self, store, changes):
        with pytest.raises(EntryValidationError):
            store.update("2024-03-10", {"mood": "great"})
        with pytest.raises(EntryValidationError):
            store.update("not-a-date", {"insight": "x"})
        assert len(store) == 0
        assert store.version == 0
        assert changes == []

    def test_listener_failure_does_not_break_update(self, store):
        def broken(_change):
            raise RuntimeError("listener bug")

        store.subscribe(broken)
        entry = store.update("2024-03-10", {"insight": "x"})
        assert store.get("2024-03-10") == entry

    def test_unsubscribe(self, store, changes):
        store.unsubscribe(changes.append)
        store.unsubscribe(changes.append)
        store.update("2024-03-10", {"insight": "x"})
        assert changes == []


class TestInstallBulk:
    def test_installs_in_display_form_with_one_notification(self, store, changes):
        installed = store.install_bulk(
            {
                "2024-03-10": {"media": [{"id": "m", "type": "image", "url": "/uploads/a.png", "name": "a.png"}]},
                "2024-03-11": Entry(date="2024-03-11", insight="<p>x</p>"),
            }
        )
        assert installed == ["2024-03-10", "2024-03-11"]
        assert store.get("2024-03-10").media[0].url == "https://host/uploads/a.png"
        assert len(changes) == 1
        assert changes[0].origin is ChangeOrigin.REMOTE
        assert changes[0].dates == ("2024-03-10", "2024-03-11")

    def test_skips_malformed_records(self, store):
        installed = store.install_bulk(
            {
                "bad-key": {"insight": "x"},
                "2024-03-10": "not an object",
                "2024-03-12": {"insight": "ok"},
            }
        )
        assert installed == ["2024-03-12"]

    def test_bad_media_item_keeps_rest_of_day(self, store):
        installed = store.install_bulk(
            {
                "2024-03-10": {
                    "todos": [{"id": "1", "text": "run"}],
                    "insight": "<p>rain</p>",
                    "media": [
                        {"id": "m1", "url": "/uploads/a.pdf", "name": "a.pdf"},
                        {"id": "m2", "type": "image", "url": "/uploads/b.png", "name": "b.png"},
                    ],
                }
            }
        )
        assert installed == ["2024-03-10"]
        entry = store.get("2024-03-10")
        assert [t.text for t in entry.todos] == ["run"]
        assert entry.insight == "<p>rain</p>"
        assert [m.url for m in entry.media] == ["https://host/uploads/b.png"]

    def test_key_wins_over_embedded_date(self, store):
        store.install_bulk({"2024-03-10": Entry(date="2024-01-01")})
        assert store.get("2024-03-10").date == "2024-03-10"
        assert "2024-01-01" not in store

    def test_preserves_local_edits_made_after_version(self, store):
        store.update("2024-03-09", {"insight": "before pull"})
        start = store.version
        store.update("2024-03-10", {"insight": "typed during pull"})
        installed = store.install_bulk(
            {"2024-03-09": {"insight": "remote"}, "2024-03-10": {"insight": "stale remote"}},
            preserve_since=start,
        )
        assert installed == ["2024-03-09"]
        assert store.get("2024-03-09").insight == "remote"
        assert store.get("2024-03-10").insight == "typed during pull"

    def test_empty_install_is_silent(self, store, changes):
        assert store.install_bulk({}) == []
        assert changes == []
        assert store.version == 0


class TestRemove:
    def test_remove(self, store, changes):
        store.update("2024-03-10", {"insight": "x"})
        assert store.remove("2024-03-10")
        assert "2024-03-10" not in store
        assert changes[-1].origin is ChangeOrigin.REMOTE

    def test_remove_missing(self, store):
        assert not store.remove("2024-03-10")
