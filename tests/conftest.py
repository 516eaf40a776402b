"""Shared test fixtures for daybook."""

import asyncio
import os
import tempfile

import pytest

from daybook.journal.models import Entry


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def tmp_config_file(tmp_dir):
    """Create a temporary YAML config file."""
    import yaml

    config_data = {
        "paths": {
            "data_dir": os.path.join(tmp_dir, "data"),
            "cache_dir": os.path.join(tmp_dir, "cache"),
        },
        "remote": {
            "api_base": "https://diary.example/api",
        },
    }
    config_path = os.path.join(tmp_dir, "config.yaml")
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


class FakeEntryService:
    """In-memory RemoteEntryService that records every call."""

    def __init__(self, entries=None, fail_fetch=False, fail_upsert=False, fail_delete=False):
        self.entries = dict(entries or {})
        self.fail_fetch = fail_fetch
        self.fail_upsert = fail_upsert
        self.fail_delete = fail_delete
        self.upserts: list[tuple[str, dict]] = []
        self.deletes: list[str] = []
        self.fetch_gate: asyncio.Event | None = None

    async def fetch_all(self):
        if self.fetch_gate is not None:
            await self.fetch_gate.wait()
        if self.fail_fetch:
            raise ConnectionError("server unreachable")
        return dict(self.entries)

    async def upsert(self, date_key, payload):
        if self.fail_upsert:
            raise ConnectionError("server unreachable")
        self.upserts.append((date_key, payload))
        entry = Entry.from_dict(payload, date_key=date_key)
        self.entries[date_key] = entry
        return entry

    async def delete(self, date_key):
        if self.fail_delete:
            raise ConnectionError("server unreachable")
        self.deletes.append(date_key)
        self.entries.pop(date_key, None)
        return True


@pytest.fixture
def fake_service():
    return FakeEntryService()


@pytest.fixture
def service_factory():
    """Build FakeEntryService instances with custom entries or failure modes."""
    return FakeEntryService
