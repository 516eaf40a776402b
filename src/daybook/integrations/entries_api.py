"""Diary server REST client.

Thin wrapper around the entry and auth endpoints with bearer-token auth.
No external dependencies beyond the standard library; blocking requests run
in a worker thread so callers on the event loop stay responsive.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from loguru import logger

from daybook.core.exceptions import AuthenticationError, TransportError
from daybook.journal.models import Entry

DEFAULT_API_BASE = "http://localhost:3001/api"


class EntriesClient:
    """Implements ``RemoteEntryService`` over the diary server's JSON API."""

    def __init__(self, api_base: str = DEFAULT_API_BASE, token: str = "", timeout: int = 15):
        self.api_base = api_base.rstrip("/")
        self.token = token
        self.timeout = timeout

    def _request(self, method: str, path: str, *, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self.api_base}/{path.lstrip('/')}"

        data = None
        headers: dict[str, str] = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if payload is not None:
            headers["Content-Type"] = "application/json"
            data = json.dumps(payload).encode("utf-8")

        req = urllib.request.Request(url=url, data=data, method=method.upper(), headers=headers)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            message = self._error_message(e)
            if e.code in (401, 403):
                raise AuthenticationError(f"Diary API {e.code}: {message}") from e
            raise TransportError(f"Diary API {e.code}: {message}") from e
        except (urllib.error.URLError, TimeoutError) as e:
            raise TransportError(f"Diary API request failed: {e}") from e

        if not raw:
            return {}
        try:
            return json.loads(raw.decode("utf-8", errors="ignore"))
        except json.JSONDecodeError as e:
            raise TransportError(f"Diary API returned invalid JSON for {method} {path}") from e

    @staticmethod
    def _error_message(error: urllib.error.HTTPError) -> str:
        body = error.read().decode("utf-8", errors="ignore") if hasattr(error, "read") else ""
        try:
            return json.loads(body).get("error") or body
        except (json.JSONDecodeError, AttributeError):
            return body or str(error.reason)

    async def _call(self, method: str, path: str, *, payload: dict[str, Any] | None = None) -> Any:
        return await asyncio.to_thread(self._request, method, path, payload=payload)

    # Auth
    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Exchange credentials for a token, which is kept for later calls."""
        result = await self._call("POST", "/auth/login", payload={"email": email, "password": password})
        token = result.get("token") if isinstance(result, dict) else None
        if not token:
            raise AuthenticationError("Login response did not include a token")
        self.token = token
        return result.get("user") or {}

    # Entries
    async def fetch_all(self) -> dict[str, Entry]:
        result = await self._call("GET", "/entries")
        raw_entries = result.get("entries") if isinstance(result, dict) else None
        entries: dict[str, Entry] = {}
        for date_key, raw in (raw_entries or {}).items():
            try:
                entries[date_key] = Entry.from_dict(raw, date_key=date_key)
            except (ValueError, AttributeError) as e:
                logger.warning(f"Ignoring malformed remote entry {date_key!r}: {e}")
        return entries

    async def upsert(self, date_key: str, payload: dict[str, Any]) -> Entry:
        result = await self._call("PUT", f"/entries/{urllib.parse.quote(date_key)}", payload=payload)
        raw = result.get("entry") if isinstance(result, dict) else None
        return Entry.from_dict(raw or payload, date_key=date_key)

    async def delete(self, date_key: str) -> bool:
        await self._call("DELETE", f"/entries/{urllib.parse.quote(date_key)}")
        return True
