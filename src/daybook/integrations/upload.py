"""Media upload client.

Posts a file as multipart form data to the diary server's ``/upload``
endpoint and returns the stored reference as a MediaFile. The returned url
is storage-relative; callers convert it for display with MediaNormalizer.
"""

from __future__ import annotations

import asyncio
import mimetypes
import uuid
from pathlib import Path

import aiofiles
import requests
from loguru import logger

from daybook.core.exceptions import EntryValidationError, UploadError
from daybook.journal.models import MediaFile, MediaKind, validate_date_key

from .entries_api import DEFAULT_API_BASE


class UploadClient:
    """Implements ``UploadService`` using a requests session."""

    def __init__(
        self,
        api_base: str = DEFAULT_API_BASE,
        token: str = "",
        timeout: int = 120,
        session: requests.Session | None = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, name: str, data: bytes, mime: str, date_key: str | None) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        form = {"entryDate": date_key} if date_key else {}
        try:
            resp = self.session.post(
                f"{self.api_base}/upload",
                headers=headers,
                files={"file": (name, data, mime)},
                data=form,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            status = getattr(e.response, "status_code", None)
            raise UploadError(f"Upload of {name} failed" + (f" ({status})" if status else f": {e}")) from e
        except ValueError as e:
            raise UploadError(f"Upload of {name} returned an invalid response") from e

    async def upload(self, path: str | Path, date_key: str | None = None) -> MediaFile:
        path = Path(path).expanduser()
        if date_key is not None:
            date_key = validate_date_key(date_key)
        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except OSError as e:
            raise UploadError(f"Cannot read {path}: {e}") from e

        mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        result = await asyncio.to_thread(self._post, path.name, data, mime, date_key)
        media = result.get("media") if isinstance(result, dict) else None
        if not isinstance(media, dict) or not media.get("url"):
            raise UploadError(f"Upload of {path.name} returned no media reference")

        kind = media.get("type") or MediaKind.from_mime(mime) or MediaKind.from_filename(path.name)
        if kind is None:
            raise UploadError(f"Cannot tell whether {path.name} is an image, video or audio file")
        try:
            uploaded = MediaFile(
                id=str(media.get("id") or uuid.uuid4().hex),
                kind=kind,
                url=media["url"],
                name=media.get("name") or path.name,
            )
        except EntryValidationError as e:
            raise UploadError(f"Upload of {path.name} returned an unusable media record: {e}") from e
        logger.debug(f"Uploaded {path.name} -> {uploaded.url}")
        return uploaded
