"""Tests for daybook.integrations.upload."""

import os
from unittest.mock import MagicMock

import pytest
import requests

from daybook.core.exceptions import UploadError
from daybook.integrations.upload import UploadClient
from daybook.journal.models import MediaKind


def _session(payload=None, status=200, error=None):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error", response=response)
    session = MagicMock(spec=requests.Session)
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    return session


@pytest.fixture
def photo(tmp_dir):
    path = os.path.join(tmp_dir, "beach.png")
    with open(path, "wb") as f:
        f.write(b"\x89PNG fake")
    return path


async def test_upload_returns_media(photo):
    session = _session({"media": {"id": "m1", "url": "/uploads/beach-123.png", "name": "beach.png"}})
    client = UploadClient(api_base="https://diary.example/api", token="tok", session=session)

    media = await client.upload(photo, "2024-03-10")

    assert media.id == "m1"
    assert media.kind is MediaKind.IMAGE
    assert media.url == "/uploads/beach-123.png"
    args, kwargs = session.post.call_args
    assert args[0] == "https://diary.example/api/upload"
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["data"] == {"entryDate": "2024-03-10"}
    name, data, mime = kwargs["files"]["file"]
    assert name == "beach.png"
    assert data == b"\x89PNG fake"
    assert mime == "image/png"


async def test_server_type_wins(photo):
    session = _session({"media": {"id": "m1", "url": "/uploads/x", "type": "video"}})
    media = await UploadClient(session=session).upload(photo)
    assert media.kind is MediaKind.VIDEO
    assert session.post.call_args.kwargs["data"] == {}


async def test_http_error(photo):
    session = _session(status=413)
    with pytest.raises(UploadError, match="413"):
        await UploadClient(session=session).upload(photo)


async def test_connection_error(photo):
    session = _session(error=requests.ConnectionError("refused"))
    with pytest.raises(UploadError):
        await UploadClient(session=session).upload(photo)


async def test_missing_reference(photo):
    session = _session({"media": {"id": "m1"}})
    with pytest.raises(UploadError):
        await UploadClient(session=session).upload(photo)


async def test_unreadable_file(tmp_dir):
    with pytest.raises(UploadError):
        await UploadClient(session=_session({})).upload(os.path.join(tmp_dir, "missing.png"))


async def test_unknown_kind(tmp_dir):
    path = os.path.join(tmp_dir, "notes.txt")
    with open(path, "w") as f:
        f.write("hello")
    session = _session({"media": {"id": "m1", "url": "/uploads/notes.txt"}})
    with pytest.raises(UploadError):
        await UploadClient(session=session).upload(path)
