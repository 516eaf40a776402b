"""Media reference normalization.

Media URLs are exchanged with the remote service and persisted in
storage-relative form (``/uploads/a.png``) and rendered in display-absolute
form (``https://host/uploads/a.png``). ``blob:`` references only live for
the lifetime of one process and are never persisted.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import replace

from loguru import logger

from .models import Entry, MediaFile

_ABSOLUTE_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*://|data:|blob:)")
TRANSIENT_SCHEME = "blob:"


def is_absolute(ref: str) -> bool:
    return bool(_ABSOLUTE_RE.match(ref or ""))


def is_transient(ref: str) -> bool:
    """Whether *ref* points at an in-memory object that will not survive a restart."""
    return (ref or "").lower().startswith(TRANSIENT_SCHEME)


class MediaNormalizer:
    """Maps media references between storage-relative and display-absolute form.

    Example::

        normalizer = MediaNormalizer("https://host")
        normalizer.to_display("/uploads/a.png")   # "https://host/uploads/a.png"
        normalizer.to_storage("https://host/uploads/a.png")   # "/uploads/a.png"
    """

    def __init__(self, origin: str = ""):
        self.origin = (origin or "").rstrip("/")

    def to_display(self, ref: str) -> str:
        if not ref or is_absolute(ref) or not self.origin:
            return ref
        if not ref.startswith("/"):
            ref = "/" + ref
        return f"{self.origin}{ref}"

    def to_storage(self, ref: str) -> str:
        if self.origin and ref and ref.startswith(self.origin):
            rest = ref[len(self.origin) :]
            # Only strip at a path boundary, never inside a longer host name.
            if rest.startswith("/"):
                return rest
        return ref

    def media_to_display(self, media: Iterable[MediaFile]) -> tuple[MediaFile, ...]:
        return tuple(replace(m, url=self.to_display(m.url)) for m in media)

    def media_to_storage(self, media: Iterable[MediaFile]) -> tuple[MediaFile, ...]:
        return tuple(replace(m, url=self.to_storage(m.url)) for m in media)

    def entry_to_display(self, entry: Entry) -> Entry:
        return replace(entry, media=self.media_to_display(entry.media))

    def entry_to_storage(self, entry: Entry) -> Entry:
        return replace(entry, media=self.media_to_storage(entry.media))


def drop_transient(media: Iterable[MediaFile]) -> tuple[MediaFile, ...]:
    """Remove media whose reference uses the transient ``blob:`` scheme."""
    kept = []
    for m in media:
        if is_transient(m.url):
            logger.debug(f"Dropping transient media reference {m.name or m.id!r}")
            continue
        kept.append(m)
    return tuple(kept)
