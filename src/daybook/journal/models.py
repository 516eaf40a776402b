"""Core data models for the journal.

Entries are keyed by ISO date (``YYYY-MM-DD``). Model objects are immutable;
sequence fields are stored as tuples and replaced wholesale on update.
Serialization uses the camelCase wire names shared by the local cache and
the remote entry service.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any

from loguru import logger

from daybook.core.exceptions import EntryValidationError

_DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_date_key(value: str | date) -> str:
    """Return *value* as a canonical ``YYYY-MM-DD`` key or raise EntryValidationError."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str) or not _DATE_KEY_RE.match(value):
        raise EntryValidationError(f"Invalid date key: {value!r} (expected YYYY-MM-DD)")
    try:
        date.fromisoformat(value)
    except ValueError as e:
        raise EntryValidationError(f"Invalid date key: {value!r} ({e})") from e
    return value


def parse_date_key(value: str | date) -> date:
    """Parse a date key (or pass through a date) into a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(validate_date_key(value))


class ViewType(StrEnum):
    DAILY_RECORD = "DAILY_RECORD"
    CALENDAR = "CALENDAR"


class Granularity(StrEnum):
    """Calendar view granularity."""

    YEAR = "YEAR"
    MONTH = "MONTH"
    WEEK = "WEEK"
    DAY = "DAY"


_EXTENSION_KINDS = {
    ".jpg": "image",
    ".jpeg": "image",
    ".png": "image",
    ".gif": "image",
    ".webp": "image",
    ".heic": "image",
    ".mp4": "video",
    ".mov": "video",
    ".webm": "video",
    ".mkv": "video",
    ".mp3": "audio",
    ".m4a": "audio",
    ".wav": "audio",
    ".ogg": "audio",
    ".aac": "audio",
}


class MediaKind(StrEnum):
    """Closed set of media attachment kinds."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"

    @classmethod
    def parse(cls, value: str | MediaKind) -> MediaKind:
        try:
            return cls(value)
        except ValueError:
            raise EntryValidationError(f"Unknown media type: {value!r}") from None

    @classmethod
    def from_mime(cls, mime: str | None) -> MediaKind | None:
        """Infer the kind from a MIME type such as ``image/png``."""
        if not mime:
            return None
        major = mime.split("/", 1)[0].strip().lower()
        try:
            return cls(major)
        except ValueError:
            return None

    @classmethod
    def from_filename(cls, name: str) -> MediaKind | None:
        """Infer the kind from a filename extension."""
        dot = name.rfind(".")
        if dot < 0:
            return None
        kind = _EXTENSION_KINDS.get(name[dot:].lower())
        return cls(kind) if kind else None


@dataclass(frozen=True)
class Todo:
    id: str
    text: str
    completed: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Todo:
        return cls(id=str(data.get("id", "")), text=str(data.get("text", "")), completed=bool(data.get("completed")))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "completed": self.completed}


@dataclass(frozen=True)
class Expense:
    """A single spending record.

    Attributes:
        id: Identifier unique within the entry.
        item: What the money was spent on.
        amount: Non-negative decimal amount.
    """

    id: str
    item: str
    amount: Decimal

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except InvalidOperation:
                raise EntryValidationError(f"Expense {self.item!r} has a non-numeric amount: {self.amount!r}") from None
        if not self.amount.is_finite() or self.amount < 0:
            raise EntryValidationError(f"Expense {self.item!r} has an invalid amount: {self.amount}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Expense:
        return cls(id=str(data.get("id", "")), item=str(data.get("item", "")), amount=data.get("amount", 0))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "item": self.item, "amount": float(self.amount)}


@dataclass(frozen=True)
class MediaFile:
    """A media attachment. ``url`` is storage-relative at rest, display-absolute in memory."""

    id: str
    kind: MediaKind
    url: str
    name: str = ""

    def __post_init__(self):
        if not isinstance(self.kind, MediaKind):
            object.__setattr__(self, "kind", MediaKind.parse(self.kind))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MediaFile:
        return cls(
            id=str(data.get("id", "")),
            kind=MediaKind.parse(data.get("type", "")),
            url=str(data.get("url", "")),
            name=str(data.get("name", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "type": self.kind.value, "url": self.url, "name": self.name}


def _coerce(items: Iterable[Any] | None, model: type) -> tuple:
    if items is None:
        return ()
    if isinstance(items, (str, bytes, Mapping)):
        raise EntryValidationError(f"Expected a sequence of {model.__name__}, got {type(items).__name__}")
    coerced = []
    for item in items:
        if isinstance(item, model):
            coerced.append(item)
        elif isinstance(item, Mapping):
            coerced.append(model.from_dict(item))
        else:
            raise EntryValidationError(f"Cannot build {model.__name__} from {type(item).__name__}")
    return tuple(coerced)


def _salvage(items: Any, model: type, date_key: Any) -> tuple:
    """Coerce stored items one by one, dropping (and logging) the ones that fail."""
    if items is None:
        return ()
    if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Iterable):
        logger.warning(f"Ignoring {model.__name__} list of {date_key}: got {type(items).__name__}")
        return ()
    kept = []
    for item in items:
        try:
            kept.extend(_coerce([item], model))
        except EntryValidationError as e:
            logger.warning(f"Dropping unreadable {model.__name__} from {date_key}: {e}")
    return tuple(kept)


# Partial-update field name -> Entry attribute.
EDITABLE_FIELDS = {
    "todos": "todos",
    "expenses": "expenses",
    "insight": "insight",
    "media": "media",
    "myDaySummary": "my_day_summary",
    "my_day_summary": "my_day_summary",
}


@dataclass(frozen=True)
class Entry:
    """Everything recorded for one calendar date.

    Attributes:
        date: The ``YYYY-MM-DD`` key, stored redundantly on the record.
        todos: Checklist items in display order.
        expenses: Spending records in display order.
        insight: Opaque rich-text markup.
        media: Attachments in display order.
        my_day_summary: Optional externally generated one-line summary.
        last_saved_at: Advisory local ``HH:MM`` stamp of the last mutation.
    """

    date: str
    todos: tuple[Todo, ...] = ()
    expenses: tuple[Expense, ...] = ()
    insight: str = ""
    media: tuple[MediaFile, ...] = ()
    my_day_summary: str | None = None
    last_saved_at: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "date", validate_date_key(self.date))
        object.__setattr__(self, "todos", _coerce(self.todos, Todo))
        object.__setattr__(self, "expenses", _coerce(self.expenses, Expense))
        object.__setattr__(self, "media", _coerce(self.media, MediaFile))
        if self.insight is None:
            object.__setattr__(self, "insight", "")

    @classmethod
    def empty(cls, date_key: str | date) -> Entry:
        return cls(date=validate_date_key(date_key))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], date_key: str | None = None) -> Entry:
        """Build an Entry from a wire/cache payload.

        Missing optional fields are treated as empty; unknown fields are ignored.
        Individual todos, expenses or media items that cannot be read are
        dropped so the rest of the day survives.
        """
        key = date_key or data.get("date", "")
        return cls(
            date=key,
            todos=_salvage(data.get("todos"), Todo, key),
            expenses=_salvage(data.get("expenses"), Expense, key),
            insight=data.get("insight") or "",
            media=_salvage(data.get("media"), MediaFile, key),
            my_day_summary=data.get("myDaySummary"),
            last_saved_at=data.get("lastSavedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "date": self.date,
            "todos": [t.to_dict() for t in self.todos],
            "expenses": [e.to_dict() for e in self.expenses],
            "insight": self.insight,
            "media": [m.to_dict() for m in self.media],
        }
        if self.my_day_summary is not None:
            data["myDaySummary"] = self.my_day_summary
        if self.last_saved_at is not None:
            data["lastSavedAt"] = self.last_saved_at
        return data

    def merged(self, partial: Mapping[str, Any]) -> Entry:
        """Return a copy with *partial* applied by shallow field replacement."""
        return replace(self, **coerce_partial(partial))

    @property
    def is_empty(self) -> bool:
        return not (self.todos or self.expenses or self.media or self.insight or self.my_day_summary)

    @property
    def expense_total(self) -> Decimal:
        return sum((e.amount for e in self.expenses), Decimal("0"))

    @property
    def completed_count(self) -> int:
        return sum(1 for t in self.todos if t.completed)


def coerce_partial(partial: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a partial update and convert it to Entry constructor kwargs.

    Raises:
        EntryValidationError: for unknown fields or invalid values.
    """
    if not isinstance(partial, Mapping):
        raise EntryValidationError(f"Partial update must be a mapping, got {type(partial).__name__}")
    unknown = set(partial) - set(EDITABLE_FIELDS)
    if unknown:
        raise EntryValidationError(f"Unknown entry field(s): {', '.join(sorted(unknown))}")

    kwargs: dict[str, Any] = {}
    for key, value in partial.items():
        attr = EDITABLE_FIELDS[key]
        if attr == "todos":
            kwargs[attr] = _coerce(value, Todo)
        elif attr == "expenses":
            kwargs[attr] = _coerce(value, Expense)
        elif attr == "media":
            kwargs[attr] = _coerce(value, MediaFile)
        elif attr == "insight":
            kwargs[attr] = "" if value is None else str(value)
        else:
            kwargs[attr] = None if value is None else str(value)
    return kwargs


@dataclass
class AppState:
    """Full application state as persisted by the local cache."""

    selected_date: str
    active_view: ViewType = ViewType.DAILY_RECORD
    calendar_granularity: Granularity = Granularity.MONTH
    entries: dict[str, Entry] = field(default_factory=dict)

    @classmethod
    def default(cls, today: date | None = None) -> AppState:
        return cls(selected_date=(today or date.today()).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {
            "selectedDate": self.selected_date,
            "activeView": self.active_view.value,
            "calendarGranularity": self.calendar_granularity.value,
            "entries": {key: entry.to_dict() for key, entry in self.entries.items()},
        }
