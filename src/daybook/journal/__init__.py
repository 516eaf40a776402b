"""Journal core: entry models, the entry store, local cache and remote sync.

Provides the per-date Entry model, an EntryStore with a single mutation
primitive, media reference normalization, a JSON state cache, and a
SyncReconciler that pushes local edits and pulls remote state on sign-in.
"""

from .cache import LocalCache
from .media import MediaNormalizer
from .models import AppState, Entry, Expense, Granularity, MediaFile, MediaKind, Todo, ViewType
from .protocols import RemoteEntryService, SummaryService, UploadService
from .store import ChangeOrigin, EntryChange, EntryStore
from .sync import SyncReconciler, SyncStatus

__all__ = [
    "AppState",
    "ChangeOrigin",
    "Entry",
    "EntryChange",
    "EntryStore",
    "Expense",
    "Granularity",
    "LocalCache",
    "MediaFile",
    "MediaKind",
    "MediaNormalizer",
    "RemoteEntryService",
    "SummaryService",
    "SyncReconciler",
    "SyncStatus",
    "Todo",
    "UploadService",
    "ViewType",
]
