"""HTTP clients for the reference diary server.

Thin wrappers implementing the journal's remote protocols.
"""

from .entries_api import EntriesClient
from .upload import UploadClient

__all__ = ["EntriesClient", "UploadClient"]
