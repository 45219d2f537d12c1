"""
Dropbox API client and models.
"""

from .client import DropboxClient
from .models import AccountProfile, ChangeEntry, ChangesPage, EntryKind

__all__ = [
    "DropboxClient",
    "AccountProfile",
    "ChangeEntry",
    "ChangesPage",
    "EntryKind",
]
