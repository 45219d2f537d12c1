"""
Dropbox API payloads and the domain types derived from them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EntryKind(str, Enum):
    """Metadata tag of a list_folder entry."""
    FILE = "file"
    FOLDER = "folder"
    DELETED = "deleted"


@dataclass(frozen=True)
class ChangeEntry:
    """One entry of a list_folder page."""
    kind: EntryKind
    path: str

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE


@dataclass
class ChangesPage:
    """One page of list_folder/continue output."""
    entries: List[ChangeEntry] = field(default_factory=list)
    cursor: str = ""
    has_more: bool = False


@dataclass(frozen=True)
class AccountProfile:
    """Subset of users/get_current_account."""
    account_id: str
    email: str
    display_name: str

    @property
    def label(self) -> str:
        """Display label handed to the downstream platform."""
        return f"{self.display_name} ({self.email})"


# Wire formats

class TokenResponse(BaseModel):
    """oauth2/token response."""
    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: Optional[str] = None
    account_id: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None


class AccountName(BaseModel):
    model_config = ConfigDict(extra="ignore")

    display_name: str


class AccountResponse(BaseModel):
    """users/get_current_account response."""
    model_config = ConfigDict(extra="ignore")

    account_id: str = ""
    email: str
    name: AccountName


class MetadataResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    tag: EntryKind = Field(alias=".tag")
    path_lower: str = ""


class ListFolderResponse(BaseModel):
    """files/list_folder/continue response."""
    model_config = ConfigDict(extra="ignore")

    entries: List[MetadataResponse] = Field(default_factory=list)
    cursor: str
    has_more: bool


class CursorResponse(BaseModel):
    """files/list_folder/get_latest_cursor response."""
    model_config = ConfigDict(extra="ignore")

    cursor: str


class SharedLinkResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str
