"""
Request and response models for the connector's HTTP API.
"""

from typing import List

from pydantic import BaseModel, Field


class RefreshRequest(BaseModel):
    """Body of POST /refresh."""
    refresh_state: str


class RefreshResponse(BaseModel):
    access_state: str
    refresh_state: str


class EventsRequest(BaseModel):
    """Body of POST /events: the platform subscribing an account."""
    user: str
    state: str


class Capability(BaseModel):
    """One entry of the action or event capability list."""
    field: str
    value: str
    desc: str


class CapabilityList(BaseModel):
    list: List[Capability]


class ListFolderAccounts(BaseModel):
    accounts: List[str] = Field(default_factory=list)


class WebhookNotification(BaseModel):
    """Body of a Dropbox webhook delivery."""
    list_folder: ListFolderAccounts = Field(default_factory=ListFolderAccounts)


ACTIONS = CapabilityList(
    list=[
        Capability(
            field="To upload a file",
            value="upload_file",
            desc=(
                "This connector takes the return value of the flow function, and uploads "
                "it to the connected Dropbox API. It corresponds to the upload event in "
                "Dropbox API."
            ),
        )
    ]
)

EVENTS = CapabilityList(
    list=[
        Capability(
            field="Received a file",
            value="file",
            desc=(
                "This connector is triggered when a new file is uploaded to the connected "
                "Dropbox. It corresponds to the upload event in Dropbox API."
            ),
        )
    ]
)
