"""
Errors raised while completing the OAuth handoff.
"""

from .base import ConnectorError


class OAuthError(ConnectorError):
    """The authorization could not be turned into a usable credential."""

    default_error_code = "OAUTH_ERROR"


class AuthorizationRejected(OAuthError):
    """Dropbox refused to exchange the authorization code."""

    default_error_code = "AUTHORIZATION_REJECTED"


class IncompleteGrant(OAuthError):
    """The token response lacked a field the connector needs."""

    default_error_code = "INCOMPLETE_GRANT"

    def __init__(self, field_name: str):
        super().__init__(
            f"Token response has no {field_name}",
            user_message="Dropbox did not grant offline access",
            context={"field": field_name},
        )
        self.field_name = field_name
