"""
OAuth handoff between Dropbox and the downstream platform.
"""

from .flow import DropboxOAuthFlow

__all__ = ["DropboxOAuthFlow"]
