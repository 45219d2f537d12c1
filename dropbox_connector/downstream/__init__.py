"""
Downstream automation platform client.
"""

from .client import DownstreamClient

__all__ = ["DownstreamClient"]
