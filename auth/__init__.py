# auth/__init__.py
"""
Authentication modules for the Harmony client.

- harmony_oauth: OAuth 2.0 password grant against the Epsilon token endpoint
- token_store: shared access-token cache (many readers, one refresher)
"""

from .harmony_oauth import HarmonyOAuthClient
from .token_store import ReadWriteLock, TokenStore

__all__ = [
    "HarmonyOAuthClient",
    "ReadWriteLock",
    "TokenStore",
]
