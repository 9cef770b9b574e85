# services/errors.py
"""
Failure kinds for sending messages through Harmony.

HarmonyClient never raises these from send_mail(); they are carried by a
SendFailure on the returned future. ConfigurationError is the exception:
it is raised at construction, before any network activity.
"""

from __future__ import annotations

from typing import Optional


class HarmonyError(Exception):
    """Base class for Harmony client failures."""


class ConfigurationError(HarmonyError):
    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"Missing Harmony configuration: {', '.join(self.missing)}")


class SerializationError(HarmonyError):
    """Request payload could not be encoded, or a response body could not be decoded."""


class TransportError(HarmonyError):
    """No HTTP response at all (connection refused, timeout, I/O error)."""


class TokenRequestError(HarmonyError):
    """Token endpoint answered, but not with a usable access token."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RemoteApplicationError(HarmonyError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class AuthorizationError(RemoteApplicationError):
    """Bearer token rejected even after one refresh-and-retry."""
