"""Exceptions raised by the LYNX client."""
from typing import Optional


class LynxError(Exception):
    """Base exception for the LYNX client."""


class SecureRandomUnavailable(LynxError):
    """The environment has no cryptographically secure random source."""


class StorageUnavailable(LynxError):
    """Persistent storage cannot be read or written."""


class DecryptionFailure(LynxError):
    """A stored token could not be decrypted.

    Never raised across the token store API; readers return None instead.
    """


class EncryptionFailure(LynxError):
    """A token could not be encrypted and strict mode forbids plaintext."""


class ApiError(LynxError):
    """Non-2xx response (or transport failure) from the LYNX backend."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.message = message
        self.status = status
        super().__init__(message)


class AuthExpired(ApiError):
    """The backend rejected the bearer token (401/403).

    The token slot has already been cleared when this is raised.
    """

    def __init__(self, status: Optional[int] = None):
        super().__init__("AUTH_EXPIRED", status=status)


class ApiConnectionError(ApiError):
    """The backend could not be reached."""

    def __init__(self, message: str = "Failed to connect to the server"):
        super().__init__(message)
