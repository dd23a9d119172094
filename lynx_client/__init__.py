"""LYNX Client.

API client for a self-hosted LYNX link-in-bio backend, with the admin
session token kept encrypted in local storage.
"""
from .version import __version__
from .client import LynxClient
from .config import ClientConfig
from .storage import FileStorage, MemoryStorage, Storage
from .exceptions import (
    ApiConnectionError,
    ApiError,
    AuthExpired,
    EncryptionFailure,
    LynxError,
    SecureRandomUnavailable,
    StorageUnavailable,
)

__all__ = [
    "__version__",
    "LynxClient",
    "ClientConfig",
    "Storage",
    "MemoryStorage",
    "FileStorage",
    "LynxError",
    "ApiError",
    "ApiConnectionError",
    "AuthExpired",
    "EncryptionFailure",
    "SecureRandomUnavailable",
    "StorageUnavailable",
]
