"""Token Vault — Encrypted session-token storage bound to a device and origin.

Security Note (Threat Model):
    The encryption key is derived from a device secret kept in the same
    storage as the ciphertext. This protects the token against casual
    inspection of the storage file and against copying the ciphertext to
    another origin's storage; it does not protect against anyone who can
    read the whole storage. Decrypted tokens live in process memory while
    the client runs. This is an accepted limitation.
"""

from .token_store import TokenStore, TokenCacheEntry
from .config import VaultConfig, origin_from_url
from .device import get_or_create_device_secret
from .crypto import derive_key, encrypt_token, decrypt_token

__all__ = [
    "TokenStore",
    "TokenCacheEntry",
    "VaultConfig",
    "origin_from_url",
    "get_or_create_device_secret",
    "derive_key",
    "encrypt_token",
    "decrypt_token",
]
