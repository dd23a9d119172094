"""
TokenStore — Encrypted persistence of the session token with a sync cache.

Provides the public API for the token slot:
- ``set_token(token)`` — fire-and-forget encrypt and persist
- ``store_token(token)`` — the awaitable form of ``set_token``
- ``get_token_sync()`` — cached plaintext, only if it matches storage
- ``get_token_async()`` — cache → decrypt from storage → None
- ``clear_token()`` — drop storage entries and cache (idempotent)

Slot lifecycle: Empty → Encrypting → Stored → (Cached | Stale) → Empty.
The cache is Stale when storage was rewritten (another login, another
process sharing the storage file) after the cache was filled; the sync
reader detects this by comparing the exact (nonce, ciphertext) pair and
returns None instead of the old token.

Encryption failure policy:
    By default a token that cannot be encrypted is stored in plaintext
    (without a nonce entry) so the session survives; this trades
    confidentiality for availability and is logged as a warning. With
    ``VaultConfig.strict_encryption`` the slot is cleared and
    ``EncryptionFailure`` is raised instead.

Security Note:
    Never log token, nonce or ciphertext values.
"""
import asyncio
import logging
from typing import Optional

from datamodel import BaseModel

from ..conf import TOKEN_IV_KEY, TOKEN_STORAGE_KEY
from ..exceptions import (
    EncryptionFailure,
    SecureRandomUnavailable,
    StorageUnavailable,
)
from ..storage import Storage, clear_auth_data
from .config import VaultConfig
from .crypto import decrypt_token, encrypt_token

logger = logging.getLogger("lynx.vault")


class TokenCacheEntry(BaseModel):
    """Plaintext token plus the exact storage values it was read from.

    ``nonce`` is None for a plaintext fallback entry.
    """
    ciphertext: str
    token: str
    nonce: Optional[str] = None

    def matches(self, nonce: Optional[str], ciphertext: Optional[str]) -> bool:
        return self.nonce == nonce and self.ciphertext == ciphertext


class TokenStore:
    """Session token slot backed by a Storage and bound to one origin.

    One instance per client; the cache lives on the instance, so two
    stores sharing a storage file each keep their own view and fall back
    to decryption when the other one has rewritten the slot.
    """

    def __init__(self, storage: Storage, config: VaultConfig):
        self._storage = storage
        self._config = config
        self._cache: Optional[TokenCacheEntry] = None
        self._pending: set[asyncio.Task] = set()
        # bumped on every clear; writes started before a clear are dropped
        self._generation = 0

    def __repr__(self) -> str:
        return (
            f'<TokenStore origin={self.origin!r} '
            f'stored={self.has_stored_token()} cached={self._cache is not None}>'
        )

    @property
    def origin(self) -> str:
        return self._config.origin

    @property
    def strict(self) -> bool:
        return self._config.strict_encryption

    @property
    def storage(self) -> Storage:
        return self._storage

    # ------------------------------------------------------------------
    # Storage helpers
    # ------------------------------------------------------------------

    def _read_stored(self) -> tuple[Optional[str], Optional[str]]:
        """Return the stored (nonce, ciphertext) pair, either may be None."""
        return (
            self._storage.get_item(TOKEN_IV_KEY),
            self._storage.get_item(TOKEN_STORAGE_KEY),
        )

    def has_stored_token(self) -> bool:
        """True if a token (encrypted or fallback) is persisted."""
        return bool(self._storage.get_item(TOKEN_STORAGE_KEY))

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def set_token(self, token: str) -> asyncio.Task:
        """Encrypt and persist token in the background.

        Must be called from a running event loop. The returned task may be
        awaited by callers that need the token persisted before going on;
        until it completes, readers still see the previous slot state.
        """
        task = asyncio.get_running_loop().create_task(
            self._store(token, self._generation)
        )
        self._pending.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            logger.error("Storing session token failed: %s", err)

    async def flush(self) -> None:
        """Wait for every pending ``set_token`` to finish."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def store_token(self, token: str) -> None:
        """Encrypt token, persist (ciphertext, nonce) and refresh the cache.

        Raises:
            EncryptionFailure: In strict mode, when encryption fails.
            SecureRandomUnavailable: If no secure random source exists.
            StorageUnavailable: If storage cannot be written.
        """
        await self._store(token, self._generation)

    async def _store(self, token: str, generation: int) -> None:
        try:
            nonce, ciphertext = await encrypt_token(
                token, self._storage, self.origin,
            )
        except (SecureRandomUnavailable, StorageUnavailable):
            raise
        except Exception as err:
            if self._cleared_since(generation):
                return
            self._encryption_failed(token, err)
            return
        if self._cleared_since(generation):
            return

        self._storage.set_item(TOKEN_STORAGE_KEY, ciphertext)
        try:
            self._storage.set_item(TOKEN_IV_KEY, nonce)
        except StorageUnavailable:
            # never leave the new ciphertext next to the old nonce
            self._cache = None
            self._storage.remove_item(TOKEN_STORAGE_KEY)
            raise
        self._cache = TokenCacheEntry(
            nonce=nonce, ciphertext=ciphertext, token=token,
        )
        logger.debug("Session token stored (encrypted)")

    def _cleared_since(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Session token cleared while encrypting; write dropped")
            return True
        return False

    def _encryption_failed(self, token: str, err: Exception) -> None:
        if self.strict:
            logger.error(
                "Token encryption failed (%s); strict mode, slot cleared",
                type(err).__name__,
            )
            self.clear_token()
            raise EncryptionFailure(
                "Session token could not be encrypted"
            ) from err
        logger.warning(
            "Token encryption failed (%s); storing session token UNENCRYPTED",
            type(err).__name__,
        )
        self._storage.remove_item(TOKEN_IV_KEY)
        self._storage.set_item(TOKEN_STORAGE_KEY, token)
        self._cache = TokenCacheEntry(nonce=None, ciphertext=token, token=token)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def get_token_sync(self) -> Optional[str]:
        """Return the cached token if it still matches storage, else None.

        Never decrypts: a cold or stale cache reads as None even when a
        valid token is stored. Use ``get_token_async`` for a definite answer.
        """
        if self._cache is None:
            return None
        nonce, ciphertext = self._read_stored()
        if ciphertext is None or not self._cache.matches(nonce, ciphertext):
            return None
        return self._cache.token

    async def get_token_async(self) -> Optional[str]:
        """Return the current token, decrypting from storage on a cache miss.

        Returns:
            The token, or None if nothing is stored or it cannot be decrypted.
        """
        cached = self.get_token_sync()
        if cached is not None:
            return cached

        nonce, ciphertext = self._read_stored()
        if not ciphertext:
            return None
        if not nonce:
            if self.strict:
                logger.warning("Ignoring unencrypted session token (strict mode)")
                return None
            logger.warning("Using unencrypted session token from storage")
            self._cache = TokenCacheEntry(
                nonce=None, ciphertext=ciphertext, token=ciphertext,
            )
            return ciphertext

        token = await decrypt_token(nonce, ciphertext, self._storage, self.origin)
        if token is not None:
            self._cache = TokenCacheEntry(
                nonce=nonce, ciphertext=ciphertext, token=token,
            )
        return token

    # Two-tier names: cache-only read vs. read that may decrypt
    try_get_cached = get_token_sync
    get_or_decrypt = get_token_async

    # ------------------------------------------------------------------
    # Clearing
    # ------------------------------------------------------------------

    def clear_token(self) -> None:
        """Remove the stored token, its nonce and the cache. Idempotent.

        Pending ``set_token`` writes that started before the clear are
        discarded, so a logout is not undone by a login still encrypting.
        """
        self._generation += 1
        self._storage.remove_item(TOKEN_STORAGE_KEY)
        self._storage.remove_item(TOKEN_IV_KEY)
        self._cache = None
        logger.debug("Session token cleared")

    def clear_all(self) -> list[str]:
        """Wipe every non-preserved storage key, device secret included."""
        self._generation += 1
        self._cache = None
        return clear_auth_data(self._storage)
