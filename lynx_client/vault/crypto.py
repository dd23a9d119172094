"""
Vault Crypto Core — Key derivation and token encryption.

Parameters are shared with the LYNX browser client:
- KDF: PBKDF2-HMAC-SHA256(device_secret, salt=origin, 100,000 iterations)
- Cipher: AES-256-GCM, random 96-bit nonce per encryption, no AAD
- Encoding: standard base64 for nonce and ciphertext (ciphertext includes
  the 16-byte GCM tag)

Security Note:
    Never log plaintext, ciphertext or key material.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import base64
import asyncio
import binascii
import logging
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..conf import KDF_ITERATIONS, KEY_LENGTH, NONCE_SIZE
from ..exceptions import DecryptionFailure
from ..storage import Storage
from .device import get_or_create_device_secret, random_bytes

logger = logging.getLogger("lynx.vault")

_TAG_SIZE = 16


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(data: str) -> bytes:
    """Strict base64 decode; raises binascii.Error on malformed input."""
    return base64.b64decode(data.encode("ascii"), validate=True)


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def _pbkdf2(secret: bytes, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(secret)


async def derive_key(storage: Storage, origin: str) -> AESGCM:
    """Derive the token encryption key for this device and origin.

    The device secret is read (or created) synchronously; PBKDF2 runs in a
    worker thread. Same secret and origin always give the same key.

    Args:
        storage: Storage holding the device secret.
        origin: Web origin used as salt, e.g. ``https://example.com``.

    Returns:
        AES-GCM cipher bound to the derived 256-bit key.
    """
    secret = get_or_create_device_secret(storage)
    key = await asyncio.to_thread(_pbkdf2, secret, origin.encode("utf-8"))
    return AESGCM(key)


# ---------------------------------------------------------------------------
# Token encryption
# ---------------------------------------------------------------------------

async def encrypt_token(
    token: str, storage: Storage, origin: str
) -> tuple[str, str]:
    """Encrypt token under the device key.

    Returns:
        Tuple of (nonce_b64, ciphertext_b64).
    """
    cipher = await derive_key(storage, origin)
    nonce = random_bytes(NONCE_SIZE)
    ct = cipher.encrypt(nonce, token.encode("utf-8"), None)
    return b64encode(nonce), b64encode(ct)


def _open(cipher: AESGCM, nonce_b64: str, ct_b64: str) -> str:
    try:
        nonce = b64decode(nonce_b64)
        ct = b64decode(ct_b64)
    except (binascii.Error, ValueError) as err:
        raise DecryptionFailure("stored token is not valid base64") from err
    if len(nonce) != NONCE_SIZE:
        raise DecryptionFailure(
            f"nonce must be {NONCE_SIZE} bytes, got {len(nonce)}"
        )
    if len(ct) < _TAG_SIZE:
        raise DecryptionFailure("ciphertext shorter than the GCM tag")
    try:
        plaintext = cipher.decrypt(nonce, ct, None)
    except InvalidTag as err:
        raise DecryptionFailure("authentication tag mismatch") from err
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as err:
        raise DecryptionFailure("decrypted token is not UTF-8") from err


async def decrypt_token(
    nonce_b64: str, ct_b64: str, storage: Storage, origin: str
) -> Optional[str]:
    """Decrypt a stored token.

    Any decryption failure (tampering, wrong key, malformed input) yields
    None; it means "no usable token", not an error.
    """
    cipher = await derive_key(storage, origin)
    try:
        return _open(cipher, nonce_b64, ct_b64)
    except DecryptionFailure as err:
        logger.info("Stored token could not be decrypted: %s", err)
        return None
