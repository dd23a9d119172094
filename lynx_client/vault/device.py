"""
Device Secret — random root key material for one storage profile.

The secret is generated once, stored base64-encoded under
``lynx-device-secret`` and reused until the storage is cleared. It is never
rotated automatically: a new secret makes every stored token unreadable.
"""
import os
import base64
import binascii
import logging
import re

from ..conf import DEVICE_SECRET_KEY, DEVICE_SECRET_SIZE
from ..exceptions import SecureRandomUnavailable
from ..storage import Storage

logger = logging.getLogger("lynx.vault")

_ASCII_WHITESPACE = re.compile(r"[\t\n\f\r ]")


def random_bytes(size: int) -> bytes:
    """Return size bytes from the OS CSPRNG.

    Raises:
        SecureRandomUnavailable: If the platform has no secure random source.
    """
    try:
        return os.urandom(size)
    except NotImplementedError as err:
        raise SecureRandomUnavailable(
            "No cryptographically secure random source is available"
        ) from err


def decode_secret(value: str) -> bytes:
    """Base64-decode value the way browser ``atob`` does.

    ASCII whitespace is ignored and missing padding is restored before the
    strict decode.

    Raises:
        binascii.Error: If value is not base64 even after that.
        UnicodeEncodeError: If value holds non-ASCII characters.
    """
    compact = _ASCII_WHITESPACE.sub("", value)
    compact += "=" * (-len(compact) % 4)
    return base64.b64decode(compact.encode("ascii"), validate=True)


def get_or_create_device_secret(storage: Storage) -> bytes:
    """Return the device secret, creating and persisting it on first use.

    A stored value that is not valid base64 is used as raw bytes, so key
    derivation still succeeds and previously encrypted tokens simply fail
    to decrypt.

    Raises:
        SecureRandomUnavailable: If a new secret is needed and there is no
            secure random source.
        StorageUnavailable: If storage cannot be read or written.
    """
    existing = storage.get_item(DEVICE_SECRET_KEY)
    if existing:
        try:
            return decode_secret(existing)
        except (binascii.Error, UnicodeEncodeError):
            logger.warning(
                "Stored %s is not valid base64; stored tokens will not decrypt",
                DEVICE_SECRET_KEY,
            )
            return existing.encode("utf-8")
    secret = random_bytes(DEVICE_SECRET_SIZE)
    storage.set_item(DEVICE_SECRET_KEY, base64.b64encode(secret).decode("ascii"))
    logger.debug("Created new device secret")
    return secret
