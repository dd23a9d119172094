"""
LYNX Client constants — storage key names and crypto parameters.

The storage keys and cipher parameters are shared with the LYNX browser
client; changing any of them makes previously stored tokens unreadable.
"""
import os

# Persisted storage keys (case-sensitive)
TOKEN_STORAGE_KEY = 'lynx-auth-token'
TOKEN_IV_PREFIX = 'lynx-auth-iv-'
TOKEN_IV_KEY = TOKEN_IV_PREFIX + TOKEN_STORAGE_KEY
DEVICE_SECRET_KEY = 'lynx-device-secret'

# Keys kept by clear_auth_data()
PRESERVED_KEYS = frozenset({'lynx-theme', 'lynx-settings'})

# Key derivation / cipher parameters
DEVICE_SECRET_SIZE = 32
KDF_ITERATIONS = 100_000
KEY_LENGTH = 32  # AES-256
NONCE_SIZE = 12  # 96-bit nonce

DEFAULT_API_URL = 'http://localhost:3001/api'
DEFAULT_TIMEOUT = 30.0


def env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')
