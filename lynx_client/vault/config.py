"""
Vault Configuration — origin binding and encryption policy.

Reads settings from environment variables:
    LYNX_ORIGIN = <scheme://host[:port]>, used as the key-derivation salt
    LYNX_STRICT_ENCRYPTION = <1|0>, fail closed when a token cannot be
                             encrypted instead of storing it in plaintext

Security Note:
    Never log key material. Only log key names and outcomes.
"""
import os

from pydantic import BaseModel, Field, field_validator
from yarl import URL

from ..conf import env_bool


def origin_from_url(url: str) -> str:
    """Return the web origin (scheme://host[:port]) of url.

    The port is omitted when it is the scheme's default and international
    host names are serialised in punycode, matching ``location.origin`` in
    a browser.

    Raises:
        ValueError: If url has no scheme or host.
    """
    parsed = URL(url)
    if not parsed.scheme or not parsed.raw_host:
        raise ValueError(f"Cannot derive an origin from {url!r}")
    host = parsed.raw_host
    if ":" in host:
        host = f"[{host}]"
    origin = f"{parsed.scheme.lower()}://{host.lower()}"
    if not parsed.is_default_port():
        origin = f"{origin}:{parsed.port}"
    return origin


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    origin: str
    strict_encryption: bool = Field(default=False)

    @field_validator("origin")
    @classmethod
    def validate_origin(cls, v: str) -> str:
        """Normalise origin and reject values carrying a path or query."""
        normalized = origin_from_url(v)
        parsed = URL(v)
        if (
            parsed.raw_path not in ("", "/")
            or parsed.raw_query_string
            or parsed.raw_fragment
            or parsed.raw_user
        ):
            raise ValueError(
                f"origin must be scheme://host[:port] only, got {v!r} "
                f"(did you mean {normalized!r}?)"
            )
        return normalized

    @classmethod
    def from_url(cls, url: str, strict_encryption: bool = False) -> "VaultConfig":
        """Create VaultConfig bound to the origin of url."""
        return cls(
            origin=origin_from_url(url),
            strict_encryption=strict_encryption,
        )

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.

        Raises:
            RuntimeError: If LYNX_ORIGIN is not set.
        """
        origin = os.environ.get("LYNX_ORIGIN")
        if not origin:
            raise RuntimeError(
                "LYNX_ORIGIN environment variable is not set"
            )
        return cls(
            origin=origin,
            strict_encryption=env_bool("LYNX_STRICT_ENCRYPTION"),
        )
