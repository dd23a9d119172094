"""
Client Configuration — validated settings for LynxClient.

Reads settings from environment variables:
    LYNX_API_URL = <backend base url, e.g. https://links.example.com/api>
    LYNX_TIMEOUT = <seconds>
    LYNX_STORAGE_PATH = <path of the JSON storage file>
    LYNX_RESET_TOKEN = <token sent as X-Reset-Token on force reset>
    LYNX_ORIGIN / LYNX_STRICT_ENCRYPTION (see vault.config)
"""
import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .conf import DEFAULT_API_URL, DEFAULT_TIMEOUT, env_bool
from .vault.config import VaultConfig


class ClientConfig(BaseModel):
    """Validated client configuration."""

    base_url: str = Field(default=DEFAULT_API_URL)
    timeout: float = Field(default=DEFAULT_TIMEOUT, ge=1)
    storage_path: Optional[str] = None
    reset_token: Optional[str] = None
    vault: Optional[VaultConfig] = None

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and strip trailing slashes."""
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL: {v!r}")
        return v

    def vault_config(self) -> VaultConfig:
        """Return the vault settings, deriving the origin from base_url."""
        if self.vault is not None:
            return self.vault
        return VaultConfig.from_url(self.base_url)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create ClientConfig by loading values from environment.

        Returns:
            Populated ClientConfig instance.
        """
        base_url = os.environ.get("LYNX_API_URL", DEFAULT_API_URL)
        if os.environ.get("LYNX_ORIGIN"):
            vault = VaultConfig.from_env()
        else:
            vault = VaultConfig.from_url(
                base_url,
                strict_encryption=env_bool("LYNX_STRICT_ENCRYPTION"),
            )
        return cls(
            base_url=base_url,
            timeout=float(os.environ.get("LYNX_TIMEOUT", DEFAULT_TIMEOUT)),
            storage_path=os.environ.get("LYNX_STORAGE_PATH") or None,
            reset_token=os.environ.get("LYNX_RESET_TOKEN") or None,
            vault=vault,
        )
