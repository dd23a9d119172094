"""
LynxClient — owns the storage, token store, HTTP session and endpoint groups.

Usage::

    async with LynxClient(ClientConfig.from_env()) as lynx:
        if not await lynx.restore_session():
            await lynx.auth.login(password)
        links = await lynx.links.get()
"""
import logging
from typing import Optional

import aiohttp

from .api import ApiClient
from .config import ClientConfig
from .endpoints import AuthApi, LinksApi, ProfileApi, ThemeApi, UtilityApi
from .storage import FileStorage, MemoryStorage, Storage
from .vault import TokenStore

logger = logging.getLogger("lynx.client")


class LynxClient:
    """Client for one LYNX backend and one storage profile.

    Args:
        config: Client settings; defaults to ``ClientConfig()``.
        storage: Token storage; defaults to ``FileStorage(config.storage_path)``
            or an in-memory store when no path is configured.
        session: aiohttp session to reuse; created (and closed) by the
            client when omitted.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        storage: Optional[Storage] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.config = config or ClientConfig()
        if storage is None:
            if self.config.storage_path:
                storage = FileStorage(self.config.storage_path)
            else:
                storage = MemoryStorage()
        self.storage = storage
        self.tokens = TokenStore(storage, self.config.vault_config())
        self._session = session
        self._owns_session = session is None
        self._api: Optional[ApiClient] = None
        self.auth: Optional[AuthApi] = None
        self.profile: Optional[ProfileApi] = None
        self.links: Optional[LinksApi] = None
        self.theme: Optional[ThemeApi] = None
        self.utility: Optional[UtilityApi] = None

    def __repr__(self) -> str:
        return f'<LynxClient base_url={self.config.base_url!r} started={self.started}>'

    @property
    def started(self) -> bool:
        return self._api is not None

    @property
    def api(self) -> ApiClient:
        if self._api is None:
            raise RuntimeError("LynxClient is not started; use 'async with' or start()")
        return self._api

    async def start(self) -> "LynxClient":
        if self._api is not None:
            return self
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.timeout),
            )
        self._api = ApiClient(self.config.base_url, self.tokens, self._session)
        self.auth = AuthApi(self._api, reset_token=self.config.reset_token)
        self.profile = ProfileApi(self._api)
        self.links = LinksApi(self._api)
        self.theme = ThemeApi(self._api)
        self.utility = UtilityApi(self._api)
        logger.debug("LynxClient started for %s", self.config.base_url)
        return self

    async def close(self) -> None:
        """Wait for pending token writes, then close an owned HTTP session."""
        await self.tokens.flush()
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None
        self._api = None

    async def restore_session(self) -> bool:
        """Decrypt the stored token into the cache.

        Await this at startup: until it has run, ``auth.is_authenticated()``
        reports False even when a valid token is stored.
        """
        return await self.tokens.get_token_async() is not None

    async def __aenter__(self) -> "LynxClient":
        return await self.start()

    async def __aexit__(self, *exc) -> None:
        await self.close()
