"""
Authenticated request pipeline for the LYNX backend.

Every request:
1. resolves the session token through ``TokenStore.get_token_async``
   (waits for decryption; unreadable storage means an anonymous request),
2. sends it as ``Authorization: Bearer <token>`` when present,
3. adds a ``_ts`` cache-busting parameter to GET requests and asks
   intermediaries not to store the response,
4. on 401/403 clears the token slot and raises ``AuthExpired``,
5. turns any other non-2xx into ``ApiError`` carrying the backend message.
"""
import time
import asyncio
import logging
from typing import Any, Optional

import aiohttp
import orjson

from .exceptions import (
    ApiConnectionError,
    ApiError,
    AuthExpired,
    StorageUnavailable,
)
from .vault import TokenStore

logger = logging.getLogger("lynx.client")

_AUTH_FAILURE_STATUSES = frozenset({401, 403})


def _decode(body: bytes) -> Any:
    """Parse a JSON body; empty or non-JSON bodies decode to {}."""
    if not body:
        return {}
    try:
        return orjson.loads(body)
    except orjson.JSONDecodeError:
        return {}


def _error_message(data: Any) -> str:
    if isinstance(data, dict):
        return data.get("error") or data.get("message") or "Request failed"
    return "Request failed"


class ApiClient:
    """Sends requests to the backend on behalf of the token holder.

    Args:
        base_url: Backend API root, e.g. ``https://links.example.com/api``.
        tokens: Token slot used to authenticate requests.
        session: aiohttp session owned by the caller.
    """

    def __init__(
        self,
        base_url: str,
        tokens: TokenStore,
        session: aiohttp.ClientSession,
    ):
        self.base_url = base_url.rstrip("/")
        self._tokens = tokens
        self._session = session

    @property
    def tokens(self) -> TokenStore:
        return self._tokens

    async def _resolve_token(self) -> Optional[str]:
        try:
            return await self._tokens.get_token_async()
        except StorageUnavailable as err:
            logger.warning("Token storage unavailable, sending anonymous request: %s", err)
            return None

    def _expire_session(self) -> None:
        try:
            self._tokens.clear_token()
        except StorageUnavailable as err:
            logger.error("Could not clear rejected session token: %s", err)

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, str]] = None,
        raw: bool = False,
    ) -> Any:
        """Send a request to ``base_url + endpoint``.

        Args:
            endpoint: Path below the API root, starting with ``/``.
            method: HTTP method.
            json: Body to send as JSON.
            headers: Extra headers (override the defaults).
            params: Extra query parameters.
            raw: Return the response body bytes instead of decoded JSON.

        Returns:
            Decoded JSON body (or bytes when raw).

        Raises:
            AuthExpired: The backend rejected the credential (slot cleared).
            ApiError: Any other non-2xx response.
            ApiConnectionError: The backend could not be reached.
        """
        method = method.upper()
        token = await self._resolve_token()

        request_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Cache-Control": "no-store",
        }
        if headers:
            request_headers.update(headers)
        if token:
            request_headers["Authorization"] = f"Bearer {token}"

        query = dict(params or {})
        if method == "GET":
            query["_ts"] = str(int(time.time() * 1000))

        body = orjson.dumps(json) if json is not None else None
        url = f"{self.base_url}{endpoint}"

        try:
            async with self._session.request(
                method, url, params=query, headers=request_headers, data=body,
            ) as response:
                status = response.status
                payload = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            logger.error("API request error (%s %s): %s", method, endpoint, err)
            raise ApiConnectionError() from err

        if status in _AUTH_FAILURE_STATUSES:
            logger.warning(
                "API request rejected credential (%s %s): %d",
                method, endpoint, status,
            )
            self._expire_session()
            raise AuthExpired(status=status)

        if not 200 <= status < 300:
            message = _error_message(_decode(payload))
            logger.error(
                "API request error (%s %s): %d %s",
                method, endpoint, status, message,
            )
            raise ApiError(message, status=status)

        logger.debug("API %s %s -> %d", method, endpoint, status)
        if raw:
            return payload
        return _decode(payload)
