"""
Endpoint groups of the LYNX backend, built on ``ApiClient``.

Responses that carry a fresh session token (setup, login, password change)
are persisted through the token store before the call returns.
"""
import logging
from typing import Any, Optional, Union

from .api import ApiClient
from .exceptions import ApiError
from .models import LinkItem, Profile
from .passwords import generate_secure_password, is_password_strong

logger = logging.getLogger("lynx.client")


class _Endpoints:
    def __init__(self, api: ApiClient):
        self._api = api


class AuthApi(_Endpoints):
    """Admin authentication."""

    def __init__(self, api: ApiClient, reset_token: Optional[str] = None):
        super().__init__(api)
        self._reset_token = reset_token

    async def _keep_token(self, response: Any) -> Any:
        if isinstance(response, dict) and response.get("token"):
            await self._api.tokens.set_token(response["token"])
        return response

    async def check_setup_status(self) -> dict:
        return await self._api.request("/auth/setup-status")

    async def is_first_time_setup(self) -> bool:
        """True when no admin exists yet; also True if the check fails."""
        try:
            result = await self.check_setup_status()
        except ApiError as err:
            logger.error("Error checking setup status: %s", err)
            return True
        return bool(result.get("isFirstTimeSetup"))

    async def setup(self, password: str) -> dict:
        """Create the admin account and keep the returned token."""
        response = await self._api.request(
            "/auth/setup", method="POST", json={"password": password},
        )
        return await self._keep_token(response)

    async def login(self, password: str) -> dict:
        """Log in and keep the returned token.

        A wrong password is answered with 401, which surfaces as
        ``AuthExpired`` and clears any previous token.
        """
        response = await self._api.request(
            "/auth/login", method="POST", json={"password": password},
        )
        return await self._keep_token(response)

    async def authenticate(self, password: str) -> bool:
        """Log in, reporting failure as False instead of raising."""
        try:
            await self.login(password)
        except ApiError as err:
            logger.error("Error authenticating: %s", err)
            return False
        return True

    async def verify(self) -> dict:
        return await self._api.request("/auth/verify", method="POST")

    async def current_user(self) -> Optional[dict]:
        """Return the verified user, or None when not logged in."""
        if not await self.is_authenticated_async():
            return None
        try:
            result = await self.verify()
        except ApiError:
            return None
        if not result.get("valid"):
            return None
        return result.get("user") or {"username": "admin"}

    def logout(self) -> None:
        self._api.tokens.clear_token()

    def is_authenticated(self) -> bool:
        """Cache-only check; False until the token has been decrypted once.

        Await ``is_authenticated_async`` (or ``LynxClient.restore_session``)
        at startup before relying on this.
        """
        return self._api.tokens.get_token_sync() is not None

    async def is_authenticated_async(self) -> bool:
        return await self._api.tokens.get_token_async() is not None

    async def change_password(self, current_password: str, new_password: str) -> dict:
        response = await self._api.request(
            "/auth/change-password",
            method="POST",
            json={"currentPassword": current_password, "newPassword": new_password},
        )
        return await self._keep_token(response)

    async def reset(self) -> dict:
        """Reset the backend to first-time setup (requires a valid token)."""
        return await self._api.request("/auth/reset", method="POST")

    async def force_reset(self, reset_token: Optional[str] = None) -> dict:
        """Reset the backend using the operator reset token.

        Raises:
            ValueError: If no reset token is given or configured.
        """
        reset_token = reset_token or self._reset_token
        if not reset_token:
            raise ValueError("A reset token is required for a forced reset")
        return await self._api.request(
            "/auth/force-reset",
            method="POST",
            headers={"X-Reset-Token": reset_token},
        )

    async def reset_application(self, force: bool = False) -> dict:
        """Wipe local auth data, then reset the backend.

        Tries the authenticated reset first (unless force) and falls back to
        the forced reset when a reset token is configured.

        Returns:
            The backend response, or ``{"success": False, "message": ...}``.
        """
        # the authenticated reset needs the token, so read it before wiping
        token = await self._api.tokens.get_token_async()
        result: Any = None
        try:
            if not force and token:
                try:
                    result = await self.reset()
                except ApiError as err:
                    logger.warning("Authenticated reset failed, trying forced reset: %s", err)
            if result is None:
                result = await self.force_reset()
        except (ApiError, ValueError) as err:
            logger.error("Error resetting application: %s", err)
            result = {"success": False, "message": str(err)}
        finally:
            self._api.tokens.clear_all()
        if not isinstance(result, dict):
            result = {"success": False, "data": result}
        if not result.get("success"):
            result.setdefault("message", result.get("error") or "Failed to reset application")
        return result


class ProfileApi(_Endpoints):
    """Public profile."""

    async def get(self) -> Profile:
        return Profile.model_validate(await self._api.request("/profile"))

    async def update(self, profile: Union[Profile, dict]) -> dict:
        if not isinstance(profile, Profile):
            profile = Profile.model_validate(profile)
        return await self._api.request(
            "/profile", method="PUT", json=profile.to_payload(),
        )


class LinksApi(_Endpoints):
    """Ordered link and text cards."""

    async def get(self) -> list[LinkItem]:
        data = await self._api.request("/links")
        return [LinkItem.model_validate(item) for item in data or []]

    async def update(self, links: list[Union[LinkItem, dict]]) -> dict:
        """Replace the whole card list; order is kept."""
        payload = [
            (link if isinstance(link, LinkItem) else LinkItem.model_validate(link)).to_payload()
            for link in links
        ]
        return await self._api.request("/links", method="PUT", json=payload)

    async def export(self) -> bytes:
        """Download every card (active or not) as a JSON document."""
        return await self._api.request("/links/export", raw=True)

    async def import_links(self, items: list[dict]) -> dict:
        return await self._api.request("/links/import", method="POST", json=items)


class ThemeApi(_Endpoints):
    """Page theme; an opaque dict owned by the theme editor."""

    async def get(self) -> dict[str, Any]:
        return await self._api.request("/theme")

    async def update(self, theme: dict[str, Any]) -> dict:
        return await self._api.request("/theme", method="PUT", json=theme)


class UtilityApi(_Endpoints):
    """Password helpers, with local fallbacks when the backend is unreachable."""

    async def generate_password(self) -> str:
        try:
            result = await self._api.request("/generate-password")
            return result["password"]
        except (ApiError, KeyError, TypeError) as err:
            logger.warning("Generating password locally: %s", err)
            return generate_secure_password()

    async def validate_password(self, password: str) -> bool:
        try:
            result = await self._api.request(
                "/validate-password", method="POST", json={"password": password},
            )
            return bool(result["isStrong"])
        except (ApiError, KeyError, TypeError) as err:
            logger.warning("Validating password locally: %s", err)
            return is_password_strong(password)
