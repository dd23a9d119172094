"""Shared fixtures: in-memory storage, token store and a fake LYNX backend."""
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from lynx_client import ClientConfig, LynxClient, MemoryStorage
from lynx_client.vault import TokenStore, VaultConfig

ORIGIN = "https://links.example.com"
ADMIN_PASSWORD = "Secret#123"
RESET_TOKEN = "reset-me"


@pytest.fixture
def storage():
    """Create a fresh in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def vault_config():
    return VaultConfig(origin=ORIGIN)


@pytest.fixture
def tokens(storage, vault_config):
    """Create a token store over the in-memory storage."""
    return TokenStore(storage, vault_config)


class FakeBackend:
    """Minimal stand-in for the LYNX HTTP API."""

    def __init__(self):
        self.valid_tokens = set()
        self.requests = []
        self.bodies = {}
        self.first_time = True
        self.utility_down = False
        self.force_reset_body = None
        self.base_url = None

    def app(self) -> web.Application:
        app = web.Application(middlewares=[self._record])
        app.router.add_get("/api/auth/setup-status", self.setup_status)
        app.router.add_post("/api/auth/setup", self.setup)
        app.router.add_post("/api/auth/login", self.login)
        app.router.add_post("/api/auth/verify", self.verify)
        app.router.add_post("/api/auth/change-password", self.change_password)
        app.router.add_post("/api/auth/reset", self.reset)
        app.router.add_post("/api/auth/force-reset", self.force_reset)
        app.router.add_get("/api/profile", self.get_profile)
        app.router.add_put("/api/profile", self.put_profile)
        app.router.add_get("/api/links", self.get_links)
        app.router.add_put("/api/links", self.put_links)
        app.router.add_get("/api/links/export", self.export_links)
        app.router.add_post("/api/links/import", self.import_links)
        app.router.add_get("/api/theme", self.get_theme)
        app.router.add_put("/api/theme", self.put_theme)
        app.router.add_get("/api/generate-password", self.generate_password)
        app.router.add_post("/api/validate-password", self.validate_password)
        app.router.add_get("/api/broken/error", self.broken_error)
        app.router.add_get("/api/broken/message", self.broken_message)
        app.router.add_get("/api/broken/html", self.broken_html)
        return app

    @web.middleware
    async def _record(self, request, handler):
        self.requests.append(request)
        return await handler(request)

    @property
    def last(self):
        return self.requests[-1]

    def _authorize(self, request):
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            raise web.HTTPUnauthorized(
                text='{"error": "Access token required"}',
                content_type="application/json",
            )
        if header[len("Bearer "):] not in self.valid_tokens:
            raise web.HTTPForbidden(
                text='{"error": "Invalid or expired token"}',
                content_type="application/json",
            )

    def _issue(self, token):
        self.valid_tokens.add(token)
        return token

    # --- auth ---

    async def setup_status(self, request):
        return web.json_response({"isFirstTimeSetup": self.first_time})

    async def setup(self, request):
        self.first_time = False
        return web.json_response({
            "success": True,
            "token": self._issue("tok-setup"),
            "message": "Admin account created successfully",
        })

    async def login(self, request):
        body = await request.json()
        if body.get("password") != ADMIN_PASSWORD:
            return web.json_response({"error": "Invalid password"}, status=401)
        return web.json_response({"success": True, "token": self._issue("tok-123")})

    async def verify(self, request):
        self._authorize(request)
        return web.json_response({"valid": True, "user": {"username": "admin"}})

    async def change_password(self, request):
        self._authorize(request)
        self.bodies["change-password"] = await request.json()
        return web.json_response({
            "success": True,
            "message": "Password changed successfully",
            "token": self._issue("tok-456"),
        })

    async def reset(self, request):
        self._authorize(request)
        self.valid_tokens.clear()
        self.first_time = True
        return web.json_response({"success": True, "message": "Reset complete"})

    async def force_reset(self, request):
        if request.headers.get("X-Reset-Token") != RESET_TOKEN:
            return web.json_response({"error": "Invalid reset token"}, status=400)
        self.valid_tokens.clear()
        self.first_time = True
        if self.force_reset_body is not None:
            return web.json_response(self.force_reset_body)
        return web.json_response({"success": True, "message": "Forced reset complete"})

    # --- content ---

    async def get_profile(self, request):
        return web.json_response({
            "name": "Alex Johnson",
            "bio": "Digital creator",
            "avatar": "/assets/profile-avatar.jpg",
            "social_links": {"github": "https://github.com/alex"},
            "show_avatar": 0,
        })

    async def put_profile(self, request):
        self._authorize(request)
        self.bodies["profile"] = await request.json()
        return web.json_response({"success": True})

    async def get_links(self, request):
        return web.json_response([
            {"id": 1, "title": "Blog", "description": "", "url": "https://blog.example.com",
             "type": "link", "iconType": "emoji", "icon": "*"},
            {"id": "t-2", "title": "Notes", "type": "text",
             "textItems": ["plain", {"text": "linked", "url": "https://x.example.com"}]},
        ])

    async def put_links(self, request):
        self._authorize(request)
        self.bodies["links"] = await request.json()
        return web.json_response({"success": True})

    async def export_links(self, request):
        self._authorize(request)
        return web.Response(
            body=b'[{"id": "1", "title": "Blog"}]',
            content_type="application/json",
        )

    async def import_links(self, request):
        self._authorize(request)
        self.bodies["import"] = await request.json()
        return web.json_response({"success": True, "imported": len(self.bodies["import"])})

    async def get_theme(self, request):
        return web.json_response({"primary": "#007bff", "background": "#ffffff"})

    async def put_theme(self, request):
        self._authorize(request)
        self.bodies["theme"] = await request.json()
        return web.json_response({"success": True})

    # --- utility ---

    async def generate_password(self, request):
        if self.utility_down:
            return web.json_response({"error": "down"}, status=503)
        return web.json_response({"password": "Server#Pass1"})

    async def validate_password(self, request):
        if self.utility_down:
            return web.json_response({"error": "down"}, status=503)
        body = await request.json()
        return web.json_response({"isStrong": body["password"] == "Server#Pass1"})

    # --- failures ---

    async def broken_error(self, request):
        return web.json_response({"error": "Failed to load links"}, status=500)

    async def broken_message(self, request):
        return web.json_response({"message": "Database offline"}, status=502)

    async def broken_html(self, request):
        return web.Response(text="<html>oops</html>", status=500, content_type="text/html")


@pytest_asyncio.fixture
async def backend():
    """Serve a FakeBackend on a local port."""
    fake = FakeBackend()
    server = TestServer(fake.app())
    await server.start_server()
    fake.base_url = str(server.make_url("/api"))
    yield fake
    await server.close()


@pytest_asyncio.fixture
async def lynx(backend, storage):
    """A started LynxClient talking to the fake backend."""
    config = ClientConfig(base_url=backend.base_url, reset_token=RESET_TOKEN)
    async with LynxClient(config, storage=storage) as client:
        yield client
