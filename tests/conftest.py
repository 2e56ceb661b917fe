"""Fixtures partagées: faux backend servi par httpx.MockTransport"""

import asyncio
import json
from typing import Callable, Optional, Union

import httpx
import pytest

from indexer_console.config import Settings
from indexer_console.services.console import IndexerConsole


BACKEND = "http://backend.test"
TOKEN = "abc"


def make_indexers() -> list[dict]:
    return [
        {
            "id": "example",
            "name": "Example",
            "enabled": True,
            "settings": [
                {"name": "username", "label": "Username", "type": "text"},
                {"name": "password", "label": "Password", "type": "password"},
            ],
            "feeds": {"torznab": f"{BACKEND}/torznab/example"},
            "stats": {"source": "builtin:example.yml"},
        },
        {
            "id": "other",
            "name": "Other",
            "enabled": False,
            "settings": [
                {"name": "email", "label": "Email", "type": "email", "placeholder": "you@example.org"},
                {"name": "cookie", "label": "Cookie", "type": "text"},
            ],
            "feeds": {"torznab": f"{BACKEND}/torznab/other"},
        },
        {
            "id": "bare",
            "name": "Bare",
            "enabled": False,
            "feeds": {"torznab": f"{BACKEND}/torznab/bare"},
        },
    ]


Override = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeBackend:
    """Backend en mémoire: enregistre les requêtes, réponses surchargeables, requêtes retenables"""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.indexers = make_indexers()
        self.configs: dict[str, dict[str, str]] = {
            "example": {"url": "https://example.org/", "username": "alice", "password": "pw", "stale": "x"},
        }
        self.items: list[dict] = [
            {"Title": "Foo 1080p", "Link": "https://example.org/1", "Size": 1572864,
             "Category": 2000, "Seeders": 12, "Peers": 3, "Site": "example"},
            {"Title": "Foo 720p", "Link": "https://example.org/2", "Size": 1024,
             "Category": 2000, "Seeders": 40, "Peers": 9, "Site": "example"},
        ]
        self.overrides: dict[tuple[str, str], Override] = {}
        self.gates: dict[tuple[str, str], asyncio.Event] = {}

    def override(self, method: str, path: str, response: Override):
        self.overrides[(method, path)] = response

    def hold(self, method: str, path: str) -> asyncio.Event:
        """Retient les requêtes sur ce chemin jusqu'à ce que l'événement soit levé"""
        gate = asyncio.Event()
        self.gates[(method, path)] = gate
        return gate

    def find(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)

        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()

        if key in self.overrides:
            response = self.overrides[key]
            return response(request) if callable(response) else response

        return self.handle(request)

    def _authorized(self, request: httpx.Request) -> bool:
        return request.headers.get("Authorization") == f"apitoken {TOKEN}"

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        parts = path.strip("/").split("/")

        if path == "/xhr/auth" and request.method == "POST":
            body = json.loads(request.content)
            if body.get("passphrase") == "secret":
                return httpx.Response(200, json={"token": TOKEN})
            return httpx.Response(401, json={"error": "Invalid passphrase"})

        if parts[0] == "xhr" and not self._authorized(request):
            return httpx.Response(401, json={"error": "Not Authorized"})

        if path == "/xhr/indexers":
            return httpx.Response(200, json=self.indexers)

        if parts[:2] == ["xhr", "indexers"] and len(parts) == 4:
            indexer_id, action = parts[2], parts[3]
            if action == "config" and request.method == "GET":
                config = dict(self.configs.get(indexer_id, {}))
                config.setdefault("url", f"https://{indexer_id}.org/")
                return httpx.Response(200, json=config)
            if action == "config" and request.method == "PATCH":
                patch = json.loads(request.content)
                self.configs.setdefault(indexer_id, {}).update(patch)
                for indexer in self.indexers:
                    if indexer["id"] == indexer_id and "enabled" in patch:
                        indexer["enabled"] = patch["enabled"] == "true"
                return httpx.Response(200)
            if action == "test":
                return httpx.Response(200, json={"ok": True})

        if parts[0] == "torznab":
            return httpx.Response(200, json={"Items": self.items})

        return httpx.Response(404, json={"error": "Not Found"})


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(_env_file=None, origin=BACKEND, data_path=str(tmp_path / "data"))


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def console(settings, backend):
    console = IndexerConsole(settings, transport=httpx.MockTransport(backend))
    yield console
    await console.close()


@pytest.fixture
async def logged_in(console):
    """Console avec un token valide et les indexers chargés"""
    console.session.set_token(TOKEN)
    await console.registry.load_indexers()
    return console


@pytest.fixture
def registry(logged_in):
    return logged_in.registry


def json_error(status: int, message: Optional[str] = None) -> httpx.Response:
    if message is None:
        return httpx.Response(status)
    return httpx.Response(status, json={"error": message})
