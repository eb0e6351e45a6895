from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

import httpx
import pytest

from core.config import AppConfig
from core.services.api_client import ApiClient

NETWORK_DOWN = "network-down"


class FakeServer:
    """Routes "METHOD endpoint.php" -> (status, payload) ; enregistre chaque appel reçu."""

    def __init__(self) -> None:
        self.routes: Dict[str, Tuple[int, Any]] = {}
        self.calls: List[Dict[str, Any]] = []

    def route(self, key: str, status: int = 200, payload: Any = None) -> None:
        self.routes[key] = (status, {} if payload is None else payload)

    def fail(self, key: str) -> None:
        """Simule une coupure réseau sur cette route."""
        self.routes[key] = (0, NETWORK_DOWN)

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.rsplit("/", 1)[-1]
        key = f"{request.method} {endpoint}"
        self.calls.append({
            "key": key,
            "json": json.loads(request.content) if request.content else None,
            "params": dict(request.url.params),
            "headers": dict(request.headers),
        })
        status, payload = self.routes.get(key, (200, {}))
        if payload == NETWORK_DOWN:
            raise httpx.ConnectError("connexion refusée", request=request)
        if isinstance(payload, bytes):
            return httpx.Response(status, content=payload)
        if isinstance(payload, str):
            return httpx.Response(status, text=payload)
        return httpx.Response(status, json=payload)

    def keys(self) -> List[str]:
        return [c["key"] for c in self.calls]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("MG_API_URL", "MG_API_KEY", "MG_API_TIMEOUT", "MG_DATA_DIR", "WKHTMLTOPDF"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def config(tmp_path) -> AppConfig:
    return AppConfig(
        api_base_url="https://api.test/api/",
        api_key="test-key",
        data_dir=tmp_path / "data",
        exports_dir=tmp_path / "exports",
    )


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def api(config, server):
    client = ApiClient(config, transport=httpx.MockTransport(server.handler))
    yield client
    client.close()
