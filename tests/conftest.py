"""Shared test fixtures: fake platform behind httpx.MockTransport, ready-made clients."""

import json
from collections.abc import Generator
from typing import Any

import httpx
import pytest

from iot_sdk.client.iot_client import IoTClient

BASE_URL = "https://iot.example.com"


class FakePlatform:
    """Serves canned responses per path and records every request it sees.

    Responses queued for a path are served in order; the last one keeps being
    served once the queue is down to it.
    """

    def __init__(self) -> None:
        self.routes: dict[str, list[dict[str, Any]]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        path: str,
        json_body: Any = None,
        status_code: int = 200,
        content: bytes | None = None,
        error: Exception | None = None,
    ) -> None:
        self.routes.setdefault(path, []).append(
            {"json": json_body, "status_code": status_code, "content": content, "error": error}
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get(request.url.path)
        if not queue:
            return httpx.Response(404)
        canned = queue.pop(0) if len(queue) > 1 else queue[0]
        if canned["error"] is not None:
            raise canned["error"]
        if canned["content"] is not None:
            return httpx.Response(canned["status_code"], content=canned["content"])
        return httpx.Response(canned["status_code"], json=canned["json"])

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def http_client(platform: FakePlatform) -> Generator[httpx.Client, None, None]:
    c = httpx.Client(transport=httpx.MockTransport(platform.handler))
    yield c
    c.close()


@pytest.fixture
def static_client(http_client: httpx.Client) -> IoTClient:
    return IoTClient.from_token(BASE_URL, "static-token", http_client=http_client)
