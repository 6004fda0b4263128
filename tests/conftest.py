"""
Shared fixtures for the GitHub MCP Server tests
"""

import json
import sys
from pathlib import Path

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from github_mcp.client import GitHubClient


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeGitHub:
    """Records requests and answers them from a route table.

    Routes map "METHOD path" (path without the API prefix) to a JSON body,
    or to a (status, body) tuple.
    """

    def __init__(self):
        self.routes: dict[str, object] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.lstrip("/")
        answer = self.routes.get(f"{request.method} {path}")
        if answer is None:
            return httpx.Response(404, json={"message": "Not Found"})
        status, body = answer if isinstance(answer, tuple) else (200, answer)
        if isinstance(body, bytes):
            return httpx.Response(status, content=body, headers={"content-type": "text/plain; charset=utf-8"})
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def client(github):
    return GitHubClient("test-token", version="test", transport=httpx.MockTransport(github.handler))
