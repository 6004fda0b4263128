"""GitHub API client for the GitHub MCP Server.

Talks to the REST, GraphQL and raw-content endpoints of github.com,
GitHub Enterprise Cloud (ghe.com) or a GitHub Enterprise Server host.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote, urlparse

import httpx

from .errors import ToolError

logger = logging.getLogger("github-mcp-server")

GITHUB_TIMEOUT = float(os.environ.get("GITHUB_TIMEOUT", "30"))
GITHUB_API_VERSION = "2022-11-28"


class GitHubAPIError(ToolError):
    """Non-2xx response from the GitHub API."""

    def __init__(self, status_code: int, message: str, context: str = ""):
        where = f" ({context})" if context else ""
        super().__init__(f"GitHub API error{where}: {status_code} {message}")
        self.status_code = status_code
        self.message = message


@dataclass(frozen=True)
class APIHost:
    rest_url: str
    graphql_url: str
    upload_url: str
    raw_url: str


def _dotcom_host() -> APIHost:
    return APIHost(
        rest_url="https://api.github.com/",
        graphql_url="https://api.github.com/graphql",
        upload_url="https://uploads.github.com",
        raw_url="https://raw.githubusercontent.com/",
    )


def _ghec_host(hostname: str, scheme: str) -> APIHost:
    if scheme == "http":
        raise ValueError("GHEC URL must be HTTPS")
    return APIHost(
        rest_url=f"https://api.{hostname}/",
        graphql_url=f"https://api.{hostname}/graphql",
        upload_url=f"https://uploads.{hostname}",
        raw_url=f"https://raw.{hostname}/",
    )


def _ghes_host(hostname: str, scheme: str) -> APIHost:
    return APIHost(
        rest_url=f"{scheme}://{hostname}/api/v3/",
        graphql_url=f"{scheme}://{hostname}/api/graphql",
        upload_url=f"{scheme}://{hostname}/api/uploads/",
        raw_url=f"{scheme}://{hostname}/raw/",
    )


def parse_api_host(host: Optional[str]) -> APIHost:
    """Resolve the API endpoints for a GitHub host.

    Ports are not carried over, so local development hosts are not supported.

    Raises:
        ValueError: If the host has no scheme, or is an http ghe.com host.
    """
    if not host:
        return _dotcom_host()

    parsed = urlparse(host)
    if not parsed.scheme or not parsed.hostname:
        raise ValueError(f"host must have a scheme (http or https): {host}")

    hostname = parsed.hostname
    if hostname.endswith("github.com"):
        return _dotcom_host()
    if hostname.endswith("ghe.com"):
        return _ghec_host(hostname, parsed.scheme)
    return _ghes_host(hostname, parsed.scheme)


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return data["message"]
    return resp.reason_phrase


class GitHubClient:
    """Thin async wrapper over httpx for the GitHub APIs.

    Args:
        token: Personal access token sent as a bearer token.
        host: GitHub host URL; github.com when empty.
        version: Server version, used in the User-Agent header.
        transport: Optional httpx transport (tests pass a MockTransport).
    """

    def __init__(
        self,
        token: str,
        host: Optional[str] = None,
        version: str = "dev",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = GITHUB_TIMEOUT,
    ):
        self.api_host = parse_api_host(host)
        self.version = version
        self.user_agent = f"github-mcp-server/{version}"
        self._token = token
        self._transport = transport
        self._timeout = timeout

    def set_client_info(self, name: str, version: str) -> None:
        """Include the connected MCP client in the User-Agent."""
        self.user_agent = f"github-mcp-server/{self.version} ({name}/{version})"
        logger.info(f"User-Agent set to {self.user_agent}")

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": self.user_agent,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def rest(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json: Optional[Any] = None,
    ) -> Any:
        """Call a REST endpoint and return the decoded JSON body (None when empty)."""
        url = self.api_host.rest_url + path.lstrip("/")
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        async with self._client() as client:
            resp = await client.request(method, url, headers=self._headers(), params=params, json=json)

        if resp.status_code >= 400:
            raise GitHubAPIError(resp.status_code, _error_message(resp), f"{method} {path}")
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    async def graphql(self, query: str, variables: Optional[dict] = None) -> dict:
        async with self._client() as client:
            resp = await client.post(
                self.api_host.graphql_url,
                headers=self._headers(),
                json={"query": query, "variables": variables or {}},
            )

        if resp.status_code >= 400:
            raise GitHubAPIError(resp.status_code, _error_message(resp), "graphql")
        data = resp.json()
        if data.get("errors"):
            messages = "; ".join(e.get("message", str(e)) for e in data["errors"])
            raise GitHubAPIError(resp.status_code, messages, "graphql")
        return data.get("data", {})

    def raw_url(self, owner: str, repo: str, path: str, ref: Optional[str] = None, sha: Optional[str] = None) -> str:
        """URL of a file in the raw content API. A sha wins over a ref; HEAD when neither is given."""
        revision = sha or ref or "HEAD"
        parts = [owner, repo, revision, path.lstrip("/")]
        return self.api_host.raw_url + "/".join(quote(p, safe="/") for p in parts)

    async def raw_content(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: Optional[str] = None,
        sha: Optional[str] = None,
    ) -> tuple[bytes, Optional[str]]:
        """Fetch a file's raw bytes and its content type."""
        url = self.raw_url(owner, repo, path, ref=ref, sha=sha)
        async with self._client() as client:
            resp = await client.get(url, headers={"Authorization": f"Bearer {self._token}", "User-Agent": self.user_agent})

        if resp.status_code >= 400:
            raise GitHubAPIError(resp.status_code, _error_message(resp), f"raw {owner}/{repo}/{path}")
        return resp.content, resp.headers.get("content-type")
