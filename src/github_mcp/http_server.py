"""
GitHub MCP HTTP Server

Streamable HTTP transport for remote access to the GitHub MCP server.
The GitHub token comes from the server configuration, same as stdio.
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

from mcp.server.streamable_http_manager import StreamableHTTPSessionManager

from .client import GitHubClient
from .config import ConfigError, ServerConfig, load_config
from .dispatch import Dispatcher
from .server import SERVER_NAME, configure_logging, create_server

logger = logging.getLogger("github-mcp-server")


async def _check_github_health(client: GitHubClient) -> dict:
    """Check the GitHub API is reachable with the configured token."""
    try:
        start = time.time()
        await client.rest("GET", "rate_limit")
        latency_ms = int((time.time() - start) * 1000)
        return {"status": "ok", "latency_ms": latency_ms}
    except Exception as e:
        return {"status": "error", "error": f"{type(e).__name__}: {str(e)}"}


def _check_registry(dispatcher: Dispatcher) -> dict:
    return {
        "status": "ok" if dispatcher.list_tools() else "empty",
        "tools": len(dispatcher.list_tools()),
        "resource_templates": len(dispatcher.list_resource_templates()),
        "prompts": len(dispatcher.list_prompts()),
    }


def create_app(config: ServerConfig, client: Optional[GitHubClient] = None) -> Starlette:
    """Create the Starlette ASGI application.

    The transport is stateless: every request gets a fresh MCP session sharing
    one registry, so run-time toolset enablement has nowhere to live and
    dynamic toolsets are refused.
    """
    if config.dynamic_toolsets:
        raise ConfigError("dynamic toolsets are not supported over the stateless HTTP transport; use stdio")
    if client is None:
        client = GitHubClient(config.token, host=config.host, version=config.version)
    dispatcher = Dispatcher()
    server = create_server(config, client=client, dispatcher=dispatcher)
    session_manager = StreamableHTTPSessionManager(app=server, stateless=True)

    @asynccontextmanager
    async def lifespan(app):
        """Application lifespan: startup/shutdown."""
        logger.info("GitHub MCP HTTP Server starting...")
        async with session_manager.run():
            yield
        logger.info("GitHub MCP HTTP Server shut down.")

    async def health(request: Request) -> JSONResponse:
        """Health endpoint with dependency checks.

        Returns:
            - status: "healthy" or "degraded"
            - server: server name
            - checks: GitHub connectivity and registered operations
        """
        checks = {
            "registry": _check_registry(dispatcher),
        }
        if request.query_params.get("deep"):
            checks["github"] = await _check_github_health(client)

        statuses = [c.get("status", "unknown") for c in checks.values()]
        overall_status = "degraded" if any(s == "error" for s in statuses) else "healthy"

        return JSONResponse({
            "status": overall_status,
            "server": SERVER_NAME,
            "version": config.version,
            "read_only": config.read_only,
            "dynamic_toolsets": config.dynamic_toolsets,
            "checks": checks,
        })

    routes = [
        Route("/health", health, methods=["GET"]),
        Mount("/mcp", app=session_manager.handle_request),
    ]

    return Starlette(routes=routes, lifespan=lifespan)


def main():
    """Main entry point for HTTP server."""
    try:
        config = load_config()
        configure_logging(config.log_file_path)
        app = create_app(config)
    except ConfigError as e:
        logger.critical(f"Configuration error: {e}")
        sys.exit(1)

    uvicorn.run(app, host=config.http_host, port=config.http_port, log_level="info")


if __name__ == "__main__":
    main()
