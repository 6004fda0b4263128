"""
GitHub MCP Server

A Model Context Protocol server exposing the GitHub API as toolsets that can be
switched on at startup, all at once, or by the agent itself at run time.

Error Handling Strategy:
- Startup phases are logged; a toolset module that fails to build is skipped
- A misannotated tool or an unknown startup toolset aborts startup
- Tool execution errors come back as error results instead of crashing
"""

import logging
import sys
import traceback
from io import TextIOWrapper
from typing import Any, Optional

# Configure logging FIRST, before any other imports that might log
# Log to stderr so stdout stays free for the stdio transport
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stderr)
logger = logging.getLogger("github-mcp-server")

try:
    import anyio
    from mcp.server import NotificationOptions, Server
    from mcp.server.models import InitializationOptions
    from mcp.server.stdio import stdio_server
    from mcp.types import CallToolResult, GetPromptResult, Prompt, ResourceTemplate, Tool
    from pydantic import AnyUrl
except ImportError as e:
    logger.critical(f"Failed to import MCP library: {e}")
    logger.critical("Make sure 'mcp' is installed: pip install mcp")
    sys.exit(1)

from .client import GitHubClient
from .config import ConfigError, ServerConfig, load_config
from .dispatch import Dispatcher
from .errors import ToolsetDoesNotExistError
from .iolog import IOLogger
from .tools import default_toolset_group
from .tools.dynamic import init_dynamic_toolset
from .toolsets import ToolsetGroup

SERVER_NAME = "github-mcp-server"


def configure_logging(log_file_path: Optional[str] = None) -> None:
    """Send logs to a file at DEBUG when a path is given, otherwise keep stderr at INFO."""
    if log_file_path:
        logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT, filename=log_file_path, force=True)
        logger.info(f"Logging to {log_file_path}")


def build_toolsets(config: ServerConfig, client: GitHubClient, dispatcher: Dispatcher) -> ToolsetGroup:
    """Build the toolset group, apply startup enablement and register with the dispatcher.

    Raises:
        MisannotatedToolError: If a toolset module registered a tool in the wrong collection.
        RuntimeError: If a startup toolset name does not exist.
    """
    # Phase 1: build every toolset (all disabled)
    group = default_toolset_group(config.read_only, client)

    # Phase 2: startup enablement
    startup = config.startup_toolsets()
    try:
        group.enable_toolsets(startup)
    except ToolsetDoesNotExistError as e:
        raise RuntimeError(f"failed to enable toolsets: {e}") from e
    logger.info(f"Enabled toolsets: {', '.join(group.enabled_toolset_names()) or '(none)'}")

    # Phase 3: make enabled operations reachable
    group.register_all(dispatcher)

    # Phase 4: dynamic discovery goes in last so it can see every other toolset
    if config.dynamic_toolsets:
        dynamic = init_dynamic_toolset(group, dispatcher)
        group.add_toolset(dynamic)
        dynamic.register(dispatcher)
        logger.info("Dynamic toolset discovery enabled")

    logger.info(
        f"Total toolsets: {len(group.toolsets)}, registered tools: {len(dispatcher.list_tools())}"
        f"{' (read-only)' if config.read_only else ''}"
    )
    return group


def create_server(
    config: ServerConfig,
    client: Optional[GitHubClient] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> Server:
    """Create and configure the MCP server.

    Args:
        config: Server configuration.
        client: GitHub client; built from the config when None.
        dispatcher: Dispatch surface to register with; a new one when None.

    Returns:
        Configured MCP Server instance.
    """
    logger.info("Creating MCP server...")

    if client is None:
        client = GitHubClient(config.token, host=config.host, version=config.version)
    if dispatcher is None:
        dispatcher = Dispatcher()

    build_toolsets(config, client, dispatcher)

    server = Server(SERVER_NAME, version=config.version)
    client_info_seen = False

    def _note_client_info() -> None:
        """Add the MCP client's name/version to the GitHub User-Agent once it is known."""
        nonlocal client_info_seen
        if client_info_seen:
            return
        try:
            params = server.request_context.session.client_params
        except LookupError:
            return
        if params is not None and params.clientInfo is not None:
            client.set_client_info(params.clientInfo.name, params.clientInfo.version)
            client_info_seen = True

    async def _notify_list_changed() -> None:
        try:
            session = server.request_context.session
        except LookupError:
            logger.debug("No request context, skipping list_changed notifications")
            return
        try:
            await session.send_tool_list_changed()
            await session.send_resource_list_changed()
            await session.send_prompt_list_changed()
        except Exception as e:
            logger.warning(f"Failed to send list_changed notifications: {e}")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        tools = dispatcher.list_tools()
        logger.debug(f"list_tools called, returning {len(tools)} tools")
        return tools

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> CallToolResult:
        logger.info(f"Tool call: {name}")
        _note_client_info()
        revision = dispatcher.revision
        result = await dispatcher.call_tool(name, arguments)
        if dispatcher.revision != revision:
            await _notify_list_changed()
        if not result.isError:
            logger.info(f"Tool {name} completed successfully")
        return result

    @server.list_resource_templates()
    async def list_resource_templates() -> list[ResourceTemplate]:
        return dispatcher.list_resource_templates()

    @server.read_resource()
    async def read_resource(uri: AnyUrl):
        logger.info(f"Resource read: {uri}")
        return await dispatcher.read_resource(str(uri))

    @server.list_prompts()
    async def list_prompts() -> list[Prompt]:
        return dispatcher.list_prompts()

    @server.get_prompt()
    async def get_prompt(name: str, arguments: Optional[dict[str, str]]) -> GetPromptResult:
        logger.info(f"Prompt requested: {name}")
        return await dispatcher.get_prompt(name, arguments)

    logger.info("Server handlers registered")
    return server


def initialization_options(server: Server, config: ServerConfig) -> InitializationOptions:
    # Lists only change at run time when the agent can enable toolsets
    changes = config.dynamic_toolsets
    return server.create_initialization_options(
        notification_options=NotificationOptions(
            tools_changed=changes,
            resources_changed=changes,
            prompts_changed=changes,
        )
    )


# =============================================================================
# Main Entry Point (stdio transport)
# =============================================================================

async def run(config: ServerConfig):
    """Run the MCP server via stdio transport."""
    logger.info("=" * 60)
    logger.info(
        f"Starting GitHub MCP Server {config.version} (stdio) host={config.host or 'github.com'} "
        f"dynamic_toolsets={config.dynamic_toolsets} read_only={config.read_only}"
    )
    logger.info("=" * 60)

    try:
        server = create_server(config)
    except Exception as e:
        logger.critical(f"Failed to create server: {e}")
        logger.critical(f"Traceback:\n{traceback.format_exc()}")
        raise

    try:
        logger.info("Opening stdio transport...")
        if config.enable_command_logging:
            stdin = anyio.wrap_file(TextIOWrapper(sys.stdin.buffer, encoding="utf-8"))
            stdout = anyio.wrap_file(TextIOWrapper(sys.stdout.buffer, encoding="utf-8"))
            logged = IOLogger(stdin, stdout, logger)
            transport = stdio_server(logged, logged)
        else:
            transport = stdio_server()

        async with transport as (read_stream, write_stream):
            logger.info("GitHub MCP Server running on stdio")
            await server.run(read_stream, write_stream, initialization_options(server, config))
    except KeyboardInterrupt:
        logger.info("Server stopped by user (Ctrl+C)")
    except Exception as e:
        logger.critical(f"Server runtime error: {e}")
        logger.critical(f"Traceback:\n{traceback.format_exc()}")
        raise
    finally:
        logger.info("Server shutdown complete")


def main(argv: Optional[list[str]] = None):
    """Main entry point. Errors are logged to stderr (or the log file) before exiting."""
    import asyncio

    try:
        config = load_config(argv)
    except ConfigError as e:
        logger.critical(f"Configuration error: {e}")
        sys.exit(1)

    configure_logging(config.log_file_path)

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.critical(f"FATAL ERROR: {type(e).__name__}: {e}")
        logger.critical(f"Full traceback:\n{traceback.format_exc()}")
        sys.exit(1)


if __name__ == "__main__":
    main()
