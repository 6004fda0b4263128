"""Dynamic toolset discovery.

Lets an agent list the toolsets the server knows about, preview their tools,
and switch more of them on at run time without restarting the server.
"""

import logging
from typing import Any

from mcp.types import CallToolResult, Tool

from ..dispatch import Dispatcher
from ..errors import ToolsetDoesNotExistError
from ..toolsets import ServerTool, Toolset, ToolsetGroup
from .helpers import marshalled_text_result, read_annotations, required_param, text_result, tool_error

logger = logging.getLogger("github-mcp-server")

TOOLSET_PARAM = {
    "toolset": {
        "type": "string",
        "description": "The name of the toolset",
    },
}


class DynamicToolset:
    """Discovery operations bound to one toolset group and one live dispatcher."""

    def __init__(self, group: ToolsetGroup, dispatcher: Dispatcher):
        self.group = group
        self.dispatcher = dispatcher

    async def list_available_toolsets(self, arguments: dict[str, Any]) -> CallToolResult:
        with self.dispatcher.lock:
            payload = [
                {
                    "name": name,
                    "description": toolset.description,
                    "can_enable": "true",
                    "currently_enabled": "true" if toolset.enabled else "false",
                }
                for name, toolset in self.group.toolsets.items()
            ]
        return marshalled_text_result(payload)

    async def get_toolset_tools(self, arguments: dict[str, Any]) -> CallToolResult:
        name = required_param(arguments, "toolset")
        try:
            toolset = self.group.get_toolset(name)
        except ToolsetDoesNotExistError as e:
            return tool_error(str(e))

        payload = [
            {
                "name": server_tool.name,
                "description": server_tool.tool.description,
                "can_enable": "true",
                "toolset": name,
            }
            for server_tool in toolset.get_available_tools()
        ]
        return marshalled_text_result(payload)

    async def enable_toolset(self, arguments: dict[str, Any]) -> CallToolResult:
        name = required_param(arguments, "toolset")

        # Enabling and registering happen under one lock so no caller sees a
        # toolset that is enabled but not yet callable. The block must not
        # await: the lock does not stop other coroutines on this loop.
        with self.dispatcher.lock:
            try:
                toolset = self.group.get_toolset(name)
            except ToolsetDoesNotExistError as e:
                return tool_error(str(e))
            if toolset.enabled:
                return text_result(f"Toolset {name} is already enabled")

            self.group.enable_toolset(name)
            toolset.register(self.dispatcher)

        logger.info(f"Toolset {name} enabled dynamically ({len(toolset.get_active_tools())} tools)")
        return text_result(f"Toolset {name} enabled")

    def server_tools(self) -> list[ServerTool]:
        return [
            ServerTool(
                Tool(
                    name="list_available_toolsets",
                    description=(
                        "List all available toolsets this GitHub MCP server can offer, providing the "
                        "enabled status of each. Use this when a task could be achieved with a GitHub "
                        "tool and the currently available tools aren't enough. Call get_toolset_tools "
                        "with these toolset names to discover specific tools you can call"
                    ),
                    inputSchema={"type": "object", "properties": {}, "required": []},
                    annotations=read_annotations("List available toolsets"),
                ),
                self.list_available_toolsets,
            ),
            ServerTool(
                Tool(
                    name="get_toolset_tools",
                    description=(
                        "Lists all the capabilities that are enabled with the specified toolset, use "
                        "this to get clarity on whether enabling a toolset would help you to complete a task"
                    ),
                    inputSchema={"type": "object", "properties": TOOLSET_PARAM, "required": ["toolset"]},
                    annotations=read_annotations("List all tools in a toolset"),
                ),
                self.get_toolset_tools,
            ),
            ServerTool(
                Tool(
                    name="enable_toolset",
                    description=(
                        "Enable one of the sets of tools the GitHub MCP server provides, use "
                        "get_toolset_tools and list_available_toolsets first to see what this will enable"
                    ),
                    inputSchema={"type": "object", "properties": TOOLSET_PARAM, "required": ["toolset"]},
                    # Only changes which tools this server exposes, never anything on GitHub
                    annotations=read_annotations("Enable a toolset"),
                ),
                self.enable_toolset,
            ),
        ]


def init_dynamic_toolset(group: ToolsetGroup, dispatcher: Dispatcher) -> Toolset:
    """Create the always-enabled "dynamic" toolset that can enable the others."""
    discovery = DynamicToolset(group, dispatcher)
    toolset = Toolset(
        "dynamic",
        "Discover GitHub MCP tools that can help achieve tasks by enabling additional sets of tools, "
        "you can control the enablement of any toolset to access its tools when this toolset is enabled.",
    ).add_read_tools(*discovery.server_tools())
    toolset.enabled = True
    return toolset
