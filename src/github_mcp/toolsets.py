"""Toolset registry for the GitHub MCP Server.

A toolset is a named group of related MCP tools, resource templates and
prompts that can be enabled as a unit. The ToolsetGroup owns every toolset,
applies the global read-only policy, and registers the enabled ones with
the dispatcher that actually serves MCP requests.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Protocol

from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.types import CallToolResult, GetPromptResult, Prompt, ResourceTemplate, Tool

from .errors import MisannotatedToolError, ToolsetDoesNotExistError

logger = logging.getLogger("github-mcp-server")

ToolHandler = Callable[[dict[str, Any]], Awaitable[CallToolResult]]
ResourceTemplateHandler = Callable[[str, dict[str, str]], Awaitable[list[ReadResourceContents]]]
PromptHandler = Callable[[dict[str, str]], Awaitable[GetPromptResult]]


@dataclass(frozen=True)
class ServerTool:
    """An MCP tool paired with the coroutine that serves it."""
    tool: Tool
    handler: ToolHandler

    @property
    def name(self) -> str:
        return self.tool.name

    @property
    def read_only(self) -> bool:
        annotations = self.tool.annotations
        return bool(annotations is not None and annotations.readOnlyHint)


@dataclass(frozen=True)
class ServerResourceTemplate:
    template: ResourceTemplate
    handler: ResourceTemplateHandler


@dataclass(frozen=True)
class ServerPrompt:
    prompt: Prompt
    handler: PromptHandler


class RegistrationTarget(Protocol):
    """Anything toolsets can register their operations with (see dispatch.Dispatcher)."""

    def add_tool(self, tool: Tool, handler: ToolHandler) -> None: ...

    def add_resource_template(self, template: ResourceTemplate, handler: ResourceTemplateHandler) -> None: ...

    def add_prompt(self, prompt: Prompt, handler: PromptHandler) -> None: ...


class Toolset:
    """A collection of MCP functionality that is enabled or disabled as a group.

    Read tools and write tools are kept apart so a read-only toolset can
    hand out its read tools only. Builder methods return the toolset so
    modules can chain them.
    """

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description
        self.enabled = False
        self._read_only = False
        self._read_tools: list[ServerTool] = []
        self._write_tools: list[ServerTool] = []
        # Resources and prompts are not tools, but are namespaced by toolset too
        self._resource_templates: list[ServerResourceTemplate] = []
        self._prompts: list[ServerPrompt] = []

    def __repr__(self) -> str:
        return f"Toolset(name={self.name!r}, enabled={self.enabled}, read_only={self._read_only})"

    @property
    def read_only(self) -> bool:
        return self._read_only

    def set_read_only(self) -> None:
        """Mark the toolset read-only. There is no way back."""
        self._read_only = True

    # -- tools ---------------------------------------------------------------

    def add_read_tools(self, *tools: ServerTool) -> "Toolset":
        for tool in tools:
            if not tool.read_only:
                raise MisannotatedToolError(
                    tool.name, f"tool ({tool.name}) must be annotated as read-only"
                )
        self._read_tools.extend(tools)
        return self

    def add_write_tools(self, *tools: ServerTool) -> "Toolset":
        for tool in tools:
            if tool.read_only:
                raise MisannotatedToolError(
                    tool.name, f"tool ({tool.name}) is incorrectly annotated as read-only"
                )
        # Silently dropped on a read-only toolset so write tools can never leak
        if not self._read_only:
            self._write_tools.extend(tools)
        return self

    def get_available_tools(self) -> list[ServerTool]:
        """All tools this toolset offers under its read-only setting, enabled or not."""
        if self._read_only:
            return list(self._read_tools)
        return self._read_tools + self._write_tools

    def get_active_tools(self) -> list[ServerTool]:
        if not self.enabled:
            return []
        return self.get_available_tools()

    def register_tools(self, target: RegistrationTarget) -> None:
        if not self.enabled:
            return
        for server_tool in self._read_tools:
            target.add_tool(server_tool.tool, server_tool.handler)
        if not self._read_only:
            for server_tool in self._write_tools:
                target.add_tool(server_tool.tool, server_tool.handler)

    # -- resource templates --------------------------------------------------

    def add_resource_templates(self, *templates: ServerResourceTemplate) -> "Toolset":
        self._resource_templates.extend(templates)
        return self

    def get_available_resource_templates(self) -> list[ServerResourceTemplate]:
        return list(self._resource_templates)

    def get_active_resource_templates(self) -> list[ServerResourceTemplate]:
        if not self.enabled:
            return []
        return list(self._resource_templates)

    def register_resource_templates(self, target: RegistrationTarget) -> None:
        if not self.enabled:
            return
        for resource in self._resource_templates:
            target.add_resource_template(resource.template, resource.handler)

    # -- prompts -------------------------------------------------------------

    def add_prompts(self, *prompts: ServerPrompt) -> "Toolset":
        self._prompts.extend(prompts)
        return self

    def get_available_prompts(self) -> list[ServerPrompt]:
        return list(self._prompts)

    def get_active_prompts(self) -> list[ServerPrompt]:
        if not self.enabled:
            return []
        return list(self._prompts)

    def register_prompts(self, target: RegistrationTarget) -> None:
        if not self.enabled:
            return
        for prompt in self._prompts:
            target.add_prompt(prompt.prompt, prompt.handler)

    def register(self, target: RegistrationTarget) -> None:
        """Register tools, resource templates and prompts in one go."""
        self.register_tools(target)
        self.register_resource_templates(target)
        self.register_prompts(target)


class ToolsetGroup:
    """Registry of every toolset, keyed by name.

    Args:
        read_only: When True, every toolset added is forced read-only.
    """

    def __init__(self, read_only: bool = False):
        self.toolsets: dict[str, Toolset] = {}
        self._everything_on = False
        self._read_only = read_only

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def everything_on(self) -> bool:
        return self._everything_on

    def add_toolset(self, toolset: Toolset) -> None:
        if self._read_only:
            toolset.set_read_only()
        if self._everything_on:
            toolset.enabled = True
        if toolset.name in self.toolsets:
            logger.warning(f"Toolset {toolset.name} registered twice, replacing the earlier one")
        self.toolsets[toolset.name] = toolset

    def is_enabled(self, name: str) -> bool:
        if self._everything_on:
            return True
        toolset = self.toolsets.get(name)
        if toolset is None:
            return False
        return toolset.enabled

    def enable_toolsets(self, names: list[str]) -> None:
        """Enable the named toolsets. The name "all" enables every toolset.

        Raises:
            ToolsetDoesNotExistError: If any other name is not registered.
        """
        for name in names:
            if name == "all":
                self._everything_on = True
                continue
            self.enable_toolset(name)

        # Sync every flag so per-toolset checks agree with everything_on
        if self._everything_on:
            for toolset in self.toolsets.values():
                toolset.enabled = True

    def enable_toolset(self, name: str) -> None:
        toolset = self.get_toolset(name)
        toolset.enabled = True

    def get_toolset(self, name: str) -> Toolset:
        toolset = self.toolsets.get(name)
        if toolset is None:
            raise ToolsetDoesNotExistError(name)
        return toolset

    def enabled_toolset_names(self) -> list[str]:
        return [name for name in self.toolsets if self.is_enabled(name)]

    def register_all(self, target: RegistrationTarget) -> None:
        for toolset in self.toolsets.values():
            toolset.register(target)
