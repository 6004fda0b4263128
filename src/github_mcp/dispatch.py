"""Live dispatch surface for MCP requests.

Toolsets register their operations here; the MCP server handlers list and
call whatever is currently registered. Every read and write takes the same
re-entrant lock, so a caller holding it can enable a toolset and register
its operations as one step.
"""

import logging
import re
import threading
import traceback
from dataclasses import dataclass
from typing import Any, Optional

from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.types import CallToolResult, GetPromptResult, Prompt, ResourceTemplate, TextContent, Tool

from .errors import ToolError
from .toolsets import PromptHandler, ResourceTemplateHandler, ToolHandler

logger = logging.getLogger("github-mcp-server")

_TEMPLATE_EXPR = re.compile(r"\{(/?)(\w+)(\*?)\}")


def compile_uri_template(uri_template: str) -> re.Pattern:
    """Compile the subset of RFC 6570 used by resource templates into a regex.

    ``{name}`` matches one path segment, ``{/name*}`` an optional trailing path.
    """
    pattern = []
    pos = 0
    for match in _TEMPLATE_EXPR.finditer(uri_template):
        pattern.append(re.escape(uri_template[pos:match.start()]))
        slash, name, explode = match.groups()
        if slash and explode:
            pattern.append(f"(?P<{name}>(?:/.*)?)")
        elif slash:
            pattern.append(f"(?:/(?P<{name}>[^/]+))?")
        else:
            pattern.append(f"(?P<{name}>[^/]+)")
        pos = match.end()
    pattern.append(re.escape(uri_template[pos:]))
    return re.compile("^" + "".join(pattern) + "$")


def error_result(message: str) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=message)], isError=True)


@dataclass
class _RegisteredTemplate:
    template: ResourceTemplate
    handler: ResourceTemplateHandler
    pattern: re.Pattern


class Dispatcher:
    """Registration target and request router for tools, resources and prompts.

    Registering a name that already exists replaces the earlier entry.
    """

    def __init__(self):
        # Guards the registry against other threads only. Coroutines on the
        # event loop are excluded by keeping every locked section free of awaits.
        self.lock = threading.RLock()
        self._tools: dict[str, tuple[Tool, ToolHandler]] = {}
        self._templates: dict[str, _RegisteredTemplate] = {}
        self._prompts: dict[str, tuple[Prompt, PromptHandler]] = {}
        # Bumped on every registration so callers can detect list changes
        self.revision = 0

    # -- registration --------------------------------------------------------

    def add_tool(self, tool: Tool, handler: ToolHandler) -> None:
        with self.lock:
            self._tools[tool.name] = (tool, handler)
            self.revision += 1
        logger.debug(f"Registered tool {tool.name}")

    def add_resource_template(self, template: ResourceTemplate, handler: ResourceTemplateHandler) -> None:
        with self.lock:
            self._templates[template.uriTemplate] = _RegisteredTemplate(
                template, handler, compile_uri_template(template.uriTemplate)
            )
            self.revision += 1
        logger.debug(f"Registered resource template {template.uriTemplate}")

    def add_prompt(self, prompt: Prompt, handler: PromptHandler) -> None:
        with self.lock:
            self._prompts[prompt.name] = (prompt, handler)
            self.revision += 1
        logger.debug(f"Registered prompt {prompt.name}")

    # -- lookups -------------------------------------------------------------

    def has_tool(self, name: str) -> bool:
        with self.lock:
            return name in self._tools

    def list_tools(self) -> list[Tool]:
        with self.lock:
            return [tool for tool, _ in self._tools.values()]

    def list_resource_templates(self) -> list[ResourceTemplate]:
        with self.lock:
            return [entry.template for entry in self._templates.values()]

    def list_prompts(self) -> list[Prompt]:
        with self.lock:
            return [prompt for prompt, _ in self._prompts.values()]

    # -- dispatch ------------------------------------------------------------

    async def call_tool(self, name: str, arguments: Optional[dict[str, Any]]) -> CallToolResult:
        """Run the handler registered for ``name``.

        Handler failures come back as error results instead of propagating,
        so one broken tool never takes the server down.
        """
        with self.lock:
            entry = self._tools.get(name)
        if entry is None:
            logger.warning(f"Unknown tool requested: {name}")
            return error_result(f"Unknown tool: {name}")

        _, handler = entry
        try:
            return await handler(arguments or {})
        except ToolError as e:
            logger.info(f"Tool {name} returned an error: {e}")
            return error_result(str(e))
        except Exception as e:
            logger.error(f"Tool '{name}' failed with error: {e}")
            logger.error(f"Arguments: {arguments}")
            logger.error(f"Traceback:\n{traceback.format_exc()}")
            return error_result(
                f"Error in {name}: {type(e).__name__}: {e}\n\n"
                f"The server is still running. You can try again or check the logs for details."
            )

    async def read_resource(self, uri: str) -> list[ReadResourceContents]:
        with self.lock:
            entries = list(self._templates.values())
        for entry in entries:
            match = entry.pattern.match(uri)
            if match:
                params = {k: v for k, v in match.groupdict().items() if v is not None}
                return await entry.handler(uri, params)
        raise ValueError(f"No resource template matches {uri}")

    async def get_prompt(self, name: str, arguments: Optional[dict[str, str]]) -> GetPromptResult:
        with self.lock:
            entry = self._prompts.get(name)
        if entry is None:
            raise ValueError(f"Unknown prompt: {name}")
        _, handler = entry
        return await handler(arguments or {})
