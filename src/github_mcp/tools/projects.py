"""Projects (v2) tools for organization and user owned projects."""

from typing import Any

from mcp.types import Tool

from ..client import GitHubClient
from ..errors import ParamError
from ..toolsets import ServerTool, Toolset
from .helpers import (
    marshalled_text_result,
    optional_pagination_params,
    optional_param,
    read_annotations,
    required_int,
    required_param,
    with_pagination,
)

OWNER = {
    "owner_type": {"type": "string", "description": "Owner type", "enum": ["user", "org"]},
    "owner": {
        "type": "string",
        "description": "If owner_type == user it is the handle for the GitHub user account. If owner_type == org it is the name of the organization.",
    },
}


def _owner_path(arguments: dict[str, Any]) -> str:
    owner = required_param(arguments, "owner")
    owner_type = required_param(arguments, "owner_type")
    if owner_type == "org":
        return f"orgs/{owner}/projectsV2"
    if owner_type == "user":
        return f"users/{owner}/projectsV2"
    raise ParamError("owner_type must be either 'user' or 'org'")


def list_projects(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_projects",
        description="List Projects for a user or org",
        inputSchema={
            "type": "object",
            "properties": with_pagination({
                **OWNER,
                "query": {"type": "string", "description": "Filter projects by a search query (matches title and description)"},
            }),
            "required": ["owner_type", "owner"],
        },
        annotations=read_annotations("List projects"),
    )

    async def handler(arguments: dict[str, Any]):
        params = {"q": optional_param(arguments, "query"), **optional_pagination_params(arguments).as_query()}
        projects = await client.rest("GET", _owner_path(arguments), params=params)
        return marshalled_text_result(projects)

    return ServerTool(tool, handler)


def get_project(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_project",
        description="Get Project for a user or org",
        inputSchema={
            "type": "object",
            "properties": {**OWNER, "project_number": {"type": "number", "description": "The project's number"}},
            "required": ["owner_type", "owner", "project_number"],
        },
        annotations=read_annotations("Get project"),
    )

    async def handler(arguments: dict[str, Any]):
        number = required_int(arguments, "project_number")
        project = await client.rest("GET", f"{_owner_path(arguments)}/{number}")
        return marshalled_text_result(project)

    return ServerTool(tool, handler)


def list_project_fields(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_project_fields",
        description="List Project fields for a user or org",
        inputSchema={
            "type": "object",
            "properties": with_pagination({**OWNER, "project_number": {"type": "number", "description": "The project's number"}}),
            "required": ["owner_type", "owner", "project_number"],
        },
        annotations=read_annotations("List project fields"),
    )

    async def handler(arguments: dict[str, Any]):
        number = required_int(arguments, "project_number")
        params = optional_pagination_params(arguments).as_query()
        fields = await client.rest("GET", f"{_owner_path(arguments)}/{number}/fields", params=params)
        return marshalled_text_result(fields)

    return ServerTool(tool, handler)


def toolset(client: GitHubClient) -> Toolset:
    return Toolset("projects", "GitHub Projects related tools").add_read_tools(
        list_projects(client),
        get_project(client),
        list_project_fields(client),
    )
