"""Gist tools."""

from typing import Any

from mcp.types import Tool

from ..client import GitHubClient
from ..toolsets import ServerTool, Toolset
from .helpers import (
    marshalled_text_result,
    optional_pagination_params,
    optional_param,
    read_annotations,
    required_param,
    with_pagination,
    write_annotations,
)


def list_gists(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_gists",
        description="List gists for a user",
        inputSchema={
            "type": "object",
            "properties": with_pagination({
                "username": {"type": "string", "description": "GitHub username (omit for authenticated user's gists)"},
                "since": {"type": "string", "description": "Only gists updated after this time (ISO 8601 timestamp)"},
            }),
            "required": [],
        },
        annotations=read_annotations("List Gists"),
    )

    async def handler(arguments: dict[str, Any]):
        username = optional_param(arguments, "username")
        path = f"users/{username}/gists" if username else "gists"
        params = {"since": optional_param(arguments, "since"), **optional_pagination_params(arguments).as_query()}
        gists = await client.rest("GET", path, params=params)
        return marshalled_text_result(gists)

    return ServerTool(tool, handler)


def create_gist(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="create_gist",
        description="Create a new gist",
        inputSchema={
            "type": "object",
            "properties": {
                "description": {"type": "string", "description": "Description of the gist"},
                "filename": {"type": "string", "description": "Filename for simple single-file gist creation"},
                "content": {"type": "string", "description": "Content for simple single-file gist creation"},
                "public": {"type": "boolean", "description": "Whether the gist is public", "default": False},
            },
            "required": ["filename", "content"],
        },
        annotations=write_annotations("Create Gist"),
    )

    async def handler(arguments: dict[str, Any]):
        filename = required_param(arguments, "filename")
        body = {
            "files": {filename: {"content": required_param(arguments, "content")}},
            "public": optional_param(arguments, "public", bool, default=False),
        }
        description = optional_param(arguments, "description")
        if description:
            body["description"] = description
        gist = await client.rest("POST", "gists", json=body)
        return marshalled_text_result(gist)

    return ServerTool(tool, handler)


def update_gist(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="update_gist",
        description="Update an existing gist",
        inputSchema={
            "type": "object",
            "properties": {
                "gist_id": {"type": "string", "description": "ID of the gist to update"},
                "description": {"type": "string", "description": "Updated description of the gist"},
                "filename": {"type": "string", "description": "Filename to update or create"},
                "content": {"type": "string", "description": "Content for the file"},
            },
            "required": ["gist_id", "filename", "content"],
        },
        annotations=write_annotations("Update Gist"),
    )

    async def handler(arguments: dict[str, Any]):
        gist_id = required_param(arguments, "gist_id")
        filename = required_param(arguments, "filename")
        body = {"files": {filename: {"content": required_param(arguments, "content")}}}
        description = optional_param(arguments, "description")
        if description:
            body["description"] = description
        gist = await client.rest("PATCH", f"gists/{gist_id}", json=body)
        return marshalled_text_result(gist)

    return ServerTool(tool, handler)


def toolset(client: GitHubClient) -> Toolset:
    return (
        Toolset("gists", "GitHub Gist related tools")
        .add_read_tools(list_gists(client))
        .add_write_tools(create_gist(client), update_gist(client))
    )
