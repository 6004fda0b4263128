"""User and organization search tools, backing the users and orgs toolsets."""

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
)


def _account_search(client: GitHubClient, name: str, account_type: str, description: str, title: str) -> ServerTool:
    tool = Tool(
        name=name,
        description=description,
        inputSchema={
            "type": "object",
            "properties": with_pagination({
                "query": {"type": "string", "description": f"Search query using GitHub {account_type} search syntax"},
                "sort": {"type": "string", "description": "Sort field by category", "enum": ["followers", "repositories", "joined"]},
                "order": {"type": "string", "description": "Sort order", "enum": ["asc", "desc"]},
            }),
            "required": ["query"],
        },
        annotations=read_annotations(title),
    )

    async def handler(arguments: dict[str, Any]):
        query = required_param(arguments, "query")
        if f"type:{account_type}" not in query:
            query = f"type:{account_type} {query}"
        params = {
            "q": query,
            "sort": optional_param(arguments, "sort"),
            "order": optional_param(arguments, "order"),
            **optional_pagination_params(arguments).as_query(),
        }
        result = await client.rest("GET", "search/users", params=params)
        minimal = {
            "total_count": result.get("total_count"),
            "incomplete_results": result.get("incomplete_results"),
            "items": [
                {
                    "login": item.get("login"),
                    "id": item.get("id"),
                    "profile_url": item.get("html_url"),
                    "avatar_url": item.get("avatar_url"),
                }
                for item in result.get("items", [])
            ],
        }
        return marshalled_text_result(minimal)

    return ServerTool(tool, handler)


def search_users(client: GitHubClient) -> ServerTool:
    return _account_search(
        client, "search_users", "user",
        "Find GitHub users by username, real name, or other profile information. Useful for "
        "locating developers, contributors, or team members.",
        "Search users",
    )


def search_orgs(client: GitHubClient) -> ServerTool:
    return _account_search(
        client, "search_orgs", "org",
        "Find GitHub organizations by name, location, or other organization metadata. Ideal for "
        "discovering companies, open source foundations, or teams.",
        "Search organizations",
    )


def users_toolset(client: GitHubClient) -> Toolset:
    return Toolset("users", "GitHub User related tools").add_read_tools(search_users(client))


def orgs_toolset(client: GitHubClient) -> Toolset:
    return Toolset("orgs", "GitHub Organization related tools").add_read_tools(search_orgs(client))
