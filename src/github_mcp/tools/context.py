"""Context tools: who the authenticated user is and which teams they belong to."""

from typing import Any

from mcp.types import Tool

from ..client import GitHubClient
from ..toolsets import ServerTool, Toolset
from .helpers import marshalled_text_result, optional_param, read_annotations

TEAMS_QUERY = """
query($login: String!) {
  viewer {
    organizations(first: 100) {
      nodes {
        login
        teams(first: 100, userLogins: [$login]) {
          nodes { name slug description }
        }
      }
    }
  }
}
"""


def get_me(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_me",
        description=(
            "Get details of the authenticated GitHub user. Use this when a request is about "
            "the user's own profile for GitHub. Or when information is missing to build other tool calls."
        ),
        inputSchema={"type": "object", "properties": {}, "required": []},
        annotations=read_annotations("Get my user profile"),
    )

    async def handler(arguments: dict[str, Any]):
        user = await client.rest("GET", "user")
        minimal = {
            "login": user.get("login"),
            "id": user.get("id"),
            "profile_url": user.get("html_url"),
            "avatar_url": user.get("avatar_url"),
            "details": {
                "name": user.get("name"),
                "company": user.get("company"),
                "blog": user.get("blog"),
                "location": user.get("location"),
                "email": user.get("email"),
                "bio": user.get("bio"),
                "public_repos": user.get("public_repos"),
                "followers": user.get("followers"),
                "following": user.get("following"),
                "created_at": user.get("created_at"),
            },
        }
        return marshalled_text_result(minimal)

    return ServerTool(tool, handler)


def get_teams(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_teams",
        description=(
            "Get details of the teams the user is a member of. Limited to organizations "
            "accessible with current credentials"
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "user": {
                    "type": "string",
                    "description": "Username to get teams for. If not provided, uses the authenticated user.",
                },
            },
            "required": [],
        },
        annotations=read_annotations("Get teams"),
    )

    async def handler(arguments: dict[str, Any]):
        login = optional_param(arguments, "user")
        if not login:
            user = await client.rest("GET", "user")
            login = user["login"]

        data = await client.graphql(TEAMS_QUERY, {"login": login})
        organizations = data.get("viewer", {}).get("organizations", {}).get("nodes", [])
        teams = [
            {"org": org["login"], "teams": org["teams"]["nodes"]}
            for org in organizations
            if org.get("teams", {}).get("nodes")
        ]
        return marshalled_text_result(teams)

    return ServerTool(tool, handler)


def toolset(client: GitHubClient) -> Toolset:
    return Toolset(
        "context",
        "Tools that provide context about the current user and GitHub context you are operating in",
    ).add_read_tools(
        get_me(client),
        get_teams(client),
    )
