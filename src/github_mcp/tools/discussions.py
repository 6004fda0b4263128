"""Discussion tools, backed by the GraphQL API."""

from typing import Any

from mcp.types import Tool

from ..client import GitHubClient
from ..toolsets import ServerTool, Toolset
from .helpers import (
    marshalled_text_result,
    optional_int_param_with_default,
    optional_param,
    read_annotations,
    required_int,
    required_param,
)

OWNER_REPO = {
    "owner": {"type": "string", "description": "Repository owner"},
    "repo": {"type": "string", "description": "Repository name"},
}

CURSOR_PAGINATION = {
    "perPage": {"type": "number", "description": "Results per page (min 1, max 100)", "minimum": 1, "maximum": 100},
    "after": {"type": "string", "description": "Cursor for pagination. Use the endCursor from the previous page's pageInfo."},
}

LIST_DISCUSSIONS_QUERY = """
query($owner: String!, $repo: String!, $first: Int!, $after: String, $categoryId: ID) {
  repository(owner: $owner, name: $repo) {
    discussions(first: $first, after: $after, categoryId: $categoryId) {
      nodes {
        number
        title
        createdAt
        updatedAt
        url
        category { name }
        author { login }
      }
      pageInfo { hasNextPage endCursor }
      totalCount
    }
  }
}
"""

GET_DISCUSSION_QUERY = """
query($owner: String!, $repo: String!, $discussionNumber: Int!) {
  repository(owner: $owner, name: $repo) {
    discussion(number: $discussionNumber) {
      number
      title
      body
      createdAt
      url
      category { name }
      author { login }
    }
  }
}
"""

DISCUSSION_COMMENTS_QUERY = """
query($owner: String!, $repo: String!, $discussionNumber: Int!, $first: Int!, $after: String) {
  repository(owner: $owner, name: $repo) {
    discussion(number: $discussionNumber) {
      comments(first: $first, after: $after) {
        nodes { body author { login } createdAt }
        pageInfo { hasNextPage endCursor }
        totalCount
      }
    }
  }
}
"""

DISCUSSION_CATEGORIES_QUERY = """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    discussionCategories(first: 100) {
      nodes { id name }
    }
  }
}
"""


def _repository(data: dict) -> dict:
    return (data or {}).get("repository") or {}


def list_discussions(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_discussions",
        description="List discussions for a repository",
        inputSchema={
            "type": "object",
            "properties": {
                **OWNER_REPO,
                "category": {"type": "string", "description": "Optional filter by discussion category ID. If provided, only discussions with this category are listed."},
                **CURSOR_PAGINATION,
            },
            "required": ["owner", "repo"],
        },
        annotations=read_annotations("List discussions"),
    )

    async def handler(arguments: dict[str, Any]):
        variables = {
            "owner": required_param(arguments, "owner"),
            "repo": required_param(arguments, "repo"),
            "first": optional_int_param_with_default(arguments, "perPage", 30),
            "after": optional_param(arguments, "after"),
            "categoryId": optional_param(arguments, "category"),
        }
        data = await client.graphql(LIST_DISCUSSIONS_QUERY, variables)
        discussions = _repository(data).get("discussions") or {}
        return marshalled_text_result({
            "discussions": discussions.get("nodes", []),
            "pageInfo": discussions.get("pageInfo", {}),
            "totalCount": discussions.get("totalCount", 0),
        })

    return ServerTool(tool, handler)


def get_discussion(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_discussion",
        description="Get a specific discussion by ID",
        inputSchema={
            "type": "object",
            "properties": {**OWNER_REPO, "discussionNumber": {"type": "number", "description": "Discussion Number"}},
            "required": ["owner", "repo", "discussionNumber"],
        },
        annotations=read_annotations("Get discussion"),
    )

    async def handler(arguments: dict[str, Any]):
        variables = {
            "owner": required_param(arguments, "owner"),
            "repo": required_param(arguments, "repo"),
            "discussionNumber": required_int(arguments, "discussionNumber"),
        }
        data = await client.graphql(GET_DISCUSSION_QUERY, variables)
        return marshalled_text_result(_repository(data).get("discussion"))

    return ServerTool(tool, handler)


def get_discussion_comments(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_discussion_comments",
        description="Get comments from a discussion",
        inputSchema={
            "type": "object",
            "properties": {
                **OWNER_REPO,
                "discussionNumber": {"type": "number", "description": "Discussion Number"},
                **CURSOR_PAGINATION,
            },
            "required": ["owner", "repo", "discussionNumber"],
        },
        annotations=read_annotations("Get discussion comments"),
    )

    async def handler(arguments: dict[str, Any]):
        variables = {
            "owner": required_param(arguments, "owner"),
            "repo": required_param(arguments, "repo"),
            "discussionNumber": required_int(arguments, "discussionNumber"),
            "first": optional_int_param_with_default(arguments, "perPage", 30),
            "after": optional_param(arguments, "after"),
        }
        data = await client.graphql(DISCUSSION_COMMENTS_QUERY, variables)
        comments = (_repository(data).get("discussion") or {}).get("comments") or {}
        return marshalled_text_result({
            "comments": comments.get("nodes", []),
            "pageInfo": comments.get("pageInfo", {}),
            "totalCount": comments.get("totalCount", 0),
        })

    return ServerTool(tool, handler)


def list_discussion_categories(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_discussion_categories",
        description="List discussion categories with their id and name, for a repository",
        inputSchema={"type": "object", "properties": OWNER_REPO, "required": ["owner", "repo"]},
        annotations=read_annotations("List discussion categories"),
    )

    async def handler(arguments: dict[str, Any]):
        variables = {"owner": required_param(arguments, "owner"), "repo": required_param(arguments, "repo")}
        data = await client.graphql(DISCUSSION_CATEGORIES_QUERY, variables)
        categories = (_repository(data).get("discussionCategories") or {}).get("nodes", [])
        return marshalled_text_result(categories)

    return ServerTool(tool, handler)


def toolset(client: GitHubClient) -> Toolset:
    return Toolset("discussions", "GitHub Discussions related tools").add_read_tools(
        list_discussions(client),
        get_discussion(client),
        get_discussion_comments(client),
        list_discussion_categories(client),
    )
