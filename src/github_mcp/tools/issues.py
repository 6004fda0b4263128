"""Issue tools: get, list, search, comment on, create and update issues.

Also provides the issue-to-fix workflow prompt.
"""

from typing import Any

from mcp.types import GetPromptResult, Prompt, PromptArgument, PromptMessage, TextContent, Tool

from ..client import GitHubClient
from ..errors import ParamError
from ..toolsets import ServerPrompt, ServerTool, Toolset
from .helpers import (
    marshalled_text_result,
    optional_pagination_params,
    optional_param,
    optional_string_array_param,
    read_annotations,
    required_int,
    required_param,
    with_pagination,
    write_annotations,
)

OWNER_REPO = {
    "owner": {"type": "string", "description": "Repository owner"},
    "repo": {"type": "string", "description": "Repository name"},
}

ISSUE_STATES = ["open", "closed"]


def get_issue(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_issue",
        description="Get details of a specific issue in a GitHub repository.",
        inputSchema={
            "type": "object",
            "properties": {
                **OWNER_REPO,
                "issue_number": {"type": "number", "description": "The number of the issue"},
            },
            "required": ["owner", "repo", "issue_number"],
        },
        annotations=read_annotations("Get issue details"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        number = required_int(arguments, "issue_number")
        issue = await client.rest("GET", f"repos/{owner}/{repo}/issues/{number}")
        return marshalled_text_result(issue)

    return ServerTool(tool, handler)


def list_issues(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_issues",
        description="List issues in a GitHub repository. For pagination, use the 'page' and 'perPage' parameters.",
        inputSchema={
            "type": "object",
            "properties": with_pagination({
                **OWNER_REPO,
                "state": {"type": "string", "description": "Filter by state", "enum": ["open", "closed", "all"]},
                "labels": {"type": "array", "items": {"type": "string"}, "description": "Filter by labels"},
                "sort": {"type": "string", "description": "Sort order", "enum": ["created", "updated", "comments"]},
                "direction": {"type": "string", "description": "Sort direction", "enum": ["asc", "desc"]},
                "since": {"type": "string", "description": "Filter by date (ISO 8601 timestamp)"},
            }),
            "required": ["owner", "repo"],
        },
        annotations=read_annotations("List issues"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        labels = optional_string_array_param(arguments, "labels")
        params = {
            "state": optional_param(arguments, "state"),
            "labels": ",".join(labels) if labels else None,
            "sort": optional_param(arguments, "sort"),
            "direction": optional_param(arguments, "direction"),
            "since": optional_param(arguments, "since"),
            **optional_pagination_params(arguments).as_query(),
        }
        issues = await client.rest("GET", f"repos/{owner}/{repo}/issues", params=params)
        return marshalled_text_result(issues)

    return ServerTool(tool, handler)


def search_issues(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="search_issues",
        description=(
            "Search for issues in GitHub repositories using issues search syntax already "
            "scoped to is:issue"
        ),
        inputSchema={
            "type": "object",
            "properties": with_pagination({
                "query": {"type": "string", "description": "Search query using GitHub issues search syntax"},
                "owner": {"type": "string", "description": "Optional repository owner. If provided with repo, only issues for this repository are listed."},
                "repo": {"type": "string", "description": "Optional repository name. If provided with owner, only issues for this repository are listed."},
                "sort": {"type": "string", "description": "Sort field by number of matches of categories, defaults to best match"},
                "order": {"type": "string", "description": "Sort order", "enum": ["asc", "desc"]},
            }),
            "required": ["query"],
        },
        annotations=read_annotations("Search issues"),
    )

    async def handler(arguments: dict[str, Any]):
        query = required_param(arguments, "query")
        if "is:issue" not in query:
            query = f"is:issue {query}"
        owner = optional_param(arguments, "owner")
        repo = optional_param(arguments, "repo")
        if owner and repo:
            query = f"repo:{owner}/{repo} {query}"
        params = {
            "q": query,
            "sort": optional_param(arguments, "sort"),
            "order": optional_param(arguments, "order"),
            **optional_pagination_params(arguments).as_query(),
        }
        result = await client.rest("GET", "search/issues", params=params)
        return marshalled_text_result(result)

    return ServerTool(tool, handler)


def get_issue_comments(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_issue_comments",
        description="Get comments for a specific issue in a GitHub repository.",
        inputSchema={
            "type": "object",
            "properties": with_pagination({
                **OWNER_REPO,
                "issue_number": {"type": "number", "description": "Issue number"},
            }),
            "required": ["owner", "repo", "issue_number"],
        },
        annotations=read_annotations("Get issue comments"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        number = required_int(arguments, "issue_number")
        comments = await client.rest(
            "GET",
            f"repos/{owner}/{repo}/issues/{number}/comments",
            params=optional_pagination_params(arguments).as_query(),
        )
        return marshalled_text_result(comments)

    return ServerTool(tool, handler)


def create_issue(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="create_issue",
        description="Create a new issue in a GitHub repository.",
        inputSchema={
            "type": "object",
            "properties": {
                **OWNER_REPO,
                "title": {"type": "string", "description": "Issue title"},
                "body": {"type": "string", "description": "Issue body content"},
                "assignees": {"type": "array", "items": {"type": "string"}, "description": "Usernames to assign to this issue"},
                "labels": {"type": "array", "items": {"type": "string"}, "description": "Labels to apply to this issue"},
                "milestone": {"type": "number", "description": "Milestone number"},
            },
            "required": ["owner", "repo", "title"],
        },
        annotations=write_annotations("Open new issue"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        body = {
            "title": required_param(arguments, "title"),
            "body": optional_param(arguments, "body"),
            "assignees": optional_string_array_param(arguments, "assignees"),
            "labels": optional_string_array_param(arguments, "labels"),
        }
        milestone = optional_param(arguments, "milestone", (int, float))
        if milestone:
            body["milestone"] = int(milestone)

        issue = await client.rest("POST", f"repos/{owner}/{repo}/issues", json=body)
        return marshalled_text_result({"id": str(issue.get("id")), "url": issue.get("html_url")})

    return ServerTool(tool, handler)


def add_issue_comment(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="add_issue_comment",
        description=(
            "Add a comment to a specific issue in a GitHub repository. Use this tool to add comments "
            "to pull requests as well (in this case pass pull request number as issue_number), but "
            "only if user is not asking specifically to add review comments."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                **OWNER_REPO,
                "issue_number": {"type": "number", "description": "Issue number to comment on"},
                "body": {"type": "string", "description": "Comment content"},
            },
            "required": ["owner", "repo", "issue_number", "body"],
        },
        annotations=write_annotations("Add comment to issue"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        number = required_int(arguments, "issue_number")
        comment = await client.rest(
            "POST",
            f"repos/{owner}/{repo}/issues/{number}/comments",
            json={"body": required_param(arguments, "body")},
        )
        return marshalled_text_result(comment)

    return ServerTool(tool, handler)


def update_issue(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="update_issue",
        description="Update an existing issue in a GitHub repository.",
        inputSchema={
            "type": "object",
            "properties": {
                **OWNER_REPO,
                "issue_number": {"type": "number", "description": "Issue number to update"},
                "title": {"type": "string", "description": "New title"},
                "body": {"type": "string", "description": "New description"},
                "state": {"type": "string", "description": "New state", "enum": ISSUE_STATES},
                "labels": {"type": "array", "items": {"type": "string"}, "description": "New labels"},
                "assignees": {"type": "array", "items": {"type": "string"}, "description": "New assignees"},
            },
            "required": ["owner", "repo", "issue_number"],
        },
        annotations=write_annotations("Edit issue"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        number = required_int(arguments, "issue_number")

        updates = {}
        for field in ("title", "body", "state"):
            value = optional_param(arguments, field)
            if value:
                updates[field] = value
        if updates.get("state") and updates["state"] not in ISSUE_STATES:
            raise ParamError(f"Invalid state: {updates['state']}. Must be open or closed")
        for field in ("labels", "assignees"):
            if field in arguments:
                updates[field] = optional_string_array_param(arguments, field)

        if not updates:
            raise ParamError(f"No updates provided for issue {number}")

        issue = await client.rest("PATCH", f"repos/{owner}/{repo}/issues/{number}", json=updates)
        return marshalled_text_result({"id": str(issue.get("id")), "url": issue.get("html_url")})

    return ServerTool(tool, handler)


# =============================================================================
# Prompts
# =============================================================================

def issue_to_fix_workflow() -> ServerPrompt:
    prompt = Prompt(
        name="IssueToFixWorkflow",
        description="Create an issue for a problem and then generate a pull request to fix it",
        arguments=[
            PromptArgument(name="owner", description="Repository owner", required=True),
            PromptArgument(name="repo", description="Repository name", required=True),
            PromptArgument(name="title", description="Issue title", required=True),
            PromptArgument(name="description", description="Issue description", required=True),
        ],
    )

    async def handler(arguments: dict[str, str]) -> GetPromptResult:
        missing = [a for a in ("owner", "repo", "title", "description") if not arguments.get(a)]
        if missing:
            raise ValueError(f"missing required prompt arguments: {', '.join(missing)}")

        owner, repo = arguments["owner"], arguments["repo"]
        steps = [
            f"You are a development workflow assistant helping to create GitHub issues and generate "
            f"corresponding pull requests to fix them in {owner}/{repo}.",
            f"1. Create an issue titled '{arguments['title']}' describing: {arguments['description']}",
            "2. Create a branch for the fix, commit the change and open a pull request that references the issue.",
            "3. Report the issue and pull request URLs back to the user.",
        ]
        return GetPromptResult(
            description=prompt.description,
            messages=[
                PromptMessage(role="user", content=TextContent(type="text", text="\n".join(steps))),
            ],
        )

    return ServerPrompt(prompt, handler)


def toolset(client: GitHubClient) -> Toolset:
    return (
        Toolset("issues", "GitHub Issues related tools")
        .add_read_tools(
            get_issue(client),
            list_issues(client),
            search_issues(client),
            get_issue_comments(client),
        )
        .add_write_tools(
            create_issue(client),
            add_issue_comment(client),
            update_issue(client),
        )
        .add_prompts(issue_to_fix_workflow())
    )
