"""Pull request tools."""

from typing import Any

from mcp.types import Tool

from ..client import GitHubClient
from ..toolsets import ServerTool, Toolset
from .helpers import (
    marshalled_text_result,
    optional_pagination_params,
    optional_param,
    read_annotations,
    required_int,
    required_param,
    with_pagination,
    write_annotations,
)

PR_TARGET = {
    "owner": {"type": "string", "description": "Repository owner"},
    "repo": {"type": "string", "description": "Repository name"},
    "pullNumber": {"type": "number", "description": "Pull request number"},
}


def _pr_target(arguments: dict[str, Any]) -> str:
    owner = required_param(arguments, "owner")
    repo = required_param(arguments, "repo")
    number = required_int(arguments, "pullNumber")
    return f"repos/{owner}/{repo}/pulls/{number}"


def get_pull_request(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_pull_request",
        description="Get details of a specific pull request in a GitHub repository.",
        inputSchema={"type": "object", "properties": PR_TARGET, "required": ["owner", "repo", "pullNumber"]},
        annotations=read_annotations("Get pull request details"),
    )

    async def handler(arguments: dict[str, Any]):
        pr = await client.rest("GET", _pr_target(arguments))
        return marshalled_text_result(pr)

    return ServerTool(tool, handler)


def list_pull_requests(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_pull_requests",
        description=(
            "List pull requests in a GitHub repository. If the user specifies an author, then DO NOT "
            "use this tool and use the search_pull_requests tool instead."
        ),
        inputSchema={
            "type": "object",
            "properties": with_pagination({
                "owner": PR_TARGET["owner"],
                "repo": PR_TARGET["repo"],
                "state": {"type": "string", "description": "Filter by state", "enum": ["open", "closed", "all"]},
                "head": {"type": "string", "description": "Filter by head user/org and branch"},
                "base": {"type": "string", "description": "Filter by base branch"},
                "sort": {"type": "string", "description": "Sort by", "enum": ["created", "updated", "popularity", "long-running"]},
                "direction": {"type": "string", "description": "Sort direction", "enum": ["asc", "desc"]},
            }),
            "required": ["owner", "repo"],
        },
        annotations=read_annotations("List pull requests"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        params = {
            field: optional_param(arguments, field)
            for field in ("state", "head", "base", "sort", "direction")
        }
        params.update(optional_pagination_params(arguments).as_query())
        prs = await client.rest("GET", f"repos/{owner}/{repo}/pulls", params=params)
        return marshalled_text_result(prs)

    return ServerTool(tool, handler)


def get_pull_request_files(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_pull_request_files",
        description="Get the files changed in a specific pull request.",
        inputSchema={
            "type": "object",
            "properties": with_pagination(PR_TARGET),
            "required": ["owner", "repo", "pullNumber"],
        },
        annotations=read_annotations("Get pull request files"),
    )

    async def handler(arguments: dict[str, Any]):
        files = await client.rest(
            "GET", f"{_pr_target(arguments)}/files", params=optional_pagination_params(arguments).as_query()
        )
        return marshalled_text_result(files)

    return ServerTool(tool, handler)


def create_pull_request(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="create_pull_request",
        description="Create a new pull request in a GitHub repository.",
        inputSchema={
            "type": "object",
            "properties": {
                "owner": PR_TARGET["owner"],
                "repo": PR_TARGET["repo"],
                "title": {"type": "string", "description": "PR title"},
                "body": {"type": "string", "description": "PR description"},
                "head": {"type": "string", "description": "Branch containing changes"},
                "base": {"type": "string", "description": "Branch to merge into"},
                "draft": {"type": "boolean", "description": "Create as draft PR"},
                "maintainer_can_modify": {"type": "boolean", "description": "Allow maintainer edits"},
            },
            "required": ["owner", "repo", "title", "head", "base"],
        },
        annotations=write_annotations("Open new pull request"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        body = {
            "title": required_param(arguments, "title"),
            "head": required_param(arguments, "head"),
            "base": required_param(arguments, "base"),
        }
        description = optional_param(arguments, "body")
        if description:
            body["body"] = description
        for flag in ("draft", "maintainer_can_modify"):
            value = optional_param(arguments, flag, bool)
            if value is not None:
                body[flag] = value

        pr = await client.rest("POST", f"repos/{owner}/{repo}/pulls", json=body)
        return marshalled_text_result({"id": str(pr.get("id")), "url": pr.get("html_url")})

    return ServerTool(tool, handler)


def merge_pull_request(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="merge_pull_request",
        description="Merge a pull request in a GitHub repository.",
        inputSchema={
            "type": "object",
            "properties": {
                **PR_TARGET,
                "commit_title": {"type": "string", "description": "Title for merge commit"},
                "commit_message": {"type": "string", "description": "Extra detail for merge commit"},
                "merge_method": {"type": "string", "description": "Merge method", "enum": ["merge", "squash", "rebase"]},
            },
            "required": ["owner", "repo", "pullNumber"],
        },
        annotations=write_annotations("Merge pull request"),
    )

    async def handler(arguments: dict[str, Any]):
        target = _pr_target(arguments)
        body = {}
        for field in ("commit_title", "commit_message", "merge_method"):
            value = optional_param(arguments, field)
            if value:
                body[field] = value
        result = await client.rest("PUT", f"{target}/merge", json=body)
        return marshalled_text_result(result)

    return ServerTool(tool, handler)


def update_pull_request_branch(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="update_pull_request_branch",
        description="Update the branch of a pull request with the latest changes from the base branch.",
        inputSchema={
            "type": "object",
            "properties": {
                **PR_TARGET,
                "expectedHeadSha": {"type": "string", "description": "The expected SHA of the pull request's HEAD ref"},
            },
            "required": ["owner", "repo", "pullNumber"],
        },
        annotations=write_annotations("Update pull request branch"),
    )

    async def handler(arguments: dict[str, Any]):
        target = _pr_target(arguments)
        expected = optional_param(arguments, "expectedHeadSha")
        body = {"expected_head_sha": expected} if expected else None
        result = await client.rest("PUT", f"{target}/update-branch", json=body)
        return marshalled_text_result(result)

    return ServerTool(tool, handler)


def toolset(client: GitHubClient) -> Toolset:
    return (
        Toolset("pull_requests", "GitHub Pull Request related tools")
        .add_read_tools(
            get_pull_request(client),
            list_pull_requests(client),
            get_pull_request_files(client),
        )
        .add_write_tools(
            merge_pull_request(client),
            update_pull_request_branch(client),
            create_pull_request(client),
        )
    )
