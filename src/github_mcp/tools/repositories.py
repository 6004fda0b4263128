"""Repository tools and repository content resources."""

import base64
import mimetypes
from typing import Any

from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.types import ResourceTemplate, Tool

from ..client import GitHubClient
from ..toolsets import ServerResourceTemplate, ServerTool, Toolset
from .helpers import (
    marshalled_text_result,
    optional_pagination_params,
    optional_param,
    read_annotations,
    required_param,
    with_pagination,
    write_annotations,
)

OWNER_REPO = {
    "owner": {"type": "string", "description": "Repository owner (username or organization)"},
    "repo": {"type": "string", "description": "Repository name"},
}


def search_repositories(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="search_repositories",
        description="Search for GitHub repositories",
        inputSchema={
            "type": "object",
            "properties": with_pagination({
                "query": {"type": "string", "description": "Search query"},
            }),
            "required": ["query"],
        },
        annotations=read_annotations("Search repositories"),
    )

    async def handler(arguments: dict[str, Any]):
        query = required_param(arguments, "query")
        pagination = optional_pagination_params(arguments)
        result = await client.rest("GET", "search/repositories", params={"q": query, **pagination.as_query()})
        return marshalled_text_result(result)

    return ServerTool(tool, handler)


def get_file_contents(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_file_contents",
        description="Get the contents of a file or directory from a GitHub repository",
        inputSchema={
            "type": "object",
            "properties": {
                **OWNER_REPO,
                "path": {"type": "string", "description": "Path to file/directory (directories must end with a slash '/')", "default": "/"},
                "ref": {"type": "string", "description": "Accepts optional git refs such as `refs/tags/{tag}`, `refs/heads/{branch}` or `refs/pull/{pr_number}/head`"},
                "sha": {"type": "string", "description": "Accepts optional commit SHA. If specified, it will be used instead of ref"},
            },
            "required": ["owner", "repo"],
        },
        annotations=read_annotations("Get file or directory contents"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        path = optional_param(arguments, "path", default="/").strip("/")
        ref = optional_param(arguments, "sha") or optional_param(arguments, "ref")
        contents = await client.rest("GET", f"repos/{owner}/{repo}/contents/{path}", params={"ref": ref})
        return marshalled_text_result(contents)

    return ServerTool(tool, handler)


def list_commits(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_commits",
        description=(
            "Get list of commits of a branch in a GitHub repository. Returns at least 30 results per page "
            "by default, but can return more if specified using the perPage parameter (up to 100)."
        ),
        inputSchema={
            "type": "object",
            "properties": with_pagination({
                **OWNER_REPO,
                "sha": {"type": "string", "description": "Commit SHA, branch or tag name to list commits of. If not provided, uses the default branch of the repository."},
                "author": {"type": "string", "description": "Author username or email address to filter commits by"},
            }),
            "required": ["owner", "repo"],
        },
        annotations=read_annotations("List commits"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        pagination = optional_pagination_params(arguments)
        params = {
            "sha": optional_param(arguments, "sha"),
            "author": optional_param(arguments, "author"),
            **pagination.as_query(),
        }
        commits = await client.rest("GET", f"repos/{owner}/{repo}/commits", params=params)
        minimal = [
            {
                "sha": c.get("sha"),
                "html_url": c.get("html_url"),
                "message": c.get("commit", {}).get("message"),
                "author": (c.get("author") or {}).get("login"),
                "date": c.get("commit", {}).get("author", {}).get("date"),
            }
            for c in commits
        ]
        return marshalled_text_result(minimal)

    return ServerTool(tool, handler)


def list_branches(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_branches",
        description="List branches in a GitHub repository",
        inputSchema={
            "type": "object",
            "properties": with_pagination(OWNER_REPO),
            "required": ["owner", "repo"],
        },
        annotations=read_annotations("List branches"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        pagination = optional_pagination_params(arguments)
        branches = await client.rest("GET", f"repos/{owner}/{repo}/branches", params=pagination.as_query())
        return marshalled_text_result(branches)

    return ServerTool(tool, handler)


def create_or_update_file(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="create_or_update_file",
        description=(
            "Create or update a single file in a GitHub repository. If updating, you must provide the SHA "
            "of the file you want to update. Use this tool to create or update a file in a GitHub "
            "repository remotely; do not use it for local file operations."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                **OWNER_REPO,
                "path": {"type": "string", "description": "Path where to create/update the file"},
                "content": {"type": "string", "description": "Content of the file"},
                "message": {"type": "string", "description": "Commit message"},
                "branch": {"type": "string", "description": "Branch to create/update the file in"},
                "sha": {"type": "string", "description": "Required if updating an existing file. The blob SHA of the file being replaced."},
            },
            "required": ["owner", "repo", "path", "content", "message", "branch"],
        },
        annotations=write_annotations("Create or update file"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        path = required_param(arguments, "path")
        content = required_param(arguments, "content")
        body = {
            "message": required_param(arguments, "message"),
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": required_param(arguments, "branch"),
        }
        sha = optional_param(arguments, "sha")
        if sha:
            body["sha"] = sha
        result = await client.rest("PUT", f"repos/{owner}/{repo}/contents/{path.lstrip('/')}", json=body)
        return marshalled_text_result(result)

    return ServerTool(tool, handler)


def create_branch(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="create_branch",
        description="Create a new branch in a GitHub repository",
        inputSchema={
            "type": "object",
            "properties": {
                **OWNER_REPO,
                "branch": {"type": "string", "description": "Name for new branch"},
                "from_branch": {"type": "string", "description": "Source branch (defaults to repo default)"},
            },
            "required": ["owner", "repo", "branch"],
        },
        annotations=write_annotations("Create branch"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        branch = required_param(arguments, "branch")
        from_branch = optional_param(arguments, "from_branch")

        if not from_branch:
            repository = await client.rest("GET", f"repos/{owner}/{repo}")
            from_branch = repository["default_branch"]

        ref = await client.rest("GET", f"repos/{owner}/{repo}/git/ref/heads/{from_branch}")
        created = await client.rest(
            "POST",
            f"repos/{owner}/{repo}/git/refs",
            json={"ref": f"refs/heads/{branch}", "sha": ref["object"]["sha"]},
        )
        return marshalled_text_result(created)

    return ServerTool(tool, handler)


def fork_repository(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="fork_repository",
        description="Fork a GitHub repository to your account or specified organization",
        inputSchema={
            "type": "object",
            "properties": {
                **OWNER_REPO,
                "organization": {"type": "string", "description": "Organization to fork to"},
            },
            "required": ["owner", "repo"],
        },
        annotations=write_annotations("Fork repository"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        organization = optional_param(arguments, "organization")
        body = {"organization": organization} if organization else None
        fork = await client.rest("POST", f"repos/{owner}/{repo}/forks", json=body)
        return marshalled_text_result(fork)

    return ServerTool(tool, handler)


# =============================================================================
# Resource templates
# =============================================================================

def _repository_content(client: GitHubClient, uri_template: str, name: str, description: str) -> ServerResourceTemplate:
    template = ResourceTemplate(uriTemplate=uri_template, name=name, description=description)

    async def handler(uri: str, params: dict[str, str]) -> list[ReadResourceContents]:
        path = params.get("path", "").lstrip("/")
        if not path or path.endswith("/"):
            raise ValueError("directories are not supported")

        ref = None
        if params.get("branch"):
            ref = f"refs/heads/{params['branch']}"
        elif params.get("tag"):
            ref = f"refs/tags/{params['tag']}"
        elif params.get("prNumber"):
            ref = f"refs/pull/{params['prNumber']}/head"

        content, content_type = await client.raw_content(
            params["owner"], params["repo"], path, ref=ref, sha=params.get("sha")
        )
        mime_type = (content_type or "").split(";")[0].strip() or mimetypes.guess_type(path)[0]
        if mime_type and (mime_type.startswith("text/") or mime_type == "application/json"):
            return [ReadResourceContents(content=content.decode("utf-8", errors="replace"), mime_type=mime_type)]
        return [ReadResourceContents(content=content, mime_type=mime_type or "application/octet-stream")]

    return ServerResourceTemplate(template, handler)


def repository_resource_templates(client: GitHubClient) -> list[ServerResourceTemplate]:
    return [
        _repository_content(
            client, "repo://{owner}/{repo}/contents{/path*}",
            "Repository Content", "Contents of a file in a repository's default branch",
        ),
        _repository_content(
            client, "repo://{owner}/{repo}/refs/heads/{branch}/contents{/path*}",
            "Repository Content for specific branch", "Contents of a file on a branch",
        ),
        _repository_content(
            client, "repo://{owner}/{repo}/sha/{sha}/contents{/path*}",
            "Repository Content for specific commit", "Contents of a file at a commit",
        ),
        _repository_content(
            client, "repo://{owner}/{repo}/refs/tags/{tag}/contents{/path*}",
            "Repository Content for specific tag", "Contents of a file at a tag",
        ),
        _repository_content(
            client, "repo://{owner}/{repo}/refs/pull/{prNumber}/head/contents{/path*}",
            "Repository Content for specific pull request", "Contents of a file at a pull request's head",
        ),
    ]


def toolset(client: GitHubClient) -> Toolset:
    return (
        Toolset("repos", "GitHub Repository related tools")
        .add_read_tools(
            search_repositories(client),
            get_file_contents(client),
            list_commits(client),
            list_branches(client),
        )
        .add_write_tools(
            create_or_update_file(client),
            create_branch(client),
            fork_repository(client),
        )
        .add_resource_templates(*repository_resource_templates(client))
    )
