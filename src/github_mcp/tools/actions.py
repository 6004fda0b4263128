"""GitHub Actions tools: workflows and workflow runs."""

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
    text_result,
    with_pagination,
    write_annotations,
)

OWNER_REPO = {
    "owner": {"type": "string", "description": "Repository owner"},
    "repo": {"type": "string", "description": "Repository name"},
}


def list_workflows(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_workflows",
        description="List workflows in a repository",
        inputSchema={"type": "object", "properties": with_pagination(OWNER_REPO), "required": ["owner", "repo"]},
        annotations=read_annotations("List workflows"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        workflows = await client.rest(
            "GET", f"repos/{owner}/{repo}/actions/workflows", params=optional_pagination_params(arguments).as_query()
        )
        return marshalled_text_result(workflows)

    return ServerTool(tool, handler)


def list_workflow_runs(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_workflow_runs",
        description="List workflow runs for a specific workflow",
        inputSchema={
            "type": "object",
            "properties": with_pagination({
                **OWNER_REPO,
                "workflow_id": {"type": "string", "description": "The workflow ID or workflow file name"},
                "branch": {"type": "string", "description": "Returns workflow runs associated with a branch"},
                "status": {"type": "string", "description": "Returns workflow runs with the check run status"},
            }),
            "required": ["owner", "repo", "workflow_id"],
        },
        annotations=read_annotations("List workflow runs"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        workflow_id = required_param(arguments, "workflow_id")
        params = {
            "branch": optional_param(arguments, "branch"),
            "status": optional_param(arguments, "status"),
            **optional_pagination_params(arguments).as_query(),
        }
        runs = await client.rest("GET", f"repos/{owner}/{repo}/actions/workflows/{workflow_id}/runs", params=params)
        return marshalled_text_result(runs)

    return ServerTool(tool, handler)


def get_workflow_run(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_workflow_run",
        description="Get details of a specific workflow run",
        inputSchema={
            "type": "object",
            "properties": {**OWNER_REPO, "run_id": {"type": "number", "description": "The unique identifier of the workflow run"}},
            "required": ["owner", "repo", "run_id"],
        },
        annotations=read_annotations("Get workflow run"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        run_id = required_int(arguments, "run_id")
        run = await client.rest("GET", f"repos/{owner}/{repo}/actions/runs/{run_id}")
        return marshalled_text_result(run)

    return ServerTool(tool, handler)


def run_workflow(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="run_workflow",
        description="Run an Actions workflow by workflow ID or filename",
        inputSchema={
            "type": "object",
            "properties": {
                **OWNER_REPO,
                "workflow_id": {"type": "string", "description": "The workflow ID (numeric) or workflow file name (e.g., main.yml, ci.yaml)"},
                "ref": {"type": "string", "description": "The git reference for the workflow. The reference can be a branch or tag name."},
                "inputs": {"type": "object", "description": "Inputs the workflow accepts"},
            },
            "required": ["owner", "repo", "workflow_id", "ref"],
        },
        annotations=write_annotations("Run workflow"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        workflow_id = required_param(arguments, "workflow_id")
        ref = required_param(arguments, "ref")
        body = {"ref": ref, "inputs": optional_param(arguments, "inputs", dict, default={})}
        await client.rest("POST", f"repos/{owner}/{repo}/actions/workflows/{workflow_id}/dispatches", json=body)
        return marshalled_text_result({
            "message": "Workflow run has been queued",
            "workflow_id": workflow_id,
            "ref": ref,
        })

    return ServerTool(tool, handler)


def cancel_workflow_run(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="cancel_workflow_run",
        description="Cancel a workflow run",
        inputSchema={
            "type": "object",
            "properties": {**OWNER_REPO, "run_id": {"type": "number", "description": "The unique identifier of the workflow run"}},
            "required": ["owner", "repo", "run_id"],
        },
        annotations=write_annotations("Cancel workflow run"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        run_id = required_int(arguments, "run_id")
        await client.rest("POST", f"repos/{owner}/{repo}/actions/runs/{run_id}/cancel")
        return text_result(f"Workflow run {run_id} has been cancelled")

    return ServerTool(tool, handler)


def toolset(client: GitHubClient) -> Toolset:
    return (
        Toolset("actions", "GitHub Actions workflows and CI/CD operations")
        .add_read_tools(
            list_workflows(client),
            list_workflow_runs(client),
            get_workflow_run(client),
        )
        .add_write_tools(
            run_workflow(client),
            cancel_workflow_run(client),
        )
    )
