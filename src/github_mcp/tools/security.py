"""Security tools: code scanning, secret scanning, Dependabot alerts and security advisories."""

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
)

OWNER_REPO = {
    "owner": {"type": "string", "description": "The owner of the repository."},
    "repo": {"type": "string", "description": "The name of the repository."},
}


def _get_alert(client: GitHubClient, name: str, kind: str, title: str) -> ServerTool:
    """Build a tool fetching one alert from ``repos/{owner}/{repo}/{kind}/alerts/{alertNumber}``."""
    tool = Tool(
        name=name,
        description=f"Get details of a specific {title.lower()} in a GitHub repository.",
        inputSchema={
            "type": "object",
            "properties": {
                **OWNER_REPO,
                "alertNumber": {"type": "number", "description": "The number of the alert."},
            },
            "required": ["owner", "repo", "alertNumber"],
        },
        annotations=read_annotations(f"Get {title.lower()}"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        number = required_int(arguments, "alertNumber")
        alert = await client.rest("GET", f"repos/{owner}/{repo}/{kind}/alerts/{number}")
        return marshalled_text_result(alert)

    return ServerTool(tool, handler)


def _list_alerts(client: GitHubClient, name: str, kind: str, title: str, filters: dict) -> ServerTool:
    """Build a tool listing alerts; every filter property is passed through as a query parameter."""
    tool = Tool(
        name=name,
        description=f"List {title.lower()}s in a GitHub repository.",
        inputSchema={
            "type": "object",
            "properties": with_pagination({**OWNER_REPO, **filters}),
            "required": ["owner", "repo"],
        },
        annotations=read_annotations(f"List {title.lower()}s"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        params = {key: optional_param(arguments, key) for key in filters}
        params.update(optional_pagination_params(arguments).as_query())
        alerts = await client.rest("GET", f"repos/{owner}/{repo}/{kind}/alerts", params=params)
        return marshalled_text_result(alerts)

    return ServerTool(tool, handler)


def code_security_toolset(client: GitHubClient) -> Toolset:
    filters = {
        "state": {"type": "string", "description": "Filter code scanning alerts by state. Defaults to open", "enum": ["open", "closed", "dismissed", "fixed"]},
        "ref": {"type": "string", "description": "The Git reference for the results you want to list."},
        "severity": {"type": "string", "description": "Filter code scanning alerts by severity", "enum": ["critical", "high", "medium", "low", "warning", "note", "error"]},
        "tool_name": {"type": "string", "description": "The name of the tool used for code scanning."},
    }
    return Toolset("code_security", "Code security related tools, such as GitHub Code Scanning").add_read_tools(
        _get_alert(client, "get_code_scanning_alert", "code-scanning", "Code scanning alert"),
        _list_alerts(client, "list_code_scanning_alerts", "code-scanning", "Code scanning alert", filters),
    )


def secret_protection_toolset(client: GitHubClient) -> Toolset:
    filters = {
        "state": {"type": "string", "description": "Filter by state", "enum": ["open", "resolved"]},
        "secret_type": {"type": "string", "description": "A comma-separated list of secret types to return."},
        "resolution": {"type": "string", "description": "Filter by resolution", "enum": ["false_positive", "wont_fix", "revoked", "pattern_edited", "pattern_deleted", "used_in_tests"]},
    }
    return Toolset("secret_protection", "Secret protection related tools, such as GitHub Secret Scanning").add_read_tools(
        _get_alert(client, "get_secret_scanning_alert", "secret-scanning", "Secret scanning alert"),
        _list_alerts(client, "list_secret_scanning_alerts", "secret-scanning", "Secret scanning alert", filters),
    )


def dependabot_toolset(client: GitHubClient) -> Toolset:
    filters = {
        "state": {"type": "string", "description": "Filter dependabot alerts by state. Defaults to open", "enum": ["open", "fixed", "dismissed", "auto_dismissed"]},
        "severity": {"type": "string", "description": "Filter dependabot alerts by severity", "enum": ["low", "medium", "high", "critical"]},
    }
    return Toolset("dependabot", "Dependabot tools").add_read_tools(
        _get_alert(client, "get_dependabot_alert", "dependabot", "Dependabot alert"),
        _list_alerts(client, "list_dependabot_alerts", "dependabot", "Dependabot alert", filters),
    )


# =============================================================================
# Security advisories
# =============================================================================

ADVISORY_FILTERS = {
    "ghsaId": ("ghsa_id", {"type": "string", "description": "Filter by GitHub Security Advisory ID (format: GHSA-xxxx-xxxx-xxxx)."}),
    "type": ("type", {"type": "string", "description": "Advisory type.", "enum": ["reviewed", "malware", "unreviewed"]}),
    "cveId": ("cve_id", {"type": "string", "description": "Filter by CVE ID."}),
    "ecosystem": ("ecosystem", {"type": "string", "description": "Filter by package ecosystem, e.g. npm or pip."}),
    "severity": ("severity", {"type": "string", "description": "Filter by severity.", "enum": ["unknown", "low", "medium", "high", "critical"]}),
    "affects": ("affects", {"type": "string", "description": "Filter advisories by affected package or version."}),
}


def list_global_security_advisories(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_global_security_advisories",
        description="List global security advisories from GitHub.",
        inputSchema={
            "type": "object",
            "properties": {key: schema for key, (_, schema) in ADVISORY_FILTERS.items()},
            "required": [],
        },
        annotations=read_annotations("List global security advisories"),
    )

    async def handler(arguments: dict[str, Any]):
        params = {query: optional_param(arguments, key) for key, (query, _) in ADVISORY_FILTERS.items()}
        advisories = await client.rest("GET", "advisories", params=params)
        return marshalled_text_result(advisories)

    return ServerTool(tool, handler)


def get_global_security_advisory(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_global_security_advisory",
        description="Get a global security advisory",
        inputSchema={
            "type": "object",
            "properties": {"ghsaId": ADVISORY_FILTERS["ghsaId"][1]},
            "required": ["ghsaId"],
        },
        annotations=read_annotations("Get a global security advisory"),
    )

    async def handler(arguments: dict[str, Any]):
        advisory = await client.rest("GET", f"advisories/{required_param(arguments, 'ghsaId')}")
        return marshalled_text_result(advisory)

    return ServerTool(tool, handler)


ADVISORY_LISTING = {
    "sort": {"type": "string", "description": "Sort field.", "enum": ["created", "updated", "published"]},
    "direction": {"type": "string", "description": "Sort direction.", "enum": ["asc", "desc"]},
    "state": {"type": "string", "description": "Filter by advisory state.", "enum": ["triage", "draft", "published", "closed"]},
}


def list_repository_security_advisories(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_repository_security_advisories",
        description="List repository security advisories for a GitHub repository.",
        inputSchema={
            "type": "object",
            "properties": {**OWNER_REPO, **ADVISORY_LISTING},
            "required": ["owner", "repo"],
        },
        annotations=read_annotations("List repository security advisories"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        params = {key: optional_param(arguments, key) for key in ADVISORY_LISTING}
        advisories = await client.rest("GET", f"repos/{owner}/{repo}/security-advisories", params=params)
        return marshalled_text_result(advisories)

    return ServerTool(tool, handler)


def list_org_repository_security_advisories(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_org_repository_security_advisories",
        description="List repository security advisories for a GitHub organization.",
        inputSchema={
            "type": "object",
            "properties": {
                "org": {"type": "string", "description": "The organization login."},
                **ADVISORY_LISTING,
            },
            "required": ["org"],
        },
        annotations=read_annotations("List org repository security advisories"),
    )

    async def handler(arguments: dict[str, Any]):
        org = required_param(arguments, "org")
        params = {key: optional_param(arguments, key) for key in ADVISORY_LISTING}
        advisories = await client.rest("GET", f"orgs/{org}/security-advisories", params=params)
        return marshalled_text_result(advisories)

    return ServerTool(tool, handler)


def security_advisories_toolset(client: GitHubClient) -> Toolset:
    return Toolset("security_advisories", "Security advisories related tools").add_read_tools(
        list_global_security_advisories(client),
        get_global_security_advisory(client),
        list_repository_security_advisories(client),
        list_org_repository_security_advisories(client),
    )
