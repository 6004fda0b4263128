"""Toolset modules for the GitHub MCP Server."""

import logging
import traceback
from typing import Callable

from ..client import GitHubClient
from ..errors import MisannotatedToolError
from ..toolsets import Toolset, ToolsetGroup
from . import (
    actions,
    context,
    discussions,
    gists,
    issues,
    notifications,
    projects,
    pull_requests,
    repositories,
    search,
    security,
)

logger = logging.getLogger("github-mcp-server")

DEFAULT_TOOLSETS = ["all"]


def _experiments(client: GitHubClient) -> Toolset:
    # Kept registered so enabling it never fails, even while it holds no tools
    return Toolset("experiments", "Experimental features that are not considered stable yet")


TOOLSET_FACTORIES: list[Callable[[GitHubClient], Toolset]] = [
    context.toolset,
    repositories.toolset,
    issues.toolset,
    search.orgs_toolset,
    search.users_toolset,
    pull_requests.toolset,
    actions.toolset,
    security.code_security_toolset,
    security.secret_protection_toolset,
    security.dependabot_toolset,
    notifications.toolset,
    _experiments,
    discussions.toolset,
    gists.toolset,
    security.security_advisories_toolset,
    projects.toolset,
]


def default_toolset_group(read_only: bool, client: GitHubClient) -> ToolsetGroup:
    """Build every standard toolset (all disabled) and add it to a new group.

    A toolset module that fails to build is skipped with an error log, except
    for a misannotated tool, which aborts startup.
    """
    group = ToolsetGroup(read_only)

    for factory in TOOLSET_FACTORIES:
        try:
            toolset = factory(client)
        except MisannotatedToolError as e:
            logger.critical(f"Misannotated tool {e.tool_name}: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to load toolset from {factory.__module__}.{factory.__name__}: {e}")
            logger.error(f"Traceback:\n{traceback.format_exc()}")
            continue

        group.add_toolset(toolset)
        logger.info(f"Toolset {toolset.name} loaded ({len(toolset.get_available_tools())} tools)")

    return group
