"""Notification tools: list and inspect notifications, mark them read or done, manage subscriptions."""

from typing import Any

from mcp.types import Tool

from ..client import GitHubClient
from ..errors import ParamError
from ..toolsets import ServerTool, Toolset
from .helpers import (
    marshalled_text_result,
    optional_pagination_params,
    optional_param,
    read_annotations,
    required_param,
    text_result,
    with_pagination,
    write_annotations,
)

FILTER_DEFAULT = "default"
FILTER_INCLUDE_READ = "include_read_notifications"
FILTER_ONLY_PARTICIPATING = "only_participating"


def _notifications_path(owner, repo) -> str:
    if owner and repo:
        return f"repos/{owner}/{repo}/notifications"
    return "notifications"


def list_notifications(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="list_notifications",
        description=(
            "Lists all GitHub notifications for the authenticated user, including unread notifications, "
            "mentions, review requests, assignments, and updates on issues or pull requests. Use this tool "
            "whenever the user asks what to work on next."
        ),
        inputSchema={
            "type": "object",
            "properties": with_pagination({
                "filter": {
                    "type": "string",
                    "description": "Filter notifications to, use default unless specified. Read notifications are ones that have already been acknowledged by the user.",
                    "enum": [FILTER_DEFAULT, FILTER_INCLUDE_READ, FILTER_ONLY_PARTICIPATING],
                },
                "since": {"type": "string", "description": "Only show notifications updated after the given time (ISO 8601 format)"},
                "before": {"type": "string", "description": "Only show notifications updated before the given time (ISO 8601 format)"},
                "owner": {"type": "string", "description": "Optional repository owner. If provided with repo, only notifications for this repository are listed."},
                "repo": {"type": "string", "description": "Optional repository name. If provided with owner, only notifications for this repository are listed."},
            }),
            "required": [],
        },
        annotations=read_annotations("List notifications"),
    )

    async def handler(arguments: dict[str, Any]):
        filter_ = optional_param(arguments, "filter", default=FILTER_DEFAULT)
        params = {
            "all": "true" if filter_ == FILTER_INCLUDE_READ else None,
            "participating": "true" if filter_ == FILTER_ONLY_PARTICIPATING else None,
            "since": optional_param(arguments, "since"),
            "before": optional_param(arguments, "before"),
            **optional_pagination_params(arguments).as_query(),
        }
        path = _notifications_path(optional_param(arguments, "owner"), optional_param(arguments, "repo"))
        notifications = await client.rest("GET", path, params=params)
        return marshalled_text_result(notifications)

    return ServerTool(tool, handler)


def get_notification_details(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="get_notification_details",
        description="Get detailed information for a specific GitHub notification, always call this tool when the user asks for details about a specific notification, if you don't know the ID list notifications first.",
        inputSchema={
            "type": "object",
            "properties": {"notificationID": {"type": "string", "description": "The ID of the notification"}},
            "required": ["notificationID"],
        },
        annotations=read_annotations("Get notification details"),
    )

    async def handler(arguments: dict[str, Any]):
        thread_id = required_param(arguments, "notificationID")
        thread = await client.rest("GET", f"notifications/threads/{thread_id}")
        return marshalled_text_result(thread)

    return ServerTool(tool, handler)


def dismiss_notification(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="dismiss_notification",
        description="Dismiss a notification by marking it as read or done",
        inputSchema={
            "type": "object",
            "properties": {
                "threadID": {"type": "string", "description": "The ID of the notification thread"},
                "state": {"type": "string", "description": "The new state of the notification (read/done)", "enum": ["read", "done"]},
            },
            "required": ["threadID", "state"],
        },
        annotations=write_annotations("Dismiss notification"),
    )

    async def handler(arguments: dict[str, Any]):
        thread_id = required_param(arguments, "threadID")
        state = required_param(arguments, "state")
        if state == "done":
            await client.rest("DELETE", f"notifications/threads/{thread_id}")
        elif state == "read":
            await client.rest("PATCH", f"notifications/threads/{thread_id}")
        else:
            raise ParamError("Invalid state. Must be one of: read, done.")
        return text_result(f"Notification marked as {state}")

    return ServerTool(tool, handler)


def mark_all_notifications_read(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="mark_all_notifications_read",
        description="Mark all notifications as read",
        inputSchema={
            "type": "object",
            "properties": {
                "lastReadAt": {"type": "string", "description": "Describes the last point that notifications were checked (optional). Default: Now"},
                "owner": {"type": "string", "description": "Optional repository owner. If provided with repo, only notifications for this repository are marked as read."},
                "repo": {"type": "string", "description": "Optional repository name. If provided with owner, only notifications for this repository are marked as read."},
            },
            "required": [],
        },
        annotations=write_annotations("Mark all notifications as read"),
    )

    async def handler(arguments: dict[str, Any]):
        last_read_at = optional_param(arguments, "lastReadAt")
        body = {"last_read_at": last_read_at} if last_read_at else {}
        path = _notifications_path(optional_param(arguments, "owner"), optional_param(arguments, "repo"))
        await client.rest("PUT", path, json=body)
        return text_result("All notifications marked as read")

    return ServerTool(tool, handler)


def _subscription_action(arguments: dict[str, Any]) -> str:
    action = required_param(arguments, "action")
    if action not in ("ignore", "watch", "delete"):
        raise ParamError("Invalid action. Must be one of: ignore, watch, delete.")
    return action


SUBSCRIPTION_ACTION = {
    "type": "string",
    "description": "Action to perform: ignore, watch, or delete the subscription.",
    "enum": ["ignore", "watch", "delete"],
}


def manage_notification_subscription(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="manage_notification_subscription",
        description="Manage a notification subscription: ignore, watch, or delete a notification thread subscription.",
        inputSchema={
            "type": "object",
            "properties": {
                "notificationID": {"type": "string", "description": "The ID of the notification thread."},
                "action": SUBSCRIPTION_ACTION,
            },
            "required": ["notificationID", "action"],
        },
        annotations=write_annotations("Manage notification subscription"),
    )

    async def handler(arguments: dict[str, Any]):
        thread_id = required_param(arguments, "notificationID")
        action = _subscription_action(arguments)
        path = f"notifications/threads/{thread_id}/subscription"
        if action == "delete":
            await client.rest("DELETE", path)
            return text_result("Subscription deleted")
        subscription = await client.rest("PUT", path, json={"ignored": action == "ignore"})
        return marshalled_text_result(subscription)

    return ServerTool(tool, handler)


def manage_repository_notification_subscription(client: GitHubClient) -> ServerTool:
    tool = Tool(
        name="manage_repository_notification_subscription",
        description="Manage a repository notification subscription: ignore, watch, or delete repository notifications subscription for the provided repository.",
        inputSchema={
            "type": "object",
            "properties": {
                "owner": {"type": "string", "description": "The account owner of the repository."},
                "repo": {"type": "string", "description": "The name of the repository."},
                "action": SUBSCRIPTION_ACTION,
            },
            "required": ["owner", "repo", "action"],
        },
        annotations=write_annotations("Manage repository notification subscription"),
    )

    async def handler(arguments: dict[str, Any]):
        owner = required_param(arguments, "owner")
        repo = required_param(arguments, "repo")
        action = _subscription_action(arguments)
        path = f"repos/{owner}/{repo}/subscription"
        if action == "delete":
            await client.rest("DELETE", path)
            return text_result("Repository subscription deleted")
        body = {"ignored": True} if action == "ignore" else {"subscribed": True}
        subscription = await client.rest("PUT", path, json=body)
        return marshalled_text_result(subscription)

    return ServerTool(tool, handler)


def toolset(client: GitHubClient) -> Toolset:
    return (
        Toolset("notifications", "GitHub Notifications related tools")
        .add_read_tools(
            list_notifications(client),
            get_notification_details(client),
        )
        .add_write_tools(
            dismiss_notification(client),
            mark_all_notifications_read(client),
            manage_notification_subscription(client),
            manage_repository_notification_subscription(client),
        )
    )
