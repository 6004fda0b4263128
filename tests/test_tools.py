"""
Tests for the GitHub toolset modules, run against a fake GitHub API
"""

import base64
import json
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from github_mcp.dispatch import Dispatcher
from github_mcp.errors import MisannotatedToolError, ParamError
from github_mcp.tools import TOOLSET_FACTORIES, default_toolset_group
from github_mcp.tools.helpers import (
    marshalled_text_result,
    optional_int_param_with_default,
    optional_pagination_params,
    optional_param,
    optional_string_array_param,
    required_int,
    required_param,
)
from github_mcp.toolsets import Toolset


@pytest.fixture
def dispatcher(client):
    group = default_toolset_group(False, client)
    group.enable_toolsets(["all"])
    dispatcher = Dispatcher()
    group.register_all(dispatcher)
    return dispatcher


def payload(result):
    assert not result.isError, result.content[0].text
    return json.loads(result.content[0].text)


class TestParams:
    """Test argument helpers."""

    def test_required_param(self):
        assert required_param({"owner": "octo"}, "owner") == "octo"

    @pytest.mark.parametrize("arguments", [{}, {"owner": None}, {"owner": ""}])
    def test_required_param_missing(self, arguments):
        with pytest.raises(ParamError, match="missing required parameter: owner"):
            required_param(arguments, "owner")

    def test_required_param_wrong_type(self):
        with pytest.raises(ParamError, match="parameter owner is not of type str"):
            required_param({"owner": 12}, "owner")

    def test_required_int_accepts_float(self):
        assert required_int({"issue_number": 42.0}, "issue_number") == 42

    def test_bool_is_not_a_number(self):
        with pytest.raises(ParamError):
            required_int({"issue_number": True}, "issue_number")

    def test_optional_param(self):
        assert optional_param({}, "state") is None
        assert optional_param({}, "state", default="open") == "open"
        with pytest.raises(ParamError):
            optional_param({"state": 1}, "state")

    def test_optional_int_with_default(self):
        assert optional_int_param_with_default({}, "page", 1) == 1
        assert optional_int_param_with_default({"page": 0}, "page", 1) == 1
        assert optional_int_param_with_default({"page": 3}, "page", 1) == 3

    def test_string_array(self):
        assert optional_string_array_param({}, "labels") == []
        assert optional_string_array_param({"labels": ["bug"]}, "labels") == ["bug"]
        with pytest.raises(ParamError):
            optional_string_array_param({"labels": "bug"}, "labels")
        with pytest.raises(ParamError):
            optional_string_array_param({"labels": ["bug", 2]}, "labels")

    def test_pagination_defaults(self):
        assert optional_pagination_params({}).as_query() == {"page": 1, "per_page": 30}
        assert optional_pagination_params({"page": 2, "perPage": 100}).as_query() == {"page": 2, "per_page": 100}

    def test_marshal_failure_is_error_result(self):
        result = marshalled_text_result({"when": object()})
        assert result.isError
        assert result.content[0].text.startswith("failed to marshal text result to json")


class TestDefaultToolsets:
    """Test the standard toolset group."""

    def test_all_standard_toolsets_present(self, client):
        group = default_toolset_group(False, client)
        assert list(group.toolsets) == [
            "context", "repos", "issues", "orgs", "users", "pull_requests", "actions",
            "code_security", "secret_protection", "dependabot", "notifications", "experiments",
            "discussions", "gists", "security_advisories", "projects",
        ]
        assert not any(t.enabled for t in group.toolsets.values())

    def test_read_only_group_exposes_no_write_tools(self, client):
        group = default_toolset_group(True, client)
        group.enable_toolsets(["all"])
        dispatcher = Dispatcher()
        group.register_all(dispatcher)

        tools = dispatcher.list_tools()
        assert tools
        assert all(t.annotations.readOnlyHint for t in tools)
        assert not dispatcher.has_tool("create_issue")
        assert dispatcher.has_tool("get_issue")

    def test_tool_names_unique(self, client):
        group = default_toolset_group(False, client)
        names = [t.name for ts in group.toolsets.values() for t in ts.get_available_tools()]
        assert len(names) == len(set(names))

    def test_broken_module_is_skipped(self, client, monkeypatch):
        def broken(client):
            raise RuntimeError("cannot build")

        monkeypatch.setattr("github_mcp.tools.TOOLSET_FACTORIES", [broken] + TOOLSET_FACTORIES)
        group = default_toolset_group(False, client)
        assert "repos" in group.toolsets

    def test_misannotated_module_aborts(self, client, monkeypatch):
        def misannotated(client):
            raise MisannotatedToolError("bad_tool", "tool (bad_tool) must be annotated as read-only")

        monkeypatch.setattr("github_mcp.tools.TOOLSET_FACTORIES", [misannotated])
        with pytest.raises(MisannotatedToolError):
            default_toolset_group(False, client)

    def test_experiments_is_empty(self, client):
        group = default_toolset_group(False, client)
        assert isinstance(group.get_toolset("experiments"), Toolset)
        assert group.get_toolset("experiments").get_available_tools() == []


class TestContextTools:
    """Test the context toolset."""

    @pytest.mark.anyio
    async def test_get_me(self, dispatcher, github):
        github.routes["GET user"] = {
            "login": "octocat",
            "id": 1,
            "html_url": "https://github.com/octocat",
            "avatar_url": "https://avatars.example/1",
            "name": "The Octocat",
            "plan": {"name": "pro"},
        }
        me = payload(await dispatcher.call_tool("get_me", {}))
        assert me["login"] == "octocat"
        assert me["profile_url"] == "https://github.com/octocat"
        assert me["details"]["name"] == "The Octocat"
        assert "plan" not in me

    @pytest.mark.anyio
    async def test_get_teams(self, dispatcher, github):
        github.routes["POST graphql"] = {
            "data": {"viewer": {"organizations": {"nodes": [
                {"login": "acme", "teams": {"nodes": [{"name": "Core", "slug": "core", "description": None}]}},
                {"login": "empty", "teams": {"nodes": []}},
            ]}}}
        }
        teams = payload(await dispatcher.call_tool("get_teams", {"user": "octocat"}))
        assert teams == [{"org": "acme", "teams": [{"name": "Core", "slug": "core", "description": None}]}]
        assert github.last_json()["variables"] == {"login": "octocat"}


class TestRepositoryTools:
    """Test the repos toolset."""

    @pytest.mark.anyio
    async def test_search_repositories(self, dispatcher, github):
        github.routes["GET search/repositories"] = {"total_count": 0, "items": []}
        await dispatcher.call_tool("search_repositories", {"query": "mcp", "perPage": 5})
        assert dict(github.last.url.params) == {"q": "mcp", "page": "1", "per_page": "5"}

    @pytest.mark.anyio
    async def test_list_commits_minimal(self, dispatcher, github):
        github.routes["GET repos/octo/hello/commits"] = [
            {
                "sha": "abc",
                "html_url": "https://github.com/octo/hello/commit/abc",
                "commit": {"message": "fix", "author": {"date": "2024-01-01T00:00:00Z"}},
                "author": {"login": "octocat"},
            }
        ]
        commits = payload(await dispatcher.call_tool("list_commits", {"owner": "octo", "repo": "hello"}))
        assert commits == [{
            "sha": "abc",
            "html_url": "https://github.com/octo/hello/commit/abc",
            "message": "fix",
            "author": "octocat",
            "date": "2024-01-01T00:00:00Z",
        }]

    @pytest.mark.anyio
    async def test_create_or_update_file_encodes_content(self, dispatcher, github):
        github.routes["PUT repos/octo/hello/contents/docs/a.md"] = {"content": {"sha": "new"}}
        await dispatcher.call_tool("create_or_update_file", {
            "owner": "octo", "repo": "hello", "path": "docs/a.md",
            "content": "hello", "message": "add", "branch": "main",
        })
        body = github.last_json()
        assert base64.b64decode(body["content"]) == b"hello"
        assert body["branch"] == "main"
        assert "sha" not in body

    @pytest.mark.anyio
    async def test_create_branch_from_default(self, dispatcher, github):
        github.routes["GET repos/octo/hello"] = {"default_branch": "main"}
        github.routes["GET repos/octo/hello/git/ref/heads/main"] = {"object": {"sha": "abc"}}
        github.routes["POST repos/octo/hello/git/refs"] = (201, {"ref": "refs/heads/feature"})

        result = payload(await dispatcher.call_tool("create_branch", {"owner": "octo", "repo": "hello", "branch": "feature"}))
        assert result == {"ref": "refs/heads/feature"}
        assert github.last_json() == {"ref": "refs/heads/feature", "sha": "abc"}

    @pytest.mark.anyio
    async def test_api_error_is_tool_error(self, dispatcher, github):
        result = await dispatcher.call_tool("list_branches", {"owner": "octo", "repo": "missing"})
        assert result.isError
        assert "404 Not Found" in result.content[0].text


class TestRepositoryResources:
    """Test repository content resources."""

    @pytest.mark.anyio
    async def test_default_branch_text(self, dispatcher, github):
        github.routes["GET octo/hello/HEAD/README.md"] = b"# Hello"
        contents = await dispatcher.read_resource("repo://octo/hello/contents/README.md")
        assert contents[0].content == "# Hello"
        assert contents[0].mime_type == "text/plain"

    @pytest.mark.anyio
    async def test_branch_and_pull_request_refs(self, dispatcher, github):
        github.routes["GET octo/hello/refs/heads/dev/a.txt"] = b"dev"
        github.routes["GET octo/hello/refs/pull/7/head/a.txt"] = b"pr"
        assert (await dispatcher.read_resource("repo://octo/hello/refs/heads/dev/contents/a.txt"))[0].content == "dev"
        assert (await dispatcher.read_resource("repo://octo/hello/refs/pull/7/head/contents/a.txt"))[0].content == "pr"

    @pytest.mark.anyio
    async def test_sha(self, dispatcher, github):
        github.routes["GET octo/hello/abc123/a.txt"] = b"at sha"
        contents = await dispatcher.read_resource("repo://octo/hello/sha/abc123/contents/a.txt")
        assert contents[0].content == "at sha"

    @pytest.mark.anyio
    @pytest.mark.parametrize("uri", ["repo://octo/hello/contents", "repo://octo/hello/contents/docs/"])
    async def test_directories_rejected(self, dispatcher, uri):
        with pytest.raises(ValueError, match="directories are not supported"):
            await dispatcher.read_resource(uri)


class TestIssueTools:
    """Test the issues toolset."""

    @pytest.mark.anyio
    async def test_search_issues_scopes_query(self, dispatcher, github):
        github.routes["GET search/issues"] = {"total_count": 0, "items": []}
        await dispatcher.call_tool("search_issues", {"query": "crash", "owner": "octo", "repo": "hello"})
        assert github.last.url.params["q"] == "repo:octo/hello is:issue crash"

    @pytest.mark.anyio
    async def test_create_issue(self, dispatcher, github):
        github.routes["POST repos/octo/hello/issues"] = (201, {"id": 99, "html_url": "https://github.com/octo/hello/issues/1"})
        result = payload(await dispatcher.call_tool("create_issue", {
            "owner": "octo", "repo": "hello", "title": "Bug", "labels": ["bug"], "milestone": 2,
        }))
        assert result == {"id": "99", "url": "https://github.com/octo/hello/issues/1"}
        body = github.last_json()
        assert body["labels"] == ["bug"]
        assert body["milestone"] == 2

    @pytest.mark.anyio
    async def test_update_issue_requires_changes(self, dispatcher):
        result = await dispatcher.call_tool("update_issue", {"owner": "octo", "repo": "hello", "issue_number": 1})
        assert result.isError
        assert result.content[0].text == "No updates provided for issue 1"

    @pytest.mark.anyio
    async def test_update_issue_invalid_state(self, dispatcher):
        result = await dispatcher.call_tool("update_issue", {
            "owner": "octo", "repo": "hello", "issue_number": 1, "state": "merged",
        })
        assert result.isError
        assert "Invalid state: merged" in result.content[0].text

    @pytest.mark.anyio
    async def test_missing_owner(self, dispatcher):
        result = await dispatcher.call_tool("get_issue", {"repo": "hello", "issue_number": 1})
        assert result.isError
        assert result.content[0].text == "missing required parameter: owner"

    @pytest.mark.anyio
    async def test_issue_to_fix_prompt(self, dispatcher):
        result = await dispatcher.get_prompt("IssueToFixWorkflow", {
            "owner": "octo", "repo": "hello", "title": "Crash", "description": "It crashes",
        })
        text = result.messages[0].content.text
        assert "octo/hello" in text
        assert "Crash" in text

        with pytest.raises(ValueError):
            await dispatcher.get_prompt("IssueToFixWorkflow", {"owner": "octo"})


class TestSearchTools:
    """Test the users and orgs toolsets."""

    @pytest.mark.anyio
    @pytest.mark.parametrize("tool_name,prefix", [("search_users", "type:user"), ("search_orgs", "type:org")])
    async def test_account_search(self, dispatcher, github, tool_name, prefix):
        github.routes["GET search/users"] = {
            "total_count": 1,
            "incomplete_results": False,
            "items": [{"login": "octo", "id": 1, "html_url": "https://github.com/octo", "avatar_url": "a", "score": 1.0}],
        }
        result = payload(await dispatcher.call_tool(tool_name, {"query": "octo"}))
        assert github.last.url.params["q"] == f"{prefix} octo"
        assert result["items"] == [{"login": "octo", "id": 1, "profile_url": "https://github.com/octo", "avatar_url": "a"}]


class TestPullRequestAndActionTools:
    """Test the pull_requests and actions toolsets."""

    @pytest.mark.anyio
    async def test_get_pull_request(self, dispatcher, github):
        github.routes["GET repos/octo/hello/pulls/3"] = {"number": 3}
        assert payload(await dispatcher.call_tool("get_pull_request", {"owner": "octo", "repo": "hello", "pullNumber": 3})) == {"number": 3}

    @pytest.mark.anyio
    async def test_run_workflow(self, dispatcher, github):
        github.routes["POST repos/octo/hello/actions/workflows/ci.yml/dispatches"] = (204, None)
        result = payload(await dispatcher.call_tool("run_workflow", {
            "owner": "octo", "repo": "hello", "workflow_id": "ci.yml", "ref": "main",
        }))
        assert result["message"] == "Workflow run has been queued"
        assert github.last_json() == {"ref": "main", "inputs": {}}

    @pytest.mark.anyio
    async def test_cancel_workflow_run(self, dispatcher, github):
        github.routes["POST repos/octo/hello/actions/runs/5/cancel"] = (202, None)
        result = await dispatcher.call_tool("cancel_workflow_run", {"owner": "octo", "repo": "hello", "run_id": 5})
        assert result.content[0].text == "Workflow run 5 has been cancelled"


class TestSecurityTools:
    """Test the code_security, secret_protection, dependabot and security_advisories toolsets."""

    @pytest.mark.parametrize("name", [
        "code_security", "secret_protection", "dependabot", "notifications",
        "discussions", "gists", "security_advisories", "projects",
    ])
    def test_toolset_can_be_enabled_alone(self, client, name):
        group = default_toolset_group(False, client)
        group.enable_toolsets([name])
        dispatcher = Dispatcher()
        group.register_all(dispatcher)

        assert group.is_enabled(name)
        assert dispatcher.list_tools()
        assert {t.name for t in dispatcher.list_tools()} == {
            t.name for t in group.get_toolset(name).get_active_tools()
        }

    @pytest.mark.anyio
    async def test_list_dependabot_alerts(self, dispatcher, github):
        github.routes["GET repos/octo/hello/dependabot/alerts"] = [{"number": 1}]
        result = payload(await dispatcher.call_tool("list_dependabot_alerts", {
            "owner": "octo", "repo": "hello", "state": "open", "severity": "high",
        }))
        assert result == [{"number": 1}]
        assert dict(github.last.url.params) == {"state": "open", "severity": "high", "page": "1", "per_page": "30"}

    @pytest.mark.anyio
    async def test_get_code_scanning_alert(self, dispatcher, github):
        github.routes["GET repos/octo/hello/code-scanning/alerts/7"] = {"number": 7}
        result = payload(await dispatcher.call_tool("get_code_scanning_alert", {
            "owner": "octo", "repo": "hello", "alertNumber": 7,
        }))
        assert result == {"number": 7}

    @pytest.mark.anyio
    async def test_list_global_advisories_maps_query_names(self, dispatcher, github):
        github.routes["GET advisories"] = []
        await dispatcher.call_tool("list_global_security_advisories", {"cveId": "CVE-2024-1", "ecosystem": "pip"})
        assert dict(github.last.url.params) == {"cve_id": "CVE-2024-1", "ecosystem": "pip"}

    @pytest.mark.anyio
    async def test_list_org_advisories(self, dispatcher, github):
        github.routes["GET orgs/acme/security-advisories"] = [{"ghsa_id": "GHSA-1"}]
        result = payload(await dispatcher.call_tool("list_org_repository_security_advisories", {"org": "acme"}))
        assert result == [{"ghsa_id": "GHSA-1"}]


class TestNotificationTools:
    """Test the notifications toolset."""

    @pytest.mark.anyio
    async def test_list_notifications_for_repo(self, dispatcher, github):
        github.routes["GET repos/octo/hello/notifications"] = []
        await dispatcher.call_tool("list_notifications", {
            "owner": "octo", "repo": "hello", "filter": "include_read_notifications",
        })
        assert dict(github.last.url.params) == {"all": "true", "page": "1", "per_page": "30"}

    @pytest.mark.anyio
    @pytest.mark.parametrize("state,method", [("done", "DELETE"), ("read", "PATCH")])
    async def test_dismiss_notification(self, dispatcher, github, state, method):
        github.routes[f"{method} notifications/threads/42"] = (205 if method == "PATCH" else 204, None)
        result = await dispatcher.call_tool("dismiss_notification", {"threadID": "42", "state": state})
        assert result.content[0].text == f"Notification marked as {state}"
        assert github.last.method == method

    @pytest.mark.anyio
    async def test_dismiss_notification_invalid_state(self, dispatcher, github):
        result = await dispatcher.call_tool("dismiss_notification", {"threadID": "42", "state": "gone"})
        assert result.isError
        assert github.requests == []

    @pytest.mark.anyio
    async def test_ignore_thread_subscription(self, dispatcher, github):
        github.routes["PUT notifications/threads/42/subscription"] = {"ignored": True}
        await dispatcher.call_tool("manage_notification_subscription", {"notificationID": "42", "action": "ignore"})
        assert github.last_json() == {"ignored": True}


class TestDiscussionGistAndProjectTools:
    """Test the discussions, gists and projects toolsets."""

    @pytest.mark.anyio
    async def test_list_discussions(self, dispatcher, github):
        github.routes["POST graphql"] = {"data": {"repository": {"discussions": {
            "nodes": [{"number": 1, "title": "Hello"}],
            "pageInfo": {"hasNextPage": False, "endCursor": None},
            "totalCount": 1,
        }}}}
        result = payload(await dispatcher.call_tool("list_discussions", {
            "owner": "octo", "repo": "hello", "category": "DIC_1",
        }))
        assert result["discussions"] == [{"number": 1, "title": "Hello"}]
        assert result["totalCount"] == 1
        assert github.last_json()["variables"] == {
            "owner": "octo", "repo": "hello", "first": 30, "after": None, "categoryId": "DIC_1",
        }

    @pytest.mark.anyio
    async def test_create_gist(self, dispatcher, github):
        github.routes["POST gists"] = (201, {"id": "g1"})
        await dispatcher.call_tool("create_gist", {"filename": "a.py", "content": "print(1)", "description": "demo"})
        assert github.last_json() == {
            "files": {"a.py": {"content": "print(1)"}},
            "public": False,
            "description": "demo",
        }

    @pytest.mark.anyio
    async def test_list_gists_for_user(self, dispatcher, github):
        github.routes["GET users/octocat/gists"] = []
        assert payload(await dispatcher.call_tool("list_gists", {"username": "octocat"})) == []

    @pytest.mark.anyio
    @pytest.mark.parametrize("owner_type,prefix", [("org", "orgs"), ("user", "users")])
    async def test_get_project(self, dispatcher, github, owner_type, prefix):
        github.routes[f"GET {prefix}/acme/projectsV2/3"] = {"number": 3}
        result = payload(await dispatcher.call_tool("get_project", {
            "owner_type": owner_type, "owner": "acme", "project_number": 3,
        }))
        assert result == {"number": 3}

    @pytest.mark.anyio
    async def test_project_owner_type_checked(self, dispatcher, github):
        result = await dispatcher.call_tool("list_projects", {"owner_type": "team", "owner": "acme"})
        assert result.isError
        assert result.content[0].text == "owner_type must be either 'user' or 'org'"
