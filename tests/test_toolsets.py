"""
Tests for the toolset registry
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mcp.types import Prompt, ResourceTemplate, Tool

from github_mcp.dispatch import Dispatcher
from github_mcp.errors import MisannotatedToolError, ToolsetDoesNotExistError
from github_mcp.tools.helpers import read_annotations, text_result, write_annotations
from github_mcp.toolsets import ServerPrompt, ServerResourceTemplate, ServerTool, Toolset, ToolsetGroup


def make_tool(name: str, read_only: bool = True, annotated: bool = True) -> ServerTool:
    async def handler(arguments):
        return text_result(name)

    annotations = None
    if annotated:
        annotations = read_annotations(name) if read_only else write_annotations(name)
    return ServerTool(Tool(name=name, inputSchema={"type": "object"}, annotations=annotations), handler)


def names(tools) -> list[str]:
    return [t.name for t in tools]


def repos_and_issues(read_only: bool) -> ToolsetGroup:
    """repos: 3 read / 2 write, issues: 2 read / 1 write."""
    group = ToolsetGroup(read_only)
    group.add_toolset(
        Toolset("repos", "Repositories")
        .add_read_tools(make_tool("r1"), make_tool("r2"), make_tool("r3"))
        .add_write_tools(make_tool("w1", False), make_tool("w2", False))
    )
    group.add_toolset(
        Toolset("issues", "Issues")
        .add_read_tools(make_tool("i1"), make_tool("i2"))
        .add_write_tools(make_tool("iw1", False))
    )
    return group


class TestToolset:
    """Test a single toolset."""

    def test_installed_mcp_has_read_only_hint(self):
        from mcp.types import ToolAnnotations

        assert "readOnlyHint" in ToolAnnotations.model_fields

    def test_new_toolset_is_disabled_and_empty(self):
        toolset = Toolset("repos", "Repositories")
        assert toolset.enabled is False
        assert toolset.read_only is False
        assert toolset.get_available_tools() == []
        assert toolset.get_active_tools() == []

    def test_builders_chain(self):
        toolset = Toolset("repos", "Repositories")
        assert toolset.add_read_tools(make_tool("a")) is toolset
        assert toolset.add_write_tools(make_tool("b", False)) is toolset

    def test_read_collection_rejects_write_tool(self):
        toolset = Toolset("repos", "Repositories")
        with pytest.raises(MisannotatedToolError) as exc:
            toolset.add_read_tools(make_tool("ok"), make_tool("delete_repo", read_only=False))
        assert exc.value.tool_name == "delete_repo"
        assert "delete_repo" in str(exc.value)
        assert toolset.get_available_tools() == []

    def test_write_collection_rejects_read_tool(self):
        toolset = Toolset("repos", "Repositories")
        with pytest.raises(MisannotatedToolError) as exc:
            toolset.add_write_tools(make_tool("get_repo"))
        assert exc.value.tool_name == "get_repo"

    def test_unannotated_tool_counts_as_write(self):
        toolset = Toolset("repos", "Repositories")
        with pytest.raises(MisannotatedToolError):
            toolset.add_read_tools(make_tool("bare", annotated=False))
        toolset.add_write_tools(make_tool("bare", annotated=False))
        assert names(toolset.get_available_tools()) == ["bare"]

    def test_reads_listed_before_writes(self):
        toolset = (
            Toolset("repos", "Repositories")
            .add_write_tools(make_tool("w1", False))
            .add_read_tools(make_tool("r1"), make_tool("r2"))
            .add_write_tools(make_tool("w2", False))
        )
        toolset.enabled = True
        assert names(toolset.get_active_tools()) == ["r1", "r2", "w1", "w2"]

    def test_write_tools_dropped_once_read_only(self):
        toolset = Toolset("repos", "Repositories")
        toolset.set_read_only()
        toolset.add_read_tools(make_tool("r1")).add_write_tools(make_tool("w1", False))
        toolset.enabled = True
        assert names(toolset.get_active_tools()) == ["r1"]

    def test_read_only_after_writes_hides_them(self):
        toolset = Toolset("repos", "Repositories").add_read_tools(make_tool("r1")).add_write_tools(make_tool("w1", False))
        toolset.set_read_only()
        toolset.enabled = True
        assert names(toolset.get_available_tools()) == ["r1"]

        dispatcher = Dispatcher()
        toolset.register_tools(dispatcher)
        assert names(dispatcher.list_tools()) == ["r1"]

    def test_disabled_toolset_registers_nothing(self):
        toolset = (
            Toolset("repos", "Repositories")
            .add_read_tools(make_tool("r1"))
            .add_resource_templates(ServerResourceTemplate(ResourceTemplate(uriTemplate="repo://{owner}", name="r"), None))
            .add_prompts(ServerPrompt(Prompt(name="p"), None))
        )
        dispatcher = Dispatcher()
        toolset.register(dispatcher)
        assert dispatcher.list_tools() == []
        assert dispatcher.list_resource_templates() == []
        assert dispatcher.list_prompts() == []
        assert dispatcher.revision == 0

    def test_enabled_toolset_registers_everything(self):
        toolset = (
            Toolset("repos", "Repositories")
            .add_read_tools(make_tool("r1"))
            .add_write_tools(make_tool("w1", False))
            .add_resource_templates(ServerResourceTemplate(ResourceTemplate(uriTemplate="repo://{owner}", name="r"), None))
            .add_prompts(ServerPrompt(Prompt(name="p"), None))
        )
        toolset.enabled = True
        dispatcher = Dispatcher()
        toolset.register(dispatcher)
        assert names(dispatcher.list_tools()) == ["r1", "w1"]
        assert [t.uriTemplate for t in dispatcher.list_resource_templates()] == ["repo://{owner}"]
        assert names(dispatcher.list_prompts()) == ["p"]

    def test_active_resources_and_prompts_follow_enabled(self):
        toolset = Toolset("issues", "Issues").add_prompts(ServerPrompt(Prompt(name="p"), None))
        assert toolset.get_active_prompts() == []
        assert len(toolset.get_available_prompts()) == 1
        toolset.enabled = True
        assert len(toolset.get_active_prompts()) == 1


class TestToolsetGroup:
    """Test enablement and the read-only policy across the group."""

    def test_read_only_group_forces_toolsets_read_only(self):
        group = repos_and_issues(read_only=True)
        for toolset in group.toolsets.values():
            assert toolset.read_only is True
            toolset.enabled = True
            assert all(t.read_only for t in toolset.get_active_tools())

    def test_read_only_scenario(self):
        group = repos_and_issues(read_only=True)
        group.enable_toolsets(["repos"])

        assert names(group.get_toolset("repos").get_active_tools()) == ["r1", "r2", "r3"]
        assert group.is_enabled("issues") is False
        assert group.get_toolset("issues").get_active_tools() == []

    def test_all_enables_reads_then_writes(self):
        group = repos_and_issues(read_only=False)
        group.enable_toolsets(["all"])

        assert group.everything_on is True
        assert names(group.get_toolset("repos").get_active_tools()) == ["r1", "r2", "r3", "w1", "w2"]
        assert names(group.get_toolset("issues").get_active_tools()) == ["i1", "i2", "iw1"]

    def test_toolset_added_after_all_is_enabled(self):
        group = repos_and_issues(read_only=False)
        group.enable_toolsets(["all"])
        group.add_toolset(Toolset("gists", "Gists").add_read_tools(make_tool("g1")))

        assert group.get_toolset("gists").enabled is True
        dispatcher = Dispatcher()
        group.register_all(dispatcher)
        assert dispatcher.has_tool("g1")

    @pytest.mark.parametrize("order", [["all", "issues"], ["issues", "all"]])
    def test_all_is_order_independent(self, order):
        group = repos_and_issues(read_only=False)
        group.enable_toolsets(order)

        assert group.everything_on is True
        assert all(t.enabled for t in group.toolsets.values())
        assert group.enabled_toolset_names() == ["repos", "issues"]

    def test_unknown_toolset_does_not_mutate(self):
        group = repos_and_issues(read_only=False)
        with pytest.raises(ToolsetDoesNotExistError) as exc:
            group.enable_toolset("nonexistent")

        assert exc.value.name == "nonexistent"
        assert str(exc.value) == "toolset nonexistent does not exist"
        assert sorted(group.toolsets) == ["issues", "repos"]
        assert not any(t.enabled for t in group.toolsets.values())
        assert group.everything_on is False

    def test_unknown_name_aborts_enable_toolsets(self):
        group = repos_and_issues(read_only=False)
        with pytest.raises(ToolsetDoesNotExistError):
            group.enable_toolsets(["all", "nonexistent"])
        # The error stops the all-on sweep
        assert group.get_toolset("repos").enabled is False

    def test_enable_is_idempotent(self):
        group = repos_and_issues(read_only=False)
        group.enable_toolset("repos")
        once = {name: t.enabled for name, t in group.toolsets.items()}
        group.enable_toolset("repos")
        assert {name: t.enabled for name, t in group.toolsets.items()} == once
        assert group.everything_on is False

    def test_is_enabled_unknown_name(self):
        group = repos_and_issues(read_only=False)
        assert group.is_enabled("nonexistent") is False
        group.enable_toolsets(["all"])
        assert group.is_enabled("nonexistent") is True

    def test_get_toolset_unknown(self):
        with pytest.raises(ToolsetDoesNotExistError):
            ToolsetGroup().get_toolset("nope")

    def test_register_all_only_registers_enabled(self):
        group = repos_and_issues(read_only=False)
        group.enable_toolsets(["issues"])
        dispatcher = Dispatcher()
        group.register_all(dispatcher)
        assert names(dispatcher.list_tools()) == ["i1", "i2", "iw1"]

    def test_empty_enable_list(self):
        group = repos_and_issues(read_only=False)
        group.enable_toolsets([])
        assert group.enabled_toolset_names() == []
