"""Error types shared by the toolset registry and the tool handlers."""


class ToolsetDoesNotExistError(LookupError):
    """Raised when a toolset name is not registered in the group."""

    def __init__(self, name: str):
        super().__init__(f"toolset {name} does not exist")
        self.name = name


class MisannotatedToolError(RuntimeError):
    """A tool was added to the wrong collection for its readOnlyHint.

    This is a programming error in a toolset module and must stop startup.
    """

    def __init__(self, tool_name: str, message: str):
        super().__init__(message)
        self.tool_name = tool_name


class ToolError(Exception):
    """A failure that should be reported back to the caller as a tool error."""


class ParamError(ToolError):
    """A tool argument is missing or has the wrong type."""
