"""Shared utilities for all toolset modules: argument access, pagination, results."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from mcp.types import CallToolResult, TextContent, ToolAnnotations

from ..errors import ParamError

logger = logging.getLogger("github-mcp-server")

_MISSING = object()


def read_annotations(title: str) -> ToolAnnotations:
    return ToolAnnotations(title=title, readOnlyHint=True)


def write_annotations(title: str, destructive: bool = False) -> ToolAnnotations:
    return ToolAnnotations(title=title, readOnlyHint=False, destructiveHint=destructive)


def _type_name(expected: type | tuple) -> str:
    if isinstance(expected, tuple):
        return " or ".join(t.__name__ for t in expected)
    return expected.__name__


def _is_instance(value: Any, expected: type | tuple) -> bool:
    types = expected if isinstance(expected, tuple) else (expected,)
    # bool is an int subclass; it only counts where bool is asked for
    if isinstance(value, bool) and bool not in types:
        return False
    return isinstance(value, types)


def required_param(arguments: dict, name: str, expected: type | tuple = str) -> Any:
    """Fetch a required argument.

    Raises ParamError if it is absent, of the wrong type, or a zero value.
    """
    value = arguments.get(name, _MISSING)
    if value is _MISSING or value is None:
        raise ParamError(f"missing required parameter: {name}")
    if not _is_instance(value, expected):
        raise ParamError(f"parameter {name} is not of type {_type_name(expected)}")
    if not value:
        raise ParamError(f"missing required parameter: {name}")
    return value


def required_int(arguments: dict, name: str) -> int:
    return int(required_param(arguments, name, (int, float)))


def optional_param(arguments: dict, name: str, expected: type | tuple = str, default: Any = None) -> Any:
    """Fetch an optional argument, returning ``default`` when absent."""
    value = arguments.get(name)
    if value is None:
        return default
    if not _is_instance(value, expected):
        raise ParamError(f"parameter {name} is not of type {_type_name(expected)}, is {type(value).__name__}")
    return value


def optional_int_param_with_default(arguments: dict, name: str, default: int) -> int:
    value = optional_param(arguments, name, (int, float))
    if not value:
        return default
    return int(value)


def optional_string_array_param(arguments: dict, name: str) -> list[str]:
    value = arguments.get(name)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ParamError(f"parameter {name} could not be coerced to a list of strings, is {type(value).__name__}")
    for item in value:
        if not isinstance(item, str):
            raise ParamError(f"parameter {name} is not of type string, is {type(item).__name__}")
    return value


# =============================================================================
# Pagination
# =============================================================================

PAGINATION_PROPERTIES = {
    "page": {"type": "number", "description": "Page number for pagination (min 1)", "minimum": 1},
    "perPage": {
        "type": "number",
        "description": "Results per page for pagination (min 1, max 100)",
        "minimum": 1,
        "maximum": 100,
    },
}


def with_pagination(properties: dict) -> dict:
    """Return the tool's input properties with page/perPage added."""
    return {**properties, **PAGINATION_PROPERTIES}


@dataclass
class PaginationParams:
    page: int = 1
    per_page: int = 30

    def as_query(self) -> dict:
        return {"page": self.page, "per_page": self.per_page}


def optional_pagination_params(arguments: dict) -> PaginationParams:
    return PaginationParams(
        page=optional_int_param_with_default(arguments, "page", 1),
        per_page=optional_int_param_with_default(arguments, "perPage", 30),
    )


# =============================================================================
# Results
# =============================================================================

def text_result(text: str) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)])


def tool_error(text: str) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=True)


def marshalled_text_result(value: Any, indent: Optional[int] = None) -> CallToolResult:
    """Serialize ``value`` to JSON text. Serialization failures become an error result."""
    try:
        text = json.dumps(value, indent=indent)
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to marshal tool result: {e}")
        return tool_error(f"failed to marshal text result to json: {e}")
    return text_result(text)
