"""
GitHub MCP Server

Exposes the GitHub API to MCP clients as toolsets that can be enabled at
startup or discovered and enabled by the agent at run time.
"""

__version__ = "0.1.0"

from .server import main, run, create_server

__all__ = ["main", "run", "create_server"]
