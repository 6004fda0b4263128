"""Configuration for the GitHub MCP Server.

Values come from command-line flags first, then environment variables
(a local .env file is loaded into the environment), then defaults.
"""

import argparse
import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from . import __version__
from .tools import DEFAULT_TOOLSETS

logger = logging.getLogger("github-mcp-server")

TRUTHY = ("1", "true", "yes", "on")


class ConfigError(ValueError):
    """The server cannot start with the given configuration."""


@dataclass
class ServerConfig:
    token: str
    host: Optional[str] = None
    version: str = __version__
    enabled_toolsets: list[str] = field(default_factory=lambda: list(DEFAULT_TOOLSETS))
    dynamic_toolsets: bool = False
    read_only: bool = False
    log_file_path: Optional[str] = None
    enable_command_logging: bool = False
    http_host: str = "0.0.0.0"
    http_port: int = 8000

    def startup_toolsets(self) -> list[str]:
        """Toolsets to enable at startup.

        With dynamic toolsets the agent enables what it needs, so "all" is dropped.
        """
        if self.dynamic_toolsets:
            return [name for name in self.enabled_toolsets if name != "all"]
        return list(self.enabled_toolsets)


def env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in TRUTHY


def parse_toolsets(value: Optional[str]) -> list[str]:
    if not value:
        return list(DEFAULT_TOOLSETS)
    names = [name.strip() for name in value.split(",") if name.strip()]
    return names or list(DEFAULT_TOOLSETS)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="github-mcp-server",
        description="A GitHub MCP server that handles various tools and resources.",
    )
    parser.add_argument("--token", help="GitHub personal access token (env: GITHUB_PERSONAL_ACCESS_TOKEN)")
    parser.add_argument("--gh-host", dest="gh_host", help="GitHub hostname, e.g. https://github.example.com (env: GITHUB_HOST)")
    parser.add_argument("--toolsets", help="Comma separated list of toolsets to enable, or 'all' (env: GITHUB_TOOLSETS)")
    parser.add_argument("--dynamic-toolsets", action="store_true", default=None, help="Let the agent enable toolsets at run time")
    parser.add_argument("--read-only", action="store_true", default=None, help="Restrict the server to read-only operations")
    parser.add_argument("--log-file", dest="log_file", help="Path to log file (defaults to stderr)")
    parser.add_argument("--enable-command-logging", action="store_true", default=None, help="Log every stdio message")
    parser.add_argument("--host", dest="http_host", help="Bind address for the HTTP transport (env: HOST)")
    parser.add_argument("--port", dest="http_port", type=int, help="Port for the HTTP transport (env: PORT)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_config(argv: Optional[list[str]] = None) -> ServerConfig:
    """Build the server configuration.

    Raises:
        ConfigError: If no GitHub token is configured or a value is invalid.
    """
    load_dotenv()
    args = build_parser().parse_args(argv)

    token = args.token or os.environ.get("GITHUB_PERSONAL_ACCESS_TOKEN", "")
    if not token.strip():
        raise ConfigError("GITHUB_PERSONAL_ACCESS_TOKEN not set")

    def flag(value: Optional[bool], env_name: str) -> bool:
        return value if value is not None else env_bool(env_name)

    try:
        http_port = args.http_port if args.http_port is not None else int(os.environ.get("PORT", "8000"))
    except ValueError as e:
        raise ConfigError(f"Invalid PORT: {os.environ.get('PORT')}") from e

    config = ServerConfig(
        token=token.strip(),
        host=args.gh_host or os.environ.get("GITHUB_HOST") or None,
        enabled_toolsets=parse_toolsets(args.toolsets or os.environ.get("GITHUB_TOOLSETS")),
        dynamic_toolsets=flag(args.dynamic_toolsets, "GITHUB_DYNAMIC_TOOLSETS"),
        read_only=flag(args.read_only, "GITHUB_READ_ONLY"),
        log_file_path=args.log_file or os.environ.get("GITHUB_LOG_FILE") or None,
        enable_command_logging=flag(args.enable_command_logging, "GITHUB_ENABLE_COMMAND_LOGGING"),
        http_host=args.http_host or os.environ.get("HOST", "0.0.0.0"),
        http_port=http_port,
    )
    logger.debug(
        f"Config loaded: toolsets={config.enabled_toolsets} dynamic={config.dynamic_toolsets} "
        f"read_only={config.read_only} host={config.host or 'github.com'}"
    )
    return config
