"""MCP Server for Oddmuse wikis using stdio transport.

This module implements the Model Context Protocol server that lets AI
agents load, edit, preview and post Oddmuse wiki pages.

Transport: stdio (for Claude Desktop/Code integration)
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
import yaml
from dotenv import load_dotenv
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..config import resolve_debug
from ..config_loader import (
    discover_config_files,
    ensure_config,
    load_hierarchical_config,
)
from ..config_schema import LoggingSection, build_config
from ..logger import DEFAULT_LOG_FILE, setup_logging
from ..sync.engine import SyncEngine
from .lifespan import server_lifespan
from .tools import ALL_SPECS, ToolRegistry, build_error_response

logger = logging.getLogger(__name__)

# Initialize server instance
server = Server("oddmuse-mcp")

# Global engine instance (initialized in lifespan)
_engine: SyncEngine | None = None

# Global registry instance (initialized in main)
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_engine() -> SyncEngine:
    """Get the global SyncEngine instance.

    Raises:
        RuntimeError: If engine is not initialized
    """
    if _engine is None:
        raise RuntimeError(
            "SyncEngine not initialized. Server lifespan not started."
        )
    return _engine


def set_engine(engine: SyncEngine | None) -> None:
    """Set the global SyncEngine instance, or None to clear."""
    global _engine
    _engine = engine


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    """Set the global ToolRegistry instance, or None to clear."""
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List available wiki tools."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Dispatch to the registry; unknown names become an unknown_tool error."""
    engine = get_engine()
    try:
        return await get_registry().call_tool(name, arguments, engine)
    except ValueError as e:
        # Unknown or filtered-out tool name
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


def _file_settings() -> tuple[LoggingSection, dict]:
    """Logging section and ``oddmuse`` values from the config file.

    Defaults if there is no file or it is unreadable. An invalid file is
    reported by the lifespan, which fails the startup.
    """
    if not discover_config_files():
        return LoggingSection(), {}
    try:
        unified = build_config(load_hierarchical_config())
    except (ValueError, OSError, yaml.YAMLError):
        return LoggingSection(), {}
    return unified.logging, unified.oddmuse.model_dump(exclude_none=True)


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    This function sets up logging for MCP mode (file only, never stdout),
    builds the sync engine via the lifespan manager, and starts the server
    with stdio transport for JSON-RPC communication.

    Args:
        config_overrides: Optional dict with config values to override
            (directory, username, password, log_file, read_only, debug)
    """
    overrides = config_overrides or {}
    # .env may set ODDMUSE_DEBUG
    load_dotenv()
    section, fallbacks = _file_settings()

    # CRITICAL: must run BEFORE stdio_server so nothing reaches stdout
    setup_logging(
        mode="mcp",
        log_file=overrides.get("log_file") or section.file,
        level=section.level,
        debug=resolve_debug(overrides.get("debug", False), fallbacks),
    )

    read_only = overrides.get("read_only", False)
    registry = ToolRegistry(ALL_SPECS, read_only=read_only)
    logger.info(
        "Registered %d tools (of %d total)",
        registry.tool_count(),
        len(ALL_SPECS),
    )
    if read_only:
        print(
            f"Read-only mode ({registry.tool_count()} of {len(ALL_SPECS)} tools enabled)",
            file=sys.stderr,
        )

    set_registry(registry)

    # set_engine() is called here rather than in the lifespan so that
    # running via `python -m` does not install it on a second copy of
    # this module.
    async with server_lifespan(config_overrides=config_overrides) as ctx:
        set_engine(ctx["engine"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="oddmuse-mcp",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(read_stream, write_stream, init_options)
        finally:
            set_engine(None)
            set_registry(None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oddmuse-mcp",
        description="Oddmuse MCP Server - edit Oddmuse wiki pages over the Model Context Protocol",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (.oddmuse/config.yml, .env)
  oddmuse-mcp

  # Keep local page files somewhere else
  oddmuse-mcp --directory ~/wiki-pages

  # Never save anything
  oddmuse-mcp --read-only

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr. Do not pipe stdin/stdout manually.
        """,
    )
    parser.add_argument(
        "--directory",
        help="Root directory for local page files (takes precedence over ODDMUSE_DIRECTORY and config files)",
    )
    parser.add_argument(
        "--username",
        help="Default username for posts (takes precedence over ODDMUSE_USERNAME and config files)",
    )
    parser.add_argument(
        "--password",
        help="Password for locked pages"
        " (visible in process list -- prefer ODDMUSE_PASSWORD env var for security)",
    )
    parser.add_argument(
        "--log-file",
        help=f"Log file path (default: {DEFAULT_LOG_FILE})",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log at DEBUG level (same as ODDMUSE_DEBUG=true)",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Disable wiki_post and wiki_preview",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write a starter .oddmuse/config.yml if no config file exists, then exit",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"oddmuse-mcp version {__version__}",
    )
    return parser


# argparse dest -> server_lifespan / main override key
OVERRIDE_OPTIONS = (
    "directory",
    "username",
    "password",
    "log_file",
    "read_only",
    "debug",
)


def overrides_from_args(args: argparse.Namespace) -> dict:
    """Options given on the command line, unset ones left out."""
    return {
        name: getattr(args, name)
        for name in OVERRIDE_OPTIONS
        if getattr(args, name)
    }


def run() -> None:
    """Console entry point: parse arguments and serve until stdin closes."""
    args = build_parser().parse_args()

    if args.init_config:
        path = ensure_config()
        print(f"Config file: {path}", file=sys.stderr)
        return

    config_overrides = overrides_from_args(args)
    shown = [name for name in config_overrides if name != "password"]
    if shown:
        print(f"Config overrides from CLI: {', '.join(shown)}", file=sys.stderr)

    try:
        asyncio.run(main(config_overrides=config_overrides or None))
    except RuntimeError:
        # lifespan already reported the configuration error
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
