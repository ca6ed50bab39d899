"""Lifespan management for MCP server startup and shutdown."""

import logging
import shutil
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from ..config import load_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..config_schema import UnifiedConfig, build_config, to_wiki_configs
from ..core.async_utils import reset_key_locks
from ..core.client import WikiClient
from ..core.commands import CommandSet
from ..core.transport import ShellTransport
from ..file_handler import LocalStore
from ..registry import WikiRegistry
from ..sync.engine import SyncEngine
from ..sync.state import SyncContext

logger = logging.getLogger(__name__)

REVISIONS_FILE = ".revisions.json"


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


def _missing_programs(commands: CommandSet) -> list[str]:
    """Programs named by the command templates that are not on PATH."""
    missing = set()
    for template in commands.templates():
        program = template.template.split()[0]
        if shutil.which(program) is None:
            missing.add(program)
    return sorted(missing)


def revisions_path(root: Path) -> Path:
    """Where revisions are kept between server runs."""
    return root / REVISIONS_FILE


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env file (so values are available for env var lookups and YAML interpolation)
    - Load YAML config file if present (global fallbacks, wikis, command templates)
    - Merge all sources via load_config(): CLI > env vars > .env > YAML > defaults
    - Build registry, client, context and engine
    - Restore revisions recorded by the previous run
    - Fail fast if the configuration or the saved revisions are unreadable

    On shutdown:
    - Save revisions next to the local page files

    Args:
        config_overrides: Optional dict with config values from CLI (directory, username, password)

    Yields:
        Dict with 'engine' key containing the initialized SyncEngine

    Raises:
        RuntimeError: If configuration is invalid or the revisions file
            cannot be read.
    """
    logger.info("MCP server starting...")
    _stderr_print("Oddmuse MCP Server starting...")

    try:
        # 1. Load .env early (before YAML, so ${VAR} interpolation can use .env values)
        load_dotenv()

        # 2. Load YAML config if present
        unified = UnifiedConfig()
        yaml_fallbacks: dict[str, Any] | None = None
        sources = []

        config_files = discover_config_files()
        if config_files:
            unified = build_config(load_hierarchical_config())
            yaml_fallbacks = {
                k: v
                for k, v in unified.oddmuse.model_dump().items()
                if v is not None
            }
            sources.append(f"config file: {config_files[0]}")

        # 3. Single call to load_config with all sources merged
        overrides = config_overrides or {}
        config = load_config(
            directory=overrides.get("directory"),
            username=overrides.get("username"),
            password=overrides.get("password"),
            debug=overrides.get("debug", False),
            yaml_fallbacks=yaml_fallbacks,
            wikis=to_wiki_configs(unified),
        )
        commands = CommandSet.from_overrides(unified.commands.overrides())

        if overrides:
            sources.append("CLI arguments")
        sources.append("environment variables")
        source_desc = ", ".join(sources)
        logger.info("Configuration loaded from: %s", source_desc)
        _stderr_print(f"  Configuration loaded from: {source_desc}")
    except (ValueError, OSError, yaml.YAMLError) as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print(
            "  Check the 'wikis' and 'commands' sections of .oddmuse/config.yml."
        )
        raise RuntimeError(f"Configuration error: {e}") from e

    missing = _missing_programs(commands)
    if missing:
        logger.warning("Programs not found on PATH: %s", ", ".join(missing))
        _stderr_print(
            f"  Warning: not found on PATH: {', '.join(missing)}"
        )

    registry = WikiRegistry.from_config(config)
    client = WikiClient(
        commands,
        ShellTransport(timeout=config.timeout),
        username=config.username,
        password=config.password,
    )
    context = SyncContext()
    state_file = revisions_path(config.root)
    try:
        restored = context.revisions.load(state_file)
    except (ValueError, OSError) as e:
        logger.error("Cannot restore revisions from %s: %s", state_file, e)
        _stderr_print(f"ERROR: Cannot restore revisions from {state_file}: {e}")
        _stderr_print(
            "  Repair or delete the file; pages then need wiki_get before wiki_post."
        )
        raise RuntimeError(f"Cannot restore revisions from {state_file}: {e}") from e
    engine = SyncEngine(registry, client, LocalStore(config.root), context)

    logger.info(
        "Wikis: %s; local directory: %s; %d revisions restored",
        ", ".join(registry.names()) or "(none)",
        config.root,
        restored,
    )
    _stderr_print(f"  Wikis: {', '.join(registry.names()) or '(none)'}")
    _stderr_print(f"  Local directory: {config.root}")
    _stderr_print("Server ready. Waiting for MCP client connection...")

    try:
        yield {"engine": engine}
    finally:
        logger.info("MCP server shutting down")
        context.revisions.save(state_file)
        reset_key_locks()
        _stderr_print("Oddmuse MCP Server shutting down.")
