"""Unified configuration schema for oddmuse_sync.

Defines Pydantic models for the YAML config structure with dedicated
sections for global settings, wikis, command templates and logging,
plus adapters producing the runtime ``Config`` and ``WikiConfig``
dataclasses.

Usage:
    from oddmuse_sync.config_schema import build_config, to_wiki_configs

    raw = load_hierarchical_config()
    unified = build_config(raw)
    wikis = to_wiki_configs(unified)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from .config import WikiConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class OddmuseSection(BaseModel):
    """Global settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    directory: str | None = Field(
        default=None, description="Root directory for local page files"
    )
    username: str | None = Field(
        default=None, description="Default username for posts"
    )
    password: str | None = Field(
        default=None, description="Password for locked pages"
    )
    timeout: int = Field(
        default=60,
        ge=1,
        le=3600,
        description="Seconds to wait for one HTTP command (1-3600)",
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


class WikiSection(BaseModel):
    """Connection settings for one wiki, keyed by name in ``wikis``."""

    url: str = Field(description="Script URL of the wiki")
    encoding: str = Field(
        default="utf-8", description="Character encoding of the wiki"
    )
    question: str = Field(
        default="question",
        description="Anti-spam form field name expected by the wiki",
    )
    username: str | None = Field(
        default=None, description="Default username for this wiki"
    )

    model_config = {"frozen": True}


class CommandsSection(BaseModel):
    """Command template overrides.

    ``None`` keeps the built-in curl template for that command. Templates
    use named placeholders such as ``{url}`` and ``{page}``.
    """

    get: str | None = None
    history: str | None = None
    post: str | None = None
    preview: str | None = None
    rc: str | None = None
    search: str | None = None
    match: str | None = None
    index: str | None = None

    model_config = {"frozen": True}

    def overrides(self) -> dict[str, str]:
        """Return only the templates that were set."""
        return {
            name: value
            for name, value in self.model_dump().items()
            if value is not None
        }


class LoggingSection(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    oddmuse: OddmuseSection = Field(default_factory=OddmuseSection)
    wikis: dict[str, WikiSection] = Field(default_factory=dict)
    commands: CommandsSection = Field(default_factory=CommandsSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully; anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_wiki_configs(unified: UnifiedConfig) -> list[WikiConfig]:
    """Convert the ``wikis`` section into ``WikiConfig`` dataclasses.

    Entries are returned in file order. Validation happens later in
    ``validate_config()``.
    """
    # Import here to avoid circular imports
    from .config import WikiConfig

    return [
        WikiConfig(
            name=name,
            url=section.url.strip(),
            encoding=section.encoding,
            question=section.question,
            username=section.username,
        )
        for name, section in unified.wikis.items()
    ]
