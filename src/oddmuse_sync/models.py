"""Pydantic models for the sync core.

Defines the data contracts shared by the client, the engine and the
MCP tools:

- ``PageKey``: (wiki, page) identifier.
- ``PostMeta``: Form fields sent with a post or preview.
- ``FeedItem``: One record of a recent-changes, search or history feed.
- ``LoadResult`` / ``PostResult``: Outcomes of engine transitions.
- ``SessionState``: States of an edit session.

All models are frozen (immutable).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

NEW_REVISION = "new"


def to_wire(page: str) -> str:
    """Page name as the server expects it: spaces become underscores."""
    return page.replace(" ", "_")


def from_wire(page: str) -> str:
    """Page name as the server reports it, with underscores as spaces."""
    return page.replace("_", " ")


class PageKey(BaseModel):
    """Composite identifier of a page on a wiki. Case-sensitive."""

    wiki: str
    page: str

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.wiki}:{self.page}"


class PostMeta(BaseModel):
    """Metadata sent along with a post or preview.

    Attributes:
        summary: Change summary shown in recent changes.
        username: Author name; ``None`` uses the configured default.
        password: Administrator or editor password, for locked pages.
        minor: Mark the change as a minor edit.
        oldtime: Timestamp of the version the edit started from.
    """

    summary: str = ""
    username: str | None = None
    password: str | None = None
    minor: bool = False
    oldtime: str | None = None

    model_config = {"frozen": True}


class FeedItem(BaseModel):
    """One record of a feed.

    Attributes:
        title: Page name, with underscores turned into spaces.
        revision: Revision number, if the feed carries one.
        generator: Author of the change.
        last_modified: Timestamp of the change as sent by the server.
        description: Change summary or search snippet.
        minor: Whether the change was a minor edit.
        link: URL of the page or revision.
    """

    title: str
    revision: str | None = None
    generator: str | None = None
    last_modified: str | None = None
    description: str | None = None
    minor: bool = False
    link: str | None = None

    model_config = {"frozen": True}


class LoadResult(BaseModel):
    """Content and baseline revision of a freshly loaded page."""

    key: PageKey
    content: str
    revision: str

    model_config = {"frozen": True}

    @property
    def is_new(self) -> bool:
        return self.revision == NEW_REVISION


class PostResult(BaseModel):
    """Outcome of a successful post."""

    key: PageKey
    status: str
    revision: str

    model_config = {"frozen": True}


class SessionState(str, Enum):
    """States of an edit session."""

    UNLOADED = "unloaded"
    LOADED = "loaded"
    MODIFIED = "modified"
    POSTED = "posted"
    PREVIEWING = "previewing"
