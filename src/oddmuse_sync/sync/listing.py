"""Read-only remote listings: recent changes, search results, matches.

The three listings differ only in how they fetch, how they parse and what
a refresh does first, so they are one ``RemoteListing`` class with three
configurations rather than three classes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ..core.client import parse_page_list
from .feed import parse_feed

if TYPE_CHECKING:
    from .engine import SyncEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RemoteListing(Generic[T]):
    """A listing fetched from one wiki.

    Attributes:
        name: Label for logs and error messages.
        fetch: ``fetch(wiki_name, *args) -> raw text``.
        parse: Turns the raw text into items.
        reload: Optional ``reload(wiki_name)`` run by ``refresh()`` before
            fetching again.
    """

    name: str
    fetch: Callable[..., str]
    parse: Callable[[str], list[T]]
    reload: Callable[[str], Any] | None = None

    def items(self, wiki: str, *args: str) -> list[T]:
        """Fetch and parse the listing."""
        items = self.parse(self.fetch(wiki, *args))
        logger.debug("%s on %s: %d items", self.name, wiki, len(items))
        return items

    def refresh(self, wiki: str, *args: str) -> list[T]:
        """Run the reload action, then fetch and parse again."""
        if self.reload is not None:
            self.reload(wiki)
        return self.items(wiki, *args)


def recent_changes_listing(engine: SyncEngine) -> RemoteListing:
    return RemoteListing(
        name="recent changes",
        fetch=lambda wiki: engine.client.fetch_recent_changes(
            engine.registry.lookup(wiki)
        ),
        parse=parse_feed,
    )


def search_listing(engine: SyncEngine) -> RemoteListing:
    return RemoteListing(
        name="search",
        fetch=lambda wiki, pattern: engine.client.search(
            engine.registry.lookup(wiki), pattern
        ),
        parse=parse_feed,
    )


def match_listing(engine: SyncEngine) -> RemoteListing:
    # A match refresh also refreshes completion candidates
    return RemoteListing(
        name="match",
        fetch=lambda wiki, pattern: engine.client.fetch_matches(
            engine.registry.lookup(wiki), pattern
        ),
        parse=parse_page_list,
        reload=engine.reload_page_names,
    )
