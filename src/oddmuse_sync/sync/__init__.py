"""Wiki synchronization core.

Public API for loading Oddmuse pages, editing them locally and posting
them back with the revision they were loaded at.

Modules:

- ``engine``   -- ``SyncEngine``: load, post, preview, reload, listings.
- ``session``  -- ``EditSession``: per-page state machine over the engine.
- ``state``    -- ``RevisionStore``, ``PageIndexCache``, ``SyncContext``.
- ``feed``     -- ``parse_feed``: Oddmuse raw feed format -> ``FeedItem``.
- ``listing``  -- ``RemoteListing``: recent changes, search and match.

Usage example
-------------
::

    from pathlib import Path
    from oddmuse_sync.config import WikiConfig
    from oddmuse_sync.core import CommandSet, ShellTransport, WikiClient
    from oddmuse_sync.file_handler import LocalStore
    from oddmuse_sync.models import PostMeta
    from oddmuse_sync.registry import WikiRegistry
    from oddmuse_sync.sync import EditSession, SyncEngine

    registry = WikiRegistry(
        [WikiConfig(name="Alex", url="https://alexschroeder.ch/wiki")]
    )
    engine = SyncEngine(
        registry=registry,
        client=WikiClient(CommandSet.from_overrides(), ShellTransport()),
        store=LocalStore(Path("~/oddmuse").expanduser()),
    )

    session = EditSession(engine, "Alex", "Contact")
    session.load()
    session.edit(session.content + "\\nNew phone number.\\n")
    session.post(PostMeta(summary="phone", minor=True))
"""

from .engine import SyncEngine
from .feed import parse_feed
from .listing import RemoteListing
from .session import EditSession
from .state import PageIndexCache, RevisionStore, SyncContext

__all__ = [
    "EditSession",
    "PageIndexCache",
    "RemoteListing",
    "RevisionStore",
    "SyncContext",
    "SyncEngine",
    "parse_feed",
]
