"""Sync engine for editing wiki pages locally.

The ``SyncEngine`` runs the transitions of an edit:

1. **load** fetches a page and its history, and records the newest
   revision as the page's baseline (``"new"`` when there is none).
2. **post** sends local content together with that baseline, then
   records the revision the server assigned and adds the page to the
   wiki's page index.
3. **preview** sends the same form as a post but changes nothing.
4. **reload** is load again, unconditionally.

Conflict detection belongs to the server: the engine's only duty is to
send the most recently observed revision and to keep it current. Every
transition either commits all of its state updates or none of them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..config import WikiConfig
from ..core.client import WikiClient
from ..errors import InvariantViolation, PageNotFoundError
from ..file_handler import LocalStore
from ..models import (
    NEW_REVISION,
    FeedItem,
    LoadResult,
    PageKey,
    PostMeta,
    PostResult,
    from_wire,
)
from ..registry import WikiRegistry
from .feed import parse_feed
from .listing import (
    match_listing,
    recent_changes_listing,
    search_listing,
)
from .state import SyncContext

logger = logging.getLogger(__name__)


def _with_oldtime(meta: PostMeta, baseline: str) -> PostMeta:
    """Fill ``oldtime`` from *baseline* unless the caller set one.

    A page that did not exist yet has no old version, so ``new`` is not
    sent as ``oldtime``.
    """
    if meta.oldtime is not None or baseline == NEW_REVISION:
        return meta
    return meta.model_copy(update={"oldtime": baseline})


class SyncEngine:
    """Edit, post and preview pages of the registered wikis.

    Args:
        registry: Configured wikis.
        client: Runs remote operations.
        store: Local page files.
        context: Revision and page-index state; a fresh one by default.
    """

    def __init__(
        self,
        registry: WikiRegistry,
        client: WikiClient,
        store: LocalStore,
        context: SyncContext | None = None,
    ) -> None:
        self.registry = registry
        self.client = client
        self.store = store
        self.context = context or SyncContext()

        self.rc_listing = recent_changes_listing(self)
        self.search_listing = search_listing(self)
        self.match_listing = match_listing(self)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _key(self, wiki_name: str, page: str) -> tuple[WikiConfig, PageKey]:
        """Look up the wiki and key *page* by its space form.

        ``Foo_Bar`` and ``Foo Bar`` name the same page on the server, so
        revisions, the page index and local files all use the space form.
        """
        wiki = self.registry.lookup(wiki_name)
        return wiki, PageKey(wiki=wiki.name, page=from_wire(page))

    def load(self, wiki_name: str, page: str) -> LoadResult:
        """Fetch *page* and record its baseline revision.

        Raises:
            WikiNotFoundError: If the wiki is not configured.
            RemoteError: If fetching the page or its history fails; no
                revision is recorded in that case.
        """
        wiki, key = self._key(wiki_name, page)

        content = self.client.fetch_page(wiki, key.page)
        revision = self._latest_revision(wiki, key.page)

        self.context.revisions.put(key, revision)
        logger.info(
            "Loaded %s at revision %s",
            key,
            revision,
            extra={"wiki": key.wiki, "page": key.page, "revision": revision},
        )
        return LoadResult(key=key, content=content, revision=revision)

    def reload(self, wiki_name: str, page: str) -> LoadResult:
        """Load *page* again, dropping nothing but the old baseline."""
        return self.load(wiki_name, page)

    def checkout(self, wiki_name: str, page: str) -> tuple[LoadResult, Path]:
        """Load *page* and write it to its local file.

        Returns:
            The load result and the path of the local file.
        """
        result = self.load(wiki_name, page)
        path = self.store.write(
            self.registry.lookup(wiki_name), result.key.page, result.content
        )
        return result, path

    def post(
        self, wiki_name: str, page: str, content: str, meta: PostMeta
    ) -> PostResult:
        """Save *content* as the new text of *page*.

        The content is written to the local file first; the transport
        reads the page text from there. Unless *meta* carries its own
        ``oldtime``, the baseline goes out as ``oldtime`` too.

        Raises:
            InvariantViolation: If *page* was never loaded.
            RemoteError: If the server rejects the post (e.g. a locked
                page) or the transport fails. The baseline is not
                advanced, so a retry sends the same one.
        """
        wiki, key = self._key(wiki_name, page)
        baseline = self._require_baseline(key, "post")
        meta = _with_oldtime(meta, baseline)

        path = self.store.write(wiki, key.page, content)
        status = self.client.post(wiki, key.page, path, meta, baseline)
        revision = self._latest_revision(wiki, key.page)

        self.context.revisions.put(key, revision)
        self.context.index.add(wiki.name, key.page)
        logger.info(
            "Posted %s (baseline %s, now revision %s)",
            key,
            baseline,
            revision,
            extra={"wiki": key.wiki, "page": key.page, "revision": revision},
        )
        return PostResult(key=key, status=status, revision=revision)

    def preview(
        self, wiki_name: str, page: str, content: str, meta: PostMeta
    ) -> str:
        """Render *content* as *page* without saving it.

        Never touches the revision store or the page index.

        Returns:
            The rendered HTML.

        Raises:
            InvariantViolation: If *page* was never loaded.
            RemoteError: If the server or the transport reports a failure.
        """
        wiki, key = self._key(wiki_name, page)
        baseline = self._require_baseline(key, "preview")
        meta = _with_oldtime(meta, baseline)

        path = self.store.write(wiki, key.page, content)
        return self.client.preview(wiki, key.page, path, meta, baseline)

    # ------------------------------------------------------------------
    # Revisions
    # ------------------------------------------------------------------

    def baseline(self, wiki_name: str, page: str) -> str | None:
        """Last known revision of *page*, ``None`` if never loaded."""
        return self.context.revisions.get(
            PageKey(wiki=wiki_name, page=from_wire(page))
        )

    def history(self, wiki_name: str, page: str) -> list[FeedItem]:
        """Revisions of *page*, newest first."""
        wiki = self.registry.lookup(wiki_name)
        return parse_feed(self.client.fetch_history(wiki, page))

    def _latest_revision(self, wiki: WikiConfig, page: str) -> str:
        for item in parse_feed(self.client.fetch_history(wiki, page)):
            if item.revision:
                return item.revision
        return NEW_REVISION

    def _require_baseline(self, key: PageKey, action: str) -> str:
        baseline = self.context.revisions.get(key)
        if baseline is None:
            raise InvariantViolation(
                f"Cannot {action} {key}: page was never loaded, so there is "
                "no baseline revision to send"
            )
        return baseline

    # ------------------------------------------------------------------
    # Page index
    # ------------------------------------------------------------------

    def page_names(self, wiki_name: str) -> set[str]:
        """Known page names of a wiki, fetched once and then cached."""
        wiki = self.registry.lookup(wiki_name)
        return self.context.index.get_or_load(
            wiki.name, lambda: self.client.fetch_index(wiki)
        )

    def reload_page_names(self, wiki_name: str) -> set[str]:
        """Fetch the page names of a wiki again."""
        wiki = self.registry.lookup(wiki_name)
        return self.context.index.reload(
            wiki.name, lambda: self.client.fetch_index(wiki)
        )

    def require_page(self, wiki_name: str, page: str) -> None:
        """Raise ``PageNotFoundError`` unless *page* is in the index."""
        if from_wire(page) not in self.page_names(wiki_name):
            raise PageNotFoundError(wiki_name, page)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    def recent_changes(self, wiki_name: str) -> list[FeedItem]:
        return self.rc_listing.items(wiki_name)

    def search(self, wiki_name: str, pattern: str) -> list[FeedItem]:
        return self.search_listing.items(wiki_name, pattern)

    def match(self, wiki_name: str, pattern: str) -> list[str]:
        return self.match_listing.items(wiki_name, pattern)
