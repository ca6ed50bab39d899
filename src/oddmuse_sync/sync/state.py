"""In-memory sync state: revisions per page and page names per wiki.

Both stores are plain keyed maps owned by a ``SyncContext`` that the
engine receives at construction, so tests and separate registries each
get their own state.

Key design choices:

* **Revisions are never forgotten** -- ``RevisionStore`` only supports
  overwrite, so once a page has a baseline it keeps one.
* **Caller-supplied loaders** -- ``PageIndexCache`` never talks to the
  network itself; the engine passes a loader that does.
* **Optional persistence** -- ``RevisionStore.save()`` writes a JSON file
  atomically (temp file + ``os.replace()``) for hosts that want to keep
  baselines across restarts. Nothing in the core requires it.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from ..models import PageKey

logger = logging.getLogger(__name__)

PageLoader = Callable[[], set[str]]


class RevisionStore:
    """Last known revision per (wiki, page)."""

    def __init__(self) -> None:
        self._revisions: dict[PageKey, str] = {}

    def get(self, key: PageKey) -> str | None:
        """Return the recorded revision, or ``None`` if never recorded."""
        return self._revisions.get(key)

    def put(self, key: PageKey, revision: str) -> None:
        """Record *revision* for *key*, replacing any earlier value."""
        previous = self._revisions.get(key)
        self._revisions[key] = revision
        if previous != revision:
            logger.debug("Revision of %s: %s -> %s", key, previous, revision)

    def snapshot(self) -> dict[PageKey, str]:
        """Return a copy of all recorded revisions."""
        return dict(self._revisions)

    def __contains__(self, key: object) -> bool:
        return key in self._revisions

    def __len__(self) -> int:
        return len(self._revisions)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: Path) -> None:
        """Persist all revisions to *path* atomically.

        Creates the parent directory if it does not exist.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": 1,
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "revisions": [
                {"wiki": k.wiki, "page": k.page, "revision": rev}
                for k, rev in sorted(
                    self._revisions.items(),
                    key=lambda item: (item[0].wiki, item[0].page),
                )
            ],
        }

        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def load(self, path: Path) -> int:
        """Merge revisions saved at *path* into this store.

        Revisions already recorded in memory win over the saved ones.
        A missing file loads nothing.

        Returns:
            Number of revisions taken from the file.

        Raises:
            ValueError: If the file is not a revisions file this store wrote.
                Nothing is merged in that case.
            OSError: If the file cannot be read.
        """
        if not path.exists():
            return 0
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)

        try:
            records = {
                PageKey(wiki=record["wiki"], page=record["page"]): str(
                    record["revision"]
                )
                for record in data.get("revisions", [])
            }
        except (AttributeError, KeyError, TypeError) as e:
            raise ValueError(f"Malformed revisions file {path}: {e!r}") from e

        loaded = 0
        for key, revision in records.items():
            if key not in self._revisions:
                self._revisions[key] = revision
                loaded += 1
        logger.debug("Loaded %d revisions from %s", loaded, path)
        return loaded


class PageIndexCache:
    """Known page names per wiki, loaded lazily and refreshed on demand."""

    def __init__(self) -> None:
        self._pages: dict[str, set[str]] = {}

    def get_or_load(self, wiki: str, loader: PageLoader) -> set[str]:
        """Return the cached set for *wiki*, calling *loader* only on a miss."""
        pages = self._pages.get(wiki)
        if pages is None:
            pages = self._pages[wiki] = set(loader())
            logger.debug("Loaded %d page names for %s", len(pages), wiki)
        return pages

    def reload(self, wiki: str, loader: PageLoader) -> set[str]:
        """Replace the cached set for *wiki* with a fresh *loader* result."""
        pages = self._pages[wiki] = set(loader())
        logger.debug("Reloaded %d page names for %s", len(pages), wiki)
        return pages

    def add(self, wiki: str, page: str) -> None:
        """Add *page* to an already loaded set; no-op if never loaded."""
        pages = self._pages.get(wiki)
        if pages is not None:
            pages.add(page)

    def is_loaded(self, wiki: str) -> bool:
        return wiki in self._pages

    def snapshot(self) -> dict[str, frozenset[str]]:
        """Return an immutable copy of every cached set."""
        return {wiki: frozenset(pages) for wiki, pages in self._pages.items()}


@dataclass
class SyncContext:
    """The state one engine owns."""

    revisions: RevisionStore = field(default_factory=RevisionStore)
    index: PageIndexCache = field(default_factory=PageIndexCache)
