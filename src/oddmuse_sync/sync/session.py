"""Per-page edit sessions.

An ``EditSession`` tracks one page through its states::

    UNLOADED -> LOADED -> MODIFIED -> POSTED -> LOADED
                LOADED/MODIFIED -> PREVIEWING -> (previous state)

It holds the local content and the baseline it was loaded or last posted
at; the engine does the remote work.
"""

from __future__ import annotations

import logging

from ..errors import InvariantViolation
from ..models import PageKey, PostMeta, PostResult, SessionState, from_wire
from .engine import SyncEngine

logger = logging.getLogger(__name__)


class EditSession:
    """Edit one page of one wiki.

    Args:
        engine: The engine that performs loads, posts and previews.
        wiki: Wiki name.
        page: Page name.
    """

    def __init__(self, engine: SyncEngine, wiki: str, page: str) -> None:
        self.engine = engine
        self.key = PageKey(wiki=wiki, page=from_wire(page))
        self.content: str | None = None
        self.baseline: str | None = None
        self.state = SessionState.UNLOADED

    def __repr__(self) -> str:
        return (
            f"EditSession({self.key}, state={self.state.value}, "
            f"baseline={self.baseline!r})"
        )

    def load(self) -> str:
        """Fetch the page; the session becomes LOADED.

        Returns:
            The page content.
        """
        result = self.engine.load(self.key.wiki, self.key.page)
        self.content = result.content
        self.baseline = result.revision
        self._enter(SessionState.LOADED)
        return result.content

    def reload(self) -> str:
        """Load again, discarding local modifications."""
        if self.state is SessionState.MODIFIED:
            logger.info("Discarding local changes to %s", self.key)
        return self.load()

    def edit(self, content: str) -> None:
        """Replace the local content; the session becomes MODIFIED."""
        if self.state is SessionState.UNLOADED:
            raise InvariantViolation(f"Cannot edit {self.key} before loading it")
        self.content = content
        self._enter(SessionState.MODIFIED)

    def post(self, meta: PostMeta) -> PostResult:
        """Post the local content.

        On success the session passes through POSTED and returns to
        LOADED at the new revision. On failure it stays where it was and
        the baseline is unchanged.
        """
        content = self._require_content("post")
        result = self.engine.post(self.key.wiki, self.key.page, content, meta)
        self.baseline = result.revision
        self._enter(SessionState.POSTED)
        self._enter(SessionState.LOADED)
        return result

    def preview(self, meta: PostMeta) -> str:
        """Render the local content; the state is restored afterwards."""
        content = self._require_content("preview")
        previous = self.state
        self._enter(SessionState.PREVIEWING)
        try:
            return self.engine.preview(
                self.key.wiki, self.key.page, content, meta
            )
        finally:
            self._enter(previous)

    def _require_content(self, action: str) -> str:
        if self.state is SessionState.UNLOADED or self.content is None:
            raise InvariantViolation(
                f"Cannot {action} {self.key} before loading it"
            )
        return self.content

    def _enter(self, state: SessionState) -> None:
        logger.debug("%s: %s -> %s", self.key, self.state.value, state.value)
        self.state = state
