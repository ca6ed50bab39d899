"""Registry of configured wikis, looked up by name."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .config import Config, WikiConfig
from .errors import WikiNotFoundError

logger = logging.getLogger(__name__)


class WikiRegistry:
    """Holds one ``WikiConfig`` per wiki name.

    Entries are immutable. Registering a name again replaces the entry,
    which is only meant for reconfiguration.
    """

    def __init__(self, wikis: Iterable[WikiConfig] = ()) -> None:
        self._wikis: dict[str, WikiConfig] = {}
        for wiki in wikis:
            self.register(wiki)

    @classmethod
    def from_config(cls, config: Config) -> WikiRegistry:
        """Build a registry from a validated ``Config``."""
        return cls(config.wikis)

    def register(self, wiki: WikiConfig) -> None:
        if wiki.name in self._wikis:
            logger.info("Reconfiguring wiki %s", wiki.name)
        self._wikis[wiki.name] = wiki

    def lookup(self, name: str) -> WikiConfig:
        """Return the config for *name*.

        Raises:
            WikiNotFoundError: If no wiki of that name is registered.
        """
        try:
            return self._wikis[name]
        except KeyError:
            raise WikiNotFoundError(name) from None

    def names(self) -> list[str]:
        """Registered wiki names, sorted."""
        return sorted(self._wikis)

    def __contains__(self, name: object) -> bool:
        return name in self._wikis

    def __len__(self) -> int:
        return len(self._wikis)
