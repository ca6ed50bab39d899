"""Parser for Oddmuse's raw feed format.

Recent changes, search results and page history all come back (with
``raw=1``) as blank-line separated blocks of ``key: value`` lines. The
first block describes the feed itself and is discarded::

    title: RecentChanges
    description: Changes on this wiki

    title: Contact
    generator: Alex
    last-modified: 2012-06-03T11:47:24Z
    revision: 59
    description: new phone number

The format is not a strict grammar, so parsing is lenient: lines without
a colon are skipped, unknown keys are ignored, and a block without a
title is dropped instead of failing the whole feed.
"""

from __future__ import annotations

import logging
import re

from ..errors import ParseAnomaly
from ..models import FeedItem, from_wire

logger = logging.getLogger(__name__)

_BLOCK_SEPARATOR = re.compile(r"\n\s*\n")
_LEADING_BLANK_LINES = re.compile(r"\A(?:[ \t]*\n)+")

# Feed key -> FeedItem field
_FIELDS = {
    "title": "title",
    "revision": "revision",
    "generator": "generator",
    "last-modified": "last_modified",
    "description": "description",
    "minor": "minor",
    "link": "link",
}

_NOT_MINOR = frozenset({"", "0", "off", "false", "no"})


def _parse_block(block: str) -> FeedItem:
    """Turn one block into a ``FeedItem``.

    Raises:
        ParseAnomaly: If the block has no title.
    """
    values: dict[str, str] = {}
    last_key: str | None = None
    for line in block.split("\n"):
        # Tab-indented lines continue the previous value
        if line.startswith("\t") and last_key is not None:
            values[last_key] += "\n" + line[1:]
            continue
        key, sep, value = line.partition(":")
        if not sep:
            if line.strip():
                logger.debug("Skipping feed line without colon: %r", line)
            continue
        field = _FIELDS.get(key.strip().lower())
        if field is None or field in values:
            last_key = None
            continue
        values[field] = value.strip()
        last_key = field

    title = values.pop("title", "")
    if not title:
        raise ParseAnomaly(f"feed record without title: {block[:60]!r}")

    minor = values.pop("minor", "").lower() not in _NOT_MINOR
    return FeedItem(
        title=from_wire(title),
        minor=minor,
        **{k: v if v else None for k, v in values.items()},
    )


def parse_feed(text: str) -> list[FeedItem]:
    """Parse feed *text* into items, in input order.

    Pure: parsing the same text twice gives equal results.
    """
    text = _LEADING_BLANK_LINES.sub("", text.replace("\r\n", "\n"))
    blocks = _BLOCK_SEPARATOR.split(text)
    items: list[FeedItem] = []
    for block in blocks[1:]:
        if not block.strip():
            continue
        try:
            items.append(_parse_block(block))
        except ParseAnomaly as e:
            logger.debug("Skipping feed record: %s", e)
    return items
