"""Local page files: path layout, encoding-aware read/write.

Pages live in ``<root>/<wiki>/<page>`` with the page name used verbatim
(spaces kept, nothing percent-encoded). The post and preview commands
read the page text from that file, so it has to be written in the
wiki's encoding before either command runs.
"""

import logging
from pathlib import Path

from charset_normalizer import from_bytes

from oddmuse_sync.config import WikiConfig
from oddmuse_sync.validators import validate_page_name

logger = logging.getLogger(__name__)

# =============================================================================
# File Read/Write
# =============================================================================


def read_file_with_encoding(
    path: Path, preferred: str | None = None
) -> tuple[str, str]:
    """Read a file, trying *preferred* first and detecting otherwise.

    Falls back to charset-normalizer when the file does not decode with
    the preferred encoding (e.g. it was edited with another tool).
    Defaults to UTF-8 for empty files or when detection fails.

    Args:
        path: Path to the file to read.
        preferred: Encoding to try before detection.

    Returns:
        Tuple of (content_string, encoding_used).
    """
    raw = path.read_bytes()
    if not raw:
        return ("", preferred or "utf-8")

    if preferred:
        try:
            return (raw.decode(preferred), preferred)
        except UnicodeDecodeError:
            logger.warning(
                "%s is not valid %s, detecting encoding", path, preferred
            )

    result = from_bytes(raw).best()
    if result is None:
        return (raw.decode("utf-8", errors="replace"), "utf-8")

    encoding = result.encoding
    # ascii is a strict subset of utf-8
    if encoding == "ascii":
        encoding = "utf-8"
    return (str(result), encoding)


def write_file(
    path: Path, content: str, encoding: str = "utf-8"
) -> int:
    """Write content to a file, creating parent directories as needed.

    Args:
        path: Path to the output file.
        content: String content to write.
        encoding: Encoding to use (default: utf-8).

    Returns:
        Number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded = content.encode(encoding)
    path.write_bytes(encoded)
    return len(encoded)


# =============================================================================
# Page layout
# =============================================================================


class LocalStore:
    """Directory-per-wiki, file-per-page storage under *root*."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def page_path(self, wiki: str, page: str) -> Path:
        """Return ``<root>/<wiki>/<page>``.

        Raises:
            ValueError: If *page* cannot be used as a file name.
        """
        is_valid, error_msg = validate_page_name(page)
        if not is_valid:
            raise ValueError(f"Invalid page name: {error_msg}")
        return self.root / wiki / page

    def exists(self, wiki: str, page: str) -> bool:
        return self.page_path(wiki, page).is_file()

    def read(self, wiki: WikiConfig, page: str) -> str:
        """Read the local copy of *page*.

        Raises:
            FileNotFoundError: If there is no local copy.
        """
        content, _ = read_file_with_encoding(
            self.page_path(wiki.name, page), preferred=wiki.encoding
        )
        return content

    def write(self, wiki: WikiConfig, page: str, content: str) -> Path:
        """Write *content* in the wiki's encoding and return the path."""
        path = self.page_path(wiki.name, page)
        count = write_file(path, content, wiki.encoding)
        logger.debug("Wrote %d bytes to %s", count, path)
        return path

    def list_pages(self, wiki: str) -> list[str]:
        """Names of the pages stored locally for *wiki*, sorted."""
        directory = self.root / wiki
        if not directory.is_dir():
            return []
        return sorted(
            p.name
            for p in directory.iterdir()
            if p.is_file() and not p.name.startswith(".")
        )
