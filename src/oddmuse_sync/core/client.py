import html
import logging
import re
from pathlib import Path

from ..config import WikiConfig
from ..errors import RemoteError
from ..models import PostMeta, from_wire, to_wire
from ..validators import validate_page_name, validate_pattern
from .commands import CommandFields, CommandSet, CommandTemplate
from .transport import ShellTransport

logger = logging.getLogger(__name__)

ERROR_TITLE = re.compile(r"<title>\s*Error\s*</title>", re.IGNORECASE)
ERROR_HEADING = re.compile(r"<h1[^>]*>(.*?)</h1>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]+>")

# curl reports 000 when no HTTP exchange took place
TRANSPORT_FAILURE = "000"
# Oddmuse redirects to the page after a successful save
EXPECTED_POST_STATUS = "302"


def classify_response(text: str, returncode: int | None = 0) -> str:
    """Return *text* unchanged if it is a successful response.

    Raises:
        RemoteError: If the text is an Oddmuse error page, the command
            failed to run, or the response carries the ``000`` status.
    """
    marker = ERROR_TITLE.search(text)
    if marker:
        heading = ERROR_HEADING.search(text, marker.end())
        if heading:
            message = html.unescape(_TAG.sub("", heading.group(1))).strip()
            if message:
                raise RemoteError(message, raw=text)
        raise RemoteError("cause unknown", raw=text)

    if returncode != 0 or text.startswith(TRANSPORT_FAILURE):
        raise RemoteError("transport failure", raw=text)

    return text


def parse_page_list(text: str) -> list[str]:
    """Split an index response into page names, one per line."""
    return [
        from_wire(line.strip()) for line in text.splitlines() if line.strip()
    ]


class WikiClient:
    """Run the wiki's remote operations through command templates.

    Args:
        commands: The command templates to run.
        transport: Executes rendered commands.
        username: Fallback username when neither the post nor the wiki
            names one.
        password: Fallback password.
    """

    def __init__(
        self,
        commands: CommandSet,
        transport: ShellTransport,
        username: str | None = None,
        password: str | None = None,
    ):
        self.commands = commands
        self.transport = transport
        self.username = username
        self.password = password

    def _run(
        self,
        template: CommandTemplate,
        wiki: WikiConfig,
        fields: CommandFields,
    ) -> str:
        """Render and run *template*, then classify the response."""
        command = template.render(fields)
        result = self.transport.run(command, wiki.encoding)
        try:
            return classify_response(result.stdout, result.returncode)
        except RemoteError as e:
            logger.warning(
                "%s on %s failed: %s%s",
                template.name,
                wiki.name,
                e.message,
                f" ({result.stderr.strip()})" if result.stderr.strip() else "",
            )
            raise

    @staticmethod
    def _check_page(page_name: str) -> None:
        is_valid, error_msg = validate_page_name(page_name)
        if not is_valid:
            raise ValueError(f"Invalid page name: {error_msg}")

    @staticmethod
    def _check_pattern(pattern: str) -> None:
        is_valid, error_msg = validate_pattern(pattern)
        if not is_valid:
            raise ValueError(f"Invalid pattern: {error_msg}")

    def fetch_page(self, wiki: WikiConfig, page_name: str) -> str:
        """
        Get the raw text of a page.

        Returns:
            Raw wiki markup; empty for a page that does not exist yet.

        Raises:
            RemoteError: If the server or the transport reports a failure
        """
        self._check_page(page_name)
        return self._run(
            self.commands.get,
            wiki,
            CommandFields(url=wiki.url, page=to_wire(page_name)),
        )

    def fetch_history(self, wiki: WikiConfig, page_name: str) -> str:
        """
        Get the history feed of a page (raw ``key: value`` blocks).

        Raises:
            RemoteError: If the server or the transport reports a failure
        """
        self._check_page(page_name)
        return self._run(
            self.commands.history,
            wiki,
            CommandFields(url=wiki.url, page=to_wire(page_name)),
        )

    def _form_fields(
        self,
        wiki: WikiConfig,
        page_name: str,
        path: Path,
        meta: PostMeta,
        revision: str,
    ) -> CommandFields:
        return CommandFields(
            url=wiki.url,
            page=to_wire(page_name),
            summary=meta.summary,
            username=meta.username or wiki.username or self.username or "",
            password=meta.password or self.password or "",
            question=wiki.question,
            minor="on" if meta.minor else "off",
            oldtime=meta.oldtime or "",
            revision=revision,
            file=str(path),
        )

    def post(
        self,
        wiki: WikiConfig,
        page_name: str,
        path: Path,
        meta: PostMeta,
        revision: str,
    ) -> str:
        """
        Save a page from the local file at *path*.

        Args:
            wiki: Target wiki
            page_name: Page to save
            path: Local file holding the page text, in the wiki's encoding
            meta: Summary, author, password and minor-edit flag
            revision: Baseline revision the edit started from

        Returns:
            The HTTP status code reported by the transport

        Raises:
            RemoteError: If the server rejected the post or the transport
                failed
        """
        self._check_page(page_name)
        text = self._run(
            self.commands.post,
            wiki,
            self._form_fields(wiki, page_name, path, meta, revision),
        )
        status = text[-3:]
        if status == TRANSPORT_FAILURE:
            raise RemoteError("transport failure", raw=text)
        if status != EXPECTED_POST_STATUS:
            raise RemoteError(f"unexpected status {status}", raw=text)
        logger.info("Posted %s to %s", page_name, wiki.name)
        return status

    def preview(
        self,
        wiki: WikiConfig,
        page_name: str,
        path: Path,
        meta: PostMeta,
        revision: str,
    ) -> str:
        """
        Render a page from the local file at *path* without saving it.

        Returns:
            The rendered HTML

        Raises:
            RemoteError: If the server or the transport reports a failure
        """
        self._check_page(page_name)
        return self._run(
            self.commands.preview,
            wiki,
            self._form_fields(wiki, page_name, path, meta, revision),
        )

    def fetch_index(self, wiki: WikiConfig) -> set[str]:
        """
        List all page names of a wiki.

        Raises:
            RemoteError: If the server or the transport reports a failure
        """
        text = self._run(
            self.commands.index, wiki, CommandFields(url=wiki.url)
        )
        return set(parse_page_list(text))

    def fetch_recent_changes(self, wiki: WikiConfig) -> str:
        """
        Get the recent changes feed (raw ``key: value`` blocks).

        Raises:
            RemoteError: If the server or the transport reports a failure
        """
        return self._run(self.commands.rc, wiki, CommandFields(url=wiki.url))

    def search(self, wiki: WikiConfig, pattern: str) -> str:
        """
        Full-text search; returns the raw result feed.

        Raises:
            ValueError: If the pattern is empty
            RemoteError: If the server or the transport reports a failure
        """
        self._check_pattern(pattern)
        return self._run(
            self.commands.search,
            wiki,
            CommandFields(url=wiki.url, pattern=pattern),
        )

    def fetch_matches(self, wiki: WikiConfig, pattern: str) -> str:
        """
        Get the raw index of page names matching *pattern*.

        Raises:
            ValueError: If the pattern is empty
            RemoteError: If the server or the transport reports a failure
        """
        self._check_pattern(pattern)
        return self._run(
            self.commands.match,
            wiki,
            CommandFields(url=wiki.url, pattern=pattern),
        )

    def match_page_names(self, wiki: WikiConfig, pattern: str) -> list[str]:
        """List page names matching *pattern*, in server order."""
        return parse_page_list(self.fetch_matches(wiki, pattern))
