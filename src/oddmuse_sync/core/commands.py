"""Command templates for the HTTP command-line client.

A ``CommandTemplate`` is a shell command line with named placeholders
such as ``{url}`` or ``{page}``. The set of placeholders is closed:
a template naming anything else is rejected when it is constructed.
Rendering shell-quotes every value and percent-encodes ``&`` so the
shell never backgrounds part of the command.

Literal braces are written doubled, as in ``--write-out '%{{http_code}}'``.
"""

from __future__ import annotations

import shlex
import string
from dataclasses import dataclass
from enum import Enum


class Placeholder(str, Enum):
    """Every field a command template may reference."""

    URL = "url"
    PAGE = "page"
    SUMMARY = "summary"
    USERNAME = "username"
    PASSWORD = "password"
    QUESTION = "question"
    MINOR = "minor"
    OLDTIME = "oldtime"
    REVISION = "revision"
    PATTERN = "pattern"
    FILE = "file"


_KNOWN = frozenset(p.value for p in Placeholder)


@dataclass(frozen=True)
class CommandFields:
    """Values substituted into a template.

    Unset fields render as an empty quoted string.
    """

    url: str = ""
    page: str = ""
    summary: str = ""
    username: str = ""
    password: str = ""
    question: str = ""
    minor: str = "off"
    oldtime: str = ""
    revision: str = ""
    pattern: str = ""
    file: str = ""


class CommandTemplate:
    """A parsed command line with named placeholders.

    Args:
        name: Short name used in log and error messages (e.g. ``post``).
        template: Command line text.

    Raises:
        ValueError: If the template uses an unknown, positional or
            formatted placeholder, or is malformed.
    """

    def __init__(self, name: str, template: str) -> None:
        self.name = name
        self.template = template
        self.placeholders = self._parse(template)

    def __repr__(self) -> str:
        return f"CommandTemplate({self.name!r}, {self.template!r})"

    def _parse(self, template: str) -> frozenset[str]:
        used: set[str] = set()
        try:
            parsed = list(string.Formatter().parse(template))
        except ValueError as exc:
            raise ValueError(
                f"Malformed {self.name} command template: {exc}"
            ) from None
        for _, field_name, format_spec, conversion in parsed:
            if field_name is None:
                continue
            if field_name not in _KNOWN:
                raise ValueError(
                    f"Unknown placeholder '{{{field_name}}}' in {self.name} command template. "
                    f"Known placeholders: {', '.join(sorted(_KNOWN))}"
                )
            if format_spec or conversion:
                raise ValueError(
                    f"Placeholder '{{{field_name}}}' in {self.name} command template "
                    "cannot carry a format spec or conversion"
                )
            used.add(field_name)
        return frozenset(used)

    def render(self, fields: CommandFields) -> str:
        """Substitute *fields* into the template.

        Every value is shell-quoted; embedded single quotes become
        ``'"'"'``. Any ``&`` left in the command is encoded as ``%26``.
        """
        values = {
            name: shlex.quote(getattr(fields, name))
            for name in self.placeholders
        }
        return self.template.format(**values).replace("&", "%26")


# ---------------------------------------------------------------------------
# Built-in curl templates for Oddmuse
# ---------------------------------------------------------------------------

_POST_FORM = (
    " --form title={page}"
    " --form summary={summary}"
    " --form username={username}"
    " --form pwd={password}"
    " --form {question}=1"
    " --form recent_edit={minor}"
    " --form oldtime={oldtime}"
    " --form revision={revision}"
    " --form text=\\<{file}"
)

DEFAULT_TEMPLATES: dict[str, str] = {
    "get": "curl --silent {url} --form action=browse --form raw=2 --form id={page}",
    "history": "curl --silent {url} --form action=history --form raw=1 --form id={page}",
    "rc": "curl --silent {url} --form action=rc --form raw=1",
    "search": "curl --silent {url} --form search={pattern} --form raw=1",
    "match": "curl --silent {url} --form action=index --form raw=1 --form match={pattern}",
    "index": "curl --silent {url} --form action=index --form raw=1",
    "post": "curl --silent --write-out '%{{http_code}}'" + _POST_FORM + " {url}",
    "preview": "curl --silent" + _POST_FORM + " --form Preview=Preview {url}",
}


@dataclass(frozen=True)
class CommandSet:
    """The eight templates the wiki client runs."""

    get: CommandTemplate
    history: CommandTemplate
    post: CommandTemplate
    preview: CommandTemplate
    rc: CommandTemplate
    search: CommandTemplate
    match: CommandTemplate
    index: CommandTemplate

    @classmethod
    def from_overrides(
        cls, overrides: dict[str, str] | None = None
    ) -> CommandSet:
        """Build a command set from the defaults plus *overrides*.

        Raises:
            ValueError: If an override names an unknown command or a
                template is invalid.
        """
        overrides = overrides or {}
        unknown = set(overrides) - set(DEFAULT_TEMPLATES)
        if unknown:
            raise ValueError(
                f"Unknown command(s) in configuration: {', '.join(sorted(unknown))}"
            )
        templates = {**DEFAULT_TEMPLATES, **overrides}
        return cls(
            **{
                name: CommandTemplate(name, text)
                for name, text in templates.items()
            }
        )

    def templates(self) -> list[CommandTemplate]:
        """All templates, in field order."""
        return list(vars(self).values())
