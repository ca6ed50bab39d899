"""Runtime configuration for oddmuse_sync.

Reads global settings from CLI args, environment variables, .env files,
and YAML config file fallbacks. Per-wiki settings live in ``WikiConfig``
and are only ever read from the YAML ``wikis`` section.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    ODDMUSE_DIRECTORY: Root directory for local page files (optional, default: ~/.emacs.d/oddmuse)
    ODDMUSE_USERNAME: Default username for posts (optional)
    ODDMUSE_PASSWORD: Password for locked pages (optional)
    ODDMUSE_TIMEOUT: Seconds to wait for one HTTP command (optional, default: 60)
    ODDMUSE_DEBUG: Enable debug logging (optional, default: false)
"""

import codecs
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY = "~/.emacs.d/oddmuse"
DEFAULT_TIMEOUT = 60


@dataclass(frozen=True)
class WikiConfig:
    """Connection settings for one wiki.

    Attributes:
        name: Unique wiki name, also the local directory name.
        url: Script URL of the wiki, e.g. ``https://communitywiki.org/wiki``.
        encoding: Character encoding used by the wiki.
        question: Name of the anti-spam form field the wiki expects.
        username: Default username for posts to this wiki.
    """

    name: str
    url: str
    encoding: str = "utf-8"
    question: str = "question"
    username: str | None = None


@dataclass
class Config:
    directory: str = DEFAULT_DIRECTORY
    username: str | None = None
    password: str | None = None
    timeout: int = DEFAULT_TIMEOUT
    debug: bool = False
    wikis: list[WikiConfig] = field(default_factory=list)

    @property
    def root(self) -> Path:
        """Local page root with ``~`` expanded."""
        return Path(self.directory).expanduser()


def validate_wiki_config(wiki: WikiConfig) -> None:
    """Validate one wiki entry and raise ValueError if invalid.

    Args:
        wiki: WikiConfig instance to validate.

    Raises:
        ValueError: If the name, URL or encoding is unusable.
    """
    if not wiki.name or not wiki.name.strip():
        raise ValueError("Wiki name cannot be empty")
    if "/" in wiki.name or wiki.name in (".", ".."):
        raise ValueError(
            f"Invalid wiki name '{wiki.name}': must be usable as a directory name"
        )

    if not wiki.url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid URL '{wiki.url}' for wiki '{wiki.name}': must start with http:// or https://"
        )
    parsed = urlparse(wiki.url)
    if not parsed.hostname:
        raise ValueError(
            f"Invalid URL '{wiki.url}' for wiki '{wiki.name}': URL must include a hostname"
        )

    try:
        codecs.lookup(wiki.encoding)
    except LookupError:
        raise ValueError(
            f"Unknown encoding '{wiki.encoding}' for wiki '{wiki.name}'"
        ) from None

    if not wiki.question.strip():
        raise ValueError(
            f"Anti-spam field name for wiki '{wiki.name}' cannot be empty"
        )


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If the timeout is out of range, a wiki entry is
            invalid, or two wikis share a name.
    """
    config.directory = config.directory.strip()
    if not config.directory:
        raise ValueError(
            "Local directory cannot be empty. Set ODDMUSE_DIRECTORY environment variable."
        )

    if not (1 <= config.timeout <= 3600):
        raise ValueError(
            f"Invalid timeout '{config.timeout}': must be a number between 1 and 3600"
        )

    seen: set[str] = set()
    for wiki in config.wikis:
        validate_wiki_config(wiki)
        if wiki.name in seen:
            raise ValueError(f"Wiki '{wiki.name}' is configured twice")
        seen.add(wiki.name)

    if not config.wikis:
        logger.warning(
            "No wikis configured. Add a 'wikis' section to .oddmuse/config.yml."
        )


def resolve_debug(debug: bool = False, yaml_fallbacks: dict | None = None) -> bool:
    """Debug flag: CLI, then ODDMUSE_DEBUG, then the YAML ``oddmuse.debug``."""
    if debug:
        return True
    env_debug = os.getenv("ODDMUSE_DEBUG")
    if env_debug is not None:
        return env_debug.lower() in ("true", "1", "yes", "on")
    return bool((yaml_fallbacks or {}).get("debug", False))


def load_config(
    directory: str | None = None,
    username: str | None = None,
    password: str | None = None,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
    wikis: list[WikiConfig] | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order for each field (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        directory: Override local page root.
        username: Override default username.
        password: Override password.
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Dict of values from the YAML ``oddmuse`` section.
        wikis: Wiki entries from the YAML ``wikis`` section.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If any value is invalid after checking all sources.
    """
    fb = yaml_fallbacks or {}

    final_directory = (
        directory
        or os.getenv("ODDMUSE_DIRECTORY")
        or fb.get("directory")
        or DEFAULT_DIRECTORY
    )

    final_username = (
        username or os.getenv("ODDMUSE_USERNAME") or fb.get("username")
    )
    final_password = (
        password or os.getenv("ODDMUSE_PASSWORD") or fb.get("password")
    )

    final_debug = resolve_debug(debug, fb)

    timeout_raw = os.getenv("ODDMUSE_TIMEOUT")
    if timeout_raw is not None:
        try:
            final_timeout = int(timeout_raw)
        except ValueError:
            raise ValueError(
                f"Invalid ODDMUSE_TIMEOUT '{timeout_raw}': must be a number between 1 and 3600"
            ) from None
    elif "timeout" in fb:
        final_timeout = int(fb["timeout"])
    else:
        final_timeout = DEFAULT_TIMEOUT

    config = Config(
        directory=final_directory,
        username=final_username.strip() if final_username else None,
        password=final_password,
        timeout=final_timeout,
        debug=final_debug,
        wikis=list(wikis or []),
    )

    validate_config(config)

    return config
