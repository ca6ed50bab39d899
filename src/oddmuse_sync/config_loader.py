"""
YAML config files for oddmuse_sync.

Files are found by convention (see ``discover_config_files``), may pull
in other files with ``!include``, and may reference environment
variables as ``${VAR}`` or ``${VAR:-default}``.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ODDMUSE_CONFIG"
PROJECT_CONFIG = Path(".oddmuse") / "config.yml"
USER_CONFIG = Path(".config") / "oddmuse" / "config.yml"

# ${VAR} or ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` with environment values.

    An unset or empty VAR yields *default* when one is given, otherwise
    the empty string. A ``${`` without a closing brace is left alone.
    """
    return _ENV_VAR_PATTERN.sub(
        lambda m: os.environ.get(m.group(1)) or m.group(2) or "", value
    )


def _interpolate_recursive(obj: Any) -> Any:
    match obj:
        case str():
            return interpolate_env_vars(obj)
        case dict():
            return {k: _interpolate_recursive(v) for k, v in obj.items()}
        case list():
            return [_interpolate_recursive(item) for item in obj]
        case _:
            return obj


def _load_yaml_with_includes(path: Path, _seen: tuple[Path, ...] = ()) -> Any:
    """Parse *path*; ``!include other.yml`` resolves next to *path*."""
    path = path.resolve()
    if path in _seen:
        chain = " -> ".join(str(p) for p in (*_seen, path))
        raise ValueError(f"Circular include detected: {chain}")

    # A fresh class per file; yaml.SafeLoader itself never learns !include
    class _FileLoader(yaml.SafeLoader):
        pass

    def _include(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> Any:
        target = path.parent / loader.construct_scalar(node)
        if not target.exists():
            raise FileNotFoundError(
                f"Include file not found: {target} (referenced from {path})"
            )
        return _load_yaml_with_includes(target, (*_seen, path))

    _FileLoader.add_constructor("!include", _include)
    with open(path, encoding="utf-8") as fh:
        return yaml.load(fh, Loader=_FileLoader)


def discover_config_files() -> list[Path]:
    """Existing config files, highest precedence first.

    ``$ODDMUSE_CONFIG``, then ``.oddmuse/config.yml`` in the working
    directory, then ``~/.config/oddmuse/config.yml``.
    """
    candidates = [Path.cwd() / PROJECT_CONFIG, Path.home() / USER_CONFIG]
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.insert(0, Path(env_path).expanduser())
    return [p for p in candidates if p.exists()]


def load_hierarchical_config() -> dict[str, Any]:
    """Merge all discovered files into one dict, ``{}`` if there are none.

    Top-level keys of a higher-precedence file replace the same keys of
    lower ones, so a project ``wikis`` section hides the global one.
    Variables are expanded after the merge.
    """
    merged: dict[str, Any] = {}
    for path in reversed(discover_config_files()):
        logger.debug("Loading config: %s", path)
        data = _load_yaml_with_includes(path)
        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Ignoring config file %s: top level is a %s, not a mapping",
                path,
                type(data).__name__,
            )
    return _interpolate_recursive(merged)


_STARTER_CONFIG = """\
# oddmuse-sync configuration
#
# Global settings can also be set via environment variables:
#   ODDMUSE_DIRECTORY, ODDMUSE_USERNAME, ODDMUSE_PASSWORD, ODDMUSE_TIMEOUT,
#   ODDMUSE_DEBUG
#
# oddmuse:
#   directory: ~/.emacs.d/oddmuse
#   username: Anonymous
#   timeout: 60
#   debug: false
#
# wikis:
#   CommunityWiki:
#     url: https://communitywiki.org/wiki
#     encoding: utf-8
#     question: question
#   EmacsWiki:
#     url: https://www.emacswiki.org/emacs
#     username: ${EMACSWIKI_USER:-Anonymous}
#
# Command templates (curl by default). Placeholders:
#   {url} {page} {summary} {username} {password} {question}
#   {minor} {oldtime} {revision} {pattern} {file}
#
# commands:
#   get: curl --silent {url} --form action=browse --form raw=2 --form id={page}
#
# logging:
#   level: INFO
#   file: null
"""


def ensure_config() -> Path:
    """Return the active config file, writing a commented starter if none exists."""
    existing = discover_config_files()
    if existing:
        return existing[0]

    path = Path.cwd() / PROJECT_CONFIG
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", path)
    return path
