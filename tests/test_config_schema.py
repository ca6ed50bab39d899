"""Tests for the unified config schema and its adapters.

Covers the Pydantic models in config_schema.py, build_config() and
to_wiki_configs().
"""

import pytest
from pydantic import ValidationError

from oddmuse_sync.config import WikiConfig
from oddmuse_sync.config_schema import (
    CommandsSection,
    OddmuseSection,
    UnifiedConfig,
    build_config,
    to_wiki_configs,
)


class TestUnifiedConfig:
    def test_zero_config(self):
        config = UnifiedConfig()
        assert config.oddmuse.directory is None
        assert config.oddmuse.timeout == 60
        assert config.wikis == {}
        assert config.commands.overrides() == {}
        assert config.logging.level == "INFO"

    def test_full_config(self):
        config = build_config(
            {
                "oddmuse": {"directory": "~/pages", "username": "Alex"},
                "wikis": {
                    "Alex": {"url": "https://alexschroeder.ch/wiki"},
                    "Emacs": {
                        "url": "https://www.emacswiki.org/emacs",
                        "encoding": "utf-8",
                        "question": "uihnscuskc",
                    },
                },
                "commands": {"get": "wget -qO- {url}"},
                "logging": {"level": "DEBUG", "file": "/tmp/o.log"},
            }
        )
        assert config.oddmuse.username == "Alex"
        assert config.wikis["Emacs"].question == "uihnscuskc"
        assert config.commands.overrides() == {"get": "wget -qO- {url}"}
        assert config.logging.file == "/tmp/o.log"

    def test_frozen(self):
        config = UnifiedConfig()
        with pytest.raises(ValidationError):
            config.oddmuse = OddmuseSection()

    def test_empty_dict(self):
        assert build_config({}) == UnifiedConfig()

    def test_timeout_bounds(self):
        with pytest.raises(ValidationError):
            OddmuseSection(timeout=0)

    def test_wiki_requires_url(self):
        with pytest.raises(ValidationError):
            build_config({"wikis": {"Alex": {"encoding": "utf-8"}}})

    def test_unknown_command_key_ignored_by_schema(self):
        # CommandSet.from_overrides() is where unknown names are rejected
        assert CommandsSection(get=None).overrides() == {}


class TestToWikiConfigs:
    def test_entries_in_file_order(self):
        unified = build_config(
            {
                "wikis": {
                    "Zeta": {"url": "https://z.org/wiki "},
                    "Alpha": {"url": "https://a.org/wiki", "username": "A"},
                }
            }
        )
        assert to_wiki_configs(unified) == [
            WikiConfig(name="Zeta", url="https://z.org/wiki"),
            WikiConfig(name="Alpha", url="https://a.org/wiki", username="A"),
        ]

    def test_no_wikis(self):
        assert to_wiki_configs(UnifiedConfig()) == []
