"""Tests for registry.py: WikiRegistry."""

import logging

import pytest

from oddmuse_sync.config import Config, WikiConfig
from oddmuse_sync.errors import NotFoundError, WikiNotFoundError
from oddmuse_sync.registry import WikiRegistry

ALEX = WikiConfig(name="Alex", url="https://alexschroeder.ch/wiki")
EMACS = WikiConfig(name="EmacsWiki", url="https://www.emacswiki.org/emacs")


class TestWikiRegistry:
    def test_lookup(self):
        registry = WikiRegistry([ALEX, EMACS])
        assert registry.lookup("Alex") is ALEX
        assert "EmacsWiki" in registry
        assert len(registry) == 2

    def test_lookup_unknown(self):
        with pytest.raises(WikiNotFoundError, match="'Nope' is not configured"):
            WikiRegistry([ALEX]).lookup("Nope")

    def test_not_found_is_a_not_found_error(self):
        with pytest.raises(NotFoundError):
            WikiRegistry().lookup("Alex")

    def test_names_sorted(self):
        assert WikiRegistry([EMACS, ALEX]).names() == ["Alex", "EmacsWiki"]

    def test_register_replaces(self, caplog):
        registry = WikiRegistry([ALEX])
        moved = WikiConfig(name="Alex", url="https://example.org/alex")
        with caplog.at_level(logging.INFO, logger="oddmuse_sync.registry"):
            registry.register(moved)
        assert registry.lookup("Alex") is moved
        assert "Reconfiguring wiki Alex" in caplog.text

    def test_names_are_case_sensitive(self):
        assert "alex" not in WikiRegistry([ALEX])

    def test_from_config(self):
        registry = WikiRegistry.from_config(Config(wikis=[ALEX]))
        assert registry.names() == ["Alex"]
