"""Tests for the wiki_* MCP tools, end to end through ToolRegistry.

The engine is real; only the transport is faked (see conftest).
"""

import shlex

import pytest
from conftest import HISTORY_FEED, history_feed

from oddmuse_sync.mcp.tools import ALL_SPECS, ToolRegistry


@pytest.fixture
def registry():
    return ToolRegistry(ALL_SPECS)


async def _call(registry, engine, name, **args):
    return await registry.call_tool(name, args, engine)


class TestListWikis:
    async def test_lists_configured(self, registry, engine):
        result = await _call(registry, engine, "wiki_list_wikis")
        assert "- Alex: https://alexschroeder.ch/wiki (utf-8)" in result.content[0].text
        assert result.structuredContent["wikis"][0]["name"] == "Alex"


class TestWikiGet:
    async def test_checkout(self, registry, engine, transport, store):
        transport.respond("get", "Call me.\n")
        transport.respond("history", HISTORY_FEED)

        result = await _call(
            registry, engine, "wiki_get", wiki="Alex", page_name="Contact"
        )

        assert not result.isError
        assert "revision 59" in result.content[0].text
        assert result.structuredContent["revision"] == "59"
        assert store.exists("Alex", "Contact")

    async def test_new_page(self, registry, engine, transport):
        transport.respond("get", "")
        transport.respond("history", "title: Contact\n")
        result = await _call(
            registry, engine, "wiki_get", wiki="Alex", page_name="Contact"
        )
        assert "new page" in result.content[0].text

    async def test_missing_page_name(self, registry, engine):
        result = await _call(registry, engine, "wiki_get", wiki="Alex")
        assert result.isError
        assert "page_name is required" in result.content[0].text

    async def test_unknown_wiki(self, registry, engine):
        result = await _call(
            registry, engine, "wiki_get", wiki="Nope", page_name="Contact"
        )
        assert result.isError
        assert "not_found" in result.content[0].text

    async def test_remote_error(self, registry, engine, transport):
        transport.respond("get", "<title>Error</title><h1>Page locked</h1>")
        result = await _call(
            registry, engine, "wiki_get", wiki="Alex", page_name="Contact"
        )
        assert result.isError
        assert "Page locked" in result.content[0].text


class TestWikiPost:
    async def _load(self, registry, engine, transport):
        transport.respond("get", "Call me.\n")
        transport.respond("history", history_feed("58"))
        await _call(registry, engine, "wiki_get", wiki="Alex", page_name="Contact")

    async def test_post_content(self, registry, engine, transport, store, wiki):
        await self._load(registry, engine, transport)
        transport.respond("post", "302")
        transport.respond("history", history_feed("59", "58"))

        result = await _call(
            registry,
            engine,
            "wiki_post",
            wiki="Alex",
            page_name="Contact",
            content="New number.\n",
            summary="phone",
            minor=True,
        )

        assert not result.isError
        assert result.structuredContent["revision"] == "59"
        assert store.read(wiki, "Contact") == "New number.\n"
        args = shlex.split(transport.ran("post")[0])
        assert "revision=58" in args
        assert "recent_edit=on" in args

    async def test_post_local_file(self, registry, engine, transport, store, wiki):
        await self._load(registry, engine, transport)
        store.write(wiki, "Contact", "Edited locally.\n")
        transport.respond("post", "302")
        transport.respond("history", history_feed("59"))

        result = await _call(
            registry, engine, "wiki_post", wiki="Alex", page_name="Contact"
        )

        assert not result.isError
        assert store.read(wiki, "Contact") == "Edited locally.\n"

    async def test_underscores_and_spaces_name_one_page(
        self, registry, engine, transport
    ):
        transport.respond("get", "Text.\n")
        transport.respond("history", history_feed("3"))
        got = await _call(
            registry, engine, "wiki_get", wiki="Alex", page_name="Foo_Bar"
        )
        assert got.structuredContent["page_name"] == "Foo Bar"

        transport.respond("post", "302")
        transport.respond("history", history_feed("4", "3"))
        result = await _call(
            registry, engine, "wiki_post", wiki="Alex", page_name="Foo Bar"
        )

        assert not result.isError
        assert result.structuredContent["revision"] == "4"
        assert "oldtime=3" in shlex.split(transport.ran("post")[0])

    async def test_post_without_load(self, registry, engine, transport):
        result = await _call(
            registry,
            engine,
            "wiki_post",
            wiki="Alex",
            page_name="Contact",
            content="x",
        )
        assert result.isError
        assert "invariant_violation" in result.content[0].text
        assert transport.commands == []

    async def test_post_without_content_or_file(self, registry, engine):
        result = await _call(
            registry, engine, "wiki_post", wiki="Alex", page_name="Contact"
        )
        assert result.isError
        assert "no local file" in result.content[0].text

    async def test_preview(self, registry, engine, transport):
        await self._load(registry, engine, transport)
        transport.respond("preview", "<p>New</p>")
        result = await _call(
            registry,
            engine,
            "wiki_preview",
            wiki="Alex",
            page_name="Contact",
            content="New",
        )
        assert result.content[0].text == "<p>New</p>"
        assert engine.baseline("Alex", "Contact") == "58"


class TestListingTools:
    async def test_history(self, registry, engine, transport):
        transport.respond("history", HISTORY_FEED)
        result = await _call(
            registry, engine, "wiki_history", wiki="Alex", page_name="Contact"
        )
        text = result.content[0].text
        assert "- Contact (r59, by Alex, 2012-06-03T11:47:24Z, minor): new phone number" in text

    async def test_recent_changes_limit(self, registry, engine, transport):
        transport.respond(
            "rc", "head\n\ntitle: A\n\ntitle: B\n\ntitle: C\n"
        )
        result = await _call(
            registry, engine, "wiki_recent_changes", wiki="Alex", limit=2
        )
        titles = [i["title"] for i in result.structuredContent["items"]]
        assert titles == ["A", "B"]

    async def test_search(self, registry, engine, transport):
        transport.respond("search", "head\n\ntitle: Contact\ndescription: phone\n")
        result = await _call(
            registry, engine, "wiki_search", wiki="Alex", pattern="phone"
        )
        assert result.structuredContent["total"] == 1

    async def test_search_empty_pattern(self, registry, engine):
        result = await _call(
            registry, engine, "wiki_search", wiki="Alex", pattern=""
        )
        assert result.isError

    async def test_match(self, registry, engine, transport):
        transport.respond("match", "Contact\nContact_Archive\n")
        result = await _call(
            registry, engine, "wiki_match", wiki="Alex", pattern="Cont"
        )
        assert result.structuredContent["pages"] == ["Contact", "Contact Archive"]

    async def test_index_prefix_and_reload(self, registry, engine, transport):
        transport.respond("index", "HomePage\n")
        transport.respond("index", "HomePage\nHelp\nContact\n")
        first = await _call(registry, engine, "wiki_index", wiki="Alex")
        assert first.structuredContent["pages"] == ["HomePage"]

        second = await _call(
            registry, engine, "wiki_index", wiki="Alex", prefix="H", reload=True
        )
        assert second.structuredContent["pages"] == ["Help", "HomePage"]
