"""Read-only wiki tool handlers for MCP server.

This module implements wiki read operations: list wikis, get (checkout),
history, recent changes, search, match and the page index. Handlers use
run_sync() to bridge the synchronous SyncEngine.
"""

import mcp.types as types

from ...core.async_utils import key_lock, run_sync
from ...models import from_wire
from ...sync.engine import SyncEngine
from ...validators import validate_page_name, validate_pattern
from .errors import format_feed_item, text_result
from .registry import ToolSpec

_WIKI_PARAM = {
    "type": "string",
    "description": "Configured wiki name (see wiki_list_wikis)",
}
_PAGE_PARAM = {
    "type": "string",
    "description": "Page name; spaces and underscores are equivalent",
}
_LIMIT_PARAM = {
    "type": "integer",
    "description": "Maximum items to return (default: 50, max: 500)",
    "default": 50,
    "minimum": 1,
    "maximum": 500,
}

WIKI_READ_TOOLS = [
    types.Tool(
        name="wiki_list_wikis",
        description="List configured wikis with their URLs and encodings.",
        inputSchema={"type": "object", "properties": {}, "required": []},
    ),
    types.Tool(
        name="wiki_get",
        description="Load a page, write it to its local file and record the revision it was loaded at. Posting requires a prior wiki_get of the same page.",
        inputSchema={
            "type": "object",
            "properties": {"wiki": _WIKI_PARAM, "page_name": _PAGE_PARAM},
            "required": ["wiki", "page_name"],
        },
    ),
    types.Tool(
        name="wiki_history",
        description="List the revisions of a page, newest first.",
        inputSchema={
            "type": "object",
            "properties": {"wiki": _WIKI_PARAM, "page_name": _PAGE_PARAM},
            "required": ["wiki", "page_name"],
        },
    ),
    types.Tool(
        name="wiki_recent_changes",
        description="List recent changes of a wiki, newest first.",
        inputSchema={
            "type": "object",
            "properties": {"wiki": _WIKI_PARAM, "limit": _LIMIT_PARAM},
            "required": ["wiki"],
        },
    ),
    types.Tool(
        name="wiki_search",
        description="Full-text search of a wiki. Returns matching pages with snippets.",
        inputSchema={
            "type": "object",
            "properties": {
                "wiki": _WIKI_PARAM,
                "pattern": {
                    "type": "string",
                    "description": "Search pattern (regular expression, as the wiki interprets it)",
                },
                "limit": _LIMIT_PARAM,
            },
            "required": ["wiki", "pattern"],
        },
    ),
    types.Tool(
        name="wiki_match",
        description="List page names matching a pattern.",
        inputSchema={
            "type": "object",
            "properties": {
                "wiki": _WIKI_PARAM,
                "pattern": {
                    "type": "string",
                    "description": "Page name pattern",
                },
            },
            "required": ["wiki", "pattern"],
        },
    ),
    types.Tool(
        name="wiki_index",
        description="List all known page names of a wiki. The list is fetched once and cached; set reload=true to fetch it again.",
        inputSchema={
            "type": "object",
            "properties": {
                "wiki": _WIKI_PARAM,
                "prefix": {
                    "type": "string",
                    "description": "Only return names starting with this prefix (optional)",
                },
                "reload": {
                    "type": "boolean",
                    "description": "Fetch the index again instead of using the cache (default: false)",
                    "default": False,
                },
            },
            "required": ["wiki"],
        },
    ),
]


def _require_wiki(args: dict) -> str:
    wiki = args.get("wiki")
    if not wiki:
        raise ValueError("wiki is required")
    return wiki


def _require_page(args: dict) -> str:
    page_name = args.get("page_name")
    if not page_name:
        raise ValueError("page_name is required")
    is_valid, message = validate_page_name(page_name)
    if not is_valid:
        raise ValueError(message)
    return from_wire(page_name)


def _require_pattern(args: dict) -> str:
    pattern = args.get("pattern") or ""
    is_valid, message = validate_pattern(pattern)
    if not is_valid:
        raise ValueError(message)
    return pattern


def _limit(args: dict) -> int:
    limit = int(args.get("limit", 50))
    return max(1, min(limit, 500))


async def _handle_list_wikis(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    """Handle wiki_list_wikis."""
    wikis = [engine.registry.lookup(name) for name in engine.registry.names()]
    if not wikis:
        return text_result(
            "No wikis configured. Add a 'wikis' section to .oddmuse/config.yml.",
            {"wikis": []},
        )

    lines = [f"Configured wikis ({len(wikis)}):", ""]
    lines.extend(
        f"- {wiki.name}: {wiki.url} ({wiki.encoding})" for wiki in wikis
    )
    return text_result(
        "\n".join(lines),
        {
            "wikis": [
                {"name": w.name, "url": w.url, "encoding": w.encoding}
                for w in wikis
            ]
        },
    )


async def _handle_get(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    """Handle wiki_get."""
    wiki = _require_wiki(args)
    page_name = _require_page(args)

    async with key_lock(wiki, page_name):
        result, path = await run_sync(engine.checkout, wiki, page_name)

    state = "new page" if result.is_new else f"revision {result.revision}"
    text = (
        f"# {page_name} ({wiki}, {state})\n"
        f"Local file: {path}\n\n"
        f"{result.content}"
    )
    return text_result(
        text,
        {
            "wiki": wiki,
            "page_name": page_name,
            "revision": result.revision,
            "path": str(path),
            "content": result.content,
        },
    )


async def _handle_history(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    """Handle wiki_history."""
    wiki = _require_wiki(args)
    page_name = _require_page(args)

    items = await run_sync(engine.history, wiki, page_name)
    if not items:
        return text_result(
            f"Page '{page_name}' has no history on {wiki}.", {"items": []}
        )

    lines = [f"History of {page_name} ({len(items)} revisions):", ""]
    lines.extend(format_feed_item(item) for item in items)
    return text_result(
        "\n".join(lines),
        {"items": [item.model_dump() for item in items]},
    )


async def _handle_recent_changes(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    """Handle wiki_recent_changes."""
    wiki = _require_wiki(args)
    limit = _limit(args)

    items = (await run_sync(engine.recent_changes, wiki))[:limit]
    if not items:
        return text_result(f"No recent changes on {wiki}.", {"items": []})

    lines = [f"Recent changes on {wiki} ({len(items)} shown):", ""]
    lines.extend(format_feed_item(item) for item in items)
    return text_result(
        "\n".join(lines),
        {"items": [item.model_dump() for item in items]},
    )


async def _handle_search(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    """Handle wiki_search."""
    wiki = _require_wiki(args)
    pattern = _require_pattern(args)
    limit = _limit(args)

    items = await run_sync(engine.search, wiki, pattern)
    total = len(items)
    items = items[:limit]
    if not items:
        return text_result(
            f"No pages on {wiki} match '{pattern}'.",
            {"items": [], "total": 0},
        )

    lines = [f"Search results for '{pattern}' ({len(items)} of {total}):", ""]
    lines.extend(format_feed_item(item) for item in items)
    return text_result(
        "\n".join(lines),
        {"items": [item.model_dump() for item in items], "total": total},
    )


async def _handle_match(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    """Handle wiki_match."""
    wiki = _require_wiki(args)
    pattern = _require_pattern(args)

    names = await run_sync(engine.match, wiki, pattern)
    if not names:
        return text_result(
            f"No page names on {wiki} match '{pattern}'.", {"pages": []}
        )
    return text_result("\n".join(names), {"pages": names})


async def _handle_index(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    """Handle wiki_index."""
    wiki = _require_wiki(args)
    prefix = args.get("prefix") or ""

    if args.get("reload", False):
        names = await run_sync(engine.reload_page_names, wiki)
    else:
        names = await run_sync(engine.page_names, wiki)

    pages = sorted(name for name in names if name.startswith(prefix))
    header = f"{len(pages)} pages on {wiki}"
    if prefix:
        header += f" starting with '{prefix}'"
    return text_result(
        "\n".join([header + ":", ""] + pages),
        {"pages": pages},
    )


WIKI_READ_SPECS: list[ToolSpec] = [
    ToolSpec(tool=WIKI_READ_TOOLS[0], handler=_handle_list_wikis),
    ToolSpec(tool=WIKI_READ_TOOLS[1], handler=_handle_get),
    ToolSpec(tool=WIKI_READ_TOOLS[2], handler=_handle_history),
    ToolSpec(tool=WIKI_READ_TOOLS[3], handler=_handle_recent_changes),
    ToolSpec(tool=WIKI_READ_TOOLS[4], handler=_handle_search),
    ToolSpec(tool=WIKI_READ_TOOLS[5], handler=_handle_match),
    ToolSpec(tool=WIKI_READ_TOOLS[6], handler=_handle_index),
]
