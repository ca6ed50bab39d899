"""Write tool handlers for MCP server: post and preview.

Both tools send the revision recorded by the last wiki_get (or post) of
the page, so the server can detect concurrent edits. They are dropped
from the registry in read-only mode (preview with it, since it uses the
same form and credentials as a post).
"""

import mcp.types as types

from ...core.async_utils import key_lock, run_sync
from ...models import PostMeta
from ...sync.engine import SyncEngine
from .errors import text_result
from .registry import ToolSpec
from .wiki_read import _require_page, _require_wiki

_POST_PROPERTIES = {
    "wiki": {
        "type": "string",
        "description": "Configured wiki name (see wiki_list_wikis)",
    },
    "page_name": {
        "type": "string",
        "description": "Page name; must have been loaded with wiki_get",
    },
    "content": {
        "type": "string",
        "description": "New page text. If omitted, the local file written by wiki_get is sent.",
    },
    "summary": {
        "type": "string",
        "description": "Change summary (optional)",
        "default": "",
    },
    "username": {
        "type": "string",
        "description": "Author name (optional, defaults to the configured username)",
    },
    "password": {
        "type": "string",
        "description": "Editor password for locked pages (optional)",
    },
    "minor": {
        "type": "boolean",
        "description": "Mark as a minor edit (default: false)",
        "default": False,
    },
}

WIKI_WRITE_TOOLS = [
    types.Tool(
        name="wiki_post",
        description="Save a page. Sends the revision the page was loaded at; the wiki rejects the post if someone else saved in between. On success the recorded revision advances.",
        inputSchema={
            "type": "object",
            "properties": _POST_PROPERTIES,
            "required": ["wiki", "page_name"],
        },
    ),
    types.Tool(
        name="wiki_preview",
        description="Render a page as HTML without saving it. Same parameters as wiki_post.",
        inputSchema={
            "type": "object",
            "properties": _POST_PROPERTIES,
            "required": ["wiki", "page_name"],
        },
    ),
]


def _meta(args: dict) -> PostMeta:
    return PostMeta(
        summary=args.get("summary") or "",
        username=args.get("username"),
        password=args.get("password"),
        minor=bool(args.get("minor", False)),
    )


def _content(engine: SyncEngine, wiki: str, page_name: str, args: dict) -> str:
    content = args.get("content")
    if content is not None:
        return content
    try:
        return engine.store.read(engine.registry.lookup(wiki), page_name)
    except FileNotFoundError:
        raise ValueError(
            f"No content given and no local file for '{page_name}'. "
            "Pass content or run wiki_get first."
        ) from None


async def _handle_post(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    """Handle wiki_post."""
    wiki = _require_wiki(args)
    page_name = _require_page(args)
    meta = _meta(args)

    async with key_lock(wiki, page_name):
        content = await run_sync(_content, engine, wiki, page_name, args)
        result = await run_sync(engine.post, wiki, page_name, content, meta)

    return text_result(
        f"Saved {page_name} on {wiki}. Now at revision {result.revision}.",
        {
            "wiki": wiki,
            "page_name": page_name,
            "status": result.status,
            "revision": result.revision,
        },
    )


async def _handle_preview(
    engine: SyncEngine, args: dict
) -> types.CallToolResult:
    """Handle wiki_preview."""
    wiki = _require_wiki(args)
    page_name = _require_page(args)
    meta = _meta(args)

    async with key_lock(wiki, page_name):
        content = await run_sync(_content, engine, wiki, page_name, args)
        html = await run_sync(
            engine.preview, wiki, page_name, content, meta
        )

    return text_result(html, {"wiki": wiki, "page_name": page_name})


WIKI_WRITE_SPECS: list[ToolSpec] = [
    ToolSpec(tool=WIKI_WRITE_TOOLS[0], handler=_handle_post, writes=True),
    ToolSpec(tool=WIKI_WRITE_TOOLS[1], handler=_handle_preview, writes=True),
]
