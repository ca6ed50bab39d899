"""Error response builders and shared utilities for MCP tool handlers.

This module turns the sync core's exceptions into structured responses
with corrective actions, so an agent can recover without human
intervention, plus shared formatting used across tool modules.
"""

import mcp.types as types

from ...errors import (
    InvariantViolation,
    OddmuseError,
    PageNotFoundError,
    RemoteError,
    WikiNotFoundError,
)
from ...models import FeedItem


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (not_found, remote_error, invariant_violation, validation_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("not_found", "Wiki 'Foo' is not configured", "Use wiki_list_wikis to see configured wikis.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def translate_error(
    error: OddmuseError,
    wiki: str | None = None,
    page_name: str | None = None,
) -> types.CallToolResult:
    """Translate a sync core exception to a structured error response.

    Remote messages are passed through verbatim; the local file is left
    untouched so the content can be corrected and posted again.

    Args:
        error: The exception raised by the engine
        wiki: Wiki name from the tool arguments, for suggestions
        page_name: Page name from the tool arguments, for suggestions

    Returns:
        CallToolResult with isError=True and corrective action
    """
    target = f"wiki='{wiki}', page_name='{page_name}'"

    match error:
        case WikiNotFoundError():
            return build_error_response(
                "not_found",
                str(error),
                "Use wiki_list_wikis to see configured wikis.",
            )
        case PageNotFoundError():
            return build_error_response(
                "not_found",
                str(error),
                f"Use wiki_index(wiki='{error.wiki}', reload=true) to refresh page names.",
            )
        case InvariantViolation():
            return build_error_response(
                "invariant_violation",
                str(error),
                f"Load the page first with wiki_get({target}), then retry.",
            )
        case RemoteError():
            return build_error_response(
                "remote_error",
                error.message,
                "Check credentials and content, then retry. "
                "Your local copy was not changed.",
            )
        case _:
            return build_error_response(
                "server_error", str(error), "Retry later."
            )


# ---------------------------------------------------------------------------
# Shared formatting utilities
# ---------------------------------------------------------------------------


def format_feed_item(item: FeedItem) -> str:
    """One line per feed item, e.g. ``- Contact (r59 by Alex, minor): phone``."""
    details = []
    if item.revision:
        details.append(f"r{item.revision}")
    if item.generator:
        details.append(f"by {item.generator}")
    if item.last_modified:
        details.append(item.last_modified)
    if item.minor:
        details.append("minor")

    line = f"- {item.title}"
    if details:
        line += f" ({', '.join(details)})"
    if item.description:
        line += f": {item.description.splitlines()[0]}"
    return line


def text_result(
    text: str, structured: dict | None = None
) -> types.CallToolResult:
    """Wrap *text* (and optional structured content) in a result."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )
