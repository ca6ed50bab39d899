"""Async utilities for calling the blocking sync core from MCP handlers."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)

# One lock per (wiki, page) while any operation holds or awaits it
_key_locks: dict[tuple[str, str], asyncio.Lock] = {}
_key_users: dict[tuple[str, str], int] = {}


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        # In MCP tool handler:
        result = await run_sync(engine.load, "CommunityWiki", "HomePage")
    """
    return await asyncio.to_thread(func, *args, **kwargs)


@asynccontextmanager
async def key_lock(wiki: str, page: str) -> AsyncIterator[None]:
    """Serialize sync operations on one page.

    At most one load, post or preview may be in flight per page;
    operations on different pages run concurrently. The lock is dropped
    once no operation holds or awaits it.
    """
    key = (wiki, page)
    lock = _key_locks.setdefault(key, asyncio.Lock())
    _key_users[key] = _key_users.get(key, 0) + 1
    try:
        if lock.locked():
            logger.debug("Waiting for in-flight operation on %s:%s", wiki, page)
        async with lock:
            yield
    finally:
        remaining = _key_users.get(key, 1) - 1
        if remaining:
            _key_users[key] = remaining
        else:
            _key_users.pop(key, None)
            _key_locks.pop(key, None)


def reset_key_locks() -> None:
    """Forget all page locks. Call between server runs."""
    _key_locks.clear()
    _key_users.clear()
