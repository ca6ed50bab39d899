"""Command rendering, transport and the wiki client."""

from .async_utils import key_lock, run_sync
from .client import WikiClient, classify_response
from .commands import CommandSet, CommandTemplate
from .transport import ShellTransport

__all__ = [
    "CommandSet",
    "CommandTemplate",
    "ShellTransport",
    "WikiClient",
    "classify_response",
    "key_lock",
    "run_sync",
]
