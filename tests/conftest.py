"""Shared pytest fixtures for oddmuse-sync tests."""

import pytest

from oddmuse_sync.config import WikiConfig
from oddmuse_sync.core.async_utils import reset_key_locks
from oddmuse_sync.core.client import WikiClient
from oddmuse_sync.core.commands import CommandSet
from oddmuse_sync.core.transport import TransportResult
from oddmuse_sync.file_handler import LocalStore
from oddmuse_sync.registry import WikiRegistry
from oddmuse_sync.sync.engine import SyncEngine


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that talk to a live Oddmuse wiki",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live Oddmuse wiki"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------------
# Feed samples
# ---------------------------------------------------------------------------

HISTORY_FEED = """\
title: Contact
description: History of Contact

title: Contact
generator: Alex
last-modified: 2012-06-03T11:47:24Z
revision: 59
description: new phone number
minor: 1

title: Contact
generator: Alex
last-modified: 2012-05-01T08:00:00Z
revision: 58
description: initial
"""

EMPTY_FEED = "title: Contact\ndescription: History of Contact\n"


def history_feed(*revisions: str) -> str:
    """Build a history feed listing *revisions*, newest first."""
    blocks = ["title: Contact\ndescription: History"]
    blocks += [f"title: Contact\nrevision: {rev}" for rev in revisions]
    return "\n\n".join(blocks) + "\n"


# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------


def operation_of(command: str) -> str:
    """Name of the built-in template a rendered command came from."""
    if "Preview=Preview" in command:
        return "preview"
    if "--write-out" in command:
        return "post"
    if "match=" in command:
        return "match"
    if "action=index" in command:
        return "index"
    if "action=history" in command:
        return "history"
    if "action=rc" in command:
        return "rc"
    if "search=" in command:
        return "search"
    if "action=browse" in command:
        return "get"
    raise AssertionError(f"unrecognized command: {command}")


class FakeTransport:
    """Stands in for ShellTransport; replies per operation.

    ``respond(op, stdout)`` queues a reply. Replies are used in order and
    the last one is repeated; queuing after it was used replaces it.
    """

    def __init__(self):
        self.commands: list[str] = []
        self._replies: dict[str, list[TransportResult]] = {}
        self._repeated: set[str] = set()

    def respond(self, op: str, stdout: str, returncode: int | None = 0):
        if op in self._repeated:
            self._repeated.discard(op)
            self._replies[op].clear()
        self._replies.setdefault(op, []).append(
            TransportResult(stdout=stdout, returncode=returncode)
        )

    def run(self, command: str, encoding: str = "utf-8") -> TransportResult:
        self.commands.append(command)
        op = operation_of(command)
        queue = self._replies.get(op)
        if not queue:
            raise AssertionError(f"no reply queued for {op}: {command}")
        if len(queue) > 1:
            return queue.pop(0)
        self._repeated.add(op)
        return queue[0]

    def ran(self, op: str) -> list[str]:
        """Commands run for *op*, in order."""
        return [c for c in self.commands if operation_of(c) == op]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def wiki():
    return WikiConfig(name="Alex", url="https://alexschroeder.ch/wiki")


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(transport):
    return WikiClient(CommandSet.from_overrides(), transport, username="Tester")


@pytest.fixture
def store(tmp_path):
    return LocalStore(tmp_path / "pages")


@pytest.fixture
def engine(wiki, client, store):
    return SyncEngine(WikiRegistry([wiki]), client, store)


@pytest.fixture(autouse=True)
def _clean_key_locks():
    yield
    reset_key_locks()
