"""Shared test fixtures.

No language server or fish shell required: the server link is an in-memory
fake and fish trees are built under ``tmp_path``.  Because ``tmp_path``
itself lives under ``/tmp`` (a scratch area by default), classifiers used
against these trees are built with ``scratch_dirs=()``.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import anyio
import pytest

from fishbridge.client.link.base import LinkHandshake, LinkUnavailableError
from fishbridge.client.models.messages import ProtocolMessage
from fishbridge.client.settings import _get_settings_cached
from fishbridge.client.workspace.classifier import PathClassifier

# ---------------------------------------------------------------------------
# Settings isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_settings_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop FISHBRIDGE_* variables and the cached settings around every test."""
    for key in list(os.environ):
        if key.startswith("FISHBRIDGE_"):
            monkeypatch.delenv(key)
    _get_settings_cached.cache_clear()
    yield
    _get_settings_cached.cache_clear()


# ---------------------------------------------------------------------------
# Fake server link
# ---------------------------------------------------------------------------


class FakeLink:
    """In-memory ``ServerLink`` that records everything it is asked to send.

    ``fail_sends`` makes every ``send`` raise ``LinkUnavailableError`` and
    mark the link not ready.  ``fail_next`` fails only that many upcoming
    sends and leaves readiness alone, like a stale client erroring after a
    restart.  ``delay`` yields to the event loop before each send completes
    so concurrent handlers can interleave.
    """

    def __init__(self, *, delay: float = 0.0) -> None:
        self.sent: list[ProtocolMessage] = []
        self.handshakes: list[LinkHandshake] = []
        self.ready = False
        self.fail_sends = False
        self.fail_next = 0
        self.fail_start = False
        self.stopped = False
        self.delay = delay

    @property
    def is_ready(self) -> bool:
        return self.ready

    async def start(self, handshake: LinkHandshake) -> None:
        if self.fail_start:
            msg = "spawn failed"
            raise LinkUnavailableError(msg)
        self.handshakes.append(handshake)
        self.ready = True

    async def send(self, message: ProtocolMessage) -> None:
        await anyio.sleep(self.delay)
        if self.fail_next:
            self.fail_next -= 1
            msg = "stale connection"
            raise LinkUnavailableError(msg)
        if self.fail_sends:
            self.ready = False
            msg = "server went away"
            raise LinkUnavailableError(msg)
        self.sent.append(message)

    async def restart(self, handshake: LinkHandshake) -> None:
        await self.stop()
        await self.start(handshake)

    async def stop(self) -> None:
        self.stopped = True
        self.ready = False

    def methods(self) -> list[str]:
        return [m.method for m in self.sent]


@pytest.fixture
def link() -> FakeLink:
    return FakeLink()


# ---------------------------------------------------------------------------
# Fish trees
# ---------------------------------------------------------------------------


def make_fish_root(base: Path, *, markers: tuple[str, ...] = ("functions",), config: bool = False) -> Path:
    """Create a fish root under *base* with the given marker dirs (and ``config.fish``)."""
    base.mkdir(parents=True, exist_ok=True)
    for name in markers:
        (base / name).mkdir(exist_ok=True)
    if config:
        (base / "config.fish").write_text("set -g fish_greeting\n")
    return base


@pytest.fixture
def make_root():
    return make_fish_root


@pytest.fixture
def fish_home(tmp_path: Path) -> Path:
    """A user config tree: ``<tmp>/home/.config/fish`` with functions, conf.d and config.fish."""
    root = make_fish_root(tmp_path / "home" / ".config" / "fish", markers=("functions", "conf.d"), config=True)
    (root / "functions" / "foo.fish").write_text("function foo\nend\n")
    return root


@pytest.fixture
def fish_data(tmp_path: Path) -> Path:
    """A data tree: ``<tmp>/usr/share/fish`` with functions and completions."""
    root = make_fish_root(tmp_path / "usr" / "share" / "fish", markers=("functions", "completions"))
    (root / "completions" / "git.fish").write_text("complete -c git\n")
    return root


@pytest.fixture
def classifier() -> PathClassifier:
    return PathClassifier(scratch_dirs=())
