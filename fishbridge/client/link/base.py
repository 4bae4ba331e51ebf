"""Language-server link interface.

The link is the only way the bridge reaches the external ``fish-lsp``
process.  The interface is async to allow both a real stdio transport and
in-memory fakes in tests.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from fishbridge.client.models.messages import ProtocolMessage
from fishbridge.client.models.workspace import ShorthandFolder


class LinkUnavailableError(RuntimeError):
    """Raised when the language server cannot be reached."""


class LinkHandshake(BaseModel):
    """What the server is told when a link (re)starts.

    Roots listed in ``workspace_folders`` are known to the server from the
    start and never need a separate add-notification.
    """

    root_uri: str | None = None
    workspace_folders: list[ShorthandFolder] = Field(default_factory=list)
    initialization_options: dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class ServerLink(Protocol):
    """Async protocol for talking to the language server."""

    @property
    def is_ready(self) -> bool:
        """True once the handshake completed and the server has not gone away."""
        ...

    async def start(self, handshake: LinkHandshake) -> None:
        """Spawn the server and perform the handshake.  Raises ``LinkUnavailableError``."""
        ...

    async def send(self, message: ProtocolMessage) -> None:
        """Send one notification.  Raises ``LinkUnavailableError`` if the server is unreachable."""
        ...

    async def restart(self, handshake: LinkHandshake) -> None:
        """Stop the running server (if any) and start a fresh one."""
        ...

    async def stop(self) -> None:
        """Shut the server down.  No-op if it is not running."""
        ...
