"""Language-server link over stdio, built on pygls' ``LanguageClient``.

The link spawns ``fish-lsp start``, runs the ``initialize`` / ``initialized``
handshake, and forwards the reconciler's protocol messages as LSP
notifications.  Anything that goes wrong on the transport -- the process
failing to spawn, exiting underneath us, a JSON-RPC error during the
handshake -- surfaces as ``LinkUnavailableError``.

``start``, ``restart`` and ``stop`` are serialized on one lock, so at most
one client is alive at a time even when restarts overlap.
"""

from __future__ import annotations

import os

import anyio
from typing import TYPE_CHECKING, Any

from loguru import logger
from lsprotocol import types
from pygls.lsp.client import LanguageClient

from fishbridge import __version__
from fishbridge.client.link.base import LinkUnavailableError
from fishbridge.client.models.messages import DocumentChanged, DocumentOpened, WorkspaceFoldersChanged

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Mapping, Sequence

    from fishbridge.client.link.base import LinkHandshake
    from fishbridge.client.models.messages import ProtocolMessage
    from fishbridge.client.models.workspace import ShorthandFolder

CLIENT_NAME = "fishbridge"


# -- Message translation ------------------------------------------------------


def _folder(shorthand: ShorthandFolder) -> types.WorkspaceFolder:
    return types.WorkspaceFolder(uri=shorthand.uri, name=shorthand.name)


def to_lsp_params(message: ProtocolMessage) -> Any:
    """Translate a reconciler message into its ``lsprotocol`` params object."""
    if isinstance(message, WorkspaceFoldersChanged):
        return types.DidChangeWorkspaceFoldersParams(
            event=types.WorkspaceFoldersChangeEvent(
                added=[_folder(f) for f in message.added],
                removed=[_folder(f) for f in message.removed],
            )
        )
    if isinstance(message, DocumentOpened):
        return types.DidOpenTextDocumentParams(
            text_document=types.TextDocumentItem(
                uri=message.uri,
                language_id=message.language_id,
                version=message.version,
                text=message.text,
            )
        )
    if isinstance(message, DocumentChanged):
        return types.DidChangeTextDocumentParams(
            text_document=types.VersionedTextDocumentIdentifier(uri=message.uri, version=message.version),
            content_changes=[],
        )
    msg = f"Unsupported protocol message: {message.method}"
    raise ValueError(msg)


def initialize_params(handshake: LinkHandshake) -> types.InitializeParams:
    return types.InitializeParams(
        process_id=os.getpid(),
        client_info=types.ClientInfo(name=CLIENT_NAME, version=__version__),
        root_uri=handshake.root_uri,
        workspace_folders=[_folder(f) for f in handshake.workspace_folders],
        initialization_options=handshake.initialization_options,
        capabilities=types.ClientCapabilities(
            workspace=types.WorkspaceClientCapabilities(workspace_folders=True),
        ),
    )


# -- Client --------------------------------------------------------------------


class _BridgeClient(LanguageClient):
    """``LanguageClient`` that reports when the server process goes away."""

    def __init__(self, link: LspServerLink) -> None:
        super().__init__(CLIENT_NAME, __version__)
        self._link = link

    async def server_exit(self, server: asyncio.subprocess.Process) -> None:
        logger.warning("LSP: server exited (code={})", server.returncode)
        # A replaced client exiting must not mark its successor down.
        if self._link._client is self:
            self._link._ready = False


class LspServerLink:
    """``ServerLink`` speaking LSP to a ``fish-lsp`` child process over stdio."""

    def __init__(
        self,
        executable: str,
        args: Sequence[str] = ("start",),
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._executable = executable
        self._args = tuple(args)
        self._env = dict(env) if env is not None else None
        self._client: _BridgeClient | None = None
        self._ready = False
        self._lock = anyio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._ready and self._client is not None

    async def start(self, handshake: LinkHandshake) -> None:
        async with self._lock:
            await self._stop()
            await self._start(handshake)

    async def restart(self, handshake: LinkHandshake) -> None:
        logger.info("LSP: restarting language server")
        async with self._lock:
            await self._stop()
            await self._start(handshake)

    async def stop(self) -> None:
        async with self._lock:
            await self._stop()

    async def send(self, message: ProtocolMessage) -> None:
        client = self._client
        if client is None or not self._ready:
            msg = f"Language server not ready, cannot send {message.method}"
            raise LinkUnavailableError(msg)

        params = to_lsp_params(message)
        try:
            client.protocol.notify(message.method, params)
        except Exception as exc:
            self._ready = False
            msg = f"Failed to send {message.method}: {exc}"
            raise LinkUnavailableError(msg) from exc
        logger.debug("LSP: sent {}", message.method)

    async def _start(self, handshake: LinkHandshake) -> None:
        client = _BridgeClient(self)
        logger.info("LSP: starting {} {}", self._executable, " ".join(self._args))
        try:
            await client.start_io(self._executable, *self._args, env=self._env)
            result = await client.initialize_async(initialize_params(handshake))
            client.initialized(types.InitializedParams())
        except Exception as exc:
            await _stop_quietly(client)
            msg = f"Failed to start language server {self._executable}: {exc}"
            raise LinkUnavailableError(msg) from exc

        self._client = client
        self._ready = True
        server_info = result.server_info
        logger.info(
            "LSP: connected to {} {}",
            server_info.name if server_info else "server",
            (server_info.version or "") if server_info else "",
        )

    async def _stop(self) -> None:
        client, self._client = self._client, None
        ready, self._ready = self._ready, False
        if client is None:
            return
        if ready:
            try:
                await client.shutdown_async(None)
                client.exit(None)
            except Exception as exc:
                logger.debug("LSP: shutdown handshake failed: {}", exc)
        await _stop_quietly(client)
        logger.info("LSP: stopped")


async def _stop_quietly(client: LanguageClient) -> None:
    try:
        await client.stop()
    except Exception as exc:
        logger.debug("LSP: error while stopping client: {}", exc)
