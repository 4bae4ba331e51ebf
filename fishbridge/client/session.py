"""Bridge session lifecycle.

One ``BridgeSession`` spans one activation of the bridge:

1. **Validate**: locate ``fish-lsp`` (required) and ``fish`` (best effort)
2. **Environment**: read fish's environment and its default indexed paths
3. **Seed**: classify the initial document / folders into workspaces
4. **Connect**: start the server with every seeded root in the handshake

After ``start`` the session only forwards host events to the reconciler.
``stop`` shuts the server down and drops all workspace state.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING

from loguru import logger

from fishbridge.client.environment import (
    StartupValidationError,
    default_indexed_paths,
    fish_environment,
    resolve_fish_path,
    resolve_server_path,
)
from fishbridge.client.link.base import LinkUnavailableError
from fishbridge.client.link.lsp import LspServerLink
from fishbridge.client.sync.reconciler import EventReconciler
from fishbridge.client.workspace.classifier import PathClassifier

if TYPE_CHECKING:
    from fishbridge.client.link.base import ServerLink
    from fishbridge.client.models.pathlike import FolderDescriptor, OpenDocument, PathInput
    from fishbridge.client.models.workspace import WorkspaceRecord
    from fishbridge.client.settings import BridgeSettings

LinkFactory = Callable[[str, Mapping[str, str]], "ServerLink"]
"""Builds the server link from the executable path and the server environment."""


def _default_link_factory(executable: str, env: Mapping[str, str]) -> ServerLink:
    return LspServerLink(executable, env=env)


class BridgeSession:
    """Owns the reconciler and the server link for one activation."""

    def __init__(self, settings: BridgeSettings, *, link_factory: LinkFactory | None = None) -> None:
        self._settings = settings
        self._link_factory = link_factory or _default_link_factory
        self._reconciler: EventReconciler | None = None

    @property
    def reconciler(self) -> EventReconciler:
        if self._reconciler is None:
            msg = "Bridge session is not started"
            raise RuntimeError(msg)
        return self._reconciler

    @property
    def started(self) -> bool:
        return self._reconciler is not None

    async def start(
        self,
        *,
        document: OpenDocument | None = None,
        folders: Sequence[FolderDescriptor] = (),
    ) -> list[WorkspaceRecord]:
        """Activate the bridge.  Returns the workspaces announced in the handshake.

        Raises ``StartupValidationError`` if ``fish-lsp`` is unusable or the
        server cannot be started.
        """
        if self._reconciler is not None:
            logger.warning("Bridge session already started")
            return self._reconciler.collection.all()

        settings = self._settings

        # -- Validate ----------------------------------------------------------
        server_path = await resolve_server_path(settings)
        fish_path = await resolve_fish_path(settings)

        # -- Environment -------------------------------------------------------
        env = await fish_environment(fish_path, timeout=settings.helper_timeout)
        indexed = await default_indexed_paths(env, fish_path, timeout=settings.helper_timeout)

        classifier = PathClassifier(
            scratch_dirs=settings.scratch_dirs,
            indexed_paths=indexed,
            fallback=settings.fallback,
        )
        link = self._link_factory(server_path, env)
        reconciler = EventReconciler(link, classifier, language_id=settings.language_id)

        # -- Seed --------------------------------------------------------------
        initial: list[PathInput | str] = []
        if document is not None:
            initial.append(document)
        initial.extend(folders)
        if not settings.enable_workspace_folders:
            initial.extend(indexed)

        reconciler.activate(
            initial,
            root_uri=document.as_uri() if document is not None else None,
            initialization_options={"fishPath": fish_path},
        )

        # -- Connect -----------------------------------------------------------
        handshake = reconciler.handshake()
        try:
            await link.start(handshake)
        except LinkUnavailableError as exc:
            reconciler.deactivate()
            msg = f"Language server failed to start: {exc}"
            raise StartupValidationError(msg) from exc

        records = reconciler.collection.all()
        reconciler.link_ready(r.root_path for r in records)
        self._reconciler = reconciler
        logger.info("Bridge started with {} workspaces: {}", len(records), ", ".join(r.root_path for r in records))

        if document is not None:
            await reconciler.document_opened(document)
        return records

    async def restart(self) -> bool:
        """Restart the language server, re-announcing every known workspace."""
        return await self.reconciler.restart_link()

    async def stop(self) -> None:
        reconciler, self._reconciler = self._reconciler, None
        if reconciler is None:
            return
        try:
            await reconciler.link.stop()
        finally:
            reconciler.deactivate()
        logger.info("Bridge stopped")
