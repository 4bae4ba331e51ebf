"""Event reconciler -- keeps the server's workspace folders in sync.

Driven by editor-level events, the reconciler runs every event through the
same one-way pipeline:

1. **Classify**: resolve the event's path(s) to canonical workspace roots
2. **Index**: add to / remove from the ``WorkspaceCollection``
3. **Decide**: claim unannounced roots through the ``NotificationDeduplicator``
4. **Emit**: send the protocol message(s) over the ``ServerLink``

Steps 1-3 are synchronous; the first ``await`` happens in step 4.  Two
handlers scheduled back-to-back can therefore interleave only around I/O,
never inside a decision, and a root is announced at most once per server
session no matter how many events rediscover it.

Link states::

    idle --activate--> awaiting_link_ready --link_ready--> active
                              ^                              |
                              +------ send failure ----------+

There is no retry loop.  Roots whose announcement failed go back to
"unannounced".  The next event after a failure either finds the link ready
again or restarts it once.  A ready link gets the pending roots along with the
event's own payload; a restarted one gets them in its handshake.  If that restart fails too, the event is dropped with a
warning and the one after it tries again.

Every restart or deactivation starts a new generation.  A send that fails
after the generation moved on must not touch the new session's state: its
roots were already announced through the new handshake.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from fishbridge.client.link.base import LinkHandshake, LinkUnavailableError
from fishbridge.client.models.enums import LinkState
from fishbridge.client.models.messages import DocumentChanged, DocumentOpened, WorkspaceFoldersChanged
from fishbridge.client.sync.dedup import NotificationDeduplicator
from fishbridge.client.workspace.collection import WorkspaceCollection

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from fishbridge.client.link.base import ServerLink
    from fishbridge.client.models.messages import ProtocolMessage
    from fishbridge.client.models.pathlike import FolderDescriptor, OpenDocument, PathInput
    from fishbridge.client.models.workspace import ShorthandFolder, WorkspaceRecord
    from fishbridge.client.workspace.classifier import PathClassifier


class EventReconciler:
    """Owns the workspace collection and the notified set for one activation.

    Nothing else mutates either; the session and the host driver only call
    the lifecycle and event methods below.
    """

    def __init__(
        self,
        link: ServerLink,
        classifier: PathClassifier,
        *,
        language_id: str = "fish",
    ) -> None:
        self._link = link
        self._language_id = language_id
        self.collection = WorkspaceCollection(classifier)
        self.dedup = NotificationDeduplicator()
        self._state = LinkState.IDLE
        self._handshake_done = False
        self._initialization_options: dict[str, Any] = {}
        self._root_uri: str | None = None
        # Removals the server never received, keyed by root path.
        self._unsent_removals: dict[str, ShorthandFolder] = {}
        self._generation = 0
        # Set when the link went away after being active; the next event restarts it.
        self._link_lost = False

    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def link(self) -> ServerLink:
        return self._link

    # -- Lifecycle -------------------------------------------------------------

    def activate(
        self,
        initial: Iterable[PathInput | str] = (),
        *,
        root_uri: str | None = None,
        initialization_options: dict[str, Any] | None = None,
    ) -> list[WorkspaceRecord]:
        """Seed the collection with the initial workspaces and wait for the link."""
        if self._state != LinkState.IDLE:
            logger.warning("Reconciler: activate called while {}", self._state)
        self._root_uri = root_uri
        self._initialization_options = dict(initialization_options or {})
        records = self.collection.add(*initial)
        self._state = LinkState.AWAITING_LINK_READY
        logger.info("Reconciler: activated with {} workspaces", len(self.collection))
        return records

    def handshake(self) -> LinkHandshake:
        """Handshake announcing every currently known root."""
        records = self.collection.all()
        options = {
            **self._initialization_options,
            "fish_lsp_all_indexed_paths": [r.root_path for r in records],
        }
        return LinkHandshake(
            root_uri=self._root_uri,
            workspace_folders=[r.to_shorthand() for r in records],
            initialization_options=options,
        )

    def link_ready(self, announced: Iterable[str] = ()) -> None:
        """Mark the link confirmed.  *announced* roots were part of the handshake."""
        if self._state == LinkState.IDLE:
            logger.warning("Reconciler: link ready before activation, ignoring")
            return
        for root_path in announced:
            self.dedup.mark(root_path)
        self._handshake_done = True
        self._state = LinkState.ACTIVE
        logger.info("Reconciler: link active ({} roots announced)", len(self.dedup))

    async def restart_link(self) -> bool:
        """Restart the server and re-announce every known root through the handshake."""
        if self._state == LinkState.IDLE:
            logger.warning("Reconciler: restart requested before activation, ignoring")
            return False
        self._generation += 1
        generation = self._generation
        self._link_lost = False
        self.dedup.reset()
        self._unsent_removals.clear()
        self._handshake_done = False
        self._state = LinkState.AWAITING_LINK_READY

        announced = [r.root_path for r in self.collection]
        try:
            await self._link.restart(self.handshake())
        except LinkUnavailableError as exc:
            logger.info("Reconciler: link restart failed: {}", exc)
            if generation == self._generation:
                self._link_lost = True
            return False

        if generation != self._generation:
            logger.debug("Reconciler: restart superseded")
            return False
        self.link_ready(announced)
        return True

    def deactivate(self) -> None:
        """Drop all state.  The next activation starts from scratch."""
        self._generation += 1
        self._link_lost = False
        self.collection.clear()
        self.dedup.reset()
        self._unsent_removals.clear()
        self._handshake_done = False
        self._state = LinkState.IDLE
        logger.info("Reconciler: deactivated")

    # -- Events ----------------------------------------------------------------

    async def document_opened(self, document: OpenDocument) -> bool:
        """Handle a document opened in the editor.

        Returns ``True`` if the document was forwarded to the server.
        """
        if document.language_id != self._language_id:
            logger.debug("Reconciler: ignoring {} document {}", document.language_id, document.uri)
            return False
        if not await self._ensure_active("document opened"):
            return False

        # -- Decide (synchronous) ----------------------------------------------
        self.collection.add(document)
        claimed = self._claim_unannounced()
        removals = self._take_unsent_removals()

        # -- Emit --------------------------------------------------------------
        if claimed or removals:
            folders = _folders_message(claimed, removals)
            if not await self._send(folders, claimed=claimed, removals=removals):
                return False

        uri = document.as_uri()
        opened = DocumentOpened(uri=uri, language_id=document.language_id, version=document.version, text=document.text)
        if not await self._send(opened):
            return False
        # Empty change right after open prompts the server to rescan the workspace.
        await self._send(DocumentChanged(uri=uri, version=document.version))
        return True

    async def folders_changed(
        self,
        added: Sequence[FolderDescriptor | PathInput | str] = (),
        removed: Sequence[FolderDescriptor | PathInput | str] = (),
    ) -> bool:
        """Handle workspace folders added to / removed from the editor.

        Sends at most one batched ``workspace/didChangeWorkspaceFolders``.
        Returns ``False`` if the event was dropped or the send failed.
        """
        if not await self._ensure_active("folders changed"):
            return False

        # -- Decide (synchronous) ----------------------------------------------
        self.collection.add(*added)

        removed_records: list[WorkspaceRecord] = []
        for folder in removed:
            record = self.collection.pop(folder)
            if record is None:
                logger.debug("Reconciler: removed folder {} was not a known workspace", folder)
                continue
            self.dedup.notify_removed(record.root_path)
            removed_records.append(record)

        claimed = self._claim_unannounced()
        removals = self._take_unsent_removals()
        removals.extend((r.root_path, r.to_shorthand()) for r in removed_records)

        # -- Emit --------------------------------------------------------------
        message = _folders_message(claimed, removals)
        if message.is_empty:
            return True
        logger.info("Reconciler: folders changed (+{} -{})", len(message.added), len(message.removed))
        return await self._send(message, claimed=claimed, removals=removals)

    async def folder_added(self, folder: FolderDescriptor | PathInput | str) -> bool:
        return await self.folders_changed(added=[folder])

    async def folder_removed(self, folder: FolderDescriptor | PathInput | str) -> bool:
        return await self.folders_changed(removed=[folder])

    # -- Internals -------------------------------------------------------------

    async def _ensure_active(self, event: str) -> bool:
        if self._state == LinkState.ACTIVE:
            return True
        if self._state == LinkState.AWAITING_LINK_READY and self._handshake_done and self._link.is_ready:
            logger.info("Reconciler: link ready again, resuming")
            self._state = LinkState.ACTIVE
            return True
        if self._state == LinkState.AWAITING_LINK_READY and self._link_lost and not self._link.is_ready:
            # One attempt per event; a failed restart leaves the flag set for the next one.
            logger.info("Reconciler: link lost, restarting before {} event", event)
            if await self.restart_link():
                return True
        logger.warning("Reconciler: link {}, dropping {} event", self._state, event)
        return False

    def _claim_unannounced(self) -> list[WorkspaceRecord]:
        """Check-and-mark every known root; return the ones this caller must announce."""
        claimed: list[WorkspaceRecord] = []
        for record in self.collection:
            if self._unsent_removals.pop(record.root_path, None) is not None:
                # The server never heard about the removal, so it still has this folder.
                self.dedup.mark(record.root_path)
                continue
            if self.dedup.should_notify_add(record.root_path):
                claimed.append(record)
        return claimed

    def _take_unsent_removals(self) -> list[tuple[str, ShorthandFolder]]:
        removals = list(self._unsent_removals.items())
        self._unsent_removals.clear()
        return removals

    async def _send(
        self,
        message: ProtocolMessage,
        *,
        claimed: Sequence[WorkspaceRecord] = (),
        removals: Sequence[tuple[str, ShorthandFolder]] = (),
    ) -> bool:
        """Send *message*; on failure undo its claims and mark the link lost."""
        generation = self._generation
        try:
            await self._link.send(message)
        except LinkUnavailableError as exc:
            if generation != self._generation:
                # A restart or deactivation already reset the notified set.
                logger.debug("Reconciler: stale send failure for {}: {}", message.method, exc)
                return False
            logger.info("Reconciler: link unavailable, deferring {}: {}", message.method, exc)
            self.dedup.rollback(r.root_path for r in claimed)
            self._unsent_removals.update(removals)
            self._state = LinkState.AWAITING_LINK_READY
            self._link_lost = True
            return False
        return True


def _folders_message(
    claimed: Sequence[WorkspaceRecord],
    removals: Sequence[tuple[str, ShorthandFolder]],
) -> WorkspaceFoldersChanged:
    return WorkspaceFoldersChanged(
        added=[r.to_shorthand() for r in claimed],
        removed=[shorthand for _, shorthand in removals],
    )
