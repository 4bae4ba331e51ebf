"""Add-notification deduplication.

Tracks which workspace roots the language server has already been told
about in the current server session.  Ephemeral -- cleared whenever the
server restarts, since a fresh server has lost all prior state.

``should_notify_add`` is a check-and-mark with no suspension point: it never
awaits, so two event handlers that interleave around their network I/O can
never both claim the same root.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Iterable


class NotificationDeduplicator:
    """Gate for outbound workspace add/remove notifications.

    Invariant: for one server session, at most one add-notification is
    approved per distinct root path.
    """

    def __init__(self) -> None:
        self._notified: set[str] = set()

    # -- Gate ------------------------------------------------------------------

    def should_notify_add(self, root_path: str) -> bool:
        """Approve an add-notification for *root_path* and mark it, or refuse if already marked."""
        if root_path in self._notified:
            logger.debug("Dedup: suppressed duplicate add for {}", root_path)
            return False
        self._notified.add(root_path)
        return True

    def notify_removed(self, root_path: str) -> None:
        """Clear the mark so a later rediscovery is announced again."""
        self._notified.discard(root_path)

    # -- Bookkeeping -----------------------------------------------------------

    def mark(self, root_path: str) -> None:
        """Record a root the server learned about by other means (initialize handshake)."""
        self._notified.add(root_path)

    def rollback(self, root_paths: Iterable[str]) -> None:
        """Unmark roots whose announcement never reached the server."""
        for root_path in root_paths:
            self._notified.discard(root_path)

    def reset(self) -> None:
        """Forget everything.  Called when the server session is replaced."""
        if self._notified:
            logger.debug("Dedup: reset ({} roots forgotten)", len(self._notified))
        self._notified.clear()

    # -- Query -----------------------------------------------------------------

    def __contains__(self, root_path: object) -> bool:
        return root_path in self._notified

    def __len__(self) -> int:
        return len(self._notified)
