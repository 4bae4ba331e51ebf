"""Host event stream driver.

The editing host writes one JSON event per line to the bridge's stdin::

    {"type": "document_opened", "document": {"kind": "document", "uri": "file:///.../foo.fish"}}
    {"type": "active_editor_changed", "document": {"kind": "document", "uri": "file:///.../bar.fish"}}
    {"type": "folders_changed", "added": [{"kind": "folder", "name": "fish", "uri": "file:///..."}]}
    {"type": "restart"}

Each event is dispatched as its own task, so handlers really do interleave
around their server I/O.  Malformed lines are logged and skipped.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

import anyio
from loguru import logger
from pydantic import ValidationError

from fishbridge.client.models.events import (
    ActiveEditorChangedEvent,
    DocumentOpenedEvent,
    FoldersChangedEvent,
    HostEventAdapter,
    RestartEvent,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

    from fishbridge.client.models.events import HostEvent
    from fishbridge.client.session import BridgeSession


async def dispatch(session: BridgeSession, event: HostEvent) -> bool:
    """Route one host event to the session's reconciler."""
    reconciler = session.reconciler
    if isinstance(event, (DocumentOpenedEvent, ActiveEditorChangedEvent)):
        return await reconciler.document_opened(event.document)
    if isinstance(event, FoldersChangedEvent):
        return await reconciler.folders_changed(event.added, event.removed)
    if isinstance(event, RestartEvent):
        return await session.restart()
    msg = f"Unknown host event: {event!r}"
    raise ValueError(msg)


def parse_event(line: str) -> HostEvent | None:
    """Validate one JSON line.  Returns ``None`` for blank or malformed lines."""
    line = line.strip()
    if not line:
        return None
    try:
        return HostEventAdapter.validate_json(line)
    except ValidationError as exc:
        logger.warning("Host: skipping malformed event ({} errors): {}", exc.error_count(), line[:200])
        return None


async def serve(session: BridgeSession, lines: AsyncIterable[str]) -> int:
    """Consume *lines* until exhausted.  Returns the number of events dispatched."""
    count = 0
    async with anyio.create_task_group() as tg:
        async for line in lines:
            event = parse_event(line)
            if event is None:
                continue
            logger.debug("Host: {} event", event.type)
            tg.start_soon(dispatch, session, event)
            count += 1
    logger.info("Host: event stream closed after {} events", count)
    return count


async def stdin_lines() -> AsyncIterator[str]:
    async for line in anyio.wrap_file(sys.stdin):
        yield line
