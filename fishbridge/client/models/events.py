"""Host event models.

Events the editing host feeds the bridge, one JSON object per line.  The
``type`` field selects the payload schema.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

from fishbridge.client.models.pathlike import FolderDescriptor, OpenDocument


class DocumentOpenedEvent(BaseModel):
    type: Literal["document_opened"] = "document_opened"
    document: OpenDocument


class ActiveEditorChangedEvent(BaseModel):
    """The editor switched focus to *document*.  Handled like an open."""

    type: Literal["active_editor_changed"] = "active_editor_changed"
    document: OpenDocument


class FoldersChangedEvent(BaseModel):
    type: Literal["folders_changed"] = "folders_changed"
    added: list[FolderDescriptor] = Field(default_factory=list)
    removed: list[FolderDescriptor] = Field(default_factory=list)


class RestartEvent(BaseModel):
    """Ask the bridge to restart the language server."""

    type: Literal["restart"] = "restart"


HostEvent = Annotated[
    DocumentOpenedEvent | ActiveEditorChangedEvent | FoldersChangedEvent | RestartEvent,
    Field(discriminator="type"),
]

HostEventAdapter: TypeAdapter[HostEvent] = TypeAdapter(HostEvent)
"""Validates one decoded (or raw JSON) host event."""
