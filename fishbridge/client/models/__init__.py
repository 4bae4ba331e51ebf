"""Data models for the bridge."""

from fishbridge.client.models.enums import FallbackPolicy, LinkState
from fishbridge.client.models.events import (
    ActiveEditorChangedEvent,
    DocumentOpenedEvent,
    FoldersChangedEvent,
    HostEvent,
    HostEventAdapter,
    RestartEvent,
)
from fishbridge.client.models.messages import (
    DocumentChanged,
    DocumentOpened,
    ProtocolMessage,
    WorkspaceFoldersChanged,
)
from fishbridge.client.models.pathlike import (
    FolderDescriptor,
    Locator,
    OpenDocument,
    PathInput,
    PlainPath,
    coerce_path_input,
    folder_from_path,
)
from fishbridge.client.models.workspace import ShorthandFolder, WorkspaceRecord

__all__ = [
    "ActiveEditorChangedEvent",
    # Messages
    "DocumentChanged",
    "DocumentOpened",
    # Events
    "DocumentOpenedEvent",
    # Enums
    "FallbackPolicy",
    # Path inputs
    "FolderDescriptor",
    "FoldersChangedEvent",
    "HostEvent",
    "HostEventAdapter",
    "LinkState",
    "Locator",
    "OpenDocument",
    "PathInput",
    "PlainPath",
    "ProtocolMessage",
    "RestartEvent",
    # Workspace
    "ShorthandFolder",
    "WorkspaceFoldersChanged",
    "WorkspaceRecord",
    "coerce_path_input",
    "folder_from_path",
]
