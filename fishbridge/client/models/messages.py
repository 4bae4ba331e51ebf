"""Protocol messages sent to the language server.

These are the shapes the reconciler emits; the link translates them to the
wire (LSP notifications).  Field names are snake_case in Python and camelCase
when dumped with ``by_alias=True``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from fishbridge.client.models.workspace import ShorthandFolder


class ProtocolMessage(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    method: str

    def params(self) -> dict[str, Any]:
        """Wire params (camelCase, without the method name)."""
        return self.model_dump(by_alias=True, exclude={"method"})


class WorkspaceFoldersChanged(ProtocolMessage):
    """``workspace/didChangeWorkspaceFolders``."""

    method: str = "workspace/didChangeWorkspaceFolders"
    added: list[ShorthandFolder] = Field(default_factory=list)
    removed: list[ShorthandFolder] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed


class DocumentOpened(ProtocolMessage):
    """``textDocument/didOpen``."""

    method: str = "textDocument/didOpen"
    uri: str
    language_id: str
    version: int
    text: str


class DocumentChanged(ProtocolMessage):
    """``textDocument/didChange``.

    Sent with an empty change list right after ``didOpen`` purely to prompt the
    server to re-scan the document's workspace.
    """

    method: str = "textDocument/didChange"
    uri: str
    version: int
    changes: list[dict[str, Any]] = Field(default_factory=list)
