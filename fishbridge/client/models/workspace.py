"""Workspace data model.

A workspace is one discovered fish root -- ``~/.config/fish``,
``/usr/share/fish``, a plugin checkout -- analogous to a VS Code workspace
folder.  Identity is the canonical root path; name, locator and index are
derived bookkeeping.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from fishbridge.client.models.pathlike import path_to_uri
from fishbridge.client.paths import display_name, is_within


class ShorthandFolder(BaseModel):
    """The ``{name, uri}`` descriptor sent to the language server."""

    model_config = ConfigDict(frozen=True)

    name: str
    uri: str


class WorkspaceRecord(BaseModel):
    """Immutable record of one workspace root.

    Two records are equal iff their ``root_path`` is equal.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    root_uri: str
    root_path: str
    index: int = Field(default=0, ge=0, description="Insertion index within the owning collection")

    @classmethod
    def from_root(cls, root_path: str, *, name: str | None = None, index: int = 0) -> WorkspaceRecord:
        return cls(
            name=name or display_name(root_path),
            root_uri=path_to_uri(root_path),
            root_path=root_path,
            index=index,
        )

    def with_index(self, index: int) -> WorkspaceRecord:
        return self.model_copy(update={"index": index})

    def to_shorthand(self) -> ShorthandFolder:
        return ShorthandFolder(name=self.name, uri=self.root_uri)

    def contains_root(self, root_path: str) -> bool:
        """True if *root_path* is this root or nested under it."""
        return is_within(root_path, self.root_path)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, WorkspaceRecord):
            return self.root_path == other.root_path
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.root_path)
