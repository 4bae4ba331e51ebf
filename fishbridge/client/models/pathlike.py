"""Path inputs accepted at the bridge boundary.

Editors hand us paths in several shapes: a plain filesystem path, a
``file://`` locator, an open document, or a workspace folder.  They are
modelled as one discriminated union (on ``kind``) and resolved exactly once,
via ``fs_path()``, into a plain path string.  Everything past the boundary
(classifier, collection, reconciler) only ever sees that string.
"""

from __future__ import annotations

import os
from pathlib import PurePosixPath
from typing import Annotated, Literal
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, ConfigDict, Field

# -- Locator helpers ---------------------------------------------------------


def uri_to_path(uri: str) -> str | None:
    """Return the filesystem path of a ``file://`` URI, ``None`` for other schemes."""
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return unquote(parsed.path) or None
    if not parsed.scheme:
        return uri or None
    return None


def has_scheme(value: str) -> bool:
    """``True`` for locators like ``file:///x`` or ``untitled:Untitled-1``, ``False`` for paths."""
    return bool(urlparse(value).scheme)


def path_to_uri(path: str) -> str:
    """Return the ``file://`` URI of an absolute path."""
    return PurePosixPath(path).as_uri()


# -- Variants ----------------------------------------------------------------


class _PathInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    def fs_path(self) -> str | None:
        raise NotImplementedError

    def label(self) -> str | None:
        """Host-given display name, if the input carries one."""
        return None


class PlainPath(_PathInput):
    kind: Literal["path"] = "path"
    path: str

    def fs_path(self) -> str | None:
        return self.path or None


class Locator(_PathInput):
    """A resource locator.  Only the ``file`` scheme maps to a path."""

    kind: Literal["locator"] = "locator"
    uri: str

    def fs_path(self) -> str | None:
        return uri_to_path(self.uri)


class OpenDocument(_PathInput):
    """A document open in the editor, with its current content."""

    kind: Literal["document"] = "document"
    uri: str
    language_id: str = "fish"
    version: int = 0
    text: str = ""

    def fs_path(self) -> str | None:
        return uri_to_path(self.uri)

    def as_uri(self) -> str:
        """The document locator as sent to the server.

        Bare paths become ``file://`` URIs; any other locator passes through.
        """
        if has_scheme(self.uri):
            return self.uri
        return path_to_uri(os.path.abspath(self.uri))


class FolderDescriptor(_PathInput):
    """A workspace folder as reported by the editor."""

    kind: Literal["folder"] = "folder"
    name: str
    uri: str
    index: int | None = None

    def fs_path(self) -> str | None:
        return uri_to_path(self.uri)

    def label(self) -> str | None:
        return self.name or None


PathInput = Annotated[
    PlainPath | Locator | OpenDocument | FolderDescriptor,
    Field(discriminator="kind"),
]


def coerce_path_input(value: PathInput | str) -> PathInput:
    """Wrap a raw string: ``scheme:...`` becomes a ``Locator``, anything else a ``PlainPath``."""
    if not isinstance(value, str):
        return value
    if has_scheme(value):
        return Locator(uri=value)
    return PlainPath(path=value)


def folder_from_path(path: str, name: str | None = None) -> FolderDescriptor:
    """Build a folder descriptor for a local directory."""
    path = os.path.abspath(path)
    return FolderDescriptor(name=name or os.path.basename(path) or path, uri=path_to_uri(path))
