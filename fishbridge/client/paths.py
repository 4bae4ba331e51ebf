"""Lexical path helpers.

All comparisons in the bridge are purely lexical: symlinks are never resolved
and the filesystem is only consulted by the classifier's marker checks.
"""

from __future__ import annotations

import os


def normalize_path(path: str) -> str | None:
    """Return the absolute, normalized form of *path*, or ``None`` if it is empty.

    Redundant separators and ``.``/``..`` segments are collapsed and trailing
    separators stripped.  Relative paths are anchored at the current directory.
    """
    if not path or "\x00" in path:
        return None
    normalized = os.path.normpath(os.path.abspath(os.path.expanduser(path)))
    # POSIX keeps a leading "//"; one separator is enough for us.
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def is_within(path: str, root: str) -> bool:
    """Segment-bounded containment: ``/foo/bar`` is within ``/foo`` but not ``/fo``."""
    if path == root:
        return True
    prefix = root if root.endswith(os.sep) else root + os.sep
    return path.startswith(prefix)


def display_name(path: str) -> str:
    """Basename of a root, or the root itself for ``/``."""
    return os.path.basename(path) or path
