"""Fish workspace root classification.

Maps any path to the fish workspace root it belongs to.  A root is a
directory that

- lies in a scratch area (``/tmp`` by default), where every path is its own
  root and nothing is walked, or
- directly contains one of the marker subdirectories ``functions``,
  ``completions``, ``conf.d``, or
- directly contains the marker file ``config.fish``.

Examples::

    ~/.config/fish/functions/foo.fish   -> ~/.config/fish
    ~/.config/fish/config.fish          -> ~/.config/fish
    /usr/share/fish/completions         -> /usr/share/fish
    /tmp/scratch/deep/path              -> /tmp/scratch/deep/path
    /random/project/file.txt            -> None

``classify`` is the pure marker convention.  ``resolve`` layers caller policy
on top: fish's indexed paths (when the environment could be queried) and the
configured fallback for paths with no marker at all.
"""

from __future__ import annotations

import os
from collections.abc import Iterable

from fishbridge.client.models.enums import FallbackPolicy
from fishbridge.client.paths import is_within, normalize_path

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MARKER_DIRS: tuple[str, ...] = ("functions", "completions", "conf.d")
"""Subdirectories whose presence marks a fish workspace root."""

MARKER_FILE = "config.fish"
"""File whose presence marks a fish workspace root."""

DEFAULT_SCRATCH_DIRS: tuple[str, ...] = ("/tmp",)


class PathClassifier:
    """Classify paths into canonical fish workspace roots.

    Holds configuration only; every call is independent.  Symlinks are never
    resolved: comparisons are lexical after ``normalize_path``.
    """

    def __init__(
        self,
        *,
        scratch_dirs: Iterable[str] = DEFAULT_SCRATCH_DIRS,
        indexed_paths: Iterable[str] = (),
        fallback: FallbackPolicy = FallbackPolicy.SKIP,
    ) -> None:
        self.scratch_dirs = tuple(p for p in (normalize_path(d) for d in scratch_dirs) if p)
        self.fallback = fallback
        self._indexed_paths: tuple[str, ...] = ()
        self.set_indexed_paths(indexed_paths)

    @property
    def indexed_paths(self) -> tuple[str, ...]:
        return self._indexed_paths

    def set_indexed_paths(self, paths: Iterable[str]) -> None:
        """Replace the environment-derived indexed paths (longest first)."""
        normalized = {p for p in (normalize_path(x) for x in paths) if p}
        self._indexed_paths = tuple(sorted(normalized, key=len, reverse=True))

    # -- Marker convention -----------------------------------------------------

    def classify(self, path: str) -> str | None:
        """Return the canonical workspace root of *path*, or ``None``."""
        current = normalize_path(path)
        if current is None:
            return None

        if self.is_scratch(current):
            return current

        parent = os.path.dirname(current)
        if _is_marker_name(os.path.basename(current)) and parent != current:
            return parent

        if os.path.isdir(current):
            if has_markers(current):
                return current
        else:
            current = parent

        while True:
            base = os.path.basename(current)
            parent = os.path.dirname(current)
            if base in MARKER_DIRS and parent != current:
                return parent
            if has_markers(current):
                return current
            if parent == current:
                return None
            current = parent

    def is_scratch(self, path: str) -> bool:
        return any(is_within(path, scratch) for scratch in self.scratch_dirs)

    # -- Caller policy ---------------------------------------------------------

    def resolve(self, path: str) -> str | None:
        """``classify`` plus indexed-path lookup and the fallback policy."""
        root = self.classify(path)
        if root is not None:
            return root

        normalized = normalize_path(path)
        if normalized is None:
            return None

        for indexed in self._indexed_paths:
            if is_within(normalized, indexed):
                return indexed

        if self.fallback == FallbackPolicy.PARENT:
            return normalized if os.path.isdir(normalized) else os.path.dirname(normalized)
        return None

    def contains(self, root_path: str, path: str) -> bool:
        """True if *path* resolves to *root_path* or to a root nested under it."""
        root = self.resolve(path)
        if root is None:
            return False
        return is_within(root, root_path)


# ---------------------------------------------------------------------------
# Filesystem checks
# ---------------------------------------------------------------------------


def _is_marker_name(name: str) -> bool:
    return name == MARKER_FILE or name in MARKER_DIRS


def has_markers(directory: str) -> bool:
    """True if *directory* directly contains a marker subdirectory or the marker file."""
    try:
        if any(os.path.isdir(os.path.join(directory, name)) for name in MARKER_DIRS):
            return True
        return os.path.exists(os.path.join(directory, MARKER_FILE))
    except (OSError, ValueError):
        return False
