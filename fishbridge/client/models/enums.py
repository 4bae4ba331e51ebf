"""Shared enumerations used across the bridge."""

from __future__ import annotations

from enum import StrEnum

# -- Link --------------------------------------------------------------------


class LinkState(StrEnum):
    """Reconciler view of the language-server link."""

    IDLE = "idle"
    AWAITING_LINK_READY = "awaiting_link_ready"
    ACTIVE = "active"


# -- Classification ----------------------------------------------------------


class FallbackPolicy(StrEnum):
    """Policy for paths with no workspace marker anywhere up the tree."""

    SKIP = "skip"
    """Leave the path unclassified; no workspace is created."""

    PARENT = "parent"
    """Synthesize a one-off root equal to the path's own directory."""

