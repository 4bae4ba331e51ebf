"""Workspace root classification and the in-process root index."""

from fishbridge.client.workspace.classifier import MARKER_DIRS, MARKER_FILE, PathClassifier
from fishbridge.client.workspace.collection import WorkspaceCollection

__all__ = ["MARKER_DIRS", "MARKER_FILE", "PathClassifier", "WorkspaceCollection"]
