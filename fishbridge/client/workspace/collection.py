"""In-process workspace collection.

Deduplicated, insertion-ordered store of ``WorkspaceRecord`` keyed by
canonical root path.  The sole authority on "known roots" for a running
session.  Ephemeral -- created empty at activation, cleared at deactivation.

Every public operation first resolves its input through the classifier, so
``~/.config/fish/functions/foo.fish``, ``file:///home/u/.config/fish`` and a
folder descriptor for ``~/.config/fish/conf.d`` all address the same record.
Inputs that do not classify are quietly ignored: ``add``/``get`` yield
nothing, ``has``/``remove`` return ``False``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from fishbridge.client.models.pathlike import coerce_path_input
from fishbridge.client.models.workspace import WorkspaceRecord
from fishbridge.client.paths import normalize_path

if TYPE_CHECKING:
    from collections.abc import Iterator

    from fishbridge.client.models.pathlike import PathInput
    from fishbridge.client.workspace.classifier import PathClassifier


class WorkspaceCollection:
    """Index of discovered workspace roots.

    Indexes come from a counter scoped to this collection and are assigned
    once, on first insertion; removing a root does not recycle its index.
    """

    def __init__(self, classifier: PathClassifier) -> None:
        self._classifier = classifier
        self._records: dict[str, WorkspaceRecord] = {}
        self._counter = 0

    @property
    def classifier(self) -> PathClassifier:
        return self._classifier

    # -- Normalization ---------------------------------------------------------

    def root_of(self, value: PathInput | str) -> str | None:
        """Canonical root path for any accepted input shape."""
        path = coerce_path_input(value).fs_path()
        if path is None:
            return None
        return self._classifier.resolve(path)

    # -- Mutation --------------------------------------------------------------

    def add(self, *inputs: PathInput | str) -> list[WorkspaceRecord]:
        """Add each input's root; return the stored records (new or existing) in input order."""
        records: list[WorkspaceRecord] = []
        for value in inputs:
            item = coerce_path_input(value)
            root = self.root_of(item)
            if root is None:
                logger.debug("Workspace: no root for {}", item.fs_path())
                continue
            record = self._records.get(root)
            if record is None:
                record = WorkspaceRecord.from_root(root, name=_folder_name(item, root), index=self._counter)
                self._counter += 1
                self._records[root] = record
                logger.debug("Workspace: add {} (index={})", root, record.index)
            records.append(record)
        return records

    def pop(self, value: PathInput | str) -> WorkspaceRecord | None:
        """Remove and return the record for *value*'s root, if known."""
        root = self.root_of(value)
        if root is None:
            return None
        record = self._records.pop(root, None)
        if record is not None:
            logger.debug("Workspace: remove {}", root)
        return record

    def remove(self, value: PathInput | str) -> bool:
        """Remove *value*'s root.  Returns whether a record was actually removed."""
        return self.pop(value) is not None

    def clear(self) -> None:
        self._records.clear()

    # -- Query -----------------------------------------------------------------

    def get(self, value: PathInput | str) -> WorkspaceRecord | None:
        root = self.root_of(value)
        if root is None:
            return None
        return self._records.get(root)

    def has(self, value: PathInput | str) -> bool:
        return self.get(value) is not None

    def find_containing(self, value: PathInput | str) -> WorkspaceRecord | None:
        """Return the innermost known workspace whose root contains *value*'s root."""
        root = self.root_of(value)
        if root is None:
            return None
        candidates = [r for r in self._records.values() if r.contains_root(root)]
        return max(candidates, key=lambda r: len(r.root_path), default=None)

    def all(self) -> list[WorkspaceRecord]:
        """Return a snapshot of all records in insertion order."""
        return list(self._records.values())

    def __iter__(self) -> Iterator[WorkspaceRecord]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._records)


def _folder_name(item: PathInput, root: str) -> str | None:
    """A host-given name is kept only when the input names the root itself."""
    label = item.label()
    path = item.fs_path()
    if label and path is not None and normalize_path(path) == root:
        return label
    return None
