# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Issue storage contracts."""

from collections.abc import Sequence
from typing import Protocol

from ard.model import Issue


class StorageWriteError(RuntimeError):
    """Represent a failed issue storage write."""


class IssueStorage(Protocol):
    """Define the contract for persisting issues of one project."""

    def save(self, issues: Sequence[Issue]) -> None:
        """Persist a non-empty sequence of issues in one atomic write.

        Raises:
            StorageWriteError: If the write fails; nothing of the call is kept.
        """


class IssueStorageFactory(Protocol):
    """Create issue storages keyed by project."""

    def new_issue_storage(self, project_key: str) -> IssueStorage:
        """Return the storage for one project."""
