# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Chunked persistence of enriched issues."""

import logging

from ard.model import Issue
from ard.storage import IssueStorage

logger = logging.getLogger(__name__)


class BatchPersister:
    """Buffer issues and write them to storage in fixed-size chunks."""

    def __init__(self, storage: IssueStorage, capacity: int) -> None:
        """Initialize the persister.

        Args:
            storage: Destination of flushed chunks.
            capacity: Maximum number of buffered issues.

        Raises:
            ValueError: If ``capacity`` is not greater than zero.
        """
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._storage = storage
        self._capacity = capacity
        self._buffer: list[Issue] = []
        self.flush_count = 0
        self.flushed_issue_count = 0

    def __len__(self) -> int:
        return len(self._buffer)

    def append(self, issue: Issue) -> None:
        """Add an issue to the buffer.

        Raises:
            RuntimeError: If the buffer is already full.
        """
        if len(self._buffer) >= self._capacity:
            raise RuntimeError("Issue buffer is full; flush before appending")
        self._buffer.append(issue)

    def should_flush(self, source_exhausted: bool = False) -> bool:
        """Tell whether the buffer must be written now.

        Args:
            source_exhausted: Whether no more issues will be appended.

        Returns:
            ``True`` when the buffer is full, or non-empty with the source
            exhausted.
        """
        if len(self._buffer) >= self._capacity:
            return True
        return source_exhausted and bool(self._buffer)

    def flush(self) -> None:
        """Write the buffered issues as one storage call, then clear the buffer.

        The buffer is kept intact when the write fails.

        Raises:
            StorageWriteError: If the storage write fails.
        """
        if not self._buffer:
            return
        chunk = list(self._buffer)
        self._storage.save(chunk)
        self._buffer.clear()
        self.flush_count += 1
        self.flushed_issue_count += len(chunk)
        logger.info(
            "issue_chunk_flushed chunk=%s size=%s total=%s",
            self.flush_count,
            len(chunk),
            self.flushed_issue_count,
        )
