# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Digest orchestration: load components, then stream, enrich and persist issues."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from ard.batch import BatchPersister
from ard.components import ComponentIndex
from ard.issue_decoder import IssueRecordDecoder
from ard.issue_enricher import IssueEnricher
from ard.report import ReportContext
from ard.storage import IssueStorageFactory

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000


@dataclass(frozen=True)
class DigestResult:
    """Summarize one completed digest."""

    project_key: str
    component_count: int
    issue_count: int
    flush_count: int


class ReportDigester:
    """Ingest analysis reports into issue storage."""

    def __init__(
        self,
        storage_factory: IssueStorageFactory,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        """Initialize the digester.

        Args:
            storage_factory: Provides the issue storage of each project.
            chunk_size: Number of issues written per storage call.

        Raises:
            ValueError: If ``chunk_size`` is not greater than zero.
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self._storage_factory = storage_factory
        self._chunk_size = chunk_size

    def digest(self, context: ReportContext) -> DigestResult:
        """Digest one report.

        Chunks flushed before a failure stay persisted.

        Args:
            context: Report to digest. Its component index is attached here.

        Returns:
            Digest summary.

        Raises:
            ResourceReadError: If a report file cannot be read.
            FormatError: If a report file is malformed.
            StorageWriteError: If a chunk cannot be written.
        """
        logger.info(
            f"Digest started (project={context.project_key} "
            f"report_directory={context.report_directory})"
        )
        components = self.load_components(context)
        persister = self.save_issues(context)
        result = DigestResult(
            project_key=context.project_key,
            component_count=len(components),
            issue_count=persister.flushed_issue_count,
            flush_count=persister.flush_count,
        )
        logger.info(
            f"Digest completed (project={result.project_key} issues={result.issue_count} "
            f"chunks={result.flush_count} components={result.component_count})"
        )
        return result

    def load_components(self, context: ReportContext) -> ComponentIndex:
        """Load the component index of the report and attach it to ``context``.

        Also settles the analysis date when the context has none.
        """
        components = ComponentIndex.load(context.report_directory)
        context.components = components
        if context.analysis_date is None:
            context.analysis_date = components.analysis_date or datetime.now(tz=timezone.utc)
        return components

    def save_issues(self, context: ReportContext) -> BatchPersister:
        """Stream the issues of the report into storage, one chunk at a time.

        Returns:
            The persister, holding flush counters.
        """
        if context.components is None or context.analysis_date is None:
            raise RuntimeError("Components must be loaded before saving issues")
        storage = self._storage_factory.new_issue_storage(context.project_key)
        persister = BatchPersister(storage=storage, capacity=self._chunk_size)
        enricher = IssueEnricher(context.components, context.analysis_date)

        with IssueRecordDecoder(context.issues_path) as records:
            for record in records:
                persister.append(enricher.enrich(record))
                if persister.should_flush():
                    persister.flush()
            if persister.should_flush(source_exhausted=True):
                persister.flush()
        return persister
