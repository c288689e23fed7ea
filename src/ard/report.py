# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Report directory layout, digest context and report read errors."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ard.components import ComponentIndex

logger = logging.getLogger(__name__)

COMPONENTS_FILE_NAME = "components.json"
ISSUES_FILE_NAME = "issues.json"


class ReportError(RuntimeError):
    """Represent a failure to read an analysis report."""


class ResourceReadError(ReportError):
    """Report file is missing, unreadable or failed while being read."""


class FormatError(ReportError):
    """Report content does not match the expected structure."""


@dataclass
class ReportContext:
    """Hold the state of one report digest.

    Attributes:
        report_directory: Directory containing the report files.
        project_key: Key of the project owning the report.
        analysis_date: Analysis timestamp shared by every issue change. When
            ``None``, the manifest date or the current time is used.
        components: Component index, attached once loaded.
    """

    report_directory: Path
    project_key: str
    analysis_date: datetime | None
    components: ComponentIndex | None = None

    @property
    def components_path(self) -> Path:
        return self.report_directory / COMPONENTS_FILE_NAME

    @property
    def issues_path(self) -> Path:
        return self.report_directory / ISSUES_FILE_NAME
