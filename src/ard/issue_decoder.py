# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Streaming decoder for the report issues file."""

import logging
from collections.abc import Generator, Iterator
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

import ijson

from ard.model import RawIssueRecord
from ard.report import FormatError, ResourceReadError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: dict[str, str] = {
    "key": "key",
    "ruleRepo": "rule_repository",
    "ruleKey": "rule_key",
}

OPTIONAL_FIELDS: dict[str, str] = {
    "componentBatchId": "component_batch_id",
    "severity": "severity",
    "manualSeverity": "manual_severity",
    "message": "message",
    "line": "line",
    "effortToFix": "effort_to_fix",
    "debt": "debt",
    "diffFields": "diff_fields",
    "status": "status",
    "resolution": "resolution",
    "reporter": "reporter",
    "assignee": "assignee",
    "authorLogin": "author_login",
    "actionPlanKey": "action_plan_key",
    "checksum": "checksum",
    "attributes": "attributes",
    "creationDate": "creation_date",
    "updateDate": "update_date",
    "closeDate": "close_date",
    "selectedAt": "selected_at",
    "isChanged": "is_changed",
    "isNew": "is_new",
}


class IssueRecordDecoder:
    """Decode issue records one at a time from a JSON array file.

    The decoder is a context manager; the file is opened on enter and closed
    on exit whatever the outcome. Iteration is single pass.
    """

    def __init__(self, issues_path: Path) -> None:
        """Initialize the decoder.

        Args:
            issues_path: Path of the issues JSON file.
        """
        self._issues_path = issues_path
        self._stream: BinaryIO | None = None
        self._records: Generator[RawIssueRecord, None, None] | None = None

    def __enter__(self) -> "IssueRecordDecoder":
        try:
            self._stream = self._issues_path.open("rb")
        except OSError as exc:
            logger.warning(f"Failed to open issues file (path={self._issues_path} error={exc})")
            raise ResourceReadError(f"Failed to read issues: {self._issues_path}") from exc
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def __iter__(self) -> Iterator[RawIssueRecord]:
        if self._stream is None:
            raise RuntimeError("Issue record decoder is not open")
        if self._records is None:
            self._records = self._decode(self._stream)
        return self._records

    def close(self) -> None:
        """Release the decode cursor and the underlying file."""
        if self._records is not None:
            self._records.close()
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def _decode(self, stream: BinaryIO) -> Generator[RawIssueRecord, None, None]:
        events = _require_array(ijson.parse(stream, use_float=True))
        position = 0
        try:
            for item in ijson.items(events, "item"):
                yield to_raw_issue(item, position=position)
                position += 1
        except (ijson.JSONError, UnicodeDecodeError) as exc:
            logger.warning(
                f"Malformed issues file (path={self._issues_path} position={position} error={exc})"
            )
            raise FormatError(f"Malformed issues file at record {position}: {exc}") from exc
        except OSError as exc:
            logger.warning(f"Failed reading issues file (path={self._issues_path} error={exc})")
            raise ResourceReadError(f"Failed to read issues: {self._issues_path}") from exc
        logger.debug(f"Issues file fully decoded (path={self._issues_path} records={position})")


def _require_array(events: Iterator[tuple]) -> Iterator[tuple]:
    """Pass parser events through after checking the document is an array."""
    first = True
    for prefix, event, value in events:
        if first:
            if prefix != "" or event != "start_array":
                raise FormatError(f"Issues file must contain a JSON array, found {event}")
            first = False
        yield prefix, event, value


def to_raw_issue(item: object, position: int = 0) -> RawIssueRecord:
    """Convert one decoded JSON element to a raw issue record.

    Args:
        item: Decoded array element.
        position: Element position, used in error messages.

    Returns:
        Raw issue record.

    Raises:
        FormatError: If the element is not an object or a mandatory field is
            missing or not a non-empty string.
    """
    if not isinstance(item, dict):
        raise FormatError(f"Issue record {position} must be an object: {item!r}")
    values = {}
    for json_name, attribute in REQUIRED_FIELDS.items():
        value = item.get(json_name)
        if not isinstance(value, str) or not value:
            raise FormatError(
                f"Issue record {position} has no valid {json_name!r}: {value!r}"
            )
        values[attribute] = value
    for json_name, attribute in OPTIONAL_FIELDS.items():
        if json_name in item:
            values[attribute] = item[json_name]
    return RawIssueRecord(**values)
