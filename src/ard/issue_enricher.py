# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Conversion of raw issue records into domain issues."""

import logging
from dataclasses import replace
from datetime import datetime

from ard.components import ComponentIndex
from ard.formats import parse_field_diffs, parse_key_values, parse_optional_datetime
from ard.model import ChangeSet, Duration, Issue, RawIssueRecord, RuleKey

logger = logging.getLogger(__name__)


class IssueEnricher:
    """Build issues from raw records, resolving components and encoded fields."""

    def __init__(self, components: ComponentIndex, analysis_date: datetime) -> None:
        """Initialize the enricher for one report.

        Args:
            components: Component index of the report.
            analysis_date: Analysis timestamp stamped on every change set.
        """
        self._components = components
        self._analysis_date = analysis_date

    def enrich(self, record: RawIssueRecord) -> Issue:
        """Build one issue.

        Optional values that are absent or malformed are left unset.

        Args:
            record: Raw record decoded from the issues file.

        Returns:
            Enriched issue.
        """
        return enrich_issue(record, self._components, self._analysis_date)


def enrich_issue(
    record: RawIssueRecord, components: ComponentIndex, analysis_date: datetime
) -> Issue:
    """Build one issue from a raw record, a component index and the analysis date."""
    component = components.lookup(record.component_batch_id)
    if component is None and record.component_batch_id is not None:
        logger.debug(
            f"Issue component is not in the manifest (issue={record.key} "
            f"component_batch_id={record.component_batch_id})"
        )
    return Issue(
        key=record.key,
        rule_key=RuleKey(repository=record.rule_repository, rule=record.rule_key),
        component_id=component.persisted_id if component is not None else None,
        severity=_text(record.severity),
        manual_severity=bool(record.manual_severity),
        message=_text(record.message),
        line=_integer(record.line),
        effort_to_fix=_number(record.effort_to_fix),
        debt=_duration(record.debt),
        current_change=_change_set(record.diff_fields, analysis_date),
        status=_text(record.status),
        resolution=_text(record.resolution),
        reporter=_text(record.reporter),
        assignee=_text(record.assignee),
        author_login=_text(record.author_login),
        action_plan_key=_text(record.action_plan_key),
        checksum=_text(record.checksum),
        attributes=parse_key_values(_text(record.attributes)),
        creation_date=parse_optional_datetime(record.creation_date, "creationDate"),
        update_date=parse_optional_datetime(record.update_date, "updateDate"),
        close_date=parse_optional_datetime(record.close_date, "closeDate"),
        selected_at=parse_optional_datetime(record.selected_at, "selectedAt"),
        is_changed=bool(record.is_changed),
        is_new=bool(record.is_new),
    )


def _change_set(diff_fields: object, analysis_date: datetime) -> ChangeSet:
    # Every change of a report shares the analysis date, whatever the diff carries.
    return replace(parse_field_diffs(_text(diff_fields)), creation_date=analysis_date)


def _duration(value: object) -> Duration | None:
    minutes = _integer(value)
    if minutes is None or minutes < 0:
        return None
    return Duration(minutes=minutes)


def _integer(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _text(value: object) -> str | None:
    return value if isinstance(value, str) else None
