# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Domain models for analysis report ingestion."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class RuleKey:
    """Identify a rule by repository and rule key."""

    repository: str
    rule: str

    def __str__(self) -> str:
        return f"{self.repository}:{self.rule}"


@dataclass(frozen=True)
class Duration:
    """Represent a technical debt duration in minutes."""

    minutes: int


@dataclass(frozen=True)
class FieldDiff:
    """Old and new value of one changed issue field."""

    old_value: str | None
    new_value: str | None


@dataclass(frozen=True)
class ChangeSet:
    """Represent the field-level changes of one issue.

    Attributes:
        diffs: Changed fields in encoded order.
        creation_date: Logical creation time of the change.
    """

    diffs: dict[str, FieldDiff] = field(default_factory=dict)
    creation_date: datetime | None = None


@dataclass(frozen=True)
class ComponentRecord:
    """Represent one project component referenced by a report.

    Attributes:
        batch_id: Batch-local id, unique within one report only.
        persisted_id: Stable id assigned by the component producer.
        snapshot_id: Snapshot id of the component, when provided.
        path: Component path relative to the project.
        name: Display name.
        type: Component type code (``PRJ``, ``DIR``, ``FIL``...).
        language_key: Language of file components.
    """

    batch_id: int
    persisted_id: int
    snapshot_id: int | None = None
    path: str | None = None
    name: str | None = None
    type: str | None = None
    language_key: str | None = None


@dataclass(frozen=True)
class RawIssueRecord:
    """Flat issue values decoded from one element of the issues file.

    Only ``key``, ``rule_repository`` and ``rule_key`` are validated by the
    decoder; every other value is kept as decoded and interpreted leniently
    by the enricher.
    """

    key: str
    rule_repository: str
    rule_key: str
    component_batch_id: Any = None
    severity: Any = None
    manual_severity: Any = False
    message: Any = None
    line: Any = None
    effort_to_fix: Any = None
    debt: Any = None
    diff_fields: Any = None
    status: Any = None
    resolution: Any = None
    reporter: Any = None
    assignee: Any = None
    author_login: Any = None
    action_plan_key: Any = None
    checksum: Any = None
    attributes: Any = None
    creation_date: Any = None
    update_date: Any = None
    close_date: Any = None
    selected_at: Any = None
    is_changed: Any = False
    is_new: Any = False


@dataclass(frozen=True)
class Issue:
    """Represent one enriched issue ready for storage."""

    key: str
    rule_key: RuleKey
    component_id: int | None
    severity: str | None
    manual_severity: bool
    message: str | None
    line: int | None
    effort_to_fix: float | None
    debt: Duration | None
    current_change: ChangeSet
    status: str | None
    resolution: str | None
    reporter: str | None
    assignee: str | None
    author_login: str | None
    action_plan_key: str | None
    checksum: str | None
    attributes: dict[str, str | None]
    creation_date: datetime | None
    update_date: datetime | None
    close_date: datetime | None
    selected_at: datetime | None
    is_changed: bool
    is_new: bool
