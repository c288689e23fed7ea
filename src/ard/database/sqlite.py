# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Persistence SQLite implementation for digested issues."""

import logging
import sqlite3
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from ard.formats import format_field_diffs, format_key_values
from ard.model import Issue
from ard.storage import StorageWriteError

logger = logging.getLogger(__name__)

DIFF_CHANGE_TYPE = "diff"


class SQLitePersistence:
    """Provide SQLite issue storages keyed by project."""

    def __init__(self, db_path: Path) -> None:
        """Initialize persistence backend.

        Args:
            db_path: SQLite database file path.
        """
        self._db_path = db_path

    def new_issue_storage(self, project_key: str) -> "SQLiteIssueStorage":
        return SQLiteIssueStorage(db_path=self._db_path, project_key=project_key)


class SQLiteIssueStorage:
    """Persist issues of one project to a SQLite database."""

    def __init__(self, db_path: Path, project_key: str) -> None:
        """Initialize the storage.

        Args:
            db_path: SQLite database file path.
            project_key: Key of the project owning the stored issues.
        """
        self._db_path = db_path
        self._project_key = project_key

    def save(self, issues: Sequence[Issue]) -> None:
        """Persist issues and their current changes atomically.

        Args:
            issues: Issues to persist. Existing rows with the same key are replaced.

        Raises:
            ValueError: If ``issues`` is empty.
            StorageWriteError: If connecting, schema setup or write operations fail.
        """
        if not issues:
            raise ValueError("issues must not be empty")

        try:
            connection = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            logger.warning(
                f"SQLite connection failed (db_path={self._db_path} "
                f"project={self._project_key} error={exc})"
            )
            raise StorageWriteError(str(exc)) from exc
        try:
            self._ensure_schema(connection=connection)
            connection.execute("BEGIN")
            connection.executemany(
                "INSERT OR REPLACE INTO issues ("
                "project_key, kee, component_id, rule_repository, rule_key, severity, "
                "manual_severity, message, line, effort_to_fix, technical_debt, status, "
                "resolution, reporter, assignee, author_login, action_plan_key, checksum, "
                "issue_attributes, created_at, updated_at, closed_at, selected_at, "
                "is_changed, is_new"
                ") VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        self._project_key,
                        issue.key,
                        issue.component_id,
                        issue.rule_key.repository,
                        issue.rule_key.rule,
                        issue.severity,
                        issue.manual_severity,
                        issue.message,
                        issue.line,
                        issue.effort_to_fix,
                        issue.debt.minutes if issue.debt is not None else None,
                        issue.status,
                        issue.resolution,
                        issue.reporter,
                        issue.assignee,
                        issue.author_login,
                        issue.action_plan_key,
                        issue.checksum,
                        format_key_values(issue.attributes) or None,
                        _isoformat(issue.creation_date),
                        _isoformat(issue.update_date),
                        _isoformat(issue.close_date),
                        _isoformat(issue.selected_at),
                        issue.is_changed,
                        issue.is_new,
                    )
                    for issue in issues
                ],
            )
            connection.executemany(
                "INSERT INTO issue_changes ("
                "project_key, issue_key, change_type, change_data, created_at"
                ") VALUES (?, ?, ?, ?, ?)",
                [
                    (
                        self._project_key,
                        issue.key,
                        DIFF_CHANGE_TYPE,
                        format_field_diffs(issue.current_change),
                        _isoformat(issue.current_change.creation_date),
                    )
                    for issue in issues
                    if issue.current_change.diffs
                ],
            )
            connection.commit()
        except sqlite3.DatabaseError as exc:
            connection.rollback()
            logger.warning(
                f"SQLite issue write failed (db_path={self._db_path} "
                f"project={self._project_key} issues={len(issues)} error={exc})"
            )
            raise StorageWriteError(str(exc)) from exc
        finally:
            connection.close()

    def _ensure_schema(self, connection: sqlite3.Connection) -> None:
        """Create required tables and indexes when missing.

        Args:
            connection: Open SQLite connection.
        """
        connection.execute(
            "CREATE TABLE IF NOT EXISTS issues ("
            "id INTEGER PRIMARY KEY, "
            "project_key TEXT NOT NULL, "
            "kee TEXT NOT NULL, "
            "component_id INTEGER, "
            "rule_repository TEXT NOT NULL, "
            "rule_key TEXT NOT NULL, "
            "severity TEXT, "
            "manual_severity INTEGER NOT NULL, "
            "message TEXT, "
            "line INTEGER, "
            "effort_to_fix REAL, "
            "technical_debt INTEGER, "
            "status TEXT, "
            "resolution TEXT, "
            "reporter TEXT, "
            "assignee TEXT, "
            "author_login TEXT, "
            "action_plan_key TEXT, "
            "checksum TEXT, "
            "issue_attributes TEXT, "
            "created_at TEXT, "
            "updated_at TEXT, "
            "closed_at TEXT, "
            "selected_at TEXT, "
            "is_changed INTEGER NOT NULL, "
            "is_new INTEGER NOT NULL, "
            "UNIQUE (project_key, kee)"
            ")"
        )
        connection.execute(
            "CREATE TABLE IF NOT EXISTS issue_changes ("
            "id INTEGER PRIMARY KEY, "
            "project_key TEXT NOT NULL, "
            "issue_key TEXT NOT NULL, "
            "change_type TEXT NOT NULL, "
            "change_data TEXT NOT NULL, "
            "created_at TEXT"
            ")"
        )
        connection.execute(
            "CREATE INDEX IF NOT EXISTS idx_issues_component_id ON issues(component_id)"
        )
        connection.execute(
            "CREATE INDEX IF NOT EXISTS idx_issue_changes_issue_key "
            "ON issue_changes(project_key, issue_key)"
        )
        connection.commit()


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None
