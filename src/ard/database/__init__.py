# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Storage backends for analysis report digests."""

from ard.database.sqlite import SQLiteIssueStorage, SQLitePersistence

__all__ = ["SQLiteIssueStorage", "SQLitePersistence"]
