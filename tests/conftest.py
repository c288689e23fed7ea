import sys
from collections.abc import Sequence
from pathlib import Path

import pytest


def _add_src_to_path() -> None:
    root = Path(__file__).resolve().parents[1]
    src_path = root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


_add_src_to_path()

from ard.model import Issue  # noqa: E402
from ard.storage import StorageWriteError  # noqa: E402


class RecordingStorage:
    """Keep every saved chunk; fail the save attempts listed in ``fail_on_calls``."""

    def __init__(self) -> None:
        self.fail_on_calls: set[int] = set()
        self.attempts = 0
        self.saved: list[list[Issue]] = []

    def save(self, issues: Sequence[Issue]) -> None:
        self.attempts += 1
        if self.attempts in self.fail_on_calls:
            raise StorageWriteError("database is locked")
        self.saved.append(list(issues))


class RecordingStorageFactory:
    def __init__(self, storage: RecordingStorage) -> None:
        self.storage = storage
        self.project_keys: list[str] = []

    def new_issue_storage(self, project_key: str) -> RecordingStorage:
        self.project_keys.append(project_key)
        return self.storage


@pytest.fixture
def storage() -> RecordingStorage:
    return RecordingStorage()


@pytest.fixture
def storage_factory(storage: RecordingStorage) -> RecordingStorageFactory:
    return RecordingStorageFactory(storage)
