import json
import math
from datetime import datetime, timezone
from pathlib import Path

import pytest

from ard.digest import ReportDigester
from ard.report import FormatError, ReportContext, ResourceReadError
from ard.storage import StorageWriteError
from conftest import RecordingStorage, RecordingStorageFactory

ANALYSIS_DATE = datetime(2014, 10, 9, 10, 0, tzinfo=timezone.utc)


def _issue(index: int, **overrides: object) -> dict[str, object]:
    issue: dict[str, object] = {
        "key": f"ISSUE-{index}",
        "ruleRepo": "squid",
        "ruleKey": "AvoidCycle",
        "componentBatchId": 1,
        "severity": "MAJOR",
        "diffFields": "severity=MINOR|MAJOR",
        "debt": 5,
    }
    issue.update(overrides)
    return issue


def _write_report(
    report_dir: Path,
    issues: list[dict[str, object]] | str,
    components: object = None,
) -> Path:
    report_dir.mkdir(parents=True, exist_ok=True)
    if components is None:
        components = [{"batchId": 1, "id": 100}]
    (report_dir / "components.json").write_text(json.dumps(components), encoding="utf-8")
    issues_text = issues if isinstance(issues, str) else json.dumps(issues)
    (report_dir / "issues.json").write_text(issues_text, encoding="utf-8")
    return report_dir


def _context(report_dir: Path, analysis_date: datetime | None = ANALYSIS_DATE) -> ReportContext:
    return ReportContext(
        report_directory=report_dir, project_key="org.sample:project", analysis_date=analysis_date
    )


def test_digest_persists_issues_in_fixed_size_chunks(
    tmp_path: Path, storage: RecordingStorage, storage_factory: RecordingStorageFactory
) -> None:
    report_dir = _write_report(tmp_path / "report", [_issue(i) for i in range(2500)])

    result = ReportDigester(storage_factory=storage_factory, chunk_size=1000).digest(
        _context(report_dir)
    )

    assert [len(chunk) for chunk in storage.saved] == [1000, 1000, 500]
    flushed = [issue for chunk in storage.saved for issue in chunk]
    assert [issue.key for issue in flushed] == [f"ISSUE-{i}" for i in range(2500)]
    assert {issue.component_id for issue in flushed} == {100}
    assert {issue.current_change.creation_date for issue in flushed} == {ANALYSIS_DATE}
    assert storage_factory.project_keys == ["org.sample:project"]
    assert result.issue_count == 2500
    assert result.flush_count == 3
    assert result.component_count == 1


@pytest.mark.parametrize(
    ("issue_count", "chunk_size"), [(0, 3), (1, 3), (3, 3), (4, 3), (7, 2), (5, 1)]
)
def test_digest_flushes_ceil_of_issues_over_chunk_size(
    tmp_path: Path,
    storage: RecordingStorage,
    storage_factory: RecordingStorageFactory,
    issue_count: int,
    chunk_size: int,
) -> None:
    report_dir = _write_report(tmp_path / "report", [_issue(i) for i in range(issue_count)])

    ReportDigester(storage_factory=storage_factory, chunk_size=chunk_size).digest(
        _context(report_dir)
    )

    assert len(storage.saved) == math.ceil(issue_count / chunk_size)
    assert all(0 < len(chunk) <= chunk_size for chunk in storage.saved)
    assert [issue.key for chunk in storage.saved for issue in chunk] == [
        f"ISSUE-{i}" for i in range(issue_count)
    ]


def test_digest_keeps_issues_with_unknown_component(
    tmp_path: Path, storage: RecordingStorage, storage_factory: RecordingStorageFactory
) -> None:
    report_dir = _write_report(
        tmp_path / "report",
        [_issue(0, componentBatchId=42), _issue(1, componentBatchId=2)],
        components=[
            {"batchId": 1, "id": 100},
            {"batchId": 2, "id": 200},
            {"batchId": 3, "id": 300},
        ],
    )

    ReportDigester(storage_factory=storage_factory).digest(_context(report_dir))

    assert [issue.component_id for issue in storage.saved[0]] == [None, 200]


def test_digest_attaches_component_index_to_context(
    tmp_path: Path, storage_factory: RecordingStorageFactory
) -> None:
    report_dir = _write_report(tmp_path / "report", [])
    context = _context(report_dir)

    ReportDigester(storage_factory=storage_factory).digest(context)

    assert context.components is not None
    assert context.components.lookup(1).persisted_id == 100  # type: ignore[union-attr]


def test_digest_keeps_flushed_chunks_when_later_record_is_malformed(
    tmp_path: Path, storage: RecordingStorage, storage_factory: RecordingStorageFactory
) -> None:
    issues = [_issue(i) for i in range(5)]
    issues[3] = {"key": "ISSUE-3", "ruleRepo": "squid"}
    report_dir = _write_report(tmp_path / "report", issues)

    with pytest.raises(FormatError):
        ReportDigester(storage_factory=storage_factory, chunk_size=2).digest(
            _context(report_dir)
        )

    assert [[issue.key for issue in chunk] for chunk in storage.saved] == [
        ["ISSUE-0", "ISSUE-1"]
    ]


def test_digest_fails_on_truncated_issues_file(
    tmp_path: Path, storage: RecordingStorage, storage_factory: RecordingStorageFactory
) -> None:
    text = json.dumps([_issue(0), _issue(1)])[:-20]
    report_dir = _write_report(tmp_path / "report", text)

    with pytest.raises(FormatError):
        ReportDigester(storage_factory=storage_factory, chunk_size=10).digest(
            _context(report_dir)
        )

    assert storage.attempts == 0


def test_digest_fails_fast_without_components(
    tmp_path: Path, storage_factory: RecordingStorageFactory
) -> None:
    report_dir = tmp_path / "report"
    report_dir.mkdir()
    (report_dir / "issues.json").write_text(json.dumps([_issue(0)]), encoding="utf-8")

    with pytest.raises(ResourceReadError):
        ReportDigester(storage_factory=storage_factory).digest(_context(report_dir))

    assert storage_factory.project_keys == []


def test_digest_fails_without_issues_file(
    tmp_path: Path, storage_factory: RecordingStorageFactory
) -> None:
    report_dir = tmp_path / "report"
    report_dir.mkdir()
    (report_dir / "components.json").write_text("[]", encoding="utf-8")

    with pytest.raises(ResourceReadError):
        ReportDigester(storage_factory=storage_factory).digest(_context(report_dir))


def test_digest_propagates_storage_failure(
    tmp_path: Path, storage: RecordingStorage, storage_factory: RecordingStorageFactory
) -> None:
    storage.fail_on_calls = {2}
    report_dir = _write_report(tmp_path / "report", [_issue(i) for i in range(5)])

    with pytest.raises(StorageWriteError):
        ReportDigester(storage_factory=storage_factory, chunk_size=2).digest(
            _context(report_dir)
        )

    assert [len(chunk) for chunk in storage.saved] == [2]
    assert storage.attempts == 2


def test_digest_uses_manifest_analysis_date_when_context_has_none(
    tmp_path: Path, storage: RecordingStorage, storage_factory: RecordingStorageFactory
) -> None:
    report_dir = _write_report(
        tmp_path / "report",
        [_issue(0)],
        components={
            "analysisDate": "2014-11-01T08:30:00+0000",
            "root": {"batchId": 1, "id": 100},
        },
    )
    context = _context(report_dir, analysis_date=None)

    ReportDigester(storage_factory=storage_factory).digest(context)

    expected = datetime(2014, 11, 1, 8, 30, tzinfo=timezone.utc)
    assert context.analysis_date == expected
    assert storage.saved[0][0].current_change.creation_date == expected


def test_digester_rejects_non_positive_chunk_size(
    storage_factory: RecordingStorageFactory,
) -> None:
    with pytest.raises(ValueError):
        ReportDigester(storage_factory=storage_factory, chunk_size=0)
