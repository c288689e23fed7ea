import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from ard.components import ComponentIndex
from ard.model import ComponentRecord
from ard.report import FormatError, ResourceReadError


def _write_manifest(report_dir: Path, document: object) -> None:
    report_dir.mkdir(parents=True, exist_ok=True)
    (report_dir / "components.json").write_text(json.dumps(document), encoding="utf-8")


def test_load_builds_index_from_component_list(tmp_path: Path) -> None:
    _write_manifest(
        tmp_path,
        [
            {"batchId": 1, "id": 100, "path": "src/Foo.java", "type": "FIL"},
            {"batchId": 2, "id": 200},
        ],
    )

    index = ComponentIndex.load(tmp_path)

    assert len(index) == 2
    assert index.lookup(1) == ComponentRecord(
        batch_id=1, persisted_id=100, path="src/Foo.java", type="FIL"
    )
    assert index.lookup(2).persisted_id == 200  # type: ignore[union-attr]
    assert index.analysis_date is None


def test_load_flattens_component_tree(tmp_path: Path) -> None:
    _write_manifest(
        tmp_path,
        {
            "analysisDate": "2014-10-09T10:00:00+0000",
            "root": {
                "batchId": 1,
                "id": 11,
                "snapshotId": 111,
                "name": "Project",
                "type": "PRJ",
                "children": [
                    {
                        "batchId": 2,
                        "id": 22,
                        "type": "DIR",
                        "children": [
                            {"batchId": 3, "id": 33, "type": "FIL", "languageKey": "java"}
                        ],
                    }
                ],
            },
        },
    )

    index = ComponentIndex.load(tmp_path)

    assert [component.batch_id for component in index] == [1, 2, 3]
    assert index.lookup(1).snapshot_id == 111  # type: ignore[union-attr]
    assert index.lookup(3).language_key == "java"  # type: ignore[union-attr]
    assert index.analysis_date == datetime(2014, 10, 9, 10, 0, tzinfo=timezone.utc)


def test_lookup_returns_none_for_unknown_ids(tmp_path: Path) -> None:
    _write_manifest(tmp_path, [{"batchId": 1, "id": 100}, {"batchId": 2, "id": 200}, {"batchId": 3, "id": 300}])
    index = ComponentIndex.load(tmp_path)

    assert index.lookup(42) is None
    assert index.lookup(None) is None
    assert index.lookup("1") is None
    assert index.lookup(True) is None


def test_lookup_is_stable_across_calls(tmp_path: Path) -> None:
    _write_manifest(tmp_path, [{"batchId": 7, "id": 700}])
    index = ComponentIndex.load(tmp_path)

    assert index.lookup(7) == index.lookup(7)
    assert index.lookup(8) == index.lookup(8)


def test_load_fails_when_manifest_is_missing(tmp_path: Path) -> None:
    with pytest.raises(ResourceReadError):
        ComponentIndex.load(tmp_path)


def test_load_fails_on_invalid_json(tmp_path: Path) -> None:
    (tmp_path / "components.json").write_text("[{", encoding="utf-8")

    with pytest.raises(FormatError):
        ComponentIndex.load(tmp_path)


@pytest.mark.parametrize(
    "document",
    [
        {"components": []},
        [{"batchId": 1}],
        [{"batchId": "1", "id": 100}],
        [{"batchId": 1, "id": 100}, {"batchId": 1, "id": 101}],
        ["component"],
        {"root": {"batchId": 1, "id": 1, "children": "none"}},
    ],
)
def test_load_fails_on_unexpected_schema(tmp_path: Path, document: object) -> None:
    _write_manifest(tmp_path, document)

    with pytest.raises(FormatError):
        ComponentIndex.load(tmp_path)
