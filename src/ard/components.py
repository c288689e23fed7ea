# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Component manifest loading and batch id lookup."""

import json
import logging
from collections.abc import Iterable, Iterator
from datetime import datetime
from pathlib import Path

from ard.formats import parse_datetime
from ard.model import ComponentRecord
from ard.report import COMPONENTS_FILE_NAME, FormatError, ResourceReadError

logger = logging.getLogger(__name__)


class ComponentIndex:
    """Resolve batch-local component ids to component records."""

    def __init__(
        self,
        components: Iterable[ComponentRecord],
        analysis_date: datetime | None = None,
    ) -> None:
        """Build the index.

        Args:
            components: Components referenced by one report.
            analysis_date: Analysis date declared by the manifest, if any.

        Raises:
            FormatError: If two components share a batch id.
        """
        self._by_batch_id: dict[int, ComponentRecord] = {}
        for component in components:
            if component.batch_id in self._by_batch_id:
                raise FormatError(f"Duplicate component batch id: {component.batch_id}")
            self._by_batch_id[component.batch_id] = component
        self.analysis_date = analysis_date

    @classmethod
    def load(cls, directory: Path) -> "ComponentIndex":
        """Load the components manifest of a report directory.

        Args:
            directory: Report directory.

        Returns:
            Index over every component of the manifest.

        Raises:
            ResourceReadError: If the manifest is missing or unreadable.
            FormatError: If the manifest is not a valid component list or tree.
        """
        manifest_path = directory / COMPONENTS_FILE_NAME
        try:
            content = manifest_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"Failed to read components manifest (path={manifest_path} error={exc})")
            raise ResourceReadError(f"Failed to read components: {manifest_path}") from exc
        try:
            document = json.loads(content)
        except json.JSONDecodeError as exc:
            raise FormatError(f"Components manifest is not valid JSON: {exc}") from exc

        analysis_date = None
        if isinstance(document, list):
            components = [_to_component(item) for item in document]
        elif isinstance(document, dict) and isinstance(document.get("root"), dict):
            components = [_to_component(item) for item in _walk(document["root"])]
            analysis_date = _manifest_analysis_date(document.get("analysisDate"))
        else:
            raise FormatError("Components manifest must be a component list or tree")

        index = cls(components, analysis_date=analysis_date)
        logger.info(
            "components_loaded path=%s count=%s", manifest_path, len(index)
        )
        return index

    def lookup(self, batch_id: object) -> ComponentRecord | None:
        """Return the component for a batch id, or ``None`` when unknown."""
        if not isinstance(batch_id, int) or isinstance(batch_id, bool):
            return None
        return self._by_batch_id.get(batch_id)

    def __len__(self) -> int:
        return len(self._by_batch_id)

    def __iter__(self) -> Iterator[ComponentRecord]:
        return iter(self._by_batch_id.values())


def _walk(node: dict) -> Iterator[dict]:
    """Yield a component node and all of its descendants, depth first."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        children = current.get("children") or []
        if not isinstance(children, list) or not all(isinstance(c, dict) for c in children):
            raise FormatError(f"Component children must be a list of objects: {children!r}")
        stack.extend(reversed(children))


def _to_component(item: object) -> ComponentRecord:
    if not isinstance(item, dict):
        raise FormatError(f"Component entry must be an object: {item!r}")
    return ComponentRecord(
        batch_id=_required_int(item, "batchId"),
        persisted_id=_required_int(item, "id"),
        snapshot_id=_optional_int(item.get("snapshotId")),
        path=_optional_str(item.get("path")),
        name=_optional_str(item.get("name")),
        type=_optional_str(item.get("type")),
        language_key=_optional_str(item.get("languageKey")),
    )


def _required_int(item: dict, name: str) -> int:
    value = item.get(name)
    if not isinstance(value, int) or isinstance(value, bool):
        raise FormatError(f"Component field {name!r} must be an integer: {value!r}")
    return value


def _optional_int(value: object) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) else None


def _manifest_analysis_date(value: object) -> datetime | None:
    if value is None:
        return None
    try:
        return parse_datetime(value)  # type: ignore[arg-type]
    except (ValueError, OverflowError, OSError) as exc:
        raise FormatError(f"Invalid manifest analysisDate: {value!r}") from exc
