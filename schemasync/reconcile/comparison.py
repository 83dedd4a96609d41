"""Loading snapshots and reading/writing the schema comparison artifact."""
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from pydantic import ValidationError
from schemasync.core.errors import ComparisonLoadError, SnapshotLoadError
from schemasync.reconcile.differ import compare_schemas
from schemasync.reconcile.planner import build_plan, collect_advisories
from schemasync.reconcile.snapshot import DatabaseSchema
from schemasync.reconcile.types import CollectionDifference, Priority, SchemaComparison

log = logging.getLogger(__name__)


def _read_json(path: Path, error_cls) -> dict:
    if not path.exists():
        raise error_cls(str(path), "file not found")
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise error_cls(str(path), str(e)) from e


def load_snapshot(path: Path) -> DatabaseSchema:
    data = _read_json(Path(path), SnapshotLoadError)
    try:
        return DatabaseSchema.model_validate(data)
    except ValidationError as e:
        raise SnapshotLoadError(str(path), f"invalid snapshot: {e}") from e


def count_priorities(differences: List[CollectionDifference]) -> dict:
    counts = {Priority.HIGH: 0, Priority.MEDIUM: 0, Priority.LOW: 0}
    total = 0
    for coll_diff in differences:
        children = [*coll_diff.field_differences, *coll_diff.index_differences]
        total += 1 + len(children)
        for diff in [coll_diff, *children]:
            counts[diff.priority] += 1
    return {"total": total, **{p.value: n for p, n in counts.items()}}


def build_comparison(
    reference: DatabaseSchema,
    local: DatabaseSchema,
    compared_at: Optional[datetime] = None,
) -> SchemaComparison:
    """Diff two snapshots and derive statistics, advisories and the sync plan."""
    log.info(
        f"Comparing snapshots - reference: {reference.total_collections} collections, "
        f"{reference.total_documents} documents; local: {local.total_collections} collections, "
        f"{local.total_documents} documents"
    )
    differences = compare_schemas(reference, local)
    counts = count_priorities(differences)
    plan = build_plan(differences)

    return SchemaComparison(
        reference_summary=reference.summary(),
        local_summary=local.summary(),
        collection_differences=differences,
        total_differences=counts["total"],
        high_priority_count=counts["high"],
        medium_priority_count=counts["medium"],
        low_priority_count=counts["low"],
        advisories=collect_advisories(differences),
        sync_plan=plan,
        compared_at=compared_at or datetime.now(timezone.utc),
    )


def write_comparison(comparison: SchemaComparison, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = comparison.model_dump(mode="json", by_alias=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    log.info(f"Wrote comparison with {len(comparison.sync_plan)} planned operations to {path}")
    return path


def load_comparison(path: Path) -> SchemaComparison:
    """Reload a persisted comparison so a later run can synchronize from its plan."""
    data = _read_json(Path(path), ComparisonLoadError)
    try:
        return SchemaComparison.model_validate(data)
    except ValidationError as e:
        raise ComparisonLoadError(str(path), f"invalid comparison: {e}") from e
