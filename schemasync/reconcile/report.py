"""Persisted reports and human readable summaries."""
import json
import logging
from pathlib import Path
from typing import List, Optional
from schemasync.core.config import settings
from schemasync.reconcile.types import (
    OutcomeStatus,
    Priority,
    SchemaComparison,
    SyncReport,
)

log = logging.getLogger(__name__)

HIGH_PRIORITY_OPERATION_CAP = 5


def write_sync_report(report: SyncReport, reports_dir: Path) -> Path:
    reports_dir = Path(reports_dir)
    reports_dir.mkdir(parents=True, exist_ok=True)
    path = reports_dir / f"sync-report-{report.run_id}.json"
    payload = report.model_dump(mode="json", by_alias=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    log.info(f"Saved sync report: {path}", extra={"run_id": report.run_id, "phase": "REPORT"})
    return path


def load_sync_report(path: Path) -> SyncReport:
    with open(path, "r", encoding="utf-8") as f:
        return SyncReport.model_validate(json.load(f))


def _elide(lines: List[str], items: List[str], cap: int, indent: str) -> None:
    for item in items[:cap]:
        lines.append(f"{indent}- {item}")
    if len(items) > cap:
        lines.append(f"{indent}- ... and {len(items) - cap} more")


def render_comparison_summary(comparison: SchemaComparison, display_cap: Optional[int] = None) -> str:
    """Markdown summary of a comparison, grouped by priority and by collection."""
    cap = settings.summary_display_cap if display_cap is None else display_cap
    ref, local = comparison.reference_summary, comparison.local_summary

    lines = ["# Schema Comparison"]
    lines.append("")
    lines.append(
        f"- **Reference:** {ref.get('databaseName', '-')} "
        f"({ref.get('totalCollections', 0)} collections, {ref.get('totalDocuments', 0)} documents)"
    )
    lines.append(
        f"- **Local:** {local.get('databaseName', '-')} "
        f"({local.get('totalCollections', 0)} collections, {local.get('totalDocuments', 0)} documents)"
    )
    if comparison.compared_at:
        lines.append(f"- **Compared at:** {comparison.compared_at.isoformat()}")
    lines.append("")

    lines.append("## By Priority")
    lines.append("")
    lines.append(f"- Total differences: {comparison.total_differences}")
    lines.append(f"- High: {comparison.high_priority_count}")
    lines.append(f"- Medium: {comparison.medium_priority_count}")
    lines.append(f"- Low: {comparison.low_priority_count}")
    lines.append(f"- Planned operations: {len(comparison.sync_plan)}")
    lines.append("")

    lines.append("## By Collection")
    lines.append("")
    if not comparison.collection_differences:
        lines.append("No differences.")
        lines.append("")
    for coll_diff in comparison.collection_differences:
        lines.append(f"### {coll_diff.collection} ({coll_diff.kind.value}, priority: {coll_diff.priority.value})")
        lines.append(coll_diff.description)
        if coll_diff.field_differences:
            lines.append(f"- Field differences: {len(coll_diff.field_differences)}")
            _elide(
                lines,
                [f"`{d.field}` [{d.priority.value}]: {d.description}" for d in coll_diff.field_differences],
                cap,
                "  ",
            )
        if coll_diff.index_differences:
            lines.append(f"- Index differences: {len(coll_diff.index_differences)}")
            _elide(
                lines,
                [f"`{d.index_name}` [{d.priority.value}]: {d.description}" for d in coll_diff.index_differences],
                cap,
                "  ",
            )
        lines.append("")

    lines.append("## High Priority Operations")
    lines.append("")
    high_ops = [op for op in comparison.sync_plan if op.priority == Priority.HIGH]
    if not high_ops:
        lines.append("None.")
    for op in high_ops[:HIGH_PRIORITY_OPERATION_CAP]:
        lines.append(f"- {op.description}")
        lines.append(f"  - `{op.command_description}`")
    if len(high_ops) > HIGH_PRIORITY_OPERATION_CAP:
        lines.append(f"- ... and {len(high_ops) - HIGH_PRIORITY_OPERATION_CAP} more")
    lines.append("")

    if comparison.advisories:
        lines.append("## Advisories (not executed)")
        lines.append("")
        for advisory in comparison.advisories:
            lines.append(f"- {advisory.collection}: {advisory.description}")
            if advisory.command_description:
                lines.append(f"  - `{advisory.command_description}`")
        lines.append("")

    return "\n".join(lines)


def render_sync_summary(report: SyncReport) -> str:
    """Markdown summary of an execution report; every failure is listed."""
    mode = "dry run" if report.dry_run else "live"
    lines = [f"# Sync Report ({mode})"]
    lines.append("")
    lines.append(f"- Total operations: {report.total}")
    lines.append(f"- Succeeded: {report.succeeded}")
    lines.append(f"- Failed: {report.failed}")
    lines.append(f"- Skipped: {report.skipped}")
    lines.append(f"- Manual review: {report.manual_review}")
    lines.append(f"- Elapsed: {report.elapsed_seconds:.2f}s")
    lines.append(
        f"- Success rate: {report.success_rate * 100:.1f}% "
        f"({'healthy' if report.healthy else 'unhealthy'}, threshold {report.success_threshold * 100:.0f}%)"
    )
    if report.cancelled:
        lines.append("- Run was cancelled; remaining operations were skipped")
    lines.append("")

    if report.errors:
        lines.append("## Failures")
        lines.append("")
        for position, error in enumerate(report.errors, start=1):
            lines.append(f"{position}. {error.operation.label()}: {error.error}")
        lines.append("")

    manual = [o for o in report.outcomes if o.status == OutcomeStatus.MANUAL_REVIEW]
    if manual:
        lines.append("## Manual Review Required")
        lines.append("")
        for outcome in manual:
            lines.append(f"- {outcome.operation.label()}: `{outcome.operation.command_description}`")
        lines.append("")

    return "\n".join(lines)
