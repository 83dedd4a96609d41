#!/usr/bin/env python3
"""
Run a reconciliation in-process, without the API or a Celery worker.
Usage:
    python scripts/run_reconcile.py --reference atlas-schema.json --local local-schema.json --mode dry_run
    python scripts/run_reconcile.py --comparison schema-comparison.json --mode live
"""
import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.orm import Session
from schemasync.core.engine import ReconcileEngine
from schemasync.core.logging import configure_logging
from schemasync.core.workflow import RunMode
from schemasync.db.models import ReconcileRun
from schemasync.db.mongo import get_client, get_target_database
from schemasync.db.session import Base, SessionLocal, engine
from schemasync.workspace.manager import WorkspaceManager

# Create tables if they don't exist
Base.metadata.create_all(bind=engine)


def run_reconcile(mode: RunMode, reference: str | None, local: str | None, comparison: str | None) -> ReconcileRun:
    """Create a run row and drive it through every phase of its mode."""
    db: Session = SessionLocal()
    client = None
    run = None
    try:
        run = ReconcileRun(
            mode=mode,
            reference_snapshot_path=reference,
            local_snapshot_path=local,
            comparison_path=comparison,
            artifacts={},
        )
        db.add(run)
        db.commit()
        db.refresh(run)

        print(f"Created run: {run.id} ({mode.value})")

        ws = WorkspaceManager(run_id=run.id)
        ws.ensure()
        print(f"Workspace created at: {ws.root}")
        print()

        target = None
        if mode != RunMode.COMPARE:
            client = get_client()
            target = get_target_database(client)

        ReconcileEngine(db=db, workspace=ws, run_id=run.id, target=target).run(run)

        print()
        print("=" * 80)
        print(f"Run completed! Status: {run.status.value}, Phase: {run.phase.value}")
        print("=" * 80)

        for key, value in (run.artifacts or {}).items():
            print(f"  {key}: {ws.root / value}")

        summary = ws.reports_dir / "sync-report.md"
        if summary.exists():
            print()
            print(summary.read_text(encoding="utf-8"))

        return run

    except Exception as e:
        print(f"\nERROR: Run failed: {e}")
        if run is not None:
            db.refresh(run)
            print(f"Run status: {run.status.value}")
            print(f"Run phase: {run.phase.value}")
            print(f"Error message: {run.error_message}")
        raise
    finally:
        if client is not None:
            client.close()
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Reconcile a local database with a reference snapshot")
    parser.add_argument("--reference", help="Reference snapshot JSON")
    parser.add_argument("--local", help="Local snapshot JSON")
    parser.add_argument("--comparison", help="Previously written schema-comparison.json")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in RunMode],
        default=RunMode.DRY_RUN.value,
        help="compare, dry_run (default) or live",
    )
    args = parser.parse_args()

    if not (args.reference and args.local) and not args.comparison:
        parser.error("pass --reference and --local, or --comparison")

    configure_logging()
    run = run_reconcile(RunMode(args.mode), args.reference, args.local, args.comparison)
    # Non-zero exit for unhealthy or failed runs so schedulers notice
    sys.exit(0 if run.status.value == "DONE" else 1)


if __name__ == "__main__":
    main()
