from __future__ import annotations
import logging
from sqlalchemy.orm import Session
from schemasync.tasks.celery_app import celery_app
from schemasync.db.session import SessionLocal
from schemasync.db.models import ReconcileRun
from schemasync.db.mongo import get_client, get_target_database
from schemasync.core.workflow import RunMode, RunPhase, RunStatus
from schemasync.workspace.manager import WorkspaceManager
from schemasync.core.engine import ReconcileEngine

log = logging.getLogger(__name__)

@celery_app.task(name="run_reconcile")
def run_reconcile(run_id: str) -> None:
    db: Session = SessionLocal()
    client = None
    try:
        run = db.get(ReconcileRun, run_id)
        if not run:
            log.error("Run not found", extra={"run_id": run_id, "phase": "-"})
            return

        run.status = RunStatus.RUNNING
        db.commit()

        ws = WorkspaceManager(run_id=run.id)
        ws.ensure()

        target = None
        if run.mode != RunMode.COMPARE:
            client = get_client()
            target = get_target_database(client)

        log.info("Starting reconcile run", extra={"run_id": run_id, "phase": run.phase.value})

        engine = ReconcileEngine(db=db, workspace=ws, run_id=run_id, target=target)
        engine.run(run)

        log.info(
            f"Run finished with status {run.status.value}",
            extra={"run_id": run_id, "phase": RunPhase.DONE.value},
        )

    except Exception as e:
        db.rollback()
        run = db.get(ReconcileRun, run_id)
        phase = run.phase.value if run else "-"
        log.exception("Run failed", extra={"run_id": run_id, "phase": phase})
        if run and run.status != RunStatus.FAILED:
            run.status = RunStatus.FAILED
            run.phase = RunPhase.FAILED
            run.error_message = str(e)
            db.commit()
    finally:
        if client is not None:
            client.close()
        db.close()
