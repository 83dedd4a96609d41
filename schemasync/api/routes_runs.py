import json
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from schemasync.db.session import get_db
from schemasync.db.models import ReconcileRun
from schemasync.core.workflow import RunStatus
from schemasync.schemas.runs import RunCreateRequest, RunResponse
from schemasync.tasks.runs import run_reconcile
from schemasync.workspace.manager import WorkspaceManager

router = APIRouter(prefix="/runs")

FINISHED_STATUSES = {RunStatus.DONE, RunStatus.UNHEALTHY, RunStatus.FAILED}

def _get_run(db: Session, run_id: str) -> ReconcileRun:
    run = db.get(ReconcileRun, run_id)
    if not run:
        raise HTTPException(status_code=404, detail="Run not found")
    return run

@router.post("", response_model=RunResponse)
def create_run(req: RunCreateRequest, db: Session = Depends(get_db)):
    run = ReconcileRun(
        mode=req.mode,
        reference_snapshot_path=req.reference_snapshot_path,
        local_snapshot_path=req.local_snapshot_path,
        comparison_path=req.comparison_path,
        artifacts={},
    )
    db.add(run)
    db.commit()
    db.refresh(run)

    run_reconcile.delay(run.id)

    return RunResponse.from_run(run)

@router.get("/{run_id}", response_model=RunResponse)
def get_run(run_id: str, db: Session = Depends(get_db)):
    return RunResponse.from_run(_get_run(db, run_id))

@router.post("/{run_id}/cancel", response_model=RunResponse)
def cancel_run(run_id: str, db: Session = Depends(get_db)):
    run = _get_run(db, run_id)
    if run.status in FINISHED_STATUSES:
        raise HTTPException(status_code=409, detail=f"Run already finished with status {run.status.value}")
    # Honoured between operations, never mid-operation
    run.cancel_requested = True
    db.commit()
    db.refresh(run)
    return RunResponse.from_run(run)

@router.get("/{run_id}/comparison")
def get_comparison(run_id: str, db: Session = Depends(get_db)):
    run = _get_run(db, run_id)
    path = WorkspaceManager(run_id=run.id).comparison_path
    if not path.exists():
        raise HTTPException(status_code=404, detail="Comparison not available yet")
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
