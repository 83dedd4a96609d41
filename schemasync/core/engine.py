from __future__ import annotations
import logging
from sqlalchemy.orm import Session
from schemasync.core.config import settings
from schemasync.core.errors import ReconcileError, RunCancelled
from schemasync.core.workflow import RunPhase, RunStatus, phases_for
from schemasync.db.models import ReconcileRun
from schemasync.workspace.manager import WorkspaceManager
from schemasync.steps.base import StepContext
from schemasync.steps.registry import StepRegistry

log = logging.getLogger(__name__)

class ReconcileEngine:
    def __init__(self, db: Session, workspace: WorkspaceManager, run_id: str, target=None):
        self.db = db
        self.ws = workspace
        self.run_id = run_id
        self.target = target
        self.registry = StepRegistry.default()

    def _set_phase(self, run: ReconcileRun, phase: RunPhase) -> None:
        run.phase = phase
        self.db.commit()

    def _merge_artifacts(self, run: ReconcileRun, updates: dict) -> None:
        current = dict(run.artifacts or {})
        current.update(updates)
        run.artifacts = current
        self.db.commit()

    def _fail(self, run: ReconcileRun, phase: RunPhase, message: str) -> None:
        run.status = RunStatus.FAILED
        run.error_message = f"{phase.value}: {message}"
        run.phase = RunPhase.FAILED
        self.db.commit()

    def cancel_requested(self) -> bool:
        run = self.db.get(ReconcileRun, self.run_id)
        if run is None:
            return False
        self.db.refresh(run, attribute_names=["cancel_requested"])
        return run.cancel_requested

    def run(self, run: ReconcileRun) -> None:
        phases = phases_for(run.mode, backup_on_dry_run=settings.backup_on_dry_run)

        for phase in phases:
            # Reports are still written for a run cancelled mid-synchronize
            if phase != RunPhase.REPORT and self.cancel_requested():
                error = RunCancelled(phase.value)
                log.warning(str(error), extra={"run_id": self.run_id, "phase": phase.value})
                self._fail(run, phase, str(error))
                raise error

            self._set_phase(run, phase)
            log.info("Running phase", extra={"run_id": self.run_id, "phase": phase.value})

            step = self.registry.get(phase)
            ctx = StepContext(run=run, ws=self.ws, target=self.target, should_cancel=self.cancel_requested)
            try:
                result = step.run(ctx)
            except ReconcileError as e:
                log.error(f"Phase failed: {e}", exc_info=True, extra={"run_id": self.run_id, "phase": phase.value})
                self._fail(run, phase, str(e))
                raise

            self._merge_artifacts(run, result.artifacts_index)

            if not result.ok:
                log.error("Phase failed", extra={"run_id": self.run_id, "phase": phase.value})
                self._fail(run, phase, result.message)
                raise RuntimeError(result.message)

        run.phase = RunPhase.DONE
        run.status = RunStatus.UNHEALTHY if run.healthy is False else RunStatus.DONE
        self.db.commit()
