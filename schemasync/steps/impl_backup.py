import logging
from schemasync.core.workflow import RunPhase
from schemasync.reconcile.backup import BackupManager, run_stamp
from schemasync.steps.base import BaseStep, StepContext, StepResult

log = logging.getLogger(__name__)


class BackupStep(BaseStep):
    phase = RunPhase.BACKUP

    def run(self, ctx: StepContext) -> StepResult:
        if ctx.target is None:
            return StepResult(self.phase, False, "No target database configured for backup", {})

        # BackupFailed is fatal: nothing may be mutated without a backup
        artifact = BackupManager(ctx.target, ctx.ws.backups_dir).create_backup(
            stamp=run_stamp(),
            should_cancel=ctx.should_cancel,
        )
        log.info(
            f"Backed up {len(artifact.counts)} collections ({artifact.total_documents} documents)",
            extra={"run_id": ctx.run.id, "phase": str(self.phase.value)},
        )
        return StepResult(
            self.phase,
            True,
            f"Backed up {len(artifact.counts)} collections",
            {"backup": ctx.ws.relative(artifact.path)}
        )
