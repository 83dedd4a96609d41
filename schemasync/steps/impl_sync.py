import logging
from schemasync.core.workflow import RunMode, RunPhase
from schemasync.reconcile.comparison import load_comparison
from schemasync.reconcile.report import write_sync_report
from schemasync.reconcile.synchronizer import Synchronizer
from schemasync.steps.base import BaseStep, StepContext, StepResult

log = logging.getLogger(__name__)


class SynchronizeStep(BaseStep):
    phase = RunPhase.SYNCHRONIZE

    def run(self, ctx: StepContext) -> StepResult:
        run, ws = ctx.run, ctx.ws
        if ctx.target is None:
            return StepResult(self.phase, False, "No target database configured for synchronization", {})

        # The plan is always read back from the persisted comparison
        comparison = load_comparison(ws.comparison_path)
        synchronizer = Synchronizer(
            ctx.target,
            dry_run=run.mode == RunMode.DRY_RUN,
            run_id=run.id,
            should_cancel=ctx.should_cancel,
        )
        report = synchronizer.execute(comparison.sync_plan)
        report_path = write_sync_report(report, ws.reports_dir)

        run.healthy = report.healthy
        run.total_operations = report.total
        run.succeeded_operations = report.succeeded
        run.failed_operations = report.failed
        run.skipped_operations = report.skipped

        if not report.healthy:
            log.warning(
                f"Success rate {report.success_rate * 100:.1f}% is below {report.success_threshold * 100:.0f}%",
                extra={"run_id": run.id, "phase": str(self.phase.value)},
            )

        # Individual operation failures never fail the step
        return StepResult(
            self.phase,
            True,
            f"{report.succeeded}/{report.total} operations succeeded, {report.failed} failed, {report.skipped} skipped",
            {"sync_report": ws.relative(report_path)}
        )
