import logging
from schemasync.core.workflow import RunPhase
from schemasync.reconcile.comparison import load_comparison
from schemasync.reconcile.report import load_sync_report, render_comparison_summary, render_sync_summary
from schemasync.steps.base import BaseStep, StepContext, StepResult

log = logging.getLogger(__name__)


class ReportStep(BaseStep):
    phase = RunPhase.REPORT

    def run(self, ctx: StepContext) -> StepResult:
        run, ws = ctx.run, ctx.ws
        artifacts = {}

        if ws.comparison_path.exists():
            comparison = load_comparison(ws.comparison_path)
            summary_path = ws.analysis_dir / "schema-comparison.md"
            summary_path.write_text(render_comparison_summary(comparison), encoding="utf-8")
            artifacts["comparison_summary"] = ws.relative(summary_path)

        report_path = ws.reports_dir / f"sync-report-{run.id}.json"
        if report_path.exists():
            report = load_sync_report(report_path)
            summary_path = ws.reports_dir / "sync-report.md"
            summary_path.write_text(render_sync_summary(report), encoding="utf-8")
            artifacts["sync_summary"] = ws.relative(summary_path)

        log.info(
            f"Wrote {len(artifacts)} summaries",
            extra={"run_id": run.id, "phase": str(self.phase.value)},
        )
        return StepResult(self.phase, True, f"Wrote {len(artifacts)} summaries", artifacts)
