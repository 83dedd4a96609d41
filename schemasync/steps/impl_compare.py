import logging
from pathlib import Path
from schemasync.core.workflow import RunPhase
from schemasync.reconcile.comparison import build_comparison, load_comparison, load_snapshot, write_comparison
from schemasync.steps.base import BaseStep, StepContext, StepResult

log = logging.getLogger(__name__)


class CompareStep(BaseStep):
    phase = RunPhase.COMPARE

    def run(self, ctx: StepContext) -> StepResult:
        run, ws = ctx.run, ctx.ws
        extra = {"run_id": run.id, "phase": str(self.phase.value)}

        if run.reference_snapshot_path and run.local_snapshot_path:
            # SnapshotLoadError is fatal and propagates to the engine
            reference = load_snapshot(Path(run.reference_snapshot_path))
            local = load_snapshot(Path(run.local_snapshot_path))
            log.info(
                f"Loaded snapshots '{reference.database_name}' (reference) and '{local.database_name}' (local)",
                extra=extra,
            )
            comparison = build_comparison(reference, local)
            source = "snapshots"
        elif run.comparison_path:
            comparison = load_comparison(Path(run.comparison_path))
            source = f"comparison {run.comparison_path}"
        else:
            return StepResult(
                self.phase,
                False,
                "Run names neither a reference/local snapshot pair nor a comparison file",
                {}
            )

        path = write_comparison(comparison, ws.comparison_path)
        log.info(
            f"Comparison from {source}: {comparison.total_differences} differences "
            f"(high: {comparison.high_priority_count}, medium: {comparison.medium_priority_count}, "
            f"low: {comparison.low_priority_count}), {len(comparison.sync_plan)} operations planned",
            extra=extra,
        )

        return StepResult(
            self.phase,
            True,
            f"Found {comparison.total_differences} differences, planned {len(comparison.sync_plan)} operations",
            {"comparison": ws.relative(path)}
        )
