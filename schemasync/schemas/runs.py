from pydantic import BaseModel, Field, model_validator
from typing import Optional, Dict, Any
from datetime import datetime
from schemasync.core.workflow import RunMode, RunPhase, RunStatus
from schemasync.reconcile.snapshot import DatabaseSchema

class RunCreateRequest(BaseModel):
    mode: RunMode = RunMode.DRY_RUN
    reference_snapshot_path: Optional[str] = Field(None, examples=["/data/analysis/atlas-schema.json"])
    local_snapshot_path: Optional[str] = Field(None, examples=["/data/analysis/local-schema.json"])
    comparison_path: Optional[str] = Field(None, examples=["/data/analysis/schema-comparison.json"])

    @model_validator(mode="after")
    def _has_input(self) -> "RunCreateRequest":
        has_snapshots = bool(self.reference_snapshot_path and self.local_snapshot_path)
        if not has_snapshots and not self.comparison_path:
            raise ValueError("provide reference_snapshot_path and local_snapshot_path, or comparison_path")
        if self.mode == RunMode.COMPARE and not has_snapshots:
            raise ValueError("compare mode needs both snapshot paths")
        return self

class RunResponse(BaseModel):
    id: str
    mode: RunMode
    reference_snapshot_path: Optional[str] = None
    local_snapshot_path: Optional[str] = None
    comparison_path: Optional[str] = None
    phase: RunPhase
    status: RunStatus
    cancel_requested: bool = False
    healthy: Optional[bool] = None
    total_operations: int = 0
    succeeded_operations: int = 0
    failed_operations: int = 0
    skipped_operations: int = 0
    error_message: Optional[str] = None
    artifacts: Dict[str, Any] = {}
    created_at: Optional[datetime] = None

    @classmethod
    def from_run(cls, run) -> "RunResponse":
        return cls(
            id=run.id,
            mode=run.mode,
            reference_snapshot_path=run.reference_snapshot_path,
            local_snapshot_path=run.local_snapshot_path,
            comparison_path=run.comparison_path,
            phase=run.phase,
            status=run.status,
            cancel_requested=run.cancel_requested,
            healthy=run.healthy,
            total_operations=run.total_operations,
            succeeded_operations=run.succeeded_operations,
            failed_operations=run.failed_operations,
            skipped_operations=run.skipped_operations,
            error_message=run.error_message,
            artifacts=run.artifacts or {},
            created_at=run.created_at,
        )

class CompareRequest(BaseModel):
    reference: DatabaseSchema
    local: DatabaseSchema
