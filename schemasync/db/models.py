from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy import Boolean, String, DateTime, Enum, Integer, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column
from schemasync.db.session import Base
from schemasync.core.workflow import RunMode, RunPhase, RunStatus

class ReconcileRun(Base):
    __tablename__ = "reconcile_runs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    mode: Mapped[RunMode] = mapped_column(Enum(RunMode), nullable=False)
    reference_snapshot_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    local_snapshot_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    comparison_path: Mapped[str | None] = mapped_column(Text, nullable=True)

    phase: Mapped[RunPhase] = mapped_column(Enum(RunPhase), default=RunPhase.QUEUED, nullable=False)
    status: Mapped[RunStatus] = mapped_column(Enum(RunStatus), default=RunStatus.QUEUED, nullable=False)
    cancel_requested: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    healthy: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    total_operations: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    succeeded_operations: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    failed_operations: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    skipped_operations: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    artifacts: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
