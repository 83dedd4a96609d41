"""Error taxonomy for reconciliation runs.

Fatal errors (``SnapshotLoadError``, ``BackupFailed``, ``RunCancelled``) abort the run.
``OperationFailed`` and its subclass ``IndexConflict`` are caught per
operation by the synchronizer and recorded on the report.
"""
from typing import Optional


class ReconcileError(Exception):
    """Base class for every error raised by the reconciliation engine."""


class SnapshotLoadError(ReconcileError):
    artifact = "snapshot"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load {self.artifact} {path}: {reason}")


class ComparisonLoadError(SnapshotLoadError):
    artifact = "comparison"


class BackupFailed(ReconcileError):
    def __init__(self, reason: str, collection: Optional[str] = None):
        self.collection = collection
        self.reason = reason
        where = f" (collection '{collection}')" if collection else ""
        super().__init__(f"Backup failed{where}: {reason}")


class OperationFailed(ReconcileError):
    def __init__(self, operation, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(reason)


class IndexConflict(OperationFailed):
    """An index with the same name but a different definition already exists."""


class ManualReviewRequired(Exception):
    """Classification for operations that are reported but never auto-applied.

    Never raised out of the synchronizer; it only names the outcome.
    """


class RunCancelled(ReconcileError):
    def __init__(self, phase: str):
        self.phase = phase
        super().__init__(f"cancellation requested before {phase}")
