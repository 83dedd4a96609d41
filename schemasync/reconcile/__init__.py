"""Schema reconciliation: compare snapshots, plan, back up and synchronize."""
from schemasync.reconcile.backup import BackupArtifact, BackupManager
from schemasync.reconcile.comparison import build_comparison, load_comparison, load_snapshot, write_comparison
from schemasync.reconcile.differ import compare_schemas
from schemasync.reconcile.planner import build_plan
from schemasync.reconcile.synchronizer import Synchronizer

__all__ = [
    "BackupArtifact",
    "BackupManager",
    "Synchronizer",
    "build_comparison",
    "build_plan",
    "compare_schemas",
    "load_comparison",
    "load_snapshot",
    "write_comparison",
]
