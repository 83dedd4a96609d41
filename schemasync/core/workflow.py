from enum import Enum
from typing import List

class RunPhase(str, Enum):
    QUEUED = "QUEUED"
    COMPARE = "COMPARE"
    BACKUP = "BACKUP"
    SYNCHRONIZE = "SYNCHRONIZE"
    REPORT = "REPORT"
    DONE = "DONE"
    FAILED = "FAILED"

class RunMode(str, Enum):
    COMPARE = "compare"
    DRY_RUN = "dry_run"
    LIVE = "live"

class RunStatus(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    DONE = "DONE"
    UNHEALTHY = "UNHEALTHY"
    FAILED = "FAILED"

def phases_for(mode: RunMode, backup_on_dry_run: bool = False) -> List[RunPhase]:
    if mode == RunMode.COMPARE:
        return [RunPhase.COMPARE, RunPhase.REPORT]
    if mode == RunMode.DRY_RUN:
        if backup_on_dry_run:
            return [RunPhase.COMPARE, RunPhase.BACKUP, RunPhase.SYNCHRONIZE, RunPhase.REPORT]
        return [RunPhase.COMPARE, RunPhase.SYNCHRONIZE, RunPhase.REPORT]
    # Live runs never mutate without a backup
    return [RunPhase.COMPARE, RunPhase.BACKUP, RunPhase.SYNCHRONIZE, RunPhase.REPORT]
