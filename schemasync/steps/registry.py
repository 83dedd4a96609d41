from dataclasses import dataclass
from typing import Dict
from schemasync.core.workflow import RunPhase
from schemasync.steps.base import BaseStep
from schemasync.steps.impl_compare import CompareStep
from schemasync.steps.impl_backup import BackupStep
from schemasync.steps.impl_sync import SynchronizeStep
from schemasync.steps.impl_report import ReportStep

@dataclass
class StepRegistry:
    mapping: Dict[RunPhase, BaseStep]

    def get(self, phase: RunPhase) -> BaseStep:
        return self.mapping[phase]

    @staticmethod
    def default() -> "StepRegistry":
        return StepRegistry(mapping={
            RunPhase.COMPARE: CompareStep(),
            RunPhase.BACKUP: BackupStep(),
            RunPhase.SYNCHRONIZE: SynchronizeStep(),
            RunPhase.REPORT: ReportStep(),
        })
