from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from schemasync.core.workflow import RunPhase

@dataclass
class StepResult:
    phase: RunPhase
    ok: bool
    message: str
    artifacts_index: Dict[str, Any]

@dataclass
class StepContext:
    run: Any
    ws: Any
    target: Any = None
    should_cancel: Optional[Callable[[], bool]] = None

class BaseStep:
    phase: RunPhase
    def run(self, ctx: StepContext) -> StepResult:
        raise NotImplementedError
