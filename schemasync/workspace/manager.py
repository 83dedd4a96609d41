from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from schemasync.core.config import settings

@dataclass
class WorkspaceManager:
    run_id: str
    base_dir: str | None = None

    @property
    def root(self) -> Path:
        return Path(self.base_dir or settings.workspaces_dir) / self.run_id

    @property
    def analysis_dir(self) -> Path:
        return self.root / "analysis"

    @property
    def backups_dir(self) -> Path:
        return self.root / "backups"

    @property
    def reports_dir(self) -> Path:
        return self.root / "reports"

    @property
    def comparison_path(self) -> Path:
        return self.analysis_dir / "schema-comparison.json"

    def ensure(self) -> None:
        for d in (self.analysis_dir, self.backups_dir, self.reports_dir):
            d.mkdir(parents=True, exist_ok=True)

    def relative(self, path: Path) -> str:
        return str(Path(path).relative_to(self.root))
