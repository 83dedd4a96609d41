"""Full dump of the target database, taken before any mutation."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Optional
import pymongo
from bson import json_util
from pymongo.database import Database
from pymongo.errors import PyMongoError
from schemasync.core.config import settings
from schemasync.core.errors import BackupFailed

log = logging.getLogger(__name__)


@dataclass
class BackupArtifact:
    """Where a backup was written and how many documents each collection held."""
    path: Path
    timestamp: str
    counts: Dict[str, int] = field(default_factory=dict)

    @property
    def total_documents(self) -> int:
        return sum(self.counts.values())


def run_stamp(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.strftime("%Y%m%dT%H%M%S%fZ")


class BackupManager:
    def __init__(self, target: Database, backups_dir: Path, timeout_seconds: Optional[float] = None):
        self.target = target
        self.backups_dir = Path(backups_dir)
        self.timeout_seconds = settings.backup_timeout_seconds if timeout_seconds is None else timeout_seconds

    def backup_path(self, stamp: str) -> Path:
        return self.backups_dir / f"local-backup-{stamp}.json"

    def create_backup(
        self,
        stamp: Optional[str] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> BackupArtifact:
        """
        Dump every collection's documents and index descriptors.

        Args:
            stamp: Run-scoped identifier used in the file name
            should_cancel: Checked before each collection is read

        Returns:
            BackupArtifact describing the written file

        Raises:
            BackupFailed: if any collection cannot be fully read, the file cannot be written
                or cancellation is requested part way through
        """
        timestamp = datetime.now(timezone.utc)
        stamp = stamp or run_stamp(timestamp)
        log.info(f"Creating backup of database '{self.target.name}'")

        try:
            with pymongo.timeout(self.timeout_seconds):
                names = sorted(
                    name for name in self.target.list_collection_names(filter={"type": "collection"})
                    if not name.startswith("system.")
                )
        except PyMongoError as e:
            raise BackupFailed(f"could not list collections: {e}") from e

        backup = {
            "timestamp": timestamp.isoformat(),
            "database": self.target.name,
            "collections": {},
        }
        counts: Dict[str, int] = {}

        for name in names:
            if should_cancel is not None and should_cancel():
                raise BackupFailed("cancelled", collection=name)
            try:
                with pymongo.timeout(self.timeout_seconds):
                    collection = self.target[name]
                    documents = list(collection.find({}))
                    indexes = list(collection.list_indexes())
            except PyMongoError as e:
                raise BackupFailed(str(e), collection=name) from e

            backup["collections"][name] = {
                "documents": documents,
                "indexes": indexes,
                "count": len(documents),
            }
            counts[name] = len(documents)
            log.info(f"  {name}: {len(documents)} documents backed up")

        path = self.backup_path(stamp)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json_util.dumps(backup, indent=2), encoding="utf-8")
        except OSError as e:
            raise BackupFailed(f"could not write {path}: {e}") from e

        log.info(f"Backup complete: {path} ({sum(counts.values())} documents)")
        return BackupArtifact(path=path, timestamp=backup["timestamp"], counts=counts)
