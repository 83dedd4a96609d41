"""Sequential execution of a sync plan against the target database.

Operations run strictly one at a time and in plan order. A failing
operation is recorded on the report and execution moves on; nothing is
retried. Cancellation is only checked between operations.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple
import pymongo
from pymongo.database import Database
from pymongo.errors import PyMongoError
from schemasync.core.config import settings
from schemasync.core.errors import IndexConflict, ManualReviewRequired, OperationFailed
from schemasync.reconcile.snapshot import IndexInfo
from schemasync.reconcile.types import (
    AddFieldDetails,
    OperationKind,
    OperationOutcome,
    OutcomeStatus,
    Priority,
    SyncOperation,
    SyncReport,
)

log = logging.getLogger(__name__)

MANUAL_KINDS = {OperationKind.MODIFY_FIELD, OperationKind.UPDATE_REQUIREMENT, OperationKind.DROP_INDEX}

TYPE_DEFAULTS: Dict[str, Callable[[], Any]] = {
    "string": str,
    "number": int,
    "boolean": bool,
    "object": dict,
    "array": list,
    "date": lambda: datetime.now(timezone.utc),
}

# Index options passed through to createIndex when present in the snapshot
PASSTHROUGH_INDEX_OPTIONS = (
    "weights",
    "default_language",
    "language_override",
    "expireAfterSeconds",
    "partialFilterExpression",
    "collation",
    "2dsphereIndexVersion",
    "bits",
    "min",
    "max",
)


def default_for_field(details: AddFieldDetails) -> Any:
    if details.default_value is not None:
        return details.default_value
    if details.is_array:
        return []
    factory = TYPE_DEFAULTS.get(details.field_type)
    return factory() if factory else None


def index_key_spec(index: IndexInfo) -> List[Tuple[str, Any]]:
    """Key list for create_index.

    Text indexes are reported by the server as ``_fts``/``_ftsx`` keys and
    have to be rebuilt from their weights.
    """
    keys: List[Tuple[str, Any]] = []
    weights = index.options.get("weights") or {}
    for field, direction in index.key_pairs():
        if field == "_fts":
            keys.extend((text_field, "text") for text_field in weights)
        elif field == "_ftsx":
            continue
        else:
            keys.append((field, direction))
    return keys


def index_create_options(index: IndexInfo) -> Dict[str, Any]:
    options: Dict[str, Any] = {"name": index.name}
    if index.unique:
        options["unique"] = True
    if index.sparse:
        options["sparse"] = True
    extras = index.options
    for key in PASSTHROUGH_INDEX_OPTIONS:
        if extras.get(key) not in (None, {}, []):
            options[key] = extras[key]
    return options


def same_index_definition(index: IndexInfo, existing: Dict[str, Any]) -> bool:
    existing_keys = [(field, direction) for field, direction in existing.get("key", [])]
    return (
        existing_keys in (index.key_pairs(), index_key_spec(index))
        and bool(existing.get("unique", False)) == index.unique
        and bool(existing.get("sparse", False)) == index.sparse
    )


class Synchronizer:
    def __init__(
        self,
        target: Database,
        dry_run: bool,
        run_id: str = "-",
        operation_timeout: Optional[float] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
        success_threshold: Optional[float] = None,
    ):
        self.target = target
        self.dry_run = dry_run
        self.run_id = run_id
        self.operation_timeout = settings.operation_timeout_seconds if operation_timeout is None else operation_timeout
        self.should_cancel = should_cancel
        self.success_threshold = settings.success_threshold if success_threshold is None else success_threshold
        self._handlers = {
            OperationKind.CREATE_COLLECTION: self._create_collection,
            OperationKind.ADD_FIELD: self._add_field,
            OperationKind.CREATE_INDEX: self._create_index,
        }

    def _log(self, level: int, message: str) -> None:
        log.log(level, message, extra={"run_id": self.run_id, "phase": "SYNCHRONIZE"})

    def execute(self, plan: List[SyncOperation]) -> SyncReport:
        """
        Apply a plan and return the accumulated report.

        Args:
            plan: Operations in the order they must run

        Returns:
            SyncReport with one outcome per operation, in plan order
        """
        started = time.monotonic()
        report = SyncReport(
            run_id=self.run_id,
            dry_run=self.dry_run,
            success_threshold=self.success_threshold,
            total=len(plan),
            started_at=datetime.now(timezone.utc),
        )

        by_priority = {p: sum(1 for op in plan if op.priority == p) for p in Priority}
        self._log(logging.INFO, (
            f"Executing {len(plan)} operations (high: {by_priority[Priority.HIGH]}, "
            f"medium: {by_priority[Priority.MEDIUM]}, low: {by_priority[Priority.LOW]})"
        ))
        if self.dry_run:
            self._log(logging.INFO, "DRY RUN: no changes will be applied")
        else:
            self._log(logging.WARNING, "LIVE RUN: changes will be applied to the target database")

        for position, operation in enumerate(plan, start=1):
            if not report.cancelled and self.should_cancel is not None and self.should_cancel():
                report.cancelled = True
                self._log(logging.WARNING, f"Cancellation requested, skipping {len(plan) - position + 1} remaining operations")
            if report.cancelled:
                report.record(OperationOutcome(
                    operation=operation,
                    status=OutcomeStatus.SKIPPED,
                    message="run cancelled before this operation",
                ))
                continue

            self._log(logging.INFO, (
                f"({position}/{len(plan)}) [{operation.priority.value.upper()}] {operation.label()}"
            ))
            outcome = self._execute_one(operation)
            report.record(outcome)
            level = logging.ERROR if outcome.status == OutcomeStatus.FAILED else logging.INFO
            self._log(level, f"  {outcome.status.value}: {outcome.message}")

        report.finished_at = datetime.now(timezone.utc)
        report.elapsed_seconds = time.monotonic() - started
        self._log(logging.INFO, (
            f"Sync finished: {report.succeeded}/{report.total} succeeded, {report.failed} failed, "
            f"{report.skipped} skipped in {report.elapsed_seconds:.2f}s"
        ))
        return report

    def _execute_one(self, operation: SyncOperation) -> OperationOutcome:
        try:
            if operation.kind in MANUAL_KINDS:
                raise ManualReviewRequired(
                    f"{operation.kind.value} is not applied automatically: {operation.description or operation.command_description}"
                )
            handler = self._handlers.get(operation.kind)
            if handler is None:
                raise OperationFailed(operation, f"unknown operation kind: {operation.kind}")
            if self.dry_run:
                return OperationOutcome(
                    operation=operation,
                    status=OutcomeStatus.WOULD_APPLY,
                    message=f"would run {operation.command_description}",
                )
            with pymongo.timeout(self.operation_timeout):
                return handler(operation)
        except ManualReviewRequired as e:
            return OperationOutcome(operation=operation, status=OutcomeStatus.MANUAL_REVIEW, message=str(e))
        except OperationFailed as e:
            return OperationOutcome(operation=operation, status=OutcomeStatus.FAILED, message=str(e))
        except PyMongoError as e:
            # Timeouts land here too
            return OperationOutcome(
                operation=operation,
                status=OutcomeStatus.FAILED,
                message=f"{type(e).__name__}: {e}",
            )
        except Exception as e:
            log.exception(
                f"Operation failed: {operation.label()}",
                extra={"run_id": self.run_id, "phase": "SYNCHRONIZE"},
            )
            return OperationOutcome(
                operation=operation,
                status=OutcomeStatus.FAILED,
                message=f"{type(e).__name__}: {e}",
            )

    def _create_collection(self, operation: SyncOperation) -> OperationOutcome:
        name = operation.collection
        if self.target.list_collection_names(filter={"name": name}):
            return OperationOutcome(operation=operation, status=OutcomeStatus.NOOP, message=f"collection '{name}' already exists")
        self.target.create_collection(name, **operation.details.options)
        return OperationOutcome(operation=operation, status=OutcomeStatus.APPLIED, message=f"created collection '{name}'")

    def _add_field(self, operation: SyncOperation) -> OperationOutcome:
        details: AddFieldDetails = operation.details
        field = operation.field
        collection = self.target[operation.collection]

        if collection.count_documents({}) == 0:
            return OperationOutcome(
                operation=operation,
                status=OutcomeStatus.NOOP,
                message=f"'{operation.collection}' has no documents, nothing to backfill",
            )

        value = default_for_field(details)
        # Only documents still lacking the field are touched
        result = collection.update_many({field: {"$exists": False}}, {"$set": {field: value}})
        modified = result.modified_count
        status = OutcomeStatus.APPLIED if modified else OutcomeStatus.NOOP
        return OperationOutcome(
            operation=operation,
            status=status,
            message=f"set '{field}' on {modified} documents",
            documents_modified=modified,
        )

    def _create_index(self, operation: SyncOperation) -> OperationOutcome:
        index: IndexInfo = operation.details.index
        collection = self.target[operation.collection]

        existing = collection.index_information().get(index.name)
        if existing is not None:
            if same_index_definition(index, existing):
                return OperationOutcome(
                    operation=operation,
                    status=OutcomeStatus.NOOP,
                    message=f"index '{index.name}' already exists",
                )
            raise IndexConflict(
                operation,
                f"index '{index.name}' already exists on '{operation.collection}' with a different "
                f"definition (existing keys: {existing.get('key')}, unique: {bool(existing.get('unique', False))}, "
                f"sparse: {bool(existing.get('sparse', False))})",
            )

        collection.create_index(index_key_spec(index), **index_create_options(index))
        return OperationOutcome(operation=operation, status=OutcomeStatus.APPLIED, message=f"created index '{index.name}'")
