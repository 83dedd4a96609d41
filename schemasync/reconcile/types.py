"""Models for differences, sync plans and execution reports."""
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel
from schemasync.reconcile.snapshot import CollectionSchema, FieldInfo, IndexInfo


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


class FieldDiffKind(str, Enum):
    MISSING = "missing"
    ADDED = "added"
    TYPE_MISMATCH = "type_mismatch"
    REQUIREMENT_MISMATCH = "requirement_mismatch"


class IndexDiffKind(str, Enum):
    MISSING = "missing"
    ADDED = "added"
    KEY_MISMATCH = "key_mismatch"
    OPTION_MISMATCH = "option_mismatch"


class CollectionDiffKind(str, Enum):
    MISSING = "missing"
    ADDED = "added"
    MODIFIED = "modified"


class OperationKind(str, Enum):
    CREATE_COLLECTION = "create_collection"
    ADD_FIELD = "add_field"
    MODIFY_FIELD = "modify_field"
    CREATE_INDEX = "create_index"
    DROP_INDEX = "drop_index"
    UPDATE_REQUIREMENT = "update_requirement"


class OutcomeStatus(str, Enum):
    APPLIED = "applied"
    NOOP = "noop"
    WOULD_APPLY = "would_apply"
    MANUAL_REVIEW = "manual_review"
    FAILED = "failed"
    SKIPPED = "skipped"


SUCCESS_STATUSES = {
    OutcomeStatus.APPLIED,
    OutcomeStatus.NOOP,
    OutcomeStatus.WOULD_APPLY,
    OutcomeStatus.MANUAL_REVIEW,
}


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldDifference(CamelModel):
    field: str
    reference: Optional[FieldInfo] = None
    local: Optional[FieldInfo] = None
    kind: FieldDiffKind
    description: str
    priority: Priority


class IndexDifference(CamelModel):
    index_name: str
    reference: Optional[IndexInfo] = None
    local: Optional[IndexInfo] = None
    kind: IndexDiffKind
    description: str
    priority: Priority


class CollectionDifference(CamelModel):
    collection: str
    reference: Optional[CollectionSchema] = None
    local: Optional[CollectionSchema] = None
    kind: CollectionDiffKind
    field_differences: List[FieldDifference] = Field(default_factory=list)
    index_differences: List[IndexDifference] = Field(default_factory=list)
    description: str
    priority: Priority


# Operation payloads, one variant per OperationKind


class CreateCollectionDetails(CamelModel):
    kind: Literal["create_collection"] = "create_collection"
    options: Dict[str, Any] = Field(default_factory=dict)


class AddFieldDetails(CamelModel):
    kind: Literal["add_field"] = "add_field"
    field_type: str = "mixed"
    is_array: bool = False
    is_required: bool = False
    has_default: bool = False
    default_value: Optional[Any] = None


class ModifyFieldDetails(CamelModel):
    kind: Literal["modify_field"] = "modify_field"
    from_type: Optional[str] = None
    to_type: Optional[str] = None
    from_is_array: bool = False
    to_is_array: bool = False


class CreateIndexDetails(CamelModel):
    kind: Literal["create_index"] = "create_index"
    index: IndexInfo


class DropIndexDetails(CamelModel):
    kind: Literal["drop_index"] = "drop_index"
    index: IndexInfo


class UpdateRequirementDetails(CamelModel):
    kind: Literal["update_requirement"] = "update_requirement"
    from_required: bool = False
    to_required: bool = False


OperationDetails = Annotated[
    Union[
        CreateCollectionDetails,
        AddFieldDetails,
        ModifyFieldDetails,
        CreateIndexDetails,
        DropIndexDetails,
        UpdateRequirementDetails,
    ],
    Field(discriminator="kind"),
]


class SyncOperation(CamelModel):
    kind: OperationKind
    collection: str
    field: Optional[str] = None
    index: Optional[str] = None
    details: OperationDetails
    priority: Priority
    command_description: str
    description: str = ""

    def label(self) -> str:
        target = self.field or self.index
        return f"{self.kind.value} {self.collection}.{target}" if target else f"{self.kind.value} {self.collection}"


class Advisory(CamelModel):
    """A finding that is reported but never turned into an executable operation."""
    collection: str
    index: Optional[str] = None
    kind: Literal["drop_index", "index_options"]
    description: str
    command_description: str = ""


class SchemaComparison(CamelModel):
    reference_summary: Dict[str, Any] = Field(default_factory=dict)
    local_summary: Dict[str, Any] = Field(default_factory=dict)
    collection_differences: List[CollectionDifference] = Field(default_factory=list)
    total_differences: int = 0
    high_priority_count: int = 0
    medium_priority_count: int = 0
    low_priority_count: int = 0
    advisories: List[Advisory] = Field(default_factory=list)
    sync_plan: List[SyncOperation] = Field(default_factory=list)
    compared_at: Optional[datetime] = None


class OperationOutcome(CamelModel):
    operation: SyncOperation
    status: OutcomeStatus
    message: str = ""
    documents_modified: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status in SUCCESS_STATUSES


class OperationError(CamelModel):
    operation: SyncOperation
    error: str


class SyncReport(CamelModel):
    run_id: str
    dry_run: bool
    success_threshold: float = 0.90
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    manual_review: int = 0
    cancelled: bool = False
    outcomes: List[OperationOutcome] = Field(default_factory=list)
    errors: List[OperationError] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    elapsed_seconds: float = 0.0

    def record(self, outcome: OperationOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status == OutcomeStatus.SKIPPED:
            self.skipped += 1
        elif outcome.status == OutcomeStatus.FAILED:
            self.failed += 1
            self.errors.append(OperationError(operation=outcome.operation, error=outcome.message))
        else:
            self.succeeded += 1
            if outcome.status == OutcomeStatus.MANUAL_REVIEW:
                self.manual_review += 1

    @computed_field
    @property
    def success_rate(self) -> float:
        if self.total == 0:
            return 1.0
        return self.succeeded / self.total

    @computed_field
    @property
    def healthy(self) -> bool:
        return self.success_rate >= self.success_threshold
