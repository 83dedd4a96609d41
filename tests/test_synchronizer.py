"""Tests for plan execution against an in-memory target database."""
from datetime import datetime
import pytest
from schemasync.core.errors import IndexConflict
from schemasync.reconcile.differ import compare_schemas
from schemasync.reconcile.planner import build_plan
from schemasync.reconcile.snapshot import IndexInfo
from schemasync.reconcile.synchronizer import (
    Synchronizer,
    default_for_field,
    index_create_options,
    index_key_spec,
    same_index_definition,
)
from schemasync.reconcile.types import (
    AddFieldDetails,
    CreateCollectionDetails,
    DropIndexDetails,
    OperationKind,
    OutcomeStatus,
    Priority,
    SyncOperation,
)
from tests.fakes import FakeDatabase
from tests.snapshots import collection, database, field, index


def _plan(reference, local):
    return build_plan(compare_schemas(reference, local))


def _users_plan():
    reference = database("atlas", collection(
        "users",
        {"email": field("string", required=True), "nickname": field("string"), "tags": field("string", is_array=True)},
        [index("_id_", {"_id": 1}), index("idx_email", {"email": 1}, unique=True)],
    ))
    local = database("local", collection("users", {}))
    return _plan(reference, local)


def _users_target():
    target = FakeDatabase()
    target["users"].insert_many([{"name": "ada"}, {"name": "grace", "nickname": "amazing"}])
    return target


def _create_collection(name: str) -> SyncOperation:
    return SyncOperation(
        kind=OperationKind.CREATE_COLLECTION,
        collection=name,
        details=CreateCollectionDetails(),
        priority=Priority.HIGH,
        command_description=f'db.createCollection("{name}")',
    )


def test_dry_run_never_writes():
    target = _users_target()
    plan = _users_plan()

    report = Synchronizer(target, dry_run=True).execute(plan)

    assert target.total_writes() == 0
    assert report.dry_run is True
    assert report.total == len(plan)
    assert report.succeeded == len(plan)
    assert {o.status for o in report.outcomes} == {OutcomeStatus.WOULD_APPLY}


def test_live_run_applies_plan_in_order():
    """Live run backfills fields and creates the index."""
    target = _users_target()
    plan = _users_plan()

    report = Synchronizer(target, dry_run=False).execute(plan)

    assert [o.operation for o in report.outcomes] == plan
    assert report.failed == 0
    assert report.healthy is True
    docs = target["users"].documents
    assert [d["email"] for d in docs] == ["", ""]
    assert [d["tags"] for d in docs] == [[], []]
    assert [d["nickname"] for d in docs] == ["", "amazing"]
    assert "idx_email" in target["users"].indexes
    assert target["users"].indexes["idx_email"]["unique"] is True


def test_second_live_run_is_noop():
    target = _users_target()
    plan = _users_plan()
    Synchronizer(target, dry_run=False).execute(plan)
    writes = target.total_writes()

    report = Synchronizer(target, dry_run=False).execute(plan)

    assert target.total_writes() == writes
    assert {o.status for o in report.outcomes} == {OutcomeStatus.NOOP}
    assert report.succeeded == len(plan)


def test_create_existing_collection_is_noop():
    target = FakeDatabase()
    target.create_collection("users")

    report = Synchronizer(target, dry_run=False).execute([_create_collection("users")])

    assert report.outcomes[0].status == OutcomeStatus.NOOP
    assert report.failed == 0
    assert target.created_collections == ["users"]


def test_add_field_on_empty_collection_is_noop():
    target = FakeDatabase()
    target.create_collection("users")
    plan = _users_plan()

    report = Synchronizer(target, dry_run=False).execute([op for op in plan if op.kind == OperationKind.ADD_FIELD])

    assert {o.status for o in report.outcomes} == {OutcomeStatus.NOOP}
    assert target["users"].write_count == 0


def test_declared_default_is_used():
    details = AddFieldDetails(field_type="number", has_default=True, default_value=42)

    assert default_for_field(details) == 42
    assert default_for_field(AddFieldDetails(field_type="number")) == 0
    assert default_for_field(AddFieldDetails(field_type="boolean")) is False
    assert default_for_field(AddFieldDetails(field_type="object")) == {}
    assert default_for_field(AddFieldDetails(field_type="objectId")) is None
    assert isinstance(default_for_field(AddFieldDetails(field_type="date")), datetime)


def test_index_with_conflicting_definition_fails_without_overwrite():
    target = _users_target()
    target["users"].create_index([("email", 1)], name="idx_email")
    plan = [op for op in _users_plan() if op.kind == OperationKind.CREATE_INDEX]

    report = Synchronizer(target, dry_run=False).execute(plan)

    assert report.failed == 1
    assert "different definition" in report.errors[0].error
    assert "unique" not in target["users"].indexes["idx_email"]


def test_conflict_error_carries_operation():
    target = _users_target()
    target["users"].create_index([("email", -1)], name="idx_email", unique=True)
    synchronizer = Synchronizer(target, dry_run=False)
    op = [op for op in _users_plan() if op.kind == OperationKind.CREATE_INDEX][0]

    with pytest.raises(IndexConflict) as excinfo:
        synchronizer._create_index(op)

    assert excinfo.value.operation is op


def test_failure_does_not_stop_later_operations():
    target = _users_target()
    target.fail("update_many", "users")
    plan = _users_plan()

    report = Synchronizer(target, dry_run=False, success_threshold=0.9).execute(plan)

    assert len(report.outcomes) == len(plan)
    assert report.failed == 3
    assert report.succeeded == 1
    assert "idx_email" in target["users"].indexes
    assert report.healthy is False
    assert [e.operation.kind for e in report.errors] == [OperationKind.ADD_FIELD] * 3


def test_timeout_is_recorded_as_failure():
    target = FakeDatabase()
    target.time_out("create_collection", "users")

    report = Synchronizer(target, dry_run=False).execute([_create_collection("users"), _create_collection("notes")])

    assert report.outcomes[0].status == OutcomeStatus.FAILED
    assert report.outcomes[0].message.startswith("ExecutionTimeout")
    assert report.outcomes[1].status == OutcomeStatus.APPLIED
    assert report.success_rate == 0.5


def test_unexpected_error_is_recorded_as_failure():
    target = FakeDatabase()
    target.fail("create_collection", "users", error=ValueError("boom"))

    report = Synchronizer(target, dry_run=False).execute([_create_collection("users")])

    assert report.failed == 1
    assert report.errors[0].error == "ValueError: boom"


def test_manual_kinds_are_never_applied():
    reference = database("atlas", collection("users", {"age": field("number")}))
    local = database("local", collection("users", {"age": field("string")}))
    drop = SyncOperation(
        kind=OperationKind.DROP_INDEX,
        collection="users",
        index="idx_legacy",
        details=DropIndexDetails(index=IndexInfo(name="idx_legacy", keys={"legacy": 1})),
        priority=Priority.LOW,
        command_description='db.users.dropIndex("idx_legacy")',
    )
    target = _users_target()
    target["users"].create_index([("legacy", 1)], name="idx_legacy")
    writes = target.total_writes()

    report = Synchronizer(target, dry_run=False).execute([*_plan(reference, local), drop])

    assert [o.status for o in report.outcomes] == [OutcomeStatus.MANUAL_REVIEW] * 2
    assert report.manual_review == 2
    assert report.failed == 0
    assert target.total_writes() == writes
    assert "idx_legacy" in target["users"].indexes


def test_cancellation_skips_remaining_operations():
    target = FakeDatabase()
    plan = [_create_collection(name) for name in ("a", "b", "c")]
    calls = []

    def should_cancel():
        calls.append(1)
        return len(calls) > 1

    report = Synchronizer(target, dry_run=False, should_cancel=should_cancel).execute(plan)

    assert report.cancelled is True
    assert [o.status for o in report.outcomes] == [
        OutcomeStatus.APPLIED, OutcomeStatus.SKIPPED, OutcomeStatus.SKIPPED
    ]
    assert report.skipped == 2
    assert target.created_collections == ["a"]


def test_empty_plan_is_healthy():
    report = Synchronizer(FakeDatabase(), dry_run=False).execute([])

    assert report.total == 0
    assert report.success_rate == 1.0
    assert report.healthy is True


def test_success_rate_at_threshold_is_healthy():
    target = FakeDatabase()
    target.fail("create_collection", "c9")
    plan = [_create_collection(f"c{i}") for i in range(10)]

    report = Synchronizer(target, dry_run=False, success_threshold=0.9).execute(plan)

    assert report.success_rate == 0.9
    assert report.healthy is True


def test_text_index_key_spec_rebuilt_from_weights():
    idx = IndexInfo.model_validate({
        "name": "idx_text",
        "keys": {"_fts": "text", "_ftsx": 1, "tenant": 1},
        "weights": {"title": 10, "body": 1},
        "default_language": "english",
    })

    assert index_key_spec(idx) == [("title", "text"), ("body", "text"), ("tenant", 1)]
    assert index_create_options(idx) == {
        "name": "idx_text",
        "weights": {"title": 10, "body": 1},
        "default_language": "english",
    }


def test_text_index_second_run_is_noop():
    idx = IndexInfo.model_validate({
        "name": "idx_text",
        "keys": {"_fts": "text", "_ftsx": 1},
        "weights": {"title": 1},
    })

    assert same_index_definition(idx, {"key": [("_fts", "text"), ("_ftsx", 1)]})
    assert same_index_definition(idx, {"key": [("title", "text")]})
    assert not same_index_definition(idx, {"key": [("title", "text")], "unique": True})


def test_zero_operation_timeout_is_kept():
    synchronizer = Synchronizer(FakeDatabase(), dry_run=False, operation_timeout=0)

    assert synchronizer.operation_timeout == 0
