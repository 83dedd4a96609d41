"""Tests for sync plan construction and advisories."""
from schemasync.reconcile.differ import compare_schemas
from schemasync.reconcile.planner import (
    build_plan,
    collect_advisories,
    render_create_index,
    render_default,
)
from schemasync.reconcile.snapshot import IndexInfo
from schemasync.reconcile.types import AddFieldDetails, OperationKind, Priority, SyncOperation
from tests.snapshots import collection, database, field, index


def _plan(reference, local):
    return build_plan(compare_schemas(reference, local))


def test_missing_collection_plans_single_create():
    """A missing collection yields one high priority create_collection and nothing else."""
    reference = database("atlas", collection(
        "users",
        {"email": field("string", required=True)},
        [index("_id_", {"_id": 1}), index("idx_email", {"email": 1}, unique=True)],
    ))

    plan = _plan(reference, database("local"))

    assert len(plan) == 1
    assert plan[0].kind == OperationKind.CREATE_COLLECTION
    assert plan[0].collection == "users"
    assert plan[0].priority == Priority.HIGH
    assert plan[0].details.kind == "create_collection"
    assert "createCollection" in plan[0].command_description


def test_missing_optional_field_plans_add_field():
    reference = database("atlas", collection("users", {"nickname": field("string")}))
    local = database("local", collection("users", {}))

    (op,) = _plan(reference, local)

    assert op.kind == OperationKind.ADD_FIELD
    assert op.field == "nickname"
    assert op.priority == Priority.MEDIUM
    assert op.details.field_type == "string"
    assert '$exists: false' in op.command_description
    assert '""' in op.command_description


def test_option_mismatch_is_advisory_not_operation():
    reference = database("atlas", collection("users", indexes=[index("idx_email", {"email": 1}, unique=True)]))
    local = database("local", collection("users", indexes=[index("idx_email", {"email": 1})]))
    differences = compare_schemas(reference, local)

    assert build_plan(differences) == []
    (advisory,) = collect_advisories(differences)
    assert advisory.kind == "index_options"
    assert advisory.index == "idx_email"
    assert "unique: true" in advisory.command_description


def test_local_only_index_is_advisory_not_operation():
    reference = database("atlas", collection("users", indexes=[]))
    local = database("local", collection("users", indexes=[index("idx_legacy", {"legacy": 1})]))
    differences = compare_schemas(reference, local)

    assert build_plan(differences) == []
    (advisory,) = collect_advisories(differences)
    assert advisory.kind == "drop_index"
    assert advisory.command_description == 'db.users.dropIndex("idx_legacy")'


def test_type_mismatch_plans_modify_field():
    reference = database("atlas", collection("users", {"age": field("number")}))
    local = database("local", collection("users", {"age": field("string")}))

    (op,) = _plan(reference, local)

    assert op.kind == OperationKind.MODIFY_FIELD
    assert op.priority == Priority.HIGH
    assert op.details.from_type == "string"
    assert op.details.to_type == "number"


def test_requirement_mismatch_and_added_items_plan_nothing():
    reference = database("atlas", collection("users", {"email": field("string", required=True)}))
    local = database(
        "local",
        collection("users", {"email": field("string"), "legacy": field("boolean")}),
        collection("scratch"),
    )

    assert _plan(reference, local) == []


def test_plan_is_sorted_by_priority():
    reference = database(
        "atlas",
        collection("alpha", {"nickname": field("string")}, [index("idx_nick", {"nickname": 1})]),
        collection("beta", {"email": field("string", required=True)}),
        collection("gamma"),
    )
    local = database("local", collection("alpha", {}, []), collection("beta", {}))

    plan = _plan(reference, local)
    ranks = [op.priority.rank for op in plan]

    assert ranks == sorted(ranks)
    assert [op.priority for op in plan] == [Priority.HIGH, Priority.HIGH, Priority.MEDIUM, Priority.MEDIUM]


def test_plan_ties_keep_discovery_order():
    """Same priority keeps collection, then field, then index order."""
    reference = database(
        "atlas",
        collection("alpha", {"b": field("string"), "a": field("string")}, [index("idx_a", {"a": 1})]),
        collection("beta", {"c": field("string")}),
    )
    local = database("local", collection("alpha", {}, []), collection("beta", {}))

    plan = _plan(reference, local)

    assert [op.label() for op in plan] == [
        "add_field alpha.a",
        "add_field alpha.b",
        "create_index alpha.idx_a",
        "add_field beta.c",
    ]


def test_create_index_carries_full_definition():
    reference = database("atlas", collection("articles", indexes=[
        index(
            "idx_text",
            {"_fts": "text", "_ftsx": 1},
            weights={"title": 10, "body": 1},
        ),
    ]))
    local = database("local", collection("articles", indexes=[]))

    (op,) = _plan(reference, local)

    assert op.kind == OperationKind.CREATE_INDEX
    assert op.index == "idx_text"
    assert op.details.index.options["weights"] == {"title": 10, "body": 1}
    assert 'weights: {"title": 10, "body": 1}' in op.command_description


def test_render_create_index_preserves_key_order():
    idx = IndexInfo(name="idx_compound", keys={"b": -1, "a": 1}, unique=True, sparse=True)

    assert render_create_index("users", idx) == (
        'db.users.createIndex({ "b": -1, "a": 1 }, { name: "idx_compound", unique: true, sparse: true })'
    )


def test_render_default_prefers_declared_value():
    assert render_default(AddFieldDetails(field_type="number", default_value=5)) == "5"
    assert render_default(AddFieldDetails(field_type="string", is_array=True)) == "[]"
    assert render_default(AddFieldDetails(field_type="date")) == "new Date()"
    assert render_default(AddFieldDetails(field_type="objectId")) == "null"


def test_plan_survives_json_round_trip():
    reference = database("atlas", collection("users", {"nickname": field("string")}, [index("idx_nick", {"nickname": 1})]))
    local = database("local", collection("users", {}, []))
    plan = _plan(reference, local)

    restored = [SyncOperation.model_validate_json(op.model_dump_json(by_alias=True)) for op in plan]

    assert restored == plan
    assert restored[1].details.kind == "create_index"
