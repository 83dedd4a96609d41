"""Translate schema differences into an ordered sync plan.

Only additive operations are planned for automatic execution. Type
mismatches are planned as ``modify_field`` for manual review; local-only
indexes and option-only index mismatches become advisories and never
operations.
"""
import json
from typing import Any, List
from schemasync.reconcile.snapshot import IndexInfo
from schemasync.reconcile.types import (
    AddFieldDetails,
    Advisory,
    CollectionDiffKind,
    CollectionDifference,
    CreateCollectionDetails,
    CreateIndexDetails,
    FieldDiffKind,
    FieldDifference,
    IndexDiffKind,
    ModifyFieldDetails,
    OperationKind,
    Priority,
    SyncOperation,
)

# Literals for the rendered command when a field has no declared default
TYPE_DEFAULT_LITERALS = {
    "string": '""',
    "number": "0",
    "boolean": "false",
    "object": "{}",
    "array": "[]",
    "date": "new Date()",
}


def _literal(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def render_default(details: AddFieldDetails) -> str:
    if details.default_value is not None:
        return _literal(details.default_value)
    if details.is_array:
        return "[]"
    return TYPE_DEFAULT_LITERALS.get(details.field_type, "null")


def render_index_keys(index: IndexInfo) -> str:
    keys = ", ".join(f"{_literal(field)}: {_literal(direction)}" for field, direction in index.key_pairs())
    return "{ " + keys + " }"


def render_create_index(collection: str, index: IndexInfo) -> str:
    options = [f"name: {_literal(index.name)}"]
    if index.unique:
        options.append("unique: true")
    if index.sparse:
        options.append("sparse: true")
    weights = index.options.get("weights")
    if weights:
        options.append(f"weights: {_literal(weights)}")
    return f"db.{collection}.createIndex({render_index_keys(index)}, {{ {', '.join(options)} }})"


def render_drop_index(collection: str, index_name: str) -> str:
    return f"db.{collection}.dropIndex({_literal(index_name)})"


def _create_collection_op(diff: CollectionDifference) -> SyncOperation:
    return SyncOperation(
        kind=OperationKind.CREATE_COLLECTION,
        collection=diff.collection,
        details=CreateCollectionDetails(),
        priority=Priority.HIGH,
        command_description=f"db.createCollection({_literal(diff.collection)})",
        description=f"Create collection '{diff.collection}'",
    )


def _add_field_op(collection: str, diff: FieldDifference) -> SyncOperation:
    ref = diff.reference
    details = AddFieldDetails(
        field_type=ref.type,
        is_array=ref.is_array,
        is_required=ref.is_required,
        has_default=ref.has_default,
        default_value=ref.default_value,
    )
    field = _literal(diff.field)
    return SyncOperation(
        kind=OperationKind.ADD_FIELD,
        collection=collection,
        field=diff.field,
        details=details,
        priority=diff.priority,
        command_description=(
            f"db.{collection}.updateMany({{ {field}: {{ $exists: false }} }}, "
            f"{{ $set: {{ {field}: {render_default(details)} }} }})"
        ),
        description=f"Backfill field '{diff.field}' on documents that lack it",
    )


def _modify_field_op(collection: str, diff: FieldDifference) -> SyncOperation:
    ref, local = diff.reference, diff.local
    return SyncOperation(
        kind=OperationKind.MODIFY_FIELD,
        collection=collection,
        field=diff.field,
        details=ModifyFieldDetails(
            from_type=local.type,
            to_type=ref.type,
            from_is_array=local.is_array,
            to_is_array=ref.is_array,
        ),
        priority=diff.priority,
        command_description=(
            f"// manual review: {collection}.{diff.field} {local.type_label()} -> {ref.type_label()}"
        ),
        description=f"Resolve type mismatch on field '{diff.field}'",
    )


def _create_index_op(collection: str, index: IndexInfo, priority: Priority) -> SyncOperation:
    return SyncOperation(
        kind=OperationKind.CREATE_INDEX,
        collection=collection,
        index=index.name,
        details=CreateIndexDetails(index=index),
        priority=priority,
        command_description=render_create_index(collection, index),
        description=f"Create index '{index.name}'",
    )


def build_plan(differences: List[CollectionDifference]) -> List[SyncOperation]:
    """
    Build the sync plan for a list of collection differences.

    Args:
        differences: Output of compare_schemas, in discovery order

    Returns:
        Operations stable-sorted by priority (high, medium, low); ties keep
        collection, then field, then index discovery order
    """
    operations: List[SyncOperation] = []

    for coll_diff in differences:
        if coll_diff.kind == CollectionDiffKind.MISSING:
            operations.append(_create_collection_op(coll_diff))

        for field_diff in coll_diff.field_differences:
            if field_diff.kind == FieldDiffKind.MISSING and field_diff.reference is not None:
                operations.append(_add_field_op(coll_diff.collection, field_diff))
            elif field_diff.kind == FieldDiffKind.TYPE_MISMATCH:
                operations.append(_modify_field_op(coll_diff.collection, field_diff))

        for index_diff in coll_diff.index_differences:
            if index_diff.kind == IndexDiffKind.MISSING and index_diff.reference is not None:
                operations.append(
                    _create_index_op(coll_diff.collection, index_diff.reference, index_diff.priority)
                )

    # sorted() is stable, ties keep discovery order
    return sorted(operations, key=lambda op: op.priority.rank)


def collect_advisories(differences: List[CollectionDifference]) -> List[Advisory]:
    """Findings that are surfaced to operators but never executed."""
    advisories: List[Advisory] = []
    for coll_diff in differences:
        for index_diff in coll_diff.index_differences:
            if index_diff.kind == IndexDiffKind.ADDED:
                advisories.append(Advisory(
                    collection=coll_diff.collection,
                    index=index_diff.index_name,
                    kind="drop_index",
                    description=f"Index '{index_diff.index_name}' exists only locally; consider dropping it",
                    command_description=render_drop_index(coll_diff.collection, index_diff.index_name),
                ))
            elif index_diff.kind == IndexDiffKind.OPTION_MISMATCH:
                advisories.append(Advisory(
                    collection=coll_diff.collection,
                    index=index_diff.index_name,
                    kind="index_options",
                    description=index_diff.description,
                    command_description=render_create_index(coll_diff.collection, index_diff.reference),
                ))
    return advisories
