"""Structural comparison of two database snapshots.

Every union of names (collections, fields, indexes) is walked in sorted
order, so the same inputs always produce the same list in the same order.
"""
from typing import Dict, Iterable, List
from schemasync.reconcile.snapshot import DatabaseSchema, FieldInfo, IndexInfo
from schemasync.reconcile.types import (
    CollectionDiffKind,
    CollectionDifference,
    FieldDiffKind,
    FieldDifference,
    IndexDiffKind,
    IndexDifference,
    Priority,
)


def _sorted_union(left: Iterable[str], right: Iterable[str]) -> List[str]:
    return sorted(set(left) | set(right))


def compare_fields(reference: Dict[str, FieldInfo], local: Dict[str, FieldInfo]) -> List[FieldDifference]:
    differences: List[FieldDifference] = []

    for name in _sorted_union(reference, local):
        ref_field = reference.get(name)
        local_field = local.get(name)

        if ref_field is not None and local_field is None:
            differences.append(FieldDifference(
                field=name,
                reference=ref_field,
                kind=FieldDiffKind.MISSING,
                description=f"Field missing locally (reference type: {ref_field.type_label()})",
                priority=Priority.HIGH if ref_field.is_required else Priority.MEDIUM,
            ))
        elif ref_field is None and local_field is not None:
            differences.append(FieldDifference(
                field=name,
                local=local_field,
                kind=FieldDiffKind.ADDED,
                description=f"Field not in reference (local type: {local_field.type_label()})",
                priority=Priority.LOW,
            ))
        else:
            if ref_field.type != local_field.type or ref_field.is_array != local_field.is_array:
                differences.append(FieldDifference(
                    field=name,
                    reference=ref_field,
                    local=local_field,
                    kind=FieldDiffKind.TYPE_MISMATCH,
                    description=(
                        f"Type mismatch - reference: {ref_field.type_label()}, "
                        f"local: {local_field.type_label()}"
                    ),
                    priority=Priority.HIGH,
                ))
            if ref_field.is_required != local_field.is_required:
                differences.append(FieldDifference(
                    field=name,
                    reference=ref_field,
                    local=local_field,
                    kind=FieldDiffKind.REQUIREMENT_MISMATCH,
                    description=(
                        f"Requirement mismatch - reference: {_required_label(ref_field)}, "
                        f"local: {_required_label(local_field)}"
                    ),
                    priority=Priority.MEDIUM,
                ))

    return differences


def _required_label(field: FieldInfo) -> str:
    return "required" if field.is_required else "optional"


def compare_indexes(reference: List[IndexInfo], local: List[IndexInfo]) -> List[IndexDifference]:
    differences: List[IndexDifference] = []
    ref_map = {index.name: index for index in reference}
    local_map = {index.name: index for index in local}

    for name in _sorted_union(ref_map, local_map):
        ref_index = ref_map.get(name)
        local_index = local_map.get(name)

        if ref_index is not None and local_index is None:
            differences.append(IndexDifference(
                index_name=name,
                reference=ref_index,
                kind=IndexDiffKind.MISSING,
                description="Index missing locally",
                priority=Priority.MEDIUM,
            ))
        elif ref_index is None and local_index is not None:
            differences.append(IndexDifference(
                index_name=name,
                local=local_index,
                kind=IndexDiffKind.ADDED,
                description="Index not in reference",
                priority=Priority.LOW,
            ))
        else:
            # Key order is part of an index's identity
            if ref_index.key_pairs() != local_index.key_pairs():
                differences.append(IndexDifference(
                    index_name=name,
                    reference=ref_index,
                    local=local_index,
                    kind=IndexDiffKind.KEY_MISMATCH,
                    description=(
                        f"Index keys differ - reference: {ref_index.key_pairs()}, "
                        f"local: {local_index.key_pairs()}"
                    ),
                    priority=Priority.MEDIUM,
                ))
            if ref_index.unique != local_index.unique or ref_index.sparse != local_index.sparse:
                differences.append(IndexDifference(
                    index_name=name,
                    reference=ref_index,
                    local=local_index,
                    kind=IndexDiffKind.OPTION_MISMATCH,
                    description=(
                        f"Index options differ - reference: unique={ref_index.unique} sparse={ref_index.sparse}, "
                        f"local: unique={local_index.unique} sparse={local_index.sparse}"
                    ),
                    priority=Priority.LOW,
                ))

    return differences


def compare_schemas(reference: DatabaseSchema, local: DatabaseSchema) -> List[CollectionDifference]:
    """
    Compare two snapshots collection by collection.

    Args:
        reference: Snapshot the local database should converge to
        local: Snapshot of the database being synchronized

    Returns:
        One CollectionDifference per collection that differs, in collection name order
    """
    differences: List[CollectionDifference] = []

    for name in _sorted_union(reference.collections, local.collections):
        ref_coll = reference.collections.get(name)
        local_coll = local.collections.get(name)

        if ref_coll is not None and local_coll is None:
            differences.append(CollectionDifference(
                collection=name,
                reference=ref_coll,
                kind=CollectionDiffKind.MISSING,
                description=f"Collection missing locally (reference: {ref_coll.document_count} documents)",
                priority=Priority.HIGH,
            ))
        elif ref_coll is None and local_coll is not None:
            differences.append(CollectionDifference(
                collection=name,
                local=local_coll,
                kind=CollectionDiffKind.ADDED,
                description=f"Collection not in reference (local: {local_coll.document_count} documents)",
                priority=Priority.LOW,
            ))
        else:
            field_diffs = compare_fields(ref_coll.fields, local_coll.fields)
            index_diffs = compare_indexes(ref_coll.indexes, local_coll.indexes)
            if not field_diffs and not index_diffs:
                continue

            has_high = any(d.priority == Priority.HIGH for d in [*field_diffs, *index_diffs])
            differences.append(CollectionDifference(
                collection=name,
                reference=ref_coll,
                local=local_coll,
                kind=CollectionDiffKind.MODIFIED,
                field_differences=field_diffs,
                index_differences=index_diffs,
                description=(
                    f"Fields/indexes differ (fields: {len(field_diffs)}, indexes: {len(index_diffs)})"
                ),
                priority=Priority.HIGH if has_high else Priority.MEDIUM,
            ))

    return differences
