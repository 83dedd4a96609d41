"""Snapshot models for a document database's structure.

Snapshots are produced by an external extractor as JSON with camelCase keys.
The models below accept either the camelCase aliases or the snake_case
attribute names and are frozen once loaded.
"""
from typing import Any, Dict, List, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


IndexDirection = Union[int, str]


class SnapshotModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class FieldInfo(SnapshotModel):
    """One field of a collection, as seen by the extractor."""
    type: str
    is_array: bool = False
    is_required: bool = False
    has_default: bool = False
    default_value: Optional[Any] = None
    nested_fields: Optional[Dict[str, "FieldInfo"]] = None

    @field_validator("type")
    @classmethod
    def _type_not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("field type must not be empty")
        return value

    def type_label(self) -> str:
        return f"{self.type}[]" if self.is_array else self.type


class IndexInfo(SnapshotModel):
    """One index of a collection.

    Engine specific options (``weights``, ``expireAfterSeconds``, the raw
    ``v``/``key`` echo of ``listIndexes``...) are kept as extra attributes.
    """
    model_config = ConfigDict(extra="allow")

    name: str
    keys: Dict[str, IndexDirection]
    unique: bool = False
    sparse: bool = False
    background: bool = False

    @field_validator("unique", "sparse", "background", mode="before")
    @classmethod
    def _none_is_false(cls, value: Any) -> Any:
        return False if value is None else value

    def key_pairs(self) -> List[Tuple[str, IndexDirection]]:
        """Keys as an ordered list of (field, direction) pairs."""
        return list(self.keys.items())

    @property
    def options(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class CollectionSchema(SnapshotModel):
    name: str
    document_count: int = 0
    avg_document_size: float = 0
    total_size: int = 0
    fields: Dict[str, FieldInfo] = Field(default_factory=dict)
    indexes: List[IndexInfo] = Field(default_factory=list)
    # Diagnostic only, never compared
    sample_documents: List[Any] = Field(default_factory=list)

    @field_validator("indexes")
    @classmethod
    def _unique_index_names(cls, value: List[IndexInfo]) -> List[IndexInfo]:
        seen = set()
        for index in value:
            if index.name in seen:
                raise ValueError(f"duplicate index name '{index.name}'")
            seen.add(index.name)
        return value

    def index_map(self) -> Dict[str, IndexInfo]:
        return {index.name: index for index in self.indexes}


class DatabaseSchema(SnapshotModel):
    database_name: str
    total_collections: int = 0
    total_documents: int = 0
    total_size: int = 0
    collections: Dict[str, CollectionSchema] = Field(default_factory=dict)
    extracted_at: Optional[str] = None

    def summary(self) -> Dict[str, Any]:
        return {
            "databaseName": self.database_name,
            "totalCollections": self.total_collections,
            "totalDocuments": self.total_documents,
            "extractedAt": self.extracted_at,
        }
