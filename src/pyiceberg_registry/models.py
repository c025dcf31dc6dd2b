from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from pyiceberg.schema import Schema
from pyiceberg.types import NestedField

from pyiceberg_registry.types import to_iceberg_type

JSON_FORMAT = "Json"
ALLOW_ANY = "AllowAny"


@dataclass(frozen=True)
class GroupProperties:
    serialization_format: str = JSON_FORMAT
    compatibility: str = ALLOW_ANY
    allow_multiple_types: bool = True
    properties: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SchemaInfo:
    type: str
    serialization_format: str
    schema_data: bytes
    properties: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class VersionInfo:
    type: str
    version: int
    id: int


@dataclass(frozen=True)
class SchemaWithVersion:
    schema_info: SchemaInfo
    version_info: VersionInfo


@dataclass(frozen=True)
class Column:
    name: str
    type: str


@dataclass(frozen=True)
class TableMetadata:
    """Catalog-side description of a table handed over for registration."""

    namespace: str
    table_name: str
    columns: Tuple[Column, ...]
    properties: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DecodedTable:
    database: str
    tablename: str
    columns: Tuple[Column, ...]
    options: Dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class SnapshotEntry:
    schema_name: str
    table_name: Optional[str] = None
    columns: Tuple[Column, ...] = ()
    options: Dict[str, object] = field(default_factory=dict)

    @property
    def is_namespace_only(self) -> bool:
        return self.table_name is None

    def iceberg_schema(self) -> Schema:
        if self.table_name is None:
            raise ValueError(f"Namespace entry {self.schema_name} has no table")
        return Schema(
            *[
                NestedField(i, c.name, to_iceberg_type(c.type), required=False)
                for i, c in enumerate(self.columns, start=1)
            ]
        )

    def as_dict(self) -> dict:
        if self.table_name is None:
            return {"schema_name": self.schema_name}
        return {
            "schema_name": self.schema_name,
            "table_name": self.table_name,
            "columns": [{"name": c.name, "type": c.type} for c in self.columns],
            **self.options,
        }

    def as_config(self) -> dict:
        if self.table_name is None:
            return {"schemaTableName": {"schema_name": self.schema_name}}
        return {
            "schemaTableName": {
                "schema_name": self.schema_name,
                "table_name": self.table_name,
            },
            "s3Table": {
                "name": self.table_name,
                "columns": [{"name": c.name, "type": c.type} for c in self.columns],
                **self.options,
            },
        }


@dataclass
class CatalogSnapshot:
    """Point-in-time listing of namespaces and tables read from the registry.

    Entries keep the order in which groups and tables were traversed. A
    namespace without tables is represented by a single entry whose
    ``table_name`` is None.
    """

    entries: List[SnapshotEntry] = field(default_factory=list)

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def append(self, entry: SnapshotEntry) -> None:
        self.entries.append(entry)

    def namespaces(self) -> List[str]:
        seen = []
        for entry in self.entries:
            if entry.schema_name not in seen:
                seen.append(entry.schema_name)
        return seen

    def tables(self, namespace: str) -> List[SnapshotEntry]:
        return [
            e
            for e in self.entries
            if e.table_name is not None
            and e.schema_name.lower() == namespace.lower()
        ]

    def find(self, namespace: str, table_name: str) -> Optional[SnapshotEntry]:
        for entry in self.tables(namespace):
            if entry.table_name.lower() == table_name.lower():
                return entry
        return None

    def to_list(self) -> List[dict]:
        return [e.as_dict() for e in self.entries]

    def to_config(self) -> dict:
        # Same layout as the static s3 schema configuration file.
        if not self.entries:
            return {}
        return {"schemas": [e.as_config() for e in self.entries]}
