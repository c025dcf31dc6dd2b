from __future__ import annotations

from typing import List, Optional, Sequence, Union

from pyiceberg.catalog import Catalog
from pyiceberg.exceptions import NoSuchNamespaceError, NoSuchTableError
from pyiceberg.schema import Schema
from pyiceberg.typedef import EMPTY_DICT, Identifier, Properties

from pyiceberg_registry.codec import EXTERNAL_LOCATION
from pyiceberg_registry.models import (
    CatalogSnapshot,
    Column,
    TableMetadata,
    VersionInfo,
)
from pyiceberg_registry.operations import NamespaceOperations, TableOperations
from pyiceberg_registry.session import ClientFactory, SessionFactory
from pyiceberg_registry.snapshot import CatalogSnapshotBuilder
from pyiceberg_registry.types import from_iceberg_type

OWNER = "owner"


class RegistryCatalog:
    def __init__(
        self,
        name: str,
        client_factory: Optional[ClientFactory] = None,
        **properties: str,
    ):
        self.name = name
        self.properties = properties
        self._init_registry(client_factory)

    def _init_registry(self, client_factory: Optional[ClientFactory]):
        self.sessions = SessionFactory.from_properties(self.properties, client_factory)
        self.namespaces = NamespaceOperations(self.sessions)
        self.tables = TableOperations(self.sessions)
        self.snapshots = CatalogSnapshotBuilder(self.sessions)

    def create_namespace(
        self, namespace: Union[str, Identifier], properties: Properties = EMPTY_DICT
    ) -> None:
        self.namespaces.create(
            self.identifier_to_str(namespace), properties.get(OWNER, "")
        )

    def drop_namespace(self, namespace: Union[str, Identifier]) -> None:
        self.namespaces.drop(self.identifier_to_str(namespace))

    def namespace_exists(self, namespace: Union[str, Identifier]) -> bool:
        return self.namespaces.exists(self.identifier_to_str(namespace))

    def list_namespaces(
        self, namespace: Union[str, Identifier] = ()
    ) -> List[Identifier]:
        level = len(Catalog.identifier_to_tuple(namespace))
        if level > 0:
            if not self.namespace_exists(namespace):
                raise NoSuchNamespaceError(
                    f"Namespace does not exist: {self.identifier_to_str(namespace)}"
                )
        namespaces = [Catalog.identifier_to_tuple(g) for g in self.namespaces.names()]
        if level > 0:
            # only the next level below the given namespace
            parent = tuple(p.lower() for p in Catalog.identifier_to_tuple(namespace))
            namespaces = [
                ns
                for ns in namespaces
                if len(ns) == level + 1
                and tuple(p.lower() for p in ns[:level]) == parent
            ]
        return namespaces

    def create_table(
        self,
        identifier: Union[str, Identifier],
        schema: Union[Schema, Sequence[Column]],
        location: Optional[str] = None,
        properties: Properties = EMPTY_DICT,
    ) -> VersionInfo:
        namespace = self.identifier_to_str(Catalog.namespace_from(identifier))
        if not self.namespace_exists(namespace):
            raise NoSuchNamespaceError(f"Namespace does not exist: {namespace}")
        if isinstance(schema, Schema):
            columns = tuple(
                Column(f.name, from_iceberg_type(f.field_type)) for f in schema.fields
            )
        else:
            columns = tuple(schema)
        props = dict(properties)
        if location is not None:
            props[EXTERNAL_LOCATION] = location
        return self.tables.create(
            TableMetadata(
                namespace=namespace,
                table_name=Catalog.table_name_from(identifier),
                columns=columns,
                properties=props,
            )
        )

    def drop_table(self, identifier: Union[str, Identifier]) -> None:
        self.tables.drop(
            self.identifier_to_str(Catalog.namespace_from(identifier)),
            Catalog.table_name_from(identifier),
        )

    def table_exists(self, identifier: Union[str, Identifier]) -> bool:
        return self.tables.exists(
            self.identifier_to_str(Catalog.namespace_from(identifier)),
            Catalog.table_name_from(identifier),
        )

    def list_tables(self, namespace: Union[str, Identifier]) -> List[Identifier]:
        if not self.namespace_exists(namespace):
            raise NoSuchNamespaceError(
                f"Namespace does not exist: {self.identifier_to_str(namespace)}"
            )
        namespace = Catalog.identifier_to_tuple(namespace)
        snapshot = self.load_snapshot()
        return [
            namespace + (e.table_name,)
            for e in snapshot.tables(self.identifier_to_str(namespace))
        ]

    def load_table_schema(self, identifier: Union[str, Identifier]) -> Schema:
        namespace = self.identifier_to_str(Catalog.namespace_from(identifier))
        table_name = Catalog.table_name_from(identifier)
        entry = self.load_snapshot().find(namespace, table_name)
        if entry is None:
            raise NoSuchTableError(f"Table does not exist: {namespace}.{table_name}")
        return entry.iceberg_schema()

    def load_snapshot(self) -> CatalogSnapshot:
        return self.snapshots.build()

    @staticmethod
    def identifier_to_str(identifier: Union[str, Identifier]) -> str:
        return identifier if isinstance(identifier, str) else ".".join(identifier)
