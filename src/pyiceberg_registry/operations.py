from __future__ import annotations

import logging
from typing import List

from pyiceberg_registry.codec import encode_table
from pyiceberg_registry.exceptions import (
    RegistryNotFoundError,
    RegistryUnreachableError,
)
from pyiceberg_registry.models import (
    JSON_FORMAT,
    GroupProperties,
    SchemaInfo,
    TableMetadata,
    VersionInfo,
)
from pyiceberg_registry.session import SessionFactory

logger = logging.getLogger(__name__)


class NamespaceOperations:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def create(self, name: str, owner: str) -> None:
        with self.session_factory() as session:
            logger.info(
                f"Create schema {name} with owner {owner} at {session.endpoint.url} "
                f"using namespace {session.endpoint.namespace}"
            )
            session.create_group(name, GroupProperties(properties={"owner": owner}))

    def drop(self, name: str) -> None:
        with self.session_factory() as session:
            logger.info(
                f"Drop schema {name} from {session.endpoint.url} "
                f"using namespace {session.endpoint.namespace}"
            )
            try:
                session.remove_group(name)
            except RegistryNotFoundError:
                logger.debug(f"Schema {name} does not exist, nothing to drop")

    def names(self) -> List[str]:
        try:
            with self.session_factory() as session:
                groups = session.list_groups()
        except RegistryUnreachableError as e:
            logger.warning(f"Cannot connect to schema registry: {e}")
            return []
        return [group for group, _ in groups]

    def exists(self, name: str) -> bool:
        try:
            with self.session_factory() as session:
                groups = session.list_groups()
        except RegistryUnreachableError as e:
            logger.warning(f"Cannot connect to schema registry: {e}")
            return False
        if not groups:
            logger.debug("No groups found at schema registry")
            return False
        return any(group.lower() == name.lower() for group, _ in groups)


class TableOperations:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def create(self, table: TableMetadata) -> VersionInfo:
        document = encode_table(table)
        with self.session_factory() as session:
            logger.info(
                f"Create table schema {table.table_name} in group {table.namespace} "
                f"at {session.endpoint.url} using namespace {session.endpoint.namespace}"
            )
            logger.debug(f"Add schema: {document}")
            return session.add_schema(
                table.namespace,
                SchemaInfo(
                    type=table.table_name,
                    serialization_format=JSON_FORMAT,
                    schema_data=document.encode("utf-8"),
                ),
            )

    def drop(self, namespace: str, table_name: str) -> int:
        """Delete every stored version of ``table_name``.

        Missing groups and registry failures are treated as an already
        dropped table. Returns the number of versions deleted.
        """
        logger.info(f"Dropping table {table_name} on schema {namespace}")
        deleted = 0
        try:
            with self.session_factory() as session:
                for version in session.get_schemas(namespace):
                    if version.schema_info.type.lower() != table_name.lower():
                        continue
                    logger.info(f"Delete schema version: {version.version_info}")
                    session.delete_schema_version(namespace, version.version_info)
                    deleted += 1
        except RegistryNotFoundError as e:
            logger.info(f"Schema {namespace} not found while dropping {table_name}: {e}")
        except RegistryUnreachableError as e:
            logger.warning(f"Cannot connect to schema registry: {e}")
        return deleted

    def exists(self, namespace: str, table_name: str) -> bool:
        try:
            with self.session_factory() as session:
                groups = session.list_groups()
                if not groups:
                    logger.debug("No groups found at schema registry")
                    return False
                for group, _ in groups:
                    if group.lower() != namespace.lower():
                        continue
                    for version in session.get_schemas(group):
                        if version.schema_info.type.lower() == table_name.lower():
                            logger.debug(f"Found table: {table_name}")
                            return True
                    return False
        except RegistryUnreachableError as e:
            logger.warning(f"Cannot connect to schema registry: {e}")
        except RegistryNotFoundError:
            logger.debug(f"Schema {namespace} vanished while looking up {table_name}")
        return False
