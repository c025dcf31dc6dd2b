from __future__ import annotations

import logging

from pyiceberg.exceptions import ValidationError

from pyiceberg_registry.codec import decode
from pyiceberg_registry.exceptions import (
    ConfigurationError,
    RegistryNotFoundError,
    RegistryUnreachableError,
)
from pyiceberg_registry.models import CatalogSnapshot, SnapshotEntry
from pyiceberg_registry.session import SessionFactory

logger = logging.getLogger(__name__)


class CatalogSnapshotBuilder:
    """Rebuilds the catalog listing from the documents stored in the registry.

    ``build`` never raises for registry conditions: an unreachable or empty
    registry gives an empty snapshot, and a document that cannot be decoded
    stops the traversal and returns the entries gathered up to that point.
    """

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def build(self) -> CatalogSnapshot:
        snapshot = CatalogSnapshot()
        try:
            with self.session_factory() as session:
                groups = session.list_groups()
                if not groups:
                    logger.debug(
                        f"No groups found at schema registry {session.endpoint.url}"
                    )
                    return snapshot
                for group, _ in groups:
                    logger.debug(f"Found group in schema registry: {group}")
                    if not self._add_group(session, group, snapshot):
                        break
        except RegistryUnreachableError as e:
            logger.warning(f"Cannot connect to schema registry: {e}")
        except RegistryNotFoundError as e:
            logger.warning(f"Schema registry changed while reading it: {e}")
        return snapshot

    def _add_group(self, session, group: str, snapshot: CatalogSnapshot) -> bool:
        types = []
        for version in session.get_schemas(group):
            if version.schema_info.type not in types:
                types.append(version.schema_info.type)
        if not types:
            logger.debug(f"No tables defined for group: {group}")
            snapshot.append(SnapshotEntry(schema_name=group))
            return True

        for table_name in types:
            logger.debug(f"Found table in schema registry: {table_name}")
            latest = session.get_latest_schema_version(group, table_name)
            try:
                table = decode(latest.schema_info.schema_data)
            except (ConfigurationError, ValidationError) as e:
                logger.error(f"Cannot decode schema {group}.{table_name}: {e}")
                return False
            snapshot.append(
                SnapshotEntry(
                    schema_name=table.database,
                    table_name=table.tablename,
                    columns=table.columns,
                    options=table.options,
                )
            )
        return True
