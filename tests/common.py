from pyiceberg_registry.exceptions import RegistryNotFoundError
from pyiceberg_registry.models import Column, SchemaWithVersion, TableMetadata, VersionInfo
from pyiceberg_registry.session import RegistryEndpoint, SessionFactory


class _DeadIterator:
    def __iter__(self):
        return self

    def __next__(self):
        raise ConnectionRefusedError("Connection refused")


class InMemoryRegistry:
    """Registry state shared by every client handed out by ``client_factory``."""

    def __init__(self):
        self.groups = {}
        self.down = False
        self.next_id = 0
        self.sessions_opened = 0
        self.sessions_closed = 0
        # groups whose reads fail after the group listing succeeded
        self.unreachable_groups = set()
        self.vanished_groups = set()

    def client_factory(self, endpoint):
        self.sessions_opened += 1
        return InMemoryRegistryClient(self, endpoint)

    def session_factory(self):
        return SessionFactory(RegistryEndpoint("localhost", 9092), self.client_factory)


class InMemoryRegistryClient:
    def __init__(self, registry, endpoint):
        self.registry = registry
        self.endpoint = endpoint

    def _check(self):
        if self.registry.down:
            raise ConnectionRefusedError("Connection refused")

    def _group(self, name):
        self._check()
        if name not in self.registry.groups:
            raise RegistryNotFoundError(f"Group {name} not found")
        return self.registry.groups[name]

    def close(self):
        self.registry.sessions_closed += 1

    def add_group(self, name, group_properties):
        self._check()
        self.registry.groups.setdefault(name, {"properties": group_properties, "versions": []})

    def remove_group(self, name):
        self._group(name)
        del self.registry.groups[name]

    def list_groups(self):
        # listing a dead registry succeeds, iterating it fails
        if self.registry.down:
            return _DeadIterator()
        return iter([(n, g["properties"]) for n, g in self.registry.groups.items()])

    def _read_group(self, name):
        if name in self.registry.unreachable_groups:
            raise ConnectionRefusedError("Connection refused")
        if name in self.registry.vanished_groups:
            raise RegistryNotFoundError(f"Group {name} not found")
        return self._group(name)

    def get_schemas(self, group):
        return list(self._read_group(group)["versions"])

    def add_schema(self, group, schema_info):
        versions = self._group(group)["versions"]
        version = len([v for v in versions if v.schema_info.type == schema_info.type])
        info = VersionInfo(schema_info.type, version, self.registry.next_id)
        self.registry.next_id += 1
        versions.append(SchemaWithVersion(schema_info, info))
        return info

    def delete_schema_version(self, group, version_info):
        g = self._group(group)
        g["versions"] = [v for v in g["versions"] if v.version_info != version_info]

    def get_latest_schema_version(self, group, type):
        matching = [v for v in self._read_group(group)["versions"] if v.schema_info.type == type]
        if not matching:
            raise RegistryNotFoundError(f"Schema {type} not found in {group}")
        return matching[-1]


SHARED_REGISTRY = InMemoryRegistry()


class SharedRegistryClient(InMemoryRegistryClient):
    """Client built from an endpoint alone, as loaded through py-client-impl."""

    def __init__(self, endpoint):
        SHARED_REGISTRY.sessions_opened += 1
        super().__init__(SHARED_REGISTRY, endpoint)


def orders_table(**overrides):
    properties = {"format": "csv", "external_location": "s3://mybucket/orders/"}
    properties.update(overrides)
    return TableMetadata(
        namespace="sales",
        table_name="orders",
        columns=(
            Column("id", "BIGINT"),
            Column("amount", "DOUBLE"),
            Column("note", "VARCHAR"),
        ),
        properties=properties,
    )
