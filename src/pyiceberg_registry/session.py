from __future__ import annotations

import functools
import importlib
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Protocol, Tuple
from urllib.parse import urlsplit

from pyiceberg.catalog import URI
from pyiceberg.typedef import Properties

from pyiceberg_registry.exceptions import (
    ConfigurationError,
    RegistryUnreachableError,
)
from pyiceberg_registry.models import (
    GroupProperties,
    SchemaInfo,
    SchemaWithVersion,
    VersionInfo,
)

logger = logging.getLogger(__name__)

REGISTRY_NAMESPACE = "registry.namespace"
CLIENT_IMPL = "py-client-impl"
DEFAULT_REGISTRY_NAMESPACE = "default"


@dataclass(frozen=True)
class RegistryEndpoint:
    host: str
    port: int
    namespace: str = DEFAULT_REGISTRY_NAMESPACE

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @classmethod
    def from_properties(cls, properties: Properties) -> "RegistryEndpoint":
        uri = properties[URI]
        try:
            parts = urlsplit(uri)
            host, port = parts.hostname, parts.port
        except ValueError:
            raise ConfigurationError(f"Invalid registry uri: {uri}")
        if not host or port is None:
            raise ConfigurationError(f"Invalid registry uri: {uri}")
        return cls(
            host=host,
            port=port,
            namespace=properties.get(REGISTRY_NAMESPACE, DEFAULT_REGISTRY_NAMESPACE),
        )


class RegistryClient(Protocol):
    """Transport used to talk to the schema registry.

    Implementations raise ``RegistryNotFoundError`` for missing groups and
    ``RegistryUnreachableError`` (or any ``OSError``) when the endpoint
    cannot be reached.
    """

    def add_group(self, name: str, group_properties: GroupProperties) -> None:
        ...

    def remove_group(self, name: str) -> None:
        ...

    def list_groups(self) -> Iterable[Tuple[str, GroupProperties]]:
        ...

    def get_schemas(self, group: str) -> List[SchemaWithVersion]:
        ...

    def add_schema(self, group: str, schema_info: SchemaInfo) -> VersionInfo:
        ...

    def delete_schema_version(self, group: str, version_info: VersionInfo) -> None:
        ...

    def get_latest_schema_version(self, group: str, type: str) -> SchemaWithVersion:
        ...


ClientFactory = Callable[[RegistryEndpoint], RegistryClient]


def _translate_errors(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except OSError as e:
            raise RegistryUnreachableError(
                f"Cannot connect to schema registry at {self.endpoint.url}: {e}"
            ) from e

    return wrapper


class RegistrySession:
    """Short-lived handle on one registry endpoint, opened per operation."""

    def __init__(self, endpoint: RegistryEndpoint, client: RegistryClient):
        self.endpoint = endpoint
        self.client = client

    def __enter__(self) -> "RegistrySession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            close()

    @_translate_errors
    def create_group(self, name: str, group_properties: GroupProperties) -> None:
        self.client.add_group(name, group_properties)

    @_translate_errors
    def remove_group(self, name: str) -> None:
        self.client.remove_group(name)

    @_translate_errors
    def list_groups(self) -> List[Tuple[str, GroupProperties]]:
        # the listing call can succeed against a dead endpoint and only fail
        # once iterated, so the iterator is drained here
        return list(self.client.list_groups())

    @_translate_errors
    def get_schemas(self, group: str) -> List[SchemaWithVersion]:
        return list(self.client.get_schemas(group))

    @_translate_errors
    def add_schema(self, group: str, schema_info: SchemaInfo) -> VersionInfo:
        return self.client.add_schema(group, schema_info)

    @_translate_errors
    def delete_schema_version(self, group: str, version_info: VersionInfo) -> None:
        self.client.delete_schema_version(group, version_info)

    @_translate_errors
    def get_latest_schema_version(self, group: str, type: str) -> SchemaWithVersion:
        return self.client.get_latest_schema_version(group, type)


def load_client_factory(path: str) -> ClientFactory:
    module_name, _, class_name = path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Invalid client implementation: {path}")
    try:
        module = importlib.import_module(module_name)
    except ModuleNotFoundError:
        raise ConfigurationError(f"Could not load client implementation: {path}")
    try:
        return getattr(module, class_name)
    except AttributeError:
        raise ConfigurationError(f"Could not load client implementation: {path}")


class SessionFactory:
    def __init__(self, endpoint: RegistryEndpoint, client_factory: ClientFactory):
        self.endpoint = endpoint
        self.client_factory = client_factory

    @classmethod
    def from_properties(
        cls, properties: Properties, client_factory: Optional[ClientFactory] = None
    ) -> "SessionFactory":
        endpoint = RegistryEndpoint.from_properties(properties)
        if client_factory is None:
            if CLIENT_IMPL not in properties:
                raise ConfigurationError(
                    f"No registry client configured, set {CLIENT_IMPL}"
                )
            client_factory = load_client_factory(properties[CLIENT_IMPL])
        return cls(endpoint, client_factory)

    def __call__(self) -> RegistrySession:
        logger.debug(
            f"Opening registry session to {self.endpoint.url} "
            f"using namespace {self.endpoint.namespace}"
        )
        try:
            client = self.client_factory(self.endpoint)
        except OSError as e:
            raise RegistryUnreachableError(
                f"Cannot connect to schema registry at {self.endpoint.url}: {e}"
            ) from e
        return RegistrySession(self.endpoint, client)
