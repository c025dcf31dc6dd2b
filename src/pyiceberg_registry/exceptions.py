from pyiceberg.exceptions import (
    NoSuchNamespaceError,
    ServiceUnavailableError,
    ValidationError,
)


class ConfigurationError(ValueError):
    pass


class InvalidLocationError(ConfigurationError):
    pass


class ParseError(ConfigurationError):
    pass


class MissingFieldError(ConfigurationError):
    pass


class UnsupportedFormatError(ValidationError):
    pass


class UnsupportedTypeError(ValidationError):
    pass


class RegistryUnreachableError(ServiceUnavailableError):
    pass


class RegistryNotFoundError(NoSuchNamespaceError):
    pass
