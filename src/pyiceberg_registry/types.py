from __future__ import annotations

from pyiceberg.types import (
    BooleanType,
    DoubleType,
    IcebergType,
    IntegerType,
    LongType,
    StringType,
)

from pyiceberg_registry.exceptions import UnsupportedTypeError

VARCHAR = "VARCHAR"
DOUBLE = "DOUBLE"
BIGINT = "BIGINT"
INTEGER = "INTEGER"
BOOLEAN = "BOOLEAN"

CATALOG_TO_JSON = {
    VARCHAR: "string",
    DOUBLE: "number",
    BIGINT: "integer",
    INTEGER: "integer",
    BOOLEAN: "boolean",
}

# integer always decodes to BIGINT, INTEGER does not survive a round trip
JSON_TO_CATALOG = {
    "string": VARCHAR,
    "number": DOUBLE,
    "integer": BIGINT,
    "boolean": BOOLEAN,
}

CATALOG_TO_ICEBERG = {
    VARCHAR: StringType(),
    DOUBLE: DoubleType(),
    BIGINT: LongType(),
    INTEGER: IntegerType(),
    BOOLEAN: BooleanType(),
}


def to_json_type(catalog_type: str) -> str:
    try:
        return CATALOG_TO_JSON[catalog_type.upper()]
    except (KeyError, AttributeError):
        raise UnsupportedTypeError(f"Unsupported column type: {catalog_type}")


def to_catalog_type(json_type: str) -> str:
    try:
        return JSON_TO_CATALOG[json_type.lower()]
    except (KeyError, AttributeError):
        raise UnsupportedTypeError(f"Unsupported JSON schema type: {json_type}")


def to_iceberg_type(catalog_type: str) -> IcebergType:
    try:
        return CATALOG_TO_ICEBERG[catalog_type.upper()]
    except (KeyError, AttributeError):
        raise UnsupportedTypeError(f"Unsupported column type: {catalog_type}")


def from_iceberg_type(iceberg_type: IcebergType) -> str:
    for catalog_type, candidate in CATALOG_TO_ICEBERG.items():
        if iceberg_type == candidate:
            return catalog_type
    raise UnsupportedTypeError(f"Unsupported column type: {iceberg_type}")
