"""Translation between table metadata and registry JSON-Schema documents.

A document looks like::

    {"$comment": "{\"database\":\"sales\",\"tablename\":\"orders\",...}",
     "description": "Format of row of data",
     "type": "object",
     "properties": {"id": {"type": "integer"}, "note": {"type": "string"}}}

The metadata block is stored as a string inside the document, not as a
nested object, so existing registry contents stay readable.
"""

from __future__ import annotations

import json
from typing import Dict, Iterable, Mapping, Optional, Union
from urllib.parse import urlsplit

from pyiceberg_registry.exceptions import (
    ConfigurationError,
    InvalidLocationError,
    MissingFieldError,
    ParseError,
    UnsupportedFormatError,
)
from pyiceberg_registry.models import Column, DecodedTable, TableMetadata
from pyiceberg_registry.types import to_catalog_type, to_json_type

COMMENT = "$comment"
DESCRIPTION = "Format of row of data"
PROPERTIES = "properties"
DATABASE = "database"
TABLENAME = "tablename"

FORMAT = "format"
FIELD_DELIMITER = "field_delimiter"
RECORD_DELIMITER = "record_delimiter"
HAS_HEADER_ROW = "has_header_row"
EXTERNAL_LOCATION = "external_location"

DEFAULT_FIELD_DELIMITER = ","
DEFAULT_RECORD_DELIMITER = "\n"
DEFAULT_HAS_HEADER_ROW = "false"

SUPPORTED_FORMATS = frozenset({"csv", "json", "parquet", "text"})

# metadata keys copied into decoded options when present
OPTION_KEYS = (
    "objectDataFormat",
    "hasHeaderRow",
    "hasFooterRow",
    "recordDelimiter",
    "fieldDelimiter",
    "sources",
)

_COMPACT = (",", ":")


def is_supported_format(file_format: Optional[str]) -> bool:
    return isinstance(file_format, str) and file_format.lower() in SUPPORTED_FORMATS


def parse_location(location: str) -> tuple[str, str]:
    """Split ``scheme://bucket/prefix`` into ``(bucket, prefix)``."""
    try:
        parts = urlsplit(location)
    except (TypeError, ValueError, AttributeError):
        raise InvalidLocationError(f"Error processing location: {location}")
    if not parts.scheme or not parts.netloc or not parts.path:
        raise InvalidLocationError(f"Error processing location: {location}")
    return parts.netloc, parts.path


def encode(
    database: str,
    tablename: str,
    columns: Iterable[Column],
    format_options: Mapping[str, str],
    storage_location: str,
) -> str:
    file_format = format_options.get(FORMAT)
    if not is_supported_format(file_format):
        raise UnsupportedFormatError(
            f"Unsupported table format for query: {file_format}"
        )
    bucket, prefix = parse_location(storage_location)

    properties: Dict[str, Dict[str, str]] = {}
    for column in columns:
        properties[column.name] = {"type": to_json_type(column.type)}

    metadata = {
        DATABASE: database,
        TABLENAME: tablename,
        "sources": {bucket: [prefix]},
        "hasHeaderRow": format_options.get(HAS_HEADER_ROW, DEFAULT_HAS_HEADER_ROW),
        "fieldDelimiter": format_options.get(FIELD_DELIMITER, DEFAULT_FIELD_DELIMITER),
        "recordDelimiter": format_options.get(
            RECORD_DELIMITER, DEFAULT_RECORD_DELIMITER
        ),
        "objectDataFormat": file_format.lower(),
    }
    document = {
        COMMENT: json.dumps(metadata, separators=_COMPACT),
        "description": DESCRIPTION,
        "type": "object",
        PROPERTIES: properties,
    }
    return json.dumps(document, separators=_COMPACT)


def table_options(properties: Mapping[str, object]) -> Dict[str, str]:
    """Normalize table properties to the lower-cased keys ``encode`` reads."""
    options = {}
    for key, value in properties.items():
        key = key.lower()
        if key not in (
            FORMAT,
            FIELD_DELIMITER,
            RECORD_DELIMITER,
            HAS_HEADER_ROW,
            EXTERNAL_LOCATION,
        ):
            continue
        if isinstance(value, bool):
            value = str(value).lower()
        options[key] = value
    return options


def encode_table(table: TableMetadata) -> str:
    options = table_options(table.properties)
    if not is_supported_format(options.get(FORMAT)):
        raise UnsupportedFormatError(
            f"Unsupported table format for query: {options.get(FORMAT)}"
        )
    if EXTERNAL_LOCATION not in options:
        raise ConfigurationError(
            f"Table {table.namespace}.{table.table_name} has no {EXTERNAL_LOCATION}"
        )
    return encode(
        table.namespace,
        table.table_name,
        table.columns,
        options,
        options[EXTERNAL_LOCATION],
    )


def _load_object(data: Union[bytes, str], what: str) -> dict:
    try:
        value = json.loads(data)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Error processing {what}: {e}")
    if not isinstance(value, dict):
        raise ParseError(f"Error processing {what}: not a JSON object")
    return value


def decode(document: Union[bytes, str]) -> DecodedTable:
    if isinstance(document, (bytes, bytearray)):
        try:
            document = document.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Error processing schema document: {e}")
    root = _load_object(document, "schema document")
    if PROPERTIES not in root:
        raise MissingFieldError(f"Schema document has no {PROPERTIES}")
    if COMMENT not in root:
        raise MissingFieldError(f"Schema document has no {COMMENT}")
    if not isinstance(root[COMMENT], str):
        raise ParseError(f"{COMMENT} is not a string")
    metadata = _load_object(root[COMMENT], "metadata block")
    for key in (DATABASE, TABLENAME):
        if key not in metadata:
            raise MissingFieldError(f"Metadata block has no {key}")

    properties = root[PROPERTIES]
    if not isinstance(properties, dict):
        raise ParseError(f"{PROPERTIES} is not a JSON object")
    columns = []
    for name, spec in properties.items():
        if not isinstance(spec, dict) or "type" not in spec:
            raise MissingFieldError(f"Column {name} has no type")
        columns.append(Column(name, to_catalog_type(spec["type"])))

    options = {k: metadata[k] for k in OPTION_KEYS if k in metadata}
    return DecodedTable(
        database=metadata[DATABASE],
        tablename=metadata[TABLENAME],
        columns=tuple(columns),
        options=options,
    )
