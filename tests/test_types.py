import unittest

from pyiceberg.types import IntegerType, LongType, StringType, TimestampType

from pyiceberg_registry.exceptions import UnsupportedTypeError
from pyiceberg_registry.types import (
    from_iceberg_type,
    to_catalog_type,
    to_iceberg_type,
    to_json_type,
)


class TestTypeMapping(unittest.TestCase):
    def test_catalog_to_json(self):
        self.assertEqual(to_json_type("VARCHAR"), "string")
        self.assertEqual(to_json_type("double"), "number")
        self.assertEqual(to_json_type("Bigint"), "integer")
        self.assertEqual(to_json_type("INTEGER"), "integer")
        self.assertEqual(to_json_type("boolean"), "boolean")

    def test_round_trip(self):
        for catalog_type in ("VARCHAR", "DOUBLE", "BIGINT", "BOOLEAN"):
            json_type = to_json_type(catalog_type)
            self.assertEqual(to_catalog_type(json_type), catalog_type)
            self.assertEqual(to_json_type(to_catalog_type(json_type)), json_type)

    def test_integer_decodes_as_bigint(self):
        self.assertEqual(to_catalog_type(to_json_type("INTEGER")), "BIGINT")

    def test_unknown_types(self):
        with self.assertRaises(UnsupportedTypeError):
            to_json_type("TIMESTAMP")
        with self.assertRaises(UnsupportedTypeError):
            to_catalog_type("array")
        with self.assertRaises(UnsupportedTypeError):
            to_catalog_type(["string", "null"])

    def test_iceberg_types(self):
        self.assertEqual(from_iceberg_type(StringType()), "VARCHAR")
        self.assertEqual(from_iceberg_type(LongType()), "BIGINT")
        self.assertEqual(from_iceberg_type(IntegerType()), "INTEGER")
        self.assertEqual(to_iceberg_type("bigint"), LongType())
        with self.assertRaises(UnsupportedTypeError):
            from_iceberg_type(TimestampType())
