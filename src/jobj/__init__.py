"""jobj - Turn almost-JSON from language models into typed values."""

from jobj.core import (
    DecodeError,
    DecodeResult,
    JobjError,
    JSONRepairError,
    JSONRepairer,
    SafeDecoder,
    SchemaGenerationError,
    decode_into,
    repair_json,
)
from jobj.dates import JsonDate, json_date_type, parse_json_date, parse_published_time
from jobj.schema import DataType, Field, Schema, schema_from_func, schema_from_model

__version__ = "0.1.0"

__all__ = [
    "DataType",
    "DecodeError",
    "DecodeResult",
    "Field",
    "JSONRepairError",
    "JSONRepairer",
    "JobjError",
    "JsonDate",
    "SafeDecoder",
    "Schema",
    "SchemaGenerationError",
    "decode_into",
    "json_date_type",
    "parse_json_date",
    "parse_published_time",
    "repair_json",
    "schema_from_func",
    "schema_from_model",
]
