"""jobj Schema - Declarative response schemas and inference from models."""

from jobj.schema.field import ConstDescription, DataType, Field
from jobj.schema.inference import (
    get_properties_map,
    safe_schema_from_func,
    schema_from_func,
    schema_from_model,
    schema_from_return,
)
from jobj.schema.schema import Schema
from jobj.schema.validator import SchemaIssue, SchemaValidationResult, SchemaValidator

__all__ = [
    "ConstDescription",
    "DataType",
    "Field",
    "Schema",
    "SchemaIssue",
    "SchemaValidationResult",
    "SchemaValidator",
    "get_properties_map",
    "safe_schema_from_func",
    "schema_from_func",
    "schema_from_model",
    "schema_from_return",
]
