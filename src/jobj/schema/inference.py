"""
Schema inference from models and tool functions.

Tool functions take their arguments as one model, optionally after a
context argument:

    def search(ctx: RunContext, params: SearchParams) -> list[str]: ...

    parameters = safe_schema_from_func(search)

Field names come from aliases, descriptions from field metadata, and a
field is required when it has no default.
"""

import inspect
import logging
from datetime import date
from enum import Enum
from typing import Any, Callable, Literal, get_args, get_origin, get_type_hints

from jobj.core.errors import SchemaGenerationError
from jobj.schema.field import ConstDescription, DataType, Field
from jobj.schema.introspection import (
    is_mapping_annotation,
    is_model,
    is_sequence_annotation,
    model_fields_of,
    unwrap_optional,
)
from jobj.schema.schema import Schema, field_to_json

logger = logging.getLogger(__name__)

ERR_SCHEMA_GENERATION = "failed to generate schema from function, review the function signature"


def primitive_type(tp: Any) -> DataType | None:
    """Map a Python scalar type to its JSON type."""
    if get_origin(tp) is not None or not isinstance(tp, type):
        return None
    if issubclass(tp, bool):
        return DataType.BOOLEAN
    if issubclass(tp, int):
        return DataType.INTEGER
    if issubclass(tp, float):
        return DataType.NUMBER
    if issubclass(tp, (str, date)):
        return DataType.STRING
    return None


def field_from_annotation(name: str, annotation: Any) -> Field | None:
    """Build a Field for one annotation, or None if it has no JSON mapping."""
    annotation, _ = unwrap_optional(annotation)

    if get_origin(annotation) is Literal:
        return Field.any_of(name, [ConstDescription(const=str(v)) for v in get_args(annotation)])

    if get_origin(annotation) is None and isinstance(annotation, type):
        if issubclass(annotation, Enum):
            return Field.any_of(name, [ConstDescription(const=str(m.value)) for m in annotation])
        if issubclass(annotation, date):
            return Field.date(name)
        if is_model(annotation):
            return Field.object(name, fields_from_model(annotation))

        data_type = primitive_type(annotation)
        if data_type is not None:
            return Field(name=name, type=data_type)

    if is_sequence_annotation(annotation):
        args = get_args(annotation)
        item = unwrap_optional(args[0])[0] if args else None
        if item is not None and is_model(item):
            return Field.array(name, fields_from_model(item))
        return Field.array_of(name, primitive_type(item))

    if is_mapping_annotation(annotation):
        args = get_args(annotation)
        value = unwrap_optional(args[1])[0] if len(args) == 2 else Any
        if is_model(value):
            return Field.map_of(name, value_field=Field.object("", fields_from_model(value)))
        return Field.map_of(name, value_type=primitive_type(value))

    return None


def fields_from_model(model: type) -> list[Field]:
    fields = []
    for mf in model_fields_of(model):
        f = field_from_annotation(mf.name, mf.annotation)
        if f is None:
            logger.warning(f"Unsupported field type for {mf.name!r}: {mf.annotation!r}")
            continue
        if mf.description:
            f.desc(mf.description)
        if mf.required:
            f.required()
        fields.append(f)
    return fields


def schema_from_model(model: type) -> Schema:
    """
    Generate a Schema from a pydantic model or dataclass.

    Raises:
        SchemaGenerationError: If model is not a model type or has no usable fields
    """
    if not is_model(model):
        raise SchemaGenerationError(f"expected struct type (pydantic model or dataclass), got {model!r}")

    fields = fields_from_model(model)
    if not fields:
        raise SchemaGenerationError(
            f"no valid fields found in {model.__name__}. Ensure fields are of supported types"
        )

    return Schema(name=model.__name__, description=f"Schema for {model.__name__}", fields=fields)


def _resolve_hints(function: Callable[..., Any]) -> dict[str, Any]:
    if not callable(function):
        raise SchemaGenerationError(f"received {function!r}, expected a function")
    try:
        return get_type_hints(function)
    except (NameError, TypeError) as e:
        raise SchemaGenerationError(f"unresolvable annotations on {function!r}: {e}") from e


def schema_from_func(function: Callable[..., Any]) -> Schema:
    """
    Generate a Schema from a tool function's parameter model.

    The function must take (params) or (context, params), with params
    annotated as a pydantic model or dataclass.
    """
    hints = _resolve_hints(function)
    params = [
        p
        for p in inspect.signature(function).parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    if not params or len(params) > 2:
        raise SchemaGenerationError(
            f"function must take (params) or (context, params), got {len(params)} parameters"
        )

    param_type = hints.get(params[-1].name)
    if not is_model(param_type):
        raise SchemaGenerationError(
            f"last parameter must be a model or dataclass, got {param_type!r}. "
            "Consider wrapping your parameters in a model"
        )

    schema = schema_from_model(param_type)
    schema.description = f"Schema for {param_type.__name__} function parameters"
    return schema


def schema_from_return(function: Callable[..., Any]) -> Schema:
    """Generate a Schema for what a function returns (models or plain types)."""
    return_type = _resolve_hints(function).get("return")
    if return_type is None:
        raise SchemaGenerationError(f"{function!r} has no return annotation")

    if is_model(return_type):
        return schema_from_model(return_type)

    root = field_from_annotation("", return_type)
    if root is None:
        raise SchemaGenerationError(f"unsupported return type: {return_type!r}")
    return Schema(name=getattr(function, "__name__", "result"), root_field=root)


def get_properties_map(schema: Schema) -> dict[str, Any]:
    """Properties map for a tool definition's parameters."""
    if schema.root_field is not None:
        return field_to_json(schema.root_field)

    return {
        "type": DataType.OBJECT.value,
        "properties": schema.fields_json(),
        "required": schema.required_fields(),
        "additionalProperties": False,
    }


def safe_schema_from_func(function: Callable[..., Any]) -> dict[str, Any]:
    """Generate tool parameters from a function, with a uniform error."""
    try:
        schema = schema_from_func(function)
    except SchemaGenerationError as e:
        logger.error(f"Failed to parse function schema: {e}")
        raise SchemaGenerationError(ERR_SCHEMA_GENERATION) from e
    return get_properties_map(schema)
