"""Model introspection shared by schema inference and schema validation."""

import dataclasses
import types
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass
from typing import Any, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from jobj.core.errors import SchemaGenerationError


@dataclass
class ModelField:
    """A model attribute as seen on the wire."""

    name: str  # alias when one is set
    annotation: Any
    description: str | None
    required: bool


def is_model(tp: Any) -> bool:
    """Check whether tp is a pydantic model or dataclass type."""
    if get_origin(tp) is not None or not isinstance(tp, type):
        return False
    return issubclass(tp, BaseModel) or dataclasses.is_dataclass(tp)


def unwrap_optional(tp: Any) -> tuple[Any, bool]:
    """Strip None from a union. Returns (inner type, was optional)."""
    origin = get_origin(tp)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(tp) if arg is not type(None)]
        if len(args) == 1:
            return args[0], len(args) != len(get_args(tp))
    return tp, False


def is_sequence_annotation(tp: Any) -> bool:
    origin = get_origin(tp) or tp
    if not isinstance(origin, type) or issubclass(origin, (str, bytes, bytearray)):
        return False
    return issubclass(origin, (Sequence, Set))


def is_mapping_annotation(tp: Any) -> bool:
    origin = get_origin(tp) or tp
    return isinstance(origin, type) and issubclass(origin, Mapping)


def model_fields_of(model: type) -> list[ModelField]:
    """
    List the fields of a pydantic model or dataclass.

    A field is required when it has no default.

    Raises:
        SchemaGenerationError: If model is neither
    """
    if isinstance(model, type) and issubclass(model, BaseModel):
        return [
            ModelField(
                name=info.alias or name,
                annotation=info.annotation,
                description=info.description,
                required=info.is_required(),
            )
            for name, info in model.model_fields.items()
        ]

    if is_model(model):
        try:
            hints = get_type_hints(model)
        except NameError as e:
            raise SchemaGenerationError(f"unresolvable annotation on {model.__name__}: {e}") from e

        fields = []
        for f in dataclasses.fields(model):
            if not f.init:
                continue
            fields.append(
                ModelField(
                    name=f.name,
                    annotation=hints.get(f.name, Any),
                    description=f.metadata.get("description"),
                    required=f.default is dataclasses.MISSING
                    and f.default_factory is dataclasses.MISSING,
                )
            )
        return fields

    raise SchemaGenerationError(f"expected struct type (pydantic model or dataclass), got {model!r}")
