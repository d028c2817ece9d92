"""
Schema Validator - Check a schema against the model that will hold the output.

A schema is only useful if the decoded payload fits the target model:
1. Every schema field exists on the model (by alias)
2. Every required model field is asked for by the schema
3. Field types are compatible
4. Fields the schema requires are not optional on the model

Mostly used in tests, next to the model definition.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal, get_origin

from jobj.schema.field import DataType
from jobj.schema.introspection import (
    ModelField,
    is_mapping_annotation,
    is_model,
    is_sequence_annotation,
    model_fields_of,
    unwrap_optional,
)

if TYPE_CHECKING:
    from jobj.schema.schema import Schema


@dataclass
class SchemaIssue:
    """A single schema/model mismatch."""

    field: str
    message: str
    code: str  # e.g., "MISSING_MODEL_FIELD", "INCOMPATIBLE_TYPE"


@dataclass
class SchemaValidationResult:
    """Result of schema validation."""

    valid: bool
    errors: list[SchemaIssue] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


class SchemaValidator:
    """Validate a Schema against a pydantic model or dataclass."""

    def validate(self, schema: "Schema", model: type) -> SchemaValidationResult:
        """
        Validate schema fields against model fields.

        Args:
            schema: The schema sent to the model
            model: The type the response will be decoded into

        Returns:
            SchemaValidationResult listing every mismatch
        """
        errors: list[SchemaIssue] = []

        if not is_model(model):
            errors.append(
                SchemaIssue(
                    field="",
                    message=f"Input must be a model type, got: {model!r}",
                    code="INVALID_MODEL",
                )
            )
            return SchemaValidationResult(valid=False, errors=errors)

        model_fields = {mf.name: mf for mf in model_fields_of(model)}
        schema_fields = {f.name: f for f in schema.fields}

        for name, schema_field in schema_fields.items():
            model_field = model_fields.get(name)
            if model_field is None:
                errors.append(
                    SchemaIssue(
                        field=name,
                        message=f"Schema field {name!r} does not exist in model",
                        code="MISSING_MODEL_FIELD",
                    )
                )
                continue

            self._validate_type(name, schema_field.type, model_field, errors)

            if schema_field.is_required and not model_field.required:
                errors.append(
                    SchemaIssue(
                        field=name,
                        message=f"Schema field {name!r} is required but model field has a default",
                        code="OPTIONAL_MISMATCH",
                    )
                )

        for name, model_field in model_fields.items():
            if model_field.required and name not in schema_fields:
                errors.append(
                    SchemaIssue(
                        field=name,
                        message=f"Required model field {name!r} does not exist in schema",
                        code="MISSING_SCHEMA_FIELD",
                    )
                )

        return SchemaValidationResult(valid=not errors, errors=errors)

    def _validate_type(
        self,
        name: str,
        data_type: DataType,
        model_field: ModelField,
        errors: list[SchemaIssue],
    ) -> None:
        if not is_type_compatible(model_field.annotation, data_type):
            errors.append(
                SchemaIssue(
                    field=name,
                    message=(
                        f"Schema field {name!r} has type {data_type.value!r} but model field "
                        f"has incompatible type {model_field.annotation!r}"
                    ),
                    code="INCOMPATIBLE_TYPE",
                )
            )


def is_type_compatible(annotation: Any, data_type: DataType) -> bool:
    """Check whether values of annotation can hold data_type."""
    annotation, _ = unwrap_optional(annotation)

    if data_type == DataType.ANY_OF or annotation is Any:
        return True
    if get_origin(annotation) is Literal:
        return data_type == DataType.STRING

    if data_type == DataType.ARRAY:
        return is_sequence_annotation(annotation)
    if data_type == DataType.OBJECT:
        return is_model(annotation) or is_mapping_annotation(annotation)

    if get_origin(annotation) is not None or not isinstance(annotation, type):
        return False
    if data_type == DataType.BOOLEAN:
        return issubclass(annotation, bool)
    if data_type == DataType.INTEGER:
        return issubclass(annotation, int) and not issubclass(annotation, bool)
    if data_type == DataType.NUMBER:
        return issubclass(annotation, float)
    if data_type == DataType.STRING:
        # Dates travel as strings
        return issubclass(annotation, (str, Enum, date))
    return True
