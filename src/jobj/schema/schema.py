"""
Schema - Declarative response schemas for model output.

A Schema renders as a JSON Schema Draft-07 document (the subset models
follow reliably) or, when use_xml is set, as a basic XML Schema.

    schema = Schema(
        name="HeadlinesResponse",
        description="Headlines extracted from a press release",
        fields=[
            Field.text("headline").desc("The exact headline").required(),
            Field.number("confidence").desc("Confidence in the headline"),
        ],
    )
    schema.get_schema_string()
"""

import json
from dataclasses import dataclass, field
from typing import Any

from jobj.schema.field import DataType, Field
from jobj.schema.validator import SchemaValidationResult, SchemaValidator
from jobj.schema.xml_schema import to_xml_schema

JSON_SCHEMA_DRAFT_07 = "http://json-schema.org/draft-07/schema#"


def field_to_json(f: Field) -> dict[str, Any]:
    """Render one field as a JSON Schema property."""
    if f.consts is not None:
        props: dict[str, Any] = {
            "anyOf": [{"const": c.const, "description": c.description} for c in f.consts]
        }
        if f.description:
            props["description"] = f.description
        return props

    if f.type == DataType.ARRAY:
        props = {"type": DataType.ARRAY.value, "description": f.description}
        if f.sub_fields is not None:
            props["additionalProperties"] = f.additional_properties
            props["items"] = {
                "type": DataType.OBJECT.value,
                "properties": properties_json(f.sub_fields),
                "required": f.required_fields(),
            }
        elif f.array_item_type is not None:
            props["items"] = {"type": f.array_item_type.value}
        return props

    if f.type == DataType.OBJECT:
        props = {"type": DataType.OBJECT.value, "description": f.description}
        if f.additional_properties:
            if f.additional_properties_type is not None:
                props["additionalProperties"] = {"type": f.additional_properties_type.value}
            elif f.additional_properties_field is not None:
                props["additionalProperties"] = field_to_json(f.additional_properties_field)
            else:
                props["additionalProperties"] = True
        else:
            props["properties"] = properties_json(f.sub_fields or [])
            props["required"] = f.required_fields()
        return props

    props = {"type": f.type.value, "description": f.description}
    if f.format:
        props["format"] = f.format
    return props


def properties_json(fields: list[Field]) -> dict[str, Any]:
    return {f.name: field_to_json(f) for f in fields}


@dataclass
class Schema:
    """A named response schema."""

    name: str
    description: str = ""
    fields: list[Field] = field(default_factory=list)
    use_xml: bool = False
    # Set for non-object schemas (e.g. a function returning list[str])
    root_field: Field | None = None

    def fields_json(self) -> dict[str, Any]:
        """JSON Schema properties for the top-level fields."""
        return properties_json(self.fields)

    def required_fields(self) -> list[str]:
        return [f.name for f in self.fields if f.is_required]

    def to_dict(self) -> dict[str, Any]:
        """The schema as a Draft-07 document with a single definition."""
        definition: dict[str, Any] = {
            "properties": self.fields_json(),
            "type": DataType.OBJECT.value,
            "additionalProperties": False,
        }
        required = self.required_fields()
        if required:
            definition["required"] = required

        return {
            "$schema": JSON_SCHEMA_DRAFT_07,
            "definitions": {self.name: definition},
            "$ref": f"#/definitions/{self.name}",
        }

    def get_schema_string(self) -> str:
        """Render the schema for a prompt: XML if use_xml, JSON otherwise."""
        if self.use_xml:
            return self.get_xml_schema_string()
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def get_xml_schema_string(self) -> str:
        return to_xml_schema(self)

    def validate(self, model: type) -> SchemaValidationResult:
        """Check that model can hold everything this schema asks for."""
        return SchemaValidator().validate(self, model)
