"""Field builder for declarative schemas.

Fields are built fluently:

    Field.text("headline").desc("The exact headline").required()
"""

from dataclasses import dataclass
from enum import Enum


class DataType(str, Enum):
    """JSON Schema value types."""

    OBJECT = "object"
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    ANY_OF = "anyOf"


@dataclass
class ConstDescription:
    """One allowed value of an anyOf field."""

    const: str
    description: str = ""


@dataclass
class Field:
    """A single schema field. Use the classmethod constructors."""

    name: str
    type: DataType
    description: str = ""
    value: str = ""
    is_required: bool = False
    consts: list[ConstDescription] | None = None  # anyOf alternatives
    sub_fields: list["Field"] | None = None
    additional_properties: bool = False
    array_item_type: DataType | None = None  # arrays of primitives
    format: str | None = None
    additional_properties_type: DataType | None = None  # maps of primitives
    additional_properties_field: "Field | None" = None  # maps of objects

    @classmethod
    def text(cls, name: str) -> "Field":
        return cls(name=name, type=DataType.STRING)

    @classmethod
    def integer(cls, name: str) -> "Field":
        return cls(name=name, type=DataType.INTEGER)

    @classmethod
    def number(cls, name: str) -> "Field":
        return cls(name=name, type=DataType.NUMBER)

    @classmethod
    def boolean(cls, name: str) -> "Field":
        return cls(name=name, type=DataType.BOOLEAN)

    @classmethod
    def date(cls, name: str) -> "Field":
        """A date travels as a string with format "date"."""
        return cls(name=name, type=DataType.STRING, format="date")

    @classmethod
    def any_of(cls, name: str, consts: list[ConstDescription]) -> "Field":
        return cls(name=name, type=DataType.ANY_OF, consts=consts)

    @classmethod
    def array(cls, name: str, fields: list["Field"]) -> "Field":
        """An array whose items are objects made of fields."""
        return cls(name=name, type=DataType.ARRAY, sub_fields=fields)

    @classmethod
    def array_of(cls, name: str, item_type: DataType | None) -> "Field":
        """An array of primitives, e.g. list[str]."""
        return cls(name=name, type=DataType.ARRAY, array_item_type=item_type)

    @classmethod
    def object(cls, name: str, fields: list["Field"]) -> "Field":
        return cls(name=name, type=DataType.OBJECT, sub_fields=fields)

    @classmethod
    def map_of(
        cls,
        name: str,
        value_type: DataType | None = None,
        value_field: "Field | None" = None,
    ) -> "Field":
        """An object with arbitrary keys, e.g. dict[str, int]."""
        return cls(
            name=name,
            type=DataType.OBJECT,
            additional_properties=True,
            additional_properties_type=value_type,
            additional_properties_field=value_field,
        )

    def with_type(self, value_type: DataType) -> "Field":
        self.type = value_type
        return self

    def set_value(self, value: str) -> "Field":
        self.value = value
        return self

    def desc(self, description: str) -> "Field":
        self.description = description
        return self

    def required(self) -> "Field":
        self.is_required = True
        return self

    def optional(self) -> "Field":
        self.is_required = False
        return self

    def required_fields(self) -> list[str]:
        """Names of required sub-fields."""
        return [f.name for f in self.sub_fields or [] if f.is_required]
