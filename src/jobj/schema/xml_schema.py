"""Limited XML Schema rendering: top-level fields only, primitives mapped to xs types."""

from typing import TYPE_CHECKING
from xml.etree import ElementTree

from jobj.schema.field import DataType

if TYPE_CHECKING:
    from jobj.schema.schema import Schema

XML_SCHEMA_NAMESPACE = "http://www.w3.org/2001/XMLSchema"
XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'

XS_TYPES: dict[DataType, str] = {
    DataType.STRING: "xs:string",
    DataType.BOOLEAN: "xs:boolean",
    DataType.NUMBER: "xs:float",
    DataType.INTEGER: "xs:integer",
}


def to_xs_type(data_type: DataType) -> str:
    # Arrays, objects and enums have no simple xs equivalent
    return XS_TYPES.get(data_type, "xs:string")


def to_xml_schema(schema: "Schema") -> str:
    root = ElementTree.Element("xs:schema", {"xmlns:xs": XML_SCHEMA_NAMESPACE})
    ElementTree.SubElement(
        root, "xs:element", {"name": schema.name, "type": f"{schema.name}Type"}
    )
    complex_type = ElementTree.SubElement(
        root, "xs:complexType", {"name": f"{schema.name}Type"}
    )
    sequence = ElementTree.SubElement(complex_type, "xs:sequence")

    for f in schema.fields:
        element = ElementTree.SubElement(
            sequence,
            "xs:element",
            {
                "name": f.name,
                "type": to_xs_type(f.type),
                "minOccurs": "1" if f.is_required else "0",
                "maxOccurs": "1",
            },
        )
        annotation = ElementTree.SubElement(element, "xs:annotation")
        documentation = ElementTree.SubElement(annotation, "xs:documentation")
        documentation.text = f.description

    ElementTree.indent(root, space="  ")
    return XML_HEADER + ElementTree.tostring(root, encoding="unicode")
