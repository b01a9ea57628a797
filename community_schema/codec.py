"""
Registry codec for Community Schema.

Serializes a registry to the JSON form the schema compiler reads, and parses
it back. Parsing goes through the declaration API so a payload is held to the
same rules as a hand-written schema.
"""

import json
from typing import Any, Dict, List

from loguru import logger

from community_schema.errors import SchemaCompilationError, SchemaError, SchemaIssue
from community_schema.schema import fields as field
from community_schema.schema.edges import EdgeDescriptor, EdgeDirection
from community_schema.schema.fields import FieldDescriptor, FieldType
from community_schema.schema.registry import EntitySchema, SchemaRegistry, entity

FORMAT = "community-schema"


def field_to_dict(descriptor: FieldDescriptor) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "name": descriptor.name,
        "type": descriptor.type.value,
        "optional": descriptor.is_optional,
    }
    if descriptor.has_default:
        data["default"] = descriptor.default_value
    if descriptor.is_enum:
        data["values"] = list(descriptor.values)
    return data


def edge_to_dict(descriptor: EdgeDescriptor) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "name": descriptor.name,
        "target": descriptor.target,
        "direction": descriptor.direction.value,
        "unique": descriptor.is_unique,
    }
    if descriptor.is_inverse:
        data["ref"] = descriptor.ref
    return data


def registry_to_dict(registry: SchemaRegistry) -> Dict[str, Any]:
    """
    Convert a registry to the compiler's form.

    Args:
        registry: Registry to convert

    Returns:
        JSON-compatible dictionary
    """
    return {
        "format": FORMAT,
        "version": registry.version,
        "entities": [
            {
                "name": schema.name,
                "fields": [field_to_dict(descriptor) for descriptor in schema.fields],
                "edges": [edge_to_dict(descriptor) for descriptor in schema.edges],
            }
            for schema in registry
        ],
    }


def field_from_dict(data: Dict[str, Any]) -> FieldDescriptor:
    descriptor = field.declare(data["name"], FieldType(data["type"]), data.get("values", ()))
    if data.get("optional", False):
        descriptor = descriptor.optional()
    if data.get("default") is not None:
        descriptor = descriptor.default(data["default"])
    return descriptor


def edge_from_dict(data: Dict[str, Any]) -> EdgeDescriptor:
    return EdgeDescriptor(
        name=data["name"],
        target=data["target"],
        direction=EdgeDirection(data.get("direction", EdgeDirection.TO.value)),
        is_unique=data.get("unique", False),
        ref=data.get("ref"),
    )


def entity_from_dict(data: Dict[str, Any]) -> EntitySchema:
    return entity(
        data["name"],
        fields=[field_from_dict(item) for item in data.get("fields", [])],
        edges=[edge_from_dict(item) for item in data.get("edges", [])],
    )


def registry_from_dict(data: Dict[str, Any]) -> SchemaRegistry:
    """
    Parse a registry from the compiler's form.

    Args:
        data: Dictionary produced by ``registry_to_dict``

    Returns:
        Registry with the same entities, fields and edges

    Raises:
        SchemaCompilationError: If the payload is malformed or breaks a declaration rule
    """
    entities: List[EntitySchema] = []
    current = "<registry>"
    try:
        if data.get("format", FORMAT) != FORMAT:
            raise SchemaError(f"Unsupported format: {data.get('format')}")
        for item in data["entities"]:
            current = item.get("name", current) if isinstance(item, dict) else current
            entities.append(entity_from_dict(item))
        current = "<registry>"
        return SchemaRegistry(entities, version=data.get("version", "1.0.0"))
    except (KeyError, TypeError, AttributeError, ValueError) as e:
        logger.error(f"Could not parse schema payload at {current}: {str(e)}")
        raise SchemaCompilationError([SchemaIssue(current, "malformed-payload", str(e))]) from e


def dumps(registry: SchemaRegistry, indent: int = 2) -> str:
    return json.dumps(registry_to_dict(registry), indent=indent)


def loads(text: str) -> SchemaRegistry:
    """
    Parse a registry from JSON text.

    Raises:
        SchemaCompilationError: If the text is not JSON or the payload is malformed
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaCompilationError([SchemaIssue("<registry>", "malformed-payload", str(e))]) from e
    if not isinstance(data, dict):
        raise SchemaCompilationError([SchemaIssue("<registry>", "malformed-payload", "expected a JSON object")])
    return registry_from_dict(data)
