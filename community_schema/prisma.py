"""
Prisma schema import for Community Schema.

This module reads the ``model`` and ``enum`` blocks of a Prisma schema and
declares the equivalent entities. Scalar fields become fields, fields typed by
another model become edges, and enum-typed fields take their members from the
matching ``enum`` block.
"""

import re
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

from loguru import logger

from community_schema.errors import FieldDeclarationError, SchemaError
from community_schema.schema import edges as edge
from community_schema.schema import fields as field
from community_schema.schema.edges import EdgeDescriptor
from community_schema.schema.fields import FieldDescriptor, FieldType
from community_schema.schema.registry import EntitySchema, SchemaRegistry, entity

SCALAR_TYPES: Dict[str, FieldType] = {
    "String": FieldType.STRING,
    "Boolean": FieldType.BOOL,
    "DateTime": FieldType.TIME,
    "Int": FieldType.INT,
    "BigInt": FieldType.INT,
    "Float": FieldType.FLOAT,
    "Decimal": FieldType.FLOAT,
}

BLOCK_RE = re.compile(r"^\s*(model|enum|type|view|datasource|generator)\s+(\w+)\s*\{(.*?)^\s*\}", re.M | re.S)
FIELD_RE = re.compile(r"^(\w+)\s+(\w+(?:\([^)]*\))?)(\[\])?(\?)?\s*(.*)$")
NUMBER_RE = re.compile(r"^-?\d+(\.\d+)?$")
RELATION_NAME_RE = re.compile(r'^\s*(?:name\s*:\s*)?"([^"]*)"')


class PrismaField(NamedTuple):
    """A field line of a model block."""

    name: str
    type: str
    is_list: bool
    is_optional: bool
    attributes: str


def _strip_comments(text: str) -> str:
    lines = []
    for line in text.splitlines():
        in_string = False
        for i, char in enumerate(line):
            if char == '"':
                in_string = not in_string
            elif char == "/" and not in_string and line[i:i + 2] == "//":
                line = line[:i]
                break
        lines.append(line)
    return "\n".join(lines)


def _attribute_args(attributes: str, name: str) -> Optional[str]:
    """Return the raw argument text of ``@name(...)``, or None when absent."""
    match = re.search(r"@" + re.escape(name) + r"\(", attributes)
    if match is None:
        return None

    depth = 1
    start = match.end()
    for i in range(start, len(attributes)):
        if attributes[i] == "(":
            depth += 1
        elif attributes[i] == ")":
            depth -= 1
            if depth == 0:
                return attributes[start:i]
    raise SchemaError(f"Unbalanced parentheses in attribute @{name}")


def _default_literal(raw: str) -> Optional[Union[bool, int, float, str]]:
    """
    Convert a ``@default`` argument to a literal.

    Function defaults (``now()``, ``cuid()``, ``autoincrement()``) and lists are
    left to the compiler and give None.
    """
    raw = raw.strip()
    if raw in ("true", "false"):
        return raw == "true"
    if len(raw) >= 2 and raw[0] == raw[-1] == '"':
        return raw[1:-1]
    if NUMBER_RE.match(raw):
        return float(raw) if "." in raw else int(raw)
    if re.match(r"^\w+$", raw):
        # Bare identifier, an enum member
        return raw
    return None


def _relation_name(attributes: str) -> Optional[str]:
    args = _attribute_args(attributes, "relation")
    if args is None:
        return None
    match = RELATION_NAME_RE.match(args)
    return match.group(1) if match else None


def _has_relation_fields(attributes: str) -> bool:
    args = _attribute_args(attributes, "relation")
    return args is not None and re.search(r"\bfields\s*:", args) is not None


def parse_blocks(text: str) -> Tuple[Dict[str, List[PrismaField]], Dict[str, List[str]]]:
    """
    Split a Prisma schema into model fields and enum members.

    Args:
        text: Prisma schema source

    Returns:
        Tuple of (models, enums), both keyed by block name in source order

    Raises:
        SchemaError: If a field line cannot be read
    """
    models: Dict[str, List[PrismaField]] = {}
    enums: Dict[str, List[str]] = {}

    for kind, name, body in BLOCK_RE.findall(_strip_comments(text)):
        lines = [line.strip() for line in body.splitlines()]
        lines = [line for line in lines if line and not line.startswith("@@")]

        if kind == "enum":
            enums[name] = [line.split()[0] for line in lines]
        elif kind == "model":
            parsed = []
            for line in lines:
                match = FIELD_RE.match(line)
                if match is None:
                    raise SchemaError(f"Model {name}: cannot read field line '{line}'")
                field_name, field_type, is_list, is_optional, attributes = match.groups()
                parsed.append(PrismaField(field_name, field_type, bool(is_list), bool(is_optional), attributes))
            models[name] = parsed
        else:
            logger.debug(f"Skipping Prisma {kind} block {name}")

    return models, enums


def _scalar_field(model: str, prisma_field: PrismaField, enums: Dict[str, List[str]]) -> FieldDescriptor:
    if prisma_field.is_list:
        raise FieldDeclarationError(f"Model {model}: list field {prisma_field.name} is not supported")

    if prisma_field.type in enums:
        descriptor = field.enum(prisma_field.name, enums[prisma_field.type])
    elif prisma_field.type in SCALAR_TYPES:
        descriptor = field.declare(prisma_field.name, SCALAR_TYPES[prisma_field.type])
    else:
        raise FieldDeclarationError(
            f"Model {model}: field {prisma_field.name} has unsupported type {prisma_field.type}"
        )

    if prisma_field.is_optional:
        descriptor = descriptor.optional()

    raw_default = _attribute_args(prisma_field.attributes, "default")
    if raw_default is not None:
        value = _default_literal(raw_default)
        if value is not None and descriptor.type is FieldType.FLOAT and isinstance(value, int):
            value = float(value)
        if value is not None:
            descriptor = descriptor.default(value)

    return descriptor


def _back_reference(
    model: str,
    prisma_field: PrismaField,
    models: Dict[str, List[PrismaField]]
) -> Optional[str]:
    """Find the field on the target model that owns this relation, if any."""
    name = _relation_name(prisma_field.attributes)
    for candidate in models[prisma_field.type]:
        if candidate.type != model or (model == prisma_field.type and candidate.name == prisma_field.name):
            continue
        if _has_relation_fields(candidate.attributes):
            continue
        if _relation_name(candidate.attributes) == name:
            return candidate.name
    return None


def _edge(model: str, prisma_field: PrismaField, models: Dict[str, List[PrismaField]]) -> EdgeDescriptor:
    ref = None
    if _has_relation_fields(prisma_field.attributes):
        ref = _back_reference(model, prisma_field, models)

    if ref is not None:
        descriptor = edge.from_(prisma_field.name, prisma_field.type, ref=ref)
    else:
        descriptor = edge.to(prisma_field.name, prisma_field.type)
    return descriptor if prisma_field.is_list else descriptor.unique()


def parse_prisma(text: str, version: str = "1.0.0") -> SchemaRegistry:
    """
    Build a registry from a Prisma schema.

    Args:
        text: Prisma schema source
        version: Schema version for the registry

    Returns:
        Registry with one entity per model block

    Raises:
        SchemaError: If a field cannot be read or has an unsupported type
    """
    models, enums = parse_blocks(text)

    entities: List[EntitySchema] = []
    for model, prisma_fields in models.items():
        fields = []
        edges = []
        for prisma_field in prisma_fields:
            if prisma_field.type in models:
                edges.append(_edge(model, prisma_field, models))
            else:
                fields.append(_scalar_field(model, prisma_field, enums))
        entities.append(entity(model, fields=fields, edges=edges))

    logger.info(f"Parsed {len(entities)} models and {len(enums)} enums from Prisma schema")
    return SchemaRegistry(entities, version=version)
