"""
Schema source emitter for Community Schema.

Renders each entity of a checked registry as an ent schema source file
(``ent/schema/<snake_case>.go``) for the code generator to compile. Also
provides the ``community-schema`` command.
"""

import argparse
import json
import re
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Union

from loguru import logger

from community_schema.codec import dumps
from community_schema.config import get_settings
from community_schema.errors import SchemaCompilationError, SchemaError
from community_schema.prisma import parse_prisma
from community_schema.schema.edges import EdgeDescriptor
from community_schema.schema.entity_types import build_registry
from community_schema.schema.fields import FieldDescriptor, FieldType
from community_schema.schema.registry import EntitySchema, SchemaRegistry

ENT_FIELD_TYPES = {
    FieldType.STRING: "String",
    FieldType.BOOL: "Bool",
    FieldType.INT: "Int",
    FieldType.FLOAT: "Float",
    FieldType.TIME: "Time",
    FieldType.ENUM: "Enum",
}

ENTITY_TEMPLATE = """package schema

import (
\t"entgo.io/ent"
\t"entgo.io/ent/schema/edge"
\t"entgo.io/ent/schema/field"
)

// {name} holds the schema definition for the {name} entity.
type {name} struct {{
\tent.Schema
}}

// Fields of {name}.
func ({name}) Fields() []ent.Field {{
\treturn []ent.Field{{{fields}
\t}}
}}

// Edges of {name}.
func ({name}) Edges() []ent.Edge {{
\treturn []ent.Edge{{{edges}
\t}}
}}
"""


def snake_case(name: str) -> str:
    """Convert an entity name to snake case, e.g. ``GitHub`` to ``git_hub``."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    return name.lower()


def schema_path(schema: EntitySchema, output_dir: Union[str, Path] = "ent/schema") -> Path:
    return Path(output_dir) / f"{snake_case(schema.name)}.go"


def _go_literal(value: Union[bool, int, float, str]) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value)
    return repr(value)


def render_field(descriptor: FieldDescriptor) -> str:
    source = f"field.{ENT_FIELD_TYPES[descriptor.type]}({json.dumps(descriptor.name)})"
    if descriptor.is_enum:
        source += ".Values(" + ", ".join(json.dumps(value) for value in descriptor.values) + ")"
    if descriptor.is_optional:
        source += ".Optional()"
    if descriptor.has_default:
        source += f".Default({_go_literal(descriptor.default_value)})"
    return source


def render_edge(descriptor: EdgeDescriptor) -> str:
    if descriptor.is_inverse:
        source = f"edge.From({json.dumps(descriptor.name)}, {descriptor.target}.Type).Ref({json.dumps(descriptor.ref)})"
    else:
        source = f"edge.To({json.dumps(descriptor.name)}, {descriptor.target}.Type)"
    if descriptor.is_unique:
        source += ".Unique()"
    return source


def render_entity(schema: EntitySchema) -> str:
    """
    Render the ent schema source of one entity.

    Args:
        schema: Entity schema

    Returns:
        Go source text
    """
    fields = "".join(f"\n\t\t{render_field(descriptor)}," for descriptor in schema.fields)
    edges = "".join(f"\n\t\t{render_edge(descriptor)}," for descriptor in schema.edges)
    return ENTITY_TEMPLATE.format(name=schema.name, fields=fields, edges=edges)


def write_schemas(registry: SchemaRegistry, output_dir: Union[str, Path]) -> List[Path]:
    """
    Write one schema source file per entity.

    Args:
        registry: Registry to emit
        output_dir: Directory receiving the files, created if missing

    Returns:
        Paths of the written files in entity order

    Raises:
        SchemaCompilationError: If the registry is not well-formed; nothing is written
    """
    registry.check()

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for schema in registry:
        path = schema_path(schema, output_dir)
        path.write_text(render_entity(schema), encoding="utf-8")
        logger.info(f"Wrote schema for {schema.name} to {path}")
        paths.append(path)
    return paths


def write_json(registry: SchemaRegistry, output_dir: Union[str, Path]) -> Path:
    """Write the registry in the compiler's JSON form to ``schema.json``."""
    registry.check()

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / "schema.json"
    path.write_text(dumps(registry) + "\n", encoding="utf-8")
    logger.info(f"Wrote schema registry to {path}")
    return path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="community-schema",
        description="Emit ent schema sources for the community data model",
    )
    parser.add_argument(
        "--prisma",
        type=Path,
        help="Read entities from a Prisma schema instead of the built-in model",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Output directory (default: SCHEMA_OUTPUT_DIR)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Write the registry as schema.json instead of Go sources",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run the ``community-schema`` command.

    Returns:
        Exit code: 0 on success, 1 when the schema does not compile or
        its files cannot be read or written
    """
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())

    output_dir = args.output or Path(settings.schema_output_dir)
    try:
        if args.prisma:
            registry = parse_prisma(args.prisma.read_text(encoding="utf-8"), version=settings.schema_version)
        else:
            registry = build_registry(settings)

        if args.json:
            write_json(registry, output_dir)
        else:
            write_schemas(registry, output_dir)
    except SchemaCompilationError as e:
        logger.error(f"Schema does not compile: {len(e.issues)} issue(s)")
        return 1
    except SchemaError as e:
        logger.error(f"Invalid schema: {str(e)}")
        return 1
    except OSError as e:
        logger.error(f"Could not read or write schema files: {str(e)}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
