"""
Field declarations for Community Schema.

Fields are declared the way an ent schema declares them, e.g.
``field.string("bio").optional()`` or ``field.boolean("admin").default(False)``.
Every builder returns a new immutable FieldDescriptor and checks it eagerly.
"""

from enum import Enum
from typing import Optional, Sequence, Tuple, Union

from pydantic import Field, StrictBool, StrictFloat, StrictInt, StrictStr, model_validator

from community_schema.errors import FieldDeclarationError
from community_schema.schema.base import Declaration

DefaultValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]


class FieldType(str, Enum):
    """Semantic field types understood by the schema compiler."""

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    TIME = "time"
    ENUM = "enum"


class FieldDescriptor(Declaration):
    """A validated (name, semantic type, modifiers) triple."""

    name: str = Field(..., description="Field name, unique within its entity")
    type: FieldType = Field(..., description="Semantic type")
    is_optional: bool = Field(False, description="Whether the column is nullable")
    default_value: Optional[DefaultValue] = Field(None, description="Fallback when unset")
    values: Tuple[str, ...] = Field((), description="Allowed members of an enum field")

    @property
    def is_enum(self) -> bool:
        return self.type is FieldType.ENUM

    @property
    def has_default(self) -> bool:
        return self.default_value is not None

    @model_validator(mode="after")
    def check_declaration(self) -> "FieldDescriptor":
        return check_field(self)

    def optional(self) -> "FieldDescriptor":
        """Return a copy of this field marked nullable."""
        return self.replace(is_optional=True)

    def default(self, value: DefaultValue) -> "FieldDescriptor":
        """Return a copy of this field with a default value."""
        return self.replace(default_value=value)


def default_matches(field_type: FieldType, value: DefaultValue) -> bool:
    """
    Check whether a default value fits a field type.

    Args:
        field_type: Declared semantic type
        value: Candidate default value

    Returns:
        True if the value can be stored in a field of that type
    """
    if field_type in (FieldType.STRING, FieldType.ENUM):
        return isinstance(value, str)
    if field_type is FieldType.BOOL:
        return isinstance(value, bool)
    if field_type is FieldType.INT:
        return isinstance(value, int) and not isinstance(value, bool)
    if field_type is FieldType.FLOAT:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    # Time defaults are functions (e.g. now()) owned by the compiler, never literals
    return False


def check_field(descriptor: FieldDescriptor) -> FieldDescriptor:
    """
    Check a field descriptor for declaration errors.

    Args:
        descriptor: Field descriptor to check

    Returns:
        The same descriptor

    Raises:
        FieldDeclarationError: If the name is empty, an enum repeats a member,
                               or the default does not fit the type
    """
    if not descriptor.name or not descriptor.name.strip():
        raise FieldDeclarationError("Field name cannot be empty")

    if descriptor.values and not descriptor.is_enum:
        raise FieldDeclarationError(f"Field {descriptor.name}: only enum fields may declare values")

    if len(set(descriptor.values)) != len(descriptor.values):
        raise FieldDeclarationError(f"Field {descriptor.name}: enum values must be unique")

    if descriptor.has_default:
        if not default_matches(descriptor.type, descriptor.default_value):
            raise FieldDeclarationError(
                f"Field {descriptor.name}: default {descriptor.default_value!r} "
                f"does not match type {descriptor.type.value}"
            )
        if descriptor.is_enum and descriptor.values and descriptor.default_value not in descriptor.values:
            raise FieldDeclarationError(
                f"Field {descriptor.name}: default {descriptor.default_value!r} "
                f"is not one of {', '.join(descriptor.values)}"
            )

    return descriptor


def declare(name: str, field_type: FieldType, values: Sequence[str] = ()) -> FieldDescriptor:
    """
    Declare a field of any semantic type.

    Args:
        name: Field name
        field_type: Semantic type
        values: Enum members, only for enum fields

    Returns:
        Checked field descriptor
    """
    return FieldDescriptor(name=name, type=field_type, values=tuple(values))


def string(name: str) -> FieldDescriptor:
    return declare(name, FieldType.STRING)


def boolean(name: str) -> FieldDescriptor:
    return declare(name, FieldType.BOOL)


def integer(name: str) -> FieldDescriptor:
    return declare(name, FieldType.INT)


def floating(name: str) -> FieldDescriptor:
    return declare(name, FieldType.FLOAT)


def time(name: str) -> FieldDescriptor:
    return declare(name, FieldType.TIME)


def enum(name: str, values: Sequence[str] = ()) -> FieldDescriptor:
    """
    Declare an enum field.

    An enum without values is accepted here so that a schema can be inspected
    before its members are known; the registry reports it as unresolved.
    """
    return declare(name, FieldType.ENUM, values)
