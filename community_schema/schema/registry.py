"""
Schema Registry for Community Schema.

The registry is an explicit, immutable set of entity descriptors. It is built
once (see ``build_registry``) and passed by reference to whatever consumes it:
the record validator, the codec or the source emitter.

Errors that concern a single declaration are raised while building. Problems
that only show up across entities are collected by ``issues()`` and raised
together by ``check()``.
"""

from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

from loguru import logger
from pydantic import Field, model_validator

from community_schema.errors import (
    DanglingEdgeError,
    DuplicateEntityError,
    DuplicateFieldError,
    SchemaCompilationError,
    SchemaError,
    SchemaIssue,
)
from community_schema.schema.base import Declaration
from community_schema.schema.edges import EdgeDescriptor, EdgeDirection
from community_schema.schema.fields import FieldDescriptor, FieldType

SOFT_DELETE_FIELD = "deletedAt"
TIMESTAMP_FIELDS = ("createdAt", "updatedAt")
IDENTITY_TYPES = (FieldType.STRING, FieldType.INT)


class EntitySchema(Declaration):
    """An entity: an ordered field list and an edge list."""

    name: str = Field(..., description="Entity name, unique within the registry")
    fields: Tuple[FieldDescriptor, ...] = Field((), description="Fields in declaration order")
    edges: Tuple[EdgeDescriptor, ...] = Field((), description="Edges in declaration order")

    @model_validator(mode="after")
    def check_declaration(self) -> "EntitySchema":
        return check_entity(self)

    def field(self, name: str) -> Optional[FieldDescriptor]:
        for descriptor in self.fields:
            if descriptor.name == name:
                return descriptor
        return None

    def edge(self, name: str) -> Optional[EdgeDescriptor]:
        for descriptor in self.edges:
            if descriptor.name == name:
                return descriptor
        return None

    @property
    def field_names(self) -> List[str]:
        return [descriptor.name for descriptor in self.fields]

    @property
    def edge_names(self) -> List[str]:
        return [descriptor.name for descriptor in self.edges]


def check_entity(schema: EntitySchema) -> EntitySchema:
    """
    Check an entity schema for declaration errors.

    Raises:
        SchemaError: If the entity has no name
        DuplicateFieldError: If a field or edge name is used twice, or an edge
                             has the same name as a field
    """
    if not schema.name or not schema.name.strip():
        raise SchemaError("Entity name cannot be empty")

    seen = set()
    for descriptor in schema.fields + schema.edges:
        if descriptor.name in seen:
            raise DuplicateFieldError(f"Entity {schema.name}: name '{descriptor.name}' is declared more than once")
        seen.add(descriptor.name)
    return schema


def entity(
    name: str,
    fields: Sequence[FieldDescriptor] = (),
    edges: Sequence[EdgeDescriptor] = ()
) -> EntitySchema:
    """
    Declare an entity.

    Args:
        name: Entity name
        fields: Field descriptors in declaration order
        edges: Edge descriptors

    Returns:
        Immutable entity schema

    Raises:
        DuplicateFieldError: If a field or edge name is used twice, or an edge
                             has the same name as a field
    """
    return EntitySchema(name=name, fields=tuple(fields), edges=tuple(edges))


class Relation(NamedTuple):
    """One relation: the owning edge and, when declared, its back-reference."""

    owner: str
    edge: EdgeDescriptor
    inverse_entity: str
    inverse: Optional[EdgeDescriptor]


class SchemaRegistry:
    """
    Immutable registry of entity schemas.

    Every edge target must be declared in the same registry.
    """

    def __init__(self, entities: Iterable[EntitySchema], version: str = "1.0.0"):
        """
        Initialize the registry.

        Args:
            entities: Entity schemas
            version: Schema version passed through to the compiler

        Raises:
            DuplicateEntityError: If two entities share a name
            DanglingEdgeError: If an edge targets an undeclared entity
        """
        by_name: Dict[str, EntitySchema] = {}
        for schema in entities:
            if schema.name in by_name:
                raise DuplicateEntityError(f"Entity {schema.name} is declared more than once")
            by_name[schema.name] = schema

        for schema in by_name.values():
            for descriptor in schema.edges:
                if descriptor.target not in by_name:
                    raise DanglingEdgeError(
                        f"Edge {schema.name}.{descriptor.name} targets undeclared entity {descriptor.target}"
                    )

        self._entities = MappingProxyType(by_name)
        self.version = version

    def __contains__(self, name: object) -> bool:
        return name in self._entities

    def __iter__(self) -> Iterator[EntitySchema]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SchemaRegistry):
            return NotImplemented
        return self.version == other.version and dict(self._entities) == dict(other._entities)

    def __repr__(self) -> str:
        return f"SchemaRegistry(version={self.version!r}, entities={self.names!r})"

    @property
    def names(self) -> List[str]:
        return list(self._entities)

    def get(self, name: str) -> EntitySchema:
        """
        Get an entity schema by name.

        Raises:
            KeyError: If the entity is not declared
        """
        try:
            return self._entities[name]
        except KeyError:
            raise KeyError(f"Unknown entity type: {name}") from None

    def fields_of(self, name: str) -> Tuple[FieldDescriptor, ...]:
        return self.get(name).fields

    def edges_of(self, name: str) -> Tuple[EdgeDescriptor, ...]:
        return self.get(name).edges

    def inverse_of(self, entity_name: str, edge_name: str) -> Optional[EdgeDescriptor]:
        """
        Find the other side of a relation.

        For an owning edge this is the back-reference declared on the target, if
        any. For an inverse edge it is the owning edge it refers to.

        Args:
            entity_name: Entity declaring the edge
            edge_name: Edge name

        Returns:
            The edge on the other side, or None when the relation is one-sided

        Raises:
            KeyError: If the entity or edge is not declared
        """
        descriptor = self.get(entity_name).edge(edge_name)
        if descriptor is None:
            raise KeyError(f"Unknown edge: {entity_name}.{edge_name}")

        target = self.get(descriptor.target)
        if descriptor.is_inverse:
            return target.edge(descriptor.ref)

        for candidate in target.edges:
            if candidate.is_inverse and candidate.ref == edge_name and candidate.target == entity_name:
                return candidate
        return None

    def relations(self) -> List[Relation]:
        """List every relation once, keyed by its owning edge."""
        relations = []
        for schema in self:
            for descriptor in schema.edges:
                if descriptor.direction is EdgeDirection.TO:
                    relations.append(Relation(
                        owner=schema.name,
                        edge=descriptor,
                        inverse_entity=descriptor.target,
                        inverse=self.inverse_of(schema.name, descriptor.name),
                    ))
        return relations

    def issues(self) -> List[SchemaIssue]:
        """
        Collect well-formedness issues across the registry.

        Returns:
            Issues in entity declaration order; empty when the registry compiles
        """
        issues: List[SchemaIssue] = []
        for schema in self:
            issues.extend(_identity_issues(schema))
            issues.extend(_soft_delete_issues(schema))
            issues.extend(_enum_issues(schema))
            issues.extend(self._inverse_issues(schema))
        return issues

    def check(self) -> "SchemaRegistry":
        """
        Raise if the registry is not well-formed.

        Returns:
            The registry itself, so calls can be chained

        Raises:
            SchemaCompilationError: Carrying every issue found
        """
        issues = self.issues()
        if issues:
            for issue in issues:
                logger.error(f"Schema issue: {issue}")
            raise SchemaCompilationError(issues)
        return self

    def _inverse_issues(self, schema: EntitySchema) -> List[SchemaIssue]:
        issues = []
        for descriptor in schema.edges:
            if not descriptor.is_inverse:
                continue
            owning = self.get(descriptor.target).edge(descriptor.ref)
            if owning is None or owning.is_inverse:
                issues.append(SchemaIssue(
                    schema.name, "broken-inverse",
                    f"edge {descriptor.name} refers to {descriptor.target}.{descriptor.ref}, "
                    f"which is not an owning edge"
                ))
            elif owning.target != schema.name:
                issues.append(SchemaIssue(
                    schema.name, "broken-inverse",
                    f"edge {descriptor.name} refers to {descriptor.target}.{descriptor.ref}, "
                    f"which points to {owning.target}"
                ))

        refs = [d.target + "." + d.ref for d in schema.edges if d.is_inverse]
        for ref in sorted(set(r for r in refs if refs.count(r) > 1)):
            issues.append(SchemaIssue(schema.name, "broken-inverse", f"more than one edge refers to {ref}"))
        return issues


def _identity_issues(schema: EntitySchema) -> List[SchemaIssue]:
    for descriptor in schema.fields:
        if descriptor.type in IDENTITY_TYPES and (descriptor.name == "id" or descriptor.name.endswith("Id")):
            return []
    return [SchemaIssue(schema.name, "missing-identity", "no identity-bearing field is declared")]


def _soft_delete_issues(schema: EntitySchema) -> List[SchemaIssue]:
    deleted_at = schema.field(SOFT_DELETE_FIELD)
    if deleted_at is None:
        return []
    if not any(schema.field(name) is not None for name in TIMESTAMP_FIELDS):
        return []

    issues = []
    if deleted_at.type is not FieldType.TIME:
        issues.append(SchemaIssue(schema.name, "soft-delete-not-time", f"{SOFT_DELETE_FIELD} must be a time field"))
    if not deleted_at.is_optional:
        issues.append(SchemaIssue(schema.name, "soft-delete-not-optional", f"{SOFT_DELETE_FIELD} must be optional"))
    return issues


def _enum_issues(schema: EntitySchema) -> List[SchemaIssue]:
    return [
        SchemaIssue(schema.name, "unresolved-enum", f"enum field {descriptor.name} has no members")
        for descriptor in schema.fields
        if descriptor.is_enum and not descriptor.values
    ]
