"""
Edge declarations for Community Schema.

A bidirectional relation is declared once: the owning side with ``edge.to``
and the back-reference with ``edge.from_(..., ref=...)`` naming the owning
edge on the other entity. Edges are to-many unless marked ``.unique()``.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from community_schema.errors import EdgeDeclarationError
from community_schema.schema.base import Declaration


class EdgeDirection(str, Enum):
    """Which side of a relation an edge sits on."""

    TO = "to"  # Owning side
    FROM = "from"  # Inverse side, navigates back along an owning edge


class EdgeDescriptor(Declaration):
    """A validated (relation name, target entity, direction) descriptor."""

    name: str = Field(..., description="Relation name, unique within its entity")
    target: str = Field(..., description="Name of the target entity")
    direction: EdgeDirection = Field(EdgeDirection.TO, description="Owning or inverse side")
    is_unique: bool = Field(False, description="To-one instead of to-many")
    ref: Optional[str] = Field(None, description="Owning edge on the target, for inverse edges")

    @model_validator(mode="after")
    def check_declaration(self) -> "EdgeDescriptor":
        return check_edge(self)

    @property
    def is_inverse(self) -> bool:
        return self.direction is EdgeDirection.FROM

    @property
    def cardinality(self) -> str:
        return "one" if self.is_unique else "many"

    def unique(self) -> "EdgeDescriptor":
        """Return a copy of this edge marked to-one."""
        return self.replace(is_unique=True)


def check_edge(descriptor: EdgeDescriptor) -> EdgeDescriptor:
    """
    Check an edge descriptor for declaration errors.

    Target resolution needs the whole registry and is checked there.

    Raises:
        EdgeDeclarationError: If the name or target is empty, an inverse edge has
                              no back-reference, or an owning edge has one
    """
    if not descriptor.name or not descriptor.name.strip():
        raise EdgeDeclarationError("Edge name cannot be empty")
    if not descriptor.target or not descriptor.target.strip():
        raise EdgeDeclarationError(f"Edge {descriptor.name}: target entity cannot be empty")
    if descriptor.is_inverse and not descriptor.ref:
        raise EdgeDeclarationError(f"Edge {descriptor.name}: inverse edges must name the owning edge")
    if not descriptor.is_inverse and descriptor.ref:
        raise EdgeDeclarationError(f"Edge {descriptor.name}: only inverse edges may declare ref")
    return descriptor


def to(name: str, target: str) -> EdgeDescriptor:
    """Declare the owning side of a relation."""
    return EdgeDescriptor(name=name, target=target)


def from_(name: str, target: str, ref: str) -> EdgeDescriptor:
    """Declare the inverse side of a relation owned by ``target.ref``."""
    return EdgeDescriptor(name=name, target=target, direction=EdgeDirection.FROM, ref=ref)
