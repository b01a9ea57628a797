"""
Error taxonomy for Community Schema.

Declaration errors are raised eagerly while descriptors are built. Problems that
can only be seen across the whole registry are collected as issues and raised
together as a SchemaCompilationError.
"""

from typing import List, NamedTuple


class SchemaIssue(NamedTuple):
    """A single well-formedness problem found in a registry."""

    entity: str
    code: str
    message: str

    def __str__(self) -> str:
        return f"{self.entity}: [{self.code}] {self.message}"


class SchemaError(ValueError):
    """Base class for schema declaration errors."""


class FieldDeclarationError(SchemaError):
    """Raised when a field is declared with an empty name or a bad default."""


class EdgeDeclarationError(SchemaError):
    """Raised when an edge is declared without a name, target or back-reference."""


class DuplicateFieldError(SchemaError):
    """Raised when two fields or edges of one entity share a name."""


class DuplicateEntityError(SchemaError):
    """Raised when two entities of one registry share a name."""


class DanglingEdgeError(SchemaError):
    """Raised when an edge targets an entity missing from the registry."""


class SchemaCompilationError(SchemaError):
    """Raised when a registry is not well-formed enough to compile."""

    def __init__(self, issues: List[SchemaIssue]):
        self.issues = list(issues)
        summary = "; ".join(str(issue) for issue in self.issues)
        super().__init__(f"Schema compilation failed with {len(self.issues)} issue(s): {summary}")
