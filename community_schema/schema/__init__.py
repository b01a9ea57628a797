"""
Schema definition modules for Community Schema.

This package contains the field and edge declaration APIs, the entity
declarations of the community model and the registry that holds them.
"""

from community_schema.schema.entity_types import build_registry
from community_schema.schema.registry import EntitySchema, Relation, SchemaRegistry, entity

__all__ = ["EntitySchema", "Relation", "SchemaRegistry", "build_registry", "entity"]
