"""
Record validator for Community Schema.

This module validates records (column name to value mappings) against the
entity descriptors of a registry, the same checks the generated accessors
apply before writing.
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional, Tuple, Type

from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from community_schema.config import get_settings
from community_schema.schema.fields import FieldDescriptor, FieldType
from community_schema.schema.registry import EntitySchema, SchemaRegistry

PYTHON_TYPES: Dict[FieldType, type] = {
    FieldType.STRING: str,
    FieldType.BOOL: bool,
    FieldType.INT: int,
    FieldType.FLOAT: float,
    FieldType.TIME: datetime,
    FieldType.ENUM: str,
}


def _annotation(descriptor: FieldDescriptor) -> Any:
    if descriptor.is_enum and descriptor.values:
        annotation = Literal[descriptor.values]
    else:
        annotation = PYTHON_TYPES[descriptor.type]
    if descriptor.is_optional:
        annotation = Optional[annotation]
    return annotation


def record_model(schema: EntitySchema) -> Type[BaseModel]:
    """
    Derive a pydantic model for the records of an entity.

    Args:
        schema: Entity schema

    Returns:
        Model class with one attribute per field; optional fields default to
        None and fields with a default fall back to it
    """
    definitions = {}
    for descriptor in schema.fields:
        if descriptor.has_default:
            default = descriptor.default_value
        elif descriptor.is_optional:
            default = None
        else:
            default = ...
        definitions[descriptor.name] = (_annotation(descriptor), default)

    return create_model(
        f"{schema.name}Record",
        __config__=ConfigDict(extra="forbid"),
        **definitions
    )


class SchemaValidator:
    """
    Schema validator for Community Schema.

    This class provides methods for validating records and edges against the
    descriptors of a registry.
    """

    def __init__(self, registry: SchemaRegistry, enabled: Optional[bool] = None):
        """
        Initialize schema validator.

        Args:
            registry: Registry to validate against
            enabled: Whether validation is enabled; defaults to SCHEMA_VALIDATION_ENABLED
        """
        self.registry = registry
        self.enabled = get_settings().schema_validation_enabled if enabled is None else enabled
        self._models: Dict[str, Type[BaseModel]] = {}

    def _model_for(self, entity_type: str) -> Type[BaseModel]:
        if entity_type not in self._models:
            if entity_type not in self.registry:
                raise ValueError(f"Unknown entity type: {entity_type}")
            self._models[entity_type] = record_model(self.registry.get(entity_type))
        return self._models[entity_type]

    def _validate(self, entity_type: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        model = self._model_for(entity_type)
        try:
            validated = model(**properties).model_dump()
        except ValidationError as e:
            raise ValueError(f"Validation failed for {entity_type}: {str(e)}")

        created_at = validated.get("createdAt")
        updated_at = validated.get("updatedAt")
        if isinstance(created_at, datetime) and isinstance(updated_at, datetime):
            try:
                out_of_order = updated_at < created_at
            except TypeError:
                raise ValueError(f"Validation failed for {entity_type}: timestamps mix naive and aware values")
            if out_of_order:
                raise ValueError(f"Validation failed for {entity_type}: updatedAt is earlier than createdAt")

        return validated

    def validate_entity(self, entity_type: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a record against its entity schema.

        Args:
            entity_type: Type of entity
            properties: Record values keyed by field name

        Returns:
            Validated values with defaults applied

        Raises:
            ValueError: If validation is enabled and entity type is not recognized or validation fails
        """
        if not self.enabled:
            logger.debug(f"Schema validation disabled, skipping validation for {entity_type}")
            return properties

        try:
            return self._validate(entity_type, properties)
        except ValueError as e:
            logger.error(f"Entity validation error: {str(e)}")
            raise

    def validate_edge(self, from_entity_type: str, edge_name: str, to_entity_type: str) -> None:
        """
        Validate that an edge exists and targets the given entity type.

        Raises:
            ValueError: If validation is enabled and the edge is not declared
                        or targets another entity
        """
        if not self.enabled:
            logger.debug(f"Schema validation disabled, skipping validation for {from_entity_type}.{edge_name}")
            return

        if from_entity_type not in self.registry:
            logger.error(f"Edge validation error: unknown entity type {from_entity_type}")
            raise ValueError(f"Unknown entity type: {from_entity_type}")

        descriptor = self.registry.get(from_entity_type).edge(edge_name)
        if descriptor is None:
            logger.error(f"Edge validation error: {from_entity_type} has no edge {edge_name}")
            raise ValueError(f"Unknown edge: {from_entity_type}.{edge_name}")
        if descriptor.target != to_entity_type:
            logger.error(f"Edge validation error: {from_entity_type}.{edge_name} targets {descriptor.target}")
            raise ValueError(
                f"Invalid target for {from_entity_type}.{edge_name}: {to_entity_type}. "
                f"Expected {descriptor.target}"
            )

    def check_entity_compatibility(
        self,
        entity_type: str,
        properties: Dict[str, Any]
    ) -> Tuple[bool, Optional[str]]:
        """
        Check if a record is compatible with its schema without raising exceptions.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not self.enabled:
            return True, None

        try:
            self._validate(entity_type, properties)
            return True, None
        except ValueError as e:
            return False, str(e)
