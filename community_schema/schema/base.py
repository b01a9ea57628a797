"""
Base model for schema declarations.

Declarations are frozen pydantic models whose rules run in model validators,
so every way of building one (helpers, direct construction, ``model_validate``)
is held to the same rules.
"""

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from community_schema.errors import SchemaError


def declaration_error(error: ValidationError) -> Union[SchemaError, ValidationError]:
    """
    Recover the declaration error raised inside a model validator.

    Pydantic wraps errors raised by validators in a ValidationError; the
    original exception is kept in the error context.

    Returns:
        The first SchemaError found, or the ValidationError itself
    """
    for detail in error.errors():
        cause = detail.get("ctx", {}).get("error")
        if isinstance(cause, SchemaError):
            return cause
    return error


class Declaration(BaseModel):
    """Immutable declaration raising SchemaError subclasses on bad input."""

    model_config = ConfigDict(frozen=True)

    def __init__(self, **data: Any):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise declaration_error(e) from None

    def replace(self, **changes: Any):
        """Return a validated copy with some attributes changed."""
        return type(self)(**{**dict(self), **changes})
