"""Exceptions raised by typed_models."""


class TypedModelsError(Exception):
    """Base class for all typed_models errors."""


class SchemaError(TypedModelsError, ValueError):
    """A schema document or definition cannot be turned into models."""


class UnknownTypeError(SchemaError, KeyError):
    """A field description names a type that is not registered."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class UnresolvedReferenceError(SchemaError, KeyError):
    """A reference field's target was not supplied when rebuilding it."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class CoercionError(TypedModelsError, ValueError):
    """A value cannot be coerced under the strict coercion policy."""
