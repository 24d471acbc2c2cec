"""Typed Models - An embedded, in-memory store of typed, schema-driven rows."""

from typed_models.errors import (
    CoercionError,
    SchemaError,
    TypedModelsError,
    UnknownTypeError,
    UnresolvedReferenceError,
)
from typed_models.model import IdPolicy, Model
from typed_models.query import Query
from typed_models.row import Row
from typed_models.schema import Schema
from typed_models.types import (
    BOOLEAN,
    ID,
    NUMBER,
    REF,
    STRING,
    Coercion,
    FieldKind,
    FieldType,
    Reference,
    TypeRegistry,
    define_type,
)

__all__ = [
    # Main API
    "Model",
    "Row",
    "Query",
    "Schema",
    "IdPolicy",
    # Field types
    "ID",
    "STRING",
    "NUMBER",
    "BOOLEAN",
    "REF",
    "Coercion",
    "FieldKind",
    "FieldType",
    "Reference",
    "TypeRegistry",
    "define_type",
    # Errors
    "TypedModelsError",
    "SchemaError",
    "UnknownTypeError",
    "UnresolvedReferenceError",
    "CoercionError",
]

__version__ = "0.1.0"
