"""Parsing module for the schema definition DSL."""

from typed_models.parsing.schema_parser import FieldSpec, ModelSpec, SchemaParser, TypeRef

__all__ = [
    "FieldSpec",
    "ModelSpec",
    "SchemaParser",
    "TypeRef",
]
