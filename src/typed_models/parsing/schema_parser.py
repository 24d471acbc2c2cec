"""Parser for the schema definition DSL."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import ply.yacc as yacc

from typed_models.errors import SchemaError
from typed_models.model import Model
from typed_models.parsing.schema_lexer import SchemaLexer
from typed_models.types import FieldType, TypeRegistry, define_type, registry


@dataclass
class TypeRef:
    """Reference to a field type, with the target model for refs."""

    name: str
    target: str | None = None


@dataclass
class FieldSpec:
    """Specification for a field before resolution."""

    name: str
    type_ref: TypeRef
    default_value: Any = None
    has_default: bool = False


@dataclass
class ModelSpec:
    """Specification for a model before resolution."""

    name: str
    fields: list[FieldSpec] = field(default_factory=list)
    lineno: int = 0


class SchemaParser:
    """Parser for the schema definition DSL.

    Example:
        User {
            name: string,
            bio: string = "No bio provided.",
        }
        Post {
            title: string,
            author: ref User = 0,
        }
    """

    tokens = SchemaLexer.tokens

    def __init__(self, types: TypeRegistry = registry) -> None:
        self.lexer = SchemaLexer()
        self.lexer.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self.types = types
        self._specs: list[ModelSpec] = []

    def p_schema(self, p: yacc.YaccProduction) -> None:
        """schema : model_list"""
        p[0] = p[1]

    def p_schema_empty(self, p: yacc.YaccProduction) -> None:
        """schema : empty"""
        p[0] = []

    def p_empty(self, p: yacc.YaccProduction) -> None:
        """empty :"""
        p[0] = None

    def p_model_list_single(self, p: yacc.YaccProduction) -> None:
        """model_list : model_def"""
        p[0] = [p[1]]

    def p_model_list_multiple(self, p: yacc.YaccProduction) -> None:
        """model_list : model_list model_def"""
        p[0] = p[1] + [p[2]]

    def p_model_def(self, p: yacc.YaccProduction) -> None:
        """model_def : IDENTIFIER LBRACE field_list RBRACE
                     | IDENTIFIER LBRACE field_list COMMA RBRACE"""
        p[0] = ModelSpec(name=p[1], fields=p[3], lineno=p.lineno(1))

    def p_model_def_empty(self, p: yacc.YaccProduction) -> None:
        """model_def : IDENTIFIER LBRACE RBRACE"""
        p[0] = ModelSpec(name=p[1], fields=[], lineno=p.lineno(1))

    def p_field_list_single(self, p: yacc.YaccProduction) -> None:
        """field_list : field"""
        p[0] = [p[1]]

    def p_field_list_multiple(self, p: yacc.YaccProduction) -> None:
        """field_list : field_list COMMA field"""
        p[0] = p[1] + [p[3]]

    def p_field(self, p: yacc.YaccProduction) -> None:
        """field : IDENTIFIER COLON type_ref"""
        p[0] = FieldSpec(name=p[1], type_ref=p[3])

    def p_field_with_default(self, p: yacc.YaccProduction) -> None:
        """field : IDENTIFIER COLON type_ref EQUALS literal"""
        p[0] = FieldSpec(name=p[1], type_ref=p[3], default_value=p[5], has_default=True)

    def p_type_ref_simple(self, p: yacc.YaccProduction) -> None:
        """type_ref : IDENTIFIER"""
        p[0] = TypeRef(name=p[1])

    def p_type_ref_reference(self, p: yacc.YaccProduction) -> None:
        """type_ref : REF IDENTIFIER"""
        p[0] = TypeRef(name=p[1], target=p[2])

    def p_literal_value(self, p: yacc.YaccProduction) -> None:
        """literal : STRING
                   | INTEGER
                   | FLOAT"""
        p[0] = p[1]

    def p_literal_true(self, p: yacc.YaccProduction) -> None:
        """literal : TRUE"""
        p[0] = True

    def p_literal_false(self, p: yacc.YaccProduction) -> None:
        """literal : FALSE"""
        p[0] = False

    def p_literal_null(self, p: yacc.YaccProduction) -> None:
        """literal : NULL"""
        p[0] = None

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            raise SyntaxError(f"Syntax error at '{p.value}' (line {p.lineno})")
        else:
            raise SyntaxError("Syntax error at end of input")

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, **kwargs)

    def parse_specs(self, data: str) -> list[ModelSpec]:
        """Parse schema text into unresolved model specs."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self.lexer.lexer.lineno = 1
        specs = self.parser.parse(data, lexer=self.lexer.lexer)
        return specs or []

    def parse(
        self, data: str, bound: dict[str, Model] | None = None, **options: Any
    ) -> dict[str, Model]:
        """Parse schema text and return the models it defines, in order.

        Args:
            data: Schema DSL text.
            bound: Existing models that ``ref`` fields may also target.
            **options: Passed to each ``Model`` (``id_policy``, ``coercion``).
        """
        self._specs = self.parse_specs(data)
        return self._resolve_specs(bound or {}, options)

    def _resolve_field(self, spec: FieldSpec, models: dict[str, Model]) -> FieldType:
        """Resolve a field spec to a field type."""
        kind = self.types.get_dsl(spec.type_ref.name)
        if kind is None:
            raise SchemaError(f"Unknown field type '{spec.type_ref.name}' for field '{spec.name}'")

        args: list[Any] = []
        if kind.binds_model:
            target = models.get(spec.type_ref.target or "")
            if target is None:
                raise SchemaError(
                    f"Field '{spec.name}' references unknown model '{spec.type_ref.target}'"
                )
            args.append(target)

        default_value = spec.default_value if spec.has_default else kind.type_default
        return define_type(kind)(default_value, *args)

    def _resolve_specs(
        self, bound: dict[str, Model], options: dict[str, Any]
    ) -> dict[str, Model]:
        """Resolve specs into models using two-phase resolution.

        Phase 1: Create an empty model for every spec so that self-referential
        and mutually referential models can resolve.
        Phase 2: Populate each model's fields.
        """
        models: dict[str, Model] = {}
        for spec in self._specs:
            if spec.name in models:
                raise SchemaError(f"Model '{spec.name}' is already defined (line {spec.lineno})")
            models[spec.name] = Model(spec.name, {}, **options)

        targets = dict(bound)
        targets.update(models)

        for spec in self._specs:
            fields: dict[str, FieldType] = {}
            for field_spec in spec.fields:
                if field_spec.name in fields:
                    raise SchemaError(
                        f"Model '{spec.name}' declares field '{field_spec.name}' twice"
                    )
                fields[field_spec.name] = self._resolve_field(field_spec, targets)
            models[spec.name].fields = fields

        return models
