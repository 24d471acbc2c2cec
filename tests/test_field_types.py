"""Tests for field types, coercion and the type registry."""

import math

import pytest

from typed_models import (
    BOOLEAN,
    ID,
    NUMBER,
    REF,
    STRING,
    Coercion,
    CoercionError,
    FieldKind,
    Model,
    Reference,
    SchemaError,
    TypeRegistry,
    UnknownTypeError,
    UnresolvedReferenceError,
    define_type,
)
from typed_models.types import to_number


@pytest.fixture
def users():
    model = Model("User", {"name": STRING()})
    model.seed([{"name": "John"}, {"name": "Jane"}])
    return model


class TestFieldKind:
    """Tests for the FieldKind enum."""

    def test_type_defaults(self):
        assert FieldKind.ID.type_default == 0
        assert FieldKind.STRING.type_default == ""
        assert FieldKind.NUMBER.type_default == 0
        assert FieldKind.BOOLEAN.type_default is False
        assert FieldKind.REF.type_default is None

    def test_dsl_names(self):
        assert [kind.dsl_name for kind in FieldKind] == ["id", "string", "number", "boolean", "ref"]

    def test_only_ref_binds_a_model(self):
        assert [kind for kind in FieldKind if kind.binds_model] == [FieldKind.REF]


class TestConstructors:
    """Tests for the type constructors."""

    def test_default_value_from_kind(self):
        assert STRING().default() == ""
        assert NUMBER().default() == 0
        assert BOOLEAN().default() is False
        assert ID().default() == 0

    def test_default_value_override(self):
        field_type = STRING("No bio provided.")
        assert field_type.default() == "No bio provided."
        assert field_type.name == "STRING"

    def test_ref_requires_target(self):
        with pytest.raises(SchemaError):
            REF(None)

    def test_define_type_matches_builtin(self):
        assert define_type(FieldKind.NUMBER)(5) == NUMBER(5)

    def test_repr(self):
        assert repr(STRING()) == "Type<STRING>"


class TestCoercion:
    """Tests for each kind's coercion rule."""

    def test_identity_kinds(self):
        assert ID()(7) == 7
        assert STRING()(42) == 42
        assert STRING()("text") == "text"

    def test_number_parses_strings(self):
        number = NUMBER()
        assert number("12") == 12
        assert number(" 3.5 ") == 3.5
        assert number("") == 0
        assert number("0x1f") == 31
        assert number(True) == 1
        assert number(None) == 0
        assert number(2.25) == 2.25

    @pytest.mark.parametrize("text", ["abc", "1_000", "inf", "nan", "infinity", "\u0663", "-0x1f", "1e"])
    def test_number_invalid_is_nan(self, text):
        assert math.isnan(NUMBER()(text))

    def test_number_invalid_object_is_nan(self):
        assert math.isnan(to_number(object()))

    def test_number_infinity_spelling(self):
        assert NUMBER()("Infinity") == math.inf
        assert NUMBER()("-Infinity") == -math.inf

    def test_number_ascii_forms(self):
        number = NUMBER()
        assert number("+7") == 7
        assert number("007") == 7
        assert number("1.") == 1.0
        assert number(".5") == 0.5
        assert number("2e3") == 2000.0
        assert number("0b101") == 5
        assert number("0o17") == 15

    def test_number_invalid_strict_raises(self):
        with pytest.raises(CoercionError):
            NUMBER()("abc", Coercion.STRICT)

    @pytest.mark.parametrize("text", ["1_000", "inf", "nan", "\u0663"])
    def test_number_python_only_spellings_strict_raise(self, text):
        with pytest.raises(CoercionError):
            NUMBER()(text, Coercion.STRICT)

    def test_primitive_bound_args_are_ignored(self):
        assert STRING("", "x")("a") == "a"
        assert NUMBER(0, "x")("4") == 4
        assert BOOLEAN(False, 1)("y") is True
        assert ID(0, "x")(3) == 3

    def test_boolean_truthiness(self):
        boolean = BOOLEAN()
        assert boolean("") is False
        assert boolean(0) is False
        assert boolean(None) is False
        assert boolean("no") is True
        assert boolean(3) is True

    def test_ref_null(self, users):
        assert REF(None, users)(None) is None

    def test_ref_produces_live_reference(self, users):
        ref = REF(None, users)(2)
        assert isinstance(ref, Reference)
        assert ref.raw_id() == 2
        assert ref.value == 2
        assert ref().name == "Jane"
        assert ref.resolve() is users.get(2)

    def test_ref_is_not_cached(self, users):
        ref = REF(None, users)(2)
        users.delete(2)
        assert ref() is None

    def test_ref_from_reference_rebinds_target(self, users):
        other = Model("User", {"name": STRING()})
        other.create({"name": "Zed"})
        ref = REF(None, other)(REF(None, users)(1))
        assert ref.model is other
        assert ref().name == "Zed"


class TestDescribe:
    """Tests for field type descriptions."""

    def test_describe_primitive(self):
        assert STRING("x").describe() == {"name": "STRING", "args": [], "defaultValue": "x"}

    def test_describe_ref_uses_model_name(self, users):
        assert REF(0, users).describe() == {"name": "REF", "args": ["User"], "defaultValue": 0}


class TestTypeRegistry:
    """Tests for TypeRegistry."""

    def test_lookup(self):
        registry = TypeRegistry()
        assert registry.get("NUMBER") is FieldKind.NUMBER
        assert registry.get_dsl("boolean") is FieldKind.BOOLEAN
        assert registry.get("number") is None
        assert "REF" in registry
        assert registry.list_types() == ["ID", "STRING", "NUMBER", "BOOLEAN", "REF"]

    def test_unknown_type_raises(self):
        with pytest.raises(UnknownTypeError, match="DATE"):
            TypeRegistry().get_or_raise("DATE")

    def test_rebuild_primitive(self):
        field_type = STRING("hello")
        assert TypeRegistry().rebuild(field_type.describe()) == field_type

    def test_rebuild_ref(self, users):
        field_type = REF(0, users)
        rebuilt = TypeRegistry().rebuild(field_type.describe(), {"User": users})
        assert rebuilt == field_type
        assert rebuilt.args[0] is users

    def test_rebuild_ref_missing_target(self, users):
        with pytest.raises(UnresolvedReferenceError, match="User"):
            TypeRegistry().rebuild(REF(0, users).describe(), {})

    def test_rebuild_without_name(self):
        with pytest.raises(SchemaError):
            TypeRegistry().rebuild({"args": []})

    def test_rebuild_missing_default_uses_kind_default(self):
        assert TypeRegistry().rebuild({"name": "BOOLEAN"}).default() is False
