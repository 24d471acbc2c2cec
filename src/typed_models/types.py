"""Field type definitions for the typed_models library."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Mapping

from typed_models.errors import (
    CoercionError,
    SchemaError,
    UnknownTypeError,
    UnresolvedReferenceError,
)

if TYPE_CHECKING:
    from typed_models.model import Model
    from typed_models.row import Row


class Coercion(Enum):
    """Policy for values a field type cannot coerce."""

    LENIENT = "lenient"  # degrade to a sentinel (nan for numbers)
    STRICT = "strict"  # raise CoercionError


class FieldKind(Enum):
    """The fixed set of field kinds. The value is the serialized type name."""

    ID = "ID"
    STRING = "STRING"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    REF = "REF"

    @property
    def type_default(self) -> Any:
        """Return the default used when a field declares none."""
        defaults = {
            FieldKind.ID: 0,
            FieldKind.STRING: "",
            FieldKind.NUMBER: 0,
            FieldKind.BOOLEAN: False,
            FieldKind.REF: None,
        }
        return defaults[self]

    @property
    def dsl_name(self) -> str:
        """Return the spelling used in the schema DSL."""
        return self.value.lower()

    @property
    def binds_model(self) -> bool:
        """Return whether this kind's bound arguments are live models."""
        return self is FieldKind.REF


class Reference:
    """A foreign id into another model, resolved on every lookup.

    The reference holds only the stored id and the target model it was
    constructed against. Calling the reference (or ``resolve()``) looks the
    id up in the target's current rows, so a deleted target row resolves
    to None.
    """

    __slots__ = ("_id", "_model")

    def __init__(self, id: Any, model: Model) -> None:
        self._id = id
        self._model = model

    @property
    def model(self) -> Model:
        return self._model

    @property
    def value(self) -> Any:
        """The stored id."""
        return self._id

    def raw_id(self) -> Any:
        return self._id

    def resolve(self) -> Row | None:
        """Return the live target row, or None if it does not exist."""
        return self._model.get(self._id)

    def __call__(self) -> Row | None:
        return self.resolve()

    def to_json(self) -> Any:
        return self._id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Reference):
            return NotImplemented
        return self._id == other._id and self._model is other._model

    def __hash__(self) -> int:
        return hash((self._id, id(self._model)))

    def __repr__(self) -> str:
        return f"Ref<{self._model.name} #{self._id!r}>"


def _coerce_identity(value: Any, coercion: Coercion, *args: Any) -> Any:
    return value


# ASCII-only numeric spellings; int()/float() alone also accept "1_000", "inf",
# "nan" and non-ASCII digits
_INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")
_DECIMAL_TEXT = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_RADIX_TEXT = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")
_INFINITY_TEXT = re.compile(r"([+-]?)Infinity")


def _parse_number_text(text: str) -> int | float | None:
    """Parse numeric text, returning None when it is not a number."""
    text = text.strip()
    if not text:
        return 0
    if _INTEGER_TEXT.fullmatch(text):
        return int(text)
    if _DECIMAL_TEXT.fullmatch(text):
        return float(text)
    if _RADIX_TEXT.fullmatch(text):
        return int(text, 0)
    match = _INFINITY_TEXT.fullmatch(text)
    if match:
        return -math.inf if match.group(1) == "-" else math.inf
    return None


def to_number(value: Any, coercion: Coercion = Coercion.LENIENT) -> int | float:
    """Coerce a value to a number.

    Ints and floats pass through, booleans become 0/1, None becomes 0 and
    strings are parsed (blank text is 0). Anything else is invalid: nan
    under the lenient policy, CoercionError under the strict one.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if value is None:
        return 0
    if isinstance(value, str):
        number = _parse_number_text(value)
        if number is not None:
            return number
    if coercion is Coercion.STRICT:
        raise CoercionError(f"Cannot coerce {value!r} to a number")
    return math.nan


def _coerce_number(value: Any, coercion: Coercion, *args: Any) -> int | float:
    return to_number(value, coercion)


def _coerce_boolean(value: Any, coercion: Coercion, *args: Any) -> bool:
    return bool(value)


def _coerce_reference(value: Any, coercion: Coercion, model: Model) -> Reference | None:
    if value is None:
        return None
    if isinstance(value, Reference):
        value = value.raw_id()
    return Reference(value, model)


_COERCERS: dict[FieldKind, Callable[..., Any]] = {
    FieldKind.ID: _coerce_identity,
    FieldKind.STRING: _coerce_identity,
    FieldKind.NUMBER: _coerce_number,
    FieldKind.BOOLEAN: _coerce_boolean,
    FieldKind.REF: _coerce_reference,
}


def _describe_arg(arg: Any) -> Any:
    """Primitive args pass through; models are described by their name."""
    if arg is None or isinstance(arg, (str, int, float, bool)):
        return arg
    return arg.name


@dataclass(frozen=True)
class FieldType:
    """A field kind bound to a default value and construction arguments.

    Calling a field type coerces a raw value. ``describe()`` produces the
    JSON-compatible description that ``TypeRegistry.rebuild`` turns back
    into an equal field type.
    """

    kind: FieldKind
    default_value: Any = None
    args: tuple[Any, ...] = field(default_factory=tuple)

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def coerce(self) -> Callable[..., Any]:
        return _COERCERS[self.kind]

    def __call__(self, value: Any, coercion: Coercion = Coercion.LENIENT) -> Any:
        return self.coerce(value, coercion, *self.args)

    def default(self) -> Any:
        """Return the default value. Defaults are never coerced."""
        return self.default_value

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "args": [_describe_arg(arg) for arg in self.args],
            "defaultValue": self.default_value,
        }

    def __repr__(self) -> str:
        return f"Type<{self.name}>"


_MISSING = object()


def define_type(kind: FieldKind) -> Callable[..., FieldType]:
    """Return the constructor for field types of the given kind.

    The constructor takes ``(default_value=<kind default>, *args)``.
    """

    def constructor(default_value: Any = _MISSING, *args: Any) -> FieldType:
        if default_value is _MISSING:
            default_value = kind.type_default
        if kind.binds_model and len(args) != 1:
            raise SchemaError(f"Type '{kind.value}' needs exactly one target model")
        return FieldType(kind=kind, default_value=default_value, args=tuple(args))

    constructor.__name__ = kind.value
    constructor.__qualname__ = kind.value
    return constructor


ID = define_type(FieldKind.ID)
STRING = define_type(FieldKind.STRING)
NUMBER = define_type(FieldKind.NUMBER)
BOOLEAN = define_type(FieldKind.BOOLEAN)
REF = define_type(FieldKind.REF)


class TypeRegistry:
    """Registry of field kinds by serialized name and DSL name."""

    def __init__(self) -> None:
        self._types: dict[str, FieldKind] = {}
        self._dsl_names: dict[str, FieldKind] = {}
        for kind in FieldKind:
            self._types[kind.value] = kind
            self._dsl_names[kind.dsl_name] = kind

    def get(self, name: str) -> FieldKind | None:
        """Get a kind by its serialized name."""
        return self._types.get(name)

    def get_or_raise(self, name: str) -> FieldKind:
        """Get a kind by its serialized name, raising if not found."""
        kind = self._types.get(name)
        if kind is None:
            raise UnknownTypeError(f"Type '{name}' not found")
        return kind

    def get_dsl(self, name: str) -> FieldKind | None:
        """Get a kind by its schema DSL spelling."""
        return self._dsl_names.get(name)

    def list_types(self) -> list[str]:
        return list(self._types.keys())

    def rebuild(
        self, description: Mapping[str, Any], bound: Mapping[str, Any] | None = None
    ) -> FieldType:
        """Rebuild a field type from its description.

        Args:
            description: Output of ``FieldType.describe()``.
            bound: Maps lookup keys in ``args`` to live objects, e.g.
                ``{"User": user_model}``.

        Raises:
            UnknownTypeError: If the type name is not registered.
            UnresolvedReferenceError: If a lookup key is missing from ``bound``.
        """
        bound = bound or {}
        name = description.get("name")
        if name is None:
            raise SchemaError(f"Field description has no type name: {description!r}")
        kind = self.get_or_raise(name)

        args = []
        for arg in description.get("args", []):
            if kind.binds_model:
                if arg not in bound:
                    raise UnresolvedReferenceError(
                        f"No model supplied for reference target '{arg}'"
                    )
                args.append(bound[arg])
            else:
                args.append(arg)

        default_value = description.get("defaultValue", kind.type_default)
        return define_type(kind)(default_value, *args)

    def __contains__(self, name: str) -> bool:
        return name in self._types


registry = TypeRegistry()
