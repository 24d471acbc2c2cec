"""Model: a schema-bound in-memory store of rows."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from typed_models.errors import CoercionError, SchemaError
from typed_models.query import Predicate, Query
from typed_models.row import Row
from typed_models.types import Coercion, FieldType, TypeRegistry, registry, to_number

logger = logging.getLogger(__name__)

Mutation = Callable[[Row], Any]


class IdPolicy(Enum):
    """How ``Model.next_id`` picks the id of a new row."""

    LAST = "last"  # id of the last stored row + 1
    MAX = "max"  # largest stored id + 1


def ids_equal(a: Any, b: Any) -> bool:
    """Loose id equality: ``2``, ``2.0`` and ``"2"`` all match."""
    if a == b:
        return True
    try:
        return float(a) == float(b)
    except (TypeError, ValueError):
        return False


class Model:
    """A named collection of rows sharing one set of typed fields.

    Fields are declared as an ordered mapping of field name to field type;
    the order is kept for display and serialization. Rows are coerced
    through their field types when created or loaded, and every write goes
    through ``save``.

    Example:
        >>> User = Model("User", {
        ...     "name": STRING(),
        ...     "bio": STRING("No bio provided."),
        ... })
        >>> john = User.create({"name": "John"})
        >>> john.id, john.bio
        (1, 'No bio provided.')
    """

    def __init__(
        self,
        name: str,
        fields: Mapping[str, FieldType],
        *,
        id_policy: IdPolicy = IdPolicy.LAST,
        coercion: Coercion = Coercion.LENIENT,
    ) -> None:
        """Initialize an empty model.

        Args:
            name: Model name, also the lookup key other models' reference
                fields are described by.
            fields: Field name to field type, in declaration order.
            id_policy: How new ids are assigned.
            coercion: What field types do with values they cannot coerce.
        """
        self.name = name
        self.fields: dict[str, FieldType] = dict(fields)
        self.rows: list[Row] = []
        self.id_policy = id_policy
        self.coercion = coercion

    # --- Create ---

    def create(self, data: Mapping[str, Any]) -> Row:
        """Create, store and return a new row.

        A row without a truthy ``id`` gets one from ``next_id``. Declared
        fields present in ``data`` are coerced by their type, absent ones take
        the type's default, and keys that are not declared fields are dropped.
        """
        row = self._build_row(data)
        self.save(row)
        logger.debug("Created %r", row)
        return row

    def seed(self, items: Iterable[Mapping[str, Any]]) -> list[Row]:
        """Create a row for each mapping and return them in order."""
        return [self.create(data) for data in items]

    def _build_row(self, data: Mapping[str, Any]) -> Row:
        """Coerce input data into a new row without storing it."""
        values: dict[str, Any] = {"id": data.get("id")}
        if not values["id"]:
            values["id"] = self.next_id()

        for key, field_type in self.fields.items():
            if key == "id":
                values[key] = field_type(values["id"], self.coercion)
            elif key in data:
                values[key] = field_type(data[key], self.coercion)
            else:
                values[key] = field_type.default()
        return Row(self, values)

    # --- Read ---

    def get(self, id: Any) -> Row | None:
        """Return the first row whose id loosely equals ``id``, or None."""
        return self.where(lambda row: ids_equal(row.id, id)).first()

    def where(self, predicate: Predicate) -> Query:
        """Return a query over the rows for which ``predicate`` is truthy."""
        return Query(self, [row for row in self.rows if predicate(row)])

    def query(self) -> Query:
        """Return a query over all rows."""
        return Query(self, list(self.rows))

    # --- Update ---

    def save(self, row: Row) -> None:
        """Replace the stored row with the same id, or append the row."""
        for index, stored in enumerate(self.rows):
            if ids_equal(stored.id, row.id):
                self.rows[index] = row
                return
        self.rows.append(row)

    def update(self, id: Any, mutate: Mutation) -> Row | None:
        """Apply ``mutate`` to the row with ``id`` and save it.

        Returns:
            The mutated row, or None if no row has that id.
        """
        row = self.get(id)
        if row is not None:
            mutate(row)
            self.save(row)
        return row

    def update_where(self, predicate: Predicate, mutate: Mutation) -> None:
        """Apply ``mutate`` to every matching row and save each one."""
        for row in self.where(predicate):
            mutate(row)
            self.save(row)

    def update_all(self, mutate: Mutation) -> None:
        """Apply ``mutate`` to every row and save each one."""
        for row in self.query():
            mutate(row)
            self.save(row)

    # --- Delete ---

    def delete(self, id: Any) -> Row | None:
        """Remove the row(s) with ``id``.

        Returns:
            The first removed row, or None if no row has that id.
        """
        row = self.get(id)
        if row is not None:
            self.rows = [r for r in self.rows if not ids_equal(r.id, id)]
            logger.debug("Deleted %r", row)
        return row

    def delete_where(self, predicate: Predicate) -> None:
        """Remove every row for which ``predicate`` is truthy."""
        for row in self.where(predicate):
            self.delete(row.id)

    def clear(self) -> None:
        """Remove all rows."""
        logger.debug("Cleared %d rows from model '%s'", len(self.rows), self.name)
        self.rows = []

    # --- Other ---

    @property
    def count(self) -> int:
        return len(self.rows)

    def exists(self, id: Any) -> bool:
        return self.get(id) is not None

    def next_id(self) -> int:
        """Return the id for the next new row.

        Under ``IdPolicy.LAST`` this is the id of the last stored row plus
        one, which hands out an id again after the last row is deleted, even
        if an earlier row still holds it. ``IdPolicy.MAX`` never reuses the
        largest stored id.

        Stored ids are read as numbers, so an explicit id of "5" is followed
        by 6. A non-numeric stored id raises CoercionError.
        """
        if not self.rows:
            return 1
        if self.id_policy is IdPolicy.MAX:
            return max(_id_number(row.id) for row in self.rows) + 1
        return _id_number(self.rows[-1].id) + 1

    # --- Serialization ---

    def to_json(self) -> dict[str, Any]:
        """Convert the model's schema and rows to a JSON-compatible dict."""
        return {
            "name": self.name,
            "fields": {key: field_type.describe() for key, field_type in self.fields.items()},
            "data": [row.to_json() for row in self.rows],
        }

    serialize = to_json

    @classmethod
    def from_json(
        cls,
        doc: Mapping[str, Any],
        bound: Mapping[str, Any] | None = None,
        **options: Any,
    ) -> Model:
        """Load a model from the output of ``to_json``.

        Args:
            doc: The model document.
            bound: Maps reference lookup keys (target model names) to live
                models. A reference to the document's own name resolves to
                the model being loaded unless ``bound`` supplies it.
            **options: Passed to the constructor (``id_policy``, ``coercion``).

        Raises:
            SchemaError: If the document is malformed, names an unknown type,
                or a reference target is missing from ``bound``.
        """
        model = cls(_require(doc, "name"), {}, **options)
        model.load_fields(doc, bound)
        model.load_rows(doc)
        return model

    deserialize = from_json

    def load_fields(
        self,
        doc: Mapping[str, Any],
        bound: Mapping[str, Any] | None = None,
        types: TypeRegistry = registry,
    ) -> None:
        """Rebuild this model's fields from a model document."""
        targets = {self.name: self}
        targets.update(bound or {})

        fields_spec = _require(doc, "fields")
        if not isinstance(fields_spec, Mapping):
            raise SchemaError(f"Model '{self.name}': 'fields' must be an object")
        self.fields = {
            key: types.rebuild(description, targets)
            for key, description in fields_spec.items()
        }

    def load_rows(self, doc: Mapping[str, Any]) -> None:
        """Rebuild this model's rows from a model document's data."""
        data_spec = doc.get("data", [])
        if not isinstance(data_spec, list):
            raise SchemaError(f"Model '{self.name}': 'data' must be a list")
        self.rows = []
        for index, data in enumerate(data_spec):
            if not isinstance(data, Mapping):
                raise SchemaError(
                    f"Model '{self.name}': data row {index} must be an object, "
                    f"got {type(data).__name__}"
                )
            self.rows.append(self._build_row(data))
        logger.debug("Loaded %d rows into model '%s'", len(self.rows), self.name)

    def __repr__(self) -> str:
        return f"Model<{self.name}> ({len(self.rows)} rows)"


def _require(doc: Mapping[str, Any], key: str) -> Any:
    try:
        return doc[key]
    except KeyError:
        raise SchemaError(f"Model document is missing '{key}'") from None
    except TypeError:
        raise SchemaError(f"Model document must be an object, got {type(doc).__name__}") from None


def _id_number(value: Any) -> int | float:
    """Read a stored id as a number for id assignment."""
    try:
        number = to_number(value, Coercion.STRICT)
    except CoercionError:
        raise CoercionError(f"Cannot derive the next id from non-numeric id {value!r}") from None
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number
