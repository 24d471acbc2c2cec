"""Row: one stored entity of a model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:
    from typed_models.model import Model


class Row:
    """Accessor over one entity's values plus a back-reference to its model.

    Declared fields read and write like attributes (``row.bio = "..."``) and
    through ``get``/``set`` or item access; all three work on the same value
    mapping. Changes are not visible to the model's queries until the row
    is saved.
    """

    def __init__(self, model: Model, values: dict[str, Any]) -> None:
        object.__setattr__(self, "_model", model)
        object.__setattr__(self, "_values", values)

    @property
    def model(self) -> Model:
        return self._model

    @property
    def id(self) -> Any:
        return self._values.get("id")

    def get(self, key: str) -> Any:
        """Return the value of a field, or None if the row has no such key."""
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        """Set the value of a declared field. The row id cannot be changed."""
        if key == "id":
            raise KeyError("Row id cannot be changed")
        if key not in self._model.fields:
            raise KeyError(f"Model '{self._model.name}' has no field '{key}'")
        self._values[key] = value

    def save(self) -> None:
        """Write this row back to its model."""
        self._model.save(self)

    def keys(self) -> list[str]:
        return list(self._values.keys())

    def to_json(self) -> dict[str, Any]:
        """Export every value in its serializable form.

        Values that know how to serialize themselves (references) export
        their stored id; everything else passes through unchanged.
        """
        result = {}
        for key, value in self._values.items():
            to_json = getattr(value, "to_json", None)
            result[key] = to_json() if callable(to_json) else value
        return result

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal attribute lookup fails
        values = self.__dict__.get("_values")
        if values is not None and name in values:
            return values[name]
        raise AttributeError(f"{self!r} has no field '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "id":
            raise AttributeError("Row id cannot be changed")
        if name in self._model.fields:
            self._values[name] = value
            return
        raise AttributeError(f"Model '{self._model.name}' has no field '{name}'")

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        model = self.__dict__.get("_model")
        name = model.name if model is not None else "?"
        row_id = self.__dict__.get("_values", {}).get("id")
        return f"Row<{name} #{row_id!r}>"
