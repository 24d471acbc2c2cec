"""Schema class for managing a group of related models."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Mapping

from typed_models.errors import SchemaError
from typed_models.model import Model
from typed_models.parsing import SchemaParser

logger = logging.getLogger(__name__)


class Schema:
    """A named group of models whose reference fields point at each other.

    A schema is an ordinary object owned by whoever builds it. Several
    schemas (or loose models) can coexist in one process.
    """

    def __init__(self, models: Iterable[Model] = ()) -> None:
        self._models: dict[str, Model] = {}
        for model in models:
            self.add(model)

    @classmethod
    def parse(
        cls, text: str, bound: Mapping[str, Model] | None = None, **options: Any
    ) -> Schema:
        """Build a schema from schema DSL text.

        Args:
            text: Schema DSL defining one or more models.
            bound: Existing models that reference fields may also target.
            **options: Passed to each ``Model`` (``id_policy``, ``coercion``).

        Returns:
            A new Schema holding the models in declaration order.
        """
        parser = SchemaParser()
        models = parser.parse(text, dict(bound or {}), **options)
        return cls(models.values())

    @classmethod
    def from_json(
        cls,
        docs: Iterable[Mapping[str, Any]],
        bound: Mapping[str, Model] | None = None,
        **options: Any,
    ) -> Schema:
        """Load a whole graph of model documents.

        References between the documents resolve to the models being loaded;
        any other lookup key must be supplied by ``bound``.

        Raises:
            SchemaError: If two documents share a name, a type is unknown,
                or a reference target cannot be resolved.
        """
        docs = list(docs)
        models: dict[str, Model] = {}
        for doc in docs:
            name = doc.get("name") if isinstance(doc, Mapping) else None
            if name is None:
                raise SchemaError("Model document is missing 'name'")
            if name in models:
                raise SchemaError(f"Model '{name}' is already defined")
            models[name] = Model(name, {}, **options)

        targets: dict[str, Any] = dict(bound or {})
        targets.update(models)

        # Fields first so every reference target has its schema before rows load
        for doc in docs:
            models[doc["name"]].load_fields(doc, targets)
        for doc in docs:
            models[doc["name"]].load_rows(doc)

        logger.debug("Loaded schema with models %s", list(models))
        return cls(models.values())

    def to_json(self) -> list[dict[str, Any]]:
        """Serialize every model, in the order they were added."""
        return [model.to_json() for model in self._models.values()]

    def add(self, model: Model) -> None:
        """Add a model.

        Raises:
            SchemaError: If a model with the same name is already present.
        """
        if model.name in self._models:
            raise SchemaError(f"Model '{model.name}' is already defined")
        self._models[model.name] = model

    def get_model(self, name: str) -> Model:
        """Get a model by name.

        Raises:
            KeyError: If the model is not found.
        """
        model = self._models.get(name)
        if model is None:
            raise KeyError(f"Model '{name}' not found")
        return model

    def list_models(self) -> list[str]:
        return list(self._models.keys())

    def __getitem__(self, name: str) -> Model:
        return self.get_model(name)

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[Model]:
        return iter(self._models.values())

    def __len__(self) -> int:
        return len(self._models)

    def __repr__(self) -> str:
        return f"Schema({', '.join(self._models)})"
