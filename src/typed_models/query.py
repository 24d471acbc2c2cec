"""Query: a chainable, point-in-time view over a model's rows."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterator

from typed_models.types import Reference

if TYPE_CHECKING:
    from typed_models.model import Model
    from typed_models.row import Row

Predicate = Callable[["Row"], Any]


def _order_key(value: Any) -> tuple[Any, ...]:
    """Sort key for ``Query.order``: None first, references by stored id."""
    if value is None:
        return (0,)
    if isinstance(value, Reference):
        return (1, value.raw_id())
    return (1, value)


class Query:
    """An immutable view over a subset of a model's rows.

    Every narrowing call returns a new Query; neither the source model nor
    this query is changed. A query is not refreshed when the model changes
    after it was produced.

    Example:
        >>> users.where(lambda u: u.bio == "No bio provided.").order("name").limit(5).all()
    """

    def __init__(self, model: Model, items: list[Row]) -> None:
        self.model = model
        self.items = items

    def first(self) -> Row | None:
        """Return the first row, or None if the query is empty."""
        return self.items[0] if self.items else None

    def all(self) -> list[Row]:
        """Return the rows of this view (not a copy)."""
        return self.items

    def count(self) -> int:
        return len(self.items)

    def where(self, predicate: Predicate) -> Query:
        """Narrow to the rows for which ``predicate`` is truthy."""
        return Query(self.model, [row for row in self.items if predicate(row)])

    def order(self, field: str, reverse: bool = False) -> Query:
        """Sort ascending by a field.

        The sort is stable, so rows with equal keys keep their current
        relative order. None sorts before every other value and references
        sort by their stored id.
        """
        items = sorted(
            self.items, key=lambda row: _order_key(row.get(field)), reverse=reverse
        )
        return Query(self.model, items)

    def limit(self, n: int) -> Query:
        """Keep at most the first ``n`` rows."""
        return Query(self.model, self.items[:n])

    def at(self, index: int) -> Row | None:
        """Return the row at ``index`` (negative counts from the end), or None."""
        try:
            return self.items[index]
        except IndexError:
            return None

    def __iter__(self) -> Iterator[Row]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __repr__(self) -> str:
        return f"Query<{self.model.name}> ({len(self.items)} rows)"
