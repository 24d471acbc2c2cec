"""Tool for dumping serialized model documents to the console."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from typed_models.errors import TypedModelsError
from typed_models.model import Model
from typed_models.schema import Schema
from typed_models.types import Reference


def load_schema(path: Path) -> Schema:
    """Load a file holding one model document or a list of them."""
    with open(path) as f:
        data = json.load(f)
    docs = data if isinstance(data, list) else [data]
    return Schema.from_json(docs)


def format_value(value: Any) -> str:
    """Format a field value for display."""
    if value is None:
        return "NULL"
    if isinstance(value, Reference):
        return f"<{value.model.name} #{value.raw_id()}>"
    if isinstance(value, str):
        return repr(value)
    return str(value)


def non_negative_int(text: str) -> int:
    """argparse type for row limits."""
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{text}'") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"limit must be non-negative, got {value}")
    return value


def list_models(schema: Schema) -> None:
    """List all models with their row counts."""
    print("Available models:")
    print("-" * 40)
    for model in schema:
        print(f"  {model.name:<20} {len(model.fields):>3} fields {model.count:>6} rows")


def dump_model(model: Model, limit: int | None = None) -> None:
    """Dump a model's rows in human-readable form."""
    print(f"Model: {model.name}")
    fields = ", ".join(f"{key}: {field_type.name}" for key, field_type in model.fields.items())
    print(f"Fields: {fields}")
    print("-" * 60)
    print(f"Rows: {model.count}")
    print()

    query = model.query()
    if limit:
        query = query.limit(limit)
    for row in query:
        print(f"[{row.id}]")
        for key in model.fields:
            if key == "id":
                continue
            print(f"    {key}: {format_value(row.get(key))}")
        print()

    if limit and model.count > limit:
        print(f"... ({model.count - limit} more rows)")


def dump_model_json(model: Model, limit: int | None = None) -> None:
    """Dump a model's rows as JSON."""
    query = model.query()
    if limit:
        query = query.limit(limit)
    rows = [row.to_json() for row in query]
    output = {
        "model": model.name,
        "count": len(rows),
        "rows": rows,
    }
    print(json.dumps(output, indent=2))


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Dump serialized model documents to the console"
    )
    parser.add_argument(
        "file",
        type=Path,
        help="Path to a JSON file holding a model document or a list of them",
    )
    parser.add_argument(
        "model",
        nargs="?",
        help="Name of the model to dump (omit to list models)",
    )
    parser.add_argument(
        "-j", "--json",
        action="store_true",
        help="Output as JSON",
    )
    parser.add_argument(
        "-n", "--limit",
        type=non_negative_int,
        default=None,
        help="Limit number of rows to display",
    )

    args = parser.parse_args(argv)

    if not args.file.exists():
        print(f"Error: File not found: {args.file}", file=sys.stderr)
        return 1

    try:
        schema = load_schema(args.file)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in {args.file}: {e}", file=sys.stderr)
        return 1
    except TypedModelsError as e:
        print(f"Error loading models: {e}", file=sys.stderr)
        return 1

    if args.model is None:
        list_models(schema)
        return 0

    if args.model not in schema:
        print(f"Error: Unknown model: {args.model}", file=sys.stderr)
        print()
        list_models(schema)
        return 1

    if args.json:
        dump_model_json(schema[args.model], args.limit)
    else:
        dump_model(schema[args.model], args.limit)
    return 0


if __name__ == "__main__":
    sys.exit(main())
