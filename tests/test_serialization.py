"""Tests for Model and Schema JSON serialization."""

import json
import math

import pytest

from typed_models import (
    BOOLEAN,
    NUMBER,
    REF,
    STRING,
    IdPolicy,
    Model,
    Reference,
    Schema,
    SchemaError,
    UnknownTypeError,
    UnresolvedReferenceError,
)


@pytest.fixture
def users():
    model = Model("User", {
        "name": STRING(),
        "handle": STRING(),
        "bio": STRING("No bio provided."),
        "age": NUMBER(),
        "active": BOOLEAN(True),
    })
    model.seed([
        {"name": "John Doe", "handle": "jdoe", "age": 41},
        {"name": "Jane Doe", "handle": "jane", "bio": "Hi, I'm Jane Doe!", "active": False},
    ])
    return model


@pytest.fixture
def posts(users):
    model = Model("Post", {
        "title": STRING(),
        "content": STRING("No content provided."),
        "author": REF(0, users),
    })
    model.seed([
        {"title": "Hello, World!", "content": "This is my first post!", "author": 1},
        {"title": "Hello, API!", "author": 2},
        {"title": "The Third Post", "author": 1},
    ])
    return model


def _round_trip(doc):
    """Pass a document through real JSON text."""
    return json.loads(json.dumps(doc))


class TestToJson:
    """Tests for the document layout."""

    def test_document_layout(self, users):
        doc = users.to_json()
        assert doc["name"] == "User"
        assert list(doc["fields"]) == ["name", "handle", "bio", "age", "active"]
        assert doc["fields"]["bio"] == {
            "name": "STRING",
            "args": [],
            "defaultValue": "No bio provided.",
        }
        assert doc["data"][1] == {
            "id": 2,
            "name": "Jane Doe",
            "handle": "jane",
            "bio": "Hi, I'm Jane Doe!",
            "age": 0,
            "active": False,
        }

    def test_reference_fields(self, posts):
        doc = posts.to_json()
        assert doc["fields"]["author"] == {"name": "REF", "args": ["User"], "defaultValue": 0}
        assert [row["author"] for row in doc["data"]] == [1, 2, 1]

    def test_serialize_alias(self, users):
        assert users.serialize() == users.to_json()


class TestFromJson:
    """Tests for Model.from_json."""

    def test_round_trip_without_references(self, users):
        loaded = Model.from_json(_round_trip(users.to_json()))
        assert loaded.name == "User"
        assert list(loaded.fields) == list(users.fields)
        assert loaded.fields == users.fields
        assert [r.to_json() for r in loaded.rows] == [r.to_json() for r in users.rows]

    def test_round_trip_matches_fresh_model(self, users):
        loaded = Model.from_json(_round_trip(users.to_json()))
        fresh = Model("User", users.fields)
        fresh.seed([r.to_json() for r in users.rows])
        assert loaded.to_json() == fresh.to_json()

    def test_loaded_model_continues_ids(self, users):
        loaded = Model.from_json(_round_trip(users.to_json()))
        assert loaded.create({"name": "New"}).id == 3

    def test_round_trip_with_references(self, users, posts):
        loaded = Model.from_json(_round_trip(posts.to_json()), {"User": users})
        for row, original in zip(loaded.rows, posts.rows):
            assert isinstance(row.author, Reference)
            assert row.author() is users.get(original.author.raw_id())

    def test_round_trip_both_models(self, users, posts):
        users2 = Model.from_json(_round_trip(users.to_json()))
        posts2 = Model.from_json(_round_trip(posts.to_json()), {"User": users2})
        assert posts2.get(2).author().name == "Jane Doe"
        assert posts2.get(2).author() is users2.get(2)
        assert posts2.get(2).author() is not users.get(2)

    def test_reference_to_deleted_row_after_load(self, users, posts):
        loaded = Model.from_json(_round_trip(posts.to_json()), {"User": users})
        users.delete(2)
        assert loaded.get(2).author() is None

    def test_deserialize_alias(self, users):
        assert Model.deserialize(users.to_json()).to_json() == users.to_json()

    def test_missing_target_fails_fast(self, posts):
        with pytest.raises(UnresolvedReferenceError):
            Model.from_json(posts.to_json())

    def test_unknown_type_fails_fast(self, users):
        doc = users.to_json()
        doc["fields"]["age"]["name"] = "INTEGER"
        with pytest.raises(UnknownTypeError):
            Model.from_json(doc)

    def test_errors_are_schema_errors(self, posts):
        with pytest.raises(SchemaError):
            Model.from_json(posts.to_json(), {})
        with pytest.raises(SchemaError, match="fields"):
            Model.from_json({"name": "Broken", "data": []})
        with pytest.raises(SchemaError, match="name"):
            Model.from_json({"fields": {}})
        with pytest.raises(SchemaError):
            Model.from_json(["not", "a", "document"])

    def test_primitive_bound_args_round_trip(self):
        doc = {
            "name": "T",
            "fields": {"label": {"name": "STRING", "args": ["x"], "defaultValue": ""}},
            "data": [{"id": 1, "label": "a"}],
        }
        loaded = Model.from_json(doc)
        assert loaded.get(1).label == "a"
        assert loaded.fields["label"].args == ("x",)
        assert loaded.to_json() == doc

    @pytest.mark.parametrize("data", [None, 5, "rows", {"id": 1}])
    def test_data_must_be_a_list(self, data):
        doc = {"name": "T", "fields": {}, "data": data}
        with pytest.raises(SchemaError, match="must be a list"):
            Model.from_json(doc)

    @pytest.mark.parametrize("row", [1, None, "x", [1, 2]])
    def test_data_rows_must_be_objects(self, row):
        doc = {"name": "T", "fields": {}, "data": [{"id": 1}, row]}
        with pytest.raises(SchemaError, match="data row 1"):
            Model.from_json(doc)

    def test_self_reference(self):
        nodes = Model("Node", {"label": STRING()})
        nodes.fields["parent"] = REF(None, nodes)
        nodes.seed([{"label": "root"}, {"label": "child", "parent": 1}])

        loaded = Model.from_json(_round_trip(nodes.to_json()))
        assert loaded.get(2).parent() is loaded.get(1)
        assert loaded.get(1).parent is None

    def test_data_is_coerced_on_load(self):
        doc = {
            "name": "Stat",
            "fields": {"value": {"name": "NUMBER", "args": [], "defaultValue": 0}},
            "data": [{"id": 1, "value": "12"}, {"id": 2, "value": "bad"}, {"id": 3}],
        }
        loaded = Model.from_json(doc)
        assert loaded.get(1).value == 12
        assert math.isnan(loaded.get(2).value)
        assert loaded.get(3).value == 0

    def test_options_are_forwarded(self, users):
        loaded = Model.from_json(users.to_json(), id_policy=IdPolicy.MAX)
        assert loaded.id_policy is IdPolicy.MAX


class TestSchemaJson:
    """Tests for loading a graph of documents through Schema."""

    def test_round_trip_graph(self, users, posts):
        docs = _round_trip(Schema([users, posts]).to_json())
        # Order does not matter for resolution
        schema = Schema.from_json(reversed(docs))
        assert schema.list_models() == ["Post", "User"]
        assert schema["Post"].get(1).author() is schema["User"].get(1)

    def test_external_binding(self, users, posts):
        schema = Schema.from_json([_round_trip(posts.to_json())], {"User": users})
        assert schema["Post"].get(2).author() is users.get(2)

    def test_missing_external_binding(self, posts):
        with pytest.raises(UnresolvedReferenceError):
            Schema.from_json([posts.to_json()])

    def test_duplicate_document_names(self, users):
        with pytest.raises(SchemaError, match="already defined"):
            Schema.from_json([users.to_json(), users.to_json()])
