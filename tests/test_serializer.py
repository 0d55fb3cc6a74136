"""
Tests for the JSON:API serializer.
"""

import pytest

from jsonapi_adapter.models import Document, ResourceObject, Snapshot
from jsonapi_adapter.serializer import JSONAPISerializer


@pytest.fixture
def serializer() -> JSONAPISerializer:
    return JSONAPISerializer()


def test_serialize_for_update_includes_id(serializer: JSONAPISerializer):
    snapshot = Snapshot(
        id="3",
        attributes={"title": "Hello", "publishedAt": "2024-01-01"},
        relationships={"author": {"data": {"type": "people", "id": "9"}}},
    )

    body = serializer.serialize_for_update("blogPost", snapshot, include_id=True)

    assert body == {
        "data": {
            "type": "blog-posts",
            "id": "3",
            "attributes": {"title": "Hello", "published-at": "2024-01-01"},
            "relationships": {"author": {"data": {"type": "people", "id": "9"}}},
        }
    }


def test_serialize_without_id(serializer: JSONAPISerializer):
    body = serializer.serialize_for_update("widget", Snapshot(id="1"), include_id=False)

    assert "id" not in body["data"]
    assert "relationships" not in body["data"]


def test_serialize_with_missing_id_fails(serializer: JSONAPISerializer):
    with pytest.raises(ValueError, match="no id"):
        serializer.serialize_for_update("widget", Snapshot(), include_id=True)


def test_snapshot_coerces_integer_id():
    assert Snapshot(id=7).id == "7"


def test_normalize_collection(serializer: JSONAPISerializer):
    records = serializer.normalize_response(
        {"data": [{"type": "widgets", "id": 1}, {"type": "widgets", "id": "2"}]}
    )

    assert [record.id for record in records] == ["1", "2"]
    assert all(isinstance(record, ResourceObject) for record in records)


def test_normalize_single_resource(serializer: JSONAPISerializer):
    records = serializer.normalize_response(
        {"data": {"type": "widgets", "id": "1", "attributes": {"name": "a"}}}
    )

    assert len(records) == 1
    assert records[0].attributes == {"name": "a"}


def test_normalize_empty_body(serializer: JSONAPISerializer):
    assert serializer.normalize_response(None) == []
    assert serializer.normalize_response({"data": None}) == []


def test_normalize_rejects_malformed_document(serializer: JSONAPISerializer):
    with pytest.raises(ValueError, match="JSON:API document"):
        serializer.normalize_response({"data": [{"id": "1"}]})


def test_document_keeps_included_and_meta():
    document = Document.model_validate(
        {
            "data": [],
            "included": [{"type": "people", "id": "9"}],
            "meta": {"total": 0},
        }
    )

    assert document.included[0].type == "people"
    assert document.meta == {"total": 0}
