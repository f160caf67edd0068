from datetime import datetime

from bson import ObjectId

from remo import MakeSchema, Model, ModelRegistry, RequestOptions
from remo.schemas.mongo import serialize_document, to_object_id


class WidgetCreate(MakeSchema("create")):
    name: str


class WidgetRead(MakeSchema("read", soft_delete=True, time_stamp=True)):
    name: str


def _registry():
    return ModelRegistry(
        Model("Widget", create_model=WidgetCreate, read_model=WidgetRead, make_time_stamps=True)
    )


def test_read_model_shapes_response(make_client):
    client = make_client(registry=_registry())

    doc = client.post("/remo/widget", json={"name": "a", "colour": "red"}).json()
    assert ObjectId.is_valid(doc["_id"])
    assert doc["name"] == "a"
    assert doc["colour"] == "red"
    assert doc["_destroy"] is False
    assert datetime.fromisoformat(doc["created_at"]) == datetime.fromisoformat(doc["updated_at"])


def test_update_keeps_timestamps(make_client):
    client = make_client(registry=_registry())
    doc = client.post("/remo/widget", json={"name": "a"}).json()

    updated = client.put(f"/remo/widget/{doc['_id']}", json={"name": "b"}).json()
    assert updated["name"] == "b"
    assert updated["created_at"]
    assert updated["updated_at"]


def test_to_object_id():
    oid = ObjectId()
    assert to_object_id(str(oid)) == oid
    assert to_object_id("count") == "count"


def test_serialize_document():
    oid = ObjectId()
    when = datetime(2024, 1, 2, 3, 4, 5)
    assert serialize_document({"_id": oid, "at": when, "refs": [oid]}) == {
        "_id": str(oid),
        "at": "2024-01-02T03:04:05",
        "refs": [str(oid)],
    }
    assert serialize_document(None) is None


def test_request_options():
    options = RequestOptions(query=(("sort", "a"), ("lim", "1"), ("sort", "b")))
    assert options.get("sort") == "b"
    assert options.get("missing", "x") == "x"
    assert options.with_query(sort="c").query == (("lim", "1"), ("sort", "c"))


def test_read_model_with_projection(make_client):
    client = make_client(registry=_registry())
    doc = client.post("/remo/widget", json={"name": "a", "secret": "x"}).json()

    r = client.get("/remo/widget?select=secret")
    assert r.status_code == 200, r.text
    assert r.json() == [{"_id": doc["_id"], "secret": "x"}]

    r = client.get(f"/remo/widget/{doc['_id']}?select=-name")
    assert r.status_code == 200, r.text
    body = r.json()
    assert "name" not in body
    assert body["secret"] == "x"


def test_read_model_does_not_invent_stamps(make_client):
    registry = ModelRegistry(Model("Widget", read_model=WidgetRead))
    client = make_client(registry=registry)
    doc = client.post("/remo/widget", json={"name": "a"}).json()

    assert doc["created_at"] is None
    assert doc["updated_at"] is None
    assert client.get(f"/remo/widget/{doc['_id']}").json()["created_at"] is None
