from pydantic import BaseModel

from remo import Model, ModelRegistry


def test_bad_filter_is_500_with_empty_body(client):
    r = client.get("/remo/widget?where=notjson")
    assert r.status_code == 500
    assert r.content == b""


def test_debug_echoes_error(make_client):
    client = make_client(debug=True)
    r = client.get("/remo/widget?where=[1,2]")
    assert r.status_code == 500
    assert "find must be a JSON object" in r.json()["error"]

    r = client.get("/remo/widget?limit=-1")
    assert r.status_code == 500
    assert "limit must not be negative" in r.json()["error"]


def test_debug_logs_errors(make_client, caplog):
    client = make_client(debug=True)
    with caplog.at_level("DEBUG", logger="remo"):
        client.get("/remo/widget?skip=abc")
        client.get("/remo/gadget")
    messages = [rec.getMessage() for rec in caplog.records]
    assert any("failed" in m and "skip must be an integer" in m for m in messages)
    assert any("404" in m for m in messages)


def test_alias_resolver_error_is_500(make_client):
    def broken(alias):
        raise RuntimeError("boom")

    client = make_client(alias_to_name=broken, debug=True)
    r = client.get("/remo/widget")
    assert r.status_code == 500
    assert "boom" in r.json()["error"]


def test_validation_failure_is_500(make_client, db):
    class StrictCreate(BaseModel):
        name: str

    registry = ModelRegistry(Model("Widget", create_model=StrictCreate))
    client = make_client(registry=registry, debug=True)

    r = client.post("/remo/widget", json={"size": 1})
    assert r.status_code == 500
    assert "ValidationError" in r.json()["error"]
    assert client.get("/remo/widget").json() == []


def test_populate_unknown_target_is_500(make_client):
    registry = ModelRegistry(Model("Widget", references={"owner": "Ghost"}))
    client = make_client(registry=registry)
    client.post("/remo/widget", json={"name": "a", "owner": "x"})
    assert client.get("/remo/widget?populate=owner").status_code == 500
