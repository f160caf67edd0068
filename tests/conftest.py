import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from remo import Model, ModelRegistry, RemoConfig, serve


class Widgets(Model):
    """Widget model that records which lifecycle hooks ran."""

    def __init__(self):
        super().__init__("Widget", collection="widgets", references={"owner": "User", "parts": "Part"})
        self.events = []

    async def on_create(self, document):
        self.events.append(("create", str(document["_id"])))

    async def on_update(self, document):
        self.events.append(("update", str(document["_id"])))

    async def on_delete(self, document):
        self.events.append(("delete", str(document["_id"])))


@pytest.fixture
def db():
    return AsyncMongoMockClient()["remo_test"]


@pytest.fixture
def widgets():
    return Widgets()


@pytest.fixture
def registry(widgets):
    return ModelRegistry(widgets, Model("User", collection="users"), Model("Part", collection="parts"))


@pytest.fixture
def make_client(db, registry):
    def _make(**options):
        options.setdefault("database", db)
        options.setdefault("registry", registry)
        app = serve(FastAPI(), RemoConfig(**options))
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def create(client):
    def _create(alias, **attributes):
        r = client.post(f"/remo/{alias}", json=attributes)
        assert r.status_code == 200, r.text
        return r.json()

    return _create
