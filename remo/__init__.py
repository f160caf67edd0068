# describe the project
"""
remo exposes a REST CRUD API over MongoDB document models registered with it,
mounted on a FastAPI application.

Features:
- One set of routes for every registered model: list, count, get, create, update, delete.
- Query-string filters, sorting, pagination, field selection and population of referenced documents.
- Soft-deleted documents (``_destroy: true``) are hidden from reads unless asked for.
- Per-model, per-action access rules that can deny a request or narrow its options.
- Per-model, per-action callbacks run after the response is sent.

Usage:
1. Install remo using pip: `pip install remo`.
2. Register your models: `remo.register(remo.Model("Widget"))`.
3. Build a config with a motor database (or a connection URI).
4. Call `remo.serve(app, config)` on your FastAPI application.

| Method | Path                   | Action |
|--------|------------------------|--------|
| GET    | /remo/{alias}          | list   |
| GET    | /remo/{alias}/count    | count  |
| GET    | /remo/{alias}/{id}     | get    |
| POST   | /remo/{alias}          | create |
| PUT    | /remo/{alias}/{id}     | update |
| DELETE | /remo/{alias}/{id}     | delete |
"""
__VERSION__ = "0.1.0"


# make the imports for library users easier
from .schemas.core import SchemaGenerator as Schema
from .schemas.core import RequestOptions
from .core.handlers.base import Model
from .core.registry import ModelRegistry, default_registry, register
from .core.access import ALLOW, AccessDecision
from .core.config import RemoConfig, default_alias_to_name
from .core.errors import (
    AccessDeniedError,
    ConfigError,
    DocumentNotFoundError,
    ModelNotFoundError,
    RemoError,
    StoreError,
)
from .router import create_router, serve

MakeSchema = Schema.make_model
