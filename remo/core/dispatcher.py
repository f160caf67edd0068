from contextlib import contextmanager
from typing import Any, Iterator

from bson.errors import BSONError
from fastapi import BackgroundTasks, Request, Response
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from remo.core.access import AccessGate
from remo.core.config import RemoConfig
from remo.core.errors import DocumentNotFoundError, ModelNotFoundError, RemoError, StoreError, describe
from remo.core.handlers.base import Model
from remo.core.logger import get_logger
from remo.core.query import COUNT_KEYS, GET_KEYS, LIST_KEYS, Query, apply_query_params, exclude_destroyed
from remo.local_typing import Action, AgnosticDatabase, DeleteMode, Document
from remo.schemas.core import RequestOptions
from remo.schemas.mongo import to_object_id

logger = get_logger(__name__)


@contextmanager
def store_errors() -> Iterator[None]:
    """Turn driver, BSON and validation failures into StoreError (500)."""
    try:
        yield
    except RemoError:
        raise
    except (PyMongoError, BSONError, ValidationError, ValueError, TypeError) as err:
        raise StoreError(describe(err)) from err


class Dispatcher:
    """Runs the six CRUD actions for whatever model an alias resolves to."""

    def __init__(self, config: RemoConfig, db: AgnosticDatabase) -> None:
        self._config = config
        self._db = db
        self._registry = config.registry
        self._gate = AccessGate(config.access)

    def resolve(self, alias: str) -> Model:
        try:
            return self._registry.get(self._config.alias_to_name(alias))
        except ModelNotFoundError:
            raise
        except Exception as err:
            raise StoreError(f"Failed to resolve model for alias {alias!r}: {describe(err)}") from err

    def _query(self, model: Model, options: RequestOptions, allowed: frozenset[str]) -> Query:
        return apply_query_params(model.query(self._db, self._registry), options.query, allowed)

    async def _prepare(
        self,
        action: Action,
        alias: str,
        request: Request,
        response: Response,
        id: str | None = None,
        body: dict[str, Any] | None = None,
    ) -> tuple[Model, RequestOptions]:
        model = self.resolve(alias)
        options = RequestOptions(query=tuple(request.query_params.multi_items()), id=id, body=body)
        options = await self._gate.check(model.name, action, request, response, options)
        logger.debug("%s %s id=%s query=%s", action, model.name, options.id, options.query)
        return model, options

    def _schedule_callback(self, model: Model, action: Action, document: Document, tasks: BackgroundTasks) -> None:
        callback = self._config.callbacks.get(model.name, {}).get(action)
        if callable(callback):
            tasks.add_task(callback, document)

    async def list(self, alias: str, request: Request, response: Response) -> list[Any]:
        model, options = await self._prepare("list", alias, request, response)
        with store_errors():
            query = exclude_destroyed(self._query(model, options, LIST_KEYS), self._config.soft_delete_field)
            documents = await query.exec()
            partial = query.projection is not None
            return [model.serialize(document, partial=partial) for document in documents]

    async def count(self, alias: str, request: Request, response: Response) -> dict[str, int]:
        model, options = await self._prepare("count", alias, request, response)
        with store_errors():
            query = exclude_destroyed(self._query(model, options, COUNT_KEYS), self._config.soft_delete_field)
            return {"response": await query.count()}

    async def get(self, alias: str, id: str, request: Request, response: Response) -> Any:
        model, options = await self._prepare("get", alias, request, response, id=id)
        with store_errors():
            query = self._query(model, options, GET_KEYS).find({"_id": to_object_id(options.id or id)})
            document = await exclude_destroyed(query, self._config.soft_delete_field).one()
            if document is None:
                raise DocumentNotFoundError(f"{model.name} {id} not found")
            return model.serialize(document, partial=query.projection is not None)

    async def create(
        self,
        alias: str,
        body: dict[str, Any],
        request: Request,
        response: Response,
        tasks: BackgroundTasks,
    ) -> Any:
        model, options = await self._prepare("create", alias, request, response, body=body)
        with store_errors():
            document = await model.create(options.body or {}, self._db)
            populate = options.get("populate") or options.get("pop")
            if populate:
                document = (await model.query(self._db, self._registry).populate(populate).populate_documents([document]))[0]
            result = model.serialize(document)
        self._schedule_callback(model, "create", document, tasks)
        return result

    async def update(
        self,
        alias: str,
        id: str,
        body: dict[str, Any],
        request: Request,
        response: Response,
        tasks: BackgroundTasks,
    ) -> Any:
        model, options = await self._prepare("update", alias, request, response, id=id, body=body)
        patch = {k: v for k, v in (options.body or {}).items() if k != "_id"}
        with store_errors():
            document = await model.update_by_id(options.id or id, patch, self._db)
            if document is None:
                raise DocumentNotFoundError(f"{model.name} {id} not found")
            result = model.serialize(document)
        self._schedule_callback(model, "update", document, tasks)
        return result

    async def delete(
        self,
        alias: str,
        id: str,
        request: Request,
        response: Response,
        tasks: BackgroundTasks,
        mode: DeleteMode | None = None,
    ) -> Any:
        model, options = await self._prepare("delete", alias, request, response, id=id)
        mode = mode or self._config.delete_mode
        with store_errors():
            if mode == "load_then_remove":
                document = await model.find_by_id(options.id or id, self._db)
                if document is not None:
                    document = await model.remove(document, self._db)
            else:
                document = await model.find_by_id_and_remove(options.id or id, self._db)
            if document is None:
                raise DocumentNotFoundError(f"{model.name} {id} not found")
            result = model.serialize(document)
        self._schedule_callback(model, "delete", document, tasks)
        return result
