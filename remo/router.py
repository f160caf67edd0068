from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, FastAPI, Header, Request, Response

from remo.core.config import RemoConfig
from remo.core.dispatcher import Dispatcher
from remo.core.errors import RemoError, make_error_handler
from remo.core.logger import get_logger, set_debug
from remo.database.mongo import connect
from remo.local_typing import AgnosticDatabase

logger = get_logger(__name__)


def create_router(config: RemoConfig, database: AgnosticDatabase) -> APIRouter:
    """Build the CRUD routes for ``config``.

    The count route is registered before the id route so that
    ``/{alias}/{count_action}`` never reaches the id lookup.
    """
    dispatcher = Dispatcher(config, database)
    router = APIRouter(prefix=config.url, tags=["remo"])

    @router.get("/{alias}")
    async def list_documents(alias: str, request: Request, response: Response) -> Any:
        return await dispatcher.list(alias, request, response)

    @router.get(f"/{{alias}}/{config.count_action}")
    async def count_documents(alias: str, request: Request, response: Response) -> Any:
        return await dispatcher.count(alias, request, response)

    @router.get("/{alias}/{id}")
    async def get_document(alias: str, id: str, request: Request, response: Response) -> Any:
        return await dispatcher.get(alias, id, request, response)

    @router.post("/{alias}")
    async def create_document(
        alias: str,
        request: Request,
        response: Response,
        background_tasks: BackgroundTasks,
        body: dict[str, Any] | None = Body(default=None),
    ) -> Any:
        return await dispatcher.create(alias, body or {}, request, response, background_tasks)

    @router.put("/{alias}/{id}")
    async def update_document(
        alias: str,
        id: str,
        request: Request,
        response: Response,
        background_tasks: BackgroundTasks,
        body: dict[str, Any] | None = Body(default=None),
    ) -> Any:
        return await dispatcher.update(alias, id, body or {}, request, response, background_tasks)

    @router.delete("/{alias}/{id}")
    async def delete_document(
        alias: str,
        id: str,
        request: Request,
        response: Response,
        background_tasks: BackgroundTasks,
        x_remo_mw: str | None = Header(default=None),
    ) -> Any:
        # x-remo-mw asks for the document to be loaded first so on_delete runs
        mode = "load_then_remove" if x_remo_mw else None
        return await dispatcher.delete(alias, id, request, response, background_tasks, mode=mode)

    return router


def serve(app: FastAPI, config: RemoConfig) -> FastAPI:
    """Mount the CRUD routes on ``app`` and install the error handler."""
    set_debug(config.debug)
    database = connect(config)
    app.include_router(create_router(config, database))
    app.add_exception_handler(RemoError, make_error_handler(config.debug))
    logger.info("remo serving %d model(s) under %s", len(config.registry), config.url or "/")
    return app
