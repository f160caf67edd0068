from fastapi import Request
from fastapi.responses import JSONResponse, Response

from remo.core.logger import get_logger

logger = get_logger(__name__)


class RemoError(Exception):
    status_code = 500


class ConfigError(RemoError):
    """Bad startup options. Raised by the config, never turned into a response."""


class ModelNotFoundError(RemoError):
    status_code = 404


class DocumentNotFoundError(RemoError):
    status_code = 404


class AccessDeniedError(RemoError):
    status_code = 403


class StoreError(RemoError):
    """A store operation failed. The underlying error is kept as ``__cause__``."""

    status_code = 500


class QueryParamError(StoreError):
    pass


def describe(err: BaseException) -> str:
    return f"{type(err).__name__}: {err}"


def make_error_handler(debug: bool):
    async def handle_remo_error(request: Request, exc: RemoError) -> Response:
        if debug:
            if exc.status_code >= 500:
                logger.error(
                    "%s %s failed: %s", request.method, request.url.path, describe(exc), exc_info=exc.__cause__ or exc
                )
            else:
                logger.debug("%s %s -> %s %s", request.method, request.url.path, exc.status_code, describe(exc))
        if exc.status_code >= 500 and debug:
            return JSONResponse(status_code=exc.status_code, content={"error": describe(exc)})
        return Response(status_code=exc.status_code)

    return handle_remo_error
