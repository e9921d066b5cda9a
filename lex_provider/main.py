from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from lex_provider.api.routes import bot_aliases as bot_alias_routes
from lex_provider.api.routes import bots as bot_routes
from lex_provider.api.routes import health as health_routes
from lex_provider.core.config import settings
from lex_provider.core.errors import (
    InvalidImportIdError,
    LexProviderError,
    ResourceConflictError,
    ResourceOperationError,
    RetryTimeoutError,
    SingleObjectError,
)
from lex_provider.core.logging import configure_logging
from lex_provider.core.middleware import RequestLoggingMiddleware


def _error_response(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


async def _bad_request_handler(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


async def _operation_error_handler(
    request: Request, exc: ResourceOperationError
) -> JSONResponse:
    if isinstance(exc.cause, RetryTimeoutError):
        status_code = status.HTTP_504_GATEWAY_TIMEOUT
    elif isinstance(exc.cause, ResourceConflictError):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_502_BAD_GATEWAY
    return _error_response(status_code, exc)


async def _provider_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(status.HTTP_502_BAD_GATEWAY, exc)


def create_app() -> FastAPI:
    """FastAPI application factory."""
    configure_logging()
    app = FastAPI(title=settings.app_name, version=settings.version)
    app.add_middleware(RequestLoggingMiddleware)

    app.add_exception_handler(InvalidImportIdError, _bad_request_handler)
    app.add_exception_handler(SingleObjectError, _bad_request_handler)
    app.add_exception_handler(ResourceOperationError, _operation_error_handler)
    app.add_exception_handler(LexProviderError, _provider_error_handler)

    app.include_router(health_routes.router, prefix="/health", tags=["health"])
    app.include_router(bot_routes.router, prefix="/v1/bots", tags=["bots"])
    app.include_router(
        bot_alias_routes.router, prefix="/v1/bot-aliases", tags=["bot-aliases"]
    )

    return app


app = create_app()
