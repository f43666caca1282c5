import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse, Response

from .core.config import Settings, get_settings
from .core.errors import AssistantError
from .core.logging import configure_logging
from .schemas.prompts import ErrorResponse, ServiceStatus
from .api.routes.chat import router as chat_router
from .api.routes.prompts import router as prompts_router
from .api.routes.telegram import router as telegram_router


log = logging.getLogger("assistant.main")

_PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
_CATCH_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(title="Shop Assistant Router", version="0.1.0")

    # Permissive CORS: preflights are answered by _preflight below
    @app.middleware("http")
    async def _allow_any_origin(request: Request, call_next):
        response = await call_next(request)
        # Telegram does not need CORS headers
        if request.url.path != "/telegram-webhook":
            response.headers.setdefault("Access-Control-Allow-Origin", "*")
        return response

    @app.exception_handler(AssistantError)
    async def _assistant_error(request: Request, exc: AssistantError) -> JSONResponse:
        return JSONResponse(
            ErrorResponse(error=exc.message, kind=exc.kind).model_dump(),
            status_code=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        log.info("Rejected request body on %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            ErrorResponse(error="Invalid request body", kind="validation").model_dump(),
            status_code=400,
        )

    app.include_router(chat_router, prefix="/api", tags=["chat"])
    app.include_router(prompts_router, prefix="/api", tags=["prompts"])
    app.include_router(telegram_router, tags=["telegram"])

    # Registered last so that the routes above win on path and method
    @app.options("/{full_path:path}", include_in_schema=False)
    def _preflight(full_path: str, current: Settings = Depends(get_settings)) -> Response:
        headers = dict(_PREFLIGHT_HEADERS)
        if current.admin_api_token:
            # the admin panel must be able to send its bearer token
            headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
        return Response(status_code=200, headers=headers)

    @app.api_route("/{full_path:path}", methods=_CATCH_ALL_METHODS, include_in_schema=False)
    def _running(full_path: str, current: Settings = Depends(get_settings)) -> ServiceStatus:
        return ServiceStatus(message=f"{current.service_name} is running.")

    log.info("Routes ready for %s", settings.service_name)
    return app


app = create_app()
