import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from taskboard.config import settings
from taskboard.routes.auth import router as auth_router
from taskboard.routes.health import router as health_router
from taskboard.routes.projects import router as projects_router
from taskboard.routes.tasks import router as tasks_router

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
# local time with its UTC offset
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

def _field_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    errors = []
    for err in exc.errors():
        # drop the leading "body"/"path"/"query" segment
        loc = [str(part) for part in err.get("loc", ())[1:]]
        errors.append({"field": ".".join(loc) or "request", "message": err.get("msg", "invalid value")})
    return errors

async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": "validation failed", "errors": _field_errors(exc)})

def _is_foreign_key_violation(exc: IntegrityError) -> bool:
    # psycopg exposes the SQLSTATE; sqlite only has the message
    if getattr(exc.orig, "sqlstate", None) == "23503":
        return True
    return "FOREIGN KEY constraint failed" in str(exc.orig)

async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("integrity error on %s %s", request.method, request.url.path)
    if _is_foreign_key_violation(exc):
        return JSONResponse(status_code=400, content={"detail": "invalid reference"})
    return JSONResponse(status_code=409, content={"detail": "resource already exists"})

async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": "internal server error"})
    return JSONResponse(status_code=500, content={"detail": str(exc)})

def create_app() -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )

    app = FastAPI(title="taskboard-api", version="0.1.0")
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(projects_router)
    app.include_router(tasks_router)
    return app

app = create_app()
