import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from meadpilot import models  # noqa: F401
from meadpilot.api.calculator import router as calculator_router
from meadpilot.api.health import router as health_router
from meadpilot.api.observability import router as observability_router
from meadpilot.core.config import settings
from meadpilot.core.database import Base, engine
from meadpilot.core.errors import MeadPilotError
from meadpilot.core.observability_middleware import ObservabilityMiddleware


async def mead_error_handler(request: Request, exc: MeadPilotError) -> JSONResponse:
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


def create_app() -> FastAPI:
    logging.basicConfig(level=settings.log_level)
    app = FastAPI(title=settings.app_name)

    if settings.auto_create_tables:
        Base.metadata.create_all(bind=engine)

    app.add_middleware(ObservabilityMiddleware)
    app.add_exception_handler(MeadPilotError, mead_error_handler)  # type: ignore[arg-type]

    app.include_router(health_router, prefix=settings.api_prefix)
    app.include_router(calculator_router, prefix=settings.api_prefix)
    app.include_router(observability_router, prefix=settings.api_prefix)
    return app


app = create_app()
