import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .core.config import settings
from .core.errors import StoreError, TaskNotFound, ValidationError
from .core.logging import setup_logging
from .db.session import engine, init_db
from .services.completion import SessionRegistry
from .services.sms import SmsGateway
from .api.v1 import dashboard, health, sms, tasks

logger = logging.getLogger(__name__)


def create_app(db_engine=None, sms_gateway=None) -> FastAPI:
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.APP_NAME)
    app.state.engine = db_engine or engine
    app.state.sessions = SessionRegistry()
    app.state.sms = sms_gateway or SmsGateway.from_settings(settings)

    app.include_router(health.router,    prefix=settings.API_V1_PREFIX)
    app.include_router(tasks.router,     prefix=settings.API_V1_PREFIX)
    app.include_router(dashboard.router, prefix=settings.API_V1_PREFIX)
    app.include_router(sms.router,       prefix=settings.API_V1_PREFIX)

    @app.exception_handler(TaskNotFound)
    def task_not_found(request: Request, exc: TaskNotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    def invalid_input(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(StoreError)
    def store_unavailable(request: Request, exc: StoreError):
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"detail": "Task store unavailable"})

    @app.on_event("startup")
    def on_startup():
        init_db(app.state.engine)
        logger.info("%s ready db=%s", settings.APP_NAME, app.state.engine.url)

    return app


app = create_app()
