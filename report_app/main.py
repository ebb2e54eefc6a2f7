import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from report_app.api.v1.auth.router import router as auth_router
from report_app.api.v1.departments.router import router as departments_router
from report_app.api.v1.events.router import router as events_router
from report_app.api.v1.master_tasks.router import router as master_tasks_router
from report_app.api.v1.metrics.router import router as metrics_router
from report_app.api.v1.reports.router import router as reports_router
from report_app.api.v1.week_metrics.router import router as week_metrics_router
from report_app.api.v1.weeks.router import router as weeks_router
from report_app.core.config import settings

logger = logging.getLogger(__name__)


async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Weekly Report Backend")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SQLAlchemyError, handle_database_error)

    # Routers
    app.include_router(auth_router)
    app.include_router(departments_router)
    app.include_router(master_tasks_router)
    app.include_router(weeks_router)
    app.include_router(metrics_router)
    app.include_router(week_metrics_router)
    app.include_router(events_router)
    app.include_router(reports_router)

    return app


app = create_app()
