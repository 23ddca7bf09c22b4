import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskflow.config import settings
from taskflow.database import Database
from taskflow.exception_handlers import register_exception_handlers
from taskflow.middleware.logging import StructuredLoggingMiddleware, setup_structured_logging
from taskflow.middleware.rate_limit import configure_rate_limiting
from taskflow.middleware.tenant import RequestContextMiddleware
from taskflow.routes import auth, notifications, projects, tasks, tenants, users, websocket
from taskflow.services.notification_registry import NotificationRegistry

logger = logging.getLogger("taskflow")


def create_app(database: Database | None = None) -> FastAPI:
    """
    Create the FastAPI application.

    ``database`` replaces the settings-built Database, which is how the
    tests run the app against SQLite.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.app_name} v{settings.app_version} ({settings.environment})")
        if getattr(app.state, "database", None) is None:
            app.state.database = Database.from_settings(settings)
        if settings.create_tables_on_startup:
            await app.state.database.create_all()
            logger.info("Database tables created (if not existing).")
        yield
        logger.info("Shutting down the application...")
        await app.state.database.dispose()

    setup_structured_logging(settings.log_level, settings.log_json)

    app = FastAPI(
        title=settings.app_name,
        description="Multi-tenant project and task management API",
        debug=settings.debug,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.notification_registry = NotificationRegistry()

    configure_rate_limiting(app)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(auth.router, prefix="/api/auth")
    app.include_router(users.router, prefix="/api/users")
    app.include_router(tenants.router, prefix="/api/tenants")
    app.include_router(projects.router, prefix="/api/projects")
    app.include_router(tasks.router, prefix="/api/tasks")
    app.include_router(notifications.router, prefix="/api/notifications")
    app.include_router(websocket.router, prefix="/ws")

    @app.get("/health", tags=["Health"])
    async def health():
        return {"success": True, "data": {"status": "ok", "version": settings.app_version}}

    if settings.debug:
        logger.info(f"Running in {settings.environment} mode")
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
