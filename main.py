"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from src.core.config import settings
from src.core.database import AsyncSessionLocal, create_all_tables
from src.core.exceptions import register_exception_handlers
from src.core.logging_config import configure_logging
from src.modules.appointments.router import router as appointments_router
from src.modules.auth.router import router as auth_router
from src.modules.catalog.admin_router import services_router as admin_services_router
from src.modules.catalog.admin_router import therapists_router as admin_therapists_router
from src.modules.catalog.router import services_router, therapists_router
from src.modules.customers.router import router as customers_router
from src.modules.notifications.dispatcher import notification_dispatcher, notification_queue
from src.modules.notifications.reminders import ReminderSweeper
from src.modules.payments.router import router as payments_router
from src.modules.schedule.router import router as schedule_router
from src.modules.users.admin_router import router as admin_users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_tables:
        await create_all_tables()
    sweeper = ReminderSweeper(AsyncSessionLocal, notification_dispatcher)
    notification_queue.start()
    sweeper.start()
    logger.info("%s started", settings.app_name)
    try:
        yield
    finally:
        await sweeper.stop()
        await notification_queue.stop()
        logger.info("%s stopped", settings.app_name)


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version="0.1.0",
        lifespan=lifespan,
    )
    register_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(auth_router)
    app.include_router(services_router)
    app.include_router(admin_services_router)
    app.include_router(therapists_router)
    app.include_router(admin_therapists_router)
    app.include_router(schedule_router)
    app.include_router(customers_router)
    app.include_router(appointments_router)
    app.include_router(payments_router)
    app.include_router(admin_users_router)

    app.mount(
        settings.upload_url_prefix,
        StaticFiles(directory=settings.upload_dir, check_dir=False),
        name="uploads",
    )
    return app


app = create_app()
