from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.common.http_errors import register_exception_handlers
from services.common.logging_config import (
    create_request_logging_middleware,
    get_logger,
    log_service_shutdown,
    log_service_startup,
    setup_service_logging,
)
from services.scheduler.api import (
    admin_time_slots_router,
    time_slots_router,
    users_router,
)
from services.scheduler.models import close_db
from services.scheduler.services.calendar_cache import reset_cache_manager
from services.scheduler.settings import get_settings

# Set up centralized logging - will be initialized in lifespan
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()

    setup_service_logging(
        service_name="scheduler",
        log_level=settings.log_level,
        log_format=settings.log_format,
    )

    log_service_startup(
        "scheduler",
        version="0.1.0",
        cache_enabled=settings.cache_active,
        default_page_size=settings.default_page_size,
    )
    yield
    reset_cache_manager()
    close_db()
    log_service_shutdown("scheduler")


app = FastAPI(
    title="Scheduler Service",
    version="0.1.0",
    description="Time slots, calendar views and meeting booking.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
app.middleware("http")(create_request_logging_middleware())

# Register standardized exception handlers
register_exception_handlers(app)

app.include_router(users_router, prefix="/api/users", tags=["users"])
app.include_router(time_slots_router, prefix="/api/time-slots", tags=["time-slots"])
app.include_router(
    admin_time_slots_router, prefix="/api/admin/time-slots", tags=["admin"]
)


@app.get("/")
def root() -> dict:
    logger.info("Root endpoint accessed")
    return {"message": "Welcome to the Scheduler Service"}


@app.get("/health")
def health() -> dict:
    logger.info("Health check endpoint accessed")
    return {"status": "ok"}
