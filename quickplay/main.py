import logging
import os
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

# Load env from the project .env before settings are read
project_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv(dotenv_path=os.path.join(project_dir, ".env"))

from quickplay.api import activity, admin, health, leaderboards, scores, social, statistics, streaks  # noqa: E402
from quickplay.core.config import settings, validate_config  # noqa: E402
from quickplay.core.errors import (  # noqa: E402
    AppError,
    app_error_handler,
    http_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from quickplay.core.logging import configure_logging  # noqa: E402
from quickplay.core.middleware.request_id import RequestIdMiddleware  # noqa: E402
from quickplay.core.scheduler import DailyResetScheduler  # noqa: E402
from quickplay.features.pipeline import get_pipeline  # noqa: E402
from quickplay.workers.daily_reset import reset_daily_scores  # noqa: E402

configure_logging(settings.ENV)
validate_config(strict=getattr(settings, "CONFIG_STRICT", False))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("quickplay")
    logger.info("Starting QuickPlay backend...")
    app.state.startup_time = time.time()
    get_pipeline()

    scheduler = None
    if settings.SCHEDULER_ENABLED:
        scheduler = DailyResetScheduler(cron=settings.DAILY_RESET_CRON, timezone=settings.DAILY_RESET_TIMEZONE)
        scheduler.register(reset_daily_scores)
        scheduler.start()
    app.state.scheduler = scheduler
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown()
        logging.getLogger("quickplay").info("Stopping QuickPlay backend...")


app = FastAPI(title="QuickPlay - Backend", lifespan=lifespan)

# Middlewares
app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(HTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.root_router)
app.include_router(scores.router)
app.include_router(leaderboards.router)
app.include_router(statistics.router)
app.include_router(streaks.router)
app.include_router(activity.router)
app.include_router(social.router)
app.include_router(admin.router)
