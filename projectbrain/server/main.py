"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request timing, user activity), registers exception handlers and includes all
API routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from projectbrain.core.cache import close_redis, ping_redis
from projectbrain.core.database import init_db
from projectbrain.core.logging_config import get_logger, setup_logging
from projectbrain.core.monitoring import initialize_logfire

from .api.v1 import (
    admin_subscriptions,
    admin_users,
    agent,
    coach_messages,
    coaches,
    connections,
    feature_flags,
    goals,
    health,
    journals,
    push_notifications,
    quizzes,
    resources,
    statistics,
    subscriptions,
    tags,
    users,
    webhooks,
)
from .background.jobs import start_background_jobs, stop_background_jobs
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware, UserActivityMiddleware
from .services.deps import get_activity_service

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Initializes the database and checks Redis on startup, runs the periodic
    background jobs while the server is up, and releases connections on
    shutdown.
    """
    # Startup
    logger.info("Starting up ProjectBrain Server...")
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    await ping_redis()

    tasks = start_background_jobs() if settings.background_jobs_enabled else []

    yield

    # Shutdown
    logger.info("Shutting down ProjectBrain Server...")
    await stop_background_jobs(tasks)
    await close_redis()


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    ProjectBrain Server API

    Backend services for the ProjectBrain coaching and wellness platform.
    It supports user and coach accounts, coach connections and messaging, daily goals,
    journaling, quizzes, subscriptions with Stripe billing, push notifications, file
    resources and a goal-setting AI agent.
    """,
    version=constant.VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

initialize_logfire(app)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(LogfireMiddleware)
app.add_middleware(UserActivityMiddleware, activity_factory=get_activity_service)

setup_exception_handlers(app)


app.include_router(health.router, tags=["health"])
app.include_router(users.router, prefix=f"{constant.API_V1_STR}/users", tags=["users"])
app.include_router(admin_users.router, prefix=f"{constant.API_V1_STR}/admin/users", tags=["admin-users"])
app.include_router(coaches.router, prefix=f"{constant.API_V1_STR}/coaches", tags=["coaches"])
app.include_router(connections.router, prefix=f"{constant.API_V1_STR}/connections", tags=["connections"])
app.include_router(coach_messages.router, prefix=f"{constant.API_V1_STR}/coach-messages", tags=["coach-messages"])
app.include_router(goals.router, prefix=f"{constant.API_V1_STR}/goals", tags=["goals"])
app.include_router(journals.router, prefix=f"{constant.API_V1_STR}/journals", tags=["journals"])
app.include_router(tags.router, prefix=f"{constant.API_V1_STR}/tags", tags=["tags"])
app.include_router(quizzes.router, prefix=f"{constant.API_V1_STR}/quizzes", tags=["quizzes"])
app.include_router(subscriptions.router, prefix=f"{constant.API_V1_STR}/subscriptions", tags=["subscriptions"])
app.include_router(
    admin_subscriptions.router, prefix=f"{constant.API_V1_STR}/admin/subscriptions", tags=["admin-subscriptions"]
)
app.include_router(webhooks.router, prefix=f"{constant.API_V1_STR}/webhooks", tags=["webhooks"])
app.include_router(
    push_notifications.router, prefix=f"{constant.API_V1_STR}/push-notifications", tags=["push-notifications"]
)
app.include_router(resources.router, prefix=f"{constant.API_V1_STR}/resources", tags=["resources"])
app.include_router(agent.router, prefix=f"{constant.API_V1_STR}/agent", tags=["agent"])
app.include_router(statistics.router, prefix=f"{constant.API_V1_STR}/statistics", tags=["statistics"])
app.include_router(feature_flags.router, prefix=f"{constant.API_V1_STR}/feature-flags", tags=["feature-flags"])
