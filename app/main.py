# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the AI Rocket API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import asyncio
import json
import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from app.config import settings
from app.websocket import websocket_manager, WEBSOCKET_CHANNEL
from app.exceptions import RocketException, rocket_exception_handler
from app.routers import (
    health,
    integrations,
    microsoft,
    marketing,
    notifications,
    insights,
    scheduled_tasks,
    jobs,
    tasks,
    agent_mode,
    followups,
)
from app.auth import routes as auth_routes
from app.websocket import routes as websocket_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


_redis_listener_task = None
_shutdown_event = None


async def redis_pubsub_listener():
    """
    Background task that listens to Redis pub/sub and broadcasts to WebSockets.

    Events published by any process (API worker or Celery) carry a
    "user_id"; they are re-sent to that user's connected clients.
    """
    logger.info("Starting Redis pub/sub listener for WebSocket broadcasts")

    redis_client = aioredis.from_url(settings.REDIS_URL)
    pubsub = redis_client.pubsub()

    try:
        await pubsub.subscribe(WEBSOCKET_CHANNEL)

        async for message in pubsub.listen():
            if _shutdown_event and _shutdown_event.is_set():
                break

            if message["type"] != "message":
                continue

            try:
                data = json.loads(message["data"])
            except json.JSONDecodeError as e:
                logger.warning(f"Invalid JSON in Redis message: {e}")
                continue

            user_id = data.pop("user_id", None)
            if user_id:
                await websocket_manager.broadcast(user_id, data)
                logger.debug(f"Broadcast {data.get('type')} to user {user_id}")

    except asyncio.CancelledError:
        logger.info("Redis pub/sub listener cancelled")
    except RedisError as e:
        logger.error(f"Redis pub/sub listener error: {e}")
    finally:
        try:
            await pubsub.unsubscribe(WEBSOCKET_CHANNEL)
            await redis_client.close()
        except RedisError as e:
            logger.debug(f"Redis listener cleanup failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: log config, start the Redis -> WebSocket listener
    - Shutdown: stop the listener
    """
    global _redis_listener_task, _shutdown_event

    logger.info(f"Starting AI Rocket API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    _shutdown_event = asyncio.Event()
    _redis_listener_task = asyncio.create_task(redis_pubsub_listener())

    yield

    logger.info("Shutting down AI Rocket API")

    if _shutdown_event:
        _shutdown_event.set()
    if _redis_listener_task:
        _redis_listener_task.cancel()
        try:
            await _redis_listener_task
        except asyncio.CancelledError:
            pass


app = FastAPI(
    title="AI Rocket API",
    description="""
## AI Rocket Backend

Backend for the AI Rocket assistant ("Astra"): integrations, notifications,
insight feedback, scheduled tasks and the periodic jobs behind them.

### Areas

| Area | What it does |
|------|--------------|
| **Integrations** | OAuth token health/refresh, Google Calendar events, Microsoft tenant consent |
| **Notifications** | Email, SMS, WhatsApp, Telegram and in-app delivery; AI-written messages |
| **Insights** | Insight feedback and the user's strategic identity |
| **Scheduled Tasks** | Recurring assistant tasks run through the team agent |
| **Agent Mode** | Per-user agent mode, synced to open clients over WebSocket |

Internal endpoints (notifications, jobs, tasks, identity) require the
service-role key as bearer token.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Pre-signup lookups and token verification"},
        {"name": "Integrations", "description": "Integration health and calendar events"},
        {"name": "Microsoft", "description": "Microsoft tenant admin consent"},
        {"name": "Marketing", "description": "Marketing email unsubscribe"},
        {"name": "Notifications", "description": "Assistant notifications (internal)"},
        {"name": "Insights", "description": "Insight feedback and strategic identity"},
        {"name": "Scheduled Tasks", "description": "User scheduled tasks"},
        {"name": "Jobs", "description": "Queue periodic jobs (internal)"},
        {"name": "Tasks", "description": "Track background job progress (internal)"},
        {"name": "Agent Mode", "description": "Agent mode preference"},
        {"name": "Chat", "description": "Chat follow-up detection"},
        {"name": "WebSocket", "description": "Real-time per-user updates"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(RocketException)
async def handle_rocket_exception(request: Request, exc: RocketException):
    """Handle custom AI Rocket exceptions."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: [{exc.code}] {exc.message}")
    return await rocket_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

app.include_router(auth_routes.router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(integrations.router, prefix="/api/v1/integrations", tags=["Integrations"])
app.include_router(microsoft.router, prefix="/api/v1/microsoft", tags=["Microsoft"])
app.include_router(marketing.router, prefix="/api/v1/marketing", tags=["Marketing"])
app.include_router(notifications.router, prefix="/api/v1/notifications", tags=["Notifications"])
app.include_router(insights.router, prefix="/api/v1/insights", tags=["Insights"])
app.include_router(scheduled_tasks.router, prefix="/api/v1/scheduled-tasks", tags=["Scheduled Tasks"])
app.include_router(jobs.router, prefix="/api/v1/jobs", tags=["Jobs"])
app.include_router(tasks.router, prefix="/api/v1/tasks", tags=["Tasks"])
app.include_router(agent_mode.router, prefix="/api/v1/agent-mode", tags=["Agent Mode"])
app.include_router(followups.router, prefix="/api/v1/chat", tags=["Chat"])
app.include_router(websocket_routes.router, tags=["WebSocket"])


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "AI Rocket API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
