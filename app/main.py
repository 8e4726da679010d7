"""
Inspection Scheduling API

Public booking endpoints, the inspector back office and token-protected
documents, plus the background notification outbox.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v2.router import api_router
from app.config import settings
from app.database import init_db
from app.exceptions import SchedulingException, create_exception_handlers
from app.middleware import CorrelationIdMiddleware, CorrelationLogFilter
from app.tasks.outbox_dispatcher import start_outbox_scheduler, stop_outbox_scheduler

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
)
for _handler in logging.getLogger().handlers:
    _handler.addFilter(CorrelationLogFilter())
logger = logging.getLogger(__name__)

APP_NAME = "Inspection Scheduling API"
APP_VERSION = "2.0.0"
DEV_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {APP_NAME} ({settings.ENVIRONMENT})")
    try:
        await init_db()
    except Exception as e:
        # Exception text can carry the connection string
        logger.error(f"Database initialization failed: {type(e).__name__}")
    else:
        logger.info("Database ready")

    start_outbox_scheduler()
    try:
        yield
    finally:
        stop_outbox_scheduler()
        logger.info(f"{APP_NAME} stopped")


app = FastAPI(
    title=APP_NAME,
    description="Scheduling, pricing and invoicing for home inspection companies",
    version=APP_VERSION,
    docs_url="/docs" if settings.DOCS_ENABLED else None,
    redoc_url="/redoc" if settings.DOCS_ENABLED else None,
    lifespan=lifespan,
)

handlers = create_exception_handlers()
for exc_class, key in (
    (SchedulingException, "scheduling"),
    (StarletteHTTPException, "http"),
    (RequestValidationError, "validation"),
    (Exception, "generic"),
):
    app.add_exception_handler(exc_class, handlers[key])

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] + ([] if settings.is_production else DEV_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(api_router, prefix="/api/v2")


@app.get("/")
async def root():
    info = {"name": APP_NAME, "version": APP_VERSION, "health": "/health"}
    if settings.DOCS_ENABLED:
        info["docs"] = "/docs"
    return info


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": APP_VERSION, "environment": settings.ENVIRONMENT}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=5001, reload=settings.DEBUG)
