# equipment_tracker/main.py
from contextlib import asynccontextmanager
import asyncio
import importlib
import json
from datetime import datetime
from time import perf_counter
from typing import Any

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from equipment_tracker.core.config import load_environment, get_env_load_state, settings
from equipment_tracker.core.logger import app_logger
from equipment_tracker.core.middleware import LoggingMiddleware
from equipment_tracker.db.session import get_db

APP_VERSION = "1.0.0"


class PrettyJSONResponse(JSONResponse):
    """Custom JSONResponse that pretty-prints JSON with indentation."""
    def render(self, content: Any) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=2,
            separators=(",", ": "),
        ).encode("utf-8")


load_environment()  # load .env.<APP_ENV>

CRITICAL_ROUTER_MODULES = (
    "equipment_tracker.inventory.routers.crud_router",
    "equipment_tracker.inventory.routers.summary_router",
    "equipment_tracker.inventory.routers.search_router",
    "equipment_tracker.inventory.routers.history_router",
)

DEFERRED_ROUTER_MODULES = (
    "equipment_tracker.inventory.routers.import_router",
    "equipment_tracker.inventory.routers.migration_router",
    "equipment_tracker.inventory.routers.export_router",
)

ALL_ROUTER_MODULES = CRITICAL_ROUTER_MODULES + DEFERRED_ROUTER_MODULES


def _import_router(module_path: str):
    """
    Import a router module and return its `router` attribute.
    Kept sync so it can be executed inside a thread without touching the loop.
    """
    module = importlib.import_module(module_path)
    router = getattr(module, "router", None)
    if router is None:
        raise AttributeError(f"Module {module_path} does not expose a FastAPI router named 'router'")
    return router


def _load_router_with_profile(module_path: str):
    """Synchronous helper executed in a thread so we can capture timing info."""
    start = perf_counter()
    router = _import_router(module_path)
    duration_ms = (perf_counter() - start) * 1000
    return module_path, router, duration_ms


async def _load_routers(app: FastAPI, module_paths, *, label: str):
    """Load routers concurrently while still logging individual durations."""
    tasks = [
        asyncio.to_thread(_load_router_with_profile, module_path)
        for module_path in module_paths
    ]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    for result in results:
        if isinstance(result, Exception):
            raise result

        module_path, router, load_ms = result
        app.include_router(router)
        app_logger.debug(
            "Router loaded",
            extra={"router_module": module_path, "load_ms": round(load_ms, 2), "batch": label},
        )


def _create_tables() -> None:
    from equipment_tracker.db.base import Base
    from equipment_tracker.db.session import get_engine
    from equipment_tracker.models import entity_models  # noqa: F401  registers the tables

    Base.metadata.create_all(bind=get_engine())


async def _ensure_schema():
    """Create missing tables; the app does not serve requests until this is done."""
    try:
        await asyncio.to_thread(_create_tables)
    except Exception:
        app_logger.exception("Database schema could not be created")
        raise


async def _prewarm_database():
    """Open a pooled connection in the background; failures are only logged."""
    from equipment_tracker.db.session import get_engine

    def _ping():
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))

    try:
        await asyncio.to_thread(_ping)
    except Exception as exc:
        app_logger.warning("Database prewarm failed", extra={"error": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Routers are loaded here (after uvicorn says "running") instead of at import time.
    Tables are created before the first request; the pool is pre-warmed in the background.
    """
    env_state = get_env_load_state()
    if env_state["warning"]:
        app_logger.warning(
            "Environment file missing",
            extra={"warning": env_state["warning"]},
        )

    startup_start = perf_counter()
    schema_task = asyncio.create_task(_ensure_schema())

    # TestClient re-enters the lifespan for every client
    if not getattr(app.state, "routers_loaded", False):
        deferred_task = asyncio.create_task(
            _load_routers(app, DEFERRED_ROUTER_MODULES, label="deferred")
        )
        await _load_routers(app, CRITICAL_ROUTER_MODULES, label="critical")
        await deferred_task
        app.state.routers_loaded = True

    await schema_task
    db_task = asyncio.create_task(_prewarm_database())

    startup_duration_ms = (perf_counter() - startup_start) * 1000
    app_logger.info(
        "Equipment tracker started",
        extra={
            "version": APP_VERSION,
            "startup_ms": round(startup_duration_ms, 2),
            "routers_loaded": len(ALL_ROUTER_MODULES),
            "environment": settings.ENVIRONMENT,
            "log_level": settings.LOG_LEVEL,
            "log_format": settings.LOG_FORMAT,
        },
    )

    yield  # App is running

    await db_task
    app_logger.info("Equipment tracker shutting down")


app = FastAPI(
    title="Equipment Tracker",
    description="IT equipment inventory: computers, network devices, peripherals, "
                "employee assignments, spreadsheet import and change history",
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    default_response_class=PrettyJSONResponse,
)


# =============================================================================
# Error bodies: every failure is rendered as {"error": <message>}
# =============================================================================

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return PrettyJSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    app_logger.info("Request validation failed", extra={"details": details})
    return PrettyJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request data", "details": details},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    app_logger.exception("Unhandled error", extra={"exception_type": type(exc).__name__})
    return PrettyJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


# Parse CORS origins from config (comma-separated list or "*" for all)
cors_origins = settings.CORS_ORIGINS
if cors_origins == "*":
    allow_origins = ["*"]
else:
    allow_origins = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=allow_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(LoggingMiddleware)


@app.get("/")
def read_root():
    return {
        "message": "Equipment tracker is running",
        "docs": "/docs",
        "health": "/api/health",
    }


@app.get("/api/health")
def health_check(db: Session = Depends(get_db)):
    """
    Lightweight health probe: a quick DB ping plus runtime metadata.
    """
    try:
        db.execute(text("SELECT 1"))
        db_status = "up"
        overall_status = "ok"
    except SQLAlchemyError as exc:
        db_status = f"down ({type(exc).__name__})"
        overall_status = "degraded"

    return {
        "status": overall_status,
        "database": db_status,
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }
