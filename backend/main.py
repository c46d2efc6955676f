# main.py — IMF Gadget API
# Features:
# - Request correlation IDs
# - JSON {"error": ...} bodies for every failure
# - Health check with DB verification
# - Auth + gadget routers

import json
import uuid
import time
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from database import init_db, close_db, get_db_session
from errors import GadgetAPIError
from telemetry import setup_telemetry

# Logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
)
logger = logging.getLogger("imf-gadgets")


def _check_startup_config():
    """Warn about insecure configuration on startup."""
    warnings = []

    if config.JWT_SECRET_IS_EPHEMERAL:
        warnings.append(
            "⚠️  JWT_SECRET_KEY not set or insecure. Using an ephemeral key; "
            "tokens will not survive a restart"
        )
    elif len(config.JWT_SECRET_KEY) < 32:
        warnings.append("⚠️  JWT_SECRET_KEY is shorter than 32 characters")

    if config.is_production() and config.DATABASE_URL.startswith("sqlite"):
        warnings.append("⚠️  Running in production on SQLite — set DATABASE_URL")

    for w in warnings:
        logger.warning(w)

    return len(warnings) == 0


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 Starting {config.APP_NAME} v{config.APP_VERSION}...")
    await init_db()
    logger.info("✅ Database initialized")
    _check_startup_config()
    setup_telemetry(app)
    yield
    logger.info(f"🛑 Shutting down {config.APP_NAME}...")
    await close_db()


app = FastAPI(
    title=config.APP_NAME,
    description="Gadget inventory for IMF field agents",
    version=config.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ============================================================
# MIDDLEWARE: Correlation IDs + Timing
# ============================================================

@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    correlation_id = request.headers.get("X-Correlation-ID", request_id)
    request.state.request_id = request_id
    request.state.correlation_id = correlation_id

    start = time.perf_counter()
    response = await call_next(request)
    duration = time.perf_counter() - start

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Correlation-ID"] = correlation_id
    response.headers["X-Response-Time"] = f"{duration:.4f}s"

    logger.info(
        f"{request.method} {request.url.path} → {response.status_code} "
        f"({duration:.3f}s) [rid={request_id[:8]}]"
    )
    return response


# ============================================================
# EXCEPTION HANDLERS
# ============================================================

def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


@app.exception_handler(GadgetAPIError)
async def gadget_api_exception_handler(request: Request, exc: GadgetAPIError):
    return JSONResponse(
        status_code=exc.status_code,
        content={**exc.to_dict(), "request_id": _request_id(request)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Framework-raised errors (unknown route, wrong method) in the same shape
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "request_id": _request_id(request)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Sanitise errors to ensure JSON serialisability
    errors = []
    for err in exc.errors():
        clean_err = {
            "type": str(err.get("type", "unknown")),
            "loc": list(err.get("loc", [])),
            "msg": str(err.get("msg", "")),
        }
        if "input" in err:
            try:
                json.dumps(err["input"])
                clean_err["input"] = err["input"]
            except (TypeError, ValueError):
                clean_err["input"] = str(err["input"])
        errors.append(clean_err)

    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request",
            "details": errors,
            "request_id": _request_id(request),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Server error",
            "message": "An unexpected error occurred" if config.is_production() else str(exc),
            "request_id": _request_id(request),
        },
    )


# ============================================================
# ROUTERS
# ============================================================

from routers import auth, gadgets

app.include_router(auth.router)
app.include_router(gadgets.router)


# ============================================================
# HEALTH & ROOT
# ============================================================

@app.get("/health")
async def health_check():
    """Health check with database connectivity verification"""
    db_status = "unknown"
    try:
        async for db in get_db_session():
            await db.execute(text("SELECT 1"))
            db_status = "connected"
            break
    except Exception as e:
        db_status = f"error: {str(e)[:100]}"

    return {
        "status": "ok" if db_status == "connected" else "degraded",
        "message": "IMF API operational",
        "database": db_status,
    }


@app.get("/")
async def root():
    return {
        "name": config.APP_NAME,
        "version": config.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=config.PORT,
        reload=not config.is_production(),
    )
