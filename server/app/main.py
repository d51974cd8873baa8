"""LetBabyTalk — FastAPI server application.

Caregiver backend for baby cry analysis: accounts and guest sessions,
baby profiles, recordings proxied to the external cry classifier, caregiver
feedback and reference data.
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .database import SessionLocal, create_tables
from .errors import AppError, Unauthorized
from .routes import auth, baby_profiles, cry_reasons, files, health, legal_documents, recordings
from .services.seed import seed_cry_reasons, seed_legal_documents

logging.basicConfig(
    level=logging.DEBUG if config.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("letbabytalk")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create tables and seed reference data."""
    logger.info("LetBabyTalk server starting...")
    create_tables()
    logger.info("Database tables created.")

    with SessionLocal() as db:
        seed_cry_reasons(db)
        seed_legal_documents(db)

    logger.info("Classifier endpoint: %s", config.CLASSIFIER_URL)

    yield

    logger.info("LetBabyTalk server shutting down.")


app = FastAPI(
    title="LetBabyTalk API",
    description=(
        "Baby cry analysis API. Record a cry, upload it and receive the "
        "most likely reason together with care recommendations."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)


# --- Request logging middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.monotonic()
    response = await call_next(request)
    elapsed = (time.monotonic() - start) * 1000
    logger.info(
        "%s %s → %d (%.0fms)",
        request.method,
        request.url.path,
        response.status_code,
        elapsed,
    )
    return response


# --- Error handlers ---
def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message},
        headers=headers,
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    headers = {"WWW-Authenticate": "Cookie"} if isinstance(exc, Unauthorized) else None
    return _error(exc.status_code, exc.message, headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error(400, message)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error: %s", exc)
    return _error(500, "Internal server error")


# --- Register routes ---
app.include_router(auth.router, prefix=config.API_PREFIX, tags=["Auth"])
app.include_router(baby_profiles.router, prefix=config.API_PREFIX, tags=["Baby profiles"])
app.include_router(recordings.router, prefix=config.API_PREFIX, tags=["Recordings"])
app.include_router(cry_reasons.router, prefix=config.API_PREFIX, tags=["Cry reasons"])
app.include_router(legal_documents.router, prefix=config.API_PREFIX, tags=["Legal"])
app.include_router(files.router, prefix=config.API_PREFIX, tags=["Files"])
app.include_router(health.router, prefix=config.API_PREFIX, tags=["Health"])


# --- Root ---
@app.get("/", include_in_schema=False)
def root():
    return {
        "app": "LetBabyTalk",
        "version": "1.0.0",
        "docs": "/docs",
        "health": f"{config.API_PREFIX}/health",
    }
