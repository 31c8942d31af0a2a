"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from files_manager.auth.routes import router as auth_router
from files_manager.auth.sessions import SessionStore
from files_manager.config import get_settings
from files_manager.db.session import Database
from files_manager.errors import FilesManagerError, ServiceUnavailableError
from files_manager.files.routes import router as files_router
from files_manager.files.service import FileService
from files_manager.files.storage import BlobStore
from files_manager.files.store import MetadataStore
from files_manager.jobs.queue import JobQueue
from files_manager.limiter import limiter
from files_manager.logs import setup_logging
from files_manager.redis_client import create_redis, redis_alive
from files_manager.users.routes import router as users_router
from files_manager.users.service import count_users

log = logging.getLogger(__name__)

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect the stores on startup and release them on shutdown."""
    settings = get_settings()
    log.info("Startup: initializing database and redis")
    db = Database(settings.sqlalchemy_url)
    await db.init()
    redis_client = create_redis(settings.redis_url)
    metadata = MetadataStore(db.session_factory, page_size=settings.page_size)
    app.state.db = db
    app.state.redis = redis_client
    app.state.sessions = SessionStore(redis_client, ttl_seconds=settings.session_ttl_seconds)
    app.state.user_queue = JobQueue(redis_client, settings.user_queue)
    app.state.files = FileService(
        metadata,
        BlobStore(settings.folder_path),
        thumbnail_queue=JobQueue(redis_client, settings.file_queue),
        thumbnail_widths=settings.thumbnail_widths_list,
    )
    log.info("Startup complete")
    yield
    log.info("Shutdown")
    await redis_client.aclose()
    await db.dispose()


app = FastAPI(title="Files Manager API", version="0.1.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    """Add security headers to all responses."""
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    return response


@app.exception_handler(FilesManagerError)
async def files_manager_error_handler(request: Request, exc: FilesManagerError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    log.warning("Invalid request body on %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(RedisError)
@app.exception_handler(SQLAlchemyError)
async def store_unavailable_handler(request: Request, exc: Exception):
    """Store failures become a generic 503 without internal detail."""
    log.error("Store unavailable on %s: %s", request.url.path, exc)
    err = ServiceUnavailableError()
    return JSONResponse(status_code=err.status_code, content={"error": err.message})


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Return generic 500 without leaking stack trace or internals."""
    if isinstance(exc, HTTPException):
        raise exc
    log.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(files_router)


@app.get("/status")
@limiter.exempt
async def get_status(request: Request) -> dict:
    """Liveness of the session store and the metadata database."""
    return {
        "redis": await redis_alive(request.app.state.redis),
        "db": await request.app.state.db.ping(),
    }


@app.get("/stats")
async def get_stats(request: Request) -> dict:
    """Number of users and file records."""
    async with request.app.state.db.session() as session:
        users = await count_users(session)
    files = await request.app.state.files.metadata.count()
    return {"users": users, "files": files}


def run() -> None:
    """Entry point for the files-manager command."""
    import uvicorn

    uvicorn.run("files_manager.main:app", host="0.0.0.0", port=get_settings().port)
