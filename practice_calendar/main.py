import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from practice_calendar.api.routes import calendar, conflicts, resize
from practice_calendar.core.config import _ENV_FILE, settings

if not settings.is_production:
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    logger.info(
        "Duration bounds %d-%d min, snap %d min, resize buffer %d min",
        settings.default_min_duration_minutes,
        settings.default_max_duration_minutes,
        settings.snap_interval_minutes,
        settings.resize_buffer_minutes,
    )
    yield


app = FastAPI(
    title="Practice Calendar API",
    description="Stateless scheduling checks: grid positions, conflicts, resize validation",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(calendar.router, prefix="/api/v1")
app.include_router(conflicts.router, prefix="/api/v1")
app.include_router(resize.router, prefix="/api/v1")


def _error_headers(origin: str | None) -> dict[str, str]:
    # Error responses bypass CORSMiddleware, so allowed origins are echoed here
    allowed = settings.cors_origins_list
    if not allowed:
        return {}
    return {
        "Access-Control-Allow-Origin": origin if origin in allowed else allowed[0],
        "Access-Control-Allow-Credentials": "true",
        "Vary": "Origin",
    }


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    """Scheduling checks report failures in their results; anything raised is a bug."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": f"{type(exc).__name__}: {exc}"},
        headers=_error_headers(request.headers.get("origin")),
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
