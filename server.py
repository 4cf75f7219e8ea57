import time
import uuid
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from api.songs import router as songs_router
from db import create_db_and_tables
from settings import get_settings

settings = get_settings()

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"

@asynccontextmanager
async def lifespan(_: FastAPI):
    create_db_and_tables()
    logger.info("song library started")
    yield
    logger.info("song library stopped")

api_router = APIRouter(prefix="/api/v1")

@api_router.get("/ping", response_class=PlainTextResponse, tags=["Healthcheck"], summary="Server healthcheck")
def ping():
    """Responds with `pong` to verify the server is running."""
    logger.debug("handling ping request")
    return "pong"

api_router.include_router(songs_router)

app = FastAPI(lifespan=lifespan, title="Song Library API", version="1.0")
app.include_router(api_router)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)
    start_time = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    except Exception:
        logger.exception("unhandled error", method=request.method, path=request.url.path)
        raise
    finally:
        logger.info(
            "request processed",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2)
        )
        structlog.contextvars.clear_contextvars()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_origin_regex=settings.CORS_ORIGIN_REGEX,
    allow_credentials=False,
    allow_methods=["POST", "GET", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept"],
    max_age=settings.CORS_MAX_AGE,
)

@app.get("/", include_in_schema=False)
def root():
    """Health check"""
    return Response("Server is running.", status_code=200)

def run_server() -> None:
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)
