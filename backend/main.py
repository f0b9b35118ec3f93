"""
Focus Timer – Backend API
Start with: uvicorn main:app --reload
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from config import CORS_ORIGINS, LOG_LEVEL
from db import init_db
from routers import auth, focus_modes, sessions, settings, stats, tasks

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database ready")
    yield


app = FastAPI(
    title="Focus Timer API",
    description="Pomodoro timer backend: tasks, focus sessions, settings and stats",
    version="0.1.0",
    lifespan=lifespan,
)

# Allow frontend (Next.js) to call this API
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are a plain 400, not FastAPI's default 422."""
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Storage error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(auth.router)
app.include_router(tasks.router)
app.include_router(sessions.router)
app.include_router(settings.router)
app.include_router(focus_modes.router)
app.include_router(stats.router)


@app.get("/health")
def health():
    """Check that the API is running. Frontend can call this first."""
    return {"status": "ok", "message": "Focus Timer API is running"}


@app.get("/")
def root():
    """Root welcome."""
    return {"app": "Focus Timer", "docs": "/docs"}
