# taskboard/backend/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import text

from taskboard.backend.core.config import settings
from taskboard.backend.core.errors import (
    TaskboardError,
    UnauthenticatedError,
    ValidationError,
    field_errors,
)
from taskboard.backend.core.logging_config import setup_logging
from taskboard.backend.db.session import create_all_tables, engine

# 라우터
from taskboard.backend.routers import auth, task
from taskboard.backend.routers.task_ws import ws_router as task_ws_router

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    # 운영에서는 alembic 마이그레이션 사용
    if settings.db_auto_create:
        create_all_tables()
    yield


app = FastAPI(
    title="Taskboard Backend",
    version=settings.app_version,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ──────────────────────────────────────────────────────────────────────────────
# 에러 → 응답 변환
# ──────────────────────────────────────────────────────────────────────────────
@app.exception_handler(TaskboardError)
async def taskboard_error_handler(request: Request, exc: TaskboardError):
    body = {"message": exc.message}
    headers = None
    if isinstance(exc, ValidationError):
        body["errors"] = exc.errors
    if isinstance(exc, UnauthenticatedError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "message": ValidationError.default_message,
            "errors": field_errors(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled error | %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# 라우터 등록
app.include_router(auth.auth_router)
app.include_router(task.router)
app.include_router(task_ws_router)


@app.get("/health")
def health_app():
    return {"ok": True}


@app.get("/health/db")
def health_db():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"ok": True}
    except Exception:
        logger.exception("database health check failed")
        raise HTTPException(status_code=500, detail="Database connection failed")
