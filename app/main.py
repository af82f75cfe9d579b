"""
Main FastAPI application for the document marketplace API.
Serves health, auth, catalog, gated files, entitlements, payment claims, admin review and metrics.
"""
import logging
import time
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.errors import AppError, app_error_handler
from app.core.logging import configure_logging
from app.db.session import init_db
from app.api.routes import health, auth, documents, files, purchases, payment_requests, admin
from app.utils.metrics import http_request_duration_seconds, router as metrics_router

logger = logging.getLogger("app.http")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if settings.db_auto_create:
        init_db()
    logger.info("app_started", extra={"source": settings.app_env})
    yield


app = FastAPI(
    title="Document Marketplace API",
    description="PDF catalog with manual payment verification and access gating",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if not origins:
    origins = ["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logging(request: Request, call_next):
    request_id = request.headers.get(settings.request_id_header) or str(uuid4())
    start = time.time()
    response = await call_next(request)
    latency = time.time() - start
    response.headers[settings.request_id_header] = request_id
    http_request_duration_seconds.labels(method=request.method, status=str(response.status_code)).observe(latency)
    logger.info(
        "http_request",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "latency_ms": round(latency * 1000, 1),
        },
    )
    return response


app.add_exception_handler(AppError, app_error_handler)

# Routers
app.include_router(health.router, tags=["health"])
app.include_router(auth.router)
app.include_router(documents.router)
app.include_router(files.router)
app.include_router(purchases.router)
app.include_router(payment_requests.router)
app.include_router(admin.router)
app.include_router(metrics_router)
