"""
Health checks. /health is liveness only; /ready checks the catalog database and the
Redis instance used for rate limits and breaker state, and names what failed.
"""
import logging

import redis
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_database(db: Session) -> str:
    try:
        db.execute(text("SELECT 1"))
        return "ok"
    except SQLAlchemyError as e:
        logger.warning("ready_check_failed", extra={"source": "database", "error": str(e)})
        return "unavailable"


def _check_redis() -> str:
    try:
        redis.Redis.from_url(settings.redis_url, decode_responses=True).ping()
        return "ok"
    except redis.RedisError as e:
        logger.warning("ready_check_failed", extra={"source": "redis", "error": str(e)})
        return "unavailable"


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/ready")
def readiness(response: Response, db: Session = Depends(get_db)) -> dict:
    """{"status": "ready"|"not_ready", "database": "ok"|"unavailable", "redis": ...}; 503 unless all ok."""
    checks = {"database": _check_database(db), "redis": _check_redis()}
    ready = all(v == "ok" for v in checks.values())
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "ready" if ready else "not_ready", **checks}
