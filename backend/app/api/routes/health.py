from fastapi import APIRouter
from sqlalchemy import text

from app.config import settings
from app.core.observability import uptime_seconds, utc_now_iso
from app.database import SessionLocal

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Healthcheck")
def healthcheck():
    """Liveness. Payload shape is relied on by monitoring."""
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.environment,
        "time": utc_now_iso(),
        "uptime_seconds": round(uptime_seconds(), 2),
        "version": settings.build_version,
    }


@router.get("/db", summary="Database readiness")
def db_readiness():
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "reachable"}
    finally:
        db.close()
