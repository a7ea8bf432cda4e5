"""System-level endpoints."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import get_settings
from ..deps import get_db
from ..monitoring import PROMETHEUS_CONTENT_TYPE, get_app_version, get_prometheus_metrics
from ..utils.security import utcnow

router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health")
def healthcheck(db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Health check endpoint for monitoring.

    Checks:
    - Database connectivity
    - Gemini API configuration

    Returns status: "healthy", "degraded", or "unhealthy"
    """
    checks: Dict[str, Any] = {}
    overall_status = "healthy"

    try:
        db.execute(text("SELECT 1")).fetchone()
        checks["database"] = {"status": "healthy", "message": "Database connection OK"}
    except SQLAlchemyError as exc:
        checks["database"] = {"status": "unhealthy", "message": f"Database error: {exc}"}
        overall_status = "unhealthy"

    # Without a key every generation fails, but the roadmap fallback still works.
    settings = get_settings()
    gemini_configured = bool(settings.gemini_api_key_value)
    checks["gemini_api"] = {
        "status": "healthy" if gemini_configured else "degraded",
        "message": "Gemini API key configured" if gemini_configured else "Gemini API key not configured",
        "configured": gemini_configured,
        "model": settings.gemini_model,
    }
    if not gemini_configured and overall_status == "healthy":
        overall_status = "degraded"

    return {
        "status": overall_status,
        "timestamp": utcnow().isoformat(),
        "checks": checks,
    }


@router.get("/version")
def version() -> dict:
    settings = get_settings()
    return {"app": settings.app_name, "version": get_app_version()}


@router.get("/metrics")
def metrics() -> Response:
    return Response(content=get_prometheus_metrics(), media_type=PROMETHEUS_CONTENT_TYPE)
