# Overview: Flask API routes for health and version checks.

"""
System health and version endpoints.

Used by the deployment's liveness probe and for debugging which build is
running.
"""

import os
import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import SessionToken, Setting
from ..services.upload_service import hosted_storage_enabled, upload_dir
from sundus.time_utils import utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity with two cheap reads.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        settings_rows = db.session.query(Setting).count()
        active_sessions = db.session.query(SessionToken).filter(
            SessionToken.is_revoked.is_(False),
            SessionToken.expires_at > utcnow(),
        ).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "settings_initialized": settings_rows > 0,
                "active_sessions": active_sessions,
            }
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_upload_storage_health() -> dict:
    """Local uploads must be writable even when hosted storage is configured (fallback)."""
    try:
        path = upload_dir()
        writable = os.access(path, os.W_OK)
    except OSError:
        current_app.logger.exception("Upload storage health check failed")
        return {"status": "unhealthy", "error": "Upload directory unavailable"}

    return {
        "status": "healthy" if writable else "degraded",
        "details": {
            "local_writable": writable,
            "hosted_enabled": hosted_storage_enabled(),
        }
    }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200 {"status": "ok"} when the database answers (degraded storage is still operational)
    - 503 {"status": "unhealthy"} otherwise
    """
    start_time = time.time()

    database_health = check_database_health()
    storage_health = check_upload_storage_health()
    all_checks = [database_health, storage_health]

    if any(check["status"] == "unhealthy" for check in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(check["status"] == "degraded" for check in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "ok", 200

    return {
        "status": overall_status,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
            "upload_storage": storage_health,
        }
    }, http_status


@system_bp.get("/version")
def version():
    """
    Version endpoint for deployment debugging.

    Does NOT expose secret keys, database credentials or internal paths.
    """
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }
