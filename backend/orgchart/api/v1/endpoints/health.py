from __future__ import annotations

from fastapi import APIRouter

from orgchart.core.config import settings
from orgchart.services.employee_service import employee_service
from orgchart.services.notification_service import notification_service

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    services: dict[str, str] = {}

    try:
        if employee_service.initialized:
            ok = await employee_service.check_connection()
            services["cosmos_db"] = "ok" if ok else "error"
        else:
            services["cosmos_db"] = "not_configured"
    except Exception:
        services["cosmos_db"] = "error"

    config = notification_service.check_configuration()
    services["n8n"] = "configured" if config["n8n_configured"] else "not_configured"
    services["slack"] = "configured" if config["slack_configured"] else "not_configured"

    all_ok = all(v in ("ok", "configured", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
    }


@router.get("/ready")
async def readiness_probe():
    return {"ready": True}
